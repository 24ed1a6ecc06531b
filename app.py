"""Production entry point for Flippy++ using uvicorn"""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

if __name__ == "__main__":
    HOST = os.getenv("HOST", "127.0.0.1")
    PORT = int(os.getenv("PORT", "3001"))
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()

    print(f"Starting Flippy++ in {ENVIRONMENT} mode...")
    print(f"Host: {HOST}, Port: {PORT}")

    # Sessions live in process memory, so a single worker only.
    uvicorn.run(
        "flippy_web.main:build_app",
        factory=True,
        host=HOST,
        port=PORT,
        workers=1,
        log_level="info",
        access_log=True,
    )
