from pathlib import Path
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from flippy.utils.config import Settings

ADMIN_EMAIL = "admin@flippy.example.com"
ADMIN_PASSWORD = "admin-pass-123"
DEFAULT_API_CALLS = 3


def make_settings(tmp_dir: Path, **overrides) -> Settings:
    data = {
        "database": {"path": str(tmp_dir / "flippy_test.sqlite3")},
        "auth": {
            "bcrypt_rounds": 8,
            "seed_admin_email": ADMIN_EMAIL,
            "seed_admin_password": ADMIN_PASSWORD,
        },
        "quota": {"default_api_calls": DEFAULT_API_CALLS},
        "ai": {"api_key": None},
    }
    data.update(overrides)
    return Settings(**data)


def create_test_app(tmp_dir: Path, generator=None):
    # Import inside so each test builds its own app over an isolated database
    from flippy_web.main import create_app

    return create_app(make_settings(tmp_dir), generator=generator)


def signup_and_signin(client: TestClient, email: str, password: str = "Passw0rd!") -> int:
    res = client.post("/signup", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    res = client.post("/signin", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return res.json()["userId"]


def create_group(client: TestClient, name: str = "Biology", cards: Optional[list] = None):
    return client.post(
        "/create-card-group",
        json={
            "name": name,
            "description": "Cells",
            "cards": cards
            or [
                {"question": "What is the powerhouse of the cell?", "answer": "The mitochondria"},
                {"question": "What holds DNA?", "answer": "The nucleus"},
            ],
        },
    )


@pytest.fixture
def app(tmp_path):
    return create_test_app(tmp_path)


@pytest.fixture
def client(app):
    return TestClient(app)
