"""API keys issued to users by an admin."""

import secrets
import sqlite3

from ..utils.exceptions import NotFoundError
from .database import Database, utcnow_iso

DEFAULT_KEY_NAME = "Default Key"


class ApiKeyStore:
    def __init__(self, db: Database):
        self.db = db

    def issue(self, user_id: int, key_name: str = DEFAULT_KEY_NAME) -> str:
        """Create a new active key (256 bits, hex) for user_id and return it."""
        api_key = secrets.token_hex(32)
        try:
            with self.db.connect() as conn:
                conn.execute(
                    "INSERT INTO api_keys (user_id, api_key, key_name, created_at) VALUES (?, ?, ?, ?)",
                    (user_id, api_key, key_name or DEFAULT_KEY_NAME, utcnow_iso()),
                )
        except sqlite3.IntegrityError as e:
            # foreign key: no such user
            raise NotFoundError("User not found") from e
        return api_key
