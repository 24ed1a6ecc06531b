"""
Credential store: the users table.
"""

import sqlite3
from typing import List, Optional

from ..auth.models import User
from ..utils.exceptions import ConflictError
from ..utils.logger import get_logger
from .database import Database, utcnow_iso

logger = get_logger(__name__)

EMAIL_TAKEN_MSG = "Email already in use."


def _row_to_user(row: Optional[sqlite3.Row]) -> Optional[User]:
    if row is None:
        return None
    return User(**dict(row))


class UserStore:
    def __init__(self, db: Database):
        self.db = db

    def create(
        self,
        email: str,
        password_hash: str,
        remaining_api_calls: int,
        role: str = "user",
    ) -> int:
        """
        Insert a user and return its id.

        Uniqueness is enforced by the UNIQUE constraint, so two racing
        signups for one email cannot both succeed.
        """
        try:
            with self.db.connect() as conn:
                cur = conn.execute(
                    """
                    INSERT INTO users (email, password_hash, role, remaining_api_calls, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (email, password_hash, role, remaining_api_calls, utcnow_iso()),
                )
                return int(cur.lastrowid)
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e).upper():
                raise ConflictError(EMAIL_TAKEN_MSG) from e
            raise

    def get_by_email(self, email: str) -> Optional[User]:
        with self.db.connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        return _row_to_user(row)

    def get_by_id(self, user_id: int) -> Optional[User]:
        with self.db.connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return _row_to_user(row)

    def list_all(self) -> List[User]:
        with self.db.connect() as conn:
            rows = conn.execute("SELECT * FROM users ORDER BY id ASC").fetchall()
        return [User(**dict(r)) for r in rows]

    def delete(self, user_id: int) -> bool:
        """Delete a user; groups, cards and API keys cascade."""
        with self.db.connect() as conn:
            cur = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            return cur.rowcount > 0

    def update(
        self,
        user_id: int,
        role: Optional[str] = None,
        api_calls_increment: Optional[int] = None,
    ) -> bool:
        """
        Change role and/or add to the remaining quota in one statement.

        The increment is additive; the result never drops below zero.
        """
        assignments = []
        params: list = []
        if role is not None:
            assignments.append("role = ?")
            params.append(role)
        if api_calls_increment is not None:
            assignments.append("remaining_api_calls = MAX(remaining_api_calls + ?, 0)")
            params.append(api_calls_increment)
        if not assignments:
            return False
        params.append(user_id)
        with self.db.connect() as conn:
            cur = conn.execute(
                f"UPDATE users SET {', '.join(assignments)} WHERE id = ?",
                tuple(params),
            )
            return cur.rowcount > 0

    def ensure_admin(self, email: str, password_hash: str, remaining_api_calls: int) -> bool:
        """Create an admin account if the email is unused. Returns True if created."""
        if self.get_by_email(email):
            return False
        try:
            self.create(email, password_hash, remaining_api_calls, role="admin")
        except ConflictError:
            return False
        logger.info("Seeded admin user", email=email)
        return True
