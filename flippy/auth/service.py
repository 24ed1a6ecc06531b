"""
Authentication service layer.

- Email/password users with bcrypt hashes
- Sessions issued through the SessionRegistry on sign-in
- Admin re-verification: privileged mutations re-present the admin's live
  password instead of trusting the session
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Optional

import bcrypt
from email_validator import EmailNotValidError, validate_email

from ..stores.users import UserStore
from ..utils.exceptions import AuthenticationError, AuthorizationError, ValidationError
from ..utils.logger import get_logger
from .models import User
from .sessions import SessionRegistry

logger = get_logger(__name__)

MAX_PASSWORD_BYTES = 72

INVALID_EMAIL_MSG = "Invalid email format."
INVALID_CREDENTIALS_MSG = "Invalid email or password."
UNAUTHORIZED_MSG = "Unauthorized"


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with bcrypt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    """Syntax check only; no DNS lookups."""
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


@dataclass(frozen=True)
class SignInResult:
    user_id: int
    email: str
    role: str
    token: str


class AuthService:
    def __init__(
        self,
        users: UserStore,
        sessions: SessionRegistry,
        default_api_calls: int,
        bcrypt_rounds: int = 12,
    ):
        self.users = users
        self.sessions = sessions
        self.default_api_calls = default_api_calls
        self.bcrypt_rounds = bcrypt_rounds
        # checked against when the account is missing, so lookups cost the same
        self._dummy_hash = hash_password(secrets.token_hex(16), rounds=bcrypt_rounds)

    def _check_password(self, user: Optional[User], password: Optional[str]) -> bool:
        if user is None:
            verify_password(password or "", self._dummy_hash)
            return False
        return verify_password(password or "", user.password_hash) and bool(password)

    def sign_up(self, email: Optional[str], password: Optional[str]) -> int:
        """
        Create a new user with role "user" and the default quota.

        Raises ValidationError for a malformed email or empty password and
        ConflictError when the email is already registered.
        """
        email = normalize_email(email)
        if not is_valid_email(email):
            raise ValidationError(INVALID_EMAIL_MSG)
        if not password:
            raise ValidationError("Password is required.")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError("Password is too long.")

        password_hash = hash_password(password, rounds=self.bcrypt_rounds)
        user_id = self.users.create(email, password_hash, self.default_api_calls)
        logger.info("User signed up", user_id=user_id)
        return user_id

    def sign_in(self, email: Optional[str], password: Optional[str]) -> SignInResult:
        """
        Verify credentials and open a session.

        Unknown email and wrong password raise the same error so callers
        cannot probe which addresses are registered.
        """
        user = self.users.get_by_email(normalize_email(email))
        if not self._check_password(user, password):
            logger.info("Sign-in rejected", known_user=user is not None)
            raise AuthenticationError(INVALID_CREDENTIALS_MSG)

        token = self.sessions.create(user.id, user.email)
        logger.info("User signed in", user_id=user.id)
        return SignInResult(user_id=user.id, email=user.email, role=user.role, token=token)

    def sign_out(self, token: Optional[str]) -> None:
        self.sessions.destroy(token)

    def authorize_admin(self, admin_email: Optional[str], admin_password: Optional[str]) -> User:
        """
        Re-verify an admin's live password.

        Every failure (no such user, not an admin, wrong password) raises
        the same generic Unauthorized; the reason is only logged.
        """
        user = self.users.get_by_email(normalize_email(admin_email))
        password_ok = self._check_password(user, admin_password)
        if user is None or not user.is_admin:
            logger.warning("Admin re-auth rejected", reason="not_admin")
            raise AuthorizationError(UNAUTHORIZED_MSG)
        if not password_ok:
            logger.warning("Admin re-auth rejected", reason="bad_password", admin_id=user.id)
            raise AuthorizationError(UNAUTHORIZED_MSG)
        return user

    def revoke_user_sessions(self, user_id: int) -> int:
        """Drop every live session of user_id (e.g. after the account is deleted)."""
        return self.sessions.destroy_user(user_id)

    def ensure_seed_admin(self, email: Optional[str], password: Optional[str]) -> None:
        """Seed an admin account when both credentials are configured."""
        if not email or not password:
            return
        email = normalize_email(email)
        if not is_valid_email(email):
            logger.warning("Seed admin email is invalid, skipping", email=email)
            return
        self.users.ensure_admin(
            email,
            hash_password(password, rounds=self.bcrypt_rounds),
            self.default_api_calls,
        )
