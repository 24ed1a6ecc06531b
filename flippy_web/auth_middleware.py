"""
Auth "middleware" helpers.

FastAPI dependencies that:
- Hand out the services created by the app factory (held on app.state)
- Read the session token from the cookie and validate it via the registry
- Record the caller's user id on request.state for usage metering
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request

from flippy.auth.models import User
from flippy.auth.service import AuthService
from flippy.auth.sessions import SessionRegistry
from flippy.services.admin_service import AdminService
from flippy.services.card_service import CardService
from flippy.services.flashcard_generator import FlashcardGenerator
from flippy.stores.users import UserStore
from flippy.utils.exceptions import AuthenticationError, ForbiddenError

NOT_AUTHENTICATED_MSG = "Not authenticated"


def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth


def get_card_service(request: Request) -> CardService:
    return request.app.state.cards


def get_admin_service(request: Request) -> AdminService:
    return request.app.state.admin


def get_generator(request: Request) -> FlashcardGenerator:
    return request.app.state.generator


def extract_token(request: Request) -> Optional[str]:
    return request.cookies.get(get_sessions(request).cookie_name)


def optional_user_id(request: Request) -> Optional[int]:
    """Resolve the caller; anonymous callers yield None rather than an error."""
    user_id = get_sessions(request).resolve_user_id(request)
    if user_id is not None:
        request.state.user_id = user_id
    return user_id


def require_login(user_id: Optional[int] = Depends(optional_user_id)) -> int:
    """
    Dependency for protected routes.

    Raises 401 if the session is missing, unknown or expired.
    """
    if user_id is None:
        raise AuthenticationError(NOT_AUTHENTICATED_MSG)
    return user_id


def require_admin(request: Request, user_id: int = Depends(require_login)) -> User:
    """Dependency for admin read-only views: session plus role=admin."""
    users: UserStore = request.app.state.users
    user = users.get_by_id(user_id)
    if user is None:
        raise AuthenticationError(NOT_AUTHENTICATED_MSG)
    if not user.is_admin:
        raise ForbiddenError("Admin only")
    return user
