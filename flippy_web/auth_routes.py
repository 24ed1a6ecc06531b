"""
FastAPI routes for authentication and the caller's own profile.

/signin is the only place that sets the session cookie.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from flippy.auth.service import AuthService
from flippy.auth.sessions import SessionRegistry
from flippy.services.card_service import CardService
from .auth_middleware import (
    extract_token,
    get_auth_service,
    get_card_service,
    get_sessions,
    optional_user_id,
    require_login,
)
from .schemas import CredentialsRequest

router = APIRouter(tags=["auth"])


def _set_session_cookie(request: Request, response: Response, token: str) -> None:
    """Attach the session token as an HttpOnly, SameSite=Lax cookie."""
    sessions: SessionRegistry = get_sessions(request)
    response.set_cookie(
        key=sessions.cookie_name,
        value=token,
        max_age=int(sessions.ttl.total_seconds()),
        httponly=True,
        secure=request.app.state.settings.is_production,
        samesite="lax",
        path="/",
    )


@router.post("/signup")
def signup(
    body: CredentialsRequest,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """
    Register a new user.

    Response:
        { "message": "...", "userId": 1 }
    """
    user_id = auth.sign_up(body.email, body.password)
    request.state.user_id = user_id
    return {"message": "Data inserted successfully.", "userId": user_id}


@router.post("/signin")
def signin(
    body: CredentialsRequest,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
) -> Any:
    """
    Sign in with email and password.

    Response (plus a session cookie):
        { "message": "...", "email": "...", "role": "user", "userId": 1 }
    """
    result = auth.sign_in(body.email, body.password)
    request.state.user_id = result.user_id
    response = JSONResponse(
        {
            "message": "Sign in successful",
            "email": result.email,
            "role": result.role,
            "userId": result.user_id,
        }
    )
    _set_session_cookie(request, response, result.token)
    return response


@router.post("/signout")
def signout(
    request: Request,
    user_id: Optional[int] = Depends(optional_user_id),
    auth: AuthService = Depends(get_auth_service),
) -> Any:
    """Invalidate the current session (if any) and clear the cookie."""
    auth.sign_out(extract_token(request))
    response = JSONResponse({"message": "Signed out"})
    response.delete_cookie(get_sessions(request).cookie_name, path="/")
    return response


@router.get("/verify-session")
def verify_session(request: Request) -> Any:
    session = get_sessions(request).validate(extract_token(request))
    if session is None:
        return JSONResponse({"valid": False}, status_code=status.HTTP_401_UNAUTHORIZED)
    request.state.user_id = session.user_id
    return {"valid": True, "email": session.email, "userId": session.user_id}


@router.get("/profile")
def profile(
    user_id: int = Depends(require_login),
    cards: CardService = Depends(get_card_service),
) -> Dict[str, Any]:
    """Return the caller's own email, role and remaining quota."""
    return cards.get_profile(user_id)
