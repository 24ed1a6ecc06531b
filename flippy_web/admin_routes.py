"""
Admin routes: user management and usage analytics.

Read-only views need a signed-in admin session. Mutations ignore the
session and instead re-verify adminEmail/adminPassword from the body.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from flippy.auth.models import User
from flippy.services.admin_service import AdminService
from .auth_middleware import get_admin_service, require_admin
from .schemas import DeleteUserRequest, GenerateApiKeyRequest, UpdateUserRequest

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users")
def list_users(
    current_admin: User = Depends(require_admin),
    admin: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    return {"users": admin.list_users()}


@router.delete("/users")
def delete_user(
    body: DeleteUserRequest,
    admin: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    admin.delete_user(body.user_id, body.admin_email, body.admin_password)
    return {"message": "User deleted successfully"}


@router.put("/users")
def update_user(
    body: UpdateUserRequest,
    admin: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    admin.update_user(
        body.user_id,
        body.user_type,
        body.api_calls_increment,
        body.admin_email,
        body.admin_password,
    )
    return {"message": "User updated successfully"}


@router.post("/generate-api-key")
def generate_api_key(
    body: GenerateApiKeyRequest,
    admin: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    api_key = admin.generate_api_key(
        body.user_id, body.key_name, body.admin_email, body.admin_password
    )
    return {"message": "API key generated successfully", "apiKey": api_key}


@router.get("/endpoint-stats")
def endpoint_stats(
    current_admin: User = Depends(require_admin),
    admin: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    return {"stats": admin.endpoint_stats()}


@router.get("/user-api-usage")
def user_api_usage(
    current_admin: User = Depends(require_admin),
    admin: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    return {"users": admin.user_api_usage()}
