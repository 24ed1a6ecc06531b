"""
Admin operations: user management and usage reporting.

Mutations take the admin's email and live password and re-verify them
through AuthService.authorize_admin before touching anything.
"""

from typing import Any, Dict, List, Optional

from ..auth.service import AuthService
from ..stores.api_keys import ApiKeyStore
from ..stores.usage_log import UsageLogger
from ..stores.users import UserStore
from ..utils.exceptions import NotFoundError, ValidationError
from ..utils.logger import get_logger
from .params import parse_id

logger = get_logger(__name__)

ROLES = ("user", "admin")
USER_NOT_FOUND_MSG = "User not found"
MAX_INCREMENT = 2**31


def _require_user_id(user_id: Any) -> int:
    return parse_id(user_id, "userId must be an integer")


class AdminService:
    def __init__(
        self,
        auth: AuthService,
        users: UserStore,
        api_keys: ApiKeyStore,
        usage: UsageLogger,
    ):
        self.auth = auth
        self.users = users
        self.api_keys = api_keys
        self.usage = usage

    def list_users(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": u.id,
                "email": u.email,
                "role": u.role,
                "remainingApiCalls": u.remaining_api_calls,
            }
            for u in self.users.list_all()
        ]

    def delete_user(self, user_id: Any, admin_email: Optional[str], admin_password: Optional[str]) -> None:
        admin = self.auth.authorize_admin(admin_email, admin_password)
        target = _require_user_id(user_id)
        if not self.users.delete(target):
            raise NotFoundError(USER_NOT_FOUND_MSG)
        revoked = self.auth.revoke_user_sessions(target)
        logger.info("User deleted", admin_id=admin.id, user_id=target, revoked_sessions=revoked)

    def update_user(
        self,
        user_id: Any,
        role: Optional[str],
        api_calls_increment: Optional[int],
        admin_email: Optional[str],
        admin_password: Optional[str],
    ) -> None:
        """Change role and/or add to the quota. The increment is additive."""
        admin = self.auth.authorize_admin(admin_email, admin_password)
        target = _require_user_id(user_id)

        if role is not None and role not in ROLES:
            raise ValidationError("userType must be 'user' or 'admin'")
        if api_calls_increment is not None and not -MAX_INCREMENT <= api_calls_increment <= MAX_INCREMENT:
            raise ValidationError("apiCallsIncrement is out of range")
        if api_calls_increment == 0:
            api_calls_increment = None
        if role is None and api_calls_increment is None:
            raise ValidationError("No update parameters provided")

        if not self.users.update(target, role=role, api_calls_increment=api_calls_increment):
            raise NotFoundError(USER_NOT_FOUND_MSG)
        logger.info(
            "User updated",
            admin_id=admin.id,
            user_id=target,
            role=role,
            api_calls_increment=api_calls_increment,
        )

    def generate_api_key(
        self,
        user_id: Any,
        key_name: Optional[str],
        admin_email: Optional[str],
        admin_password: Optional[str],
    ) -> str:
        admin = self.auth.authorize_admin(admin_email, admin_password)
        target = _require_user_id(user_id)
        api_key = self.api_keys.issue(target, key_name or "")
        logger.info("API key issued", admin_id=admin.id, user_id=target)
        return api_key

    def endpoint_stats(self) -> List[Dict[str, Any]]:
        return self.usage.endpoint_stats()

    def user_api_usage(self) -> List[Dict[str, Any]]:
        return self.usage.user_api_usage()
