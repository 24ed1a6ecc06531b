"""API request models.

Fields are deliberately loose (Optional / Any) so the services can answer
with their own user-facing messages; only structurally broken bodies are
rejected by FastAPI itself.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CredentialsRequest(_CamelModel):
    """Request model for /signup and /signin"""
    email: Optional[str] = None
    password: Optional[str] = None


class CreateCardGroupRequest(_CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    cards: Optional[List[Any]] = None


class GenerateExplanationRequest(_CamelModel):
    card_id: Any = Field(default=None, alias="cardId")
    difficulty: Optional[str] = None


class GenerateFlashcardsRequest(_CamelModel):
    text: Optional[str] = None


class AdminCredentials(_CamelModel):
    admin_email: Optional[str] = Field(default=None, alias="adminEmail")
    admin_password: Optional[str] = Field(default=None, alias="adminPassword")


class DeleteUserRequest(AdminCredentials):
    user_id: Any = Field(default=None, alias="userId")


class UpdateUserRequest(AdminCredentials):
    user_id: Any = Field(default=None, alias="userId")
    user_type: Optional[str] = Field(default=None, alias="userType")
    api_calls_increment: Optional[int] = Field(default=None, alias="apiCallsIncrement")


class GenerateApiKeyRequest(AdminCredentials):
    user_id: Any = Field(default=None, alias="userId")
    key_name: Optional[str] = Field(default=None, alias="keyName")
