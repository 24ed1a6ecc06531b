"""
Configuration management with schema validation.
Single source of truth for Flippy++ settings, loaded once at startup and
passed explicitly into the app factory.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic import ValidationError as SchemaError

from .exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path("config") / "settings.yaml"


class AppSettings(BaseModel):
    name: str = "Flippy++"
    version: str = "1.0.0"
    environment: str = "development"


class ServerSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = Field(default=3001, ge=1, le=65535)
    client_origin: str = "http://localhost:8000"


class DatabaseSettings(BaseModel):
    path: str = Field(..., min_length=1)
    timeout_seconds: float = Field(default=10.0, gt=0)


class AuthSettings(BaseModel):
    session_ttl_days: int = Field(default=7, ge=1)
    cookie_name: str = "session_token"
    bcrypt_rounds: int = Field(default=12, ge=8, le=31)
    seed_admin_email: Optional[str] = None
    seed_admin_password: Optional[str] = None


class QuotaSettings(BaseModel):
    default_api_calls: int = Field(default=20, ge=0)


class AISettings(BaseModel):
    base_url: str = "https://router.huggingface.co/v1"
    api_key: Optional[str] = None
    model: str = "Qwen/Qwen2.5-7B-Instruct:together"
    timeout_seconds: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=3, ge=1)


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file_path: Optional[str] = None
    max_bytes: int = 10485760
    backup_count: int = 5


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    database: DatabaseSettings
    auth: AuthSettings = Field(default_factory=AuthSettings)
    quota: QuotaSettings = Field(default_factory=QuotaSettings)
    ai: AISettings = Field(default_factory=AISettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def is_production(self) -> bool:
        return self.app.environment.strip().lower() == "production"


def _substitute_env_vars(value: Any) -> Any:
    """
    Recursively substitute ${VAR} and ${VAR:default} placeholders.

    A bare ${VAR} with no default must be set, otherwise ConfigError.
    An empty default (${VAR:}) resolves to None.
    """
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            var_expr = value[2:-1]
            if ":" in var_expr:
                var_name, default = var_expr.split(":", 1)
                resolved = os.getenv(var_name.strip(), default.strip())
                return resolved if resolved != "" else None
            env_value = os.getenv(var_expr.strip())
            if env_value is None:
                raise ConfigError(f"Environment variable {var_expr} not found")
            return env_value
        return value
    if isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """Load and validate settings.yaml; raises ConfigError on any problem."""
    load_dotenv()
    settings_path = Path(path or os.getenv("FLIPPY_CONFIG") or DEFAULT_CONFIG_PATH)
    if not settings_path.exists():
        raise ConfigError(f"Settings file not found: {settings_path}")

    try:
        with open(settings_path, "r", encoding="utf-8") as f:
            raw_data: Dict[str, Any] = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {settings_path}: {e}")

    processed = _substitute_env_vars(raw_data)
    try:
        return Settings(**processed)
    except SchemaError as e:
        raise ConfigError(f"Invalid settings in {settings_path}: {e}")
