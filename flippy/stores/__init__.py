"""SQLite-backed stores."""

from .api_keys import ApiKeyStore
from .cards import CardStore
from .database import Database
from .usage_log import UsageLogger
from .users import UserStore

__all__ = ["ApiKeyStore", "CardStore", "Database", "UsageLogger", "UserStore"]
