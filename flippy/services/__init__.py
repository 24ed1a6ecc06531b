"""Domain services used by the web layer."""

from .admin_service import AdminService
from .card_service import CardService
from .explanations import build_explanation
from .flashcard_generator import FlashcardGenerator

__all__ = ["AdminService", "CardService", "FlashcardGenerator", "build_explanation"]
