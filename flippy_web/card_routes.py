"""FastAPI routes for card groups, explanations and AI flashcard generation."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from flippy.services.card_service import CardService
from flippy.services.flashcard_generator import FlashcardGenerator
from .auth_middleware import get_card_service, get_generator, require_login
from .schemas import (
    CreateCardGroupRequest,
    GenerateExplanationRequest,
    GenerateFlashcardsRequest,
)

router = APIRouter(tags=["cards"])


@router.get("/card-groups")
def list_card_groups(
    user_id: int = Depends(require_login),
    cards: CardService = Depends(get_card_service),
) -> Dict[str, Any]:
    return {"groups": cards.list_card_groups(user_id)}


@router.post("/create-card-group")
def create_card_group(
    body: CreateCardGroupRequest,
    user_id: int = Depends(require_login),
    cards: CardService = Depends(get_card_service),
) -> Dict[str, Any]:
    """
    Save a card group. Costs one API call regardless of card count.

    403 when the caller has no remaining calls; nothing is saved then.
    """
    result = cards.create_card_group(user_id, body.name, body.description, body.cards)
    return {"message": "Card group created successfully", **result}


@router.post("/generate-explanation")
def generate_explanation(
    body: GenerateExplanationRequest,
    user_id: int = Depends(require_login),
    cards: CardService = Depends(get_card_service),
) -> Dict[str, Any]:
    result = cards.generate_explanation(user_id, body.card_id, body.difficulty)
    return {"success": True, **result}


@router.post("/generate-flashcards")
def generate_flashcards(
    body: GenerateFlashcardsRequest,
    user_id: int = Depends(require_login),
    generator: FlashcardGenerator = Depends(get_generator),
) -> Dict[str, Any]:
    """Draft flashcards from source text. Nothing is persisted; no quota is spent."""
    return {"cards": generator.generate(body.text)}
