"""Card groups, cards and explanations for the signed-in user."""

from typing import Any, Dict, List, Optional, Sequence

from ..stores.cards import CardStore
from ..stores.users import UserStore
from ..utils.exceptions import AuthenticationError, NotFoundError, ValidationError
from ..utils.logger import get_logger
from .explanations import build_explanation, normalize_difficulty
from .params import parse_id

logger = get_logger(__name__)

INVALID_GROUP_MSG = "Invalid card group data"
CARD_NOT_FOUND_MSG = "Card not found or access denied"


def _clean_cards(cards: Optional[Sequence[Any]]) -> List[tuple]:
    """Validate [{question, answer}, ...] and return (question, answer) pairs."""
    if not isinstance(cards, (list, tuple)) or not cards:
        raise ValidationError(INVALID_GROUP_MSG)
    pairs = []
    for card in cards:
        if not isinstance(card, dict):
            raise ValidationError(INVALID_GROUP_MSG)
        question = card.get("question")
        answer = card.get("answer")
        if not isinstance(question, str) or not isinstance(answer, str):
            raise ValidationError(INVALID_GROUP_MSG)
        if not question.strip() or not answer.strip():
            raise ValidationError(INVALID_GROUP_MSG)
        pairs.append((question.strip(), answer.strip()))
    return pairs


class CardService:
    def __init__(self, cards: CardStore, users: UserStore):
        self.cards = cards
        self.users = users

    def create_card_group(
        self,
        user_id: int,
        name: Optional[str],
        description: Optional[str],
        cards: Optional[Sequence[Any]],
    ) -> Dict[str, Any]:
        """
        Save a new group with its cards, spending exactly one quota unit.

        Raises ValidationError for bad input and QuotaExhaustedError when the
        user has no calls left; in both cases nothing is written.
        """
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(INVALID_GROUP_MSG)
        pairs = _clean_cards(cards)
        group_id, created, remaining = self.cards.create_group_consuming_quota(
            user_id, name.strip(), (description or "").strip(), pairs
        )
        return {
            "groupId": group_id,
            "cardsCreated": created,
            "remainingApiCalls": remaining,
        }

    def list_card_groups(self, user_id: int) -> List[Dict[str, Any]]:
        return self.cards.list_groups_with_cards(user_id)

    def generate_explanation(
        self, user_id: int, card_id: Any, difficulty: Optional[str] = None
    ) -> Dict[str, Any]:
        if card_id is None or card_id == "":
            raise ValidationError("Card ID is required")
        card_id = parse_id(card_id, "Card ID must be an integer")
        level = normalize_difficulty(difficulty)
        if level is None:
            raise ValidationError("Difficulty must be one of: easy, medium, hard")

        card = self.cards.get_owned_card(card_id, user_id)
        if card is None:
            logger.info("Explanation denied", user_id=user_id, card_id=card_id)
            raise NotFoundError(CARD_NOT_FOUND_MSG)

        explanation = build_explanation(card["question"], card["answer"], level)
        if not self.cards.set_explanation(card_id, user_id, explanation, level):
            # card deleted between read and write
            raise NotFoundError(CARD_NOT_FOUND_MSG)
        return {"explanation": explanation, "difficulty": level, "cardId": card_id}

    def get_profile(self, user_id: int) -> Dict[str, Any]:
        user = self.users.get_by_id(user_id)
        if user is None:
            # session outlived its user (deleted by an admin)
            raise AuthenticationError("Not authenticated")
        return {
            "email": user.email,
            "role": user.role,
            "remainingApiCalls": user.remaining_api_calls,
        }
