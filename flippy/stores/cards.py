"""
Card groups and cards.

Every read or write of a card filters on the owning user's id through
card_groups, so guessing another user's card id yields nothing.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..utils.exceptions import QuotaExhaustedError
from ..utils.logger import get_logger
from .database import Database, utcnow_iso

logger = get_logger(__name__)

NO_QUOTA_MSG = "No remaining free API calls"


class CardStore:
    def __init__(self, db: Database):
        self.db = db

    def create_group_consuming_quota(
        self,
        user_id: int,
        name: str,
        description: str,
        cards: Sequence[Tuple[str, str]],
    ) -> Tuple[int, int, int]:
        """
        Spend one quota unit and create a group with its cards, atomically.

        The decrement is a conditional UPDATE, so concurrent requests cannot
        both spend the last unit. If it affects no row nothing is inserted.

        Returns (group_id, cards_created, remaining_api_calls).
        """
        now = utcnow_iso()
        with self.db.connect() as conn:
            cur = conn.execute(
                """
                UPDATE users
                SET remaining_api_calls = remaining_api_calls - 1
                WHERE id = ? AND remaining_api_calls > 0
                """,
                (user_id,),
            )
            if cur.rowcount == 0:
                raise QuotaExhaustedError(NO_QUOTA_MSG)

            cur = conn.execute(
                "INSERT INTO card_groups (user_id, name, description, created_at) VALUES (?, ?, ?, ?)",
                (user_id, name, description, now),
            )
            group_id = int(cur.lastrowid)

            conn.executemany(
                "INSERT INTO cards (group_id, question, answer, created_at) VALUES (?, ?, ?, ?)",
                [(group_id, q, a, now) for q, a in cards],
            )
            remaining = conn.execute(
                "SELECT remaining_api_calls FROM users WHERE id = ?", (user_id,)
            ).fetchone()[0]

        logger.info(
            "Card group created",
            user_id=user_id,
            group_id=group_id,
            cards=len(cards),
            remaining_api_calls=remaining,
        )
        return group_id, len(cards), int(remaining)

    def list_groups_with_cards(self, user_id: int) -> List[Dict[str, Any]]:
        """Groups newest first, each with its cards oldest first."""
        with self.db.connect() as conn:
            groups = conn.execute(
                """
                SELECT id, name, description, created_at
                FROM card_groups
                WHERE user_id = ?
                ORDER BY created_at DESC, id DESC
                """,
                (user_id,),
            ).fetchall()
            if not groups:
                return []
            group_ids = [g["id"] for g in groups]
            placeholders = ",".join("?" for _ in group_ids)
            cards = conn.execute(
                f"SELECT * FROM cards WHERE group_id IN ({placeholders}) ORDER BY id ASC",
                tuple(group_ids),
            ).fetchall()

        by_group: Dict[int, List[Dict[str, Any]]] = {gid: [] for gid in group_ids}
        for card in cards:
            by_group[card["group_id"]].append(dict(card))
        return [{**dict(g), "cards": by_group[g["id"]]} for g in groups]

    def get_owned_card(self, card_id: int, user_id: int) -> Optional[Dict[str, Any]]:
        """Return the card only if its group belongs to user_id."""
        with self.db.connect() as conn:
            row = conn.execute(
                """
                SELECT c.*
                FROM cards c
                JOIN card_groups cg ON c.group_id = cg.id
                WHERE c.id = ? AND cg.user_id = ?
                """,
                (card_id, user_id),
            ).fetchone()
        return dict(row) if row else None

    def set_explanation(self, card_id: int, user_id: int, text: str, difficulty: str) -> bool:
        """Overwrite the card's explanation fields (ownership re-checked in the WHERE)."""
        with self.db.connect() as conn:
            cur = conn.execute(
                """
                UPDATE cards
                SET explanation_text = ?, explanation_difficulty = ?, explanation_generated_at = ?
                WHERE id = ?
                  AND group_id IN (SELECT id FROM card_groups WHERE user_id = ?)
                """,
                (text, difficulty, utcnow_iso(), card_id, user_id),
            )
            return cur.rowcount > 0
