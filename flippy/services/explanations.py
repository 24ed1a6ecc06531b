"""Template-based card explanations, scaled to a difficulty tier."""

from typing import Optional

DIFFICULTIES = ("easy", "medium", "hard")
DEFAULT_DIFFICULTY = "medium"


def normalize_difficulty(difficulty: Optional[str]) -> Optional[str]:
    """Return a known difficulty (default "medium" when missing), or None if unknown."""
    if difficulty is None or str(difficulty).strip() == "":
        return DEFAULT_DIFFICULTY
    value = str(difficulty).strip().lower()
    return value if value in DIFFICULTIES else None


def build_explanation(question: str, answer: str, difficulty: str) -> str:
    """
    Build the explanation text for a card.

    Pure function of its arguments: the same inputs always give the same
    text. Unknown difficulties fall back to the medium template.
    """
    if difficulty == "easy":
        return (
            "Let me explain this in simple terms:\n\n"
            f"Question: {question}\n\n"
            f"Answer: {answer}\n\n"
            f"In other words: This means {answer.lower()}. "
            "Think of it as a straightforward concept that you can apply directly."
        )
    if difficulty == "hard":
        return (
            "Advanced Analysis:\n\n"
            f"Question: {question}\n\n"
            f"Answer: {answer}\n\n"
            "Deep Dive: This answer represents a complex concept that requires understanding "
            "multiple layers. First, consider the theoretical foundation behind why "
            f"{answer} is the correct response. Then, analyze the implications of this answer "
            "in broader contexts. Think critically about edge cases, alternative "
            "interpretations, and how this knowledge connects to advanced topics in the field."
        )
    return (
        "Here's a detailed explanation:\n\n"
        f"Question: {question}\n\n"
        f"Answer: {answer}\n\n"
        f"Explanation: The answer addresses the question by providing {answer}. "
        "This involves understanding the relationship between the question's key concepts "
        "and how they connect to form the solution. Consider the context and how this "
        "applies to similar scenarios."
    )
