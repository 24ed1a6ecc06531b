"""Flippy++ core: auth, stores and flashcard services."""

__version__ = "1.0.0"
