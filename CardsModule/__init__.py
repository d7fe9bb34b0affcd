"""
CardsModule
-----------
This module turns a word into a dictionary card: it looks cards up in the
relational store, asks the language model for unknown words and persists
the generated result.
"""

from .card_generator import CardGenerator, GenerationResult, GenerationStatus
from .card_service import CardResult, CardService, CardStatus
from .schemas import Card, ParsedCard

__all__ = [
    "Card",
    "CardGenerator",
    "CardResult",
    "CardService",
    "CardStatus",
    "GenerationResult",
    "GenerationStatus",
    "ParsedCard",
]
