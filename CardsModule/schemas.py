"""Pydantic shapes shared by the generator, the store and the HTTP layer."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_word(word: str) -> str:
    """Return ``word`` stripped, with an upper-case first letter and the rest lower-case.

    Applied to lookup keys and to every stored form so that matching does not
    depend on the capitalisation the model happened to use.
    """
    return word.strip().capitalize()


def wrap_pronunciation(pronunciation: str) -> str:
    """Wrap a phonetic transcription in exactly one pair of square brackets."""
    text = pronunciation.strip()
    while text.startswith("[") and text.endswith("]"):
        text = text[1:-1].strip()
    return f"[{text}]"


class ParsedUsageExample(BaseModel):
    example: str
    part_of_speech: str = ""


class ParsedCommonPhrase(BaseModel):
    phrase: str
    meaning: str = ""


class ParsedCard(BaseModel):
    """A card exactly as the language model described it."""

    initial_form: str = Field(min_length=1, max_length=255)
    forms: List[str] = []
    synonyms: List[str] = []
    pronunciation: str = ""
    usage_examples: List[ParsedUsageExample] = []
    common_phrases: List[ParsedCommonPhrase] = []

    @field_validator("initial_form")
    @classmethod
    def _has_base_form(cls, value: str) -> str:
        if not normalize_word(value):
            raise ValueError("initial_form is blank")
        return value


class UsageExample(BaseModel):
    usage_example_id: Optional[int] = None
    example: str
    part_of_speech: str = ""


class CommonPhrase(BaseModel):
    common_phrase_id: Optional[int] = None
    phrase: str
    meaning: str = ""


class Card(BaseModel):
    """The denormalised card served to clients."""

    initial_form: str
    forms: List[str]
    pronunciation: str
    synonyms: List[str]
    usage_examples: List[UsageExample]
    common_phrases: List[CommonPhrase]


class CardSummary(BaseModel):
    initial_form: str


class CardCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    new_word: str = Field(min_length=1, max_length=255)
