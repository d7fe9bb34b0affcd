"""Relational tables backing the dictionary cards."""
from __future__ import annotations

from typing import List

from sqlalchemy import JSON, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tools.database import Base


class CardRow(Base):
    __tablename__ = "cards"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    initial_form: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    forms: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    pronunciation: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    synonyms: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    usage_examples: Mapped[List[int]] = mapped_column(JSON, nullable=False, default=list)  # usage_examples ids
    common_phrases: Mapped[List[int]] = mapped_column(JSON, nullable=False, default=list)  # common_phrases ids


class FormRow(Base):
    """Maps a surface form back to the canonical ``initial_form`` of its card."""

    __tablename__ = "forms"
    __table_args__ = (UniqueConstraint("initial_form", "form_name", name="uq_forms_initial_form_form_name"),)
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    initial_form: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    form_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)


class UsageExampleRow(Base):
    __tablename__ = "usage_examples"
    usage_example_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    example: Mapped[str] = mapped_column(Text, nullable=False)
    part_of_speech: Mapped[str] = mapped_column(Text, nullable=False, default="")


class CommonPhraseRow(Base):
    __tablename__ = "common_phrases"
    common_phrase_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    phrase: Mapped[str] = mapped_column(Text, nullable=False)
    meaning: Mapped[str] = mapped_column(Text, nullable=False, default="")
