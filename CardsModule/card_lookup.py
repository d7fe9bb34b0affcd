"""Assemble stored cards from their normalised rows."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from CardsModule.models import CardRow, CommonPhraseRow, FormRow, UsageExampleRow
from CardsModule.schemas import Card, CommonPhrase, UsageExample, normalize_word
from tools.database import StorageError

logger = logging.getLogger(__name__)


def _in_id_order(rows: Dict[int, object], ids: List[int]) -> list:
    # ids without a stored row are skipped
    return [rows[i] for i in ids if i in rows]


def assemble_card(session: Session, card_row: CardRow) -> Card:
    """Resolve the id lists of ``card_row`` into embedded objects."""
    example_ids = list(card_row.usage_examples or [])
    phrase_ids = list(card_row.common_phrases or [])

    examples = {}
    if example_ids:
        stmt = select(UsageExampleRow).where(UsageExampleRow.usage_example_id.in_(example_ids))
        examples = {row.usage_example_id: row for row in session.scalars(stmt)}

    phrases = {}
    if phrase_ids:
        stmt = select(CommonPhraseRow).where(CommonPhraseRow.common_phrase_id.in_(phrase_ids))
        phrases = {row.common_phrase_id: row for row in session.scalars(stmt)}

    return Card(
        initial_form=card_row.initial_form,
        forms=list(card_row.forms or []),
        pronunciation=card_row.pronunciation,
        synonyms=list(card_row.synonyms or []),
        usage_examples=[
            UsageExample(
                usage_example_id=row.usage_example_id,
                example=row.example,
                part_of_speech=row.part_of_speech,
            )
            for row in _in_id_order(examples, example_ids)
        ],
        common_phrases=[
            CommonPhrase(
                common_phrase_id=row.common_phrase_id,
                phrase=row.phrase,
                meaning=row.meaning,
            )
            for row in _in_id_order(phrases, phrase_ids)
        ],
    )


def find_card(session: Session, word: str) -> Optional[Card]:
    """Return the stored card that ``word`` (any surface form) belongs to.

    A card whose ``initial_form`` equals the word is preferred. Otherwise the
    word is resolved through the form mappings, and when a surface form maps to
    several cards the earliest stored mapping wins. ``None`` means a cache miss.
    Database failures raise ``StorageError``.
    """
    key = normalize_word(word)
    try:
        card_row = session.scalars(
            select(CardRow).where(CardRow.initial_form == key).limit(1)
        ).first()
        if card_row is not None:
            return assemble_card(session, card_row)

        form = session.scalars(
            select(FormRow)
            .where(or_(FormRow.form_name == key, FormRow.initial_form == key))
            .order_by(FormRow.id)
            .limit(1)
        ).first()
        if form is None:
            return None

        card_row = session.scalars(
            select(CardRow).where(CardRow.initial_form == form.initial_form).limit(1)
        ).first()
        if card_row is None:
            logger.warning("Form %r points at missing card %r", key, form.initial_form)
            return None

        return assemble_card(session, card_row)
    except SQLAlchemyError as e:
        logger.error("Card lookup failed for %r: %s", key, e)
        raise StorageError(f"card lookup failed: {e}") from e


def list_initial_forms(session: Session) -> List[str]:
    try:
        return list(session.scalars(select(CardRow.initial_form).order_by(CardRow.id)))
    except SQLAlchemyError as e:
        logger.error("Listing cards failed: %s", e)
        raise StorageError(f"listing cards failed: {e}") from e
