"""Persist a freshly generated card across the card tables."""
from __future__ import annotations

import logging
from typing import List

from sqlalchemy.orm import Session

from CardsModule.models import CardRow, CommonPhraseRow, FormRow, UsageExampleRow
from CardsModule.schemas import (
    Card,
    CommonPhrase,
    ParsedCard,
    UsageExample,
    normalize_word,
    wrap_pronunciation,
)

logger = logging.getLogger(__name__)


def _distinct_forms(forms: List[str]) -> List[str]:
    seen = []
    for form in forms:
        name = normalize_word(form)
        if name and name not in seen:
            seen.append(name)
    return seen


def persist(session: Session, parsed: ParsedCard) -> Card:
    """Insert the rows for ``parsed`` and return the card as it is now stored.

    Must run inside a transaction owned by the caller (``session.begin()``) so
    that the form, example, phrase and card rows commit or roll back together.
    A second card with the same ``initial_form`` fails with ``IntegrityError``
    when the session flushes.
    """
    initial_form = normalize_word(parsed.initial_form)
    forms = _distinct_forms(parsed.forms)

    session.add_all([FormRow(initial_form=initial_form, form_name=name) for name in forms])

    example_rows = [
        UsageExampleRow(example=item.example, part_of_speech=item.part_of_speech)
        for item in parsed.usage_examples
    ]
    phrase_rows = [
        CommonPhraseRow(phrase=item.phrase, meaning=item.meaning)
        for item in parsed.common_phrases
    ]
    session.add_all(example_rows)
    session.add_all(phrase_rows)
    # assigns the generated ids
    session.flush()

    card_row = CardRow(
        initial_form=initial_form,
        forms=forms,
        pronunciation=wrap_pronunciation(parsed.pronunciation),
        synonyms=list(parsed.synonyms),
        usage_examples=[row.usage_example_id for row in example_rows],
        common_phrases=[row.common_phrase_id for row in phrase_rows],
    )
    session.add(card_row)
    session.flush()
    logger.info(
        "Stored card %r (%d forms, %d examples, %d phrases)",
        initial_form,
        len(forms),
        len(example_rows),
        len(phrase_rows),
    )

    return Card(
        initial_form=card_row.initial_form,
        forms=list(card_row.forms),
        pronunciation=card_row.pronunciation,
        synonyms=list(card_row.synonyms),
        usage_examples=[
            UsageExample(
                usage_example_id=row.usage_example_id,
                example=row.example,
                part_of_speech=row.part_of_speech,
            )
            for row in example_rows
        ],
        common_phrases=[
            CommonPhrase(
                common_phrase_id=row.common_phrase_id,
                phrase=row.phrase,
                meaning=row.meaning,
            )
            for row in phrase_rows
        ],
    )
