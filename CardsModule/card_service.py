"""Create-or-fetch workflow for dictionary cards."""
from __future__ import annotations

import enum
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from CardsModule.card_generator import CardGenerator, GenerationStatus
from CardsModule.card_lookup import find_card, list_initial_forms
from CardsModule.card_writer import persist
from CardsModule.schemas import Card, normalize_word
from tools.database import StorageError

logger = logging.getLogger(__name__)


class CardStatus(enum.Enum):
    FOUND = "found"
    CREATED = "created"
    LEXICALLY_ABSENT = "lexically_absent"
    MALFORMED_REPLY = "malformed_reply"
    UPSTREAM_FAILURE = "upstream_failure"
    STORAGE_FAILURE = "storage_failure"


_FROM_GENERATION = {
    GenerationStatus.LEXICALLY_ABSENT: CardStatus.LEXICALLY_ABSENT,
    GenerationStatus.MALFORMED_REPLY: CardStatus.MALFORMED_REPLY,
    GenerationStatus.UPSTREAM_FAILURE: CardStatus.UPSTREAM_FAILURE,
}


@dataclass
class CardResult:
    status: CardStatus
    card: Optional[Card] = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status in (CardStatus.FOUND, CardStatus.CREATED)


class CardService:
    """Serve cards from storage, generating and storing them on a miss.

    Requests for the same word are serialised inside the process, so a word is
    generated at most once here. Writers in other processes are caught by the
    unique ``initial_form`` constraint, after which the stored card is returned.
    """

    def __init__(self, session_factory: sessionmaker, generator: CardGenerator):
        self.session_factory = session_factory
        self.generator = generator
        # word -> [lock, number of requests holding or waiting on it]
        self._locks: Dict[str, list] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _word_lock(self, key: str):
        """Hold the lock for ``key``; the entry is dropped once nobody needs it."""
        with self._locks_guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def _lookup(self, word: str) -> Optional[Card]:
        with self.session_factory() as session:
            return find_card(session, word)

    def create_or_fetch(self, word: str) -> CardResult:
        key = normalize_word(word)
        try:
            card = self._lookup(key)
            if card is not None:
                return CardResult(CardStatus.FOUND, card=card)

            with self._word_lock(key):
                # another request may have stored it while we waited
                card = self._lookup(key)
                if card is not None:
                    return CardResult(CardStatus.FOUND, card=card)
                return self._generate_and_store(word.strip())
        except StorageError as e:
            return CardResult(CardStatus.STORAGE_FAILURE, reason=str(e))

    def _generate_and_store(self, word: str) -> CardResult:
        generated = self.generator.generate(word)
        if generated.status is not GenerationStatus.FOUND:
            return CardResult(_FROM_GENERATION[generated.status], reason=generated.reason)

        parsed = generated.card
        try:
            with self.session_factory() as session, session.begin():
                card = persist(session, parsed)
        except IntegrityError:
            logger.info("Card %r was stored concurrently; returning stored copy", parsed.initial_form)
            card = self._lookup(parsed.initial_form)
            if card is None:
                return CardResult(
                    CardStatus.STORAGE_FAILURE,
                    reason=f"conflicting rows for {parsed.initial_form!r} but no stored card",
                )
            return CardResult(CardStatus.FOUND, card=card)
        except SQLAlchemyError as e:
            logger.error("Storing card %r failed: %s", parsed.initial_form, e)
            return CardResult(CardStatus.STORAGE_FAILURE, reason=f"storing card failed: {e}")

        return CardResult(CardStatus.CREATED, card=card)

    def list_initial_forms(self) -> List[str]:
        with self.session_factory() as session:
            return list_initial_forms(session)
