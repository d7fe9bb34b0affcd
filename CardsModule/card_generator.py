"""Ask the language model to describe a word as a dictionary card."""
from __future__ import annotations

import enum
import json
import logging
import re
from dataclasses import dataclass
from typing import Optional

from langchain_core.prompts import PromptTemplate
from langchain_openai import ChatOpenAI
from pydantic import ValidationError

from CardsModule.schemas import ParsedCard
from tools.config import Settings
from tools.llm_logger import LLMLogger

logger = logging.getLogger(__name__)

UNKNOWN_WORD_SENTINEL = "null"

CARD_PROMPT = PromptTemplate.from_template(
    """
You are a multilingual dictionary. Provide strictly verified information only.
Convert this word "{word}" to initial form. Then, provide the following information of this converted word:

1) initial_form = Convert this word "{word}" to the initial form and the first letter must be capitalized.
2) forms = Provide all forms of this word and all forms must be capitalized.
3) synonyms = Provide three synonyms of this converted word.
4) pronunciation = Provide the phonetic transcription of this converted word.
5) usage_examples = (example = Provide three examples with this converted word) and (part_of_speech = Provide the part of speech of this converted word in each example). Each item must be {{"example": example, "part_of_speech": part_of_speech}}.
6) common_phrases = (phrase = Provide three common phrases with this converted word) and (meaning = The meaning of this phrase). Each item must be {{"phrase": phrase, "meaning": meaning}}.

If the word does not exist in the dictionary then reply only "null" else return only the following object in correct JSON format:
{{
"initial_form": initial_form,
"forms": forms[],
"synonyms": synonyms[],
"pronunciation": pronunciation,
"usage_examples": usage_examples[],
"common_phrases": common_phrases[]
}}
"""
)

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class GenerationStatus(enum.Enum):
    FOUND = "found"
    LEXICALLY_ABSENT = "lexically_absent"
    MALFORMED_REPLY = "malformed_reply"
    UPSTREAM_FAILURE = "upstream_failure"


@dataclass
class GenerationResult:
    status: GenerationStatus
    card: Optional[ParsedCard] = None
    reason: str = ""


def parse_reply(text: str) -> GenerationResult:
    """Turn the raw completion text into a ``GenerationResult``."""
    reply = text.strip()
    match = _FENCE.match(reply)
    if match:
        reply = match.group(1).strip()

    if reply.strip("\"'").lower() == UNKNOWN_WORD_SENTINEL:
        return GenerationResult(GenerationStatus.LEXICALLY_ABSENT, reason="unknown word")

    try:
        data = json.loads(reply)
    except json.JSONDecodeError as e:
        return GenerationResult(GenerationStatus.MALFORMED_REPLY, reason=f"invalid JSON: {e}")

    if data is None:
        return GenerationResult(GenerationStatus.LEXICALLY_ABSENT, reason="unknown word")
    if not isinstance(data, dict):
        return GenerationResult(
            GenerationStatus.MALFORMED_REPLY,
            reason=f"expected a JSON object, got {type(data).__name__}",
        )

    try:
        card = ParsedCard.model_validate(data)
    except ValidationError as e:
        return GenerationResult(
            GenerationStatus.MALFORMED_REPLY,
            reason=f"unexpected card shape: {e.error_count()} errors",
        )
    return GenerationResult(GenerationStatus.FOUND, card=card)


class CardGenerator:
    """Generation client for new cards.

    The chat model is created per call so that a missing API key surfaces as an
    upstream failure of that call instead of failing at startup.
    """

    def __init__(self, settings: Settings, llm_logger: Optional[LLMLogger] = None):
        self.settings = settings
        self.llm_logger = llm_logger

    def _build_llm(self):
        return ChatOpenAI(
            model=self.settings.model_name,
            temperature=self.settings.temperature,
            max_tokens=self.settings.max_tokens,
            timeout=self.settings.llm_timeout,
            max_retries=self.settings.llm_max_retries,
            base_url=self.settings.base_url,
            api_key=self.settings.api_key,
        )

    def generate(self, word: str) -> GenerationResult:
        prompt = CARD_PROMPT.format(word=word)
        try:
            chain = CARD_PROMPT | self._build_llm()
            response = chain.invoke({"word": word})
        except Exception as e:
            logger.error("Card generation for %r failed upstream: %s", word, e)
            self._log_call(prompt, e, word, GenerationStatus.UPSTREAM_FAILURE)
            return GenerationResult(
                GenerationStatus.UPSTREAM_FAILURE,
                reason=f"{type(e).__name__}: {e}",
            )

        content = response.content if isinstance(response.content, str) else str(response.content)
        logger.debug("AI response for %r: %s", word, content)
        result = parse_reply(content)
        if result.status is GenerationStatus.MALFORMED_REPLY:
            logger.warning("Unparseable card reply for %r: %s", word, result.reason)
        else:
            logger.info("Card generation for %r: %s", word, result.status.value)
        self._log_call(prompt, response, word, result.status)
        return result

    def _log_call(self, prompt, response, word, status):
        if self.llm_logger is None:
            return
        self.llm_logger.log_llm_call(
            prompt=prompt,
            response=response,
            model=self.settings.model_name,
            module="CardsModule.card_generator",
            metadata={"function": "generate", "word": word, "status": status.value},
        )
