"""Sign content generation.

The orchestrator depends only on the :class:`SignGenerator` protocol:

- ``text_for(word)`` returns the description fields of a sign entry
- ``image_for(word, movement)`` returns an illustration as a ``data:`` URL

Both are coroutines and both raise
:class:`~shouyutong.core.errors.GenerationError` when the provider cannot
produce usable content.

:class:`OpenAISignGenerator` implements the protocol on top of the
``openai`` SDK (or any OpenAI-compatible gateway via ``openai_base_url``).
Text is requested as a JSON object and validated against
:class:`~shouyutong.core.models.SignEntry`; images are requested as base64
and wrapped into a data URL.
"""

from __future__ import annotations

import json
import logging
from typing import Protocol

import openai
from pydantic import ValidationError as PydanticValidationError

from shouyutong.core.config import ShouyutongConfig
from shouyutong.core.errors import GenerationError
from shouyutong.core.images import b64_to_data_url
from shouyutong.core.models import SignEntry

logger = logging.getLogger(__name__)


class SignGenerator(Protocol):
    """Black-box provider of sign descriptions and illustrations."""

    async def text_for(self, word: str) -> SignEntry: ...

    async def image_for(self, word: str, movement: str) -> str: ...


TEXT_SYSTEM_PROMPT = """You are an expert in Chinese Sign Language (中国手语).
For the word you are given, describe how it is signed.
Reply in Simplified Chinese with ONLY a JSON object with these keys:
- "pinyin": the pinyin of the word, with tone marks
- "definition": a short explanation of the word's meaning
- "handShape": the hand shape(s) used
- "movement": the movement, described step by step
- "location": where relative to the body the sign is made
- "tips": tips for learners and common mistakes to avoid
"""

IMAGE_PROMPT_TEMPLATE = (
    "A clean, minimalist instructional illustration of the Chinese Sign Language "
    "sign for '{word}'. A person shown from the waist up against a plain white "
    "background, performing this movement: {movement}. Use arrows to show the "
    "direction of motion. Simple line art, soft colors, no text."
)

_TEXT_FIELDS = ("pinyin", "definition", "handShape", "movement", "location", "tips")


def build_text_prompt(word: str) -> str:
    return f"Word: {word}"


def build_image_prompt(word: str, movement: str) -> str:
    return IMAGE_PROMPT_TEMPLATE.format(word=word, movement=movement.strip() or word)


def parse_text_response(word: str, content: str | None) -> SignEntry:
    """Validate a provider reply and build a sign entry for ``word``.

    The word is always taken from the query, never from the reply.

    Raises:
        GenerationError: If the reply is empty, not JSON, or lacks fields
    """
    if not content or not content.strip():
        raise GenerationError(f"Empty response for '{word}'")

    try:
        raw = json.loads(content)
    except ValueError as e:
        raise GenerationError(f"Response for '{word}' is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise GenerationError(f"Response for '{word}' is not a JSON object")

    missing = [name for name in _TEXT_FIELDS if name not in raw]
    if missing:
        raise GenerationError(f"Response for '{word}' is missing fields: {', '.join(missing)}")

    reply_word = raw.get("word")
    if reply_word is not None and str(reply_word).strip() not in ("", word):
        raise GenerationError(f"Response describes '{raw['word']}' instead of '{word}'")

    fields = {name: raw[name] for name in _TEXT_FIELDS}
    try:
        return SignEntry.model_validate({"word": word, **fields})
    except PydanticValidationError as e:
        raise GenerationError(f"Response for '{word}' has invalid fields: {e}") from e


class OpenAISignGenerator:
    """Sign generator backed by the OpenAI API.

    The client is created lazily on first use, so constructing the
    generator never fails even without an API key; the missing key
    surfaces as a GenerationError on the first lookup.
    """

    def __init__(self, config: ShouyutongConfig, client: openai.AsyncOpenAI | None = None) -> None:
        self._config = config
        self._client = client

    def _get_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            try:
                self._client = openai.AsyncOpenAI(
                    api_key=self._config.openai_api_key,
                    base_url=self._config.openai_base_url,
                    timeout=self._config.request_timeout,
                )
            except openai.OpenAIError as e:
                raise GenerationError(f"Generation provider is not configured: {e}") from e
        return self._client

    async def text_for(self, word: str) -> SignEntry:
        client = self._get_client()
        logger.info("Requesting sign description for '%s' (model=%s).", word, self._config.text_model)
        try:
            response = await client.chat.completions.create(
                model=self._config.text_model,
                messages=[
                    {"role": "system", "content": TEXT_SYSTEM_PROMPT},
                    {"role": "user", "content": build_text_prompt(word)},
                ],
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as e:
            logger.error("Sign description request for '%s' failed: %s", word, e)
            raise GenerationError(f"Text generation failed for '{word}': {e}") from e

        if not response.choices:
            raise GenerationError(f"Empty response for '{word}'")
        return parse_text_response(word, response.choices[0].message.content)

    async def image_for(self, word: str, movement: str) -> str:
        client = self._get_client()
        params = {
            "model": self._config.image_model,
            "prompt": build_image_prompt(word, movement),
            "size": self._config.image_size,
            "n": 1,
        }
        # Only the DALL-E models accept a response format; newer models always return base64.
        if self._config.image_model.startswith("dall-e"):
            params["response_format"] = "b64_json"

        logger.info("Requesting sign illustration for '%s' (model=%s).", word, self._config.image_model)
        try:
            response = await client.images.generate(**params)
        except openai.OpenAIError as e:
            logger.error("Sign illustration request for '%s' failed: %s", word, e)
            raise GenerationError(f"Image generation failed for '{word}': {e}") from e

        if not response.data or not response.data[0].b64_json:
            raise GenerationError(f"No image returned for '{word}'")
        return b64_to_data_url(response.data[0].b64_json)

    async def aclose(self) -> None:
        """Close the underlying HTTP client, if one was created."""
        if self._client is not None:
            await self._client.close()
            self._client = None
