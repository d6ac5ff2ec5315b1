"""Async HTTP client for the OpenAI completion endpoints.

WHY: The translation step is one authenticated POST to OpenAI. Wrapping
it in a small client keeps HTTP details (auth header, endpoint, body
shape, response parsing) out of the orchestration, and gives the flow a
single typed error to handle.

HOW: Uses httpx.AsyncClient. The OpenAIClient is an async context
manager: enter it to get an authenticated client, exit to close the
connection pool. translate() builds the prompt, posts it to either the
chat or the legacy completion endpoint, and returns the stripped text
of the first choice.

RULES:
- Always use the async context manager (async with OpenAIClient(...) as client:)
- api_style is "chat" (POST /chat/completions) or "completion" (POST /completions)
- Exactly one HTTP request per translate() call: no retry, no backoff
- No timeout override: httpx is built with timeout=None
- Non-2xx, malformed or empty choices, empty text, and transport errors
  raise TranslationError
- Error messages carry the status code and the source text truncated to 100 chars
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx

from slack_translator.api.models import CompletionResponse
from slack_translator.config import (
    DEFAULT_CHAT_MODEL,
    DEFAULT_COMPLETION_MODEL,
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    OPENAI_BASE_URL,
    TranslatorConfig,
)
from slack_translator.core.flow import TranslationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

API_STYLE_CHAT = "chat"
API_STYLE_COMPLETION = "completion"

_ENDPOINTS = {
    API_STYLE_CHAT: "/chat/completions",
    API_STYLE_COMPLETION: "/completions",
}

_ERROR_SOURCE_CHARS = 100


def build_prompt(text: str, lang: str) -> str:
    """Return the instruction sent to the completion service."""
    return "Translate this to {}: {}".format(lang, text)


def _truncate(text: str, limit: int = _ERROR_SOURCE_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class OpenAIClient:
    """Async client that translates text through an OpenAI completion API.

    WHY: Gives the flow a translate(text, lang) capability without
    exposing httpx or the two request shapes.

    HOW: Wraps httpx.AsyncClient with Bearer token auth. The request
    body is built per api_style; the response is parsed through
    CompletionResponse, which understands both shapes.

    RULES:
    - Use as: async with OpenAIClient(api_key=...) as client: ...
    - model defaults to gpt-4 (chat) or gpt-3.5-turbo-instruct (completion)
    - debug=True logs the request body, the raw response and the
      completion id, model and finish_reason at INFO
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str,
        api_style: str = API_STYLE_CHAT,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        debug: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if api_style not in _ENDPOINTS:
            raise ValueError(
                "Unknown api_style {!r}; expected one of {}".format(
                    api_style, ", ".join(sorted(_ENDPOINTS))
                )
            )
        self._api_key = api_key
        self._api_style = api_style
        if model is None:
            model = DEFAULT_CHAT_MODEL if api_style == API_STYLE_CHAT else DEFAULT_COMPLETION_MODEL
        self._model = model
        self._base_url = (base_url or OPENAI_BASE_URL).rstrip("/")
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._debug = debug
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(
        cls,
        config: TranslatorConfig,
        api_style: str = API_STYLE_CHAT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> OpenAIClient:
        """Build a client from a TranslatorConfig.

        RULES:
        - The model is picked from config by api_style
        - A missing api_key becomes "" here; the flow refuses to call
          translate() without a key, so no request is ever sent with it
        """
        model = config.chat_model if api_style == API_STYLE_CHAT else config.completion_model
        return cls(
            api_key=config.api_key or "",
            api_style=api_style,
            model=model,
            base_url=config.base_url,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            debug=config.debug,
            transport=transport,
        )

    @property
    def api_style(self) -> str:
        return self._api_style

    @property
    def model(self) -> str:
        return self._model

    async def __aenter__(self) -> OpenAIClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            timeout=None,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "OpenAIClient must be used as an async context manager: "
                "async with OpenAIClient(...) as client: ..."
            )
        return self._client

    def build_body(self, prompt: str) -> Dict[str, Any]:
        """Build the JSON request body for the configured api_style."""
        body: Dict[str, Any] = {"model": self._model}
        if self._api_style == API_STYLE_CHAT:
            body["messages"] = [{"role": "user", "content": prompt}]
        else:
            body["prompt"] = prompt
        body["max_tokens"] = self._max_tokens
        body["temperature"] = self._temperature
        return body

    async def translate(self, text: str, lang: str) -> str:
        """Translate text into lang and return the translated text.

        WHY: This is the single external call the translation step makes.

        HOW: POSTs the prompt, checks the status, parses the choices and
        returns the first choice's text with surrounding whitespace removed.

        RULES:
        - Raises TranslationError on non-2xx (message includes status code)
        - Raises TranslationError on malformed or empty choices, or empty text
        - Raises TranslationError wrapping httpx.HTTPError
        - Never retries

        Args:
            text: Source message text.
            lang: Target language, as given by the caller (e.g. "French").

        Returns:
            The translated text.
        """
        client = self._ensure_client()
        body = self.build_body(build_prompt(text, lang))
        endpoint = _ENDPOINTS[self._api_style]

        if self._debug:
            logger.info("Sending translation request to OpenAI: %s", json.dumps(body))

        try:
            resp = await client.post(endpoint, json=body)
        except httpx.HTTPError as exc:
            raise TranslationError(
                "Failed to reach OpenAI ({}) while translating: {}".format(
                    exc.__class__.__name__, _truncate(text)
                )
            ) from exc

        if self._debug:
            logger.info("OpenAI response (%s): %s", resp.status_code, resp.text)

        if not resp.is_success:
            raise TranslationError(
                "Failed to translate message (OpenAI status {}): {} | source: {}".format(
                    resp.status_code, _truncate(resp.text, 500), _truncate(text)
                ),
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise TranslationError(
                "OpenAI returned a non-JSON response (status {}) for: {}".format(
                    resp.status_code, _truncate(text)
                ),
                status_code=resp.status_code,
            ) from exc

        if not isinstance(data, dict):
            data = {}
        try:
            parsed = CompletionResponse.from_dict(data)
        except ValueError as exc:
            raise TranslationError(
                "OpenAI returned a malformed response (status {}, {}) for: {}".format(
                    resp.status_code, exc, _truncate(text)
                ),
                status_code=resp.status_code,
            ) from exc

        if self._debug and parsed.choices:
            logger.info(
                "OpenAI completion id=%s model=%s finish_reason=%s",
                parsed.id, parsed.model, parsed.choices[0].finish_reason,
            )

        translated = parsed.first_text()
        if translated is None:
            raise TranslationError(
                "OpenAI returned no translation choices (status {}) for: {}".format(
                    resp.status_code, _truncate(text)
                ),
                status_code=resp.status_code,
            )
        return translated
