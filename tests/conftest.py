"""Shared test fixtures for the slack_translator test suite.

WHY: The flow, bot, and CLI tests all need a stand-in for Slack's
message history and for the completion service. Centralizing the fakes
here keeps every test talking to the same in-memory channel model.

HOW: FakeMessageStore keeps a list of SlackMessage objects for one
channel and answers get_replies()/post_reply() the way
conversations.replies and chat.postMessage would. FakeTranslator
returns canned translations and records every call. Sample OpenAI
response bodies cover both the chat and legacy shapes.

RULES:
- Fakes never touch the network
- Every fake records its calls so tests can assert "was not called"
- Posted replies get increasing, deterministic timestamps
- Posted text is stored escaped (&amp; &lt; &gt;), as Slack stores it
- get_replies(limit=1) returns the thread root when ts is a reply
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pytest

from slack_translator.config import TranslatorConfig
from slack_translator.core.flow import MessageStoreError, TranslationError, escape_slack_text
from slack_translator.core.models import PostedReply, SlackMessage


CHANNEL = "C0123456789"
MESSAGE_TS = "1700000000.000100"


class FakeMessageStore:
    """In-memory channel history implementing the MessageStore protocol."""

    def __init__(
        self,
        messages: Optional[List[SlackMessage]] = None,
        fetch_error: Optional[str] = None,
        thread_error: Optional[str] = None,
        post_error: Optional[str] = None,
    ) -> None:
        self.messages: List[SlackMessage] = list(messages or [])
        self.fetch_error = fetch_error
        self.thread_error = thread_error
        self.post_error = post_error
        self.get_calls: List[Tuple[str, str, Optional[int], bool]] = []
        self.post_calls: List[Tuple[str, str, str]] = []
        self._next_ts = 1700000100

    async def get_replies(
        self,
        channel: str,
        ts: str,
        limit: Optional[int] = None,
        inclusive: bool = True,
    ) -> List[SlackMessage]:
        self.get_calls.append((channel, ts, limit, inclusive))
        if limit == 1:
            if self.fetch_error:
                raise MessageStoreError(self.fetch_error)
            target = next((m for m in self.messages if m.ts == ts), None)
            if target is None:
                return []
            # conversations.replies answers with the thread root first,
            # even when ts names a reply inside the thread
            root_ts = target.thread_ts or target.ts
            root = next((m for m in self.messages if m.ts == root_ts), target)
            return [root]

        if self.thread_error:
            raise MessageStoreError(self.thread_error)
        return [m for m in self.messages if m.ts == ts or m.thread_ts == ts]

    async def post_reply(self, channel: str, thread_ts: str, text: str) -> PostedReply:
        self.post_calls.append((channel, thread_ts, text))
        if self.post_error:
            raise MessageStoreError(self.post_error)
        ts = "{}.000200".format(self._next_ts)
        self._next_ts += 1
        self.messages.append(SlackMessage(text=escape_slack_text(text), ts=ts, thread_ts=thread_ts))
        return PostedReply(ts=ts)


class FakeTranslator:
    """Translator returning canned text, or raising a TranslationError."""

    def __init__(
        self,
        translations: Optional[Dict[str, str]] = None,
        error: Optional[TranslationError] = None,
    ) -> None:
        self.translations = dict(translations or {})
        self.error = error
        self.calls: List[Tuple[str, str]] = []

    async def translate(self, text: str, lang: str) -> str:
        self.calls.append((text, lang))
        if self.error is not None:
            raise self.error
        return self.translations.get(text, "[{}] {}".format(lang, text))


@pytest.fixture
def config() -> TranslatorConfig:
    """A config with an API key and debug logging off."""
    return TranslatorConfig(api_key="sk-test-key")


@pytest.fixture
def hello_store() -> FakeMessageStore:
    """A channel holding a single, unthreaded "Hello" message."""
    return FakeMessageStore([SlackMessage(text="Hello", ts=MESSAGE_TS)])


@pytest.fixture
def bonjour_translator() -> FakeTranslator:
    return FakeTranslator({"Hello": "Bonjour"})


@pytest.fixture
def chat_response() -> Dict[str, Any]:
    """A chat/completions response body with one choice."""
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "model": "gpt-4",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": "  Bonjour\n"},
                "finish_reason": "stop",
            }
        ],
    }


@pytest.fixture
def completion_response() -> Dict[str, Any]:
    """A legacy completions response body with one choice."""
    return {
        "id": "cmpl-456",
        "object": "text_completion",
        "model": "gpt-3.5-turbo-instruct",
        "choices": [
            {"index": 0, "text": "\n\nBonjour", "finish_reason": "stop"},
        ],
    }
