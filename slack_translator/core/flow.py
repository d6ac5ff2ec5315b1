"""Translate-and-reply orchestration shared by both Slack functions.

WHY: The two Slack functions differ only in whether a language is
mandatory, whether the thread is checked for duplicates, and which
OpenAI endpoint translates. One flow with switches avoids maintaining
two copies of the same five steps.

HOW: run_translation() walks a fixed sequence of awaited steps:
  validate → fetch message → translate → duplicate check → post reply
Each step can end the invocation early as either a benign skip or a
failure. Slack and OpenAI are reached only through the MessageStore and
Translator protocols, so tests substitute in-memory fakes.

RULES:
- Missing lang is checked before the API key (skip wins over failure)
- A missing API key fails before any network call
- No message found → skipped, translator never called
- Translator failure → failed, post_reply never called
- Exact text match in the thread → skipped (case and whitespace sensitive;
  Slack's &amp; &lt; &gt; escaping of stored replies is accounted for)
- The duplicate check reads the thread after translating; two concurrent
  invocations can still both post
- Errors are returned as FunctionOutcome.failed, never raised
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from slack_translator.config import TranslatorConfig
from slack_translator.core.models import (
    FlowOptions,
    FunctionOutcome,
    PostedReply,
    SlackMessage,
    TranslationRequest,
    TranslationResult,
)

logger = logging.getLogger(__name__)

MISSING_API_KEY_ERROR = (
    "OpenAI API key is not set. Please configure it properly "
    "(set OPENAI_API_KEY in the app environment)."
)
MISSING_LANGUAGE_ERROR = "No target language given. The lang input is required."


class MessageStoreError(Exception):
    """Raised by a MessageStore when the messaging platform reports an error.

    RULES:
    - code is the platform's error code (e.g. "not_in_channel")
    """

    def __init__(self, code: str, message: Optional[str] = None) -> None:
        self.code = code
        super().__init__(message or code)


class TranslationError(Exception):
    """Raised by a Translator when the completion service cannot translate.

    RULES:
    - status_code is None for transport errors and empty responses
    - str(exc) is the operator-facing message
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class MessageStore(Protocol):
    """Read and write access to a channel's message history."""

    async def get_replies(
        self,
        channel: str,
        ts: str,
        limit: Optional[int] = None,
        inclusive: bool = True,
    ) -> List[SlackMessage]:
        ...

    async def post_reply(self, channel: str, thread_ts: str, text: str) -> PostedReply:
        ...


class Translator(Protocol):
    """Turns text into the same text in another language."""

    async def translate(self, text: str, lang: str) -> str:
        ...


def access_error(code: str) -> str:
    """Error text for a failed history lookup, with the usual remedy."""
    return (
        "Failed to fetch the message due to {}. Perhaps you need to invite "
        "this app's bot user to the channel.".format(code)
    )


def escape_slack_text(text: str) -> str:
    """Return text the way Slack stores it: &, < and > as HTML entities."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def find_duplicate(replies: List[SlackMessage], text: str) -> Optional[SlackMessage]:
    """Return the first reply whose text equals text exactly, or None.

    Slack hands back posted text with &, < and > escaped, so a reply
    also matches when it equals the escaped form of text.
    """
    escaped = escape_slack_text(text)
    for reply in replies:
        if reply.text == text or reply.text == escaped:
            return reply
    return None


def _validate(
    request: TranslationRequest,
    config: TranslatorConfig,
    options: FlowOptions,
) -> Optional[FunctionOutcome]:
    if request.lang is None:
        if options.require_language:
            return FunctionOutcome.failed(MISSING_LANGUAGE_ERROR)
        return FunctionOutcome.skipped("no target language")
    if not config.api_key:
        return FunctionOutcome.failed(MISSING_API_KEY_ERROR)
    return None


async def run_translation(
    request: TranslationRequest,
    store: MessageStore,
    translator: Translator,
    config: TranslatorConfig,
    options: Optional[FlowOptions] = None,
) -> FunctionOutcome:
    """Translate one message and post the translation in its thread.

    WHY: This is the whole behavior of a translation function invocation.

    HOW: Runs the five steps in order, awaiting each before the next.
    Store and translator errors are converted into failed outcomes.

    RULES:
    - Returns skipped / failed / completed; never raises for expected errors
    - The reply is threaded under the message's thread root, or under
      the message itself when it has none

    Args:
        request: Channel, message timestamp, and target language.
        store: Slack history access.
        translator: Completion-service access.
        config: Credential and debug flag for this invocation.
        options: Variant switches; defaults to optional lang + dedup.

    Returns:
        The terminal FunctionOutcome.
    """
    if options is None:
        options = FlowOptions()

    if config.debug:
        logger.info("Translation inputs: %s (options=%s)", request, options)

    outcome = _validate(request, config, options)
    if outcome is not None:
        _log_outcome(request, outcome)
        return outcome
    lang = request.lang or ""

    # Fetch the target message
    try:
        messages = await store.get_replies(
            request.channel_id, request.message_ts, limit=1, inclusive=True
        )
    except MessageStoreError as exc:
        outcome = FunctionOutcome.failed(access_error(exc.code))
        _log_outcome(request, outcome)
        return outcome

    if not messages:
        outcome = FunctionOutcome.skipped("message not found")
        _log_outcome(request, outcome)
        return outcome

    message = messages[0]
    if config.debug:
        logger.info("Fetched message: %s", message)

    # Translate
    try:
        result = TranslationResult(text=await translator.translate(message.text, lang))
    except TranslationError as exc:
        outcome = FunctionOutcome.failed(str(exc))
        _log_outcome(request, outcome)
        return outcome

    if config.debug:
        logger.info("Translated text: %r", result.text)

    thread_ts = message.resolved_thread_ts(request.message_ts)

    # Duplicate check against the thread as it is now
    if options.dedup_check:
        try:
            replies = await store.get_replies(request.channel_id, thread_ts)
        except MessageStoreError as exc:
            outcome = FunctionOutcome.failed(access_error(exc.code))
            _log_outcome(request, outcome)
            return outcome

        duplicate = find_duplicate(replies, result.text)
        if duplicate is not None:
            outcome = FunctionOutcome.skipped("already posted as {}".format(duplicate.ts))
            _log_outcome(request, outcome)
            return outcome

    # Post the reply
    if config.debug:
        logger.info(
            "Posting translation to channel=%s thread_ts=%s: %r",
            request.channel_id, thread_ts, result.text,
        )
    try:
        reply = await store.post_reply(request.channel_id, thread_ts, result.text)
    except MessageStoreError as exc:
        outcome = FunctionOutcome.failed("Failed to post the translation: {}".format(exc.code))
        _log_outcome(request, outcome)
        return outcome

    outcome = FunctionOutcome.completed(reply)
    _log_outcome(request, outcome)
    return outcome


def _log_outcome(request: TranslationRequest, outcome: FunctionOutcome) -> None:
    if outcome.error:
        logger.warning(
            "Translation of %s/%s failed: %s",
            request.channel_id, request.message_ts, outcome.error,
        )
    else:
        logger.info(
            "Translation of %s/%s %s %s",
            request.channel_id, request.message_ts, outcome.status.value,
            outcome.reason or outcome.outputs,
        )
