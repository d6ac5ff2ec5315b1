"""Tests for the Slack function handlers, reaction trigger, and app factory.

WHY: The handlers translate Slack invocations into flow runs and flow
outcomes back into complete()/fail() calls. These tests check both
directions, the per-function presets, and an end-to-end run through
the real OpenAI client and Slack store with all I/O mocked.

HOW: complete/fail/client are MagicMocks. load_config and
execute_translation are patched where a test only cares about the
handler's own logic; end-to-end tests use httpx.MockTransport for
OpenAI and a MagicMock WebClient for Slack.

RULES:
- Slack WebClient is always mocked (no real Slack API calls)
- OpenAI is never called (MockTransport or patched execution)
"""

from __future__ import annotations

import json
from typing import List
from unittest.mock import MagicMock, patch

import httpx

from slack_translator.api.client import API_STYLE_CHAT, API_STYLE_COMPLETION
from slack_translator.config import (
    FUNCTION_TRANSLATE_MESSAGE,
    FUNCTION_TRANSLATE_USING_OPENAI,
    TranslatorConfig,
)
from slack_translator.core.models import (
    FunctionOutcome,
    InvocationStatus,
    PostedReply,
    TranslationRequest,
)
from slack_translator.slack.bot import (
    FUNCTION_PRESETS,
    UNEXPECTED_ERROR,
    create_app,
    execute_translation,
    handle_reaction_added,
    handle_translate_message,
    handle_translate_using_openai,
)


INPUTS = {"channelId": "C123", "messageTs": "111.222", "lang": "French"}


def _slack_client(messages, thread=None, post_ts="111.999"):
    """MagicMock WebClient: first replies call returns messages, later ones thread."""
    client = MagicMock()
    responses = [{"ok": True, "messages": messages}]
    if thread is not None:
        responses.append({"ok": True, "messages": thread})
    client.conversations_replies.side_effect = responses
    client.chat_postMessage.return_value = {"ok": True, "ts": post_ts}
    return client


def _openai_transport(seen: List[httpx.Request], body=None, status=200):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status, json=body if body is not None else {})

    return httpx.MockTransport(handler)


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------


class TestPresets:
    """The two functions map onto the shared flow differently."""

    def test_translate_using_openai_preset(self):
        preset = FUNCTION_PRESETS[FUNCTION_TRANSLATE_USING_OPENAI]
        assert preset.api_style == API_STYLE_CHAT
        assert preset.options.require_language is True
        assert preset.options.dedup_check is False

    def test_translate_message_preset(self):
        preset = FUNCTION_PRESETS[FUNCTION_TRANSLATE_MESSAGE]
        assert preset.api_style == API_STYLE_COMPLETION
        assert preset.options.require_language is False
        assert preset.options.dedup_check is True


# ---------------------------------------------------------------------------
# Function handlers
# ---------------------------------------------------------------------------


class TestFunctionHandlers:
    """complete()/fail() reporting of flow outcomes."""

    def _call(self, handler, outcome, inputs=INPUTS):
        complete, fail, client = MagicMock(), MagicMock(), MagicMock()
        with patch("slack_translator.slack.bot.load_config", return_value=TranslatorConfig()), \
                patch("slack_translator.slack.bot.execute_translation", return_value=outcome) as run:
            handler(inputs, complete, fail, client, MagicMock())
        return complete, fail, run

    def test_completed_outcome_completes_with_ts(self):
        outcome = FunctionOutcome.completed(PostedReply(ts="111.999"))
        complete, fail, _ = self._call(handle_translate_using_openai, outcome)
        complete.assert_called_once_with(outputs={"ts": "111.999"})
        fail.assert_not_called()

    def test_skipped_outcome_completes_empty(self):
        outcome = FunctionOutcome.skipped("message not found")
        complete, fail, _ = self._call(handle_translate_message, outcome)
        complete.assert_called_once_with(outputs={})
        fail.assert_not_called()

    def test_failed_outcome_fails_with_error(self):
        outcome = FunctionOutcome.failed("OpenAI API key is not set.")
        complete, fail, _ = self._call(handle_translate_message, outcome)
        fail.assert_called_once_with(error="OpenAI API key is not set.")
        complete.assert_not_called()

    def test_handler_passes_request_and_preset(self):
        outcome = FunctionOutcome.skipped("x")
        _, _, run = self._call(handle_translate_using_openai, outcome)
        request, _client, preset, _config = run.call_args.args
        assert request == TranslationRequest(channel_id="C123", message_ts="111.222", lang="French")
        assert preset is FUNCTION_PRESETS[FUNCTION_TRANSLATE_USING_OPENAI]

    def test_missing_channel_fails_without_running(self):
        complete, fail, run = self._call(
            handle_translate_message,
            FunctionOutcome.skipped("x"),
            inputs={"messageTs": "111.222"},
        )
        fail.assert_called_once()
        assert "channel_id" in fail.call_args.kwargs["error"]
        run.assert_not_called()

    def test_unexpected_exception_is_reported(self):
        complete, fail, client = MagicMock(), MagicMock(), MagicMock()
        with patch("slack_translator.slack.bot.load_config", return_value=TranslatorConfig()), \
                patch("slack_translator.slack.bot.execute_translation", side_effect=RuntimeError("boom")):
            handle_translate_message(INPUTS, complete, fail, client, MagicMock())
        fail.assert_called_once_with(error=UNEXPECTED_ERROR)
        complete.assert_not_called()


# ---------------------------------------------------------------------------
# End-to-end through execute_translation
# ---------------------------------------------------------------------------


class TestExecuteTranslation:
    """Real OpenAIClient + SlackMessageStore with mocked I/O."""

    def test_round_trip_hello_to_bonjour(self, chat_response):
        seen: List[httpx.Request] = []
        client = _slack_client([{"text": "Hello", "ts": "111.222", "thread_ts": "111.222"}])
        request = TranslationRequest(channel_id="C123", message_ts="111.222", lang="French")

        outcome = execute_translation(
            request,
            client,
            FUNCTION_PRESETS[FUNCTION_TRANSLATE_USING_OPENAI],
            TranslatorConfig(api_key="sk-test"),
            transport=_openai_transport(seen, chat_response),
        )

        assert outcome.to_payload() == {"ts": "111.999"}
        client.chat_postMessage.assert_called_once_with(
            channel="C123", thread_ts="111.222", text="Bonjour"
        )
        assert len(seen) == 1
        assert seen[0].url.path == "/v1/chat/completions"

    def test_duplicate_in_thread_skips_post(self, completion_response):
        seen: List[httpx.Request] = []
        client = _slack_client(
            [{"text": "Hello", "ts": "111.222"}],
            thread=[
                {"text": "Hello", "ts": "111.222", "thread_ts": "111.222"},
                {"text": "Bonjour", "ts": "111.500", "thread_ts": "111.222"},
            ],
        )
        request = TranslationRequest(channel_id="C123", message_ts="111.222", lang="French")

        outcome = execute_translation(
            request,
            client,
            FUNCTION_PRESETS[FUNCTION_TRANSLATE_MESSAGE],
            TranslatorConfig(api_key="sk-test"),
            transport=_openai_transport(seen, completion_response),
        )

        assert outcome.status == InvocationStatus.SKIPPED
        client.chat_postMessage.assert_not_called()
        assert json.loads(seen[0].content)["prompt"] == "Translate this to French: Hello"

    def test_empty_choices_fails_without_post(self):
        seen: List[httpx.Request] = []
        client = _slack_client([{"text": "Hello", "ts": "111.222"}])
        request = TranslationRequest(channel_id="C123", message_ts="111.222", lang="French")

        outcome = execute_translation(
            request,
            client,
            FUNCTION_PRESETS[FUNCTION_TRANSLATE_USING_OPENAI],
            TranslatorConfig(api_key="sk-test"),
            transport=_openai_transport(seen, {"choices": []}),
        )

        assert outcome.status == InvocationStatus.FAILED
        client.chat_postMessage.assert_not_called()

    def test_missing_key_makes_no_openai_call(self):
        seen: List[httpx.Request] = []
        client = _slack_client([{"text": "Hello", "ts": "111.222"}])
        request = TranslationRequest(channel_id="C123", message_ts="111.222", lang="French")

        outcome = execute_translation(
            request,
            client,
            FUNCTION_PRESETS[FUNCTION_TRANSLATE_USING_OPENAI],
            TranslatorConfig(api_key=None),
            transport=_openai_transport(seen),
        )

        assert "error" in outcome.to_payload()
        assert seen == []
        client.conversations_replies.assert_not_called()


# ---------------------------------------------------------------------------
# Reaction trigger
# ---------------------------------------------------------------------------


class TestReactionAdded:
    """reaction_added → translate_message preset."""

    def _event(self, reaction="flag-fr", item_type="message", channel="C123"):
        return {
            "type": "reaction_added",
            "reaction": reaction,
            "item": {"type": item_type, "channel": channel, "ts": "111.222"},
        }

    def test_flag_reaction_runs_translate_message(self):
        with patch("slack_translator.slack.bot.load_config", return_value=TranslatorConfig()), \
                patch("slack_translator.slack.bot.execute_translation",
                      return_value=FunctionOutcome.skipped("x")) as run:
            handle_reaction_added(self._event(), MagicMock(), MagicMock())

        request, _client, preset, _config = run.call_args.args
        assert request.lang == "French"
        assert request.message_ts == "111.222"
        assert preset is FUNCTION_PRESETS[FUNCTION_TRANSLATE_MESSAGE]

    def test_unmapped_reaction_is_ignored(self):
        with patch("slack_translator.slack.bot.execute_translation") as run:
            handle_reaction_added(self._event(reaction="thumbsup"), MagicMock(), MagicMock())
        run.assert_not_called()

    def test_non_message_item_is_ignored(self):
        with patch("slack_translator.slack.bot.execute_translation") as run:
            handle_reaction_added(self._event(item_type="file"), MagicMock(), MagicMock())
        run.assert_not_called()

    def test_channel_filter(self):
        with patch("slack_translator.slack.bot.SLACK_CHANNEL_ID", "C999"), \
                patch("slack_translator.slack.bot.execute_translation") as run:
            handle_reaction_added(self._event(channel="C123"), MagicMock(), MagicMock())
        run.assert_not_called()

    def test_failure_is_logged(self):
        mock_logger = MagicMock()
        with patch("slack_translator.slack.bot.load_config", return_value=TranslatorConfig()), \
                patch("slack_translator.slack.bot.execute_translation",
                      return_value=FunctionOutcome.failed("nope")):
            handle_reaction_added(self._event(), MagicMock(), mock_logger)
        mock_logger.warning.assert_called_once()


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


class TestCreateApp:
    """Handler registration on the Bolt app."""

    def test_registers_functions_and_reaction(self):
        with patch("slack_translator.slack.bot.App") as mock_app_cls:
            app = create_app(bot_token="xoxb-test")

        mock_app_cls.assert_called_once_with(token="xoxb-test")
        function_ids = [c.args[0] for c in app.function.call_args_list]
        assert function_ids == [FUNCTION_TRANSLATE_USING_OPENAI, FUNCTION_TRANSLATE_MESSAGE]
        app.event.assert_called_once_with("reaction_added")
