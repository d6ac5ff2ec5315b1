"""Slack app: function handlers, reaction trigger, and Socket Mode entry point.

WHY: The translation flow runs when Slack invokes one of the app's custom
functions from a workflow, or when someone reacts to a message with a
flag emoji. This module connects those Slack entry points to
run_translation() and reports the outcome back to Slack.

HOW: Uses slack-bolt. Each custom function is registered with
App.function(callback_id); the handler builds a TranslationRequest from
the function inputs, runs the async flow with asyncio.run(), and calls
complete() or fail(). The reaction_added handler maps the reaction to a
language and runs the optional-language preset. Socket Mode keeps the
bot reachable without a public URL.

RULES:
- translate_using_openai: chat API, lang required, no duplicate check
- translate_message: legacy completion API, lang optional, duplicate check
- Configuration is loaded per invocation via load_config()
- Skipped outcomes complete with empty outputs; failed ones call fail()
- Unexpected exceptions are logged and reported through fail(), never raised
- Reactions are only handled in SLACK_CHANNEL_ID (if configured)
- Runnable as: python -m slack_translator.slack.bot
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx
from slack_bolt import App
from slack_bolt.adapter.socket_mode import SocketModeHandler

from slack_translator.api.client import (
    API_STYLE_CHAT,
    API_STYLE_COMPLETION,
    OpenAIClient,
)
from slack_translator.config import (
    FUNCTION_TRANSLATE_MESSAGE,
    FUNCTION_TRANSLATE_USING_OPENAI,
    TranslatorConfig,
    language_for_reaction,
    load_config,
)
from slack_translator.core.flow import run_translation
from slack_translator.core.models import (
    FlowOptions,
    FunctionOutcome,
    TranslationRequest,
)
from slack_translator.slack.store import SlackMessageStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

SLACK_CHANNEL_ID = os.getenv("SLACK_CHANNEL_ID", "")

UNEXPECTED_ERROR = "Unexpected error while translating the message. See the app logs."


@dataclass(frozen=True)
class FunctionPreset:
    """How one Slack function drives the shared flow."""

    api_style: str
    options: FlowOptions = field(default_factory=FlowOptions)


FUNCTION_PRESETS: Dict[str, FunctionPreset] = {
    FUNCTION_TRANSLATE_USING_OPENAI: FunctionPreset(
        api_style=API_STYLE_CHAT,
        options=FlowOptions(require_language=True, dedup_check=False),
    ),
    FUNCTION_TRANSLATE_MESSAGE: FunctionPreset(
        api_style=API_STYLE_COMPLETION,
        options=FlowOptions(require_language=False, dedup_check=True),
    ),
}


# ---------------------------------------------------------------------------
# Flow execution
# ---------------------------------------------------------------------------


def execute_translation(
    request: TranslationRequest,
    client: Any,
    preset: FunctionPreset,
    config: TranslatorConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FunctionOutcome:
    """Run the translation flow to completion from synchronous code.

    WHY: slack-bolt's App calls handlers in worker threads without an
    event loop, while the flow and the OpenAI client are async.

    HOW: Opens an OpenAIClient for the preset's API style, wraps the
    handler's WebClient in a SlackMessageStore, and drives
    run_translation() with asyncio.run().

    RULES:
    - Must not be called from inside a running event loop
    - transport is forwarded to httpx (tests use httpx.MockTransport)
    """

    async def _run() -> FunctionOutcome:
        async with OpenAIClient.from_config(
            config, api_style=preset.api_style, transport=transport
        ) as translator:
            return await run_translation(
                request,
                SlackMessageStore(client),
                translator,
                config,
                preset.options,
            )

    return asyncio.run(_run())


def _run_function(
    callback_id: str,
    inputs: Dict[str, Any],
    complete: Any,
    fail: Any,
    client: Any,
) -> Optional[FunctionOutcome]:
    preset = FUNCTION_PRESETS[callback_id]

    try:
        request = TranslationRequest.from_inputs(inputs or {})
    except ValueError as exc:
        fail(error="Invalid inputs for {}: {}".format(callback_id, exc))
        return None

    try:
        outcome = execute_translation(request, client, preset, load_config())
    except Exception:
        logger.exception("Function %s crashed for %s", callback_id, request)
        fail(error=UNEXPECTED_ERROR)
        return None

    if outcome.ok:
        complete(outputs=outcome.to_payload())
    else:
        fail(error=outcome.error)
    return outcome


# ---------------------------------------------------------------------------
# Function handlers
# ---------------------------------------------------------------------------


def handle_translate_using_openai(
    inputs: Dict[str, Any], complete: Any, fail: Any, client: Any, logger: Any
) -> None:
    """Translate with the chat completion API; lang is required."""
    _run_function(FUNCTION_TRANSLATE_USING_OPENAI, inputs, complete, fail, client)


def handle_translate_message(
    inputs: Dict[str, Any], complete: Any, fail: Any, client: Any, logger: Any
) -> None:
    """Translate with the legacy completion API; lang optional, dedup on."""
    _run_function(FUNCTION_TRANSLATE_MESSAGE, inputs, complete, fail, client)


# ---------------------------------------------------------------------------
# Event handlers
# ---------------------------------------------------------------------------


def handle_reaction_added(event: Dict[str, Any], client: Any, logger: Any) -> None:
    """Translate a message when someone reacts with a language flag.

    WHY: Reacting with :flag-fr: is the quickest way to ask for a
    translation without setting up a workflow.

    HOW: Resolves the reaction to a language and runs the
    translate_message preset (optional lang, duplicate check), so
    unknown reactions and repeated flags are benign skips.

    RULES:
    - Only message items are handled
    - If SLACK_CHANNEL_ID is set, only that channel is watched
    - Failures are logged; there is no function to fail() here
    """
    item = event.get("item", {})
    if item.get("type") != "message":
        return

    channel_id = item.get("channel", "")
    if SLACK_CHANNEL_ID and channel_id != SLACK_CHANNEL_ID:
        return

    reaction = event.get("reaction", "")
    lang = language_for_reaction(reaction)
    if lang is None:
        logger.debug("Ignoring reaction %s: no language mapped", reaction)
        return

    try:
        request = TranslationRequest(
            channel_id=channel_id,
            message_ts=item.get("ts", ""),
            lang=lang,
        )
    except ValueError:
        logger.warning("Ignoring reaction %s with incomplete item %s", reaction, item)
        return

    try:
        outcome = execute_translation(
            request, client, FUNCTION_PRESETS[FUNCTION_TRANSLATE_MESSAGE], load_config()
        )
    except Exception:
        logger.exception("Reaction translation crashed for %s", request)
        return

    if not outcome.ok:
        logger.warning("Reaction translation failed for %s: %s", request, outcome.error)


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------


def create_app(bot_token: Optional[str] = None) -> App:
    """Build the Bolt app that serves both translate functions.

    WHY: Workflow Builder dispatches function_executed events by
    callback_id, so each preset needs its own App.function listener;
    the reaction trigger rides on the same app.

    RULES:
    - bot_token falls back to SLACK_BOT_TOKEN
    - Registers translate_using_openai, translate_message and reaction_added
    """
    token = bot_token or os.environ.get("SLACK_BOT_TOKEN", "")

    app = App(token=token)

    app.function(FUNCTION_TRANSLATE_USING_OPENAI)(handle_translate_using_openai)
    app.function(FUNCTION_TRANSLATE_MESSAGE)(handle_translate_message)
    app.event("reaction_added")(handle_reaction_added)

    return app


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def configure_logging(debug: bool = False) -> None:
    """Configure root logging for the bot and CLI processes."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def main() -> None:
    """Start the Slack app in Socket Mode.

    RULES:
    - Requires SLACK_BOT_TOKEN and SLACK_APP_TOKEN environment variables
    - Blocks on the SocketModeHandler.start() call
    """
    config = load_config()
    configure_logging(config.debug)

    bot_token = os.environ.get("SLACK_BOT_TOKEN", "")
    app_token = os.environ.get("SLACK_APP_TOKEN", "")

    if not bot_token:
        raise ValueError("SLACK_BOT_TOKEN environment variable is required")
    if not app_token:
        raise ValueError("SLACK_APP_TOKEN environment variable is required")
    if not config.api_key:
        logger.warning("OPENAI_API_KEY is not set; every translation will fail")

    app = create_app(bot_token=bot_token)

    logger.info("Starting Slack translator in Socket Mode...")
    logger.info("Functions: %s", ", ".join(sorted(FUNCTION_PRESETS)))
    if SLACK_CHANNEL_ID:
        logger.info("Watching reactions in channel: %s", SLACK_CHANNEL_ID)
    else:
        logger.info("Watching reactions in all channels the bot is in")

    handler = SocketModeHandler(app, app_token)
    handler.start()


if __name__ == "__main__":
    main()
