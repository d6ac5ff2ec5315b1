"""Command-line interface for the Slack OpenAI Translator.

WHY: Operators need two things from a terminal: start the Socket Mode
app, and run a single translation by hand to check credentials,
channel access, and the model's output without setting up a workflow.

HOW: argparse with two subcommands. ``run`` starts the bot.
``translate`` builds a TranslationRequest from flags, runs the same
flow the Slack function runs (same presets, same config loading) with a
WebClient authorised by SLACK_BOT_TOKEN, and prints the function
payload as JSON.

RULES:
- Status output goes to stderr; the JSON payload goes to stdout
- Exit code 1 for a failed outcome, a config error or an unexpected
  exception (reported as an {"error": ...} payload), 0 otherwise
- --function picks the preset (default: translate_message)
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import List, Optional

from slack_sdk import WebClient

from slack_translator.config import (
    FUNCTION_TRANSLATE_MESSAGE,
    FUNCTION_TRANSLATE_USING_OPENAI,
    load_config,
)
from slack_translator.core.models import TranslationRequest


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


def _translate(args: argparse.Namespace) -> int:
    from slack_translator.slack.bot import (
        FUNCTION_PRESETS,
        configure_logging,
        execute_translation,
    )

    try:
        config = load_config()
    except ValueError as e:
        _status("Error: {}".format(e))
        return 1
    configure_logging(config.debug)

    bot_token = os.environ.get("SLACK_BOT_TOKEN", "")
    if not bot_token:
        _status("Error: SLACK_BOT_TOKEN environment variable is required")
        return 1

    try:
        request = TranslationRequest(
            channel_id=args.channel,
            message_ts=args.ts,
            lang=args.lang,
        )
    except ValueError as e:
        _status("Error: {}".format(e))
        return 1

    preset = FUNCTION_PRESETS[args.function]
    _status("Translating {}/{} with {} ({})...".format(
        request.channel_id, request.message_ts, args.function, preset.api_style,
    ))

    try:
        outcome = execute_translation(request, WebClient(token=bot_token), preset, config)
    except Exception as e:
        print(json.dumps({"error": "{}: {}".format(e.__class__.__name__, e)}))
        _status("Error: {}".format(e))
        return 1

    print(json.dumps(outcome.to_payload()))
    if not outcome.ok:
        _status("Failed: {}".format(outcome.error))
        return 1
    _status("Done: {}{}".format(
        outcome.status.value, " ({})".format(outcome.reason) if outcome.reason else "",
    ))
    return 0


def _run(args: argparse.Namespace) -> int:
    from slack_translator.slack.bot import main as bot_main

    try:
        bot_main()
    except ValueError as e:
        _status("Error: {}".format(e))
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Return the parser for the run and translate subcommands.

    Each subparser sets a handler default, so main() dispatches with
    args.handler(args) and tests can parse argv without side effects.
    """
    parser = argparse.ArgumentParser(
        prog="slack_translator",
        description="Translate Slack messages with OpenAI and post the "
                    "translation as a threaded reply.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Start the Slack app in Socket Mode.",
    )
    run_parser.set_defaults(handler=_run)

    translate_parser = subparsers.add_parser(
        "translate",
        help="Translate one message and post the reply in its thread.",
    )
    translate_parser.add_argument(
        "--channel",
        required=True,
        help="Channel ID that holds the message (e.g. C0123456789).",
    )
    translate_parser.add_argument(
        "--ts",
        required=True,
        help="Timestamp of the message to translate (e.g. 1700000000.000100).",
    )
    translate_parser.add_argument(
        "--lang",
        default=None,
        help="Target language, e.g. French. Optional for translate_message.",
    )
    translate_parser.add_argument(
        "--function",
        choices=[FUNCTION_TRANSLATE_MESSAGE, FUNCTION_TRANSLATE_USING_OPENAI],
        default=FUNCTION_TRANSLATE_MESSAGE,
        help="Which function's behavior to use (default: %(default)s).",
    )
    translate_parser.set_defaults(handler=_translate)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    code = args.handler(args)
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
