"""Configuration loading, OpenAI defaults, and reaction → language mapping.

WHY: Every invocation needs the OpenAI credential, the debug flag, and
the completion parameters. Reading them into one explicit object keeps
the orchestration free of ambient globals and lets tests pass in any
configuration they like.

HOW: python-dotenv loads the .env file on import. load_config() reads
the process environment (or an injected mapping) at call time and
returns a frozen TranslatorConfig. Reaction names are mapped to language
names through a plain dict so it is easy to extend.

RULES:
- OPENAI_API_KEY may be absent here; the flow reports the missing key
- DEBUG_MODE is only enabled by the literal string "true" (any case)
- load_config() never caches; call it once per invocation
- Skin-tone suffixes on reaction names are ignored
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

# Load .env from the project root (where the process is started)
load_dotenv()

# ---------------------------------------------------------------------------
# OpenAI defaults
# ---------------------------------------------------------------------------

OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_CHAT_MODEL = "gpt-4"
DEFAULT_COMPLETION_MODEL = "gpt-3.5-turbo-instruct"
DEFAULT_MAX_TOKENS = 1024
DEFAULT_TEMPERATURE = 0.5

# ---------------------------------------------------------------------------
# Slack function callback IDs
# ---------------------------------------------------------------------------

FUNCTION_TRANSLATE_USING_OPENAI = "translate_using_openai"
FUNCTION_TRANSLATE_MESSAGE = "translate_message"

# ---------------------------------------------------------------------------
# Reaction name → target language
# ---------------------------------------------------------------------------

REACTION_LANGUAGES: dict[str, str] = {
    "flag-us": "English",
    "flag-gb": "English",
    "us": "English",
    "gb": "English",
    "flag-fr": "French",
    "fr": "French",
    "flag-de": "German",
    "de": "German",
    "flag-es": "Spanish",
    "es": "Spanish",
    "flag-mx": "Spanish",
    "flag-it": "Italian",
    "it": "Italian",
    "flag-pt": "Portuguese",
    "flag-br": "Portuguese",
    "flag-nl": "Dutch",
    "flag-se": "Swedish",
    "flag-no": "Norwegian",
    "flag-dk": "Danish",
    "flag-fi": "Finnish",
    "flag-pl": "Polish",
    "flag-ru": "Russian",
    "ru": "Russian",
    "flag-tr": "Turkish",
    "flag-jp": "Japanese",
    "jp": "Japanese",
    "flag-kr": "Korean",
    "kr": "Korean",
    "flag-cn": "Chinese",
    "cn": "Chinese",
    "flag-tw": "Traditional Chinese",
    "flag-in": "Hindi",
    "flag-sa": "Arabic",
    "flag-vn": "Vietnamese",
    "flag-th": "Thai",
    "flag-id": "Indonesian",
}


def language_for_reaction(reaction: str) -> Optional[str]:
    """Return the target language for a reaction name, or None.

    WHY: A reaction only triggers a translation when it names a
    language; anything else is a benign skip further down the flow.

    RULES:
    - "flag-fr::skin-tone-2" is looked up as "flag-fr"
    - Unknown reactions return None (never raise)
    """
    name = reaction.split("::", 1)[0].strip().lower()
    return REACTION_LANGUAGES.get(name)


@dataclass(frozen=True)
class TranslatorConfig:
    """Per-invocation settings for the translation flow.

    WHY: Passing configuration explicitly keeps run_translation()
    testable without patching the environment.

    RULES:
    - api_key is None when OPENAI_API_KEY is unset or blank
    - debug enables verbose logging of inputs and intermediate responses
    """

    api_key: Optional[str] = None
    debug: bool = False
    base_url: str = OPENAI_BASE_URL
    chat_model: str = DEFAULT_CHAT_MODEL
    completion_model: str = DEFAULT_COMPLETION_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE


def is_debug_mode(env: Mapping[str, str]) -> bool:
    """Return True when DEBUG_MODE is set to "true"."""
    return env.get("DEBUG_MODE", "").strip().lower() == "true"


def load_config(env: Optional[Mapping[str, str]] = None) -> TranslatorConfig:
    """Build a TranslatorConfig from the environment.

    WHY: Slack may rotate secrets between invocations, so the values are
    read fresh every time rather than captured at import.

    HOW: Reads from os.environ unless a mapping is injected. Numeric
    overrides are parsed here so a bad value fails loudly at startup of
    the invocation, not halfway through it.

    RULES:
    - Blank OPENAI_API_KEY is treated as missing
    - Raises ValueError on non-numeric OPENAI_MAX_TOKENS / OPENAI_TEMPERATURE
    """
    if env is None:
        env = os.environ

    api_key = env.get("OPENAI_API_KEY", "").strip() or None

    try:
        max_tokens = int(env.get("OPENAI_MAX_TOKENS", DEFAULT_MAX_TOKENS))
        temperature = float(env.get("OPENAI_TEMPERATURE", DEFAULT_TEMPERATURE))
    except ValueError as exc:
        raise ValueError(
            "OPENAI_MAX_TOKENS must be an integer and OPENAI_TEMPERATURE "
            "a number: {}".format(exc)
        ) from exc

    return TranslatorConfig(
        api_key=api_key,
        debug=is_debug_mode(env),
        base_url=env.get("OPENAI_BASE_URL", "").strip() or OPENAI_BASE_URL,
        chat_model=env.get("OPENAI_CHAT_MODEL", "").strip() or DEFAULT_CHAT_MODEL,
        completion_model=(
            env.get("OPENAI_COMPLETION_MODEL", "").strip() or DEFAULT_COMPLETION_MODEL
        ),
        max_tokens=max_tokens,
        temperature=temperature,
    )
