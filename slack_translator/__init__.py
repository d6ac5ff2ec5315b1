"""Slack OpenAI Translator: translate Slack messages into their threads.

WHY: Teams working across languages want a message translated where it
was posted, without copying text into another tool. This package
fetches a Slack message, asks OpenAI to translate it, and posts the
result as a threaded reply.

HOW: A straight-line flow (validate → fetch → translate → duplicate
check → post) in core/, driven by Slack entry points in slack/ and an
OpenAI client in api/. Each step is reached through a narrow interface
so the flow is testable without network access.

RULES:
- One OpenAI call per invocation, no retries
- Errors become a failed outcome; skips (no lang, no message, duplicate)
  are successes with empty outputs
"""

__version__ = "0.1.0"
