"""MessageStore implementation backed by the Slack Web API.

WHY: The flow reads a message, reads its thread, and posts a reply.
This adapter maps those three operations onto conversations.replies and
chat.postMessage and turns Slack API errors into MessageStoreError so
the flow never sees SDK types.

HOW: Wraps a slack_sdk WebClient (the one slack-bolt hands to every
handler). WebClient is blocking, so each call runs through
asyncio.to_thread() to keep the flow's steps awaitable.

RULES:
- get_replies(limit=1, inclusive=True) fetches exactly the target message
- get_replies() without a limit returns the whole first page of the thread
- SlackApiError → MessageStoreError(code) where code is Slack's "error" field
- Other SlackClientError and OSError (URLError, timeouts) → MessageStoreError
  whose code is the exception class name
- post_reply() returns the new message's ts
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError, SlackClientError

from slack_translator.core.flow import MessageStoreError
from slack_translator.core.models import PostedReply, SlackMessage

logger = logging.getLogger(__name__)


def _error_code(exc: Exception) -> str:
    """Slack's "error" field for API errors, the class name for transport errors."""
    if not isinstance(exc, SlackApiError):
        return exc.__class__.__name__
    try:
        code = exc.response.get("error")
    except AttributeError:
        code = None
    return code or "unknown_error"


class SlackMessageStore:
    """Channel history access through a Slack WebClient."""

    def __init__(self, client: WebClient) -> None:
        self._client = client

    async def get_replies(
        self,
        channel: str,
        ts: str,
        limit: Optional[int] = None,
        inclusive: bool = True,
    ) -> List[SlackMessage]:
        """Return messages from conversations.replies for channel/ts.

        RULES:
        - The first message is the one at ts (or the thread root)
        - Raises MessageStoreError when Slack reports an error or is unreachable
        """
        kwargs: Dict[str, Any] = {"channel": channel, "ts": ts, "inclusive": inclusive}
        if limit is not None:
            kwargs["limit"] = limit

        try:
            resp = await asyncio.to_thread(self._client.conversations_replies, **kwargs)
        except (SlackClientError, OSError) as exc:
            code = _error_code(exc)
            logger.warning("conversations.replies failed for %s/%s: %s", channel, ts, code)
            raise MessageStoreError(code) from exc

        messages = resp.get("messages") or []
        return [SlackMessage.from_dict(m) for m in messages]

    async def post_reply(self, channel: str, thread_ts: str, text: str) -> PostedReply:
        """Post text into the thread and return the new message's ts."""
        try:
            resp = await asyncio.to_thread(
                self._client.chat_postMessage,
                channel=channel,
                thread_ts=thread_ts,
                text=text,
            )
        except (SlackClientError, OSError) as exc:
            code = _error_code(exc)
            logger.warning("chat.postMessage failed in %s/%s: %s", channel, thread_ts, code)
            raise MessageStoreError(code) from exc

        return PostedReply(ts=resp.get("ts") or "")
