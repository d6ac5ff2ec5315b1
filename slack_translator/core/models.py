"""Dataclasses that flow through a single translation invocation.

WHY: Each invocation passes a handful of small values between steps:
the request, the fetched message, the translated text, the posted
reply, and finally the outcome handed back to Slack. Typed containers
make each step's contract explicit and keep the Slack wire names
(channelId, messageTs) at the edges.

HOW: Frozen dataclasses for values that never change after creation.
FunctionOutcome carries the terminal state and knows how to render
itself as the payload a Slack function returns.

RULES:
- Nothing here is persisted; every object lives for one invocation
- FunctionOutcome.to_payload() is {"ts": ...}, {} or {"error": ...}
- A blank lang is normalised to None
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class TranslationRequest:
    """The inputs of one function invocation.

    RULES:
    - channel_id and message_ts are required and non-empty
    - lang is None when absent or blank
    """

    channel_id: str
    message_ts: str
    lang: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.channel_id:
            raise ValueError("channel_id is required")
        if not self.message_ts:
            raise ValueError("message_ts is required")
        if self.lang is not None and not self.lang.strip():
            object.__setattr__(self, "lang", None)

    @classmethod
    def from_inputs(cls, inputs: Mapping[str, Any]) -> TranslationRequest:
        """Build a request from Slack function inputs (channelId, messageTs, lang)."""
        lang = inputs.get("lang")
        return cls(
            channel_id=str(inputs.get("channelId") or ""),
            message_ts=str(inputs.get("messageTs") or ""),
            lang=str(lang) if lang is not None else None,
        )


@dataclass(frozen=True)
class SlackMessage:
    """A message as returned by conversations.replies."""

    text: str
    ts: str = ""
    thread_ts: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SlackMessage:
        return cls(
            text=data.get("text") or "",
            ts=data.get("ts") or "",
            thread_ts=data.get("thread_ts") or None,
        )

    def resolved_thread_ts(self, fallback: str) -> str:
        """Return the thread root, or fallback when the message is not threaded."""
        return self.thread_ts or fallback


@dataclass(frozen=True)
class TranslationResult:
    text: str


@dataclass(frozen=True)
class PostedReply:
    ts: str


@dataclass(frozen=True)
class FlowOptions:
    """Switches that distinguish the two function variants.

    RULES:
    - require_language: a missing lang is an error instead of a skip
    - dedup_check: re-read the thread and skip exact-duplicate replies
    """

    require_language: bool = False
    dedup_check: bool = True


class InvocationStatus(str, enum.Enum):
    """Terminal states of an invocation.

    RULES:
    - completed: a reply was posted
    - skipped: nothing to do (no lang, no message, or duplicate); not an error
    - failed: a configuration, access, or upstream error
    """

    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class FunctionOutcome:
    """Result of run_translation(), ready to hand back to Slack."""

    status: InvocationStatus
    outputs: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None
    reason: str = ""

    @classmethod
    def completed(cls, reply: PostedReply) -> FunctionOutcome:
        return cls(status=InvocationStatus.COMPLETED, outputs={"ts": reply.ts})

    @classmethod
    def skipped(cls, reason: str) -> FunctionOutcome:
        return cls(status=InvocationStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, error: str) -> FunctionOutcome:
        return cls(status=InvocationStatus.FAILED, error=error)

    @property
    def ok(self) -> bool:
        return self.status != InvocationStatus.FAILED

    def to_payload(self) -> Dict[str, str]:
        if self.status == InvocationStatus.FAILED:
            return {"error": self.error or "Unknown error"}
        return dict(self.outputs)
