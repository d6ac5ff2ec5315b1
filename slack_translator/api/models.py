"""OpenAI completion response dataclasses.

WHY: The chat and legacy completion endpoints return slightly different
JSON shapes. Parsing both into one typed structure lets the client pick
the translated text without caring which endpoint produced it.

HOW: CompletionResponse.from_dict() accepts either shape. Chat choices
carry their text under message.content; legacy choices under text.
Missing or null fields parse to empty strings; fields of the wrong type
raise ValueError so the client can report a malformed response.

RULES:
- choices preserves the API's order; the first choice is the answer
- A choice with neither message.content nor text has text ""
- Unknown fields are ignored
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class CompletionChoice:
    """A single candidate completion.

    RULES:
    - Raises ValueError when the entry is not an object, when "message"
      is not an object, or when the text is not a string
    """

    index: int
    text: str
    finish_reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> CompletionChoice:
        if not isinstance(data, dict):
            raise ValueError("choice is {}, not an object".format(type(data).__name__))

        message = data.get("message")
        if message is not None and not isinstance(message, dict):
            raise ValueError("choice message is {}, not an object".format(type(message).__name__))

        text = (message or {}).get("content")
        if text is None:
            text = data.get("text")
        if text is not None and not isinstance(text, str):
            raise ValueError("choice text is {}, not a string".format(type(text).__name__))

        return cls(
            index=data.get("index", 0),
            text=text or "",
            finish_reason=data.get("finish_reason"),
        )


@dataclass
class CompletionResponse:
    """Parsed body of a chat or legacy completion response.

    RULES:
    - A body without a "choices" key parses to an empty choices list
    - Raises ValueError when "choices" is not a list or holds a malformed entry
    - first_text() returns None when there is no usable choice
    """

    id: str = ""
    model: str = ""
    choices: List[CompletionChoice] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CompletionResponse:
        choices = data.get("choices") or []
        if not isinstance(choices, list):
            raise ValueError("choices is {}, not a list".format(type(choices).__name__))
        return cls(
            id=data.get("id", ""),
            model=data.get("model", ""),
            choices=[CompletionChoice.from_dict(c) for c in choices],
        )

    def first_text(self) -> Optional[str]:
        """Return the stripped text of the first choice, or None if empty."""
        if not self.choices:
            return None
        text = self.choices[0].text.strip()
        return text or None
