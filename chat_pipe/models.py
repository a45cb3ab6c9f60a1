"""Core domain models.

The engine, the config loader and the HTTP host all exchange these types.
Pydantic is used for validation and serialisation at every data boundary.
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from chat_pipe.matcher import compile_marker_pattern

Channel = Literal["chat", "command"]

Action = Literal["deliver", "suppress", "resubmit"]

DEFAULT_ESCAPE_REGEX = r".*(\\\|)$"  # trailing \| skips the pipe; both characters are stripped
DEFAULT_REGEX = r".*(\|)$"  # trailing | means more is coming
DEFAULT_TTL_SECONDS = 600.0


class PipeConfig(BaseModel):
    """Settings consumed by the pipe engine.

    Both patterns carry exactly one capturing group: the marker text that is
    stripped from the input when the pattern matches.
    """

    escape_regex: re.Pattern = Field(default_factory=lambda: re.compile(DEFAULT_ESCAPE_REGEX))
    regex: re.Pattern = Field(default_factory=lambda: re.compile(DEFAULT_REGEX))
    limit_groups: dict[str, int] = Field(default_factory=lambda: {"default": 3})
    listen_to_chat: bool = True
    listen_to_commands: bool = True
    ttl_seconds: float = Field(default=DEFAULT_TTL_SECONDS, gt=0)
    max_pending: int | None = Field(default=None, ge=1)

    @field_validator("escape_regex", "regex")
    @classmethod
    def _one_marker_group(cls, pattern: re.Pattern) -> re.Pattern:
        return compile_marker_pattern(pattern)

    @field_validator("limit_groups")
    @classmethod
    def _non_negative_limits(cls, limits: dict[str, int]) -> dict[str, int]:
        for group, limit in limits.items():
            if limit < 0:
                raise ValueError(f"limit for group {group!r} cannot be negative")
        return limits

    def listens_to(self, channel: Channel) -> bool:
        if channel == "chat":
            return self.listen_to_chat
        return self.listen_to_commands


class Decision(BaseModel):
    """Outcome of handling one raw input.

    deliver  — pass `text` on instead of the raw input.
    suppress — the input was buffered; deliver nothing.
    resubmit — suppress the raw input and re-dispatch `text` through the
               normal (non-piped) path.
    """

    action: Action
    text: str | None = None

    @model_validator(mode="after")
    def _text_matches_action(self) -> Decision:
        if self.action == "suppress" and self.text is not None:
            raise ValueError("a suppressed input carries no text")
        if self.action != "suppress" and self.text is None:
            raise ValueError(f"{self.action} requires text")
        return self

    @classmethod
    def deliver(cls, text: str) -> Decision:
        return cls(action="deliver", text=text)

    @classmethod
    def suppress(cls) -> Decision:
        return cls(action="suppress")

    @classmethod
    def resubmit(cls, text: str) -> Decision:
        return cls(action="resubmit", text=text)
