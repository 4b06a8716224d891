"""Typed outcomes for status replies.

Acknowledgement replies are converted into a :class:`StatusReply` as soon as
they come back from the transport, so callers branch on ``ok`` instead of
comparing reply strings.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

ACKNOWLEDGEMENTS = frozenset({"OK", b"OK"})


class StatusReply(BaseModel):
    """Success/failure outcome of a status-returning command."""

    model_config = ConfigDict(frozen=True)

    ok: bool = Field(description="Whether the store acknowledged the command")
    raw: Any = Field(default=None, description="Reply exactly as received")

    @model_validator(mode="after")
    def _validate_coherence(self) -> "StatusReply":
        acknowledged = isinstance(self.raw, (str, bytes)) and self.raw in ACKNOWLEDGEMENTS
        if self.ok and not acknowledged:
            raise ValueError("ok=true requires an acknowledgement reply")
        if not self.ok and acknowledged:
            raise ValueError("ok=false must not carry an acknowledgement reply")
        return self

    @classmethod
    def from_raw(cls, raw: Any) -> "StatusReply":
        acknowledged = isinstance(raw, (str, bytes)) and raw in ACKNOWLEDGEMENTS
        return cls(ok=acknowledged, raw=raw)
