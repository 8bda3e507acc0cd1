"""Records passed between the continuation controller and the merge engine.

Everything here is immutable: chunks are created once per provider call,
sessions grow by returning a new session with one more chunk, and merge
results are final.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Protocol, runtime_checkable

from stitchwork.core.config_schema import ContinuationConfig


class Classification(str, Enum):
    """Why a generation stopped, from the controller's point of view."""

    COMPLETE = "complete"
    LENGTH_TRUNCATED = "length_truncated"
    TOOL_CALL_PENDING = "tool_call_pending"
    CONTENT_FILTERED = "content_filtered"
    INCOMPLETE = "incomplete"
    PROVIDER_ERROR = "provider_error"
    UNKNOWN = "unknown"

    @property
    def requires_continuation(self) -> bool:
        return self is Classification.LENGTH_TRUNCATED

    @property
    def is_terminal(self) -> bool:
        """Ends the continuation loop."""
        return not self.requires_continuation

    @property
    def is_failure(self) -> bool:
        return self is Classification.PROVIDER_ERROR

    @property
    def is_warning(self) -> bool:
        return self in (Classification.CONTENT_FILTERED, Classification.INCOMPLETE)


class ControllerState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    CLASSIFYING = "classifying"
    CONTINUING = "continuing"
    DONE = "done"
    EXHAUSTED = "exhausted"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ControllerState.DONE, ControllerState.EXHAUSTED, ControllerState.FAILED)


@dataclass(frozen=True)
class ProviderResponse:
    """What one completion call returns."""

    content: str
    stop_reason: str | None
    continuation_token: str | None = None
    output_tokens: int = 0
    input_tokens: int = 0
    error: str | None = None


@runtime_checkable
class Provider(Protocol):
    """The single collaborator contract: issue one completion, return a structured response."""

    def complete(self, prompt: str, model: str, continuation_token: str | None = None) -> ProviderResponse: ...


@dataclass(frozen=True)
class ContinuationRequest:
    """One logical request submitted by a caller."""

    prompt: str
    model: str
    continuation_token: str | None = None


@dataclass(frozen=True)
class Chunk:
    """One fragment of generated content plus its stop reason and token usage."""

    index: int
    content: str
    stop_reason: str | None
    classification: Classification = Classification.UNKNOWN
    output_tokens: int = 0
    input_tokens: int = 0
    byte_size: int = -1

    def __post_init__(self) -> None:
        if self.byte_size < 0:
            object.__setattr__(self, "byte_size", len(self.content.encode("utf-8")))

    @classmethod
    def from_text(cls, index: int, content: str, stop_reason: str | None = "stop") -> Chunk:
        """Build a chunk from bare text (offline merging, tests)."""
        return cls(index=index, content=content or "", stop_reason=stop_reason)

    @property
    def is_blank(self) -> bool:
        return not self.content.strip()


@dataclass(frozen=True)
class ContinuationSession:
    """Ordered chunks of one session plus the controller's bookkeeping."""

    config: ContinuationConfig
    chunks: tuple[Chunk, ...] = ()
    attempt_count: int = 0
    continuation_token: str | None = None
    state: ControllerState = ControllerState.IDLE

    def append(self, chunk: Chunk, continuation_token: str | None) -> ContinuationSession:
        """Return a new session with *chunk* appended and the attempt counted."""
        return replace(
            self,
            chunks=(*self.chunks, chunk),
            attempt_count=self.attempt_count + 1,
            continuation_token=continuation_token,
        )

    def transition(self, state: ControllerState) -> ContinuationSession:
        return replace(self, state=state)

    @property
    def content(self) -> str:
        """Raw concatenation of every chunk, no reconciliation."""
        return "".join(chunk.content for chunk in self.chunks)

    @property
    def continuation_count(self) -> int:
        return max(len(self.chunks) - 1, 0)

    @property
    def last_chunk(self) -> Chunk | None:
        return self.chunks[-1] if self.chunks else None


@dataclass(frozen=True)
class MergeErrorInfo:
    """Structured description of why a merge did not fully succeed."""

    kind: str
    message: str
    chunk_index: int | None = None
    error_class: str = "MergeError"


@dataclass(frozen=True)
class MergeResult:
    content: str
    success: bool
    fallback_level: int = 0
    error: MergeErrorInfo | None = None
    strategy: str = ""
    exhausted: bool = False
    details: dict = field(default_factory=dict, compare=False)
