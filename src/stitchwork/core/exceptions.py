"""
Stitchwork exception hierarchy.

All stitchwork exceptions inherit from StitchworkError, making it easy for
consumers to catch library-level errors while still distinguishing the
specific failure modes of a continuation session.
"""

from __future__ import annotations

from typing import Any


class StitchworkError(Exception):
    """Base exception class for all stitchwork errors."""


class ConfigurationError(StitchworkError):
    """Raised for configuration errors (missing keys, invalid values)."""


class APIError(StitchworkError):
    """Raised for API communication errors."""


class LLMError(APIError):
    """Raised for LLM API errors."""


class MergeError(StitchworkError):
    """Raised by a merger that cannot assemble the chunks it was given.

    Never escapes the merge step: the fallback chain catches it and degrades
    to a simpler strategy.
    """

    def __init__(self, message: str, *, chunk_index: int | None = None, kind: str = "merge_failed"):
        super().__init__(message)
        self.chunk_index = chunk_index
        self.kind = kind


class TruncationExhausted(StitchworkError):
    """The attempt bound was reached while the model was still truncating.

    Not fatal: merging proceeds on whatever was accumulated.
    """

    def __init__(self, attempts: int, max_attempts: int):
        super().__init__(f"Still truncated after {attempts}/{max_attempts} attempts")
        self.attempts = attempts
        self.max_attempts = max_attempts


class ContinuationError(StitchworkError):
    """Raised outward when a session cannot produce an acceptable result.

    Wraps a provider error classification, or a merge failure when the caller
    asked for ``on_failure="raise_error"``.
    """

    def __init__(
        self,
        message: str,
        *,
        chunk_index: int | None = None,
        output_format: str | None = None,
        merge_strategy_used: str | None = None,
        session: Any = None,
    ):
        super().__init__(message)
        self.chunk_index = chunk_index
        self.output_format = output_format
        self.merge_strategy_used = merge_strategy_used
        self.session = session
