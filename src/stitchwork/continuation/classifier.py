"""Stop-reason classification.

Providers report why a generation stopped in slightly different vocabularies
(OpenAI ``finish_reason``, Anthropic ``stop_reason``, Responses API
``incomplete_details.reason``).  Everything is normalised to the seven
canonical reasons below before it is classified.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from stitchwork.core.utils.logging import get_logger

from .models import Classification

if TYPE_CHECKING:
    from loguru import Logger

STOP_REASON_CLASSIFICATIONS: dict[str, Classification] = {
    "stop": Classification.COMPLETE,
    "length": Classification.LENGTH_TRUNCATED,
    "tool_calls": Classification.TOOL_CALL_PENDING,
    "content_filter": Classification.CONTENT_FILTERED,
    "incomplete": Classification.INCOMPLETE,
    "error": Classification.PROVIDER_ERROR,
}

STOP_REASON_ALIASES: dict[str, str] = {
    "max_tokens": "length",
    "max_output_tokens": "length",
    "end_turn": "stop",
    "stop_sequence": "stop",
    "completed": "stop",
    "tool_use": "tool_calls",
    "function_call": "tool_calls",
    "safety": "content_filter",
    "refusal": "content_filter",
    "failed": "error",
}


def normalize_stop_reason(stop_reason: str | None) -> str | None:
    """Map provider-specific spellings onto the canonical stop reasons."""
    if stop_reason is None:
        return None
    reason = str(stop_reason).strip().lower()
    if not reason:
        return None
    return STOP_REASON_ALIASES.get(reason, reason)


class TruncationClassifier:
    """Assign exactly one Classification per stop reason and emit its diagnostics."""

    def __init__(self, log: Logger | None = None):
        self.log = log or get_logger("classifier")

    def classify(self, stop_reason: str | None) -> Classification:
        reason = normalize_stop_reason(stop_reason)
        if reason is None:
            return Classification.UNKNOWN
        classification = STOP_REASON_CLASSIFICATIONS.get(reason)
        if classification is None:
            self.log.debug(f"Unrecognised stop reason {stop_reason!r}; treating as unknown")
            return Classification.UNKNOWN
        return classification

    def report(self, classification: Classification, *, chunk_index: int, continuation_token: str | None) -> None:
        """Log the diagnostic a classification calls for, if any."""
        if classification.is_warning:
            if classification is Classification.CONTENT_FILTERED:
                message = (
                    f"Content filtered by safety system at chunk {chunk_index}; returning what was generated so far"
                )
            else:
                hint = f" with continuation token {continuation_token}" if continuation_token else ""
                message = (
                    f"Response marked as incomplete at chunk {chunk_index}; "
                    f"retry the continuation{hint} to fetch the remainder"
                )
            self.log.warning(message)
        elif classification.is_failure:
            self.log.error(f"Provider returned an error stop reason at chunk {chunk_index}")
        elif classification is Classification.UNKNOWN:
            self.log.debug(f"No stop reason for chunk {chunk_index}; assuming complete")
