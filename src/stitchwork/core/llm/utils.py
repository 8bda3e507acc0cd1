"""Helpers for reading Responses API results.

LiteLLM returns Responses API objects as pydantic models for some providers
and plain dicts for others, so every accessor here goes through ``_get``.
"""

from typing import Any

from loguru import logger


def _get(obj: Any, name: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def extract_text_from_content(content: Any) -> str:
    """Text of a message's content, which may be a string or a list of content parts."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        text_parts = []
        for part in content:
            if isinstance(part, str):
                text_parts.append(part)
            elif _get(part, "type") in ("output_text", "text") and _get(part, "text") is not None:
                text_parts.append(_get(part, "text"))
        return "".join(text_parts)
    return str(content) if content else ""


def extract_output_text(response: Any, log_failures: bool = False) -> str:
    """Concatenate the text of every message item in a Responses API result."""
    output_text = _get(response, "output_text")
    if isinstance(output_text, str) and output_text:
        return output_text

    parts = []
    for item in _get(response, "output", None) or []:
        if _get(item, "type") == "message":
            parts.append(extract_text_from_content(_get(item, "content")))
    result = "".join(parts)

    if not result and log_failures:
        logger.warning(f"Empty response extraction. Type: {type(response).__name__}, Value: {repr(response)[:500]}")
    return result


def infer_stop_reason(response: Any) -> str:
    """
    Derive a finish reason from a Responses API result.

    The Responses API has no ``finish_reason``; truncation shows up as
    ``status="incomplete"`` with ``incomplete_details.reason`` naming the
    cause, and pending tool calls as ``function_call`` output items.
    """
    explicit = _get(response, "finish_reason")
    if explicit:
        return str(explicit)

    status = _get(response, "status")
    details = _get(response, "incomplete_details")
    if details:
        reason = _get(details, "reason")
        return str(reason) if reason else "incomplete"
    if status == "incomplete":
        return "incomplete"
    if status == "failed":
        return "error"

    for item in _get(response, "output", None) or []:
        if _get(item, "type") == "function_call":
            return "tool_calls"
    return "stop"


def extract_usage(response: Any) -> tuple[int, int]:
    """``(input_tokens, output_tokens)``; Chat Completions field names are accepted too."""
    usage = _get(response, "usage")
    if usage is None:
        return 0, 0
    input_tokens = _get(usage, "input_tokens") or _get(usage, "prompt_tokens") or 0
    output_tokens = _get(usage, "output_tokens") or _get(usage, "completion_tokens") or 0
    return int(input_tokens), int(output_tokens)
