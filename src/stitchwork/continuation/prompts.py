"""Continuation prompts.

A continuation request normally rides on the provider's continuation token,
so the model already has the conversation; the prompt only has to point at
where the output stopped.  Only the trailing context is sent: the last row of
a table, the last few lines of markdown, or the path of brackets a JSON
document is still inside.
"""

from __future__ import annotations

from stitchwork.core.types import OutputFormat

from .detector import FormatDetector
from .mergers.json_merger import scan_json, strip_fences
from .mergers.tabular import has_incomplete_row, last_row_fragment, sniff_delimiter

OVERLAP_LINES = 5

RESUME_INSTRUCTIONS = (
    "Continue exactly where the previous output stopped. Output only the remaining raw content: "
    "do not repeat anything already written, do not restate headers, do not wrap the output in "
    "code fences and do not add any commentary."
)


def tail_lines(text: str, count: int = OVERLAP_LINES) -> str:
    lines = text.split("\n")
    return "\n".join(lines[-count:])


def tabular_context(partial: str) -> str:
    header = partial.lstrip("\r\n").split("\n", 1)[0]
    fragment = last_row_fragment(partial)
    if has_incomplete_row(partial, sniff_delimiter(header)) or not partial.endswith("\n"):
        return (
            f"The output stopped in the middle of this row:\n{fragment}\n\n"
            "Complete that row starting with the very next character, then continue with the remaining rows. "
            "Do not repeat the header row."
        )
    return (
        f"The last complete row was:\n{fragment}\n\n"
        "Continue with the next row. Do not repeat the header row."
    )


def markup_context(partial: str, overlap_lines: int = OVERLAP_LINES) -> str:
    return (
        f"The document so far ends with:\n{tail_lines(partial, overlap_lines)}\n\n"
        "If the output stopped inside a table, continue with the next row without repeating the table header. "
        "Continue numbered lists from the next number."
    )


def json_context(partial: str) -> str:
    path = scan_json(strip_fences(partial).strip()).path
    location = " > ".join(path) if path else "the root value"
    return (
        f"The JSON output is still open at: {location}\n"
        f"It currently ends with:\n{partial[-200:]}\n\n"
        "Continue the JSON from the exact character where it stopped. Do not restart the document."
    )


def plain_context(partial: str, overlap_lines: int = OVERLAP_LINES) -> str:
    return f"Partial Response So Far (last part):\n{tail_lines(partial, overlap_lines)}"


def build_continuation_prompt(
    partial_response: str,
    output_format: OutputFormat,
    original_query: str | None = None,
    detector: FormatDetector | None = None,
    overlap_lines: int = OVERLAP_LINES,
) -> str:
    """
    Build the prompt that asks the model for the rest of a truncated output.

    Args:
        partial_response: Everything generated so far (raw concatenation).
        output_format: Target format; ``auto`` detects it from the partial response.
        original_query: Included only when the provider cannot carry the conversation.
        detector: Detector to use for ``auto``.
        overlap_lines: Trailing lines quoted for markup and plain text.

    Returns:
        Prompt string for the next request.
    """
    fmt = OutputFormat(output_format)
    if fmt is OutputFormat.AUTO:
        fmt = (detector or FormatDetector()).detect(partial_response).format

    if fmt is OutputFormat.TABULAR:
        context = tabular_context(partial_response)
    elif fmt is OutputFormat.MARKUP:
        context = markup_context(partial_response, overlap_lines)
    elif fmt is OutputFormat.JSON:
        context = json_context(partial_response)
    else:
        context = plain_context(partial_response, overlap_lines)

    sections = [f"Original Query: {original_query}"] if original_query else []
    sections += [context, RESUME_INSTRUCTIONS]
    return "\n\n".join(sections)
