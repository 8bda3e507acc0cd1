"""Shared enums used across stitchwork."""

from enum import Enum
from typing import Any


class OutputFormat(str, Enum):
    """Target format of the reassembled document."""

    TABULAR = "tabular"
    MARKUP = "markup"
    JSON = "json"
    AUTO = "auto"
    # Only ever produced by the format detector, never configured.
    PLAIN = "plain"


# Spellings accepted from config files and the CLI.
OUTPUT_FORMAT_ALIASES: dict[str, OutputFormat] = {
    "csv": OutputFormat.TABULAR,
    "tsv": OutputFormat.TABULAR,
    "table": OutputFormat.TABULAR,
    "markdown": OutputFormat.MARKUP,
    "md": OutputFormat.MARKUP,
}


class OnFailure(str, Enum):
    """Outward behaviour when the merged result is not fully valid."""

    RETURN_PARTIAL = "return_partial"
    RAISE_ERROR = "raise_error"


class MergerKind(str, Enum):
    """Closed set of merge strategies; each maps to exactly one merger class."""

    TABULAR = "tabular"
    MARKUP = "markup"
    JSON = "json"
    CONCATENATION = "concatenation"
    FIRST_CHUNK = "first_chunk"


def parse_output_format(value: Any) -> OutputFormat:
    """Coerce a string (or enum) into an OutputFormat, honouring aliases."""
    if isinstance(value, OutputFormat):
        return value
    text = str(value).strip().lower()
    if text in OUTPUT_FORMAT_ALIASES:
        return OUTPUT_FORMAT_ALIASES[text]
    try:
        fmt = OutputFormat(text)
    except ValueError:
        raise ValueError(f"Invalid output_format: {text}") from None
    if fmt is OutputFormat.PLAIN:
        raise ValueError(f"Invalid output_format: {text}")
    return fmt
