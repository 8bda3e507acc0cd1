"""Pydantic models for config validation.

``ContinuationConfig`` is the immutable per-session configuration consumed by
the continuation controller and the merge engine.  ``StitchworkConfig`` is
the typed view over ``Config.config_data`` returned by ``Config.validated()``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .exceptions import ConfigurationError
from .types import MergerKind, OnFailure, OutputFormat, parse_output_format

MAX_ATTEMPTS_LIMIT = 50
DEFAULT_MAX_ATTEMPTS = 10


class ContinuationConfig(BaseModel):
    """Settings for one continuation session.  Frozen once built."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    output_format: OutputFormat = OutputFormat.AUTO
    on_failure: OnFailure = OnFailure.RETURN_PARTIAL
    merge_strategy: MergerKind | None = None

    @field_validator("max_attempts", mode="before")
    @classmethod
    def _check_max_attempts(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("max_attempts must be a positive integer")
        if isinstance(v, str) and v.strip().lstrip("-").isdigit():
            v = int(v)
        if not isinstance(v, int) or v <= 0:
            raise ValueError("max_attempts must be a positive integer")
        if v > MAX_ATTEMPTS_LIMIT:
            raise ValueError(f"max_attempts cannot exceed {MAX_ATTEMPTS_LIMIT}")
        return v

    @field_validator("output_format", mode="before")
    @classmethod
    def _normalize_format(cls, v: Any) -> Any:
        return parse_output_format(v)

    @field_validator("on_failure", mode="before")
    @classmethod
    def _normalize_on_failure(cls, v: Any) -> Any:
        if isinstance(v, OnFailure):
            return v
        text = str(v).strip().lower()
        try:
            return OnFailure(text)
        except ValueError:
            raise ValueError(f"Invalid on_failure mode: {text}") from None

    @field_validator("merge_strategy", mode="before")
    @classmethod
    def _normalize_strategy(cls, v: Any) -> Any:
        if v is None or isinstance(v, MergerKind):
            return v
        text = str(v).strip().lower()
        if not text:
            return None
        try:
            return MergerKind(text)
        except ValueError:
            raise ValueError(f"Invalid merge_strategy: {text}") from None

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> ContinuationConfig:
        """Build from a plain dict, raising ConfigurationError on bad values."""
        try:
            return cls.model_validate(data or {})
        except ValidationError as e:
            messages = "; ".join(err["msg"] for err in e.errors())
            raise ConfigurationError(f"Invalid continuation config: {messages}") from e


class LLMConfig(BaseModel):
    """Settings for the bundled LiteLLM provider."""

    model_config = ConfigDict(extra="allow")

    model: str = ""
    provider: str = "openai"
    instructions: str | None = None
    max_output_tokens: int | None = None
    timeout: int = 180
    num_retries: int = 2


class LoggingConfig(BaseModel):
    """loguru sink settings."""

    level: str = "WARNING"
    log_file: Path | None = None
    rotation: str = "10 MB"
    retention: str = "7 days"

    @field_validator("level", mode="before")
    @classmethod
    def _upper(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("log_file", mode="before")
    @classmethod
    def _expand_user(cls, v: Any) -> Any:
        if isinstance(v, str) and v:
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v or None


class StitchworkConfig(BaseModel):
    """Root configuration model.

    Uses ``extra="allow"`` so consumers can bolt on custom sections
    without touching this schema.
    """

    model_config = ConfigDict(extra="allow")

    continuation: ContinuationConfig = ContinuationConfig()
    llm: LLMConfig = LLMConfig()
    logging: LoggingConfig = LoggingConfig()
