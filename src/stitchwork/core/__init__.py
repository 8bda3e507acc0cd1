"""Core infrastructure: configuration, exceptions, logging, LLM provider, CLI."""

from .config import Config, get_config, reset_config
from .config_schema import ContinuationConfig, StitchworkConfig
from .exceptions import (
    APIError,
    ConfigurationError,
    ContinuationError,
    LLMError,
    MergeError,
    StitchworkError,
    TruncationExhausted,
)
from .types import MergerKind, OnFailure, OutputFormat

__all__ = [
    "APIError",
    "Config",
    "ConfigurationError",
    "ContinuationConfig",
    "ContinuationError",
    "LLMError",
    "MergeError",
    "MergerKind",
    "OnFailure",
    "OutputFormat",
    "StitchworkConfig",
    "StitchworkError",
    "TruncationExhausted",
    "get_config",
    "reset_config",
]
