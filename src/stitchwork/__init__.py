"""Stitchwork — continue truncated LLM responses and merge the chunks back into one document."""

__version__ = "0.1.0"
