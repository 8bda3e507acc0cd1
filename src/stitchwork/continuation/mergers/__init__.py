"""Format-aware chunk mergers."""

from .base import ChunkLayout, ChunkLike, Merger, normalize_chunks
from .json_merger import JsonMerger, close_json, normalize_strings, scan_json, strip_fences
from .markup import MarkupMerger
from .plain import ConcatenationMerger, FirstChunkMerger
from .tabular import TabularMerger, has_incomplete_row, last_row_fragment, sniff_delimiter

__all__ = [
    "ChunkLayout",
    "ChunkLike",
    "ConcatenationMerger",
    "FirstChunkMerger",
    "JsonMerger",
    "MarkupMerger",
    "Merger",
    "TabularMerger",
    "close_json",
    "has_incomplete_row",
    "last_row_fragment",
    "normalize_chunks",
    "normalize_strings",
    "scan_json",
    "sniff_delimiter",
    "strip_fences",
]
