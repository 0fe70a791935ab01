"""ffmpeg filter graph construction."""

from .chains import audio_indexes, filter_chains
from .custom import filter_node as split_custom_filter
from .drawtext import TextOverlayProvider
from .graph import ChainState, FilterGraph, FilterType
from .output import merge_output_filter, process_output_filters
from .stages import split_filter

__all__ = [
    "ChainState",
    "FilterGraph",
    "FilterType",
    "TextOverlayProvider",
    "audio_indexes",
    "filter_chains",
    "merge_output_filter",
    "process_output_filters",
    "split_custom_filter",
    "split_filter",
]
