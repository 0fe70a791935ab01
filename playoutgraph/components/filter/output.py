"""Merge computed chains into a user supplied ``output.output_filter`` graph."""

from __future__ import annotations

import re

from ...utils.logger import logger
from ..config.model import OutputMode, PlayoutConfig
from .graph import FilterGraph

# Video input link of the custom graph, e.g. [0:v], [0:v:0]
VIDEO_INPUT_LINK = re.compile(r"\[[0:]+[v^\[]+([:0]+)?\]")


def merges_chains(config: PlayoutConfig) -> bool:
    return (config.text.add_text and not config.text.text_from_filename) or (
        config.output.mode is OutputMode.HLS
    )


def merge_output_filter(config: PlayoutConfig, graph: FilterGraph, custom_filter: str) -> str:
    """Splice the graph's chains in front of the custom graph's input links.

    The first video input link becomes ``<video chain>,`` and ``[0:a:<i>]``
    becomes ``<audio segment i>,`` with that segment's ``[aout<i>]`` label
    removed, so the custom graph keeps its topology and receives the upstream
    effects.
    """
    merged = custom_filter

    if graph.video_chain:
        video = f"{graph.video_chain},"
        merged = VIDEO_INPUT_LINK.sub(lambda _m: video, merged, count=1)

    if graph.audio_chain:
        segments = [
            part.replace(f"[aout{i}]", "")
            for i, part in enumerate(graph.audio_chain.split(";"))
        ]
        for i in range(config.processing.audio_tracks):
            if i >= len(segments):
                logger.kv_warning(
                    f"No audio chain for track {i} to merge into the output filter.",
                    kv_pairs={"Channel": config.general.channel_id},
                )
                break
            merged = merged.replace(f"[0:a:{i}]", f"{segments[i]},")

    return merged


def process_output_filters(config: PlayoutConfig, graph: FilterGraph, custom_filter: str) -> None:
    """Replace normal output assembly with the (merged) custom graph."""
    if merges_chains(config):
        filter_str = merge_output_filter(config, graph, custom_filter)
    else:
        filter_str = custom_filter

    graph.output_chain = ["-filter_complex", filter_str]
