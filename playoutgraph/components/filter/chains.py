"""Build the complete filter graph for one media item."""

from __future__ import annotations

from typing import List, Optional

from ...utils.filter_format import calc_aspect, fps_calc
from ...utils.logger import logger
from ..config.model import OutputMode, PlayoutConfig
from ..media import Media, ProcessUnit
from . import custom as custom_filters
from . import stages
from .drawtext import TextOverlayProvider
from .graph import FilterGraph, FilterType
from .output import process_output_filters

VIDEO = FilterType.VIDEO
AUDIO = FilterType.AUDIO


def audio_indexes(config: PlayoutConfig) -> List[int]:
    """All configured audio tracks, or the single pinned one."""
    index = config.processing.audio_track_index
    if index == -1:
        return list(range(config.processing.audio_tracks))
    return [index]


async def _encoder_chains(
    config: PlayoutConfig,
    graph: FilterGraph,
    node: Media,
    provider: Optional[TextOverlayProvider],
) -> FilterGraph:
    processing = config.processing

    if not processing.audio_only:
        await stages.add_text(config, graph, node, provider)

    if config.output.output_filter:
        process_output_filters(config, graph, config.output.output_filter)
    elif config.output.output_count > 1 and not processing.audio_only:
        stages.split_filter(config, graph, 0, VIDEO)

    return graph


async def _video_chains(
    config: PlayoutConfig,
    graph: FilterGraph,
    node: Media,
    provider: Optional[TextOverlayProvider],
) -> None:
    if node.probe is not None:
        v_stream = node.first_video()
        if v_stream is not None:
            aspect = calc_aspect(config, v_stream.aspect_ratio)
            frame_per_sec = fps_calc(v_stream.frame_rate, 1.0)

            stages.deinterlace(config, graph, v_stream.field_order)
            stages.pad(config, graph, aspect)
            stages.fps(config, graph, frame_per_sec)
            stages.scale(config, graph, v_stream.width, v_stream.height)
            stages.setdar(config, graph, aspect)

        stages.extend_video(config, graph, node)
    else:
        stages.fps(config, graph, 0.0)
        stages.scale(config, graph, None, None)

    await stages.add_text(config, graph, node, provider)
    stages.fade(config, graph, node, 0, VIDEO)
    stages.overlay(config, graph, node)


def _audio_chains(
    config: PlayoutConfig,
    graph: FilterGraph,
    node: Media,
    proc_af: str,
    list_af: str,
) -> None:
    channel = config.general.channel_id

    for i in audio_indexes(config):
        if node.has_audio_track(i) or node.has_audio_file():
            stages.extend_audio(config, graph, node, i)
        elif node.unit is ProcessUnit.DECODER and not node.is_color_source():
            logger.kv_warning(
                f"Missing audio track (id {i}) from {node.source}",
                kv_pairs={"Channel": channel, "Track": i},
            )
            stages.add_audio(config, graph, node, i)

        stages.ensure_audio_track(graph, i)
        stages.fade(config, graph, node, i, AUDIO)
        stages.audio_volume(config, graph, i)

        stages.custom(proc_af, graph, i, AUDIO)
        stages.custom(list_af, graph, i, AUDIO)


async def filter_chains(
    config: PlayoutConfig,
    node: Media,
    filter_chain: Optional[TextOverlayProvider] = None,
) -> FilterGraph:
    """Run all stages for ``node`` in their fixed order.

    Args:
        config: Channel configuration, only read.
        node: The item to play. Only timing and probe fields are read.
        filter_chain: Shared text overlay provider. A private one is used
            when omitted.

    Returns:
        The filled graph; call ``cmd()`` and ``map()`` for ffmpeg arguments.
    """
    processing = config.processing
    channel = config.general.channel_id
    graph = FilterGraph(config, 0)

    if node.is_color_source() or node.has_audio_file():
        graph.audio_position = 1

    if node.unit is ProcessUnit.ENCODER:
        return await _encoder_chains(config, graph, node, filter_chain)

    if not processing.audio_only and not processing.copy_video:
        await _video_chains(config, graph, node, filter_chain)

    if node.unit is ProcessUnit.INGEST:
        proc_vf, proc_af = custom_filters.filter_node(channel, config.ingest.custom_filter)
    else:
        proc_vf, proc_af = custom_filters.filter_node(channel, processing.custom_filter)
    list_vf, list_af = custom_filters.filter_node(channel, node.custom_filter)

    if not processing.copy_video:
        stages.custom(proc_vf, graph, 0, VIDEO)
        stages.custom(list_vf, graph, 0, VIDEO)

    if not processing.copy_audio:
        _audio_chains(config, graph, node, proc_af, list_af)
    elif processing.audio_track_index > -1:
        logger.kv_error(
            "Setting 'audio_track_index' other than '-1' is not allowed in audio copy mode!",
            kv_pairs={"Channel": channel},
        )

    if config.output.mode is OutputMode.HLS and config.output.output_filter:
        process_output_filters(config, graph, config.output.output_filter)

    return graph
