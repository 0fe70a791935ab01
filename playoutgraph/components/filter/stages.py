"""Effect stages.

Each stage looks at the configuration and the media item and appends zero or
more filters to a ``FilterGraph``. A configured template in
``advanced.filter`` replaces the built-in filter text; its ``{}`` placeholders
receive the values listed in each stage.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ...utils.filter_format import custom_format, fmt_value, fraction, is_close
from ...utils.logger import logger
from ..config.model import OutputMode, PlayoutConfig
from ..media import Media, ProcessUnit
from .drawtext import TextOverlayProvider
from .graph import FilterGraph, FilterType

ASPECT_TOLERANCE = 0.03
ADVERTISEMENT = "advertisement"

VIDEO = FilterType.VIDEO
AUDIO = FilterType.AUDIO


def _template(template: Optional[str], default: str, *args) -> str:
    if template is not None:
        return custom_format(template, args)
    return default


# ----------------------------------------------------------------------
# geometry
# ----------------------------------------------------------------------
def deinterlace(config: PlayoutConfig, graph: FilterGraph, field_order: Optional[str]) -> None:
    if field_order and field_order != "progressive":
        graph.add_filter(
            _template(config.advanced.filter.deinterlace, "yadif=0:-1:0"), 0, VIDEO
        )


def pad(config: PlayoutConfig, graph: FilterGraph, aspect: float) -> None:
    """Pillar/letterbox to the target aspect. Template args: numerator, denominator."""
    target = config.processing.aspect
    if is_close(aspect, target, ASPECT_TOLERANCE):
        return

    numerator, denominator = fraction(target, 100)
    default = f"pad='ih*{numerator}/{denominator}:ih:(ow-iw)/2:(oh-ih)/2'"
    graph.add_filter(
        _template(config.advanced.filter.pad_video, default, numerator, denominator),
        0,
        VIDEO,
    )


def fps(config: PlayoutConfig, graph: FilterGraph, source_fps: float) -> None:
    target = config.processing.fps
    if source_fps != target:
        default = f"fps={fmt_value(target)}"
        graph.add_filter(_template(config.advanced.filter.fps, default, target), 0, VIDEO)


def scale(
    config: PlayoutConfig,
    graph: FilterGraph,
    width: Optional[int],
    height: Optional[int],
) -> None:
    """Scale to the target size, or pass the picture through with ``null``.

    The video track always ends up with a filter here, so it has an output
    label to map even when nothing else touches the picture.
    """
    processing = config.processing
    template = config.advanced.filter.scale

    if template is not None:
        filter_str = custom_format(template, [processing.width, processing.height])
    elif (width is not None and width != processing.width) or (
        height is not None and height != processing.height
    ):
        filter_str = f"scale={processing.width}:{processing.height}"
    else:
        filter_str = "null"

    if not filter_str.strip():
        filter_str = "null"
    graph.add_filter(filter_str, 0, VIDEO)


def setdar(config: PlayoutConfig, graph: FilterGraph, aspect: float) -> None:
    target = config.processing.aspect
    if is_close(aspect, target, ASPECT_TOLERANCE):
        return

    default = f"setdar=dar={fmt_value(target)}"
    graph.add_filter(_template(config.advanced.filter.set_dar, default, target), 0, VIDEO)


# ----------------------------------------------------------------------
# timing
# ----------------------------------------------------------------------
def fade(
    config: PlayoutConfig,
    graph: FilterGraph,
    node: Media,
    nr: int,
    filter_type: FilterType,
) -> None:
    """Fade in after a cut into the clip, fade out before a cut out of it."""
    templates = config.advanced.filter
    t = "a" if filter_type is AUDIO else ""
    fade_audio = (
        filter_type is AUDIO
        and node.duration_audio > 0.0
        and node.duration_audio != node.duration
    )

    if node.seek > 0.0 or node.unit is ProcessUnit.INGEST:
        template = templates.afade_in if filter_type is AUDIO else templates.fade_in
        graph.add_filter(_template(template, f"{t}fade=in:st=0:d=0.5", t), nr, filter_type)

    if (node.out != node.duration and node.play_length > 1.0) or fade_audio:
        start = node.play_length - 1.0
        template = templates.afade_out if filter_type is AUDIO else templates.fade_out
        default = f"{t}fade=out:st={fmt_value(start)}:d=1.0"
        graph.add_filter(_template(template, default, start), nr, filter_type)


def extend_video(config: PlayoutConfig, graph: FilterGraph, node: Media) -> None:
    """Freeze the last frame when the video stream is shorter than the clip."""
    stream = node.first_video()
    if stream is None or stream.duration is None:
        return

    video_duration = stream.duration
    if (
        node.play_length > video_duration - node.seek + 0.1
        and node.duration >= node.out
    ):
        duration = node.play_length - (video_duration - node.seek)
        default = f"tpad=stop_mode=add:stop_duration={fmt_value(duration)}"
        graph.add_filter(_template(config.advanced.filter.tpad, default, duration), 0, VIDEO)


# ----------------------------------------------------------------------
# logo and text
# ----------------------------------------------------------------------
def _logo_path(path: str) -> str:
    return path.replace("\\", "/").replace(":", "\\\\:")


def overlay(config: PlayoutConfig, graph: FilterGraph, node: Media) -> None:
    """Station logo on top of the picture, hidden for advertisements.

    The logo fades in after an ad block (``last_ad``) and fades out before
    one (``next_ad``).
    """
    processing = config.processing
    templates = config.advanced.filter

    if not processing.add_logo or node.category == ADVERTISEMENT:
        return
    if not Path(processing.logo_path).is_file():
        logger.debug(f"[Logo] Logo file not found: {processing.logo_path}")
        return

    logo_path = _logo_path(processing.logo_path)
    opacity = processing.logo_opacity

    graph.add_filter("null[v];", 0, VIDEO)

    default = (
        f"movie={logo_path}:loop=0,setpts=N/(FRAME_RATE*TB),"
        f"format=rgba,colorchannelmixer=aa={fmt_value(opacity)}"
    )
    graph.add_filter(_template(templates.logo, default, logo_path, opacity), 0, VIDEO)

    if node.last_ad:
        graph.add_filter(
            _template(templates.overlay_logo_fade_in, "fade=in:st=0:d=1.0:alpha=1"),
            0,
            VIDEO,
        )

    if node.next_ad:
        length = node.play_length - 1.0
        default = f"fade=out:st={fmt_value(length)}:d=1.0:alpha=1"
        graph.add_filter(
            _template(templates.overlay_logo_fade_out, default, length), 0, VIDEO
        )

    if processing.logo_scale:
        default = f"scale={processing.logo_scale}"
        graph.add_filter(
            _template(templates.overlay_logo_scale, default, processing.logo_scale),
            0,
            VIDEO,
        )

    default = f"overlay={processing.logo_position}:shortest=1"
    graph.add_filter(
        _template(templates.overlay_logo, default, processing.logo_position), 0, VIDEO
    )


def wants_text(config: PlayoutConfig, node: Media) -> bool:
    return config.text.add_text and (
        config.text.text_from_filename
        or config.output.mode is OutputMode.HLS
        or node.unit is ProcessUnit.ENCODER
    )


async def add_text(
    config: PlayoutConfig,
    graph: FilterGraph,
    node: Media,
    provider: Optional[TextOverlayProvider] = None,
) -> None:
    """drawtext for lower thirds; the only stage that waits on shared state."""
    if not wants_text(config, node):
        return

    provider = provider if provider is not None else TextOverlayProvider()
    filter_str = await provider.filter_node(config, node)
    if filter_str:
        graph.add_filter(filter_str, 0, VIDEO)


# ----------------------------------------------------------------------
# audio
# ----------------------------------------------------------------------
def add_audio(config: PlayoutConfig, graph: FilterGraph, node: Media, nr: int) -> None:
    """Silent audio for the whole clip."""
    duration = node.play_length
    default = (
        f"aevalsrc=0:channel_layout=stereo:duration={fmt_value(duration)}:sample_rate=48000"
    )
    graph.add_filter(_template(config.advanced.filter.aevalsrc, default, duration), nr, AUDIO)


def extend_audio(config: PlayoutConfig, graph: FilterGraph, node: Media, nr: int) -> None:
    """Pad with silence when the audio stream is shorter than the clip."""
    if node.has_audio_file():
        return

    stream = node.first_audio()
    if stream is None or stream.duration is None:
        return

    if (
        node.play_length > stream.duration - node.seek + 0.1
        and node.duration >= node.out
    ):
        duration = node.play_length
        default = f"apad=whole_dur={fmt_value(duration)}"
        graph.add_filter(_template(config.advanced.filter.apad, default, duration), nr, AUDIO)


def ensure_audio_track(graph: FilterGraph, nr: int) -> None:
    """``anull`` so the track always owns a labelled segment.

    Splitting and mapping downstream rely on every selected audio track
    having its own ``[aout<nr>]`` link, even when no effect applies.
    """
    graph.add_filter("anull", nr, AUDIO)


def audio_volume(config: PlayoutConfig, graph: FilterGraph, nr: int) -> None:
    volume = config.processing.volume
    if volume != 1.0:
        default = f"volume={fmt_value(volume)}"
        graph.add_filter(_template(config.advanced.filter.volume, default, volume), nr, AUDIO)


# ----------------------------------------------------------------------
# outputs and user filters
# ----------------------------------------------------------------------
def split_filter(
    config: PlayoutConfig, graph: FilterGraph, nr: int, filter_type: FilterType
) -> None:
    """Duplicate a track for every configured output. Template args: count, links."""
    count = config.output.output_count
    if count <= 1:
        return

    out_link = graph.audio_out_link if filter_type is AUDIO else graph.video_out_link
    for i in range(count):
        link = f"[{filter_type}out_{nr}_{i}]"
        if link not in out_link:
            out_link.append(link)

    links = "".join(out_link)
    name = "asplit" if filter_type is AUDIO else "split"
    default = f"{name}={count}{links}"
    graph.add_filter(_template(config.advanced.filter.split, default, count, links), nr, filter_type)


def custom(filter_str: str, graph: FilterGraph, nr: int, filter_type: FilterType) -> None:
    if filter_str:
        graph.add_filter(filter_str, nr, filter_type)
