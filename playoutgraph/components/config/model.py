"""Typed, read-only view of a channel configuration."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional


class OutputMode(str, Enum):
    DESKTOP = "desktop"
    HLS = "hls"
    NULL = "null"
    STREAM = "stream"


@dataclass(frozen=True)
class GeneralConfig:
    channel_id: int = 1


@dataclass(frozen=True)
class DecoderConfig:
    input_param: Optional[str] = None


@dataclass(frozen=True)
class FilterTemplates:
    """User overrides for single filters. ``None`` means the built-in default."""

    deinterlace: Optional[str] = None
    pad_video: Optional[str] = None
    fps: Optional[str] = None
    scale: Optional[str] = None
    set_dar: Optional[str] = None
    fade_in: Optional[str] = None
    fade_out: Optional[str] = None
    afade_in: Optional[str] = None
    afade_out: Optional[str] = None
    overlay_logo_scale: Optional[str] = None
    overlay_logo_fade_in: Optional[str] = None
    overlay_logo_fade_out: Optional[str] = None
    overlay_logo: Optional[str] = None
    logo: Optional[str] = None
    tpad: Optional[str] = None
    drawtext_from_file: Optional[str] = None
    drawtext_from_zmq: Optional[str] = None
    aevalsrc: Optional[str] = None
    apad: Optional[str] = None
    volume: Optional[str] = None
    split: Optional[str] = None


@dataclass(frozen=True)
class AdvancedConfig:
    decoder: DecoderConfig = field(default_factory=DecoderConfig)
    filter: FilterTemplates = field(default_factory=FilterTemplates)


@dataclass(frozen=True)
class ProcessingConfig:
    audio_only: bool = False
    copy_audio: bool = False
    copy_video: bool = False
    width: int = 1024
    height: int = 576
    aspect: float = 1.778
    fps: float = 25.0
    add_logo: bool = False
    logo_path: str = ""
    logo_scale: str = ""
    logo_opacity: float = 0.7
    logo_position: str = "W-w-12:12"
    audio_tracks: int = 1
    audio_track_index: int = -1
    audio_channels: int = 2
    volume: float = 1.0
    custom_filter: str = ""


@dataclass(frozen=True)
class IngestConfig:
    enable: bool = False
    custom_filter: str = ""


@dataclass(frozen=True)
class TextConfig:
    add_text: bool = False
    text_from_filename: bool = False
    fontfile: str = ""
    style: str = (
        "x=(w-tw)/2:y=(h-line_h)*0.9:fontsize=24:fontcolor=#ffffff:"
        "box=1:boxcolor=#000000:boxborderw=4"
    )
    regex: str = r"^.+[/\\](.*)(.mp4|.mkv|.webm)$"
    zmq_stream_socket: Optional[str] = None
    zmq_server_socket: Optional[str] = None


@dataclass(frozen=True)
class OutputConfig:
    mode: OutputMode = OutputMode.DESKTOP
    output_count: int = 1
    output_filter: Optional[str] = None


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    log_json: bool = False
    log_kv: bool = False
    path: Optional[str] = None


def _pick(cls, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Keep only keys that ``cls`` declares; unknown keys are ignored."""
    if not data:
        return {}
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass(frozen=True)
class PlayoutConfig:
    general: GeneralConfig = field(default_factory=GeneralConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    ingest: IngestConfig = field(default_factory=IngestConfig)
    text: TextConfig = field(default_factory=TextConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    advanced: AdvancedConfig = field(default_factory=AdvancedConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PlayoutConfig":
        """Build a config from a (validated) mapping such as a loaded YAML file."""
        data = data or {}

        processing = dict(_pick(ProcessingConfig, data.get("processing")))
        for key in ("width", "height", "audio_tracks", "audio_track_index", "audio_channels"):
            if key in processing:
                processing[key] = int(processing[key])
        for key in ("aspect", "fps", "logo_opacity", "volume"):
            if key in processing:
                processing[key] = float(processing[key])
        if "aspect" not in processing:
            width = processing.get("width", ProcessingConfig.width)
            height = processing.get("height", ProcessingConfig.height)
            if height:
                processing["aspect"] = width / height

        output = dict(_pick(OutputConfig, data.get("output")))
        if "mode" in output:
            output["mode"] = OutputMode(str(output["mode"]).lower())
        if "output_count" in output:
            output["output_count"] = int(output["output_count"])

        advanced = data.get("advanced") or {}

        return cls(
            general=GeneralConfig(**_pick(GeneralConfig, data.get("general"))),
            processing=ProcessingConfig(**processing),
            ingest=IngestConfig(**_pick(IngestConfig, data.get("ingest"))),
            text=TextConfig(**_pick(TextConfig, data.get("text"))),
            output=OutputConfig(**output),
            advanced=AdvancedConfig(
                decoder=DecoderConfig(**_pick(DecoderConfig, advanced.get("decoder"))),
                filter=FilterTemplates(**_pick(FilterTemplates, advanced.get("filter"))),
            ),
            logging=LoggingConfig(**_pick(LoggingConfig, data.get("logging"))),
        )
