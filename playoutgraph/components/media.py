"""Playable media items and their probe results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional


class ProcessUnit(str, Enum):
    """Which playout process an item is built for."""

    DECODER = "decoder"  # file playback
    ENCODER = "encoder"  # continuous encoder fed by the decoders
    INGEST = "ingest"  # live ingest


@dataclass
class VideoStream:
    width: Optional[int] = None
    height: Optional[int] = None
    frame_rate: str = ""
    aspect_ratio: Optional[str] = None
    field_order: Optional[str] = None
    duration: Optional[float] = None
    codec_name: Optional[str] = None
    pix_fmt: Optional[str] = None


@dataclass
class AudioStream:
    duration: Optional[float] = None
    channels: int = 0
    sample_rate: int = 0
    codec_name: Optional[str] = None


@dataclass
class MediaProbe:
    video: List[VideoStream] = field(default_factory=list)
    audio: List[AudioStream] = field(default_factory=list)
    format_duration: Optional[float] = None


@dataclass
class Media:
    """One playlist item as seen by the filter engine.

    ``seek`` and ``out`` are the in and out points inside the source, so
    ``out - seek`` is the span that is actually played.
    """

    source: str
    seek: float = 0.0
    out: float = 0.0
    duration: float = 0.0
    duration_audio: float = 0.0
    audio: str = ""
    category: str = ""
    custom_filter: str = ""
    title: Optional[str] = None
    unit: ProcessUnit = ProcessUnit.DECODER
    last_ad: bool = False
    next_ad: bool = False
    probe: Optional[MediaProbe] = None

    @property
    def play_length(self) -> float:
        return self.out - self.seek

    def first_video(self) -> Optional[VideoStream]:
        if self.probe and self.probe.video:
            return self.probe.video[0]
        return None

    def first_audio(self) -> Optional[AudioStream]:
        if self.probe and self.probe.audio:
            return self.probe.audio[0]
        return None

    def has_audio_track(self, index: int) -> bool:
        return bool(self.probe and 0 <= index < len(self.probe.audio))

    def has_audio_file(self) -> bool:
        return bool(self.audio) and Path(self.audio).is_file()

    def is_color_source(self) -> bool:
        """Generated test pictures (``color=c=...``) carry no audio stream."""
        return "color=c=" in self.source
