"""Filter graph state and the chain-append algorithm.

A ``FilterGraph`` holds one audio and one video half. Each half is a text
chain in ffmpeg's filtergraph syntax: filters of one linear chain are joined
with ``,``, independent chains (one per input track) with ``;``, and named
links are written as ``[label]``. Every track that receives a filter gets one
output label ``[<type>out<track>]`` and one ``-map`` pair.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from ...utils.ffmpeg_hw import (
    HW_DOWNLOAD_INPUT,
    has_hw_context,
    hw_download,
    hw_upload,
    hw_upload_str,
    is_hw,
    last_is_hw,
)
from ...utils.logger import logger
from ..config.model import PlayoutConfig

# Filters that produce frames themselves and therefore take no input link
SOURCE_FILTER_PREFIXES = ("aevalsrc", "anullsrc", "amovie", "movie")


class FilterType(str, Enum):
    AUDIO = "a"
    VIDEO = "v"

    def __str__(self) -> str:
        return self.value


class ChainState(Enum):
    """Where the text of a chain currently ends."""

    EMPTY = "empty"
    OPEN_CHAIN = "open_chain"  # ends on a filter, the next one is joined with ','
    OPEN_SEGMENT = "open_segment"  # ends on ';', a new segment head follows
    OPEN_LABEL = "open_label"  # ends inside '[', a label name follows
    CLOSED = "closed"  # ends on an output label ']'


def chain_state(chain: str) -> ChainState:
    if not chain:
        return ChainState.EMPTY
    last = chain[-1]
    if last == "[":
        return ChainState.OPEN_LABEL
    if last == ";":
        return ChainState.OPEN_SEGMENT
    if last == "]":
        return ChainState.CLOSED
    return ChainState.OPEN_CHAIN


def is_source_filter(filter_str: str) -> bool:
    return filter_str.startswith(SOURCE_FILTER_PREFIXES)


@dataclass
class _Chain:
    kind: FilterType
    position: int = 0
    text: str = ""
    last: int = -1
    labels: List[str] = field(default_factory=list)
    state: ChainState = ChainState.EMPTY
    relinks: Dict[int, int] = field(default_factory=dict)

    def out_label(self, track_nr: int) -> str:
        return f"[{self.kind}out{track_nr}]"

    def push(self, text: str) -> None:
        self.text += text
        self.state = chain_state(self.text)


class FilterGraph:
    """Per-item filter state for ``-filter_complex`` and ``-map``."""

    def __init__(self, config: PlayoutConfig, audio_position: int = 0):
        self.config = config
        self.hw_context = has_hw_context(config)
        self._audio = _Chain(FilterType.AUDIO, position=audio_position)
        self._video = _Chain(FilterType.VIDEO)
        self.output_chain: List[str] = []
        self.output_map: List[str] = []
        self.audio_out_link: List[str] = []
        self.video_out_link: List[str] = []

    # ------------------------------------------------------------------
    # read access to the halves
    # ------------------------------------------------------------------
    @property
    def audio_chain(self) -> str:
        return self._audio.text

    @property
    def video_chain(self) -> str:
        return self._video.text

    @property
    def audio_map(self) -> List[str]:
        return self._audio.labels

    @property
    def video_map(self) -> List[str]:
        return self._video.labels

    @property
    def audio_last(self) -> int:
        return self._audio.last

    @property
    def video_last(self) -> int:
        return self._video.last

    @property
    def audio_position(self) -> int:
        return self._audio.position

    @audio_position.setter
    def audio_position(self, value: int) -> None:
        self._audio.position = value

    @property
    def video_position(self) -> int:
        return self._video.position

    def state(self, filter_type: FilterType) -> ChainState:
        return self._half(filter_type).state

    def _half(self, filter_type: FilterType) -> _Chain:
        return self._audio if filter_type is FilterType.AUDIO else self._video

    # ------------------------------------------------------------------
    # chain append
    # ------------------------------------------------------------------
    def add_filter(self, filter_str: str, track_nr: int, filter_type: FilterType) -> None:
        """Append ``filter_str`` to the chain of ``track_nr``.

        A different track than the last one closes the running chain and
        starts a new one on the track's input stream. Same-track appends are
        joined into the running chain, with hardware upload/download filters
        inserted where a GPU filter meets a CPU filter.
        """
        half = self._half(filter_type)
        logger.debug(f"[Filter] {filter_type}:{track_nr} += {filter_str}")

        if half.last != track_nr:
            self._open_track(half, filter_str, track_nr)
        elif (
            half.state is ChainState.OPEN_LABEL
            or filter_str.startswith((";", "["))
            or is_source_filter(filter_str)
        ):
            self._append_link(half, filter_str)
        elif "overlay" in filter_str:
            self._append_overlay(half, filter_str)
        else:
            self._append_filter(half, filter_str)

    def _open_track(self, half: _Chain, filter_str: str, track_nr: int) -> None:
        label = half.out_label(track_nr)
        if label in half.labels:
            self._reopen_track(half, filter_str, track_nr)
            return

        sep = self._close_running(half)
        if is_source_filter(filter_str):
            half.push(f"{sep}{filter_str}")
        else:
            hw_dl = ""
            if self.hw_context and not is_hw(filter_str) and half.kind is FilterType.VIDEO:
                hw_dl = HW_DOWNLOAD_INPUT
            half.push(f"{sep}[{half.position}:{half.kind}:{track_nr}]{hw_dl}{filter_str}")

        half.labels.append(label)
        self.output_map.extend(["-map", label])
        half.last = track_nr

    def _close_running(self, half: _Chain) -> str:
        """Label the running chain if needed and return the segment separator."""
        if half.state in (ChainState.OPEN_CHAIN, ChainState.OPEN_LABEL):
            half.push(half.out_label(half.last))
            return ";"
        if half.state is ChainState.CLOSED:
            return ";"
        return ""

    def _reopen_track(self, half: _Chain, filter_str: str, track_nr: int) -> None:
        """Continue a track whose earlier segment was closed by another track.

        The earlier output label is renamed to an intermediate link and the new
        segment reads from it, so the track still ends in one output label.
        """
        label = half.out_label(track_nr)
        if label not in half.text or is_source_filter(filter_str):
            logger.kv_error(
                f"Cannot continue track {label}: its earlier output is not available. "
                f"Filter skipped: {filter_str}",
                kv_pairs={"Channel": self.config.general.channel_id, "Track": track_nr},
            )
            return

        sep = self._close_running(half)
        half.relinks[track_nr] = half.relinks.get(track_nr, 0) + 1
        link = f"[{half.kind}mid{track_nr}_{half.relinks[track_nr]}]"
        half.text = half.text.replace(label, link, 1)
        logger.debug(f"[Filter] Track {label} re-opened from {link}")

        half.push(f"{sep}{link}{filter_str}")
        half.last = track_nr

    def _bridge(self, half: _Chain, filter_str: str) -> str:
        return hw_upload(self.config, half.text, filter_str) + hw_download(half.text, filter_str)

    def _append_link(self, half: _Chain, filter_str: str) -> None:
        if half.state is ChainState.OPEN_CHAIN and not is_source_filter(filter_str):
            bridge = self._bridge(half, filter_str)
            if bridge:
                half.push(f",{bridge}")
        half.push(filter_str)

    def _append_overlay(self, half: _Chain, filter_str: str) -> None:
        if self.hw_context and not last_is_hw(half.text):
            half.push(f",{hw_upload_str(self.config)}")
        half.push(f"[l];[v][l]{filter_str}")

    def _append_filter(self, half: _Chain, filter_str: str) -> None:
        bridge = self._bridge(half, filter_str)
        if bridge:
            half.push(f",{bridge}")
        elif self.hw_context and not last_is_hw(half.text) and filter_str.endswith(";"):
            half.push(f",{hw_upload_str(self.config)}")

        joiner = "" if half.state is ChainState.OPEN_SEGMENT else ","
        half.push(f"{joiner}{filter_str}")

    # ------------------------------------------------------------------
    # output assembly
    # ------------------------------------------------------------------
    def _closed(self, half: _Chain) -> str:
        text = half.text
        if half.state is ChainState.OPEN_SEGMENT:
            # a trailing ";" would leave an empty segment for the label
            text = text.rstrip(";")
        if half.last >= 0 and chain_state(text) is not ChainState.CLOSED:
            return text + half.out_label(half.last)
        return text

    def cmd(self) -> List[str]:
        """``["-filter_complex", graph]``, or ``[]`` when no filter was added."""
        if self.output_chain:
            return list(self.output_chain)

        parts = [c for c in (self._closed(self._video), self._closed(self._audio)) if c]
        graph = ";".join(parts)
        if not graph:
            return []
        return ["-filter_complex", graph]

    def map(self) -> List[str]:
        """``-map`` arguments for all labelled tracks plus untouched raw streams."""
        o_map = list(self.output_map)
        processing = self.config.processing

        if self._video.last == -1 and not processing.audio_only:
            v_map = "0:v"
            if v_map not in o_map:
                o_map.extend(["-map", v_map])

        if self._audio.last == -1:
            for i in range(processing.audio_tracks):
                a_map = f"{self._audio.position}:a:{i}"
                if a_map not in o_map:
                    o_map.extend(["-map", a_map])

        return o_map

    def __repr__(self) -> str:
        return (
            f"FilterGraph(video={self._video.text!r}, audio={self._audio.text!r}, "
            f"map={self.output_map!r})"
        )

