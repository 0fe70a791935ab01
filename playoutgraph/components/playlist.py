"""JSON playlist loading."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from ..exceptions import ValidationError
from ..utils.filter_format import to_float
from ..utils.logger import logger
from .filter.stages import ADVERTISEMENT
from .media import Media, ProcessUnit


@dataclass
class Playlist:
    channel: str = ""
    date: str = ""
    program: List[Media] = field(default_factory=list)


def _media_from_item(item: Dict[str, Any], index: int) -> Media:
    source = item.get("source")
    if not isinstance(source, str) or not source:
        raise ValidationError(f"Playlist item {index} has no 'source'.")

    duration = to_float(item.get("duration"), 0.0)
    seek = to_float(item.get("in"), 0.0)
    out = to_float(item.get("out"), duration)
    if out < seek:
        raise ValidationError(
            f"Playlist item {index} ('{source}'): 'out' ({out}) is before 'in' ({seek})."
        )

    title = item.get("title")
    return Media(
        source=source,
        seek=seek,
        out=out,
        duration=duration,
        audio=str(item.get("audio") or ""),
        category=str(item.get("category") or ""),
        custom_filter=str(item.get("custom_filter") or ""),
        title=str(title) if title is not None else None,
        unit=ProcessUnit.DECODER,
    )


def parse_playlist(data: Dict[str, Any]) -> Playlist:
    """Turn a decoded playlist document into ``Media`` items.

    Neighbouring advertisements set ``last_ad`` / ``next_ad`` on each item so
    the logo can fade around ad blocks.
    """
    if not isinstance(data, dict):
        raise ValidationError("Playlist root must be a JSON object.")
    program = data.get("program")
    if not isinstance(program, list):
        raise ValidationError("Playlist requires a 'program' list.")

    items: List[Media] = []
    for i, raw in enumerate(program):
        if not isinstance(raw, dict):
            raise ValidationError(f"Playlist item {i} must be an object.")
        items.append(_media_from_item(raw, i))

    for i, node in enumerate(items):
        node.last_ad = i > 0 and items[i - 1].category == ADVERTISEMENT
        node.next_ad = i + 1 < len(items) and items[i + 1].category == ADVERTISEMENT

    return Playlist(
        channel=str(data.get("channel") or ""),
        date=str(data.get("date") or ""),
        program=items,
    )


def load_playlist(path: str) -> Playlist:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ValidationError(f"Playlist file not found: {path}")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in playlist: {e.msg}", e.lineno, e.colno)

    playlist = parse_playlist(data)
    logger.debug(f"[Playlist] Loaded {len(playlist.program)} item(s) from {path}")
    return playlist
