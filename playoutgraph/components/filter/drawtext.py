"""drawtext filters for lower thirds and file name captions."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Iterable, List, Optional

from ...utils.filter_format import custom_format
from ...utils.logger import logger
from ..config.model import PlayoutConfig
from ..media import Media, ProcessUnit


def escape_text(text: str) -> str:
    """Escape a caption for use inside a quoted drawtext ``text`` option."""
    return text.replace("'", "'\\\\\\''").replace("%", "\\\\\\%").replace(":", "\\:")


def _font_option(config: PlayoutConfig) -> str:
    fontfile = config.text.fontfile
    if fontfile and Path(fontfile).is_file():
        return f":fontfile='{fontfile}'"
    return ""


def text_from_source(config: PlayoutConfig, source: str) -> str:
    """First capture group of ``text.regex`` applied to the source path."""
    try:
        match = re.search(config.text.regex, source)
    except re.error as e:
        logger.warning(f"[Text] Invalid text regex '{config.text.regex}': {e}")
        return source
    if match and match.groups() and match.group(1) is not None:
        return match.group(1)
    return source


class TextOverlayProvider:
    """Builds the drawtext filter for an item.

    The current text settings are shared with the live text service (which
    also talks to the running decoder over zmq), so every read and update
    happens under one lock.
    """

    def __init__(self, filters: Optional[Iterable[str]] = None):
        self._lock = asyncio.Lock()
        self._filters: List[str] = list(filters or [])

    async def update(self, filters: Iterable[str]) -> None:
        async with self._lock:
            self._filters = list(filters)

    async def current(self) -> List[str]:
        async with self._lock:
            return list(self._filters)

    async def filter_node(self, config: PlayoutConfig, node: Optional[Media] = None) -> str:
        font = _font_option(config)
        templates = config.advanced.filter

        if config.text.text_from_filename and node is not None:
            text = escape_text(text_from_source(config, node.source))
            if templates.drawtext_from_file:
                return custom_format(templates.drawtext_from_file, [text, config.text.style, font])
            return f"drawtext=text='{text}':{config.text.style}{font}"

        if node is not None and node.unit is ProcessUnit.INGEST:
            socket = config.text.zmq_server_socket
        else:
            socket = config.text.zmq_stream_socket
        if not socket:
            logger.debug("[Text] No zmq socket configured; skipping text filter.")
            return ""

        filter_cmd = f"text=''{font}"
        async with self._lock:
            for setting in self._filters:
                if "text" in setting:
                    filter_cmd = setting

        socket = socket.replace(":", "\\:")
        if templates.drawtext_from_zmq:
            return custom_format(templates.drawtext_from_zmq, [socket, filter_cmd])
        return f"zmq=b=tcp\\\\://'{socket}',drawtext@dyntext={filter_cmd}"
