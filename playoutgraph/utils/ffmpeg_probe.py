"""ffprobe を利用したメディア情報取得ヘルパー。"""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..components.media import AudioStream, MediaProbe, VideoStream
from ..exceptions import ProbeError
from .filter_format import to_float, to_int
from .ffmpeg_runner import run_ffmpeg_async
from .logger import logger

def _duration(value: Any) -> Optional[float]:
    if value is None:
        return None
    duration = to_float(value, -1.0)
    return duration if duration >= 0 else None


def _video_stream(s: Dict[str, Any]) -> VideoStream:
    width = to_int(s.get("width"), 0)
    height = to_int(s.get("height"), 0)
    return VideoStream(
        width=width or None,
        height=height or None,
        frame_rate=str(s.get("r_frame_rate") or ""),
        aspect_ratio=s.get("display_aspect_ratio"),
        field_order=s.get("field_order"),
        duration=_duration(s.get("duration")),
        codec_name=s.get("codec_name"),
        pix_fmt=s.get("pix_fmt"),
    )


def _audio_stream(s: Dict[str, Any]) -> AudioStream:
    return AudioStream(
        duration=_duration(s.get("duration")),
        channels=to_int(s.get("channels"), 0),
        sample_rate=to_int(s.get("sample_rate"), 0),
        codec_name=s.get("codec_name"),
    )


def parse_probe(data: Union[str, bytes, Dict[str, Any]]) -> MediaProbe:
    """
    ffprobe の JSON 出力を MediaProbe に変換する。

    欠損値や不正な値は None/0 として扱い、例外は送出しない。
    JSON 自体が壊れている場合は空の MediaProbe を返す。
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except ValueError:
            logger.warning("[Probe] Could not decode ffprobe output as JSON.")
            return MediaProbe()
    if not isinstance(data, dict):
        return MediaProbe()

    probe = MediaProbe()
    for s in data.get("streams") or []:
        if not isinstance(s, dict):
            continue
        codec_type = s.get("codec_type")
        if codec_type == "video":
            probe.video.append(_video_stream(s))
        elif codec_type == "audio":
            probe.audio.append(_audio_stream(s))

    fmt = data.get("format")
    if isinstance(fmt, dict):
        probe.format_duration = _duration(fmt.get("duration"))
    return probe


async def probe_media(
    file_path: str, cache: Optional[Dict[tuple, MediaProbe]] = None
) -> MediaProbe:
    """
    ファイルを ffprobe で解析する。

    cache を渡すと結果は (パス, mtime, サイズ) をキーにその辞書へメモ化される。
    ffprobe の失敗は ProbeError として送出する。
    """
    p = Path(file_path)
    try:
        st = p.stat()
    except OSError as e:
        raise ProbeError(f"Cannot access media file: {e}", source=file_path) from e

    key = (str(p.resolve()), int(st.st_mtime), st.st_size)
    if cache is not None and key in cache:
        return cache[key]

    cmd = [
        "ffprobe",
        "-v",
        "error",
        "-show_streams",
        "-show_format",
        "-of",
        "json",
        file_path,
    ]
    try:
        result = await run_ffmpeg_async(cmd)
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError) as e:
        raise ProbeError(f"ffprobe failed: {e}", source=file_path) from e

    probe = parse_probe(result.stdout)
    logger.debug(
        f"[Probe] {file_path}: {len(probe.video)} video / {len(probe.audio)} audio stream(s)"
    )
    if cache is not None:
        cache[key] = probe
    return probe
