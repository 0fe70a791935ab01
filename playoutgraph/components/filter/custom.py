"""Split user supplied custom filters into their video and audio parts.

A custom filter marks the end of its video part with ``[c_v_out]`` and the
end of its audio part with ``[c_a_out]``, e.g.
``hue=s=0[c_v_out];volume=0.5[c_a_out]``.
"""

from __future__ import annotations

from typing import Tuple

from ...utils.logger import logger

VIDEO_OUT_LINK = "[c_v_out]"
AUDIO_OUT_LINK = "[c_a_out]"
EMPTY_FILTER = "~"


def _clean(part: str) -> str:
    return part.strip().strip(";,").strip()


def filter_node(channel_id: int, custom_filter: str) -> Tuple[str, str]:
    """Return ``(video_filter, audio_filter)``; missing parts are empty strings."""
    text = (custom_filter or "").strip()
    video_filter = ""
    audio_filter = ""

    if VIDEO_OUT_LINK in text and AUDIO_OUT_LINK in text:
        if text.find(VIDEO_OUT_LINK) < text.find(AUDIO_OUT_LINK):
            video_filter, rest = text.split(VIDEO_OUT_LINK, 1)
            audio_filter = rest.replace(AUDIO_OUT_LINK, "")
        else:
            audio_filter, rest = text.split(AUDIO_OUT_LINK, 1)
            video_filter = rest.replace(VIDEO_OUT_LINK, "")
    elif VIDEO_OUT_LINK in text:
        video_filter = text.replace(VIDEO_OUT_LINK, "")
    elif AUDIO_OUT_LINK in text:
        audio_filter = text.replace(AUDIO_OUT_LINK, "")
    elif text and text != EMPTY_FILTER:
        logger.kv_error(
            f"Custom filter is not well formatted, use correct out link names "
            f"(\"{VIDEO_OUT_LINK}\" and/or \"{AUDIO_OUT_LINK}\"). Filter skipped!",
            kv_pairs={"Channel": channel_id},
        )

    return _clean(video_filter), _clean(audio_filter)
