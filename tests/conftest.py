import logging
import pathlib
import sys

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))
from playoutgraph.components.config import PlayoutConfig
from playoutgraph.components.media import AudioStream, Media, MediaProbe, VideoStream
from playoutgraph.utils.logger import LOGGER_NAME


@pytest.fixture
def make_config():
    """dict セクションから PlayoutConfig を作るファクトリ。"""

    def _make(**sections):
        return PlayoutConfig.from_dict(sections)

    return _make


@pytest.fixture
def make_probe():
    def _make(video=True, audio_tracks=1, duration=10.0, aspect="16:9", frame_rate="25/1"):
        video_streams = []
        if video:
            video_streams.append(
                VideoStream(
                    width=1024,
                    height=576,
                    frame_rate=frame_rate,
                    aspect_ratio=aspect,
                    field_order="progressive",
                    duration=duration,
                )
            )
        audio_streams = [AudioStream(duration=duration, channels=2) for _ in range(audio_tracks)]
        return MediaProbe(video=video_streams, audio=audio_streams, format_duration=duration)

    return _make


@pytest.fixture
def clip():
    return Media(source="/media/clip.mp4", seek=0.0, out=10.0, duration=10.0)


@pytest.fixture
def log_capture(caplog):
    """playoutgraph ロガーは propagate=False なので caplog のハンドラを直接付ける。"""
    logger = logging.getLogger(LOGGER_NAME)
    caplog.handler.setLevel(logging.DEBUG)
    logger.addHandler(caplog.handler)
    try:
        yield caplog
    finally:
        logger.removeHandler(caplog.handler)
