import asyncio

from playoutgraph.components.filter.drawtext import (
    TextOverlayProvider,
    escape_text,
    text_from_source,
)
from playoutgraph.components.media import Media, ProcessUnit


def test_text_from_source(make_config):
    config = make_config()
    assert text_from_source(config, "/media/news/Evening News.mkv") == "Evening News"
    assert text_from_source(config, "clip.avi") == "clip.avi"


def test_escape_text():
    assert escape_text("10:30") == "10\\:30"
    assert escape_text("100%") == "100\\\\\\%"


def test_filename_caption_with_font(make_config, tmp_path):
    font = tmp_path / "font.ttf"
    font.write_bytes(b"")
    config = make_config(
        text={"add_text": True, "text_from_filename": True, "style": "x=10:y=10", "fontfile": str(font)}
    )
    node = Media(source="/media/Show.mp4")

    result = asyncio.run(TextOverlayProvider().filter_node(config, node))

    assert result == f"drawtext=text='Show':x=10:y=10:fontfile='{font}'"


def test_filename_caption_template(make_config):
    config = make_config(
        text={"text_from_filename": True, "style": "x=0"},
        advanced={"filter": {"drawtext_from_file": "drawtext=text='{}':{}{}:fontsize=30"}},
    )
    result = asyncio.run(TextOverlayProvider().filter_node(config, Media(source="/m/Show.mp4")))
    assert result == "drawtext=text='Show':x=0:fontsize=30"


def test_zmq_filter_uses_stored_text(make_config):
    config = make_config(text={"add_text": True, "zmq_stream_socket": "127.0.0.1:5555"})
    provider = TextOverlayProvider()

    empty = asyncio.run(provider.filter_node(config, Media(source="a.mp4")))
    assert empty == r"zmq=b=tcp\\://'127.0.0.1\:5555',drawtext@dyntext=text=''"

    asyncio.run(provider.update(["fontsize=24", "text='Breaking'"]))
    assert asyncio.run(provider.current()) == ["fontsize=24", "text='Breaking'"]
    result = asyncio.run(provider.filter_node(config, Media(source="a.mp4")))
    assert result == r"zmq=b=tcp\\://'127.0.0.1\:5555',drawtext@dyntext=text='Breaking'"


def test_ingest_uses_server_socket(make_config):
    config = make_config(
        text={"zmq_stream_socket": "127.0.0.1:5555", "zmq_server_socket": "127.0.0.1:5556"}
    )
    node = Media(source="rtmp://live", unit=ProcessUnit.INGEST)
    result = asyncio.run(TextOverlayProvider().filter_node(config, node))
    assert "127.0.0.1\\:5556" in result


def test_no_socket_returns_empty(make_config):
    result = asyncio.run(TextOverlayProvider().filter_node(make_config(), Media(source="a.mp4")))
    assert result == ""
