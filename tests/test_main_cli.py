import asyncio
import json

import yaml

from playoutgraph import main as cli_main
from playoutgraph.components.media import MediaProbe, VideoStream


def _write_inputs(tmp_path, config=None, program=None):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump(config or {"general": {"channel_id": 7}}), encoding="utf-8")
    playlist_path = tmp_path / "playlist.json"
    playlist_path.write_text(
        json.dumps(
            {
                "channel": "Channel 7",
                "date": "2026-10-19",
                "program": program
                or [
                    {"source": "/media/a.mp4", "in": 0, "out": 10, "duration": 10},
                    {"source": "color=c=#121212:s=1024x576:d=10", "in": 0, "out": 10, "duration": 10},
                ],
            }
        ),
        encoding="utf-8",
    )
    return str(config_path), str(playlist_path)


def test_cli_prints_json(tmp_path, capsys):
    config_path, playlist_path = _write_inputs(tmp_path)

    rc = asyncio.run(cli_main.main([config_path, playlist_path, "--json"]))

    assert rc == 0
    results = json.loads(capsys.readouterr().out)
    assert [r["source"] for r in results] == ["/media/a.mp4", "color=c=#121212:s=1024x576:d=10"]
    assert results[0]["filter"][0] == "-filter_complex"
    assert results[1]["filter"][1].endswith("[1:a:0]anull[aout0]")
    assert results[1]["map"] == ["-map", "[vout0]", "-map", "[aout0]"]


def test_cli_prints_shell_arguments(tmp_path, capsys):
    config_path, playlist_path = _write_inputs(tmp_path)

    rc = asyncio.run(cli_main.main([config_path, playlist_path]))

    out = capsys.readouterr().out.splitlines()
    assert rc == 0
    assert out[0] == "# /media/a.mp4"
    assert out[1].startswith("-filter_complex '[0:v:0]fps=25,null[vout0];")


def test_cli_validation_error_returns_1(tmp_path):
    config_path, playlist_path = _write_inputs(tmp_path, config={"output": {"mode": "udp"}})
    assert asyncio.run(cli_main.main([config_path, playlist_path])) == 1


def test_cli_probe_uses_ffprobe_results(tmp_path, capsys, monkeypatch):
    media = tmp_path / "clip.mp4"
    media.write_bytes(b"\x00")
    config_path, playlist_path = _write_inputs(
        tmp_path, program=[{"source": str(media), "in": 0, "out": 10, "duration": 10}]
    )
    probed = []

    async def fake_probe(path, cache=None):
        assert isinstance(cache, dict)
        probed.append(path)
        return MediaProbe(
            video=[VideoStream(width=1024, height=576, frame_rate="25/1", aspect_ratio="16:9", duration=10.0)]
        )

    monkeypatch.setattr(cli_main, "probe_media", fake_probe)

    rc = asyncio.run(cli_main.main([config_path, playlist_path, "--probe", "--json"]))

    assert rc == 0
    assert probed == [str(media)]
    result = json.loads(capsys.readouterr().out)[0]
    assert result["filter"][1].startswith("[0:v:0]null[vout0];")
