"""コマンドラインからプレイリスト各項目の ffmpeg フィルタ引数を生成するエントリポイント。"""

import argparse
import asyncio
import json
import shlex
import sys
import time
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from playoutgraph.components.config import PlayoutConfig, load_playout_config
from playoutgraph.components.filter import TextOverlayProvider, filter_chains
from playoutgraph.components.media import Media, MediaProbe
from playoutgraph.components.playlist import load_playlist
from playoutgraph.exceptions import ProbeError, ValidationError
from playoutgraph.utils.ffmpeg_probe import probe_media
from playoutgraph.utils.logger import (
    KVLogger,
    get_logger,
    setup_logging,
    shutdown_logging,
    time_log,
)

logger: KVLogger = get_logger()


async def _probe_item(node: Media, cache: Dict[tuple, MediaProbe]) -> None:
    """ファイルが存在する項目だけ ffprobe し、失敗時は警告して続行する。"""
    if node.is_color_source() or not Path(node.source).is_file():
        logger.debug(f"[Probe] Skipping non-file source: {node.source}")
    else:
        try:
            node.probe = await probe_media(node.source, cache)
        except ProbeError as e:
            logger.kv_warning(str(e), kv_pairs={"Source": node.source})

    if node.has_audio_file():
        try:
            audio_probe = await probe_media(node.audio, cache)
        except ProbeError as e:
            logger.kv_warning(str(e), kv_pairs={"Source": node.audio})
        else:
            if audio_probe.format_duration is not None:
                node.duration_audio = audio_probe.format_duration


async def _build_item(
    config: PlayoutConfig,
    node: Media,
    provider: TextOverlayProvider,
    progress: tqdm,
) -> Dict[str, Any]:
    graph = await filter_chains(config, node, provider)
    progress.update(1)
    return {"source": node.source, "filter": graph.cmd(), "map": graph.map()}


@time_log(logger)
async def build_playlist(
    config: PlayoutConfig, program: List[Media], probe: bool = False
) -> List[Dict[str, Any]]:
    """全項目のフィルタグラフを並行して構築する。"""
    if probe:
        # One cache per run; items sharing a file are probed once
        cache: Dict[tuple, MediaProbe] = {}
        await asyncio.gather(*(_probe_item(node, cache) for node in program))

    provider = TextOverlayProvider()
    with tqdm(total=len(program), desc="Filter graphs", unit="item", leave=False) as progress:
        return list(
            await asyncio.gather(
                *(_build_item(config, node, provider, progress) for node in program)
            )
        )


def _print_results(results: List[Dict[str, Any]], as_json: bool) -> None:
    if as_json:
        print(json.dumps(results, ensure_ascii=False, indent=2))
        return
    for item in results:
        print(f"# {item['source']}")
        print(shlex.join(item["filter"] + item["map"]))


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Print ffmpeg filter_complex and map arguments for a playout playlist."
    )
    parser.add_argument("config_path", type=str, help="Path to the channel YAML configuration.")
    parser.add_argument("playlist_path", type=str, help="Path to the JSON playlist.")
    parser.add_argument(
        "-c",
        "--config-override",
        action="append",
        default=[],
        help="Additional YAML file merged over the configuration. May be repeated.",
    )
    parser.add_argument(
        "--probe",
        action="store_true",
        help="Run ffprobe on every source to get stream information.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the results as JSON instead of shell-quoted arguments.",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="If set, outputs logs in machine-readable JSON format.",
    )
    parser.add_argument(
        "--log-kv",
        action="store_true",
        help="If set, outputs logs in human-readable Key-Value pair format.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> int:
    """コマンドライン引数を解析し、各項目の引数を出力する。"""
    args = _parse_args(argv)
    setup_logging(log_json=args.log_json, log_kv=args.log_kv, debug_mode=args.debug)

    start_time = time.time()
    try:
        config = load_playout_config(args.config_path, args.config_override)
        # The configuration may ask for a file log or another level
        setup_logging(
            log_json=args.log_json or config.logging.log_json,
            log_kv=args.log_kv or config.logging.log_kv,
            debug_mode=args.debug,
            log_path=config.logging.path,
            level=config.logging.level,
        )
        playlist = load_playlist(args.playlist_path)
        logger.kv_info(
            f"Building filter graphs for {len(playlist.program)} item(s).",
            kv_pairs={"Channel": config.general.channel_id, "Date": playlist.date},
        )

        results = await build_playlist(config, playlist.program, probe=args.probe)
        _print_results(results, args.json)
        return 0
    except ValidationError as e:
        logger.kv_error(
            f"Validation Error: {e.message}",
            kv_pairs={
                "Event": "ValidationError",
                "Message": e.message,
                "Line": e.line_number,
                "Column": e.column_number,
            },
        )
        return 1
    except Exception as e:
        logger.kv_error(
            f"An unexpected error occurred: {e}",
            kv_pairs={
                "Event": "UnexpectedError",
                "Message": str(e),
                "Traceback": traceback.format_exc(),
            },
        )
        return 1
    finally:
        elapsed_time = time.time() - start_time
        logger.kv_debug(
            f"Total execution time: {elapsed_time:.2f} seconds.",
            kv_pairs={"Event": "TotalExecutionTime", "Duration": f"{elapsed_time:.2f}s"},
        )
        shutdown_logging()


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
