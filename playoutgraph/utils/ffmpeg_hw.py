"""ハードウェアフィルタ (GPU) とソフトウェアフィルタの橋渡しを判定するヘルパー。"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from ..components.config.model import PlayoutConfig

HW_FILTER_POSTFIX = ("_cuda", "_npp", "_opencl", "_vaapi", "_vulkan", "_qsv")

HW_DOWNLOAD = "hwdownload"
# Used when a chain starts on a hardware decoded input but the first filter is software
HW_DOWNLOAD_INPUT = "hwdownload,format=nv12,"

_SEPARATORS = re.compile(r"[,;]")


def _decoder_params(config: "PlayoutConfig") -> str:
    return config.advanced.decoder.input_param or ""


def has_hw_context(config: "PlayoutConfig") -> bool:
    """デコーダ入力パラメータにハードウェアデコード指定 (-hw...) があるか。"""
    return "-hw" in _decoder_params(config)


def is_hw(filter_str: str) -> bool:
    """フィルタ名がハードウェア版 (_cuda など) か判定する。"""
    return any(p in filter_str for p in HW_FILTER_POSTFIX)


def _chain_tokens(chain: str) -> List[str]:
    parts = _SEPARATORS.split(chain)
    # A trailing separator yields one empty piece which is not a filter
    if parts and parts[-1] == "":
        parts.pop()
    return [p.strip() for p in parts]


def last_is_hw(chain: str) -> bool:
    """チェーン末尾がハードウェアフレームのまま終わっているか判定する。

    Only the last one or two filters are inspected. A hardware filter right
    after an ``hwdownload`` does not count, which keeps the bridge helpers from
    flip-flopping between upload and download.
    """
    if not chain:
        return False

    parts = _chain_tokens(chain)
    if not parts:
        return False

    last = parts[-1]
    if not is_hw(last) or HW_DOWNLOAD in last:
        return False
    if len(parts) == 1:
        return True
    return HW_DOWNLOAD not in parts[-2]


def hw_download(chain: str, filter_str: str) -> str:
    """GPU チェーンから CPU フィルタへ移るときのダウンロードフィルタ名を返す。"""
    if (
        last_is_hw(chain)
        and not is_hw(filter_str)
        and not filter_str.startswith("null[")
        and not filter_str.startswith("[")
    ):
        return HW_DOWNLOAD
    return ""


def hw_upload_str(config: "PlayoutConfig") -> str:
    """デコーダ設定に応じたアップロードフィルタ名を返す。"""
    if "cuda" in _decoder_params(config):
        return "hwupload_cuda"
    return "hwupload"


def hw_upload(config: "PlayoutConfig", chain: str, filter_str: str) -> str:
    """CPU チェーンから GPU フィルタへ移るときのアップロードフィルタ名を返す。"""
    if not last_is_hw(chain) and is_hw(filter_str):
        return hw_upload_str(config)
    return ""
