"""Formatting and numeric helpers shared by the filter stages."""

from __future__ import annotations

import math
from fractions import Fraction
from typing import TYPE_CHECKING, Any, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from ..components.config.model import PlayoutConfig


def fmt_value(value: Any) -> str:
    """Render a template argument the way ffmpeg expects to read it.

    Integral floats drop their fractional part (``25.0`` -> ``"25"``), other
    floats use the shortest round-trip representation.
    """
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def custom_format(template: str, args: Sequence[Any]) -> str:
    """Fill ``{}`` / ``{0}`` placeholders of a user filter template.

    ``{}`` consumes the next positional argument, ``{N}`` picks argument N,
    ``{{`` and ``}}`` are literal braces. Placeholders without a matching
    argument are left untouched, so a malformed template never raises.
    """
    values = [fmt_value(a) for a in args]
    out: list = []
    next_arg = 0
    i = 0
    n = len(template)

    while i < n:
        c = template[i]
        if c == "{":
            if template.startswith("{{", i):
                out.append("{")
                i += 2
                continue
            end = template.find("}", i + 1)
            inner = template[i + 1 : end] if end != -1 else None
            if inner == "":
                if next_arg < len(values):
                    out.append(values[next_arg])
                    next_arg += 1
                else:
                    out.append("{}")
                i = end + 1
                continue
            if inner is not None and inner.isdigit():
                idx = int(inner)
                out.append(values[idx] if idx < len(values) else f"{{{inner}}}")
                i = end + 1
                continue
            out.append(c)
            i += 1
        elif c == "}" and template.startswith("}}", i):
            out.append("}")
            i += 2
        else:
            out.append(c)
            i += 1

    return "".join(out)


def is_close(a: float, b: float, tolerance: float) -> bool:
    return abs(a - b) < tolerance


def fraction(value: float, max_denominator: int) -> Tuple[int, int]:
    """Best rational approximation of ``value`` with a bounded denominator."""
    try:
        frac = Fraction(value).limit_denominator(max_denominator)
    except (ValueError, OverflowError, TypeError):
        return 0, 1
    return frac.numerator, frac.denominator


def parse_ratio(text: Optional[str], sep: str) -> Optional[float]:
    """Parse ``"a<sep>b"`` (or a plain number) into a float, ``None`` on failure."""
    if text is None:
        return None
    raw = str(text).strip()
    if not raw:
        return None
    try:
        if sep in raw:
            num, den = raw.split(sep, 1)
            den_f = float(den)
            if den_f == 0:
                return None
            return float(num) / den_f
        return float(raw)
    except ValueError:
        return None


def calc_aspect(config: "PlayoutConfig", aspect_string: Optional[str]) -> float:
    """Source display aspect from a ``"w:h"`` probe value.

    Missing or unreadable values are treated as already matching the target
    aspect, so no pad/setdar is generated for them.
    """
    aspect = parse_ratio(aspect_string, ":")
    if aspect is None or aspect <= 0:
        return config.processing.aspect
    return aspect


def fps_calc(frame_rate: Optional[str], default: float = 1.0) -> float:
    """Frame rate from a ``"num/den"`` probe value, ``default`` when unreadable."""
    fps = parse_ratio(frame_rate, "/")
    if fps is None:
        return default
    return fps


def to_float(value: Any, default: float = 0.0) -> float:
    """``float(value)``, or ``default`` for unreadable and non-finite values."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def to_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
