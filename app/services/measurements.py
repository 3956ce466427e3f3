"""Turn raw sizing-chart cells into comparable inch ranges.

Chart cells arrive in whatever shape the ingestion step produced: ``{"mid": ..}``,
``{"min": .., "max": ..}``, ``{"value": ..}``, ``{"options": [...]}``, bare
numbers, or free text such as ``"30-32"``, ``"30/32"`` or ``'34"'``. Anything
that does not yield a number is dropped rather than defaulted.
"""
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


CM_PER_INCH = 2.54

_NUMBER = r"\d+(?:\.\d+)?|\.\d+"
_RANGE_RE = re.compile(rf"^({_NUMBER})\s*[-–—]+\s*({_NUMBER})$")
_SLASH_RE = re.compile(rf"^({_NUMBER})(?:\s*/\s*({_NUMBER}))+$")
_FLOAT_RE = re.compile(rf"^({_NUMBER})$")
_UNIT_RE = re.compile(r"(inches|inch|in|cm|\"|”|″)", re.IGNORECASE)


@dataclass(frozen=True)
class NormalizedRange:
    min: float
    max: float
    midpoint: float

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    def scaled(self, factor: float) -> "NormalizedRange":
        return NormalizedRange(self.min * factor, self.max * factor, self.midpoint * factor)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return float(value)


def _point(value: float) -> NormalizedRange:
    return NormalizedRange(value, value, value)


def _span(a: float, b: float) -> NormalizedRange:
    lo, hi = min(a, b), max(a, b)
    return NormalizedRange(lo, hi, (lo + hi) / 2)


def _from_mapping(raw: Mapping[str, Any]) -> Optional[NormalizedRange]:
    mid = _as_number(raw.get("mid"))
    lo = _as_number(raw.get("min"))
    hi = _as_number(raw.get("max"))
    if mid is not None:
        lo = mid if lo is None else lo
        hi = mid if hi is None else hi
        return NormalizedRange(min(lo, mid), max(hi, mid), mid)
    if lo is not None and hi is not None:
        return _span(lo, hi)
    value = _as_number(raw.get("value"))
    if value is not None:
        return _point(value)
    options = raw.get("options")
    if isinstance(options, (list, tuple)) and options:
        parsed = [r for r in (normalize(o) for o in options) if r is not None]
        if parsed:
            return NormalizedRange(
                min(r.min for r in parsed),
                max(r.max for r in parsed),
                sum(r.midpoint for r in parsed) / len(parsed),
            )
    return None


def _from_text(raw: str) -> Optional[NormalizedRange]:
    text = raw.strip().lower()
    if not text:
        return None
    is_cm = "cm" in text
    cleaned = _UNIT_RE.sub("", text).strip()
    result: Optional[NormalizedRange] = None

    m = _RANGE_RE.match(cleaned)
    if m:
        result = _span(float(m.group(1)), float(m.group(2)))
    elif _SLASH_RE.match(cleaned):
        nums = [float(p) for p in cleaned.split("/")]
        result = _span(min(nums), max(nums))
    elif _FLOAT_RE.match(cleaned):
        result = _point(float(cleaned))

    if result is not None and is_cm:
        result = result.scaled(1 / CM_PER_INCH)
    return result


def normalize(raw: Any) -> Optional[NormalizedRange]:
    """Normalize one chart cell into an inch range, or ``None`` if unusable.

    Never raises. A mapping carrying ``unit: "cm"`` or a string mentioning
    ``cm`` is converted to inches.
    """
    if raw is None:
        return None
    if isinstance(raw, Mapping):
        result = _from_mapping(raw)
        unit = raw.get("unit")
        if result is not None and isinstance(unit, str) and unit.strip().lower() == "cm":
            result = result.scaled(1 / CM_PER_INCH)
        return result
    number = _as_number(raw)
    if number is not None:
        return _point(number)
    if isinstance(raw, str):
        return _from_text(raw)
    return None


def normalize_measurements(raw: Optional[Mapping[str, Any]]) -> Dict[str, NormalizedRange]:
    if not raw:
        return {}
    out: Dict[str, NormalizedRange] = {}
    for key, cell in raw.items():
        rng = normalize(cell)
        if rng is not None:
            out[key.lower()] = rng
    return out


def interval_distance(a_min: float, a_max: float, b_min: float, b_max: float) -> float:
    """Gap between two intervals; 0 when they overlap or touch."""
    if a_max < b_min:
        return b_min - a_max
    if b_max < a_min:
        return a_min - b_max
    return 0.0


def overlap_amount(a_min: float, a_max: float, b_min: float, b_max: float) -> float:
    return max(0.0, min(a_max, b_max) - max(a_min, b_min))
