import re
from enum import Enum

from .scale_config import DEFAULT_SCALE_CONFIG, LETTER_ALIASES, LETTER_ORDER, ScaleConfig


class SizeType(str, Enum):
    LETTER = "letter"
    NUMERIC = "numeric"
    NUMERIC_RANGE = "numeric_range"
    DENIM = "denim"
    BRAND_SPECIFIC = "brand_specific"


class ScaleTrack(str, Enum):
    LETTER = "letter"
    NUMERIC = "numeric"
    DENIM = "denim"
    BRAND_SPECIFIC = "brand_specific"


# Preference order when the anchor's own track is not stocked by the target
TRACK_PREFERENCE = [ScaleTrack.LETTER, ScaleTrack.NUMERIC, ScaleTrack.DENIM, ScaleTrack.BRAND_SPECIFIC]

LETTER_SIZES = frozenset(LETTER_ORDER) | frozenset(LETTER_ALIASES)

_DENIM_RE = re.compile(r"^W?(\d{2})$")
_BRAND_ORDINAL_RE = re.compile(r"^\d$")
_NUMERIC_RANGE_RE = re.compile(r"^\d{1,2}\s*-\s*\d{1,2}$")
_INTEGER_RE = re.compile(r"^\d+$")


def clean_label(label: str) -> str:
    return (label or "").strip().upper()


def canonical_label(label: str) -> str:
    """Clean a label and drop the ``W`` prefix from a denim waist (``W28`` -> ``28``)."""
    token = clean_label(label)
    denim = _DENIM_RE.match(token)
    if denim and token.startswith("W") and 22 <= int(denim.group(1)) <= 40:
        return denim.group(1)
    return token


def classify(label: str, brand_key: str | None = None, config: ScaleConfig = DEFAULT_SCALE_CONFIG) -> SizeType:
    """Classify a size label within its brand's vocabulary.

    Unrecognised tokens (one-size, alpha codes) land in the letter bucket.
    """
    token = clean_label(label)
    if token in LETTER_SIZES:
        return SizeType.LETTER
    denim = _DENIM_RE.match(token)
    if denim and 22 <= int(denim.group(1)) <= 40:
        return SizeType.DENIM
    if config.is_brand_specific(brand_key) and _BRAND_ORDINAL_RE.match(token):
        return SizeType.BRAND_SPECIFIC
    if _NUMERIC_RANGE_RE.match(token):
        return SizeType.NUMERIC_RANGE
    if _INTEGER_RE.match(token):
        return SizeType.NUMERIC
    return SizeType.LETTER


def track_of(size_type: SizeType) -> ScaleTrack:
    if size_type in (SizeType.NUMERIC, SizeType.NUMERIC_RANGE):
        return ScaleTrack.NUMERIC
    return ScaleTrack(size_type.value)


def is_compatible(a: SizeType, b: SizeType) -> bool:
    """Denim and brand ordinals only ever match themselves."""
    if a == b:
        return True
    return track_of(a) == ScaleTrack.NUMERIC and track_of(b) == ScaleTrack.NUMERIC


def parse_track(value: str | None, default: ScaleTrack = ScaleTrack.LETTER) -> ScaleTrack:
    """Read a declared brand scale such as ``"numeric"`` or ``"numeric_range"``."""
    if not value:
        return default
    token = value.strip().lower()
    try:
        return track_of(SizeType(token))
    except ValueError:
        return default
