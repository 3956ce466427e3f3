"""Ordinal size mapping for when no measurement comparison is possible.

Every size of every scale is placed on one universal index (0 = XXXS/00 ...
11 = 4X/20). Brand override tables take precedence over the generic table.
"""
import math
import re
from typing import List, Optional

from .scale_config import (
    DEFAULT_SCALE_CONFIG,
    DENIM_ORDER,
    LETTER_ALIASES,
    LETTER_ORDER,
    NUMERIC_ORDER,
    ScaleConfig,
)
from .size_classifier import ScaleTrack, SizeType, canonical_label, classify, parse_track


FITTED = "fitted"
TRUE_TO_SIZE = "true_to_size"
RELAXED = "relaxed"

_RANGE_RE = re.compile(r"^(\d{1,2})\s*-\s*(\d{1,2})$")


def fit_step(fit_preference: str | None) -> int:
    if fit_preference == FITTED:
        return -1
    if fit_preference == RELAXED:
        return 1
    return 0


def track_sequence(track: ScaleTrack, brand_key: str | None = None, config: ScaleConfig = DEFAULT_SCALE_CONFIG) -> List[str]:
    """Ordered sizes of one track, smallest first."""
    if track == ScaleTrack.LETTER:
        return list(LETTER_ORDER)
    if track == ScaleTrack.NUMERIC:
        return list(NUMERIC_ORDER)
    if track == ScaleTrack.DENIM:
        return list(DENIM_ORDER)
    brand_map = config.brand_map(brand_key)
    if brand_map:
        return sorted(brand_map, key=lambda s: (brand_map[s], int(s) if s.isdigit() else 0))
    return [str(n) for n in range(10)]


def _canonical(size: str) -> str:
    token = canonical_label(size)
    return LETTER_ALIASES.get(token, token)


def shift_size(
    size: str,
    fit_preference: str | None,
    track: ScaleTrack,
    brand_key: str | None = None,
    config: ScaleConfig = DEFAULT_SCALE_CONFIG,
) -> str:
    """Move one step down for fitted, one up for relaxed; unchanged at the ends."""
    step = fit_step(fit_preference)
    if step == 0:
        return size
    sequence = track_sequence(track, brand_key, config)
    token = _canonical(size)
    if token not in sequence:
        return size
    idx = sequence.index(token) + step
    if 0 <= idx < len(sequence):
        return sequence[idx]
    return size


def universal_index(size: str, brand_key: str | None = None, config: ScaleConfig = DEFAULT_SCALE_CONFIG) -> Optional[float]:
    token = canonical_label(size)
    brand_map = config.brand_map(brand_key)
    if token in brand_map:
        return float(brand_map[token])
    if classify(token, brand_key, config) == SizeType.BRAND_SPECIFIC:
        # an unmapped brand ordinal has no place on the US-numeric index
        return None
    canonical = LETTER_ALIASES.get(token, token)
    if canonical in config.universal_size_map:
        return float(config.universal_size_map[canonical])
    m = _RANGE_RE.match(token)
    if m:
        ends = [universal_index(m.group(1), brand_key, config), universal_index(m.group(2), brand_key, config)]
        if all(e is not None for e in ends):
            return sum(ends) / 2
        return None
    try:
        value = float(token)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _closest_by_index(
    target_idx: float,
    candidates: List[str],
    brand_key: str | None,
    config: ScaleConfig,
) -> Optional[str]:
    best: Optional[str] = None
    best_dist = float("inf")
    for cand in candidates:
        idx = universal_index(cand, brand_key, config)
        if idx is None:
            continue
        dist = abs(idx - target_idx)
        if dist < best_dist:
            best, best_dist = cand, dist
    return best


def snap_to_available(
    size: str,
    available_sizes: List[str],
    brand_key: str | None = None,
    config: ScaleConfig = DEFAULT_SCALE_CONFIG,
) -> str:
    """Return the stocked size nearest to ``size`` (the stocked spelling wins)."""
    if not available_sizes:
        return size
    token = canonical_label(size)
    for avail in available_sizes:
        if canonical_label(avail) == token:
            return avail
    idx = universal_index(size, brand_key, config)
    if idx is None:
        return available_sizes[len(available_sizes) // 2]
    return _closest_by_index(idx, available_sizes, brand_key, config) or available_sizes[0]


def convert_to_scale(size: str, target_track: ScaleTrack, config: ScaleConfig = DEFAULT_SCALE_CONFIG) -> Optional[str]:
    """Direct letter<->numeric lookup; ``None`` when no entry applies."""
    token = _canonical(size)
    if target_track == ScaleTrack.LETTER:
        if token in LETTER_ORDER:
            return token
        return config.numeric_to_letter.get(token)
    if target_track == ScaleTrack.NUMERIC:
        if token in NUMERIC_ORDER:
            return token
        return config.letter_to_numeric.get(token)
    return None


def fallback_map(
    anchor_size: str,
    fit_preference: str | None,
    target_scale: str | ScaleTrack | None,
    available_sizes: List[str],
    anchor_brand_key: str | None = None,
    target_brand_key: str | None = None,
    anchor_track: ScaleTrack | None = None,
    config: ScaleConfig = DEFAULT_SCALE_CONFIG,
) -> Optional[str]:
    """Map an anchor size onto the target scale without measurement data.

    Returns ``None`` when neither an index nor a direct conversion exists.
    The fit preference is applied here exactly once.
    """
    target_track = target_scale if isinstance(target_scale, ScaleTrack) else parse_track(target_scale)

    same_track = anchor_track is not None and anchor_track == target_track
    if same_track and anchor_track == ScaleTrack.BRAND_SPECIFIC:
        # brand ordinals are only comparable within one brand
        same_track = anchor_brand_key == target_brand_key
    if same_track:
        shifted = shift_size(anchor_size, fit_preference, target_track, target_brand_key, config)
        return snap_to_available(shifted, available_sizes, target_brand_key, config)

    anchor_idx = universal_index(anchor_size, anchor_brand_key, config)
    if anchor_idx is not None:
        candidates = available_sizes or track_sequence(target_track, target_brand_key, config)
        picked = _closest_by_index(anchor_idx + fit_step(fit_preference), candidates, target_brand_key, config)
        if picked is not None:
            return picked

    if anchor_track in (None, ScaleTrack.LETTER, ScaleTrack.NUMERIC):
        converted = convert_to_scale(anchor_size, target_track, config)
        if converted is not None:
            shifted = shift_size(converted, fit_preference, target_track, target_brand_key, config)
            return snap_to_available(shifted, available_sizes, target_brand_key, config)
    return None
