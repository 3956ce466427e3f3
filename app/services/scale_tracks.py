from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .scale_config import DEFAULT_SCALE_CONFIG, ScaleConfig
from .size_classifier import TRACK_PREFERENCE, ScaleTrack, classify, track_of


@dataclass(frozen=True)
class SizingRow:
    size_label: str
    measurements: Optional[Mapping[str, Any]] = None
    fit_notes: Optional[str] = None
    brand_key: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size_label": self.size_label,
            "measurements": dict(self.measurements) if self.measurements else None,
            "fit_notes": self.fit_notes,
        }


@dataclass
class TrackResolution:
    track_used: ScaleTrack
    rows: List[SizingRow] = field(default_factory=list)
    conversion_fallback_used: bool = False
    rows_before: int = 0
    rows_after: int = 0


def partition_rows(
    rows: List[SizingRow],
    brand_key: str | None,
    config: ScaleConfig = DEFAULT_SCALE_CONFIG,
) -> Dict[ScaleTrack, List[SizingRow]]:
    partitions: Dict[ScaleTrack, List[SizingRow]] = {t: [] for t in ScaleTrack}
    for row in rows:
        partitions[track_of(classify(row.size_label, brand_key, config))].append(row)
    return partitions


def resolve_track(
    anchor_track: ScaleTrack,
    partitions: Mapping[ScaleTrack, List[SizingRow]],
    all_rows: List[SizingRow],
) -> TrackResolution:
    """Pick the subset of target rows eligible for comparison with the anchor.

    Any answer other than the anchor's own track sets ``conversion_fallback_used``.
    """
    before = len(all_rows)
    same = partitions.get(anchor_track) or []
    if same:
        return TrackResolution(anchor_track, list(same), False, before, len(same))

    for track in TRACK_PREFERENCE:
        rows = partitions.get(track) or []
        if rows:
            return TrackResolution(track, list(rows), True, before, len(rows))

    if all_rows:
        return TrackResolution(anchor_track, list(all_rows), True, before, before)
    return TrackResolution(anchor_track, [], False, 0, 0)
