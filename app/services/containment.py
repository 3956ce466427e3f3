"""Cross-brand matching by measurement-range containment.

For every target size the anchor's midpoint on each shared dimension is tested
against the size's published range (inclusive at both ends). Sizes are ranked
by how many dimensions contain the anchor, then by how many were compared.
Dimensions missing on either side are skipped, never counted as failures.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .measurements import NormalizedRange, interval_distance, normalize_measurements, overlap_amount
from .scale_tracks import SizingRow


CATEGORY_DIMENSIONS: Dict[str, List[str]] = {
    "tops": ["bust", "waist"],
    "bottoms": ["waist", "hips"],
    "denim": ["waist", "hips", "rise"],
    "dresses": ["bust", "waist", "hips"],
    "swim": ["bust", "waist", "hips", "underbust"],
    "outerwear": ["bust", "waist", "shoulders"],
    "sports_bras": ["bust", "underbust"],
    "bodysuits": ["bust", "waist", "hips"],
    "jumpsuits": ["bust", "waist", "hips"],
    # legacy aliases
    "jeans": ["waist", "hips", "rise"],
    "shorts": ["waist", "hips"],
    "skirts": ["waist", "hips"],
    "swimwear": ["bust", "waist", "hips", "underbust"],
    "sports bras": ["bust", "underbust"],
}
DEFAULT_DIMENSIONS: List[str] = ["bust", "waist", "hips"]

METHOD_EXACT = "exact"
METHOD_BETWEEN = "between"
METHOD_PARTIAL = "partial"
METHOD_NEAREST = "nearest"
METHOD_NONE = "none"


def priority_dimensions(category: str | None) -> List[str]:
    key = (category or "").strip().lower()
    return list(CATEGORY_DIMENSIONS.get(key, DEFAULT_DIMENSIONS))


@dataclass
class DimensionComparison:
    dimension: str
    anchor_midpoint: float
    target_min: float
    target_max: float
    target_midpoint: float
    contained: bool
    deviation: float
    overlap: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dimension": self.dimension,
            "anchor_midpoint": self.anchor_midpoint,
            "target_min": self.target_min,
            "target_max": self.target_max,
            "target_midpoint": self.target_midpoint,
            "contained": self.contained,
            "deviation": round(self.deviation, 3),
            "overlap": round(self.overlap, 3),
        }


@dataclass
class SizeScore:
    size: str
    score: float
    matched: int
    total_overlap: float = 0.0
    contained: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "score": round(self.score, 3),
            "matched": self.matched,
            "total_overlap": round(self.total_overlap, 3),
            "contained": self.contained,
        }


@dataclass
class ContainmentResult:
    exact_match: Optional[str] = None
    between_sizes: Optional[Tuple[str, str]] = None
    match_explanation: str = ""
    per_size_details: Dict[str, List[DimensionComparison]] = field(default_factory=dict)
    target_row_used: Optional[SizingRow] = None
    fit_notes: Optional[str] = None
    method: str = METHOD_NONE
    scores: List[SizeScore] = field(default_factory=list)
    anchor_midpoints: Dict[str, float] = field(default_factory=dict)
    primary_dimension: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.exact_match is not None or self.between_sizes is not None

    def score_for(self, size: str) -> Optional[SizeScore]:
        for s in self.scores:
            if s.size == size:
                return s
        return None


def sort_scores(entries: List[SizeScore]) -> List[SizeScore]:
    """Lower score first, then more matched dimensions, then more overlap."""
    return sorted(entries, key=lambda e: (e.score, -e.matched, -e.total_overlap))


def _compare(dimension: str, anchor: NormalizedRange, target: NormalizedRange) -> DimensionComparison:
    return DimensionComparison(
        dimension=dimension,
        anchor_midpoint=anchor.midpoint,
        target_min=target.min,
        target_max=target.max,
        target_midpoint=target.midpoint,
        contained=target.contains(anchor.midpoint),
        deviation=interval_distance(anchor.min, anchor.max, target.min, target.max),
        overlap=overlap_amount(anchor.min, anchor.max, target.min, target.max),
    )


def _dimensions(category: str | None, anchor: Mapping[str, NormalizedRange]) -> List[str]:
    dims = priority_dimensions(category)
    dims.extend(k for k in anchor if k not in dims)
    return dims


def _no_match(explanation: str, **kwargs: Any) -> ContainmentResult:
    return ContainmentResult(match_explanation=explanation, method=METHOD_NONE, **kwargs)


def match(
    anchor_measurements: Optional[Mapping[str, Any]],
    target_rows: List[SizingRow],
    category: str | None,
) -> ContainmentResult:
    anchor = normalize_measurements(anchor_measurements)
    dims = [d for d in _dimensions(category, anchor) if d in anchor]
    anchor_mids = {d: anchor[d].midpoint for d in dims}
    if not dims:
        return _no_match("No usable anchor measurements")

    candidates: List[Tuple[SizingRow, Dict[str, NormalizedRange]]] = []
    for row in target_rows:
        ranges = normalize_measurements(row.measurements)
        if ranges:
            candidates.append((row, ranges))

    per_size: Dict[str, List[DimensionComparison]] = {}
    ranked: List[Tuple[int, int, SizingRow]] = []
    scores: List[SizeScore] = []
    for row, ranges in candidates:
        details = [_compare(d, anchor[d], ranges[d]) for d in dims if d in ranges]
        per_size[row.size_label] = details
        if not details:
            continue
        contained = sum(1 for c in details if c.contained)
        ranked.append((contained, len(details), row))
        scores.append(
            SizeScore(
                size=row.size_label,
                score=sum(c.deviation for c in details) / len(details),
                matched=len(details),
                total_overlap=sum(c.overlap for c in details),
                contained=contained,
            )
        )

    scores = sort_scores(scores)
    common = {"per_size_details": per_size, "scores": scores, "anchor_midpoints": anchor_mids}
    if not ranked:
        return _no_match("No target size shares a measured dimension with the anchor", **common)

    # sorted() is stable, so equal ranks keep chart order
    ranked.sort(key=lambda r: (-r[0], -r[1]))
    best_contained, best_checked, best_row = ranked[0]

    if best_contained > 0 and best_contained == best_checked:
        return ContainmentResult(
            exact_match=best_row.size_label,
            match_explanation=f"All {best_checked} measured dimension(s) fall within size {best_row.size_label}",
            target_row_used=best_row,
            fit_notes=best_row.fit_notes,
            method=METHOD_EXACT,
            **common,
        )

    if best_contained > 0:
        second = ranked[1] if len(ranked) > 1 else None
        if second is not None and second[0] > 0:
            second_row = second[2]
            return ContainmentResult(
                between_sizes=(best_row.size_label, second_row.size_label),
                match_explanation=(
                    f"Measurements split between {best_row.size_label} and {second_row.size_label}: "
                    f"{best_contained} of {best_checked} dimension(s) fit {best_row.size_label}"
                ),
                target_row_used=best_row,
                fit_notes=best_row.fit_notes,
                method=METHOD_BETWEEN,
                **common,
            )
        return ContainmentResult(
            exact_match=best_row.size_label,
            match_explanation=(
                f"Partial match: {best_contained} of {best_checked} dimension(s) fall within "
                f"size {best_row.size_label}"
            ),
            target_row_used=best_row,
            fit_notes=best_row.fit_notes,
            method=METHOD_PARTIAL,
            **common,
        )

    return _nearest(dims, anchor, candidates, common)


def _nearest(
    dims: List[str],
    anchor: Mapping[str, NormalizedRange],
    candidates: List[Tuple[SizingRow, Dict[str, NormalizedRange]]],
    common: Dict[str, Any],
) -> ContainmentResult:
    for dim in dims:
        with_dim = [(row, ranges[dim]) for row, ranges in candidates if dim in ranges]
        if not with_dim:
            continue
        target = anchor[dim].midpoint
        with_dim.sort(key=lambda c: abs(c[1].midpoint - target))
        closest = with_dim[0][0]
        if len(with_dim) == 1:
            return ContainmentResult(
                exact_match=closest.size_label,
                match_explanation=f"No size contains the anchor; {closest.size_label} is closest on {dim}",
                target_row_used=closest,
                fit_notes=closest.fit_notes,
                method=METHOD_NEAREST,
                primary_dimension=dim,
                **common,
            )
        runner_up = with_dim[1][0]
        return ContainmentResult(
            between_sizes=(closest.size_label, runner_up.size_label),
            match_explanation=(
                f"No size contains the anchor; closest on {dim} are "
                f"{closest.size_label} and {runner_up.size_label}"
            ),
            target_row_used=closest,
            fit_notes=closest.fit_notes,
            method=METHOD_NEAREST,
            primary_dimension=dim,
            **common,
        )
    return _no_match("No comparable measurement data", **common)
