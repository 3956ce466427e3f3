from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import structlog

from ..config import Settings, settings as default_settings
from .containment import ContainmentResult, match, priority_dimensions
from .fallback import (
    FITTED,
    TRUE_TO_SIZE,
    fallback_map,
    fit_step,
    shift_size,
    snap_to_available,
    universal_index,
)
from .llm import FitExplainer
from .measurements import normalize
from .scale_config import DEFAULT_SCALE_CONFIG, ScaleConfig
from .scale_tracks import SizingRow, partition_rows, resolve_track
from .size_classifier import canonical_label, classify, clean_label, is_compatible, parse_track, track_of


logger = structlog.get_logger("sizebridge.recommender")

EXTREME_SIZES = {"XXXS", "XXS", "00"}


@dataclass(frozen=True)
class AnchorSize:
    brand_key: str
    display_name: str
    size: str


@dataclass
class TargetBrand:
    brand_key: str
    display_name: str | None = None
    size_scale: str | None = "letter"
    available_sizes: List[str] = field(default_factory=list)
    fit_tendency: str | None = None

    @property
    def name(self) -> str:
        if self.display_name:
            return self.display_name
        return " ".join(w.capitalize() for w in self.brand_key.split("_"))


@dataclass
class ConfidenceResult:
    score: int
    reasons: List[str]
    match_method: str
    coverage: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "reasons": self.reasons, "match_method": self.match_method}


@dataclass
class SizeDecision:
    size: Optional[str]
    confidence: ConfidenceResult
    need_more_info: bool = False
    ask_for: Optional[str] = None
    reason: Optional[str] = None
    fit_notes: Optional[str] = None
    trace: Dict[str, Any] = field(default_factory=dict)


def compute_confidence(
    has_anchor_measurements: bool,
    has_target_rows: bool,
    containment: Optional[ContainmentResult],
    used_fallback: bool,
    used_estimated: bool,
    conversion_fallback: bool,
) -> ConfidenceResult:
    reasons: List[str] = []
    score = 100
    method = "measurement"

    coverage = 0
    deviation: Optional[float] = None
    total = 0
    if containment is not None:
        total = len(containment.anchor_midpoints)
        if containment.matched and containment.target_row_used is not None:
            best = containment.score_for(containment.target_row_used.size_label)
            if best is not None:
                coverage = best.matched
                deviation = best.score

    if used_fallback:
        score -= 40
        method = "fallback_index"
        reasons.append("No usable measurement match: used universal index mapping")
    if not has_anchor_measurements:
        score -= 30
        reasons.append("No anchor measurements available")
    if not has_target_rows:
        score -= 25
        reasons.append("No target brand sizing chart")

    if coverage < 2:
        score -= 30
        reasons.append(f"Only {coverage} measurement dimension(s) matched: need at least 2")
    elif coverage < total:
        score -= round((1 - coverage / total) * 20)
        reasons.append(f"Only {coverage}/{total} measurement dimensions matched")

    if deviation is not None:
        distance_score = min(deviation / 5, 1)
        if distance_score > 0.4:
            score -= min(25, round(distance_score * 25))
            reasons.append(f"Average measurement deviation: {deviation:.1f} inches")

    if used_estimated:
        score -= 10
        reasons.append("Used estimated body measurements")
    if conversion_fallback:
        score -= 10
        reasons.append("Target brand has no sizes on the anchor's scale: compared across scales")

    score = max(0, min(100, score))
    if not reasons:
        reasons.append("High confidence: full measurement match")
    return ConfidenceResult(score=score, reasons=reasons, match_method=method, coverage=coverage)


def generate_comparisons(
    anchors: List[AnchorSize],
    target: TargetBrand,
    recommended_size: str,
    config: ScaleConfig = DEFAULT_SCALE_CONFIG,
) -> List[Dict[str, str]]:
    comparisons: List[Dict[str, str]] = []
    target_idx = universal_index(recommended_size, target.brand_key, config)
    for anchor in anchors:
        anchor_idx = universal_index(anchor.size, anchor.brand_key, config)
        fit_tag = "true to size"
        if anchor_idx is not None and target_idx is not None:
            if target_idx > anchor_idx:
                fit_tag = "runs small"
            elif target_idx < anchor_idx:
                fit_tag = "runs large"
        comparisons.append({"brand_name": anchor.display_name, "size": anchor.size, "fit_tag": fit_tag})
    comparisons.append(
        {
            "brand_name": target.name,
            "size": recommended_size,
            "fit_tag": (target.fit_tendency or "true_to_size").replace("_", " "),
        }
    )
    return comparisons


class Recommender:
    def __init__(
        self,
        scale_config: ScaleConfig = DEFAULT_SCALE_CONFIG,
        explainer: FitExplainer | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.config = scale_config
        self.explainer = explainer or FitExplainer()
        self.settings = settings or default_settings

    def _anchor_measurements(
        self,
        anchors: List[AnchorSize],
        anchor_rows: List[SizingRow],
        estimated: Optional[Mapping[str, Any]],
    ) -> Tuple[Dict[str, Any], Optional[SizingRow], bool]:
        """Merge anchor chart rows; later sources only fill missing dimensions."""
        merged: Dict[str, Any] = {}
        chosen: Optional[SizingRow] = None

        def fill(source: Mapping[str, Any]) -> bool:
            added = False
            for key, cell in source.items():
                k = key.lower()
                if k not in merged and normalize(cell) is not None:
                    merged[k] = cell
                    added = True
            return added

        for anchor in anchors:
            anchor_type = classify(anchor.size, anchor.brand_key, self.config)
            for row in anchor_rows:
                if row.brand_key not in (None, anchor.brand_key) or not row.measurements:
                    continue
                if canonical_label(row.size_label) != canonical_label(anchor.size):
                    continue
                if not is_compatible(classify(row.size_label, anchor.brand_key, self.config), anchor_type):
                    continue
                fill(row.measurements)
                if chosen is None:
                    chosen = row
                break

        used_estimated = bool(estimated) and fill(estimated)
        return merged, chosen, used_estimated

    def _pick_between(self, pair: Tuple[str, str], fit_preference: str, brand_key: str) -> str:
        best, second = pair
        if fit_step(fit_preference) == 0:
            return best
        # both sizes belong to the target brand, so they share one index table
        best_idx = universal_index(best, brand_key, self.config)
        second_idx = universal_index(second, brand_key, self.config)
        if best_idx is None or second_idx is None or best_idx == second_idx:
            return best
        smaller, larger = (best, second) if best_idx < second_idx else (second, best)
        return smaller if fit_preference == FITTED else larger

    def decide(
        self,
        anchors: List[AnchorSize],
        fit_preference: str | None,
        target: TargetBrand,
        category: str | None,
        anchor_rows: List[SizingRow] | None = None,
        target_rows: List[SizingRow] | None = None,
        estimated_measurements: Optional[Mapping[str, Any]] = None,
        brand_source: str | None = None,
    ) -> SizeDecision:
        """Pick a target size. Pure: all chart data must already be fetched."""
        fit = fit_preference or TRUE_TO_SIZE
        category = (category or "tops").strip().lower()
        dims = priority_dimensions(category)
        anchor_rows = anchor_rows or []
        target_rows = target_rows or []
        available = list(target.available_sizes or [])
        anchor = anchors[0]
        anchor_type = classify(anchor.size, anchor.brand_key, self.config)
        anchor_track = track_of(anchor_type)

        trace: Dict[str, Any] = {
            "category": category,
            "dimensions": dims,
            "anchor_brand": anchor.display_name or anchor.brand_key,
            "anchor_size": anchor.size,
            "anchor_size_type": anchor_type.value,
            "resolved_track": anchor_track.value,
            "target_brand_key": target.brand_key,
            "target_size_scale": target.size_scale,
            "available_sizes": available,
            "fit_preference": fit,
            "same_brand": anchor.brand_key == target.brand_key,
        }

        if anchor.brand_key == target.brand_key:
            size = shift_size(anchor.size, fit, anchor_track, anchor.brand_key, self.config)
            size = snap_to_available(size, available, target.brand_key, self.config)
            trace.update(match_method="same_brand", fit_shift_applied=fit_step(fit) != 0, used_fallback=False)
            confidence = ConfidenceResult(100, ["Same brand: matched to your own size"], "same_brand")
            return SizeDecision(size=size, confidence=confidence, trace=trace)

        anchor_ms, anchor_row, used_estimated = self._anchor_measurements(anchors, anchor_rows, estimated_measurements)
        resolution = resolve_track(anchor_track, partition_rows(target_rows, target.brand_key, self.config), target_rows)

        containment: Optional[ContainmentResult] = None
        if anchor_ms and resolution.rows:
            containment = match(anchor_ms, resolution.rows, category)

        size: Optional[str] = None
        fit_notes: Optional[str] = None
        fit_shift_applied = False
        used_fallback = False
        if containment is not None and containment.matched:
            fit_notes = containment.fit_notes
            if containment.between_sizes:
                size = self._pick_between(containment.between_sizes, fit, target.brand_key)
            else:
                size = shift_size(containment.exact_match, fit, resolution.track_used, target.brand_key, self.config)
                fit_shift_applied = size != containment.exact_match
        else:
            used_fallback = True
            size = fallback_map(
                anchor.size,
                fit,
                target.size_scale,
                available,
                anchor.brand_key,
                target.brand_key,
                anchor_track,
                self.config,
            )
            fit_shift_applied = fit_step(fit) != 0 and size is not None

        if size is not None:
            on_track = [
                s for s in available
                if track_of(classify(s, target.brand_key, self.config)) == resolution.track_used
            ]
            size = snap_to_available(size, on_track or available, target.brand_key, self.config)

        confidence = compute_confidence(
            has_anchor_measurements=bool(anchor_ms),
            has_target_rows=bool(target_rows),
            containment=containment,
            used_fallback=used_fallback,
            used_estimated=used_estimated,
            conversion_fallback=resolution.conversion_fallback_used,
        )

        anchor_mids = containment.anchor_midpoints if containment else {}
        trace.update(
            target_track_used=resolution.track_used.value,
            conversion_fallback_used=resolution.conversion_fallback_used,
            target_rows_before_filter=resolution.rows_before,
            target_rows_after_filter=resolution.rows_after,
            anchor_row_chosen=anchor_row.to_dict() if anchor_row else None,
            anchor_measurements=anchor_mids,
            missing_dimensions=[d for d in dims if d not in anchor_mids],
            match_method=containment.method if containment and containment.matched else "fallback_index",
            match_explanation=containment.match_explanation if containment else "No measurement comparison possible",
            between_sizes=list(containment.between_sizes) if containment and containment.between_sizes else None,
            candidates=[s.to_dict() for s in containment.scores] if containment else [],
            per_size_details={
                k: [c.to_dict() for c in v] for k, v in containment.per_size_details.items()
            } if containment else {},
            target_row_used=containment.target_row_used.to_dict() if containment and containment.target_row_used else None,
            used_fallback=used_fallback,
            used_estimated_measurements=used_estimated,
            fit_shift_applied=fit_shift_applied,
            target_scale_track=parse_track(target.size_scale).value,
        )

        decision = SizeDecision(size=size, confidence=confidence, fit_notes=fit_notes, trace=trace)
        self._apply_guardrails(decision, dims, brand_source)
        return decision

    def _apply_guardrails(self, decision: SizeDecision, dims: List[str], brand_source: str | None) -> None:
        conf = decision.confidence
        s = self.settings
        reason: Optional[str] = None
        if decision.size is None:
            reason = "Not enough sizing data to map this size"
        elif conf.coverage < s.min_coverage:
            reason = "Not enough measurement data to make a confident recommendation"
        elif conf.score < s.min_confidence:
            reason = f"Confidence too low ({conf.score}%) for a reliable recommendation"
        elif clean_label(decision.size) in EXTREME_SIZES and conf.score < s.extreme_size_min_confidence:
            reason = f"Extreme size ({decision.size}) with insufficient confidence ({conf.score}%)"
            conf.reasons.append("Blocked extreme size: confidence below threshold")
        elif brand_source == "fallback" and conf.score < s.detected_brand_min_confidence:
            reason = "Could not confidently identify the brand on this page"
            conf.reasons.append("Brand detection fell back: confidence threshold raised")

        if reason is not None:
            decision.need_more_info = True
            decision.reason = reason
            decision.ask_for = dims[0]
            decision.trace["candidate_size"] = decision.size
            decision.size = None
        decision.trace["need_more_info"] = decision.need_more_info

    async def recommend(
        self,
        anchors: List[AnchorSize],
        fit_preference: str | None,
        target: TargetBrand,
        category: str | None,
        anchor_rows: List[SizingRow] | None = None,
        target_rows: List[SizingRow] | None = None,
        estimated_measurements: Optional[Mapping[str, Any]] = None,
        brand_source: str | None = None,
    ) -> Dict[str, Any]:
        decision = self.decide(
            anchors,
            fit_preference,
            target,
            category,
            anchor_rows=anchor_rows,
            target_rows=target_rows,
            estimated_measurements=estimated_measurements,
            brand_source=brand_source,
        )
        fit = fit_preference or TRUE_TO_SIZE

        if decision.need_more_info or decision.confidence.score < self.settings.min_confidence:
            logger.warning(
                "low_confidence",
                target_brand=target.brand_key,
                category=decision.trace.get("category"),
                anchor_brand=anchors[0].brand_key,
                anchor_size=anchors[0].size,
                score=decision.confidence.score,
                coverage=decision.confidence.coverage,
                reason=decision.reason or "; ".join(decision.confidence.reasons),
            )

        if decision.need_more_info:
            return {
                "status": "NEED_MORE_INFO",
                "size": None,
                "brand_name": target.name,
                "size_scale": target.size_scale,
                "bullets": [],
                "comparisons": [],
                "confidence": decision.confidence.to_dict(),
                "need_more_info": True,
                "ask_for": decision.ask_for,
                "reason": decision.reason,
                "trace": decision.trace,
            }

        bullets = await self.explainer.generate_explanation(
            {
                "anchor_brands": [{"display_name": a.display_name, "size": a.size} for a in anchors],
                "target_brand": target.name,
                "recommended_size": decision.size,
                "fit_preference": fit,
                "fit_notes": decision.fit_notes,
                "target_fit_tendency": target.fit_tendency,
            }
        )
        logger.info(
            "recommendation_made",
            target_brand=target.brand_key,
            size=decision.size,
            method=decision.trace.get("match_method"),
            score=decision.confidence.score,
        )
        return {
            "status": "OK",
            "size": decision.size,
            "brand_name": target.name,
            "size_scale": target.size_scale,
            "bullets": bullets,
            "comparisons": generate_comparisons(anchors, target, decision.size, self.config),
            "confidence": decision.confidence.to_dict(),
            "need_more_info": False,
            "ask_for": None,
            "reason": None,
            "trace": decision.trace,
        }
