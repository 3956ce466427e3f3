from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field


FitPreference = Literal["fitted", "true_to_size", "relaxed"]


class AnchorBrandIn(BaseModel):
    brand_key: str
    display_name: str
    size: str = Field(..., min_length=1)


class SizingRowIn(BaseModel):
    size_label: str
    measurements: Optional[Dict[str, Any]] = None
    fit_notes: Optional[str] = None
    brand_key: Optional[str] = None


class TargetBrandIn(BaseModel):
    display_name: Optional[str] = None
    fit_tendency: Optional[str] = None
    size_scale: Optional[str] = "letter"
    available_sizes: List[str] = Field(default_factory=list)


class RecommendRequest(BaseModel):
    anchor_brands: List[AnchorBrandIn] = Field(..., min_length=1, max_length=2)
    fit_preference: FitPreference = "true_to_size"
    target_brand_key: str = Field(..., min_length=1)
    target_category: str = "tops"
    weight: Optional[str] = None
    height: Optional[str] = None
    brand_source: Optional[str] = None
    debug_mode: bool = False

    # Inline data; anything omitted is fetched from the catalog service
    target_brand: Optional[TargetBrandIn] = None
    target_rows: Optional[List[SizingRowIn]] = None
    anchor_rows: Optional[List[SizingRowIn]] = None
    estimated_measurements: Optional[Dict[str, Any]] = None


class Confidence(BaseModel):
    score: int
    reasons: List[str]
    match_method: str


class BrandComparison(BaseModel):
    brand_name: str
    size: str
    fit_tag: str


class RecommendResponse(BaseModel):
    status: Literal["OK", "NEED_MORE_INFO"]
    size: Optional[str] = None
    brand_name: str
    size_scale: Optional[str] = None
    bullets: List[str] = Field(default_factory=list)
    comparisons: List[BrandComparison] = Field(default_factory=list)
    confidence: Confidence
    need_more_info: bool
    ask_for: Optional[str] = None
    reason: Optional[str] = None
    debug: Dict[str, Any] | None = None
