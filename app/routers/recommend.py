import asyncio
from typing import Any, Dict, List, Optional

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException

from ..schemas.recommend import RecommendRequest, RecommendResponse, SizingRowIn
from ..security import verify_api_key
from ..services.body_api import BodyApiClient
from ..services.catalog_api import CatalogApiClient
from ..services.recommender import AnchorSize, Recommender, TargetBrand
from ..services.scale_tracks import SizingRow


logger = structlog.get_logger("sizebridge.recommend")

router = APIRouter(prefix="/recommend", tags=["recommend"], dependencies=[Depends(verify_api_key)])


def get_catalog_client() -> CatalogApiClient:
    return CatalogApiClient()


def get_body_client() -> BodyApiClient:
    return BodyApiClient()


def get_recommender() -> Recommender:
    return Recommender()


def _rows(raw: List[Dict[str, Any]] | List[SizingRowIn]) -> List[SizingRow]:
    rows: List[SizingRow] = []
    for r in raw:
        data = r.model_dump() if isinstance(r, SizingRowIn) else r
        if not data.get("size_label"):
            continue
        measurements = data.get("measurements")
        rows.append(
            SizingRow(
                size_label=str(data["size_label"]),
                measurements=measurements if isinstance(measurements, dict) else None,
                fit_notes=data.get("fit_notes"),
                brand_key=data.get("brand_key"),
            )
        )
    return rows


async def _load_target(req: RecommendRequest, catalog: CatalogApiClient) -> TargetBrand:
    if req.target_brand is not None:
        info: Optional[Dict[str, Any]] = req.target_brand.model_dump()
    else:
        info = await catalog.get_brand(req.target_brand_key)
    info = info or {}
    return TargetBrand(
        brand_key=req.target_brand_key,
        display_name=info.get("display_name"),
        size_scale=info.get("size_scale") or "letter",
        available_sizes=list(info.get("available_sizes") or []),
        fit_tendency=info.get("fit_tendency"),
    )


async def _load_rows(req: RecommendRequest, catalog: CatalogApiClient) -> tuple[List[SizingRow], List[SizingRow]]:
    category = req.target_category
    anchor_keys = [a.brand_key for a in req.anchor_brands]
    if req.target_rows is not None:
        target_rows = _rows(req.target_rows)
    else:
        target_rows = _rows(await catalog.get_sizing_rows([req.target_brand_key], category))
    if req.anchor_rows is not None:
        anchor_rows = _rows(req.anchor_rows)
    else:
        anchor_rows = _rows(await catalog.get_sizing_rows(anchor_keys, category))
    return target_rows, anchor_rows


async def _estimate(req: RecommendRequest, body: BodyApiClient) -> Optional[Dict[str, Any]]:
    if req.estimated_measurements is not None:
        return req.estimated_measurements
    if not (req.weight or req.height):
        return None
    try:
        return await body.estimate(req.weight, req.height, req.fit_preference)
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("body_estimate_failed", error=str(e))
        return None


@router.post("", response_model=RecommendResponse)
async def recommend(
    req: RecommendRequest,
    catalog: CatalogApiClient = Depends(get_catalog_client),
    body: BodyApiClient = Depends(get_body_client),
    recommender: Recommender = Depends(get_recommender),
) -> RecommendResponse:
    same_brand = req.anchor_brands[0].brand_key == req.target_brand_key
    try:
        target, (target_rows, anchor_rows) = await asyncio.gather(
            _load_target(req, catalog),
            _load_rows(req, catalog),
        )
    except httpx.HTTPError as e:
        logger.error("catalog_fetch_failed", target_brand=req.target_brand_key, error=str(e))
        raise HTTPException(status_code=502, detail="Failed to load brand catalog or sizing charts")

    estimated = None if same_brand else await _estimate(req, body)

    result = await recommender.recommend(
        anchors=[AnchorSize(a.brand_key, a.display_name, a.size) for a in req.anchor_brands],
        fit_preference=req.fit_preference,
        target=target,
        category=req.target_category,
        anchor_rows=anchor_rows,
        target_rows=target_rows,
        estimated_measurements=estimated,
        brand_source=req.brand_source,
    )

    return RecommendResponse(
        status=result["status"],
        size=result["size"],
        brand_name=result["brand_name"],
        size_scale=result["size_scale"],
        bullets=result["bullets"],
        comparisons=result["comparisons"],
        confidence=result["confidence"],
        need_more_info=result["need_more_info"],
        ask_for=result["ask_for"],
        reason=result["reason"],
        debug=result["trace"] if req.debug_mode else None,
    )
