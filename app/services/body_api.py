import httpx
from typing import Any, Dict
from ..config import settings


ESTIMATED_DIMENSIONS = ("bust", "waist", "hips", "underbust", "thigh", "shoulders")


class BodyApiClient:
    """Estimates body measurement ranges (inches) from weight and height."""

    def __init__(self) -> None:
        self.base = settings.body_api_base.rstrip("/")

    async def estimate(self, weight: str | None, height: str | None, fit_preference: str | None = None) -> Dict[str, Dict[str, Any]]:
        async with httpx.AsyncClient(timeout=30.0) as client:
            resp = await client.post(
                f"{self.base}/measurements/estimate",
                json={
                    "weight": weight or "",
                    "height": height or "",
                    "fit_preference": fit_preference or "true_to_size",
                    "unit": "in",
                },
            )
            resp.raise_for_status()
            payload = resp.json()
        measurements = payload.get("measurements") or {}
        out: Dict[str, Dict[str, Any]] = {}
        for key in ESTIMATED_DIMENSIONS:
            lo = measurements.get(f"{key}_min")
            hi = measurements.get(f"{key}_max")
            if isinstance(lo, (int, float)) and isinstance(hi, (int, float)):
                out[key] = {"min": float(lo), "max": float(hi), "unit": "in"}
        return out
