import httpx
from typing import Any, Dict, List, Optional
from ..config import settings


class CatalogApiClient:
    """Reads the brand catalog and sizing charts from the catalog REST service."""

    def __init__(self) -> None:
        self.base = settings.catalog_api_base.rstrip("/")
        self.api_key = settings.catalog_api_key

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def get_brand(self, brand_key: str) -> Optional[Dict[str, Any]]:
        async with httpx.AsyncClient(timeout=15.0) as client:
            resp = await client.get(
                f"{self.base}/brand_catalog",
                params={
                    "select": "brand_key,display_name,fit_tendency,size_scale,available_sizes",
                    "brand_key": f"eq.{brand_key}",
                },
                headers=self._headers(),
            )
            resp.raise_for_status()
            rows = resp.json()
        return rows[0] if rows else None

    async def get_sizing_rows(self, brand_keys: List[str], category: str) -> List[Dict[str, Any]]:
        if not brand_keys:
            return []
        async with httpx.AsyncClient(timeout=15.0) as client:
            resp = await client.get(
                f"{self.base}/sizing_charts",
                params={
                    "select": "brand_key,size_label,measurements,fit_notes",
                    "brand_key": f"in.({','.join(brand_keys)})",
                    "category": f"eq.{category}",
                },
                headers=self._headers(),
            )
            resp.raise_for_status()
            return resp.json()
