import os
from pydantic import BaseModel


class Settings(BaseModel):
    api_key: str = os.getenv("API_KEY", "change-me")
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

    catalog_api_base: str = os.getenv("CATALOG_API_BASE", "http://localhost:54321/rest/v1")
    catalog_api_key: str | None = os.getenv("CATALOG_API_KEY")
    body_api_base: str = os.getenv("BODY_API_BASE", "http://localhost:8002/api/v1")

    # JWT
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret")
    jwt_audience: str | None = os.getenv("JWT_AUDIENCE")
    jwt_issuer: str | None = os.getenv("JWT_ISSUER")
    jwt_ttl_seconds: int = int(os.getenv("JWT_TTL_SECONDS", "3600"))

    # Rate limit (token bucket)
    rate_limit_per_min: int = int(os.getenv("RATE_LIMIT_PER_MIN", "60"))
    rate_limit_burst: int = int(os.getenv("RATE_LIMIT_BURST", "30"))

    # Recommendation guardrails
    min_confidence: int = int(os.getenv("MIN_CONFIDENCE", "65"))
    min_coverage: int = int(os.getenv("MIN_COVERAGE", "2"))
    extreme_size_min_confidence: int = int(os.getenv("EXTREME_SIZE_MIN_CONFIDENCE", "80"))
    detected_brand_min_confidence: int = int(os.getenv("DETECTED_BRAND_MIN_CONFIDENCE", "75"))


settings = Settings()
