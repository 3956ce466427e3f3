from datetime import datetime, timedelta, timezone
from typing import Optional
import jwt
from fastapi import Header, HTTPException, status
from .config import settings


async def verify_api_key(authorization: str | None = Header(None), x_api_key: str | None = Header(None)) -> None:
    """Accept the static API key (header or bearer) or a bearer JWT from /v1/auth/token."""
    if x_api_key:
        if x_api_key != settings.api_key:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
        return
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing credentials")
    provided = authorization.split(" ", 1)[1].strip()
    if provided == settings.api_key:
        return
    verify_jwt(provided)


def create_jwt(sub: str, ttl_seconds: int | None = None, aud: Optional[str] = None, iss: Optional[str] = None) -> str:
    now = datetime.now(tz=timezone.utc)
    payload = {
        "sub": sub,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=ttl_seconds or settings.jwt_ttl_seconds)).timestamp()),
    }
    aud = aud or settings.jwt_audience
    iss = iss or settings.jwt_issuer
    if aud:
        payload["aud"] = aud
    if iss:
        payload["iss"] = iss
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def verify_jwt(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            audience=settings.jwt_audience if settings.jwt_audience else None,
            issuer=settings.jwt_issuer if settings.jwt_issuer else None,
            options={"verify_aud": bool(settings.jwt_audience)},
        )
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
