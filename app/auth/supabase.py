from __future__ import annotations

import time
from typing import Any, Dict, Optional
import logging

import httpx
from jose import jwt
from jose.exceptions import JWTError, JWSError
from fastapi import HTTPException, status

from app.config import settings


logger = logging.getLogger("auth.supabase")


class _JWKSCache:
    def __init__(self) -> None:
        self.jwks: Optional[Dict[str, Any]] = None
        self.cached_at: float = 0.0
        self.ttl_seconds: int = 300

    def get(self) -> Optional[Dict[str, Any]]:
        if self.jwks and (time.time() - self.cached_at) < self.ttl_seconds:
            return self.jwks
        return None

    def set(self, jwks: Optional[Dict[str, Any]]) -> None:
        self.jwks = jwks
        self.cached_at = time.time()


_cache = _JWKSCache()


def _jwks_url() -> str:
    if not settings.SUPABASE_URL:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="SUPABASE_URL is not configured.",
        )
    return f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/.well-known/jwks.json"


def _issuer() -> Optional[str]:
    if not settings.SUPABASE_URL:
        return None
    return f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1"


def _fetch_jwks() -> Dict[str, Any]:
    cached = _cache.get()
    if cached:
        return cached
    jwks_url = _jwks_url()
    try:
        resp = httpx.get(jwks_url, timeout=10)
        resp.raise_for_status()
        data = resp.json()
        _cache.set(data)
        return data
    except httpx.HTTPError as exc:
        logger.exception("JWKS fetch failed", extra={"jwks_url": jwks_url})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Unable to fetch Supabase JWKS",
        ) from exc


def _get_public_key(token: str) -> Dict[str, Any]:
    try:
        headers = jwt.get_unverified_header(token)
    except JWTError as exc:
        logger.warning("Invalid token header", exc_info=exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc
    kid = headers.get("kid")
    if not kid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing kid in token")
    jwks = _fetch_jwks()
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key
    # cache miss; refetch once (key rotation)
    _cache.set(None)
    jwks = _fetch_jwks()
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key
    logger.warning("Signing key not found", extra={"kid": kid})
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Signing key not found")


def _decode_options() -> Dict[str, Any]:
    issuer = _issuer()
    return {"verify_iss": issuer is not None}


def verify_supabase_token(token: str) -> Dict[str, Any]:
    """
    Verify a Supabase Auth access token.

    Projects still on the legacy shared secret sign with HS256 and are verified
    against SUPABASE_JWT_SECRET. Projects using asymmetric signing keys publish
    them on the JWKS endpoint.
    """
    try:
        if settings.SUPABASE_JWT_SECRET:
            claims = jwt.decode(
                token,
                key=settings.SUPABASE_JWT_SECRET,
                algorithms=["HS256"],
                audience=settings.SUPABASE_JWT_AUDIENCE,
                issuer=_issuer(),
                options=_decode_options(),
            )
        else:
            public_key = _get_public_key(token)
            claims = jwt.decode(
                token,
                key=public_key,
                algorithms=[public_key.get("alg", "ES256")],
                audience=settings.SUPABASE_JWT_AUDIENCE,
                issuer=_issuer(),
                options=_decode_options(),
            )
        logger.debug(
            "Verified Supabase token",
            extra={"aud": claims.get("aud"), "iss": claims.get("iss"), "sub": claims.get("sub")},
        )
        return claims
    except (JWTError, JWSError, ValueError) as exc:
        logger.warning("Token verification failed", exc_info=exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc
