from __future__ import annotations

import time
from typing import Any, Dict, Optional
import logging

import httpx
from jose import jwk, jwt
from jose.exceptions import JWTError, JWSError
from jose.utils import base64url_decode
from fastapi import HTTPException, status

from marketing_factory.config import settings


logger = logging.getLogger("auth.tokens")

_SYMMETRIC_ALGORITHMS = ("HS256", "HS384", "HS512")


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
        self.cached_at = time.time() if jwks else 0.0


_cache = _JWKSCache()


def _fetch_jwks() -> Dict[str, Any]:
    cached = _cache.get()
    if cached:
        return cached
    if not settings.AUTH_JWKS_URL:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    try:
        resp = httpx.get(settings.AUTH_JWKS_URL, timeout=10)
        resp.raise_for_status()
        data = resp.json()
        _cache.set(data)
        return data
    except httpx.HTTPError as exc:
        logger.exception("JWKS fetch failed", extra={"jwks_url": settings.AUTH_JWKS_URL})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Unable to fetch auth JWKS",
        ) from exc


def _get_public_key(headers: Dict[str, Any]) -> Dict[str, Any]:
    kid = headers.get("kid")
    if not kid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing kid in token")
    jwks = _fetch_jwks()
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key
    # cache miss; refetch once in case the signing key rotated
    _cache.set(None)
    jwks = _fetch_jwks()
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key
    logger.warning("Signing key not found", extra={"kid": kid})
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Signing key not found")


def _decode_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {"verify_aud": bool(settings.AUTH_AUDIENCE)}
    if not settings.AUTH_JWT_ISSUER:
        options["verify_iss"] = False
    return options


def _verify_symmetric(token: str, algorithm: str) -> Dict[str, Any]:
    if not settings.AUTH_JWT_SECRET:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return jwt.decode(
        token,
        key=settings.AUTH_JWT_SECRET,
        algorithms=[algorithm],
        audience=settings.AUTH_AUDIENCE or None,
        issuer=settings.AUTH_JWT_ISSUER or None,
        options=_decode_options(),
    )


def _verify_asymmetric(token: str, headers: Dict[str, Any]) -> Dict[str, Any]:
    public_key = _get_public_key(headers)
    key = jwk.construct(public_key)

    message, encoded_sig = token.rsplit(".", 1)
    decoded_sig = base64url_decode(encoded_sig.encode())
    if not key.verify(message.encode(), decoded_sig):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token signature")

    return jwt.decode(
        token,
        key=key.to_pem().decode(),
        algorithms=[public_key.get("alg", headers.get("alg", "RS256"))],
        audience=settings.AUTH_AUDIENCE or None,
        issuer=settings.AUTH_JWT_ISSUER or None,
        options=_decode_options(),
    )


def verify_access_token(token: str) -> Dict[str, Any]:
    """
    Verify a bearer token minted by the hosted auth service.

    HS* tokens are checked against AUTH_JWT_SECRET; everything else against the
    JWKS published at AUTH_JWKS_URL.
    """
    try:
        headers = jwt.get_unverified_header(token)
    except JWTError as exc:
        logger.warning("Invalid token header", exc_info=exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    algorithm = headers.get("alg") or "RS256"
    try:
        if algorithm in _SYMMETRIC_ALGORITHMS:
            claims = _verify_symmetric(token, algorithm)
        else:
            claims = _verify_asymmetric(token, headers)
    except (JWTError, JWSError, ValueError) as exc:
        logger.warning("Token verification failed", exc_info=exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    logger.debug(
        "Verified access token",
        extra={
            "alg": algorithm,
            "kid": headers.get("kid"),
            "aud": claims.get("aud"),
            "iss": claims.get("iss"),
            "sub": claims.get("sub"),
        },
    )
    return claims
