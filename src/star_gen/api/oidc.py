"""OpenID Connect bearer-token validation against an external identity provider."""

from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass
from typing import Any, cast

import httpx
import jwt
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey


@dataclass(frozen=True)
class OidcClaims:
    """Verified claims identifying the caller."""

    subject: str
    issuer: str
    email: str | None
    preferred_username: str | None
    audience: str | None


@dataclass
class _OidcCache:
    value: dict[str, Any] | None = None
    expires_at: float = 0.0


_JWKS_CACHE = _OidcCache()
_WELL_KNOWN_CACHE = _OidcCache()


def _env(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip()


def _int_env(name: str, default: int, *, minimum: int, maximum: int) -> int:
    raw = _env(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


def reset_oidc_caches() -> None:
    """Forget cached discovery and key documents."""
    for cache in (_JWKS_CACHE, _WELL_KNOWN_CACHE):
        cache.value = None
        cache.expires_at = 0.0


def _cached_json(url: str, cache: _OidcCache, *, ttl_env: str) -> dict[str, Any]:
    now = time.monotonic()
    if cache.value is not None and cache.expires_at > now:
        return cache.value
    with httpx.Client(timeout=10.0, follow_redirects=True) as client:
        response = client.get(url)
        response.raise_for_status()
        payload = response.json()
    if not isinstance(payload, dict):
        raise RuntimeError(f"OIDC document at {url} was not an object.")
    cache.value = payload
    cache.expires_at = now + _int_env(ttl_env, 300, minimum=30, maximum=3600)
    return payload


def _jwks(issuer: str) -> dict[str, Any]:
    inline = _env("STAR_GEN_OIDC_JWKS_JSON")
    if inline:
        payload = json.loads(inline)
        if not isinstance(payload, dict):
            raise RuntimeError("STAR_GEN_OIDC_JWKS_JSON must be a JSON object.")
        return payload
    jwks_url = _env("STAR_GEN_OIDC_JWKS_URL")
    if not jwks_url:
        well_known = _cached_json(
            issuer.rstrip("/") + "/.well-known/openid-configuration",
            _WELL_KNOWN_CACHE,
            ttl_env="STAR_GEN_OIDC_WELL_KNOWN_TTL_SECONDS",
        )
        discovered = well_known.get("jwks_uri")
        if not isinstance(discovered, str) or not discovered:
            raise RuntimeError("OIDC discovery document is missing jwks_uri.")
        jwks_url = discovered
    return _cached_json(jwks_url, _JWKS_CACHE, ttl_env="STAR_GEN_OIDC_JWKS_TTL_SECONDS")


def _signing_key(jwks: dict[str, Any], kid: str | None) -> dict[str, Any]:
    keys = jwks.get("keys")
    if not isinstance(keys, list):
        raise RuntimeError("OIDC JWKS payload is missing the keys list.")
    if kid is None:
        if len(keys) == 1 and isinstance(keys[0], dict):
            return keys[0]
        raise RuntimeError("Token header has no kid and the JWKS holds several keys.")
    for key in keys:
        if isinstance(key, dict) and key.get("kid") == kid:
            return key
    raise RuntimeError("OIDC JWKS has no signing key for the token kid.")


def _optional_claim(payload: dict[str, Any], name: str) -> str | None:
    value = payload.get(name)
    return value if isinstance(value, str) and value.strip() else None


def validate_oidc_token(token: str) -> OidcClaims:
    """Verify signature, issuer, and audience of a bearer token.

    Raises ``RuntimeError`` for configuration or key problems and
    ``jwt.PyJWTError`` for tokens that fail verification.
    """
    issuer = _env("STAR_GEN_OIDC_ISSUER")
    if not issuer:
        raise RuntimeError("STAR_GEN_OIDC_ISSUER is required when STAR_GEN_AUTH_MODE=oidc.")
    audience = _env("STAR_GEN_OIDC_AUDIENCE")
    algorithms = [
        algorithm.strip()
        for algorithm in _env("STAR_GEN_OIDC_ALGORITHMS", "RS256").split(",")
        if algorithm.strip()
    ] or ["RS256"]

    header = jwt.get_unverified_header(token)
    jwk = _signing_key(_jwks(issuer), header.get("kid"))
    public_key = cast(RSAPublicKey, jwt.algorithms.RSAAlgorithm.from_jwk(json.dumps(jwk)))
    payload = jwt.decode(
        token,
        key=public_key,
        algorithms=algorithms,
        audience=audience or None,
        issuer=issuer,
        options={"verify_aud": bool(audience)},
    )
    subject = _optional_claim(payload, "sub")
    if subject is None:
        raise RuntimeError("OIDC token is missing a subject.")
    return OidcClaims(
        subject=subject,
        issuer=issuer,
        email=_optional_claim(payload, "email"),
        preferred_username=_optional_claim(payload, "preferred_username"),
        audience=audience or None,
    )
