"""
Identity adapter for the external identity provider.

Session tokens are JWTs issued by the provider. They arrive either as
`Authorization: Bearer <token>` or in the provider's session cookie.
Asymmetric tokens (RS256 / ES256) are checked against the provider's JWKS;
HS256 tokens are checked against IDENTITY_JWT_SECRET (development and tests).
"""
import logging
import time
from typing import Optional

import jwt  # PyJWT
import requests
from fastapi import Depends, Request

from todo_app.core import config
from todo_app.core.access import ANONYMOUS, Identity, Role
from todo_app.core.errors import Forbidden, IdentityProviderUnavailable, Unauthenticated

logger = logging.getLogger(__name__)

# Cache for JWKS (Public Keys)
JWKS_CACHE = None
JWKS_CACHE_TIMESTAMP = None
JWKS_CACHE_TTL = 3600  # Cache for 1 hour
JWKS_STALE_LIMIT = 86400  # Stale cache is still usable for 24 hours if the provider is down

ASYMMETRIC_ALGORITHMS = ("RS256", "ES256")


def get_jwks(jwks_url: str, force_refresh: bool = False) -> Optional[dict]:
    """
    Fetch the provider JWKS with caching and retry logic.
    Only successful fetches are cached so failures can be retried.
    """
    global JWKS_CACHE, JWKS_CACHE_TIMESTAMP

    if JWKS_CACHE and JWKS_CACHE_TIMESTAMP and not force_refresh:
        if time.time() - JWKS_CACHE_TIMESTAMP < JWKS_CACHE_TTL:
            return JWKS_CACHE

    max_retries = 3
    last_error = None
    for attempt in range(max_retries):
        try:
            r = requests.get(jwks_url, timeout=10)
            r.raise_for_status()
            JWKS_CACHE = r.json()
            JWKS_CACHE_TIMESTAMP = time.time()
            logger.info("Fetched JWKS with %s keys", len(JWKS_CACHE.get("keys", [])))
            return JWKS_CACHE
        except (requests.exceptions.RequestException, ValueError) as e:
            last_error = e
            logger.warning("JWKS fetch failed (attempt %s/%s): %s", attempt + 1, max_retries, e)
            if attempt < max_retries - 1:
                time.sleep(1)

    logger.error("Failed to fetch JWKS after %s attempts: %s", max_retries, last_error)

    # Fall back to a stale cache rather than locking every user out
    if JWKS_CACHE and JWKS_CACHE_TIMESTAMP:
        cache_age = time.time() - JWKS_CACHE_TIMESTAMP
        if cache_age < JWKS_STALE_LIMIT:
            logger.warning("Using stale JWKS cache (age: %.0fs)", cache_age)
            return JWKS_CACHE
    return None


def _find_signing_key(jwks: dict, kid: Optional[str]):
    try:
        key_set = jwt.PyJWKSet.from_dict(jwks)
    except jwt.PyJWKSetError as e:
        logger.error("JWKS contains no usable keys: %s", e)
        return None
    for jwk in key_set.keys:
        if kid is None or jwk.key_id == kid:
            return jwk.key
    return None


def _asymmetric_key(kid: Optional[str]):
    if not config.IDENTITY_JWKS_URL:
        logger.error("IDENTITY_JWKS_URL is missing for asymmetric token verification")
        raise IdentityProviderUnavailable("Server misconfiguration: IDENTITY_JWKS_URL not set")

    jwks = get_jwks(config.IDENTITY_JWKS_URL)
    if not jwks:
        raise IdentityProviderUnavailable()

    key = _find_signing_key(jwks, kid)
    if key is None:
        # Keys may have been rotated since the cache was filled
        jwks = get_jwks(config.IDENTITY_JWKS_URL, force_refresh=True)
        key = _find_signing_key(jwks, kid) if jwks else None
    if key is None:
        raise Unauthenticated("Unknown token signing key")
    return key


def verify_session_token(token: str) -> dict:
    """Verify a provider session token and return its claims."""
    try:
        header = jwt.get_unverified_header(token)
    except jwt.DecodeError as e:
        raise Unauthenticated(f"Invalid token header: {e}")

    algo = header.get("alg")
    if algo in ASYMMETRIC_ALGORITHMS:
        key = _asymmetric_key(header.get("kid"))
    elif algo == "HS256":
        if not config.IDENTITY_JWT_SECRET:
            raise Unauthenticated("HS256 tokens are not accepted")
        key = config.IDENTITY_JWT_SECRET
    else:
        raise Unauthenticated(f"Unsupported token algorithm: {algo}")

    options = {"verify_aud": bool(config.IDENTITY_AUDIENCE), "require": ["sub", "exp"]}
    try:
        return jwt.decode(
            token,
            key,
            algorithms=[algo],
            audience=config.IDENTITY_AUDIENCE or None,
            issuer=config.IDENTITY_ISSUER or None,
            options=options,
            leeway=5,
        )
    except jwt.PyJWTError as e:
        raise Unauthenticated(f"Invalid session token: {e}")


def extract_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("authorization")
    if authorization:
        if not authorization.startswith("Bearer "):
            return None
        token = authorization[len("Bearer "):].strip()
    else:
        token = (request.cookies.get(config.SESSION_COOKIE_NAME) or "").strip()

    # Reject common invalid token values sent by broken clients
    if not token or token.lower() in ("null", "undefined", "none"):
        return None
    return token


def role_from_claims(payload: dict) -> Role:
    """The role lives in the session's public metadata: {"metadata": {"role": "admin"}}."""
    role = None
    for key in ("metadata", "public_metadata"):
        claims = payload.get(key)
        if isinstance(claims, dict) and claims.get("role"):
            role = claims["role"]
            break
    if role is None:
        role = payload.get("role")
    return Role.ADMIN if role == Role.ADMIN.value else Role.USER


def resolve_identity(request: Request) -> Identity:
    """
    Resolve the caller. Missing or invalid tokens yield the anonymous identity;
    only an unreachable identity provider is raised.
    """
    token = extract_token(request)
    if not token:
        return ANONYMOUS
    try:
        payload = verify_session_token(token)
    except Unauthenticated as e:
        logger.info("Rejected session token: %s", e.message)
        return ANONYMOUS
    return Identity(user_id=str(payload["sub"]), role=role_from_claims(payload))


def get_identity(request: Request) -> Identity:
    identity = getattr(request.state, "identity", None)
    if identity is None:
        identity = resolve_identity(request)
        request.state.identity = identity
    return identity


def get_current_user_id(identity: Identity = Depends(get_identity)) -> str:
    """FastAPI dependency returning the caller's identity-provider user id."""
    if not identity.is_authenticated or not identity.user_id:
        raise Unauthenticated()
    return identity.user_id


def require_admin(identity: Identity = Depends(get_identity)) -> Identity:
    if not identity.is_authenticated:
        raise Unauthenticated()
    if identity.role is not Role.ADMIN:
        raise Forbidden()
    return identity
