"""
Route access rules.

Every request is classified by path, then checked against the caller's role
in a fixed order. The order matters: an admin visiting the admin area must be
allowed before the generic admin-only denial, and admins must be sent to the
admin area before authenticated users are sent to the ordinary dashboard.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from fastapi import status

SIGN_UP_PATH = "/sign-up"
DASHBOARD_PATH = "/dashboard"
ADMIN_DASHBOARD_PATH = "/admin/dashboard"


class Role(str, Enum):
    ANONYMOUS = "anonymous"
    USER = "user"
    ADMIN = "admin"


class RouteKind(str, Enum):
    OPEN = "open"  # No identity checks at all (webhooks, health)
    PUBLIC_ONLY = "public_only"  # Landing / sign-in / sign-up; signed-in users are bounced
    ADMIN = "admin"
    PROTECTED = "protected"


@dataclass(frozen=True)
class Identity:
    user_id: Optional[str]
    role: Role

    @property
    def is_authenticated(self) -> bool:
        return self.role is not Role.ANONYMOUS


ANONYMOUS = Identity(user_id=None, role=Role.ANONYMOUS)


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    redirect_to: Optional[str] = None
    status_code: int = status.HTTP_200_OK
    error: Optional[str] = None


ALLOW = AccessDecision(allowed=True)

_OPEN_ROUTES = [
    re.compile(r"^/api/webhooks?(/.*)?$"),
    re.compile(r"^/health$"),
    re.compile(r"^/(docs|redoc|openapi\.json)(/.*)?$"),
]
_PUBLIC_ONLY_ROUTES = [
    re.compile(r"^/$"),
    re.compile(r"^/sign-in(/.*)?$"),
    re.compile(r"^/sign-up(/.*)?$"),
]
_ADMIN_ROUTES = [
    re.compile(r"^/admin(/.*)?$"),
    re.compile(r"^/api/admin(/.*)?$"),
]


def classify(path: str) -> RouteKind:
    if any(p.match(path) for p in _OPEN_ROUTES):
        return RouteKind.OPEN
    if any(p.match(path) for p in _ADMIN_ROUTES):
        return RouteKind.ADMIN
    if any(p.match(path) for p in _PUBLIC_ONLY_ROUTES):
        return RouteKind.PUBLIC_ONLY
    return RouteKind.PROTECTED


def is_api_path(path: str) -> bool:
    return path == "/api" or path.startswith("/api/")


def _deny(path: str, identity: Identity, redirect_to: str, error: str) -> AccessDecision:
    """Pages get a redirect; API calls get a JSON status instead."""
    if not is_api_path(path):
        return AccessDecision(allowed=False, redirect_to=redirect_to, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    if not identity.is_authenticated:
        return AccessDecision(allowed=False, status_code=status.HTTP_401_UNAUTHORIZED, error="Unauthorized")
    return AccessDecision(allowed=False, status_code=status.HTTP_403_FORBIDDEN, error=error)


def decide(path: str, identity: Identity) -> AccessDecision:
    kind = classify(path)
    if kind is RouteKind.OPEN:
        return ALLOW

    if kind is RouteKind.ADMIN:
        if identity.role is Role.ADMIN:
            return ALLOW
        return _deny(path, identity, SIGN_UP_PATH, "Forbidden")

    if identity.role is Role.ADMIN:
        # Admins are not allowed on the end-user surface.
        return _deny(path, identity, ADMIN_DASHBOARD_PATH, "Admins must use the admin dashboard")

    if identity.role is Role.ANONYMOUS:
        if kind is RouteKind.PROTECTED:
            return _deny(path, identity, SIGN_UP_PATH, "Unauthorized")
        return ALLOW

    if identity.role is Role.USER:
        if kind is RouteKind.PUBLIC_ONLY:
            return AccessDecision(
                allowed=False,
                redirect_to=DASHBOARD_PATH,
                status_code=status.HTTP_307_TEMPORARY_REDIRECT,
            )
        return ALLOW

    raise ValueError(f"Unhandled role: {identity.role!r}")
