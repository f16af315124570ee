import logging

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse

from todo_app.core.access import decide
from todo_app.core.errors import IdentityProviderUnavailable
from todo_app.dependencies.auth import resolve_identity

logger = logging.getLogger(__name__)


class AccessControlMiddleware(BaseHTTPMiddleware):
    """Resolve the caller once per request and apply the route access rules."""

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            # CORS preflight never carries credentials
            return await call_next(request)

        try:
            # JWKS fetches block; keep them off the event loop
            identity = await run_in_threadpool(resolve_identity, request)
        except IdentityProviderUnavailable as e:
            logger.error("Identity provider unavailable: %s", e.message)
            return JSONResponse(status_code=e.status_code, content={"error": e.message})

        request.state.identity = identity
        path = request.url.path
        decision = decide(path, identity)
        if decision.allowed:
            return await call_next(request)

        logger.info(
            "Access denied for %s (%s) on %s -> %s",
            identity.user_id or "anonymous",
            identity.role.value,
            path,
            decision.redirect_to or decision.status_code,
        )
        if decision.redirect_to:
            return RedirectResponse(url=decision.redirect_to, status_code=decision.status_code)
        return JSONResponse(status_code=decision.status_code, content={"error": decision.error})
