"""
Page entry points. The UI itself is served by the frontend; these routes only
give the access-control redirects a concrete target on this server.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from todo_app.core.access import Identity
from todo_app.dependencies.auth import get_identity

router = APIRouter()


def _page(title: str, body: str = "") -> HTMLResponse:
    return HTMLResponse(f"<!doctype html><html><head><title>{title}</title></head><body><h1>{title}</h1>{body}</body></html>")


@router.get("/", response_class=HTMLResponse)
def landing():
    return _page("Todo", '<a href="/sign-in">Sign in</a> <a href="/sign-up">Sign up</a>')


@router.get("/sign-in", response_class=HTMLResponse)
def sign_in():
    return _page("Sign in")


@router.get("/sign-up", response_class=HTMLResponse)
def sign_up():
    return _page("Sign up")


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(identity: Identity = Depends(get_identity)):
    return _page("Dashboard", f"<p>{identity.user_id}</p>")


@router.get("/admin/dashboard", response_class=HTMLResponse)
def admin_dashboard():
    return _page("Admin Dashboard")
