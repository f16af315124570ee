"""
Todo API
Multi-tenant todo lists with a free-tier quota, a subscription gate and an
admin dashboard. Identity is delegated to an external provider.
"""
from dotenv import load_dotenv
load_dotenv()

import logging
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

from todo_app.core import config

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def run_migrations() -> None:
    """Run Alembic migrations on startup. Uses alembic.ini and DATABASE_URL.
    Fails startup if migrations fail, so the DB is never left out of sync."""
    project_root = Path(__file__).resolve().parent.parent
    alembic_ini = project_root / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("alembic.ini not found, skipping Alembic migrations")
        return
    try:
        alembic_cfg = Config(str(alembic_ini))
        alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
        alembic_cfg.set_main_option("sqlalchemy.url", config.DATABASE_URL)
        command.upgrade(alembic_cfg, "head")
        logger.info("Alembic migrations completed successfully")
    except Exception as e:
        logger.exception("Alembic migration failed: %s", e)
        raise  # Fail startup so DB is not left out of sync; fix migration or env and redeploy


from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from todo_app.api.routes import admin, pages, subscription, todos, webhooks
from todo_app.core.errors import TodoAppError
from todo_app.db.base import Base
from todo_app.db.session import dispose_engine, engine
from todo_app.dependencies.auth import require_admin
from todo_app.middleware.access_control import AccessControlMiddleware
# Import all models to ensure they're registered with Base
from todo_app.models import User, ToDo  # noqa: F401

app = FastAPI(title="Todo API")


@app.on_event("startup")
def startup_event():
    """Create tables, then run Alembic migrations (unless RUN_MIGRATIONS is off)."""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created")
    except SQLAlchemyError:
        logger.exception("Error creating tables")
        raise

    if config.RUN_MIGRATIONS:
        run_migrations()


@app.on_event("shutdown")
def shutdown_event():
    dispose_engine()
    logger.info("Database connections closed")


@app.exception_handler(TodoAppError)
async def handle_app_error(_: Request, exc: TodoAppError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(_: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(_: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


@app.exception_handler(SQLAlchemyError)
async def handle_database_error(request: Request, exc: SQLAlchemyError):
    # Never leak driver messages to clients
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal Server Error"},
    )


app.add_middleware(AccessControlMiddleware)

# CORS is added last so it wraps access control and answers preflights first
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    return {"status": "healthy"}


# Register routers
app.include_router(todos.router, prefix="/api/todos", tags=["Todos"])
app.include_router(subscription.router, prefix="/api/subscription", tags=["Subscription"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"], dependencies=[Depends(require_admin)])
app.include_router(webhooks.router, prefix="/api/webhooks", tags=["Webhooks"])
app.include_router(pages.router, tags=["Pages"])
