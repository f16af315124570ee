import os
from typing import List


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _database_url() -> str:
    url = os.getenv("DATABASE_URL", "sqlite:///./todo_app.db")
    # Normalize postgres:// -> postgresql:// for SQLAlchemy
    if url.startswith("postgres://"):
        url = "postgresql://" + url[10:]
    return url


def _cors_origins() -> List[str]:
    raw = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


DATABASE_URL = _database_url()
SQL_ECHO = _env_flag("SQL_ECHO")
RUN_MIGRATIONS = _env_flag("RUN_MIGRATIONS", default=True)

# Identity provider session tokens
IDENTITY_JWKS_URL = os.getenv("IDENTITY_JWKS_URL", "").strip()
IDENTITY_JWT_SECRET = os.getenv("IDENTITY_JWT_SECRET", "")
IDENTITY_ISSUER = os.getenv("IDENTITY_ISSUER", "").strip()
IDENTITY_AUDIENCE = os.getenv("IDENTITY_AUDIENCE", "").strip()
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "__session")

# Identity provider webhooks (Svix signing secret, "whsec_..." format)
WEBHOOK_SECRET = (
    os.getenv("WEBHOOK_SECRET")
    or os.getenv("CLERK_WEBHOOK_SECRET", "")
).strip()
WEBHOOK_TOLERANCE_SECONDS = int(os.getenv("WEBHOOK_TOLERANCE_SECONDS", "300"))

CORS_ORIGINS = _cors_origins()

ITEMS_PER_PAGE = int(os.getenv("ITEMS_PER_PAGE", "10"))
FREE_TODO_LIMIT = int(os.getenv("FREE_TODO_LIMIT", "3"))
