import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    log_level: str


PRODUCTION_ENVS = ("prod", "production")


def is_production(env: str | None) -> bool:
    return (env or "").strip().lower() in PRODUCTION_ENVS


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def load_settings() -> Settings:
    # POSTGRES_URL is the variable older .env files still carry.
    database_url = _getenv("DATABASE_URL") or _getenv("POSTGRES_URL") or "sqlite:///crm.db"
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=database_url,
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
    )


def load_config() -> dict:
    s = load_settings()
    if is_production(s.env):
        if not _getenv("DATABASE_URL") and not _getenv("POSTGRES_URL"):
            raise RuntimeError("DATABASE_URL is required in production.")
        if s.database_url.startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "LOG_LEVEL": s.log_level,
    }
