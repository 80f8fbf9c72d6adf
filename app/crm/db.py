from __future__ import annotations

import logging
from contextlib import contextmanager
from collections.abc import Generator

from flask import Flask
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.crm.config import is_production

logger = logging.getLogger(__name__)


def _normalize_url(db_url: str) -> str:
    # Heroku-style URLs use the scheme SQLAlchemy dropped in 1.4.
    if db_url.startswith("postgres://"):
        return "postgresql://" + db_url[len("postgres://"):]
    return db_url


def make_engine(db_url: str) -> Engine:
    db_url = _normalize_url(db_url)
    engine_kwargs: dict[str, object] = {
        "future": True,
        "pool_pre_ping": True,
    }
    if db_url.startswith("postgresql"):
        engine_kwargs.update(
            {
                "pool_recycle": 1800,
                "pool_size": 5,
                "max_overflow": 10,
                "pool_timeout": 30,
            }
        )
    return create_engine(db_url, **engine_kwargs)


def make_sessionmaker(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        class_=Session,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )


def _log_checkout(dbapi_connection, connection_record, connection_proxy) -> None:
    logger.debug("DB connection checkout from pool")


def init_db(app: Flask) -> Engine:
    engine = make_engine(app.config["DATABASE_URL"])
    if not is_production(app.config.get("ENV")):
        event.listen(engine, "checkout", _log_checkout)
    app.extensions["sqlalchemy_engine"] = engine
    return engine


@contextmanager
def session_scope(engine: Engine) -> Generator[Session, None, None]:
    """
    Non-request helper for scripts and tests: yields a session and commits/rolls back.
    """
    s: Session = make_sessionmaker(engine)()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
