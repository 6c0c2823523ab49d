"""
Database connection and session management.

The engine and session factory are built once by the app factory and kept on
an AppContext; `get_db` hands out one session per request from it.
"""

from dataclasses import dataclass

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from config import Settings
from errors import ConflictError, ServerError

# Base class for models
Base = declarative_base()


@dataclass
class AppContext:
    settings: Settings
    engine: Engine
    session_factory: sessionmaker


def build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # in-memory sqlite must share one connection or every session sees an empty db
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


def build_context(settings: Settings) -> AppContext:
    engine = build_engine(settings.database_url)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return AppContext(settings=settings, engine=engine, session_factory=session_factory)


def init_db(context: AppContext) -> None:
    # models must be imported so Base.metadata knows every table
    from models import admins, courses, queries, results, students  # noqa: F401

    Base.metadata.create_all(bind=context.engine)


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.context.settings


# Dependency for FastAPI
def get_db(request: Request):
    db = request.app.state.context.session_factory()
    try:
        yield db
    finally:
        db.close()


def commit_or_raise(db, failure_message: str = "Database error") -> None:
    """
    Commit the request's unit of work. Integrity violations become 409s, any
    other database failure a 500 carrying the driver message (admin endpoints
    only, public endpoints never call this).
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(f"{failure_message}: duplicate or conflicting record", error=str(e.orig))
    except SQLAlchemyError as e:
        db.rollback()
        raise ServerError(failure_message, error=str(e))


def flush_or_raise(db, failure_message: str = "Database error") -> None:
    """Same error mapping as `commit_or_raise` for a flush mid-request."""
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(f"{failure_message}: duplicate or conflicting record", error=str(e.orig))
    except SQLAlchemyError as e:
        db.rollback()
        raise ServerError(failure_message, error=str(e))
