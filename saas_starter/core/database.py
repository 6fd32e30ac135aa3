"""
Database configuration and session management
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import FastAPI
from sqlmodel import Session, create_engine
import structlog

from saas_starter.core.config import get_settings

logger = structlog.get_logger(__name__)
settings = get_settings()

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
    connect_args=connect_args,
)


def get_session():
    """Dependency to get database session"""
    with Session(engine) as session:
        yield session


@contextmanager
def session_scope(app: Optional[FastAPI] = None) -> Iterator[Session]:
    """Session for code outside the dependency system, honouring get_session overrides"""
    provider = app.dependency_overrides.get(get_session, get_session) if app else get_session
    provided = provider()
    if isinstance(provided, Session):
        yield provided
        return
    try:
        yield next(provided)
    finally:
        provided.close()
