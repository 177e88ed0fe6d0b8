from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from typing import Optional
import logging

from app.settings import settings
from app.storage.tables import Base

log = logging.getLogger(__name__)

# -------------------------
# Relational store
# -------------------------
def get_engine_kwargs(database_url: str) -> dict:
    """Return SQLAlchemy engine kwargs for the given database URL."""
    kwargs = {"echo": settings.db_echo}
    if database_url.startswith("sqlite"):
        # Requests, executor threads and the test client share connections
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return kwargs

def build_engine(database_url: Optional[str] = None) -> Engine:
    """Build a database engine for the configured (or given) URL."""
    url = database_url or settings.database_url
    engine = create_engine(url, **get_engine_kwargs(url))
    log.info("Initialized database engine for %s", engine.url.render_as_string(hide_password=True))
    return engine

def build_session_factory(engine: Engine) -> sessionmaker:
    """Session factory whose objects stay readable after commit."""
    return sessionmaker(bind=engine, expire_on_commit=False)

def init_db(engine: Engine):
    """Create the users and images tables if they do not exist yet."""
    Base.metadata.create_all(engine)
    log.info("Ensured database tables exist")
