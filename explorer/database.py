"""SQLAlchemy database configuration for the local metadata store."""

from typing import Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from explorer.config import Settings, get_settings
from explorer.models import Base


def create_store_engine(settings: Optional[Settings] = None) -> Engine:
    """Create the engine backing data sources and cache rows."""
    settings = settings or get_settings()
    connect_args = {}
    if settings.DATABASE_URL.startswith("sqlite"):
        # Store is shared across caller threads
        connect_args["check_same_thread"] = False
    return create_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Session factory bound to the given engine."""
    return sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


def init_db(engine: Engine) -> None:
    """Create tables that do not exist yet."""
    Base.metadata.create_all(engine)
