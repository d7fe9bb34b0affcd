from __future__ import annotations

import logging
from typing import List

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

CARD_TABLES = ("cards", "forms", "usage_examples", "common_phrases")
TRACK_TABLE = "tracks"


class Base(DeclarativeBase):
    pass


class StorageError(Exception):
    """Raised when the relational store cannot serve a query."""


def build_engine(url: str) -> Engine:
    """Create an engine for ``url``.

    SQLite connections are shared across FastAPI's worker threads, and the
    in-memory variant has to stay on a single connection to keep its data.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    # Returned rows are converted to plain models after commit
    return sessionmaker(bind=engine, expire_on_commit=False)


def ensure_schema(engine: Engine, include_tracks: bool = True) -> List[str]:
    """Create whichever of the card tables (and ``tracks``) are missing.

    Existing tables are left alone, so a half-created schema from an earlier
    failed run is completed on the next call. Returns the names of the tables
    that were created.
    """
    # Registers the mapped tables on Base.metadata
    import CardsModule.models  # noqa: F401
    import TracksModule.tracks  # noqa: F401

    existing = set(inspect(engine).get_table_names())
    wanted = list(CARD_TABLES)
    if include_tracks:
        wanted.append(TRACK_TABLE)

    missing = [name for name in wanted if name not in existing]
    if not missing:
        return []

    tables = [Base.metadata.tables[name] for name in missing]
    Base.metadata.create_all(engine, tables=tables, checkfirst=True)
    logger.info("Created tables: %s", ", ".join(missing))
    return missing
