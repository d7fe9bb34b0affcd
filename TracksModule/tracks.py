"""Paginated listing of the pre-seeded media tracks."""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from sqlalchemy import Integer, String, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, Session, mapped_column

from tools.database import Base, StorageError

logger = logging.getLogger(__name__)

MAX_PAGE_COUNT = 100


class TrackRow(Base):
    __tablename__ = "tracks"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    artist: Mapped[Optional[str]] = mapped_column(String(255))
    album: Mapped[Optional[str]] = mapped_column(String(255))
    duration: Mapped[Optional[int]] = mapped_column(Integer)  # seconds
    url: Mapped[Optional[str]] = mapped_column(String(1024))


class Track(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    artist: Optional[str] = None
    album: Optional[str] = None
    duration: Optional[int] = None
    url: Optional[str] = None


class TrackPage(BaseModel):
    data: List[Track]
    count: int


def list_tracks(session: Session, page: int = 0, page_count: int = 10) -> Tuple[List[Track], int]:
    """Return one zero-based page of tracks and the total number of tracks."""
    if page < 0 or page_count < 1:
        raise ValueError("page must be >= 0 and page_count >= 1")
    try:
        rows = session.scalars(
            select(TrackRow).order_by(TrackRow.id).offset(page * page_count).limit(page_count)
        ).all()
        total = session.scalar(select(func.count()).select_from(TrackRow))
    except SQLAlchemyError as e:
        logger.error("Listing tracks failed: %s", e)
        raise StorageError(f"listing tracks failed: {e}") from e
    return [Track.model_validate(row) for row in rows], int(total or 0)
