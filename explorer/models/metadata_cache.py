"""Metadata cache ORM model."""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from explorer.models.base import Base

if TYPE_CHECKING:
    from explorer.models.data_source import DataSource


class MetadataCache(Base):
    """Cached metadata document for one (source, type, key)."""

    __tablename__ = "metadata_cache"
    __table_args__ = (
        UniqueConstraint(
            "data_source_id", "cache_type", "cache_key", name="uq_metadata_cache_key"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    data_source_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("data_sources.id", ondelete="CASCADE"), index=True
    )
    cache_type: Mapped[str] = mapped_column(String(64), nullable=False)
    cache_key: Mapped[str] = mapped_column(String(512), nullable=False)
    cache_data: Mapped[Any] = mapped_column(JSON, nullable=False)
    cached_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    data_source: Mapped["DataSource"] = relationship(
        "DataSource", back_populates="cache_entries"
    )
