"""Context ORM model."""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from explorer.models.base import Base

if TYPE_CHECKING:
    from explorer.models.data_source import DataSource


class Context(Base):
    """Named group of data sources, e.g. one environment or project."""

    __tablename__ = "contexts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    # Relationships
    data_sources: Mapped[List["DataSource"]] = relationship(
        "DataSource", back_populates="context", cascade="all, delete-orphan"
    )
