"""CRUD for persisted data source descriptors."""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from explorer.core.exceptions import NotFound, StoreError, UnsupportedBackend
from explorer.models.context import Context
from explorer.models.data_source import DataSource
from explorer.schemas.data_source import DataSourceCreate, DataSourceRef, DataSourceUpdate

logger = logging.getLogger(__name__)


class DataSourceService:
    """Service for data source descriptors keyed by integer id."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def create(self, data: DataSourceCreate) -> DataSourceRef:
        """Persist a new data source in an existing context."""
        row = DataSource(**data.model_dump(exclude={"data_type"}), data_type=data.data_type.value)
        try:
            with self.session_factory() as db:
                self._require_context(db, data.context_id)
                db.add(row)
                db.commit()
                db.refresh(row)
                logger.info(f"Created {row.data_type} data source {row.id} ({row.name})")
                return DataSourceRef.from_row(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to create data source: {e}") from e

    def get(self, source_id: int) -> DataSourceRef:
        """Get a data source, raising NotFound when absent."""
        with self.session_factory() as db:
            row = db.get(DataSource, source_id)
            if row is None:
                raise NotFound(f"Data source {source_id}")
            return DataSourceRef.from_row(row)

    def list(self, context_id: Optional[int] = None) -> List[DataSourceRef]:
        """
        List data sources ordered by name, optionally within one context.

        Rows whose data_type is not a known backend kind are skipped with a
        warning so that one bad row does not hide the rest.
        """
        stmt = select(DataSource).order_by(DataSource.name, DataSource.id)
        if context_id is not None:
            stmt = stmt.where(DataSource.context_id == context_id)

        sources = []
        with self.session_factory() as db:
            for row in db.execute(stmt).scalars().all():
                try:
                    sources.append(DataSourceRef.from_row(row))
                except UnsupportedBackend as e:
                    logger.warning(f"Skipping data source {row.id} ({row.name}): {e}")
        return sources

    def update(self, source_id: int, data: DataSourceUpdate) -> DataSourceRef:
        """Apply the fields set on data to an existing data source."""
        try:
            with self.session_factory() as db:
                row = db.get(DataSource, source_id)
                if row is None:
                    raise NotFound(f"Data source {source_id}")
                changes = data.model_dump(exclude_unset=True)
                if changes.get("context_id") is not None:
                    self._require_context(db, changes["context_id"])
                for field, value in changes.items():
                    setattr(row, field, value)
                db.commit()
                db.refresh(row)
                return DataSourceRef.from_row(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update data source {source_id}: {e}") from e

    def delete(self, source_id: int) -> None:
        """Delete a data source together with its cache entries."""
        try:
            with self.session_factory() as db:
                row = db.get(DataSource, source_id)
                if row is None:
                    raise NotFound(f"Data source {source_id}")
                db.delete(row)
                db.commit()
                logger.info(f"Deleted data source {source_id}")
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete data source {source_id}: {e}") from e

    @staticmethod
    def _require_context(db: Session, context_id: int) -> None:
        if db.get(Context, context_id) is None:
            raise NotFound(f"Context {context_id}")
