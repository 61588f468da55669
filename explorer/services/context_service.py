"""CRUD for contexts grouping data sources."""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from explorer.core.exceptions import NotFound, StoreError
from explorer.models.context import Context
from explorer.schemas.context import ContextCreate, ContextInfo, ContextUpdate

logger = logging.getLogger(__name__)


class ContextService:
    """
    Service for contexts.

    Context names are unique. Deleting a context deletes its data sources
    and, through them, their cached metadata.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def create(self, data: ContextCreate) -> ContextInfo:
        try:
            with self.session_factory() as db:
                context = Context(**data.model_dump())
                db.add(context)
                db.commit()
                db.refresh(context)
                logger.info(f"Created context {context.id} ({context.name})")
                return ContextInfo.model_validate(context)
        except IntegrityError as e:
            raise StoreError(f"Context '{data.name}' already exists") from e
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to create context: {e}") from e

    def get(self, context_id: int) -> ContextInfo:
        with self.session_factory() as db:
            context = db.get(Context, context_id)
            if context is None:
                raise NotFound(f"Context {context_id}")
            return ContextInfo.model_validate(context)

    def list(self) -> List[ContextInfo]:
        """List contexts, newest first."""
        with self.session_factory() as db:
            result = db.execute(
                select(Context).order_by(Context.created_at.desc(), Context.id.desc())
            )
            return [ContextInfo.model_validate(c) for c in result.scalars().all()]

    def update(self, context_id: int, data: ContextUpdate) -> ContextInfo:
        try:
            with self.session_factory() as db:
                context = db.get(Context, context_id)
                if context is None:
                    raise NotFound(f"Context {context_id}")
                for field, value in data.model_dump(exclude_unset=True).items():
                    setattr(context, field, value)
                db.commit()
                db.refresh(context)
                return ContextInfo.model_validate(context)
        except IntegrityError as e:
            raise StoreError(f"Context '{data.name}' already exists") from e
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update context {context_id}: {e}") from e

    def delete(self, context_id: int) -> None:
        try:
            with self.session_factory() as db:
                context = db.get(Context, context_id)
                if context is None:
                    raise NotFound(f"Context {context_id}")
                removed = len(context.data_sources)
                db.delete(context)
                db.commit()
                logger.info(f"Deleted context {context_id} with {removed} data source(s)")
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete context {context_id}: {e}") from e
