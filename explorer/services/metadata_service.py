"""Metadata operations addressed by data source id."""

import logging
from datetime import timedelta
from typing import List, Optional

from explorer.config import Settings, get_settings
from explorer.core.logging_config import setup_logging
from explorer.database import create_session_factory, create_store_engine, init_db
from explorer.schemas.comparison import TableComparison
from explorer.schemas.data_source import DataSourceRef
from explorer.schemas.metadata import KafkaTopicInfo, SchemaInfo, TableInfo
from explorer.services.cache_manager import CacheManager
from explorer.services.cache_store import CacheTypeArg, SqlCacheStore
from explorer.services.comparison import ComparisonEngine
from explorer.services.context_service import ContextService
from explorer.services.data_source_service import DataSourceService
from source_adapters.fetcher import MetadataFetcher, default_adapters

logger = logging.getLogger(__name__)


class MetadataService:
    """Resolves data source ids and delegates to the cache and comparison layers."""

    def __init__(
        self,
        sources: DataSourceService,
        cache_manager: CacheManager,
        comparison_engine: ComparisonEngine,
        contexts: Optional[ContextService] = None,
    ):
        self.sources = sources
        self.contexts = contexts or ContextService(sources.session_factory)
        self.cache_manager = cache_manager
        self.comparison_engine = comparison_engine

    @classmethod
    def from_settings(
        cls, settings: Optional[Settings] = None, configure_logging: bool = True
    ) -> "MetadataService":
        """
        Wire the default SQL-backed store and adapters.

        Also configures logging unless configure_logging is False, for
        embedding applications that set up logging themselves.
        """
        settings = settings or get_settings()
        if configure_logging:
            setup_logging(settings)
        engine = create_store_engine(settings)
        init_db(engine)
        session_factory = create_session_factory(engine)

        fetcher = MetadataFetcher(default_adapters(settings))
        cache_manager = CacheManager(
            SqlCacheStore(session_factory),
            fetcher,
            ttl=timedelta(hours=settings.CACHE_TTL_HOURS),
            propagate_write_errors=settings.CACHE_PROPAGATE_WRITE_ERRORS,
        )
        logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} using {engine.url.render_as_string()}")
        return cls(
            DataSourceService(session_factory),
            cache_manager,
            ComparisonEngine(fetcher),
            ContextService(session_factory),
        )

    def list_data_sources(self, context_id: Optional[int] = None) -> List[DataSourceRef]:
        return self.sources.list(context_id)

    def test_connection(self, source_id: int) -> None:
        self.cache_manager.fetcher.test_connection(self.sources.get(source_id))

    def get_tables(self, source_id: int, force_refresh: bool = False) -> List[TableInfo]:
        source = self.sources.get(source_id)
        return self.cache_manager.get_tables(source, force_refresh)

    def get_table_structure(
        self,
        source_id: int,
        schema: Optional[str],
        table_name: str,
        force_refresh: bool = False,
    ) -> TableInfo:
        source = self.sources.get(source_id)
        return self.cache_manager.get_table_structure(source, schema, table_name, force_refresh)

    def get_kafka_topics(self, source_id: int, force_refresh: bool = False) -> List[KafkaTopicInfo]:
        source = self.sources.get(source_id)
        return self.cache_manager.get_kafka_topics(source, force_refresh)

    def get_schema_registry_schemas(
        self, source_id: int, force_refresh: bool = False
    ) -> List[SchemaInfo]:
        source = self.sources.get(source_id)
        return self.cache_manager.get_schema_registry_schemas(source, force_refresh)

    def refresh_metadata(self, source_id: int, cache_type: Optional[CacheTypeArg] = None) -> None:
        """Invalidate cached metadata for a source, optionally one cache type."""
        self.cache_manager.clear_cache(source_id, cache_type)

    def compare_tables(
        self,
        source1_id: int,
        source2_id: int,
        schema1: Optional[str],
        schema2: Optional[str],
        table_name: str,
    ) -> TableComparison:
        source1 = self.sources.get(source1_id)
        source2 = self.sources.get(source2_id)
        return self.comparison_engine.compare(source1, source2, schema1, schema2, table_name)
