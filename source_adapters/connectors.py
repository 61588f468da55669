"""Backend handles for adapter calls.

Connectors build a ready handle from a data source descriptor and nothing
more: no pooling, no retries. Relational handles are SQLAlchemy connections
on a throwaway NullPool engine; Kafka handles are confluent-kafka admin
clients.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from confluent_kafka import KafkaException
from confluent_kafka.admin import AdminClient
from sqlalchemy import Connection, create_engine
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from explorer.config import Settings, get_settings
from explorer.core.exceptions import SourceConnectionError, UnsupportedBackend
from explorer.schemas.data_source import BackendKind, DataSourceRef

logger = logging.getLogger(__name__)

DRIVERS = {
    BackendKind.MYSQL: "mysql+pymysql",
    BackendKind.POSTGRESQL: "postgresql+psycopg2",
    BackendKind.SQLSERVER: "mssql+pymssql",
}


def build_url(source: DataSourceRef) -> URL:
    """SQLAlchemy URL for a relational data source."""
    driver = DRIVERS.get(source.kind)
    if driver is None:
        raise UnsupportedBackend(source.kind.value)
    return URL.create(
        driver,
        username=source.username or None,
        password=source.password or None,
        host=source.host,
        port=source.port,
        database=source.database,
    )


def _connect_args(kind: BackendKind, timeout: int) -> dict:
    if kind is BackendKind.SQLSERVER:
        return {"login_timeout": timeout}
    return {"connect_timeout": timeout}


@contextmanager
def connect(
    source: DataSourceRef, settings: Optional[Settings] = None
) -> Iterator[Connection]:
    """Open a connection to a relational source; disposed on exit."""
    settings = settings or get_settings()
    logger.debug(f"Connecting to {source.kind.value} source {source.id} at {source.host}:{source.port}")
    engine = create_engine(
        build_url(source),
        poolclass=NullPool,
        connect_args=_connect_args(source.kind, settings.CONNECT_TIMEOUT_SECONDS),
    )
    try:
        try:
            conn = engine.connect()
        except SQLAlchemyError as e:
            raise SourceConnectionError(source.id, str(e)) from e
        try:
            yield conn
        finally:
            conn.close()
    finally:
        engine.dispose()


def kafka_config(source: DataSourceRef, settings: Optional[Settings] = None) -> dict:
    """librdkafka configuration for a Kafka source."""
    settings = settings or get_settings()
    config = {
        "bootstrap.servers": f"{source.host}:{source.port}",
        "client.id": settings.KAFKA_CLIENT_ID,
        "request.timeout.ms": int(settings.KAFKA_REQUEST_TIMEOUT_SECONDS * 1000),
    }
    if source.username:
        config.update(
            {
                "security.protocol": "SASL_PLAINTEXT",
                "sasl.mechanism": "PLAIN",
                "sasl.username": source.username,
                "sasl.password": source.password,
            }
        )
    return config


def create_admin_client(
    source: DataSourceRef, settings: Optional[Settings] = None
) -> AdminClient:
    """Admin client for a Kafka source."""
    if source.kind is not BackendKind.KAFKA:
        raise UnsupportedBackend(source.kind.value)
    try:
        return AdminClient(kafka_config(source, settings))
    except KafkaException as e:
        raise SourceConnectionError(source.id, str(e)) from e
