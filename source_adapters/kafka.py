"""Kafka topic and Schema Registry metadata."""

import logging
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Set

import httpx
from confluent_kafka import KafkaException
from confluent_kafka.admin import AdminClient

from explorer.config import Settings, get_settings
from explorer.core.exceptions import RegistryUnavailable
from explorer.schemas.data_source import BackendKind, DataSourceRef
from explorer.schemas.metadata import (
    KafkaTopicInfo,
    PartialResult,
    PartitionInfo,
    SchemaInfo,
    SkippedItem,
)
from source_adapters.base import MetadataAdapter
from source_adapters.connectors import create_admin_client
from source_adapters.registry import SchemaRegistryClient

logger = logging.getLogger(__name__)


class KafkaAdapter(MetadataAdapter):
    """
    Adapter for Kafka clusters and their Schema Registry.

    Topics come from cluster metadata; consumer groups are attributed to a
    topic through their active members' partition assignments, so a group
    with no running consumers is listed by fetch_consumer_groups but not
    on any topic.
    """

    kind = BackendKind.KAFKA

    def __init__(
        self,
        admin_factory: Optional[Callable[[DataSourceRef], AdminClient]] = None,
        registry_factory: Optional[Callable[[str], SchemaRegistryClient]] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self._timeout = settings.KAFKA_REQUEST_TIMEOUT_SECONDS
        self._admin_factory = admin_factory or (
            lambda source: create_admin_client(source, settings)
        )
        self._registry_factory = registry_factory or (
            lambda url: SchemaRegistryClient(url, timeout=settings.REGISTRY_TIMEOUT_SECONDS)
        )

    def test_connection(self, source: DataSourceRef) -> None:
        self._admin_factory(source).list_topics(timeout=self._timeout)

    def fetch_topics(self, source: DataSourceRef) -> List[KafkaTopicInfo]:
        admin = self._admin_factory(source)
        metadata = admin.list_topics(timeout=self._timeout)
        groups_by_topic = self._consumer_groups_by_topic(admin)

        topics = []
        for name in sorted(metadata.topics):
            topic = metadata.topics[name]
            if topic.error is not None:
                raise KafkaException(topic.error)
            partitions = [
                PartitionInfo(
                    id=p.id,
                    leader=p.leader,
                    replicas=list(p.replicas),
                    isr=list(p.isrs),
                )
                for p in sorted(topic.partitions.values(), key=lambda p: p.id)
            ]
            topics.append(
                KafkaTopicInfo(
                    name=name,
                    partitions=partitions,
                    consumer_groups=sorted(groups_by_topic.get(name, ())),
                )
            )

        logger.info(f"Fetched {len(topics)} topics from source {source.id}")
        return topics

    def fetch_consumer_groups(self, source: DataSourceRef) -> List[str]:
        return sorted(self._list_group_ids(self._admin_factory(source)))

    def fetch_registry_schemas(self, source: DataSourceRef) -> PartialResult[SchemaInfo]:
        """
        Latest schema of every registry subject.

        Subjects whose latest version cannot be read are skipped and
        reported; failing to list the subjects at all is an error.
        """
        if not source.schema_registry_url:
            raise RegistryUnavailable("Schema Registry URL not configured")

        items: List[SchemaInfo] = []
        skipped: List[SkippedItem] = []
        with self._registry_factory(source.schema_registry_url) as registry:
            try:
                subjects = registry.list_subjects()
            except (httpx.HTTPError, ValueError) as e:
                raise RegistryUnavailable(str(e)) from e

            for subject in subjects:
                try:
                    items.append(registry.latest_version(subject))
                except (httpx.HTTPError, ValueError) as e:
                    logger.warning(f"Skipping subject '{subject}': {e}")
                    skipped.append(SkippedItem(key=subject, reason=str(e)))

        return PartialResult[SchemaInfo](items=items, skipped=skipped)

    def _list_group_ids(self, admin: AdminClient) -> List[str]:
        future = admin.list_consumer_groups(request_timeout=self._timeout)
        return [group.group_id for group in future.result().valid]

    def _consumer_groups_by_topic(self, admin: AdminClient) -> Dict[str, Set[str]]:
        group_ids = self._list_group_ids(admin)
        if not group_ids:
            return {}

        by_topic: Dict[str, Set[str]] = defaultdict(set)
        futures = admin.describe_consumer_groups(group_ids, request_timeout=self._timeout)
        for group_id, future in futures.items():
            description = future.result()
            for member in description.members:
                if member.assignment is None:
                    continue
                for tp in member.assignment.topic_partitions:
                    by_topic[tp.topic].add(group_id)
        return by_topic
