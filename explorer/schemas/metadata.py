"""Canonical metadata schemas shared by every backend kind."""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class ColumnInfo(BaseModel):
    """Column information schema."""

    model_config = ConfigDict(frozen=True)

    name: str
    data_type: str
    is_nullable: bool
    default_value: Optional[str] = None
    constraints: List[str] = Field(default_factory=list)


class TableInfo(BaseModel):
    """Table information schema; columns keep the backend's ordinal order."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    schema_name: Optional[str] = Field(default=None, alias="schema")
    row_count: Optional[int] = None
    columns: List[ColumnInfo] = Field(default_factory=list)

    def with_row_count(self, row_count: int) -> "TableInfo":
        """Return a copy carrying the given row count."""
        return self.model_copy(update={"row_count": row_count})


class PartitionInfo(BaseModel):
    """Kafka partition placement."""

    model_config = ConfigDict(frozen=True)

    id: int
    leader: int
    replicas: List[int] = Field(default_factory=list)
    isr: List[int] = Field(default_factory=list)


class KafkaTopicInfo(BaseModel):
    """Kafka topic with its partitions and the consumer groups reading it."""

    model_config = ConfigDict(frozen=True)

    name: str
    partitions: List[PartitionInfo] = Field(default_factory=list)
    consumer_groups: List[str] = Field(default_factory=list)


class SchemaInfo(BaseModel):
    """Latest registered version of a Schema Registry subject."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    subject: str
    version: int
    schema_type: str = "AVRO"
    schema_text: str = Field(default="", alias="schema")


class SkippedItem(BaseModel):
    """An item a best-effort enumeration could not resolve."""

    model_config = ConfigDict(frozen=True)

    key: str
    reason: str


class PartialResult(BaseModel, Generic[T]):
    """Items resolved by a best-effort enumeration plus the ones it skipped."""

    items: List[T] = Field(default_factory=list)
    skipped: List[SkippedItem] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.skipped
