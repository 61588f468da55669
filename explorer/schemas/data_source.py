"""Data source descriptor schemas."""

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from explorer.core.exceptions import UnsupportedBackend


class BackendKind(str, enum.Enum):
    """Families of external systems a data source can point at."""

    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLSERVER = "sqlserver"
    KAFKA = "kafka"

    @property
    def is_relational(self) -> bool:
        return self is not BackendKind.KAFKA

    @classmethod
    def parse(cls, value: "str | BackendKind") -> "BackendKind":
        """Parse a stored data_type, rejecting unknown kinds."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnsupportedBackend(str(value)) from None


# Schema used when neither the call nor the source names one
DEFAULT_SCHEMAS = {
    BackendKind.POSTGRESQL: "public",
    BackendKind.SQLSERVER: "dbo",
}


class DataSourceRef(BaseModel):
    """Immutable connection descriptor handed to adapters."""

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    context_id: Optional[int] = None
    name: str = ""
    kind: BackendKind
    host: str
    port: int
    database: Optional[str] = None
    schema_name: Optional[str] = None
    username: str = ""
    password: str = Field(default="", repr=False)
    schema_registry_url: Optional[str] = None

    @field_validator("kind", mode="before")
    @classmethod
    def _parse_kind(cls, value):
        return BackendKind.parse(value)

    def resolve_schema(self, schema: Optional[str] = None) -> Optional[str]:
        """Pick the schema to query: explicit, configured, then family default."""
        if schema:
            return schema
        if self.schema_name:
            return self.schema_name
        if self.kind is BackendKind.MYSQL:
            return self.database
        return DEFAULT_SCHEMAS.get(self.kind)

    @classmethod
    def from_row(cls, row) -> "DataSourceRef":
        """Build a descriptor from a persisted DataSource row."""
        return cls(
            id=row.id,
            context_id=row.context_id,
            name=row.name,
            kind=BackendKind.parse(row.data_type),
            host=row.host,
            port=row.port,
            database=row.database,
            schema_name=row.schema_name,
            username=row.username or "",
            password=row.password or "",
            schema_registry_url=row.schema_registry_url,
        )


class DataSourceCreate(BaseModel):
    """Data source creation schema."""

    context_id: int
    name: str = Field(..., min_length=1, max_length=255)
    data_type: BackendKind
    host: str = Field(..., min_length=1, max_length=255)
    port: int = Field(..., ge=1, le=65535)
    database: Optional[str] = None
    schema_name: Optional[str] = None
    username: str = ""
    password: str = ""
    schema_registry_url: Optional[str] = None

    @field_validator("data_type", mode="before")
    @classmethod
    def _parse_kind(cls, value):
        return BackendKind.parse(value)


class DataSourceUpdate(BaseModel):
    """Data source update schema."""

    context_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    host: Optional[str] = Field(None, min_length=1, max_length=255)
    port: Optional[int] = Field(None, ge=1, le=65535)
    database: Optional[str] = None
    schema_name: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    schema_registry_url: Optional[str] = None
