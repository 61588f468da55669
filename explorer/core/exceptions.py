"""Custom exception classes."""

from typing import Optional


class MetadataError(Exception):
    """Base class for all metadata explorer errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class SourceConnectionError(MetadataError):
    """Exception for a backend that cannot be reached or authenticated."""

    def __init__(self, source_id: Optional[int], detail: str):
        self.source_id = source_id
        super().__init__(f"Could not connect to data source {source_id}: {detail}")


class UnsupportedBackend(MetadataError):
    """Exception for a backend kind with no adapter."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Unsupported data source type: {kind}")


class UnsupportedOperation(MetadataError):
    """Exception for an operation the backend kind cannot perform."""

    def __init__(self, operation: str, kind: str):
        self.operation = operation
        self.kind = kind
        super().__init__(f"Operation '{operation}' is not supported for {kind} sources")


class FetchFailed(MetadataError):
    """Exception wrapping a backend error with call context."""

    def __init__(self, operation: str, source_id: Optional[int], detail: str):
        self.operation = operation
        self.source_id = source_id
        super().__init__(f"{operation} failed for data source {source_id}: {detail}")


class RegistryUnavailable(MetadataError):
    """Exception for a schema registry that cannot be listed."""

    def __init__(self, detail: str):
        super().__init__(f"Schema Registry unavailable: {detail}")


class SerializationError(MetadataError):
    """Exception for metadata that cannot be encoded or decoded."""


class NotFound(MetadataError):
    """Exception for resource not found."""

    def __init__(self, resource: str = "Resource"):
        self.resource = resource
        super().__init__(f"{resource} not found")


class StoreError(MetadataError):
    """Exception for failures of the local metadata store."""


class UnsavedDataSource(MetadataError):
    """Exception for a descriptor with no id where a persisted one is required."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Data source '{name}' has no id; save it before caching its metadata")
