"""Minimal Confluent Schema Registry client."""

from typing import List, Optional
from urllib.parse import quote

import httpx

from explorer.schemas.metadata import SchemaInfo


class SchemaRegistryClient:
    """
    Reads subjects and their latest schema versions.

    Use as a context manager; the underlying HTTP client is closed on exit.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/vnd.schemaregistry.v1+json, application/json"},
        )

    def __enter__(self) -> "SchemaRegistryClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def list_subjects(self) -> List[str]:
        """GET /subjects."""
        response = self._client.get("/subjects")
        response.raise_for_status()
        subjects = response.json()
        if not isinstance(subjects, list):
            raise ValueError(f"Expected a list of subjects, got {type(subjects).__name__}")
        return [str(s) for s in subjects]

    def latest_version(self, subject: str) -> SchemaInfo:
        """GET /subjects/{subject}/versions/latest."""
        response = self._client.get(f"/subjects/{quote(subject, safe='')}/versions/latest")
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected schema payload for subject {subject}")

        return SchemaInfo(
            subject=subject,
            version=int(data.get("version") or 0),
            schema_type=data.get("schemaType") or data.get("schema_type") or "AVRO",
            schema_text=data.get("schema") or "",
        )
