"""Content factory and record handle contracts.

This module defines the boundary between loaders and a content store.
One factory owns one store connection and manufactures per-record handles.
"""

from __future__ import annotations

from typing import Protocol

from core.config import LoaderConfig
from core.errors import RecordLoaderFatalError
from core.types import SourceRecord


class RecordContent(Protocol):
    """Store-facing handle for one record."""

    def check_document_uri(self, uri: str) -> bool:
        """Return whether a document already exists at ``uri``."""
        ...

    def insert(self) -> None:
        """Write the record into the store."""
        ...

    def close(self) -> None:
        """Release any record-level resources."""
        ...


class ContentFactory(Protocol):
    """Connection-scoped manufacturer of record content handles."""

    def set_configuration(self, config: LoaderConfig) -> None:
        """Attach job configuration."""
        ...

    def set_connection_uri(self, connection_uri: str) -> None:
        """Bind the factory to one store connection."""
        ...

    def set_file_basename(self, name: str | None) -> None:
        """Tag subsequent content with a source file collection."""
        ...

    def new_content(self, uri: str, record: SourceRecord) -> RecordContent:
        """Create a handle for inserting ``record`` at ``uri``."""
        ...

    def close(self) -> None:
        """Close the store connection."""
        ...


class BaseContentFactory:
    """Shared configuration and lifecycle state for content factories."""

    def __init__(self) -> None:
        self._config: LoaderConfig | None = None
        self._connection_uri: str | None = None
        self._collections: tuple[str, ...] = ()
        self._closed = False

    @property
    def config(self) -> LoaderConfig:
        if self._config is None:
            raise RecordLoaderFatalError(
                "Content factory used before set_configuration(). Configure it first."
            )
        return self._config

    @property
    def collections(self) -> tuple[str, ...]:
        return self._collections

    @property
    def closed(self) -> bool:
        return self._closed

    def set_configuration(self, config: LoaderConfig) -> None:
        self._config = config

    def set_connection_uri(self, connection_uri: str) -> None:
        if self._config is None:
            raise RecordLoaderFatalError(
                "Content factory needs set_configuration() before set_connection_uri()."
            )
        self._connection_uri = connection_uri
        self._connect(connection_uri)

    def set_file_basename(self, name: str | None) -> None:
        self._collections = (name,) if name else ()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._disconnect()

    def _ensure_open(self) -> None:
        if self._closed:
            raise RecordLoaderFatalError("Content factory is closed; cannot create content.")
        if self._connection_uri is None:
            raise RecordLoaderFatalError(
                "Content factory used before set_connection_uri(). Bind a connection first."
            )

    def _connect(self, connection_uri: str) -> None:
        """Open the underlying connection; subclasses override."""

    def _disconnect(self) -> None:
        """Close the underlying connection; subclasses override."""
