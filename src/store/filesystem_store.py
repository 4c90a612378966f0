"""Local filesystem content store.

This module writes each record as one file under a root directory.
Destination URIs map onto relative paths beneath that root.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from core.constants import COLLECTIONS_SIDECAR_SUFFIX, TEMP_FILE_SUFFIX
from core.errors import RecordLoaderFatalError, RecordLoaderStoreError
from core.types import SourceRecord
from store.content import BaseContentFactory


class FilesystemContent:
    """Record handle writing one file atomically."""

    def __init__(
        self,
        root_dir: Path,
        uri: str,
        record: SourceRecord,
        encoding: str,
        collections: tuple[str, ...],
    ) -> None:
        self._root_dir = root_dir
        self._uri = uri
        self._record = record
        self._encoding = encoding
        self._collections = collections
        self._closed = False

    def check_document_uri(self, uri: str) -> bool:
        return resolve_document_path(self._root_dir, uri).exists()

    def insert(self) -> None:
        """Write payload to a temp file, then rename into place.

        Raises:
            RecordLoaderStoreError: If the file cannot be written.
        """
        if self._closed:
            raise RecordLoaderStoreError(f"Cannot insert {self._uri}: content handle is closed.")
        target_path = resolve_document_path(self._root_dir, self._uri)
        payload = self._record.payload
        body = payload if isinstance(payload, bytes) else payload.encode(self._encoding)
        temp_path: Path | None = None
        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_name = tempfile.mkstemp(
                prefix=f".{target_path.name}.",
                suffix=TEMP_FILE_SUFFIX,
                dir=target_path.parent,
            )
            temp_path = Path(temp_name)
            with os.fdopen(temp_fd, "wb") as temp_file:
                temp_file.write(body)
            os.replace(temp_path, target_path)
            temp_path = None
            if self._collections:
                _write_collections(target_path, self._collections)
        except OSError as error:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise RecordLoaderStoreError(
                f"Failed to write document {self._uri} to {target_path}: {error}. "
                "Check output directory permissions and free space."
            ) from error

    def close(self) -> None:
        self._closed = True


class FilesystemContentFactory(BaseContentFactory):
    """Content factory for ``file://`` connection URIs and plain paths."""

    def __init__(self) -> None:
        super().__init__()
        self._root_dir: Path | None = None

    @property
    def root_dir(self) -> Path | None:
        return self._root_dir

    def new_content(self, uri: str, record: SourceRecord) -> FilesystemContent:
        self._ensure_open()
        if self._root_dir is None:
            raise RecordLoaderFatalError(
                "Filesystem content factory has no root directory; the connection failed."
            )
        return FilesystemContent(
            self._root_dir,
            uri,
            record,
            self.config.input_encoding,
            self.collections,
        )

    def _connect(self, connection_uri: str) -> None:
        self._root_dir = parse_file_uri(connection_uri)

    def _disconnect(self) -> None:
        self._root_dir = None


def parse_file_uri(connection_uri: str) -> Path:
    """Resolve a ``file://`` URI or plain path into a root directory."""
    raw_path = connection_uri.removeprefix("file://")
    if not raw_path:
        raise RecordLoaderStoreError(
            f"Invalid file connection URI '{connection_uri}': missing directory path."
        )
    return Path(raw_path).expanduser().resolve()


def resolve_document_path(root_dir: Path, uri: str) -> Path:
    """Map a destination URI onto a path inside the store root.

    Raises:
        RecordLoaderStoreError: If the URI escapes the store root.
    """
    relative_uri = uri.lstrip("/")
    if not relative_uri:
        raise RecordLoaderStoreError(f"Invalid document URI '{uri}': resolves to store root.")
    document_path = (root_dir / relative_uri).resolve()
    if not document_path.is_relative_to(root_dir):
        raise RecordLoaderStoreError(
            f"Invalid document URI '{uri}': resolves outside store root {root_dir}."
        )
    return document_path


def _write_collections(target_path: Path, collections: tuple[str, ...]) -> None:
    """Record filename collections in a JSON sidecar beside the document."""
    sidecar_path = target_path.with_name(target_path.name + COLLECTIONS_SIDECAR_SUFFIX)
    sidecar_path.write_text(json.dumps(list(collections)) + "\n", encoding="utf-8")
