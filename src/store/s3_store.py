"""S3 content store.

This module encapsulates boto3 client creation and object writes.
Destination URIs map onto object keys under the connection prefix.
"""

from __future__ import annotations

from typing import Any

from core.config import LoaderConfig
from core.constants import CONTENT_TYPES
from core.errors import (
    RecordLoaderDependencyError,
    RecordLoaderFatalError,
    RecordLoaderStoreError,
)
from core.naming import join
from core.s3_uri import S3Location, parse_s3_uri
from core.types import SourceRecord
from store.content import BaseContentFactory

_MISSING_OBJECT_CODES = ("404", "NoSuchKey", "NotFound")


def create_s3_client(config: LoaderConfig) -> Any:
    """Create boto3 S3 client for content writes.

    Args:
        config: Runtime config with optional session settings.

    Returns:
        Boto3 S3 client.

    Raises:
        RecordLoaderDependencyError: If boto3 is missing.
        RecordLoaderStoreError: If the session or client cannot be created.
    """
    try:
        import boto3
        from botocore.exceptions import BotoCoreError
    except ImportError as error:
        raise RecordLoaderDependencyError(
            "S3 content store requires boto3, but it is not installed. "
            "Install boto3 to load records into s3:// destinations."
        ) from error
    session_kwargs: dict[str, str] = {}
    if config.s3_profile:
        session_kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        session_kwargs["region_name"] = config.s3_region
    try:
        session = boto3.session.Session(**session_kwargs)
        return session.client("s3")
    except BotoCoreError as error:
        raise RecordLoaderStoreError(
            f"Failed to create S3 client (profile={config.s3_profile}, "
            f"region={config.s3_region}): {error}. Check AWS profile and region settings."
        ) from error


class S3Content:
    """Record handle writing one S3 object."""

    def __init__(
        self,
        s3_client: Any,
        location: S3Location,
        uri: str,
        record: SourceRecord,
        encoding: str,
        collections: tuple[str, ...],
    ) -> None:
        self._s3_client = s3_client
        self._location = location
        self._uri = uri
        self._record = record
        self._encoding = encoding
        self._collections = collections

    def check_document_uri(self, uri: str) -> bool:
        """Return whether an object exists for ``uri``.

        Raises:
            RecordLoaderStoreError: If the lookup fails for any reason but absence.
        """
        object_key = self._location.object_key(uri)
        try:
            self._s3_client.head_object(Bucket=self._location.bucket, Key=object_key)
        except Exception as error:
            if _error_code(error) in _MISSING_OBJECT_CODES:
                return False
            raise RecordLoaderStoreError(
                f"Failed to check s3://{self._location.bucket}/{object_key}: {error}. "
                "Check AWS credentials and bucket permissions."
            ) from error
        return True

    def insert(self) -> None:
        """Put the record payload as one object.

        Raises:
            RecordLoaderStoreError: If the upload fails.
        """
        object_key = self._location.object_key(self._uri)
        payload = self._record.payload
        body = payload if isinstance(payload, bytes) else payload.encode(self._encoding)
        put_kwargs: dict[str, Any] = {
            "Bucket": self._location.bucket,
            "Key": object_key,
            "Body": body,
            "ContentType": CONTENT_TYPES[self._record.document_format],
        }
        if self._collections:
            put_kwargs["Metadata"] = {"collections": join(self._collections, ",")}
        try:
            self._s3_client.put_object(**put_kwargs)
        except Exception as error:
            raise RecordLoaderStoreError(
                f"Failed to insert {self._uri} to s3://{self._location.bucket}/{object_key}: "
                f"{error}. Check AWS credentials and retry the load."
            ) from error

    def close(self) -> None:
        """Nothing to release; the client belongs to the factory."""


class S3ContentFactory(BaseContentFactory):
    """Content factory for ``s3://`` connection URIs."""

    def __init__(self, s3_client: Any | None = None) -> None:
        super().__init__()
        self._s3_client = s3_client
        self._location: S3Location | None = None

    def new_content(self, uri: str, record: SourceRecord) -> S3Content:
        self._ensure_open()
        if self._location is None:
            raise RecordLoaderFatalError(
                "S3 content factory has no bucket location; the connection failed."
            )
        return S3Content(
            self._s3_client,
            self._location,
            uri,
            record,
            self.config.input_encoding,
            self.collections,
        )

    def _connect(self, connection_uri: str) -> None:
        self._location = parse_s3_uri(connection_uri)
        if self._s3_client is None:
            self._s3_client = create_s3_client(self.config)

    def _disconnect(self) -> None:
        close_client = getattr(self._s3_client, "close", None)
        if callable(close_client):
            close_client()
        self._s3_client = None


def _error_code(error: Exception) -> str | None:
    """Extract a botocore error code when present."""
    response = getattr(error, "response", None)
    if not isinstance(response, dict):
        return None
    error_payload = response.get("Error", {})
    if not isinstance(error_payload, dict):
        return None
    code = error_payload.get("Code")
    return str(code) if code is not None else None
