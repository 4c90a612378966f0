"""S3 URI parsing helpers.

This module parses ``s3://bucket/prefix`` connection URIs for the
S3 content store and joins destination URIs onto object keys.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import RecordLoaderConfigError


@dataclass(frozen=True)
class S3Location:
    """Parsed S3 location model."""

    bucket: str
    prefix: str

    def object_key(self, document_uri: str) -> str:
        """Map a destination URI onto an object key under the prefix."""
        relative_key = document_uri.lstrip("/")
        if not self.prefix:
            return relative_key
        return f"{self.prefix.rstrip('/')}/{relative_key}"


def parse_s3_uri(uri: str) -> S3Location:
    """Parse and validate an S3 connection URI.

    Args:
        uri: URI in format ``s3://bucket`` or ``s3://bucket/prefix``.

    Returns:
        Parsed bucket and prefix pair.

    Raises:
        RecordLoaderConfigError: If URI has no bucket.
    """
    if not uri.startswith("s3://"):
        _raise_uri_error(uri)
    stripped_uri = uri.removeprefix("s3://")
    bucket, _, prefix = stripped_uri.partition("/")
    if not bucket:
        _raise_uri_error(uri)
    return S3Location(bucket=bucket, prefix=prefix)


def _raise_uri_error(uri: str) -> None:
    """Raise an invalid connection URI error."""
    raise RecordLoaderConfigError(
        f"Invalid S3 connection URI '{uri}': expected s3://bucket/prefix. "
        "Provide at least a bucket name."
    )
