"""Content factory selection.

This module picks a content store implementation from the connection
URI scheme and returns a configured, connected factory.
"""

from __future__ import annotations

from core.config import LoaderConfig
from store.content import ContentFactory
from store.filesystem_store import FilesystemContentFactory
from store.s3_store import S3ContentFactory


def build_content_factory(config: LoaderConfig) -> ContentFactory:
    """Create and connect a factory for ``config.connection_uri``.

    Args:
        config: Runtime configuration.

    Returns:
        Connected content factory owned by one loader.
    """
    factory: ContentFactory
    if config.connection_uri.startswith("s3://"):
        factory = S3ContentFactory()
    else:
        factory = FilesystemContentFactory()
    factory.set_configuration(config)
    factory.set_connection_uri(config.connection_uri)
    return factory
