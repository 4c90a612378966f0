"""Core constants used across RecordLoader modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

ENV_PREFIX = "RECORDLOADER_"
READ_CHUNK_SIZE = 32 * 1024
DEFAULT_THREAD_COUNT = 1
DEFAULT_INPUT_ENCODING = "utf-8"
DEFAULT_DOCUMENT_FORMAT = "xml"
DEFAULT_LOADER_TYPE = "file"
DEFAULT_ID_FIELD = "id"
DEFAULT_DELIMITER = ","
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_CONNECTION_URI = "file://./recordloader-output"
SUPPORTED_DOCUMENT_FORMATS = ("xml", "binary", "text")
SUPPORTED_LOADER_TYPES = ("file", "jsonl", "delimited")
ZIP_ARCHIVE_EXTENSIONS = (".zip",)
COLLECTIONS_SIDECAR_SUFFIX = ".collections.json"
TEMP_FILE_SUFFIX = ".partial"
DELIMITED_ROOT_ELEMENT = "record"
SKIP_REASON_ID_MISMATCH = "id mismatch"
SKIP_REASON_EXISTING_URI = "existing uri"
CONTENT_TYPES = {
    "xml": "application/xml",
    "binary": "application/octet-stream",
    "text": "text/plain; charset=utf-8",
}
