"""Runtime configuration model for RecordLoader.

This module owns all environment variable and config file parsing.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass, field, fields
import os
from pathlib import Path
from typing import Any, Mapping, cast

from core.constants import (
    DEFAULT_CONNECTION_URI,
    DEFAULT_DELIMITER,
    DEFAULT_DOCUMENT_FORMAT,
    DEFAULT_ID_FIELD,
    DEFAULT_INPUT_ENCODING,
    DEFAULT_LOADER_TYPE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_THREAD_COUNT,
    ENV_PREFIX,
    SUPPORTED_DOCUMENT_FORMATS,
    SUPPORTED_LOADER_TYPES,
)
from core.errors import RecordLoaderConfigError, RecordLoaderDependencyError
from core.naming import string_to_boolean
from core.resume_point import ResumePoint
from core.types import DocumentFormat, LoaderType

_BOOLEAN_KEYS = (
    "use_filename_collection",
    "input_normalize_paths",
    "use_filename_ids",
    "skip_existing",
    "error_existing",
)


@dataclass(frozen=True)
class LoaderConfig:
    """Validated runtime configuration.

    The record policy fields are read-only once a job starts. The only
    mutable state is the shared ``resume_point``, which synchronizes itself.

    Attributes:
        connection_uri: Content store location (``file://`` path or ``s3://``).
        thread_count: Maximum concurrent loaders.
        use_filename_collection: Tag documents with their source file name.
        input_normalize_paths: Coalesce backslash runs in record paths.
        use_filename_ids: Use escaped record paths as identifiers.
        input_strip_prefix: Literal prefix removed from identifiers.
        uri_prefix: Prefix for every destination URI, ending in ``/``.
        uri_suffix: Suffix appended to every destination URI.
        skip_existing: Skip records whose URI already exists.
        error_existing: Fail records whose URI already exists.
        document_format: Default document format for loaded records.
        input_encoding: Character encoding for input decoding.
        loader_type: Record discovery strategy name.
        id_field: Field or column holding record identifiers.
        delimiter: Column delimiter for delimited inputs.
        s3_region: Optional AWS region for S3 content stores.
        s3_profile: Optional AWS profile for S3 content stores.
        log_level: Minimum structured log level.
        resume_point: Job-wide start identifier scan state.
    """

    connection_uri: str = DEFAULT_CONNECTION_URI
    thread_count: int = DEFAULT_THREAD_COUNT
    use_filename_collection: bool = False
    input_normalize_paths: bool = False
    use_filename_ids: bool = False
    input_strip_prefix: str | None = None
    uri_prefix: str = ""
    uri_suffix: str = ""
    skip_existing: bool = False
    error_existing: bool = False
    document_format: DocumentFormat = cast(DocumentFormat, DEFAULT_DOCUMENT_FORMAT)
    input_encoding: str = DEFAULT_INPUT_ENCODING
    loader_type: LoaderType = cast(LoaderType, DEFAULT_LOADER_TYPE)
    id_field: str = DEFAULT_ID_FIELD
    delimiter: str = DEFAULT_DELIMITER
    s3_region: str | None = None
    s3_profile: str | None = None
    log_level: str = DEFAULT_LOG_LEVEL
    resume_point: ResumePoint = field(default_factory=ResumePoint, compare=False)

    @property
    def start_id(self) -> str | None:
        """Pending start identifier, shared by every loader in the job."""
        return self.resume_point.value

    def set_start_id(self, start_id: str | None) -> None:
        """Replace the shared start identifier."""
        self.resume_point.set(start_id)

    @property
    def checks_existing(self) -> bool:
        """Return whether records must be checked against the store."""
        return self.skip_existing or self.error_existing

    @classmethod
    def from_env(cls) -> "LoaderConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            RecordLoaderConfigError: If environment values are invalid.
        """
        return _build_config(_read_env_values())

    @classmethod
    def from_file(cls, config_path: str) -> "LoaderConfig":
        """Build config from a YAML file, filling gaps from the environment.

        Args:
            config_path: Path to a YAML mapping of lower-case config keys.

        Returns:
            A validated config object.

        Raises:
            RecordLoaderDependencyError: If PyYAML is unavailable.
            RecordLoaderConfigError: If file or values are invalid.
        """
        return cls.from_sources(config_path)

    @classmethod
    def from_sources(
        cls,
        config_path: str | None = None,
        overrides: Mapping[str, str] | None = None,
    ) -> "LoaderConfig":
        """Build config from env, an optional YAML file, then explicit overrides.

        Later sources win key by key.

        Raises:
            RecordLoaderConfigError: If a key or value is invalid.
        """
        merged_values = _read_env_values()
        if config_path is not None:
            merged_values.update(_load_yaml_values(config_path))
        if overrides:
            unknown_keys = sorted(set(overrides) - set(_config_keys()))
            if unknown_keys:
                raise RecordLoaderConfigError(
                    f"Unknown config override(s): {', '.join(unknown_keys)}."
                )
            merged_values.update(overrides)
        return _build_config(merged_values)

    def describe(self) -> dict[str, object]:
        """Return a JSON-safe view of resolved settings."""
        payload: dict[str, object] = {}
        for config_field in fields(self):
            if config_field.name == "resume_point":
                continue
            payload[config_field.name] = getattr(self, config_field.name)
        payload["start_id"] = self.start_id
        return payload


def _config_keys() -> tuple[str, ...]:
    return tuple(
        config_field.name
        for config_field in fields(LoaderConfig)
        if config_field.name != "resume_point"
    ) + ("start_id",)


def _read_env_values() -> dict[str, str]:
    """Collect prefixed environment values keyed by config name."""
    values: dict[str, str] = {}
    for key in _config_keys():
        raw_value = os.getenv(f"{ENV_PREFIX}{key.upper()}")
        if raw_value is not None:
            values[key] = raw_value
    return values


def _load_yaml_values(config_path: str) -> dict[str, str]:
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise RecordLoaderDependencyError(
            "Config file support requires PyYAML. Install with 'pip install pyyaml'."
        ) from error
    config_file = Path(config_path).expanduser().resolve()
    if not config_file.exists():
        raise RecordLoaderConfigError(
            f"Config file does not exist at {config_file}. Provide a valid YAML file path."
        )
    try:
        payload = yaml.safe_load(config_file.read_text(encoding="utf-8"))
    except OSError as error:
        raise RecordLoaderConfigError(
            f"Failed to read config file at {config_file}: {error}. Check file permissions."
        ) from error
    except yaml.YAMLError as error:
        raise RecordLoaderConfigError(
            f"Failed to parse YAML config at {config_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise RecordLoaderConfigError(
            f"Invalid config file at {config_file}: expected a mapping of settings."
        )
    return _normalize_file_values(config_file, payload)


def _normalize_file_values(config_file: Path, payload: Mapping[Any, Any]) -> dict[str, str]:
    known_keys = set(_config_keys())
    values: dict[str, str] = {}
    for key, value in payload.items():
        if not isinstance(key, str) or key not in known_keys:
            raise RecordLoaderConfigError(
                f"Unknown config key '{key}' in {config_file}. "
                f"Supported keys: {', '.join(sorted(known_keys))}."
            )
        if value is None:
            continue
        values[key] = str(value)
    return values


def _build_config(values: Mapping[str, str]) -> LoaderConfig:
    """Validate raw string values into a config object."""
    booleans = {key: string_to_boolean(values.get(key), False) for key in _BOOLEAN_KEYS}
    return LoaderConfig(
        connection_uri=values.get("connection_uri", DEFAULT_CONNECTION_URI),
        thread_count=_parse_thread_count(values.get("thread_count")),
        input_strip_prefix=values.get("input_strip_prefix") or None,
        uri_prefix=normalize_uri_prefix(values.get("uri_prefix", "")),
        uri_suffix=values.get("uri_suffix", ""),
        document_format=parse_document_format(
            values.get("document_format", DEFAULT_DOCUMENT_FORMAT)
        ),
        input_encoding=_parse_input_encoding(values.get("input_encoding")),
        loader_type=parse_loader_type(values.get("loader_type", DEFAULT_LOADER_TYPE)),
        id_field=values.get("id_field", DEFAULT_ID_FIELD),
        delimiter=_parse_delimiter(values.get("delimiter", DEFAULT_DELIMITER)),
        s3_region=values.get("s3_region") or None,
        s3_profile=values.get("s3_profile") or None,
        log_level=values.get("log_level", DEFAULT_LOG_LEVEL),
        resume_point=ResumePoint(values.get("start_id")),
        **booleans,
    )


def normalize_uri_prefix(raw_prefix: str) -> str:
    """Ensure a non-empty URI prefix ends with exactly one slash."""
    if not raw_prefix:
        return ""
    return raw_prefix.rstrip("/") + "/"


def parse_document_format(raw_value: str) -> DocumentFormat:
    """Validate a document format name.

    Raises:
        RecordLoaderConfigError: If format is unsupported.
    """
    normalized = raw_value.strip().lower()
    if normalized not in SUPPORTED_DOCUMENT_FORMATS:
        raise RecordLoaderConfigError(
            f"Unsupported document format '{raw_value}'. "
            f"Use one of: {', '.join(SUPPORTED_DOCUMENT_FORMATS)}."
        )
    return cast(DocumentFormat, normalized)


def parse_loader_type(raw_value: str) -> LoaderType:
    """Validate a loader type name.

    Raises:
        RecordLoaderConfigError: If loader type is unsupported.
    """
    normalized = raw_value.strip().lower()
    if normalized not in SUPPORTED_LOADER_TYPES:
        raise RecordLoaderConfigError(
            f"Unsupported loader type '{raw_value}'. "
            f"Use one of: {', '.join(SUPPORTED_LOADER_TYPES)}."
        )
    return cast(LoaderType, normalized)


def _parse_input_encoding(raw_value: str | None) -> str:
    """Validate the input character encoding name.

    Raises:
        RecordLoaderConfigError: If the codec is unknown.
    """
    if raw_value is None or not raw_value.strip():
        return DEFAULT_INPUT_ENCODING
    encoding = raw_value.strip()
    try:
        codecs.lookup(encoding)
    except LookupError as error:
        raise RecordLoaderConfigError(
            f"Unknown input encoding '{raw_value}'. Use a Python codec name such as utf-8."
        ) from error
    return encoding


def _parse_thread_count(raw_value: str | None) -> int:
    """Parse the thread count value.

    Raises:
        RecordLoaderConfigError: If value is not a positive integer.
    """
    if raw_value is None:
        return DEFAULT_THREAD_COUNT
    try:
        thread_count = int(raw_value)
    except ValueError as error:
        raise RecordLoaderConfigError(
            "Invalid RECORDLOADER_THREAD_COUNT value: "
            f"expected integer, got '{raw_value}'. "
            "Set RECORDLOADER_THREAD_COUNT to a positive number."
        ) from error
    if thread_count < 1:
        raise RecordLoaderConfigError(
            f"Invalid RECORDLOADER_THREAD_COUNT value {thread_count}: must be at least 1."
        )
    return thread_count


def _parse_delimiter(raw_value: str) -> str:
    if raw_value == "\\t":
        return "\t"
    if len(raw_value) != 1:
        raise RecordLoaderConfigError(
            f"Invalid delimiter '{raw_value}': expected a single character."
        )
    return raw_value
