"""Work unit discovery for load inputs.

This module expands input files, directories, and zip archives into
an ordered list of work units, and opens each unit's byte stream.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Iterable, cast
import zipfile

from core.config import LoaderConfig
from core.constants import ZIP_ARCHIVE_EXTENSIONS
from core.errors import RecordLoaderIOError
from core.types import WorkUnit


def discover_work_units(inputs: Iterable[str], config: LoaderConfig) -> list[WorkUnit]:
    """Expand inputs into work units in a stable order.

    Directories are walked recursively in sorted order; zip archives
    contribute one unit per file member in archive order.

    Args:
        inputs: Input file, directory, or archive paths.
        config: Runtime configuration.

    Returns:
        Ordered work units.

    Raises:
        RecordLoaderIOError: If an input is missing or an archive is unreadable.
    """
    units: list[WorkUnit] = []
    for raw_input in inputs:
        input_path = Path(raw_input).expanduser().resolve()
        if not input_path.exists():
            raise RecordLoaderIOError(
                f"Failed to read input at {input_path}: path does not exist. "
                "Provide an existing file, directory, or zip archive."
            )
        if input_path.is_file():
            units.extend(_file_units(input_path, input_path.name, config))
            continue
        for file_path in sorted(input_path.rglob("*")):
            if file_path.is_file():
                relative_path = file_path.relative_to(input_path).as_posix()
                units.extend(_file_units(file_path, relative_path, config))
    return units


def open_work_unit(unit: WorkUnit) -> BinaryIO:
    """Open the byte stream for one archive member.

    The archive handle stays open until the returned member stream is closed.

    Raises:
        RecordLoaderIOError: If the archive or member cannot be opened.
    """
    if not unit.archive_member or unit.entry_path is None:
        raise RecordLoaderIOError(f"Work unit {unit.display_path} is not an archive member.")
    try:
        with zipfile.ZipFile(unit.path) as archive:
            return cast(BinaryIO, archive.open(unit.entry_path))
    except (OSError, KeyError, zipfile.BadZipFile) as error:
        raise RecordLoaderIOError(
            f"Failed to open archive entry {unit.display_path}: {error}."
        ) from error


def _file_units(file_path: Path, relative_path: str, config: LoaderConfig) -> list[WorkUnit]:
    if file_path.suffix.lower() in ZIP_ARCHIVE_EXTENSIONS:
        return _archive_units(file_path, config)
    basename = None if config.loader_type == "file" else file_path.name
    return [
        WorkUnit(
            path=file_path,
            encoding=config.input_encoding,
            basename=basename,
            entry_path=relative_path,
        )
    ]


def _archive_units(archive_path: Path, config: LoaderConfig) -> list[WorkUnit]:
    """List file members of a zip archive as work units."""
    try:
        with zipfile.ZipFile(archive_path) as archive:
            member_names = [info.filename for info in archive.infolist() if not info.is_dir()]
    except (OSError, zipfile.BadZipFile) as error:
        raise RecordLoaderIOError(
            f"Failed to read zip archive at {archive_path}: {error}. "
            "Check that the file is a valid zip archive."
        ) from error
    return [
        WorkUnit(
            path=archive_path,
            encoding=config.input_encoding,
            basename=archive_path.name,
            entry_path=member_name,
            archive_member=True,
        )
        for member_name in member_names
    ]
