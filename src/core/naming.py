"""Naming and stream helpers shared by loaders and configuration.

This module holds small stateless functions for identifier cleanup,
boolean parsing, and draining byte or character streams.
"""

from __future__ import annotations

import codecs
from typing import BinaryIO, Iterable, TextIO, cast

from core.constants import READ_CHUNK_SIZE
from core.errors import RecordLoaderIOError

_FALSE_LITERALS = ("f", "false", "n", "no")


def join(items: Iterable[object], delimiter: str) -> str:
    """Join items with a delimiter between, never before or after.

    Args:
        items: Values to join; non-strings are converted with ``str``.
        delimiter: Separator placed between consecutive items.

    Returns:
        Joined string, empty for empty input.
    """
    return delimiter.join(str(item) for item in items)


def escape_xml(text: str | None) -> str:
    """Escape XML markup characters, ampersand first."""
    if text is None:
        return ""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def string_to_boolean(text: str | None, default: bool = False) -> bool:
    """Parse a loose boolean string.

    Args:
        text: Raw value; ``None`` means unset.
        default: Value returned when ``text`` is unset.

    Returns:
        False for ``""``, ``"0"``, and case-insensitive f/false/n/no;
        True for anything else.
    """
    if text is None:
        return default
    if text in ("", "0"):
        return False
    return text.lower() not in _FALSE_LITERALS


def deepest_cause(error: BaseException) -> BaseException:
    """Follow the exception cause chain back to its root."""
    cause = error
    seen: set[int] = {id(cause)}
    while True:
        parent = _chained_parent(cause)
        if parent is None or id(parent) in seen:
            return cause
        seen.add(id(parent))
        cause = parent


def drain_bytes(stream: BinaryIO | None) -> bytes:
    """Read a byte stream to exhaustion in fixed-size chunks.

    Args:
        stream: Open binary stream.

    Returns:
        Full stream content.

    Raises:
        RecordLoaderIOError: If stream is missing.
    """
    if stream is None:
        raise RecordLoaderIOError("Cannot drain input: stream is None. Bind an input first.")
    buffer = bytearray()
    while True:
        chunk = stream.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        buffer.extend(chunk)
    return bytes(buffer)


def drain_text(stream: BinaryIO | TextIO | None, encoding: str | None = None) -> str:
    """Read a character stream, or a byte stream through a decoder.

    Args:
        stream: Open text stream, or binary stream when ``encoding`` is set.
        encoding: Codec name used to decode a binary stream.

    Returns:
        Full decoded content.

    Raises:
        RecordLoaderIOError: If stream is missing.
    """
    if stream is None:
        raise RecordLoaderIOError("Cannot drain input: stream is None. Bind an input first.")
    if encoding is None:
        parts: list[str] = []
        while True:
            chunk = stream.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            parts.append(cast(str, chunk))
        return "".join(parts)
    decoder = codecs.getincrementaldecoder(encoding)()
    decoded: list[str] = []
    while True:
        raw_chunk = stream.read(READ_CHUNK_SIZE)
        if not raw_chunk:
            break
        decoded.append(decoder.decode(raw_chunk))
    decoded.append(decoder.decode(b"", final=True))
    return "".join(decoded)


def strip_extension(name: str | None) -> str | None:
    """Drop the last extension from a file name.

    Names shorter than three characters, and names whose only dot is the
    leading character, are returned unchanged.
    """
    if name is None or len(name) < 3:
        return name
    dot_index = name.rfind(".")
    if dot_index < 1:
        return name
    return name[:dot_index]


def _chained_parent(error: BaseException) -> BaseException | None:
    if error.__cause__ is not None:
        return error.__cause__
    if error.__suppress_context__:
        return None
    return error.__context__
