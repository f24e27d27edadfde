"""Numbered file handles.

Handles are small positive integers. Closed handles are recycled by the next
open call. Opening functions return 0 instead of raising; reads return a
``(value, ok)`` pair where ``ok`` is False at end of file or on malformed
text. Using a handle that was never opened or is closed raises
:class:`~modelrt.InvalidFileNumber`.
"""

from __future__ import annotations

import os
import struct
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO, Any

from ._internal.dtypes import ElementKind
from ._internal.errors import (
    FileCloseError,
    FileReadError,
    FileSeekError,
    FileWriteError,
    InvalidFileNumber,
    InvalidParameterValue,
)
from ._internal.persistence import load_matrix, save_matrix
from ._internal.tuples import Tuple

__all__ = [
    "OpenMode",
    "FileRegistry",
    "open_read",
    "open_write_truncate",
    "open_write_append",
    "exists",
    "close",
    "delete",
    "seek",
    "read_byte",
    "write_byte",
    "read_string",
    "write_string",
    "read_integer",
    "write_integer",
    "read_real",
    "write_real",
    "load_boolean_matrix",
    "load_integer_matrix",
    "load_real_matrix",
    "load_complex_matrix",
    "save_boolean_matrix",
    "save_integer_matrix",
    "save_real_matrix",
    "save_complex_matrix",
]


class OpenMode(Enum):
    CLOSED = "closed"
    READ = "read"
    READ_WRITE = "read_write"


@dataclass
class FileRecord:
    path: Path
    binary: bool
    mode: OpenMode = OpenMode.CLOSED
    stream: IO[bytes] | None = None


class FileRegistry:
    """Process-wide table of open files indexed by 1-based handle."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: list[FileRecord] = []

    def open(self, path: Any, binary: bool, mode: str) -> int:
        path = Path(_as_path(path))
        try:
            stream = path.open(mode)
        except OSError:
            return 0
        record = FileRecord(
            path=path,
            binary=bool(binary),
            mode=OpenMode.READ if mode == "rb" else OpenMode.READ_WRITE,
            stream=stream,
        )
        with self._lock:
            for index, existing in enumerate(self._records):
                if existing.mode == OpenMode.CLOSED:
                    self._records[index] = record
                    return index + 1
            self._records.append(record)
            return len(self._records)

    def get(self, handle: int) -> FileRecord:
        with self._lock:
            if handle <= 0 or handle > len(self._records):
                raise InvalidFileNumber(handle)
            record = self._records[handle - 1]
        if record.mode == OpenMode.CLOSED:
            raise InvalidFileNumber(handle)
        return record

    def close(self, handle: int) -> bool:
        with self._lock:
            if handle <= 0 or handle > len(self._records):
                raise InvalidFileNumber(handle)
            record = self._records[handle - 1]
            if record.mode == OpenMode.CLOSED:
                raise InvalidFileNumber(handle)
            stream = record.stream
            record.mode = OpenMode.CLOSED
            record.stream = None
        try:
            stream.close()
        except OSError as exc:
            raise FileCloseError(str(record.path), exc.errno or 0) from exc
        return True

    def open_handles(self) -> list[int]:
        with self._lock:
            return [i + 1 for i, r in enumerate(self._records) if r.mode != OpenMode.CLOSED]


_registry = FileRegistry()


def _as_path(path: Any) -> str:
    if isinstance(path, Tuple):
        return path.to_string()
    return os.fspath(path)


def open_read(path: Any, binary: bool = False) -> int:
    return _registry.open(path, binary, "rb")


def open_write_truncate(path: Any, binary: bool = False) -> int:
    return _registry.open(path, binary, "w+b")


def open_write_append(path: Any, binary: bool = False) -> int:
    return _registry.open(path, binary, "a+b")


def exists(path: Any) -> bool:
    return Path(_as_path(path)).exists()


def close(handle: int) -> bool:
    return _registry.close(handle)


def delete(target: Any) -> bool:
    """Delete a file by path or by handle; an open handle is closed first."""
    if isinstance(target, int) and not isinstance(target, bool):
        path = _registry.get(target).path
        _registry.close(target)
    else:
        path = Path(_as_path(target))
    try:
        path.unlink()
    except OSError:
        return False
    return True


def seek(handle: int, offset: int) -> bool:
    record = _registry.get(handle)
    try:
        record.stream.seek(offset)
    except (OSError, ValueError) as exc:
        raise FileSeekError(str(record.path), getattr(exc, "errno", 0) or 0) from exc
    return True


# -- raw access ----------------------------------------------------------------


def _read(record: FileRecord, count: int) -> bytes:
    try:
        return record.stream.read(count)
    except OSError as exc:
        raise FileReadError(str(record.path), exc.errno or 0) from exc


def _write(record: FileRecord, data: bytes) -> bool:
    try:
        record.stream.write(data)
        record.stream.flush()
    except OSError as exc:
        raise FileWriteError(str(record.path), exc.errno or 0) from exc
    return True


def _unread(record: FileRecord, count: int = 1) -> None:
    record.stream.seek(-count, os.SEEK_CUR)


def read_byte(handle: int) -> tuple[int, bool]:
    data = _read(_registry.get(handle), 1)
    if len(data) != 1:
        return -1, False
    return data[0], True


def write_byte(handle: int, value: int) -> bool:
    if not 0 <= value <= 255:
        raise InvalidParameterValue(f"byte value out of range: {value}")
    return _write(_registry.get(handle), bytes([value]))


def _utf8_length(lead: int) -> int:
    if lead & 0xE0 == 0xC0:
        return 2
    if lead & 0xF0 == 0xE0:
        return 3
    if lead & 0xF8 == 0xF0:
        return 4
    return 1


def read_string(handle: int, length: int = 0, utf8: bool = True) -> tuple[str, bool]:
    """Read text from the file.

    ``length == 0`` reads one line and consumes its CR/LF terminator,
    ``length < 0`` reads the rest of the file and ``length > 0`` reads that
    many characters (code points when ``utf8``, bytes otherwise).
    """
    record = _registry.get(handle)
    encoding = "utf-8" if utf8 else "latin-1"
    if length < 0:
        data = _read(record, -1)
    elif length == 0:
        data = record.stream.readline()
        if not data:
            return "", False
        data = data.rstrip(b"\r\n")
    else:
        chunks = bytearray()
        for _ in range(length):
            lead = _read(record, 1)
            if not lead:
                return chunks.decode(encoding, errors="replace"), False
            chunks += lead
            if utf8:
                extra = _utf8_length(lead[0]) - 1
                if extra:
                    chunks += _read(record, extra)
        data = bytes(chunks)
    return data.decode(encoding, errors="replace"), True


def write_string(handle: int, text: Any, newline: bool = False) -> bool:
    if isinstance(text, Tuple):
        text = text.to_string()
    if newline:
        text += "\n"
    return _write(_registry.get(handle), str(text).encode("utf-8"))


# -- numbers -------------------------------------------------------------------


def _clamp_width(width: int) -> int:
    return max(-8, min(8, int(width)))


def _read_token(record: FileRecord, accept) -> str:
    buffer = ""
    while True:
        c = _read(record, 1)
        if not c:
            return buffer
        ch = chr(c[0])
        if accept(buffer, ch):
            buffer += ch
        else:
            _unread(record)
            return buffer


def _accept_integer(buffer: str, ch: str) -> bool:
    if not buffer:
        return ch.isdigit() or ch in "+-"
    if len(buffer) == 1 and buffer == "0" and ch in "xb":
        return True
    if buffer.startswith("0x"):
        return ch in "0123456789abcdefABCDEF"
    if buffer.startswith("0b"):
        return ch in "01"
    return ch.isdigit()


def read_integer(handle: int, width: int = 0) -> tuple[int, bool]:
    """Read an integer as text (``width == 0``) or as ``|width|`` signed bytes.

    Positive widths are little-endian, negative widths big-endian. Text accepts
    an optional sign or a ``0x`` / ``0b`` prefix.
    """
    record = _registry.get(handle)
    width = _clamp_width(width)
    if width == 0:
        token = _read_token(record, _accept_integer)
        if token in ("", "+", "-", "0x", "0b"):
            return 0, False
        if token.startswith(("0x", "0b")):
            return int(token[2:], 16 if token[1] == "x" else 2), True
        return int(token), True
    data = _read(record, abs(width))
    if len(data) != abs(width):
        return 0, False
    return int.from_bytes(data, "little" if width > 0 else "big", signed=True), True


def write_integer(handle: int, value: int, width: int = 0) -> bool:
    """Write ``value`` as text or as ``|width|`` bytes, wrapping to that width."""
    record = _registry.get(handle)
    width = _clamp_width(width)
    value = int(value)
    if width == 0:
        return _write(record, str(value).encode("ascii"))
    size = abs(width)
    wrapped = value & ((1 << (8 * size)) - 1)
    return _write(record, wrapped.to_bytes(size, "little" if width > 0 else "big"))


def _accept_real(buffer: str, ch: str) -> bool:
    if ch.isdigit():
        return True
    if ch == ".":
        return "." not in buffer and "e" not in buffer.lower()
    if ch in "+-":
        return not buffer or buffer[-1] in "eE"
    if ch in "eE":
        return "e" not in buffer.lower() and buffer not in ("", ".") and buffer[-1] not in "+-"
    return False


_REAL_FORMATS = {4: "f", 8: "d"}


def read_real(handle: int, width: int = 0) -> tuple[float, bool]:
    record = _registry.get(handle)
    if width == 0:
        token = _read_token(record, _accept_real)
        if token in ("", "+", "-", ".") or token[-1] in "eE":
            return 0.0, False
        return float(token), True
    if abs(width) not in _REAL_FORMATS:
        raise InvalidParameterValue(f"real width must be 0, +-4 or +-8, got {width}")
    data = _read(record, abs(width))
    if len(data) != abs(width):
        return 0.0, False
    fmt = ("<" if width > 0 else ">") + _REAL_FORMATS[abs(width)]
    return struct.unpack(fmt, data)[0], True


def write_real(handle: int, value: float, width: int = 0) -> bool:
    record = _registry.get(handle)
    if width == 0:
        return _write(record, repr(float(value)).encode("ascii"))
    if abs(width) not in _REAL_FORMATS:
        raise InvalidParameterValue(f"real width must be 0, +-4 or +-8, got {width}")
    fmt = ("<" if width > 0 else ">") + _REAL_FORMATS[abs(width)]
    return _write(record, struct.pack(fmt, float(value)))


# -- matrices ------------------------------------------------------------------


def load_boolean_matrix(path: Any):
    return load_matrix(_as_path(path), ElementKind.BOOLEAN)


def load_integer_matrix(path: Any):
    return load_matrix(_as_path(path), ElementKind.INTEGER)


def load_real_matrix(path: Any):
    return load_matrix(_as_path(path), ElementKind.REAL)


def load_complex_matrix(path: Any):
    return load_matrix(_as_path(path), ElementKind.COMPLEX)


def _save(matrix: Any, path: Any, binary: bool, kind: ElementKind) -> bool:
    if getattr(matrix, "kind", None) != kind:
        raise InvalidParameterValue(f"expected a {kind.name.lower()} matrix")
    save_matrix(matrix, _as_path(path), binary=binary)
    return True


def save_boolean_matrix(matrix: Any, path: Any, binary: bool = True) -> bool:
    return _save(matrix, path, binary, ElementKind.BOOLEAN)


def save_integer_matrix(matrix: Any, path: Any, binary: bool = True) -> bool:
    return _save(matrix, path, binary, ElementKind.INTEGER)


def save_real_matrix(matrix: Any, path: Any, binary: bool = True) -> bool:
    return _save(matrix, path, binary, ElementKind.REAL)


def save_complex_matrix(matrix: Any, path: Any, binary: bool = True) -> bool:
    return _save(matrix, path, binary, ElementKind.COMPLEX)
