"""Matrix files: a tagged little-endian binary layout and delimited text.

Binary layout::

    b"INEBIN"  storage code (b"D" or b"S")  kind code (b"B", b"I", b"R", b"C")
    rows: u64 LE   cols: u64 LE
    dense:  rows * cols column-major elements
    sparse: nnz: u64 LE, nnz row indices (u64 LE), nnz column indices (u64 LE),
            nnz elements

Elements are 1 byte for Boolean, int64 for Integer, float64 for Real and a
float64 (real, imag) pair for Complex. Text files hold one matrix row per line;
any of tab, space, comma, semicolon, bar or colon separates values.
"""

from __future__ import annotations

import re
import struct
from pathlib import Path
from typing import Any

import numpy as np

from .config import get_config
from .dtypes import ELEMENT_WIDTHS, KIND_CODES, ElementKind, StorageKind
from .errors import FileOpenError, FileReadError, FileWriteError, InvalidParameterValue
from .formatting import format_complex, format_real
from .storage import BackingStore, DenseStore, SparseStore

MAGIC = b"INEBIN"
_HEADER = struct.Struct("<6scc2Q")
_COUNT = struct.Struct("<Q")

_STORAGE_CODES = {StorageKind.DENSE: b"D", StorageKind.SPARSE: b"S"}
_FILE_DTYPES = {
    ElementKind.BOOLEAN: np.dtype(np.uint8),
    ElementKind.INTEGER: np.dtype("<i8"),
    ElementKind.REAL: np.dtype("<f8"),
    ElementKind.COMPLEX: np.dtype("<c16"),
}
_SEPARATORS = re.compile(r"[\t ,;|:]")


def _kind_from_code(code: bytes, path: Path) -> ElementKind:
    for kind, kind_code in KIND_CODES.items():
        if kind_code.encode("ascii") == code:
            return kind
    raise FileReadError(str(path))


def is_binary_file(path: str | Path) -> bool:
    path = Path(path)
    try:
        with path.open("rb") as f:
            prefix = f.read(len(MAGIC))
    except OSError as exc:
        raise FileOpenError(str(path), exc.errno or 0) from exc
    return prefix == MAGIC


# -- binary -------------------------------------------------------------------


def _write_binary(store: BackingStore, path: Path) -> None:
    dtype = _FILE_DTYPES[store.kind]
    header = _HEADER.pack(
        MAGIC,
        _STORAGE_CODES[store.storage_kind],
        KIND_CODES[store.kind].encode("ascii"),
        store.rows,
        store.cols,
    )
    try:
        with path.open("wb") as f:
            f.write(header)
            if isinstance(store, SparseStore):
                rows, cols = store.coordinates()
                f.write(_COUNT.pack(store.nnz()))
                f.write(rows.astype("<u8").tobytes())
                f.write(cols.astype("<u8").tobytes())
                f.write(store.values.astype(dtype).tobytes())
            else:
                f.write(store.to_array().astype(dtype).tobytes(order="F"))
    except OSError as exc:
        raise FileWriteError(str(path), exc.errno or 0) from exc


def _read_exact(f: Any, count: int, path: Path) -> bytes:
    data = f.read(count)
    if len(data) != count:
        raise FileReadError(str(path))
    return data


def _read_binary(path: Path) -> BackingStore:
    try:
        with path.open("rb") as f:
            magic, storage_code, kind_code, rows, cols = _HEADER.unpack(_read_exact(f, _HEADER.size, path))
            if magic != MAGIC:
                raise FileReadError(str(path))
            kind = _kind_from_code(kind_code, path)
            dtype = _FILE_DTYPES[kind]
            width = ELEMENT_WIDTHS[kind]
            if storage_code == b"S":
                (nnz,) = _COUNT.unpack(_read_exact(f, _COUNT.size, path))
                r = np.frombuffer(_read_exact(f, 8 * nnz, path), dtype="<u8").astype(np.int64)
                c = np.frombuffer(_read_exact(f, 8 * nnz, path), dtype="<u8").astype(np.int64)
                values = np.frombuffer(_read_exact(f, width * nnz, path), dtype=dtype)
                if nnz and (r.max() >= rows or c.max() >= cols):
                    raise FileReadError(str(path))
                return SparseStore(kind, rows, cols, r * cols + c, values)
            if storage_code != b"D":
                raise FileReadError(str(path))
            body = np.frombuffer(_read_exact(f, width * rows * cols, path), dtype=dtype)
            return DenseStore(kind, rows, cols, body)
    except FileReadError:
        raise
    except OSError as exc:
        raise FileOpenError(str(path), exc.errno or 0) from exc


# -- text ---------------------------------------------------------------------


def _format_cell(value: Any, kind: ElementKind) -> str:
    if kind == ElementKind.BOOLEAN:
        return "1" if value else "0"
    if kind == ElementKind.INTEGER:
        return str(int(value))
    if kind == ElementKind.REAL:
        return format_real(float(value))
    return format_complex(complex(value), get_config().csv_complex_style)


def _write_text(store: BackingStore, path: Path) -> None:
    delimiter = get_config().csv_delimiter
    values = store.to_array()
    try:
        with path.open("w", encoding="utf-8", newline="\n") as f:
            for row in values:
                f.write(delimiter.join(_format_cell(v, store.kind) for v in row))
                f.write("\n")
    except OSError as exc:
        raise FileWriteError(str(path), exc.errno or 0) from exc


def _parse_token(token: str, kind: ElementKind, path: Path) -> Any:
    try:
        if kind == ElementKind.BOOLEAN:
            lowered = token.lower()
            if lowered in ("true", "false"):
                return lowered == "true"
            return float(token) != 0
        if kind == ElementKind.INTEGER:
            try:
                return int(token)
            except ValueError:
                return int(float(token))
        if kind == ElementKind.COMPLEX:
            return complex(token)
        return float(token)
    except ValueError as exc:
        raise FileReadError(str(path)) from exc


def _parse_row(line: str, kind: ElementKind, path: Path) -> list[Any]:
    tokens = [t for t in _SEPARATORS.split(line.strip()) if t]
    if kind != ElementKind.COMPLEX or any(t.endswith(("j", "J")) for t in tokens):
        return [_parse_token(t, kind, path) for t in tokens]
    # Complex cells written as "re,im" pairs.
    if len(tokens) % 2:
        raise FileReadError(str(path))
    parts = [_parse_token(t, ElementKind.REAL, path) for t in tokens]
    return [complex(re_, im_) for re_, im_ in zip(parts[0::2], parts[1::2])]


def _read_text(path: Path, kind: ElementKind) -> BackingStore:
    try:
        with path.open("r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except UnicodeDecodeError as exc:
        raise FileReadError(str(path)) from exc
    except OSError as exc:
        raise FileOpenError(str(path), exc.errno or 0) from exc

    rows = [_parse_row(line, kind, path) for line in lines if line.strip()]
    n_cols = max((len(r) for r in rows), default=0)
    store = DenseStore(kind, len(rows), n_cols)
    # Short rows are zero-filled.
    for i, row in enumerate(rows):
        for j, value in enumerate(row):
            store.data[i, j] = value
    return store


# -- public -------------------------------------------------------------------


def save_store(store: BackingStore, path: str | Path, *, binary: bool = True) -> None:
    path = Path(path)
    if binary:
        _write_binary(store, path)
    else:
        _write_text(store, path)


def load_store(path: str | Path, kind: ElementKind | None = None) -> BackingStore:
    """Read a store, detecting binary versus text from the magic prefix.

    A binary file of a different kind than ``kind`` is rejected. Text files are
    parsed as ``kind`` (Real when omitted).
    """
    path = Path(path)
    if is_binary_file(path):
        store = _read_binary(path)
        if kind is not None and store.kind != ElementKind(kind):
            raise FileReadError(str(path))
        return store
    return _read_text(path, ElementKind.REAL if kind is None else ElementKind(kind))


def save_matrix(matrix: Any, path: str | Path, *, binary: bool = True) -> None:
    if not hasattr(matrix, "apply_transform_and_scaling"):
        raise InvalidParameterValue(f"cannot save object of type {type(matrix).__name__}")
    matrix.apply_transform_and_scaling()
    save_store(matrix._store, path, binary=binary)


def load_matrix(path: str | Path, kind: ElementKind) -> Any:
    from .matrix_api import matrix_class

    return matrix_class(kind)._wrap(load_store(path, kind))
