"""Backing stores for matrix handles.

A store owns the element buffer of a matrix together with its reference count
and an advisory lock. Handles hold one reference each and must take the lock
while deciding between cloning and mutating in place.
"""

from __future__ import annotations

import threading
from typing import Any, Iterator

import numpy as np
import scipy.sparse as sp

from . import runtime
from .dtypes import ElementKind, StorageKind, numpy_dtype
from .errors import InvalidMatrixDimensions


class BackingStore:
    storage_kind: StorageKind = StorageKind.DENSE

    def __init__(self, kind: ElementKind, rows: int, cols: int) -> None:
        if rows < 0 or cols < 0:
            raise InvalidMatrixDimensions(rows, cols)
        self.kind = ElementKind(kind)
        self.rows = int(rows)
        self.cols = int(cols)
        self._references = 1
        self._lock = threading.RLock()
        runtime.note_store_allocated()

    # -- reference counting --------------------------------------------------

    def add_reference(self) -> None:
        with self._lock:
            self._references += 1

    def remove_reference(self) -> bool:
        """Drop one reference. Returns True when the count reached zero."""
        with self._lock:
            self._references -= 1
            return self._references == 0

    @property
    def reference_count(self) -> int:
        return self._references

    def lock(self) -> None:
        self._lock.acquire()

    def unlock(self) -> None:
        self._lock.release()

    def __enter__(self) -> "BackingStore":
        self._lock.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._lock.release()

    # -- shape ---------------------------------------------------------------

    def dims(self) -> tuple[int, int]:
        return self.rows, self.cols

    @property
    def dtype(self) -> np.dtype:
        return numpy_dtype(self.kind)

    @property
    def allocation_size(self) -> int:
        raise NotImplementedError

    # -- contract shared by both strata ---------------------------------------

    def at(self, row: int, col: int) -> Any:
        raise NotImplementedError

    def update(self, row: int, col: int, value: Any) -> None:
        raise NotImplementedError

    def clone(self) -> "BackingStore":
        raise NotImplementedError

    def resize_to(self, rows: int, cols: int, force_realloc: bool = False) -> "BackingStore":
        raise NotImplementedError

    def to_array(self) -> np.ndarray:
        """Dense column-major copy of the contents."""
        raise NotImplementedError

    def nnz(self) -> int:
        raise NotImplementedError

    def row_reverse(self) -> "BackingStore":
        return self._like(self.to_array()[::-1, :])

    def column_reverse(self) -> "BackingStore":
        return self._like(self.to_array()[:, ::-1])

    def combine_left_right(self, other: "BackingStore") -> "BackingStore":
        if self.rows != other.rows:
            raise InvalidMatrixDimensions(self.rows, self.cols, other.rows, other.cols)
        merged = np.hstack([self.to_array(), other.to_array().astype(self.dtype, copy=False)])
        return self._like(merged)

    def combine_top_bottom(self, other: "BackingStore") -> "BackingStore":
        if self.cols != other.cols:
            raise InvalidMatrixDimensions(self.rows, self.cols, other.rows, other.cols)
        merged = np.vstack([self.to_array(), other.to_array().astype(self.dtype, copy=False)])
        return self._like(merged)

    def is_equal_to(self, other: "BackingStore") -> bool:
        if self.dims() != other.dims():
            return False
        return bool(np.array_equal(self.to_array(), other.to_array()))

    def raw_bytes(self) -> bytes:
        return np.asfortranarray(self.to_array()).tobytes(order="F")

    def relative_order(self, other: "BackingStore") -> int:
        """Three-way comparison: storage kind, then dims, then column-major bytes."""
        if self.storage_kind != other.storage_kind:
            return -1 if self.storage_kind < other.storage_kind else 1
        if self.dims() != other.dims():
            return -1 if self.dims() < other.dims() else 1
        mine = self.raw_bytes()
        theirs = other.raw_bytes()
        if mine == theirs:
            return 0
        return -1 if mine < theirs else 1

    def to_file(self, path: Any, binary: bool = True) -> None:
        from . import persistence

        persistence.save_store(self, path, binary=binary)

    @staticmethod
    def from_file(path: Any, kind: ElementKind | None = None) -> "BackingStore":
        from . import persistence

        return persistence.load_store(path, kind)

    def _like(self, array: np.ndarray) -> "BackingStore":
        raise NotImplementedError

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.name}, shape=({self.rows}, {self.cols}), "
            f"refs={self._references})"
        )


class DenseStore(BackingStore):
    """Column-major contiguous store backed by a Fortran-ordered numpy array."""

    storage_kind = StorageKind.DENSE

    def __init__(self, kind: ElementKind, rows: int, cols: int, data: Any = None) -> None:
        super().__init__(kind, rows, cols)
        dtype = numpy_dtype(self.kind)
        if data is None:
            self.data = np.zeros((self.rows, self.cols), dtype=dtype, order="F")
        else:
            array = np.asarray(data)
            if array.ndim == 1:
                if array.size != self.rows * self.cols:
                    raise InvalidMatrixDimensions(self.rows, self.cols)
                array = array.reshape((self.rows, self.cols), order="F")
            elif array.shape != (self.rows, self.cols):
                raise InvalidMatrixDimensions(self.rows, self.cols, array.shape[0], array.shape[-1])
            self.data = np.array(_cast(array, self.kind), dtype=dtype, order="F", copy=True)

    @classmethod
    def from_array(cls, array: np.ndarray, kind: ElementKind) -> "DenseStore":
        array = np.asarray(array)
        if array.ndim != 2:
            raise InvalidMatrixDimensions(*(array.shape + (1,) * (2 - array.ndim))[:2])
        return cls(kind, array.shape[0], array.shape[1], array)

    @property
    def allocation_size(self) -> int:
        return int(self.data.nbytes)

    def at(self, row: int, col: int) -> Any:
        return self.data[row, col].item()

    def at_mut(self) -> np.ndarray:
        """Writable view of the buffer. Callers must hold the lock with a single reference."""
        return self.data

    def update(self, row: int, col: int, value: Any) -> None:
        self.data[row, col] = value

    def clone(self) -> "DenseStore":
        return DenseStore(self.kind, self.rows, self.cols, self.data)

    def resize_to(self, rows: int, cols: int, force_realloc: bool = False) -> "DenseStore":
        if (rows, cols) == self.dims() and not force_realloc:
            return self
        result = DenseStore(self.kind, rows, cols)
        r = min(rows, self.rows)
        c = min(cols, self.cols)
        result.data[:r, :c] = self.data[:r, :c]
        return result

    def to_array(self) -> np.ndarray:
        return self.data.copy(order="F")

    def nnz(self) -> int:
        return int(np.count_nonzero(self.data))

    def _like(self, array: np.ndarray) -> "DenseStore":
        return DenseStore.from_array(array, self.kind)


class SparseStore(BackingStore):
    """Coordinate store keyed by the row-major linear index of each non-zero.

    Keys are kept sorted so lookups are ``O(log nnz)`` and iteration visits
    non-zeros in row-major order.
    """

    storage_kind = StorageKind.SPARSE

    def __init__(
        self,
        kind: ElementKind,
        rows: int,
        cols: int,
        keys: Any = None,
        values: Any = None,
    ) -> None:
        super().__init__(kind, rows, cols)
        dtype = numpy_dtype(self.kind)
        if keys is None:
            self.keys = np.zeros(0, dtype=np.int64)
            self.values = np.zeros(0, dtype=dtype)
        else:
            keys = np.asarray(keys, dtype=np.int64)
            values = _cast(np.asarray(values), self.kind).astype(dtype)
            order = np.argsort(keys, kind="stable")
            keys = keys[order]
            values = values[order]
            if keys.size:
                # Repeated coordinates add up, as in scipy's COO format.
                keys, starts = np.unique(keys, return_index=True)
                values = np.add.reduceat(values, starts).astype(dtype)
            keep = values != 0
            self.keys = keys[keep].copy()
            self.values = values[keep].copy()

    @classmethod
    def from_array(cls, array: np.ndarray, kind: ElementKind) -> "SparseStore":
        array = np.asarray(array)
        rows, cols = array.shape
        r, c = np.nonzero(array)
        keys = r.astype(np.int64) * cols + c
        return cls(kind, rows, cols, keys, array[r, c])

    @classmethod
    def from_scipy(cls, matrix: sp.spmatrix | sp.sparray, kind: ElementKind) -> "SparseStore":
        coo = sp.coo_matrix(matrix, copy=True)
        coo.sum_duplicates()
        rows, cols = coo.shape
        keys = coo.row.astype(np.int64) * cols + coo.col
        return cls(kind, rows, cols, keys, coo.data)

    @property
    def allocation_size(self) -> int:
        return int(self.keys.nbytes + self.values.nbytes)

    def _find(self, row: int, col: int) -> tuple[int, bool]:
        key = row * self.cols + col
        pos = int(np.searchsorted(self.keys, key))
        return pos, pos < self.keys.size and int(self.keys[pos]) == key

    def at(self, row: int, col: int) -> Any:
        pos, found = self._find(row, col)
        if found:
            return self.values[pos].item()
        return self.dtype.type(0).item()

    def update(self, row: int, col: int, value: Any) -> None:
        pos, found = self._find(row, col)
        value = self.dtype.type(value)
        if found:
            if value == 0:
                self.keys = np.delete(self.keys, pos)
                self.values = np.delete(self.values, pos)
            else:
                self.values[pos] = value
        elif value != 0:
            self.keys = np.insert(self.keys, pos, row * self.cols + col)
            self.values = np.insert(self.values, pos, value)

    def coordinates(self) -> tuple[np.ndarray, np.ndarray]:
        if self.cols == 0:
            return self.keys.copy(), self.keys.copy()
        return self.keys // self.cols, self.keys % self.cols

    def items(self) -> Iterator[tuple[int, int, Any]]:
        """Non-zero entries as ``(row, col, value)`` in row-major order."""
        rows, cols = self.coordinates()
        for r, c, v in zip(rows, cols, self.values):
            yield int(r), int(c), v.item()

    def clone(self) -> "SparseStore":
        result = SparseStore(self.kind, self.rows, self.cols)
        result.keys = self.keys.copy()
        result.values = self.values.copy()
        return result

    def resize_to(self, rows: int, cols: int, force_realloc: bool = False) -> "SparseStore":
        if (rows, cols) == self.dims() and not force_realloc:
            return self
        r, c = self.coordinates()
        keep = (r < rows) & (c < cols)
        return SparseStore(self.kind, rows, cols, r[keep] * cols + c[keep], self.values[keep])

    def to_scipy(self) -> sp.csr_matrix:
        r, c = self.coordinates()
        return sp.csr_matrix((self.values, (r, c)), shape=(self.rows, self.cols), dtype=self.dtype)

    def to_array(self) -> np.ndarray:
        result = np.zeros((self.rows, self.cols), dtype=self.dtype, order="F")
        r, c = self.coordinates()
        result[r, c] = self.values
        return result

    def nnz(self) -> int:
        return int(self.keys.size)

    def row_reverse(self) -> "SparseStore":
        r, c = self.coordinates()
        return SparseStore(self.kind, self.rows, self.cols, (self.rows - 1 - r) * self.cols + c, self.values)

    def column_reverse(self) -> "SparseStore":
        r, c = self.coordinates()
        return SparseStore(self.kind, self.rows, self.cols, r * self.cols + (self.cols - 1 - c), self.values)

    def combine_left_right(self, other: BackingStore) -> BackingStore:
        if not isinstance(other, SparseStore):
            return super().combine_left_right(other)
        if self.rows != other.rows:
            raise InvalidMatrixDimensions(self.rows, self.cols, other.rows, other.cols)
        merged = sp.hstack([self.to_scipy(), other.to_scipy()], format="coo")
        return SparseStore.from_scipy(merged, self.kind)

    def combine_top_bottom(self, other: BackingStore) -> BackingStore:
        if not isinstance(other, SparseStore):
            return super().combine_top_bottom(other)
        if self.cols != other.cols:
            raise InvalidMatrixDimensions(self.rows, self.cols, other.rows, other.cols)
        merged = sp.vstack([self.to_scipy(), other.to_scipy()], format="coo")
        return SparseStore.from_scipy(merged, self.kind)

    def _like(self, array: np.ndarray) -> "SparseStore":
        return SparseStore.from_array(array, self.kind)


def _cast(array: np.ndarray, kind: ElementKind) -> np.ndarray:
    """Convert an array to ``kind`` following the element conversion rules."""
    if kind == ElementKind.BOOLEAN:
        return array != 0
    if kind in (ElementKind.INTEGER, ElementKind.REAL) and np.iscomplexobj(array):
        array = array.real
    if kind == ElementKind.INTEGER and array.dtype.kind == "f":
        return np.trunc(array)
    return array


def store_from_array(array: np.ndarray, kind: ElementKind, storage: StorageKind = StorageKind.DENSE) -> BackingStore:
    if storage == StorageKind.SPARSE:
        return SparseStore.from_array(array, kind)
    return DenseStore.from_array(array, kind)
