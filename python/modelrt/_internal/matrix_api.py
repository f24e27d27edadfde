"""Value-semantic matrix handles.

A handle holds one reference to a backing store plus a deferred transform
``(T, alpha)``: the logical matrix is ``alpha * T(store)``. Transposes,
conjugates and scalar factors only touch that pair; stores are forked on write
when shared.
"""

from __future__ import annotations

import warnings
from contextlib import contextmanager
from typing import Any, Iterator

import numpy as np
import scipy.sparse as sp

from . import formatting as _formatting
from . import runtime
from . import transforms
from .config import get_config
from .dtypes import (
    ElementKind,
    StorageKind,
    ValueKind,
    arithmetic_kind,
    kind_of_scalar,
    matrix_value_kind,
    numpy_dtype,
    promote,
)
from .errors import (
    InvalidColumn,
    InvalidIndex,
    InvalidMatrixDimensions,
    InvalidNumericValue,
    InvalidParameterValue,
    InvalidRow,
    InvalidRuntimeConversion,
)
from .indexing import check_bounds, index_spec
from .storage import BackingStore, DenseStore, SparseStore, store_from_array
from .transforms import Transform
from .warnings import ModelRtDTypeWarning, ModelRtPerformanceWarning


_ONES = {
    ElementKind.BOOLEAN: True,
    ElementKind.INTEGER: 1,
    ElementKind.REAL: 1.0,
    ElementKind.COMPLEX: 1.0 + 0.0j,
}


def matrix_class(kind: ElementKind) -> type["MatrixBase"]:
    from .matrices import MATRIX_CLASSES

    return MATRIX_CLASSES[ElementKind(kind)]


def coerce_array(array: Any, kind: ElementKind) -> np.ndarray:
    """Convert ``array`` to the dtype of ``kind``, warning on lossy demotion."""
    array = np.asarray(array)
    if array.dtype.kind not in "biufc":
        raise InvalidRuntimeConversion(str(array.dtype), matrix_value_kind(kind))
    if kind == ElementKind.BOOLEAN:
        return array != 0
    if kind in (ElementKind.INTEGER, ElementKind.REAL) and array.dtype.kind == "c":
        if np.any(array.imag != 0):
            warnings.warn(
                "Discarding non-zero imaginary components while converting to a real-valued matrix.",
                ModelRtDTypeWarning,
                stacklevel=3,
            )
        array = array.real
    if kind == ElementKind.INTEGER and array.dtype.kind == "f":
        array = np.trunc(array)
    return array.astype(numpy_dtype(kind))


def scalar_of_kind(kind: ElementKind, value: Any) -> Any:
    if kind == ElementKind.BOOLEAN:
        return bool(value)
    if kind == ElementKind.INTEGER:
        return int(value)
    if kind == ElementKind.REAL:
        return float(value)
    return complex(value)


def _as_2d(array: np.ndarray) -> np.ndarray:
    if array.ndim == 0:
        return array.reshape(1, 1)
    if array.ndim == 1:
        return array.reshape(-1, 1)
    if array.ndim != 2:
        raise InvalidMatrixDimensions(array.shape[0], int(np.prod(array.shape[1:])))
    return array


def _is_int(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))


class MatrixBase:
    kind: ElementKind = ElementKind.REAL

    def __init__(self, *args: Any, sparse: bool = False) -> None:
        self._store: BackingStore | None = None
        self._transform = Transform.NONE
        self._scalar = _ONES[self.kind]
        storage = StorageKind.SPARSE if sparse else StorageKind.DENSE

        if len(args) == 0:
            self._store = self._new_store(storage, 0, 0)
        elif len(args) == 1:
            self._init_from(args[0], storage, sparse)
        elif len(args) == 2 and _is_int(args[0]) and _is_int(args[1]):
            self._store = self._new_store(storage, int(args[0]), int(args[1]))
        elif len(args) == 3 and _is_int(args[0]) and _is_int(args[1]):
            rows, cols = int(args[0]), int(args[1])
            data = coerce_array(np.asarray(args[2]).ravel(), self.kind)
            if data.size < rows * cols:
                raise InvalidParameterValue(f"expected {rows * cols} coefficients, got {data.size}")
            array = data[: rows * cols].reshape((rows, cols), order="F")
            self._store = store_from_array(array, self.kind, storage)
        else:
            raise InvalidParameterValue(f"unsupported {type(self).__name__} constructor arguments")

    def _new_store(self, storage: StorageKind, rows: int, cols: int) -> BackingStore:
        if rows < 0 or cols < 0:
            raise InvalidMatrixDimensions(rows, cols)
        if storage == StorageKind.SPARSE:
            return SparseStore(self.kind, rows, cols)
        return DenseStore(self.kind, rows, cols)

    def _init_from(self, source: Any, storage: StorageKind, sparse: bool) -> None:
        if isinstance(source, MatrixBase):
            if source.kind == self.kind and not sparse:
                source._store.add_reference()
                self._store = source._store
                self._transform = source._transform
                self._scalar = source._scalar
            elif promote(source.kind, self.kind) == self.kind and not sparse:
                # Promotion keeps the lazy state; only the stored coefficients are converted.
                stored = source._store
                if isinstance(stored, SparseStore):
                    self._store = SparseStore(self.kind, stored.rows, stored.cols, stored.keys, stored.values)
                else:
                    self._store = DenseStore.from_array(coerce_array(stored.to_array(), self.kind), self.kind)
                self._transform = source._transform.restricted(self.kind == ElementKind.COMPLEX)
                self._scalar = self._cast_scalar(source._scalar)
            else:
                target = StorageKind.SPARSE if (sparse or source.is_sparse()) else StorageKind.DENSE
                self._store = store_from_array(coerce_array(source.to_numpy(), self.kind), self.kind, target)
            return
        if sp.issparse(source):
            self._store = SparseStore.from_scipy(source, self.kind)
            return
        if isinstance(source, BackingStore):
            raise InvalidParameterValue("wrap backing stores with _wrap()")
        array = _as_2d(coerce_array(source, self.kind))
        self._store = store_from_array(array, self.kind, storage)

    @classmethod
    def _wrap(cls, store: BackingStore, transform: Transform = Transform.NONE, scalar: Any = None) -> "MatrixBase":
        obj = cls.__new__(cls)
        obj._store = store
        obj._transform = transform
        obj._scalar = _ONES[cls.kind] if scalar is None else scalar
        return obj

    @classmethod
    def _from_array(cls, array: Any, storage: StorageKind = StorageKind.DENSE) -> "MatrixBase":
        return cls._wrap(store_from_array(_as_2d(coerce_array(array, cls.kind)), cls.kind, storage))

    def __del__(self) -> None:
        store = getattr(self, "_store", None)
        if store is not None:
            store.remove_reference()
            self._store = None

    def copy(self) -> "MatrixBase":
        """A new handle sharing this handle's store and lazy state."""
        return self._derive(self._transform, self._scalar)

    def __copy__(self) -> "MatrixBase":
        return self.copy()

    def __deepcopy__(self, memo: dict) -> "MatrixBase":
        with self._store as store:
            private = store.clone()
        return type(self)._wrap(private, self._transform, self._scalar)

    def _derive(self, transform: Transform, scalar: Any) -> "MatrixBase":
        self._store.add_reference()
        return type(self)._wrap(self._store, transform, scalar)

    def _replace_store(self, store: BackingStore) -> None:
        old = self._store
        self._store = store
        if old is not None and old is not store:
            old.remove_reference()

    # -- factories -------------------------------------------------------------

    @classmethod
    def zero(cls, rows: int, cols: int | None = None) -> "MatrixBase":
        return cls(rows, rows if cols is None else cols)

    @classmethod
    def ones(cls, rows: int, cols: int | None = None) -> "MatrixBase":
        cols = rows if cols is None else cols
        return cls._from_array(np.ones((rows, cols), dtype=numpy_dtype(cls.kind)))

    @classmethod
    def identity(cls, rows: int, cols: int | None = None) -> "MatrixBase":
        cols = rows if cols is None else cols
        return cls._from_array(np.eye(rows, cols, dtype=numpy_dtype(cls.kind)))

    @classmethod
    def build(cls, rows: int, cols: int, *coefficients: Any) -> "MatrixBase":
        """Matrix from coefficients listed in column-major order."""
        if len(coefficients) < rows * cols:
            raise InvalidParameterValue(f"expected {rows * cols} coefficients, got {len(coefficients)}")
        return cls(rows, cols, list(coefficients))

    @classmethod
    def sparse(cls, rows: int = 0, cols: int = 0) -> "MatrixBase":
        return cls(rows, cols, sparse=True)

    @classmethod
    def from_numpy(cls, array: Any) -> "MatrixBase":
        return cls._from_array(array)

    @classmethod
    def load(cls, path: Any) -> "MatrixBase":
        from .persistence import load_matrix

        return load_matrix(path, cls.kind)

    def save(self, path: Any, binary: bool = True) -> None:
        from .persistence import save_matrix

        save_matrix(self, path, binary=binary)

    # -- lazy state ------------------------------------------------------------

    @property
    def pending_transform(self) -> Transform:
        return self._transform

    @property
    def pending_scalar(self) -> Any:
        return self._scalar

    def _is_identity_state(self) -> bool:
        return self._transform == Transform.NONE and self._scalar == _ONES[self.kind]

    def _cast_scalar(self, value: Any) -> Any:
        if self.kind == ElementKind.BOOLEAN:
            return bool(value)
        if self.kind == ElementKind.INTEGER:
            return int(value)
        if self.kind == ElementKind.REAL:
            return float(value.real) if isinstance(value, complex) else float(value)
        return complex(value)

    def _apply_lazy(self, transform: Transform) -> "MatrixBase":
        incoming = transform.restricted(self.kind == ElementKind.COMPLEX)
        new_transform, scalar = transforms.compose(self._transform, incoming, self._scalar)
        runtime.record_kernel(f"lazy:{transform.name.lower()}")
        return self._derive(new_transform, scalar)

    def transpose(self) -> "MatrixBase":
        return self._apply_lazy(Transform.TRANSPOSE)

    def conjugate(self) -> "MatrixBase":
        return self._apply_lazy(Transform.CONJUGATE)

    def adjoint(self) -> "MatrixBase":
        return self._apply_lazy(Transform.ADJOINT)

    @property
    def T(self) -> "MatrixBase":
        return self.transpose()

    @property
    def H(self) -> "MatrixBase":
        return self.adjoint()

    def apply_transform_and_scaling(self) -> None:
        """Materialise the pending transform and scalar into a fresh store."""
        if self._is_identity_state():
            return
        runtime.record_kernel(f"materialize:{self._transform.name.lower()}")
        if isinstance(self._store, SparseStore):
            store = SparseStore.from_scipy(self._logical_sparse(), self.kind)
        else:
            store = DenseStore.from_array(self._logical_array(), self.kind)
        self._replace_store(store)
        self._transform = Transform.NONE
        self._scalar = _ONES[self.kind]

    @contextmanager
    def _writable_store(self) -> Iterator[BackingStore]:
        """Yield a privately owned store, locked for the duration of the write."""
        self.apply_transform_and_scaling()
        store = self._store
        with store:
            if store.reference_count <= 1:
                yield store
                return
            runtime.record_kernel("copy-on-write")
            self._replace_store(store.clone())
        with self._store as private:
            yield private

    # -- logical views ---------------------------------------------------------

    def _logical_array(self, scaled: bool = True) -> np.ndarray:
        """Logical contents; may be a read-only view of the store."""
        store = self._store
        base = store.data if isinstance(store, DenseStore) else store.to_array()
        array = transforms.apply(base, self._transform)
        if scaled and self._scalar != _ONES[self.kind]:
            array = array * self._scalar
            if self.kind == ElementKind.BOOLEAN:
                array = array.astype(np.bool_)
        return array

    def _logical_sparse(self, scaled: bool = True) -> sp.csr_matrix:
        store = self._store
        matrix = store.to_scipy() if isinstance(store, SparseStore) else sp.csr_matrix(store.data)
        if self._transform.conjugates and self.kind == ElementKind.COMPLEX:
            matrix = matrix.conj()
        if self._transform.transposes:
            matrix = matrix.T
        if scaled and self._scalar != _ONES[self.kind]:
            matrix = matrix * self._scalar
        return sp.csr_matrix(matrix)

    def _operand(self, kind: ElementKind, scaled: bool = True) -> np.ndarray:
        return np.asarray(self._logical_array(scaled), dtype=numpy_dtype(kind))

    def _sparse_operand(self, kind: ElementKind, scaled: bool = True) -> sp.csr_matrix:
        return self._logical_sparse(scaled).astype(numpy_dtype(kind))

    def to_numpy(self) -> np.ndarray:
        return np.array(self._logical_array(), dtype=numpy_dtype(self.kind), order="F", copy=True)

    def __array__(self, dtype: Any = None, copy: Any = None) -> np.ndarray:
        array = self.to_numpy()
        return array if dtype is None else array.astype(dtype)

    def to_scipy(self) -> sp.csr_matrix:
        return self._logical_sparse()

    def to_sparse(self) -> "MatrixBase":
        if self.is_sparse():
            return self.copy()
        return type(self)._wrap(SparseStore.from_scipy(self._logical_sparse(), self.kind))

    def to_dense(self) -> "MatrixBase":
        if not self.is_sparse():
            return self.copy()
        return type(self)._wrap(DenseStore.from_array(self._logical_array(), self.kind))

    def raw_bytes(self) -> bytes:
        return np.asfortranarray(self.to_numpy()).tobytes(order="F")

    # -- shape -----------------------------------------------------------------

    @property
    def shape(self) -> tuple[int, int]:
        return transforms.transformed_shape(self._store.rows, self._store.cols, self._transform)

    def number_rows(self) -> int:
        return self.shape[0]

    def number_columns(self) -> int:
        return self.shape[1]

    def number_coefficients(self) -> int:
        rows, cols = self.shape
        return rows * cols

    def value_type(self) -> ValueKind:
        return matrix_value_kind(self.kind)

    def coefficient_type(self) -> ElementKind:
        return self.kind

    @property
    def storage_kind(self) -> StorageKind:
        return self._store.storage_kind

    def is_sparse(self) -> bool:
        return self._store.storage_kind == StorageKind.SPARSE

    def is_dense(self) -> bool:
        return self._store.storage_kind == StorageKind.DENSE

    def is_empty(self) -> bool:
        return self.number_coefficients() == 0

    def is_square(self) -> bool:
        rows, cols = self.shape
        return rows == cols

    def resize(self, rows: int, cols: int) -> None:
        if rows < 0 or cols < 0:
            raise InvalidMatrixDimensions(rows, cols)
        self.apply_transform_and_scaling()
        store = self._store
        with store:
            resized = store.resize_to(rows, cols, force_realloc=store.reference_count > 1)
        self._replace_store(resized)

    # -- element access --------------------------------------------------------

    def _scalar_out(self, value: Any) -> Any:
        return scalar_of_kind(self.kind, value)

    def _element(self, row: int, col: int) -> Any:
        """Logical element at 0-based ``(row, col)`` without materialising."""
        sr, sc = transforms.source_index(row, col, self._transform)
        value = self._store.at(sr, sc)
        if self._transform.conjugates and self.kind == ElementKind.COMPLEX:
            value = value.conjugate()
        if self._scalar != _ONES[self.kind]:
            value = value * self._scalar
        return self._scalar_out(value)

    def at(self, row: Any, col: Any = None) -> Any:
        """1-based element or sub-matrix access.

        Each subscript may be an integer, an integral real or complex value, a
        Range, Set, Tuple, index matrix or Variant. Two scalar subscripts give
        a scalar; anything else gives a matrix of the same kind. A single
        subscript indexes the coefficients in column-major order.
        """
        if col is None:
            return self._at_linear(row)
        row_spec = index_spec(row)
        col_spec = index_spec(col)
        rows, cols = self.shape
        r = check_bounds(row_spec, rows, InvalidRow)
        c = check_bounds(col_spec, cols, InvalidColumn)
        if row_spec.scalar and col_spec.scalar:
            return self._element(int(r[0]), int(c[0]))
        runtime.record_kernel(f"submatrix[{self._storage_name()}]")
        if self.is_sparse():
            block = self._logical_sparse()[r, :][:, c]
            return type(self)._wrap(SparseStore.from_scipy(block, self.kind))
        return type(self)._from_array(self._logical_array()[np.ix_(r, c)])

    def _at_linear(self, index: Any) -> Any:
        spec = index_spec(index)
        rows, cols = self.shape
        linear = check_bounds(spec, rows * cols, InvalidIndex)
        if spec.scalar:
            i = int(linear[0])
            return self._element(i % rows, i // rows)
        values = self._logical_array()[linear % rows, linear // rows]
        if spec.shape is not None:
            shape = spec.shape
        elif rows == 1 and cols != 1:
            shape = (1, values.size)
        else:
            shape = (values.size, 1)
        return type(self)._from_array(values.reshape(shape, order="F"))

    def __getitem__(self, key: Any) -> Any:
        if isinstance(key, tuple):
            if len(key) != 2:
                raise InvalidParameterValue("matrices take one or two subscripts")
            return self.at(key[0], key[1])
        return self.at(key)

    def _coerce_value(self, value: Any) -> Any:
        from .variant import Variant

        return Variant(value).to(ValueKind(int(self.kind)))

    def _grown_shape(self, index: int) -> tuple[int, int]:
        rows, cols = self.shape
        if rows == 0 or cols == 0:
            return index, 1
        if cols == 1:
            return index, 1
        if rows == 1:
            return 1, index
        return rows, -(-index // rows)

    def update(self, *args: Any) -> None:
        """``update(row, col, value)`` or ``update(index, value)`` with 1-based subscripts.

        Writes beyond the current shape grow the matrix and zero-fill new cells.
        """
        if len(args) == 3:
            row, col, value = args
            r = int(index_spec(row).values[0])
            c = int(index_spec(col).values[0])
            rows, cols = self.shape
            if r < 1:
                raise InvalidRow(r, rows)
            if c < 1:
                raise InvalidColumn(c, cols)
        elif len(args) == 2:
            index, value = args
            i = int(index_spec(index).values[0])
            if i < 1:
                raise InvalidIndex(i, self.number_coefficients())
            rows, cols = self.shape
            if i > rows * cols:
                rows, cols = self._grown_shape(i)
            r, c = (i - 1) % rows + 1, (i - 1) // rows + 1
        else:
            raise InvalidParameterValue("update takes (row, col, value) or (index, value)")

        value = self._coerce_value(value)
        rows, cols = self.shape
        if r > rows or c > cols:
            self.resize(max(r, rows), max(c, cols))
        with self._writable_store() as store:
            store.update(r - 1, c - 1, value)
        runtime.record_kernel(f"update[{self._storage_name()}]")

    def __setitem__(self, key: Any, value: Any) -> None:
        if isinstance(key, tuple):
            if len(key) != 2:
                raise InvalidParameterValue("matrices take one or two subscripts")
            self.update(key[0], key[1], value)
        else:
            self.update(key, value)

    def set_value(self, *args: Any) -> bool:
        """Like :meth:`update` but reports kind or index failures as False."""
        try:
            self.update(*args)
        except (InvalidRuntimeConversion, InvalidRow, InvalidColumn, InvalidIndex):
            return False
        return True

    def __iter__(self) -> Iterator[Any]:
        for value in self.to_numpy().ravel(order="F"):
            yield self._scalar_out(value)

    def _storage_name(self) -> str:
        return "sparse" if self.is_sparse() else "dense"

    # -- algebra ---------------------------------------------------------------

    def _promoted(self, kind: ElementKind) -> "MatrixBase":
        if kind == self.kind:
            return self
        return matrix_class(kind)(self)

    def scaled(self, factor: Any) -> "MatrixBase":
        """Scalar multiple; folds into the pending scalar."""
        factor_kind = kind_of_scalar(factor)
        if factor_kind is None:
            raise InvalidRuntimeConversion(type(factor).__name__, ValueKind.COMPLEX)
        target = promote(arithmetic_kind(self.kind), factor_kind)
        base = self._promoted(target)
        runtime.record_kernel("lazy:scale")
        return base._derive(base._transform, base._cast_scalar(base._scalar * base._cast_scalar(factor)))

    def __mul__(self, other: Any) -> "MatrixBase":
        if isinstance(other, MatrixBase):
            return multiply(self, other)
        if kind_of_scalar(other) is not None:
            return self.scaled(other)
        return NotImplemented

    def __rmul__(self, other: Any) -> "MatrixBase":
        if kind_of_scalar(other) is not None:
            return self.scaled(other)
        return NotImplemented

    def __matmul__(self, other: Any) -> "MatrixBase":
        if isinstance(other, MatrixBase):
            return multiply(self, other)
        return NotImplemented

    def __truediv__(self, other: Any) -> "MatrixBase":
        other_kind = kind_of_scalar(other)
        if other_kind is None:
            return NotImplemented
        if other == 0:
            raise InvalidNumericValue("division by zero")
        target = promote(self.kind, other_kind, ElementKind.REAL)
        return self._promoted(target).scaled(1 / other)

    def __add__(self, other: Any) -> "MatrixBase":
        if not isinstance(other, MatrixBase):
            return NotImplemented
        return add(self, other, 1)

    def __sub__(self, other: Any) -> "MatrixBase":
        if not isinstance(other, MatrixBase):
            return NotImplemented
        return add(self, other, -1)

    def __neg__(self) -> "MatrixBase":
        base = self._promoted(arithmetic_kind(self.kind))
        return base._derive(base._transform, -base._scalar)

    def __pos__(self) -> "MatrixBase":
        return self.copy()

    # -- comparison ------------------------------------------------------------

    def is_equal_to(self, other: "MatrixBase") -> bool:
        if self.shape != other.shape:
            return False
        return bool(np.array_equal(self._logical_array(), other._logical_array()))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MatrixBase):
            return NotImplemented
        return self.is_equal_to(other)

    def __ne__(self, other: object) -> bool:
        if not isinstance(other, MatrixBase):
            return NotImplemented
        return not self.is_equal_to(other)

    __hash__ = None  # type: ignore[assignment]

    def relative_order(self, other: "MatrixBase") -> int:
        """Total order: element kind, storage kind, shape, then column-major bytes."""
        if self.kind != other.kind:
            return -1 if self.kind < other.kind else 1
        if self.storage_kind != other.storage_kind:
            return -1 if self.storage_kind < other.storage_kind else 1
        if self.shape != other.shape:
            return -1 if self.shape < other.shape else 1
        mine, theirs = self.raw_bytes(), other.raw_bytes()
        if mine == theirs:
            return 0
        return -1 if mine < theirs else 1

    # -- shape operations -------------------------------------------------------

    def _materialized_store(self) -> BackingStore:
        self.apply_transform_and_scaling()
        return self._store

    def row_reverse(self) -> "MatrixBase":
        return type(self)._wrap(self._materialized_store().row_reverse())

    def column_reverse(self) -> "MatrixBase":
        return type(self)._wrap(self._materialized_store().column_reverse())

    def _combine(self, other: "MatrixBase", left_right: bool) -> "MatrixBase":
        kind = promote(self.kind, other.kind)
        a = self._promoted(kind)._materialized_store()
        b = other._promoted(kind)._materialized_store()
        runtime.record_kernel(f"combine[{self._storage_name()},{other._storage_name()}]")
        store = a.combine_left_right(b) if left_right else a.combine_top_bottom(b)
        return matrix_class(kind)._wrap(store)

    def combine_left_right(self, other: "MatrixBase") -> "MatrixBase":
        return self._combine(other, True)

    def combine_top_bottom(self, other: "MatrixBase") -> "MatrixBase":
        return self._combine(other, False)

    def diagonal_entries(self) -> "MatrixBase":
        return type(self)._from_array(np.diag(self._logical_array()).reshape(-1, 1))

    def diagonal(self) -> "MatrixBase":
        """Square matrix with this row or column vector on its diagonal."""
        rows, cols = self.shape
        if rows != 1 and cols != 1:
            raise InvalidMatrixDimensions(rows, cols)
        return type(self)._from_array(np.diag(self._logical_array().ravel()))

    def trace(self) -> Any:
        rows, cols = self.shape
        if rows != cols:
            raise InvalidMatrixDimensions(rows, cols)
        kind = arithmetic_kind(self.kind)
        return scalar_of_kind(kind, np.trace(self._operand(kind)))

    def hadamard(self, other: "MatrixBase") -> "MatrixBase":
        if self.shape != other.shape:
            raise InvalidMatrixDimensions(*self.shape, *other.shape)
        kind = promote(arithmetic_kind(self.kind), arithmetic_kind(other.kind))
        cls = matrix_class(kind)
        runtime.record_kernel(f"hadamard[{self._storage_name()},{other._storage_name()}]")
        if self.is_sparse() or other.is_sparse():
            a = self._sparse_operand(kind) if self.is_sparse() else self._operand(kind)
            b = other._sparse_operand(kind) if other.is_sparse() else other._operand(kind)
            product = sp.csr_matrix(a.multiply(b) if sp.issparse(a) else b.multiply(a))
            return cls._wrap(SparseStore.from_scipy(product, kind))
        return cls._from_array(self._operand(kind) * other._operand(kind))

    def kronecker(self, other: "MatrixBase") -> "MatrixBase":
        """Kronecker product; both operands' lazy state is applied inside the kernel."""
        kind = promote(arithmetic_kind(self.kind), arithmetic_kind(other.kind))
        cls = matrix_class(kind)
        runtime.record_kernel(f"kronecker[{self._storage_name()},{other._storage_name()}]:fused")
        scalar = np.asarray(self._scalar * other._scalar).astype(numpy_dtype(kind)).item()
        if self.is_sparse() and other.is_sparse():
            product = sp.kron(self._sparse_operand(kind, False), other._sparse_operand(kind, False), format="csr")
            return cls._wrap(SparseStore.from_scipy(product * scalar, kind))
        product = np.kron(self._operand(kind, False), other._operand(kind, False))
        return cls._from_array(product * scalar)

    def abs(self) -> "MatrixBase":
        kind = ElementKind.REAL if self.kind == ElementKind.COMPLEX else arithmetic_kind(self.kind)
        return matrix_class(kind)._from_array(np.abs(self._operand(arithmetic_kind(self.kind))))

    def __abs__(self) -> "MatrixBase":
        return self.abs()

    # -- predicates ------------------------------------------------------------

    @staticmethod
    def _tolerance(tolerance: float | None) -> float:
        return get_config().relative_tolerance if tolerance is None else float(tolerance)

    def _numeric(self) -> np.ndarray:
        return self._operand(promote(arithmetic_kind(self.kind), ElementKind.REAL))

    def is_symmetric(self, tolerance: float | None = None) -> bool:
        from . import linalg

        return linalg.is_symmetric(self._numeric(), self._tolerance(tolerance))

    def is_hermitian(self, tolerance: float | None = None) -> bool:
        from . import linalg

        return linalg.is_hermitian(self._numeric(), self._tolerance(tolerance))

    def is_skew_symmetric(self, tolerance: float | None = None) -> bool:
        from . import linalg

        return linalg.is_skew_symmetric(self._numeric(), self._tolerance(tolerance))

    def is_skew_hermitian(self, tolerance: float | None = None) -> bool:
        from . import linalg

        return linalg.is_skew_hermitian(self._numeric(), self._tolerance(tolerance))

    def is_normal(self, tolerance: float | None = None) -> bool:
        from . import linalg

        return linalg.is_normal(self._numeric(), self._tolerance(tolerance))

    # -- formatting ------------------------------------------------------------

    def __str__(self) -> str:
        return _formatting.matrix_str(self)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} shape={self.shape}{' sparse' if self.is_sparse() else ''}>"


def add(a: MatrixBase, b: MatrixBase, sign: int = 1) -> MatrixBase:
    """``a + sign * b`` with both operands' lazy state fused into the kernel."""
    if a.shape != b.shape:
        raise InvalidMatrixDimensions(*a.shape, *b.shape)
    kind = promote(arithmetic_kind(a.kind), arithmetic_kind(b.kind))
    cls = matrix_class(kind)
    tag = f"add[{a._storage_name()},{b._storage_name()}]"
    if a.is_sparse() and b.is_sparse():
        runtime.record_kernel(tag)
        total = a._sparse_operand(kind) + b._sparse_operand(kind) * sign
        return cls._wrap(SparseStore.from_scipy(total, kind))
    runtime.record_kernel(tag + ":fused")
    return cls._from_array(a._operand(kind) + b._operand(kind) * sign)


def multiply(a: MatrixBase, b: MatrixBase) -> MatrixBase:
    """Matrix product; transforms are applied as views and the scalars multiplied once."""
    if a.shape[1] != b.shape[0]:
        raise InvalidMatrixDimensions(*a.shape, *b.shape)
    kind = promote(arithmetic_kind(a.kind), arithmetic_kind(b.kind))
    cls = matrix_class(kind)
    scalar = np.asarray(a._scalar * b._scalar).astype(numpy_dtype(kind)).item()
    runtime.record_kernel(f"multiply[{a._storage_name()},{b._storage_name()}]:fused")
    left = a._sparse_operand(kind, False) if a.is_sparse() else a._operand(kind, False)
    right = b._sparse_operand(kind, False) if b.is_sparse() else b._operand(kind, False)
    product = left @ right
    if sp.issparse(product):
        return cls._wrap(SparseStore.from_scipy(product * scalar, kind))
    product = np.asarray(product)
    if scalar != _ONES[kind]:
        product = product * scalar
    return cls._from_array(product)


def warn_dense_fallback(operation: str) -> None:
    warnings.warn(
        f"{operation} has no sparse kernel; the operand is densified.",
        ModelRtPerformanceWarning,
        stacklevel=3,
    )
