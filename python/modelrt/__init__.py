"""Value-semantic matrices, sets, tuples and variants for model runtimes."""
from __future__ import annotations

__version__ = "0.1.0"

from typing import Any

import numpy as _np
import scipy.sparse as _sp

from ._internal import runtime as _runtime_mod
from ._internal.config import RuntimeConfig, config_override, configure, get_config
from ._internal.dtypes import ElementKind, StorageKind, ValueKind, kind_of_array as _kind_of_array
from ._internal.dtypes import normalize_kind as _normalize_kind
from ._internal.errors import (
    CanNotConvertToString,
    FileCloseError,
    FileError,
    FileOpenError,
    FileReadError,
    FileSeekError,
    FileWriteError,
    InvalidColumn,
    InvalidContainerContents,
    InvalidFileNumber,
    InvalidIndex,
    InvalidMatrixDimensions,
    InvalidNumericValue,
    InvalidParameterValue,
    InvalidRow,
    InvalidRuntimeConversion,
    MalformedString,
    ModelRtError,
    error_message,
)
from ._internal.formatting import format_real, to_tuple_string
from ._internal.matrices import MatrixBoolean, MatrixComplex, MatrixInteger, MatrixReal
from ._internal.matrix_api import MatrixBase, matrix_class
from ._internal.ranges import Range
from ._internal.rng import PerThread, RngType
from ._internal.set_functions import (
    cartesian_product_of,
    disjoint_union_of,
    intersection_of,
    relative_complement_of,
    symmetric_difference_of,
    union_of,
)
from ._internal.sets import (
    BooleanSet,
    ComplexSet,
    IntegerSet,
    RealSet,
    Set,
    TypeSet,
    is_element_of,
    is_not_element_of,
)
from ._internal.storage import BackingStore, DenseStore, SparseStore
from ._internal.transforms import Transform
from ._internal.tuples import Tuple, alphabet, find, split
from ._internal.variant import Variant, implicit_ordering
from ._internal.warnings import (
    ModelRtDTypeWarning,
    ModelRtNumericWarning,
    ModelRtPerformanceWarning,
    ModelRtWarning,
)
from . import file_io


def _debug_last_kernel_trace() -> str:
    """Internal/test helper: tag of the last kernel dispatched on this thread."""
    return _runtime_mod.last_kernel()


def _debug_clear_kernel_trace() -> None:
    """Internal/test helper: reset this thread's kernel trace."""
    _runtime_mod.clear_kernel()


def _debug_store_allocations() -> int:
    """Internal/test helper: number of backing stores allocated by this process."""
    return _runtime_mod.store_allocations()


def _is_sequence_like(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def matrix(source: Any, kind: Any = None, *, sparse: bool = False) -> MatrixBase:
    """Create a matrix from data.

    The element kind is taken from ``kind`` (an ElementKind, a numpy dtype or a
    name such as ``"real"``) or inferred from the data. 1D input becomes a
    column vector.
    """
    if isinstance(source, MatrixBase):
        if kind is None and not sparse:
            return source.copy()
        target = source.kind if kind is None else _require_kind(kind)
        return matrix_class(target)(source, sparse=sparse)

    if _sp.issparse(source):
        target = _kind_of_array(_np.asarray(source.data)) if kind is None else _require_kind(kind)
        return matrix_class(target)(source)

    if _is_sequence_like(source):
        if len(source) > 0 and _is_sequence_like(source[0]):
            if len(source[0]) > 0 and _is_sequence_like(source[0][0]):
                raise InvalidMatrixDimensions(len(source), len(source[0]))
        source = _np.asarray(source)
    elif not isinstance(source, _np.ndarray):
        raise InvalidRuntimeConversion(type(source).__name__, "matrix")

    target = _kind_of_array(source) if kind is None else _require_kind(kind)
    return matrix_class(target)(source, sparse=sparse)


def _require_kind(kind: Any) -> ElementKind:
    resolved = _normalize_kind(kind)
    if resolved is None:
        raise InvalidParameterValue(f"unsupported element kind: {kind!r}")
    return resolved


__all__ = [
    "__version__",
    # configuration
    "RuntimeConfig",
    "config_override",
    "configure",
    "get_config",
    # kinds
    "ElementKind",
    "StorageKind",
    "ValueKind",
    "Transform",
    # matrices
    "MatrixBase",
    "MatrixBoolean",
    "MatrixInteger",
    "MatrixReal",
    "MatrixComplex",
    "matrix",
    "matrix_class",
    "BackingStore",
    "DenseStore",
    "SparseStore",
    # containers
    "Range",
    "Set",
    "TypeSet",
    "BooleanSet",
    "IntegerSet",
    "RealSet",
    "ComplexSet",
    "is_element_of",
    "is_not_element_of",
    "union_of",
    "intersection_of",
    "disjoint_union_of",
    "cartesian_product_of",
    "relative_complement_of",
    "symmetric_difference_of",
    "Tuple",
    "find",
    "split",
    "alphabet",
    "Variant",
    "implicit_ordering",
    "to_tuple_string",
    "format_real",
    # random
    "PerThread",
    "RngType",
    # files
    "file_io",
    # errors and warnings
    "ModelRtError",
    "InvalidRow",
    "InvalidColumn",
    "InvalidIndex",
    "InvalidMatrixDimensions",
    "InvalidRuntimeConversion",
    "InvalidParameterValue",
    "InvalidNumericValue",
    "FileError",
    "FileOpenError",
    "FileReadError",
    "FileWriteError",
    "FileSeekError",
    "FileCloseError",
    "InvalidFileNumber",
    "CanNotConvertToString",
    "InvalidContainerContents",
    "MalformedString",
    "error_message",
    "ModelRtWarning",
    "ModelRtDTypeWarning",
    "ModelRtPerformanceWarning",
    "ModelRtNumericWarning",
]
