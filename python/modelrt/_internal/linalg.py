"""Dense linear-algebra kernels over numpy arrays.

Inputs are 2-D arrays in logical orientation (lazy transforms already
applied). Numerical degeneracy is reported through returned flags or empty
results, never raised.
"""

from __future__ import annotations

import warnings

import numpy as np
import scipy.linalg as sla

from .errors import InvalidMatrixDimensions, InvalidParameterValue
from .warnings import ModelRtNumericWarning


def _require_square(a: np.ndarray) -> None:
    rows, cols = a.shape
    if rows != cols or rows == 0:
        raise InvalidMatrixDimensions(rows, cols)


def _empty(a: np.ndarray) -> np.ndarray:
    return np.zeros((0, 0), dtype=a.dtype)


def _warn(message: str) -> None:
    warnings.warn(message, ModelRtNumericWarning, stacklevel=3)


def inverse(a: np.ndarray) -> np.ndarray:
    _require_square(a)
    try:
        return sla.inv(a)
    except (np.linalg.LinAlgError, ValueError):
        _warn("matrix is singular; inverse is empty")
        return _empty(a)


def determinant(a: np.ndarray):
    _require_square(a)
    return sla.det(a)


def rank(a: np.ndarray, epsilon: float) -> int:
    if a.size == 0:
        return 0
    s = sla.svd(a, compute_uv=False)
    return int(np.count_nonzero(np.abs(s) > epsilon))


def p_norm(a: np.ndarray, p: int) -> float:
    """Entry-wise p-norm; ``p == 2`` is the Frobenius norm."""
    if p <= 0:
        raise InvalidParameterValue(f"p-norm order must be positive, got {p}")
    values = np.abs(a).ravel()
    if p == 2:
        return float(np.sqrt(np.sum(values * values)))
    return float(np.sum(values**p) ** (1.0 / p))


def one_norm(a: np.ndarray) -> float:
    if a.size == 0:
        return 0.0
    return float(np.max(np.sum(np.abs(a), axis=0)))


def infinity_norm(a: np.ndarray) -> float:
    if a.size == 0:
        return 0.0
    return float(np.max(np.sum(np.abs(a), axis=1)))


def condition_number(a: np.ndarray) -> float:
    inv = inverse(a)
    if inv.size == 0:
        return float("inf")
    return p_norm(inv, 2) * p_norm(a, 2)


def equilibrate(a: np.ndarray) -> tuple[np.ndarray, np.ndarray, bool]:
    """Row and column scale factors as diagonal matrices.

    Row scales are the reciprocal row maxima; column scales are the
    reciprocal column maxima of the row-scaled matrix. Fails on a zero row or
    column, returning zero scale matrices.
    """
    _require_square(a)
    n = a.shape[0]
    real_dtype = np.float64
    row_scale = np.zeros((n, n), dtype=real_dtype, order="F")
    col_scale = np.zeros((n, n), dtype=real_dtype, order="F")

    magnitude = np.abs(a)
    row_max = magnitude.max(axis=1)
    if np.any(row_max == 0):
        return row_scale, col_scale, False
    r = 1.0 / row_max
    col_max = (magnitude * r[:, None]).max(axis=0)
    if np.any(col_max == 0):
        return row_scale, col_scale, False
    c = 1.0 / col_max
    np.fill_diagonal(row_scale, r)
    np.fill_diagonal(col_scale, c)
    return row_scale, col_scale, True


def solve(a: np.ndarray, y: np.ndarray) -> np.ndarray:
    _require_square(a)
    if y.shape[0] == 0 or y.shape[1] == 0:
        raise InvalidMatrixDimensions(*y.shape)
    if a.shape[0] != y.shape[0]:
        raise InvalidMatrixDimensions(a.shape[0], a.shape[1], y.shape[0], y.shape[1])
    try:
        return sla.solve(a, y)
    except (np.linalg.LinAlgError, ValueError):
        _warn("matrix is singular; solution is empty")
        return np.zeros((0, 0), dtype=np.result_type(a, y))


def least_squares(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Minimise ``||Ax - b||``; QR when over-determined, LQ when under-determined."""
    rows, cols = a.shape
    if rows == 0 or cols == 0:
        raise InvalidMatrixDimensions(rows, cols)
    if b.shape[0] != rows:
        raise InvalidMatrixDimensions(rows, cols, b.shape[0], b.shape[1])
    dtype = np.result_type(a, b, np.float64)
    try:
        if rows >= cols:
            q, r = sla.qr(a, mode="economic")
            return sla.solve_triangular(r, q.conj().T @ b)
        q, r = sla.qr(a.conj().T, mode="economic")
        # a = r^H q^H, so the minimum-norm solution is q (r^H)^-1 b.
        z = sla.solve_triangular(r.conj().T, b, lower=True)
        return (q @ z).astype(dtype, copy=False)
    except (np.linalg.LinAlgError, ValueError):
        _warn("least-squares system is rank deficient; solution is empty")
        return np.zeros((0, 0), dtype=dtype)


def plu(a: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray, bool]:
    _require_square(a)
    p, l, u = sla.lu(a)
    nonsingular = bool(np.all(np.diag(u) != 0))
    return p, l, u, nonsingular


def svd(a: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray, bool]:
    rows, cols = a.shape
    try:
        u, s, vh = sla.svd(a, full_matrices=True)
    except np.linalg.LinAlgError:
        _warn("SVD did not converge")
        return _empty(a), _empty(a), _empty(a), False
    sigma = np.zeros((rows, cols), dtype=a.dtype)
    k = min(rows, cols)
    sigma[np.arange(k), np.arange(k)] = s
    return u, sigma, vh, True


def qr(a: np.ndarray) -> tuple[np.ndarray, np.ndarray, bool]:
    try:
        q, r = sla.qr(a)
    except np.linalg.LinAlgError:
        _warn("QR factorisation failed")
        return _empty(a), _empty(a), False
    return q, r, True


def lq(a: np.ndarray) -> tuple[np.ndarray, np.ndarray, bool]:
    """LQ of ``a`` from the QR of its adjoint."""
    q, r, ok = qr(a.conj().T)
    if not ok:
        return q, r, False
    return r.conj().T, q.conj().T, True


def cholesky(a: np.ndarray, tolerance: float) -> np.ndarray:
    """Lower factor ``L`` with ``L L^H == a``; empty when ``a`` is not Hermitian positive-definite."""
    _require_square(a)
    if not is_hermitian(a, tolerance):
        return _empty(a)
    try:
        return sla.cholesky(a, lower=True)
    except np.linalg.LinAlgError:
        _warn("matrix is not positive definite; Cholesky factor is empty")
        return _empty(a)


def hessenberg(a: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    _require_square(a)
    h, q = sla.hessenberg(a, calc_q=True)
    return q, h


def schur(a: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray, bool]:
    """Complex Schur form ``a = Q U Q^H``; ``W`` holds the diagonal of ``U`` as a column."""
    _require_square(a)
    try:
        u, q = sla.schur(a.astype(np.complex128), output="complex")
    except (np.linalg.LinAlgError, ValueError):
        _warn("Schur decomposition did not converge")
        empty = np.zeros((0, 0), dtype=np.complex128)
        return empty, empty, empty, False
    w = np.diag(u).reshape(-1, 1)
    return q, u, w, True


def eigenvectors(a: np.ndarray, right: bool = True) -> tuple[np.ndarray, np.ndarray, np.ndarray, list[np.ndarray]]:
    """Eigenvalues as a row, the Schur pair ``(Q, U)`` and one column per eigenvector."""
    q, u, w, ok = schur(a)
    if not ok:
        return w.reshape(1, -1), q, u, []
    if right:
        values, vectors = sla.eig(a.astype(np.complex128), left=False, right=True)
    else:
        values, vectors = sla.eig(a.astype(np.complex128), left=True, right=False)
    return values.reshape(1, -1), q, u, [vectors[:, [i]] for i in range(vectors.shape[1])]


def is_symmetric(a: np.ndarray, tolerance: float) -> bool:
    if a.shape[0] != a.shape[1]:
        return False
    return _close(a, a.T, tolerance)


def is_hermitian(a: np.ndarray, tolerance: float) -> bool:
    if a.shape[0] != a.shape[1]:
        return False
    return _close(a, a.conj().T, tolerance)


def is_skew_symmetric(a: np.ndarray, tolerance: float) -> bool:
    if a.shape[0] != a.shape[1]:
        return False
    return _close(a, -a.T, tolerance)


def is_skew_hermitian(a: np.ndarray, tolerance: float) -> bool:
    if a.shape[0] != a.shape[1]:
        return False
    return _close(a, -a.conj().T, tolerance)


def is_normal(a: np.ndarray, tolerance: float) -> bool:
    if a.shape[0] != a.shape[1]:
        return False
    ah = a.conj().T
    return _close(a @ ah, ah @ a, tolerance)


def _close(x: np.ndarray, y: np.ndarray, tolerance: float) -> bool:
    if x.size == 0:
        return True
    scale = max(float(np.max(np.abs(x))), float(np.max(np.abs(y))), 1.0)
    return bool(np.all(np.abs(x - y) <= tolerance * scale))
