"""Concrete matrix kinds.

``MatrixBoolean`` and ``MatrixInteger`` only carry the shared algebra from
:class:`MatrixBase`. The floating kinds add the decompositions, norms and
solvers, which always run on the dense logical contents.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from . import linalg, rng, runtime, spectral
from .config import get_config
from .dtypes import ElementKind, numpy_dtype
from .matrix_api import MatrixBase, warn_dense_fallback
from .rng import PerThread


class MatrixBoolean(MatrixBase):
    kind = ElementKind.BOOLEAN


class MatrixInteger(MatrixBase):
    kind = ElementKind.INTEGER

    @classmethod
    def random_integer64(cls, pt: PerThread, rows: int, cols: int) -> "MatrixInteger":
        return cls._from_array(rng.integer64(pt, (rows, cols)))

    @classmethod
    def random_integer32(cls, pt: PerThread, rows: int, cols: int) -> "MatrixInteger":
        return cls._from_array(rng.integer32(pt, (rows, cols)))

    @classmethod
    def random_poisson(cls, pt: PerThread, rows: int, cols: int, rate: float) -> "MatrixInteger":
        return cls._from_array(rng.poisson(pt, (rows, cols), rate))

    @classmethod
    def random_binomial(cls, pt: PerThread, rows: int, cols: int, n: int, p: float) -> "MatrixInteger":
        return cls._from_array(rng.binomial(pt, (rows, cols), n, p))

    @classmethod
    def random_geometric(cls, pt: PerThread, rows: int, cols: int, p: float) -> "MatrixInteger":
        """Number of Bernoulli trials up to and including the first success."""
        return cls._from_array(rng.geometric(pt, (rows, cols), p))


class _FloatingMatrix(MatrixBase):
    """Dense linear algebra shared by the real and complex kinds."""

    def _dense(self, operation: str) -> np.ndarray:
        if self.is_sparse():
            warn_dense_fallback(operation)
        runtime.record_kernel(f"{operation}[dense]")
        return np.asarray(self._logical_array(), dtype=numpy_dtype(self.kind))

    def _wrap_result(self, array: np.ndarray) -> MatrixBase:
        kind = ElementKind.COMPLEX if np.iscomplexobj(array) else ElementKind.REAL
        return MATRIX_CLASSES[kind]._from_array(array)

    def _same(self, array: np.ndarray) -> MatrixBase:
        return type(self)._from_array(array)

    # -- scalar results --------------------------------------------------------

    def inverse(self) -> MatrixBase:
        """Inverse matrix; empty (0x0) with a warning when singular."""
        return self._same(linalg.inverse(self._dense("inverse")))

    def determinant(self) -> Any:
        value = linalg.determinant(self._dense("determinant"))
        return complex(value) if self.kind == ElementKind.COMPLEX else float(np.real(value))

    def rank(self, epsilon: float | None = None) -> int:
        if epsilon is None:
            epsilon = get_config().rank_epsilon
        return linalg.rank(self._dense("rank"), epsilon)

    def p_norm(self, p: int) -> float:
        return linalg.p_norm(self._dense("p_norm"), p)

    def euclidean_norm(self) -> float:
        return self.p_norm(2)

    def one_norm(self) -> float:
        return linalg.one_norm(self._dense("one_norm"))

    def infinity_norm(self) -> float:
        return linalg.infinity_norm(self._dense("infinity_norm"))

    def condition_number(self) -> float:
        return linalg.condition_number(self._dense("condition_number"))

    def equilibrate(self) -> tuple[MatrixBase, MatrixBase, bool]:
        row_scale, col_scale, ok = linalg.equilibrate(self._dense("equilibrate"))
        return MatrixReal._from_array(row_scale), MatrixReal._from_array(col_scale), ok

    def solve(self, y: MatrixBase) -> MatrixBase:
        """``x`` with ``self * x == y``; empty with a warning when singular."""
        return self._wrap_result(linalg.solve(self._dense("solve"), _numeric_operand(y)))

    def least_squares(self, b: MatrixBase) -> MatrixBase:
        return self._wrap_result(linalg.least_squares(self._dense("least_squares"), _numeric_operand(b)))

    # -- decompositions --------------------------------------------------------

    def plu(self) -> tuple[MatrixBase, MatrixBase, MatrixBase, bool]:
        p, l, u, nonsingular = linalg.plu(self._dense("plu"))
        return self._same(p), self._same(l), self._same(u), nonsingular

    def svd(self) -> tuple[MatrixBase, MatrixBase, MatrixBase, bool]:
        u, s, vh, ok = linalg.svd(self._dense("svd"))
        return self._same(u), self._same(s), self._same(vh), ok

    def qr(self) -> tuple[MatrixBase, MatrixBase, bool]:
        q, r, ok = linalg.qr(self._dense("qr"))
        return self._same(q), self._same(r), ok

    def lq(self) -> tuple[MatrixBase, MatrixBase, bool]:
        l, q, ok = linalg.lq(self._dense("lq"))
        return self._same(l), self._same(q), ok

    def cholesky(self, tolerance: float | None = None) -> MatrixBase:
        """Lower factor ``L`` with ``L * L.adjoint() == self``; empty on failure."""
        return self._same(linalg.cholesky(self._dense("cholesky"), self._tolerance(tolerance)))

    def upper_cholesky(self, tolerance: float | None = None) -> MatrixBase:
        lower = self.cholesky(tolerance)
        if lower.is_empty():
            return lower
        return self._same(lower._logical_array().conj().T)

    def hessenberg(self) -> tuple[MatrixBase, MatrixBase]:
        q, h = linalg.hessenberg(self._dense("hessenberg"))
        return self._same(q), self._same(h)

    def schur(self) -> tuple[MatrixBase, MatrixBase, MatrixBase, bool]:
        """Complex Schur form; results are always complex matrices."""
        q, u, w, ok = linalg.schur(self._dense("schur"))
        return MatrixComplex._from_array(q), MatrixComplex._from_array(u), MatrixComplex._from_array(w), ok

    def eigenvectors(self, right: bool = True) -> tuple[MatrixBase, ...]:
        values, q, u, vectors = linalg.eigenvectors(self._dense("eigenvectors"), right)
        result = [MatrixComplex._from_array(values), MatrixComplex._from_array(q), MatrixComplex._from_array(u)]
        result.extend(MatrixComplex._from_array(v) for v in vectors)
        return tuple(result)


class MatrixReal(_FloatingMatrix):
    kind = ElementKind.REAL

    def floor(self) -> "MatrixReal":
        return MatrixReal._from_array(np.floor(self._logical_array()))

    def ceil(self) -> "MatrixReal":
        return MatrixReal._from_array(np.ceil(self._logical_array()))

    def nint(self) -> "MatrixReal":
        """Round half away from zero."""
        values = self._logical_array()
        return MatrixReal._from_array(np.sign(values) * np.floor(np.abs(values) + 0.5))

    def truncate_to_integer(self) -> MatrixInteger:
        return MatrixInteger._from_array(np.trunc(self._logical_array()))

    def floor_to_integer(self) -> MatrixInteger:
        return MatrixInteger._from_array(self.floor()._logical_array())

    def ceil_to_integer(self) -> MatrixInteger:
        return MatrixInteger._from_array(self.ceil()._logical_array())

    def nint_to_integer(self) -> MatrixInteger:
        return MatrixInteger._from_array(self.nint()._logical_array())

    def dct(self) -> "MatrixReal":
        return MatrixReal._from_array(spectral.dct(self._dense("dct")))

    def idct(self) -> "MatrixReal":
        return MatrixReal._from_array(spectral.idct(self._dense("idct")))

    def hilbert_transform(self) -> "MatrixComplex":
        return MatrixComplex._from_array(spectral.hilbert_transform(self._dense("hilbert_transform")))

    # -- random constructors ---------------------------------------------------

    @classmethod
    def random_inclusive(cls, pt: PerThread, rows: int, cols: int) -> "MatrixReal":
        """Uniform on ``[0, 1]``."""
        return cls._from_array(rng.uniform_inclusive(pt, (rows, cols)))

    @classmethod
    def random_inclusive_exclusive(cls, pt: PerThread, rows: int, cols: int) -> "MatrixReal":
        return cls._from_array(rng.uniform_inclusive_exclusive(pt, (rows, cols)))

    @classmethod
    def random_exclusive_inclusive(cls, pt: PerThread, rows: int, cols: int) -> "MatrixReal":
        return cls._from_array(rng.uniform_exclusive_inclusive(pt, (rows, cols)))

    @classmethod
    def random_exclusive(cls, pt: PerThread, rows: int, cols: int) -> "MatrixReal":
        return cls._from_array(rng.uniform_exclusive(pt, (rows, cols)))

    @classmethod
    def random_normal(cls, pt: PerThread, rows: int, cols: int, mean: float = 0.0, sigma: float = 1.0) -> "MatrixReal":
        return cls._from_array(rng.normal(pt, (rows, cols), mean, sigma))

    @classmethod
    def random_weibull(
        cls, pt: PerThread, rows: int, cols: int, scale: float, shape: float, delay: float = 0.0
    ) -> "MatrixReal":
        return cls._from_array(rng.weibull(pt, (rows, cols), scale, shape, delay))

    @classmethod
    def random_exponential(cls, pt: PerThread, rows: int, cols: int, rate: float) -> "MatrixReal":
        return cls._from_array(rng.exponential(pt, (rows, cols), rate))

    @classmethod
    def random_gamma(cls, pt: PerThread, rows: int, cols: int, k: float, s: float) -> "MatrixReal":
        return cls._from_array(rng.gamma(pt, (rows, cols), k, s))

    @classmethod
    def random_rayleigh(cls, pt: PerThread, rows: int, cols: int, scale: float) -> "MatrixReal":
        return cls._from_array(rng.rayleigh(pt, (rows, cols), scale))

    @classmethod
    def random_chi_squared(cls, pt: PerThread, rows: int, cols: int, k: float) -> "MatrixReal":
        return cls._from_array(rng.chi_squared(pt, (rows, cols), k))

    @classmethod
    def random_log_normal(
        cls, pt: PerThread, rows: int, cols: int, mean: float = 0.0, sigma: float = 1.0
    ) -> "MatrixReal":
        return cls._from_array(rng.log_normal(pt, (rows, cols), mean, sigma))

    @classmethod
    def random_cauchy_lorentz(cls, pt: PerThread, rows: int, cols: int, location: float, scale: float) -> "MatrixReal":
        return cls._from_array(rng.cauchy_lorentz(pt, (rows, cols), location, scale))


class MatrixComplex(_FloatingMatrix):
    kind = ElementKind.COMPLEX

    def real(self) -> MatrixReal:
        return MatrixReal._from_array(np.real(self._logical_array()))

    def imag(self) -> MatrixReal:
        return MatrixReal._from_array(np.imag(self._logical_array()))

    def dft(self) -> "MatrixComplex":
        return MatrixComplex._from_array(spectral.dft(self._dense("dft")))

    def idft(self) -> "MatrixComplex":
        return MatrixComplex._from_array(spectral.idft(self._dense("idft")))


def _numeric_operand(matrix: MatrixBase) -> np.ndarray:
    array = np.asarray(matrix._logical_array())
    if array.dtype.kind in "biu":
        array = array.astype(np.float64)
    return array


MATRIX_CLASSES: dict[ElementKind, type[MatrixBase]] = {
    ElementKind.BOOLEAN: MatrixBoolean,
    ElementKind.INTEGER: MatrixInteger,
    ElementKind.REAL: MatrixReal,
    ElementKind.COMPLEX: MatrixComplex,
}
