"""Discrete Fourier, cosine and Hilbert transforms.

Vectors (either dimension equal to 1) are transformed in one dimension,
other matrices along both axes.
"""

from __future__ import annotations

import numpy as np
import scipy.fft as sfft
from scipy.signal import hilbert

from .errors import InvalidMatrixDimensions


def _is_vector(a: np.ndarray) -> bool:
    return a.shape[0] == 1 or a.shape[1] == 1


def _along_vector(a: np.ndarray, fn, **kwargs) -> np.ndarray:
    return fn(a.ravel(order="F"), **kwargs).reshape(a.shape, order="F")


def dft(a: np.ndarray) -> np.ndarray:
    if a.size == 0:
        return a.astype(np.complex128)
    if _is_vector(a):
        return _along_vector(a, sfft.fft)
    return sfft.fft2(a)


def idft(a: np.ndarray) -> np.ndarray:
    if a.size == 0:
        return a.astype(np.complex128)
    if _is_vector(a):
        return _along_vector(a, sfft.ifft)
    return sfft.ifft2(a)


def dct(a: np.ndarray) -> np.ndarray:
    """Orthonormal type-II DCT."""
    if a.size == 0:
        return a.astype(np.float64)
    if _is_vector(a):
        return _along_vector(a, sfft.dct, type=2, norm="ortho")
    return sfft.dctn(a, type=2, norm="ortho")


def idct(a: np.ndarray) -> np.ndarray:
    """Orthonormal type-III DCT, the inverse of :func:`dct`."""
    if a.size == 0:
        return a.astype(np.float64)
    if _is_vector(a):
        return _along_vector(a, sfft.dct, type=3, norm="ortho")
    return sfft.dctn(a, type=3, norm="ortho")


def hilbert_transform(a: np.ndarray) -> np.ndarray:
    """Analytic signal ``x + i H(x)`` of a real vector."""
    if not _is_vector(a) or a.size == 0:
        raise InvalidMatrixDimensions(*a.shape)
    return _along_vector(a, hilbert).astype(np.complex128)
