"""Per-thread pseudo-random state and the distributions built on it."""

from __future__ import annotations

import secrets
from enum import Enum
from typing import Any

import numpy as np

from .errors import InvalidNumericValue, InvalidParameterValue

_MANTISSA = float(2**53)


class RngType(Enum):
    MT19937 = "mt19937"
    PCG64 = "pcg64"
    PHILOX = "philox"
    SFC64 = "sfc64"
    TRNG = "trng"


_BIT_GENERATORS = {
    RngType.MT19937: np.random.MT19937,
    RngType.PCG64: np.random.PCG64,
    RngType.PHILOX: np.random.Philox,
    RngType.SFC64: np.random.SFC64,
}


class PerThread:
    """Random state owned by one thread and passed explicitly to random constructors.

    ``RngType.TRNG`` draws a fresh operating-system seed for every generator
    access, so results are not reproducible and ``seed()`` is rejected.
    """

    def __init__(self, rng_type: RngType = RngType.MT19937, seed: Any = None) -> None:
        self._rng_type = RngType(rng_type)
        self._generator: np.random.Generator | None = None
        if self._rng_type != RngType.TRNG:
            self.seed(seed)
        elif seed is not None:
            raise InvalidParameterValue("a TRNG source can not be seeded")

    @property
    def rng_type(self) -> RngType:
        return self._rng_type

    def seed(self, value: Any = None) -> None:
        if self._rng_type == RngType.TRNG:
            raise InvalidParameterValue("a TRNG source can not be seeded")
        bit_generator = _BIT_GENERATORS[self._rng_type](value)
        self._generator = np.random.Generator(bit_generator)

    @property
    def generator(self) -> np.random.Generator:
        if self._rng_type == RngType.TRNG:
            return np.random.Generator(np.random.PCG64(secrets.randbits(128)))
        return self._generator

    def random_integer64(self) -> int:
        if self._rng_type == RngType.TRNG:
            return secrets.randbits(64) - 2**63
        return int(self.generator.integers(-(2**63), 2**63 - 1, dtype=np.int64, endpoint=True))

    def random_integer32(self) -> int:
        if self._rng_type == RngType.TRNG:
            return secrets.randbits(32) - 2**31
        return int(self.generator.integers(-(2**31), 2**31 - 1, dtype=np.int64, endpoint=True))

    def random_inclusive(self) -> float:
        """Uniform on ``[0, 1]``."""
        return float(uniform_inclusive(self, (1,))[0])

    def random_exclusive(self) -> float:
        """Uniform on ``(0, 1)``."""
        return float(uniform_exclusive(self, (1,))[0])

    def __repr__(self) -> str:
        return f"PerThread(rng_type={self._rng_type.name})"


def _positive(*values: float) -> None:
    for value in values:
        if not value > 0:
            raise InvalidNumericValue(f"parameter must be positive, got {value}")


def uniform_inclusive(pt: PerThread, shape: tuple[int, ...]) -> np.ndarray:
    ticks = pt.generator.integers(0, 2**53, size=shape, dtype=np.int64, endpoint=True)
    return ticks / _MANTISSA


def uniform_inclusive_exclusive(pt: PerThread, shape: tuple[int, ...]) -> np.ndarray:
    return pt.generator.random(size=shape)


def uniform_exclusive_inclusive(pt: PerThread, shape: tuple[int, ...]) -> np.ndarray:
    return 1.0 - pt.generator.random(size=shape)


def uniform_exclusive(pt: PerThread, shape: tuple[int, ...]) -> np.ndarray:
    ticks = pt.generator.integers(0, 2**53, size=shape, dtype=np.int64)
    return (ticks + 0.5) / _MANTISSA


def normal(pt: PerThread, shape: tuple[int, ...], mean: float = 0.0, sigma: float = 1.0) -> np.ndarray:
    _positive(sigma)
    return pt.generator.normal(mean, sigma, size=shape)


def weibull(pt: PerThread, shape: tuple[int, ...], scale: float, shape_parameter: float, delay: float = 0.0) -> np.ndarray:
    _positive(scale, shape_parameter)
    return delay + scale * pt.generator.weibull(shape_parameter, size=shape)


def exponential(pt: PerThread, shape: tuple[int, ...], rate: float) -> np.ndarray:
    _positive(rate)
    return pt.generator.exponential(1.0 / rate, size=shape)


def gamma(pt: PerThread, shape: tuple[int, ...], k: float, s: float) -> np.ndarray:
    _positive(k, s)
    return pt.generator.gamma(k, s, size=shape)


def rayleigh(pt: PerThread, shape: tuple[int, ...], scale: float) -> np.ndarray:
    _positive(scale)
    return pt.generator.rayleigh(scale, size=shape)


def chi_squared(pt: PerThread, shape: tuple[int, ...], k: float) -> np.ndarray:
    _positive(k)
    return pt.generator.chisquare(k, size=shape)


def log_normal(pt: PerThread, shape: tuple[int, ...], mean: float = 0.0, sigma: float = 1.0) -> np.ndarray:
    _positive(sigma)
    return pt.generator.lognormal(mean, sigma, size=shape)


def cauchy_lorentz(pt: PerThread, shape: tuple[int, ...], location: float, scale: float) -> np.ndarray:
    _positive(scale)
    return location + scale * pt.generator.standard_cauchy(size=shape)


def integer64(pt: PerThread, shape: tuple[int, ...]) -> np.ndarray:
    return pt.generator.integers(-(2**63), 2**63 - 1, size=shape, dtype=np.int64, endpoint=True)


def integer32(pt: PerThread, shape: tuple[int, ...]) -> np.ndarray:
    return pt.generator.integers(-(2**31), 2**31 - 1, size=shape, dtype=np.int64, endpoint=True)


def poisson(pt: PerThread, shape: tuple[int, ...], rate: float) -> np.ndarray:
    _positive(rate)
    return pt.generator.poisson(rate, size=shape).astype(np.int64)


def binomial(pt: PerThread, shape: tuple[int, ...], n: int, p: float) -> np.ndarray:
    if n <= 0 or not 0.0 <= p <= 1.0:
        raise InvalidNumericValue(f"invalid binomial parameters n={n}, p={p}")
    return pt.generator.binomial(n, p, size=shape).astype(np.int64)


def geometric(pt: PerThread, shape: tuple[int, ...], p: float) -> np.ndarray:
    """Number of trials up to and including the first success."""
    if not 0.0 < p <= 1.0:
        raise InvalidNumericValue(f"invalid geometric probability {p}")
    return pt.generator.geometric(p, size=shape).astype(np.int64)
