import unittest

import numpy as np
import pytest

import modelrt as mr
from modelrt import PerThread, RngType


class TestPerThread(unittest.TestCase):
    def test_same_seed_same_stream(self):
        for rng_type in (RngType.MT19937, RngType.PCG64, RngType.PHILOX, RngType.SFC64):
            a = mr.MatrixReal.random_normal(PerThread(rng_type, seed=11), 3, 3)
            b = mr.MatrixReal.random_normal(PerThread(rng_type, seed=11), 3, 3)
            self.assertEqual(a, b, rng_type)

    def test_reseeding_restarts_the_stream(self):
        pt = PerThread(RngType.PCG64, seed=3)
        first = pt.random_integer64()
        pt.seed(3)
        self.assertEqual(pt.random_integer64(), first)

    def test_different_seeds_differ(self):
        a = mr.MatrixReal.random_inclusive_exclusive(PerThread(seed=1), 4, 4)
        b = mr.MatrixReal.random_inclusive_exclusive(PerThread(seed=2), 4, 4)
        self.assertNotEqual(a, b)

    def test_trng_cannot_be_seeded(self):
        with self.assertRaises(mr.InvalidParameterValue):
            PerThread(RngType.TRNG, seed=1)
        pt = PerThread(RngType.TRNG)
        with self.assertRaises(mr.InvalidParameterValue):
            pt.seed(5)
        self.assertEqual(mr.MatrixReal.random_exclusive(pt, 2, 2).shape, (2, 2))

    def test_scalar_draw_ranges(self):
        pt = PerThread(seed=9)
        for _ in range(100):
            self.assertTrue(-(2**31) <= pt.random_integer32() < 2**31)
            self.assertTrue(0.0 <= pt.random_inclusive() <= 1.0)
            self.assertTrue(0.0 < pt.random_exclusive() < 1.0)


@pytest.fixture
def pt():
    return PerThread(RngType.PCG64, seed=2024)


def test_uniform_intervals(pt):
    assert np.all(mr.MatrixReal.random_inclusive(pt, 50, 50).to_numpy() >= 0.0)
    values = mr.MatrixReal.random_exclusive(pt, 50, 50).to_numpy()
    assert np.all((values > 0.0) & (values < 1.0))
    values = mr.MatrixReal.random_exclusive_inclusive(pt, 50, 50).to_numpy()
    assert np.all((values > 0.0) & (values <= 1.0))
    values = mr.MatrixReal.random_inclusive_exclusive(pt, 50, 50).to_numpy()
    assert np.all((values >= 0.0) & (values < 1.0))


def test_distribution_shapes_and_kinds(pt):
    assert isinstance(mr.MatrixInteger.random_integer64(pt, 2, 3), mr.MatrixInteger)
    assert mr.MatrixInteger.random_integer32(pt, 2, 3).shape == (2, 3)
    assert mr.MatrixReal.random_weibull(pt, 3, 1, 2.0, 1.5).shape == (3, 1)
    assert mr.MatrixReal.random_cauchy_lorentz(pt, 1, 4, 0.0, 1.0).shape == (1, 4)


def test_distribution_supports(pt):
    assert np.all(mr.MatrixReal.random_exponential(pt, 20, 20, 2.0).to_numpy() >= 0)
    assert np.all(mr.MatrixReal.random_gamma(pt, 20, 20, 2.0, 1.0).to_numpy() > 0)
    assert np.all(mr.MatrixReal.random_rayleigh(pt, 20, 20, 1.0).to_numpy() >= 0)
    assert np.all(mr.MatrixReal.random_chi_squared(pt, 20, 20, 3.0).to_numpy() >= 0)
    assert np.all(mr.MatrixReal.random_log_normal(pt, 20, 20).to_numpy() > 0)
    assert np.all(mr.MatrixReal.random_weibull(pt, 20, 20, 1.0, 2.0, 5.0).to_numpy() >= 5.0)
    assert np.all(mr.MatrixInteger.random_poisson(pt, 20, 20, 3.0).to_numpy() >= 0)
    binomial = mr.MatrixInteger.random_binomial(pt, 20, 20, 10, 0.3).to_numpy()
    assert np.all((binomial >= 0) & (binomial <= 10))
    assert np.all(mr.MatrixInteger.random_geometric(pt, 20, 20, 0.5).to_numpy() >= 1)


def test_normal_moments(pt):
    values = mr.MatrixReal.random_normal(pt, 200, 200, 5.0, 2.0).to_numpy()
    assert values.mean() == pytest.approx(5.0, abs=0.05)
    assert values.std() == pytest.approx(2.0, abs=0.05)


@pytest.mark.parametrize(
    "draw",
    [
        lambda pt: mr.MatrixReal.random_normal(pt, 1, 1, 0.0, 0.0),
        lambda pt: mr.MatrixReal.random_weibull(pt, 1, 1, -1.0, 1.0),
        lambda pt: mr.MatrixReal.random_exponential(pt, 1, 1, 0.0),
        lambda pt: mr.MatrixReal.random_gamma(pt, 1, 1, 1.0, -2.0),
        lambda pt: mr.MatrixReal.random_rayleigh(pt, 1, 1, 0.0),
        lambda pt: mr.MatrixReal.random_chi_squared(pt, 1, 1, -1.0),
        lambda pt: mr.MatrixReal.random_cauchy_lorentz(pt, 1, 1, 0.0, 0.0),
        lambda pt: mr.MatrixInteger.random_poisson(pt, 1, 1, -1.0),
        lambda pt: mr.MatrixInteger.random_binomial(pt, 1, 1, 0, 0.5),
        lambda pt: mr.MatrixInteger.random_binomial(pt, 1, 1, 5, 1.5),
        lambda pt: mr.MatrixInteger.random_geometric(pt, 1, 1, 0.0),
    ],
)
def test_invalid_parameters(pt, draw):
    with pytest.raises(mr.InvalidNumericValue):
        draw(pt)
