import numpy as np
import pytest
import scipy.fft as sfft

import modelrt as mr


def test_dft_of_column_matches_fft():
    x = mr.MatrixComplex([[1.0], [2.0 - 1j], [0.5j], [-3.0]])
    np.testing.assert_allclose(x.dft().to_numpy().ravel(), np.fft.fft(x.to_numpy().ravel()))


def test_dft_keeps_row_orientation():
    x = mr.MatrixComplex([[1.0, 0.0, 0.0, 0.0]])
    y = x.dft()
    assert y.shape == (1, 4)
    np.testing.assert_allclose(y.to_numpy(), np.ones((1, 4)))


def test_idft_inverts_dft():
    x = mr.MatrixComplex([[1 + 1j, 2], [3, 4 - 2j], [0, 1j]])
    np.testing.assert_allclose(x.dft().idft().to_numpy(), x.to_numpy(), atol=1e-12)


def test_two_dimensional_dft():
    x = mr.MatrixComplex([[1, 2, 3], [4, 5, 6]])
    np.testing.assert_allclose(x.dft().to_numpy(), np.fft.fft2(x.to_numpy()))


def test_dct_is_orthonormal():
    x = mr.MatrixReal([[1.0], [2.0], [3.0], [4.0]])
    y = x.dct()
    np.testing.assert_allclose(y.to_numpy().ravel(), sfft.dct(x.to_numpy().ravel(), type=2, norm="ortho"))
    assert y.euclidean_norm() == pytest.approx(x.euclidean_norm())


def test_idct_inverts_dct():
    x = mr.MatrixReal([[0.5, -1.0, 2.0], [3.0, 0.0, 1.5]])
    np.testing.assert_allclose(x.dct().idct().to_numpy(), x.to_numpy(), atol=1e-12)


def test_hilbert_transform_is_analytic_signal():
    t = np.linspace(0, 2 * np.pi, 64, endpoint=False)
    x = mr.MatrixReal(np.cos(4 * t).reshape(-1, 1))
    analytic = x.hilbert_transform()
    assert isinstance(analytic, mr.MatrixComplex)
    np.testing.assert_allclose(analytic.real().to_numpy(), x.to_numpy(), atol=1e-12)
    np.testing.assert_allclose(analytic.imag().to_numpy().ravel(), np.sin(4 * t), atol=1e-10)


def test_hilbert_transform_requires_vector():
    with pytest.raises(mr.InvalidMatrixDimensions):
        mr.MatrixReal(3, 3).hilbert_transform()


def test_spectral_kernel_trace():
    mr.MatrixComplex([[1.0], [2.0]]).dft()
    assert mr._debug_last_kernel_trace() == "dft[dense]"
