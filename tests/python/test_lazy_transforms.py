import numpy as np
import pytest

import modelrt as mr


@pytest.fixture
def complex_matrix():
    return mr.MatrixComplex([[1 + 2j, 3 - 1j, 0.5j], [-2 + 0j, 4 + 4j, 1 - 1j]])


def test_transpose_is_an_involution(complex_matrix):
    assert complex_matrix.transpose().transpose() == complex_matrix


def test_conjugate_is_an_involution(complex_matrix):
    assert complex_matrix.conjugate().conjugate() == complex_matrix


def test_adjoint_is_an_involution(complex_matrix):
    assert complex_matrix.adjoint().adjoint() == complex_matrix


def test_adjoint_equals_conjugated_transpose(complex_matrix):
    assert complex_matrix.adjoint() == complex_matrix.transpose().conjugate()
    assert complex_matrix.adjoint() == complex_matrix.conjugate().transpose()
    assert complex_matrix.H == complex_matrix.T.conjugate()


def test_transform_composition_is_xor(complex_matrix):
    m = complex_matrix.transpose().conjugate()
    assert m.pending_transform == mr.Transform.ADJOINT
    assert m.adjoint().pending_transform == mr.Transform.NONE
    assert m.transpose().pending_transform == mr.Transform.CONJUGATE


def test_shape_follows_transpose(complex_matrix):
    assert complex_matrix.shape == (2, 3)
    assert complex_matrix.transpose().shape == (3, 2)
    assert complex_matrix.conjugate().shape == (2, 3)


def test_conjugate_is_identity_for_real_kinds():
    a = mr.MatrixReal([[1.0, 2.0], [3.0, 4.0]])
    assert a.conjugate().pending_transform == mr.Transform.NONE
    assert a.adjoint().pending_transform == mr.Transform.TRANSPOSE
    assert a.adjoint() == a.transpose()


def test_lazy_element_reads(complex_matrix):
    h = complex_matrix.adjoint()
    expected = complex_matrix.to_numpy().conj().T
    for row in range(1, 4):
        for col in range(1, 3):
            assert h[row, col] == expected[row - 1, col - 1]


def test_scalar_fusion_matches_single_scale():
    a = mr.MatrixReal([[1.0, -2.0], [0.5, 4.0]])
    assert (a * 2.0) * 3.0 == a * 6.0
    assert 2.0 * (3.0 * a) == a * 6.0


def test_scalar_commutes_with_conjugation(complex_matrix):
    s = 2 - 3j
    left = (complex_matrix * s).conjugate()
    right = complex_matrix.conjugate() * s.conjugate()
    np.testing.assert_allclose(left.to_numpy(), right.to_numpy())


def test_negation_is_lazy():
    a = mr.MatrixReal([[1.0, 2.0]])
    before = mr._debug_store_allocations()
    b = -a
    assert mr._debug_store_allocations() == before
    np.testing.assert_allclose(b.to_numpy(), [[-1.0, -2.0]])


def test_to_numpy_returns_an_independent_copy():
    a = mr.MatrixReal([[1.0, 2.0], [3.0, 4.0]])
    array = a.transpose().to_numpy()
    array[0, 0] = 99.0
    assert a[1, 1] == 1.0


def test_integer_scaled_by_real_promotes():
    a = mr.MatrixInteger([[1, 2], [3, 4]])
    b = a * 0.5
    assert isinstance(b, mr.MatrixReal)
    np.testing.assert_allclose(b.to_numpy(), [[0.5, 1.0], [1.5, 2.0]])


def test_integer_scaled_by_integer_stays_integer():
    b = mr.MatrixInteger([[1, 2], [3, 4]]) * 3
    assert isinstance(b, mr.MatrixInteger)
    assert b[2, 2] == 12
