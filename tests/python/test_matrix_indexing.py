import unittest

import numpy as np
import pytest

import modelrt as mr


def _counting(rows=3, cols=4):
    # Column-major fill: element (r, c) holds (c - 1) * rows + r.
    return mr.MatrixReal.build(rows, cols, *range(1, rows * cols + 1))


class TestElementAccess(unittest.TestCase):
    def setUp(self):
        self.a = _counting()

    def test_two_dimensional_is_one_based(self):
        self.assertEqual(self.a[1, 1], 1.0)
        self.assertEqual(self.a[2, 3], 8.0)
        self.assertEqual(self.a.at(3, 4), 12.0)

    def test_linear_index_is_column_major(self):
        for i in range(1, 13):
            row = (i - 1) % 3 + 1
            col = (i - 1) // 3 + 1
            self.assertEqual(self.a[i], self.a[row, col])

    def test_iteration_is_column_major(self):
        self.assertEqual(list(self.a), [float(i) for i in range(1, 13)])

    def test_update_then_read(self):
        self.a[2, 2] = -7.5
        self.assertEqual(self.a[2, 2], -7.5)
        self.a[12] = 100.0
        self.assertEqual(self.a[3, 4], 100.0)

    def test_integral_real_and_complex_subscripts(self):
        self.assertEqual(self.a[2.0, 3.0], 8.0)
        self.assertEqual(self.a[2 + 0j, 3], 8.0)
        self.assertEqual(self.a[mr.Variant(2), mr.Variant(3)], 8.0)

    def test_non_integral_subscript_rejected(self):
        with self.assertRaises(mr.InvalidRuntimeConversion):
            self.a[2.5, 1]
        with self.assertRaises(mr.InvalidRuntimeConversion):
            self.a[1, 1 + 1j]
        with self.assertRaises(mr.InvalidRuntimeConversion):
            self.a[True, 1]

    def test_out_of_range_rows_and_columns(self):
        with self.assertRaises(mr.InvalidRow) as ctx:
            self.a[4, 1]
        self.assertEqual(ctx.exception.index, 4)
        self.assertEqual(ctx.exception.bound, 3)
        with self.assertRaises(mr.InvalidRow):
            self.a[0, 1]
        with self.assertRaises(mr.InvalidColumn):
            self.a[1, 5]
        with self.assertRaises(mr.InvalidIndex):
            self.a[13]
        with self.assertRaises(mr.InvalidIndex):
            self.a[0]

    def test_error_codes_are_exposed(self):
        with self.assertRaises(mr.ModelRtError) as ctx:
            self.a[4, 1]
        self.assertEqual(mr.error_message(ctx.exception.code), "Invalid row")


class TestSubMatrices(unittest.TestCase):
    def setUp(self):
        self.a = _counting()

    def test_range_subscripts(self):
        block = self.a[mr.Range(1, 2), mr.Range(3, 4)]
        self.assertIsInstance(block, mr.MatrixReal)
        np.testing.assert_array_equal(block.to_numpy(), [[7.0, 10.0], [8.0, 11.0]])

    def test_stepped_range(self):
        block = self.a[1, mr.Range(1, 3, 4)]
        np.testing.assert_array_equal(block.to_numpy(), [[1.0, 7.0]])

    def test_set_subscript_is_sorted(self):
        block = self.a[mr.Set.of(3, 1), 1]
        np.testing.assert_array_equal(block.to_numpy(), [[1.0], [3.0]])

    def test_tuple_subscript_keeps_order(self):
        block = self.a[mr.Tuple.of(3, 1), 1]
        np.testing.assert_array_equal(block.to_numpy(), [[3.0], [1.0]])

    def test_linear_index_matrix_keeps_its_shape(self):
        picks = mr.MatrixInteger([[1, 4], [2, 5]])
        block = self.a[picks]
        self.assertEqual(block.shape, (2, 2))
        np.testing.assert_array_equal(block.to_numpy(), [[1.0, 4.0], [2.0, 5.0]])

    def test_index_matrix_in_two_dimensions(self):
        rows = mr.MatrixInteger([[1], [3]])
        block = self.a[rows, mr.Range(1, 2)]
        self.assertEqual(block.shape, (2, 2))
        np.testing.assert_array_equal(block.to_numpy(), [[1.0, 4.0], [3.0, 6.0]])

    def test_linear_range_on_row_vector_gives_row(self):
        row = mr.MatrixReal([[1.0, 2.0, 3.0, 4.0]])
        self.assertEqual(row[mr.Range(2, 3)].shape, (1, 2))

    def test_submatrix_of_lazy_transpose(self):
        t = self.a.transpose()
        block = t[mr.Range(1, 2), 1]
        np.testing.assert_array_equal(block.to_numpy(), [[1.0], [4.0]])

    def test_submatrix_trace_names_storage(self):
        self.a[mr.Range(1, 2), 1]
        self.assertEqual(mr._debug_last_kernel_trace(), "submatrix[dense]")
        s = self.a.to_sparse()
        block = s[mr.Range(1, 2), mr.Range(1, 2)]
        self.assertEqual(mr._debug_last_kernel_trace(), "submatrix[sparse]")
        self.assertTrue(block.is_sparse())

    def test_out_of_range_member_rejected(self):
        with self.assertRaises(mr.InvalidColumn):
            self.a[1, mr.Range(3, 5)]


class TestGrowth(unittest.TestCase):
    def test_empty_matrix_grows_into_column(self):
        m = mr.MatrixReal()
        m[3] = 1.5
        self.assertEqual(m.shape, (3, 1))
        self.assertEqual(m[3], 1.5)
        self.assertEqual(m[1], 0.0)

    def test_column_vector_grows_downwards(self):
        m = mr.MatrixReal([[1.0], [2.0]])
        m[5] = 5.0
        self.assertEqual(m.shape, (5, 1))
        np.testing.assert_array_equal(m.to_numpy().ravel(), [1.0, 2.0, 0.0, 0.0, 5.0])

    def test_row_vector_grows_rightwards(self):
        m = mr.MatrixReal([[1.0, 2.0]])
        m[4] = 4.0
        self.assertEqual(m.shape, (1, 4))
        self.assertEqual(m[1, 4], 4.0)

    def test_general_matrix_adds_columns(self):
        m = mr.MatrixReal([[1.0, 2.0], [3.0, 4.0]])
        m[7] = 7.0
        self.assertEqual(m.shape, (2, 4))
        self.assertEqual(m[1, 4], 7.0)
        self.assertEqual(m[2, 1], 3.0)

    def test_two_dimensional_growth_zero_fills(self):
        m = mr.MatrixInteger([[1, 2], [3, 4]])
        m[3, 5] = 9
        self.assertEqual(m.shape, (3, 5))
        self.assertEqual(m[3, 5], 9)
        self.assertEqual(m[2, 2], 4)
        self.assertEqual(m[3, 1], 0)

    def test_growth_does_not_touch_shared_copy(self):
        m = mr.MatrixReal([[1.0, 2.0]])
        other = m.copy()
        m[1, 3] = 3.0
        self.assertEqual(other.shape, (1, 2))
        self.assertEqual(m.shape, (1, 3))


def test_update_converts_value_to_matrix_kind():
    m = mr.MatrixInteger(2, 2)
    m[1, 1] = 3.0
    assert m[1, 1] == 3
    assert isinstance(m[1, 1], int)
    with pytest.raises(mr.InvalidRuntimeConversion):
        m[1, 2] = 2.5


def test_set_value_reports_failure():
    m = mr.MatrixReal(2, 2)
    assert m.set_value(1, 1, 4.0)
    assert not m.set_value(1, 1, mr.Set.of(1))
    assert not m.set_value(0, 1, 1.0)
    assert m[1, 1] == 4.0


def test_boolean_matrix_elements():
    m = mr.MatrixBoolean(2, 2)
    m[1, 2] = True
    assert m[1, 2] is True
    assert m[2, 1] is False


def test_boolean_matrix_is_not_an_index():
    a = _counting()
    with pytest.raises(mr.InvalidRuntimeConversion):
        a[mr.MatrixBoolean([[True]])]
