import math
import unittest

import numpy as np
import pytest

import modelrt as mr
from modelrt import ValueKind


class TestVariantOrder(unittest.TestCase):
    def test_order_is_tag_first(self):
        chain = [
            mr.Variant(),
            mr.Variant(True),
            mr.Variant(1),
            mr.Variant(1.5),
            mr.Variant(0j),
            mr.Variant(mr.Set.of(1, 2)),
            mr.Variant(mr.Tuple.of(1, 2)),
            mr.Variant(mr.MatrixReal(1, 1)),
        ]
        for lower, higher in zip(chain, chain[1:]):
            self.assertLess(lower, higher)
            self.assertGreater(higher, lower)

    def test_payload_order_within_a_kind(self):
        self.assertLess(mr.Variant(1), mr.Variant(2))
        self.assertLess(mr.Variant(1 + 5j), mr.Variant(2 + 0j))
        self.assertLess(mr.Variant(1 + 1j), mr.Variant(1 + 2j))

    def test_integer_and_real_are_distinct(self):
        self.assertNotEqual(mr.Variant(1), mr.Variant(1.0))
        self.assertEqual(mr.implicit_ordering(1, 1.0), 0)

    def test_implicit_ordering_crosses_kinds(self):
        self.assertEqual(mr.implicit_ordering(True, 0.5), 1)
        self.assertEqual(mr.implicit_ordering(1 + 1j, 2), 0)
        self.assertEqual(mr.implicit_ordering(-3, 2.5), -1)
        with self.assertRaises(mr.InvalidRuntimeConversion):
            mr.implicit_ordering(mr.Tuple("a"), 1)

    def test_nan_has_a_place_in_the_order(self):
        nan = mr.Variant(math.nan)
        self.assertEqual(nan, mr.Variant(math.nan))
        self.assertGreater(nan, mr.Variant(math.inf))
        self.assertEqual(hash(nan), hash(mr.Variant(float("nan"))))

    def test_sorting_mixed_values(self):
        values = [mr.Variant(v) for v in (2.0, 3, "a", False, 1)]
        ordered = sorted(values)
        self.assertEqual([v.kind for v in ordered][:3], [ValueKind.BOOLEAN, ValueKind.INTEGER, ValueKind.INTEGER])


class TestVariantConversion(unittest.TestCase):
    def test_integral_real_converts_to_integer(self):
        self.assertEqual(mr.Variant(2.0).to_integer(), 2)
        self.assertTrue(mr.Variant(2.0).can_translate_to(ValueKind.INTEGER))

    def test_fractional_real_does_not(self):
        self.assertEqual(mr.Variant(2.5).try_to(ValueKind.INTEGER), (None, False))
        with self.assertRaises(mr.InvalidRuntimeConversion):
            mr.Variant(2.5).to_integer()

    def test_complex_narrowing(self):
        self.assertEqual(mr.Variant(3 + 0j).to_real(), 3.0)
        with self.assertRaises(mr.InvalidRuntimeConversion):
            mr.Variant(3 + 1j).to_real()
        self.assertTrue(mr.Variant(3 + 1j).to_boolean())

    def test_empty_variant_converts_to_zero_values(self):
        v = mr.Variant()
        self.assertTrue(v.is_none())
        self.assertEqual(v.to_integer(), 0)
        self.assertEqual(v.to_complex(), 0j)
        self.assertTrue(v.to_set().is_empty())
        self.assertTrue(v.to_tuple().is_empty())
        self.assertTrue(v.to_matrix_real().is_empty())

    def test_container_truthiness(self):
        self.assertFalse(mr.Variant(mr.Tuple()).to_boolean())
        self.assertTrue(mr.Variant(mr.Set.of(0)).to_boolean())
        with self.assertRaises(mr.InvalidRuntimeConversion):
            mr.Variant(mr.Set.of(1)).to_integer()

    def test_strings_become_tuples(self):
        v = mr.Variant("hi")
        self.assertEqual(v.kind, ValueKind.TUPLE)
        self.assertEqual(v.to_tuple().to_string(), "hi")

    def test_convert_returns_new_variant(self):
        v = mr.Variant(4)
        r = v.convert(ValueKind.REAL)
        self.assertEqual(r.kind, ValueKind.REAL)
        self.assertEqual(r.value, 4.0)
        self.assertEqual(v.kind, ValueKind.INTEGER)

    def test_kind_argument_converts_on_construction(self):
        self.assertEqual(mr.Variant(1, ValueKind.COMPLEX).value, 1 + 0j)

    def test_numpy_scalars_are_accepted(self):
        self.assertEqual(mr.Variant(np.int64(3)).kind, ValueKind.INTEGER)
        self.assertEqual(mr.Variant(np.float64(0.5)).kind, ValueKind.REAL)

    def test_unsupported_payload(self):
        with self.assertRaises(mr.InvalidRuntimeConversion):
            mr.Variant(object())


class TestMatrixVariants(unittest.TestCase):
    def setUp(self):
        self.m = mr.MatrixReal.build(1, 2, 1.0, 2.0)

    def test_matrix_widening(self):
        v = mr.Variant(self.m)
        self.assertTrue(v.is_matrix())
        self.assertIsInstance(v.to_matrix_complex(), mr.MatrixComplex)
        self.assertFalse(v.can_translate_to(ValueKind.MATRIX_INTEGER))

    def test_variant_holds_its_own_handle(self):
        v = mr.Variant(self.m)
        self.m[1, 1] = 9.0
        self.assertEqual(v.value[1, 1], 1.0)

    def test_update_through_variant(self):
        v = mr.Variant(self.m)
        v.update(1, 2, 5)
        self.assertEqual(v.value[1, 2], 5.0)
        self.assertEqual(self.m[1, 2], 2.0)
        with self.assertRaises(mr.InvalidRuntimeConversion):
            mr.Variant(3).update(1, 1, 1)

    def test_equal_matrices_hash_alike(self):
        a = mr.Variant(self.m)
        b = mr.Variant(mr.MatrixReal([[1.0, 2.0]]))
        self.assertEqual(a, b)
        self.assertEqual(hash(a), hash(b))
        self.assertEqual(len(mr.Set.of(a, b)), 1)


@pytest.mark.parametrize(
    "value, kind",
    [
        (None, ValueKind.NONE),
        (False, ValueKind.BOOLEAN),
        (7, ValueKind.INTEGER),
        (7.5, ValueKind.REAL),
        (7j, ValueKind.COMPLEX),
    ],
)
def test_scalar_kinds(value, kind):
    v = mr.Variant(value)
    assert v.kind == kind
    assert v.value_type() == kind
