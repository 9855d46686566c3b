"""
Unit tests for runtime script values.
"""

import math
import unittest

from gcad_errors import ScriptTypeError, TypeMismatchError
from gcad_numbers import Number, Unit
from gcad_values import NULL, NullValue, NumberValue, RangeValue, StringValue


class TestNumberValue(unittest.TestCase):
    """Test cases for arithmetic between values."""

    def test_binary_operators(self):
        """Test every operator on numbers."""
        a = NumberValue(Number(6))
        b = NumberValue(Number(3))
        self.assertEqual(a.binary_op("+", b), NumberValue(Number(9)))
        self.assertEqual(a.binary_op("-", b), NumberValue(Number(3)))
        self.assertEqual(a.binary_op("*", b), NumberValue(Number(18)))
        self.assertEqual(a.binary_op("/", b), NumberValue(Number(2.0)))
        self.assertEqual(a.binary_op("^", b), NumberValue(Number(216)))

    def test_units_flow_through(self):
        """Test that unit reconciliation applies to values."""
        result = NumberValue(Number(2, Unit.MM)).binary_op("+", NumberValue(Number(1, Unit.CM)))
        self.assertIs(result.number.unit, Unit.MM)
        self.assertAlmostEqual(result.number.magnitude, 12.0)

    def test_negate_and_factorial(self):
        """Test unary operations."""
        self.assertEqual(NumberValue(Number(4)).negate(), NumberValue(Number(-4)))
        self.assertEqual(NumberValue(Number(4)).factorial(), NumberValue(Number(24)))


class TestTypeMismatch(unittest.TestCase):
    """Test cases for operations on non-numbers."""

    def test_string_arithmetic(self):
        """Test that strings cannot take part in arithmetic."""
        with self.assertRaises(TypeMismatchError) as ctx:
            StringValue("a").binary_op("+", NumberValue(Number(1)))
        self.assertIn("'+'", str(ctx.exception))

        with self.assertRaises(TypeMismatchError):
            NumberValue(Number(1)).binary_op("*", StringValue("a"))

    def test_null_and_range_arithmetic(self):
        """Test that null and range values cannot take part in arithmetic."""
        rng = RangeValue(Number(0), Number(1), 3)
        with self.assertRaises(TypeMismatchError):
            NULL.binary_op("-", NumberValue(Number(1)))
        with self.assertRaises(TypeMismatchError):
            rng.binary_op("/", rng)

    def test_unary_mismatch(self):
        """Test negation and factorial of non-numbers."""
        with self.assertRaises(TypeMismatchError):
            StringValue("a").negate()
        with self.assertRaises(TypeMismatchError):
            NULL.factorial()

    def test_type_mismatch_is_type_error(self):
        """Test the error hierarchy."""
        self.assertTrue(issubclass(TypeMismatchError, ScriptTypeError))

    def test_accessors(self):
        """Test extracting native values."""
        self.assertEqual(NumberValue(Number(1)).as_number(), Number(1))
        self.assertEqual(StringValue("oak").as_text(), "oak")
        with self.assertRaises(ScriptTypeError):
            StringValue("oak").as_number()
        with self.assertRaises(ScriptTypeError):
            NumberValue(Number(1)).as_text()
        with self.assertRaises(ScriptTypeError):
            NULL.as_number()


class TestRangeValue(unittest.TestCase):
    """Test cases for lazy ranges."""

    def test_iteration(self):
        """Test the sequence values."""
        rng = RangeValue(Number(0), Number(2.5), 5)
        self.assertEqual([n.magnitude for n in rng], [0, 2.5, 5, 7.5, 10])
        self.assertEqual(len(rng), 5)

    def test_restartable(self):
        """Test that a range can be iterated more than once."""
        rng = RangeValue(Number(1, Unit.MM), Number(1, Unit.MM), 3)
        first = list(rng)
        second = list(rng)
        self.assertEqual(first, second)
        self.assertEqual(first[-1], Number(3, Unit.MM))

    def test_empty(self):
        """Test a range without elements."""
        self.assertEqual(list(RangeValue(Number(0), Number(1), 0)), [])

    def test_nan_step(self):
        """Test a single element range with an undefined step."""
        values = list(RangeValue(Number(0), Number(math.inf), 1))
        self.assertEqual(len(values), 1)
        self.assertTrue(math.isnan(values[0].magnitude))


class TestNullValue(unittest.TestCase):
    """Test cases for the null value."""

    def test_equality(self):
        """Test that null values compare equal."""
        self.assertEqual(NULL, NullValue())
        self.assertNotEqual(NULL, NumberValue(Number(0)))
        self.assertEqual(repr(NULL), "NULL")


if __name__ == "__main__":
    unittest.main()
