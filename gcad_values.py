"""
GCAD Values Module - Runtime values produced by script evaluation.

ScriptValue is a closed set of variants: NumberValue, StringValue,
RangeValue and NullValue. Arithmetic is only defined between numbers;
every other combination raises TypeMismatchError naming the operator.
"""

from typing import Iterator

from gcad_errors import ScriptTypeError, TypeMismatchError
from gcad_numbers import Number

OPERATORS = {
    "+": Number.__add__,
    "-": Number.__sub__,
    "*": Number.__mul__,
    "/": Number.__truediv__,
    "^": Number.pow,
}


class ScriptValue:
    """Base class of every value a script expression can produce."""

    type_name = "value"

    def binary_op(self, operator: str, other: "ScriptValue") -> "ScriptValue":
        """
        Apply a binary operator with this value as the left operand.

        Args:
            operator: One of + - * / ^
            other: Right operand

        Returns:
            Resulting NumberValue

        Raises:
            TypeMismatchError: If either operand is not a number
        """
        if operator not in OPERATORS:
            raise TypeMismatchError(f"Unknown operator {operator!r}")
        if not isinstance(self, NumberValue) or not isinstance(other, NumberValue):
            raise TypeMismatchError(
                f"Cannot apply '{operator}' to {self.type_name} and {other.type_name}"
            )
        return NumberValue(OPERATORS[operator](self.number, other.number))

    def negate(self) -> "ScriptValue":
        raise TypeMismatchError(f"Cannot negate {self.type_name}")

    def factorial(self) -> "ScriptValue":
        raise TypeMismatchError(f"Cannot take the factorial of {self.type_name}")

    def as_number(self) -> Number:
        raise ScriptTypeError(f"Expected number, got {self.type_name}")

    def as_text(self) -> str:
        raise ScriptTypeError(f"Expected string, got {self.type_name}")


class NumberValue(ScriptValue):
    type_name = "number"

    def __init__(self, number: Number):
        self.number = number

    def negate(self) -> "NumberValue":
        return NumberValue(-self.number)

    def factorial(self) -> "NumberValue":
        return NumberValue(self.number.factorial())

    def as_number(self) -> Number:
        return self.number

    def __eq__(self, other) -> bool:
        if not isinstance(other, NumberValue):
            return NotImplemented
        return self.number == other.number

    def __repr__(self) -> str:
        return f"NumberValue({self.number!r})"


class StringValue(ScriptValue):
    type_name = "string"

    def __init__(self, text: str):
        self.text = text

    def as_text(self) -> str:
        return self.text

    def __eq__(self, other) -> bool:
        if not isinstance(other, StringValue):
            return NotImplemented
        return self.text == other.text

    def __repr__(self) -> str:
        return f"StringValue({self.text!r})"


class RangeValue(ScriptValue):
    """
    A lazy arithmetic sequence of `count` numbers.

    Iterating yields start + step * i for i in 0..count-1 and can be
    restarted any number of times.
    """

    type_name = "range"

    def __init__(self, start: Number, step: Number, count: int):
        self.start = start
        self.step = step
        self.count = count

    def value_at(self, index: int) -> Number:
        return self.start + self.step * Number(index)

    def __iter__(self) -> Iterator[Number]:
        for i in range(self.count):
            yield self.value_at(i)

    def __len__(self) -> int:
        return self.count

    def __repr__(self) -> str:
        return f"RangeValue(start={self.start}, step={self.step}, count={self.count})"


class NullValue(ScriptValue):
    """Result of builtins that only have side effects."""

    type_name = "null"

    def __eq__(self, other) -> bool:
        return isinstance(other, NullValue)

    def __hash__(self) -> int:
        return 0

    def __repr__(self) -> str:
        return "NULL"


NULL = NullValue()
