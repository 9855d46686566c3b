"""
GCAD Numbers Module - Unit-aware numeric values.

A Number is an integer or floating magnitude tagged with an optional length
unit. Conversions always go through millimeters; a unitless operand adopts
the unit of the other operand in arithmetic.
"""

import math
from enum import Enum
from typing import Optional, Union

from gcad_errors import DomainError, UnitError

Magnitude = Union[int, float]


class Unit(Enum):
    """Length units understood by scripts, valued by their factor to millimeters."""

    NONE = None
    MM = 1.0
    CM = 10.0
    M = 1000.0
    IN = 25.4
    FT = 304.8
    YD = 914.4

    @property
    def factor(self) -> Optional[float]:
        return self.value

    @property
    def suffix(self) -> str:
        return "" if self is Unit.NONE else self.name.lower()

    @classmethod
    def parse(cls, text: Optional[str]) -> "Unit":
        """
        Look up a unit by its script suffix.

        Args:
            text: Suffix such as "mm" or "in", empty/None for unitless

        Returns:
            Matching Unit

        Raises:
            UnitError: If the suffix is not a known unit
        """
        if not text:
            return cls.NONE
        try:
            unit = cls[text.upper()]
        except KeyError:
            raise UnitError(f"Unknown unit: {text!r}")
        if unit is cls.NONE:
            raise UnitError(f"Unknown unit: {text!r}")
        return unit


def _divide(lhs: Magnitude, rhs: Magnitude) -> float:
    # IEEE semantics instead of ZeroDivisionError
    if rhs == 0:
        if lhs == 0 or math.isnan(lhs):
            return math.nan
        return math.copysign(math.inf, lhs) * math.copysign(1.0, rhs)
    return lhs / rhs


class Number:
    """A magnitude with an optional length unit."""

    __slots__ = ("magnitude", "unit")

    def __init__(self, magnitude: Magnitude, unit: Unit = Unit.NONE):
        self.magnitude = magnitude
        self.unit = unit

    @classmethod
    def from_int(cls, value: int, unit: Union[Unit, str, None] = None) -> "Number":
        return cls(int(value), unit if isinstance(unit, Unit) else Unit.parse(unit))

    @classmethod
    def from_float(cls, value: float, unit: Union[Unit, str, None] = None) -> "Number":
        return cls(float(value), unit if isinstance(unit, Unit) else Unit.parse(unit))

    @property
    def is_integer(self) -> bool:
        return isinstance(self.magnitude, int)

    @property
    def has_unit(self) -> bool:
        return self.unit is not Unit.NONE

    def __float__(self) -> float:
        return float(self.magnitude)

    def as_float(self) -> float:
        """
        Return the magnitude of a unitless number.

        Raises:
            UnitError: If the number carries a unit
        """
        if self.has_unit:
            raise UnitError(f"Expected a unitless number, got {self}")
        return float(self.magnitude)

    def convert_unit(self, unit: Unit) -> "Number":
        """
        Convert to another unit through millimeters.

        Converting from or to a unitless number, or to the same unit, keeps
        the magnitude untouched and only retags it.
        """
        if self.unit is Unit.NONE or unit is Unit.NONE or self.unit is unit:
            return Number(self.magnitude, unit)
        millimeters = float(self.magnitude) * self.unit.factor
        return Number(millimeters / unit.factor, unit)

    def to_mm(self) -> float:
        """Magnitude in millimeters as a float."""
        return float(self.convert_unit(Unit.MM).magnitude)

    def _reconcile(self, other: "Number"):
        unit = other.unit if self.unit is Unit.NONE else self.unit
        return self.convert_unit(unit), other.convert_unit(unit), unit

    def __add__(self, other: "Number") -> "Number":
        lhs, rhs, unit = self._reconcile(other)
        return Number(lhs.magnitude + rhs.magnitude, unit)

    def __sub__(self, other: "Number") -> "Number":
        lhs, rhs, unit = self._reconcile(other)
        return Number(lhs.magnitude - rhs.magnitude, unit)

    def __mul__(self, other: "Number") -> "Number":
        lhs, rhs, unit = self._reconcile(other)
        return Number(lhs.magnitude * rhs.magnitude, unit)

    def __truediv__(self, other: "Number") -> "Number":
        lhs, rhs, unit = self._reconcile(other)
        return Number(_divide(lhs.magnitude, rhs.magnitude), unit)

    def __neg__(self) -> "Number":
        return Number(-self.magnitude, self.unit)

    def pow(self, exponent: "Number") -> "Number":
        """
        Raise to a unitless power, keeping this number's unit.

        Integer to a non-negative integer power stays integer, everything
        else is computed in floating point.

        Raises:
            UnitError: If the exponent carries a unit
            DomainError: If the result is not a real number
        """
        if exponent.has_unit:
            raise UnitError(f"Exponent must be unitless, got {exponent}")
        if self.is_integer and exponent.is_integer and exponent.magnitude >= 0:
            return Number(self.magnitude ** exponent.magnitude, self.unit)
        try:
            return Number(math.pow(self.magnitude, exponent.magnitude), self.unit)
        except (ValueError, OverflowError) as e:
            raise DomainError(f"Cannot raise {self} to the power {exponent}: {e}")

    def factorial(self) -> "Number":
        """
        Factorial of a unitless non-negative integral value.

        Raises:
            UnitError: If the number carries a unit
            DomainError: If the value is negative or fractional
        """
        if self.has_unit:
            raise UnitError(f"Factorial needs a unitless number, got {self}")
        value = self.magnitude
        if isinstance(value, float):
            if not value.is_integer():
                raise DomainError(f"Factorial needs an integral value, got {self}")
            value = int(value)
        if value < 0:
            raise DomainError(f"Factorial needs a non-negative value, got {self}")
        return Number(math.factorial(value))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Number):
            return NotImplemented
        return self.magnitude == other.magnitude and self.unit is other.unit

    def __hash__(self) -> int:
        return hash((self.magnitude, self.unit))

    def __repr__(self) -> str:
        return f"Number({self.magnitude!r}, {self.unit})"

    def __str__(self) -> str:
        return f"{self.magnitude}{self.unit.suffix}"
