"""
Fixed-point decimal numbers at a scale of 2 (hundredths).

Every quantity, coefficient, rounding unit and dimension in a quantity table
is held as an integer count of hundredths. Binary floats cannot represent 0.01,
and repeated multiply/round on floats drifts (100 x 1 must print "100.00").

Rounding rules:
- multiply: exact product, then round half away from zero on the third decimal
- ceil_to_multiple_of: smallest multiple of the unit that is >= the value
"""

import functools
import re
from decimal import Decimal, ROUND_HALF_UP
from fractions import Fraction
from typing import NamedTuple, Optional, Union

SCALE = 100

# sign, integer digits, optional fraction of at most 2 digits
_NUMBER_RE = re.compile(r"^([+-])?([0-9]*)(?:\.([0-9]{0,2}))?$", re.ASCII)

# Full-width digits, period and signs typed through an IME, plus dash-like minus
# signs. Nothing else is folded: superscripts and other scripts' digits are rejected.
_IME_FOLD = {code: chr(code - 0xFF10 + ord("0")) for code in range(0xFF10, 0xFF1A)}
_IME_FOLD.update({ord("．"): ".", ord("－"): "-", ord("＋"): "+",
                  ord("−"): "-", ord("‒"): "-", ord("–"): "-"})


class FixedPointParseError(ValueError):
    """Text is not a signed decimal with at most 2 fraction digits."""


class RangeExceededError(ValueError):
    """A parsed value lies outside an inclusive [minimum, maximum] bound."""

    def __init__(self, value, minimum, maximum):
        self.value = value
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"{value.format()} is outside {minimum.format()} to {maximum.format()}"
        )


class _Blank:
    """Marker for an input left empty. Distinct from zero."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "BLANK"

    def format(self) -> str:
        return ""


BLANK = _Blank()


def _round_half_away(value: Fraction) -> int:
    """Round an exact rational amount of hundredths to an integer."""
    magnitude = abs(value)
    whole = magnitude.numerator // magnitude.denominator
    if magnitude - whole >= Fraction(1, 2):
        whole += 1
    return -whole if value < 0 else whole


@functools.total_ordering
class FixedPoint:
    """A decimal value stored as an integer number of hundredths."""

    __slots__ = ("cents",)

    def __init__(self, cents: int = 0):
        if not isinstance(cents, int) or isinstance(cents, bool):
            raise TypeError(f"FixedPoint expects integer hundredths, got {cents!r}")
        self.cents = cents

    # --- Construction ---

    @classmethod
    def parse(cls, text) -> Union["FixedPoint", _Blank]:
        """
        Parse user input. Blank or whitespace-only input returns BLANK.
        Full-width digits, period and minus (IME input) are accepted.
        Raises FixedPointParseError for anything else.
        """
        if text is None:
            return BLANK
        if isinstance(text, FixedPoint):
            return text
        normalized = str(text).translate(_IME_FOLD).strip()
        if normalized == "":
            return BLANK

        match = _NUMBER_RE.match(normalized)
        if not match:
            raise FixedPointParseError(f"Not a number with up to 2 decimals: {text!r}")
        sign, whole, fraction = match.groups()
        if not whole and not fraction:
            raise FixedPointParseError(f"Not a number with up to 2 decimals: {text!r}")

        cents = int(whole or "0") * SCALE + int((fraction or "").ljust(2, "0"))
        return cls(-cents if sign == "-" else cents)

    @classmethod
    def of(cls, text: str) -> "FixedPoint":
        """Parse a literal that must not be blank, e.g. FixedPoint.of("9.99")."""
        value = cls.parse(text)
        if value is BLANK:
            raise FixedPointParseError("Blank is not a number")
        return value

    @classmethod
    def from_fraction(cls, value: Fraction) -> "FixedPoint":
        """Round an exact rational to 2 places, half away from zero."""
        return cls(_round_half_away(Fraction(value) * SCALE))

    @classmethod
    def from_decimal(cls, value: Decimal) -> "FixedPoint":
        quantized = Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return cls(int(quantized.scaleb(2)))

    def to_decimal(self) -> Decimal:
        return Decimal(self.cents).scaleb(-2)

    def to_fraction(self) -> Fraction:
        return Fraction(self.cents, SCALE)

    # --- Arithmetic ---

    def add(self, other: "FixedPoint") -> "FixedPoint":
        return FixedPoint(self.cents + other.cents)

    def sub(self, other: "FixedPoint") -> "FixedPoint":
        return FixedPoint(self.cents - other.cents)

    def multiply(self, other: Union["FixedPoint", Fraction]) -> "FixedPoint":
        """Product rounded half-up on the third decimal."""
        factor = other.to_fraction() if isinstance(other, FixedPoint) else Fraction(other)
        return FixedPoint.from_fraction(self.to_fraction() * factor)

    def divide(self, other: "FixedPoint") -> Fraction:
        """Exact quotient. Not rounded; callers decide when to round."""
        if other.cents == 0:
            raise ZeroDivisionError("FixedPoint division by zero")
        return Fraction(self.cents, other.cents)

    def ceil_to_multiple_of(self, unit: "FixedPoint") -> "FixedPoint":
        """Smallest multiple of unit that is >= self. unit must be positive."""
        return ceil_fraction_to_multiple_of(self.to_fraction(), unit)

    def clamp(self, minimum: "FixedPoint", maximum: "FixedPoint") -> "FixedPoint":
        """Return self if minimum <= self <= maximum, else raise RangeExceededError."""
        if self < minimum or self > maximum:
            raise RangeExceededError(self, minimum, maximum)
        return self

    def saturate(self, minimum: "FixedPoint", maximum: "FixedPoint") -> "FixedPoint":
        """Pull self into [minimum, maximum]."""
        return max(minimum, min(self, maximum))

    def is_zero(self) -> bool:
        return self.cents == 0

    def is_negative(self) -> bool:
        return self.cents < 0

    __add__ = add
    __sub__ = sub

    def __neg__(self):
        return FixedPoint(-self.cents)

    # --- Display ---

    def format(self) -> str:
        """Always exactly 2 fraction digits, sign preserved."""
        sign = "-" if self.cents < 0 else ""
        whole, fraction = divmod(abs(self.cents), SCALE)
        return f"{sign}{whole}.{fraction:02d}"

    __str__ = format

    def __repr__(self):
        return f"FixedPoint('{self.format()}')"

    # --- Comparison ---

    def __eq__(self, other):
        if isinstance(other, FixedPoint):
            return self.cents == other.cents
        return NotImplemented

    def __lt__(self, other):
        if isinstance(other, FixedPoint):
            return self.cents < other.cents
        return NotImplemented

    def __hash__(self):
        return hash(("FixedPoint", self.cents))


def ceil_fraction_to_multiple_of(value: Fraction, unit: FixedPoint) -> FixedPoint:
    """
    Ceiling of an exact rational to a multiple of unit.
    Used for PITCH raw counts, which are never rounded before this step.
    """
    if unit.cents <= 0:
        raise ValueError(f"Rounding unit must be positive, got {unit.format()}")
    steps = Fraction(value) * SCALE / unit.cents
    # ceil(a/b) for rationals, correct for negatives too
    multiples = -((-steps.numerator) // steps.denominator)
    return FixedPoint(multiples * unit.cents)


class ParseResult(NamedTuple):
    """Outcome of parsing one raw keystroke string at the input boundary."""
    value: Optional[Union[FixedPoint, _Blank]]
    error: Optional[str]


def try_parse(text) -> ParseResult:
    """Parse without raising. value is None when error is set."""
    try:
        return ParseResult(FixedPoint.parse(text), None)
    except FixedPointParseError as e:
        return ParseResult(None, str(e))


ZERO = FixedPoint(0)
ONE = FixedPoint(SCALE)
CENT = FixedPoint(1)


def format_optional(value) -> str:
    """Two-decimal text for a value, empty string for BLANK/None."""
    if value is None or value is BLANK:
        return ""
    return value.format()
