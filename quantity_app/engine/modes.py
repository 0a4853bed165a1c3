"""
Calculation modes: raw quantity from mode-specific inputs.

Each mode is a variant holding only the inputs it uses, so inputs that belong
to another mode cannot leak into the computation:

    STANDARD     raw = entered quantity (blank -> 0.00)
    AREA_VOLUME  raw = width x depth x height [x weight],
                 0.00 while any required factor is blank
    PITCH        raw = ((range_length - edge1 - edge2) / pitch_length + 1)
                       [x length] [x weight],
                 kept exact (no rounding), 0.00 while any required input is blank

Bracketed multipliers are optional: a blank multiplier counts as 1 and never
makes the calculation incomplete.

The mode itself is chosen by the user; nothing here switches modes.
"""

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields as dataclass_fields
from fractions import Fraction
from typing import ClassVar, NamedTuple, Union

from .fixed_point import BLANK, FixedPoint, _Blank

Input = Union[FixedPoint, _Blank]


class CalculationMode(str, enum.Enum):
    STANDARD = "STANDARD"
    AREA_VOLUME = "AREA_VOLUME"
    PITCH = "PITCH"

    @classmethod
    def parse(cls, text) -> "CalculationMode":
        """Accept the enum, its value, or a case-insensitive name. Raises ValueError."""
        if isinstance(text, cls):
            return text
        key = str(text or "").strip().upper().replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            raise ValueError(
                f"Unknown calculation mode: {text!r}. Available: {[m.value for m in cls]}"
            ) from None


AREA_VOLUME_FIELDS = ("width", "depth", "height")
PITCH_FIELDS = ("range_length", "edge1", "edge2", "pitch_length")
# Optional multipliers; blank counts as 1
MULTIPLIER_FIELDS = ("length", "weight")
DIMENSION_FIELDS = AREA_VOLUME_FIELDS + PITCH_FIELDS + MULTIPLIER_FIELDS


class Computation(NamedTuple):
    """Raw quantity before coefficient and rounding, with its formula."""
    raw: Fraction
    formula: str
    missing: tuple

    @property
    def raw_value(self) -> FixedPoint:
        return FixedPoint.from_fraction(self.raw)


class ModeInputs(ABC):
    """All calculation mode variants inherit from this."""

    mode: ClassVar[CalculationMode]
    required_fields: ClassVar[tuple] = ()
    optional_fields: ClassVar[tuple] = ()

    @abstractmethod
    def compute(self) -> Computation:
        pass

    @classmethod
    def from_values(cls, values: dict) -> "ModeInputs":
        """Pick this variant's inputs out of a flat field dict. Missing keys are BLANK."""
        kwargs = {}
        for f in dataclass_fields(cls):
            value = values.get(f.name, BLANK)
            kwargs[f.name] = BLANK if value is None else value
        return cls(**kwargs)

    def missing_fields(self) -> tuple:
        return tuple(name for name in self.required_fields if getattr(self, name) is BLANK)

    def uses_field(self, field: str) -> bool:
        return field in self.required_fields or field in self.optional_fields

    def multipliers(self) -> list[FixedPoint]:
        """Entered optional multipliers, in field order. Blank ones are skipped."""
        return [getattr(self, f) for f in self.optional_fields if getattr(self, f) is not BLANK]


def _fmt(value: Input) -> str:
    return value.format() if value is not BLANK else "_"


@dataclass(frozen=True)
class StandardInputs(ModeInputs):
    mode: ClassVar[CalculationMode] = CalculationMode.STANDARD
    required_fields: ClassVar[tuple] = ("quantity",)

    quantity: Input = BLANK

    def compute(self) -> Computation:
        if self.quantity is BLANK:
            return Computation(Fraction(0), "0.00", ())
        return Computation(self.quantity.to_fraction(), self.quantity.format(), ())

    def missing_fields(self) -> tuple:
        # Blank commits as 0.00, so nothing is ever missing.
        return ()


@dataclass(frozen=True)
class AreaVolumeInputs(ModeInputs):
    mode: ClassVar[CalculationMode] = CalculationMode.AREA_VOLUME
    required_fields: ClassVar[tuple] = AREA_VOLUME_FIELDS
    optional_fields: ClassVar[tuple] = ("weight",)

    width: Input = BLANK
    depth: Input = BLANK
    height: Input = BLANK
    weight: Input = BLANK

    def compute(self) -> Computation:
        factors = [getattr(self, f) for f in AREA_VOLUME_FIELDS] + self.multipliers()
        formula = " x ".join(_fmt(factor) for factor in factors)
        missing = self.missing_fields()
        if missing:
            return Computation(Fraction(0), f"{formula} = 0.00", missing)

        # Pairwise, each step rounded to 2 places
        product = factors[0]
        for factor in factors[1:]:
            product = product.multiply(factor)
        return Computation(product.to_fraction(), f"{formula} = {product.format()}", ())


@dataclass(frozen=True)
class PitchInputs(ModeInputs):
    mode: ClassVar[CalculationMode] = CalculationMode.PITCH
    required_fields: ClassVar[tuple] = PITCH_FIELDS
    optional_fields: ClassVar[tuple] = MULTIPLIER_FIELDS

    range_length: Input = BLANK
    edge1: Input = BLANK
    edge2: Input = BLANK
    pitch_length: Input = BLANK
    length: Input = BLANK
    weight: Input = BLANK

    def compute(self) -> Computation:
        formula = "(%s - %s - %s) / %s + 1" % tuple(_fmt(getattr(self, f)) for f in PITCH_FIELDS)
        multipliers = self.multipliers()
        if multipliers:
            formula = f"({formula}) x " + " x ".join(m.format() for m in multipliers)

        missing = self.missing_fields()
        if missing or self.pitch_length.is_zero():
            return Computation(Fraction(0), f"{formula} = 0.00", missing)

        span = self.range_length.sub(self.edge1).sub(self.edge2)
        count = span.divide(self.pitch_length) + 1
        for multiplier in multipliers:
            count *= multiplier.to_fraction()
        return Computation(count, f"{formula} = {_describe_fraction(count)}", ())


def _describe_fraction(value: Fraction) -> str:
    """Exact text when the count has at most 2 decimals, else ~rounded."""
    rounded = FixedPoint.from_fraction(value)
    if rounded.to_fraction() == value:
        return rounded.format()
    return f"~{rounded.format()}"


MODE_REGISTRY: dict[CalculationMode, type] = {
    CalculationMode.STANDARD: StandardInputs,
    CalculationMode.AREA_VOLUME: AreaVolumeInputs,
    CalculationMode.PITCH: PitchInputs,
}


def get_mode(mode) -> type:
    """Returns the input variant class for a mode name, or raises ValueError."""
    return MODE_REGISTRY[CalculationMode.parse(mode)]


def has_mode(mode) -> bool:
    try:
        CalculationMode.parse(mode)
    except ValueError:
        return False
    return True


def list_modes() -> list[str]:
    return [m.value for m in MODE_REGISTRY]


def inputs_for(mode, values: dict) -> ModeInputs:
    """Build the variant for mode from a flat dict of parsed field values."""
    return get_mode(mode).from_values(values)


def compute(mode, values: dict) -> Computation:
    return inputs_for(mode, values).compute()
