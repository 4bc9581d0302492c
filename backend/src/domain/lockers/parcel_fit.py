"""Parcel-to-locker fit check.

Both dimension triples are converted to centimeters before comparing.
The comparison is axis-aligned: width against width, height against height,
depth against depth. A parcel that would only fit after being turned on its
side is reported as not fitting. Equality fits.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Union

Number = Union[int, float, Decimal]

CM_PER_INCH = Decimal("2.54")


class DimensionUnit(str, Enum):
    CM = "CM"
    INCH = "INCH"


class MailboxType(str, Enum):
    STANDARD = "STANDARD"
    LARGE = "LARGE"
    PARCEL_LOCKER = "PARCEL_LOCKER"


@dataclass(frozen=True)
class Dimensions:
    """Width x height x depth in a single unit."""
    width: Decimal
    height: Decimal
    depth: Decimal
    unit: DimensionUnit = DimensionUnit.CM

    @classmethod
    def of(cls, width: Number, height: Number, depth: Number, unit: DimensionUnit) -> "Dimensions":
        return cls(
            width=Decimal(str(width)),
            height=Decimal(str(height)),
            depth=Decimal(str(depth)),
            unit=DimensionUnit(unit),
        )

    def is_positive(self) -> bool:
        return self.width > 0 and self.height > 0 and self.depth > 0

    def to_centimeters(self) -> "Dimensions":
        if self.unit == DimensionUnit.CM:
            return self
        return Dimensions(
            width=self.width * CM_PER_INCH,
            height=self.height * CM_PER_INCH,
            depth=self.depth * CM_PER_INCH,
            unit=DimensionUnit.CM,
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "width": float(self.width),
            "height": float(self.height),
            "depth": float(self.depth),
            "unit": self.unit.value,
        }


@dataclass(frozen=True)
class FitResult:
    fits: bool
    normalized_parcel: Dimensions
    normalized_locker: Dimensions


def fits(parcel: Dimensions, locker: Dimensions) -> FitResult:
    """Decide whether a parcel fits a locker.

    Example:
        >>> parcel = Dimensions.of(30, 10, 10, DimensionUnit.CM)
        >>> locker = Dimensions.of(12, 4, 4, DimensionUnit.INCH)
        >>> fits(parcel, locker).fits
        True
    """
    p = parcel.to_centimeters()
    box = locker.to_centimeters()
    result = p.width <= box.width and p.height <= box.height and p.depth <= box.depth
    return FitResult(fits=result, normalized_parcel=p, normalized_locker=box)
