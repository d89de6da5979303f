"""Bar diameter sampling check (20 samples per heat)."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from . import logger
from .spec_limits import AttributeId, SpecLimit
from .status import Status, category_status
from .validator import ValidationStatus, check_limit

DIMENSIONAL_SAMPLES_PER_HEAT = 20

# More than this many out-of-tolerance samples rejects the heat.
MAX_INVALID_SAMPLES = 1


class UnknownProductModelError(ValueError):
    """Raised when no tolerance band is known for a product model."""


@dataclass(frozen=True)
class ToleranceBand:
    model: str
    standard_mm: float
    min_mm: float
    max_mm: float

    def as_limit(self) -> SpecLimit:
        return SpecLimit(
            AttributeId.DIAMETER,
            self.min_mm,
            self.max_mm,
            label="Diameter",
            unit="mm",
        )


TOLERANCE_BANDS = {
    "MK-III": ToleranceBand("MK-III", 20.64, 20.47, 20.84),
    "MK-V": ToleranceBand("MK-V", 23.0, 22.81, 23.23),
}

# Checked in order: the MK-III pattern must win over the MK-V one.
_MODEL_PATTERNS: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r"MK[-\s]?III", re.IGNORECASE), "MK-III"),
    (re.compile(r"MK[-\s]?V(?![IX])", re.IGNORECASE), "MK-V"),
)


def tolerance_band_for_model(product_model: Optional[str]) -> ToleranceBand:
    """Look up the diameter band for a product model identifier."""
    for pattern, key in _MODEL_PATTERNS:
        if pattern.search(product_model or ""):
            return TOLERANCE_BANDS[key]
    raise UnknownProductModelError(f"No diameter tolerance band for product model {product_model!r}")


@dataclass(frozen=True)
class SampleCheck:
    valid: bool
    message: Optional[str] = None
    # True when the value is unusable (blank / not a number) rather than out of band.
    input_error: bool = False


@dataclass(frozen=True)
class DimensionalTally:
    invalid_count: int
    rejected: bool
    per_sample: List[SampleCheck] = field(default_factory=list)
    complete: bool = True

    @property
    def status(self) -> Status:
        return category_status(self.complete, self.rejected)


def _check_sample(raw_value: object, band: ToleranceBand, limit: SpecLimit) -> SampleCheck:
    result = check_limit(limit, raw_value)
    if result.status is ValidationStatus.PASS:
        return SampleCheck(valid=True)
    if result.status is ValidationStatus.INDETERMINATE:
        return SampleCheck(valid=False, message=result.message, input_error=True)
    return SampleCheck(valid=False, message=f"Out of range ({band.min_mm:g}-{band.max_mm:g})")


def tally_dimensional(samples: Sequence[object], tolerance_band: ToleranceBand) -> DimensionalTally:
    """Validate each diameter sample and count the out-of-tolerance ones.

    Blank or non-numeric samples are reported per sample but only make the
    tally incomplete; ``invalid_count`` counts range violations.
    """
    limit = tolerance_band.as_limit()
    per_sample = [_check_sample(raw, tolerance_band, limit) for raw in samples]

    invalid_count = sum(1 for check in per_sample if not check.valid and not check.input_error)
    input_errors = sum(1 for check in per_sample if check.input_error)
    complete = len(per_sample) == DIMENSIONAL_SAMPLES_PER_HEAT and input_errors == 0
    rejected = invalid_count > MAX_INVALID_SAMPLES

    logger.debug(
        "Dimensional tally model=%s samples=%s invalid=%s input_errors=%s",
        tolerance_band.model,
        len(per_sample),
        invalid_count,
        input_errors,
    )
    return DimensionalTally(
        invalid_count=invalid_count,
        rejected=rejected,
        per_sample=per_sample,
        complete=complete,
    )
