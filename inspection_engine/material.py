"""Chemical and mechanical testing of the two material samples per heat.

If any attribute on either sample is outside its spec limit the whole heat
fails material testing; there is no partial credit per sample.

Ladle analysis (the vendor's declared chemistry) is compared against the
measured values for display only and never changes ``heat_valid``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from . import logger
from .spec_limits import DEFAULT_SPEC_LIMITS, AttributeId, SpecLimitsTable, attribute_key
from .status import Status, category_status
from .validator import ValidationStatus, check_limit, parse_value

MATERIAL_SAMPLES_PER_HEAT = 2

REQUIRED_MATERIAL_ATTRIBUTES = (
    AttributeId.CARBON,
    AttributeId.SILICON,
    AttributeId.MANGANESE,
    AttributeId.PHOSPHORUS,
    AttributeId.SULPHUR,
    AttributeId.GRAIN_SIZE,
    AttributeId.INCLUSION_A,
    AttributeId.INCLUSION_B,
    AttributeId.INCLUSION_C,
    AttributeId.INCLUSION_D,
    AttributeId.HARDNESS,
    AttributeId.DECARB,
)

LADLE_ELEMENTS = (
    AttributeId.CARBON,
    AttributeId.SILICON,
    AttributeId.MANGANESE,
    AttributeId.PHOSPHORUS,
    AttributeId.SULPHUR,
)

# Allowed product-vs-ladle deviation per element. P and S have none.
LADLE_DEVIATION = {
    AttributeId.CARBON.value: 0.03,
    AttributeId.SILICON.value: 0.04,
    AttributeId.MANGANESE.value: 0.05,
}

INCLUSION_TYPES = ("Thick", "Thin")

_REQUIRED_KEYS = frozenset(attribute.value for attribute in REQUIRED_MATERIAL_ATTRIBUTES)


@dataclass(frozen=True)
class MaterialTestSample:
    """Measured values for one test piece.

    ``values`` maps attribute ids to raw operator input. ``inclusion_types``
    maps the rating letters A-D to ``Thick``/``Thin``; it is descriptive only.
    """

    values: Mapping[str, object] = field(default_factory=dict)
    inclusion_types: Mapping[str, Optional[str]] = field(default_factory=dict)
    remarks: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "values", {attribute_key(key): value for key, value in self.values.items()}
        )

    def raw(self, attribute) -> object:
        return self.values.get(attribute_key(attribute))


@dataclass(frozen=True)
class LadleAnalysis:
    heat_no: str = ""
    values: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "values", {attribute_key(key): value for key, value in self.values.items()}
        )


@dataclass(frozen=True)
class SampleResult:
    """``errors`` also lists missing values; only a range failure invalidates the sample."""

    errors: Dict[str, str] = field(default_factory=dict)
    is_sample_valid: bool = True
    complete: bool = True


@dataclass(frozen=True)
class LadleComparison:
    attribute: str
    ladle_value: Optional[float]
    ladle_status: ValidationStatus
    product_values: List[Optional[float]]
    max_deviation: Optional[float]
    allowed_deviation: Optional[float]

    @property
    def within_deviation(self) -> Optional[bool]:
        if self.allowed_deviation is None or self.max_deviation is None:
            return None
        # Rounded to the 3 decimals values are entered with.
        return round(self.max_deviation, 3) <= self.allowed_deviation


@dataclass(frozen=True)
class MaterialTally:
    per_sample: List[SampleResult]
    heat_valid: bool
    complete: bool
    ladle: List[LadleComparison] = field(default_factory=list)

    @property
    def rejected(self) -> bool:
        return not self.heat_valid

    @property
    def status(self) -> Status:
        return category_status(self.complete, self.rejected)


def _validate_sample(sample: MaterialTestSample, spec_limits: SpecLimitsTable) -> SampleResult:
    errors: Dict[str, str] = {}
    complete = True
    failed = False

    for attribute in REQUIRED_MATERIAL_ATTRIBUTES:
        key = attribute_key(attribute)
        result = check_limit(spec_limits.get(key), sample.raw(key))
        if result.status is ValidationStatus.INDETERMINATE:
            complete = False
        failed = failed or result.failed
        if not result.passed:
            errors[key] = result.message

    # Extra attributes are range checked when a limit exists but never required.
    for key, raw in sample.values.items():
        if key in _REQUIRED_KEYS:
            continue
        result = check_limit(spec_limits.get(key), raw)
        if result.failed:
            failed = True
            errors[key] = result.message

    return SampleResult(errors=errors, is_sample_valid=not failed, complete=complete)


def compare_ladle(
    ladle: LadleAnalysis,
    samples: Sequence[MaterialTestSample],
    spec_limits: SpecLimitsTable = DEFAULT_SPEC_LIMITS,
) -> List[LadleComparison]:
    """Line up the vendor's ladle chemistry with the measured sample values."""
    comparisons: List[LadleComparison] = []
    for element in LADLE_ELEMENTS:
        key = element.value
        raw_ladle = ladle.values.get(key)
        ladle_value = parse_value(raw_ladle)
        product_values = [parse_value(sample.raw(key)) for sample in samples]

        deviations = [
            abs(value - ladle_value)
            for value in product_values
            if value is not None and ladle_value is not None
        ]
        comparisons.append(
            LadleComparison(
                attribute=key,
                ladle_value=ladle_value,
                ladle_status=check_limit(spec_limits.get(key), raw_ladle).status,
                product_values=product_values,
                max_deviation=max(deviations) if deviations else None,
                allowed_deviation=LADLE_DEVIATION.get(key),
            )
        )
    return comparisons


def tally_samples(
    samples: Iterable[MaterialTestSample],
    spec_limits: SpecLimitsTable = DEFAULT_SPEC_LIMITS,
    ladle: Optional[LadleAnalysis] = None,
) -> MaterialTally:
    """Validate every sample and combine them into one heat-level result."""
    samples = list(samples)
    per_sample = [_validate_sample(sample, spec_limits) for sample in samples]

    structural_ok = len(per_sample) == MATERIAL_SAMPLES_PER_HEAT
    # Missing values or samples leave the heat incomplete; only range failures invalidate it.
    heat_valid = all(result.is_sample_valid for result in per_sample)
    complete = structural_ok and all(result.complete for result in per_sample)

    comparisons = compare_ladle(ladle, samples, spec_limits) if ladle is not None else []

    logger.debug(
        "Material tally samples=%s heat_valid=%s complete=%s table=%s",
        len(per_sample),
        heat_valid,
        complete,
        spec_limits.version,
    )
    return MaterialTally(
        per_sample=per_sample,
        heat_valid=heat_valid,
        complete=complete,
        ladle=comparisons,
    )
