"""Engineering specification limits for raw material attributes.

The table is immutable once built. Callers that need different limits (a
revised drawing, a test double) build a new table with ``with_overrides``
and pass it explicitly to the validators.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional, Union


class SpecLimitError(ValueError):
    """Raised when a spec limit table is malformed."""


class AttributeId(str, Enum):
    """Measurable quantities on a raw material sample. Case-sensitive."""

    CARBON = "%C"
    SILICON = "%Si"
    MANGANESE = "%Mn"
    PHOSPHORUS = "%P"
    SULPHUR = "%S"
    GRAIN_SIZE = "grainSize"
    INCLUSION_A = "inclA"
    INCLUSION_B = "inclB"
    INCLUSION_C = "inclC"
    INCLUSION_D = "inclD"
    HARDNESS = "hardness"
    DECARB = "decarb"
    DIAMETER = "diameter"


AttributeKey = Union[AttributeId, str]


def attribute_key(attribute: AttributeKey) -> str:
    """Return the canonical string key for an attribute id."""
    if isinstance(attribute, AttributeId):
        return attribute.value
    return str(attribute)


@dataclass(frozen=True)
class SpecLimit:
    """Inclusive acceptance range for one attribute.

    Either bound may be ``None`` (open-ended) but not both.
    """

    attribute: str
    min: Optional[float] = None
    max: Optional[float] = None
    label: Optional[str] = None
    unit: str = ""
    precision: int = 2

    def __post_init__(self) -> None:
        object.__setattr__(self, "attribute", attribute_key(self.attribute))
        if self.min is None and self.max is None:
            raise SpecLimitError(f"Spec limit for {self.attribute} needs at least one bound")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise SpecLimitError(
                f"Spec limit for {self.attribute} has min {self.min} above max {self.max}"
            )

    @property
    def display_name(self) -> str:
        return self.label or self.attribute

    def format_value(self, value: float) -> str:
        return f"{value:.{self.precision}f}{self.unit}"

    def describe(self) -> str:
        """Human readable requirement, e.g. ``%P must be between 0.000 and 0.030``."""
        if self.min is not None and self.max is not None:
            return (
                f"{self.display_name} must be between "
                f"{self.min:.{self.precision}f} and {self.format_value(self.max)}"
            )
        if self.min is not None:
            return f"{self.display_name} must be ≥ {self.format_value(self.min)}"
        return f"{self.display_name} must be ≤ {self.format_value(self.max)}"

    def to_dict(self) -> Dict[str, object]:
        return {
            "attribute": self.attribute,
            "min": self.min,
            "max": self.max,
            "label": self.display_name,
            "unit": self.unit,
            "precision": self.precision,
        }


class SpecLimitsTable:
    """Read-only mapping of attribute id -> ``SpecLimit`` with a version tag."""

    def __init__(self, limits: Iterable[SpecLimit], version: str = "custom") -> None:
        entries: Dict[str, SpecLimit] = {}
        for limit in limits:
            if limit.attribute in entries:
                raise SpecLimitError(f"Duplicate spec limit for {limit.attribute}")
            entries[limit.attribute] = limit
        self._limits: Mapping[str, SpecLimit] = MappingProxyType(entries)
        self.version = version

    def get(self, attribute: AttributeKey) -> Optional[SpecLimit]:
        return self._limits.get(attribute_key(attribute))

    def __contains__(self, attribute: object) -> bool:
        if not isinstance(attribute, (str, AttributeId)):
            return False
        return attribute_key(attribute) in self._limits

    def __iter__(self) -> Iterator[SpecLimit]:
        return iter(self._limits.values())

    def __len__(self) -> int:
        return len(self._limits)

    def __repr__(self) -> str:
        return f"SpecLimitsTable(version={self.version!r}, attributes={list(self._limits)})"

    def with_overrides(
        self,
        overrides: Iterable[SpecLimit],
        version: Optional[str] = None,
        drop: Iterable[AttributeKey] = (),
    ) -> "SpecLimitsTable":
        """Return a new table with ``overrides`` replacing or adding limits.

        ``drop`` removes attributes entirely, so they are no longer range checked.
        """
        merged = dict(self._limits)
        for attribute in drop:
            merged.pop(attribute_key(attribute), None)
        for limit in overrides:
            merged[limit.attribute] = limit
        return SpecLimitsTable(merged.values(), version=version or f"{self.version}+override")


SPEC_LIMITS_VERSION = "rm-2025.1"

DEFAULT_SPEC_LIMITS = SpecLimitsTable(
    [
        SpecLimit(AttributeId.CARBON, 0.50, 0.60, precision=2),
        SpecLimit(AttributeId.SILICON, 1.50, 2.00, precision=2),
        SpecLimit(AttributeId.MANGANESE, 0.80, 1.00, precision=2),
        SpecLimit(AttributeId.PHOSPHORUS, 0.0, 0.030, precision=3),
        SpecLimit(AttributeId.SULPHUR, 0.0, 0.030, precision=3),
        SpecLimit(AttributeId.GRAIN_SIZE, 6, None, label="Grain size", precision=0),
        SpecLimit(AttributeId.INCLUSION_A, 0.0, 2.0, label="Inclusion rating A", precision=1),
        SpecLimit(AttributeId.INCLUSION_B, 0.0, 2.0, label="Inclusion rating B", precision=1),
        SpecLimit(AttributeId.INCLUSION_C, 0.0, 2.0, label="Inclusion rating C", precision=1),
        SpecLimit(AttributeId.INCLUSION_D, 0.0, 2.0, label="Inclusion rating D", precision=1),
        SpecLimit(AttributeId.DECARB, 0.0, 0.25, label="Depth of decarb", unit="mm", precision=2),
        SpecLimit(AttributeId.HARDNESS, 45, 55, label="Hardness", unit=" HRC", precision=0),
    ],
    version=SPEC_LIMITS_VERSION,
)
