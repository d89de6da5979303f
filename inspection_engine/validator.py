"""Single-value validation against spec limits."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .spec_limits import DEFAULT_SPEC_LIMITS, AttributeKey, SpecLimit, SpecLimitsTable, attribute_key

REQUIRED_MESSAGE = "Required"
INVALID_NUMBER_MESSAGE = "Invalid number"

_number_pattern = re.compile(r"[-+]?(?:\d+\.\d*|\d*\.\d+|\d+)(?:[eE][-+]?\d+)?")


class ValidationStatus(str, Enum):
    PASS = "Pass"
    FAIL = "Fail"
    INDETERMINATE = "Indeterminate"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of checking one raw value.

    ``message`` is set for every non-pass outcome so the UI can show it next
    to the field; ``value`` is the parsed number when parsing succeeded.
    """

    status: ValidationStatus
    message: Optional[str] = None
    value: Optional[float] = None

    @property
    def passed(self) -> bool:
        return self.status is ValidationStatus.PASS

    @property
    def failed(self) -> bool:
        return self.status is ValidationStatus.FAIL

    @property
    def indeterminate(self) -> bool:
        return self.status is ValidationStatus.INDETERMINATE


def is_blank(raw_value: object) -> bool:
    """True for ``None``, empty and whitespace-only strings."""
    if raw_value is None:
        return True
    return isinstance(raw_value, str) and not raw_value.strip()


def parse_value(raw_value: object) -> Optional[float]:
    """Parse an operator-entered value, returning ``None`` when it is unusable."""
    if raw_value is None or isinstance(raw_value, bool):
        return None
    if isinstance(raw_value, (int, float)):
        number = float(raw_value)
    elif isinstance(raw_value, str):
        candidate = raw_value.strip()
        if not _number_pattern.fullmatch(candidate):
            return None
        number = float(candidate)
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def has_valid_precision(raw_value: object, max_decimals: int = 3) -> bool:
    """Check the entry-time rule of at most ``max_decimals`` fractional digits.

    Digits are counted as typed, so ``"0.1230"`` has four. Blank and
    non-numeric values are not a precision problem and return True.
    """
    if is_blank(raw_value) or parse_value(raw_value) is None:
        return True
    text = raw_value.strip() if isinstance(raw_value, str) else repr(float(raw_value))
    mantissa, _, exponent = text.lower().partition("e")
    _, _, fraction = mantissa.partition(".")
    # An exponent shifts the point: 1.5e-3 has four fractional digits.
    return len(fraction) - int(exponent or 0) <= max_decimals


def check_limit(limit: Optional[SpecLimit], raw_value: object) -> ValidationResult:
    """Evaluate ``raw_value`` against a single limit (inclusive bounds).

    A missing limit means no validation applies: any usable number passes.
    """
    if is_blank(raw_value):
        return ValidationResult(ValidationStatus.INDETERMINATE, REQUIRED_MESSAGE)

    value = parse_value(raw_value)
    if value is None:
        return ValidationResult(ValidationStatus.INDETERMINATE, INVALID_NUMBER_MESSAGE)

    if limit is None:
        return ValidationResult(ValidationStatus.PASS, value=value)
    if limit.min is not None and value < limit.min:
        return ValidationResult(ValidationStatus.FAIL, limit.describe(), value)
    if limit.max is not None and value > limit.max:
        return ValidationResult(ValidationStatus.FAIL, limit.describe(), value)
    return ValidationResult(ValidationStatus.PASS, value=value)


def validate(
    attribute: AttributeKey,
    raw_value: object,
    spec_limits: SpecLimitsTable = DEFAULT_SPEC_LIMITS,
) -> ValidationResult:
    """Validate one attribute value against ``spec_limits``.

    Unknown attributes are never rejected.
    """
    return check_limit(spec_limits.get(attribute_key(attribute)), raw_value)
