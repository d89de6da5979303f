import math

import pytest

from inspection_engine import (
    DEFAULT_SPEC_LIMITS,
    AttributeId,
    SpecLimit,
    SpecLimitError,
    SpecLimitsTable,
    ValidationStatus,
    check_limit,
    has_valid_precision,
    parse_value,
    validate,
)


@pytest.mark.parametrize('value, expected', [
    ('0.50', ValidationStatus.PASS),
    ('0.60', ValidationStatus.PASS),
    ('0.55', ValidationStatus.PASS),
    ('0.49', ValidationStatus.FAIL),
    ('0.61', ValidationStatus.FAIL),
    (0.55, ValidationStatus.PASS),
])
def test_carbon_bounds_are_inclusive(value, expected):
    assert validate(AttributeId.CARBON, value).status is expected


@pytest.mark.parametrize('value', ['', '   ', None])
def test_blank_values_are_required(value):
    result = validate('%C', value)
    assert result.status is ValidationStatus.INDETERMINATE
    assert result.message == 'Required'


@pytest.mark.parametrize('value', ['abc', '0.5.5', '1,2', 'nan', 'inf', float('nan'), True])
def test_non_numeric_values_never_fail(value):
    result = validate('%C', value)
    assert result.status is ValidationStatus.INDETERMINATE
    assert not result.failed


def test_fail_message_describes_requirement():
    result = validate('%P', '0.035')
    assert result.failed
    assert result.message == '%P must be between 0.000 and 0.030'
    assert result.value == pytest.approx(0.035)


def test_open_ended_grain_size():
    assert validate('grainSize', '6').passed
    assert validate('grainSize', '12').passed
    result = validate('grainSize', '5')
    assert result.failed
    assert result.message == 'Grain size must be ≥ 6'


def test_hardness_enforced_by_default():
    assert validate('hardness', '45').passed
    assert validate('hardness', '55').passed
    assert validate('hardness', '44').failed
    assert validate('hardness', '56').failed


def test_unknown_attribute_passes_any_number():
    assert validate('tensileStrength', '9999').passed
    assert validate('tensileStrength', '').indeterminate


def test_check_limit_without_limit():
    assert check_limit(None, '1.5').passed


def test_injected_table_changes_verdict():
    relaxed = DEFAULT_SPEC_LIMITS.with_overrides(
        [SpecLimit(AttributeId.CARBON, 0.40, 0.70)], version='test'
    )
    assert validate('%C', '0.45', relaxed).passed
    assert validate('%C', '0.45').failed
    assert relaxed.version == 'test'
    assert DEFAULT_SPEC_LIMITS.get('%C').min == 0.50


def test_dropping_attribute_removes_range_check():
    unbounded = DEFAULT_SPEC_LIMITS.with_overrides([], drop=['hardness'])
    assert 'hardness' not in unbounded
    assert validate('hardness', '70', unbounded).passed


def test_spec_limit_rejects_bad_bounds():
    with pytest.raises(SpecLimitError):
        SpecLimit('%C')
    with pytest.raises(SpecLimitError):
        SpecLimit('%C', 0.6, 0.5)


def test_table_rejects_duplicates():
    with pytest.raises(SpecLimitError):
        SpecLimitsTable([SpecLimit('%C', 0.5, 0.6), SpecLimit('%C', 0.4, 0.6)])


def test_parse_value():
    assert parse_value(' 20.64 ') == pytest.approx(20.64)
    assert parse_value('-1') == -1.0
    assert parse_value('1e-2') == pytest.approx(0.01)
    assert parse_value('') is None
    assert parse_value(math.inf) is None


@pytest.mark.parametrize('value, expected', [
    ('0.123', True),
    ('0.1230', False),
    ('0.120', True),
    ('1.5e-3', False),
    ('2.5e2', True),
    ('0.1234', False),
    (0.1234, False),
    (20.64, True),
    ('', True),
    ('abc', True),
])
def test_precision_rule(value, expected):
    assert has_valid_precision(value) is expected
