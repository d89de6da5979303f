import pytest

from inspection_engine import (
    DEFAULT_SPEC_LIMITS,
    AttributeId,
    LadleAnalysis,
    MaterialTestSample,
    SpecLimit,
    Status,
    ValidationStatus,
    tally_samples,
)


def test_all_attributes_in_range(passing_values):
    tally = tally_samples([MaterialTestSample(passing_values)] * 2)
    assert tally.heat_valid
    assert tally.complete
    assert tally.status is Status.ACCEPTED
    assert all(result.errors == {} for result in tally.per_sample)


def test_one_failing_attribute_rejects_heat(passing_values):
    bad = dict(passing_values, **{'%P': '0.035'})
    tally = tally_samples([MaterialTestSample(passing_values), MaterialTestSample(bad)])
    assert tally.per_sample[0].is_sample_valid
    assert not tally.per_sample[1].is_sample_valid
    assert tally.per_sample[1].errors == {'%P': '%P must be between 0.000 and 0.030'}
    assert not tally.heat_valid
    assert tally.status is Status.REJECTED


def test_missing_attribute_keeps_heat_pending(passing_values):
    partial = dict(passing_values)
    del partial['hardness']
    tally = tally_samples([MaterialTestSample(passing_values), MaterialTestSample(partial)])
    assert tally.per_sample[1].errors == {'hardness': 'Required'}
    assert tally.per_sample[1].is_sample_valid
    assert tally.heat_valid
    assert not tally.complete
    assert tally.status is Status.PENDING


def test_range_failure_rejects_while_incomplete(passing_values):
    bad = dict(passing_values, **{'%S': '0.040', 'decarb': ''})
    tally = tally_samples([MaterialTestSample(passing_values), MaterialTestSample(bad)])
    assert set(tally.per_sample[1].errors) == {'%S', 'decarb'}
    assert not tally.heat_valid
    assert not tally.complete
    assert tally.status is Status.REJECTED


def test_enum_keys_are_normalized(passing_values):
    values = {AttributeId(key): value for key, value in passing_values.items()}
    sample = MaterialTestSample(values)
    assert sample.raw('%C') == '0.55'
    assert sample.raw(AttributeId.CARBON) == '0.55'


def test_wrong_sample_count_is_pending(passing_values):
    tally = tally_samples([MaterialTestSample(passing_values)])
    assert tally.heat_valid
    assert not tally.complete
    assert tally.status is Status.PENDING


def test_unbounded_hardness_still_required(passing_values):
    limits = DEFAULT_SPEC_LIMITS.with_overrides([], drop=['hardness'])
    values = dict(passing_values, hardness='70')
    assert tally_samples([MaterialTestSample(values)] * 2, limits).heat_valid

    values['hardness'] = ''
    tally = tally_samples([MaterialTestSample(values)] * 2, limits)
    assert not tally.complete


def test_extra_attribute_only_flagged_on_fail(passing_values):
    limits = DEFAULT_SPEC_LIMITS.with_overrides([SpecLimit('%Cu', 0.0, 0.25, precision=2)])
    values = dict(passing_values, **{'%Cu': '0.40', 'note': 'n/a'})
    tally = tally_samples([MaterialTestSample(values)] * 2, limits)
    assert tally.per_sample[0].errors == {'%Cu': '%Cu must be between 0.00 and 0.25'}
    assert tally.complete
    assert tally.status is Status.REJECTED

    values['%Cu'] = ''
    tally = tally_samples([MaterialTestSample(values)] * 2, limits)
    assert tally.per_sample[0].errors == {}
    assert tally.status is Status.ACCEPTED


def test_ladle_comparison_is_informational(passing_values):
    ladle = LadleAnalysis('H001', {'%C': '0.50', '%Si': '1.80', '%P': '0.040'})
    tally = tally_samples([MaterialTestSample(passing_values)] * 2, ladle=ladle)
    assert tally.heat_valid

    by_attribute = {c.attribute: c for c in tally.ladle}
    carbon = by_attribute['%C']
    assert carbon.max_deviation == pytest.approx(0.05)
    assert carbon.allowed_deviation == 0.03
    assert carbon.within_deviation is False
    assert by_attribute['%Si'].within_deviation is True
    assert by_attribute['%P'].ladle_status is ValidationStatus.FAIL
    assert by_attribute['%P'].within_deviation is None
    assert by_attribute['%Mn'].ladle_value is None
    assert by_attribute['%Mn'].ladle_status is ValidationStatus.INDETERMINATE


def test_deviation_at_the_limit_is_within(passing_values):
    ladle = LadleAnalysis('H001', {'%C': '0.52'})
    tally = tally_samples([MaterialTestSample(passing_values)] * 2, ladle=ladle)
    assert tally.ladle[0].within_deviation is True
