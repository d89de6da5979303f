import pytest

from inspection_engine import DefectObservation, Heat, MaterialTestSample

PASSING_VALUES = {
    '%C': '0.55',
    '%Si': '1.80',
    '%Mn': '0.90',
    '%P': '0.020',
    '%S': '0.015',
    'grainSize': '7',
    'inclA': '1.0',
    'inclB': '1.5',
    'inclC': '0.5',
    'inclD': '1.0',
    'hardness': '50',
    'decarb': '0.10',
}


def _make_heat(heat_no='H001', diameter='20.64', values=None, defects=None, ladle=None):
    values = dict(PASSING_VALUES if values is None else values)
    return Heat(
        heat_no=heat_no,
        defects=[DefectObservation('No Defect')] if defects is None else defects,
        dimensional_samples=[diameter] * 20,
        material_samples=[MaterialTestSample(values), MaterialTestSample(values)],
        ladle=ladle,
    )


@pytest.fixture
def passing_values():
    return dict(PASSING_VALUES)


@pytest.fixture
def make_heat():
    """Factory for a heat that passes every check unless told otherwise."""
    return _make_heat


@pytest.fixture
def accepted_heat():
    return _make_heat()
