import pytest

from millcalc.config import PolicyConfig
from millcalc.core.deflection import (
    amplification_factor,
    calculate_deflection,
    calculate_static_deflection,
    get_youngs_modulus_gpa,
)
from millcalc.core.errors import InvalidGeometry


def test_six_mm_carbide_under_load():
    result = calculate_deflection('carbide', 6.0, 20.0, 300.0, 10000, 3)

    assert result.static.bending_mm == pytest.approx(0.02096, rel=1e-3)
    assert result.static.holder_mm == pytest.approx(0.6)
    assert 0 < result.total_deflection_mm < 2
    assert result.dynamic.frequency_ratio < 0.7
    assert [w.type for w in result.warnings] == ['deflection_danger']


def test_static_deflection_increases_with_stickout():
    values = [calculate_static_deflection('carbide', 6.0, length, 200.0).total_mm
              for length in range(10, 101, 5)]
    assert values == sorted(values)
    assert len(set(values)) == len(values)


def test_bending_is_cubic_in_stickout():
    short = calculate_static_deflection('carbide', 6.0, 20.0, 100.0, 0)
    long = calculate_static_deflection('carbide', 6.0, 40.0, 100.0, 0)
    assert long.bending_mm == pytest.approx(short.bending_mm * 8)


@pytest.mark.parametrize("ratio, expected", [
    (0.5, 1.05),
    (1.0, 3.0),
    (0.7, 3 + 2 * 0.8090169943749475),
    (2.0, 0.25),
    (100.0, 0.1),
])
def test_amplification_factor(ratio, expected):
    assert amplification_factor(ratio) == pytest.approx(expected)


def test_youngs_modulus():
    assert get_youngs_modulus_gpa('carbide') == 600
    assert get_youngs_modulus_gpa('HSS') == 210
    assert get_youngs_modulus_gpa('ceramic') == 400


def test_warning_thresholds():
    stiff = PolicyConfig(holder_compliance_mm_per_n=0.0)
    none = calculate_deflection('carbide', 12.0, 20.0, 10.0, 10000, 3, policy=stiff)
    assert none.warnings == []

    moderate = calculate_deflection('carbide', 6.0, 20.0, 10.0, 10000, 3, holder_compliance_mm_per_n=0.003)
    assert [w.type for w in moderate.warnings] == ['deflection_warning']


def test_invalid_geometry():
    with pytest.raises(InvalidGeometry):
        calculate_static_deflection('carbide', 0, 20, 100)
