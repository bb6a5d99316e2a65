import math

import pytest

from millcalc.core.errors import InvalidGeometry, InvalidAggressiveness, UnknownCutType
from millcalc.core.speeds import calculate_speed_and_rpm, get_speed_factor
from millcalc.domain.models import Spindle


def test_profile_cut_on_quarter_inch_tool(aluminum, spindle):
    result = calculate_speed_and_rpm(aluminum, spindle, 6.35, 'profile', 1.0)

    assert result.vc_target == pytest.approx(300)
    assert result.rpm_theoretical == pytest.approx(15038, rel=1e-3)
    assert result.rpm_actual == result.rpm_theoretical
    assert result.warnings == []


@pytest.mark.parametrize("cut_type, vc", [('slot', 240), ('adaptive', 360), ('drilling', 210)])
def test_cut_type_scales_cutting_speed(aluminum, spindle, cut_type, vc):
    result = calculate_speed_and_rpm(aluminum, spindle, 6.35, cut_type, 1.0)
    assert result.vc_target == pytest.approx(vc)


def test_rpm_clamped_to_spindle_maximum(aluminum, spindle):
    result = calculate_speed_and_rpm(aluminum, spindle, 1.0, 'adaptive', 2.0)

    assert result.vc_target == pytest.approx(720)
    assert result.rpm_theoretical == pytest.approx(229183, rel=1e-4)
    assert result.rpm_actual == 24000
    assert result.vc_actual == pytest.approx(75.4, abs=0.05)
    assert [w.type for w in result.warnings] == ['rpm_limited']
    assert 'maximum' in result.warnings[0].message


def test_rpm_clamped_to_spindle_minimum(aluminum):
    spindle = Spindle(id='s', rated_power_kw=2, rpm_min=6000, rpm_max=24000, base_rpm=12000,
                      power_curve=[{'rpm': 12000, 'power_kw': 2}])
    result = calculate_speed_and_rpm(aluminum, spindle, 50.0, 'profile')

    assert result.rpm_actual == 6000
    assert result.vc_actual == pytest.approx(math.pi * 50 * 6000 / 1000)
    assert 'minimum' in result.warnings[0].message


def test_invalid_inputs(aluminum, spindle):
    with pytest.raises(InvalidGeometry):
        calculate_speed_and_rpm(aluminum, spindle, 0, 'profile')
    with pytest.raises(InvalidAggressiveness):
        calculate_speed_and_rpm(aluminum, spindle, 6, 'profile', 0)
    with pytest.raises(UnknownCutType):
        get_speed_factor('plunge')
