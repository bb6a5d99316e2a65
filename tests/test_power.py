import pytest

from millcalc.core.errors import InvalidFeed
from millcalc.core.power import calculate_power, apply_power_limiting, get_spindle_power_at_rpm
from millcalc.domain.models import ToolType


def test_power_curve_interpolation(spindle):
    assert get_spindle_power_at_rpm(spindle, 12000) == pytest.approx(2200)
    assert get_spindle_power_at_rpm(spindle, 6050) == pytest.approx(1200)


def test_power_curve_flat_outside_domain(spindle):
    assert get_spindle_power_at_rpm(spindle, 50) == pytest.approx(200)
    assert get_spindle_power_at_rpm(spindle, 30000) == pytest.approx(2200)


def test_not_power_limited(aluminum, spindle):
    result = calculate_power(aluminum, spindle, ToolType.ENDMILL_FLAT, 60000, 12000)

    assert result.cutting_power_w == pytest.approx(700)
    assert result.power_required_w == pytest.approx(700 / 0.85)
    assert not result.power_limited
    assert result.scaling_factor == 1.0
    assert result.warnings == []
    assert apply_power_limiting(1000, 60000, result.scaling_factor) == (1000, 60000)


def test_power_limited_scales_feed(aluminum, spindle):
    result = calculate_power(aluminum, spindle, ToolType.ENDMILL_FLAT, 300000, 12000)

    assert result.power_limited
    assert result.scaling_factor == pytest.approx(2200 / (3500 / 0.85))
    assert [w.type for w in result.warnings] == ['power_limited']

    feed, mrr = apply_power_limiting(1000, 300000, result.scaling_factor)
    assert feed == pytest.approx(1000 * result.scaling_factor)
    assert mrr == pytest.approx(300000 * result.scaling_factor)


def test_scaling_factor_in_unit_interval(aluminum, spindle):
    for mrr in [0, 1000, 50000, 500000, 5000000]:
        for rpm in [100, 6000, 24000]:
            result = calculate_power(aluminum, spindle, ToolType.DRILL, mrr, rpm)
            assert 0 < result.scaling_factor <= 1
            if not result.power_limited:
                assert result.scaling_factor == 1.0


def test_drill_needs_more_power(aluminum, spindle):
    endmill = calculate_power(aluminum, spindle, ToolType.ENDMILL_FLAT, 10000, 12000)
    drill = calculate_power(aluminum, spindle, ToolType.DRILL, 10000, 12000)
    assert drill.power_required_w == pytest.approx(endmill.power_required_w * 1.3)


def test_negative_mrr_rejected(aluminum, spindle):
    with pytest.raises(InvalidFeed):
        calculate_power(aluminum, spindle, ToolType.ENDMILL_FLAT, -1, 12000)
