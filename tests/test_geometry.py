import math

import pytest

from millcalc.core.errors import InvalidGeometry, UnknownToolType
from millcalc.core.geometry import (
    get_effective_diameter,
    get_effective_flutes,
    get_core_diameter,
    resolve_geometry,
    build_tool,
)
from millcalc.domain.models import Tool


def make_tool(**overrides):
    fields = dict(
        id='t', type='endmill_flat', diameter_mm=6.0, flutes=3, coating='uncoated',
        stickout_mm=20.0, material='carbide', default_doc_mm=3.0, default_woc_mm=1.8,
    )
    fields.update(overrides)
    return Tool(**fields)


def test_endmill_uses_nominal_diameter(endmill):
    assert get_effective_diameter(endmill) == 6.0
    assert get_effective_flutes(endmill) == 3


def test_vbit_diameter_grows_with_depth():
    vbit = make_tool(type='vbit', diameter_mm=0.2, metadata={'angle_deg': 60})
    expected = 0.2 + 2 * math.tan(math.radians(30)) * 1.0
    assert get_effective_diameter(vbit, 1.0) == pytest.approx(expected)
    assert get_effective_diameter(vbit, 2.0) > get_effective_diameter(vbit, 1.0)


def test_vbit_requires_angle_and_depth():
    with pytest.raises(InvalidGeometry):
        get_effective_diameter(make_tool(type='vbit', diameter_mm=0.2), 1.0)
    with pytest.raises(InvalidGeometry):
        get_effective_diameter(make_tool(type='vbit', diameter_mm=0.2, metadata={'angle_deg': 90}))


def test_facemill_uses_body_diameter():
    facemill = make_tool(type='facemill', diameter_mm=50, metadata={'body_diameter_mm': 63})
    assert get_effective_diameter(facemill) == 63


def test_boring_bar_offset_and_single_edge():
    boring = make_tool(type='boring', diameter_mm=10, flutes=2, metadata={'body_diameter_mm': 8})
    assert get_effective_diameter(boring) == pytest.approx(28.0)
    assert get_effective_flutes(boring) == 1


def test_boring_bar_without_body_diameter_fails():
    with pytest.raises(InvalidGeometry):
        get_effective_diameter(make_tool(type='boring'))


def test_overrides_win(endmill):
    geometry = resolve_geometry(endmill, override_flutes=4, override_stickout_mm=40.0)
    assert geometry.flutes == 4
    assert geometry.stickout_mm == 40.0
    assert geometry.diameter_mm == 6.0
    assert geometry.ld_ratio == pytest.approx(40.0 / 6.0)


def test_non_positive_overrides_fail(endmill):
    with pytest.raises(InvalidGeometry):
        resolve_geometry(endmill, override_flutes=0)
    with pytest.raises(InvalidGeometry):
        resolve_geometry(endmill, override_stickout_mm=-5)


def test_core_diameter_from_flute_table():
    assert get_core_diameter(make_tool(flutes=3)) == pytest.approx(6.0 * 0.6)
    assert get_core_diameter(make_tool(flutes=6)) == pytest.approx(6.0 * 0.7)
    assert get_core_diameter(make_tool(core_diameter_mm=2.5)) == 2.5


def test_build_tool_defaults():
    tool = build_tool({
        'type': 'endmill_flat',
        'diameter_mm': 8.0,
        'flutes': 2,
        'stickout_mm': 30.0,
        'material': 'carbide',
        'coating': 'TiAlN',
    })
    assert tool.id == 'custom_tool'
    assert tool.default_doc_mm == pytest.approx(4.0)
    assert tool.default_woc_mm == pytest.approx(2.4)


def test_build_tool_rejects_bad_config():
    base = {'type': 'endmill_flat', 'diameter_mm': 8.0, 'flutes': 2, 'stickout_mm': 30.0,
            'material': 'carbide', 'coating': 'uncoated'}
    with pytest.raises(InvalidGeometry):
        build_tool(dict(base, diameter_mm=0))
    with pytest.raises(InvalidGeometry):
        build_tool(dict(base, flutes=0))
    with pytest.raises(UnknownToolType):
        build_tool(dict(base, type='laser'))
