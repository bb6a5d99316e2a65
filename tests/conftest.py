import pytest

from millcalc.domain.library import ReferenceLibrary
from millcalc.domain.models import Material, Machine, Spindle, Tool, Inputs


@pytest.fixture
def aluminum():
    return Material(
        id='aluminum',
        category='aluminum',
        vc_range_m_min=(200, 400),
        fz_mm_per_tooth_by_diameter={3: [0.02, 0.04], 6: [0.08, 0.12], 12: [0.10, 0.20]},
        force_coeff_kn_mm2=0.8,
        specific_cutting_energy_j_mm3=0.7,
        chip_thinning={'enable_below_fraction': 0.5, 'limit_factor': 1.8},
        max_engagement_fraction=0.5,
    )


@pytest.fixture
def machine():
    return Machine(
        id='router',
        axis_max_feed_mm_min=5000,
        rigidity_factor=0.6,
        aggressiveness={'axial': 0.8, 'radial': 0.8, 'feed': 0.9},
    )


@pytest.fixture
def slow_machine():
    return Machine(id='hobby', axis_max_feed_mm_min=2000, rigidity_factor=0.3)


@pytest.fixture
def spindle():
    return Spindle(
        id='vfd',
        rated_power_kw=2.2,
        rpm_min=100,
        rpm_max=24000,
        base_rpm=12000,
        power_curve=[
            {'rpm': 100, 'power_kw': 0.2},
            {'rpm': 12000, 'power_kw': 2.2},
            {'rpm': 24000, 'power_kw': 2.2},
        ],
    )


@pytest.fixture
def weak_spindle():
    return Spindle(
        id='weak',
        rated_power_kw=0.1,
        rpm_min=100,
        rpm_max=24000,
        base_rpm=12000,
        power_curve=[{'rpm': 12000, 'power_kw': 0.1}],
    )


@pytest.fixture
def endmill():
    return Tool(
        id='em6',
        type='endmill_flat',
        diameter_mm=6.0,
        flutes=3,
        coating='AlTiN',
        stickout_mm=20.0,
        material='carbide',
        default_doc_mm=3.0,
        default_woc_mm=1.8,
    )


@pytest.fixture
def drill():
    return Tool(
        id='dr5',
        type='drill',
        diameter_mm=5.0,
        flutes=2,
        coating='TiN',
        stickout_mm=40.0,
        material='hss',
        default_doc_mm=10.0,
        default_woc_mm=5.0,
    )


@pytest.fixture
def vbit():
    return Tool(
        id='v60',
        type='vbit',
        diameter_mm=0.2,
        flutes=2,
        coating='uncoated',
        stickout_mm=15.0,
        material='carbide',
        default_doc_mm=1.0,
        default_woc_mm=0.5,
        metadata={'angle_deg': 60},
    )


@pytest.fixture
def facemill():
    return Tool(
        id='fm50',
        type='facemill',
        diameter_mm=50.0,
        flutes=4,
        coating='TiAlN',
        stickout_mm=40.0,
        material='carbide',
        default_doc_mm=1.0,
        default_woc_mm=30.0,
        metadata={'body_diameter_mm': 63},
    )


@pytest.fixture
def library(aluminum, machine, slow_machine, spindle, weak_spindle, endmill, drill, vbit, facemill):
    return ReferenceLibrary(
        materials=[aluminum],
        machines=[machine, slow_machine],
        spindles=[spindle, weak_spindle],
        tools=[endmill, drill, vbit, facemill],
    )


@pytest.fixture
def inputs():
    return Inputs(
        material_id='aluminum',
        machine_id='router',
        spindle_id='vfd',
        tool_id='em6',
        cut_type='profile',
    )
