"""
Unit conversions. Internal base units: mm, min, N, kW, rpm, degrees.
"""
MM_PER_INCH = 25.4
KW_PER_HP = 0.7457
FEET_PER_METER = 3.28084
N_PER_LBF = 4.448222


def mm_to_inches(mm: float) -> float:
    return mm / MM_PER_INCH


def inches_to_mm(inches: float) -> float:
    return inches * MM_PER_INCH


def kw_to_hp(kw: float) -> float:
    return kw / KW_PER_HP


def hp_to_kw(hp: float) -> float:
    return hp * KW_PER_HP


def m_min_to_sfm(m_min: float) -> float:
    """Cutting speed, m/min -> surface feet per minute."""
    return m_min * FEET_PER_METER


def sfm_to_m_min(sfm: float) -> float:
    return sfm / FEET_PER_METER


def mm_min_to_ipm(mm_min: float) -> float:
    """Feed rate, mm/min -> inches/min."""
    return mm_min / MM_PER_INCH


def ipm_to_mm_min(ipm: float) -> float:
    return ipm * MM_PER_INCH


def newtons_to_lbf(newtons: float) -> float:
    return newtons / N_PER_LBF


def lbf_to_newtons(lbf: float) -> float:
    return lbf * N_PER_LBF
