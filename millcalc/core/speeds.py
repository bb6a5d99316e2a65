"""
Speed stage: target cutting speed -> theoretical RPM -> RPM clamped to the
spindle window. The achieved cutting speed is recomputed from the clamped RPM.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Union

from millcalc.core.errors import InvalidGeometry, InvalidAggressiveness, UnknownCutType
from millcalc.core.lookup import clamp
from millcalc.domain.models import Material, Spindle, CutType, CalcWarning, Severity

logger = logging.getLogger(__name__)

# Cutting speed multiplier per operation
CUT_TYPE_SPEED_FACTORS = {
    CutType.SLOT: 0.8,  # full engagement
    CutType.PROFILE: 1.0,
    CutType.ADAPTIVE: 1.2,  # light radial engagement
    CutType.FACING: 0.9,
    CutType.DRILLING: 0.7,
    CutType.BORING: 0.8,
}


@dataclass(frozen=True)
class SpeedResult:
    vc_target: float  # m/min
    rpm_theoretical: float
    rpm_actual: float
    vc_actual: float  # m/min, at rpm_actual
    warnings: List[CalcWarning] = field(default_factory=list)


def parse_cut_type(cut_type: Union[CutType, str]) -> CutType:
    try:
        return CutType(cut_type)
    except ValueError:
        raise UnknownCutType(f"Unknown cut type: {cut_type}") from None


def get_speed_factor(cut_type: Union[CutType, str]) -> float:
    return CUT_TYPE_SPEED_FACTORS[parse_cut_type(cut_type)]


def calculate_rpm(vc_m_min: float, diameter_mm: float) -> float:
    """n = (1000 * vc) / (pi * D)"""
    return (vc_m_min * 1000) / (math.pi * diameter_mm)


def calculate_vc(rpm: float, diameter_mm: float) -> float:
    return (rpm * math.pi * diameter_mm) / 1000


def calculate_speed_and_rpm(
        material: Material,
        spindle: Spindle,
        effective_diameter: float,
        cut_type: Union[CutType, str],
        aggressiveness: float = 1.0
) -> SpeedResult:
    if effective_diameter <= 0:
        raise InvalidGeometry("Effective diameter must be positive")
    if aggressiveness <= 0:
        raise InvalidAggressiveness("Aggressiveness must be positive")

    vc_target = material.vc_mid_m_min * get_speed_factor(cut_type) * aggressiveness
    rpm_theoretical = calculate_rpm(vc_target, effective_diameter)
    rpm_actual = clamp(rpm_theoretical, spindle.rpm_min, spindle.rpm_max)
    vc_actual = calculate_vc(rpm_actual, effective_diameter)

    warnings = []
    if rpm_actual != rpm_theoretical:
        limit_type = 'minimum' if rpm_actual == spindle.rpm_min else 'maximum'
        warnings.append(CalcWarning(
            type='rpm_limited',
            message=f"Spindle speed limited by {limit_type} RPM ({rpm_actual:.0f} RPM)",
            severity=Severity.WARNING,
        ))
        logger.info(f"RPM {rpm_theoretical:.0f} clamped to spindle {limit_type} {rpm_actual:.0f}")

    logger.debug(f"vc_target={vc_target:.1f} rpm={rpm_actual:.0f} vc_actual={vc_actual:.1f}")

    return SpeedResult(
        vc_target=vc_target,
        rpm_theoretical=rpm_theoretical,
        rpm_actual=rpm_actual,
        vc_actual=vc_actual,
        warnings=warnings,
    )
