"""
Force stage: chip cross-section * material force coefficient * tool type
multiplier.
"""
import logging
from dataclasses import dataclass, field
from typing import List

from millcalc.config import PolicyConfig, DEFAULT_POLICY
from millcalc.core.errors import InvalidGeometry, UnknownToolType
from millcalc.domain.models import Material, ToolType, CalcWarning, Severity

logger = logging.getLogger(__name__)

TOOL_FORCE_MULTIPLIERS = {
    ToolType.ENDMILL_FLAT: 1.0,
    ToolType.DRILL: 1.5,
    ToolType.VBIT: 0.8,
    ToolType.FACEMILL: 0.6,
    ToolType.BORING: 1.2,
    ToolType.SLITTING: 1.3,
}


@dataclass(frozen=True)
class ForceResult:
    chip_area_mm2: float
    base_force_n: float
    tool_type_multiplier: float
    total_force_n: float
    warnings: List[CalcWarning] = field(default_factory=list)


def get_tool_force_multiplier(tool_type: ToolType) -> float:
    try:
        return TOOL_FORCE_MULTIPLIERS[ToolType(tool_type)]
    except (KeyError, ValueError):
        raise UnknownToolType(f"Unknown tool type: {tool_type}") from None


def calculate_cutting_force(
        material: Material,
        tool_type: ToolType,
        effective_diameter: float,
        width_of_cut_mm: float,
        chipload_mm: float,
        policy: PolicyConfig = DEFAULT_POLICY
) -> ForceResult:
    if effective_diameter <= 0:
        raise InvalidGeometry("Effective diameter must be positive")

    chip_area = width_of_cut_mm * chipload_mm
    base_force = material.force_coeff_kn_mm2 * chip_area * 1000  # kN -> N
    multiplier = get_tool_force_multiplier(tool_type)
    total_force = base_force * multiplier

    warnings = []
    force_per_mm = total_force / effective_diameter
    if force_per_mm > policy.force_danger_n_per_mm:
        warnings.append(CalcWarning(
            type='high_force',
            message=f"Very high cutting force ({total_force:.0f} N, {force_per_mm:.0f} N/mm diameter)",
            severity=Severity.DANGER,
        ))
    elif force_per_mm > policy.force_warning_n_per_mm:
        warnings.append(CalcWarning(
            type='high_force',
            message=f"High cutting force ({total_force:.0f} N, {force_per_mm:.0f} N/mm diameter)",
            severity=Severity.WARNING,
        ))

    logger.debug(f"chip area={chip_area:.5f} mm2 force={total_force:.1f} N")

    return ForceResult(
        chip_area_mm2=chip_area,
        base_force_n=base_force,
        tool_type_multiplier=multiplier,
        total_force_n=total_force,
        warnings=warnings,
    )
