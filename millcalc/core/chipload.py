"""
Chipload and feed stage.

fz_base = avg(table range at D) * aggressiveness * tool factor * coating factor,
chip thinning for narrow cuts, vf = rpm * z * fz, feed clamped to the machine
axis limit with fz re-derived from the clamped feed.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Tuple, Optional

from millcalc.config import PolicyConfig, DEFAULT_POLICY
from millcalc.core.errors import (
    InvalidGeometry, InvalidRPM, InvalidWidth, InvalidAggressiveness,
    NoChiploadData, UnknownToolType
)
from millcalc.core.lookup import clamp, lookup_table
from millcalc.domain.models import Material, Machine, Tool, ToolType, CalcWarning, Severity

logger = logging.getLogger(__name__)

TOOL_CHIPLOAD_FACTORS = {
    ToolType.ENDMILL_FLAT: 1.0,
    ToolType.DRILL: 0.8,
    ToolType.VBIT: 0.6,
    ToolType.FACEMILL: 1.1,
    ToolType.BORING: 0.9,
    ToolType.SLITTING: 0.7,
}

COATING_FACTORS = {
    'uncoated': 1.0,
    'tin': 1.1,
    'altin': 1.2,
    'tialn': 1.2,
    'alcrn': 1.15,
    'diamond': 1.3,
}


@dataclass(frozen=True)
class ChiploadResult:
    fz_base: float  # mm/tooth before chip thinning
    fz_adjusted: float  # mm/tooth, after thinning and feed limiting
    vf_theoretical: float  # mm/min
    vf_actual: float  # mm/min
    chip_thinning_applied: bool
    chipload_range: Tuple[float, float]
    warnings: List[CalcWarning] = field(default_factory=list)


def get_tool_chipload_factor(tool_type: ToolType) -> float:
    try:
        return TOOL_CHIPLOAD_FACTORS[ToolType(tool_type)]
    except (KeyError, ValueError):
        raise UnknownToolType(f"Unknown tool type: {tool_type}") from None


def get_coating_factor(coating: Optional[str]) -> float:
    """Unknown coatings count as uncoated."""
    if not coating:
        return 1.0
    return COATING_FACTORS.get(coating.strip().lower(), 1.0)


def get_chipload_range(material: Material, effective_diameter: float) -> Tuple[float, float]:
    """
    (fz_min, fz_max) for the diameter: exact table entry, nearest end entry
    outside the table, linear interpolation of both bounds in between.
    """
    table = material.fz_mm_per_tooth_by_diameter
    if not table:
        raise NoChiploadData(f"No chipload data available for material '{material.id}'")
    fz_min, fz_max = lookup_table(table, effective_diameter)
    return fz_min, fz_max


def chip_thinning_multiplier(material: Material, effective_diameter: float, width_of_cut: float) -> float:
    """
    sqrt(D / ae) limited to the material's limit_factor, 1.0 when the cut is
    wide enough that thinning does not apply.
    """
    threshold = material.chip_thinning.enable_below_fraction * effective_diameter
    if width_of_cut >= threshold:
        return 1.0
    multiplier = math.sqrt(effective_diameter / width_of_cut)
    return clamp(multiplier, 1.0, material.chip_thinning.limit_factor)


def evaluate_chipload(
        fz: float,
        chipload_range: Tuple[float, float],
        policy: PolicyConfig = DEFAULT_POLICY
) -> List[CalcWarning]:
    """Chipload outside the recommended band."""
    fz_min, fz_max = chipload_range
    low = policy.chipload_low_factor * fz_min
    high = policy.chipload_high_factor * fz_max

    if fz < low:
        return [CalcWarning(
            type='chipload_danger',
            message=(f"Chipload too low ({fz:.4f} mm/tooth < {low:.4f} mm/tooth). "
                     f"Risk of rubbing and fast tool wear."),
            severity=Severity.DANGER,
        )]
    if fz > high:
        return [CalcWarning(
            type='chipload_warning',
            message=(f"Chipload very high ({fz:.4f} mm/tooth > {high:.4f} mm/tooth). "
                     f"Risk of tool breakage."),
            severity=Severity.WARNING,
        )]
    return []


def calculate_chipload_and_feed(
        material: Material,
        machine: Machine,
        tool: Tool,
        effective_diameter: float,
        effective_flutes: int,
        rpm: float,
        width_of_cut: float,
        aggressiveness: float = 1.0,
        policy: PolicyConfig = DEFAULT_POLICY
) -> ChiploadResult:
    if effective_diameter <= 0:
        raise InvalidGeometry("Effective diameter must be positive")
    if effective_flutes <= 0:
        raise InvalidGeometry("Effective flutes must be positive")
    if rpm <= 0:
        raise InvalidRPM("RPM must be positive")
    if width_of_cut <= 0:
        raise InvalidWidth("Width of cut must be positive")
    if aggressiveness <= 0:
        raise InvalidAggressiveness("Aggressiveness must be positive")

    chipload_range = get_chipload_range(material, effective_diameter)
    fz_min, fz_max = chipload_range

    fz_base = ((fz_min + fz_max) / 2
               * aggressiveness
               * get_tool_chipload_factor(tool.type)
               * get_coating_factor(tool.coating))

    thinning = chip_thinning_multiplier(material, effective_diameter, width_of_cut)
    chip_thinning_applied = thinning > 1.0
    fz_adjusted = fz_base * thinning

    vf_theoretical = rpm * effective_flutes * fz_adjusted
    vf_actual = vf_theoretical

    warnings = []
    if vf_theoretical > machine.axis_max_feed_mm_min:
        vf_actual = machine.axis_max_feed_mm_min
        fz_adjusted = vf_actual / (rpm * effective_flutes)
        warnings.append(CalcWarning(
            type='feed_limited',
            message=f"Feed rate limited by machine axis ({machine.axis_max_feed_mm_min:.0f} mm/min)",
            severity=Severity.WARNING,
        ))
        logger.info(f"Feed {vf_theoretical:.0f} clamped to axis limit {vf_actual:.0f} mm/min")

    warnings.extend(evaluate_chipload(fz_adjusted, chipload_range, policy))

    logger.debug(f"fz_base={fz_base:.4f} thinning={thinning:.3f} fz={fz_adjusted:.4f} vf={vf_actual:.0f}")

    return ChiploadResult(
        fz_base=fz_base,
        fz_adjusted=fz_adjusted,
        vf_theoretical=vf_theoretical,
        vf_actual=vf_actual,
        chip_thinning_applied=chip_thinning_applied,
        chipload_range=chipload_range,
        warnings=warnings,
    )
