"""
Power stage: available spindle power at the working RPM versus the power the
cut needs, and the feed scaling factor when the cut asks for more.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from millcalc.config import PolicyConfig, DEFAULT_POLICY
from millcalc.core.errors import InvalidRPM, InvalidFeed, UnknownToolType
from millcalc.core.lookup import lookup_table
from millcalc.domain.models import Material, Spindle, ToolType, CalcWarning, Severity

logger = logging.getLogger(__name__)

TOOL_POWER_FACTORS = {
    ToolType.ENDMILL_FLAT: 1.0,
    ToolType.DRILL: 1.3,
    ToolType.VBIT: 0.9,
    ToolType.FACEMILL: 0.8,
    ToolType.BORING: 1.1,
    ToolType.SLITTING: 1.2,
}


@dataclass(frozen=True)
class PowerResult:
    cutting_power_w: float  # mrr * specific energy
    power_required_w: float  # with tool factor and mechanical efficiency
    power_available_w: float
    power_limited: bool
    scaling_factor: float  # 1.0 unless power limited
    warnings: List[CalcWarning] = field(default_factory=list)


def get_tool_power_factor(tool_type: ToolType) -> float:
    try:
        return TOOL_POWER_FACTORS[ToolType(tool_type)]
    except (KeyError, ValueError):
        raise UnknownToolType(f"Unknown tool type: {tool_type}") from None


def get_spindle_power_at_rpm(spindle: Spindle, rpm: float) -> float:
    """Available power in W, interpolated on the power curve, flat outside it."""
    curve = [(point.rpm, (point.power_kw,)) for point in spindle.power_curve]
    if not curve:
        return spindle.rated_power_kw * 1000
    (power_kw,) = lookup_table(curve, rpm)
    return power_kw * 1000


def calculate_power(
        material: Material,
        spindle: Spindle,
        tool_type: ToolType,
        mrr_mm3_min: float,
        rpm: float,
        policy: PolicyConfig = DEFAULT_POLICY
) -> PowerResult:
    if mrr_mm3_min < 0:
        raise InvalidFeed("MRR must be non-negative")
    if rpm <= 0:
        raise InvalidRPM("RPM must be positive")

    # J/mm3 * mm3/min / 60 -> W
    cutting_power_w = mrr_mm3_min * material.specific_cutting_energy_j_mm3 / 60
    power_required_w = cutting_power_w * get_tool_power_factor(tool_type) / policy.mechanical_efficiency
    power_available_w = get_spindle_power_at_rpm(spindle, rpm)

    warnings = []
    power_limited = power_required_w > power_available_w
    scaling_factor = 1.0
    if power_limited:
        scaling_factor = power_available_w / power_required_w
        warnings.append(CalcWarning(
            type='power_limited',
            message=(f"Operation power-limited ({power_required_w:.0f} W required > "
                     f"{power_available_w:.0f} W available). "
                     f"Feed rate scaled to {scaling_factor * 100:.1f}%"),
            severity=Severity.WARNING,
        ))
        logger.info(f"Power limited: scaling feed by {scaling_factor:.3f}")

    logger.debug(f"power required={power_required_w:.1f} W available={power_available_w:.1f} W")

    return PowerResult(
        cutting_power_w=cutting_power_w,
        power_required_w=power_required_w,
        power_available_w=power_available_w,
        power_limited=power_limited,
        scaling_factor=scaling_factor,
        warnings=warnings,
    )


def apply_power_limiting(feed_mm_min: float, mrr_mm3_min: float, scaling_factor: float = 1.0) -> Tuple[float, float]:
    """Scale feed and MRR together; a factor of 1.0 leaves both unchanged."""
    if scaling_factor == 1.0:
        return feed_mm_min, mrr_mm3_min
    return feed_mm_min * scaling_factor, mrr_mm3_min * scaling_factor
