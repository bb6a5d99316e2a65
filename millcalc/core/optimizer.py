"""
Deflection optimizer.

Brute force grid over tool diameter x stickout. Every grid point is a synthetic
carbide tool evaluated with the full deflection model; suggestions are ranked
by absolute distance to the target deflection.
"""
import logging
from dataclasses import dataclass
from typing import List, Tuple, Optional

import numpy as np

from millcalc.config import PolicyConfig, DEFAULT_POLICY
from millcalc.core.deflection import calculate_deflection
from millcalc.core.errors import InvalidTarget, InvalidGeometry
from millcalc.domain.models import Tool

logger = logging.getLogger(__name__)

DIAMETER_STEPS = 15
STICKOUT_STEPS = 20
DEFAULT_DIAMETER_RANGE_MM = (3.0, 25.0)
DEFAULT_STICKOUT_RANGE_MM = (10.0, 100.0)
TOLERANCE_PERCENT = 10.0
SYNTHETIC_TOOL_MATERIAL = 'carbide'


@dataclass(frozen=True)
class OptimizationConfig:
    target_deflection_mm: float
    force_n: float
    rpm: float
    effective_flutes: int
    diameter_range_mm: Tuple[float, float] = DEFAULT_DIAMETER_RANGE_MM
    stickout_range_mm: Tuple[float, float] = DEFAULT_STICKOUT_RANGE_MM
    max_suggestions: int = 5
    holder_compliance_mm_per_n: Optional[float] = None


@dataclass(frozen=True)
class ToolSuggestion:
    diameter_mm: float
    stickout_mm: float
    predicted_deflection_mm: float
    deflection_error_mm: float
    relative_error_percent: float
    is_within_tolerance: bool
    rigidity_score: float  # N per mm of deflection


@dataclass(frozen=True)
class OptimizationResult:
    target_deflection_mm: float
    suggestions: List[ToolSuggestion]
    diameter_range_mm: Tuple[float, float]
    stickout_range_mm: Tuple[float, float]
    total_evaluations: int = 0


def _check_range(name: str, value_range: Tuple[float, float]) -> Tuple[float, float]:
    low, high = value_range
    if low <= 0 or high < low:
        raise InvalidGeometry(f"Invalid {name} range: {value_range}")
    return float(low), float(high)


def suggest_tools_for_target_deflection(
        config: OptimizationConfig,
        policy: PolicyConfig = DEFAULT_POLICY
) -> OptimizationResult:
    if not config.target_deflection_mm or config.target_deflection_mm <= 0:
        raise InvalidTarget("Target deflection must be positive")

    diameter_range = _check_range('diameter', config.diameter_range_mm)
    stickout_range = _check_range('stickout', config.stickout_range_mm)
    target = config.target_deflection_mm

    suggestions = []
    for diameter in np.linspace(*diameter_range, DIAMETER_STEPS):
        for stickout in np.linspace(*stickout_range, STICKOUT_STEPS):
            result = calculate_deflection(
                SYNTHETIC_TOOL_MATERIAL, float(diameter), float(stickout),
                config.force_n, config.rpm, config.effective_flutes,
                holder_compliance_mm_per_n=config.holder_compliance_mm_per_n,
                policy=policy,
            )
            predicted = result.total_deflection_mm
            error = abs(predicted - target)
            relative = error / target * 100
            suggestions.append(ToolSuggestion(
                diameter_mm=round(float(diameter), 1),
                stickout_mm=round(float(stickout), 1),
                predicted_deflection_mm=round(predicted, 4),
                deflection_error_mm=error,
                relative_error_percent=round(relative, 1),
                is_within_tolerance=relative <= TOLERANCE_PERCENT,
                rigidity_score=round(config.force_n / predicted) if predicted > 0 else float('inf'),
            ))

    total = len(suggestions)
    # stable sort keeps grid order (small diameter, short stickout first) on ties
    suggestions.sort(key=lambda s: s.deflection_error_mm)
    best = suggestions[:config.max_suggestions]

    logger.info(f"Evaluated {total} tool configurations for target {target} mm")

    return OptimizationResult(
        target_deflection_mm=target,
        suggestions=best,
        diameter_range_mm=diameter_range,
        stickout_range_mm=stickout_range,
        total_evaluations=total,
    )


def optimize_tool_configuration(
        tool: Tool,
        target_deflection_mm: float,
        force_n: float,
        rpm: float,
        effective_flutes: int,
        holder_compliance_mm_per_n: Optional[float] = None,
        policy: PolicyConfig = DEFAULT_POLICY
) -> OptimizationResult:
    """Search +/-50% diameter and +/-30% stickout around an existing tool."""
    d_min, d_max = DEFAULT_DIAMETER_RANGE_MM
    l_min, l_max = DEFAULT_STICKOUT_RANGE_MM

    d_high = min(tool.diameter_mm * 1.5, d_max)
    l_high = min(tool.stickout_mm * 1.3, l_max)
    # tools outside the default window collapse to its nearest edge
    diameter_range = (min(max(tool.diameter_mm * 0.5, d_min), d_high), d_high)
    stickout_range = (min(max(tool.stickout_mm * 0.7, l_min), l_high), l_high)

    config = OptimizationConfig(
        target_deflection_mm=target_deflection_mm,
        force_n=force_n,
        rpm=rpm,
        effective_flutes=effective_flutes,
        diameter_range_mm=diameter_range,
        stickout_range_mm=stickout_range,
        max_suggestions=3,
        holder_compliance_mm_per_n=holder_compliance_mm_per_n,
    )
    return suggest_tools_for_target_deflection(config, policy)
