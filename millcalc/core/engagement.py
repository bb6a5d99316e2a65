"""
Engagement stage: axial (ap) and radial (ae) engagement limited by the
material engagement fraction, and the material removal rate.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional

from millcalc.core.errors import InvalidGeometry, InvalidFeed
from millcalc.domain.models import Material, Tool, ToolType, CalcWarning, Severity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngagementResult:
    ae_mm: float  # radial engagement, width of cut
    ap_mm: float  # axial engagement, depth of cut
    mrr_mm3_min: float
    warnings: List[CalcWarning] = field(default_factory=list)


def _limit(requested: float, max_engagement: float, kind: str, label: str, warnings: List[CalcWarning]) -> float:
    if requested <= max_engagement:
        return requested
    warnings.append(CalcWarning(
        type=f'{kind}_limited',
        message=(f"{label} limited by material engagement fraction "
                 f"({max_engagement:.3f} mm < {requested:.3f} mm)"),
        severity=Severity.WARNING,
    ))
    logger.info(f"{label} {requested:.3f} mm clamped to {max_engagement:.3f} mm")
    return max_engagement


def calculate_mrr(tool_type: ToolType, effective_diameter: float, ae_mm: float, ap_mm: float, feed_mm_min: float) -> float:
    """Drills remove the full circle, everything else ae * ap * vf."""
    if tool_type == ToolType.DRILL:
        return math.pi * effective_diameter ** 2 / 4 * feed_mm_min
    return ae_mm * ap_mm * feed_mm_min


def calculate_engagement_and_mrr(
        material: Material,
        tool: Tool,
        effective_diameter: float,
        feed_mm_min: float,
        user_doc_mm: Optional[float] = None,
        user_woc_mm: Optional[float] = None
) -> EngagementResult:
    if effective_diameter <= 0:
        raise InvalidGeometry("Effective diameter must be positive")
    if feed_mm_min < 0:
        raise InvalidFeed("Feed rate must be non-negative")

    warnings = []
    max_engagement = material.max_engagement_fraction * effective_diameter

    requested_ap = user_doc_mm if user_doc_mm is not None else tool.default_doc_mm
    requested_ae = user_woc_mm if user_woc_mm is not None else tool.default_woc_mm

    ap_mm = _limit(requested_ap, max_engagement, 'doc', 'Depth of cut', warnings)
    ae_mm = _limit(requested_ae, max_engagement, 'woc', 'Width of cut', warnings)

    mrr = calculate_mrr(tool.type, effective_diameter, ae_mm, ap_mm, feed_mm_min)

    return EngagementResult(ae_mm=ae_mm, ap_mm=ap_mm, mrr_mm3_min=mrr, warnings=warnings)
