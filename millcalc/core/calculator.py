"""
Cutting parameter calculator.

Runs the stages in a fixed order, each one a pure function of the request
and the upstream results:

    validate -> geometry -> speed -> chipload/feed -> engagement/MRR
             -> power -> force -> deflection -> assemble

Clamped values are never silent: every clamp adds a warning to the output.
A request either succeeds (possibly with warnings) or raises a
CalculationError.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from millcalc.config import PolicyConfig, DEFAULT_POLICY
from millcalc.core.chipload import ChiploadResult, calculate_chipload_and_feed
from millcalc.core.deflection import DeflectionResult, calculate_deflection
from millcalc.core.engagement import EngagementResult, calculate_engagement_and_mrr
from millcalc.core.errors import InvalidWidth
from millcalc.core.force import ForceResult, calculate_cutting_force
from millcalc.core.geometry import EffectiveGeometry, resolve_geometry
from millcalc.core.power import PowerResult, calculate_power, apply_power_limiting
from millcalc.core.speeds import SpeedResult, calculate_speed_and_rpm
from millcalc.core.units import m_min_to_sfm
from millcalc.core.validator import validate_inputs
from millcalc.domain.models import Inputs, Tool, ToolType, CalcWarning

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalculationOutput:
    """Rounded result of one calculation."""
    rpm: int
    feed_mm_min: int
    fz_mm: float
    ae_mm: float
    ap_mm: float
    mrr_mm3_min: float
    power_w: float
    power_available_w: float
    power_limited: bool
    force_n: float
    deflection_mm: float
    vc_m_min: int
    sfm: int
    tool_type: ToolType
    effective_diameter_mm: float
    user_doc_override: bool
    warnings: List[CalcWarning] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Response shape expected by the UI layer."""
        return {
            'rpm': self.rpm,
            'feed_mm_min': self.feed_mm_min,
            'fz_mm': self.fz_mm,
            'ae_mm': self.ae_mm,
            'ap_mm': self.ap_mm,
            'mrr_mm3_min': self.mrr_mm3_min,
            'power_W': self.power_w,
            'power_available_W': self.power_available_w,
            'power_limited': self.power_limited,
            'force_N': self.force_n,
            'deflection_mm': self.deflection_mm,
            'vc_m_min': self.vc_m_min,
            'sfm': self.sfm,
            'toolType': self.tool_type.value,
            'effectiveDiameter': self.effective_diameter_mm,
            'user_doc_override': self.user_doc_override,
            'warnings': [w.to_dict() for w in self.warnings],
        }


def assemble_output(
        tool: Tool,
        geometry: EffectiveGeometry,
        speed: SpeedResult,
        chipload: ChiploadResult,
        engagement: EngagementResult,
        power: PowerResult,
        force: ForceResult,
        deflection: DeflectionResult,
        user_doc_override: bool = False,
        validation_warnings: Optional[List[CalcWarning]] = None
) -> CalculationOutput:
    """
    Merge stage results into the final output.

    Warnings keep stage order (validator first) and are never deduplicated.
    Power scaling is applied to the reported feed and MRR.
    """
    warnings = list(validation_warnings or [])
    for stage in (speed, chipload, engagement, power, force, deflection):
        warnings.extend(stage.warnings)

    feed, mrr = apply_power_limiting(chipload.vf_actual, engagement.mrr_mm3_min, power.scaling_factor)

    return CalculationOutput(
        rpm=round(speed.rpm_actual),
        feed_mm_min=round(feed),
        fz_mm=round(chipload.fz_adjusted, 4),
        ae_mm=round(engagement.ae_mm, 2),
        ap_mm=round(engagement.ap_mm, 2),
        mrr_mm3_min=round(mrr, 1),
        power_w=round(power.power_required_w, 1),
        power_available_w=round(power.power_available_w, 1),
        power_limited=power.power_limited,
        force_n=round(force.total_force_n, 1),
        deflection_mm=round(deflection.total_deflection_mm, 4),
        vc_m_min=round(speed.vc_actual),
        sfm=round(m_min_to_sfm(speed.vc_actual)),
        tool_type=tool.type,
        effective_diameter_mm=round(geometry.diameter_mm, 2),
        user_doc_override=user_doc_override,
        warnings=warnings,
    )


def calculate(inputs: Inputs, library, policy: PolicyConfig = DEFAULT_POLICY) -> CalculationOutput:
    """
    Full calculation for one request.

    `library` is anything exposing find_material / find_machine /
    find_spindle / find_tool.
    """
    validation = validate_inputs(inputs, library, policy)
    validation.raise_for_errors()

    material = validation.entities['material']
    machine = validation.entities['machine']
    spindle = validation.entities['spindle']
    tool = validation.entities['tool']

    requested_doc = inputs.resolve_doc_mm(tool.default_doc_mm)
    requested_woc = inputs.user_woc_mm if inputs.user_woc_mm is not None else tool.default_woc_mm
    if requested_woc is None or requested_woc <= 0:
        raise InvalidWidth(f"Width of cut must be positive (got {requested_woc})")

    geometry = resolve_geometry(
        tool,
        override_flutes=inputs.override_flutes,
        override_stickout_mm=inputs.override_stickout_mm,
        doc_mm=requested_doc,
    )

    speed = calculate_speed_and_rpm(
        material, spindle, geometry.diameter_mm, inputs.cut_type, inputs.aggressiveness
    )

    chipload = calculate_chipload_and_feed(
        material, machine, tool,
        effective_diameter=geometry.diameter_mm,
        effective_flutes=geometry.flutes,
        rpm=speed.rpm_actual,
        width_of_cut=requested_woc,
        aggressiveness=inputs.aggressiveness,
        policy=policy,
    )

    engagement = calculate_engagement_and_mrr(
        material, tool, geometry.diameter_mm, chipload.vf_actual,
        user_doc_mm=inputs.user_doc_mm,
        user_woc_mm=inputs.user_woc_mm,
    )

    power = calculate_power(
        material, spindle, tool.type, engagement.mrr_mm3_min, speed.rpm_actual, policy
    )

    force = calculate_cutting_force(
        material, tool.type, geometry.diameter_mm, engagement.ae_mm, chipload.fz_adjusted, policy
    )

    deflection = calculate_deflection(
        tool.material,
        geometry.diameter_mm,
        geometry.stickout_mm,
        force.total_force_n,
        speed.rpm_actual,
        geometry.flutes,
        policy=policy,
    )

    output = assemble_output(
        tool, geometry, speed, chipload, engagement, power, force, deflection,
        user_doc_override=inputs.has_user_doc,
        validation_warnings=validation.warnings,
    )

    logger.info(
        f"{material.id}/{tool.id} {inputs.cut_type}: rpm={output.rpm} feed={output.feed_mm_min} "
        f"mrr={output.mrr_mm3_min} deflection={output.deflection_mm} warnings={len(output.warnings)}"
    )
    return output


def format_output_for_user(output: CalculationOutput) -> str:
    """Human-readable summary of a calculation."""
    lines = ["Recommended cutting parameters:", ""]

    lines.append(f"  Tool type:          {output.tool_type.value} (D eff {output.effective_diameter_mm} mm)")
    lines.append(f"  Cutting speed:      {output.vc_m_min} m/min ({output.sfm} SFM)")
    lines.append(f"  Spindle speed:      {output.rpm} rpm")
    lines.append(f"  Feed:               {output.feed_mm_min} mm/min")
    lines.append(f"  Chipload:           {output.fz_mm} mm/tooth")
    lines.append(f"  Depth of cut (ap):  {output.ap_mm} mm" + (" (user)" if output.user_doc_override else ""))
    lines.append(f"  Width of cut (ae):  {output.ae_mm} mm")
    lines.append(f"  MRR:                {output.mrr_mm3_min} mm3/min")
    lines.append(f"  Power:              {output.power_w} W of {output.power_available_w} W")
    lines.append(f"  Cutting force:      {output.force_n} N")
    lines.append(f"  Deflection:         {output.deflection_mm} mm")

    if output.warnings:
        lines.append("")
        lines.append("Warnings:")
        for warning in output.warnings:
            marker = "!!" if warning.severity.value == 'danger' else "!"
            lines.append(f"  {marker} [{warning.type}] {warning.message}")

    return "\n".join(lines)
