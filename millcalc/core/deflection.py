"""
Deflection stage.

Static deflection of the tool as a cantilever (bending + shear) plus holder
compliance, multiplied by a dynamic amplification factor that depends on how
close the tooth passing frequency is to the tool's natural frequency.

Units: force N, lengths mm, E in GPa (converted to N/mm2 or N/m2 as needed).
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional

from millcalc.config import PolicyConfig, DEFAULT_POLICY
from millcalc.core.errors import InvalidGeometry, InvalidRPM
from millcalc.core.lookup import clamp
from millcalc.domain.models import CalcWarning, Severity

logger = logging.getLogger(__name__)

# Young's modulus by tool material, GPa
MATERIAL_MODULUS_GPA = {
    'carbide': 600,
    'hss': 210,
    'high_speed_steel': 210,
    'steel': 210,
}
DEFAULT_MODULUS_GPA = 400

# Tool density, g/cm3
CARBIDE_DENSITY = 14.5
STEEL_DENSITY = 8.0

SHEAR_MODULUS_DIVISOR = 2.6  # G = E / 2.6
SHEAR_COEFFICIENT = 1.2  # solid circular section

AMPLIFICATION_BOUNDS = (0.1, 50.0)


@dataclass(frozen=True)
class StaticDeflection:
    bending_mm: float
    shear_mm: float
    holder_mm: float

    @property
    def total_mm(self) -> float:
        return self.bending_mm + self.shear_mm + self.holder_mm


@dataclass(frozen=True)
class DynamicAmplification:
    natural_frequency_hz: float
    operating_frequency_hz: float
    frequency_ratio: float
    amplification_factor: float


@dataclass(frozen=True)
class DeflectionResult:
    static: StaticDeflection
    dynamic: DynamicAmplification
    total_deflection_mm: float
    warnings: List[CalcWarning] = field(default_factory=list)


def get_youngs_modulus_gpa(tool_material: str) -> float:
    return MATERIAL_MODULUS_GPA.get((tool_material or '').strip().lower(), DEFAULT_MODULUS_GPA)


def estimate_tool_mass_kg(tool_material: str, diameter_mm: float, stickout_mm: float) -> float:
    """Solid cylinder of the stickout length."""
    density = CARBIDE_DENSITY if 'carbide' in (tool_material or '').lower() else STEEL_DENSITY
    radius_cm = diameter_mm / 20
    volume_cm3 = math.pi * radius_cm ** 2 * (stickout_mm / 10)
    return volume_cm3 * density / 1000


def calculate_static_deflection(
        tool_material: str,
        diameter_mm: float,
        stickout_mm: float,
        force_n: float,
        holder_compliance_mm_per_n: float = DEFAULT_POLICY.holder_compliance_mm_per_n
) -> StaticDeflection:
    if diameter_mm <= 0 or stickout_mm <= 0:
        raise InvalidGeometry("Diameter and stickout must be positive")

    e = get_youngs_modulus_gpa(tool_material) * 1000  # N/mm2
    g = e / SHEAR_MODULUS_DIVISOR
    inertia = math.pi * diameter_mm ** 4 / 64  # mm4
    area = math.pi * diameter_mm ** 2 / 4  # mm2
    length = stickout_mm

    return StaticDeflection(
        bending_mm=force_n * length ** 3 / (3 * e * inertia),
        shear_mm=SHEAR_COEFFICIENT * force_n * length / (g * area),
        holder_mm=force_n * holder_compliance_mm_per_n,
    )


def amplification_factor(ratio: float) -> float:
    """
    G(r): slightly above 1 well below resonance, a peak around r = 1,
    attenuation 1/r^2 above it. Clamped to AMPLIFICATION_BOUNDS.
    """
    if ratio < 0.7:
        value = 1 + 0.1 * ratio
    elif ratio <= 1.3:
        value = 3 + 2 * math.sin(math.pi * ratio)
    else:
        value = 1 / ratio ** 2
    return clamp(value, *AMPLIFICATION_BOUNDS)


def calculate_dynamic_amplification(
        tool_material: str,
        diameter_mm: float,
        stickout_mm: float,
        rpm: float,
        flutes: int
) -> DynamicAmplification:
    if rpm <= 0:
        raise InvalidRPM("RPM must be positive")

    length_m = stickout_mm / 1000
    diameter_m = diameter_mm / 1000
    e = get_youngs_modulus_gpa(tool_material) * 1e9  # N/m2
    inertia = math.pi * diameter_m ** 4 / 64
    mass = estimate_tool_mass_kg(tool_material, diameter_mm, stickout_mm)

    natural = (1 / (2 * math.pi)) * math.sqrt(3 * e * inertia / (mass * length_m ** 3))
    operating = rpm / 60 * flutes
    ratio = operating / natural

    return DynamicAmplification(
        natural_frequency_hz=natural,
        operating_frequency_hz=operating,
        frequency_ratio=ratio,
        amplification_factor=amplification_factor(ratio),
    )


def evaluate_deflection(deflection_mm: float, policy: PolicyConfig = DEFAULT_POLICY) -> List[CalcWarning]:
    if deflection_mm > policy.deflection_danger_mm:
        return [CalcWarning(
            type='deflection_danger',
            message=(f"Dangerous tool deflection ({deflection_mm:.3f} mm > "
                     f"{policy.deflection_danger_mm} mm). Risk of poor accuracy and tool breakage."),
            severity=Severity.DANGER,
        )]
    if deflection_mm > policy.deflection_warning_mm:
        return [CalcWarning(
            type='deflection_warning',
            message=(f"High tool deflection ({deflection_mm:.3f} mm > "
                     f"{policy.deflection_warning_mm} mm). May affect finish and accuracy."),
            severity=Severity.WARNING,
        )]
    return []


def calculate_deflection(
        tool_material: str,
        diameter_mm: float,
        stickout_mm: float,
        force_n: float,
        rpm: float,
        flutes: int,
        holder_compliance_mm_per_n: Optional[float] = None,
        policy: PolicyConfig = DEFAULT_POLICY
) -> DeflectionResult:
    """Total deflection = static deflection * G(operating / natural frequency)."""
    if holder_compliance_mm_per_n is None:
        holder_compliance_mm_per_n = policy.holder_compliance_mm_per_n

    static = calculate_static_deflection(
        tool_material, diameter_mm, stickout_mm, force_n, holder_compliance_mm_per_n
    )
    dynamic = calculate_dynamic_amplification(tool_material, diameter_mm, stickout_mm, rpm, flutes)
    total = static.total_mm * dynamic.amplification_factor

    logger.debug(
        f"deflection static={static.total_mm:.4f} mm ratio={dynamic.frequency_ratio:.3f} "
        f"G={dynamic.amplification_factor:.3f} total={total:.4f} mm"
    )

    return DeflectionResult(
        static=static,
        dynamic=dynamic,
        total_deflection_mm=total,
        warnings=evaluate_deflection(total, policy),
    )
