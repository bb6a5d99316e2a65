"""
Input validation for calculation requests.

Two tiers:
- errors: the request cannot be computed (unknown ids, malformed numbers,
  unknown cut type). The calculator refuses to run.
- warnings: risky but computable overrides. Attached to the result.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional

from millcalc.config import PolicyConfig, DEFAULT_POLICY
from millcalc.core.errors import CalculationError, InputValidationError, EntityNotFound
from millcalc.core.geometry import get_effective_diameter
from millcalc.domain.models import Inputs, CutType, CalcWarning, Severity, Material, Tool, is_positive_number

logger = logging.getLogger(__name__)


class ValidationErrorType(Enum):
    NOT_FOUND = "not_found"
    MISSING_REQUIRED = "missing_required"
    INVALID_TYPE = "invalid_type"
    OUT_OF_RANGE = "out_of_range"
    UNSUPPORTED_VALUE = "unsupported_value"
    INVALID_GEOMETRY = "invalid_geometry"


ENTITY_FIELDS = {
    'material_id': 'find_material',
    'machine_id': 'find_machine',
    'spindle_id': 'find_spindle',
    'tool_id': 'find_tool',
}


@dataclass
class ValidationResult:
    errors: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[CalcWarning] = field(default_factory=list)
    entities: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self):
        """Raise EntityNotFound for unknown ids, InputValidationError otherwise."""
        if not self.errors:
            return
        if any(e['type'] == ValidationErrorType.NOT_FOUND for e in self.errors):
            raise EntityNotFound(self.errors)
        raise InputValidationError(self.errors)


class InputValidator:
    """Validates one request against the reference library."""

    def __init__(self, library, policy: PolicyConfig = DEFAULT_POLICY):
        self.library = library
        self.policy = policy
        self.result = ValidationResult()

    def add_error(self, field_name: str, error_type: ValidationErrorType, message: str, value: Any = None):
        self.result.errors.append({
            'field': field_name,
            'type': error_type,
            'message': message,
            'value': value,
        })

    def add_warning(self, warning_type: str, message: str, severity: Severity = Severity.WARNING):
        self.result.warnings.append(CalcWarning(type=warning_type, message=message, severity=severity))

    def validate(self, inputs: Inputs) -> ValidationResult:
        self.result = ValidationResult()

        self._check_structure(inputs)
        if self.result.errors:
            return self.result

        self._resolve_entities(inputs)
        if self.result.errors:
            return self.result

        material = self.result.entities['material']
        tool = self.result.entities['tool']

        try:
            effective_diameter = get_effective_diameter(tool, inputs.resolve_doc_mm(tool.default_doc_mm))
        except CalculationError as e:
            self.add_error('tool_id', ValidationErrorType.INVALID_GEOMETRY, str(e), inputs.tool_id)
            return self.result

        self._check_aggressiveness(inputs.aggressiveness)
        self._check_doc(inputs.user_doc_mm, material, tool, effective_diameter)
        self._check_woc(inputs.user_woc_mm, effective_diameter)
        self._check_flutes(inputs.override_flutes)
        self._check_stickout(inputs.override_stickout_mm, effective_diameter)

        if self.result.warnings:
            logger.debug(f"Validation produced {len(self.result.warnings)} warnings")
        return self.result

    # ------------------------------------------------------------------
    # hard errors
    # ------------------------------------------------------------------

    def _check_structure(self, inputs: Inputs):
        for field_name in ENTITY_FIELDS:
            value = getattr(inputs, field_name)
            if not isinstance(value, str) or not value.strip():
                self.add_error(field_name, ValidationErrorType.MISSING_REQUIRED,
                               f"{field_name} is required", value)

        try:
            CutType(inputs.cut_type)
        except ValueError:
            supported = ", ".join(c.value for c in CutType)
            self.add_error('cut_type', ValidationErrorType.UNSUPPORTED_VALUE,
                           f"Cut type '{inputs.cut_type}' is not supported. Available: {supported}",
                           inputs.cut_type)

        if not is_positive_number(inputs.aggressiveness):
            self.add_error('aggressiveness', ValidationErrorType.OUT_OF_RANGE,
                           "Aggressiveness must be a positive finite number", inputs.aggressiveness)

        for field_name in ('user_doc_mm', 'user_woc_mm', 'override_stickout_mm'):
            value = getattr(inputs, field_name)
            if value is not None and not is_positive_number(value):
                self.add_error(field_name, ValidationErrorType.OUT_OF_RANGE,
                               f"{field_name} must be a positive finite number", value)

        flutes = inputs.override_flutes
        if flutes is not None and (not isinstance(flutes, int) or isinstance(flutes, bool) or flutes <= 0):
            self.add_error('override_flutes', ValidationErrorType.INVALID_TYPE,
                           "override_flutes must be a positive integer", flutes)

    def _resolve_entities(self, inputs: Inputs):
        for field_name, finder in ENTITY_FIELDS.items():
            entity_id = getattr(inputs, field_name)
            entity = getattr(self.library, finder)(entity_id)
            kind = field_name[:-3]
            if entity is None:
                self.add_error(field_name, ValidationErrorType.NOT_FOUND,
                               f"{kind.capitalize()} with ID '{entity_id}' not found", entity_id)
            else:
                self.result.entities[kind] = entity

    # ------------------------------------------------------------------
    # advisories
    # ------------------------------------------------------------------

    def _check_aggressiveness(self, aggressiveness: float):
        if not self.policy.aggressiveness_min <= aggressiveness <= self.policy.aggressiveness_max:
            self.add_warning(
                'aggressiveness_warning',
                f"Aggressiveness factor {aggressiveness} is outside normal range "
                f"({self.policy.aggressiveness_min}-{self.policy.aggressiveness_max})"
            )

    def _check_doc(self, doc: Optional[float], material: Material, tool: Tool, diameter: float):
        if doc is None:
            return
        recommended_max = min(diameter * material.max_engagement_fraction, tool.default_doc_mm * 2)
        if doc >= diameter * self.policy.doc_danger_ratio:
            self.add_warning(
                'doc_override_danger',
                f"User DOC ({doc:.2f} mm) reaches the tool diameter ({diameter:.2f} mm)",
                Severity.DANGER
            )
        elif doc > recommended_max * self.policy.doc_warning_ratio:
            self.add_warning(
                'doc_override_warning',
                f"User DOC ({doc:.2f} mm) exceeds recommended maximum ({recommended_max:.2f} mm)"
            )

    def _check_woc(self, woc: Optional[float], diameter: float):
        if woc is None:
            return
        if woc > diameter * self.policy.woc_warning_ratio:
            self.add_warning(
                'woc_override_warning',
                f"User WOC ({woc:.2f} mm) exceeds tool diameter ({diameter:.2f} mm)"
            )

    def _check_flutes(self, flutes: Optional[int]):
        if flutes is not None and flutes > self.policy.max_practical_flutes:
            self.add_warning(
                'flutes_override_warning',
                f"Override flutes ({flutes}) is unusually high"
            )

    def _check_stickout(self, stickout: Optional[float], diameter: float):
        if stickout is None:
            return
        ratio = stickout / diameter
        if ratio >= self.policy.stickout_ld_danger:
            self.add_warning(
                'stickout_override_danger',
                f"Override stickout ({stickout:.1f} mm) gives very high L/D ratio ({ratio:.1f}). "
                f"Dangerous deflection expected.",
                Severity.DANGER
            )
        elif ratio >= self.policy.stickout_ld_warning:
            self.add_warning(
                'stickout_override_warning',
                f"Override stickout ({stickout:.1f} mm) gives high L/D ratio ({ratio:.1f}). "
                f"High deflection expected."
            )


def validate_inputs(inputs: Inputs, library, policy: PolicyConfig = DEFAULT_POLICY) -> ValidationResult:
    return InputValidator(library, policy).validate(inputs)
