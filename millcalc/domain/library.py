"""
Reference library: materials, machines, spindles and tools looked up by id.

Records are shape-checked on load. A bad record is reported with its
section and index; `load_library` refuses a file with any bad record.
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, List, Optional, Union, Callable, Tuple

import yaml
from dotenv import load_dotenv

from millcalc.config import LIBRARY_ENV_VAR
from millcalc.core.errors import ConfigError
from millcalc.domain.models import Material, Machine, Spindle, Tool, ToolType, is_positive_number

logger = logging.getLogger(__name__)

BUNDLED_LIBRARY = Path(__file__).parent / "data" / "library.yaml"


def _positive(record: Dict[str, Any], key: str, errors: List[str]):
    value = record.get(key)
    if not is_positive_number(value):
        errors.append(f"{key} must be a positive number (got {value!r})")


def _positive_pair(value: Any, label: str, errors: List[str]):
    """[min, max] of positive numbers with min <= max."""
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        errors.append(f"{label} must be [min, max]")
        return
    valid = True
    for name, item in zip(("min", "max"), value):
        if not is_positive_number(item):
            errors.append(f"{label} {name} must be a positive number (got {item!r})")
            valid = False
    if valid and value[0] > value[1]:
        errors.append(f"{label} min must not exceed max")


def _required_str(record: Dict[str, Any], key: str, errors: List[str]):
    value = record.get(key)
    if not isinstance(value, str) or not value.strip():
        errors.append(f"{key} is required")


def check_material(record: Dict[str, Any]) -> List[str]:
    errors = []
    _required_str(record, 'id', errors)
    _required_str(record, 'category', errors)
    for key in ('force_coeff_kn_mm2', 'specific_cutting_energy_j_mm3', 'max_engagement_fraction'):
        _positive(record, key, errors)
    fraction = record.get('max_engagement_fraction')
    if isinstance(fraction, (int, float)) and fraction > 1:
        errors.append("max_engagement_fraction must not exceed 1")

    _positive_pair(record.get('vc_range_m_min'), 'vc_range_m_min', errors)

    table = record.get('fz_mm_per_tooth_by_diameter')
    if not isinstance(table, dict) or not table:
        errors.append("fz_mm_per_tooth_by_diameter needs at least one diameter entry")
    else:
        for diameter, bounds in table.items():
            _positive_pair(bounds, f"chipload entry for diameter {diameter}", errors)

    thinning = record.get('chip_thinning')
    if not isinstance(thinning, dict):
        errors.append("chip_thinning is required")
    else:
        _positive(thinning, 'enable_below_fraction', errors)
        limit = thinning.get('limit_factor')
        if not isinstance(limit, (int, float)) or limit < 1:
            errors.append("chip_thinning.limit_factor must be >= 1")
    return errors


def check_machine(record: Dict[str, Any]) -> List[str]:
    errors = []
    _required_str(record, 'id', errors)
    _positive(record, 'axis_max_feed_mm_min', errors)
    _positive(record, 'rigidity_factor', errors)
    aggressiveness = record.get('aggressiveness', {})
    if not isinstance(aggressiveness, dict):
        errors.append("aggressiveness must be a mapping of axial/radial/feed")
    else:
        for key, value in aggressiveness.items():
            if key not in ('axial', 'radial', 'feed'):
                errors.append(f"unknown aggressiveness key '{key}'")
            elif not isinstance(value, (int, float)) or value <= 0:
                errors.append(f"aggressiveness.{key} must be positive")
    return errors


def check_spindle(record: Dict[str, Any]) -> List[str]:
    errors = []
    _required_str(record, 'id', errors)
    for key in ('rated_power_kw', 'rpm_min', 'rpm_max', 'base_rpm'):
        _positive(record, key, errors)
    if errors:
        return errors

    if record['rpm_min'] > record['rpm_max']:
        errors.append("rpm_min must not exceed rpm_max")
    elif not record['rpm_min'] <= record['base_rpm'] <= record['rpm_max']:
        errors.append("base_rpm must lie within [rpm_min, rpm_max]")

    curve = record.get('power_curve')
    if not isinstance(curve, list) or not curve:
        errors.append("power_curve needs at least one point")
        return errors
    previous_rpm = None
    for i, point in enumerate(curve):
        if not isinstance(point, dict):
            errors.append(f"power_curve[{i}] must be a mapping of rpm and power_kw")
            continue
        _positive(point, 'rpm', errors)
        _positive(point, 'power_kw', errors)
        rpm = point.get('rpm')
        if previous_rpm is not None and isinstance(rpm, (int, float)) and rpm <= previous_rpm:
            errors.append(f"power_curve rpm must be strictly increasing (index {i})")
        previous_rpm = rpm
    return errors


def check_tool(record: Dict[str, Any]) -> List[str]:
    errors = []
    _required_str(record, 'id', errors)
    _required_str(record, 'material', errors)
    try:
        ToolType(record.get('type'))
    except ValueError:
        errors.append(f"unknown tool type {record.get('type')!r}")
    for key in ('diameter_mm', 'stickout_mm', 'default_doc_mm', 'default_woc_mm'):
        _positive(record, key, errors)
    flutes = record.get('flutes')
    if isinstance(flutes, bool) or not isinstance(flutes, int) or flutes < 1:
        errors.append(f"flutes must be a positive integer (got {flutes!r})")
    if record.get('core_diameter_mm') is not None:
        _positive(record, 'core_diameter_mm', errors)
    return errors


# section name -> (shape check, record class)
SECTIONS: Dict[str, Tuple[Callable[[Dict[str, Any]], List[str]], type]] = {
    'materials': (check_material, Material),
    'machines': (check_machine, Machine),
    'spindles': (check_spindle, Spindle),
    'tools': (check_tool, Tool),
}


@dataclass
class LoadResult:
    records: List[Any] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


def parse_records(section: str, items: Any) -> LoadResult:
    """Shape-check and build the records of one library section."""
    check, record_class = SECTIONS[section]
    result = LoadResult()
    if not isinstance(items, list):
        result.errors.append(f"Expected a list of {section}")
        return result

    singular = section[:-1].capitalize()
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            result.errors.append(f"{singular} at index {index}: expected a mapping")
            continue
        problems = check(item)
        if not problems:
            try:
                result.records.append(record_class(**item))
            except (TypeError, ValueError) as e:
                problems = [str(e)]
        if problems:
            logger.warning(f"Skipping {singular.lower()} at index {index}: {problems}")
            result.errors.append(f"{singular} at index {index}: {', '.join(problems)}")
    return result


class ReferenceLibrary:
    """In-memory, read-only lookup of reference records by id."""

    def __init__(
            self,
            materials: Optional[List[Material]] = None,
            machines: Optional[List[Machine]] = None,
            spindles: Optional[List[Spindle]] = None,
            tools: Optional[List[Tool]] = None
    ):
        self.materials = {m.id: m for m in materials or []}
        self.machines = {m.id: m for m in machines or []}
        self.spindles = {s.id: s for s in spindles or []}
        self.tools = {t.id: t for t in tools or []}

    def find_material(self, material_id: str) -> Optional[Material]:
        return self.materials.get(material_id)

    def find_machine(self, machine_id: str) -> Optional[Machine]:
        return self.machines.get(machine_id)

    def find_spindle(self, spindle_id: str) -> Optional[Spindle]:
        return self.spindles.get(spindle_id)

    def find_tool(self, tool_id: str) -> Optional[Tool]:
        return self.tools.get(tool_id)

    def summary(self) -> Dict[str, List[str]]:
        return {
            'materials': sorted(self.materials),
            'machines': sorted(self.machines),
            'spindles': sorted(self.spindles),
            'tools': sorted(self.tools),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReferenceLibrary':
        """Build a library from {'materials': [...], 'machines': [...], ...}."""
        if not isinstance(data, dict):
            raise ConfigError("Library data must be a mapping of sections")
        unknown = sorted(set(data) - set(SECTIONS))
        if unknown:
            raise ConfigError(f"Unknown library sections: {', '.join(unknown)}")

        parsed = {}
        errors = []
        for section in SECTIONS:
            result = parse_records(section, data.get(section, []))
            parsed[section] = result.records
            errors.extend(result.errors)
        if errors:
            raise ConfigError("Invalid library records: " + "; ".join(errors))
        return cls(**parsed)


def _library_path(path: Optional[Union[str, Path]]) -> Path:
    if path is not None:
        return Path(path)
    load_dotenv()
    env_path = os.getenv(LIBRARY_ENV_VAR)
    return Path(env_path) if env_path else BUNDLED_LIBRARY


def load_library(path: Optional[Union[str, Path]] = None) -> ReferenceLibrary:
    """Load the reference library from YAML (bundled sample by default)."""
    library_file = _library_path(path)
    try:
        with open(library_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Cannot read library file {library_file}: {e}", exc_info=True)
        raise ConfigError(f"Cannot read library file {library_file}: {e}") from e

    library = ReferenceLibrary.from_dict(data)
    counts = {section: len(ids) for section, ids in library.summary().items()}
    logger.info(f"Loaded library {library_file}: {counts}")
    return library
