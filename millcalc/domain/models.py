"""
Reference data records and request/response shapes for the cutting calculator.

Every record is an immutable dataclass. Records are looked up by their `id`
string and are never mutated once constructed.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional, Tuple, Mapping, Union
import math


class ToolType(str, Enum):
    """Supported cutting tool types."""
    ENDMILL_FLAT = "endmill_flat"
    DRILL = "drill"
    VBIT = "vbit"
    FACEMILL = "facemill"
    BORING = "boring"
    SLITTING = "slitting"


class CutType(str, Enum):
    """Supported cutting operations."""
    SLOT = "slot"
    PROFILE = "profile"
    ADAPTIVE = "adaptive"
    FACING = "facing"
    DRILLING = "drilling"
    BORING = "boring"


class Severity(str, Enum):
    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True)
class CalcWarning:
    """Advisory message attached to a result. Never blocks a calculation."""
    type: str
    message: str
    severity: Severity = Severity.WARNING

    def to_dict(self) -> Dict[str, str]:
        return {
            'type': self.type,
            'message': self.message,
            'severity': self.severity.value,
        }


ChiploadTable = Tuple[Tuple[float, Tuple[float, float]], ...]


def _diameter_key(key: Union[str, float, int]) -> float:
    """Parse a chipload table key such as 6, '6.0' or 'dia_6'."""
    if isinstance(key, (int, float)):
        return float(key)
    text = str(key).strip().lower()
    if text.startswith('dia_'):
        text = text[4:]
    return float(text)


def normalize_chipload_table(raw: Union[Mapping, ChiploadTable, None]) -> ChiploadTable:
    """Turn a {diameter: [min, max]} mapping into a sorted tuple of pairs."""
    if not raw:
        return ()
    items = raw.items() if isinstance(raw, Mapping) else raw
    pairs = []
    for key, bounds in items:
        fz_min, fz_max = bounds
        pairs.append((_diameter_key(key), (float(fz_min), float(fz_max))))
    pairs.sort(key=lambda pair: pair[0])
    return tuple(pairs)


@dataclass(frozen=True)
class ChipThinning:
    """Chip thinning rule of a material."""
    enable_below_fraction: float  # ae / D below which thinning applies
    limit_factor: float  # upper bound of the chipload multiplier


@dataclass(frozen=True)
class Material:
    """Workpiece material with its empirical cutting tables."""
    id: str
    category: str
    vc_range_m_min: Tuple[float, float]  # target cutting speed, m/min
    fz_mm_per_tooth_by_diameter: ChiploadTable  # diameter -> (fz_min, fz_max)
    force_coeff_kn_mm2: float
    specific_cutting_energy_j_mm3: float
    chip_thinning: ChipThinning
    max_engagement_fraction: float  # 0..1 of tool diameter

    def __post_init__(self):
        object.__setattr__(self, 'vc_range_m_min', tuple(float(v) for v in self.vc_range_m_min))
        object.__setattr__(
            self, 'fz_mm_per_tooth_by_diameter',
            normalize_chipload_table(self.fz_mm_per_tooth_by_diameter)
        )
        if isinstance(self.chip_thinning, Mapping):
            object.__setattr__(self, 'chip_thinning', ChipThinning(**self.chip_thinning))

    @property
    def vc_mid_m_min(self) -> float:
        vc_min, vc_max = self.vc_range_m_min
        return (vc_min + vc_max) / 2


@dataclass(frozen=True)
class MachineAggressiveness:
    axial: float = 1.0
    radial: float = 1.0
    feed: float = 1.0


@dataclass(frozen=True)
class Machine:
    """Machine frame: axis feed ceiling and rigidity."""
    id: str
    axis_max_feed_mm_min: float
    rigidity_factor: float
    aggressiveness: MachineAggressiveness = field(default_factory=MachineAggressiveness)

    def __post_init__(self):
        if isinstance(self.aggressiveness, Mapping):
            object.__setattr__(self, 'aggressiveness', MachineAggressiveness(**self.aggressiveness))


@dataclass(frozen=True)
class PowerCurvePoint:
    rpm: float
    power_kw: float


@dataclass(frozen=True)
class Spindle:
    """Spindle with its RPM window and power curve."""
    id: str
    rated_power_kw: float
    rpm_min: float
    rpm_max: float
    base_rpm: float
    power_curve: Tuple[PowerCurvePoint, ...]

    def __post_init__(self):
        points = tuple(
            p if isinstance(p, PowerCurvePoint) else PowerCurvePoint(**p)
            for p in self.power_curve
        )
        object.__setattr__(self, 'power_curve', points)


@dataclass(frozen=True)
class ToolMetadata:
    angle_deg: Optional[float] = None  # included angle of a V-bit
    body_diameter_mm: Optional[float] = None  # facemill body / boring bit


@dataclass(frozen=True)
class Tool:
    """Cutting tool."""
    id: str
    type: ToolType
    diameter_mm: float
    flutes: int
    coating: str
    stickout_mm: float
    material: str  # carbide, hss, ceramic, diamond, ...
    default_doc_mm: float
    default_woc_mm: float
    core_diameter_mm: Optional[float] = None
    metadata: ToolMetadata = field(default_factory=ToolMetadata)

    def __post_init__(self):
        if not isinstance(self.type, ToolType):
            object.__setattr__(self, 'type', ToolType(self.type))
        if self.metadata is None:
            object.__setattr__(self, 'metadata', ToolMetadata())
        elif isinstance(self.metadata, Mapping):
            object.__setattr__(self, 'metadata', ToolMetadata(**self.metadata))


@dataclass(frozen=True)
class Inputs:
    """One calculation request."""
    material_id: str
    machine_id: str
    spindle_id: str
    tool_id: str
    cut_type: Union[CutType, str]
    aggressiveness: float = 1.0
    user_doc_mm: Optional[float] = None
    user_woc_mm: Optional[float] = None
    override_flutes: Optional[int] = None
    override_stickout_mm: Optional[float] = None

    # Request keys as they arrive from the UI layer
    FIELD_ALIASES = {
        'materialId': 'material_id',
        'machineId': 'machine_id',
        'spindleId': 'spindle_id',
        'toolId': 'tool_id',
        'cutType': 'cut_type',
    }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Inputs':
        """Build a request from a dict using either snake_case or camelCase ids."""
        kwargs = {}
        for key, value in data.items():
            name = cls.FIELD_ALIASES.get(key, key)
            if name in cls.__dataclass_fields__:
                kwargs[name] = value
        if kwargs.get('aggressiveness') is None:
            kwargs.pop('aggressiveness', None)
        return cls(**kwargs)

    @property
    def has_user_doc(self) -> bool:
        return self.user_doc_mm is not None

    def resolve_doc_mm(self, default_doc_mm: float) -> float:
        """User depth of cut when given, else the tool default."""
        return self.user_doc_mm if self.has_user_doc else default_doc_mm


def is_positive_number(value: Any) -> bool:
    """Finite, strictly positive real number (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0

