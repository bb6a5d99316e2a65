"""
Effective tool geometry: the diameter, flute count and stickout the rest of
the pipeline works with, after per-type rules and user overrides.
"""
import math
from dataclasses import dataclass
from typing import Optional, Dict, Any

from millcalc.core.errors import InvalidGeometry, UnknownToolType
from millcalc.domain.models import Tool, ToolType, ToolMetadata

# Flute depth as a fraction of diameter, by flute count (5+ share the last entry)
FLUTE_DEPTH_RATIO = {
    1: 0.30,
    2: 0.25,
    3: 0.20,
    4: 0.18,
    5: 0.15,
}


@dataclass(frozen=True)
class EffectiveGeometry:
    diameter_mm: float
    flutes: int
    stickout_mm: float
    core_diameter_mm: float

    @property
    def ld_ratio(self) -> float:
        return self.stickout_mm / self.diameter_mm


def get_effective_diameter(tool: Tool, doc_mm: Optional[float] = None) -> float:
    """
    Cutting diameter of the tool.

    V-bits grow with depth: tip + 2 * tan(angle / 2) * doc.
    Boring bars: diameter_mm is the offset, body_diameter_mm the bit.
    """
    tool_type = tool.type
    if tool_type in (ToolType.ENDMILL_FLAT, ToolType.DRILL, ToolType.SLITTING):
        return tool.diameter_mm

    if tool_type == ToolType.VBIT:
        if not tool.metadata.angle_deg:
            raise InvalidGeometry(f"V-bit '{tool.id}' requires metadata.angle_deg")
        if doc_mm is None:
            raise InvalidGeometry("V-bit effective diameter requires a depth of cut")
        half_angle = math.radians(tool.metadata.angle_deg / 2)
        return tool.diameter_mm + 2 * math.tan(half_angle) * doc_mm

    if tool_type == ToolType.FACEMILL:
        if not tool.metadata.body_diameter_mm:
            raise InvalidGeometry(f"Facemill '{tool.id}' requires metadata.body_diameter_mm")
        return tool.metadata.body_diameter_mm

    if tool_type == ToolType.BORING:
        if not tool.metadata.body_diameter_mm:
            raise InvalidGeometry(f"Boring tool '{tool.id}' requires metadata.body_diameter_mm")
        return 2 * (tool.diameter_mm + tool.metadata.body_diameter_mm / 2)

    raise UnknownToolType(f"Unknown tool type: {tool_type}")


def get_effective_flutes(tool: Tool) -> int:
    """Boring bars cut with a single edge, everything else with all flutes."""
    if tool.type == ToolType.BORING:
        return 1
    return tool.flutes


def get_core_diameter(tool: Tool, diameter_mm: Optional[float] = None) -> float:
    """Web (core) diameter, from the tool record or the flute depth table."""
    if tool.core_diameter_mm:
        return tool.core_diameter_mm
    diameter = tool.diameter_mm if diameter_mm is None else diameter_mm
    ratio = FLUTE_DEPTH_RATIO.get(tool.flutes, FLUTE_DEPTH_RATIO[5])
    return diameter * (1 - 2 * ratio)


def resolve_geometry(
        tool: Tool,
        override_flutes: Optional[int] = None,
        override_stickout_mm: Optional[float] = None,
        doc_mm: Optional[float] = None
) -> EffectiveGeometry:
    """Overrides always win over tool data."""
    diameter = get_effective_diameter(tool, doc_mm)
    flutes = override_flutes if override_flutes is not None else get_effective_flutes(tool)
    stickout = override_stickout_mm if override_stickout_mm is not None else tool.stickout_mm

    if not diameter or diameter <= 0:
        raise InvalidGeometry(f"Effective diameter must be positive (got {diameter})")
    if flutes is None or flutes <= 0:
        raise InvalidGeometry(f"Effective flute count must be positive (got {flutes})")
    if stickout <= 0:
        raise InvalidGeometry(f"Stickout must be positive (got {stickout})")

    return EffectiveGeometry(
        diameter_mm=diameter,
        flutes=int(flutes),
        stickout_mm=stickout,
        core_diameter_mm=get_core_diameter(tool, diameter),
    )


def build_tool(config: Dict[str, Any], tool_id: str = "custom_tool") -> Tool:
    """
    Build a Tool from loose configuration fields.

    Example:
    {
        'type': 'endmill_flat',
        'diameter_mm': 6.0,
        'flutes': 2,
        'stickout_mm': 25.0,
        'material': 'carbide',
        'coating': 'TiAlN',
    }
    """
    tool_type = config.get('type')
    if not tool_type:
        raise InvalidGeometry("Tool type is required")
    try:
        tool_type = ToolType(tool_type)
    except ValueError:
        raise UnknownToolType(f"Unknown tool type: {tool_type}") from None

    diameter = config.get('diameter_mm')
    if not diameter or diameter <= 0:
        raise InvalidGeometry("Tool diameter must be positive")
    flutes = config.get('flutes')
    if not flutes or flutes < 1:
        raise InvalidGeometry("Tool flutes must be at least 1")
    stickout = config.get('stickout_mm')
    if not stickout or stickout <= 0:
        raise InvalidGeometry("Tool stickout must be positive")
    for key in ('material', 'coating'):
        if not config.get(key):
            raise InvalidGeometry(f"Tool {key} is required")

    metadata = ToolMetadata()
    if tool_type == ToolType.VBIT and config.get('angle_deg'):
        metadata = ToolMetadata(angle_deg=config['angle_deg'])
    elif tool_type in (ToolType.FACEMILL, ToolType.BORING) and config.get('body_diameter_mm'):
        metadata = ToolMetadata(body_diameter_mm=config['body_diameter_mm'])

    return Tool(
        id=config.get('id', tool_id),
        type=tool_type,
        diameter_mm=diameter,
        flutes=int(flutes),
        coating=config['coating'],
        stickout_mm=stickout,
        material=config['material'],
        default_doc_mm=config.get('default_doc_mm') or diameter * 0.5,
        default_woc_mm=config.get('default_woc_mm') or diameter * 0.3,
        core_diameter_mm=config.get('core_diameter_mm'),
        metadata=metadata,
    )
