"""
What-if chart series: available spindle power over the RPM range and
static deflection over tool stickout.

Series are memoised in a ChartCache owned by the caller. The cache is never
invalidated on its own; call clear() after changing reference data.
"""
import json
import logging
from collections import OrderedDict
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from millcalc.config import PolicyConfig, DEFAULT_POLICY
from millcalc.core.deflection import calculate_deflection
from millcalc.core.errors import InvalidGeometry
from millcalc.core.power import get_spindle_power_at_rpm
from millcalc.domain.models import Spindle, Tool

logger = logging.getLogger(__name__)

RPM_SERIES_POINTS = 50
STICKOUT_SERIES_POINTS = 30
MIN_STICKOUT_MM = 10.0


@dataclass(frozen=True)
class PowerChartPoint:
    rpm: int
    power_w: int


@dataclass(frozen=True)
class DeflectionChartPoint:
    stickout_mm: float
    deflection_mm: float


def _json_default(value: Any):
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Cannot serialise {type(value).__name__} for a cache key")


def make_cache_key(prefix: str, config: Dict[str, Any]) -> str:
    """Canonical key: prefix plus JSON with sorted keys."""
    return f"{prefix}:{json.dumps(config, sort_keys=True, default=_json_default)}"


class ChartCache:
    """Bounded memo of chart series; oldest entries are evicted first."""

    def __init__(self, max_entries: int = 256):
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, List]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get_or_compute(self, key: str, compute: Callable[[], List]) -> List:
        if key in self._entries:
            self.hits += 1
            return self._entries[key]
        self.misses += 1
        series = compute()
        self._entries[key] = series
        if len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Chart cache full, evicted {evicted[:60]}")
        return series

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self):
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def stats(self) -> Dict[str, Any]:
        return {
            'size': len(self._entries),
            'keys': list(self._entries.keys()),
            'hits': self.hits,
            'misses': self.misses,
        }


def _points(start: float, stop: float, count: int) -> List[float]:
    if count < 1:
        raise ValueError("Series needs at least one point")
    if count == 1:
        return [start]
    return np.linspace(start, stop, count).tolist()


def generate_rpm_power_series(
        spindle: Spindle,
        point_count: int = RPM_SERIES_POINTS,
        cache: Optional[ChartCache] = None
) -> List[PowerChartPoint]:
    """Available power across the spindle RPM window."""

    def compute():
        return [
            PowerChartPoint(rpm=round(rpm), power_w=round(get_spindle_power_at_rpm(spindle, rpm)))
            for rpm in _points(spindle.rpm_min, spindle.rpm_max, point_count)
        ]

    if cache is None:
        return compute()
    key = make_cache_key('rpm-power', {'spindle': asdict(spindle), 'point_count': point_count})
    return cache.get_or_compute(key, compute)


def generate_deflection_stickout_series(
        tool: Tool,
        force_n: float,
        rpm: float,
        flutes: int,
        min_stickout_mm: Optional[float] = None,
        max_stickout_mm: Optional[float] = None,
        point_count: int = STICKOUT_SERIES_POINTS,
        cache: Optional[ChartCache] = None,
        policy: PolicyConfig = DEFAULT_POLICY
) -> List[DeflectionChartPoint]:
    """
    Static deflection of the tool over a stickout range.

    Defaults: from max(2*D, 10 mm) to 8*D. Static deflection is plotted so
    the curve is monotonic in stickout.
    """
    if min_stickout_mm is None:
        min_stickout_mm = max(tool.diameter_mm * 2, MIN_STICKOUT_MM)
    if max_stickout_mm is None:
        max_stickout_mm = tool.diameter_mm * 8
    if min_stickout_mm <= 0 or max_stickout_mm < min_stickout_mm:
        raise InvalidGeometry(f"Invalid stickout range [{min_stickout_mm}, {max_stickout_mm}]")

    def compute():
        series = []
        for stickout in _points(min_stickout_mm, max_stickout_mm, point_count):
            result = calculate_deflection(
                tool.material, tool.diameter_mm, stickout, force_n, rpm, flutes, policy=policy
            )
            series.append(DeflectionChartPoint(
                stickout_mm=round(stickout, 1),
                deflection_mm=round(result.static.total_mm, 3),
            ))
        return series

    if cache is None:
        return compute()
    key = make_cache_key('deflection-stickout', {
        'tool': asdict(tool),
        'force_n': force_n,
        'rpm': rpm,
        'flutes': flutes,
        'min_stickout_mm': min_stickout_mm,
        'max_stickout_mm': max_stickout_mm,
        'point_count': point_count,
        'holder_compliance_mm_per_n': policy.holder_compliance_mm_per_n,
    })
    return cache.get_or_compute(key, compute)
