"""
Tabulated lookups shared by the chipload table and the spindle power curve.

A table is a sequence of (key, values) pairs sorted by key. Resolution:
exact key returns the tabulated values untouched, keys outside the table
clamp to the nearest end, anything in between is linearly interpolated.
"""
from typing import Sequence, Tuple

import numpy as np


def clamp(x: float, lower: float, upper: float) -> float:
    return min(upper, max(lower, x))


def lookup_table(table: Sequence[Tuple[float, Sequence[float]]], x: float) -> Tuple[float, ...]:
    """
    Resolve `x` against a sorted (key, values) table.

    Raises:
        ValueError: the table is empty.
    """
    if not table:
        raise ValueError("Lookup table is empty")

    for key, values in table:
        if key == x:
            return tuple(float(v) for v in values)

    keys = np.array([key for key, _ in table], dtype=float)
    columns = np.array([list(values) for _, values in table], dtype=float)

    # np.interp holds the end values outside [keys[0], keys[-1]]
    return tuple(float(np.interp(x, keys, columns[:, i])) for i in range(columns.shape[1]))
