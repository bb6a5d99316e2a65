"""
Policy constants for advisory warnings and physical defaults.

Defaults live in `PolicyConfig`; a YAML file can override any field:

    MILLCALC_POLICY_FILE=policy.yaml

    # policy.yaml
    stickout_ld_warning: 5.0
    deflection_danger_mm: 0.04
"""
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional, Union

import yaml
from dotenv import load_dotenv

from millcalc.core.errors import ConfigError

logger = logging.getLogger(__name__)

POLICY_ENV_VAR = "MILLCALC_POLICY_FILE"
LIBRARY_ENV_VAR = "MILLCALC_LIBRARY_FILE"


@dataclass(frozen=True)
class PolicyConfig:
    """Thresholds used by the validator and the pipeline stages."""
    # Request advisories
    aggressiveness_min: float = 0.1
    aggressiveness_max: float = 3.0
    doc_warning_ratio: float = 1.0  # of the recommended maximum DOC
    doc_danger_ratio: float = 1.0  # of the tool diameter
    woc_warning_ratio: float = 1.0  # of the tool diameter
    stickout_ld_warning: float = 6.0
    stickout_ld_danger: float = 10.0
    max_practical_flutes: int = 10

    # Chipload band around the material table
    chipload_low_factor: float = 0.5
    chipload_high_factor: float = 1.5

    # Power
    mechanical_efficiency: float = 0.85

    # Force per mm of diameter, N/mm
    force_warning_n_per_mm: float = 300.0
    force_danger_n_per_mm: float = 500.0

    # Deflection
    deflection_warning_mm: float = 0.02
    deflection_danger_mm: float = 0.05
    holder_compliance_mm_per_n: float = 0.002


DEFAULT_POLICY = PolicyConfig()


def _policy_path(path: Optional[Union[str, Path]]) -> Optional[Path]:
    if path is not None:
        return Path(path)
    load_dotenv()
    env_path = os.getenv(POLICY_ENV_VAR)
    return Path(env_path) if env_path else None


def load_policy(path: Optional[Union[str, Path]] = None) -> PolicyConfig:
    """Load policy overrides from YAML; defaults when no file is configured."""
    policy_file = _policy_path(path)
    if policy_file is None:
        return DEFAULT_POLICY

    try:
        with open(policy_file, 'r', encoding='utf-8') as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Cannot read policy file {policy_file}: {e}", exc_info=True)
        raise ConfigError(f"Cannot read policy file {policy_file}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Policy file {policy_file} must contain a mapping")

    known = {f.name for f in fields(PolicyConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Unknown policy keys: {', '.join(unknown)}")

    overrides = {}
    for key, value in raw.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"Policy value '{key}' must be a number, got {value!r}")
        overrides[key] = int(value) if key == 'max_practical_flutes' else float(value)

    logger.info(f"Loaded {len(overrides)} policy overrides from {policy_file}")
    return replace(DEFAULT_POLICY, **overrides)
