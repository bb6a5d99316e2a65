"""
Command-line front end.

    millcalc --material aluminum_6061 --machine printnc_standard \
             --spindle vfd_2_2kw --tool endmill_6mm_3f --cut-type profile

    millcalc optimize --target 0.02 --force 150 --rpm 18000 --flutes 3
"""
import argparse
import json
import logging
import sys
from dataclasses import asdict
from typing import List, Optional

from millcalc.config import load_policy
from millcalc.core.calculator import calculate, format_output_for_user
from millcalc.core.errors import CalculationError, ConfigError, InputValidationError
from millcalc.core.optimizer import (
    OptimizationConfig,
    DEFAULT_DIAMETER_RANGE_MM,
    DEFAULT_STICKOUT_RANGE_MM,
    suggest_tools_for_target_deflection,
)
from millcalc.domain.library import load_library
from millcalc.domain.models import Inputs, CutType

logger = logging.getLogger(__name__)

EXIT_ERROR = 2
OPTIMIZE_DEFAULT_FLUTES = 2


def _add_common_args(parser: argparse.ArgumentParser, suppress_defaults: bool = False):
    # a subcommand must not overwrite options already given before it
    defaults = {"default": argparse.SUPPRESS} if suppress_defaults else {}
    parser.add_argument("--policy", help="YAML file with policy overrides", **defaults)
    parser.add_argument("--json", action="store_true", help="print JSON instead of text", **defaults)
    parser.add_argument("-v", "--verbose", action="count", **(defaults or {"default": 0}))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="millcalc", description="CNC milling cutting parameter calculator")
    parser.add_argument("--library", help="reference library YAML")
    _add_common_args(parser)
    parser.add_argument("--material")
    parser.add_argument("--machine")
    parser.add_argument("--spindle")
    parser.add_argument("--tool")
    parser.add_argument("--cut-type", default=CutType.PROFILE.value, choices=[c.value for c in CutType])
    parser.add_argument("--aggressiveness", type=float, default=1.0)
    parser.add_argument("--doc", type=float, help="depth of cut override, mm")
    parser.add_argument("--woc", type=float, help="width of cut override, mm")
    parser.add_argument("--flutes", type=int, help="flute count override")
    parser.add_argument("--stickout", type=float, help="stickout override, mm")

    subparsers = parser.add_subparsers(dest="command")
    optimize = subparsers.add_parser("optimize", help="suggest diameter/stickout for a target deflection")
    _add_common_args(optimize, suppress_defaults=True)
    optimize.add_argument("--target", type=float, required=True, help="target deflection, mm")
    optimize.add_argument("--force", type=float, required=True, help="cutting force, N")
    optimize.add_argument("--rpm", type=float, required=True)
    optimize.add_argument("--flutes", type=int, default=argparse.SUPPRESS,
                          help=f"effective flutes (default {OPTIMIZE_DEFAULT_FLUTES})")
    optimize.add_argument("--diameter-range", type=float, nargs=2, default=list(DEFAULT_DIAMETER_RANGE_MM),
                          metavar=("MIN", "MAX"))
    optimize.add_argument("--stickout-range", type=float, nargs=2, default=list(DEFAULT_STICKOUT_RANGE_MM),
                          metavar=("MIN", "MAX"))
    optimize.add_argument("--top", type=int, default=5)
    return parser


def _setup_logging(verbosity: int):
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)]
    )


def run_calculate(args) -> int:
    missing = [name for name in ("material", "machine", "spindle", "tool") if not getattr(args, name)]
    if missing:
        print(f"Missing required options: {', '.join('--' + m for m in missing)}", file=sys.stderr)
        return EXIT_ERROR

    library = load_library(args.library)
    policy = load_policy(args.policy)
    inputs = Inputs(
        material_id=args.material,
        machine_id=args.machine,
        spindle_id=args.spindle,
        tool_id=args.tool,
        cut_type=args.cut_type,
        aggressiveness=args.aggressiveness,
        user_doc_mm=args.doc,
        user_woc_mm=args.woc,
        override_flutes=args.flutes,
        override_stickout_mm=args.stickout,
    )
    output = calculate(inputs, library, policy)

    if args.json:
        print(json.dumps(output.to_dict(), indent=2))
    else:
        print(format_output_for_user(output))
    return 0


def run_optimize(args) -> int:
    policy = load_policy(args.policy)
    config = OptimizationConfig(
        target_deflection_mm=args.target,
        force_n=args.force,
        rpm=args.rpm,
        effective_flutes=args.flutes if args.flutes is not None else OPTIMIZE_DEFAULT_FLUTES,
        diameter_range_mm=tuple(args.diameter_range),
        stickout_range_mm=tuple(args.stickout_range),
        max_suggestions=args.top,
    )
    result = suggest_tools_for_target_deflection(config, policy)

    if args.json:
        print(json.dumps(asdict(result), indent=2))
        return 0

    print(f"Target deflection {result.target_deflection_mm} mm "
          f"({result.total_evaluations} configurations evaluated)")
    for i, s in enumerate(result.suggestions, 1):
        flag = "ok" if s.is_within_tolerance else "  "
        print(f"  {i}. D {s.diameter_mm:.2f} mm  L {s.stickout_mm:.1f} mm  "
              f"-> {s.predicted_deflection_mm:.4f} mm ({s.relative_error_percent:+.1f}%) {flag}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    try:
        if args.command == "optimize":
            return run_optimize(args)
        return run_calculate(args)
    except InputValidationError as e:
        for error in e.errors:
            print(f"error: {error['field']}: {error['message']}", file=sys.stderr)
        return EXIT_ERROR
    except (CalculationError, ConfigError) as e:
        logger.debug("Calculation failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
