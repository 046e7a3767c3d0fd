#!/usr/bin/env python3
"""
Command-line entry point for FIFO vs GA comparison runs.

Usage:
    python3 amr_cli.py examples/compare_run.yaml
    python3 amr_cli.py --config examples/csv_run.yaml --overwrite --no-plots
"""

import argparse
import sys
from pathlib import Path

# Allow running from a source checkout without installing
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compare FIFO and GA schedules for one AMR task set")
    parser.add_argument("run_config", nargs="?", help="Path to the run configuration YAML")
    parser.add_argument("--config", dest="config_flag", help="Path to the run configuration YAML")
    parser.add_argument("--output", type=str, help="Override output.root from the config")
    parser.add_argument("--overwrite", action='store_true', help="Overwrite an existing output directory")
    parser.add_argument("--plots", dest="plots", action='store_true', default=None,
                        help="Write convergence, comparison and route plots")
    parser.add_argument("--no-plots", dest="plots", action='store_false',
                        help="Skip plot generation")
    return parser


def output_overrides(args: argparse.Namespace) -> dict:
    """Collect the output.* settings given on the command line"""
    overrides = {}
    if args.output:
        overrides['root'] = args.output
    if args.overwrite:
        overrides['overwrite'] = True
    if args.plots is not None:
        overrides['plots'] = args.plots
    return overrides


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config_path = args.config_flag or args.run_config
    if not config_path:
        parser.print_help()
        return 1

    from amr_sched.cli import run_from_config
    try:
        run_from_config(config_path, output_overrides(args))
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 1
    except Exception as e:
        print(f"\nError: {e}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
