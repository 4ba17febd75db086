"""CLI tool for checking unsat-core track answers."""

import argparse
import logging
import sys
from pathlib import Path

from corecheck import CORECHECK_DEBUG
from corecheck.global_params import global_config
from corecheck.logics import LogicPolicyTable
from corecheck.pipeline import UnsatCorePipeline
from corecheck.scrambler import CoreReconstructor
from corecheck.utils.exceptions import CorecheckException
from corecheck.validation import ValidationOrchestrator


def _configure_tools(args) -> None:
    if args.scrambler:
        global_config.set_tool_path("scrambler", args.scrambler)
    for entry in args.solver_path or []:
        name, sep, path = entry.partition("=")
        if not sep:
            raise ValueError(f"Expected NAME=PATH, got {entry!r}")
        global_config.set_tool_path(name, path)
    if args.kill_after is not None:
        global_config.kill_after = args.kill_after
    if args.timeout is not None:
        global_config.validation_timeout = args.timeout


def build_pipeline(args) -> UnsatCorePipeline:
    table = LogicPolicyTable.from_json(args.logic_table) if args.logic_table else None
    return UnsatCorePipeline(
        reconstructor=CoreReconstructor(timeout=args.scrambler_timeout),
        orchestrator=ValidationOrchestrator(jobs=args.jobs),
        table=table,
        keep_workdir=args.keep_workdir,
    )


def main(argv=None) -> int:
    """Main entry point for the unsat-core post-processor."""
    parser = argparse.ArgumentParser(
        description="Validate the unsat core returned by a solver and report "
                    "the reduction it achieves",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("transcript", type=str, help="Solver output file")
    parser.add_argument("benchmark", type=str, help="Original benchmark (.smt2)")
    parser.add_argument("--scrambler", type=str, help="Path to the scrambler executable")
    parser.add_argument(
        "--solver-path", action="append", metavar="NAME=PATH",
        help="Path of a validation solver (z3, cvc5, mathsat); repeatable"
    )
    parser.add_argument(
        "--logic-table", type=str,
        help="JSON file mapping logics to validation solvers (default: built-in table)"
    )
    parser.add_argument(
        "--timeout", type=float,
        help=f"Wall-clock budget per validator in seconds (default: {global_config.validation_timeout:g})"
    )
    parser.add_argument(
        "--kill-after", type=float,
        help=f"Grace period before a timed-out validator is killed (default: {global_config.kill_after:g})"
    )
    parser.add_argument(
        "--scrambler-timeout", type=float,
        help=f"Time budget for the scrambler (default: {global_config.scrambler_timeout:g})"
    )
    parser.add_argument(
        "--jobs", type=int, default=1,
        help="Number of validators to run concurrently (default: 1)"
    )
    parser.add_argument("--output", type=str, help="Write the report to this file")
    parser.add_argument(
        "--keep-workdir", action="store_true",
        help="Keep the temporary directory with the reduced benchmark"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="DEBUG" if CORECHECK_DEBUG else "WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    for path in (args.transcript, args.benchmark):
        if not Path(path).exists():
            print(f"Error: File not found: {path}", file=sys.stderr)
            return 1

    try:
        _configure_tools(args)
        report = build_pipeline(args).process_files(args.transcript, args.benchmark)
    except (CorecheckException, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(report.to_text())
    else:
        sys.stdout.write(report.to_text())
    return 0


if __name__ == "__main__":
    sys.exit(main())
