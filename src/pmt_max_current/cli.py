"""
Command line entry point for the max anode current test.

Usage:
    max-anode-current-test -vc 2.75 -hv 900 -g 100k -s AB-1234 -b 4 \\
        -Ic 12 -ts 202406101530 -tr false [-d batch_07] [--config station.yaml]

Exit status: 0 on success, 1 on any failure, 2 or 3 when the analysis
program reports one of its own soft outcomes.
"""

from __future__ import annotations

import logging
import sys
import time
from typing import Optional, Sequence

from . import __version__
from .config import StationConfig, load_config
from .constants import EXIT_FAILURE, MEASUREMENT_POSITIONS
from .exceptions import AnalysisError, PMTTestError, ValidationError
from .instruments import InstrumentController, ScriptInstruments
from .measurement import MaxAnodeCurrentRun, RunContext
from .parameters import build_parser, parameters_from_args, parse_args

logger = logging.getLogger(__name__)

PROG = "max-anode-current-test"

# ---------------------------------------------------------------------------
# Terminal helpers
# ---------------------------------------------------------------------------


class C:
    """ANSI color codes (no-op on non-TTY)."""

    if sys.stdout.isatty():
        BOLD = "\033[1m"
        DIM = "\033[2m"
        GREEN = "\033[32m"
        YELLOW = "\033[33m"
        RED = "\033[31m"
        RESET = "\033[0m"
    else:
        BOLD = DIM = GREEN = YELLOW = RED = RESET = ""


def banner(text: str) -> None:
    print(f"\n{C.BOLD}{'═' * 60}")
    print(f"  {text}")
    print(f"{'═' * 60}{C.RESET}")


def ok(text: str) -> None:
    print(f"  {C.GREEN}✓{C.RESET} {text}")


def warn(text: str) -> None:
    print(f"  {C.YELLOW}⚠{C.RESET} {text}")


def fail(text: str) -> None:
    print(f"  {C.RED}✗{C.RESET} {text}")


def usage() -> None:
    """Print the usage text to stdout."""
    print()
    print("------------------------------------------")
    print("|  Max anode current measurement : Usage  |")
    print("------------------------------------------")
    print(f"Version: {__version__}")
    print()
    print(build_parser(PROG).format_help())


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def run_test(run: MaxAnodeCurrentRun) -> int:
    """Run the measurement with operator banners between the steps."""
    banner("Recording max anode current data")
    reading = run.set_led()
    print(reading.raw.rstrip("\n"))
    ok(f"LED set: PMT current {reading.pmt_current} mA, LED current {reading.led_current} mA")

    run.assign_run_dir()
    for position in MEASUREMENT_POSITIONS:
        print(f"  [Wait]: Setting filter position {position} and running CMData")
        target = run.record_position(position)
        ok(f"[Record Saving]: filter position {position} -> {target}")
    run_dir = run.finish_record()

    run.archive()
    banner("Record End")
    print(f"  Total records:  {len(run.ctx.recorded)} filter positions")
    print(f"  Data dir:       {run_dir}")
    print(f"  Time elapsed:   {run.ctx.record_seconds} seconds")

    banner("Calculating the max anode current")
    status = run.analyze()
    if status:
        warn(f"Analysis finished with status {status}")
    else:
        ok("Analysis complete")
    return status


def main(
    argv: Optional[Sequence[str]] = None,
    instruments: Optional[InstrumentController] = None,
) -> int:
    """Parse *argv*, run the test, and return the process exit status.

    Args:
        argv: Command line without the program name (``sys.argv[1:]`` by default).
        instruments: Bench to drive; built from the station config by default.
    """
    started_at = time.monotonic()
    argv = sys.argv[1:] if argv is None else argv

    try:
        args = parse_args(argv, prog=PROG)
    except ValidationError as exc:
        print(f"[ERROR] {exc}")
        usage()
        return EXIT_FAILURE

    if args.help:
        usage()
        return EXIT_FAILURE

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        params = parameters_from_args(args)
    except ValidationError as exc:
        print(f"[ERROR] {exc}")
        usage()
        return EXIT_FAILURE

    try:
        config = load_config(args.config) if args.config else StationConfig()
    except (FileNotFoundError, ValidationError) as exc:
        print(f"[ERROR] {exc}")
        return EXIT_FAILURE

    if instruments is None:
        instruments = ScriptInstruments(config)
    run = MaxAnodeCurrentRun(
        instruments, params, config, RunContext(params, config, started_at=started_at)
    )
    logger.info(
        "Max anode current test for %s at positions %s", params.serial, MEASUREMENT_POSITIONS
    )

    try:
        return run_test(run)
    except AnalysisError as exc:
        fail(f"[ERROR]: {exc}")
        return exc.exit_code
    except PMTTestError as exc:
        fail(f"[Recording Failed] {exc}")
        return exc.exit_code


def entry_point() -> None:
    """Console-script wrapper around :func:`main`."""
    sys.exit(main())


if __name__ == "__main__":
    entry_point()
