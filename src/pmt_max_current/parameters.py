"""
Run parameters: command-line parsing and validation.

Parameters are kept as the strings the operator typed (``"2.75"``,
``"1M"``) because they are echoed verbatim into the experiment record and
passed on to the bench programs.  Only ``testRun`` becomes a ``bool``.

Validation checks are independent; they run in a fixed order and the first
failure wins::

    params = validate_parameters(vconst="2.75", high_volt="900", ...)
"""

from __future__ import annotations

import argparse
import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from .constants import (
    MAX_SERIAL_LENGTH,
    MIN_TIMESTAMP_YEAR,
    NUMBER_PATTERN,
    VALID_BASE_STAGES,
    VALID_CATHODE_CURRENTS,
    VALID_GAINS,
    VALID_TEST_RUN,
)
from .exceptions import ValidationError

logger = logging.getLogger(__name__)

_NUMBER = re.compile(NUMBER_PATTERN)
_TIMESTAMP = re.compile(r"^[0-9]{12}$")

# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RunParameters:
    """Validated parameters for one max anode current run."""

    vconst: str
    high_volt: str
    gain: str
    serial: str
    base: str
    i_cathode: str
    timestamp: str
    test_run: bool
    directory: Optional[str] = None


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _validate_number(value: str) -> None:
    if not _NUMBER.fullmatch(value):
        raise ValidationError(f"Invalid value: {value}")


def _validate_choice(value: str, choices: Sequence[str], label: str) -> None:
    if value not in choices:
        raise ValidationError(
            f"Invalid value for {label}: {value}\n[Options]: {', '.join(choices)}"
        )


def _validate_serial(serial: str) -> None:
    if len(serial) > MAX_SERIAL_LENGTH:
        raise ValidationError(
            f"Invalid value for PMT serial: {serial}\n[Options]: XXX-XXX or XXX-XXXX"
        )


def _validate_timestamp(timestamp: str) -> None:
    """Check a ``YYYYMMDDhhmm`` power-on stamp.

    Upper bounds only: month and day ``00`` pass, and so do impossible
    dates such as 20240231.
    """
    error = ValidationError(f"Invalid value for PMT turned on time stamp: {timestamp}")
    if not _TIMESTAMP.fullmatch(timestamp):
        raise error

    year = int(timestamp[0:4])
    month = int(timestamp[4:6])
    day = int(timestamp[6:8])
    hhmm = int(timestamp[8:12])
    hour = int(timestamp[8:10])
    minute = int(timestamp[10:12])

    if (
        year < MIN_TIMESTAMP_YEAR
        or month > 12
        or day > 31
        or hhmm > 2359
        or hour > 23
        or minute > 59
    ):
        raise error


def validate_parameters(
    vconst: Optional[str],
    high_volt: Optional[str],
    gain: Optional[str],
    serial: Optional[str],
    base: Optional[str],
    i_cathode: Optional[str],
    timestamp: Optional[str],
    test_run: Optional[str],
    directory: Optional[str] = None,
) -> RunParameters:
    """Validate raw flag values and return :class:`RunParameters`.

    Raises:
        ValidationError: On the first failing check.
    """
    required = {
        "vconst": vconst,
        "highVolt": high_volt,
        "gain": gain,
        "serial": serial,
        "base": base,
        "Icathode": i_cathode,
        "timeStamp": timestamp,
        "testRun": test_run,
    }
    missing = [name for name, value in required.items() if not value]
    if missing:
        raise ValidationError(f"Missing required options: {', '.join(missing)}")

    assert vconst and high_volt and gain and serial and base  # for type-checker
    assert i_cathode and timestamp and test_run

    for value in (vconst, high_volt, base, i_cathode):
        _validate_number(value)

    _validate_choice(test_run, VALID_TEST_RUN, "testRun")
    _validate_choice(i_cathode, VALID_CATHODE_CURRENTS, "cathode current")
    _validate_choice(gain, VALID_GAINS, "preamp gain")
    _validate_serial(serial)
    _validate_choice(base, VALID_BASE_STAGES, "number of stages in the base")
    _validate_timestamp(timestamp)

    return RunParameters(
        vconst=vconst,
        high_volt=high_volt,
        gain=gain,
        serial=serial,
        base=base,
        i_cathode=i_cathode,
        timestamp=timestamp,
        test_run=test_run == "true",
        directory=directory or None,
    )


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------


class UsageParser(argparse.ArgumentParser):
    """Argument parser that raises instead of exiting.

    The CLI decides how to report the problem (usage on stdout, status 1)
    so nothing here calls :func:`sys.exit`.
    """

    def error(self, message: str) -> None:  # type: ignore[override]
        raise ValidationError(message)


def build_parser(prog: Optional[str] = None) -> UsageParser:
    """Return the parser for the max anode current test flags."""
    parser = UsageParser(
        prog=prog,
        description="Max anode current measurement of a PMT at a constant LED voltage.",
        epilog=(
            "The open filter position (12) gives the max anode current and the "
            "blackout position (9) the pedestal."
        ),
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-vc", "--vconst", dest="vconst", metavar="VOLTAGE", help="Constant LED voltage (0-5)V."
    )
    parser.add_argument(
        "-hv", "--highVolt", dest="high_volt", metavar="VOLTAGE", help="PMT high voltage (0-1000)V"
    )
    parser.add_argument(
        "-g",
        "--gain",
        dest="gain",
        metavar="GAIN",
        help=f"Pre-amp gain setting ({', '.join(VALID_GAINS)})",
    )
    parser.add_argument("-s", "--serial", dest="serial", metavar="SERIAL", help="PMT serial number")
    parser.add_argument(
        "-b",
        "--base",
        dest="base",
        metavar="STAGES",
        help=f"Number of stages in the base ({', '.join(VALID_BASE_STAGES)})",
    )
    parser.add_argument(
        "-Ic",
        "--Icathode",
        dest="i_cathode",
        metavar="NA",
        help="Cathode current at max brightness (100%% light transmission)",
    )
    parser.add_argument(
        "-ts",
        "--timeStamp",
        dest="timestamp",
        metavar="YYYYMMDDhhmm",
        help="Time stamp of PMT powered on time (YYYYMMDDhhmm)",
    )
    parser.add_argument(
        "-tr", "--testRun", dest="test_run", metavar="BOOL", help="Test run or not (true,false)"
    )
    parser.add_argument(
        "-d",
        "--dir",
        dest="directory",
        metavar="DIR",
        help="[Optional] Data directory name. Will create a folder DIR inside the base directory",
    )
    parser.add_argument(
        "--config", dest="config", metavar="PATH", help="[Optional] Station config YAML file"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log every command and its output"
    )
    parser.add_argument("-h", "--help", action="store_true", help="Show this message and exit")
    return parser


def parse_args(argv: Sequence[str], prog: Optional[str] = None) -> argparse.Namespace:
    """Parse *argv* into a namespace of raw strings.

    Raises:
        ValidationError: On an unknown flag or a flag without a value.
    """
    args = build_parser(prog).parse_args(list(argv))
    logger.debug("Parsed arguments: %s", vars(args))
    return args


def parameters_from_args(args: argparse.Namespace) -> RunParameters:
    """Validate a parsed namespace (see :func:`validate_parameters`)."""
    return validate_parameters(
        vconst=args.vconst,
        high_volt=args.high_volt,
        gain=args.gain,
        serial=args.serial,
        base=args.base,
        i_cathode=args.i_cathode,
        timestamp=args.timestamp,
        test_run=args.test_run,
        directory=args.directory,
    )
