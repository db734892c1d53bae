"""
Instrument commands for the max anode current test bench.

The bench is driven entirely by external programs: a power supply
controller, a filter wheel controller, the ``CMData`` acquisition binary,
a temperature reader and the max anode current analyzer.  This module
knows how to:

* build the command line for each of them,
* decide whether a finished program succeeded,
* parse the power supply's output line into typed values.

The orchestration in :mod:`~pmt_max_current.measurement` only talks to the
:class:`InstrumentController` interface, so it can be exercised with a fake.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from .config import StationConfig
from .constants import LED_CURRENT_TOKEN, PMT_CURRENT_TOKEN, POWER_SUPPLY_REFERENCE
from .exceptions import InstrumentError
from .runner import ProcessRunner

logger = logging.getLogger(__name__)

# Commas and runs of spaces both separate fields; spaces around a comma are absorbed
_TOKEN_SPLIT = re.compile(r" *, *| +")

# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PowerSupplyReading:
    """Currents reported by the power supply program after setting the LED.

    Attributes:
        pmt_current: PMT base current draw (mA), as printed.
        led_current: Constant LED current draw (mA), as printed.
        raw: The program's complete stdout.
    """

    pmt_current: str
    led_current: str
    raw: str = ""

    @classmethod
    def from_output(cls, output: str) -> PowerSupplyReading:
        """Parse the power supply program's stdout.

        Only the first line is read.  It is split on commas and spaces and
        the fields at fixed positions are picked out::

            <..> <..> <..> <..> <..> <I_PMT> <..> ... <..> <I_LED> ...
                                     ^ index 5              ^ index 13

        Raises:
            InstrumentError: If the line has too few fields.
        """
        lines = output.splitlines()
        first = lines[0].strip(" ") if lines else ""
        tokens = _TOKEN_SPLIT.split(first) if first else []
        if tokens and tokens[-1] == "":
            tokens.pop()

        needed = max(PMT_CURRENT_TOKEN, LED_CURRENT_TOKEN) + 1
        if len(tokens) < needed:
            raise InstrumentError(
                f"Cannot parse power supply output: expected at least {needed} fields, "
                f"got {len(tokens)}: {first!r}"
            )
        return cls(tokens[PMT_CURRENT_TOKEN], tokens[LED_CURRENT_TOKEN], output)


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


@runtime_checkable
class InstrumentController(Protocol):
    """Everything the measurement sequence needs from the test bench."""

    def set_voltage(self, vconst: str) -> PowerSupplyReading:
        """Set the constant LED voltage and return the supply's readback."""
        ...

    def set_filter_position(self, position: int) -> None:
        """Move the filter wheel to *position* (1-12)."""
        ...

    def run_acquisition(self) -> None:
        """Record one acquisition at the current filter position."""
        ...

    def read_temperature(self, run_dir: Path) -> None:
        """Record the bench temperature into *run_dir*."""
        ...

    def analyze(self, run_dir: Path) -> int:
        """Run the max anode current analysis on *run_dir*; return its exit code."""
        ...


# ---------------------------------------------------------------------------
# Script-backed implementation
# ---------------------------------------------------------------------------


class ScriptInstruments:
    """Drives the bench by running its control programs.

    Args:
        config: Station layout naming the programs.
        runner: Process runner to use.  Defaults to one rooted at
            ``config.work_dir``.
    """

    def __init__(self, config: StationConfig, runner: ProcessRunner | None = None) -> None:
        self.config = config
        self._runner = runner if runner is not None else ProcessRunner(config.work_path)

    # -- Helpers ------------------------------------------------------------

    def _script(self, script: str, *args: str) -> list[str]:
        return [self.config.python, script, *args]

    # -- Power supply -------------------------------------------------------

    def set_voltage(self, vconst: str) -> PowerSupplyReading:
        """Set the LED voltage through the power supply program.

        Raises:
            InstrumentError: If the program fails or its output is unreadable.
        """
        logger.info("Setting constant LED voltage to %s V", vconst)
        result = self._runner.run(
            self._script(self.config.power_supply_script, "-v", vconst, POWER_SUPPLY_REFERENCE)
        )
        if not result.ok:
            raise InstrumentError(f"Power supply failed (exit {result.returncode})")
        logger.info("Power supply: %s", result.stdout.rstrip())
        return PowerSupplyReading.from_output(result.stdout)

    # -- Filter wheel -------------------------------------------------------

    def set_filter_position(self, position: int) -> None:
        """Move the filter wheel.

        Raises:
            InstrumentError: If the filter program reports failure.
        """
        logger.info("Setting filter position: %d", position)
        result = self._runner.run(
            self._script(self.config.filter_script, "-c", "setPosition", str(position))
        )
        if not result.ok:
            raise InstrumentError(
                f"Moving filter into position {position} failed (exit {result.returncode})"
            )

    # -- Acquisition --------------------------------------------------------

    def run_acquisition(self) -> None:
        """Run the acquisition binary.  Its exit status is logged, not checked."""
        logger.info("Running %s", self.config.acquisition_binary)
        result = self._runner.run([self.config.acquisition_binary], capture=False)
        if not result.ok:
            logger.warning(
                "%s exited with status %d", self.config.acquisition_binary, result.returncode
            )

    # -- Analysis -----------------------------------------------------------

    def read_temperature(self, run_dir: Path) -> None:
        """Run the temperature reader.  Its outcome does not affect the run."""
        result = self._runner.run(
            self._script(self.config.temperature_script, str(Path(run_dir).resolve())),
            capture=False,
        )
        if not result.ok:
            logger.warning("Temperature reader exited with status %d", result.returncode)

    def analyze(self, run_dir: Path) -> int:
        """Run the max anode current analyzer and return its exit code."""
        result = self._runner.run(
            self._script(self.config.analysis_script, str(Path(run_dir).resolve())),
            capture=False,
        )
        logger.info("Analysis exited with status %d", result.returncode)
        return result.returncode
