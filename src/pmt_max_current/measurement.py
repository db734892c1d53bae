"""
Max anode current measurement sequence.

Sets the LED, records the open (12) and blackout (9) filter positions,
archives the output into a timestamped run directory, appends the
experiment record and hands the directory to the analysis programs::

    from pmt_max_current.measurement import MaxAnodeCurrentRun

    run = MaxAnodeCurrentRun(ScriptInstruments(config), params, config)
    exit_code = run.run()

The individual steps are public so the CLI can print its banners between
them.  Nothing is rolled back on failure; a half-filled run directory
stays on disk.
"""

from __future__ import annotations

import logging
import shutil
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config import StationConfig
from .constants import (
    ANALYSIS_PASSTHROUGH_CODES,
    EXIT_OK,
    FILTER_ORDER,
    MEASUREMENT_POSITIONS,
    PARK_POSITION,
    RUN_STAMP_FORMAT,
)
from .exceptions import AcquisitionError, AnalysisError
from .instruments import InstrumentController, PowerSupplyReading
from .parameters import RunParameters

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Run directory & record
# ---------------------------------------------------------------------------


def filter_label(position: int) -> str:
    """Return the record name for filter slot *position* (1-12)."""
    if not 1 <= position <= len(FILTER_ORDER):
        raise ValueError(f"Filter position must be 1-{len(FILTER_ORDER)}, got {position}")
    return FILTER_ORDER[position - 1]


def build_run_dir(
    root: Path, serial: str, directory: Optional[str], when: datetime
) -> Path:
    """Return ``<root>/[<directory>/]<serial>/<YYYYMMDDHHMM>``."""
    path = Path(root)
    if directory:
        path = path / directory
    return path / serial / when.strftime(RUN_STAMP_FORMAT)


def format_experiment_record(
    params: RunParameters, reading: PowerSupplyReading, elapsed_s: int
) -> str:
    """Render the ``key=value`` experiment record for one run."""
    fields = [
        ("Filter_Order", ",".join(FILTER_ORDER)),
        ("Test_Run", "true" if params.test_run else "false"),
        ("PMT_Power_On_Timestamp(DateTime)", params.timestamp),
        ("PMT_Current(mA)", reading.pmt_current),
        ("PMT_Base_Stages", params.base),
        ("PMT_Serial", params.serial),
        ("Constant_LED(V)", params.vconst),
        ("Constant_LED(mA)", reading.led_current),
        ("PMT_high_voltage(V)", params.high_volt),
        ("Preamp_gain(Ohm)", params.gain),
        ("Cathode_Current_at_max_brightness(nA)", params.i_cathode),
        ("Record_Time(s)", str(elapsed_s)),
    ]
    return "".join(f"{key}={value}\n" for key, value in fields)


def append_experiment_record(path: Path, record: str) -> None:
    """Append *record* to *path*, keeping whatever is already there."""
    with open(path, "a") as f:
        f.write(record)
    logger.info("Experiment record appended to %s", path)


def map_analysis_status(status: int) -> int:
    """Turn the analyzer's exit code into this run's exit code.

    Codes other than 0-3 are logged and treated as success.

    Raises:
        AnalysisError: If the analyzer reports failure (1).
    """
    if status == 0:
        return EXIT_OK
    if status in ANALYSIS_PASSTHROUGH_CODES:
        logger.warning("Analysis finished with status %d", status)
        return status
    if status == 1:
        raise AnalysisError("Analysis failed")
    logger.warning("Analysis exited with unexpected status %d; treating as success", status)
    return EXIT_OK


# ---------------------------------------------------------------------------
# Run state
# ---------------------------------------------------------------------------


@dataclass
class RunContext:
    """Mutable state of one run, threaded through every step."""

    params: RunParameters
    config: StationConfig
    started_at: float = field(default_factory=time.monotonic)
    run_dir: Optional[Path] = None
    directory_created: bool = False
    reading: Optional[PowerSupplyReading] = None
    recorded: list[int] = field(default_factory=list)
    record_seconds: Optional[int] = None

    @property
    def elapsed_seconds(self) -> int:
        """Whole seconds since the run started."""
        return int(time.monotonic() - self.started_at)

    def require_run_dir(self) -> Path:
        """Return the run directory path or raise if it was never assigned."""
        if self.run_dir is None:
            raise RuntimeError("Run directory not assigned; call record() first.")
        return self.run_dir

    def ensure_run_dir(self) -> Path:
        """Create the run directory on first use; later calls reuse it."""
        run_dir = self.require_run_dir()
        if not self.directory_created:
            logger.info("Creating data directory: %s", run_dir)
            run_dir.mkdir(parents=True, exist_ok=True)
            self.directory_created = True
        return run_dir


# ---------------------------------------------------------------------------
# Sequence
# ---------------------------------------------------------------------------


class MaxAnodeCurrentRun:
    """One max anode current measurement on one PMT.

    Args:
        instruments: The bench, real or fake.
        params: Validated run parameters.
        config: Station layout.
        context: Existing run state; a fresh one (clock started now) by default.
    """

    def __init__(
        self,
        instruments: InstrumentController,
        params: RunParameters,
        config: StationConfig,
        context: Optional[RunContext] = None,
    ) -> None:
        self.instruments = instruments
        self.params = params
        self.config = config
        self.ctx = context if context is not None else RunContext(params, config)

    # -- Steps --------------------------------------------------------------

    def set_led(self) -> PowerSupplyReading:
        """Set the constant LED voltage and keep the supply's readback."""
        reading = self.instruments.set_voltage(self.params.vconst)
        logger.info(
            "PMT current %s mA, LED current %s mA", reading.pmt_current, reading.led_current
        )
        self.ctx.reading = reading
        return reading

    def record(self, now: Optional[datetime] = None) -> Path:
        """Record every measurement position, then park the filter.

        Returns:
            The run directory.
        """
        self.assign_run_dir(now)
        for position in MEASUREMENT_POSITIONS:
            self.record_position(position)
        return self.finish_record()

    def assign_run_dir(self, now: Optional[datetime] = None) -> Path:
        """Stamp the run directory path with *now* (wall-clock time by default).

        Only the first call picks the path; the directory is created later,
        by the first :meth:`record_position`.
        """
        if self.ctx.run_dir is None:
            self.ctx.run_dir = build_run_dir(
                self.config.run_root,
                self.params.serial,
                self.params.directory,
                now or datetime.now(),
            )
        return self.ctx.run_dir

    def finish_record(self) -> Path:
        """Park the filter and copy the settings next to the data."""
        self.instruments.set_filter_position(PARK_POSITION)
        self.copy_settings()
        return self.ctx.require_run_dir()

    def record_position(self, position: int) -> Path:
        """Move to *position*, acquire, and file the output under its filter label."""
        logger.info("Starting a new record | Filter position %d", position)
        self.instruments.set_filter_position(position)
        self.instruments.run_acquisition()
        self._remove_artifacts()

        run_dir = self.ctx.ensure_run_dir()
        source = self.config.work_path / self.config.acquisition_output
        if not source.is_file():
            raise AcquisitionError(
                f"Acquisition output {source} not found after filter position {position}"
            )
        target = run_dir / f"{filter_label(position)}{source.suffix}"
        logger.info("Moving %s to %s", source, target)
        shutil.move(str(source), str(target))
        self.ctx.recorded.append(position)

        if self.config.settle_seconds:
            time.sleep(self.config.settle_seconds)
        return target

    def copy_settings(self) -> None:
        """Copy the acquisition settings file into the run directory."""
        source = self.config.work_path / self.config.settings_file
        run_dir = self.ctx.ensure_run_dir()
        if not source.is_file():
            logger.warning("Settings file %s not found; not copied", source)
            return
        shutil.copy(source, run_dir)

    def archive(self) -> Path:
        """Append the experiment record for this run; return its path.

        The elapsed time written as ``Record_Time(s)`` is kept in
        ``ctx.record_seconds``.
        """
        if self.ctx.reading is None:
            raise RuntimeError("No power supply reading; call set_led() first.")
        path = self.ctx.ensure_run_dir() / self.config.record_file
        elapsed = self.ctx.record_seconds = self.ctx.elapsed_seconds
        append_experiment_record(
            path, format_experiment_record(self.params, self.ctx.reading, elapsed)
        )
        logger.info(
            "Record end: %d filter positions, data dir %s, %d s",
            len(self.ctx.recorded),
            self.ctx.run_dir,
            elapsed,
        )
        return path

    def analyze(self) -> int:
        """Read the temperature, run the analysis, and return the exit code."""
        run_dir = self.ctx.require_run_dir()
        self.instruments.read_temperature(run_dir)
        return map_analysis_status(self.instruments.analyze(run_dir))

    def run(self, now: Optional[datetime] = None) -> int:
        """Run every step in order and return the process exit code."""
        self.set_led()
        self.record(now)
        self.archive()
        return self.analyze()

    # -- Internal -----------------------------------------------------------

    def _remove_artifacts(self) -> None:
        for pattern in self.config.artifact_patterns:
            for path in self.config.work_path.glob(pattern):
                if path.is_file():
                    logger.debug("Removing %s", path)
                    path.unlink()
