"""Shared pytest fixtures for the max anode current tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from pmt_max_current import (
    InstrumentError,
    PowerSupplyReading,
    RunParameters,
    StationConfig,
)

# A power supply line with the PMT current at field 5 and the LED current at field 13
SUPPLY_OUTPUT = (
    "CH1, 2.750, 0.018, CH2, 5.000, 1.234, CH3, 0.000, "
    "0.000, CH4, 0.000, 0.000, LED, 18.52\n"
)


class FakeInstruments:
    """Stand-in for :class:`~pmt_max_current.instruments.ScriptInstruments`.

    Records every call in :attr:`calls` as ``(name, arg)`` tuples.  Each
    acquisition drops a fresh output file plus ``.dat``/``.out`` clutter into
    *work_dir*, the way ``CMData`` does.

    Set :attr:`fail_on_position` to make one filter move fail,
    :attr:`analysis_status` to pick the analyzer's exit code, and
    :attr:`produce_output` to ``False`` to simulate a lost output file.
    """

    def __init__(self, work_dir: Path) -> None:
        self.work_dir = work_dir
        self.calls: list[tuple[str, object]] = []
        self.analysis_status = 0
        self.fail_on_position: int | None = None
        self.produce_output = True
        self.acquisitions = 0

    # -- InstrumentController interface -------------------------------------

    def set_voltage(self, vconst: str) -> PowerSupplyReading:
        self.calls.append(("set_voltage", vconst))
        return PowerSupplyReading.from_output(SUPPLY_OUTPUT)

    def set_filter_position(self, position: int) -> None:
        self.calls.append(("set_filter_position", position))
        if position == self.fail_on_position:
            raise InstrumentError(f"Moving filter into position {position} failed (exit 1)")

    def run_acquisition(self) -> None:
        self.calls.append(("run_acquisition", None))
        self.acquisitions += 1
        if self.produce_output:
            (self.work_dir / "Int_Run_000.root").write_text(f"run {self.acquisitions}")
        (self.work_dir / f"scratch{self.acquisitions}.dat").write_text("x")
        (self.work_dir / f"scratch{self.acquisitions}.out").write_text("x")

    def read_temperature(self, run_dir: Path) -> None:
        self.calls.append(("read_temperature", run_dir))

    def analyze(self, run_dir: Path) -> int:
        self.calls.append(("analyze", run_dir))
        return self.analysis_status

    # -- Helpers for tests --------------------------------------------------

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def work_dir(tmp_path: Path) -> Path:
    """Return a bench working directory with a CMData settings file in it."""
    (tmp_path / "CMDataSettings.txt").write_text("threshold=12\n")
    return tmp_path


@pytest.fixture()
def config(work_dir: Path) -> StationConfig:
    """Return a station config rooted at *work_dir* with no settle pause."""
    return StationConfig(work_dir=str(work_dir), settle_seconds=0)


@pytest.fixture()
def instruments(work_dir: Path) -> FakeInstruments:
    """Return a fresh ``FakeInstruments`` writing into *work_dir*."""
    return FakeInstruments(work_dir)


@pytest.fixture()
def params() -> RunParameters:
    """Return a valid set of run parameters."""
    return RunParameters(
        vconst="2.75",
        high_volt="900",
        gain="100k",
        serial="AB-1234",
        base="4",
        i_cathode="12",
        timestamp="202406101530",
        test_run=False,
    )


VALID_ARGV = [
    "-vc", "2.75",
    "-hv", "900",
    "-g", "100k",
    "-s", "AB-1234",
    "-b", "4",
    "-Ic", "12",
    "-ts", "202406101530",
    "-tr", "false",
]


@pytest.fixture()
def valid_argv() -> list[str]:
    """Return a complete, valid command line."""
    return list(VALID_ARGV)
