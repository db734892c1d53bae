"""
Process runner for the external measurement programs.

Launches a program synchronously, waits for it, and hands back its exit
code and captured output.  Knows nothing about what the programs mean;
that's :mod:`instruments`' job.

Typical usage (via :class:`~pmt_max_current.instruments.ScriptInstruments`)::

    runner = ProcessRunner(cwd="/home/daq/pmt")
    result = runner.run(["python", "Filter_Control.py", "-c", "setPosition", "12"])
    if not result.ok:
        ...
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .exceptions import LaunchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Exit code and captured output of one finished program."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""

    @property
    def ok(self) -> bool:
        """Return ``True`` if the program exited with status 0."""
        return self.returncode == 0


class ProcessRunner:
    """Runs external programs one at a time in a fixed working directory.

    Args:
        cwd: Directory the programs are started in.  ``None`` uses the
            current working directory.
    """

    def __init__(self, cwd: str | Path | None = None) -> None:
        self.cwd = Path(cwd) if cwd is not None else None

    def run(self, args: Sequence[str], capture: bool = True) -> ProcessResult:
        """Run *args* to completion and return its :class:`ProcessResult`.

        With *capture* the program's stdout is collected and returned;
        otherwise it goes straight to the terminal, which is what the
        long-running acquisition binary wants.  stderr is never captured.

        Raises:
            LaunchError: If the program cannot be started.
        """
        argv = tuple(str(a) for a in args)
        logger.debug("EXEC: %s (cwd=%s)", " ".join(argv), self.cwd or ".")

        try:
            completed = subprocess.run(
                argv,
                cwd=self.cwd,
                stdout=subprocess.PIPE if capture else None,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise LaunchError(f"Cannot start {argv[0]}: {exc}") from exc

        stdout = completed.stdout or ""
        logger.debug("EXIT %d: %s", completed.returncode, argv[0])
        if stdout:
            logger.debug("STDOUT: %s", stdout.rstrip())

        return ProcessResult(argv, completed.returncode, stdout)
