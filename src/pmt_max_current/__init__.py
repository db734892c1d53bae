"""PMT max anode current test orchestration"""

__version__ = "0.4.0"

from .config import StationConfig, load_config
from .constants import FILTER_ORDER, MEASUREMENT_POSITIONS, PARK_POSITION
from .exceptions import (
    AcquisitionError,
    AnalysisError,
    InstrumentError,
    LaunchError,
    PMTTestError,
    ValidationError,
)
from .instruments import InstrumentController, PowerSupplyReading, ScriptInstruments
from .measurement import MaxAnodeCurrentRun, RunContext
from .parameters import RunParameters, validate_parameters

__all__ = [
    "AcquisitionError",
    "AnalysisError",
    "FILTER_ORDER",
    "InstrumentController",
    "InstrumentError",
    "LaunchError",
    "MEASUREMENT_POSITIONS",
    "MaxAnodeCurrentRun",
    "PARK_POSITION",
    "PMTTestError",
    "PowerSupplyReading",
    "RunContext",
    "RunParameters",
    "ScriptInstruments",
    "StationConfig",
    "ValidationError",
    "load_config",
    "validate_parameters",
]
