"""Shared runtime constants for the max anode current test.

This is the canonical source of truth for accepted parameter values, the
filter wheel layout and exit codes.  Other modules should import from here
rather than defining their own copies.
"""

# ---------------------------------------------------------------------------
# Parameter validation
# ---------------------------------------------------------------------------

VALID_GAINS = ("20k", "100k", "200k", "1M")
VALID_CATHODE_CURRENTS = ("7", "9", "12", "15", "18")  # nA at 100% transmission
VALID_BASE_STAGES = ("3", "4")
VALID_TEST_RUN = ("true", "false")
MAX_SERIAL_LENGTH = 8
MIN_TIMESTAMP_YEAR = 2024
NUMBER_PATTERN = r"^[0-9]+([.][0-9]+)?$"

# ---------------------------------------------------------------------------
# Filter wheel
# ---------------------------------------------------------------------------

# Label of the record written for slot ``p`` is ``FILTER_ORDER[p - 1]``
FILTER_ORDER = ("4", "11", "8", "2", "9", "7", "3", "5", "1", "6", "10", "12")
OPEN_POSITION = 12
BLACKOUT_POSITION = 9  # pedestal
MEASUREMENT_POSITIONS = (OPEN_POSITION, BLACKOUT_POSITION)
PARK_POSITION = OPEN_POSITION

# Reference value passed to the power supply program after the LED voltage
POWER_SUPPLY_REFERENCE = "0"

# Token indices in the power supply program's output line
PMT_CURRENT_TOKEN = 5
LED_CURRENT_TOKEN = 13

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_OK = 0
EXIT_FAILURE = 1
ANALYSIS_PASSTHROUGH_CODES = (2, 3)

# ---------------------------------------------------------------------------
# Station defaults
# ---------------------------------------------------------------------------

DEFAULT_BASE_DIR = "Test_Data"
DEFAULT_WORK_DIR = "."
DEFAULT_PYTHON = "python"
DEFAULT_POWER_SUPPLY_SCRIPT = "Power_Supply_Control.py"
DEFAULT_FILTER_SCRIPT = "Filter_Control.py"
DEFAULT_TEMPERATURE_SCRIPT = "Read_Temp.py"
DEFAULT_ANALYSIS_SCRIPT = "Read_max_anode_current.py"
DEFAULT_ACQUISITION_BINARY = "./CMData"
DEFAULT_ACQUISITION_OUTPUT = "Int_Run_000.root"
DEFAULT_SETTINGS_FILE = "CMDataSettings.txt"
DEFAULT_ARTIFACT_PATTERNS = ("*.dat", "*.out")
DEFAULT_RECORD_FILE = "Experiment_data.txt"
DEFAULT_SETTLE_SECONDS = 1.0
RUN_STAMP_FORMAT = "%Y%m%d%H%M"
