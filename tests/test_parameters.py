"""
Tests for run parameter parsing and validation.

Covers:
* Each validation rule on its own (numbers, enums, serial, time stamp)
* First-failure-wins ordering
* Command line flags, aliases and parser errors
"""

from __future__ import annotations

import pytest

from pmt_max_current import RunParameters, ValidationError, validate_parameters
from pmt_max_current.parameters import parameters_from_args, parse_args

VALID = {
    "vconst": "2.75",
    "high_volt": "900",
    "gain": "100k",
    "serial": "AB-1234",
    "base": "4",
    "i_cathode": "12",
    "timestamp": "202406101530",
    "test_run": "false",
}


def validate(**overrides) -> RunParameters:
    """Validate VALID with *overrides* applied."""
    return validate_parameters(**{**VALID, **overrides})


# ══════════════════════════════════════════════════════════════════════════
#  Accepted input
# ══════════════════════════════════════════════════════════════════════════


class TestValidParameters:
    def test_returns_run_parameters(self):
        params = validate()
        assert params == RunParameters(
            vconst="2.75",
            high_volt="900",
            gain="100k",
            serial="AB-1234",
            base="4",
            i_cathode="12",
            timestamp="202406101530",
            test_run=False,
            directory=None,
        )

    def test_test_run_true(self):
        assert validate(test_run="true").test_run is True

    def test_directory_kept(self):
        assert validate(directory="batch_07").directory == "batch_07"

    def test_empty_directory_means_none(self):
        assert validate(directory="").directory is None

    def test_parameters_are_frozen(self):
        params = validate()
        with pytest.raises(AttributeError):
            params.serial = "XX"  # type: ignore[misc]


# ══════════════════════════════════════════════════════════════════════════
#  Individual rules
# ══════════════════════════════════════════════════════════════════════════


class TestMissingOptions:
    @pytest.mark.parametrize("field", sorted(VALID))
    def test_missing_field_rejected(self, field):
        with pytest.raises(ValidationError, match="Missing required options"):
            validate(**{field: None})

    def test_empty_string_counts_as_missing(self):
        with pytest.raises(ValidationError, match="serial"):
            validate(serial="")


class TestNumericFields:
    @pytest.mark.parametrize("value", ["3", "2.75", "0.5", "5.000"])
    def test_decimal_accepted(self, value):
        assert validate(vconst=value).vconst == value

    @pytest.mark.parametrize("value", ["abc", "2.", ".5", "-1", "1e3", "2,5", " 2"])
    def test_non_decimal_vconst_rejected(self, value):
        with pytest.raises(ValidationError, match="Invalid value"):
            validate(vconst=value)

    def test_non_decimal_high_volt_rejected(self):
        with pytest.raises(ValidationError, match="Invalid value: 9e2"):
            validate(high_volt="9e2")


class TestTestRun:
    @pytest.mark.parametrize("value", ["yes", "True", "FALSE", "1"])
    def test_invalid_rejected(self, value):
        with pytest.raises(ValidationError, match="testRun"):
            validate(test_run=value)


class TestCathodeCurrent:
    @pytest.mark.parametrize("value", ["7", "9", "12", "15", "18"])
    def test_valid_accepted(self, value):
        assert validate(i_cathode=value).i_cathode == value

    @pytest.mark.parametrize("value", ["10", "0", "8", "19", "12.0"])
    def test_other_values_rejected(self, value):
        with pytest.raises(ValidationError, match="cathode current"):
            validate(i_cathode=value)


class TestGain:
    @pytest.mark.parametrize("value", ["20k", "100k", "200k"])
    def test_valid_accepted(self, value):
        assert validate(gain=value).gain == value

    def test_one_megaohm_accepted(self):
        """1M is a documented gain setting and must pass validation."""
        assert validate(gain="1M").gain == "1M"

    @pytest.mark.parametrize("value", ["1m", "500k", "20K", "100"])
    def test_other_values_rejected(self, value):
        with pytest.raises(ValidationError, match="preamp gain"):
            validate(gain=value)


class TestSerial:
    def test_eight_characters_accepted(self):
        assert validate(serial="ABC-1234").serial == "ABC-1234"

    def test_nine_characters_rejected(self):
        with pytest.raises(ValidationError, match="PMT serial"):
            validate(serial="ABC-12345")


class TestBase:
    @pytest.mark.parametrize("value", ["3", "4"])
    def test_valid_accepted(self, value):
        assert validate(base=value).base == value

    @pytest.mark.parametrize("value", ["2", "5", "3.5"])
    def test_other_values_rejected(self, value):
        with pytest.raises(ValidationError, match="stages in the base"):
            validate(base=value)


class TestTimestamp:
    @pytest.mark.parametrize(
        "value",
        [
            "202406101530",
            "202406102359",  # last minute of the day
            "202406100059",
            "202412312359",
            "202400001200",  # month and day 00 have no lower bound
            "202402311200",  # nor is the calendar checked
            "209901010000",
        ],
    )
    def test_accepted(self, value):
        assert validate(timestamp=value).timestamp == value

    @pytest.mark.parametrize(
        "value",
        [
            "20240610153",  # 11 digits
            "2024061015300",  # 13 digits
            "2024061015a0",
            "202306101530",  # year before 2024
            "202413101530",  # month 13
            "202406321530",  # day 32
            "202406101560",  # minute 60
            "202406101599",
            "202406102400",  # hour 24
            "202406102500",
        ],
    )
    def test_rejected(self, value):
        with pytest.raises(ValidationError, match="time stamp"):
            validate(timestamp=value)


class TestFirstFailureWins:
    def test_numeric_check_before_cathode_enum(self):
        with pytest.raises(ValidationError, match="Invalid value: abc"):
            validate(i_cathode="abc")

    def test_test_run_before_gain(self):
        with pytest.raises(ValidationError, match="testRun"):
            validate(test_run="maybe", gain="bad")

    def test_gain_before_serial(self):
        with pytest.raises(ValidationError, match="preamp gain"):
            validate(gain="bad", serial="WAY-TOO-LONG")

    def test_base_before_timestamp(self):
        with pytest.raises(ValidationError, match="stages in the base"):
            validate(base="5", timestamp="1")


# ══════════════════════════════════════════════════════════════════════════
#  Command line
# ══════════════════════════════════════════════════════════════════════════


class TestParseArgs:
    def test_short_flags(self, valid_argv):
        params = parameters_from_args(parse_args(valid_argv))
        assert params.vconst == "2.75"
        assert params.i_cathode == "12"
        assert params.test_run is False

    def test_long_flags(self):
        argv = [
            "--vconst", "3.1",
            "--highVolt", "1000",
            "--gain", "1M",
            "--serial", "CD-567",
            "--base", "3",
            "--Icathode", "18",
            "--timeStamp", "202501010800",
            "--testRun", "true",
            "--dir", "batch_07",
        ]
        params = parameters_from_args(parse_args(argv))
        assert params.high_volt == "1000"
        assert params.gain == "1M"
        assert params.base == "3"
        assert params.test_run is True
        assert params.directory == "batch_07"

    def test_unknown_flag_rejected(self, valid_argv):
        with pytest.raises(ValidationError, match="unrecognized"):
            parse_args([*valid_argv, "--colour", "red"])

    def test_abbreviated_flag_rejected(self, valid_argv):
        with pytest.raises(ValidationError):
            parse_args(["--vcon", "2.5", *valid_argv[2:]])

    def test_flag_without_value_rejected(self, valid_argv):
        with pytest.raises(ValidationError, match="expected one argument"):
            parse_args([*valid_argv, "-d"])

    def test_stray_positional_rejected(self, valid_argv):
        with pytest.raises(ValidationError):
            parse_args([*valid_argv, "extra"])

    @pytest.mark.parametrize("flag", ["-h", "--help"])
    def test_help_flag(self, flag):
        assert parse_args([flag]).help is True

    def test_config_and_verbose(self, valid_argv):
        args = parse_args([*valid_argv, "--config", "station.yaml", "-v"])
        assert args.config == "station.yaml"
        assert args.verbose is True

    def test_missing_required_reported_after_parse(self):
        args = parse_args(["-vc", "2.5"])
        with pytest.raises(ValidationError, match="Missing required options"):
            parameters_from_args(args)
