import re
import shlex

import pytest
from click.testing import CliRunner

import pdfcomatic.cli as cli
from pdfcomatic.utils import display

ANSI = re.compile(r"\x1b\[[0-9;]*m")


def _positional(inputs, series="3"):
    return [str(inputs["pdf"]), str(inputs["ref"]), str(inputs["out"]), "Report", series]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def colour_terminal(monkeypatch):
    """Pretend stderr is a colour-capable terminal."""
    monkeypatch.setattr(display, "_stderr_isatty", lambda: True)


@pytest.mark.parametrize("flag", ["-h", "--help"])
def test_help_exits_zero(runner, flag):
    result = runner.invoke(cli.main, [flag])
    assert result.exit_code == 0
    assert "Usage:" in result.output
    assert "SERIES_NUM" in result.output


@pytest.mark.parametrize("argv", [["a", "b", "--help"], ["--bogus", "-h"], ["-h", "x", "y", "z", "w", "v", "extra"]])
def test_help_wins_over_other_arguments(runner, argv, stub_tools):
    result = runner.invoke(cli.main, argv)
    assert result.exit_code == 0
    assert "Usage:" in result.output
    assert stub_tools.dcmdump_calls == []


@pytest.mark.parametrize("count", [0, 1, 4, 6])
def test_wrong_positional_count_is_usage_error(runner, inputs, stub_tools, count):
    argv = (_positional(inputs) + ["extra"])[:count]
    result = runner.invoke(cli.main, argv)
    assert result.exit_code == 2
    assert "Usage:" in result.output
    assert stub_tools.dcmdump_calls == []
    assert stub_tools.pdf2dcm_args is None


def test_unknown_flag_is_usage_error(runner, inputs, stub_tools):
    result = runner.invoke(cli.main, ["--frobnicate", *_positional(inputs)])
    assert result.exit_code == 2
    assert "No such option" in result.output
    assert stub_tools.dcmdump_calls == []


def test_negative_series_after_separator_is_validation_error(runner, inputs, stub_tools):
    result = runner.invoke(cli.main, ["--no-color", "--", *_positional(inputs, series="-5")])
    assert result.exit_code == 1
    assert "Series number must be a non-negative integer, got '-5'" in result.output
    assert stub_tools.dcmdump_calls == []


def test_missing_reference_exit_one(runner, inputs, stub_tools, tmp_path):
    argv = _positional(inputs)
    argv[1] = str(tmp_path / "absent.dcm")
    result = runner.invoke(cli.main, argv)
    assert result.exit_code == 1
    assert "Reference DICOM file not found" in result.output
    assert stub_tools.dcmdump_calls == []


def test_success_is_silent(runner, inputs, reference_dump):
    result = runner.invoke(cli.main, _positional(inputs))
    assert result.exit_code == 0, result.output
    assert result.output == ""
    assert inputs["out"].exists()
    assert reference_dump.pdf2dcm_overrides()["SeriesNumber"] == "3"


def test_issuer_from_environment(runner, inputs, reference_dump):
    result = runner.invoke(
        cli.main, _positional(inputs), env={"PDF2DCM_ISSUEROFPATIENTID_ENV": "XYZ"}
    )
    assert result.exit_code == 0
    assert reference_dump.pdf2dcm_overrides()["IssuerOfPatientID"] == "XYZ"


def test_pdf2dcm_failure_exit_one(runner, inputs, reference_dump):
    reference_dump.set_exit("pdf2dcm", 5)
    result = runner.invoke(cli.main, _positional(inputs))
    assert result.exit_code == 1
    assert "pdf2dcm exited with status 5" in result.output


def test_dry_run_prints_command(runner, inputs, reference_dump):
    result = runner.invoke(cli.main, ["--dry-run", *_positional(inputs)])
    assert result.exit_code == 0
    tokens = shlex.split(result.stdout.strip())
    assert tokens[0] == "pdf2dcm"
    assert "StudyDate=20240101" in tokens
    assert reference_dump.pdf2dcm_args is None


def test_errors_are_coloured_on_terminal(runner, inputs, tmp_path, colour_terminal):
    argv = _positional(inputs)
    argv[1] = str(tmp_path / "absent.dcm")
    result = runner.invoke(cli.main, argv, color=True)
    assert result.exit_code == 1
    assert ANSI.search(result.output)


def test_no_color_flag_strips_ansi(runner, inputs, tmp_path, colour_terminal):
    argv = _positional(inputs)
    argv[1] = str(tmp_path / "absent.dcm")
    result = runner.invoke(cli.main, ["--no-color", *argv], color=True)
    assert result.exit_code == 1
    assert "Reference DICOM file not found" in result.output
    assert not ANSI.search(result.output)


def test_no_color_environment_strips_ansi(runner, inputs, tmp_path, colour_terminal):
    argv = _positional(inputs)
    argv[1] = str(tmp_path / "absent.dcm")
    result = runner.invoke(cli.main, argv, color=True, env={"NO_COLOR": ""})
    assert result.exit_code == 1
    assert not ANSI.search(result.output)


def test_no_color_verbose_logging_has_no_ansi(runner, inputs, reference_dump, colour_terminal):
    result = runner.invoke(cli.main, ["--no-color", "-v", *_positional(inputs)], color=True)
    assert result.exit_code == 0
    assert "Wrote" in result.output
    assert not ANSI.search(result.output)


def test_bad_config_exit_one(runner, inputs, stub_tools, tmp_path):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("reference:\n  reader: teleport\n")
    result = runner.invoke(cli.main, ["-c", str(cfg), *_positional(inputs)])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output
    assert stub_tools.dcmdump_calls == []


def test_interrupted_run_exit_status(runner, inputs, monkeypatch):
    import signal

    from pdfcomatic.utils.errors import InterruptedRun

    def fake_encapsulate(*_args, **_kwargs):
        raise InterruptedRun(signal.SIGTERM)

    monkeypatch.setattr(cli, "encapsulate", fake_encapsulate)
    result = runner.invoke(cli.main, ["--no-color", *_positional(inputs)])
    assert result.exit_code == 128 + signal.SIGTERM
    assert "Interrupted by SIGTERM" in result.output


def test_module_entrypoint_help():
    """Verify ``python -m pdfcomatic`` exposes the same command."""
    import subprocess
    import sys

    result = subprocess.run(
        [sys.executable, "-m", "pdfcomatic", "--help"],
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0
    assert "DCM_REF" in result.stdout


def test_dry_run_keeps_latin1_reference_bytes(runner, inputs, reference_dump):
    reference_dump.set_dump(
        "InstitutionName",
        b"(0008,0080) LO [Klinikum K\xf6ln]                         #  13, 1 InstitutionName\n",
    )
    result = runner.invoke(cli.main, ["--dry-run", *_positional(inputs)])
    assert result.exit_code == 0, result.output
    assert b"InstitutionName='Klinikum K\xf6ln'" in result.stdout_bytes
