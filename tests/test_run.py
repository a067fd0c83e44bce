import subprocess
from unittest import mock

import pytest

from rgstrapper.rgazure import run as run_module
from rgstrapper.rgazure.run import AzCliError, run_az
from rgstrapper.util.cmd import CMD


@pytest.fixture
def az_on_path(monkeypatch):
    monkeypatch.setattr(run_module.CMD, "which", staticmethod(lambda binary: f"/usr/bin/{binary}"))


def _completed(cmd, stdout="", returncode=0):
    return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr="")


def test_run_az_parses_json(az_on_path):
    with mock.patch("subprocess.run", return_value=_completed([], '{"id": "abc"}')) as run:
        result = run_az(["az", "account", "show"])
    assert result == {"id": "abc"}
    cmd = run.call_args[0][0]
    assert cmd == ["/usr/bin/az", "account", "show", "--output", "json"]
    assert run.call_args.kwargs["check"] is True


def test_run_az_without_json(az_on_path):
    with mock.patch("subprocess.run", return_value=_completed([], "")) as run:
        result = run_az(["az", "cloud", "set", "--name", "AzureCloud"], json_override=False)
    assert result is None
    assert "--output" not in run.call_args[0][0]


def test_run_az_raises_on_failure(az_on_path):
    error = subprocess.CalledProcessError(1, ["az"], output="", stderr="ERROR: something broke\n")
    with mock.patch("subprocess.run", side_effect=error):
        with pytest.raises(AzCliError) as exc:
            run_az(["az", "group", "create", "--name", "rg-x"])
    assert exc.value.returncode == 1
    assert exc.value.stderr == "ERROR: something broke"
    assert "group create" in str(exc.value)


def test_run_az_ignores_matching_errors(az_on_path):
    error = subprocess.CalledProcessError(
        3, ["az"], output="", stderr="(ResourceNotFound) The Resource 'x' was not found."
    )
    with mock.patch("subprocess.run", side_effect=error):
        result = run_az(["az", "identity", "show"], ignore_errors={"identity": ["resourcenotfound"]})
    assert result is None


def test_run_az_does_not_ignore_other_errors(az_on_path):
    error = subprocess.CalledProcessError(1, ["az"], output="", stderr="AuthorizationFailed")
    with mock.patch("subprocess.run", side_effect=error):
        with pytest.raises(AzCliError):
            run_az(["az", "identity", "show"], ignore_errors={"identity": ["ResourceNotFound"]})


def test_run_az_invalid_json(az_on_path):
    with mock.patch("subprocess.run", return_value=_completed([], "not json")):
        with pytest.raises(AzCliError, match="invalid output"):
            run_az(["az", "account", "show"])


def test_run_az_missing_binary(monkeypatch):
    monkeypatch.setattr(run_module.CMD, "which", staticmethod(lambda binary: None))
    with mock.patch("subprocess.run") as run:
        with pytest.raises(AzCliError) as exc:
            run_az(["az", "account", "show"])
    run.assert_not_called()
    assert exc.value.returncode == 127


def test_cmd_which_uses_path(monkeypatch):
    monkeypatch.setattr("rgstrapper.util.cmd.std_which", lambda binary: "/opt/az/bin/az")
    assert CMD.which("az") == "/opt/az/bin/az"


def test_cmd_which_missing(monkeypatch):
    monkeypatch.setattr("rgstrapper.util.cmd.std_which", lambda binary: None)
    monkeypatch.setattr("rgstrapper.util.cmd.platform.system", lambda: "Linux")
    assert CMD.which("az") is None


def test_cmd_run_rejects_bad_types():
    with pytest.raises(TypeError):
        CMD.run(42)
    with pytest.raises(TypeError):
        CMD.run({"cmd": "echo"})


def test_cmd_run_captures_output():
    with mock.patch("subprocess.run", return_value=_completed([], "ok")) as run:
        CMD.run("az version")
    assert run.call_args[0][0] == ["az", "version"]
    assert run.call_args.kwargs == {"capture_output": True, "check": True, "text": True}
