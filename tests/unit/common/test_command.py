"""Tests for the command runner."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from aptlier.common.command import CommandRunner
from aptlier.common.errors import CommandError


@pytest.fixture
def mock_run():
    with patch("subprocess.run") as mock:
        mock.return_value = MagicMock(returncode=0, stdout=b"out\n", stderr=b"")
        yield mock


class TestCommandRunner:
    """Tests for CommandRunner (mocked subprocess)."""

    def test_child_environment_overlays_ambient(self, monkeypatch):
        """Test overrides are layered onto the ambient environment."""
        monkeypatch.setenv("PATH", "/usr/bin")
        monkeypatch.setenv("GNUPGHOME", "/home/user/.gnupg")

        env = CommandRunner({"GNUPGHOME": "/work/gnupg"}).child_environment()

        assert env["GNUPGHOME"] == "/work/gnupg"
        assert env["PATH"] == "/usr/bin"

    def test_run_passes_environment(self, mock_run):
        runner = CommandRunner({"GNUPGHOME": "/work/gnupg"}, timeout=60)

        runner.run(["aptly", "mirror", "list"])

        args, kwargs = mock_run.call_args
        assert args[0] == ["aptly", "mirror", "list"]
        assert kwargs["env"]["GNUPGHOME"] == "/work/gnupg"
        assert kwargs["timeout"] == 60
        assert "capture_output" not in kwargs

    def test_run_failure(self, mock_run):
        """Test a non-zero exit raises with command and status."""
        mock_run.return_value = MagicMock(returncode=2)

        with pytest.raises(CommandError) as exc_info:
            CommandRunner().run(["gpg", "--recv-keys", "ABCD"])

        assert exc_info.value.returncode == 2
        assert exc_info.value.command == ["gpg", "--recv-keys", "ABCD"]
        assert "gpg --recv-keys ABCD" in str(exc_info.value)
        assert "2" in str(exc_info.value)

    def test_no_retry(self, mock_run):
        mock_run.return_value = MagicMock(returncode=1)

        with pytest.raises(CommandError):
            CommandRunner().run(["aptly", "mirror", "update", "x"])

        assert mock_run.call_count == 1

    def test_capture_returns_stdout(self, mock_run):
        assert CommandRunner().capture(["aptly", "version"]) == "out\n"
        assert mock_run.call_args.kwargs["capture_output"] is True

    def test_capture_lines(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout=b" a \n\nb\n", stderr=b"")

        assert CommandRunner().capture_lines(["aptly", "mirror", "list", "-raw"]) == ["a", "b"]

    def test_capture_failure_keeps_stderr(self, mock_run):
        mock_run.return_value = MagicMock(returncode=1, stdout=b"", stderr=b"boom")

        with pytest.raises(CommandError) as exc_info:
            CommandRunner().capture(["aptly", "snapshot", "diff", "a", "b"])

        assert exc_info.value.stderr == "boom"

    def test_timeout_raises_command_error(self, mock_run):
        """Test a hung command aborts with the command named."""
        mock_run.side_effect = subprocess.TimeoutExpired(["aptly", "mirror", "update", "x"], 1)

        with pytest.raises(CommandError) as exc_info:
            CommandRunner(timeout=1).run(["aptly", "mirror", "update", "x"])

        assert exc_info.value.returncode is None
        assert "timed out" in str(exc_info.value)
        assert "aptly mirror update x" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, subprocess.TimeoutExpired)

    def test_permission_denied(self, mock_run):
        mock_run.side_effect = PermissionError(13, "Permission denied")

        with pytest.raises(CommandError) as exc_info:
            CommandRunner().capture(["./aptly", "version"])

        assert exc_info.value.returncode == 126
        assert "Permission denied" in str(exc_info.value)

    def test_setup_runs_once_before_first_command(self, mock_run):
        """Test the setup hook runs lazily and only once."""
        setup = MagicMock()
        runner = CommandRunner(setup=setup)

        setup.assert_not_called()
        runner.run(["gpg", "--fingerprint"])
        runner.capture(["aptly", "mirror", "list", "-raw"])

        setup.assert_called_once_with()


def test_missing_executable(tmp_path):
    """Test a command that does not exist aborts with the command named."""
    missing = str(tmp_path / "no-such-aptly")

    with pytest.raises(CommandError) as exc_info:
        CommandRunner().run([missing, "mirror", "list"])

    assert exc_info.value.returncode == 127
    assert missing in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, FileNotFoundError)


def test_environment_reaches_real_child(tmp_path):
    """Test the override is visible to an actual child process."""
    runner = CommandRunner({"GNUPGHOME": str(tmp_path)})

    output = runner.capture(["sh", "-c", 'printf %s "$GNUPGHOME"'])

    assert output == str(tmp_path)
