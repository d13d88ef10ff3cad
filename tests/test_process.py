import os
import threading
import time
from pathlib import Path

import pytest

from mold.errors import CommandCancelledError, CommandTimeoutError
from mold.runtime.capabilities import Capabilities
from mold.runtime.process import CancelToken, ProcessRunner

ENV = {"PATH": "/usr/bin:/bin"}
PID_COMMAND = "echo $$ > pid.txt; exec sleep 30"


def _wait_for_pid(path: Path, timeout: float = 5.0) -> int:
    limit = time.monotonic() + timeout
    while time.monotonic() < limit:
        text = path.read_text() if path.exists() else ""
        if text.endswith("\n"):
            return int(text)
        time.sleep(0.01)
    raise AssertionError(f"{path} was never written")


def _assert_gone(pid: int) -> None:
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)


class _InterruptWhenStarted(CancelToken):
    """Raises KeyboardInterrupt from the poll loop once the child is up."""

    def __init__(self, pid_file: Path) -> None:
        super().__init__()
        self.pid_file = pid_file

    @property
    def cancelled(self) -> bool:
        if self.pid_file.exists() and self.pid_file.read_text().endswith("\n"):
            raise KeyboardInterrupt
        return False


def test_runner_returns_exit_status(tmp_path):
    runner = ProcessRunner()
    assert runner.run("exit 0", tmp_path, {"PATH": "/usr/bin:/bin"}) == 0
    assert runner.run("exit 7", tmp_path, {"PATH": "/usr/bin:/bin"}) == 7


def test_runner_uses_cwd_and_env(tmp_path):
    ProcessRunner().run('printf %s "$GREETING" > out.txt', tmp_path, {"PATH": "/usr/bin:/bin", "GREETING": "hey"})
    assert (tmp_path / "out.txt").read_text() == "hey"


def test_runner_system_shell(tmp_path):
    assert ProcessRunner(shell=None).run("exit 2", tmp_path, {"PATH": "/usr/bin:/bin"}) == 2


def test_runner_cancel_from_token(tmp_path):
    token = CancelToken()
    runner = ProcessRunner(poll_interval=0.01)
    token.cancel()
    with pytest.raises(CommandCancelledError):
        runner.run("sleep 5", tmp_path, {"PATH": "/usr/bin:/bin"}, cancel=token)
    assert token.cancelled


def test_runner_cancel_mid_command_stops_child(tmp_path):
    token = CancelToken()
    pid_file = tmp_path / "pid.txt"

    def trip():
        _wait_for_pid(pid_file)
        token.cancel()

    threading.Thread(target=trip, daemon=True).start()
    started = time.monotonic()
    with pytest.raises(CommandCancelledError):
        ProcessRunner(poll_interval=0.01).run(PID_COMMAND, tmp_path, ENV, cancel=token)
    assert time.monotonic() - started < 10
    _assert_gone(_wait_for_pid(pid_file))


def test_runner_interrupt_while_waiting_stops_child(tmp_path):
    pid_file = tmp_path / "pid.txt"
    with pytest.raises(KeyboardInterrupt):
        ProcessRunner(poll_interval=0.01).run(PID_COMMAND, tmp_path, ENV, cancel=_InterruptWhenStarted(pid_file))
    _assert_gone(_wait_for_pid(pid_file))


def test_runner_deadline(tmp_path):
    started = time.monotonic()
    with pytest.raises(CommandTimeoutError):
        ProcessRunner(poll_interval=0.01).run(
            "sleep 5", tmp_path, {"PATH": "/usr/bin:/bin"}, deadline=time.monotonic() + 0.2
        )
    assert time.monotonic() - started < 4


def test_program_lookup_is_cached():
    calls = []

    def which(name, path=None):
        calls.append(name)
        return "/bin/" + name if name == "sh" else None

    caps = Capabilities(which=which)
    assert caps.is_available("sh")
    assert caps.is_available("sh")
    assert not caps.is_available("nope")
    assert calls == ["sh", "nope"]
