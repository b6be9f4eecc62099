import sys

import pytest

from serverbox.exceptions import ProcessSpawnError
from serverbox.models import ServerRecord
from serverbox.process import ServerProcess
from serverbox.supervisor import ProcessSupervisor

_SCRIPT = (
    "import sys\n"
    "print('one', flush=True)\n"
    "print('two', file=sys.stderr, flush=True)\n"
    "print('three', flush=True)\n"
)


def test_start_missing_executable_raises(tmp_path):
    with pytest.raises(ProcessSpawnError):
        ServerProcess.start(command=[str(tmp_path / "no-such-java")], cwd=tmp_path)


def test_lines_merge_stderr_into_console(tmp_path):
    process = ServerProcess.start(command=[sys.executable, "-c", _SCRIPT], cwd=tmp_path)
    lines = list(process.lines())
    assert lines[0] == "one"
    assert sorted(lines) == ["one", "three", "two"]
    assert process.wait(timeout=10) == 0
    assert process.recent_lines == lines


def test_supervisor_wraps_spawn_failure(tmp_path):
    (tmp_path / "paper-1.21.1.jar").write_bytes(b"jar")
    record = ServerRecord(name="Lobby", location=tmp_path, flavor="paper", version="1.21.1")
    supervisor = ProcessSupervisor(java_path=str(tmp_path / "no-such-java"))
    with pytest.raises(ProcessSpawnError):
        supervisor.run(record)


def test_wait_closes_console_pipe(tmp_path):
    process = ServerProcess.start(command=[sys.executable, "-c", _SCRIPT], cwd=tmp_path)
    list(process.lines())
    assert process.wait(timeout=10) == 0
    assert process._process.stdout.closed


def test_context_exit_stops_running_child(tmp_path):
    command = [sys.executable, "-c", "import time; print('up', flush=True); time.sleep(60)"]
    with ServerProcess.start(command=command, cwd=tmp_path) as process:
        assert next(process.lines()) == "up"
    assert not process.is_running()
    assert process._process.stdout.closed
