from __future__ import annotations

from collections import deque
from pathlib import Path
import subprocess
from typing import Callable, Generator

from .exceptions import ProcessSpawnError, ServerIOError


LogHandler = Callable[[str], None]


class ServerProcess:
    def __init__(
        self,
        process: subprocess.Popen[str],
        command: list[str],
        cwd: Path,
    ) -> None:
        self._process = process
        self.command = command
        self.cwd = cwd
        self._recent_lines: deque[str] = deque(maxlen=400)

    @classmethod
    def start(
        cls,
        command: list[str],
        cwd: Path,
        env: dict[str, str] | None = None,
    ) -> ServerProcess:
        try:
            process = subprocess.Popen(
                command,
                cwd=str(cwd),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=env,
            )
        except OSError as exc:
            raise ProcessSpawnError(
                f"Could not start '{command[0]}' in {cwd}: {exc}"
            ) from exc
        return cls(process=process, command=command, cwd=cwd)

    def lines(self) -> Generator[str, None, None]:
        """Yield console lines in the order the child writes them."""
        if self._process.stdout is None:
            return
        try:
            for line in self._process.stdout:
                line = line.rstrip("\r\n")
                self._recent_lines.append(line)
                yield line
        except (OSError, ValueError) as exc:
            if self.poll() is not None:
                return
            raise ServerIOError(
                f"Reading console output of PID {self.pid} failed: {exc}"
            ) from exc

    def poll(self) -> int | None:
        return self._process.poll()

    def is_running(self) -> bool:
        return self.poll() is None

    def wait(self, timeout: float | None = None) -> int:
        code = self._process.wait(timeout=timeout)
        self.close()
        return code

    def close(self) -> None:
        if self._process.stdout is not None and not self._process.stdout.closed:
            self._process.stdout.close()

    def terminate(self, timeout: float = 10.0) -> int:
        if not self.is_running():
            self.close()
            code = self.poll()
            return code if code is not None else 0
        self._process.terminate()
        try:
            return self.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            self._process.kill()
            return self.wait(timeout=5)

    def __enter__(self) -> ServerProcess:
        return self

    def __exit__(self, *exc_info) -> None:
        if self.is_running():
            self.terminate()
        self.close()

    @property
    def recent_lines(self) -> list[str]:
        return list(self._recent_lines)

    @property
    def pid(self) -> int:
        return self._process.pid
