from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from contextlib import closing
from pathlib import Path
import logging
from typing import Callable, Generator, Protocol

from .exceptions import NoJarFoundError
from .models import RunOutcome, RunResult, ServerRecord
from .process import LogHandler, ServerProcess
from .utils import accept_eula, save_sidecar

logger = logging.getLogger(__name__)

EULA_REJECTION_LINE = (
    "You need to agree to the EULA in order to run the server. "
    "Go to eula.txt for more info."
)

# Aikar's flags, passed through unchanged.
GC_FLAGS = (
    "-XX:+UseG1GC",
    "-XX:+ParallelRefProcEnabled",
    "-XX:MaxGCPauseMillis=200",
    "-XX:+UnlockExperimentalVMOptions",
    "-XX:+DisableExplicitGC",
    "-XX:+AlwaysPreTouch",
    "-XX:G1NewSizePercent=30",
    "-XX:G1MaxNewSizePercent=40",
    "-XX:G1HeapRegionSize=8M",
    "-XX:G1ReservePercent=20",
    "-XX:G1HeapWastePercent=5",
    "-XX:G1MixedGCCountTarget=4",
    "-XX:InitiatingHeapOccupancyPercent=15",
    "-XX:G1MixedGCLiveThresholdPercent=90",
    "-XX:G1RSetUpdatingPauseTimePercent=5",
    "-XX:SurvivorRatio=32",
    "-XX:+PerfDisableSharedMem",
    "-XX:MaxTenuringThreshold=1",
    "-Dusing.aikars.flags=https://mcflags.emc.gs",
    "-Daikars.new.flags=true",
)
NO_GUI_FLAG = "--nogui"

ConfirmHandler = Callable[[str], bool]


class ChildProcess(Protocol):
    def lines(self) -> Generator[str, None, None]: ...

    def terminate(self, timeout: float = ...) -> int: ...

    def wait(self, timeout: float | None = ...) -> int: ...


ProcessFactory = Callable[[list[str], Path], ChildProcess]


def prompt_yes_no(question: str) -> bool:
    answer = input(f"{question} (y/n) ")
    return answer.strip().lower() in {"y", "yes"}


def _spawn(command: list[str], cwd: Path) -> ServerProcess:
    return ServerProcess.start(command=command, cwd=cwd)


class ProcessSupervisor:
    """Runs a server jar and handles the EULA rejection at startup.

    ``run`` moves through launching, streaming and terminated. When the
    rejection line shows up and the license gets accepted, the child is
    stopped, ``eula.txt`` is flipped and the server is started once more on
    a worker thread that ``run`` joins before returning. The rerun never
    auto-accepts, so a flag that failed to flip ends in a prompt rather
    than a restart loop.
    """

    def __init__(
        self,
        java_path: str = "java",
        output: LogHandler | None = None,
        confirm: ConfirmHandler | None = None,
        process_factory: ProcessFactory | None = None,
    ) -> None:
        self.java_path = java_path
        self.output = output or print
        self.confirm = confirm or prompt_yes_no
        self.process_factory = process_factory or _spawn

    def build_command(self, record: ServerRecord) -> list[str]:
        command = [
            self.java_path,
            f"-Dname={record.name.strip()}",
            f"-Xms{record.settings.initial_heap}",
            f"-Xmx{record.settings.max_heap}",
            *GC_FLAGS,
            "-jar",
            str(record.jar_path),
        ]
        if not record.settings.gui:
            command.append(NO_GUI_FLAG)
        return command

    def run(self, record: ServerRecord, auto_accept_license: bool = False) -> RunResult:
        if not record.jar_path.is_file():
            raise NoJarFoundError(
                f"Server '{record.name}' has no {record.jar_name} in {record.location}."
            )
        command = self.build_command(record)
        logger.info(
            "Starting %s %s server '%s' in %s",
            record.flavor,
            record.version,
            record.name,
            record.location,
        )
        process = self.process_factory(command, record.location)

        accepted: bool | None = None
        with closing(process.lines()) as console:
            for line in console:
                self.output(line)
                if EULA_REJECTION_LINE in line:
                    logger.warning("Server '%s' has not accepted the EULA", record.name)
                    accepted = auto_accept_license or self.confirm(
                        f"EULA for '{record.name}' is not accepted. Would you like to accept it?"
                    )
                    break

        if accepted is not None:
            process.terminate()
            if not accepted:
                logger.info("EULA declined for '%s'; not starting", record.name)
                return RunResult(outcome=RunOutcome.LICENSE_NOT_ACCEPTED)
            return self._restart_after_accepting(record)

        exit_code = process.wait()
        logger.info("Server '%s' exited with code %s", record.name, exit_code)
        return RunResult(outcome=RunOutcome.EXITED, exit_code=exit_code)

    def _restart_after_accepting(self, record: ServerRecord) -> RunResult:
        if accept_eula(record.location):
            record.eula_accepted = True
            save_sidecar(record)
            logger.info("Accepted EULA for '%s'", record.name)
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="serverbox-rerun") as pool:
            inner = pool.submit(self.run, record, False).result()
        return RunResult(outcome=inner.outcome, exit_code=inner.exit_code, restarted=True)
