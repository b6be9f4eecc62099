from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

DEFAULT_HEAP_SIZE = "1G"
UNKNOWN_BUILD = "unknown"


@dataclass(slots=True)
class RunSettings:
    gui: bool = False
    xms: str | None = None
    xmx: str | None = None

    @property
    def initial_heap(self) -> str:
        return self.xms or DEFAULT_HEAP_SIZE

    @property
    def max_heap(self) -> str:
        return self.xmx or DEFAULT_HEAP_SIZE


@dataclass(slots=True)
class ResolvedBuild:
    flavor: str
    version: str
    build: int
    download_url: str


@dataclass(slots=True)
class IndexEntry:
    name: str
    location: Path

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "location": str(self.location)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> IndexEntry:
        return cls(name=str(data["name"]), location=Path(str(data["location"])))


@dataclass(slots=True)
class ServerRecord:
    name: str
    location: Path
    flavor: str
    version: str
    build: str = UNKNOWN_BUILD
    settings: RunSettings = field(default_factory=RunSettings)
    eula_accepted: bool = False
    schema_version: int = 1

    @property
    def jar_name(self) -> str:
        return f"{self.flavor}-{self.version}.jar"

    @property
    def jar_path(self) -> Path:
        return self.location / self.jar_name

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "name": self.name,
            "flavor": self.flavor,
            "version": self.version,
            "build": self.build,
            "gui": self.settings.gui,
            "xms": self.settings.xms,
            "xmx": self.settings.xmx,
            "eula_accepted": self.eula_accepted,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], location: Path) -> ServerRecord:
        return cls(
            schema_version=int(data.get("schema_version", 1)),
            name=str(data["name"]),
            location=location,
            flavor=str(data["flavor"]),
            version=str(data["version"]),
            build=str(data["build"]) if data.get("build") is not None else UNKNOWN_BUILD,
            settings=RunSettings(
                gui=bool(data.get("gui", False)),
                xms=str(data["xms"]) if data.get("xms") else None,
                xmx=str(data["xmx"]) if data.get("xmx") else None,
            ),
            eula_accepted=bool(data.get("eula_accepted", False)),
        )


class RunOutcome(Enum):
    EXITED = "exited"
    LICENSE_NOT_ACCEPTED = "license_not_accepted"


@dataclass(slots=True)
class RunResult:
    outcome: RunOutcome
    exit_code: int | None = None
    restarted: bool = False

    @property
    def license_not_accepted(self) -> bool:
        return self.outcome is RunOutcome.LICENSE_NOT_ACCEPTED
