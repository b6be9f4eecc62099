from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..exceptions import MalformedResponseError
from .base import Flavor, parse_build_number

PAPER_API_BASE = "https://api.papermc.io/v2/projects"


@dataclass(frozen=True, slots=True)
class PaperFamilyFlavor(Flavor):
    """PaperMC v2 projects answer with ``{"builds": [int, ...]}``."""

    def parse_builds(self, payload: Any, version: str) -> list[int]:
        builds = payload.get("builds") if isinstance(payload, Mapping) else None
        if not isinstance(builds, list):
            raise MalformedResponseError(
                f"{self.name} {version} build list is not a flat 'builds' array."
            )
        return [parse_build_number(build, self.name, version) for build in builds]


def paper_project(project: str) -> PaperFamilyFlavor:
    base = f"{PAPER_API_BASE}/{project}"
    return PaperFamilyFlavor(
        name=project,
        versions_url=base,
        builds_url=f"{base}/versions/{{version}}",
        download_url=(
            f"{base}/versions/{{version}}/builds/{{build}}/downloads/"
            f"{project}-{{version}}-{{build}}.jar"
        ),
    )
