from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..exceptions import MalformedResponseError
from .base import Flavor, parse_build_number

PURPUR_API = "https://api.purpurmc.org/v2/purpur"


@dataclass(frozen=True, slots=True)
class PurpurFlavor(Flavor):
    """Purpur answers with ``{"builds": {"latest": str, "all": [str, ...]}}``."""

    def parse_builds(self, payload: Any, version: str) -> list[int]:
        builds = payload.get("builds") if isinstance(payload, Mapping) else None
        if not isinstance(builds, Mapping) or not isinstance(builds.get("all"), list):
            raise MalformedResponseError(
                f"{self.name} {version} build list is missing 'builds.all'."
            )
        return [parse_build_number(build, self.name, version) for build in builds["all"]]


def purpur() -> PurpurFlavor:
    return PurpurFlavor(
        name="purpur",
        versions_url=PURPUR_API,
        builds_url=f"{PURPUR_API}/{{version}}",
        download_url=f"{PURPUR_API}/{{version}}/{{build}}/download",
    )
