from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping

from ..exceptions import MalformedResponseError


@dataclass(frozen=True, slots=True)
class Flavor(ABC):
    """A distribution source for one family of server jars.

    ``builds_url`` carries a ``{version}`` placeholder and ``download_url``
    carries ``{version}`` and ``{build}``. Subclasses only know how to read
    their provider's build-list payload.
    """

    name: str
    versions_url: str
    builds_url: str
    download_url: str

    def parse_versions(self, payload: Any) -> list[str]:
        versions = payload.get("versions") if isinstance(payload, Mapping) else None
        if not isinstance(versions, list):
            raise MalformedResponseError(
                f"{self.name} version list is missing a 'versions' array."
            )
        return [str(version) for version in versions if version is not None]

    @abstractmethod
    def parse_builds(self, payload: Any, version: str) -> list[int]:
        raise NotImplementedError

    def builds_endpoint(self, version: str) -> str:
        return self.builds_url.format(version=version)

    def artifact_url(self, version: str, build: int | str) -> str:
        return self.download_url.format(version=version, build=build)


def parse_build_number(value: Any, flavor: str, version: str) -> int:
    if isinstance(value, bool):
        raise MalformedResponseError(
            f"{flavor} {version} returned a non-numeric build: {value!r}"
        )
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise MalformedResponseError(
            f"{flavor} {version} returned a non-numeric build: {value!r}"
        ) from exc
