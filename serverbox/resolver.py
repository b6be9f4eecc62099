from __future__ import annotations

import logging

from .exceptions import (
    BuildNotFoundError,
    NoBuildsForVersionError,
    UnknownFlavorError,
    VersionNotFoundError,
)
from .flavors import Flavor, create_flavor_registry
from .http import HttpClient
from .models import ResolvedBuild
from .utils import normalize_name, version_key

logger = logging.getLogger(__name__)


class BuildResolver:
    """Turns flavor/version/build requests into verified download targets."""

    def __init__(
        self,
        http_client: HttpClient | None = None,
        flavors: dict[str, Flavor] | None = None,
    ) -> None:
        self.http_client = http_client or HttpClient()
        self._flavors = flavors if flavors is not None else create_flavor_registry()

    def list_flavors(self) -> list[str]:
        return list(self._flavors.keys())

    def get_flavor(self, name: str) -> Flavor:
        flavor = self._flavors.get(normalize_name(name))
        if flavor is None:
            known = ", ".join(self._flavors)
            raise UnknownFlavorError(f"Unknown flavor '{name}'. Known flavors: {known}.")
        return flavor

    def list_versions(self, flavor: str) -> list[str]:
        provider = self.get_flavor(flavor)
        payload = self.http_client.get_json(provider.versions_url)
        versions = provider.parse_versions(payload)
        return sorted({v for v in versions if v}, key=version_key, reverse=True)

    def list_builds(self, flavor: str, version: str) -> list[int]:
        provider = self.get_flavor(flavor)
        payload = self.http_client.get_json(provider.builds_endpoint(version))
        builds = sorted(set(provider.parse_builds(payload, version)), reverse=True)
        if not builds:
            raise NoBuildsForVersionError(
                f"{provider.name} has no builds for version {version}."
            )
        return builds

    def latest_build(self, flavor: str, version: str) -> int:
        return self.list_builds(flavor, version)[0]

    def resolve_download_url(self, flavor: str, version: str, build: int | str) -> str:
        return self.get_flavor(flavor).artifact_url(version, build)

    def resolve(
        self,
        flavor: str,
        version: str | None = None,
        build: int | str | None = None,
    ) -> ResolvedBuild:
        provider = self.get_flavor(flavor)
        versions = self.list_versions(provider.name)
        if version is None or version == "latest":
            if not versions:
                raise VersionNotFoundError(f"{provider.name} did not list any versions.")
            version = versions[0]
        elif version not in versions:
            raise VersionNotFoundError(
                f"{provider.name} does not publish version {version}."
            )

        builds = self.list_builds(provider.name, version)
        if build is None:
            chosen = builds[0]
        else:
            try:
                chosen = int(build)
            except (TypeError, ValueError) as exc:
                raise BuildNotFoundError(
                    f"{provider.name} build '{build}' is not a build number."
                ) from exc
            if chosen not in builds:
                raise BuildNotFoundError(
                    f"{provider.name} build {chosen} not found for {version}."
                )

        logger.debug("Resolved %s %s build %s", provider.name, version, chosen)
        return ResolvedBuild(
            flavor=provider.name,
            version=version,
            build=chosen,
            download_url=provider.artifact_url(version, chosen),
        )
