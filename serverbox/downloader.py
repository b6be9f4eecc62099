from __future__ import annotations

from pathlib import Path
import logging

from .exceptions import ServerIOError
from .http import ProgressHandler
from .models import ServerRecord
from .resolver import BuildResolver
from .utils import read_eula_accepted, save_sidecar

logger = logging.getLogger(__name__)


class ArtifactDownloader:
    def __init__(self, resolver: BuildResolver | None = None) -> None:
        self.resolver = resolver or BuildResolver()

    @property
    def http_client(self):
        return self.resolver.http_client

    def download(
        self,
        flavor: str,
        version: str,
        build: int | str,
        target_name: str,
        target_dir: str | Path,
        progress: ProgressHandler | None = None,
    ) -> ServerRecord:
        location = Path(target_dir)
        if not location.is_dir():
            raise ServerIOError(
                f"Target directory {location} for server '{target_name}' does not exist."
            )
        location = location.resolve()
        flavor_name = self.resolver.get_flavor(flavor).name
        url = self.resolver.resolve_download_url(flavor_name, version, build)
        record = ServerRecord(
            name=target_name,
            location=location,
            flavor=flavor_name,
            version=version,
            build=str(build),
        )

        logger.info(
            "Downloading %s %s build %s for '%s'", flavor_name, version, build, target_name
        )

        def _report(received: int, total: int | None) -> None:
            if total:
                logger.debug("%s: %.1f%%", record.jar_name, received * 100 / total)
            if progress:
                progress(received, total)

        self.http_client.download(url=url, destination=record.jar_path, progress=_report)

        record.eula_accepted = read_eula_accepted(location)
        save_sidecar(record)
        logger.info("Downloaded %s to %s", record.jar_name, location)
        return record

    def download_latest(
        self,
        flavor: str,
        target_name: str,
        target_dir: str | Path,
        version: str | None = None,
        progress: ProgressHandler | None = None,
    ) -> ServerRecord:
        resolved = self.resolver.resolve(flavor, version=version)
        return self.download(
            flavor=resolved.flavor,
            version=resolved.version,
            build=resolved.build,
            target_name=target_name,
            target_dir=target_dir,
            progress=progress,
        )
