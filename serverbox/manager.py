from __future__ import annotations

from pathlib import Path
import logging

from .config import Settings
from .downloader import ArtifactDownloader
from .exceptions import ServerIOError, ServerNotFoundError, SidecarError
from .http import HttpClient, ProgressHandler
from .models import RunResult, ServerRecord
from .registry import Registry
from .resolver import BuildResolver
from .supervisor import ProcessSupervisor
from .utils import (
    PLUGINS_DIRNAME,
    PROPERTIES_FILENAME,
    list_plugins,
    parse_properties_file,
    write_server_properties,
)

logger = logging.getLogger(__name__)


class ServerManager:
    """Entry point tying resolution, download, registry and supervision together.

    One manager is built per invocation; it loads the registry once and
    hands the same instance to every operation.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: HttpClient | None = None,
        registry: Registry | None = None,
        supervisor: ProcessSupervisor | None = None,
    ) -> None:
        self.settings = settings or Settings.load()
        self.http_client = http_client or HttpClient(
            timeout_seconds=self.settings.timeout_seconds
        )
        self.resolver = BuildResolver(http_client=self.http_client)
        self.downloader = ArtifactDownloader(resolver=self.resolver)
        self.registry = registry or Registry.load(self.settings.index_path)
        self.supervisor = supervisor or ProcessSupervisor(java_path=self.settings.java_path)

    def create(
        self,
        name: str,
        flavor: str,
        location: str | Path,
        version: str | None = None,
        build: int | str | None = None,
        progress: ProgressHandler | None = None,
    ) -> ServerRecord:
        self.registry.check_name(name, location)
        resolved = self.resolver.resolve(flavor, version=version, build=build)
        record = self.downloader.download(
            flavor=resolved.flavor,
            version=resolved.version,
            build=resolved.build,
            target_name=name,
            target_dir=location,
            progress=progress,
        )
        self.registry.add(record, persist=True)
        return record

    def import_directory(self, path: str | Path) -> ServerRecord:
        record = self.registry.import_from_directory(path)
        self.registry.add(record, persist=True)
        return record

    def get(self, name: str) -> ServerRecord:
        record = self.registry.get(name)
        if record is None:
            raise ServerNotFoundError(f"No server named '{name}' is registered.")
        return record

    def list_servers(self) -> list[ServerRecord]:
        records: list[ServerRecord] = []
        for entry in self.registry.entries:
            try:
                record = self.registry.get(entry.name)
            except SidecarError as exc:
                logger.warning("Skipping server '%s': %s", entry.name, exc)
                continue
            if record is not None:
                records.append(record)
        return records

    def configure(
        self,
        name: str,
        gui: bool | None = None,
        xms: str | None = None,
        xmx: str | None = None,
    ) -> ServerRecord:
        record = self.get(name)
        if gui is not None:
            record.settings.gui = gui
        if xms is not None:
            record.settings.xms = xms or None
        if xmx is not None:
            record.settings.xmx = xmx or None
        self.registry.update(record)
        return record

    def upgrade(
        self,
        name: str,
        version: str | None = None,
        build: int | str | None = None,
        progress: ProgressHandler | None = None,
    ) -> ServerRecord:
        """Point a server at another build, keeping its run settings."""
        current = self.get(name)
        resolved = self.resolver.resolve(
            current.flavor, version=version or current.version, build=build
        )
        fresh = self.downloader.download(
            flavor=resolved.flavor,
            version=resolved.version,
            build=resolved.build,
            target_name=current.name,
            target_dir=current.location,
            progress=progress,
        )
        fresh.settings = current.settings
        if fresh.jar_name != current.jar_name and current.jar_path.exists():
            logger.info("Removing previous jar %s", current.jar_path)
            try:
                current.jar_path.unlink()
            except OSError as exc:
                raise ServerIOError(
                    f"Could not remove {current.jar_path} for '{current.name}': {exc}"
                ) from exc
        self.registry.update(fresh)
        return fresh

    def start(self, name: str, auto_accept_license: bool = False) -> RunResult:
        record = self.get(name)
        return self.supervisor.run(record, auto_accept_license=auto_accept_license)

    def remove(self, name: str) -> None:
        if not self.registry.remove(name):
            raise ServerNotFoundError(f"No server named '{name}' is registered.")

    def delete(self, name: str) -> None:
        if not self.registry.delete(name):
            raise ServerNotFoundError(f"No server named '{name}' is registered.")

    def plugins(self, name: str) -> list[str]:
        return list_plugins(self.get(name).location)

    def remove_plugin(self, name: str, plugin: str) -> None:
        record = self.get(name)
        if plugin not in list_plugins(record.location):
            raise ServerNotFoundError(f"Plugin '{plugin}' not found for server '{name}'.")
        path = record.location / PLUGINS_DIRNAME / plugin
        try:
            path.unlink()
        except OSError as exc:
            raise ServerIOError(f"Could not remove plugin {path}: {exc}") from exc

    def properties(self, name: str) -> dict[str, str]:
        return parse_properties_file(self.get(name).location / PROPERTIES_FILENAME)

    def set_property(self, name: str, key: str, value: str) -> None:
        write_server_properties(self.get(name).location, {key: value})
