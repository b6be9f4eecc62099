from __future__ import annotations

from pathlib import Path
import logging
import shutil

from .exceptions import DuplicateServerNameError, NoJarFoundError, ServerIOError
from .models import UNKNOWN_BUILD, IndexEntry, ServerRecord
from .utils import (
    find_server_jar,
    load_index,
    load_sidecar,
    normalize_name,
    read_eula_accepted,
    save_index,
    save_sidecar,
    split_jar_name,
)

logger = logging.getLogger(__name__)


class Registry:
    """Index of server names to install directories.

    The index file only stores ``{name, location}`` pairs; everything else
    about a server lives in the sidecar file inside its directory. There is
    no locking: concurrent invocations overwrite each other's index writes.
    """

    def __init__(self, index_path: Path, entries: list[IndexEntry] | None = None) -> None:
        self.index_path = Path(index_path)
        self._entries: list[IndexEntry] = list(entries or [])

    @classmethod
    def load(cls, index_path: str | Path) -> Registry:
        registry = cls(Path(index_path), load_index(Path(index_path)))
        kept: list[IndexEntry] = []
        for entry in registry._entries:
            if entry.location.exists():
                kept.append(entry)
            else:
                logger.warning(
                    "Server '%s' no longer exists at %s; removing it from the registry",
                    entry.name,
                    entry.location,
                )
        if len(kept) != len(registry._entries):
            registry._entries = kept
            registry.save()
        return registry

    @property
    def entries(self) -> list[IndexEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._find(name) is not None

    def save(self) -> None:
        save_index(self.index_path, self._entries)

    def check_name(self, name: str, location: str | Path) -> None:
        """Raise if ``name`` already belongs to a server at another location."""
        location = Path(location).resolve()
        entry = self._find(name)
        if entry is not None and entry.location.resolve() != location:
            raise DuplicateServerNameError(
                f"A server named '{entry.name}' is already registered at {entry.location}."
            )

    def add(self, record: ServerRecord, persist: bool = True) -> None:
        location = Path(record.location).resolve()
        self.check_name(record.name, location)
        replaced = [e for e in self._entries if e.location.resolve() == location]
        if replaced:
            logger.info(
                "Replacing registry entry '%s' at %s", replaced[0].name, location
            )
        self._entries = [e for e in self._entries if e.location.resolve() != location]
        self._entries.append(IndexEntry(name=record.name, location=location))
        if persist:
            self.save()

    def get(self, name: str) -> ServerRecord | None:
        entry = self._find(name)
        if entry is None:
            return None
        record = load_sidecar(entry.location)
        if record is None:
            record = self._repair_sidecar(entry)
        return record

    def update(self, record: ServerRecord) -> None:
        save_sidecar(record)
        self.add(record, persist=True)

    def remove(self, name: str) -> bool:
        entry = self._find(name)
        if entry is None:
            return False
        self._entries.remove(entry)
        self.save()
        return True

    def delete(self, name: str) -> bool:
        """Remove the server's install directory and its registry entry."""
        entry = self._find(name)
        if entry is None:
            return False
        logger.info("Deleting server '%s' at %s", entry.name, entry.location)
        try:
            shutil.rmtree(entry.location)
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise ServerIOError(
                f"Could not delete server '{entry.name}' at {entry.location}: {exc}"
            ) from exc
        return self.remove(entry.name)

    def import_from_directory(self, path: str | Path) -> ServerRecord:
        location = Path(path).resolve()
        if not location.is_dir():
            raise ServerIOError(f"Server directory {location} does not exist.")
        existing = load_sidecar(location)
        if existing is not None:
            return existing
        flavor, version = split_jar_name(find_server_jar(location))
        record = ServerRecord(
            name=location.name,
            location=location,
            flavor=flavor,
            version=version,
            build=UNKNOWN_BUILD,
            eula_accepted=read_eula_accepted(location),
        )
        self.check_name(record.name, location)
        save_sidecar(record)
        return record

    def _find(self, name: str) -> IndexEntry | None:
        wanted = normalize_name(name)
        for entry in self._entries:
            if normalize_name(entry.name) == wanted:
                return entry
        return None

    def _repair_sidecar(self, entry: IndexEntry) -> ServerRecord:
        logger.warning(
            "Server info for '%s' not found in %s; writing defaults", entry.name, entry.location
        )
        try:
            flavor, version = split_jar_name(find_server_jar(entry.location))
        except NoJarFoundError as exc:
            logger.warning("%s", exc)
            flavor, version = UNKNOWN_BUILD, UNKNOWN_BUILD
        record = ServerRecord(
            name=entry.name,
            location=entry.location,
            flavor=flavor,
            version=version,
            eula_accepted=read_eula_accepted(entry.location),
        )
        save_sidecar(record)
        return record
