from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping
import json
import logging
import re

from .exceptions import NoJarFoundError, ServerIOError, SidecarError
from .models import IndexEntry, ServerRecord

logger = logging.getLogger(__name__)

SIDECAR_FILENAME = "server_box.json"
EULA_FILENAME = "eula.txt"
PROPERTIES_FILENAME = "server.properties"
PLUGINS_DIRNAME = "plugins"
INDEX_SCHEMA_VERSION = 1
JAR_NAME_DELIMITER = "-"


def normalize_name(value: str) -> str:
    return value.strip().lower()


def version_key(version: str) -> tuple:
    """Sort key for dotted versions; a release sorts above its pre-releases."""
    head, _, tail = version.partition("-")
    numbers: list[int] = []
    for part in head.split("."):
        match = re.match(r"\d+", part)
        numbers.append(int(match.group()) if match else 0)
    suffix_numbers = tuple(int(n) for n in re.findall(r"\d+", tail))
    return (tuple(numbers), 0 if tail else 1, suffix_numbers, version)


def write_json(path: Path, payload: Any) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)
            handle.write("\n")
    except OSError as exc:
        raise ServerIOError(f"Could not write {path}: {exc}") from exc
    return path


def sidecar_path(location: Path) -> Path:
    return location / SIDECAR_FILENAME


def save_sidecar(record: ServerRecord) -> Path:
    return write_json(sidecar_path(record.location), record.to_dict())


def load_sidecar(location: Path) -> ServerRecord | None:
    path = sidecar_path(location)
    if not path.exists():
        return None
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except OSError as exc:
        raise ServerIOError(f"Could not read sidecar {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise SidecarError(f"Sidecar {path} is not valid JSON.") from exc
    if not isinstance(payload, Mapping):
        raise SidecarError(f"Sidecar {path} must contain a JSON object.")
    try:
        return ServerRecord.from_dict(payload, location=location)
    except (KeyError, TypeError, ValueError) as exc:
        raise SidecarError(f"Sidecar {path} is missing field {exc}.") from exc


def load_index(path: Path) -> list[IndexEntry]:
    """Read the registry index. Any problem reading it yields no entries."""
    if not path.exists():
        return []
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable registry index %s: %s", path, exc)
        return []
    if not isinstance(payload, Mapping):
        logger.warning("Ignoring registry index %s: not a JSON object", path)
        return []
    servers = payload.get("servers", [])
    if not isinstance(servers, list):
        logger.warning("Ignoring registry index %s: servers is not a list", path)
        return []
    entries: list[IndexEntry] = []
    for item in servers:
        if not isinstance(item, Mapping):
            continue
        try:
            entries.append(IndexEntry.from_dict(item))
        except KeyError:
            logger.warning("Skipping incomplete registry entry %r", item)
    return entries


def save_index(path: Path, entries: Iterable[IndexEntry]) -> Path:
    payload = {
        "schema_version": INDEX_SCHEMA_VERSION,
        "servers": [entry.to_dict() for entry in entries],
    }
    return write_json(path, payload)


def find_server_jar(directory: Path) -> Path:
    jars = sorted(
        path for path in directory.glob("*.jar") if path.is_file()
    )
    if not jars:
        raise NoJarFoundError(f"No .jar file found in {directory}.")
    if len(jars) > 1:
        names = ", ".join(path.name for path in jars)
        raise NoJarFoundError(
            f"Expected exactly one .jar file in {directory}, found {len(jars)}: {names}."
        )
    return jars[0]


def split_jar_name(jar: Path) -> tuple[str, str]:
    """Split ``<flavor>-<version>.jar`` on its first delimiter."""
    flavor, delimiter, version = jar.stem.partition(JAR_NAME_DELIMITER)
    if not delimiter or not flavor or not version:
        raise NoJarFoundError(
            f"Cannot infer flavor and version from jar name '{jar.name}'. "
            f"Expected '<flavor>{JAR_NAME_DELIMITER}<version>.jar'."
        )
    return flavor, version


def read_eula_accepted(location: Path) -> bool:
    path = location / EULA_FILENAME
    if not path.exists():
        return False
    return parse_properties_file(path).get("eula", "").lower() == "true"


def accept_eula(location: Path) -> bool:
    """Flip ``eula=false`` to ``eula=true``. Returns True if the file changed."""
    path = location / EULA_FILENAME
    if not path.exists():
        logger.warning("EULA file %s not found; cannot accept it", path)
        return False
    try:
        lines = path.read_text(encoding="utf-8").splitlines(keepends=True)
        changed = False
        for index, line in enumerate(lines):
            if line.strip() == "eula=false":
                lines[index] = line.replace("eula=false", "eula=true", 1)
                changed = True
                break
        if changed:
            path.write_text("".join(lines), encoding="utf-8")
    except OSError as exc:
        raise ServerIOError(f"Could not update {path}: {exc}") from exc
    return changed


def parse_properties_file(path: Path) -> dict[str, str]:
    properties: dict[str, str] = {}
    if not path.exists():
        return properties
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith(("#", "!")):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        properties[key.strip()] = value.strip()
    return properties


def write_server_properties(instance_dir: Path, properties: Mapping[str, str]) -> Path:
    """Update keys in server.properties, keeping comments and other lines."""
    path = instance_dir / PROPERTIES_FILENAME
    pending = dict(properties)
    lines: list[str] = []
    if path.exists():
        for raw_line in path.read_text(encoding="utf-8").splitlines():
            stripped = raw_line.strip()
            if stripped and not stripped.startswith(("#", "!")) and "=" in stripped:
                key = stripped.split("=", 1)[0].strip()
                if key in pending:
                    lines.append(f"{key}={pending.pop(key)}")
                    continue
            lines.append(raw_line)
    lines.extend(f"{key}={value}" for key, value in pending.items())
    try:
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    except OSError as exc:
        raise ServerIOError(f"Could not write {path}: {exc}") from exc
    return path


def list_plugins(instance_dir: Path) -> list[str]:
    plugins_dir = instance_dir / PLUGINS_DIRNAME
    if not plugins_dir.is_dir():
        return []
    return sorted(
        path.name
        for path in plugins_dir.iterdir()
        if path.is_file() and path.suffix.lower() == ".jar"
    )
