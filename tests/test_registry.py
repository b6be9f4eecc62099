import json
import shutil

import pytest

from serverbox.exceptions import DuplicateServerNameError, NoJarFoundError, SidecarError
from serverbox.models import RunSettings, ServerRecord
from serverbox.registry import Registry
from serverbox.utils import save_sidecar


def _server(tmp_path, dirname, name=None, **kwargs):
    location = tmp_path / dirname
    location.mkdir()
    record = ServerRecord(
        name=name or dirname,
        location=location.resolve(),
        flavor=kwargs.pop("flavor", "paper"),
        version=kwargs.pop("version", "1.21.1"),
        build=kwargs.pop("build", "120"),
        **kwargs,
    )
    save_sidecar(record)
    return record


def test_missing_index_loads_empty(tmp_path):
    registry = Registry.load(tmp_path / "servers.json")
    assert len(registry) == 0
    assert not (tmp_path / "servers.json").exists()


def test_corrupt_index_loads_empty(tmp_path):
    index = tmp_path / "servers.json"
    index.write_text("{not json", encoding="utf-8")
    assert len(Registry.load(index)) == 0


def test_index_with_non_list_servers_loads_empty(tmp_path):
    index = tmp_path / "servers.json"
    index.write_text(json.dumps({"servers": 5}), encoding="utf-8")
    assert len(Registry.load(index)) == 0


def test_add_then_get_round_trips_through_sidecar(tmp_path):
    index = tmp_path / "servers.json"
    record = _server(tmp_path, "lobby", name="Lobby", settings=RunSettings(gui=True, xmx="4G"))
    Registry.load(index).add(record, persist=True)

    loaded = Registry.load(index).get("LOBBY")
    assert loaded is not None
    assert loaded.name == "Lobby"
    assert (loaded.flavor, loaded.version, loaded.build) == ("paper", "1.21.1", "120")
    assert loaded.location == record.location
    assert loaded.settings.gui is True
    assert loaded.settings.xmx == "4G"


def test_index_ignores_unknown_fields(tmp_path):
    record = _server(tmp_path, "lobby")
    index = tmp_path / "servers.json"
    index.write_text(
        json.dumps(
            {
                "schema_version": 7,
                "theme": "dark",
                "servers": [{"name": "lobby", "location": str(record.location), "color": "red"}],
            }
        ),
        encoding="utf-8",
    )
    assert Registry.load(index).get("lobby") is not None


def test_load_prunes_vanished_locations_once(tmp_path):
    index = tmp_path / "servers.json"
    registry = Registry.load(index)
    registry.add(_server(tmp_path, "lobby"))
    registry.add(_server(tmp_path, "survival"))
    shutil.rmtree(tmp_path / "survival")

    first = Registry.load(index)
    assert [entry.name for entry in first.entries] == ["lobby"]
    persisted = json.loads(index.read_text(encoding="utf-8"))
    assert [server["name"] for server in persisted["servers"]] == ["lobby"]

    mtime = index.stat().st_mtime_ns
    second = Registry.load(index)
    assert [entry.name for entry in second.entries] == ["lobby"]
    assert index.stat().st_mtime_ns == mtime


def test_add_same_location_replaces_entry(tmp_path):
    registry = Registry.load(tmp_path / "servers.json")
    record = _server(tmp_path, "lobby")
    registry.add(record)
    record.name = "Hub"
    registry.add(record)
    assert [entry.name for entry in registry.entries] == ["Hub"]


def test_add_rejects_duplicate_name_at_other_location(tmp_path):
    registry = Registry.load(tmp_path / "servers.json")
    registry.add(_server(tmp_path, "one", name="Lobby"))
    with pytest.raises(DuplicateServerNameError):
        registry.add(_server(tmp_path, "two", name="lobby"))


def test_add_without_persist_does_not_write(tmp_path):
    index = tmp_path / "servers.json"
    Registry.load(index).add(_server(tmp_path, "lobby"), persist=False)
    assert not index.exists()


def test_get_repairs_missing_sidecar(tmp_path):
    index = tmp_path / "servers.json"
    record = _server(tmp_path, "lobby", name="Lobby", settings=RunSettings(gui=True))
    registry = Registry.load(index)
    registry.add(record)
    (record.location / "server_box.json").unlink()
    (record.location / "purpur-1.20.4.jar").write_bytes(b"jar")

    repaired = registry.get("lobby")

    assert repaired is not None
    assert repaired.name == "Lobby"
    assert (repaired.flavor, repaired.version, repaired.build) == ("purpur", "1.20.4", "unknown")
    assert repaired.settings.gui is False
    assert (record.location / "server_box.json").exists()


def test_get_with_corrupt_sidecar_raises(tmp_path):
    registry = Registry.load(tmp_path / "servers.json")
    record = _server(tmp_path, "lobby")
    registry.add(record)
    (record.location / "server_box.json").write_text("[]", encoding="utf-8")
    with pytest.raises(SidecarError):
        registry.get("lobby")


def test_get_unknown_name_returns_none(tmp_path):
    assert Registry.load(tmp_path / "servers.json").get("nope") is None


def test_remove_keeps_files(tmp_path):
    registry = Registry.load(tmp_path / "servers.json")
    record = _server(tmp_path, "lobby")
    registry.add(record)
    assert registry.remove("LOBBY") is True
    assert "lobby" not in registry
    assert record.location.exists()
    assert registry.remove("lobby") is False


def test_delete_removes_directory(tmp_path):
    registry = Registry.load(tmp_path / "servers.json")
    record = _server(tmp_path, "lobby")
    registry.add(record)
    assert registry.delete("lobby") is True
    assert not record.location.exists()
    assert len(Registry.load(tmp_path / "servers.json")) == 0


def test_import_without_jar_fails(tmp_path):
    (tmp_path / "empty").mkdir()
    with pytest.raises(NoJarFoundError):
        Registry.load(tmp_path / "servers.json").import_from_directory(tmp_path / "empty")


def test_import_with_two_jars_fails(tmp_path):
    directory = tmp_path / "two"
    directory.mkdir()
    (directory / "paper-1.21.1.jar").write_bytes(b"")
    (directory / "purpur-1.21.1.jar").write_bytes(b"")
    with pytest.raises(NoJarFoundError):
        Registry.load(tmp_path / "servers.json").import_from_directory(directory)


def test_import_splits_jar_name_on_first_delimiter(tmp_path):
    directory = tmp_path / "velocity-proxy"
    directory.mkdir()
    (directory / "velocity-3.3.0-SNAPSHOT.jar").write_bytes(b"")
    (directory / "eula.txt").write_text("eula=true\n", encoding="utf-8")

    record = Registry.load(tmp_path / "servers.json").import_from_directory(directory)

    assert record.name == "velocity-proxy"
    assert record.flavor == "velocity"
    assert record.version == "3.3.0-SNAPSHOT"
    assert record.build == "unknown"
    assert record.eula_accepted is True
    assert record.jar_path == directory.resolve() / "velocity-3.3.0-SNAPSHOT.jar"
    assert (directory / "server_box.json").exists()


def test_import_rejects_taken_name_before_writing_sidecar(tmp_path):
    registry = Registry.load(tmp_path / "servers.json")
    registry.add(_server(tmp_path, "lobby", name="Lobby"))
    elsewhere = tmp_path / "elsewhere" / "lobby"
    elsewhere.mkdir(parents=True)
    (elsewhere / "paper-1.21.1.jar").write_bytes(b"")

    with pytest.raises(DuplicateServerNameError):
        registry.import_from_directory(elsewhere)
    assert not (elsewhere / "server_box.json").exists()


def test_check_name_allows_same_location(tmp_path):
    registry = Registry.load(tmp_path / "servers.json")
    record = _server(tmp_path, "lobby", name="Lobby")
    registry.add(record)
    registry.check_name("LOBBY", record.location)
    with pytest.raises(DuplicateServerNameError):
        registry.check_name("lobby", tmp_path / "other")
