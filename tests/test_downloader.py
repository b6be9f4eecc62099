import json

import pytest

from serverbox.downloader import ArtifactDownloader
from serverbox.exceptions import ServerIOError, UpstreamUnavailableError
from serverbox.resolver import BuildResolver

PAPER = "https://api.papermc.io/v2/projects/paper"


class _FakeHttp:
    def __init__(self, json_map=None, body=b"jar-bytes", fail=False):
        self.json_map = json_map or {}
        self.body = body
        self.fail = fail
        self.downloads = []

    def get_json(self, url):
        return self.json_map[url]

    def download(self, url, destination, progress=None):
        self.downloads.append(url)
        if self.fail:
            destination.with_name(destination.name + ".part").write_bytes(self.body[:3])
            raise UpstreamUnavailableError(f"Download failed for {url}")
        destination.write_bytes(self.body)
        if progress:
            progress(len(self.body), len(self.body))
        return destination


def _downloader(http):
    return ArtifactDownloader(resolver=BuildResolver(http_client=http))


def test_download_writes_jar_and_sidecar(tmp_path):
    http = _FakeHttp()
    record = _downloader(http).download("paper", "1.21.1", 120, "Lobby", tmp_path)

    assert (tmp_path / "paper-1.21.1.jar").read_bytes() == b"jar-bytes"
    assert http.downloads == [
        f"{PAPER}/versions/1.21.1/builds/120/downloads/paper-1.21.1-120.jar"
    ]
    assert record.name == "Lobby"
    assert record.build == "120"
    assert record.settings.gui is False
    assert record.settings.xms is None and record.settings.xmx is None
    sidecar = json.loads((tmp_path / "server_box.json").read_text(encoding="utf-8"))
    assert sidecar["flavor"] == "paper"
    assert sidecar["version"] == "1.21.1"


def test_download_twice_overwrites_single_jar(tmp_path):
    downloader = _downloader(_FakeHttp(body=b"first"))
    downloader.download("paper", "1.21.1", 119, "Lobby", tmp_path)
    downloader = _downloader(_FakeHttp(body=b"second"))
    record = downloader.download("paper", "1.21.1", 120, "Lobby", tmp_path)

    jars = list(tmp_path.glob("paper-1.21.1*.jar"))
    assert jars == [tmp_path / "paper-1.21.1.jar"]
    assert jars[0].read_bytes() == b"second"
    assert record.build == "120"


def test_download_reports_progress(tmp_path):
    seen = []
    _downloader(_FakeHttp()).download(
        "paper", "1.21.1", 120, "Lobby", tmp_path, progress=lambda r, t: seen.append((r, t))
    )
    assert seen == [(9, 9)]


def test_download_requires_existing_target_dir(tmp_path):
    with pytest.raises(ServerIOError):
        _downloader(_FakeHttp()).download("paper", "1.21.1", 120, "Lobby", tmp_path / "missing")
    assert not (tmp_path / "missing").exists()


def test_failed_download_leaves_partial_file_and_no_sidecar(tmp_path):
    with pytest.raises(UpstreamUnavailableError):
        _downloader(_FakeHttp(fail=True)).download("paper", "1.21.1", 120, "Lobby", tmp_path)
    assert (tmp_path / "paper-1.21.1.jar.part").exists()
    assert not (tmp_path / "server_box.json").exists()


def test_download_latest_resolves_first(tmp_path):
    http = _FakeHttp(
        json_map={
            PAPER: {"versions": ["1.20.4", "1.21.1"]},
            f"{PAPER}/versions/1.21.1": {"builds": [118, 120, 119]},
        }
    )
    record = _downloader(http).download_latest("paper", "Lobby", tmp_path)
    assert (record.version, record.build) == ("1.21.1", "120")
    assert record.jar_path == tmp_path.resolve() / "paper-1.21.1.jar"
