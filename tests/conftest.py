import io
import os
import tarfile
from pathlib import Path

import pytest
import requests

from nds.core.config_manager import ConfigManager
from nds.core.download_manager import ExtractionError, extract_archive
from nds.core.interfaces import IRemoteFetcher, IDownloadManager
from nds.core.platform_info import PlatformInfo
from nds.utils.logger import setup_logger


INDEX_TAB = """version	date	files	npm	v8	uv	zlib	openssl	modules	lts	security
v22.2.0	2024-05-15	linux-x64	10.7.0	12.4	1.48.0	1.3	3.0.13	127	-	-
v22.1.0	2024-05-02	linux-x64	10.7.0	12.4	1.48.0	1.3	3.0.13	127	-	-
v20.13.1	2024-05-09	linux-x64	10.5.2	11.3	1.46.0	1.3	3.0.13	115	Iron	-
v20.1.0	2023-05-03	linux-x64	9.6.4	11.3	1.44.2	1.2	3.0.8	115	-	-
v18.20.0	2024-03-26	linux-x64	10.5.0	10.2	1.44.2	1.3	3.0.13	108	Hydrogen	-
v18.17.1	2023-08-09	linux-x64	9.6.7	10.2	1.46.0	1.2	3.0.10	108	Hydrogen	-
v16.20.2	2023-08-09	linux-x64	8.19.4	9.4	1.46.0	1.2	1.1.1v	93	Gallium	-
v14.21.3	2023-02-16	linux-x64	6.14.18	8.4	1.44.2	1.2	1.1.1t	83	Fermium	-
v12.22.12	2022-04-05	linux-x64	6.14.16	7.8	1.40.0	1.2	1.1.1n	72	Erbium	-
v10.24.1	2021-04-06	linux-x64	6.14.12	6.8	1.34.2	1.2	1.1.1k	64	Dubnium	-
v9.11.2	2018-06-12	linux-x64	5.6.0	6.2	1.19.2	1.2	1.0.2o	59	-	-
"""

INDEX_VERSIONS = [
    "22.2.0", "22.1.0", "20.13.1", "20.1.0", "18.20.0", "18.17.1",
    "16.20.2", "14.21.3", "12.22.12", "10.24.1", "9.11.2",
]


def make_node_archive(version: str, dest: Path, include_bin: bool = True) -> Path:
    """Build a small tar.gz laid out like an official Node.js tarball"""
    top = f"node-v{version}-linux-x64"
    with tarfile.open(dest, "w:gz") as tar:
        def add(name, data=b"", mode=0o644, kind=tarfile.REGTYPE, linkname=""):
            info = tarfile.TarInfo(name)
            info.type = kind
            info.mode = mode
            info.linkname = linkname
            if kind == tarfile.REGTYPE:
                info.size = len(data)
                tar.addfile(info, io.BytesIO(data))
            else:
                tar.addfile(info)

        add(top, kind=tarfile.DIRTYPE, mode=0o755)
        if include_bin:
            add(f"{top}/bin", kind=tarfile.DIRTYPE, mode=0o755)
            add(f"{top}/bin/node", f"#!/bin/sh\necho v{version}\n".encode(), mode=0o755)
            add(f"{top}/bin/npm", kind=tarfile.SYMTYPE, linkname="../lib/node_modules/npm/bin/npm-cli.js")
        add(f"{top}/lib", kind=tarfile.DIRTYPE, mode=0o755)
        add(f"{top}/lib/node_modules", kind=tarfile.DIRTYPE, mode=0o755)
        add(f"{top}/README.md", b"node\n")
    return dest


def snapshot_tree(root: Path):
    """Relative paths under root with file bytes and symlink targets"""
    entries = []
    for path in sorted(root.rglob("*")):
        if path.is_symlink():
            content = ("link", os.readlink(path))
        elif path.is_file():
            content = ("file", path.read_bytes())
        else:
            content = ("dir", None)
        entries.append((path.relative_to(root), content))
    return entries


class FakeRemoteFetcher(IRemoteFetcher):
    """Remote fetcher serving a fixed index and counting calls"""

    def __init__(self, versions=None):
        self.versions = list(INDEX_VERSIONS if versions is None else versions)
        self.calls = 0

    def fetch_index(self):
        self.calls += 1
        return list(self.versions)

    def fetch_releases(self):
        return [{"version": v, "release_date": None, "lts": None} for v in self.fetch_index()]


class FakeDownloadManager(IDownloadManager):
    """Download manager that extracts a locally built archive"""

    def __init__(self, tmp_path: Path, include_bin: bool = True, fail_with: Exception = None):
        self.tmp_path = tmp_path
        self.include_bin = include_bin
        self.fail_with = fail_with
        self.downloads = []

    def build_download_url(self, version):
        return f"https://example.invalid/v{version}/node-v{version}-linux-x64.tar.gz"

    def download_and_extract(self, version, target_dir, progress_callback=None, status_callback=None):
        self.downloads.append(version)
        if self.fail_with is not None:
            (Path(target_dir) / "partial").write_text("x")
            raise self.fail_with
        archive = make_node_archive(version, self.tmp_path / f"node-{version}.tar.gz", self.include_bin)
        if progress_callback:
            progress_callback(10, 10)
        extract_archive(archive, Path(target_dir))
        if not (Path(target_dir) / "bin").is_dir():
            raise ExtractionError(f"missing bin in {target_dir}")


class FakeResponse:
    """Minimal stand-in for requests.Response"""

    def __init__(self, text="", content=b"", status_code=200, headers=None):
        self.text = text
        self.content = content
        self.status_code = status_code
        self.headers = headers or {"content-length": str(len(content))}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeSession:
    """Session returning a canned response or raising an error"""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, **kwargs):
        self.requests.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture(autouse=True)
def console_logger():
    """Drop handlers bound to captured streams after each test"""
    yield
    setup_logger(log_to_file=False)


@pytest.fixture
def nds_dir(tmp_path, monkeypatch):
    """Temporary NDS_DIR root"""
    root = tmp_path / "nds"
    monkeypatch.setenv("NDS_DIR", str(root))
    monkeypatch.delenv("NDS_NODE_MIRROR", raising=False)
    return root


@pytest.fixture
def config_manager(nds_dir):
    return ConfigManager(nds_dir)


@pytest.fixture
def remote_fetcher():
    return FakeRemoteFetcher()


@pytest.fixture
def download_manager(tmp_path):
    archives = tmp_path / "archives"
    archives.mkdir()
    return FakeDownloadManager(archives)


@pytest.fixture
def linux_x64():
    return PlatformInfo(os="linux", arch="x64")
