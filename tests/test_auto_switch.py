import os

import pytest

from conftest import FakeRemoteFetcher
from nds.core.auto_switch import AutoSwitcher, find_marker, read_marker
from nds.core.env_manager import EnvManager
from nds.core.local_manager import LocalManager
from nds.core.version_resolver import VersionNotFoundError, VersionResolver


@pytest.fixture
def project(tmp_path):
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def switcher(config_manager, remote_fetcher, download_manager):
    env = EnvManager(config_manager)
    local = LocalManager(config_manager, download_manager, version_probe=lambda: None)
    return AutoSwitcher(config_manager, VersionResolver(remote_fetcher), local, env)


def test_disabled_does_nothing(switcher, project, remote_fetcher, download_manager):
    (project / ".nvmrc").write_text("22\n")

    assert switcher.run(project, "/usr/bin") is None
    assert remote_fetcher.calls == 0
    assert download_manager.downloads == []


def test_no_marker(switcher, config_manager, project, remote_fetcher):
    config_manager.set_auto_switch(True)
    assert switcher.run(project, "/usr/bin") is None
    assert remote_fetcher.calls == 0


def test_nds_marker_takes_precedence(project):
    (project / ".nvmrc").write_text("18")
    (project / ".nds").write_text("20")
    assert find_marker(project) == project / ".nds"


def test_read_marker_strips_whitespace(project):
    marker = project / ".nvmrc"
    marker.write_text("  v20.13.1 \n\n")
    assert read_marker(marker) == "v20.13.1"
    marker.write_text("\n")
    assert read_marker(marker) is None


def test_switches_to_installed_version_without_network(switcher, config_manager, project, remote_fetcher):
    config_manager.set_auto_switch(True)
    switcher.local_manager.install("18.20.0")
    (project / ".nvmrc").write_text("18\n")

    result = switcher.run(project, "/usr/bin")

    assert result.version == "18.20.0"
    assert result.installed is False
    assert result.marker == project / ".nvmrc"
    assert result.new_path.split(os.pathsep)[0] == str(config_manager.versions_dir / "18.20.0" / "bin")
    assert remote_fetcher.calls == 0


def test_installs_missing_version(switcher, config_manager, project, download_manager):
    config_manager.set_auto_switch(True)
    (project / ".nds").write_text("22")
    messages = []

    result = switcher.run(project, "/usr/bin", messages.append)

    assert result.version == "22.2.0"
    assert result.installed is True
    assert download_manager.downloads == ["22.2.0"]
    assert len(messages) == 1


def test_already_active_returns_none(switcher, config_manager, project):
    config_manager.set_auto_switch(True)
    switcher.local_manager.install("20.13.1")
    (project / ".nds").write_text("20")
    current = switcher.env_manager.compute_path("20.13.1", "/usr/bin")

    assert switcher.run(project, current) is None


def test_unknown_version_raises(config_manager, project, download_manager):
    config_manager.set_auto_switch(True)
    (project / ".nds").write_text("99")
    env = EnvManager(config_manager)
    local = LocalManager(config_manager, download_manager, version_probe=lambda: None)
    switcher = AutoSwitcher(config_manager, VersionResolver(FakeRemoteFetcher()), local, env)

    with pytest.raises(VersionNotFoundError):
        switcher.run(project, "/usr/bin")
    assert download_manager.downloads == []
