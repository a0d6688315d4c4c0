import json
import os

import pytest

from conftest import snapshot_tree
from nds import cli
from nds.core.config_manager import ConfigManager
from nds.core.platform_info import PlatformInfo
from nds.core.shell_integration import ShellIntegration
from nds.core.version_manager import VersionManager
from nds.main import main


@pytest.fixture
def home(tmp_path):
    path = tmp_path / "home"
    path.mkdir()
    (path / ".bashrc").write_text("")
    return path


@pytest.fixture
def manager(nds_dir, remote_fetcher, download_manager, home, monkeypatch):
    manager = VersionManager(
        ConfigManager(nds_dir),
        remote_fetcher=remote_fetcher,
        download_manager=download_manager,
        version_probe=lambda: None,
        shell_integration=ShellIntegration(home),
    )
    monkeypatch.setattr(cli, "_get_manager", lambda: manager)
    monkeypatch.setattr(cli, "get_platform", lambda: PlatformInfo("linux", "x64"))
    return manager


def test_full_lifecycle(manager, nds_dir, capsys, monkeypatch):
    assert main(["install", "20.13.1"]) == 0
    assert (nds_dir / "versions" / "20.13.1" / "bin").is_dir()
    capsys.readouterr()

    assert main(["list"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert [line.strip() for line in lines[1:]] == ["20.13.1"]

    assert main(["set", "20.13.1"]) == 0
    out = capsys.readouterr().out
    assert out.strip() == str(nds_dir / "versions" / "20.13.1" / "bin")
    assert os.readlink(nds_dir / "default").endswith("20.13.1")

    monkeypatch.setattr(cli, "confirm", lambda message: True)
    assert main(["remove", "20.13.1"]) == 0
    capsys.readouterr()

    assert main(["list"]) == 0
    out = capsys.readouterr().out
    assert "20.13.1" not in out
    assert "(无)" in out


def test_use_prints_bin_path(manager, nds_dir, capsys):
    manager.install("18.20.0")
    assert main(["use", "18"]) == 0
    assert capsys.readouterr().out == f"{nds_dir / 'versions' / '18.20.0' / 'bin'}\n"


def test_use_export(manager, nds_dir, capsys, monkeypatch):
    manager.install("18.20.0")
    monkeypatch.setenv("PATH", "/usr/bin")
    assert main(["use", "18", "--export"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("export PATH=")
    assert str(nds_dir / "versions" / "18.20.0" / "bin") in out


def test_use_not_installed(manager, capsys):
    assert main(["use", "22"]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "22" in captured.err


def test_remove_declined(manager, nds_dir, capsys, monkeypatch):
    manager.install("18.20.0")
    before = snapshot_tree(nds_dir / "versions")
    monkeypatch.setattr(cli, "confirm", lambda message: False)
    assert main(["remove", "18.20.0"]) == 1
    assert "已取消" in capsys.readouterr().err
    assert snapshot_tree(nds_dir / "versions") == before


def test_list_json(manager, capsys):
    manager.install("18.20.0")
    manager.set_default("18.20.0")
    capsys.readouterr()
    assert main(["list", "--format", "json"]) == 0
    listing = json.loads(capsys.readouterr().out)
    assert listing[0]["version"] == "18.20.0"
    assert listing[0]["is_default"] is True


def test_list_marks_default(manager, capsys):
    manager.install("18.20.0")
    manager.set_default("18.20.0")
    capsys.readouterr()
    assert main(["list"]) == 0
    assert "18.20.0 [default]" in capsys.readouterr().out


def test_list_pick_without_fzf(manager, capsys, monkeypatch):
    manager.install("18.20.0")
    monkeypatch.setattr(cli, "has_fzf", lambda: False)
    assert main(["list", "pick"]) == 1
    assert "nds remove" in capsys.readouterr().out
    assert manager.local_manager.installed_versions() == ["18.20.0"]


def test_list_pick_removes_selection(manager, monkeypatch):
    manager.install("18.20.0")
    manager.install("20.13.1")
    prompts = []
    monkeypatch.setattr(cli, "has_fzf", lambda: True)
    monkeypatch.setattr(cli, "pick", lambda items, prompt, multi: ["18.20.0", "20.13.1"])
    monkeypatch.setattr(cli, "confirm", lambda message: prompts.append(message) or True)

    assert main(["list", "pick"]) == 0
    assert manager.local_manager.installed_versions() == []
    assert len(prompts) == 1


def test_install_pick(manager, download_manager, monkeypatch):
    seen = []

    def fake_pick_one(items, prompt):
        seen.extend(items)
        return "16.20.2"

    monkeypatch.setattr(cli, "pick_one", fake_pick_one)
    assert main(["install", "pick"]) == 0
    assert "14.21.3" in seen
    assert "12.22.12" not in seen
    assert download_manager.downloads == ["16.20.2"]


def test_latest(manager, download_manager):
    assert main(["latest"]) == 0
    assert download_manager.downloads == ["22.2.0"]


def test_available(manager, capsys):
    assert main(["available"]) == 0
    out = capsys.readouterr().out.split()
    assert "22.2.0" in out
    assert "12.22.12" not in out


def test_auto_on_off(manager, home, nds_dir, capsys):
    assert main(["auto", "on"]) == 0
    assert "_nds_auto_switch" in (home / ".bashrc").read_text()
    assert ConfigManager(nds_dir).is_auto_switch_enabled()

    assert main(["auto", "status"]) == 0
    assert "AUTO_SWITCH: on" in capsys.readouterr().out

    assert main(["auto", "off"]) == 0
    assert "_nds_auto_switch" not in (home / ".bashrc").read_text()
    assert not ConfigManager(nds_dir).is_auto_switch_enabled()


def test_auto_switch_internal(manager, tmp_path, capsys, monkeypatch):
    project = tmp_path / "project"
    project.mkdir()
    (project / ".nvmrc").write_text("18\n")
    monkeypatch.chdir(project)
    monkeypatch.setenv("PATH", "/usr/bin")

    assert main(["auto-switch-internal"]) == 0
    assert capsys.readouterr().out == ""

    manager.config_manager.set_auto_switch(True)
    assert main(["auto-switch-internal"]) == 0
    captured = capsys.readouterr()
    assert captured.out.startswith("export PATH=")
    assert "18.20.0" in captured.out


def test_init(manager, home, capsys):
    assert main(["init"]) == 0
    assert main(["init"]) == 0
    assert (home / ".bashrc").read_text().count("nds init") == 2


def test_help(nds_dir, capsys):
    assert main([]) == 0
    assert "nds" in capsys.readouterr().out
    assert main(["help"]) == 0


def test_unknown_command():
    with pytest.raises(SystemExit) as excinfo:
        main(["frobnicate"])
    assert excinfo.value.code == 2


def test_init_with_unreadable_profile(manager, home, capsys):
    (home / ".bashrc").write_bytes(b"\xff\xfe\n")
    assert main(["init"]) == 1
    captured = capsys.readouterr()
    assert "错误" in captured.err
    assert "Traceback" not in captured.err
