import pytest

from nds.core.config_manager import (
    ConfigManager,
    ConfigValidationError,
    DEFAULT_MIRROR_URL,
    parse_bool,
    parse_config_text,
)


def test_defaults_without_config_file(config_manager, nds_dir):
    """A missing config file falls back to defaults and is not created"""
    assert not config_manager.is_auto_switch_enabled()
    assert config_manager.get_mirror_url() == DEFAULT_MIRROR_URL
    assert config_manager.get_index_url() == f"{DEFAULT_MIRROR_URL}/index.tab"
    assert config_manager.get_archive_ext() == "tar.gz"
    assert config_manager.get_request_timeout() == 30.0
    assert not (nds_dir / "config").exists()


def test_layout(config_manager, nds_dir):
    assert config_manager.versions_dir == nds_dir / "versions"
    assert config_manager.default_link == nds_dir / "default"
    assert config_manager.log_dir == nds_dir / "logs"


def test_root_from_env(nds_dir):
    assert ConfigManager().root_dir == nds_dir


def test_parse_config_text():
    text = """
# comment
AUTO_SWITCH = on
export NODE_MIRROR="https://mirror.example/node/"
broken line
"""
    assert parse_config_text(text) == {
        "AUTO_SWITCH": "on",
        "NODE_MIRROR": "https://mirror.example/node/",
    }


def test_parse_bool():
    assert parse_bool("true") and parse_bool("ON") and parse_bool("1")
    assert not parse_bool("false") and not parse_bool("off")
    with pytest.raises(ConfigValidationError):
        parse_bool("maybe")


def test_set_auto_switch_persists(config_manager, nds_dir):
    config_manager.set_auto_switch(True)
    assert "AUTO_SWITCH=true" in (nds_dir / "config").read_text()
    assert ConfigManager(nds_dir).is_auto_switch_enabled()

    config_manager.set_auto_switch(False)
    assert not ConfigManager(nds_dir).is_auto_switch_enabled()


def test_invalid_values_fall_back_to_defaults(nds_dir):
    nds_dir.mkdir(parents=True)
    (nds_dir / "config").write_text("AUTO_SWITCH=perhaps\nARCHIVE_EXT=zip\nCUSTOM=kept\n")
    manager = ConfigManager(nds_dir)
    assert not manager.is_auto_switch_enabled()
    assert manager.get_archive_ext() == "tar.gz"
    assert manager.get_value("CUSTOM") == "kept"


def test_unknown_keys_survive_save(nds_dir):
    nds_dir.mkdir(parents=True)
    (nds_dir / "config").write_text("CUSTOM=kept\n")
    manager = ConfigManager(nds_dir)
    manager.set_auto_switch(True)
    content = (nds_dir / "config").read_text()
    assert "CUSTOM=kept" in content
    assert "AUTO_SWITCH=true" in content


def test_set_value_rejects_invalid(config_manager):
    with pytest.raises(ConfigValidationError):
        config_manager.set_value("REQUEST_TIMEOUT", "0")
    with pytest.raises(ConfigValidationError):
        config_manager.set_value("NODE_MIRROR", "ftp://nope")


def test_mirror_env_override(config_manager, monkeypatch):
    monkeypatch.setenv("NDS_NODE_MIRROR", "https://npmmirror.com/mirrors/node/")
    assert config_manager.get_mirror_url() == "https://npmmirror.com/mirrors/node"
    assert config_manager.get_index_url() == "https://npmmirror.com/mirrors/node/index.tab"
