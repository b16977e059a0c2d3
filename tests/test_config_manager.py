# tests/test_config_manager.py
# 配置加载测试

import pytest

from core import config_manager
from core.config_manager import DEFAULT_CONFIG, get_config, load_config, reload_config


@pytest.fixture(autouse=True)
def reset_cache(monkeypatch):
    monkeypatch.setattr(config_manager, "_cached_config", None)


def write(tmp_path, text):
    path = tmp_path / "config.yml"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_missing_file_uses_defaults(tmp_path):
    config = load_config(str(tmp_path / "missing.yml"))
    assert config == DEFAULT_CONFIG


def test_values_override_defaults(tmp_path):
    path = write(tmp_path, "log_level: debug\nlog_dir: null\n")
    config = load_config(path)
    assert config["log_level"] == "debug"
    assert config["log_dir"] is None
    assert config["log_backup_count"] == DEFAULT_CONFIG["log_backup_count"]


def test_invalid_level_falls_back_to_defaults(tmp_path, caplog):
    path = write(tmp_path, "log_level: LOUD\n")
    config = load_config(path)
    assert config == DEFAULT_CONFIG
    assert "log_level" in caplog.text


def test_negative_backup_count_rejected(tmp_path):
    path = write(tmp_path, "log_backup_count: -1\n")
    assert load_config(path) == DEFAULT_CONFIG


def test_non_mapping_document_ignored(tmp_path):
    path = write(tmp_path, "- just\n- a list\n")
    assert load_config(path) == DEFAULT_CONFIG


def test_broken_yaml_ignored(tmp_path):
    path = write(tmp_path, "log_level: [unclosed\n")
    assert load_config(path) == DEFAULT_CONFIG


def test_reload_updates_cache(tmp_path):
    path = write(tmp_path, "log_level: WARNING\n")
    load_config(path)
    assert get_config()["log_level"] == "WARNING"
    write(tmp_path, "log_level: ERROR\n")
    reload_config(path)
    assert get_config()["log_level"] == "ERROR"
