import pytest

from plansync.core.config import DEFAULT_CONFIG, load_config
from plansync.core.errors import ConfigError


def test_defaults_without_file_or_env():
    cfg = load_config(env={})
    assert cfg == DEFAULT_CONFIG
    assert cfg.dismiss_days == 7
    assert cfg.log_level == "WARNING"


def test_config_file_overrides_defaults():
    cfg = load_config("examples/plansync.yaml", env={})
    assert cfg.dismiss_days == 3
    assert cfg.log_level == "INFO"
    assert cfg.state_file == DEFAULT_CONFIG.state_file


def test_env_overrides_file():
    env = {"PLANSYNC_DISMISS_DAYS": "1.5", "PLANSYNC_LOG_LEVEL": "debug", "PLANSYNC_MODEL": " "}
    cfg = load_config("examples/plansync.yaml", env=env)
    assert cfg.dismiss_days == 1.5
    assert cfg.log_level == "DEBUG"
    assert cfg.model == "gpt-4.1-mini"


def test_unknown_key_rejected(tmp_path):
    p = tmp_path / "cfg.yaml"
    p.write_text("dismiss_dayz: 3\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="unknown config option 'dismiss_dayz'"):
        load_config(str(p), env={})


def test_bad_values_rejected(tmp_path):
    p = tmp_path / "cfg.yaml"
    p.write_text("log_level: LOUD\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="log_level"):
        load_config(str(p), env={})

    with pytest.raises(ConfigError, match="dismiss_days"):
        load_config(env={"PLANSYNC_DISMISS_DAYS": "-2"})

    p.write_text("dismiss_days: true\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(p), env={})


def test_non_mapping_file_rejected(tmp_path):
    p = tmp_path / "cfg.yaml"
    p.write_text("- 1\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(p), env={})


def test_malformed_yaml_rejected(tmp_path):
    p = tmp_path / "cfg.yaml"
    p.write_text("dismiss_days: [3\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="not valid YAML"):
        load_config(str(p), env={})
