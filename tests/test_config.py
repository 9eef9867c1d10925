from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler

import pytest

from timeline.utils.config import get_default_config, load_config, load_config_or_default, merge_config
from timeline.utils.logging_setup import LEVEL_ENV_VAR, _HANDLER_TAG, resolve_level, setup_logging


def test_defaults():
    config = get_default_config()

    assert config['scheduling']['working_days'] == [0, 1, 2, 3, 4]
    assert config['logging']['level'] == 'INFO'


def test_load_yaml_and_json(tmp_path):
    yaml_path = tmp_path / "config.yaml"
    yaml_path.write_text("scheduling:\n  working_days: [0, 1, 2, 3]\n")
    json_path = tmp_path / "config.json"
    json_path.write_text(json.dumps({'logging': {'level': 'DEBUG'}}))

    assert load_config(str(yaml_path)) == {'scheduling': {'working_days': [0, 1, 2, 3]}}
    assert load_config(str(json_path)) == {'logging': {'level': 'DEBUG'}}


def test_empty_yaml_is_an_empty_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")

    assert load_config(str(path)) == {}


def test_load_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))

    path = tmp_path / "config.ini"
    path.write_text("[scheduling]\n")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_merge_is_deep_and_does_not_mutate():
    base = get_default_config()

    merged = merge_config(base, {'generator': {'milestone_count': 2}})

    assert merged['generator']['milestone_count'] == 2
    assert merged['generator']['tasks_per_milestone'] == 5
    assert base['generator']['milestone_count'] == 4


def test_load_config_or_default(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("logging:\n  level: WARNING\n")

    assert load_config_or_default(None) == get_default_config()
    assert load_config_or_default(str(tmp_path / "missing.yaml")) == get_default_config()
    config = load_config_or_default(str(path))
    assert config['logging'] == {'level': 'WARNING', 'file': None}


# --- logging -------------------------------------------------------------

def test_level_precedence(monkeypatch):
    monkeypatch.delenv(LEVEL_ENV_VAR, raising=False)
    assert resolve_level(None, "WARNING") == logging.WARNING

    monkeypatch.setenv(LEVEL_ENV_VAR, "debug")
    assert resolve_level(None, "WARNING") == logging.DEBUG
    assert resolve_level("error", "WARNING") == logging.ERROR


def test_setup_logging_replaces_its_own_handlers(clean_root_logger, tmp_path, monkeypatch):
    monkeypatch.delenv(LEVEL_ENV_VAR, raising=False)
    log_file = tmp_path / "logs" / "timeline.log"

    setup_logging("DEBUG")
    root = setup_logging("INFO", str(log_file))

    ours = [h for h in root.handlers if getattr(h, _HANDLER_TAG, False)]
    assert len(ours) == 2
    assert any(isinstance(h, RotatingFileHandler) for h in ours)
    assert root.level == logging.INFO
    assert log_file.parent.is_dir()
