"""
Tests for configuration loading and logging setup.
"""

import json
import logging
from logging.handlers import RotatingFileHandler

import pytest

from starform.config import (
    ApplicationConfig, Environment, FormConfig, LoggingConfig, configure_from_dict,
    get_config, set_config,
)
from starform.log import configure_logging


def test_defaults():
    config = ApplicationConfig()
    assert config.environment is Environment.DEVELOPMENT
    assert config.form == FormConfig()
    assert config.form.insert_label == "Create"
    assert config.form.update_label == "Save"
    assert config.form.render.label_cols == 3
    assert config.form.render.control_cols == 9


def test_for_environment():
    testing = ApplicationConfig.for_environment(Environment.TESTING)
    assert testing.persistence.database_url == "sqlite://"
    assert testing.logging.level == "WARNING"

    production = ApplicationConfig.for_environment(Environment.PRODUCTION)
    assert not production.debug
    assert production.logging.file_path


def test_from_dict_updates_nested_sections():
    config = ApplicationConfig.from_dict({
        "environment": "staging",
        "debug": True,
        "form": {"expose_id": False, "render": {"ajax": True, "label_cols": 2}},
        "persistence": {"database_url": "sqlite:///app.db"},
        "logging": {"level": "DEBUG"},
        "custom": {"brand": "acme"},
        "unknown": {"ignored": True},
    })

    assert config.environment is Environment.STAGING
    assert config.debug
    assert config.form.expose_id is False
    assert config.form.render.ajax is True
    assert config.form.render.label_cols == 2
    assert config.form.render.control_cols == 9
    assert config.persistence.database_url == "sqlite:///app.db"
    assert config.custom == {"brand": "acme"}


def test_to_dict_round_trip():
    config = ApplicationConfig.for_environment(Environment.TESTING)
    config.form.render.ajax = True
    data = config.to_dict()
    assert data["form"]["render"]["ajax"] is True
    assert ApplicationConfig.from_dict(data).to_dict() == data


def test_from_json_file(tmp_path):
    path = tmp_path / "starform.json"
    path.write_text(json.dumps({"form": {"update_label": "Update"}}))
    assert ApplicationConfig.from_file(path).form.update_label == "Update"


def test_from_yaml_file(tmp_path):
    pytest.importorskip("yaml")
    path = tmp_path / "starform.yaml"
    path.write_text("form:\n  insert_label: Add\n  render:\n    control_cols: 6\n")
    config = ApplicationConfig.from_file(path)
    assert config.form.insert_label == "Add"
    assert config.form.render.control_cols == 6


def test_from_file_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        ApplicationConfig.from_file(tmp_path / "missing.json")

    path = tmp_path / "starform.ini"
    path.write_text("[form]")
    with pytest.raises(ValueError):
        ApplicationConfig.from_file(path)


def test_from_environment(monkeypatch):
    monkeypatch.setenv("STARFORM_ENV", "testing")
    monkeypatch.setenv("STARFORM_DEBUG", "true")
    monkeypatch.setenv("STARFORM_DATABASE_URL", "postgresql://db/forms")
    monkeypatch.setenv("STARFORM_LABEL_COLS", "4")
    monkeypatch.setenv("STARFORM_CONTROL_COLS", "8")
    monkeypatch.setenv("STARFORM_AJAX", "1")
    monkeypatch.setenv("STARFORM_LOG_LEVEL", "error")

    config = ApplicationConfig.from_environment()

    assert config.environment is Environment.TESTING
    assert config.debug
    assert config.persistence.database_url == "postgresql://db/forms"
    assert (config.form.render.label_cols, config.form.render.control_cols) == (4, 8)
    assert config.form.render.ajax
    assert config.logging.level == "ERROR"


def test_global_config(monkeypatch):
    monkeypatch.delenv("STARFORM_ENV", raising=False)
    try:
        set_config(None)
        assert get_config().environment is Environment.DEVELOPMENT
        assert get_config() is get_config()

        configured = configure_from_dict({"environment": "production"})
        assert get_config() is configured
    finally:
        set_config(None)


def test_configure_logging(tmp_path):
    log_file = tmp_path / "logs" / "starform.log"
    logger = configure_logging(LoggingConfig(level="debug", file_path=str(log_file)), "starform.test")
    try:
        assert logger.level == logging.DEBUG
        assert any(isinstance(handler, RotatingFileHandler) for handler in logger.handlers)

        logging.getLogger("starform.test.binding").info("saved")
        for handler in logger.handlers:
            handler.flush()
        assert "starform.test.binding - INFO - saved" in log_file.read_text()

        # reconfiguring replaces the previous handlers
        configure_logging(LoggingConfig(level="WARNING"), "starform.test")
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
