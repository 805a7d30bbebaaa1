"""
Tests for configuration loading, environment overrides and logging setup.
"""

import json
import logging

import pytest

from printhero.config import ConfigError, ServiceConfig, load_config, save_config
from printhero.logging_config import LOG_FILE_NAME, configure_logging


class TestLoadConfig:

    def test_defaults_when_no_file(self, tmp_path):
        config = load_config(environ={"PRINTHERO_CONFIG": str(tmp_path / "none.json")})
        assert config == ServiceConfig()

    def test_file_values_are_applied(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"settle_delay": 2.5, "worker_count": 4}))

        config = load_config(path, environ={})

        assert config.settle_delay == 2.5
        assert config.worker_count == 4

    def test_environment_overrides_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"worker_count": 4}))

        config = load_config(
            path,
            environ={"PRINTHERO_WORKER_COUNT": "3", "PRINTHERO_DRY_RUN": "true"},
        )

        assert config.worker_count == 3
        assert config.dry_run is True

    def test_explicit_missing_file_is_an_error(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "missing.json", environ={})

    def test_invalid_json_is_an_error(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")

        with pytest.raises(ConfigError):
            load_config(path, environ={})

    def test_unknown_key_is_an_error(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"printer": "office"}))

        with pytest.raises(ConfigError):
            load_config(path, environ={})

    def test_invalid_values_are_rejected(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(environ={
                "PRINTHERO_CONFIG": str(tmp_path / "none.json"),
                "PRINTHERO_LOG_LEVEL": "chatty",
            })

        with pytest.raises(ConfigError):
            load_config(environ={
                "PRINTHERO_CONFIG": str(tmp_path / "none.json"),
                "PRINTHERO_PRINTED_SUBFOLDER_NAME": "a/b",
            })

    def test_save_and_reload(self, tmp_path):
        config = ServiceConfig(settle_delay=0.25, api_port=9000, log_dir=None)
        path = save_config(config, tmp_path / "nested" / "config.json")

        assert load_config(path, environ={}) == config


class TestConfigureLogging:

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        for handler in list(root.handlers):
            if handler not in handlers:
                root.removeHandler(handler)
                handler.close()
        root.setLevel(level)

    def test_file_handler_writes_log(self, tmp_path):
        configure_logging("DEBUG", tmp_path / "logs")

        logging.getLogger("printhero.test").info("hello from the test")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "hello from the test" in (tmp_path / "logs" / LOG_FILE_NAME).read_text()

    def test_reconfiguring_replaces_handlers(self, tmp_path):
        configure_logging("INFO")
        before = len(logging.getLogger().handlers)

        configure_logging("WARNING")

        assert len(logging.getLogger().handlers) == before
        assert logging.getLogger().level == logging.WARNING

    def test_unknown_level_is_rejected(self):
        with pytest.raises(ValueError):
            configure_logging("chatty")
