import logging

from crudbase.core.logging.builder import make_dict_config, setup_logging
from crudbase.core.logging.formatters import ColorFormatter, JsonFormatter
from crudbase.tests.test_fixtures.settings_fixtures import make_test_settings


def test_stdout_config_uses_error_console():
    cfg = make_dict_config(make_test_settings(LOG_TO_STDOUT=True))

    assert set(cfg["handlers"]) == {"console", "error_console"}
    assert cfg["handlers"]["console"]["formatter"] == "standard"
    assert cfg["formatters"]["standard"]["()"] is ColorFormatter
    assert cfg["formatters"]["json"]["()"] is JsonFormatter
    assert set(cfg["filters"]) == {"correlation_id", "redact"}


def test_file_config_when_not_logging_to_stdout(tmp_path):
    cfg = make_dict_config(make_test_settings(LOG_TO_STDOUT=False, LOG_DIR=tmp_path, LOG_FORMAT="json"))

    assert set(cfg["handlers"]) == {"console", "file", "error_file"}
    assert cfg["handlers"]["file"]["filename"] == str(tmp_path / "crudbase.log")
    assert cfg["handlers"]["error_file"]["level"] == "ERROR"
    assert cfg["handlers"]["console"]["formatter"] == "json"
    assert cfg["loggers"][""]["handlers"] == ["console", "file", "error_file"]


def test_sql_logging_is_opt_in():
    quiet = make_dict_config(make_test_settings())
    loud = make_dict_config(make_test_settings(ENABLE_SQL_LOGGING=True))

    assert quiet["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"
    assert loud["loggers"]["sqlalchemy.engine"]["level"] == "DEBUG"


def test_setup_logging_creates_log_dir(tmp_path):
    """
    Behavior:
            - Apply a file-logging configuration pointing at a missing directory.
            - The directory is created and a record lands in crudbase.log.
    """
    log_dir = tmp_path / "logs"
    assert not log_dir.exists()

    try:
        setup_logging(make_test_settings(LOG_TO_STDOUT=False, LOG_DIR=log_dir, LOG_LEVEL="INFO"))
        assert log_dir.exists()

        logging.getLogger("crudbase.test").info("model.create.success", extra={"model": "Widget"})
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "model.create.success" in (log_dir / "crudbase.log").read_text(encoding="utf-8")
    finally:
        # restore the session configuration installed by conftest
        setup_logging(make_test_settings())
