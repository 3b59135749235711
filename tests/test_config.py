import logging

from grc_dashboard.config import DEFAULT_ANALYSIS_MODEL, DEFAULT_STORAGE_PATH, load_settings
from grc_dashboard.logger_config import setup_logger


def test_defaults(monkeypatch):
    for name in ("GRC_STORAGE_PATH", "OPENAI_API_KEY", "GRC_ANALYSIS_MODEL", "GRC_LOG_LEVEL", "GRC_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings(use_dotenv=False)
    assert settings.storage_path == DEFAULT_STORAGE_PATH
    assert settings.openai_api_key is None
    assert settings.analysis_model == DEFAULT_ANALYSIS_MODEL
    assert settings.log_level == logging.INFO


def test_from_environment(monkeypatch):
    monkeypatch.setenv("GRC_STORAGE_PATH", "/tmp/grc.json")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("GRC_ANALYSIS_MODEL", "gpt-4o")
    monkeypatch.setenv("GRC_LOG_LEVEL", "debug")
    settings = load_settings(use_dotenv=False)
    assert settings.storage_path == "/tmp/grc.json"
    assert settings.openai_api_key == "sk-test"
    assert settings.analysis_model == "gpt-4o"
    assert settings.log_level == logging.DEBUG


def test_unknown_log_level_falls_back(monkeypatch):
    monkeypatch.setenv("GRC_LOG_LEVEL", "loud")
    assert load_settings(use_dotenv=False).log_level == logging.INFO


def test_setup_logger_adds_handlers_once(tmp_path):
    log_file = tmp_path / "grc.log"
    logger = setup_logger("grc_dashboard.test", str(log_file))
    again = setup_logger("grc_dashboard.test", str(log_file))
    assert logger is again
    assert len(logger.handlers) == 2
    logger.info("hello")
    for handler in logger.handlers:
        handler.flush()
    assert "[INFO] hello" in log_file.read_text()
