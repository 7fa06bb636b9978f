# tests/test_config.py
import logging

from ntool import config
from ntool.config import ProbeConfig, get_config, set_config
from ntool.logging_config import setup_logging


def test_defaults():
    c = ProbeConfig()
    assert c.ping_count == 4
    assert c.ping_timeout == 2.0
    assert c.ping_interval == 1.0
    assert c.max_hops == 30
    assert c.max_queries == 3
    assert c.payload_size == 56


def test_from_env(monkeypatch):
    monkeypatch.setattr(config, "ENV_LOCATIONS", [])
    monkeypatch.setenv("NTOOL_PING_COUNT", "9")
    monkeypatch.setenv("NTOOL_MAX_HOPS", "12")
    monkeypatch.setenv("NTOOL_TRACE_TIMEOUT", "0.6")

    c = ProbeConfig.from_env()
    assert c.ping_count == 9
    assert c.max_hops == 12
    assert c.trace_timeout == 0.6
    assert c.max_queries == 3


def test_env_file_is_loaded(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("NTOOL_MAX_QUERIES=5\n")
    monkeypatch.setattr(config, "ENV_LOCATIONS", [tmp_path / "missing.env", env_file])
    monkeypatch.delenv("NTOOL_MAX_QUERIES", raising=False)

    assert config.load_env_file() == env_file
    assert ProbeConfig.from_env().max_queries == 5
    monkeypatch.delenv("NTOOL_MAX_QUERIES", raising=False)


def test_global_config_roundtrip():
    custom = ProbeConfig(ping_count=2)
    set_config(custom)
    assert get_config() is custom


def test_setup_logging_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "ntool.log"
    logger = setup_logging(level="DEBUG", log_file=str(log_file), enable_console=False, enable_file=True)

    logging.getLogger("ntool.ping.core").debug("probe sent")
    for handler in logger.handlers:
        handler.flush()

    assert logger.propagate is False
    assert "probe sent" in log_file.read_text()
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
