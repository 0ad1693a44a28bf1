# tests/test_config.py
# -*- coding: utf-8 -*-
"""
Tests for configuration loading and manager wiring.
"""
import logging

import pytest

from coursecache.cache.durable_store import DiskDurableStore, MemoryDurableStore
from coursecache.config import build_cache_manager, load_config, query_options_for, setup_logging_from_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("COURSECACHE_KEY_PREFIX", "COURSECACHE_DURABLE_DIR", "COURSECACHE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

# --- Test Cases ---

def test_defaults_when_file_missing(tmp_path, caplog):
    with caplog.at_level(logging.WARNING):
        settings = load_config(str(tmp_path / "absent.ini"))
    assert "not found" in caplog.text
    assert settings["key_prefix"] == "artvince_cache_"
    assert settings["durable_dir"] == "./data/cache"
    assert settings["memory_maxsize"] == 1024
    assert settings["coalesce_requests"] is True
    assert settings["log_level"] == "INFO"
    assert settings["log_file"] is None
    assert settings["ttl"]["courses"] == 300_000
    assert settings["ttl"]["enrollments"] == 120_000

def test_file_values_override_defaults(tmp_path):
    config_file = tmp_path / "coursecache.ini"
    config_file.write_text(
        "[cache]\n"
        "key_prefix = test_\n"
        "durable_dir =\n"
        "memory_maxsize = 0\n"
        "coalesce_requests = no\n"
        "log_level = debug\n"
        "log_file = cache.log\n"
        "[ttl]\n"
        "courses = 1000\n"
        "announcements = 2000\n",
        encoding="utf-8",
    )
    settings = load_config(str(config_file))
    assert settings["key_prefix"] == "test_"
    assert settings["durable_dir"] is None
    assert settings["memory_maxsize"] == 0
    assert settings["coalesce_requests"] is False
    assert settings["log_level"] == "DEBUG"
    assert settings["log_file"] == "cache.log"
    assert settings["ttl"]["courses"] == 1000
    assert settings["ttl"]["announcements"] == 2000
    assert settings["ttl"]["trainers"] == 600_000

def test_environment_overrides_file(tmp_path, monkeypatch):
    config_file = tmp_path / "coursecache.ini"
    config_file.write_text("[cache]\nkey_prefix = from_file_\n", encoding="utf-8")
    monkeypatch.setenv("COURSECACHE_KEY_PREFIX", "from_env_")
    monkeypatch.setenv("COURSECACHE_LOG_LEVEL", "warning")
    settings = load_config(str(config_file))
    assert settings["key_prefix"] == "from_env_"
    assert settings["log_level"] == "WARNING"

def test_invalid_number_raises(tmp_path):
    config_file = tmp_path / "coursecache.ini"
    config_file.write_text("[cache]\nmemory_maxsize = lots\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(str(config_file))

def test_build_manager_with_memory_durable_tier():
    settings = load_config(None)
    settings["durable_dir"] = None
    settings["coalesce_requests"] = False
    settings["ttl"]["stats"] = 42
    manager = build_cache_manager(settings, family="stats")
    assert isinstance(manager.store._durable, MemoryDurableStore)
    assert manager.coalesce_requests is False
    assert manager.default_options.ttl == 42

def test_build_manager_with_disk_durable_tier(tmp_path):
    settings = load_config(None)
    settings["durable_dir"] = str(tmp_path / "cache")
    manager = build_cache_manager(settings)
    try:
        assert isinstance(manager.store._durable, DiskDurableStore)
        assert manager.store.key_prefix == "artvince_cache_"
        manager.store.set("courses_home", ["c1"], 60_000, persist=True)
        assert manager.store.get("courses_home") == ["c1"]
    finally:
        manager.store.close()

def test_configured_log_level_and_file_reach_logger(tmp_path, monkeypatch):
    config_file = tmp_path / "coursecache.ini"
    log_file = tmp_path / "cache.log"
    config_file.write_text(f"[cache]\nlog_file = {log_file}\n", encoding="utf-8")
    monkeypatch.setenv("COURSECACHE_LOG_LEVEL", "warning")
    settings = load_config(str(config_file))

    logger = setup_logging_from_config(settings, name="coursecache.test_config_logging")
    try:
        assert logger.level == logging.WARNING
        assert any(isinstance(h, logging.FileHandler) for h in logger.handlers)
        logger.info("below threshold")
        logger.warning("durable tier unavailable")
        for handler in logger.handlers:
            handler.flush()
        text = log_file.read_text(encoding="utf-8")
        assert "durable tier unavailable" in text
        assert "below threshold" not in text
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

def test_unknown_log_level_falls_back_to_info():
    settings = load_config(None)
    settings["log_level"] = "CHATTY"
    logger = setup_logging_from_config(settings, name="coursecache.test_config_unknown")
    try:
        assert logger.level == logging.INFO
    finally:
        logger.handlers.clear()

def test_query_options_follow_ttl_table(tmp_path):
    config_file = tmp_path / "coursecache.ini"
    config_file.write_text("[ttl]\nenrollments = 5000\n", encoding="utf-8")
    settings = load_config(str(config_file))
    assert query_options_for(settings, "enrollments").ttl == 5_000
    assert query_options_for(settings, "trainers").ttl == 600_000
    assert query_options_for(settings, "unknown").ttl == 300_000
    assert query_options_for(settings, "stats", persist=False).persist is False
