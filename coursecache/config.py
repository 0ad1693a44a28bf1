# coursecache/config.py
"""
Configuration loading for the read cache.

Settings come from an INI file layered over built-in defaults, with a few
environment variable overrides:

    [cache]
    key_prefix = artvince_cache_
    durable_dir = ./data/cache
    memory_maxsize = 1024
    coalesce_requests = true
    log_level = INFO
    log_file =

    [ttl]
    courses = 300000
    enrollments = 120000
"""

from __future__ import annotations
import configparser
import logging
import os
from typing import Any, Optional

from .cache.cache_entry import CACHE_TTL
from .cache.cache_manager import CacheManager, QueryOptions
from .cache.cache_store import DEFAULT_KEY_PREFIX, DEFAULT_MEMORY_MAXSIZE, CacheStore
from .cache.durable_store import DEFAULT_DISK_CACHE_DIR, DiskDurableStore, MemoryDurableStore
from .utils.logger import setup_logger

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "coursecache.ini"

# Environment variable -> [cache] option
ENV_OVERRIDES = {
    "COURSECACHE_KEY_PREFIX": "key_prefix",
    "COURSECACHE_DURABLE_DIR": "durable_dir",
    "COURSECACHE_LOG_LEVEL": "log_level",
}


def load_config(config_file: Optional[str] = DEFAULT_CONFIG_FILE) -> dict[str, Any]:
    """
    Read cache settings from an INI file.

    A missing or unreadable file is not an error; defaults are used and a
    warning is logged. Environment overrides win over file values.

    Args:
        config_file: Path to the INI file. None skips the file entirely.

    Returns:
        Settings dict with typed values (see module docstring for keys) and a
        ``ttl`` dict of per-family TTLs in milliseconds.

    Raises:
        ValueError: If a numeric or boolean option cannot be parsed.
    """
    config = configparser.ConfigParser()
    config.read_dict(
        {
            "cache": {
                "key_prefix": DEFAULT_KEY_PREFIX,
                "durable_dir": DEFAULT_DISK_CACHE_DIR,
                "memory_maxsize": str(DEFAULT_MEMORY_MAXSIZE),
                "coalesce_requests": "true",
                "log_level": "INFO",
                "log_file": "",  # empty: no file output
            },
            "ttl": {name: str(ttl) for name, ttl in CACHE_TTL.items()},
        }
    )

    if config_file:
        if os.path.exists(config_file):
            try:
                config.read(config_file, encoding="utf-8")
                logger.info(f"Loaded cache configuration from {config_file}")
            except (configparser.Error, OSError, UnicodeDecodeError) as e:
                logger.warning(f"Could not read config file {config_file}. Using defaults. Error: {e}")
        else:
            logger.warning(f"Config file {config_file} not found. Using defaults.")

    for env_name, option in ENV_OVERRIDES.items():
        if env_name in os.environ:
            config["cache"][option] = os.environ[env_name]

    section = config["cache"]
    settings = {
        "key_prefix": section.get("key_prefix"),
        "durable_dir": section.get("durable_dir") or None,  # empty: in-memory durable tier
        "memory_maxsize": section.getint("memory_maxsize"),
        "coalesce_requests": section.getboolean("coalesce_requests"),
        "log_level": section.get("log_level").upper(),
        "log_file": section.get("log_file") or None,
        "ttl": {name: config["ttl"].getint(name) for name in config["ttl"]},
    }
    return settings


def setup_logging_from_config(settings: dict[str, Any], name: str = "coursecache") -> logging.Logger:
    """
    Apply the log_level and log_file settings to the package logger.

    Unknown level names fall back to INFO.
    """
    level = getattr(logging, settings.get("log_level") or "INFO", logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO
    return setup_logger(name, level=level, log_file=settings.get("log_file"))


def query_options_for(settings: dict[str, Any], family: str, **overrides: Any) -> QueryOptions:
    """
    Query options using the configured TTL of a data family.

    Families missing from the ttl table use the courses default.
    """
    ttl = settings.get("ttl", {}).get(family, CACHE_TTL["courses"])
    return QueryOptions(ttl=ttl, **overrides)


def build_cache_manager(settings: dict[str, Any], family: str = "courses") -> CacheManager:
    """
    Wire a CacheStore, its durable provider and a CacheManager from settings.

    Args:
        settings: Output of load_config().
        family: TTL family used for the manager's default query options.

    Returns:
        A ready CacheManager.
    """
    if settings.get("durable_dir"):
        durable = DiskDurableStore(settings["durable_dir"])
    else:
        durable = MemoryDurableStore()

    store = CacheStore(
        durable_store=durable,
        key_prefix=settings["key_prefix"],
        memory_maxsize=settings["memory_maxsize"],
    )
    return CacheManager(
        store,
        coalesce_requests=settings["coalesce_requests"],
        default_options=query_options_for(settings, family),
    )
