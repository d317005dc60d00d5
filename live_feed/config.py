"""Configuration for live_feed.

Settings are read from LIVE_FEED_* environment variables. Invalid values fail
at load time rather than during a poll cycle.
"""

import os
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, TypeVar

from live_feed.engine.scheduler import BACKOFF_MULTIPLIER, BASE_INTERVAL_MS, MAX_INTERVAL_MS
from live_feed.services.gateway import DEFAULT_API_PATH, DEFAULT_CACHE_TTL_MS, build_source_urls
from live_feed.storage.snapshot import MAX_ITEMS


ENV_PREFIX = "LIVE_FEED_"

T = TypeVar("T")


@dataclass
class ServerConfig:
    """Server and sync engine settings."""

    name: str = "live_feed"
    log_level: str = "INFO"
    gateway_url: Optional[str] = None
    api_path: str = DEFAULT_API_PATH
    static_url: Optional[str] = "http://127.0.0.1:8000/data/activity.json"
    base_interval_ms: int = BASE_INTERVAL_MS
    max_interval_ms: int = MAX_INTERVAL_MS
    multiplier: float = BACKOFF_MULTIPLIER
    max_items: int = MAX_ITEMS
    request_timeout: float = 30.0
    cache_ttl_ms: int = DEFAULT_CACHE_TTL_MS

    def __post_init__(self):
        self.log_level = self.log_level.upper()
        if self.base_interval_ms <= 0:
            raise ValueError(f"base_interval_ms must be positive, got {self.base_interval_ms}")
        if self.max_interval_ms < self.base_interval_ms:
            raise ValueError("max_interval_ms must be >= base_interval_ms")
        if self.multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {self.multiplier}")
        if self.max_items < 1:
            raise ValueError(f"max_items must be at least 1, got {self.max_items}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")

    @property
    def source_urls(self) -> List[str]:
        return build_source_urls(self.gateway_url, self.api_path, self.static_url)


def _read(env: Mapping[str, str], key: str, convert: Callable[[str], T], default: T) -> T:
    raw = env.get(ENV_PREFIX + key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return convert(raw.strip())
    except ValueError as e:
        raise ValueError(f"Invalid value for {ENV_PREFIX}{key}: {raw!r}") from e


def load_config(env: Optional[Mapping[str, str]] = None) -> ServerConfig:
    """Load configuration from environment variables.

    Args:
        env: Mapping to read from (defaults to os.environ)

    Returns:
        A validated ServerConfig

    Raises:
        ValueError: If a variable can't be parsed or the settings are invalid
    """
    if env is None:
        env = os.environ

    defaults = ServerConfig()
    return ServerConfig(
        name=_read(env, "NAME", str, defaults.name),
        log_level=_read(env, "LOG_LEVEL", str, defaults.log_level),
        gateway_url=_read(env, "GATEWAY_URL", str, defaults.gateway_url),
        api_path=_read(env, "API_PATH", str, defaults.api_path),
        static_url=_read(env, "STATIC_URL", str, defaults.static_url),
        base_interval_ms=_read(env, "BASE_INTERVAL_MS", int, defaults.base_interval_ms),
        max_interval_ms=_read(env, "MAX_INTERVAL_MS", int, defaults.max_interval_ms),
        multiplier=_read(env, "MULTIPLIER", float, defaults.multiplier),
        max_items=_read(env, "MAX_ITEMS", int, defaults.max_items),
        request_timeout=_read(env, "REQUEST_TIMEOUT", float, defaults.request_timeout),
        cache_ttl_ms=_read(env, "CACHE_TTL_MS", int, defaults.cache_ttl_ms),
    )


_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get or create the process-wide configuration."""
    global _config

    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the cached configuration (used by tests)."""
    global _config
    _config = None
