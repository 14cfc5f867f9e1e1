"""
Configuration management for the Track Ingestion Service.
Handles loading, validating, and providing access to application settings.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

from app.errors import ConfigurationError


@dataclass
class ServerConfig:
    """HTTP server configuration settings."""
    name: str
    host: str
    port: int
    debug: bool
    certificate: Optional[str] = None
    key: Optional[str] = None
    origins: list[str] = field(default_factory=list)
    max_workers: int = 8


@dataclass
class RedisConfig:
    """Redis store and reconnect configuration settings."""
    host: str
    port: int
    db: int
    ttl: int
    connection_timeout_ms: int
    connection_maximum_attempts: int
    connection_attempts_interval_ms: int
    atomic_expire: bool = False


@dataclass
class ProxyConfig:
    """Outbound proxy configuration settings."""
    enabled: bool
    url: Optional[str] = None


@dataclass
class FetchConfig:
    """Outbound HTTP call settings."""
    timeout: float


@dataclass
class RelayConfig:
    """Third-party relay endpoints (URL templates)."""
    endpoints: list[str] = field(default_factory=list)


@dataclass
class LogConfig:
    """Logging configuration settings."""
    enabled: bool
    level: str


class ConfigManager:
    """Manages application configuration loading and access."""

    def __init__(self, config_file: str = "tracking_config.json"):
        self.config_file = Path(config_file)
        self._config: Optional[Dict[str, Any]] = None
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file and environment variables."""
        # Start with default config
        self._config = self._get_default_config()

        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
                    self._merge_config(file_config)
            except (json.JSONDecodeError, FileNotFoundError):
                # Keep default config if file is invalid or not found
                pass

        self._override_with_env()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "server": {
                "name": "track-ingestion",
                "host": "0.0.0.0",
                "port": 8080,
                "debug": False,
                "certificate": None,
                "key": None,
                "origins": ["*"],
                "max_workers": 8
            },
            "redis": {
                "host": "localhost",
                "port": 6379,
                "db": 0,
                "ttl": 1209600,
                "connection_timeout_ms": 1000,
                "connection_maximum_attempts": 10,
                "connection_attempts_interval_ms": 400,
                "atomic_expire": False
            },
            "proxy": {
                "enabled": False,
                "url": None
            },
            "fetch": {
                "timeout": 1.0
            },
            "relay": {
                "endpoints": []
            },
            "log": {
                "enabled": True,
                "level": "INFO"
            }
        }

    def _merge_config(self, file_config: Dict[str, Any]) -> None:
        """Merge file configuration with current config."""
        for section, values in file_config.items():
            if section in self._config and isinstance(values, dict):
                self._config[section].update(values)
            else:
                self._config[section] = values

    def _override_with_env(self) -> None:
        """Override configuration with environment variables."""
        # Server settings
        if os.getenv("APP_HOST"):
            self._config["server"]["host"] = os.getenv("APP_HOST")

        if os.getenv("APP_PORT"):
            self._config["server"]["port"] = int(os.getenv("APP_PORT"))

        if os.getenv("APP_DEBUG"):
            self._config["server"]["debug"] = os.getenv("APP_DEBUG").lower() == "true"

        # Redis settings
        if os.getenv("REDIS_HOST"):
            self._config["redis"]["host"] = os.getenv("REDIS_HOST")

        if os.getenv("REDIS_PORT"):
            self._config["redis"]["port"] = int(os.getenv("REDIS_PORT"))

        if os.getenv("REDIS_TTL"):
            self._config["redis"]["ttl"] = int(os.getenv("REDIS_TTL"))

        if os.getenv("REDIS_CONNECTION_TIMEOUT_MS"):
            self._config["redis"]["connection_timeout_ms"] = int(os.getenv("REDIS_CONNECTION_TIMEOUT_MS"))

        # Outbound settings
        if os.getenv("HTTPS_PROXY"):
            self._config["proxy"]["enabled"] = True
            self._config["proxy"]["url"] = os.getenv("HTTPS_PROXY")

        if os.getenv("FETCH_TIMEOUT"):
            self._config["fetch"]["timeout"] = float(os.getenv("FETCH_TIMEOUT"))

        if os.getenv("RELAY_ENDPOINTS"):
            self._config["relay"]["endpoints"] = [
                url.strip() for url in os.getenv("RELAY_ENDPOINTS").split(",") if url.strip()
            ]

        # Logging settings
        if os.getenv("LOG_ENABLED"):
            self._config["log"]["enabled"] = os.getenv("LOG_ENABLED").lower() == "true"

        if os.getenv("LOG_LEVEL"):
            self._config["log"]["level"] = os.getenv("LOG_LEVEL").upper()

    def _section(self, name: str) -> Dict[str, Any]:
        """Return a config section or fail loudly when it is missing."""
        section = self._config.get(name)
        if not isinstance(section, dict):
            raise ConfigurationError(f"Missing configuration section '{name}'")
        return section

    def get_server_config(self) -> ServerConfig:
        """Get HTTP server configuration."""
        server_config = self._section("server")
        return ServerConfig(
            name=server_config["name"],
            host=server_config["host"],
            port=server_config["port"],
            debug=server_config["debug"],
            certificate=server_config.get("certificate"),
            key=server_config.get("key"),
            origins=list(server_config.get("origins") or []),
            max_workers=server_config.get("max_workers", 8)
        )

    def get_redis_config(self) -> RedisConfig:
        """Get Redis configuration."""
        redis_config = self._section("redis")
        return RedisConfig(
            host=redis_config["host"],
            port=redis_config["port"],
            db=redis_config.get("db", 0),
            ttl=redis_config["ttl"],
            connection_timeout_ms=redis_config["connection_timeout_ms"],
            connection_maximum_attempts=redis_config["connection_maximum_attempts"],
            connection_attempts_interval_ms=redis_config["connection_attempts_interval_ms"],
            atomic_expire=bool(redis_config.get("atomic_expire", False))
        )

    def get_proxy_config(self) -> ProxyConfig:
        """Get outbound proxy configuration."""
        proxy_config = self._section("proxy")
        return ProxyConfig(
            enabled=proxy_config.get("enabled") is True,
            url=proxy_config.get("url")
        )

    def get_fetch_config(self) -> FetchConfig:
        """Get outbound call configuration."""
        fetch_config = self._section("fetch")
        return FetchConfig(timeout=fetch_config["timeout"])

    def get_relay_config(self) -> RelayConfig:
        """Get relay endpoint configuration."""
        relay_config = self._section("relay")
        return RelayConfig(endpoints=list(relay_config.get("endpoints") or []))

    def get_log_config(self) -> LogConfig:
        """Get logging configuration."""
        log_config = self._section("log")
        return LogConfig(
            enabled=log_config["enabled"],
            level=log_config["level"]
        )

    def get_config(self) -> Dict[str, Any]:
        """Get raw configuration dictionary."""
        return self._config.copy()

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    def save_config(self) -> None:
        """Save current configuration to file."""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self._config, f, indent=2, ensure_ascii=False)


# Global configuration instance
config_manager = ConfigManager()


def get_server_config() -> ServerConfig:
    """Get HTTP server configuration."""
    return config_manager.get_server_config()


def get_redis_config() -> RedisConfig:
    """Get Redis configuration."""
    return config_manager.get_redis_config()


def get_proxy_config() -> ProxyConfig:
    """Get outbound proxy configuration."""
    return config_manager.get_proxy_config()


def get_fetch_config() -> FetchConfig:
    """Get outbound call configuration."""
    return config_manager.get_fetch_config()


def get_relay_config() -> RelayConfig:
    """Get relay endpoint configuration."""
    return config_manager.get_relay_config()


def get_log_config() -> LogConfig:
    """Get logging configuration."""
    return config_manager.get_log_config()


def reload_config() -> None:
    """Reload configuration."""
    config_manager.reload()


def save_config() -> None:
    """Save configuration to file."""
    config_manager.save_config()
