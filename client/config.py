"""
Centralized configuration for the UNO Classic sync client.

Configuration is loaded from (in order of precedence):
1. Environment variables
2. .env file (if exists)
3. Default values

Usage:
    from config import config
    print(config.SOCKET_PATH)
    print(config.ACK_TIMEOUT_SECONDS)
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    if val in ("false", "0", "no", "off"):
        return False
    return default


def get_env_float(key: str, default: float = 0.0) -> float:
    """Get float environment variable."""
    try:
        return float(os.environ.get(key, str(default)))
    except ValueError:
        return default


@dataclass
class ClientConfig:
    """Client configuration."""
    # Channel
    SOCKET_ORIGIN: str = ""
    DEFAULT_ORIGIN: str = "http://localhost:4000"
    SOCKET_PATH: str = "/api/uno/socket"
    ACK_TIMEOUT_SECONDS: float = 10.0
    WARMUP_TIMEOUT_SECONDS: float = 3.0

    # Player
    PLAYER_NAME: str = "Player"

    # Stats collaborator
    STATS_URL: str = ""
    STATS_ENABLED: bool = True
    STATS_TIMEOUT_SECONDS: float = 5.0
    INTERNAL_KEY: str = ""
    USER_ID: str = ""
    GAME_NAME: str = "UNO"

    # Ops
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"
    SENTRY_DSN: str = ""

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Load configuration from environment variables."""
        return cls(
            SOCKET_ORIGIN=get_env("UNO_SOCKET_ORIGIN", "").strip(),
            DEFAULT_ORIGIN=get_env("UNO_DEFAULT_ORIGIN", "http://localhost:4000"),
            SOCKET_PATH=get_env("UNO_SOCKET_PATH", "/api/uno/socket"),
            ACK_TIMEOUT_SECONDS=get_env_float("ACK_TIMEOUT_SECONDS", 10.0),
            WARMUP_TIMEOUT_SECONDS=get_env_float("WARMUP_TIMEOUT_SECONDS", 3.0),
            PLAYER_NAME=get_env("UNO_PLAYER_NAME", "Player"),
            STATS_URL=get_env("UNO_STATS_URL", ""),
            STATS_ENABLED=get_env_bool("UNO_STATS_ENABLED", True),
            STATS_TIMEOUT_SECONDS=get_env_float("STATS_TIMEOUT_SECONDS", 5.0),
            INTERNAL_KEY=get_env("UNO_INTERNAL_KEY", ""),
            USER_ID=get_env("UNO_USER_ID", ""),
            GAME_NAME=get_env("UNO_GAME_NAME", "UNO"),
            LOG_LEVEL=get_env("LOG_LEVEL", "INFO"),
            ENVIRONMENT=get_env("ENVIRONMENT", "development"),
            SENTRY_DSN=get_env("SENTRY_DSN", ""),
        )


# Global config instance - loaded once at module import
config = ClientConfig.from_env()


def reload_config() -> ClientConfig:
    """Reload configuration from environment (useful for testing)."""
    global config
    config = ClientConfig.from_env()
    return config
