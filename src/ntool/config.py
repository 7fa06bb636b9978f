"""
Configuration management for ntool.

Loads probe defaults from environment variables or a .env file.
"""

import os
from pathlib import Path
from dataclasses import dataclass

from dotenv import load_dotenv

# Check common locations for .env
ENV_LOCATIONS = [
    Path.home() / ".ntool" / ".env",
    Path.home() / ".config" / "ntool" / ".env",
    Path.cwd() / ".env",
]


def load_env_file() -> Path | None:
    """Load the first .env file found. Returns its path, if any."""
    for env_path in ENV_LOCATIONS:
        if env_path.exists():
            load_dotenv(env_path)
            return env_path
    return None


@dataclass
class ProbeConfig:
    """Defaults for ping and traceroute runs."""

    # Ping
    ping_count: int = 4
    ping_timeout: float = 2.0   # seconds to wait for each reply
    ping_interval: float = 1.0  # seconds between probes

    # Traceroute
    max_hops: int = 30
    max_queries: int = 3
    trace_timeout: float = 1.0

    # Packet
    payload_size: int = 56

    # Logging
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "ProbeConfig":
        """Load configuration from environment variables."""
        load_env_file()
        defaults = cls()
        return cls(
            ping_count=int(os.getenv("NTOOL_PING_COUNT", defaults.ping_count)),
            ping_timeout=float(os.getenv("NTOOL_PING_TIMEOUT", defaults.ping_timeout)),
            ping_interval=float(os.getenv("NTOOL_PING_INTERVAL", defaults.ping_interval)),
            max_hops=int(os.getenv("NTOOL_MAX_HOPS", defaults.max_hops)),
            max_queries=int(os.getenv("NTOOL_MAX_QUERIES", defaults.max_queries)),
            trace_timeout=float(os.getenv("NTOOL_TRACE_TIMEOUT", defaults.trace_timeout)),
            payload_size=int(os.getenv("NTOOL_PAYLOAD_SIZE", defaults.payload_size)),
            log_level=os.getenv("NTOOL_LOG_LEVEL", defaults.log_level),
        )


# Global config instance
_config: ProbeConfig | None = None


def get_config() -> ProbeConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ProbeConfig.from_env()
    return _config


def set_config(config: ProbeConfig | None) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
