"""Runtime configuration for the default store connection."""

from dataclasses import dataclass
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class ConnectionConfig:
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: str | None = None
    connect_timeout_s: float = 5.0
    request_timeout_s: float = 10.0
    max_retries: int = 2
    reconnect_interval_s: float = 0.5
    auto_reconnect: bool = True


def get_connection_config() -> ConnectionConfig:
    """Load connection config from environment variables."""
    password = os.getenv("REJSON_PASSWORD")
    return ConnectionConfig(
        host=os.getenv("REJSON_HOST", "localhost"),
        port=_env_int("REJSON_PORT", 6379),
        db=max(0, _env_int("REJSON_DB", 0)),
        password=password if password else None,
        connect_timeout_s=max(0.1, _env_float("REJSON_CONNECT_TIMEOUT_S", 5.0)),
        request_timeout_s=max(0.1, _env_float("REJSON_REQUEST_TIMEOUT_S", 10.0)),
        max_retries=max(0, _env_int("REJSON_MAX_RETRIES", 2)),
        reconnect_interval_s=max(0.0, _env_float("REJSON_RECONNECT_INTERVAL_S", 0.5)),
        auto_reconnect=_env_bool("REJSON_AUTO_RECONNECT", True),
    )
