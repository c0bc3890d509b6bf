"""Runtime configuration loaded from environment variables."""
from __future__ import annotations

from dataclasses import dataclass
import os

from .utils.exceptions import ConfigurationError

DEFAULT_WATCH_LIST = ("SPY", "QQQ", "DIA", "IWM")
DEFAULT_ORDER_TIMEOUT_SEC = 5.0
DEFAULT_CONNECT_TIMEOUT_SEC = 5.0


@dataclass(frozen=True)
class AppConfig:
    host: str
    port: int
    client_id: int
    account: str | None
    watch_list: tuple[str, ...]
    order_timeout_sec: float
    connect_timeout_sec: float
    log_level: str
    log_file: str | None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def _parse_watch_list(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_WATCH_LIST
    symbols = []
    for part in raw.split(","):
        symbol = part.strip().upper()
        if symbol and symbol not in symbols:
            symbols.append(symbol)
    return tuple(symbols) or DEFAULT_WATCH_LIST


def load_config() -> AppConfig:
    """Load config from environment with safe defaults for local IB Gateway."""
    return AppConfig(
        host=os.getenv("TRADETERM_IB_HOST", "127.0.0.1"),
        port=_env_int("TRADETERM_IB_PORT", 4001),
        client_id=_env_int("TRADETERM_IB_CLIENT_ID", 0),
        account=os.getenv("TRADETERM_IB_ACCOUNT") or None,
        watch_list=_parse_watch_list(os.getenv("TRADETERM_WATCH_LIST")),
        order_timeout_sec=_env_float("TRADETERM_ORDER_TIMEOUT_SEC", DEFAULT_ORDER_TIMEOUT_SEC),
        connect_timeout_sec=_env_float(
            "TRADETERM_CONNECT_TIMEOUT_SEC", DEFAULT_CONNECT_TIMEOUT_SEC
        ),
        log_level=os.getenv("TRADETERM_LOG_LEVEL", "INFO"),
        log_file=os.getenv("TRADETERM_LOG_FILE") or None,
    )
