from __future__ import annotations

from contextvars import ContextVar, Token
import os

_VERBOSE_LOGGING: ContextVar[bool] = ContextVar(
    "remoteflow_verbose_logging", default=False
)

_DEFAULT_API_TIMEOUT = 30.0
_DEFAULT_API_MAX_ATTEMPTS = 4
_MAX_API_ATTEMPTS = 10


def _read_positive_int_env(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if value <= 0:
        return default
    return min(value, _MAX_API_ATTEMPTS)


def _read_positive_float_env(name: str, default: float) -> float:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if value <= 0:
        return default
    return value


def get_verbose_logging() -> bool:
    return _VERBOSE_LOGGING.get()


def set_verbose_logging(enabled: bool) -> Token[bool]:
    return _VERBOSE_LOGGING.set(bool(enabled))


def reset_verbose_logging(token: Token[bool]) -> None:
    _VERBOSE_LOGGING.reset(token)


def get_api_timeout() -> float:
    return _read_positive_float_env("REMOTEFLOW_API_TIMEOUT", _DEFAULT_API_TIMEOUT)


def get_api_max_attempts() -> int:
    return _read_positive_int_env(
        "REMOTEFLOW_API_MAX_ATTEMPTS", _DEFAULT_API_MAX_ATTEMPTS
    )
