import os
from dataclasses import dataclass
from threading import Lock

from dotenv import load_dotenv


DEFAULT_PORT = 8080
DEFAULT_COOKIE_NAME = "_tracker"
DEFAULT_MAX_AGE = 2_592_000  # 30 days

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class TrackerConfig:
    disable_cookies: bool = False
    max_age: int = DEFAULT_MAX_AGE
    cookie_name: str = DEFAULT_COOKIE_NAME
    track_ip: bool = True
    port: int = DEFAULT_PORT


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    return value.lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def load_config() -> TrackerConfig:
    """Build the tracker configuration from the environment (and ``.env``)."""

    load_dotenv()
    return TrackerConfig(
        disable_cookies=_env_bool("TRACKER_DISABLE_COOKIES", False),
        max_age=_env_int("TRACKER_COOKIE_MAX_AGE", DEFAULT_MAX_AGE),
        cookie_name=os.getenv("TRACKER_COOKIE_NAME", "").strip() or DEFAULT_COOKIE_NAME,
        track_ip=_env_bool("TRACKER_TRACK_IP", True),
        port=_env_int("PORT", DEFAULT_PORT),
    )


class ConfigHolder:
    """Shared, replaceable reference to the active configuration."""

    def __init__(self, config: TrackerConfig) -> None:
        self._write_lock = Lock()
        self._config = config

    def get(self) -> TrackerConfig:
        # Lock-free read: replace() swaps a single reference to an immutable config.
        return self._config

    def replace(self, config: TrackerConfig) -> None:
        with self._write_lock:
            self._config = config
