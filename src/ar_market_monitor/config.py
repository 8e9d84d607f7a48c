"""Application configuration helpers."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import time
import os
from pathlib import Path
from typing import Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .models import InstrumentClass

ENV_PREFIX = "AR_MARKET_MONITOR_"

DEFAULT_FEED_BASE_URL = "https://data-912-proxy.ferminrp.workers.dev"

FEED_PATHS: Mapping[InstrumentClass, str] = {
    InstrumentClass.EQUITY: "/live/arg_stocks",
    InstrumentClass.SOVEREIGN_BOND: "/live/arg_bonds",
    InstrumentClass.CORPORATE_NOTE: "/live/arg_corp",
    InstrumentClass.FX_MEP: "/live/mep",
}


def _find_env_file(candidate: str) -> Path | None:
    """Locate ``candidate`` as given, or in the working directory or any parent."""

    path = Path(candidate)
    if path.is_absolute():
        return path if path.is_file() else None
    cwd = Path.cwd().resolve()
    for directory in (cwd, *cwd.parents):
        if (directory / candidate).is_file():
            return directory / candidate
    return None


def _read_env_file(path: Path) -> dict[str, str]:
    """Read the monitor's ``AR_MARKET_MONITOR_*`` assignments from a dotenv file.

    Unquoted values may carry a trailing ``# comment``; other keys are ignored.
    """

    variables: dict[str, str] = {}
    for line in path.read_text().splitlines():
        key, sep, value = line.strip().removeprefix("export ").partition("=")
        key = key.strip()
        if not sep or not key.startswith(ENV_PREFIX):
            continue
        value = value.strip()
        if value[:1] in ("'", '"'):
            value = value[1:].split(value[0], 1)[0]
        else:
            value = value.split(" #", 1)[0].strip()
        variables[key] = value
    return variables


def _load_profile_env(env: Mapping[str, str]) -> dict[str, str]:
    """Values from ``AR_MARKET_MONITOR_ENV_FILE``, else ``.env.<profile>``."""

    candidate = env.get(f"{ENV_PREFIX}ENV_FILE") or f".env.{env.get(f'{ENV_PREFIX}ENV', 'local')}"
    path = _find_env_file(candidate)
    return _read_env_file(path) if path is not None else {}


def _parse_positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(f"{ENV_PREFIX}{name}")
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"{ENV_PREFIX}{name} must be positive, got {value}")
    return value


def _parse_clock_time(env: Mapping[str, str], name: str, default: time) -> time:
    raw = env.get(f"{ENV_PREFIX}{name}")
    if raw is None or not raw.strip():
        return default
    try:
        hour_str, minute_str = raw.strip().split(":", 1)
        return time(int(hour_str), int(minute_str))
    except ValueError as exc:
        raise RuntimeError(f"{ENV_PREFIX}{name} must be in HH:MM format, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Runtime configuration."""

    feed_base_url: str = DEFAULT_FEED_BASE_URL
    poll_interval_seconds: int = 20
    request_timeout_seconds: int = 30
    timezone: str = "America/Argentina/Buenos_Aires"
    market_open: time = time(11, 0)
    market_close: time = time(17, 0)
    history_size: int = 30
    mep_bond: str = "AL30"
    database_url: str = "sqlite:///ar_market_monitor.db"
    log_level: str = "INFO"

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def mep_bond_usd(self) -> str:
        """The USD-settled counterpart of the MEP bond."""

        return f"{self.mep_bond}D"

    def feed_url(self, instrument_class: InstrumentClass) -> str:
        return f"{self.feed_base_url.rstrip('/')}{FEED_PATHS[instrument_class]}"

    @staticmethod
    def load(env: Mapping[str, str] | None = None) -> "Settings":
        """Load settings from environment variables."""

        base_env = dict(os.environ if env is None else env)
        file_env = _load_profile_env(base_env)
        # Environment variables set in the shell take precedence over the file.
        merged_env = {**file_env, **base_env}
        defaults = Settings()

        timezone = merged_env.get(f"{ENV_PREFIX}TIMEZONE") or defaults.timezone
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise RuntimeError(f"Unknown timezone: {timezone}") from exc

        market_open = _parse_clock_time(merged_env, "MARKET_OPEN", defaults.market_open)
        market_close = _parse_clock_time(merged_env, "MARKET_CLOSE", defaults.market_close)
        if market_open > market_close:
            raise RuntimeError("Market open time must not be later than market close time")

        return Settings(
            feed_base_url=merged_env.get(f"{ENV_PREFIX}FEED_BASE_URL") or defaults.feed_base_url,
            poll_interval_seconds=_parse_positive_int(
                merged_env, "POLL_INTERVAL_SECONDS", defaults.poll_interval_seconds
            ),
            request_timeout_seconds=_parse_positive_int(
                merged_env, "REQUEST_TIMEOUT_SECONDS", defaults.request_timeout_seconds
            ),
            timezone=timezone,
            market_open=market_open,
            market_close=market_close,
            history_size=_parse_positive_int(merged_env, "HISTORY_SIZE", defaults.history_size),
            mep_bond=merged_env.get(f"{ENV_PREFIX}MEP_BOND") or defaults.mep_bond,
            database_url=merged_env.get(f"{ENV_PREFIX}DATABASE_URL") or defaults.database_url,
            log_level=merged_env.get(f"{ENV_PREFIX}LOG_LEVEL") or defaults.log_level,
        )


__all__ = ["Settings", "FEED_PATHS", "DEFAULT_FEED_BASE_URL", "ENV_PREFIX"]
