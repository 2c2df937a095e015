"""Configuration settings for the godar monitor."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable

import boto3
import yaml
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger("godar.config")

# Shared SSM client for credential reads. Default to a region so imports do
# not fail in environments without AWS configuration (e.g. CI test runners).
_ssm_client = boto3.client(
    "ssm",
    region_name=os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or "us-east-1",
)


class ConfigError(ValueError):
    """Raised when the loaded configuration is unusable."""


def _get_bool(env_var: str, default: bool = False) -> bool:
    """Parse an environment variable into a boolean with a default."""

    value = os.getenv(env_var)
    if value is None:
        return default

    return value.lower() in {"1", "true", "yes", "on"}


_DURATION_RE = re.compile(r"^\s*(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0, None: 1.0}


def parse_duration(value: Any) -> float:
    """Parse a duration such as ``90``, ``"30s"``, ``"5m"`` or ``"1h"`` into seconds."""

    if isinstance(value, bool):
        raise ConfigError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ConfigError(f"Invalid duration: {value!r}")
    return float(match.group("value")) * _DURATION_UNITS[match.group("unit")]


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).lower() in {"1", "true", "yes", "on"}


def _get_parsed(env_var: str, default: str, parser: Callable[[Any], Any]) -> Any:
    """Parse an environment variable at import time, keeping the default on bad input.

    :func:`load_settings` re-reads the environment strictly and reports the error.
    """

    raw = os.getenv(env_var)
    if raw is not None:
        try:
            return parser(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("Ignoring invalid %s=%r: %s", env_var, raw, exc)
    return parser(default)


def _get_duration(env_var: str, default: str) -> float:
    return _get_parsed(env_var, default, parse_duration)


@lru_cache(maxsize=1)
def get_feed_password(parameter_name: str) -> str:
    """Fetch the feed server password from AWS SSM Parameter Store.

    The value is cached in-memory to avoid repeated SSM calls. Any failure to
    retrieve the password results in a runtime error so startup fails fast.
    """

    try:
        response = _ssm_client.get_parameter(Name=parameter_name, WithDecryption=True)
        value = response.get("Parameter", {}).get("Value")
    except (ClientError, BotoCoreError) as exc:  # pragma: no cover - AWS error passthrough
        logger.error("Failed to load feed password from SSM: %s", exc)
        raise RuntimeError("Unable to load feed password from SSM") from exc

    if not value:
        logger.error("Received empty feed password from SSM")
        raise RuntimeError("Feed password not configured in SSM")

    return value


@dataclass
class Settings:
    """Monitor configuration loaded from environment variables."""

    godar_env: str = os.getenv("GODAR_ENV", "local")
    log_level: str = os.getenv("GODAR_LOG_LEVEL", "INFO")
    debug: bool = _get_bool("GODAR_DEBUG")

    # Feed server
    server_url: str = os.getenv("GODAR_SERVER_URL", "")
    server_username: str = os.getenv("GODAR_SERVER_USERNAME", "")
    server_password: str = os.getenv("GODAR_SERVER_PASSWORD", "")
    server_password_ssm_param: str | None = os.getenv("GODAR_SERVER_PASSWORD_SSM_PARAM")
    server_timeout: float = _get_parsed("GODAR_SERVER_TIMEOUT", "30.0", float)
    server_max_retries: int = _get_parsed("GODAR_SERVER_MAX_RETRIES", "3", int)
    server_retry_delay: float = _get_parsed("GODAR_SERVER_RETRY_DELAY", "1.0", float)
    login_path: str = os.getenv("GODAR_LOGIN_PATH", "/login.php")
    session_cookie_name: str = os.getenv("GODAR_SESSION_COOKIE_NAME", "rauth")

    # Server-side filters
    filter_aircraft_type: str = os.getenv("GODAR_FILTER_AIRCRAFT_TYPE", "")
    filter_min_altitude: int = _get_parsed("GODAR_FILTER_MIN_ALTITUDE", "0", int)
    filter_max_altitude: int = _get_parsed("GODAR_FILTER_MAX_ALTITUDE", "0", int)
    filter_military: bool = _get_bool("GODAR_FILTER_MILITARY")
    filter_operator: str = os.getenv("GODAR_FILTER_OPERATOR", "")
    filter_flight_number: str = os.getenv("GODAR_FILTER_FLIGHT_NUMBER", "")

    # Observer location; 0,0 disables location filtering and geometry
    latitude: float = _get_parsed("GODAR_LOCATION_LATITUDE", "0.0", float)
    longitude: float = _get_parsed("GODAR_LOCATION_LONGITUDE", "0.0", float)
    max_distance: float = _get_parsed("GODAR_LOCATION_MAX_DISTANCE", "0.0", float)

    # Monitoring
    monitor_enabled: bool = _get_bool("GODAR_MONITOR_ENABLED")
    poll_interval: float = _get_duration("GODAR_MONITORING_POLL_INTERVAL", "60s")

    # Notifications
    notification_enabled: bool = _get_bool("GODAR_NOTIFICATION_ENABLED")
    notify_urls: str = os.getenv("GODAR_NOTIFICATION_URLS", "dbus://")
    notify_on_closer_only: bool = _get_bool("GODAR_NOTIFICATION_NOTIFY_ON_CLOSER_ONLY", True)
    re_notify_after: float = _get_duration("GODAR_NOTIFICATION_RE_NOTIFY_AFTER", "0")
    cleanup_interval: float = _get_duration("GODAR_NOTIFICATION_CLEANUP_INTERVAL", "0")

    @property
    def has_location(self) -> bool:
        """An observer at exactly 0,0 means no location is configured."""
        return not (self.latitude == 0.0 and self.longitude == 0.0)

    @property
    def has_credentials(self) -> bool:
        return bool(self.server_username or self.server_password)


# (yaml section, yaml key) -> (settings field, env var, parser)
_YAML_FIELDS: dict[tuple[str, str], tuple[str, str, Callable[[Any], Any]]] = {
    ("server", "url"): ("server_url", "GODAR_SERVER_URL", str),
    ("server", "username"): ("server_username", "GODAR_SERVER_USERNAME", str),
    ("server", "password"): ("server_password", "GODAR_SERVER_PASSWORD", str),
    ("server", "password_ssm_param"): (
        "server_password_ssm_param",
        "GODAR_SERVER_PASSWORD_SSM_PARAM",
        str,
    ),
    ("server", "timeout"): ("server_timeout", "GODAR_SERVER_TIMEOUT", parse_duration),
    ("server", "max_retries"): ("server_max_retries", "GODAR_SERVER_MAX_RETRIES", int),
    ("server", "retry_delay"): (
        "server_retry_delay",
        "GODAR_SERVER_RETRY_DELAY",
        parse_duration,
    ),
    ("server", "login_path"): ("login_path", "GODAR_LOGIN_PATH", str),
    ("server", "session_cookie_name"): (
        "session_cookie_name",
        "GODAR_SESSION_COOKIE_NAME",
        str,
    ),
    ("filters", "aircraft_type"): ("filter_aircraft_type", "GODAR_FILTER_AIRCRAFT_TYPE", str),
    ("filters", "min_altitude"): ("filter_min_altitude", "GODAR_FILTER_MIN_ALTITUDE", int),
    ("filters", "max_altitude"): ("filter_max_altitude", "GODAR_FILTER_MAX_ALTITUDE", int),
    ("filters", "military"): ("filter_military", "GODAR_FILTER_MILITARY", _as_bool),
    ("filters", "operator"): ("filter_operator", "GODAR_FILTER_OPERATOR", str),
    ("filters", "flight_number"): ("filter_flight_number", "GODAR_FILTER_FLIGHT_NUMBER", str),
    ("location", "latitude"): ("latitude", "GODAR_LOCATION_LATITUDE", float),
    ("location", "longitude"): ("longitude", "GODAR_LOCATION_LONGITUDE", float),
    ("location", "max_distance"): ("max_distance", "GODAR_LOCATION_MAX_DISTANCE", float),
    ("monitoring", "poll_interval"): (
        "poll_interval",
        "GODAR_MONITORING_POLL_INTERVAL",
        parse_duration,
    ),
    ("monitoring", "debug"): ("debug", "GODAR_DEBUG", _as_bool),
    ("monitoring", "log_level"): ("log_level", "GODAR_LOG_LEVEL", str),
    ("notification", "enabled"): ("notification_enabled", "GODAR_NOTIFICATION_ENABLED", _as_bool),
    ("notification", "urls"): ("notify_urls", "GODAR_NOTIFICATION_URLS", str),
    ("notification", "notify_on_closer_only"): (
        "notify_on_closer_only",
        "GODAR_NOTIFICATION_NOTIFY_ON_CLOSER_ONLY",
        _as_bool,
    ),
    ("notification", "re_notify_after"): (
        "re_notify_after",
        "GODAR_NOTIFICATION_RE_NOTIFY_AFTER",
        parse_duration,
    ),
    ("notification", "cleanup_interval"): (
        "cleanup_interval",
        "GODAR_NOTIFICATION_CLEANUP_INTERVAL",
        parse_duration,
    ),
}


def validate_settings(config: Settings) -> Settings:
    """Reject configurations the monitor cannot run with."""

    if not config.server_url:
        raise ConfigError("server URL is required")

    if config.filter_min_altitude > 0 and config.filter_max_altitude > 0:
        if config.filter_min_altitude > config.filter_max_altitude:
            raise ConfigError("min_altitude cannot be greater than max_altitude")

    if config.has_location:
        if not -90 <= config.latitude <= 90:
            raise ConfigError("latitude must be between -90 and 90")
        if not -180 <= config.longitude <= 180:
            raise ConfigError("longitude must be between -180 and 180")

    if config.poll_interval < 1:
        raise ConfigError("poll_interval must be at least 1 second")

    return config


def load_settings(config_file: str | Path | None = None) -> Settings:
    """Build validated settings from an optional YAML file and the environment.

    Values from the YAML file fill in anything the environment does not set
    explicitly; environment variables always win.
    """

    loaded = Settings()
    document: dict[str, Any] = {}

    if config_file:
        path = Path(config_file)
        try:
            document = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except OSError as exc:
            raise ConfigError(f"failed to read config file {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"failed to parse config file {path}: {exc}") from exc

        if not isinstance(document, dict):
            raise ConfigError(f"config file {path} must contain a mapping")
        logger.info("Loaded configuration from %s", path)

    # Class defaults are captured at import time, so the environment is read again here.
    for (section, key), (field_name, env_var, parser) in _YAML_FIELDS.items():
        raw = os.getenv(env_var)
        if raw is None:
            section_values = document.get(section) or {}
            if key not in section_values:
                continue
            raw = section_values[key]
        try:
            setattr(loaded, field_name, parser(raw))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"invalid value for {section}.{key}: {exc}") from exc

    if loaded.server_password_ssm_param and not loaded.server_password:
        loaded.server_password = get_feed_password(loaded.server_password_ssm_param)

    if loaded.debug:
        loaded.log_level = "DEBUG"

    return validate_settings(loaded)


settings = Settings()

__all__ = [
    "ConfigError",
    "Settings",
    "get_feed_password",
    "load_settings",
    "parse_duration",
    "settings",
    "validate_settings",
]
