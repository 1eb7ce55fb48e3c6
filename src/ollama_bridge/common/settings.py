"""Settings store and server config resolution."""
from __future__ import annotations
import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping, Optional, Union
from urllib.parse import urlsplit

import yaml

from ollama_bridge.common.schema import ConfigError, ConfigErrorKind, ServerConfig

LOGGER = logging.getLogger("ollama_bridge.settings")

ENV_PREFIX = "OLLAMA_BRIDGE_"
CONFIG_PATH_ENV = ENV_PREFIX + "CONFIG"

DEFAULT_API_HOST = "http://127.0.0.1:11434"
DEFAULT_MODEL = "phi:latest"
DEFAULT_TIMEOUT_SECONDS = 180

DEFAULT_SETTINGS: dict[str, Any] = {
    "apihost": DEFAULT_API_HOST,
    "defaultmodel": DEFAULT_MODEL,
    "timeout": DEFAULT_TIMEOUT_SECONDS,
    "verifyssl": True,
    "discoveryverifyssl": False,
    "loglevel": "INFO",
}

_FALSE_STRINGS = {"", "0", "false", "no", "off"}
# Matches "localhost" only where it is the host component.
_LOCALHOST_RE = re.compile(r"(^|//|@)localhost(?=[:/?#]|$)", re.IGNORECASE)


def load_settings(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> dict[str, Any]:
    """
    Load settings from defaults, an optional YAML file and the environment.

    Args:
        path: YAML file path. Falls back to ``$OLLAMA_BRIDGE_CONFIG`` when omitted.
        environ: Environment mapping, ``os.environ`` by default.

    Returns:
        Flat settings mapping keyed by ``apihost``, ``defaultmodel`` etc.
    """
    env = os.environ if environ is None else environ
    settings = dict(DEFAULT_SETTINGS)

    cfg_path = path or env.get(CONFIG_PATH_ENV)
    if cfg_path:
        try:
            with open(cfg_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            LOGGER.warning("Ignoring settings file %s: %s", cfg_path, e)
            data = {}
        if data is None:
            data = {}
        if not isinstance(data, dict):
            LOGGER.warning("Ignoring settings file %s: expected a mapping", cfg_path)
            data = {}
        for key, value in data.items():
            key = str(key).lower()
            if key not in DEFAULT_SETTINGS:
                LOGGER.warning("Ignoring unknown setting %r in %s", key, cfg_path)
                continue
            settings[key] = value

    for key in DEFAULT_SETTINGS:
        value = env.get(ENV_PREFIX + key.upper())
        if value is not None:
            settings[key] = value
    return settings


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def _as_timeout(value: Any) -> int:
    try:
        timeout = int(value)
    except (TypeError, ValueError):
        LOGGER.warning("Invalid timeout %r, using %ss", value, DEFAULT_TIMEOUT_SECONDS)
        return DEFAULT_TIMEOUT_SECONDS
    if timeout <= 0:
        LOGGER.warning("Non-positive timeout %r, using %ss", value, DEFAULT_TIMEOUT_SECONDS)
        return DEFAULT_TIMEOUT_SECONDS
    return timeout


def force_ipv4_localhost(host: str) -> str:
    """Rewrite a ``localhost`` host component to ``127.0.0.1``, keeping port and path."""
    return _LOCALHOST_RE.sub(r"\g<1>127.0.0.1", host)


def resolve_config(settings: Optional[Mapping[str, Any]] = None) -> Union[ServerConfig, ConfigError]:
    """
    Build a :class:`ServerConfig` from persisted settings.

    The host is not validated here; see :func:`validate_host`.

    Args:
        settings: Settings mapping. Loaded with :func:`load_settings` when omitted.
    """
    if settings is None:
        settings = load_settings()

    host = settings.get("apihost")
    host = str(host).strip() if host is not None else ""
    if not host:
        return ConfigError(ConfigErrorKind.NOT_CONFIGURED)

    default_model = str(settings.get("defaultmodel") or "").strip() or DEFAULT_MODEL

    return ServerConfig(
        api_host=force_ipv4_localhost(host),
        default_model=default_model,
        timeout_seconds=_as_timeout(settings.get("timeout", DEFAULT_TIMEOUT_SECONDS)),
        verify_ssl=_as_bool(settings.get("verifyssl"), True),
        discovery_verify_ssl=_as_bool(settings.get("discoveryverifyssl"), False),
    )


def validate_host(url: str) -> Union[str, ConfigError]:
    """
    Check that ``url`` is an absolute http(s) URL.

    Returns:
        The URL without trailing slash, or ``ConfigError(INVALID_HOST)`` carrying the value.
    """
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError:
        return ConfigError(ConfigErrorKind.INVALID_HOST, url)
    if parts.scheme.lower() not in ("http", "https") or not hostname:
        return ConfigError(ConfigErrorKind.INVALID_HOST, url)
    return url.rstrip("/")
