from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from apns.protocol.constants import (
    DEFAULT_READ_TIMEOUT,
    FEEDBACK_ENDPOINT,
    FEEDBACK_ENDPOINT_SANDBOX,
    FEEDBACK_READ_SIZE,
    MAX_PAYLOAD_SIZE,
    PUSH_ENDPOINT,
    PUSH_ENDPOINT_SANDBOX,
)
from apns.protocol.errors import ConfigError

DEFAULT_CONFIG: Dict[str, Any] = {
    "sandbox": False,
    "push_endpoint": "",
    "feedback_endpoint": "",
    "cert_file": "",
    "key_file": "",
    "ca_file": "",
    "connect_timeout": 10.0,
    "read_timeout": DEFAULT_READ_TIMEOUT,
    "max_payload_size": MAX_PAYLOAD_SIZE,
    "default_expiration": 3600,
    "feedback_read_size": FEEDBACK_READ_SIZE,
    "feedback_retry_attempts": 3,
    "feedback_retry_backoff": 30.0,
    "log_level": "INFO",
}

APNS_CONFIG: Dict[str, Any] = DEFAULT_CONFIG.copy()

ENDPOINTS = {
    ("push", False): PUSH_ENDPOINT,
    ("push", True): PUSH_ENDPOINT_SANDBOX,
    ("feedback", False): FEEDBACK_ENDPOINT,
    ("feedback", True): FEEDBACK_ENDPOINT_SANDBOX,
}


def load_config(env_path: str = ".env") -> Dict[str, Any]:
    """Load client configuration from env file/environment variables."""
    if os.path.exists(env_path):
        load_dotenv(env_path)

    for key, default_value in DEFAULT_CONFIG.items():
        env_key = f"APNS_{key.upper()}"
        value = os.getenv(env_key, default_value)
        APNS_CONFIG[key] = _coerce_type(value, type(default_value))

    validate_config(APNS_CONFIG)
    logging.getLogger().setLevel(APNS_CONFIG["log_level"])
    return APNS_CONFIG


def _coerce_type(value: Any, target_type: type) -> Any:
    if isinstance(value, target_type):
        return value
    try:
        if target_type is bool:
            return str(value).lower() in ("1", "true", "yes", "on")
        return target_type(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Cannot convert {value} to {target_type.__name__}") from exc


def split_endpoint(endpoint: str) -> tuple[str, int]:
    """Split `host:port` into its parts."""
    host, sep, port = endpoint.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ConfigError(f"Endpoint must look like host:port, got {endpoint!r}")
    number = int(port)
    if not (1 <= number <= 65535):
        raise ConfigError(f"Endpoint port must be between 1 and 65535, got {number}")
    return host, number


def validate_config(config: Dict[str, Any]) -> None:
    for key in ("connect_timeout", "read_timeout", "max_payload_size", "feedback_read_size"):
        if config[key] <= 0:
            raise ConfigError(f"{key} must be positive")
    if config["feedback_retry_attempts"] < 0:
        raise ConfigError("feedback_retry_attempts must not be negative")
    if config["feedback_retry_backoff"] < 0:
        raise ConfigError("feedback_retry_backoff must not be negative")
    if config["default_expiration"] < 0:
        raise ConfigError("default_expiration must not be negative")
    for key in ("push_endpoint", "feedback_endpoint"):
        if config[key]:
            split_endpoint(config[key])


def resolve_endpoint(kind: str, config: Optional[Dict[str, Any]] = None) -> str:
    """Return the configured override or the well-known endpoint for `kind` (push/feedback)."""
    config = config or APNS_CONFIG
    override = config.get(f"{kind}_endpoint")
    if override:
        return override
    try:
        return ENDPOINTS[(kind, bool(config.get("sandbox")))]
    except KeyError as exc:
        raise ConfigError(f"Unknown endpoint kind {kind!r}") from exc


__all__ = [
    "APNS_CONFIG",
    "DEFAULT_CONFIG",
    "ConfigError",
    "load_config",
    "resolve_endpoint",
    "split_endpoint",
    "validate_config",
]
