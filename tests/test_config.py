from __future__ import annotations

import os

import pytest

from apns import config
from apns.protocol import ConfigError, FEEDBACK_ENDPOINT_SANDBOX, PUSH_ENDPOINT


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    environ = {key: value for key, value in os.environ.items() if not key.startswith("APNS_")}
    monkeypatch.setattr(os, "environ", environ)
    saved = config.APNS_CONFIG.copy()
    yield
    config.APNS_CONFIG.clear()
    config.APNS_CONFIG.update(saved)


def test_load_config_reads_env_file_and_coerces(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("APNS_SANDBOX=yes\nAPNS_READ_TIMEOUT=0.5\nAPNS_FEEDBACK_RETRY_ATTEMPTS=5\n")

    loaded = config.load_config(str(env_file))

    assert loaded["sandbox"] is True
    assert loaded["read_timeout"] == 0.5
    assert loaded["feedback_retry_attempts"] == 5
    assert loaded["max_payload_size"] == 256
    assert config.resolve_endpoint("feedback") == FEEDBACK_ENDPOINT_SANDBOX


def test_invalid_values_raise_config_error(tmp_path, monkeypatch):
    monkeypatch.setenv("APNS_MAX_PAYLOAD_SIZE", "lots")
    with pytest.raises(ConfigError):
        config.load_config(str(tmp_path / "missing.env"))

    monkeypatch.setenv("APNS_MAX_PAYLOAD_SIZE", "0")
    with pytest.raises(ConfigError):
        config.load_config(str(tmp_path / "missing.env"))


def test_resolve_endpoint_prefers_override():
    settings = dict(config.DEFAULT_CONFIG)
    assert config.resolve_endpoint("push", settings) == PUSH_ENDPOINT
    settings["push_endpoint"] = "localhost:2195"
    assert config.resolve_endpoint("push", settings) == "localhost:2195"
    with pytest.raises(ConfigError):
        config.resolve_endpoint("metrics", settings)


def test_split_endpoint():
    assert config.split_endpoint("gateway.push.apple.com:2195") == ("gateway.push.apple.com", 2195)
    with pytest.raises(ConfigError):
        config.validate_config({**config.DEFAULT_CONFIG, "feedback_endpoint": "nope"})
