"""Tests for configuration loading and credential checks."""

import pytest

from choreo.config import DEFAULT_WAN2_DEPLOYMENT_ID, Config, is_placeholder
from choreo.errors import ConfigurationError

from conftest import make_settings


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, True),
        ("", True),
        ("   ", True),
        ("your_runcomfy_api_key_here", True),
        ("your_zai_api_key_here", True),
        ("YOUR_OTHER_KEY_HERE", True),
        ("rc-live-123", False),
    ],
)
def test_is_placeholder(value, expected):
    assert is_placeholder(value) is expected


def test_placeholder_key_is_not_configured():
    settings = make_settings(runcomfy_api_key="your_runcomfy_api_key_here")

    assert settings.runcomfy_configured is False
    with pytest.raises(ConfigurationError) as exc_info:
        settings.require_runcomfy()

    assert "RUNCOMFY_API_KEY" in exc_info.value.message
    assert exc_info.value.to_dict()["setup_required"] is True
    assert exc_info.value.status_code == 503


def test_setup_needed_lists_missing_credentials(unconfigured):
    needed = unconfigured.setup_needed()

    assert any(item.startswith("RUNCOMFY_API_KEY") for item in needed)
    assert any(item.startswith("ANTHROPIC_API_KEY") for item in needed)
    assert any(item.startswith("GOOGLE_CLOUD_PROJECT") for item in needed)


def test_setup_needed_empty_when_configured(settings):
    assert settings.setup_needed() == []


def test_wan2_deployment_precedence(monkeypatch):
    monkeypatch.delenv("FURIOUS_X_DEPLOYMENT_ID", raising=False)
    monkeypatch.setenv("NEW_DEPLOYMENT_ID", "new-dep")
    monkeypatch.setenv("WAN22_DEPLOYMENT_ID", "wan22-dep")

    assert Config().wan2_deployment_id == "new-dep"

    monkeypatch.setenv("FURIOUS_X_DEPLOYMENT_ID", "furious-dep")
    assert Config().wan2_deployment_id == "furious-dep"


def test_wan2_deployment_default(monkeypatch):
    for name in ("FURIOUS_X_DEPLOYMENT_ID", "NEW_DEPLOYMENT_ID", "WAN22_DEPLOYMENT_ID"):
        monkeypatch.delenv(name, raising=False)

    assert Config().wan2_deployment_id == DEFAULT_WAN2_DEPLOYMENT_ID


def test_comma_separated_lists(monkeypatch):
    monkeypatch.setenv("RUNCOMFY_STATUS_ENDPOINTS", "{base_url}/a/{job_id}, {base_url}/b/{job_id} ,")
    monkeypatch.setenv("RUNCOMFY_FALLBACK_DEPLOYMENT_IDS", "dep-1,dep-2")

    settings = Config()

    assert settings.status_endpoints == ["{base_url}/a/{job_id}", "{base_url}/b/{job_id}"]
    assert settings.fallback_deployment_ids == ["dep-1", "dep-2"]
