"""Shared fixtures."""

from unittest.mock import MagicMock

import pytest
import requests

from choreo.config import Config
from choreo.learning import PreferenceModel
from choreo.services.runcomfy import RunComfyClient
from choreo.storyboard import SequenceIngestion, StoryboardStore

BASE_URL = "https://runcomfy.test/v1"


def make_settings(**overrides) -> Config:
    values = {
        "runcomfy_api_key": "rc-test-key",
        "comfyui_base_url": BASE_URL,
        "wan2_deployment_id": "wan2-dep",
        "framepack_deployment_id": "framepack-dep",
        "style_transfer_deployment_id": "style-dep",
        "status_endpoints": [
            "{base_url}/jobs/{job_id}",
            "{base_url}/deployments/{deployment_id}/jobs/{job_id}",
        ],
        "fallback_deployment_ids": [],
        "anthropic_api_key": "sk-ant-test",
        "google_cloud_project": "test-project",
        "request_timeout": 5.0,
        "poll_interval": 0.01,
        "max_poll_time": 1.0,
        "max_retries": 3,
        "retry_delay": 0.0,
        "history_capacity": 1000,
        "apply_learned_defaults": True,
        "cors_origins": ["http://localhost:3000"],
    }
    values.update(overrides)
    return Config(**values)


def make_response(status_code: int = 200, payload=None, text: str = "") -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = "OK" if response.ok else "Error"
    response.text = text
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload if payload is not None else {}
    return response


@pytest.fixture
def settings() -> Config:
    return make_settings()


@pytest.fixture
def unconfigured() -> Config:
    return make_settings(runcomfy_api_key="", anthropic_api_key="", google_cloud_project="")


@pytest.fixture
def store() -> StoryboardStore:
    return StoryboardStore()


@pytest.fixture
def preferences(settings) -> PreferenceModel:
    return PreferenceModel(settings)


@pytest.fixture
def ingestion(store) -> SequenceIngestion:
    return SequenceIngestion(store)


@pytest.fixture
def http_session() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture
def runcomfy(settings, http_session) -> RunComfyClient:
    return RunComfyClient(settings=settings, session=http_session)


@pytest.fixture
def mock_runcomfy() -> MagicMock:
    """A RunComfy client double whose status answers are set per test."""
    client = MagicMock(spec=RunComfyClient)
    client.submit_inference.return_value = {"id": "job-1"}
    client.status_endpoints.return_value = [f"{BASE_URL}/jobs/job-1"]
    client.fetch_status.return_value = ({"status": "processing"}, f"{BASE_URL}/jobs/job-1")
    return client
