"""Tests for the RunComfy client."""

from unittest.mock import patch

import pytest
import requests

from choreo.errors import ConfigurationError, UnavailableError, UpstreamError
from choreo.services.runcomfy import RunComfyClient

from conftest import BASE_URL, make_response, make_settings


class TestSubmitInference:
    def test_posts_overrides_to_deployment(self, runcomfy, http_session):
        http_session.post.return_value = make_response(200, {"id": "job-9"})

        assert runcomfy.submit_inference("wan2-dep", {"prompt": "a kick"}) == {"id": "job-9"}

        http_session.post.assert_called_once_with(
            f"{BASE_URL}/deployments/wan2-dep/inference",
            json={"overrides": {"prompt": "a kick"}},
            headers={"Authorization": "rc-test-key", "Content-Type": "application/json"},
            timeout=5.0,
        )

    def test_retries_connection_errors_with_backoff(self, http_session):
        client = RunComfyClient(make_settings(retry_delay=1.0), session=http_session)
        http_session.post.side_effect = [
            requests.ConnectionError("reset"),
            requests.Timeout("slow"),
            make_response(200, {"id": "job-2"}),
        ]

        with patch("choreo.services.runcomfy.time.sleep") as sleep:
            assert client.submit_inference("wan2-dep", {})["id"] == "job-2"

        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]

    def test_gives_up_after_max_retries(self, runcomfy, http_session):
        http_session.post.side_effect = requests.ConnectionError("down")

        with patch("choreo.services.runcomfy.time.sleep"):
            with pytest.raises(UpstreamError) as exc_info:
                runcomfy.submit_inference("wan2-dep", {})

        assert http_session.post.call_count == 3
        assert exc_info.value.status_code == 502

    @pytest.mark.parametrize("vendor_status, expected", [(500, 500), (503, 503), (400, 502), (401, 502)])
    def test_error_response(self, runcomfy, http_session, vendor_status, expected):
        http_session.post.return_value = make_response(vendor_status, text="nope")

        with pytest.raises(UpstreamError) as exc_info:
            runcomfy.submit_inference("wan2-dep", {})

        assert exc_info.value.vendor_status == vendor_status
        assert exc_info.value.status_code == expected
        assert http_session.post.call_count == 1

    def test_non_json_body(self, runcomfy, http_session):
        http_session.post.return_value = make_response(200, ValueError("bad json"), text="<html>")

        with pytest.raises(UpstreamError):
            runcomfy.submit_inference("wan2-dep", {})

    def test_missing_key_sends_nothing(self, http_session):
        client = RunComfyClient(make_settings(runcomfy_api_key=""), session=http_session)

        with pytest.raises(ConfigurationError):
            client.submit_inference("wan2-dep", {})
        http_session.post.assert_not_called()


class TestStatusEndpoints:
    def test_templates_are_resolved_in_order(self, runcomfy):
        assert runcomfy.status_endpoints("job-1", "wan2-dep") == [
            f"{BASE_URL}/jobs/job-1",
            f"{BASE_URL}/deployments/wan2-dep/jobs/job-1",
        ]

    def test_deployment_templates_skipped_without_deployment(self, runcomfy):
        assert runcomfy.status_endpoints("job-1") == [f"{BASE_URL}/jobs/job-1"]

    def test_fallback_deployments_are_appended_without_duplicates(self, http_session):
        settings = make_settings(fallback_deployment_ids=["wan2-dep", "spare-dep"])
        client = RunComfyClient(settings, session=http_session)

        assert client.status_endpoints("job-1", "wan2-dep") == [
            f"{BASE_URL}/jobs/job-1",
            f"{BASE_URL}/deployments/wan2-dep/jobs/job-1",
            f"{BASE_URL}/deployments/spare-dep/jobs/job-1",
        ]


class TestFetchStatus:
    ENDPOINTS = [f"{BASE_URL}/jobs/job-1", f"{BASE_URL}/deployments/wan2-dep/jobs/job-1"]

    def test_first_answer_wins(self, runcomfy, http_session):
        http_session.get.return_value = make_response(200, {"status": "completed"})

        payload, endpoint = runcomfy.fetch_status("job-1", self.ENDPOINTS)

        assert payload == {"status": "completed"}
        assert endpoint == self.ENDPOINTS[0]
        assert http_session.get.call_count == 1

    def test_falls_through_failing_endpoints(self, runcomfy, http_session):
        http_session.get.side_effect = [
            make_response(404),
            make_response(200, {"status": "processing", "progress": 40}),
        ]

        payload, endpoint = runcomfy.fetch_status("job-1", self.ENDPOINTS)

        assert payload["progress"] == 40
        assert endpoint == self.ENDPOINTS[1]

    def test_single_endpoint_failure_is_upstream(self, runcomfy, http_session):
        http_session.get.return_value = make_response(502)

        with pytest.raises(UpstreamError) as exc_info:
            runcomfy.fetch_status("job-1", self.ENDPOINTS[:1])

        assert exc_info.value.vendor_status == 502

    def test_all_endpoints_failing_is_unavailable(self, runcomfy, http_session):
        http_session.get.side_effect = [
            requests.ConnectionError("down"),
            make_response(500),
        ]

        with pytest.raises(UnavailableError) as exc_info:
            runcomfy.fetch_status("job-1", self.ENDPOINTS)

        assert exc_info.value.status_code == 503
        assert len(exc_info.value.details["attempts"]) == 2

    def test_no_endpoints(self, runcomfy, http_session):
        with pytest.raises(UnavailableError):
            runcomfy.fetch_status("job-1", [])
        http_session.get.assert_not_called()
