"""Tests for the job poller and registry."""

import threading

import pytest

from choreo.errors import ConfigurationError, NotFoundError, UpstreamError
from choreo.jobs import JobPoller, JobRegistry
from choreo.models import JobKind, JobState, JobStatus
from choreo.models.job import normalize_progress, normalize_status

from conftest import BASE_URL, make_settings

ENDPOINT = f"{BASE_URL}/jobs/job-1"


def status(payload):
    return (payload, ENDPOINT)


@pytest.fixture
def registry():
    return JobRegistry()


@pytest.fixture
def poller(settings, mock_runcomfy, registry):
    return JobPoller(JobKind.VIDEO_GENERATE, "wan2-dep", mock_runcomfy, settings, registry)


class TestSubmit:
    def test_tracks_vendor_job_id(self, poller, mock_runcomfy):
        job_id = poller.submit({"prompt": "a kick"})

        assert job_id == "job-1"
        mock_runcomfy.submit_inference.assert_called_once_with("wan2-dep", {"prompt": "a kick"})
        record = poller.get(job_id)
        assert record.state == JobState.SUBMITTED
        assert record.kind == JobKind.VIDEO_GENERATE
        assert record.submitted_at is not None

    def test_job_id_alias_and_per_request_deployment(self, poller, mock_runcomfy):
        mock_runcomfy.submit_inference.return_value = {"job_id": "alt-7"}

        assert poller.submit({}, deployment_id="other-dep") == "alt-7"
        assert poller.get("alt-7").deployment_id == "other-dep"

    def test_generates_id_when_vendor_omits_it(self, poller, mock_runcomfy):
        mock_runcomfy.submit_inference.return_value = {"queued": True}

        job_id = poller.submit({})

        assert job_id.startswith("video_generate-")
        assert job_id.split("-", 1)[1].isdigit()

    def test_requires_credentials(self, unconfigured, mock_runcomfy):
        poller = JobPoller(JobKind.STITCH, "framepack-dep", mock_runcomfy, unconfigured)

        with pytest.raises(ConfigurationError):
            poller.submit({})
        mock_runcomfy.submit_inference.assert_not_called()


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("completed", JobStatus.COMPLETED),
        ("SUCCEEDED", JobStatus.COMPLETED),
        ("done", JobStatus.COMPLETED),
        ("error", JobStatus.FAILED),
        ("Cancelled", JobStatus.FAILED),
        ("queued", JobStatus.PROCESSING),
        ("running", JobStatus.PROCESSING),
        (None, JobStatus.PROCESSING),
        (42, JobStatus.PROCESSING),
    ],
)
def test_normalize_status(raw, expected):
    assert normalize_status(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [(None, 0), ("abc", 0), (float("nan"), 0), (-5, 0), (150, 100), ("42.5", 42.5)],
)
def test_normalize_progress(raw, expected):
    assert normalize_progress(raw) == expected


class TestPoll:
    def test_updates_record(self, poller, mock_runcomfy):
        poller.submit({})
        mock_runcomfy.fetch_status.return_value = status({"status": "running", "progress": 30})

        result = poller.poll("job-1")

        assert result.status == JobStatus.PROCESSING
        assert result.progress == 30
        assert result.endpoint == ENDPOINT
        assert poller.get("job-1").state == JobState.POLLING
        mock_runcomfy.status_endpoints.assert_called_with("job-1", "wan2-dep")

    def test_completion_keeps_result(self, poller, mock_runcomfy):
        poller.submit({})
        mock_runcomfy.fetch_status.return_value = status(
            {"status": "success", "result": {"video_url": "https://cdn/v.mp4"}}
        )

        result = poller.poll("job-1")

        record = poller.get("job-1")
        assert result.to_dict()["status"] == "completed"
        assert record.state == JobState.COMPLETED
        assert record.result == {"video_url": "https://cdn/v.mp4"}
        assert record.completed_at is not None

    def test_failure_message(self, poller, mock_runcomfy):
        poller.submit({})
        mock_runcomfy.fetch_status.return_value = status({"state": "failed", "error": "OOM"})

        poller.poll("job-1")

        assert poller.get("job-1").error_message == "OOM"
        assert poller.get("job-1").status == JobStatus.FAILED

    def test_unknown_job_is_tracked_from_first_poll(self, poller, mock_runcomfy):
        poller.poll("external-3")

        assert poller.get("external-3").state == JobState.POLLING
        assert [record.job_id for record in poller.jobs()] == ["external-3"]


class TestWait:
    def test_waits_until_completed(self, poller, mock_runcomfy):
        poller.submit({})
        mock_runcomfy.fetch_status.side_effect = [
            status({"status": "queued"}),
            status({"status": "running", "progress": 50}),
            status({"status": "completed", "progress": 100}),
        ]
        seen = []

        record = poller.wait("job-1", on_progress=seen.append)

        assert record.state == JobState.COMPLETED
        assert [r.progress for r in seen] == [0, 50, 100]

    def test_transient_poll_errors_are_retried(self, poller, mock_runcomfy):
        poller.submit({})
        mock_runcomfy.fetch_status.side_effect = [
            UpstreamError("blip"),
            status({"status": "completed"}),
        ]

        assert poller.wait("job-1").state == JobState.COMPLETED
        assert mock_runcomfy.fetch_status.call_count == 2

    def test_times_out(self, mock_runcomfy, registry):
        settings = make_settings(poll_interval=0.01, max_poll_time=0.05)
        poller = JobPoller(JobKind.STITCH, "framepack-dep", mock_runcomfy, settings, registry)
        poller.submit({})

        record = poller.wait("job-1")

        assert record.state == JobState.TIMEOUT
        assert "timed out" in record.error_message

    def test_cancel_stops_the_wait(self, poller, mock_runcomfy):
        poller.submit({})
        polls = []

        def on_progress(result):
            polls.append(result)
            poller.cancel("job-1")

        record = poller.wait("job-1", on_progress=on_progress)

        assert len(polls) == 1
        assert record.state == JobState.POLLING

    def test_external_cancel_event(self, poller, mock_runcomfy):
        poller.submit({})
        event = threading.Event()
        event.set()

        record = poller.wait("job-1", cancel_event=event)

        assert record.state == JobState.SUBMITTED
        mock_runcomfy.fetch_status.assert_not_called()

    def test_cancel_before_wait(self, poller, mock_runcomfy):
        poller.submit({})
        poller.cancel("job-1")

        poller.wait("job-1")

        mock_runcomfy.fetch_status.assert_not_called()

    def test_terminal_job_returns_immediately(self, poller, mock_runcomfy):
        poller.submit({})
        mock_runcomfy.fetch_status.return_value = status({"status": "completed"})
        poller.poll("job-1")
        mock_runcomfy.fetch_status.reset_mock()

        assert poller.wait("job-1").state == JobState.COMPLETED
        mock_runcomfy.fetch_status.assert_not_called()

    def test_configuration_error_propagates(self, poller, settings):
        poller.submit({})
        settings.runcomfy_api_key = ""

        with pytest.raises(ConfigurationError):
            poller.wait("job-1")

    def test_unknown_job(self, poller):
        with pytest.raises(NotFoundError):
            poller.wait("nope")


class TestRegistry:
    def test_get_unknown(self, registry):
        with pytest.raises(NotFoundError):
            registry.get("nope")

    def test_record_completed(self, registry):
        record = registry.record_completed(JobKind.PORTRAIT, {"image": "abc"}, {"name": "Joey"})

        assert record.job_id.startswith("portrait-")
        assert record.state == JobState.COMPLETED
        assert record.progress == 100
        assert registry.get(record.job_id).result == {"image": "abc"}
        assert registry.list(JobKind.ANALYSIS) == []

    def test_records_are_copies(self, registry):
        record = registry.record_completed(JobKind.ANALYSIS, {"actions": []})
        record.result["actions"].append("x")

        assert registry.get(record.job_id).result == {"actions": []}
