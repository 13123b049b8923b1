"""Submit/poll/wait state machine for long-running vendor jobs."""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from ..config import Config, config as default_config
from ..errors import UnavailableError, UpstreamError
from ..models import JobKind, JobRecord, JobState, JobStatus, PollResult
from ..models.job import normalize_progress, normalize_status
from ..models.scene import utc_now
from ..services.runcomfy import RunComfyClient
from .registry import JobRegistry

logger = logging.getLogger(__name__)


class JobPoller:
    """Tracks jobs on one RunComfy deployment.

    A job moves submitted -> polling -> completed | failed, or to timeout
    when a client-side wait exceeds max_poll_time. Status is read from the
    configured endpoints in order, first answer wins.
    """

    def __init__(
        self,
        kind: JobKind,
        deployment_id: str,
        client: Optional[RunComfyClient] = None,
        settings: Optional[Config] = None,
        registry: Optional[JobRegistry] = None,
    ) -> None:
        self.kind = kind
        self.deployment_id = deployment_id
        self._settings = settings or default_config
        self._client = client or RunComfyClient(settings=self._settings)
        self._registry = registry or JobRegistry()
        self._cancel_lock = threading.Lock()
        self._cancels: Dict[str, threading.Event] = {}

    def submit(self, overrides: dict, deployment_id: Optional[str] = None) -> str:
        """Submit a job and start tracking it.

        Args:
            overrides: Workflow overrides sent to the deployment.
            deployment_id: Per-request deployment, defaults to the poller's.

        Returns:
            The vendor job id, or a generated one when the vendor omits it.

        Raises:
            ConfigurationError: If RUNCOMFY_API_KEY is not set. Nothing is sent.
            UpstreamError: If the vendor rejects the submission.
        """
        self._settings.require_runcomfy()
        deployment_id = deployment_id or self.deployment_id

        logger.info(f"Submitting {self.kind.value} job to deployment {deployment_id}")
        response = self._client.submit_inference(deployment_id, overrides)

        job_id = response.get("id") or response.get("job_id")
        if not job_id:
            job_id = f"{self.kind.value}-{int(time.time() * 1000)}"
            logger.warning(f"Vendor response had no job id, using {job_id}")

        self._registry.add(
            JobRecord(
                job_id=str(job_id),
                kind=self.kind,
                deployment_id=deployment_id,
                submitted_at=utc_now(),
                metadata={"response": response},
            )
        )
        logger.info(f"Submitted {self.kind.value} job {job_id}")
        return str(job_id)

    def poll(self, job_id: str) -> PollResult:
        """Fetch and normalise a job's current status.

        Jobs not submitted through this poller are tracked from their first poll.

        Raises:
            ConfigurationError: If RUNCOMFY_API_KEY is not set.
            UpstreamError: If the only status endpoint fails.
            UnavailableError: If every status endpoint fails.
        """
        self._settings.require_runcomfy()

        if not self._registry.contains(job_id):
            self._registry.add(
                JobRecord(job_id=job_id, kind=self.kind, deployment_id=self.deployment_id)
            )
        deployment_id = self._registry.get(job_id).deployment_id or self.deployment_id

        endpoints = self._client.status_endpoints(job_id, deployment_id)
        payload, endpoint = self._client.fetch_status(job_id, endpoints)

        status = normalize_status(payload.get("status") or payload.get("state"))
        result = PollResult(
            job_id=job_id,
            status=status,
            progress=normalize_progress(payload.get("progress")),
            result=payload.get("result"),
            endpoint=endpoint,
            raw=payload,
        )

        def apply(record: JobRecord) -> None:
            record.progress = result.progress
            record.result = result.result
            record.endpoint = endpoint
            if status == JobStatus.COMPLETED:
                record.state = JobState.COMPLETED
                record.completed_at = record.completed_at or utc_now()
            elif status == JobStatus.FAILED:
                record.state = JobState.FAILED
                record.completed_at = record.completed_at or utc_now()
                record.error_message = str(payload.get("error") or payload.get("message") or "Job failed")
            else:
                record.state = JobState.POLLING

        self._registry.update(job_id, apply)
        logger.debug(f"Job {job_id}: {status.value} ({result.progress:.0f}%) via {endpoint}")
        return result

    def wait(
        self,
        job_id: str,
        cancel_event: Optional[threading.Event] = None,
        on_progress: Optional[Callable[[PollResult], None]] = None,
    ) -> JobRecord:
        """Poll until the job is terminal, cancelled, or max_poll_time elapses.

        Transient poll failures are logged and retried on the next tick.

        Args:
            job_id: Job to wait for.
            cancel_event: Event that stops the wait when set.
            on_progress: Called with each successful poll result.

        Returns:
            The job record at the point the wait ended.

        Raises:
            NotFoundError: If the job is unknown.
            ConfigurationError: If RUNCOMFY_API_KEY is not set.
        """
        record = self._registry.get(job_id)
        if record.state.terminal:
            return record

        stop = cancel_event or threading.Event()
        with self._cancel_lock:
            pending = self._cancels.get(job_id)
            if pending is not None and pending.is_set():
                stop.set()
            self._cancels[job_id] = stop

        start = time.monotonic()
        poll_count = 0
        try:
            while not stop.is_set():
                poll_count += 1
                try:
                    result = self.poll(job_id)
                except (UpstreamError, UnavailableError) as e:
                    logger.warning(f"Poll {poll_count} for job {job_id} failed: {e.message}")
                else:
                    if on_progress is not None:
                        on_progress(result)
                    if result.status != JobStatus.PROCESSING:
                        logger.info(f"Job {job_id} finished: {result.status.value}")
                        return self._registry.get(job_id)

                elapsed = time.monotonic() - start
                if elapsed >= self._settings.max_poll_time:
                    logger.warning(f"Job {job_id} timed out after {elapsed:.1f}s")
                    return self._mark_timeout(job_id)

                remaining = self._settings.max_poll_time - elapsed
                stop.wait(min(self._settings.poll_interval, remaining))

            logger.info(f"Stopped waiting for job {job_id} (cancelled)")
            return self._registry.get(job_id)
        finally:
            with self._cancel_lock:
                if self._cancels.get(job_id) is stop:
                    del self._cancels[job_id]

    def _mark_timeout(self, job_id: str) -> JobRecord:
        def apply(record: JobRecord) -> None:
            record.state = JobState.TIMEOUT
            record.completed_at = utc_now()
            record.error_message = f"Job timed out after {self._settings.max_poll_time}s"

        return self._registry.update(job_id, apply)

    def cancel(self, job_id: str) -> None:
        """Stop any client-side wait on a job. The vendor job keeps running."""
        with self._cancel_lock:
            event = self._cancels.get(job_id)
            if event is None:
                event = self._cancels[job_id] = threading.Event()
            event.set()

    def get(self, job_id: str) -> JobRecord:
        """Return the local record of a job.

        Raises:
            NotFoundError: If the job is unknown.
        """
        return self._registry.get(job_id)

    def jobs(self) -> List[JobRecord]:
        return self._registry.list(self.kind)
