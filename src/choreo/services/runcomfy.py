"""RunComfy deployment API client."""

import logging
import time
from typing import Any, Optional

import requests

from ..config import Config, config as default_config
from ..errors import UnavailableError, UpstreamError

logger = logging.getLogger(__name__)


class RunComfyClient:
    """Client for RunComfy serverless ComfyUI deployments.

    Handles:
    - Submitting inference requests to a deployment, with retry on
      connection errors and timeouts
    - Fetching job status across an ordered list of status endpoints
    """

    def __init__(
        self,
        settings: Optional[Config] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the RunComfy client.

        Args:
            settings: Configuration. Defaults to the global config.
            session: HTTP session. A new requests.Session is created if not provided.
        """
        self._settings = settings or default_config
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._settings.comfyui_base_url.rstrip("/")

    def _headers(self) -> dict:
        self._settings.require_runcomfy()
        return {
            "Authorization": self._settings.runcomfy_api_key,
            "Content-Type": "application/json",
        }

    def submit_inference(self, deployment_id: str, overrides: dict) -> dict:
        """Submit an inference request to a deployment.

        Args:
            deployment_id: RunComfy deployment to run.
            overrides: Workflow input overrides.

        Returns:
            The vendor's JSON response.

        Raises:
            ConfigurationError: If RUNCOMFY_API_KEY is not set.
            UpstreamError: On a non-2xx response or once retries are exhausted.
        """
        headers = self._headers()
        url = f"{self.base_url}/deployments/{deployment_id}/inference"
        max_retries = self._settings.max_retries

        for attempt in range(max_retries):
            try:
                logger.debug(f"POST {url} (attempt {attempt + 1}/{max_retries})")
                response = self._session.post(
                    url,
                    json={"overrides": overrides},
                    headers=headers,
                    timeout=self._settings.request_timeout,
                )
            except (requests.ConnectionError, requests.Timeout) as e:
                if attempt == max_retries - 1:
                    logger.error(f"Submit to {deployment_id} failed: {e}")
                    raise UpstreamError(
                        f"RunComfy request failed after {max_retries} attempts: {e}",
                        details={"deployment_id": deployment_id},
                    ) from e
                delay = self._settings.retry_delay * (2**attempt)
                logger.warning(f"Connection error: {e}. Retrying in {delay:.1f}s...")
                time.sleep(delay)
                continue

            if not response.ok:
                logger.error(f"RunComfy API error: {response.status_code} {response.text[:500]}")
                raise UpstreamError(
                    f"RunComfy API error: {response.status_code} {response.reason}",
                    details={"body": response.text[:500], "deployment_id": deployment_id},
                    vendor_status=response.status_code,
                )
            return self._json(response)

        raise UpstreamError("Max retries exceeded")

    @staticmethod
    def _json(response: requests.Response) -> dict:
        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError(
                "RunComfy returned a non-JSON response",
                details={"body": response.text[:500]},
                vendor_status=response.status_code,
            ) from e
        if not isinstance(payload, dict):
            raise UpstreamError("RunComfy returned an unexpected payload", details={"body": payload})
        return payload

    def status_endpoints(self, job_id: str, deployment_id: Optional[str] = None) -> list[str]:
        """Resolve the configured status URL templates for a job.

        Templates referencing {deployment_id} are skipped when no deployment
        is known. Fallback deployment ids are appended last. Duplicates are
        dropped, keeping the first occurrence.
        """
        templates = list(self._settings.status_endpoints)
        templates.extend(
            f"{{base_url}}/deployments/{fallback}/jobs/{{job_id}}"
            for fallback in self._settings.fallback_deployment_ids
        )

        endpoints: list[str] = []
        for template in templates:
            if "{deployment_id}" in template and not deployment_id:
                continue
            url = template.format(
                base_url=self.base_url,
                deployment_id=deployment_id or "",
                job_id=job_id,
            )
            if url not in endpoints:
                endpoints.append(url)
        return endpoints

    def fetch_status(self, job_id: str, endpoints: list[str]) -> tuple[dict, str]:
        """Fetch a job's status from the first endpoint that answers.

        Args:
            job_id: Vendor job id, used for error details.
            endpoints: Status URLs tried in order.

        Returns:
            Tuple of the JSON payload and the endpoint that answered.

        Raises:
            ConfigurationError: If RUNCOMFY_API_KEY is not set.
            UpstreamError: If the only endpoint fails.
            UnavailableError: If every one of several endpoints fails.
        """
        headers = self._headers()
        attempts: list[dict[str, Any]] = []

        for endpoint in endpoints:
            try:
                logger.debug(f"Trying status endpoint: {endpoint}")
                response = self._session.get(
                    endpoint, headers=headers, timeout=self._settings.request_timeout
                )
            except requests.RequestException as e:
                logger.warning(f"Status endpoint failed: {endpoint} ({e})")
                attempts.append({"endpoint": endpoint, "error": str(e)})
                continue

            if response.ok:
                try:
                    return self._json(response), endpoint
                except UpstreamError as e:
                    attempts.append({"endpoint": endpoint, "error": e.message})
                    continue

            logger.warning(f"Status endpoint {endpoint} returned {response.status_code}")
            attempts.append({"endpoint": endpoint, "status": response.status_code})

        if len(attempts) == 1:
            attempt = attempts[0]
            raise UpstreamError(
                f"Unable to fetch status for job {job_id}",
                details=attempt,
                vendor_status=attempt.get("status"),
            )
        raise UnavailableError(
            f"Unable to fetch status for job {job_id} from any endpoint",
            details={"attempts": attempts},
        )
