"""Google Imagen API client wrapper via Vertex AI, used for character portraits."""

import logging
from typing import Optional

import google.auth
import google.auth.exceptions
import google.auth.transport.requests
import requests

from ..config import Config, config as default_config
from ..errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]


def portrait_prompt(name: str, description: str) -> str:
    """Build the character portrait prompt."""
    return (
        f"Create a detailed character portrait of {name}, {description}. "
        "Style: cinematic, professional character design, detailed facial features, "
        "dramatic lighting, high quality, 8k resolution, realistic, movie character design, "
        "professional photography. The character should look ready for action scenes "
        "with dynamic pose and intense expression. Background should be subtle and cinematic."
    )


class ImagenClient:
    """Client wrapper for Google Imagen image generation via Vertex AI."""

    def __init__(
        self,
        settings: Optional[Config] = None,
        credentials=None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the Imagen client.

        Args:
            settings: Configuration supplying project, region and model.
            credentials: google.auth credentials. Application default
                credentials are loaded on first use if not provided.
            session: HTTP session for the predict call.

        Raises:
            ConfigurationError: If GOOGLE_CLOUD_PROJECT is not set.
        """
        self._settings = settings or default_config
        self._settings.require_imagen()
        self._credentials = credentials
        self._session = session or requests.Session()

    @property
    def project_id(self) -> str:
        return self._settings.google_cloud_project

    @property
    def model(self) -> str:
        return self._settings.imagen_model

    @property
    def endpoint(self) -> str:
        location = self._settings.google_cloud_location
        return (
            f"https://{location}-aiplatform.googleapis.com/v1/"
            f"projects/{self.project_id}/locations/{location}/"
            f"publishers/google/models/{self.model}:predict"
        )

    def _token(self) -> str:
        try:
            if self._credentials is None:
                self._credentials, _ = google.auth.default(scopes=SCOPES)
            if not self._credentials.valid:
                self._credentials.refresh(google.auth.transport.requests.Request())
        except google.auth.exceptions.DefaultCredentialsError as e:
            raise ConfigurationError(
                "Google Cloud credentials not found. Run `gcloud auth application-default login` "
                "or set GOOGLE_APPLICATION_CREDENTIALS."
            ) from e
        except google.auth.exceptions.GoogleAuthError as e:
            raise UpstreamError(f"Failed to refresh Google credentials: {e}") from e
        return self._credentials.token

    def generate_image(
        self,
        prompt: str,
        aspect_ratio: str = "1:1",
        negative_prompt: Optional[str] = None,
    ) -> str:
        """Generate an image from a text prompt.

        Args:
            prompt: Text description of the image to generate.
            aspect_ratio: Image aspect ratio ('1:1' gives 1024x1024).
            negative_prompt: Things to avoid in the image.

        Returns:
            The first generated image as base64-encoded PNG.

        Raises:
            ConfigurationError: If credentials cannot be loaded.
            UpstreamError: If the API call fails or returns no image.
        """
        request_body = {
            "instances": [{"prompt": prompt}],
            "parameters": {
                "sampleCount": 1,
                "aspectRatio": aspect_ratio,
            },
        }
        if negative_prompt:
            request_body["parameters"]["negativePrompt"] = negative_prompt

        headers = {
            "Authorization": f"Bearer {self._token()}",
            "Content-Type": "application/json",
        }

        logger.info(f"Generating image with Imagen: {prompt[:50]}...")
        try:
            response = self._session.post(
                self.endpoint,
                json=request_body,
                headers=headers,
                timeout=self._settings.request_timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Image generation failed: {e}")
            raise UpstreamError(f"Imagen request failed: {e}") from e

        if response.status_code != 200:
            error_msg = f"{response.status_code}: {response.text[:500]}"
            logger.error(f"Imagen API error: {error_msg}")
            raise UpstreamError(
                "Failed to generate character image",
                details=error_msg,
                vendor_status=response.status_code,
            )

        predictions = response.json().get("predictions", [])
        if not predictions:
            raise UpstreamError("No predictions in response")

        image_data = predictions[0].get("bytesBase64Encoded")
        if not image_data:
            raise UpstreamError("No image data in response")
        return image_data

    def generate_portrait(self, name: str, description: str) -> str:
        """Generate a square character portrait and return it as base64."""
        return self.generate_image(portrait_prompt(name, description), aspect_ratio="1:1")
