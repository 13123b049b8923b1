"""Configuration management."""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .errors import ConfigurationError

# Load environment variables
load_dotenv()

DEFAULT_COMFYUI_BASE_URL = "https://api.runcomfy.net/prod/v1"
DEFAULT_WAN2_DEPLOYMENT_ID = "f3a34e84-7d00-4ee0-b3c8-3bb0c2318f1a"
DEFAULT_FRAMEPACK_DEPLOYMENT_ID = "70c87128-d68d-4a9a-a2a8-512637c84228"
DEFAULT_STYLE_TRANSFER_DEPLOYMENT_ID = "af4087d5-1813-453e-bdf6-8accda9474d6"

DEFAULT_STATUS_ENDPOINTS = [
    "{base_url}/jobs/{job_id}",
    "{base_url}/deployments/{deployment_id}/jobs/{job_id}",
]

# Values shipped in example .env files that must never reach a vendor.
PLACEHOLDER_VALUES = {
    "your_runcomfy_api_key_here",
    "your_zai_api_key_here",
    "your_anthropic_api_key_here",
    "changeme",
}


def is_placeholder(value: Optional[str]) -> bool:
    """Return True if a credential is empty or a known placeholder sentinel."""
    if value is None:
        return True
    stripped = value.strip()
    if not stripped:
        return True
    lowered = stripped.lower()
    if lowered in PLACEHOLDER_VALUES:
        return True
    return lowered.startswith("your_") and lowered.endswith("_here")


def _env_list(name: str, default: Optional[list[str]] = None) -> list[str]:
    """Read a comma separated environment variable as a list."""
    raw = os.getenv(name)
    if raw is None:
        return list(default or [])
    return [item.strip() for item in raw.split(",") if item.strip()]


def _first_env(*names: str, default: str = "") -> str:
    """Return the first non-empty environment variable among names."""
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return default


class Config(BaseModel):
    """Application configuration."""

    # RunComfy deployments (video generation, stitching, style transfer)
    runcomfy_api_key: str = Field(
        default_factory=lambda: os.getenv("RUNCOMFY_API_KEY", ""),
        description="RunComfy API key"
    )
    comfyui_base_url: str = Field(
        default_factory=lambda: os.getenv("COMFYUI_BASE_URL", DEFAULT_COMFYUI_BASE_URL),
        description="RunComfy API base URL"
    )
    wan2_deployment_id: str = Field(
        default_factory=lambda: _first_env(
            "FURIOUS_X_DEPLOYMENT_ID",
            "NEW_DEPLOYMENT_ID",
            "WAN22_DEPLOYMENT_ID",
            default=DEFAULT_WAN2_DEPLOYMENT_ID,
        ),
        description="Wan 2.2 Lightning deployment ID"
    )
    framepack_deployment_id: str = Field(
        default_factory=lambda: os.getenv("FRAMEPACK_DEPLOYMENT_ID", DEFAULT_FRAMEPACK_DEPLOYMENT_ID),
        description="Framepack stitching deployment ID"
    )
    style_transfer_deployment_id: str = Field(
        default_factory=lambda: os.getenv(
            "STYLE_TRANSFER_DEPLOYMENT_ID", DEFAULT_STYLE_TRANSFER_DEPLOYMENT_ID
        ),
        description="Style transfer deployment ID"
    )
    status_endpoints: list[str] = Field(
        default_factory=lambda: _env_list("RUNCOMFY_STATUS_ENDPOINTS", DEFAULT_STATUS_ENDPOINTS),
        description="Ordered job-status URL templates ({base_url}, {deployment_id}, {job_id})"
    )
    fallback_deployment_ids: list[str] = Field(
        default_factory=lambda: _env_list("RUNCOMFY_FALLBACK_DEPLOYMENT_IDS"),
        description="Extra deployments whose job endpoints are tried last"
    )

    # Scene analysis
    anthropic_api_key: str = Field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY", ""),
        description="Anthropic API key"
    )
    default_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Default Claude model"
    )

    # Character portraits
    google_cloud_project: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_PROJECT", ""),
        description="Google Cloud project ID"
    )
    google_cloud_location: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_LOCATION", "us-central1"),
        description="Vertex AI region"
    )
    imagen_model: str = Field(
        default_factory=lambda: os.getenv("IMAGEN_MODEL", "imagen-3.0-generate-001"),
        description="Imagen model used for character portraits"
    )

    # Vendor call limits
    request_timeout: float = Field(default=30.0, gt=0, description="Seconds per vendor HTTP call")
    poll_interval: float = Field(default=3.0, gt=0, description="Seconds between job polls")
    max_poll_time: float = Field(default=600.0, gt=0, description="Maximum seconds to wait for a job")
    max_retries: int = Field(default=3, ge=1, description="Attempts for transient submit errors")
    retry_delay: float = Field(default=1.0, ge=0, description="Base backoff delay in seconds")

    # Learning
    history_capacity: int = Field(default=1000, ge=1, description="Learning history size")
    apply_learned_defaults: bool = Field(
        default_factory=lambda: os.getenv("CHOREO_APPLY_LEARNED_DEFAULTS", "true").lower() == "true",
        description="Use learned camera/lighting when analysis omits them"
    )

    # Server
    host: str = Field(default_factory=lambda: os.getenv("CHOREO_HOST", "127.0.0.1"))
    port: int = Field(default_factory=lambda: int(os.getenv("CHOREO_PORT", "8000")))
    cors_origins: list[str] = Field(
        default_factory=lambda: _env_list("CHOREO_CORS_ORIGINS", ["http://localhost:3000"])
    )

    @property
    def runcomfy_configured(self) -> bool:
        return not is_placeholder(self.runcomfy_api_key)

    @property
    def anthropic_configured(self) -> bool:
        return not is_placeholder(self.anthropic_api_key)

    @property
    def imagen_configured(self) -> bool:
        return not is_placeholder(self.google_cloud_project)

    def require_runcomfy(self) -> None:
        """Validate that the RunComfy credential is set.

        Raises:
            ConfigurationError: If RUNCOMFY_API_KEY is missing or a placeholder.
        """
        if not self.runcomfy_configured:
            raise ConfigurationError(
                "API key not configured. Please set RUNCOMFY_API_KEY environment variable."
            )

    def require_anthropic(self) -> None:
        """Validate that the Anthropic credential is set."""
        if not self.anthropic_configured:
            raise ConfigurationError(
                "API key not configured. Please set ANTHROPIC_API_KEY environment variable."
            )

    def require_imagen(self) -> None:
        """Validate that Imagen / Google Cloud configuration is set."""
        if not self.imagen_configured:
            raise ConfigurationError(
                "Missing required Imagen configuration: GOOGLE_CLOUD_PROJECT. "
                "Set the corresponding environment variable."
            )

    def setup_needed(self) -> list[str]:
        """Return human-readable setup steps for missing credentials."""
        needed: list[str] = []
        if not self.runcomfy_configured:
            needed.append("RUNCOMFY_API_KEY - Required for Wan 2.2, Framepack, and Style Transfer")
        if not self.anthropic_configured:
            needed.append("ANTHROPIC_API_KEY - Required for scene analysis")
        if not self.imagen_configured:
            needed.append("GOOGLE_CLOUD_PROJECT - Required for character portraits")
        return needed


# Global config instance
config = Config()
