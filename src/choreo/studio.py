"""Per-session studio wiring the storyboard, learning and job components."""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .agents import AnalysisInput, SceneAnalysisAgent
from .config import Config, config as default_config
from .errors import NotFoundError, ValidationError
from .jobs import (
    JobPoller,
    JobRegistry,
    stitch_overrides,
    style_transfer_overrides,
    video_generate_overrides,
)
from .jobs.requests import MAX_STITCH_DURATION
from .learning import PreferenceModel
from .models import (
    CameraUsage,
    Character,
    Complexity,
    JobKind,
    JobRecord,
    JobState,
    LightingUsage,
    NodePatch,
    Outcome,
    PollResult,
    SceneAnalysis,
    SceneNode,
    SceneRendered,
)
from .services import ImagenClient, RunComfyClient
from .storyboard import IngestionReport, SequenceIngestion, StoryboardStore

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "default"

INLINE_KINDS = (JobKind.PORTRAIT, JobKind.ANALYSIS)

_RENDER_OUTCOMES = {
    JobState.COMPLETED: Outcome.SUCCESS,
    JobState.FAILED: Outcome.FAILURE,
    JobState.TIMEOUT: Outcome.NEUTRAL,
}


class Studio:
    """One user's storyboard, learned preferences, character roster and jobs.

    Vendor clients are created lazily so a studio without credentials still
    supports storyboard and learning operations.
    """

    def __init__(
        self,
        settings: Optional[Config] = None,
        *,
        analysis_agent: Optional[SceneAnalysisAgent] = None,
        portrait_client: Optional[ImagenClient] = None,
        runcomfy: Optional[RunComfyClient] = None,
    ) -> None:
        self.settings = settings or default_config
        self.store = StoryboardStore()
        self.preferences = PreferenceModel(self.settings)
        self.jobs = JobRegistry()
        self.ingestion = SequenceIngestion(
            self.store,
            self.preferences if self.settings.apply_learned_defaults else None,
        )

        self._analysis_agent = analysis_agent
        self._portrait_client = portrait_client
        runcomfy = runcomfy or RunComfyClient(settings=self.settings)
        self._pollers: Dict[JobKind, JobPoller] = {
            JobKind.VIDEO_GENERATE: JobPoller(
                JobKind.VIDEO_GENERATE, self.settings.wan2_deployment_id,
                runcomfy, self.settings, self.jobs,
            ),
            JobKind.STITCH: JobPoller(
                JobKind.STITCH, self.settings.framepack_deployment_id,
                runcomfy, self.settings, self.jobs,
            ),
            JobKind.STYLE_TRANSFER: JobPoller(
                JobKind.STYLE_TRANSFER, self.settings.style_transfer_deployment_id,
                runcomfy, self.settings, self.jobs,
            ),
        }

        self._roster_lock = threading.Lock()
        self._characters: Dict[str, Character] = {}
        self._client_lock = threading.Lock()

    def poller(self, kind: JobKind) -> JobPoller:
        try:
            return self._pollers[kind]
        except KeyError:
            raise ValidationError(f"{kind.value} jobs are not polled") from None

    # Storyboard

    def create_node(self, **fields: Any) -> SceneNode:
        return self.store.create(**fields)

    def get_node(self, node_id: str) -> SceneNode:
        return self.store.get(node_id)

    def list_nodes(self, scene_id: Optional[str] = None) -> List[SceneNode]:
        return self.store.list(scene_id)

    def list_by_scene(self) -> Dict[str, List[SceneNode]]:
        return self.store.list_by_scene()

    def update_node(self, node_id: str, patch: Union[NodePatch, Dict[str, Any]]) -> SceneNode:
        """Update a node and learn from any camera or lighting choice it sets."""
        node = self.store.update(node_id, patch)

        if isinstance(patch, NodePatch):
            supplied = set(patch.changes())
        else:
            supplied = {key for key, value in (patch or {}).items() if value is not None}

        context = {"node_id": node_id}
        if "camera" in supplied:
            self.preferences.record_event(
                CameraUsage(camera=node.camera.value), context=context, outcome=Outcome.SUCCESS
            )
        if "lighting" in supplied:
            self.preferences.record_event(
                LightingUsage(lighting=node.lighting.value), context=context, outcome=Outcome.SUCCESS
            )
        return node

    def delete_node(self, node_id: str) -> None:
        self.store.delete(node_id)

    def reorder(self, scene_id: str, node_ids: List[str]) -> List[SceneNode]:
        return self.store.reorder(scene_id, node_ids)

    def ingest_text(self, scene_id: str, text: str) -> IngestionReport:
        if not scene_id:
            raise ValidationError("scene_id is required")
        return self.ingestion.ingest_text(scene_id, text)

    # Scene analysis

    def _agent(self) -> SceneAnalysisAgent:
        with self._client_lock:
            if self._analysis_agent is None:
                self._analysis_agent = SceneAnalysisAgent(settings=self.settings)
            return self._analysis_agent

    def analyze(
        self,
        text: str,
        scene_id: Optional[str] = None,
        context: Optional[str] = None,
    ) -> Tuple[SceneAnalysis, str, Optional[IngestionReport]]:
        """Analyze scene text and optionally ingest the actions into a scene.

        Returns:
            Tuple of the analysis, its inline job id, and the ingestion report
            when scene_id was given.

        Raises:
            ValidationError: If text is empty.
            ConfigurationError: If ANTHROPIC_API_KEY is not set.
            UpstreamError: If the analysis call fails.
        """
        if not text or not text.strip():
            raise ValidationError("Text is required")

        analysis = self._agent().run(AnalysisInput(text=text, context=context))
        record = self.jobs.record_completed(
            JobKind.ANALYSIS,
            analysis.model_dump(mode="json"),
            metadata={"original_text": text, "scene_id": scene_id},
        )

        report = None
        if scene_id:
            report = self.ingestion.ingest_analysis(scene_id, analysis.actions)
        return analysis, record.job_id, report

    # Characters

    def _portraits(self) -> ImagenClient:
        with self._client_lock:
            if self._portrait_client is None:
                self._portrait_client = ImagenClient(settings=self.settings)
            return self._portrait_client

    def characters(self) -> List[Character]:
        with self._roster_lock:
            return [c.model_copy() for c in self._characters.values()]

    def add_character(
        self,
        name: Optional[str],
        description: Optional[str],
        generate_portrait: bool = True,
    ) -> Tuple[Character, Optional[str]]:
        """Add a character to the roster, generating a portrait first.

        Returns:
            Tuple of the character and the portrait job id (None without a portrait).

        Raises:
            ValidationError: If name or description is missing, or the name is taken.
            ConfigurationError: If portrait credentials are missing.
            UpstreamError: If portrait generation fails.
        """
        name = (name or "").strip()
        description = (description or "").strip()
        if not name or not description:
            raise ValidationError("Character name and description are required")

        key = name.lower()
        self._check_name_free(key, name)

        image = None
        if generate_portrait:
            image = self._portraits().generate_portrait(name, description)

        character = Character(name=name, description=description, image_base64=image)
        with self._roster_lock:
            if key in self._characters:
                raise ValidationError(f"Character '{name}' already exists")
            self._characters[key] = character

        job_id = None
        if generate_portrait:
            record = self.jobs.record_completed(
                JobKind.PORTRAIT,
                character.model_dump(mode="json"),
                metadata={"name": name},
            )
            job_id = record.job_id
        logger.info(f"Added character {name}")
        return character.model_copy(), job_id

    def _check_name_free(self, key: str, name: str) -> None:
        with self._roster_lock:
            if key in self._characters:
                raise ValidationError(f"Character '{name}' already exists")

    # Vendor jobs

    def generate_video(
        self,
        prompt: Optional[str],
        workflow_type: Optional[str] = None,
        overrides: Optional[dict] = None,
        deployment_id: Optional[str] = None,
    ) -> str:
        payload = video_generate_overrides(prompt, workflow_type, overrides)
        return self._pollers[JobKind.VIDEO_GENERATE].submit(payload, deployment_id=deployment_id)

    def stitch(self, video_clips: Optional[list], **options: Any) -> str:
        payload = stitch_overrides(video_clips, **options)
        return self._pollers[JobKind.STITCH].submit(payload)

    def transfer_style(
        self,
        video_url: Optional[str],
        reference_style: Optional[str] = None,
        style_prompt: Optional[str] = None,
        overrides: Optional[dict] = None,
    ) -> str:
        payload = style_transfer_overrides(video_url, reference_style, style_prompt, overrides)
        return self._pollers[JobKind.STYLE_TRANSFER].submit(payload)

    def render_scene(self, scene_id: str, **options: Any) -> str:
        """Submit a stitch job built from a scene's nodes.

        Args:
            scene_id: Scene to render.
            **options: Stitch options (transition_style, quality, fps, ...).

        Returns:
            The stitch job id.

        Raises:
            ValidationError: If the scene has no nodes.
        """
        nodes = self.store.list(scene_id)
        if not nodes:
            raise ValidationError(f"Scene {scene_id} has no storyboard nodes to render")

        clips = [
            {
                "description": node.description,
                "characters": node.characters,
                "action": node.action,
                "camera": node.camera.value,
                "lighting": node.lighting.value,
                "duration": node.duration,
            }
            for node in nodes
        ]
        total = sum(node.duration for node in nodes)
        options.pop("output_duration", None)
        logger.info(f"Rendering scene {scene_id}: {len(clips)} clips, {total:.1f}s")
        return self.stitch(clips, output_duration=min(total, MAX_STITCH_DURATION), **options)

    def finish_render(
        self,
        job_id: str,
        cancel_event: Optional[threading.Event] = None,
        complexity: Optional[Complexity] = None,
        genre: Optional[str] = None,
        on_progress: Optional[Callable[[PollResult], None]] = None,
    ) -> JobRecord:
        """Wait for a render and record the outcome as a scene_render event.

        A cancelled wait records nothing. A timeout is recorded as neutral.
        """
        record = self._pollers[JobKind.STITCH].wait(
            job_id, cancel_event=cancel_event, on_progress=on_progress
        )
        outcome = _RENDER_OUTCOMES.get(record.state)
        if outcome is not None:
            self.preferences.record_event(
                SceneRendered(complexity=complexity, genre=genre),
                context={"job_id": job_id, "state": record.state.value},
                outcome=outcome,
            )
        return record

    def poll_job(self, kind: JobKind, job_id: str) -> PollResult:
        """Poll a vendor job, or read back an inline job's stored result.

        Raises:
            NotFoundError: If an inline job is unknown or of another kind.
        """
        if not job_id:
            raise ValidationError("Missing job_id parameter")
        if kind in INLINE_KINDS:
            record = self.jobs.get(job_id)
            if record.kind != kind:
                raise NotFoundError("Job not found", details={"job_id": job_id})
            return PollResult(
                job_id=job_id,
                status=record.status,
                progress=record.progress,
                result=record.result,
            )
        return self.poller(kind).poll(job_id)

    def get_job(self, job_id: str) -> JobRecord:
        return self.jobs.get(job_id)

    def status_report(self) -> dict:
        """Report which vendor integrations are configured."""
        settings = self.settings
        runcomfy = settings.runcomfy_configured
        setup_needed = settings.setup_needed()
        return {
            "apis": {
                "characters": {
                    "name": "Character Generation (Imagen)",
                    "configured": settings.imagen_configured,
                    "endpoint": "/api/characters/generate",
                },
                "analysis": {
                    "name": "Scene Analysis (Claude)",
                    "configured": settings.anthropic_configured,
                    "endpoint": "/api/nlp/analyze",
                },
                "wan2": {
                    "name": "Wan 2.2 Lightning",
                    "configured": runcomfy,
                    "endpoint": "/api/wan2/generate",
                    "deployment_id": settings.wan2_deployment_id,
                },
                "framepack": {
                    "name": "Framepack Video Stitching",
                    "configured": runcomfy,
                    "endpoint": "/api/comfyui/framepack",
                    "deployment_id": settings.framepack_deployment_id,
                    "capability": "Stitch scenes and images into up to 60-second videos",
                },
                "style_transfer": {
                    "name": "Video Style Transfer",
                    "configured": runcomfy,
                    "endpoint": "/api/style-transfer",
                    "deployment_id": settings.style_transfer_deployment_id,
                    "capability": "Change whole video style based on reference image or prompt",
                },
                "storyboard": {
                    "name": "Storyboard Management",
                    "configured": True,
                    "endpoint": "/api/storyboard",
                },
            },
            "environment": {
                "runcomfy_api_key": runcomfy,
                "anthropic_api_key": settings.anthropic_configured,
                "google_cloud_project": settings.imagen_configured,
                "comfyui_base_url": settings.comfyui_base_url,
            },
            "setup_needed": setup_needed,
            "message": (
                "Some APIs need configuration" if setup_needed
                else "All APIs are properly configured"
            ),
        }


class StudioRegistry:
    """Session id -> Studio, created on first use."""

    def __init__(
        self,
        settings: Optional[Config] = None,
        factory: Optional[Callable[[Config], Studio]] = None,
    ) -> None:
        self._settings = settings or default_config
        self._factory = factory or (lambda settings: Studio(settings))
        self._lock = threading.Lock()
        self._studios: Dict[str, Studio] = {}

    def get(self, session_id: Optional[str] = None) -> Studio:
        session_id = session_id or DEFAULT_SESSION
        with self._lock:
            studio = self._studios.get(session_id)
            if studio is None:
                logger.debug(f"Creating studio for session {session_id}")
                studio = self._studios[session_id] = self._factory(self._settings)
            return studio

    def sessions(self) -> List[str]:
        with self._lock:
            return list(self._studios)

    def clear(self) -> None:
        with self._lock:
            self._studios.clear()
