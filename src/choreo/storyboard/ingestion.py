"""Turn analysis results and @Name free text into storyboard nodes."""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError as PydanticValidationError

from ..errors import StudioError
from ..learning import PreferenceModel
from ..models import CameraStyle, LightingStyle, ParsedAction, SceneNode, match_option
from ..models.scene import DEFAULT_CAMERA, DEFAULT_DURATION, DEFAULT_LIGHTING
from .store import StoryboardStore

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r"@(\w+)\s+([^@]+)")


@dataclass
class IngestionFailure:
    """An entry that could not be turned into a node."""

    index: int
    character: Optional[str]
    action: Optional[str]
    kind: str
    message: str

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "character": self.character,
            "action": self.action,
            "kind": self.kind,
            "message": self.message,
        }


@dataclass
class IngestionReport:
    """Outcome of a batch ingestion."""

    scene_id: str
    created: List[SceneNode] = field(default_factory=list)
    failures: List[IngestionFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict:
        return {
            "scene_id": self.scene_id,
            "ok": self.ok,
            "created": [node.model_dump(mode="json") for node in self.created],
            "failures": [failure.to_dict() for failure in self.failures],
        }


class SequenceIngestion:
    """Creates storyboard nodes from a parsed action sequence.

    Each entry becomes one node. A failing entry is logged and reported,
    and the remaining entries are still attempted.
    """

    def __init__(
        self,
        store: StoryboardStore,
        preferences: Optional[PreferenceModel] = None,
    ) -> None:
        self._store = store
        self._preferences = preferences

    def _default_camera(self) -> str:
        if self._preferences is not None:
            learned = match_option(self._preferences.top_camera(), CameraStyle)
            if learned is not None:
                return learned.value
        return DEFAULT_CAMERA.value

    def _default_lighting(self) -> str:
        if self._preferences is not None:
            learned = match_option(self._preferences.top_lighting(), LightingStyle)
            if learned is not None:
                return learned.value
        return DEFAULT_LIGHTING.value

    def ingest_analysis(
        self,
        scene_id: str,
        actions: Sequence[Union[ParsedAction, Dict[str, Any]]],
    ) -> IngestionReport:
        """Create one node per analysed action, appended after the scene's nodes.

        Vendor camera/lighting phrases are mapped onto the option sets; when
        a suggestion is missing or unmatched the learned preference is used,
        or Static/Daylight without a preference model.

        Args:
            scene_id: Target scene.
            actions: ParsedAction entries or raw dicts from the analysis vendor.

        Returns:
            Report of created nodes and per-entry failures.
        """
        report = IngestionReport(scene_id=scene_id)
        start = self._store.count(scene_id)

        for i, raw in enumerate(actions):
            character = action = None
            try:
                entry = raw if isinstance(raw, ParsedAction) else ParsedAction.model_validate(raw)
                character, action = entry.character, entry.action
                camera = match_option(entry.camera_suggestion, CameraStyle)
                lighting = match_option(entry.lighting_suggestion, LightingStyle)
                duration = entry.duration_estimate
                node = self._store.create(
                    scene_id=scene_id,
                    description=entry.action,
                    characters=[entry.character],
                    action=entry.action,
                    camera=camera.value if camera else self._default_camera(),
                    lighting=lighting.value if lighting else self._default_lighting(),
                    duration=duration if duration and duration > 0 else DEFAULT_DURATION,
                    position=start + i,
                )
            except PydanticValidationError as e:
                if isinstance(raw, dict):
                    character, action = raw.get("character"), raw.get("action")
                self._fail(report, i, character, action, "validation", str(e))
                continue
            except StudioError as e:
                self._fail(report, i, character, action, e.kind, e.message)
                continue
            report.created.append(node)

        logger.info(
            f"Ingested {len(report.created)}/{len(actions)} analysed actions into {scene_id}"
        )
        return report

    def ingest_text(self, scene_id: str, text: str) -> IngestionReport:
        """Create one node per "@Name action" mention, at position = mention index.

        Text with no mentions yields an empty report.
        """
        report = IngestionReport(scene_id=scene_id)
        for i, match in enumerate(MENTION_PATTERN.finditer(text or "")):
            character, rest = match.group(1), match.group(2).strip()
            try:
                node = self._store.create(
                    scene_id=scene_id,
                    description=rest,
                    characters=[character],
                    action=rest,
                    camera=DEFAULT_CAMERA.value,
                    lighting=DEFAULT_LIGHTING.value,
                    duration=DEFAULT_DURATION,
                    position=i,
                )
            except StudioError as e:
                self._fail(report, i, character, rest, e.kind, e.message)
                continue
            report.created.append(node)

        if report.created or report.failures:
            logger.info(f"Ingested {len(report.created)} mentions into {scene_id}")
        return report

    @staticmethod
    def _fail(
        report: IngestionReport,
        index: int,
        character: Optional[str],
        action: Optional[str],
        kind: str,
        message: str,
    ) -> None:
        logger.warning(f"Skipping entry {index} ({character}): {message}")
        report.failures.append(
            IngestionFailure(
                index=index,
                character=character,
                action=action,
                kind=kind,
                message=message,
            )
        )
