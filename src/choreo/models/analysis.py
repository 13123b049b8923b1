"""Scene analysis result models."""

from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError


class ParsedAction(BaseModel):
    """One character action extracted from a scene description."""

    character: str = Field(..., description="Character performing the action")
    action: str = Field(..., description="What the character does")
    intent: str = Field(default="", description="attack, defend, move, interact or emote")
    intensity: str = Field(default="medium", description="low, medium or high")
    camera_suggestion: Optional[str] = None
    lighting_suggestion: Optional[str] = None
    duration_estimate: Optional[float] = None


class SceneSummary(BaseModel):
    """Overall read of the scene."""

    overall_tone: str = ""
    pacing: str = ""
    suggested_camera_work: List[str] = Field(default_factory=list)
    suggested_lighting: str = ""
    complexity_score: float = 0.0
    estimated_duration: float = 0.0

    @field_validator("suggested_camera_work", mode="before")
    @classmethod
    def _as_list(cls, value):
        if isinstance(value, str):
            return [value]
        return value


class SceneAnalysis(BaseModel):
    """Structured analysis of a free-text scene description.

    Action entries that do not parse are kept as the raw vendor value so
    ingestion can report them one by one instead of losing the batch.
    """

    actions: List[Union[ParsedAction, Any]] = Field(default_factory=list)
    scene_analysis: Optional[SceneSummary] = None
    enhanced_description: Optional[str] = None
    storyboard_suggestions: List[str] = Field(default_factory=list)

    @field_validator("actions", mode="before")
    @classmethod
    def _parse_entries(cls, value):
        if not isinstance(value, list):
            return value
        entries = []
        for raw in value:
            try:
                entries.append(ParsedAction.model_validate(raw))
            except PydanticValidationError:
                entries.append(raw)
        return entries

    @property
    def parsed_actions(self) -> List[ParsedAction]:
        return [entry for entry in self.actions if isinstance(entry, ParsedAction)]
