"""Preference-learning data models and learning events."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class Outcome(str, Enum):
    """Outcome attached to a learning event."""
    SUCCESS = "success"
    FAILURE = "failure"
    NEUTRAL = "neutral"


class Complexity(str, Enum):
    """Scene complexity preference."""
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class EventKind(str, Enum):
    """Kinds of learning event."""
    CAMERA_USAGE = "camera_usage"
    LIGHTING_USAGE = "lighting_usage"
    ACTION_PATTERN = "action_pattern"
    SCENE_RENDER = "scene_render"
    USER_FEEDBACK = "user_feedback"


class _Event(BaseModel):
    def payload(self) -> dict:
        """Return the event fields without the discriminator."""
        return self.model_dump(mode="json", exclude={"kind"}, exclude_none=True)


class CameraUsage(_Event):
    kind: Literal["camera_usage"] = "camera_usage"
    camera: str


class LightingUsage(_Event):
    kind: Literal["lighting_usage"] = "lighting_usage"
    lighting: str


class ActionPatternUsed(_Event):
    kind: Literal["action_pattern"] = "action_pattern"
    pattern: str = Field(..., min_length=1)
    duration: Optional[float] = Field(None, ge=0)


class SceneRendered(_Event):
    kind: Literal["scene_render"] = "scene_render"
    complexity: Optional[Complexity] = None
    genre: Optional[str] = None


class UserFeedback(_Event):
    kind: Literal["user_feedback"] = "user_feedback"
    preferred_camera: Optional[str] = None
    preferred_lighting: Optional[str] = None


LearningEvent = Annotated[
    Union[CameraUsage, LightingUsage, ActionPatternUsed, SceneRendered, UserFeedback],
    Field(discriminator="kind"),
]


class ActionPattern(BaseModel):
    """Usage statistics for a named choreography motif."""

    pattern: str
    success_count: int = 0
    usage_count: int = 0
    avg_duration: float = 2.0

    @property
    def success_rate(self) -> float:
        if self.usage_count == 0:
            return 0.0
        return self.success_count / self.usage_count


class HistoryEntry(BaseModel):
    """One recorded learning event."""

    timestamp: datetime
    action_type: EventKind
    context: Any = None
    outcome: Outcome = Outcome.NEUTRAL


class PreferenceState(BaseModel):
    """Snapshot of everything the preference model has learned."""

    camera_preferences: Dict[str, int]
    lighting_preferences: Dict[str, int]
    action_patterns: List[ActionPattern] = Field(default_factory=list)
    scene_complexity_preference: Complexity = Complexity.MEDIUM
    preferred_genres: List[str] = Field(default_factory=list)
    learning_history: List[HistoryEntry] = Field(default_factory=list)


class Suggestions(BaseModel):
    """Suggestion bundle returned to the studio UI."""

    camera_suggestion: str
    lighting_suggestion: str
    recommended_patterns: List[str]
    complexity_suggestion: Complexity
    insight: str
