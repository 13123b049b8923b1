"""Data models for the choreography studio."""

from .analysis import ParsedAction, SceneAnalysis, SceneSummary
from .character import Character
from .job import JobKind, JobRecord, JobState, JobStatus, PollResult
from .manifest import StoryboardSnapshot
from .preference import (
    ActionPattern,
    ActionPatternUsed,
    CameraUsage,
    Complexity,
    EventKind,
    HistoryEntry,
    LearningEvent,
    LightingUsage,
    Outcome,
    PreferenceState,
    SceneRendered,
    Suggestions,
    UserFeedback,
)
from .scene import CameraStyle, LightingStyle, NodeCreate, NodePatch, SceneNode, match_option

__all__ = [
    "ActionPattern",
    "ActionPatternUsed",
    "CameraStyle",
    "CameraUsage",
    "Character",
    "Complexity",
    "EventKind",
    "HistoryEntry",
    "JobKind",
    "JobRecord",
    "JobState",
    "JobStatus",
    "LearningEvent",
    "LightingStyle",
    "LightingUsage",
    "NodeCreate",
    "NodePatch",
    "Outcome",
    "ParsedAction",
    "PollResult",
    "PreferenceState",
    "SceneAnalysis",
    "SceneNode",
    "SceneRendered",
    "SceneSummary",
    "StoryboardSnapshot",
    "Suggestions",
    "UserFeedback",
    "match_option",
]
