"""Preference learning from storyboard usage events."""

import logging
import threading
from collections import deque
from typing import Any, Dict, List, Optional, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..config import Config, config as default_config
from ..errors import ValidationError, from_pydantic
from ..models import (
    ActionPattern,
    ActionPatternUsed,
    CameraStyle,
    CameraUsage,
    Complexity,
    EventKind,
    HistoryEntry,
    LearningEvent,
    LightingStyle,
    LightingUsage,
    Outcome,
    PreferenceState,
    SceneRendered,
    Suggestions,
    UserFeedback,
)
from ..models.scene import DEFAULT_DURATION, utc_now

logger = logging.getLogger(__name__)

SUCCESS_THRESHOLD = 0.7
FEEDBACK_WEIGHT = 2

INSIGHTS = [
    "Based on your preferences, you seem to prefer dynamic camera movements with dramatic lighting.",
    "Your successful patterns suggest you enjoy fast-paced action sequences with quick cuts.",
    "I notice you often choose nighttime scenes with handheld camera work for intense moments.",
    "Your learning shows a preference for complex, multi-character action sequences.",
    "Based on your history, you might enjoy experimenting with more dolly shots for smoother movement.",
]

_event_adapter = TypeAdapter(LearningEvent)


def top_preference(weights: Dict[str, int]) -> str:
    """Return the key with the highest weight.

    Ties go to the earliest key in insertion order. An empty mapping gives
    "Unknown".
    """
    best: Optional[str] = None
    for key, weight in weights.items():
        if best is None or weight > weights[best]:
            best = key
    return best if best is not None else "Unknown"


class PreferenceModel:
    """Learns which camera, lighting and action choices a user favours.

    Weights start at 1 per option and only grow. Every recorded event is
    appended to a bounded history used for the progress score.
    """

    def __init__(self, settings: Optional[Config] = None) -> None:
        settings = settings or default_config
        self._lock = threading.Lock()
        self._camera: Dict[str, int] = {option.value: 1 for option in CameraStyle}
        self._lighting: Dict[str, int] = {option.value: 1 for option in LightingStyle}
        self._patterns: Dict[str, ActionPattern] = {}
        self._complexity = Complexity.MEDIUM
        self._genres: List[str] = []
        self._history: deque = deque(maxlen=settings.history_capacity)

    top_preference = staticmethod(top_preference)

    @property
    def capacity(self) -> int:
        return self._history.maxlen

    def record(
        self,
        kind: Optional[str],
        data: Optional[Dict[str, Any]],
        context: Any = None,
        outcome: Optional[Union[Outcome, str]] = None,
    ) -> HistoryEntry:
        """Record an event given as an untyped {type, data} pair.

        Raises:
            ValidationError: If the kind is missing or unknown, data is missing,
                or the data does not fit the event kind.
        """
        if not kind or data is None:
            raise ValidationError("Type and data are required")
        if not isinstance(data, dict):
            raise ValidationError("data must be an object")
        try:
            event = _event_adapter.validate_python({**data, "kind": kind})
            parsed_outcome = Outcome(outcome) if outcome is not None else None
        except PydanticValidationError as e:
            raise from_pydantic(e, f"Invalid {kind} event") from e
        except ValueError as e:
            raise ValidationError(f"Invalid outcome: {outcome}") from e
        return self.record_event(event, context=context, outcome=parsed_outcome)

    def record_event(
        self,
        event: LearningEvent,
        context: Any = None,
        outcome: Optional[Outcome] = None,
    ) -> HistoryEntry:
        """Apply one learning event and append it to the history.

        Args:
            event: Typed learning event.
            context: Arbitrary context stored with the history entry; the
                event payload is stored when omitted.
            outcome: Event outcome, neutral when omitted.

        Returns:
            The history entry that was appended.
        """
        outcome = outcome or Outcome.NEUTRAL
        with self._lock:
            if isinstance(event, CameraUsage):
                if event.camera in self._camera:
                    self._camera[event.camera] += 1
            elif isinstance(event, LightingUsage):
                if event.lighting in self._lighting:
                    self._lighting[event.lighting] += 1
            elif isinstance(event, ActionPatternUsed):
                self._record_pattern(event, outcome)
            elif isinstance(event, SceneRendered):
                if event.complexity is not None:
                    self._complexity = event.complexity
                if event.genre and event.genre not in self._genres:
                    self._genres.append(event.genre)
            elif isinstance(event, UserFeedback):
                if event.preferred_camera in self._camera:
                    self._camera[event.preferred_camera] += FEEDBACK_WEIGHT
                if event.preferred_lighting in self._lighting:
                    self._lighting[event.preferred_lighting] += FEEDBACK_WEIGHT

            entry = HistoryEntry(
                timestamp=utc_now(),
                action_type=EventKind(event.kind),
                context=context if context is not None else event.payload(),
                outcome=outcome,
            )
            self._history.append(entry)

        logger.debug(f"Recorded {event.kind} ({outcome.value})")
        return entry.model_copy(deep=True)

    def _record_pattern(self, event: ActionPatternUsed, outcome: Outcome) -> None:
        duration = event.duration or DEFAULT_DURATION
        pattern = self._patterns.get(event.pattern)
        if pattern is None:
            self._patterns[event.pattern] = ActionPattern(
                pattern=event.pattern,
                success_count=1 if outcome == Outcome.SUCCESS else 0,
                usage_count=1,
                avg_duration=duration,
            )
            return
        pattern.usage_count += 1
        if outcome == Outcome.SUCCESS:
            pattern.success_count += 1
        pattern.avg_duration = (pattern.avg_duration + duration) / 2

    def _successful(self) -> List[ActionPattern]:
        successful = [
            p for p in self._patterns.values() if p.success_rate > SUCCESS_THRESHOLD
        ]
        return sorted(successful, key=lambda p: p.success_count, reverse=True)

    def successful_patterns(self, limit: Optional[int] = None) -> List[ActionPattern]:
        """Patterns with a success rate above 0.7, most successes first."""
        with self._lock:
            patterns = self._successful()
            if limit is not None:
                patterns = patterns[:limit]
            return [p.model_copy() for p in patterns]

    def top_camera(self) -> str:
        with self._lock:
            return top_preference(self._camera)

    def top_lighting(self) -> str:
        with self._lock:
            return top_preference(self._lighting)

    def _insight(self) -> str:
        if self._camera.get(CameraStyle.HANDHELD.value, 0) > 3:
            return INSIGHTS[2]
        if self._lighting.get(LightingStyle.DRAMATIC.value, 0) > 3:
            return INSIGHTS[0]
        if self._complexity == Complexity.COMPLEX:
            return INSIGHTS[3]
        if len(self._patterns) > 5:
            return INSIGHTS[1]
        return INSIGHTS[4]

    def _progress(self) -> float:
        total = len(self._history)
        if total == 0:
            return 0.0
        successes = sum(1 for entry in self._history if entry.outcome == Outcome.SUCCESS)
        return min(100.0, successes / total * 100 + total / 50 * 10)

    def suggestions(self) -> Suggestions:
        """Suggest camera, lighting, patterns and complexity from what was learned."""
        with self._lock:
            return Suggestions(
                camera_suggestion=top_preference(self._camera),
                lighting_suggestion=top_preference(self._lighting),
                recommended_patterns=[p.pattern for p in self._successful()[:3]],
                complexity_suggestion=self._complexity,
                insight=self._insight(),
            )

    def progress(self) -> float:
        """Learning progress score in [0, 100]."""
        with self._lock:
            return self._progress()

    def updated_preferences(self) -> dict:
        """Summary returned after recording an event."""
        with self._lock:
            return {
                "top_camera": top_preference(self._camera),
                "top_lighting": top_preference(self._lighting),
                "successful_patterns": [
                    p.pattern for p in self._patterns.values()
                    if p.success_rate > SUCCESS_THRESHOLD
                ],
            }

    def preferences_snapshot(self) -> dict:
        with self._lock:
            return {
                "camera": dict(self._camera),
                "lighting": dict(self._lighting),
                "complexity": self._complexity.value,
                "genres": list(self._genres),
                "successful_patterns": [p.model_dump() for p in self._successful()[:5]],
            }

    def stats(self) -> dict:
        with self._lock:
            best: Optional[ActionPattern] = None
            for pattern in self._patterns.values():
                if best is None or pattern.success_rate > best.success_rate:
                    best = pattern
            return {
                "total_learning_events": len(self._history),
                "top_camera": top_preference(self._camera),
                "top_lighting": top_preference(self._lighting),
                "preferred_complexity": self._complexity.value,
                "most_successful_pattern": best.pattern if best else "N/A",
                "learning_progress": self._progress(),
            }

    def state(self) -> PreferenceState:
        """Return a deep copy of everything learned so far."""
        with self._lock:
            return PreferenceState(
                camera_preferences=dict(self._camera),
                lighting_preferences=dict(self._lighting),
                action_patterns=[p.model_copy() for p in self._patterns.values()],
                scene_complexity_preference=self._complexity,
                preferred_genres=list(self._genres),
                learning_history=[entry.model_copy(deep=True) for entry in self._history],
            )
