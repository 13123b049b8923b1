"""Tests for the preference model."""

import pytest

from choreo.errors import ValidationError
from choreo.learning import INSIGHTS, PreferenceModel, top_preference
from choreo.models import (
    ActionPatternUsed,
    CameraUsage,
    Complexity,
    EventKind,
    LightingUsage,
    Outcome,
    SceneRendered,
    UserFeedback,
)

from conftest import make_settings


def test_weights_are_seeded_in_option_order(preferences):
    state = preferences.state()

    assert list(state.camera_preferences) == ["Static", "Pan", "Track", "Dolly", "Handheld"]
    assert set(state.camera_preferences.values()) == {1}
    assert list(state.lighting_preferences) == ["Daylight", "Night", "Dramatic", "Neon", "Firelight"]
    assert state.scene_complexity_preference == Complexity.MEDIUM


def test_usage_events_increment_known_weights(preferences):
    preferences.record_event(CameraUsage(camera="Pan"))
    preferences.record_event(LightingUsage(lighting="Neon"))
    preferences.record_event(CameraUsage(camera="Crane"))

    state = preferences.state()
    assert state.camera_preferences["Pan"] == 2
    assert state.lighting_preferences["Neon"] == 2
    assert "Crane" not in state.camera_preferences
    assert len(state.learning_history) == 3


def test_user_feedback_adds_two(preferences):
    preferences.record_event(UserFeedback(preferred_camera="Dolly", preferred_lighting="Night"))
    preferences.record_event(UserFeedback(preferred_camera="Crane"))

    state = preferences.state()
    assert state.camera_preferences["Dolly"] == 3
    assert state.lighting_preferences["Night"] == 3
    assert "Crane" not in state.camera_preferences


def test_action_pattern_stats(preferences):
    preferences.record_event(ActionPatternUsed(pattern="spin kick", duration=4), outcome=Outcome.SUCCESS)
    preferences.record_event(ActionPatternUsed(pattern="spin kick"), outcome=Outcome.FAILURE)
    preferences.record_event(ActionPatternUsed(pattern="block"))

    patterns = {p.pattern: p for p in preferences.state().action_patterns}
    kick = patterns["spin kick"]
    assert (kick.usage_count, kick.success_count) == (2, 1)
    assert kick.avg_duration == pytest.approx(3.0)
    assert patterns["block"].success_count == 0
    assert patterns["block"].avg_duration == 2


def test_scene_render_sets_complexity_and_genres(preferences):
    preferences.record_event(SceneRendered(complexity=Complexity.COMPLEX, genre="wuxia"))
    preferences.record_event(SceneRendered(genre="wuxia"))
    preferences.record_event(SceneRendered(genre="noir"))

    state = preferences.state()
    assert state.scene_complexity_preference == Complexity.COMPLEX
    assert state.preferred_genres == ["wuxia", "noir"]


def test_history_entry_defaults(preferences):
    entry = preferences.record_event(CameraUsage(camera="Pan"))

    assert entry.action_type == EventKind.CAMERA_USAGE
    assert entry.context == {"camera": "Pan"}
    assert entry.outcome == Outcome.NEUTRAL

    entry = preferences.record_event(CameraUsage(camera="Pan"), context={"node_id": "n1"})
    assert entry.context == {"node_id": "n1"}


def test_history_is_bounded():
    model = PreferenceModel(make_settings(history_capacity=3))

    for i in range(5):
        model.record_event(CameraUsage(camera="Pan"), context={"i": i})

    history = model.state().learning_history
    assert [entry.context["i"] for entry in history] == [2, 3, 4]
    assert model.stats()["total_learning_events"] == 3


def test_default_history_keeps_the_latest_thousand(preferences):
    for i in range(1001):
        preferences.record_event(CameraUsage(camera="Pan"), context={"i": i})

    history = preferences.state().learning_history
    assert len(history) == 1000
    assert [entry.context["i"] for entry in history] == list(range(1, 1001))


def test_top_preference():
    assert top_preference({"Static": 2, "Pan": 3, "Track": 3}) == "Pan"
    assert top_preference({"Static": 1, "Pan": 1}) == "Static"
    assert top_preference({}) == "Unknown"


class TestInsights:
    def test_default_insight(self, preferences):
        assert preferences.suggestions().insight == INSIGHTS[4]

    def test_handheld_wins_over_dramatic(self, preferences):
        for _ in range(3):
            preferences.record_event(CameraUsage(camera="Handheld"))
            preferences.record_event(LightingUsage(lighting="Dramatic"))

        assert preferences.suggestions().insight == INSIGHTS[2]

    def test_dramatic_lighting(self, preferences):
        for _ in range(3):
            preferences.record_event(LightingUsage(lighting="Dramatic"))

        assert preferences.suggestions().insight == INSIGHTS[0]

    def test_complex_scenes(self, preferences):
        preferences.record_event(SceneRendered(complexity=Complexity.COMPLEX))

        assert preferences.suggestions().insight == INSIGHTS[3]

    def test_many_patterns(self, preferences):
        for i in range(6):
            preferences.record_event(ActionPatternUsed(pattern=f"combo {i}"))

        assert preferences.suggestions().insight == INSIGHTS[1]


def test_progress(preferences):
    assert preferences.progress() == 0

    preferences.record_event(CameraUsage(camera="Pan"), outcome=Outcome.SUCCESS)
    preferences.record_event(CameraUsage(camera="Pan"))

    assert preferences.progress() == pytest.approx(50.4)


def test_progress_is_capped(preferences):
    for _ in range(60):
        preferences.record_event(CameraUsage(camera="Pan"), outcome=Outcome.SUCCESS)

    assert preferences.progress() == 100


def test_successful_patterns_use_strict_threshold(preferences):
    for i in range(10):
        outcome = Outcome.SUCCESS if i < 7 else Outcome.FAILURE
        preferences.record_event(ActionPatternUsed(pattern="seventy"), outcome=outcome)
    for _ in range(2):
        preferences.record_event(ActionPatternUsed(pattern="sweep"), outcome=Outcome.SUCCESS)
    for _ in range(3):
        preferences.record_event(ActionPatternUsed(pattern="throw"), outcome=Outcome.SUCCESS)

    assert [p.pattern for p in preferences.successful_patterns()] == ["throw", "sweep"]
    assert [p.pattern for p in preferences.successful_patterns(limit=1)] == ["throw"]
    assert preferences.suggestions().recommended_patterns == ["throw", "sweep"]
    assert preferences.updated_preferences()["successful_patterns"] == ["sweep", "throw"]


def test_stats(preferences):
    assert preferences.stats()["most_successful_pattern"] == "N/A"

    preferences.record_event(ActionPatternUsed(pattern="jab"), outcome=Outcome.SUCCESS)
    preferences.record_event(ActionPatternUsed(pattern="hook"), outcome=Outcome.SUCCESS)
    preferences.record_event(ActionPatternUsed(pattern="feint"))

    stats = preferences.stats()
    assert stats["most_successful_pattern"] == "jab"
    assert stats["top_camera"] == "Static"
    assert stats["preferred_complexity"] == "medium"
    assert stats["total_learning_events"] == 3


def test_preferences_snapshot_keeps_top_five(preferences):
    for i in range(7):
        for _ in range(i + 1):
            preferences.record_event(ActionPatternUsed(pattern=f"p{i}"), outcome=Outcome.SUCCESS)

    snapshot = preferences.preferences_snapshot()

    assert [p["pattern"] for p in snapshot["successful_patterns"]] == ["p6", "p5", "p4", "p3", "p2"]
    assert snapshot["successful_patterns"][0]["usage_count"] == 7


def test_state_is_a_copy(preferences):
    state = preferences.state()
    state.camera_preferences["Pan"] = 99

    assert preferences.state().camera_preferences["Pan"] == 1


class TestRecord:
    def test_parses_untyped_request(self, preferences):
        entry = preferences.record("camera_usage", {"camera": "Track"}, {"node_id": "n1"}, "success")

        assert entry.outcome == Outcome.SUCCESS
        assert preferences.state().camera_preferences["Track"] == 2

    @pytest.mark.parametrize(
        "kind, data, outcome",
        [
            (None, {"camera": "Pan"}, None),
            ("camera_usage", None, None),
            ("zoom_usage", {"camera": "Pan"}, None),
            ("action_pattern", {"pattern": ""}, None),
            ("camera_usage", {"camera": "Pan"}, "great"),
        ],
    )
    def test_rejects_bad_requests(self, preferences, kind, data, outcome):
        with pytest.raises(ValidationError):
            preferences.record(kind, data, outcome=outcome)
        assert preferences.stats()["total_learning_events"] == 0
