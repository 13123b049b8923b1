"""Preference learning."""

from .preferences import INSIGHTS, PreferenceModel, top_preference

__all__ = ["INSIGHTS", "PreferenceModel", "top_preference"]
