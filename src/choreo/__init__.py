"""Choreo Studio - storyboard and preference-learning engine for AI action sequences."""

__version__ = "0.1.0"
