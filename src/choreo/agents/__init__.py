"""Claude-backed agents."""

from .analysis import CAPABILITIES, AnalysisInput, SceneAnalysisAgent
from .base import BaseAgent

__all__ = ["AnalysisInput", "BaseAgent", "CAPABILITIES", "SceneAnalysisAgent"]
