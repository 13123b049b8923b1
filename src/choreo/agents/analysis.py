"""Scene analysis agent: free-text action descriptions into structured beats."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from ..errors import UpstreamError
from ..models import SceneAnalysis
from .base import BaseAgent

PROMPT_TEMPLATE_PATH = (
    Path(__file__).parent.parent.parent.parent / "templates" / "prompts" / "scene_analysis.txt"
)

CAPABILITIES = [
    "Action sequence parsing",
    "Character intent analysis",
    "Camera movement suggestions",
    "Lighting recommendations",
    "Duration estimation",
    "Scene complexity assessment",
    "Cinematic enhancement",
]

_FALLBACK_PROMPT = """You are an expert action choreographer and fight director with deep knowledge of cinematography and visual storytelling.

Output valid JSON only, with no additional text or markdown formatting.
The JSON should be an object with an "actions" array, a "scene_analysis" object,
an "enhanced_description" string and a "storyboard_suggestions" array."""


def _load_system_prompt() -> str:
    if PROMPT_TEMPLATE_PATH.exists():
        return PROMPT_TEMPLATE_PATH.read_text()
    return _FALLBACK_PROMPT


@dataclass
class AnalysisInput:
    """Input data for the scene analysis agent."""

    text: str
    context: Optional[str] = None


class SceneAnalysisAgent(BaseAgent[AnalysisInput, SceneAnalysis]):
    """Breaks an action description into characters, actions and shot suggestions."""

    reply_error = "Invalid analysis format"

    @property
    def name(self) -> str:
        return "SceneAnalysisAgent"

    @property
    def system_prompt(self) -> str:
        return _load_system_prompt()

    def run(self, input_data: AnalysisInput) -> SceneAnalysis:
        """Analyze a scene description.

        Args:
            input_data: Text to analyze plus optional context.

        Returns:
            Structured SceneAnalysis.

        Raises:
            UpstreamError: If the reply cannot be parsed into an analysis.
        """
        self._logger.info(f"Analyzing scene text ({len(input_data.text)} chars)")

        data = self._ask_json(self._build_prompt(input_data), max_tokens=2048)
        if not isinstance(data, dict):
            raise UpstreamError("Analysis response is not a JSON object")
        try:
            analysis = SceneAnalysis.model_validate(data)
        except PydanticValidationError as e:
            raise UpstreamError(self.reply_error, details=str(e)) from e

        self._logger.info(
            f"Extracted {len(analysis.parsed_actions)}/{len(analysis.actions)} well-formed actions"
        )
        return analysis

    def _build_prompt(self, input_data: AnalysisInput) -> str:
        return "\n".join([
            "Analyze the following action description and extract structured information:",
            "",
            f'Text: "{input_data.text}"',
            "",
            f"Context: {input_data.context or 'No additional context provided'}",
            "",
            "Return only valid JSON.",
        ])
