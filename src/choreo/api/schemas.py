"""Request bodies for the studio API.

Required values are checked by the studio components, so most fields are
optional here.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class NodeCreateRequest(BaseModel):
    scene_id: Optional[str] = None
    description: Optional[str] = None
    characters: Optional[Union[List[str], str]] = None
    action: Optional[str] = None
    camera: Optional[str] = None
    lighting: Optional[str] = None
    duration: Optional[float] = None
    position: Optional[int] = None


class ReorderRequest(BaseModel):
    scene_id: str
    node_ids: List[str]


class IngestRequest(BaseModel):
    scene_id: Optional[str] = None
    text: str = ""


class RenderRequest(BaseModel):
    scene_id: str
    transition_style: Optional[str] = None
    quality: Optional[str] = None
    fps: Optional[int] = None
    resolution: Optional[str] = None
    audio_enabled: bool = False
    background_music: Optional[str] = None
    color_grading: Optional[str] = None

    def options(self) -> dict:
        return self.model_dump(exclude={"scene_id"}, exclude_none=True)


class LearningRequest(BaseModel):
    type: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    context: Any = None
    outcome: Optional[str] = None


class VideoGenerateRequest(BaseModel):
    prompt: Optional[str] = None
    deployment_id: Optional[str] = None
    workflow_type: Optional[str] = None
    overrides: Dict[str, Any] = Field(default_factory=dict)


class StitchRequest(BaseModel):
    video_clips: Optional[List[Any]] = None
    output_duration: Optional[float] = None
    transition_style: Optional[str] = None
    quality: Optional[str] = None
    fps: Optional[int] = None
    resolution: Optional[str] = None
    audio_enabled: bool = False
    background_music: Optional[str] = None
    color_grading: Optional[str] = None

    def options(self) -> dict:
        return self.model_dump(exclude={"video_clips"}, exclude_none=True)


class StyleTransferRequest(BaseModel):
    video_url: Optional[str] = None
    reference_style: Optional[str] = None
    style_prompt: Optional[str] = None
    overrides: Dict[str, Any] = Field(default_factory=dict)


class CharacterRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class AnalyzeRequest(BaseModel):
    text: Optional[str] = None
    context: Optional[str] = None
    scene_id: Optional[str] = None
