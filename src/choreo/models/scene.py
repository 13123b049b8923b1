"""Storyboard node data models."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, field_validator

OptionT = TypeVar("OptionT", bound=Enum)


class _OptionEnum(str, Enum):
    """String enum that also accepts case-insensitive member names."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        return None


class CameraStyle(_OptionEnum):
    """Camera movement options."""
    STATIC = "Static"
    PAN = "Pan"
    TRACK = "Track"
    DOLLY = "Dolly"
    HANDHELD = "Handheld"


class LightingStyle(_OptionEnum):
    """Lighting options."""
    DAYLIGHT = "Daylight"
    NIGHT = "Night"
    DRAMATIC = "Dramatic"
    NEON = "Neon"
    FIRELIGHT = "Firelight"


DEFAULT_CAMERA = CameraStyle.STATIC
DEFAULT_LIGHTING = LightingStyle.DAYLIGHT
DEFAULT_DURATION = 2.0


def match_option(text: Optional[str], options: Type[OptionT]) -> Optional[OptionT]:
    """Find the first option whose name appears in free text.

    Vendor suggestions come back as phrases like "slow dolly in"; this maps
    them onto the fixed option set.

    Args:
        text: Free-text suggestion, possibly None.
        options: Enum class to match against.

    Returns:
        The matching enum member, or None when nothing matches.
    """
    if not text:
        return None
    lowered = text.lower()
    for option in options:
        if option.value.lower() in lowered:
            return option
    return None


def new_node_id() -> str:
    return f"node-{uuid.uuid4().hex}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _clean_text(value: Optional[str], field_name: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    cleaned = value.strip()
    if not cleaned:
        raise ValueError(f"{field_name} cannot be empty")
    return cleaned


def _clean_characters(value) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, Iterable):
        raise ValueError("characters must be a list of names")

    names: List[str] = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ValueError("character names must be non-empty strings")
        name = item.strip()
        if name not in names:
            names.append(name)
    if not names:
        raise ValueError("characters cannot be empty")
    return names


class SceneNode(BaseModel):
    """One storyboard beat: who, what action, camera, lighting, duration."""

    id: str = Field(default_factory=new_node_id, description="Opaque node identifier")
    scene_id: str = Field(..., description="Owning scene identifier")
    description: str = Field(..., description="Beat description")
    characters: List[str] = Field(..., description="Characters in the beat")
    action: str = Field(..., description="Choreographed action")
    camera: CameraStyle = Field(default=DEFAULT_CAMERA, description="Camera movement")
    lighting: LightingStyle = Field(default=DEFAULT_LIGHTING, description="Lighting style")
    duration: float = Field(default=DEFAULT_DURATION, gt=0, description="Duration in seconds")
    position: int = Field(default=0, description="Display order within the scene")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("scene_id", "description", "action", mode="before")
    @classmethod
    def _required_text(cls, value, info):
        return _clean_text(value, info.field_name)

    @field_validator("characters", mode="before")
    @classmethod
    def _characters(cls, value):
        return _clean_characters(value)


class NodeCreate(BaseModel):
    """Input for creating a storyboard node."""

    scene_id: str
    description: str
    characters: List[str]
    action: str
    camera: Optional[CameraStyle] = None
    lighting: Optional[LightingStyle] = None
    duration: Optional[float] = Field(default=None, gt=0)
    position: Optional[int] = None

    @field_validator("scene_id", "description", "action", mode="before")
    @classmethod
    def _required_text(cls, value, info):
        return _clean_text(value, info.field_name)

    @field_validator("characters", mode="before")
    @classmethod
    def _characters(cls, value):
        return _clean_characters(value)


class NodePatch(BaseModel):
    """Partial update for a storyboard node.

    Only fields present in the patch are applied; None means "not supplied".
    """

    scene_id: Optional[str] = None
    description: Optional[str] = None
    characters: Optional[List[str]] = None
    action: Optional[str] = None
    camera: Optional[CameraStyle] = None
    lighting: Optional[LightingStyle] = None
    duration: Optional[float] = Field(default=None, gt=0)
    position: Optional[int] = None

    @field_validator("scene_id", "description", "action", mode="before")
    @classmethod
    def _optional_text(cls, value, info):
        return _clean_text(value, info.field_name)

    @field_validator("characters", mode="before")
    @classmethod
    def _characters(cls, value):
        return _clean_characters(value)

    def changes(self) -> dict:
        """Return the supplied, non-null fields except scene_id."""
        supplied = self.model_dump(exclude_unset=True, exclude_none=True)
        supplied.pop("scene_id", None)
        return supplied
