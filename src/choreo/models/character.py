"""Character data model."""

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class Character(BaseModel):
    """A named performer available to storyboard nodes."""

    id: str = Field(default_factory=lambda: f"char-{uuid.uuid4().hex}")
    name: str = Field(..., min_length=1, description="Character name, unique per session")
    description: str = Field(..., min_length=1, description="Appearance and fighting style")
    image_base64: Optional[str] = Field(None, description="Generated portrait (PNG, base64)")
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
