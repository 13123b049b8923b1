"""Storyboard snapshot model."""

from datetime import datetime
from pathlib import Path
from typing import Dict, List

import yaml
from pydantic import BaseModel, Field

from .scene import SceneNode, utc_now


class StoryboardSnapshot(BaseModel):
    """Serialisable copy of a storyboard, grouped by scene."""

    project_name: str = Field(..., description="Project name")
    scenes: Dict[str, List[SceneNode]] = Field(
        default_factory=dict, description="Nodes per scene, ordered by position"
    )
    exported_at: datetime = Field(default_factory=utc_now)

    @property
    def node_count(self) -> int:
        return sum(len(nodes) for nodes in self.scenes.values())

    @classmethod
    def from_yaml(cls, path: Path) -> "StoryboardSnapshot":
        """Load a snapshot from a YAML file.

        Raises:
            ValueError: If the file is not valid YAML, is not a mapping, or
                does not describe a storyboard.
        """
        with open(path, "r") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"{path} is not valid YAML: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a mapping, got {type(data).__name__}")
        return cls.model_validate(data)

    def to_yaml(self, path: Path) -> None:
        """Save the snapshot to a YAML file."""
        with open(path, "w") as f:
            yaml.safe_dump(
                self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False
            )
