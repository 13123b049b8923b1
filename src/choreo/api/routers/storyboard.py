"""Storyboard API routes."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from ...errors import ValidationError
from ...studio import Studio
from ..deps import get_studio
from ..schemas import IngestRequest, NodeCreateRequest, ReorderRequest

router = APIRouter()


@router.get("")
def list_nodes(scene_id: Optional[str] = Query(None), studio: Studio = Depends(get_studio)):
    """List nodes, optionally for one scene, sorted by position."""
    nodes = studio.list_nodes(scene_id)
    return {"success": True, "nodes": [node.model_dump(mode="json") for node in nodes]}


@router.post("")
def create_node(body: NodeCreateRequest, studio: Studio = Depends(get_studio)):
    """Create a storyboard node."""
    if not (body.scene_id and body.description and body.characters and body.action):
        raise ValidationError("scene_id, description, characters, and action are required")
    node = studio.create_node(**body.model_dump())
    return {
        "success": True,
        "node": node.model_dump(mode="json"),
        "message": "Storyboard node created successfully",
    }


@router.put("")
def update_node(
    node_id: Optional[str] = Query(None),
    body: Optional[Dict[str, Any]] = Body(None),
    studio: Studio = Depends(get_studio),
):
    """Apply a partial update to a node."""
    if not node_id:
        raise ValidationError("node_id is required")
    node = studio.update_node(node_id, body or {})
    return {
        "success": True,
        "node": node.model_dump(mode="json"),
        "message": "Storyboard node updated successfully",
    }


@router.delete("")
def delete_node(node_id: Optional[str] = Query(None), studio: Studio = Depends(get_studio)):
    """Delete a node."""
    if not node_id:
        raise ValidationError("node_id is required")
    studio.delete_node(node_id)
    return {"success": True, "message": "Storyboard node deleted successfully"}


@router.get("/scenes")
def list_scenes(studio: Studio = Depends(get_studio)):
    """Nodes grouped by scene."""
    scenes = studio.list_by_scene()
    return {
        "success": True,
        "scenes": {
            scene_id: [node.model_dump(mode="json") for node in nodes]
            for scene_id, nodes in scenes.items()
        },
    }


@router.post("/reorder")
def reorder(body: ReorderRequest, studio: Studio = Depends(get_studio)):
    nodes = studio.reorder(body.scene_id, body.node_ids)
    return {"success": True, "nodes": [node.model_dump(mode="json") for node in nodes]}


@router.post("/ingest")
def ingest(body: IngestRequest, studio: Studio = Depends(get_studio)):
    """Create nodes from "@Name action" text."""
    report = studio.ingest_text(body.scene_id, body.text)
    return {"success": True, **report.to_dict()}
