"""Vendor job routes: video generation, stitching, style transfer and scene renders."""

import math
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...models import JobKind
from ...studio import Studio
from ..deps import get_studio
from ..schemas import RenderRequest, StitchRequest, StyleTransferRequest, VideoGenerateRequest

router = APIRouter()


def _poll(studio: Studio, kind: JobKind, job_id: Optional[str]) -> dict:
    result = studio.poll_job(kind, job_id)
    return {"success": True, **result.to_dict()}


@router.post("/wan2/generate")
def generate_video(body: VideoGenerateRequest, studio: Studio = Depends(get_studio)):
    """Start a Wan 2.2 video generation."""
    job_id = studio.generate_video(
        body.prompt,
        workflow_type=body.workflow_type,
        overrides=body.overrides,
        deployment_id=body.deployment_id,
    )
    record = studio.get_job(job_id)
    return {
        "success": True,
        "job_id": job_id,
        "deployment_id": record.deployment_id,
        "prompt": body.prompt,
        "workflow_type": body.workflow_type,
        "estimated_duration": math.ceil(len(body.prompt.split(" ")) * 0.5),
        "message": "Wan 2.2 generation started successfully",
    }


@router.get("/wan2/generate")
def video_status(job_id: Optional[str] = Query(None), studio: Studio = Depends(get_studio)):
    return _poll(studio, JobKind.VIDEO_GENERATE, job_id)


@router.post("/comfyui/framepack")
def stitch(body: StitchRequest, studio: Studio = Depends(get_studio)):
    """Stitch clips into a video of at most 60 seconds."""
    job_id = studio.stitch(body.video_clips, **body.options())
    return {
        "success": True,
        "job_id": job_id,
        "clips_count": len(body.video_clips),
        "message": "Framepack stitching started successfully",
    }


@router.get("/comfyui/framepack")
def stitch_status(job_id: Optional[str] = Query(None), studio: Studio = Depends(get_studio)):
    return _poll(studio, JobKind.STITCH, job_id)


@router.post("/style-transfer")
def transfer_style(body: StyleTransferRequest, studio: Studio = Depends(get_studio)):
    """Restyle a video from a reference style or prompt."""
    job_id = studio.transfer_style(
        body.video_url,
        reference_style=body.reference_style,
        style_prompt=body.style_prompt,
        overrides=body.overrides,
    )
    return {
        "success": True,
        "job_id": job_id,
        "video_url": body.video_url,
        "message": "Style transfer started successfully",
    }


@router.get("/style-transfer")
def style_transfer_status(job_id: Optional[str] = Query(None), studio: Studio = Depends(get_studio)):
    return _poll(studio, JobKind.STYLE_TRANSFER, job_id)


@router.post("/render")
def render_scene(body: RenderRequest, studio: Studio = Depends(get_studio)):
    """Submit a stitch job built from a scene's storyboard."""
    job_id = studio.render_scene(body.scene_id, **body.options())
    return {
        "success": True,
        "job_id": job_id,
        "scene_id": body.scene_id,
        "message": "Scene render started successfully",
    }


@router.get("/render")
def render_status(job_id: Optional[str] = Query(None), studio: Studio = Depends(get_studio)):
    return _poll(studio, JobKind.STITCH, job_id)
