"""Character API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...models import JobKind
from ...studio import Studio
from ..deps import get_studio
from ..schemas import CharacterRequest

router = APIRouter()


@router.get("")
def list_characters(studio: Studio = Depends(get_studio)):
    return {
        "success": True,
        "characters": [c.model_dump(mode="json") for c in studio.characters()],
    }


@router.post("/generate")
def generate_character(body: CharacterRequest, studio: Studio = Depends(get_studio)):
    """Add a character and generate their portrait."""
    character, job_id = studio.add_character(body.name, body.description)
    return {"success": True, "job_id": job_id, "character": character.model_dump(mode="json")}


@router.get("/generate")
def portrait_status(job_id: Optional[str] = Query(None), studio: Studio = Depends(get_studio)):
    result = studio.poll_job(JobKind.PORTRAIT, job_id)
    return {"success": True, **result.to_dict()}
