"""Learning API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...studio import Studio
from ..deps import get_studio
from ..schemas import LearningRequest

router = APIRouter()


@router.post("")
def record_event(body: LearningRequest, studio: Studio = Depends(get_studio)):
    """Record a learning event."""
    studio.preferences.record(body.type, body.data, context=body.context, outcome=body.outcome)
    return {
        "success": True,
        "message": "Learning data updated successfully",
        "updated_preferences": studio.preferences.updated_preferences(),
    }


@router.get("")
def learning_summary(type: Optional[str] = Query(None), studio: Studio = Depends(get_studio)):
    """Suggestions, preferences, or general learning stats."""
    if type == "suggestions":
        return {"success": True, "suggestions": studio.preferences.suggestions().model_dump(mode="json")}
    if type == "preferences":
        return {"success": True, "preferences": studio.preferences.preferences_snapshot()}
    return {"success": True, "stats": studio.preferences.stats()}
