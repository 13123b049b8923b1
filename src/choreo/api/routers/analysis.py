"""Scene analysis API routes."""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...agents import CAPABILITIES
from ...models import JobKind
from ...studio import Studio
from ..deps import get_studio
from ..schemas import AnalyzeRequest

router = APIRouter()


@router.post("/analyze")
def analyze(body: AnalyzeRequest, studio: Studio = Depends(get_studio)):
    """Analyze an action description, optionally adding its beats to a scene."""
    analysis, job_id, report = studio.analyze(body.text, scene_id=body.scene_id, context=body.context)
    response = {
        "success": True,
        "job_id": job_id,
        "analysis": analysis.model_dump(mode="json"),
        "original_text": body.text,
        "processed_at": datetime.now(timezone.utc).isoformat(),
    }
    if report is not None:
        response["ingestion"] = report.to_dict()
    return response


@router.get("/analyze")
def analyze_info(job_id: Optional[str] = Query(None), studio: Studio = Depends(get_studio)):
    """Read back an analysis job, or list capabilities without a job_id."""
    if job_id:
        result = studio.poll_job(JobKind.ANALYSIS, job_id)
        return {"success": True, **result.to_dict()}
    return {
        "success": True,
        "message": "NLP processing endpoint is available",
        "capabilities": CAPABILITIES,
    }
