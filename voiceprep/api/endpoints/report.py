"""
Report API endpoints

Handles:
- Feedback summary for a finished interview
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from voiceprep.api.dependencies import get_registry, get_report_generator
from voiceprep.api.registry import SessionRegistry
from voiceprep.core.errors import InterviewError
from voiceprep.core.report_generator import ReportGenerator
from voiceprep.models.interview import InterviewPhase

router = APIRouter()


@router.get("/{session_id}")
async def get_report(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
    generator: ReportGenerator = Depends(get_report_generator),
) -> dict[str, Any]:
    """
    Get the feedback summary.

    Available once the interview is completed.
    """
    try:
        orchestrator = registry.get(session_id)
    except InterviewError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    if orchestrator.phase != InterviewPhase.COMPLETED:
        raise HTTPException(
            status_code=400,
            detail=f"Interview not complete. Current phase: {orchestrator.phase.value}"
        )

    summary = generator.generate(orchestrator.session)
    report = summary.model_dump(mode="json")
    report["performance_label"] = summary.performance_level.label
    report["duration_seconds"] = orchestrator.session.get_duration_seconds()
    return report
