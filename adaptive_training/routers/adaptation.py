"""API endpoints exposing the adaptation engine."""
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from adaptive_training.models.schemas import (
    ApplyModificationsRequest,
    FatigueAssessment,
    FatigueRequest,
    ModificationsRequest,
    OverreachingRisk,
    OverreachingRiskRequest,
    PlanModification,
    ProgressData,
    ProgressRequest,
    RecoveryAssessment,
    RecoveryProtocol,
    RecoveryProtocolRequest,
    RecoveryStatusRequest,
    TrainingPlan,
)
from adaptive_training.services.adaptation_engine import AdaptationEngine, create_adaptation_engine


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/adaptation", tags=["adaptation"])

EngineDep = Annotated[AdaptationEngine, Depends(create_adaptation_engine)]


@router.post("/progress", response_model=ProgressData)
async def analyze_progress(body: ProgressRequest, engine: EngineDep):
    """
    Analyze completed workouts against the plan.

    Returns:
        ProgressData: adherence, trends, intensity distribution, fitness and load
    """
    try:
        return engine.analyze_progress(body.completed_workouts, body.planned_workouts, body.as_of)
    except Exception as e:
        logger.exception("Failed to analyze progress")
        raise HTTPException(status_code=500, detail=f"Failed to analyze progress: {str(e)}")


@router.post("/modifications", response_model=list[PlanModification])
async def suggest_modifications(body: ModificationsRequest, engine: EngineDep):
    """Suggest plan modifications for a progress snapshot."""
    try:
        return engine.suggest_modifications(body.plan, body.progress, body.recovery)
    except Exception as e:
        logger.exception("Failed to suggest modifications")
        raise HTTPException(status_code=500, detail=f"Failed to suggest modifications: {str(e)}")


@router.post("/apply", response_model=TrainingPlan)
async def apply_modifications(body: ApplyModificationsRequest, engine: EngineDep):
    """
    Apply modifications to a plan.

    Returns:
        TrainingPlan: a new plan; workouts dated on or before ``as_of`` are unchanged
    """
    try:
        plan = engine.apply_modifications(body.plan, body.modifications, body.as_of)
        logger.info(
            "Applied %d modifications to plan %s",
            len(body.modifications),
            plan.id or plan.config.name,
        )
        return plan
    except Exception as e:
        logger.exception("Failed to apply modifications")
        raise HTTPException(status_code=500, detail=f"Failed to apply modifications: {str(e)}")


@router.post("/needs-adaptation")
async def needs_adaptation(body: ModificationsRequest, engine: EngineDep) -> dict[str, bool]:
    """Report whether any signal calls for adapting the plan."""
    try:
        return {"needs_adaptation": engine.needs_adaptation(body.progress, body.recovery)}
    except Exception as e:
        logger.exception("Failed to evaluate adaptation need")
        raise HTTPException(status_code=500, detail=f"Failed to evaluate adaptation need: {str(e)}")


@router.post("/recovery-status", response_model=RecoveryAssessment)
async def assess_recovery_status(body: RecoveryStatusRequest, engine: EngineDep):
    """Score recovery from metrics, or from recent history when no metrics are sent."""
    try:
        return engine.assess_recovery_status(body.completed_workouts, body.recovery, body.as_of)
    except Exception as e:
        logger.exception("Failed to assess recovery status")
        raise HTTPException(status_code=500, detail=f"Failed to assess recovery status: {str(e)}")


@router.post("/fatigue", response_model=FatigueAssessment)
async def detect_fatigue(body: FatigueRequest, engine: EngineDep):
    """Detect fatigue and return upcoming workouts derated to match."""
    try:
        return engine.detect_fatigue_and_adjust(
            body.completed_workouts,
            body.upcoming_workouts,
            body.recovery,
            body.as_of,
        )
    except Exception as e:
        logger.exception("Failed to detect fatigue")
        raise HTTPException(status_code=500, detail=f"Failed to detect fatigue: {str(e)}")


@router.post("/overreaching-risk", response_model=OverreachingRisk)
async def assess_overreaching_risk(body: OverreachingRiskRequest, engine: EngineDep):
    """Current and one-week projected injury risk with mitigation strategies."""
    try:
        return engine.assess_overreaching_risk(body.completed_workouts, body.planned_workouts, body.as_of)
    except Exception as e:
        logger.exception("Failed to assess overreaching risk")
        raise HTTPException(status_code=500, detail=f"Failed to assess overreaching risk: {str(e)}")


@router.post("/recovery-protocol", response_model=RecoveryProtocol)
async def create_recovery_protocol(body: RecoveryProtocolRequest, engine: EngineDep):
    """
    Build a phased return protocol.

    Returns 400 when condition or severity is not recognised.
    """
    try:
        return engine.create_recovery_protocol(body.condition, body.severity, body.affected_area)
    except ValueError as e:
        logger.warning("Rejected recovery protocol request: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Failed to create recovery protocol")
        raise HTTPException(status_code=500, detail=f"Failed to create recovery protocol: {str(e)}")
