"""Phased return-to-training protocols for injury and illness."""
from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from adaptive_training.models.schemas import (
    Condition,
    RecoveryPhase,
    RecoveryProtocol,
    Severity,
    WorkoutType,
)


logger = logging.getLogger(__name__)

R = WorkoutType.RECOVERY
E = WorkoutType.EASY
S = WorkoutType.STEADY
T = WorkoutType.TEMPO
X = WorkoutType.CROSS_TRAINING


def _phase(name: str, days: int, types: List[WorkoutType], volume: int, ceiling: int, focus: str) -> RecoveryPhase:
    return RecoveryPhase(
        name=name,
        duration_days=days,
        allowed_workout_types=types,
        volume_percent=volume,
        intensity_ceiling=ceiling,
        focus=focus,
    )


_ILLNESS_EXTENDED = [
    _phase("Rest Phase", 7, [], 0, 0, "Complete rest until fever-free 24h"),
    _phase("Easy Return", 7, [R, E], 30, 65, "Very easy efforts only"),
    _phase("Progressive Build", 14, [E, S, T], 70, 80, "Gradual intensity increase"),
]

PHASE_TABLES: Dict[Tuple[Condition, Severity], List[RecoveryPhase]] = {
    (Condition.INJURY, Severity.MILD): [
        _phase("Acute Phase", 3, [R, X], 30, 60, "Pain reduction and healing"),
        _phase("Return Phase", 4, [E, R, X], 50, 70, "Gradual loading"),
        _phase("Build Phase", 7, [E, S, T], 80, 85, "Progressive return"),
    ],
    (Condition.INJURY, Severity.MODERATE): [
        _phase("Rest Phase", 7, [R, X], 0, 50, "Complete rest or cross-training only"),
        _phase("Return to Running", 7, [R, E], 25, 65, "Walk-run progression"),
        _phase("Base Rebuild", 14, [E, S], 60, 75, "Aerobic base reconstruction"),
    ],
    (Condition.INJURY, Severity.SEVERE): [
        _phase("Medical Phase", 14, [], 0, 0, "Medical treatment and complete rest"),
        _phase("Rehabilitation", 21, [R], 10, 50, "Guided return with medical clearance"),
        _phase("Reconditioning", 28, [R, E], 40, 65, "Very gradual fitness rebuild"),
    ],
    (Condition.ILLNESS, Severity.MILD): [
        _phase("Symptom Phase", 3, [R], 50, 60, "Below neck symptoms only"),
        _phase("Return Phase", 4, [E, R], 70, 70, "Gradual return"),
    ],
    (Condition.ILLNESS, Severity.MODERATE): _ILLNESS_EXTENDED,
    (Condition.ILLNESS, Severity.SEVERE): _ILLNESS_EXTENDED,
}

# Areas where impact-free cardio is advised
LOWER_LEG_AREAS = ("knee", "ankle")


class RecoveryProtocolBuilder:
    """Looks up phase tables and assembles guidelines and return criteria."""

    @staticmethod
    def guidelines(condition: Condition, severity: Severity, affected_area: str | None = None) -> List[str]:
        if condition == Condition.INJURY:
            items = [
                "Follow RICE protocol (Rest, Ice, Compression, Elevation) for acute injuries",
                "Maintain fitness through cross-training if pain-free",
                "Focus on sleep quality (8+ hours) for optimal healing",
                "Ensure adequate protein intake (1.6-2.2g/kg body weight)",
            ]
            area = (affected_area or "").lower()
            if any(part in area for part in LOWER_LEG_AREAS):
                items.append("Consider pool running or cycling for cardio maintenance")
                items.append("Strengthen supporting muscles (glutes, core, calves)")
            if severity == Severity.SEVERE:
                items.append("Seek professional medical evaluation")
                items.append("Consider physical therapy for proper rehabilitation")
            return items

        items = [
            "No exercise with fever or below-neck symptoms",
            "Stay hydrated and maintain electrolyte balance",
            "Return to activity should be gradual",
            "Monitor heart rate - may be elevated during recovery",
        ]
        if severity != Severity.MILD:
            items.append("Wait 24-48 hours after last fever before any exercise")
            items.append("First workout back should be 50% normal duration at easy pace")
        return items

    @staticmethod
    def return_criteria(condition: Condition, severity: Severity) -> List[str]:
        if condition == Condition.INJURY:
            criteria = [
                "Pain-free during daily activities",
                "Full range of motion restored",
                "No swelling or inflammation",
            ]
            if severity != Severity.MILD:
                criteria.extend(
                    [
                        "Medical clearance obtained",
                        "Able to walk 30 minutes pain-free",
                        "Single-leg balance test passed",
                    ]
                )
        else:
            criteria = [
                "Fever-free for 24-48 hours",
                "Resting heart rate returned to normal",
                "Energy levels at 80% or better",
                "No chest pain or breathing difficulties",
            ]

        criteria.append("Mentally ready to return to training")
        criteria.append("Sleep quality normalized")
        return criteria

    def build(
        self,
        condition: Condition | str,
        severity: Severity | str,
        affected_area: str | None = None,
    ) -> RecoveryProtocol:
        """
        Create a recovery protocol for an injury or illness.

        Args:
            condition: "injury" or "illness"
            severity: "mild", "moderate" or "severe"
            affected_area: Optional body part; knee/ankle adds impact-free advice

        Returns:
            RecoveryProtocol with ordered phases, guidelines and return criteria

        Raises:
            ValueError: condition or severity is not one of the known values
        """
        condition = Condition(condition)
        severity = Severity(severity)

        protocol = RecoveryProtocol(
            phases=[phase.model_copy() for phase in PHASE_TABLES[(condition, severity)]],
            guidelines=self.guidelines(condition, severity, affected_area),
            return_criteria=self.return_criteria(condition, severity),
        )
        logger.info(
            "Built %s/%s recovery protocol: %d phases over %d days",
            condition.value,
            severity.value,
            len(protocol.phases),
            protocol.total_days,
        )
        return protocol
