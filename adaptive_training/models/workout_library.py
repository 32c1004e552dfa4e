"""Static workout templates used when the engine substitutes or converts sessions."""
from typing import Dict, List

from adaptive_training.models.schemas import SubstitutionReason, WorkoutType


RECOVERY_SEGMENT: dict = {
    "duration": 30,
    "intensity": 50,
    "zone": "recovery",
    "description": "Very easy recovery pace",
}

WORKOUT_NAMES: Dict[WorkoutType, str] = {
    WorkoutType.RECOVERY: "Recovery Run",
    WorkoutType.EASY: "Easy Run",
    WorkoutType.STEADY: "Steady State Run",
    WorkoutType.TEMPO: "Tempo Run",
    WorkoutType.THRESHOLD: "Threshold Workout",
    WorkoutType.VO2MAX: "VO2max Intervals",
    WorkoutType.SPEED: "Speed Work",
    WorkoutType.HILL_REPEATS: "Hill Repeats",
    WorkoutType.FARTLEK: "Fartlek Run",
    WorkoutType.PROGRESSION: "Progression Run",
    WorkoutType.LONG_RUN: "Long Run",
    WorkoutType.RACE_PACE: "Race Pace Run",
    WorkoutType.TIME_TRIAL: "Time Trial",
    WorkoutType.CROSS_TRAINING: "Cross Training",
    WorkoutType.STRENGTH: "Strength Training",
}


def workout_display_name(workout_type: WorkoutType) -> str:
    return WORKOUT_NAMES.get(workout_type, "Training Run")


def _seg(duration: float, intensity: float, zone: str, description: str) -> dict:
    return {"duration": duration, "intensity": intensity, "zone": zone, "description": description}


def _repeat(times: int, work: dict, rest: dict) -> List[dict]:
    segments: List[dict] = []
    for i in range(times):
        segments.append(work)
        if i < times - 1:
            segments.append(rest)
    return segments


WORKOUT_TEMPLATES: Dict[str, dict] = {
    "recovery_jog": {
        "type": WorkoutType.RECOVERY,
        "primary_zone": "recovery",
        "segments": [_seg(30, 50, "recovery", "Very easy recovery pace")],
        "adaptation_target": "Active recovery and blood flow",
        "estimated_tss": 20,
        "recovery_time": 8,
    },
    "easy_aerobic": {
        "type": WorkoutType.EASY,
        "primary_zone": "easy",
        "segments": [_seg(60, 65, "easy", "Conversational aerobic running")],
        "adaptation_target": "Aerobic base, fat oxidation, capillarization",
        "estimated_tss": 50,
        "recovery_time": 12,
    },
    "long_run": {
        "type": WorkoutType.LONG_RUN,
        "primary_zone": "easy",
        "segments": [_seg(120, 65, "easy", "Steady long aerobic run")],
        "adaptation_target": "Aerobic endurance, glycogen storage, mental resilience",
        "estimated_tss": 120,
        "recovery_time": 24,
    },
    "tempo_continuous": {
        "type": WorkoutType.TEMPO,
        "primary_zone": "tempo",
        "segments": [
            _seg(10, 65, "easy", "Warm-up"),
            _seg(30, 84, "tempo", "Comfortably hard tempo"),
            _seg(10, 60, "recovery", "Cool-down"),
        ],
        "adaptation_target": "Lactate clearance, aerobic power",
        "estimated_tss": 65,
        "recovery_time": 24,
    },
    "threshold_2x20": {
        "type": WorkoutType.THRESHOLD,
        "primary_zone": "threshold",
        "segments": [
            _seg(10, 65, "easy", "Warm-up"),
            *_repeat(2, _seg(20, 88, "threshold", "Threshold interval"), _seg(5, 60, "recovery", "Recovery")),
            _seg(10, 60, "recovery", "Cool-down"),
        ],
        "adaptation_target": "Lactate threshold improvement",
        "estimated_tss": 90,
        "recovery_time": 36,
    },
    "threshold_progression": {
        "type": WorkoutType.THRESHOLD,
        "primary_zone": "threshold",
        "segments": [
            _seg(10, 65, "easy", "Warm-up"),
            _seg(10, 80, "steady", "Build"),
            _seg(10, 85, "tempo", "Tempo"),
            _seg(10, 90, "threshold", "Threshold"),
            _seg(10, 60, "recovery", "Cool-down"),
        ],
        "adaptation_target": "Progressive lactate tolerance",
        "estimated_tss": 75,
        "recovery_time": 24,
    },
    "vo2max_4x4": {
        "type": WorkoutType.VO2MAX,
        "primary_zone": "vo2max",
        "segments": [
            _seg(15, 65, "easy", "Warm-up"),
            *_repeat(4, _seg(4, 95, "vo2max", "VO2max interval"), _seg(3, 60, "recovery", "Recovery")),
            _seg(10, 60, "recovery", "Cool-down"),
        ],
        "adaptation_target": "VO2max improvement, aerobic power",
        "estimated_tss": 100,
        "recovery_time": 48,
    },
    "speed_200m_reps": {
        "type": WorkoutType.SPEED,
        "primary_zone": "neuromuscular",
        "segments": [
            _seg(15, 65, "easy", "Warm-up"),
            *_repeat(6, _seg(0.5, 98, "neuromuscular", "200m rep"), _seg(2, 50, "recovery", "Walk recovery")),
            _seg(10, 60, "recovery", "Cool-down"),
        ],
        "adaptation_target": "Neuromuscular power, running economy",
        "estimated_tss": 70,
        "recovery_time": 36,
    },
    "hill_repeats_6x2": {
        "type": WorkoutType.HILL_REPEATS,
        "primary_zone": "vo2max",
        "segments": [
            _seg(15, 65, "easy", "Warm-up to hills"),
            *_repeat(6, _seg(2, 92, "vo2max", "Hill repeat"), _seg(3, 50, "recovery", "Jog down")),
            _seg(10, 60, "recovery", "Cool-down"),
        ],
        "adaptation_target": "Power, strength, VO2max",
        "estimated_tss": 85,
        "recovery_time": 36,
    },
    "fartlek_varied": {
        "type": WorkoutType.FARTLEK,
        "primary_zone": "tempo",
        "segments": [
            _seg(10, 65, "easy", "Warm-up"),
            _seg(2, 90, "threshold", "Hard surge"),
            _seg(3, 65, "easy", "Easy recovery"),
            _seg(1, 95, "vo2max", "Sprint"),
            _seg(4, 65, "easy", "Easy recovery"),
            _seg(3, 85, "tempo", "Tempo surge"),
            _seg(2, 65, "easy", "Easy recovery"),
            _seg(0.5, 98, "neuromuscular", "Sprint"),
            _seg(4.5, 65, "easy", "Easy recovery"),
            _seg(10, 60, "recovery", "Cool-down"),
        ],
        "adaptation_target": "Speed variation, mental adaptation",
        "estimated_tss": 65,
        "recovery_time": 24,
    },
    "progression_3_stage": {
        "type": WorkoutType.PROGRESSION,
        "primary_zone": "tempo",
        "segments": [
            _seg(20, 65, "easy", "Easy start"),
            _seg(20, 78, "steady", "Steady pace"),
            _seg(20, 85, "tempo", "Tempo finish"),
            _seg(5, 60, "recovery", "Cool-down"),
        ],
        "adaptation_target": "Pacing, fatigue resistance",
        "estimated_tss": 75,
        "recovery_time": 24,
    },
}

TEMPLATE_FOR_TYPE: Dict[WorkoutType, str] = {
    WorkoutType.RECOVERY: "recovery_jog",
    WorkoutType.EASY: "easy_aerobic",
    WorkoutType.STEADY: "easy_aerobic",
    WorkoutType.TEMPO: "tempo_continuous",
    WorkoutType.THRESHOLD: "threshold_2x20",
    WorkoutType.VO2MAX: "vo2max_4x4",
    WorkoutType.SPEED: "speed_200m_reps",
    WorkoutType.HILL_REPEATS: "hill_repeats_6x2",
    WorkoutType.FARTLEK: "fartlek_varied",
    WorkoutType.PROGRESSION: "progression_3_stage",
    WorkoutType.LONG_RUN: "long_run",
    WorkoutType.RACE_PACE: "tempo_continuous",
    WorkoutType.TIME_TRIAL: "threshold_progression",
    WorkoutType.CROSS_TRAINING: "easy_aerobic",
    WorkoutType.STRENGTH: "recovery_jog",
}


def _substitutions(**mapping: str) -> Dict[WorkoutType, WorkoutType]:
    return {WorkoutType(key): WorkoutType(value) for key, value in mapping.items()}


SUBSTITUTIONS: Dict[SubstitutionReason, Dict[WorkoutType, WorkoutType]] = {
    SubstitutionReason.FATIGUE: _substitutions(
        vo2max="tempo", threshold="steady", tempo="easy", speed="easy",
        hill_repeats="easy", long_run="easy", progression="steady", fartlek="easy",
        race_pace="steady", time_trial="tempo", easy="recovery", steady="easy",
        recovery="recovery", cross_training="recovery", strength="recovery",
    ),
    SubstitutionReason.INJURY: _substitutions(
        vo2max="cross_training", threshold="cross_training", tempo="cross_training",
        speed="recovery", hill_repeats="recovery", long_run="cross_training",
        progression="easy", fartlek="easy", race_pace="easy", time_trial="easy",
        easy="recovery", steady="recovery", recovery="recovery",
        cross_training="cross_training", strength="recovery",
    ),
    SubstitutionReason.ILLNESS: _substitutions(
        vo2max="recovery", threshold="recovery", tempo="easy", speed="recovery",
        hill_repeats="recovery", long_run="easy", progression="easy", fartlek="recovery",
        race_pace="easy", time_trial="recovery", easy="recovery", steady="recovery",
        recovery="recovery", cross_training="recovery", strength="recovery",
    ),
    SubstitutionReason.TIME_CONSTRAINT: _substitutions(
        long_run="tempo", vo2max="fartlek", threshold="tempo", tempo="tempo",
        speed="speed", hill_repeats="tempo", progression="tempo", fartlek="fartlek",
        race_pace="tempo", time_trial="tempo", easy="easy", steady="steady",
        recovery="recovery", cross_training="cross_training", strength="strength",
    ),
    SubstitutionReason.WEATHER: _substitutions(
        speed="tempo", vo2max="threshold", hill_repeats="tempo", long_run="long_run",
        threshold="tempo", tempo="steady", progression="steady", fartlek="tempo",
        race_pace="tempo", time_trial="tempo", easy="easy", steady="steady",
        recovery="recovery", cross_training="cross_training", strength="strength",
    ),
}
