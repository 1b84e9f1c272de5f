from fastapi import APIRouter

from casebook.services.catalog import CANONICAL_PHASES, phase_title, steps_for_phase
from casebook.services.scope import PROFILE_PHASES, PROFILES

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/profiles")
def profiles():
    return {
        "profiles": [
            {"name": name, "phases": [p.value for p in PROFILE_PHASES.get(name, CANONICAL_PHASES)]}
            for name in PROFILES
        ]
    }


@router.get("/steps")
def steps():
    return {
        "phases": [
            {
                "phase": phase.value,
                "title": phase_title(phase.value),
                "steps": [s.model_dump() for s in steps_for_phase(phase)],
            }
            for phase in CANONICAL_PHASES
        ]
    }
