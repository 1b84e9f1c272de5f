"""Scope selection: investigation profiles to phases, phases to steps."""

from typing import Iterable, Optional

from sqlmodel import Session

from casebook.models.case import Case
from casebook.services import store
from casebook.services.catalog import CANONICAL_PHASES, ForensicStep, Phase, steps_for_phase

FULL_FORENSICS = "Full Forensics"
CUSTOM = "Custom"

PROFILE_PHASES: dict[str, tuple[Phase, ...]] = {
    "OS & Artifacts": (Phase.OS_ARTIFACTS,),
    "Memory Forensics": (Phase.MEMORY,),
    "Malware Analysis": (Phase.MALWARE_STATIC, Phase.MALWARE_DYNAMIC, Phase.MALWARE_REVERSING),
    # keyword narrowing happens later, per step
    CUSTOM: CANONICAL_PHASES,
}

PROFILES = (FULL_FORENSICS, *PROFILE_PHASES)


def resolve(selected_profiles: Iterable[str], custom_keywords: Optional[str] = None) -> tuple[list[str], str]:
    """Map chosen profiles to (ordered phase ids, scope label).

    Unrecognized profile names are ignored.
    """
    selected = list(dict.fromkeys(selected_profiles))

    if FULL_FORENSICS in selected:
        wanted = set(CANONICAL_PHASES)
    else:
        wanted = set()
        for profile in selected:
            wanted.update(PROFILE_PHASES.get(profile, ()))
    phases = [p.value for p in CANONICAL_PHASES if p in wanted]

    label = " + ".join(p for p in selected if p != CUSTOM)
    if custom_keywords:
        label += f" (+ Custom: {custom_keywords})" if label else f"Custom: {custom_keywords}"

    return phases, label


def apply_scope(
    session: Session,
    case: Case,
    selected_profiles: Iterable[str],
    custom_keywords: Optional[str] = None,
) -> Case:
    selected = list(selected_profiles)
    if not selected:
        return case

    phases, label = resolve(selected, custom_keywords)
    case.scope = label
    case.custom_keywords = custom_keywords
    case.included_phases = phases
    return store.save_case(session, case)


def keyword_filter_active(case: Case) -> bool:
    return CUSTOM in (case.scope or "") and bool(case.custom_keywords)


def parse_keywords(custom_keywords: str) -> list[str]:
    return [k.strip() for k in custom_keywords.lower().split(",")]


def _matches(step: ForensicStep, keywords: list[str]) -> bool:
    title = step.title.lower()
    tool = (step.tool or "").lower()
    return any(k in title or k in tool or k in step.id for k in keywords)


def filter_steps(case: Case, phase: str) -> list[ForensicStep]:
    steps = steps_for_phase(Phase(phase))
    if keyword_filter_active(case):
        keywords = parse_keywords(case.custom_keywords or "")
        steps = [s for s in steps if _matches(s, keywords)]
    return steps


def steps_in_scope(case: Case) -> list[ForensicStep]:
    out: list[ForensicStep] = []
    for phase in case.included_phases or []:
        out.extend(filter_steps(case, phase))
    return out


def next_phase(case: Case, current: str) -> Optional[str]:
    """Phase after ``current`` in the case's navigation order, None after the last."""
    phases = list(case.included_phases or [])
    if current not in phases:
        return None
    idx = phases.index(current)
    return phases[idx + 1] if idx + 1 < len(phases) else None


def progress(case: Case) -> tuple[int, int, int]:
    completed = sum(1 for v in (case.findings or {}).values() if v and v.strip())
    total = len(steps_in_scope(case))
    percent = round(completed / total * 100) if total > 0 else 0
    return completed, total, percent
