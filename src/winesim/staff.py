from __future__ import annotations

import logging
import random
import uuid
from typing import Dict, List, Mapping, Optional, Sequence

from winesim.activities import unassign_staff
from winesim.constants import (
    BASE_WEEKLY_WAGE,
    FIRST_NAMES,
    LAST_NAMES,
    NATIONALITIES,
    SKILL_LEVEL_NAMES,
    SKILL_WAGE_MULTIPLIER,
    SPECIALIZATION_WAGE_MULTIPLIER,
    STAFF_SKILLS,
)
from winesim.finance import CAT_HIRING, CAT_WAGES, add_transaction, require_funds
from winesim.models import WEEKS_PER_SEASON, GameState, Staff
from winesim.notifications import add_message

log = logging.getLogger(__name__)


def calculate_wage(skills: Mapping[str, float], specializations: Sequence[str] = ()) -> float:
    avg = sum(float(skills.get(k, 0.0)) for k in STAFF_SKILLS) / len(STAFF_SKILLS)
    base = BASE_WEEKLY_WAGE + avg * SKILL_WAGE_MULTIPLIER
    return float(round(base * SPECIALIZATION_WAGE_MULTIPLIER ** len(specializations)))


def skill_level_name(level: float) -> str:
    key = min(10, max(1, int(round(float(level) * 10))))
    return SKILL_LEVEL_NAMES[key]


def generate_skills(rng: random.Random, skill_level: float, specializations: Sequence[str] = ()) -> Dict[str, float]:
    level = min(1.0, max(0.0, float(skill_level)))
    skills: Dict[str, float] = {}
    for k in STAFF_SKILLS:
        base = min(1.0, rng.random() * 0.6 + level * 0.4)
        if k in specializations:
            bumped = min(1.0, base + (1.0 - base) * (0.2 + 0.2 * level))
            base = max(bumped, min(1.0, 0.35 + 0.3 * level))
        skills[k] = round(base, 4)
    return skills


def create_staff(
    rng: random.Random,
    skill_level: float = 0.3,
    specializations: Sequence[str] = (),
    nationality: Optional[str] = None,
) -> Staff:
    for s in specializations:
        if s not in STAFF_SKILLS:
            raise ValueError(f"unknown specialization: {s}")
    nat = nationality or rng.choice(NATIONALITIES)
    if nat not in FIRST_NAMES:
        raise ValueError(f"unknown nationality: {nat}")
    gender = "female" if rng.random() < 0.5 else "male"
    name = f"{rng.choice(FIRST_NAMES[nat][gender])} {rng.choice(LAST_NAMES[nat])}"
    skills = generate_skills(rng, skill_level, specializations)
    return Staff(
        staff_id=f"st_{uuid.uuid4().hex[:10]}",
        name=name,
        nationality=nat,
        skill_level=float(skill_level),
        skills=skills,
        specializations=list(specializations),
        wage=calculate_wage(skills, specializations),
    )


def generate_staff_candidates(
    state: GameState,
    rng: random.Random,
    count: int = 5,
    skill_level: float = 0.3,
    specializations: Sequence[str] = (),
) -> List[Staff]:
    state.staff_candidates = [create_staff(rng, skill_level, specializations) for _ in range(max(1, int(count)))]
    return state.staff_candidates


def hire_staff(state: GameState, candidate_id: str) -> Staff:
    cand = next((c for c in state.staff_candidates if c.staff_id == candidate_id), None)
    if cand is None:
        raise ValueError("candidate not found")
    # Hiring fee: one week's wage up front.
    require_funds(state, cand.wage, f"hiring {cand.name}")

    state.staff_candidates = [c for c in state.staff_candidates if c.staff_id != candidate_id]
    cand.hire_week = state.absolute_week()
    state.staff[cand.staff_id] = cand
    add_transaction(state, -cand.wage, f"Hiring fee for {cand.name}", CAT_HIRING)
    add_message(state, f"Hired {cand.name} ({skill_level_name(cand.skill_level)}) at {cand.wage:,.0f}/week.", "staff.hire_staff", "staff")
    return cand


def fire_staff(state: GameState, staff_id: str) -> Staff:
    member = state.staff.pop(staff_id, None)
    if member is None:
        raise ValueError("staff not found")
    unassign_staff(state, staff_id)
    add_message(state, f"{member.name} has left the company.", "staff.fire_staff", "staff")
    return member


def total_weekly_wages(state: GameState) -> float:
    return float(sum(s.wage for s in state.staff.values()))


def pay_seasonal_wages(state: GameState) -> float:
    """Charge a full season of wages. A shortfall is reported, not blocked."""

    total = total_weekly_wages(state) * WEEKS_PER_SEASON
    if total <= 0:
        return 0.0
    if state.money < total:
        add_message(
            state,
            f"Insufficient funds for staff wages: need {total:,.0f}, have {state.money:,.0f}.",
            "staff.pay_seasonal_wages",
            "finance",
        )
    add_transaction(state, -total, f"Staff wages for {state.season} {state.year}", CAT_WAGES)
    log.info("paid seasonal wages %.2f for %d staff", total, len(state.staff))
    return total
