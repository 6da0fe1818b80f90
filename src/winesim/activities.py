"""Staff-driven work.

Planting, clearing, uprooting, harvesting and crushing are started as activities.
Each one carries a work-unit total derived from the size of the job. Every week
the assigned staff contribute work according to their relevant skill, and the
vineyard or batch changes only when the work is done. Costs are paid up front.
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import asdict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from winesim import vineyard as vineyard_mod
from winesim import winery
from winesim.constants import (
    BASE_WORK_UNITS,
    CLEARING_SEASON_MODIFIERS,
    COLD_SOAK_WORK_MODIFIER,
    CRUSHING_METHODS,
    DEFAULT_VINE_DENSITY,
    DENSITY_BASED_TASKS,
    DESTEM_WORK_MODIFIER,
    GRAPE_CONST,
    HARVEST_YIELD_RATE,
    INITIAL_WORK,
    PLANTING_SEASON_MODIFIERS,
    SOIL_DIFFICULTY_MODIFIERS,
    SPECIALIZATION_WORK_BONUS,
    TASK_RATES,
    TEAM_SIZE_EXPONENT,
    WORK_CATEGORY_SKILLS,
)
from winesim.curves import clamp01
from winesim.finance import CAT_VINEYARD_WORK, CAT_WINERY, add_transaction, require_funds
from winesim.models import Activity, GameState, Staff, Vineyard, WineBatch
from winesim.notifications import add_message

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Work units
# ---------------------------------------------------------------------------

def calculate_total_work(
    amount: float,
    rate: float,
    initial_work: float = 0.0,
    density: Optional[int] = None,
    density_based: bool = False,
    modifiers: Iterable[float] = (),
) -> int:
    adjusted = float(rate)
    if density_based and density and density > 0:
        adjusted = adjusted / (float(density) / DEFAULT_VINE_DENSITY)
    work = float(initial_work) + float(amount) / adjusted * BASE_WORK_UNITS
    for m in modifiers:
        work *= 1.0 + float(m)
    return int(math.ceil(work))


def soil_modifier(soils: Sequence[str]) -> float:
    known = [SOIL_DIFFICULTY_MODIFIERS[s] for s in soils if s in SOIL_DIFFICULTY_MODIFIERS]
    return sum(known) / len(known) if known else 0.0


def altitude_modifier(v: Vineyard) -> float:
    lo, hi = vineyard_mod.altitude_range(v.country, v.region)
    if hi <= lo:
        return 0.0
    return clamp01((float(v.altitude) - lo) / (hi - lo))


def vine_age_modifier(vine_age: Optional[int]) -> float:
    if not vine_age or vine_age <= 0:
        return 0.0
    return 1.8 * (1.0 - math.exp(-3.0 * min(1.0, vine_age / 100.0)))


def planting_work(v: Vineyard, grape: str, density: int, season: str) -> int:
    return calculate_total_work(
        v.hectares,
        TASK_RATES["planting"],
        INITIAL_WORK["planting"],
        density=density,
        density_based=True,
        modifiers=(
            float(GRAPE_CONST[grape]["fragile"]),
            altitude_modifier(v),
            soil_modifier(v.soil),
            PLANTING_SEASON_MODIFIERS.get(season, 0.0),
        ),
    )


def harvest_work(v: Vineyard) -> int:
    """Picking scales with the expected crop rather than the area."""

    expected = vineyard_mod.calculate_vineyard_yield(v)
    base = math.ceil(expected / HARVEST_YIELD_RATE * BASE_WORK_UNITS) + INITIAL_WORK["harvesting"]
    work = float(base)
    for m in (float(GRAPE_CONST[v.grape]["fragile"]) if v.grape else 0.0, altitude_modifier(v), soil_modifier(v.soil)):
        work *= 1.0 + m
    return int(math.ceil(work))


def clearing_work(v: Vineyard, uproot: bool, season: str) -> int:
    work = calculate_total_work(
        v.hectares,
        TASK_RATES["clearing"],
        INITIAL_WORK["clearing"],
        modifiers=(soil_modifier(v.soil), CLEARING_SEASON_MODIFIERS.get(season, 0.0)),
    )
    if uproot and v.grape:
        work += calculate_total_work(
            v.hectares,
            TASK_RATES["uprooting"],
            INITIAL_WORK["uprooting"],
            density=v.density,
            density_based="uprooting" in DENSITY_BASED_TASKS,
            modifiers=(vine_age_modifier(v.vine_age), soil_modifier(v.soil)),
        )
    return work


def crushing_work(batch: WineBatch, method: str, destem: bool, cold_soak: bool) -> int:
    modifiers: List[float] = [float(CRUSHING_METHODS[method]["work_multiplier"]) - 1.0]
    if destem:
        modifiers.append(DESTEM_WORK_MODIFIER)
    if cold_soak:
        modifiers.append(COLD_SOAK_WORK_MODIFIER)
    return calculate_total_work(
        float(batch.quantity) / 1000.0, TASK_RATES["crushing"], INITIAL_WORK["crushing"], modifiers=modifiers
    )


# ---------------------------------------------------------------------------
# Staff contribution
# ---------------------------------------------------------------------------

def staff_task_counts(state: GameState) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for a in state.activities.values():
        for sid in a.assigned_staff_ids:
            counts[sid] = counts.get(sid, 0) + 1
    return counts


def staff_contribution(member: Staff, category: str, task_count: int = 1) -> float:
    """Weekly work from one person: workforce x relevant skill, split across their tasks."""

    skill = WORK_CATEGORY_SKILLS[category]
    effective = float(member.skills.get(skill, 0.0))
    if skill in member.specializations:
        effective *= SPECIALIZATION_WORK_BONUS
    return float(member.workforce) * effective / max(1, int(task_count))


def team_work(members: Sequence[Staff], category: str, task_counts: Mapping[str, int]) -> float:
    if not members:
        return 0.0
    total = sum(staff_contribution(m, category, task_counts.get(m.staff_id, 1)) for m in members)
    # Larger teams have diminishing returns.
    return total / len(members) * len(members) ** TEAM_SIZE_EXPONENT


def assigned_staff(state: GameState, activity: Activity) -> List[Staff]:
    return [state.staff[sid] for sid in activity.assigned_staff_ids if sid in state.staff]


def estimated_weeks(state: GameState, activity: Activity) -> Optional[int]:
    """Weeks left at the current staffing; None when nobody is working on it."""

    weekly = team_work(assigned_staff(state, activity), activity.category, staff_task_counts(state))
    if weekly <= 0:
        return None
    return int(math.ceil(max(0.0, activity.total_work - activity.completed_work) / weekly))


# ---------------------------------------------------------------------------
# Starting and managing activities
# ---------------------------------------------------------------------------

def get_activity(state: GameState, activity_id: str) -> Activity:
    a = state.activities.get(activity_id)
    if a is None:
        raise ValueError("activity not found")
    return a


def _resolve_staff(state: GameState, category: str, staff_ids: Optional[Sequence[str]]) -> List[str]:
    if staff_ids is not None:
        missing = [sid for sid in staff_ids if sid not in state.staff]
        if missing:
            raise ValueError(f"staff not found: {', '.join(missing)}")
        return list(dict.fromkeys(staff_ids))
    # Default crew: specialists in the relevant skill, otherwise everyone on payroll.
    skill = WORK_CATEGORY_SKILLS[category]
    specialists = sorted(sid for sid, s in state.staff.items() if skill in s.specializations)
    return specialists or sorted(state.staff)


def _ensure_target_free(state: GameState, target_id: str) -> None:
    busy = next((a for a in state.activities.values() if a.target_id == target_id), None)
    if busy is not None:
        raise ValueError(f"{busy.title} is already in progress for this target")


def _create(
    state: GameState,
    category: str,
    title: str,
    target_id: str,
    total_work: int,
    params: Dict,
    crew: List[str],
) -> Activity:
    activity = Activity(
        activity_id=f"ac_{uuid.uuid4().hex[:10]}",
        category=category,
        title=title,
        target_id=target_id,
        total_work=int(total_work),
        params=params,
        assigned_staff_ids=list(crew),
        created_week=state.absolute_week(),
    )
    state.activities[activity.activity_id] = activity
    add_message(
        state,
        f"Started {title}: {activity.total_work} work units required ({len(activity.assigned_staff_ids)} staff assigned).",
        "activities.start",
        "activities",
    )
    return activity


def start_planting(
    state: GameState,
    vineyard_id: str,
    grape: str,
    density: Optional[int] = None,
    staff_ids: Optional[Sequence[str]] = None,
) -> Activity:
    v = vineyard_mod.get_vineyard(state, vineyard_id)
    _ensure_target_free(state, vineyard_id)
    d, cost = vineyard_mod.planting_plan(v, grape, density)
    require_funds(state, cost, "planting")
    crew = _resolve_staff(state, "planting", staff_ids)
    work = planting_work(v, grape, d, state.season)
    add_transaction(state, -cost, f"Planting {grape} at {v.name}", CAT_VINEYARD_WORK)
    return _create(state, "planting", f"Planting {grape} at {v.name}", vineyard_id, work, {"grape": grape, "density": d}, crew)


def start_clearing(
    state: GameState,
    vineyard_id: str,
    uproot: bool = False,
    staff_ids: Optional[Sequence[str]] = None,
) -> Activity:
    v = vineyard_mod.get_vineyard(state, vineyard_id)
    _ensure_target_free(state, vineyard_id)
    cost = vineyard_mod.clearing_cost(v)
    require_funds(state, cost, "clearing")
    category = "uprooting" if uproot and v.grape else "clearing"
    crew = _resolve_staff(state, category, staff_ids)
    work = clearing_work(v, uproot, state.season)
    add_transaction(state, -cost, f"Clearing {v.name}", CAT_VINEYARD_WORK)
    title = f"{'Uprooting' if category == 'uprooting' else 'Clearing'} {v.name}"
    return _create(state, category, title, vineyard_id, work, {"uproot": bool(uproot)}, crew)


def start_harvest(state: GameState, vineyard_id: str, staff_ids: Optional[Sequence[str]] = None) -> Activity:
    v = vineyard_mod.get_vineyard(state, vineyard_id)
    _ensure_target_free(state, vineyard_id)
    vineyard_mod.check_harvestable(v)
    crew = _resolve_staff(state, "harvesting", staff_ids)
    return _create(state, "harvesting", f"Harvesting {v.grape} at {v.name}", vineyard_id, harvest_work(v), {}, crew)


def start_crushing(
    state: GameState,
    batch_id: str,
    method: str = "Mechanical Press",
    destem: bool = True,
    cold_soak: bool = False,
    pressing_intensity: float = 0.5,
    staff_ids: Optional[Sequence[str]] = None,
) -> Activity:
    batch = winery.get_batch(state, batch_id)
    _ensure_target_free(state, batch_id)
    opts = winery.crushing_plan(batch, method, destem, cold_soak, pressing_intensity)
    require_funds(state, opts["cost"], "crushing")
    crew = _resolve_staff(state, "crushing", staff_ids)
    work = crushing_work(batch, method, destem, cold_soak)
    if opts["cost"] > 0:
        add_transaction(state, -opts["cost"], f"Crushing {batch.name()} ({method})", CAT_WINERY)
    params = {
        "method": method,
        "destem": bool(destem),
        "cold_soak": bool(cold_soak),
        "pressing_intensity": float(pressing_intensity),
    }
    return _create(state, "crushing", f"Crushing {batch.name()}", batch_id, work, params, crew)


def assign_staff(state: GameState, activity_id: str, staff_ids: Sequence[str]) -> Activity:
    a = get_activity(state, activity_id)
    a.assigned_staff_ids = _resolve_staff(state, a.category, list(staff_ids))
    return a


def cancel_activity(state: GameState, activity_id: str) -> Activity:
    """Stop an activity; money already spent is not refunded."""

    a = state.activities.pop(activity_id, None)
    if a is None:
        raise ValueError("activity not found")
    add_message(state, f"Cancelled {a.title} at {a.progress():.0%}.", "activities.cancel_activity", "activities")
    return a


def unassign_staff(state: GameState, staff_id: str) -> None:
    for a in state.activities.values():
        if staff_id in a.assigned_staff_ids:
            a.assigned_staff_ids.remove(staff_id)


# ---------------------------------------------------------------------------
# Weekly progress
# ---------------------------------------------------------------------------

def _complete(state: GameState, a: Activity) -> object:
    if a.category == "planting":
        v = vineyard_mod.get_vineyard(state, a.target_id)
        if v.grape:
            raise ValueError("vineyard was planted in the meantime")
        return vineyard_mod.finish_planting(state, v, str(a.params["grape"]), int(a.params["density"]))
    if a.category in ("clearing", "uprooting"):
        v = vineyard_mod.get_vineyard(state, a.target_id)
        return vineyard_mod.finish_clearing(state, v, uproot=a.category == "uprooting")
    if a.category == "harvesting":
        return vineyard_mod.harvest_vineyard(state, a.target_id)
    if a.category == "crushing":
        batch = winery.get_batch(state, a.target_id)
        p = a.params
        opts = winery.crushing_plan(batch, p["method"], p["destem"], p["cold_soak"], p["pressing_intensity"])
        return winery.finish_crushing(state, batch, p["method"], opts)
    raise ValueError(f"unknown activity category: {a.category}")


def progress_activities(state: GameState) -> List[Tuple[Activity, object]]:
    """Add one week of staff work; returns (activity, result) for each one that completed."""

    counts = staff_task_counts(state)
    finished: List[Activity] = []
    for a in state.activities.values():
        weekly = team_work(assigned_staff(state, a), a.category, counts)
        a.completed_work = min(float(a.total_work), float(a.completed_work) + weekly)
        if a.completed_work >= a.total_work:
            finished.append(a)

    results: List[Tuple[Activity, object]] = []
    for a in finished:
        del state.activities[a.activity_id]
        try:
            out = _complete(state, a)
        except ValueError as e:
            log.warning("activity %s (%s) failed on completion: %s", a.activity_id, a.category, e)
            add_message(state, f"{a.title} could not be completed: {e}", "activities.progress_activities", "activities")
            continue
        results.append((a, out))
    return results


def activity_summary(state: GameState, a: Activity) -> Dict:
    summary = asdict(a)
    summary.update({
        "progress": a.progress(),
        "estimated_weeks": estimated_weeks(state, a),
        "staff": [s.name for s in assigned_staff(state, a)],
    })
    return summary
