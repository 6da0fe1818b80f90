from __future__ import annotations

import logging
import math
import uuid
from typing import Dict, Optional

from winesim.constants import (
    MAX_LAND_VALUE,
    PRESTIGE_EVENT_MIN_AMOUNT,
    SALE_PRESTIGE_DECAY,
    VINEYARD_ACHIEVEMENT_PRESTIGE_DECAY,
    VINEYARD_SALE_PRESTIGE_DECAY,
)
from winesim.curves import asymmetrical_multiplier, vineyard_age_prestige_modifier
from winesim.models import GameState, PrestigeEvent, Vineyard

log = logging.getLogger(__name__)

COMPANY_VALUE_EVENT_ID = "company_value"

MIN_COMPANY_PRESTIGE = 1.0
MIN_TOTAL_PRESTIGE = 1.0
MIN_VINEYARD_PRESTIGE = 0.1


def add_prestige_event(
    state: GameState,
    event_type: str,
    amount: float,
    decay_rate: float,
    description: str = "",
    source_id: Optional[str] = None,
    category: str = "company",
    event_id: Optional[str] = None,
) -> PrestigeEvent:
    if not (0.0 <= float(decay_rate) <= 1.0):
        raise ValueError(f"decay_rate must be within [0, 1]: {decay_rate}")
    ev = PrestigeEvent(
        event_id=event_id or f"pe_{uuid.uuid4().hex[:10]}",
        event_type=str(event_type),
        amount=float(amount),
        decay_rate=float(decay_rate),
        created_week=state.absolute_week(),
        description=str(description),
        source_id=source_id,
        category=str(category),
    )
    state.prestige_events[ev.event_id] = ev
    return ev


def decay_prestige_events_one_week(state: GameState) -> int:
    """Apply one week of decay; returns how many events expired."""

    expired = []
    for ev in state.prestige_events.values():
        rate = float(ev.decay_rate)
        if 0.0 < rate < 1.0:
            ev.amount = float(ev.amount) * rate
        if abs(ev.amount) < PRESTIGE_EVENT_MIN_AMOUNT:
            expired.append(ev.event_id)
    for eid in expired:
        del state.prestige_events[eid]
    return len(expired)


def update_company_value_prestige(state: GameState) -> PrestigeEvent:
    money = max(0.0, float(state.money))
    amount = math.log(money / MAX_LAND_VALUE + 1.0)
    return add_prestige_event(
        state,
        "company_value",
        amount,
        0.0,
        description="Company value",
        category="company",
        event_id=COMPANY_VALUE_EVENT_ID,
    )


def _scaled_base(x: float) -> float:
    return max(0.0, asymmetrical_multiplier(min(0.99, max(0.0, x))) - 1.0)


def base_vineyard_prestige_components(vineyard: Vineyard, suitability: float) -> Dict[str, float]:
    age_base = vineyard_age_prestige_modifier(vineyard.vine_age or 0) * suitability
    land_base = math.log(vineyard.total_value() / MAX_LAND_VALUE + 1.0) * suitability
    return {"age": _scaled_base(age_base), "land": _scaled_base(land_base)}


def update_base_vineyard_prestige(state: GameState, vineyard: Vineyard, suitability: float) -> float:
    """(Re)create the non-decaying age and land events for one vineyard."""

    parts = base_vineyard_prestige_components(vineyard, suitability)
    vid = vineyard.vineyard_id
    add_prestige_event(
        state, "vineyard_age", parts["age"], 0.0,
        description=f"Vine age at {vineyard.name}", source_id=vid, category="vineyard",
        event_id=f"vineyard_age_{vid}",
    )
    add_prestige_event(
        state, "vineyard_land", parts["land"], 0.0,
        description=f"Land value of {vineyard.name}", source_id=vid, category="vineyard",
        event_id=f"vineyard_land_{vid}",
    )
    return parts["age"] + parts["land"]


def base_vineyard_prestige(state: GameState, vineyard_id: str) -> float:
    total = 0.0
    for key in (f"vineyard_age_{vineyard_id}", f"vineyard_land_{vineyard_id}"):
        ev = state.prestige_events.get(key)
        if ev is not None:
            total += float(ev.amount)
    return total


def remove_vineyard_prestige(state: GameState, vineyard_id: str) -> int:
    ids = [eid for eid, ev in state.prestige_events.items() if ev.source_id == vineyard_id]
    for eid in ids:
        del state.prestige_events[eid]
    return len(ids)


def add_sale_prestige(state: GameState, sale_value: float, wine_name: str) -> PrestigeEvent:
    return add_prestige_event(
        state, "sale", float(sale_value) / 10_000.0, SALE_PRESTIGE_DECAY,
        description=f"Sale of {wine_name}", category="company",
    )


def add_vineyard_sale_prestige(state: GameState, vineyard_id: str, sale_value: float, wine_name: str) -> PrestigeEvent:
    factor = max(0.1, base_vineyard_prestige(state, vineyard_id))
    return add_prestige_event(
        state, "vineyard_sale", float(sale_value) / 10_000.0 * factor, VINEYARD_SALE_PRESTIGE_DECAY,
        description=f"Sale of {wine_name}", source_id=vineyard_id, category="vineyard",
    )


def add_vineyard_achievement_prestige(state: GameState, vineyard_id: str, achievement: str) -> PrestigeEvent:
    amount = base_vineyard_prestige(state, vineyard_id) * 0.1
    return add_prestige_event(
        state, "vineyard_achievement", amount, VINEYARD_ACHIEVEMENT_PRESTIGE_DECAY,
        description=f"Vineyard {achievement}", source_id=vineyard_id, category="vineyard",
    )


def add_penalty_prestige(state: GameState, amount: float, decay_rate: float, description: str) -> PrestigeEvent:
    log.info("prestige penalty %.2f: %s", amount, description)
    return add_prestige_event(state, "penalty", -abs(float(amount)), decay_rate, description=description)


def calculate_current_prestige(state: GameState) -> Dict:
    """Sum active events into company and vineyard prestige and refresh per-vineyard values."""

    company = 0.0
    vineyard_total = 0.0
    per_vineyard: Dict[str, float] = {vid: 0.0 for vid in state.vineyards}
    for ev in state.prestige_events.values():
        if ev.category == "vineyard":
            vineyard_total += float(ev.amount)
            if ev.source_id in per_vineyard:
                per_vineyard[ev.source_id] += float(ev.amount)
        else:
            company += float(ev.amount)

    for vid, v in state.vineyards.items():
        per_vineyard[vid] = max(MIN_VINEYARD_PRESTIGE, per_vineyard[vid])
        v.vineyard_prestige = per_vineyard[vid]

    company = max(MIN_COMPANY_PRESTIGE, company)
    vineyard_total = max(0.0, vineyard_total)
    return {
        "total": max(MIN_TOTAL_PRESTIGE, company + vineyard_total),
        "company": company,
        "vineyard": vineyard_total,
        "vineyards": per_vineyard,
    }


def current_prestige(state: GameState) -> float:
    return float(calculate_current_prestige(state)["total"])
