from __future__ import annotations

import logging
import math
import random
from typing import List

from winesim import prestige as prestige_mod
from winesim.constants import (
    BASE_OXIDATION_RATE,
    KG_PER_BOTTLE,
    OXIDATION_CHARACTERISTIC_EFFECTS,
    OXIDATION_CUSTOMER_SENSITIVITY,
    OXIDATION_PRESTIGE,
    OXIDATION_QUALITY_BASE_PENALTY,
    OXIDATION_QUALITY_EXPONENT,
    OXIDATION_STATE_MULTIPLIERS,
    OXIDATION_WARNING_THRESHOLDS,
)
from winesim.curves import clamp01, normalize_prestige_1000
from winesim.models import GameState, WineBatch
from winesim.notifications import add_message
from winesim.winery import refresh_batch_scores

log = logging.getLogger(__name__)


def oxidation_risk_increase(batch: WineBatch) -> float:
    """Weekly risk growth: base rate x grape proneness x state multiplier, compounding on the current risk."""

    mult = OXIDATION_STATE_MULTIPLIERS.get(batch.state, 1.0)
    return BASE_OXIDATION_RATE * float(batch.prone_to_oxidation) * mult * (1.0 + float(batch.oxidation))


def oxidation_risk_label(risk: float) -> str:
    r = float(risk)
    if r <= 0.05:
        return "Minimal Risk"
    if r <= 0.10:
        return "Low Risk"
    if r <= 0.20:
        return "Moderate Risk"
    if r <= 0.40:
        return "High Risk"
    return "Critical Risk"


def oxidized_quality(quality: float, prone_to_oxidation: float) -> float:
    # Premium wines lose more; prone grapes suffer a harsher severity.
    q = clamp01(quality)
    penalty = OXIDATION_QUALITY_BASE_PENALTY * (1.0 + q ** OXIDATION_QUALITY_EXPONENT)
    severity = 0.85 - float(prone_to_oxidation) * 0.2
    return clamp01(q * (1.0 - penalty) * severity)


def _reputation_factor(prestige: float) -> float:
    return max(0.0, math.log(1.0 / (1.0 - normalize_prestige_1000(prestige) + 0.001)) / 5.0)


def _bottle_equivalents(batch: WineBatch) -> float:
    if batch.state == "bottled":
        return float(batch.quantity)
    return float(batch.quantity) / KG_PER_BOTTLE


def _add_scandal(state: GameState, key: str, amount: float, description: str, source_id=None, category="company") -> None:
    _, decay, cap = OXIDATION_PRESTIGE[key]
    amount = max(cap, amount)
    if amount >= 0:
        return
    prestige_mod.add_prestige_event(
        state, "oxidation", amount, decay, description=description, source_id=source_id, category=category,
    )


def manifest_oxidation(state: GameState, batch: WineBatch) -> WineBatch:
    """The batch turns: quality and characteristics drop and the company takes a prestige hit."""

    batch.is_oxidized = True
    for k, d in OXIDATION_CHARACTERISTIC_EFFECTS.items():
        batch.characteristics[k] = clamp01(batch.characteristics[k] + d)
    quality_before = float(batch.quality)
    batch.quality = oxidized_quality(batch.quality, batch.prone_to_oxidation)

    refresh_batch_scores(batch)

    bottles = _bottle_equivalents(batch)
    value = bottles * float(batch.estimated_price)
    totals = prestige_mod.calculate_current_prestige(state)

    base, _, _ = OXIDATION_PRESTIGE["manifestation_company"]
    company = base * (math.log(bottles / 10.0 + 1.0) + math.log(value / 1000.0 + 1.0)) * _reputation_factor(totals["company"])
    _add_scandal(state, "manifestation_company", company, f"Oxidized batch: {batch.name()}")

    if batch.vineyard_id in state.vineyards:
        base, _, _ = OXIDATION_PRESTIGE["manifestation_vineyard"]
        vineyard_prestige = totals["vineyards"].get(batch.vineyard_id, 0.0)
        amount = base * math.log(float(batch.quantity) / 100.0 + 1.0) * (1.0 + quality_before) * _reputation_factor(vineyard_prestige)
        _add_scandal(
            state, "manifestation_vineyard", amount, f"Oxidized batch: {batch.name()}",
            source_id=batch.vineyard_id, category="vineyard",
        )

    log.info("batch %s oxidized at risk %.3f", batch.batch_id, batch.oxidation)
    add_message(
        state,
        f"Wine oxidized! {batch.name()} ({batch.state}) turned after reaching {batch.oxidation:.1%} risk.",
        "oxidation.manifest_oxidation",
        "winery",
    )
    return batch


def process_weekly_oxidation(state: GameState, rng: random.Random) -> List[WineBatch]:
    """Grow every batch's risk, then roll for it; returns the batches that oxidized this week."""

    oxidized: List[WineBatch] = []
    for batch in state.batches.values():
        if batch.is_oxidized or batch.quantity <= 0:
            continue
        previous = float(batch.oxidation)
        batch.oxidation = min(1.0, previous + oxidation_risk_increase(batch))
        if rng.random() < batch.oxidation:
            manifest_oxidation(state, batch)
            oxidized.append(batch)
            continue
        crossed = [t for t in OXIDATION_WARNING_THRESHOLDS if previous < t <= batch.oxidation]
        if crossed:
            add_message(
                state,
                f"{oxidation_risk_label(batch.oxidation)}: {batch.name()} has {batch.oxidation:.1%} oxidation risk ({batch.state}).",
                "oxidation.process_weekly_oxidation",
                "winery",
            )
    return oxidized


def oxidation_price_factor(batch: WineBatch, customer_type: str) -> float:
    if not batch.is_oxidized:
        return 1.0
    return float(OXIDATION_CUSTOMER_SENSITIVITY.get(customer_type, 0.85))


def add_oxidized_sale_prestige(state: GameState, batch: WineBatch, sale_value: float, bottles: int) -> None:
    if not batch.is_oxidized:
        return
    totals = prestige_mod.calculate_current_prestige(state)
    scale = math.log(bottles / 10.0 + 1.0) + math.log(float(sale_value) / 1000.0 + 1.0)

    base, _, _ = OXIDATION_PRESTIGE["sale_company"]
    _add_scandal(state, "sale_company", base * scale * _reputation_factor(totals["company"]), f"Sold oxidized {batch.name()}")
    if batch.vineyard_id in state.vineyards:
        base, _, _ = OXIDATION_PRESTIGE["sale_vineyard"]
        vineyard_prestige = totals["vineyards"].get(batch.vineyard_id, 0.0)
        _add_scandal(
            state, "sale_vineyard", base * scale * _reputation_factor(vineyard_prestige), f"Sold oxidized {batch.name()}",
            source_id=batch.vineyard_id, category="vineyard",
        )
