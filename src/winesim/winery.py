from __future__ import annotations

import logging
import math
import uuid
from typing import Dict, Mapping, Tuple

from winesim.balance import calculate_wine_balance
from winesim.constants import (
    BASE_WINE_PRICE,
    COLD_SOAK_EFFECTS,
    CRUSHING_METHODS,
    DESTEM_EFFECTS,
    FERMENTATION_METHODS,
    FERMENTATION_PROGRESS_PER_WEEK,
    FERMENTATION_TEMPERATURES,
    GRAPE_CONST,
    KG_PER_BOTTLE,
    MAX_LAND_VALUE,
    MAX_WINE_PRICE,
    MIN_LAND_VALUE_FOR_PRICE,
    NO_DESTEM_EFFECTS,
    PRESSING_EFFECTS,
)
from winesim.curves import asymmetrical_multiplier, clamp01, log_normalize, normalize_prestige_1000, stepped_balance
from winesim.finance import CAT_WINERY, add_transaction, require_funds
from winesim.models import CHARACTERISTICS, GameState, Vineyard, WineBatch
from winesim.notifications import add_message

log = logging.getLogger(__name__)

BATCH_STATES = ("grapes", "must_ready", "must_fermenting", "bottled")


def _apply_effects(chars: Dict[str, float], effects: Mapping[str, float], scale: float = 1.0) -> None:
    for k, d in effects.items():
        if d:
            chars[k] = clamp01(chars[k] + float(d) * scale)


def get_batch(state: GameState, batch_id: str) -> WineBatch:
    batch = state.batches.get(batch_id)
    if batch is None:
        raise ValueError("batch not found")
    return batch


def vineyard_value_index(vineyard: Vineyard) -> float:
    """0-1 index of what the vineyard brings to a bottle: 60% land value, 40% prestige."""

    land = log_normalize(max(MIN_LAND_VALUE_FOR_PRICE, float(vineyard.land_value or 0.0)), MIN_LAND_VALUE_FOR_PRICE, MAX_LAND_VALUE)
    prestige = normalize_prestige_1000(max(0.1, float(vineyard.vineyard_prestige or 0.0)))
    return clamp01(0.6 * land + 0.4 * prestige)


def derive_harvest_characteristics(
    grape: str,
    ripeness: float,
    quality_factor: float,
    suitability: float,
    altitude: float,
    altitude_range: Tuple[float, float],
) -> Dict[str, float]:
    info = GRAPE_CONST[grape]
    chars = {k: float(info["base_characteristics"][k]) for k in CHARACTERISTICS}
    color = info["grape_color"]

    lo, hi = altitude_range
    median = (float(lo) + float(hi)) / 2.0
    altitude_effect = (float(altitude) - median) / max(1.0, float(hi) - median)

    r = float(ripeness) - 0.5
    _apply_effects(chars, {
        "sweetness": r * 0.4, "acidity": -r * 0.3, "tannins": r * 0.2, "body": r * 0.1, "aroma": r * 0.05,
    })
    q = float(quality_factor) - 0.5
    _apply_effects(chars, {
        "body": q * (0.18 if color == "white" else 0.15),
        "aroma": q * (0.22 if color == "white" else 0.18),
        "tannins": q * (0.22 if color == "red" else 0.12),
    })
    _apply_effects(chars, {
        "acidity": altitude_effect * 0.2, "aroma": altitude_effect * 0.15, "body": -altitude_effect * 0.1,
    })
    s = float(suitability) - 0.5
    _apply_effects(chars, {"body": s * 0.2, "aroma": s * 0.3})
    return chars


def create_harvest_batch(
    state: GameState,
    vineyard: Vineyard,
    quantity_kg: float,
    suitability: float,
    altitude_range: Tuple[float, float],
) -> WineBatch:
    if not vineyard.grape:
        raise ValueError("vineyard has no grape planted")
    value_index = vineyard_value_index(vineyard)
    chars = derive_harvest_characteristics(
        vineyard.grape, vineyard.ripeness, value_index, suitability, vineyard.altitude, altitude_range
    )
    batch = WineBatch(
        batch_id=f"wb_{uuid.uuid4().hex[:10]}",
        vineyard_id=vineyard.vineyard_id,
        vineyard_name=vineyard.name,
        grape=vineyard.grape,
        grape_color=GRAPE_CONST[vineyard.grape]["grape_color"],
        vintage=int(state.year),
        quantity=float(quantity_kg),
        characteristics=chars,
        quality=value_index,
        value_index=value_index,
        harvest_week=state.absolute_week(),
        prone_to_oxidation=float(GRAPE_CONST[vineyard.grape]["prone_to_oxidation"]),
    )
    refresh_batch_scores(batch)
    state.batches[batch.batch_id] = batch
    return batch


def wine_quality_index(batch: WineBatch) -> float:
    return stepped_balance((float(batch.quality) + float(batch.balance)) / 2.0)


def estimate_wine_price(batch: WineBatch) -> float:
    price = float(batch.value_index) * BASE_WINE_PRICE * asymmetrical_multiplier(wine_quality_index(batch))
    return round(min(MAX_WINE_PRICE, max(0.0, price)), 2)


def refresh_batch_scores(batch: WineBatch) -> None:
    batch.balance = calculate_wine_balance(batch.characteristics).score
    batch.estimated_price = estimate_wine_price(batch)


def crushing_options(method: str, destem: bool, cold_soak: bool, pressing_intensity: float) -> Dict:
    """Resolve crushing choices into (effects, yield multiplier, quality penalty, cost)."""

    spec = CRUSHING_METHODS.get(method)
    if spec is None:
        raise ValueError(f"unknown crushing method: {method}")
    i = float(pressing_intensity)
    if not (0.0 <= i <= 1.0):
        raise ValueError("pressing_intensity must be within [0, 1]")

    effects: Dict[str, float] = {k: 0.0 for k in CHARACTERISTICS}
    for src in (spec["effects"], DESTEM_EFFECTS if destem else NO_DESTEM_EFFECTS):
        for k, d in src.items():
            effects[k] += d
    if cold_soak:
        for k, d in COLD_SOAK_EFFECTS.items():
            effects[k] += d

    quality_penalty = 0.0
    if i > 0.1:
        hard = (i - 0.1) / 0.9
        level = hard * hard * float(spec["pressing_multiplier"])
        for k, d in PRESSING_EFFECTS.items():
            effects[k] += d * level
        quality_penalty = 0.2 * hard ** 2.5

    return {
        "effects": effects,
        "yield_multiplier": 0.85 + 0.30 * i,
        "quality_penalty": quality_penalty,
        "cost": float(spec["cost"]),
    }


def crushing_plan(
    batch: WineBatch,
    method: str = "Mechanical Press",
    destem: bool = True,
    cold_soak: bool = False,
    pressing_intensity: float = 0.5,
) -> Dict:
    if batch.state != "grapes":
        raise ValueError(f"batch cannot be crushed in state {batch.state}")
    return crushing_options(method, destem, cold_soak, pressing_intensity)


def finish_crushing(state: GameState, batch: WineBatch, method: str, opts: Mapping) -> WineBatch:
    _apply_effects(batch.characteristics, opts["effects"])
    batch.quantity = float(batch.quantity) * float(opts["yield_multiplier"])
    batch.quality = clamp01(float(batch.quality) - float(opts["quality_penalty"]))
    batch.crushing_method = method
    batch.state = "must_ready"
    refresh_batch_scores(batch)
    add_message(state, f"Crushed {batch.name()} with {method}.", "winery.crush_batch", "winery")
    return batch


def crush_batch(
    state: GameState,
    batch_id: str,
    method: str = "Mechanical Press",
    destem: bool = True,
    cold_soak: bool = False,
    pressing_intensity: float = 0.5,
) -> WineBatch:
    batch = get_batch(state, batch_id)
    opts = crushing_plan(batch, method, destem, cold_soak, pressing_intensity)
    require_funds(state, opts["cost"], "crushing")
    if opts["cost"] > 0:
        add_transaction(state, -opts["cost"], f"Crushing {batch.name()} ({method})", CAT_WINERY)
    return finish_crushing(state, batch, method, opts)


def start_fermentation(
    state: GameState,
    batch_id: str,
    method: str = "Basic",
    temperature: str = "Ambient",
) -> WineBatch:
    batch = get_batch(state, batch_id)
    if batch.state != "must_ready":
        raise ValueError(f"batch cannot be fermented in state {batch.state}")
    m = FERMENTATION_METHODS.get(method)
    if m is None:
        raise ValueError(f"unknown fermentation method: {method}")
    t = FERMENTATION_TEMPERATURES.get(temperature)
    if t is None:
        raise ValueError(f"unknown fermentation temperature: {temperature}")

    cost = float(m["cost"]) + float(t["cost"])
    require_funds(state, cost, "fermentation")

    batch.fermentation_method = method
    batch.fermentation_temperature = temperature
    batch.fermentation_progress = 0.0
    batch.state = "must_fermenting"
    if cost > 0:
        add_transaction(state, -cost, f"Fermentation setup for {batch.name()}", CAT_WINERY)
    add_message(state, f"Started fermentation of {batch.name()} ({method}, {temperature}).", "winery.start_fermentation", "winery")
    return batch


def progress_fermentation(state: GameState) -> int:
    """Weekly tick for fermenting batches; returns how many finished this week."""

    finished = 0
    for batch in state.batches.values():
        if batch.state != "must_fermenting" or batch.fermentation_progress >= 100.0:
            continue
        m = FERMENTATION_METHODS.get(batch.fermentation_method) or FERMENTATION_METHODS["Basic"]
        t = FERMENTATION_TEMPERATURES.get(batch.fermentation_temperature) or FERMENTATION_TEMPERATURES["Ambient"]
        _apply_effects(batch.characteristics, m["weekly_effects"])
        _apply_effects(batch.characteristics, t["weekly_effects"])
        batch.fermentation_progress = min(100.0, batch.fermentation_progress + FERMENTATION_PROGRESS_PER_WEEK)
        refresh_batch_scores(batch)
        if batch.fermentation_progress >= 100.0:
            finished += 1
            add_message(state, f"Fermentation of {batch.name()} is complete and ready for bottling.", "winery.progress_fermentation", "winery")
    return finished


def bottle_batch(state: GameState, batch_id: str) -> WineBatch:
    batch = get_batch(state, batch_id)
    if batch.state != "must_fermenting":
        raise ValueError(f"batch cannot be bottled in state {batch.state}")
    if batch.fermentation_progress < 100.0:
        raise ValueError("fermentation is not complete")

    bottles = math.floor(float(batch.quantity) / KG_PER_BOTTLE)
    if bottles < 1:
        raise ValueError(f"batch holds {batch.quantity:.2f} kg, not enough for one bottle")

    batch.quantity = float(bottles)
    batch.state = "bottled"
    refresh_batch_scores(batch)
    if batch.asking_price is None:
        batch.asking_price = batch.estimated_price
    log.info("bottled %s: %d bottles at %.2f", batch.name(), int(batch.quantity), batch.estimated_price)
    add_message(state, f"Bottled {int(batch.quantity)} bottles of {batch.name()}.", "winery.bottle_batch", "winery")
    return batch


def set_asking_price(state: GameState, batch_id: str, price: float) -> WineBatch:
    batch = get_batch(state, batch_id)
    p = float(price)
    if not math.isfinite(p) or p <= 0:
        raise ValueError("price must be positive")
    batch.asking_price = round(min(MAX_WINE_PRICE, p), 2)
    return batch


def batch_summary(batch: WineBatch) -> Dict:
    return {
        "batch_id": batch.batch_id,
        "name": batch.name(),
        "state": batch.state,
        "quantity": batch.quantity,
        "quality": batch.quality,
        "balance": batch.balance,
        "quality_index": wine_quality_index(batch),
        "estimated_price": batch.estimated_price,
        "asking_price": batch.asking_price,
        "oxidation_risk": batch.oxidation,
        "is_oxidized": batch.is_oxidized,
    }
