from __future__ import annotations

import logging
import random
import uuid
from typing import Dict, List, Optional, Sequence, Tuple

from winesim import prestige as prestige_mod
from winesim.constants import (
    ALTITUDE_HEAT_COOLING_FACTOR,
    ASPECT_RIPENESS_MODIFIERS,
    ASPECT_SUN_EXPOSURE_OFFSETS,
    ASPECTS,
    BASE_YIELD_PER_VINE,
    CLEARING_COST_PER_HECTARE,
    CLEARING_HEALTH_BONUS,
    COUNTRY_REGION_MAP,
    DEFAULT_ASPECT_RATING,
    DEFAULT_PRICE_RANGE,
    DEFAULT_VINE_DENSITY,
    DEFAULT_VINE_YIELD,
    DEFAULT_VINEYARD_HEALTH,
    FIRST_NAMES,
    GRAPE_ALTITUDE_SUITABILITY,
    GRAPE_CONST,
    GRAPE_SOIL_PREFERENCES,
    GRAPE_SUN_PREFERENCES,
    HEALTH_DEGRADATION,
    HEALTH_DEGRADATION_RANDOMNESS,
    MAX_VINE_DENSITY,
    MIN_VINE_DENSITY,
    MIN_VINE_YIELD,
    MIN_VINEYARD_HEALTH,
    PLANTING_COST_PER_VINE,
    REGION_ALTITUDE_RANGES,
    REGION_ASPECT_RATINGS,
    REGION_GRAPE_SUITABILITY,
    REGION_HEAT_PROFILE,
    REGION_PRICE_RANGES,
    REGION_SOIL_TYPES,
    RIPENESS_INCREASE,
    SEASONAL_RIPENESS_RANDOMNESS,
    SUITABILITY_WEIGHTS,
    VINE_YIELD_YOUNG_DELTAS,
)
from winesim.curves import clamp01, normalize_prestige_1000, vineyard_age_prestige_modifier
from winesim.finance import (
    CAT_VINEYARD_PURCHASE,
    CAT_VINEYARD_SALE,
    CAT_VINEYARD_WORK,
    add_transaction,
    require_funds,
)
from winesim.models import GameState, Vineyard, WineBatch
from winesim.notifications import add_message
from winesim.winery import create_harvest_batch

log = logging.getLogger(__name__)

FEMALE_ASPECTS = ("East", "Southeast", "South", "Southwest")


def _normalize_to01(value: float, lo: float, hi: float) -> float:
    if hi <= lo:
        return 0.5
    return clamp01((float(value) - lo) / (hi - lo))


def altitude_range(country: str, region: str) -> Tuple[float, float]:
    return tuple(REGION_ALTITUDE_RANGES.get(country, {}).get(region, (0, 100)))  # type: ignore[return-value]


def aspect_rating(country: str, region: str, aspect: str) -> float:
    return float(REGION_ASPECT_RATINGS.get(country, {}).get(region, {}).get(aspect, DEFAULT_ASPECT_RATING))


def regional_price_range(country: str, region: str) -> Tuple[float, float]:
    return tuple(REGION_PRICE_RANGES.get(country, {}).get(region, DEFAULT_PRICE_RANGE))  # type: ignore[return-value]


def validate_location(country: str, region: str) -> None:
    if country not in COUNTRY_REGION_MAP:
        raise ValueError(f"unknown country: {country}")
    if region not in COUNTRY_REGION_MAP[country]:
        raise ValueError(f"unknown region for {country}: {region}")


def calculate_land_value(country: str, region: str, altitude: float, aspect: str) -> float:
    """Euros per hectare; aspect and altitude span the region's price band."""

    lo, hi = altitude_range(country, region)
    altitude_norm = _normalize_to01(altitude, lo, hi)
    aspect_norm = _normalize_to01(aspect_rating(country, region, aspect), 0.10, 1.00)
    base, top = regional_price_range(country, region)
    return float(round(base + (aspect_norm + altitude_norm) / 2.0 * (top - base)))


def calculate_adjusted_land_value(v: Vineyard) -> float:
    """Base land value plus small uplifts for planted suitability, old vines and prestige."""

    base = calculate_land_value(v.country, v.region, v.altitude, v.aspect)
    planted = 0.05 * grape_suitability(v.grape, v.country, v.region, v.altitude, v.aspect, v.soil) if v.grape else 0.0
    age = max(0, int(v.vine_age or 0))
    age_bonus = 0.03 * min(1.0, age / 200.0) * vineyard_age_prestige_modifier(age)
    prestige_bonus = 0.02 * normalize_prestige_1000(max(0.0, float(v.vineyard_prestige or 0.0)))
    return float(round(base * (1.0 + planted + age_bonus + prestige_bonus)))


# ---------------------------------------------------------------------------
# Grape suitability
# ---------------------------------------------------------------------------

def altitude_suitability(grape: str, altitude: float) -> float:
    (pref_lo, pref_hi), (tol_lo, tol_hi) = GRAPE_ALTITUDE_SUITABILITY[grape]
    a = float(altitude)
    if a <= tol_lo or a >= tol_hi:
        return 0.0
    if pref_lo <= a <= pref_hi:
        return 1.0
    if a < pref_lo:
        span = pref_lo - tol_lo
        return clamp01((a - tol_lo) / span) if span > 0 else 0.0
    span = tol_hi - pref_hi
    return clamp01((tol_hi - a) / span) if span > 0 else 0.0


def sun_exposure_index(country: str, region: str, altitude: float, aspect: str) -> float:
    heat = float(REGION_HEAT_PROFILE.get(country, {}).get(region, 0.5))
    offset = float(ASPECT_SUN_EXPOSURE_OFFSETS.get(aspect, 0.0))
    lo, hi = altitude_range(country, region)
    cooling = _normalize_to01(altitude, lo, hi) * ALTITUDE_HEAT_COOLING_FACTOR
    return clamp01(heat + offset - cooling)


def sun_exposure_suitability(grape: str, index: float) -> float:
    opt_lo, opt_hi, tolerance = GRAPE_SUN_PREFERENCES[grape]
    lower = clamp01(opt_lo - tolerance)
    upper = clamp01(opt_hi + tolerance)
    if index < lower or index > upper:
        return 0.0
    if opt_lo <= index <= opt_hi:
        return 1.0
    if index < opt_lo:
        span = opt_lo - lower
        return clamp01((index - lower) / span) if span > 0 else 0.0
    span = upper - opt_hi
    return clamp01((upper - index) / span) if span > 0 else 0.0


def soil_suitability(grape: str, soils: Sequence[str]) -> float:
    prefs = GRAPE_SOIL_PREFERENCES.get(grape)
    unique = list(dict.fromkeys(soils or []))
    if not prefs or not unique:
        return 0.5
    preferred = set(prefs["preferred"])
    tolerated = set(prefs.get("tolerated", []))
    if all(s in preferred for s in unique):
        return 1.0
    score = sum(1.0 if s in preferred else 0.5 if s in tolerated else 0.0 for s in unique)
    return clamp01(score / len(unique))


def grape_suitability_metrics(
    grape: str, country: str, region: str, altitude: float, aspect: str, soil: Optional[Sequence[str]] = None
) -> Dict[str, float]:
    if grape not in GRAPE_CONST:
        raise ValueError(f"unknown grape: {grape}")
    regional = REGION_GRAPE_SUITABILITY.get(country, {}).get(region, {}).get(grape)
    if regional is None:
        raise ValueError(f"no suitability data for {grape} in {region}, {country}")

    soils = list(soil) if soil else list(REGION_SOIL_TYPES.get(country, {}).get(region, []))
    metrics = {
        "region": clamp01(regional),
        "altitude": altitude_suitability(grape, altitude),
        "sun": sun_exposure_suitability(grape, sun_exposure_index(country, region, altitude, aspect)),
        "soil": soil_suitability(grape, soils),
    }
    total_weight = sum(SUITABILITY_WEIGHTS.values())
    metrics["overall"] = clamp01(sum(metrics[k] * w for k, w in SUITABILITY_WEIGHTS.items()) / total_weight)
    return metrics


def grape_suitability(
    grape: Optional[str], country: str, region: str, altitude: float, aspect: str, soil: Optional[Sequence[str]] = None
) -> float:
    """Overall 0-1 suitability; an unplanted vineyard counts as fully suitable."""

    if not grape:
        return 1.0
    return grape_suitability_metrics(grape, country, region, altitude, aspect, soil)["overall"]


def vineyard_suitability(v: Vineyard) -> float:
    return grape_suitability(v.grape, v.country, v.region, v.altitude, v.aspect, v.soil)


# ---------------------------------------------------------------------------
# Yield, ripeness, health
# ---------------------------------------------------------------------------

def calculate_vineyard_yield(v: Vineyard) -> int:
    """Expected harvest in kg if picked now."""

    if not v.grape:
        return 0
    total_vines = float(v.hectares) * float(v.density)
    natural_yield = float(GRAPE_CONST[v.grape]["natural_yield"])
    multiplier = (
        vineyard_suitability(v)
        * natural_yield
        * float(v.ripeness or 0.0)
        * float(v.vine_yield or DEFAULT_VINE_YIELD)
        * float(v.vineyard_health or 1.0)
    )
    return int(round(total_vines * BASE_YIELD_PER_VINE * multiplier))


def ripeness_increase(v: Vineyard, season: str, rng: random.Random) -> float:
    base = RIPENESS_INCREASE.get(season, 0.0)
    if base <= 0:
        return 0.0
    lo, hi = SEASONAL_RIPENESS_RANDOMNESS[season]
    mult = lo + rng.random() * (hi - lo)
    aspect = 1.0 + ASPECT_RIPENESS_MODIFIERS.get(v.aspect, 0.0)
    return max(0.0, base * mult * aspect)


def update_vineyard_ripeness(state: GameState, rng: random.Random) -> None:
    season = state.season
    week = int(state.week)
    for v in state.vineyards.values():
        if not v.grape:
            continue
        old_ripeness = v.ripeness

        if season == "Spring" and week == 1 and v.status in ("Dormant", "Planted", "Harvested"):
            v.status = "Growing"
            v.ripeness = 0.0

        if v.status == "Growing":
            v.ripeness = min(1.0, v.ripeness + ripeness_increase(v, season, rng))

        if season == "Winter" and v.ripeness > 0:
            loss = min(v.ripeness, 0.03 + 0.01 * (week - 1))
            v.ripeness = max(0.0, v.ripeness - loss)
            if old_ripeness - v.ripeness > 0.05 and loss > 0.1:
                add_message(
                    state,
                    f"Winter is taking its toll! {v.name} lost {round((old_ripeness - v.ripeness) * 100)}% ripeness.",
                    "vineyard.update_vineyard_ripeness",
                    "vineyard",
                )

        if season == "Winter" and v.ripeness <= 0 and v.status != "Dormant":
            v.status = "Dormant"
            v.ripeness = 0.0


def update_vineyard_health(state: GameState, rng: random.Random) -> None:
    base = HEALTH_DEGRADATION.get(state.season, 0.005)
    for v in state.vineyards.values():
        if v.vineyard_health <= MIN_VINEYARD_HEALTH:
            continue
        variation = (rng.random() - 0.5) * 2.0 * HEALTH_DEGRADATION_RANDOMNESS
        v.vineyard_health = max(MIN_VINEYARD_HEALTH, v.vineyard_health - base * (1.0 + variation))


def vine_yield_progression(age: int, current: float) -> float:
    """Expected yearly vine-yield delta for vines of the given age."""

    if age in VINE_YIELD_YOUNG_DELTAS:
        return VINE_YIELD_YOUNG_DELTAS[age]
    if 5 <= age < 15:
        return 0.0
    if 15 <= age <= 29:
        return -0.4 / 15.0
    if 30 <= age < 200:
        return 0.6 * 0.85 ** (age - 29) - float(current)
    return 0.0


def age_vineyards(state: GameState, rng: random.Random) -> None:
    """New-year step: vines get a year older and their yield factor moves with age."""

    for v in state.vineyards.values():
        if not v.grape or v.vine_age is None:
            continue
        v.vine_age = int(v.vine_age) + 1
        age = v.vine_age
        current = float(v.vine_yield or DEFAULT_VINE_YIELD)
        expected = vine_yield_progression(age, current)
        if expected == 0:
            delta = (rng.random() - 0.5) * 0.2
        elif age >= 30:
            delta = expected * (0.5 + rng.random())
        else:
            delta = expected * (0.25 + rng.random() * 1.5)
        v.vine_yield = max(MIN_VINE_YIELD, current + delta)


def refresh_vineyard_values(state: GameState) -> None:
    for v in state.vineyards.values():
        v.land_value = calculate_adjusted_land_value(v)
        prestige_mod.update_base_vineyard_prestige(state, v, vineyard_suitability(v))


# ---------------------------------------------------------------------------
# Land market
# ---------------------------------------------------------------------------

def random_hectares(rng: random.Random) -> float:
    if rng.random() < 0.9:
        return round(rng.uniform(0.5, 5.0), 2)
    return round(rng.uniform(5.0, 20.0), 2)


def generate_vineyard_name(country: str, aspect: str, rng: random.Random) -> str:
    names = FIRST_NAMES.get(country)
    if not names:
        raise ValueError(f"no name data for country: {country}")
    pool = names["female"] if aspect in FEMALE_ASPECTS else names["male"]
    return f"{rng.choice(pool)}'s {aspect} Vineyard"


def create_land_offer(rng: random.Random, country: Optional[str] = None, region: Optional[str] = None) -> Vineyard:
    country = country or rng.choice(sorted(COUNTRY_REGION_MAP))
    region = region or rng.choice(COUNTRY_REGION_MAP[country])
    validate_location(country, region)

    aspect = rng.choice(ASPECTS)
    soils_pool = REGION_SOIL_TYPES[country][region]
    soil = sorted(rng.sample(soils_pool, rng.randint(1, min(3, len(soils_pool)))))
    lo, hi = altitude_range(country, region)
    altitude = rng.randint(int(lo), int(hi))
    land_value = calculate_land_value(country, region, altitude, aspect)
    hectares = random_hectares(rng)

    return Vineyard(
        vineyard_id=f"vy_{uuid.uuid4().hex[:10]}",
        name=generate_vineyard_name(country, aspect, rng),
        country=country,
        region=region,
        hectares=hectares,
        altitude=altitude,
        aspect=aspect,
        soil=soil,
        land_value=land_value,
        vineyard_health=DEFAULT_VINEYARD_HEALTH,
        vine_yield=DEFAULT_VINE_YIELD,
        purchase_price=round(land_value * hectares, 2),
    )


def generate_land_offers(state: GameState, rng: random.Random, count: int = 5) -> List[Vineyard]:
    state.land_offers = [create_land_offer(rng) for _ in range(max(1, int(count)))]
    return state.land_offers


def get_vineyard(state: GameState, vineyard_id: str) -> Vineyard:
    v = state.vineyards.get(vineyard_id)
    if v is None:
        raise ValueError("vineyard not found")
    return v


def buy_vineyard(state: GameState, offer_id: str) -> Vineyard:
    offer = next((o for o in state.land_offers if o.vineyard_id == offer_id), None)
    if offer is None:
        raise ValueError("land offer not found")
    price = float(offer.purchase_price or offer.total_value())
    require_funds(state, price, f"purchase of {offer.name}")

    state.land_offers = [o for o in state.land_offers if o.vineyard_id != offer_id]
    offer.acquired_week = state.absolute_week()
    state.vineyards[offer.vineyard_id] = offer
    add_transaction(state, -price, f"Purchase of {offer.name}", CAT_VINEYARD_PURCHASE)
    prestige_mod.update_base_vineyard_prestige(state, offer, vineyard_suitability(offer))
    add_message(state, f"Purchased {offer.name} in {offer.region}, {offer.country} for {price:,.0f}.", "vineyard.buy_vineyard", "finance")
    return offer


def planting_plan(v: Vineyard, grape: str, density: Optional[int] = None) -> Tuple[int, float]:
    """Validate a planting; returns (density, cost)."""

    if grape not in GRAPE_CONST:
        raise ValueError(f"unknown grape: {grape}")
    if v.grape:
        raise ValueError("vineyard is already planted; clear it first")
    d = int(density or DEFAULT_VINE_DENSITY)
    if not (MIN_VINE_DENSITY <= d <= MAX_VINE_DENSITY):
        raise ValueError(f"density must be within [{MIN_VINE_DENSITY}, {MAX_VINE_DENSITY}]")
    return d, round(float(v.hectares) * d * PLANTING_COST_PER_VINE, 2)


def finish_planting(state: GameState, v: Vineyard, grape: str, density: int) -> Vineyard:
    v.grape = grape
    v.density = int(density)
    v.vine_age = 0
    v.vine_yield = DEFAULT_VINE_YIELD
    v.ripeness = 0.0
    v.status = "Planted" if state.season == "Winter" else "Growing"

    prestige_mod.update_base_vineyard_prestige(state, v, vineyard_suitability(v))
    prestige_mod.add_vineyard_achievement_prestige(state, v.vineyard_id, "planting")
    add_message(state, f"Planted {grape} at {v.name} ({density} vines/ha).", "vineyard.plant_vineyard", "vineyard")
    return v


def plant_vineyard(state: GameState, vineyard_id: str, grape: str, density: Optional[int] = None) -> Vineyard:
    v = get_vineyard(state, vineyard_id)
    d, cost = planting_plan(v, grape, density)
    require_funds(state, cost, "planting")
    add_transaction(state, -cost, f"Planting {grape} at {v.name}", CAT_VINEYARD_WORK)
    return finish_planting(state, v, grape, d)


def clearing_cost(v: Vineyard) -> float:
    return round(float(v.hectares) * CLEARING_COST_PER_HECTARE, 2)


def finish_clearing(state: GameState, v: Vineyard, uproot: bool = False) -> Vineyard:
    v.vineyard_health = min(1.0, v.vineyard_health + CLEARING_HEALTH_BONUS)
    if uproot:
        v.grape = None
        v.vine_age = None
        v.density = 0
        v.ripeness = 0.0
        v.vine_yield = DEFAULT_VINE_YIELD
        v.status = "Barren"
        prestige_mod.update_base_vineyard_prestige(state, v, vineyard_suitability(v))
    add_message(state, f"Cleared {v.name}; health is now {v.vineyard_health:.0%}.", "vineyard.clear_vineyard", "vineyard")
    return v


def clear_vineyard(state: GameState, vineyard_id: str, uproot: bool = False) -> Vineyard:
    """Clear vegetation (health +0.2); with uproot the vines are removed too."""

    v = get_vineyard(state, vineyard_id)
    cost = clearing_cost(v)
    require_funds(state, cost, "clearing")
    add_transaction(state, -cost, f"Clearing {v.name}", CAT_VINEYARD_WORK)
    return finish_clearing(state, v, uproot)


def check_harvestable(v: Vineyard) -> int:
    """Raise unless the vineyard can be picked now; returns the expected kg."""

    if not v.grape:
        raise ValueError("vineyard has no grape planted")
    if v.status != "Growing":
        raise ValueError(f"vineyard cannot be harvested while {v.status}")
    quantity = calculate_vineyard_yield(v)
    if quantity <= 0:
        raise ValueError("nothing to harvest yet")
    return quantity


def harvest_vineyard(state: GameState, vineyard_id: str) -> WineBatch:
    v = get_vineyard(state, vineyard_id)
    quantity = check_harvestable(v)

    batch = create_harvest_batch(state, v, quantity, vineyard_suitability(v), altitude_range(v.country, v.region))
    v.status = "Harvested"
    v.ripeness = 0.0
    prestige_mod.add_vineyard_achievement_prestige(state, v.vineyard_id, "harvest")
    log.info("harvested %d kg of %s at %s", quantity, v.grape, v.name)
    add_message(state, f"Harvested {quantity:,} kg of {v.grape} at {v.name}.", "vineyard.harvest_vineyard", "vineyard")
    return batch


def sell_vineyard(state: GameState, vineyard_id: str) -> float:
    v = get_vineyard(state, vineyard_id)
    if any(a.target_id == vineyard_id for a in state.activities.values()):
        raise ValueError("cancel the work in progress on this vineyard before selling it")
    price = round(v.total_value(), 2)
    del state.vineyards[vineyard_id]
    prestige_mod.remove_vineyard_prestige(state, vineyard_id)
    add_transaction(state, price, f"Sale of {v.name}", CAT_VINEYARD_SALE)
    add_message(state, f"Sold {v.name} for {price:,.0f}.", "vineyard.sell_vineyard", "finance")
    return price


def vineyard_summary(v: Vineyard) -> Dict:
    return {
        "vineyard_id": v.vineyard_id,
        "name": v.name,
        "status": v.status,
        "grape": v.grape,
        "ripeness": v.ripeness,
        "health": v.vineyard_health,
        "expected_yield": calculate_vineyard_yield(v),
        "suitability": vineyard_suitability(v),
        "total_value": v.total_value(),
    }
