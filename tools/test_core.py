from __future__ import annotations

import math
import random

from winesim import prestige, vineyard, winery
from winesim.balance import (
    BASE_BALANCED_RANGES,
    apply_dynamic_range_adjustments,
    balance_breakdown,
    calculate_rules,
    calculate_wine_balance,
    quality_label,
)
from winesim.constants import NOTIFICATION_LIMIT, SUITABILITY_WEIGHTS
from winesim.curves import normalize_prestige_1000, order_amount_multiplier, stepped_balance
from winesim.engine import EngineConfig, advance_week
from winesim.finance import CAT_INITIAL, add_transaction
from winesim.models import GameState, Vineyard, absolute_week, date_from_absolute_week
from winesim.notifications import add_message, list_messages


def _assert(cond: bool, msg: str) -> None:
    if not cond:
        raise AssertionError(msg)


def _quiet_cfg() -> EngineConfig:
    return EngineConfig(generate_orders=False, economy_changes=False, submit_highscores=False)


def _make_min_state(seed: int = 20240101) -> GameState:
    s = GameState()
    s.money = 1_000_000.0
    s.rng_seed = int(seed)
    s.rng_state = None

    v = Vineyard(
        vineyard_id="V1",
        name="Test Vineyard",
        country="France",
        region="Bordeaux",
        hectares=2.0,
        altitude=50,
        aspect="South",
        soil=["Clay", "Gravel"],
        land_value=200_000.0,
        grape="Chardonnay",
        vine_age=10,
        density=5_000,
        status="Growing",
        ripeness=0.8,
        vineyard_health=0.8,
        vine_yield=0.5,
    )
    s.vineyards[v.vineyard_id] = v
    return s


def _midpoints() -> dict:
    return {k: (lo + hi) / 2.0 for k, (lo, hi) in BASE_BALANCED_RANGES.items()}


def test_balance_perfect_at_midpoints() -> None:
    res = calculate_wine_balance(_midpoints())
    _assert(abs(res.score - 1.0) < 1e-9, f"midpoint wine should score 1.0, got {res.score}")
    _assert(res.quality_label == "Excellent", "perfect balance should be Excellent")


def test_balance_penalizes_distance() -> None:
    base = _midpoints()
    near = dict(base, acidity=0.65)
    far = dict(base, acidity=0.95)
    s_near = calculate_wine_balance(near).score
    s_far = calculate_wine_balance(far).score
    _assert(0.0 <= s_far < s_near < 1.0, f"further from range should score lower ({s_near} vs {s_far})")

    flat = calculate_wine_balance({k: 0.0 for k in base}).score
    _assert(flat < 0.5, "all-zero wine should be badly balanced")


def test_balance_breakdown_fields() -> None:
    out = balance_breakdown(dict(_midpoints(), tannins=0.9))
    row = out["characteristics"]["tannins"]
    for key in ("value", "range", "distance_inside", "distance_outside", "penalty", "final_total_distance"):
        _assert(key in row, f"breakdown should include {key}")
    _assert(row["distance_outside"] > 0, "tannins above range should have an outside distance")
    _assert(out["quality_label"] == quality_label(out["score"]), "label should match score")


def test_quality_labels() -> None:
    _assert(quality_label(0.9) == "Excellent", "0.9 is Excellent")
    _assert(quality_label(0.7) == "Good", "0.7 is Good")
    _assert(quality_label(0.5) == "Fair", "0.5 is Fair")
    _assert(quality_label(0.3) == "Poor", "0.3 is Poor")
    _assert(quality_label(0.29) == "Bad", "below 0.3 is Bad")


def test_curves() -> None:
    _assert(normalize_prestige_1000(0) == 0.0, "zero prestige normalizes to 0")
    _assert(abs(normalize_prestige_1000(10) - 0.7) < 1e-9, "10 prestige normalizes to 0.7")
    _assert(abs(normalize_prestige_1000(100) - 0.9) < 1e-9, "100 prestige normalizes to 0.9")
    _assert(normalize_prestige_1000(1e9) < 1.0, "normalized prestige stays below 1")

    xs = [i / 100.0 for i in range(101)]
    ys = [stepped_balance(x) for x in xs]
    _assert(all(b >= a for a, b in zip(ys, ys[1:])), "stepped balance should be monotone")
    _assert(ys[-1] <= 1.0, "stepped balance never exceeds 1")

    _assert(order_amount_multiplier(10, 10) == 1.0, "no discount, no extra amount")
    _assert(order_amount_multiplier(0.01, 10) <= 10.0, "order amount multiplier is capped")


def test_absolute_week_round_trip() -> None:
    _assert(absolute_week(1, "Spring", 2024) == 1, "game starts at absolute week 1")
    _assert(absolute_week(12, "Winter", 2024) == 48, "last week of the first year is 48")
    d = date_from_absolute_week(49)
    _assert((d.week, d.season, d.year) == (1, "Spring", 2025), "week 49 is week 1 of Spring 2025")


def test_advance_week_rolls_year_and_flushes_transactions() -> None:
    s = _make_min_state()
    s.week, s.season, s.year = 12, "Winter", 2024
    add_transaction(s, 500.0, "Seed money", CAT_INITIAL)
    age_before = s.vineyards["V1"].vine_age

    r = advance_week(s, _quiet_cfg())
    _assert((s.week, s.season, s.year) == (1, "Spring", 2025), "Winter week 12 rolls into the next year")
    _assert(r.season_changed and r.year_changed, "week result should flag season and year change")
    _assert(r.closed_week == 48, "closed week is the week that just ended")
    _assert(len(r.transactions) == 1 and r.transactions[0].amount == 500.0, "closed week carries its transactions")
    _assert(s.vineyards["V1"].vine_age == age_before + 1, "vines age on a new year")
    _assert(s.vineyards["V1"].status == "Growing", "spring week 1 wakes the vineyard up")


def test_advance_week_is_deterministic() -> None:
    a = _make_min_state(seed=7)
    b = _make_min_state(seed=7)
    for _ in range(20):
        advance_week(a, _quiet_cfg())
        advance_week(b, _quiet_cfg())
    _assert(a.vineyards["V1"].ripeness == b.vineyards["V1"].ripeness, "same seed should give the same ripeness")
    _assert(a.vineyards["V1"].vineyard_health == b.vineyards["V1"].vineyard_health, "same seed should give the same health")


def test_health_degrades_and_clearing_restores() -> None:
    s = _make_min_state()
    before = s.vineyards["V1"].vineyard_health
    vineyard.update_vineyard_health(s, random.Random(1))
    after = s.vineyards["V1"].vineyard_health
    _assert(after < before, "health should degrade weekly")

    vineyard.clear_vineyard(s, "V1")
    _assert(abs(s.vineyards["V1"].vineyard_health - min(1.0, after + 0.2)) < 1e-9, "clearing adds 0.2 health")


def test_yield_scales_with_hectares() -> None:
    s = _make_min_state()
    v = s.vineyards["V1"]
    y1 = vineyard.calculate_vineyard_yield(v)
    v.hectares = 4.0
    y2 = vineyard.calculate_vineyard_yield(v)
    _assert(y1 > 0, "planted, ripe vineyard should yield grapes")
    _assert(abs(y2 - 2 * y1) <= 1, f"doubling hectares should double yield ({y1} -> {y2})")

    v.grape = None
    _assert(vineyard.calculate_vineyard_yield(v) == 0, "no grape, no yield")


def test_plant_requires_cleared_vineyard() -> None:
    s = _make_min_state()
    try:
        vineyard.plant_vineyard(s, "V1", "Pinot Noir")
    except ValueError:
        pass
    else:
        raise AssertionError("planting over existing vines should fail")

    vineyard.clear_vineyard(s, "V1", uproot=True)
    money_before = s.money
    v = vineyard.plant_vineyard(s, "V1", "Pinot Noir", 4_000)
    _assert(v.grape == "Pinot Noir" and v.vine_age == 0, "planting sets grape and resets vine age")
    _assert(abs(money_before - s.money - 2.0 * 4_000 * 1.5) < 1e-6, "planting costs 1.5 per vine")


def test_production_pipeline() -> None:
    s = _make_min_state()
    expected_kg = vineyard.calculate_vineyard_yield(s.vineyards["V1"])
    batch = vineyard.harvest_vineyard(s, "V1")
    _assert(batch.state == "grapes" and batch.quantity == expected_kg, "harvest creates a grape batch")
    _assert(s.vineyards["V1"].status == "Harvested", "vineyard is marked harvested")
    _assert(all(0.0 <= x <= 1.0 for x in batch.characteristics.values()), "characteristics stay in [0, 1]")

    winery.crush_batch(s, batch.batch_id, "Hand Press", destem=True, cold_soak=False, pressing_intensity=0.5)
    _assert(batch.state == "must_ready", "crushing gives must")
    _assert(abs(batch.quantity - expected_kg * 1.0) < 1e-6, "intensity 0.5 keeps the full yield")

    try:
        winery.bottle_batch(s, batch.batch_id)
    except ValueError:
        pass
    else:
        raise AssertionError("must cannot be bottled before fermentation")

    winery.start_fermentation(s, batch.batch_id, "Basic", "Ambient")
    for _ in range(4):
        winery.progress_fermentation(s)
    _assert(batch.fermentation_progress == 100.0, "four weeks complete fermentation")

    kg = batch.quantity
    winery.bottle_batch(s, batch.batch_id)
    _assert(batch.state == "bottled", "batch should be bottled")
    _assert(batch.quantity == float(math.floor(kg / 1.5)), "1.5 kg per bottle")
    _assert(batch.asking_price is not None and batch.asking_price == batch.estimated_price, "asking price defaults to estimate")

    winery.set_asking_price(s, batch.batch_id, 42.0)
    _assert(batch.asking_price == 42.0, "asking price can be changed")


def test_prestige_decay_and_floor() -> None:
    s = GameState()
    p = prestige.calculate_current_prestige(s)
    _assert(p["total"] >= 1.0 and p["company"] >= 1.0 and p["vineyard"] >= 0.0, "prestige floors apply")

    ev = prestige.add_prestige_event(s, "sale", 1.0, 0.5, "test")
    tiny = prestige.add_prestige_event(s, "sale", 0.0015, 0.5, "tiny")
    fixed = prestige.add_prestige_event(s, "company_value", 2.0, 0.0, "fixed")
    expired = prestige.decay_prestige_events_one_week(s)
    _assert(abs(s.prestige_events[ev.event_id].amount - 0.5) < 1e-12, "decay multiplies once per week")
    _assert(tiny.event_id not in s.prestige_events and expired == 1, "tiny events expire")
    _assert(s.prestige_events[fixed.event_id].amount == 2.0, "zero decay rate means no decay")

    try:
        prestige.add_prestige_event(s, "bad", 1.0, 1.5)
    except ValueError:
        pass
    else:
        raise AssertionError("decay rate above 1 should be rejected")


def test_company_value_prestige_is_replaced() -> None:
    s = GameState()
    s.money = 10_000_000.0
    prestige.update_company_value_prestige(s)
    prestige.update_company_value_prestige(s)
    events = [e for e in s.prestige_events.values() if e.event_type == "company_value"]
    _assert(len(events) == 1, "company value prestige is a single event")
    _assert(abs(events[0].amount - math.log(2.0)) < 1e-9, "ln(money / max land value + 1)")


def test_acidity_shifts_sweetness_range() -> None:
    traits = dict(_midpoints(), acidity=1.0)
    ranges = apply_dynamic_range_adjustments(traits)
    lo, hi = ranges["sweetness"]
    _assert(abs(lo - 0.325) < 1e-9 and abs(hi - 0.525) < 1e-9, f"acidity 1.0 moves sweetness to (0.325, 0.525), got {ranges['sweetness']}")
    _assert(ranges["acidity"] == BASE_BALANCED_RANGES["acidity"], "traits at their midpoint leave other ranges alone")


def test_range_adjustments_clamp_and_collapse() -> None:
    traits = dict(_midpoints(), acidity=1.0)

    clamped = apply_dynamic_range_adjustments(
        traits, dict(BASE_BALANCED_RANGES, sweetness=(0.7, 0.9)), {"acidity": [("sweetness", 0.5)]}
    )
    lo, hi = clamped["sweetness"]
    _assert(abs(lo - 0.95) < 1e-9 and hi == 1.0, f"upper bound is clamped to 1.0, got {clamped['sweetness']}")

    narrow = apply_dynamic_range_adjustments(
        traits, dict(BASE_BALANCED_RANGES, sweetness=(0.50, 0.51)), {"acidity": [("sweetness", 0.1)]}
    )
    lo, hi = narrow["sweetness"]
    center = (0.5025 + 0.5125) / 2.0
    _assert(abs(lo - (center - 0.01)) < 1e-9 and abs(hi - (center + 0.01)) < 1e-9, f"narrow range is reset around its center, got {narrow['sweetness']}")


def test_clashing_sweetness_is_capped() -> None:
    traits = dict(_midpoints(), acidity=0.8, sweetness=0.7)
    effects = calculate_rules(traits)
    names = [r["name"] for r in effects.fired]
    _assert("Clashing Sweetness" in names, f"high acidity with high sweetness should clash, fired {names}")
    _assert(abs(effects.penalty_scaling["sweetness"] - 3.0) < 1e-9, f"penalty multiplier caps at 3.0, got {effects.penalty_scaling['sweetness']}")
    rule = next(r for r in effects.fired if r["name"] == "Clashing Sweetness")
    _assert(abs(rule["avg_deviation"] - 3.0) < 1e-9, "acidity 0.8 is three half-widths from the midpoint")


def test_winter_ripeness_decay_and_dormancy() -> None:
    s = _make_min_state()
    v = s.vineyards["V1"]
    s.season, s.week = "Winter", 3
    v.ripeness = 0.5
    vineyard.update_vineyard_ripeness(s, random.Random(1))
    _assert(abs(v.ripeness - 0.45) < 1e-9, f"winter week 3 loses 0.03 + 0.01 * 2, got {v.ripeness}")
    _assert(v.status == "Growing", "vines with ripeness left stay Growing")

    s.week = 5
    v.ripeness = 0.04
    vineyard.update_vineyard_ripeness(s, random.Random(1))
    _assert(v.ripeness == 0.0 and v.status == "Dormant", "ripeness running out in winter makes the vines dormant")


def test_spring_week_one_wakes_harvested_vines() -> None:
    s = _make_min_state()
    v = s.vineyards["V1"]
    v.status, v.ripeness = "Harvested", 0.3

    s.season, s.week = "Spring", 2
    vineyard.update_vineyard_ripeness(s, random.Random(1))
    _assert(v.status == "Harvested" and v.ripeness == 0.3, "only week 1 resets the vines")

    s.week = 1
    vineyard.update_vineyard_ripeness(s, random.Random(1))
    _assert(v.status == "Growing", "spring week 1 sets harvested vines growing")
    _assert(v.ripeness <= 0.01 * 1.75 * 1.1 + 1e-9, f"ripeness restarts from zero, got {v.ripeness}")


def test_notifications_are_capped() -> None:
    s = GameState()
    for i in range(NOTIFICATION_LIMIT + 5):
        add_message(s, f"message {i}", "test", "general")
    _assert(len(s.notifications) == NOTIFICATION_LIMIT, f"only the latest {NOTIFICATION_LIMIT} notifications are kept")
    _assert(s.notifications[0].text == "message 5", "oldest notifications are dropped first")
    _assert(list_messages(s, limit=1)[0].text == f"message {NOTIFICATION_LIMIT + 4}", "newest notification comes first")


def test_land_value_spans_regional_band() -> None:
    # Bordeaux: altitude 0-100 m, 100k-1M per hectare, South rated 1.0, North 0.3.
    _assert(vineyard.calculate_land_value("France", "Bordeaux", 50, "South") == 775_000.0, "best aspect at mid altitude")
    _assert(vineyard.calculate_land_value("France", "Bordeaux", 0, "North") == 200_000.0, "worst aspect at sea level")
    top = vineyard.calculate_land_value("France", "Bordeaux", 100, "South")
    _assert(top == 1_000_000.0, "best aspect at the top of the range reaches the ceiling")


def test_suitability_is_weighted() -> None:
    m = vineyard.grape_suitability_metrics("Chardonnay", "France", "Bordeaux", 50, "South", ["Clay", "Gravel"])
    _assert(m["region"] == 0.8, "regional suitability comes from the region table")
    expected = sum(m[k] * w for k, w in SUITABILITY_WEIGHTS.items()) / sum(SUITABILITY_WEIGHTS.values())
    _assert(abs(m["overall"] - expected) < 1e-12, "overall is the weighted mean of the components")
    _assert(SUITABILITY_WEIGHTS == {"region": 0.4, "altitude": 0.2, "sun": 0.2, "soil": 0.2}, "region weighs double")
    _assert(vineyard.grape_suitability(None, "France", "Bordeaux", 50, "South") == 1.0, "bare land is fully suitable")


def test_bottling_needs_one_bottle_worth() -> None:
    s = _make_min_state()
    batch = vineyard.harvest_vineyard(s, "V1")
    batch.state = "must_fermenting"
    batch.fermentation_progress = 100.0
    batch.quantity = 1.2
    try:
        winery.bottle_batch(s, batch.batch_id)
    except ValueError:
        pass
    else:
        raise AssertionError("a batch under 1.5 kg cannot be bottled")
    _assert(batch.state == "must_fermenting" and batch.quantity == 1.2, "rejected bottling leaves the batch untouched")

    batch.quantity = 1.5
    winery.bottle_batch(s, batch.batch_id)
    _assert(batch.state == "bottled" and batch.quantity == 1.0, "1.5 kg fills exactly one bottle")


def main() -> None:
    tests = [
        test_balance_perfect_at_midpoints,
        test_balance_penalizes_distance,
        test_balance_breakdown_fields,
        test_quality_labels,
        test_curves,
        test_absolute_week_round_trip,
        test_advance_week_rolls_year_and_flushes_transactions,
        test_advance_week_is_deterministic,
        test_health_degrades_and_clearing_restores,
        test_yield_scales_with_hectares,
        test_plant_requires_cleared_vineyard,
        test_production_pipeline,
        test_prestige_decay_and_floor,
        test_company_value_prestige_is_replaced,
        test_acidity_shifts_sweetness_range,
        test_range_adjustments_clamp_and_collapse,
        test_clashing_sweetness_is_capped,
        test_winter_ripeness_decay_and_dormancy,
        test_spring_week_one_wakes_harvested_vines,
        test_notifications_are_capped,
        test_land_value_spans_regional_band,
        test_suitability_is_weighted,
        test_bottling_needs_one_bottle_worth,
    ]
    for t in tests:
        t()
        print(f"OK  {t.__name__}")
    print(f"ALL OK ({len(tests)} tests)")


if __name__ == "__main__":
    main()
