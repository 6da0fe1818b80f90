from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Optional, Sequence, cast

from winesim import activities, highscores, loans, oxidation, prestige, sales, staff, vineyard, winery
from winesim.constants import LAND_OFFER_COUNT
from winesim.finance import update_economy_phase
from winesim.models import SEASONS, WEEKS_PER_SEASON, GameState, WeekResult, WineBatch
from winesim.notifications import add_message

log = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    weeks_per_season: int = WEEKS_PER_SEASON
    land_offer_count: int = LAND_OFFER_COUNT
    staff_candidate_count: int = 5
    refresh_land_offers_each_season: bool = True
    generate_orders: bool = True
    economy_changes: bool = True
    submit_highscores: bool = True


def _to_jsonable(x: object) -> object:
    if isinstance(x, tuple):
        return [_to_jsonable(v) for v in x]
    if isinstance(x, list):
        return [_to_jsonable(v) for v in x]
    if isinstance(x, dict):
        return {str(k): _to_jsonable(v) for k, v in x.items()}
    return x


def _to_tuple(x: object) -> object:
    if isinstance(x, list):
        return tuple(_to_tuple(v) for v in x)
    return x


def rng_from_state(state: GameState) -> random.Random:
    rng = random.Random()
    seed = int(getattr(state, "rng_seed", 20240101) or 20240101)
    st = getattr(state, "rng_state", None)
    if st is not None:
        try:
            rng.setstate(cast(tuple[Any, ...], _to_tuple(st)))
            return rng
        except (TypeError, ValueError):
            log.warning("stored rng state is unusable; reseeding from %d", seed)
    rng.seed(seed)
    return rng


def persist_rng_state(state: GameState, rng: random.Random) -> None:
    state.rng_state = _to_jsonable(rng.getstate())


def _next_date(state: GameState, cfg: EngineConfig) -> tuple[bool, bool]:
    """Move the calendar one week; returns (season_changed, year_changed)."""

    state.week = int(state.week) + 1
    if state.week <= cfg.weeks_per_season:
        return False, False
    state.week = 1
    idx = state.season_index() + 1
    if idx < len(SEASONS):
        state.season = SEASONS[idx]
        return True, False
    state.season = SEASONS[0]
    state.year = int(state.year) + 1
    return True, True


def _new_year(state: GameState, cfg: EngineConfig, rng: random.Random) -> None:
    vineyard.age_vineyards(state, rng)
    vineyard.refresh_vineyard_values(state)
    add_message(state, f"A new year has begun: {state.year}.", "engine.new_year", "time")
    if cfg.submit_highscores:
        highscores.submit_company_scores(state)


def _new_season(state: GameState, cfg: EngineConfig, rng: random.Random) -> None:
    staff.pay_seasonal_wages(state)
    loans.process_seasonal_loan_payments(state)
    if cfg.economy_changes and update_economy_phase(state, rng):
        add_message(state, f"The economy has entered a {state.economy_phase} phase.", "engine.new_season", "finance")
    if cfg.refresh_land_offers_each_season:
        vineyard.generate_land_offers(state, rng, cfg.land_offer_count)
    log.info("season changed to %s %d", state.season, state.year)


def advance_week(state: GameState, cfg: EngineConfig) -> WeekResult:
    rng = rng_from_state(state)

    closed_week = state.absolute_week()
    closed_transactions = list(state.transactions)
    state.transactions = []
    seen = {m.notification_id for m in state.notifications}
    money_before = float(state.money)

    season_changed, year_changed = _next_date(state, cfg)

    if year_changed:
        _new_year(state, cfg, rng)
    if season_changed:
        _new_season(state, cfg, rng)

    vineyard.update_vineyard_ripeness(state, rng)
    vineyard.update_vineyard_health(state, rng)
    completed = activities.progress_activities(state)
    for activity, result in completed:
        if cfg.submit_highscores and activity.category == "harvesting":
            highscores.submit_harvest_scores(state, state.vineyards[activity.target_id], result.quantity)
    winery.progress_fermentation(state)
    oxidation.process_weekly_oxidation(state, rng)

    current = prestige.current_prestige(state)
    orders = sales.generate_weekly_orders(state, rng, current) if cfg.generate_orders else []

    prestige.decay_prestige_events_one_week(state)
    sales.decay_relationship_boosts(state)
    prestige.update_company_value_prestige(state)
    current = prestige.current_prestige(state)
    sales.update_customer_relationships(state, current)

    if cfg.submit_highscores:
        highscores.submit_company_scores(state)

    persist_rng_state(state, rng)

    return WeekResult(
        closed_week=closed_week,
        absolute_week=state.absolute_week(),
        week=state.week,
        season=state.season,
        year=state.year,
        money_before=money_before,
        money_after=float(state.money),
        transactions=closed_transactions,
        orders_created=len(orders),
        activities_completed=len(completed),
        messages=[m.text for m in state.notifications if m.notification_id not in seen],
        prestige=current,
        season_changed=season_changed,
        year_changed=year_changed,
    )


# ---------------------------------------------------------------------------
# Player actions that need the game RNG or feed highscores
# ---------------------------------------------------------------------------

def refresh_land_offers(state: GameState, cfg: EngineConfig, count: Optional[int] = None):
    rng = rng_from_state(state)
    offers = vineyard.generate_land_offers(state, rng, count or cfg.land_offer_count)
    persist_rng_state(state, rng)
    return offers


def refresh_staff_candidates(
    state: GameState,
    cfg: EngineConfig,
    count: Optional[int] = None,
    skill_level: float = 0.3,
    specializations: Sequence[str] = (),
):
    rng = rng_from_state(state)
    candidates = staff.generate_staff_candidates(
        state, rng, count or cfg.staff_candidate_count, skill_level, specializations
    )
    persist_rng_state(state, rng)
    return candidates


def bottle(state: GameState, cfg: EngineConfig, batch_id: str) -> WineBatch:
    batch = winery.bottle_batch(state, batch_id)
    if cfg.submit_highscores:
        highscores.submit_wine_scores(state, batch)
    return batch


def take_loan(state: GameState, lender_id: str, amount: float, duration_seasons: int):
    return loans.take_loan(state, lender_id, amount, duration_seasons, prestige.current_prestige(state))
