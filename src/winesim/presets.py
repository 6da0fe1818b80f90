from __future__ import annotations

import logging

from winesim import prestige
from winesim.constants import DEFAULT_CREDIT_RATING, START_YEAR, STARTING_MONEY
from winesim.engine import EngineConfig, persist_rng_state, rng_from_state
from winesim.finance import CAT_INITIAL, add_transaction
from winesim.loans import generate_lenders
from winesim.models import GameState
from winesim.notifications import add_message
from winesim.sales import generate_customers
from winesim.staff import generate_staff_candidates
from winesim.vineyard import generate_land_offers

log = logging.getLogger(__name__)


def new_game(
    company_name: str = "My Winery",
    seed: int = 20240101,
    starting_money: float = STARTING_MONEY,
    cfg: EngineConfig | None = None,
) -> GameState:
    """Create a runnable starting state.

    This is shared by the web API and the tests.
    """

    cfg = cfg or EngineConfig()
    state = GameState(
        company_name=str(company_name),
        year=START_YEAR,
        start_year=START_YEAR,
        credit_rating=DEFAULT_CREDIT_RATING,
        rng_seed=int(seed),
    )
    add_transaction(state, float(starting_money), "Initial investment", CAT_INITIAL)

    rng = rng_from_state(state)
    generate_lenders(state, rng)
    generate_land_offers(state, rng, cfg.land_offer_count)
    generate_staff_candidates(state, rng, cfg.staff_candidate_count)
    prestige.update_company_value_prestige(state)
    generate_customers(state, rng, company_prestige=prestige.current_prestige(state))
    persist_rng_state(state, rng)

    add_message(state, f"Welcome to {state.company_name}! Buy a vineyard to get started.", "presets.new_game", "general")
    log.info("new game %s seed=%d", state.company_name, state.rng_seed)
    return state
