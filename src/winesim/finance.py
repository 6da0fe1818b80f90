from __future__ import annotations

import logging
import random
from typing import Dict, List

from winesim.constants import ECONOMY_PHASES, ECONOMY_TRANSITION
from winesim.models import GameState, Transaction

log = logging.getLogger(__name__)

# Transaction categories
CAT_INITIAL = "Initial Investment"
CAT_VINEYARD_PURCHASE = "Vineyard Purchase"
CAT_VINEYARD_SALE = "Vineyard Sale"
CAT_VINEYARD_WORK = "Vineyard Work"
CAT_WINERY = "Winery Operations"
CAT_WINE_SALES = "Wine Sales"
CAT_WAGES = "Staff Wages"
CAT_HIRING = "Staff Hiring"
CAT_LOAN_RECEIVED = "Loan Received"
CAT_LOAN_PAYMENT = "Loan Payment"
CAT_LOAN_FEE = "Loan Fees"
CAT_LOAN_PENALTY = "Loan Penalty"

INCOME_CATEGORIES = (CAT_INITIAL, CAT_VINEYARD_SALE, CAT_WINE_SALES, CAT_LOAN_RECEIVED)


def add_transaction(state: GameState, amount: float, description: str, category: str) -> Transaction:
    tx = Transaction(
        week=int(state.week),
        season=str(state.season),
        year=int(state.year),
        amount=float(amount),
        description=str(description),
        category=str(category),
    )
    state.money = float(state.money) + float(amount)
    state.transactions.append(tx)
    log.debug("tx %.2f %s (%s)", tx.amount, description, category)
    return tx


def require_funds(state: GameState, amount: float, what: str) -> None:
    if float(state.money) < float(amount):
        raise ValueError(f"insufficient funds for {what}: need {amount:.2f}, have {state.money:.2f}")


def total_debt(state: GameState) -> float:
    return float(sum(l.remaining_balance for l in state.loans.values() if l.status == "active"))


def calculate_company_value(state: GameState) -> float:
    """Money + vineyard land + bottled stock at asking/estimated price - outstanding loans."""

    vineyards = sum(v.total_value() for v in state.vineyards.values())
    wine = 0.0
    for b in state.batches.values():
        if b.state != "bottled":
            continue
        price = b.asking_price if b.asking_price is not None else b.estimated_price
        wine += float(b.quantity) * float(price or 0.0)
    return float(state.money) + float(vineyards) + wine - total_debt(state)


def financial_summary(transactions: List[Transaction]) -> Dict:
    income: Dict[str, float] = {}
    expenses: Dict[str, float] = {}
    for tx in transactions:
        bucket = income if tx.amount >= 0 else expenses
        bucket[tx.category] = bucket.get(tx.category, 0.0) + float(tx.amount)
    total_income = sum(income.values())
    total_expenses = sum(expenses.values())
    return {
        "income": income,
        "expenses": expenses,
        "total_income": total_income,
        "total_expenses": total_expenses,
        "net": total_income + total_expenses,
    }


def next_economy_phase(current: str, rng: random.Random) -> str:
    """Random walk over the economy phases, evaluated once per season."""

    if current not in ECONOMY_PHASES:
        return "Stable"
    idx = ECONOMY_PHASES.index(current)
    roll = rng.random()
    if idx == 0 or idx == len(ECONOMY_PHASES) - 1:
        shift, _stay = ECONOMY_TRANSITION["edge"]
        if roll < shift:
            return ECONOMY_PHASES[1] if idx == 0 else ECONOMY_PHASES[idx - 1]
        return current

    shift, stay = ECONOMY_TRANSITION["middle"]
    if roll < shift:
        return ECONOMY_PHASES[idx - 1]
    if roll < shift + stay:
        return current
    return ECONOMY_PHASES[idx + 1]


def update_economy_phase(state: GameState, rng: random.Random) -> bool:
    old = state.economy_phase
    state.economy_phase = next_economy_phase(old, rng)
    if state.economy_phase != old:
        log.info("economy phase %s -> %s", old, state.economy_phase)
        return True
    return False
