from __future__ import annotations

import logging
import random
import uuid
from typing import Dict, List, Optional

from winesim import prestige as prestige_mod
from winesim.constants import (
    CREDIT_RATING_CHANGES,
    DURATION_INTEREST_MODIFIERS,
    ECONOMY_INTEREST_MULTIPLIERS,
    LENDER_CHARACTER_RANGES,
    LENDER_COUNT_RANGE,
    LENDER_NAMES,
    LENDER_PARAMS,
    LENDER_TYPE_DISTRIBUTION,
    LENDER_TYPE_RATE_MULTIPLIERS,
    LENDER_TYPES,
    LOAN_WARNING_PENALTIES,
    PRIVATE_LENDER_PREFIXES,
    PRIVATE_LENDER_SUFFIXES,
    VERY_LONG_TERM_MODIFIER,
)
from winesim.curves import clamp01, normalize_prestige_1000
from winesim.finance import (
    CAT_LOAN_FEE,
    CAT_LOAN_PAYMENT,
    CAT_LOAN_PENALTY,
    CAT_LOAN_RECEIVED,
    CAT_VINEYARD_SALE,
    add_transaction,
    require_funds,
)
from winesim.models import WEEKS_PER_SEASON, GameState, Lender, Loan
from winesim.notifications import add_message

log = logging.getLogger(__name__)

SEIZURE_SALE_FACTOR = 0.75
MAX_PRESTIGE_CREDIT_BONUS = 0.2


def _uniform(rng: random.Random, bounds) -> float:
    lo, hi = bounds
    return rng.uniform(float(lo), float(hi))


def _change_credit(state: GameState, key: str) -> float:
    state.credit_rating = clamp01(float(state.credit_rating) + CREDIT_RATING_CHANGES[key])
    return state.credit_rating


def duration_interest_modifier(duration_seasons: Optional[int]) -> float:
    if not duration_seasons:
        return 1.0
    for max_seasons, modifier in DURATION_INTEREST_MODIFIERS:
        if duration_seasons <= max_seasons:
            return modifier
    return VERY_LONG_TERM_MODIFIER


def credit_rating_modifier(credit_rating: float) -> float:
    return 0.8 + 0.7 * (1.0 - clamp01(credit_rating))


def calculate_effective_interest_rate(
    base_rate: float,
    economy_phase: str,
    lender_type: str,
    credit_rating: float,
    duration_seasons: Optional[int] = None,
) -> float:
    return (
        float(base_rate)
        * ECONOMY_INTEREST_MULTIPLIERS.get(economy_phase, 1.0)
        * LENDER_TYPE_RATE_MULTIPLIERS.get(lender_type, 1.0)
        * credit_rating_modifier(credit_rating)
        * duration_interest_modifier(duration_seasons)
    )


def calculate_seasonal_payment(principal: float, rate: float, seasons: int) -> float:
    """Annuity payment; `rate` is applied per season."""

    if seasons <= 0:
        raise ValueError("duration must be at least one season")
    if rate == 0:
        return float(principal) / seasons
    growth = (1.0 + rate) ** seasons
    return float(principal) * rate * growth / (growth - 1.0)


def calculate_origination_fee(principal: float, lender: Lender, credit_rating: float, duration_seasons: int) -> float:
    fee = lender.origination_fee
    credit_mod = float(fee["credit_modifier"])
    duration_mod = float(fee["duration_modifier"])

    if credit_rating >= 0.8:
        c = credit_mod
    elif credit_rating >= 0.6:
        c = 0.9 + (credit_mod - 0.9) * 0.5
    elif credit_rating >= 0.4:
        c = 1.0
    elif credit_rating >= 0.2:
        c = 1.0 + (1.5 - credit_mod) * 0.3
    else:
        c = 1.0 + (1.5 - credit_mod) * 0.6

    if duration_seasons <= 16:
        d = 0.9 + (duration_mod - 1.0) * 0.1
    elif duration_seasons <= 40:
        d = 1.0
    elif duration_seasons <= 80:
        d = 1.0 + (duration_mod - 1.0) * 0.5
    else:
        d = duration_mod

    raw = float(principal) * float(fee["base_percent"]) * c * d
    return float(round(max(float(fee["min_fee"]), min(float(fee["max_fee"]), raw))))


def calculate_loan_terms(
    lender: Lender,
    principal: float,
    duration_seasons: int,
    credit_rating: float,
    economy_phase: str,
) -> Dict[str, float]:
    rate = calculate_effective_interest_rate(
        lender.base_interest_rate, economy_phase, lender.lender_type, credit_rating, duration_seasons
    )
    payment = calculate_seasonal_payment(principal, rate, duration_seasons)
    total_repayment = payment * duration_seasons
    fee = calculate_origination_fee(principal, lender, credit_rating, duration_seasons)
    return {
        "effective_interest_rate": rate,
        "seasonal_payment": payment,
        "total_repayment": total_repayment,
        "total_interest": total_repayment - float(principal),
        "origination_fee": fee,
        "total_expenses": fee + total_repayment - float(principal),
    }


# ---------------------------------------------------------------------------
# Lenders
# ---------------------------------------------------------------------------

def generate_lender_name(lender_type: str, rng: random.Random) -> str:
    if lender_type == "Private Lender":
        return f"{rng.choice(PRIVATE_LENDER_PREFIXES)} {rng.choice(PRIVATE_LENDER_SUFFIXES)}"
    return rng.choice(LENDER_NAMES[lender_type])


def _pick_lender_type(rng: random.Random) -> str:
    r = rng.random()
    acc = 0.0
    for t in LENDER_TYPES:
        acc += LENDER_TYPE_DISTRIBUTION[t]
        if r < acc:
            return t
    return LENDER_TYPES[-1]


def create_lender(rng: random.Random, lender_type: Optional[str] = None) -> Lender:
    t = lender_type or _pick_lender_type(rng)
    if t not in LENDER_PARAMS:
        raise ValueError(f"unknown lender type: {t}")
    p = LENDER_PARAMS[t]
    character = LENDER_CHARACTER_RANGES[t]
    return Lender(
        lender_id=f"ln_{uuid.uuid4().hex[:10]}",
        name=generate_lender_name(t, rng),
        lender_type=t,
        base_interest_rate=_uniform(rng, p["interest"]),
        min_loan_amount=float(p["amount"][0]),
        max_loan_amount=float(p["amount"][1]),
        min_duration_seasons=int(p["duration"][0]),
        max_duration_seasons=int(p["duration"][1]),
        risk_tolerance=_uniform(rng, character["risk_tolerance"]),
        flexibility=_uniform(rng, character["flexibility"]),
        origination_fee={
            "base_percent": _uniform(rng, p["fee_base_percent"]),
            "min_fee": _uniform(rng, p["fee_min"]),
            "max_fee": _uniform(rng, p["fee_max"]),
            "credit_modifier": _uniform(rng, p["fee_credit_modifier"]),
            "duration_modifier": _uniform(rng, p["fee_duration_modifier"]),
        },
    )


def generate_lenders(state: GameState, rng: random.Random) -> List[Lender]:
    lo, hi = LENDER_COUNT_RANGE
    lenders = [create_lender(rng) for _ in range(rng.randint(lo, hi))]
    state.lenders = {l.lender_id: l for l in lenders}
    log.info("generated %d lenders", len(lenders))
    return lenders


def lender_availability(lender: Lender, credit_rating: float, company_prestige: float = 0.0) -> Dict:
    norm = normalize_prestige_1000(company_prestige) if company_prestige > 0 else 0.0
    bonus = norm * MAX_PRESTIGE_CREDIT_BONUS
    required = float(lender.risk_tolerance) - bonus
    return {
        "available": (not lender.blacklisted) and float(credit_rating) >= required,
        "base_requirement": float(lender.risk_tolerance),
        "prestige_bonus": bonus,
        "adjusted_requirement": required,
    }


def available_lenders(state: GameState, company_prestige: float = 0.0) -> List[Lender]:
    return [
        l for l in state.lenders.values()
        if lender_availability(l, state.credit_rating, company_prestige)["available"]
    ]


# ---------------------------------------------------------------------------
# Loans
# ---------------------------------------------------------------------------

def _next_season_week(state: GameState) -> int:
    """Absolute week of week 1 of the next season."""
    current = state.absolute_week()
    return current - (int(state.week) - 1) + WEEKS_PER_SEASON


def take_loan(
    state: GameState,
    lender_id: str,
    amount: float,
    duration_seasons: int,
    company_prestige: float = 0.0,
) -> Loan:
    lender = state.lenders.get(lender_id)
    if lender is None:
        raise ValueError("lender not found")
    if lender.blacklisted:
        raise ValueError(f"{lender.name} no longer lends to this company")
    if not lender_availability(lender, state.credit_rating, company_prestige)["available"]:
        raise ValueError(f"credit rating too low for {lender.name}")
    amount = float(amount)
    duration_seasons = int(duration_seasons)
    if not (lender.min_loan_amount <= amount <= lender.max_loan_amount):
        raise ValueError(
            f"amount must be between {lender.min_loan_amount:,.0f} and {lender.max_loan_amount:,.0f}"
        )
    if not (lender.min_duration_seasons <= duration_seasons <= lender.max_duration_seasons):
        raise ValueError(
            f"duration must be between {lender.min_duration_seasons} and {lender.max_duration_seasons} seasons"
        )

    terms = calculate_loan_terms(lender, amount, duration_seasons, state.credit_rating, state.economy_phase)
    loan = Loan(
        loan_id=f"lo_{uuid.uuid4().hex[:10]}",
        lender_id=lender.lender_id,
        lender_name=lender.name,
        lender_type=lender.lender_type,
        principal_amount=amount,
        base_interest_rate=lender.base_interest_rate,
        effective_interest_rate=terms["effective_interest_rate"],
        origination_fee=terms["origination_fee"],
        remaining_balance=amount,
        seasonal_payment=terms["seasonal_payment"],
        seasons_remaining=duration_seasons,
        total_seasons=duration_seasons,
        start_week=state.absolute_week(),
        next_payment_week=_next_season_week(state),
    )
    state.loans[loan.loan_id] = loan
    add_transaction(state, amount, f"Loan received from {lender.name}", CAT_LOAN_RECEIVED)
    add_transaction(state, -loan.origination_fee, f"Origination fee for loan from {lender.name}", CAT_LOAN_FEE)
    add_message(
        state,
        f"Took a loan of {amount:,.0f} from {lender.name} at {loan.effective_interest_rate:.2%} per season.",
        "loans.take_loan",
        "finance",
    )
    return loan


def active_loans(state: GameState) -> List[Loan]:
    return [l for l in state.loans.values() if l.status == "active"]


def repay_loan_in_full(state: GameState, loan_id: str) -> Loan:
    loan = state.loans.get(loan_id)
    if loan is None or loan.status != "active":
        raise ValueError("loan not found")
    require_funds(state, loan.remaining_balance, "repaying loan")
    add_transaction(state, -loan.remaining_balance, f"Early loan payoff to {loan.lender_name}", CAT_LOAN_PAYMENT)
    loan.remaining_balance = 0.0
    loan.seasons_remaining = 0
    loan.status = "paid_off"
    _change_credit(state, "loan_payoff")
    add_message(state, f"Loan from {loan.lender_name} paid off early.", "loans.repay_loan_in_full", "finance")
    return loan


def _seize_vineyards(state: GameState, loan: Loan) -> Dict:
    """Force-sell the cheapest vineyards until half the portfolio value is covered."""

    if not state.vineyards:
        return {"seized": [], "value": 0.0, "proceeds": 0.0}
    total = sum(v.total_value() for v in state.vineyards.values())
    limit = total * float(LOAN_WARNING_PENALTIES["seizure_portfolio_share"])
    seized: List[str] = []
    value = 0.0
    for v in sorted(state.vineyards.values(), key=lambda x: (x.total_value(), x.vineyard_id)):
        if value >= limit:
            break
        seized.append(v.name)
        value += v.total_value()
        del state.vineyards[v.vineyard_id]
        prestige_mod.remove_vineyard_prestige(state, v.vineyard_id)

    proceeds = round(value * SEIZURE_SALE_FACTOR, 2)
    if proceeds > 0:
        add_transaction(
            state, proceeds,
            f"Forced vineyard sale by {loan.lender_name} ({len(seized)} vineyard(s))",
            CAT_VINEYARD_SALE,
        )
    log.warning("seized %d vineyard(s) worth %.2f for loan %s", len(seized), value, loan.loan_id)
    return {"seized": seized, "value": value, "proceeds": proceeds}


def _warning_1(state: GameState, loan: Loan) -> None:
    late_fee = round(loan.seasonal_payment * LOAN_WARNING_PENALTIES["late_fee_percent"])
    loan.remaining_balance += late_fee
    _change_credit(state, "late_payment")
    add_message(
        state,
        f"Missed payment to {loan.lender_name}: late fee of {late_fee:,.0f} added. Warning 1 of 3.",
        "loans.missed_payment", "finance",
    )


def _warning_2(state: GameState, loan: Loan) -> None:
    loan.effective_interest_rate += LOAN_WARNING_PENALTIES["interest_rate_increase"]
    balance_penalty = round(loan.remaining_balance * LOAN_WARNING_PENALTIES["balance_penalty_percent"])
    loan.remaining_balance += balance_penalty
    _change_credit(state, "late_payment")
    prestige_mod.add_penalty_prestige(
        state,
        LOAN_WARNING_PENALTIES["warning_prestige"],
        LOAN_WARNING_PENALTIES["warning_prestige_decay"],
        f"Missed loan payments to {loan.lender_name}",
    )
    add_message(
        state,
        f"Second missed payment to {loan.lender_name}: rate raised, {balance_penalty:,.0f} penalty added. Warning 2 of 3.",
        "loans.missed_payment", "finance",
    )


def _warning_3(state: GameState, loan: Loan) -> None:
    result = _seize_vineyards(state, loan)
    _change_credit(state, "vineyard_seizure")
    if state.money > 0:
        payment = min(float(state.money), loan.remaining_balance)
        add_transaction(state, -payment, f"Emergency loan payment to {loan.lender_name}", CAT_LOAN_PENALTY)
        loan.remaining_balance = max(0.0, loan.remaining_balance - payment)
    add_message(
        state,
        f"Third missed payment to {loan.lender_name}: {len(result['seized'])} vineyard(s) seized. Final warning.",
        "loans.missed_payment", "finance",
    )


def _default(state: GameState, loan: Loan) -> None:
    _warning_3(state, loan)
    loan.status = "defaulted"
    lender = state.lenders.get(loan.lender_id)
    if lender is not None:
        lender.blacklisted = True
    _change_credit(state, "default")
    prestige_mod.add_penalty_prestige(
        state,
        LOAN_WARNING_PENALTIES["default_prestige"],
        LOAN_WARNING_PENALTIES["default_prestige_decay"],
        f"Loan default with {loan.lender_name}",
    )
    log.warning("loan %s from %s defaulted", loan.loan_id, loan.lender_name)
    add_message(state, f"Defaulted on the loan from {loan.lender_name}. The lender will not lend again.", "loans.default", "finance")


def _escalate(state: GameState, loan: Loan) -> None:
    if loan.missed_payments == 1:
        _warning_1(state, loan)
    elif loan.missed_payments == 2:
        _warning_2(state, loan)
    elif loan.missed_payments == 3:
        _warning_3(state, loan)
    else:
        _default(state, loan)


def process_loan_payment(state: GameState, loan: Loan) -> str:
    """Collect one seasonal installment; returns paid|paid_off|partial|missed."""

    due = loan.seasonal_payment
    available = float(state.money)
    loan.next_payment_week = _next_season_week(state)

    if available >= due:
        add_transaction(state, -due, f"Loan payment to {loan.lender_name}", CAT_LOAN_PAYMENT)
        loan.remaining_balance -= due
        loan.seasons_remaining -= 1
        recovered = loan.missed_payments > 0
        loan.missed_payments = max(0, loan.missed_payments - 1)
        if loan.remaining_balance <= 0.005 or loan.seasons_remaining <= 0:
            loan.remaining_balance = 0.0
            loan.seasons_remaining = 0
            loan.missed_payments = 0
            loan.status = "paid_off"
            _change_credit(state, "loan_payoff")
            add_message(state, f"Loan from {loan.lender_name} has been paid off.", "loans.paid_off", "finance")
            return "paid_off"
        _change_credit(state, "on_time_payment")
        if recovered and loan.missed_payments == 0:
            add_message(state, f"Caught up on payments to {loan.lender_name}. Warning status cleared.", "loans.recovered", "finance")
        return "paid"

    if available > 0:
        add_transaction(state, -available, f"Partial loan payment to {loan.lender_name}", CAT_LOAN_PAYMENT)
        loan.remaining_balance -= available
        loan.seasons_remaining = max(0, loan.seasons_remaining - 1)
        outcome = "partial"
    else:
        outcome = "missed"
    loan.missed_payments += 1
    log.info("loan %s %s payment, missed=%d", loan.loan_id, outcome, loan.missed_payments)
    _escalate(state, loan)
    return outcome


def process_seasonal_loan_payments(state: GameState) -> Dict[str, str]:
    now = state.absolute_week()
    results: Dict[str, str] = {}
    for loan in active_loans(state):
        if loan.next_payment_week <= now:
            results[loan.loan_id] = process_loan_payment(state, loan)
    return results


def loan_summary(loan: Loan) -> Dict:
    return {
        "loan_id": loan.loan_id,
        "lender": loan.lender_name,
        "lender_type": loan.lender_type,
        "principal": loan.principal_amount,
        "remaining_balance": round(loan.remaining_balance, 2),
        "seasonal_payment": round(loan.seasonal_payment, 2),
        "effective_interest_rate": loan.effective_interest_rate,
        "seasons_remaining": loan.seasons_remaining,
        "missed_payments": loan.missed_payments,
        "status": loan.status,
    }
