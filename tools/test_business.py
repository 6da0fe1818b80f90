from __future__ import annotations

import random
import tempfile
from pathlib import Path

from winesim import highscores, loans, sales, staff
from winesim.constants import STAFF_SKILLS
from winesim.engine import rng_from_state
from winesim.finance import CAT_VINEYARD_SALE, calculate_company_value
from winesim.highscores import HighscoreEntry
from winesim.models import Customer, GameState, Vineyard, WineBatch
from winesim.presets import new_game
from winesim.storage import load_state, save_state


def _assert(cond: bool, msg: str) -> None:
    if not cond:
        raise AssertionError(msg)


def _make_min_state(money: float = 1_000_000.0) -> GameState:
    s = GameState()
    s.money = float(money)
    lender = loans.create_lender(random.Random(1), "Bank")
    lender.lender_id = "L1"
    lender.risk_tolerance = 0.4
    s.lenders[lender.lender_id] = lender
    return s


def _add_vineyard(s: GameState) -> Vineyard:
    v = Vineyard(
        vineyard_id="V1",
        name="Test Vineyard",
        country="France",
        region="Bordeaux",
        hectares=2.0,
        altitude=50,
        aspect="South",
        soil=["Clay"],
        land_value=200_000.0,
    )
    s.vineyards[v.vineyard_id] = v
    return v


def _add_wine(s: GameState, bottles: float = 10.0) -> WineBatch:
    b = WineBatch(
        batch_id="B1",
        vineyard_id="V1",
        vineyard_name="Test Vineyard",
        grape="Chardonnay",
        grape_color="white",
        vintage=2024,
        quantity=float(bottles),
        state="bottled",
        estimated_price=20.0,
        asking_price=20.0,
    )
    s.batches[b.batch_id] = b
    return b


def _add_customer(s: GameState) -> Customer:
    c = Customer(
        customer_id="C1",
        name="Dupont Collection",
        country="France",
        customer_type="Private Collector",
        purchasing_power=0.85,
        wine_tradition=1.10,
        market_share=0.5,
        price_multiplier=0.5,
    )
    s.customers[c.customer_id] = c
    return c


# ---------------------------------------------------------------------------
# Loans
# ---------------------------------------------------------------------------

def test_loan_math() -> None:
    _assert(loans.calculate_seasonal_payment(1000.0, 0.0, 4) == 250.0, "zero-rate loan splits principal evenly")
    p = loans.calculate_seasonal_payment(100_000.0, 0.05, 8)
    _assert(p * 8 > 100_000.0, "interest-bearing loan repays more than the principal")
    try:
        loans.calculate_seasonal_payment(1000.0, 0.05, 0)
    except ValueError:
        pass
    else:
        raise AssertionError("zero-season loan should be rejected")

    r = loans.calculate_effective_interest_rate(0.05, "Stable", "Bank", 1.0)
    _assert(abs(r - 0.05 * 0.9 * 0.8) < 1e-12, "perfect credit gives the 0.8 credit modifier")
    worse = loans.calculate_effective_interest_rate(0.05, "Crash", "Bank", 0.2)
    _assert(worse > r, "bad economy and credit raise the rate")
    longer = loans.calculate_effective_interest_rate(0.05, "Stable", "Bank", 1.0, 60)
    _assert(longer < r, "long loans get a lower rate")

    s = _make_min_state()
    lender = s.lenders["L1"]
    fee = loans.calculate_origination_fee(100_000.0, lender, 0.5, 8)
    _assert(lender.origination_fee["min_fee"] - 0.5 <= fee <= lender.origination_fee["max_fee"] + 0.5, "fee is clamped to lender bounds")
    terms = loans.calculate_loan_terms(lender, 100_000.0, 8, 0.5, "Stable")
    _assert(abs(terms["total_interest"] - (terms["total_repayment"] - 100_000.0)) < 1e-6, "interest is repayment minus principal")


def test_lender_availability_uses_prestige() -> None:
    s = _make_min_state()
    lender = s.lenders["L1"]
    lender.risk_tolerance = 0.6
    _assert(not loans.lender_availability(lender, 0.5, 0.0)["available"], "credit below risk tolerance")
    _assert(loans.lender_availability(lender, 0.5, 1000.0)["available"], "prestige lowers the requirement")
    lender.blacklisted = True
    _assert(not loans.lender_availability(lender, 1.0, 1000.0)["available"], "blacklisted lenders never lend")


def test_take_and_repay_loan() -> None:
    s = _make_min_state(money=10_000.0)
    loan = loans.take_loan(s, "L1", 100_000.0, 8)
    _assert(abs(s.money - (10_000.0 + 100_000.0 - loan.origination_fee)) < 1e-6, "principal in, fee out")
    _assert(loan.next_payment_week == 13, "first payment is due at the start of next season")
    _assert(len(s.transactions) == 2, "loan and fee are recorded")

    try:
        loans.take_loan(s, "L1", 1.0, 8)
    except ValueError:
        pass
    else:
        raise AssertionError("amount below lender minimum should be rejected")

    s.money += 1_000_000.0
    out = loans.process_loan_payment(s, loan)
    _assert(out == "paid" and loan.seasons_remaining == 7, "regular payment")
    _assert(abs(s.credit_rating - 0.505) < 1e-9, "on-time payment improves credit")

    loans.repay_loan_in_full(s, loan.loan_id)
    _assert(loan.status == "paid_off" and loan.remaining_balance == 0.0, "early payoff closes the loan")
    _assert(loans.active_loans(s) == [], "no active loans left")


def test_missed_payments_escalate_to_default() -> None:
    s = _make_min_state(money=0.0)
    loan = loans.take_loan(s, "L1", 100_000.0, 8)
    s.money = 0.0

    balance = loan.remaining_balance
    _assert(loans.process_loan_payment(s, loan) == "missed", "no money means a missed payment")
    _assert(loan.missed_payments == 1 and loan.remaining_balance > balance, "late fee added to balance")

    rate = loan.effective_interest_rate
    loans.process_loan_payment(s, loan)
    _assert(abs(loan.effective_interest_rate - (rate + 0.005)) < 1e-12, "second miss raises the rate")
    _assert(any(e.event_type == "penalty" and e.amount < 0 for e in s.prestige_events.values()), "second miss costs prestige")

    loans.process_loan_payment(s, loan)
    _assert(loan.status == "active" and loan.missed_payments == 3, "third miss is the final warning")

    loans.process_loan_payment(s, loan)
    _assert(loan.status == "defaulted", "fourth miss defaults")
    _assert(s.lenders["L1"].blacklisted, "lender blacklists the company")
    _assert(s.credit_rating == 0.0, "credit rating collapses on default")
    _assert(loans.process_seasonal_loan_payments(s) == {}, "defaulted loans are not collected again")

    try:
        loans.take_loan(s, "L1", 100_000.0, 8)
    except ValueError:
        pass
    else:
        raise AssertionError("blacklisted lender should refuse")


def test_third_miss_seizes_vineyards() -> None:
    s = _make_min_state(money=0.0)
    _add_vineyard(s)
    loan = loans.take_loan(s, "L1", 100_000.0, 8)
    s.money = 0.0
    s.transactions.clear()
    loan.missed_payments = 2

    loans.process_loan_payment(s, loan)
    _assert("V1" not in s.vineyards, "cheapest vineyard is seized")
    sale = [t for t in s.transactions if t.category == CAT_VINEYARD_SALE]
    _assert(len(sale) == 1 and abs(sale[0].amount - 300_000.0) < 1e-6, "seized land sells at 75% of value")
    _assert(loan.remaining_balance == 0.0, "proceeds pay down the loan")


# ---------------------------------------------------------------------------
# Staff
# ---------------------------------------------------------------------------

def test_staff_wages_and_hiring() -> None:
    mid = {k: 0.5 for k in STAFF_SKILLS}
    _assert(staff.calculate_wage(mid) == 1000.0, "average skill 0.5 earns 1000/week")
    _assert(staff.calculate_wage(mid, ["field", "winery"]) == 1690.0, "each specialization adds 30%")

    s = _make_min_state()
    cands = staff.generate_staff_candidates(s, random.Random(3), 3, 0.5, ["sales"])
    _assert(len(cands) == 3 and all("sales" in c.specializations for c in cands), "candidates carry specializations")

    c = cands[0]
    money = s.money
    staff.hire_staff(s, c.staff_id)
    _assert(c.staff_id in s.staff and abs(money - s.money - c.wage) < 1e-6, "hiring charges one week's wage")
    _assert(all(x.staff_id != c.staff_id for x in s.staff_candidates), "hired candidate leaves the pool")

    paid = staff.pay_seasonal_wages(s)
    _assert(abs(paid - c.wage * 12) < 1e-6, "a season is twelve weeks of wages")

    staff.fire_staff(s, c.staff_id)
    _assert(not s.staff, "fired staff is removed")
    try:
        staff.hire_staff(s, "missing")
    except ValueError:
        pass
    else:
        raise AssertionError("unknown candidate should be rejected")


# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------

def test_customer_relationship_and_order_chance() -> None:
    _assert(sales.calculate_customer_relationship(0.0, 0.0) == 0.1, "no prestige gives the base relationship")
    small = sales.calculate_customer_relationship(0.05, 100.0)
    big = sales.calculate_customer_relationship(0.9, 100.0)
    _assert(small > big > 0.1, "large customers are harder to impress")

    _assert(abs(sales.order_chance(0.0, 0) - 0.05) < 1e-12, "minimum order chance")
    _assert(abs(sales.order_chance(100.0, 0) - 0.15) < 1e-12, "mid order chance at 100 prestige")
    _assert(sales.order_chance(10_000.0, 0) < 0.35, "order chance approaches but stays below max")
    _assert(abs(sales.order_chance(100.0, 2) - 0.15 * 0.64) < 1e-12, "pending orders reduce the chance")
    _assert(sales.rejection_probability(10.0, 20.0) == 0.0, "bids at or below value are never rejected")

    rng = random.Random(5)
    c = sales.create_customer(rng, "Italy")
    _assert(0.1 <= c.price_multiplier <= 2.0 and 0.0 <= c.market_share <= 0.95, "customer parameters are bounded")


def test_order_fulfillment() -> None:
    s = _make_min_state()
    batch = _add_wine(s, bottles=10.0)
    customer = _add_customer(s)

    order = sales.generate_order(s, random.Random(2), customer, batch, 1.0)
    _assert(order is not None, "discounted bid should produce an order")
    _assert(customer.active, "ordering activates the customer")
    _assert(order.offered_price < batch.asking_price, "price multiplier below 1 bids under asking")

    money = s.money
    sales.fulfill_order(s, order.order_id)
    qty = min(order.requested_quantity, 10)
    _assert(order.fulfilled_quantity == qty and batch.quantity == 10.0 - qty, "bottles leave the cellar")
    _assert(abs(s.money - money - order.fulfilled_value) < 1e-6, "sale income is booked")
    expected = "partially_fulfilled" if order.requested_quantity > 10 else "fulfilled"
    _assert(order.status == expected, "status reflects how much was delivered")
    _assert(sales.customer_relationship_boosts(s, "C1") > 0, "a sale boosts the relationship")
    _assert(any(e.event_type == "sale" for e in s.prestige_events.values()), "a sale adds prestige")

    try:
        sales.fulfill_order(s, order.order_id)
    except ValueError:
        pass
    else:
        raise AssertionError("an order can only be fulfilled once")


def test_relationship_boost_decay() -> None:
    s = _make_min_state()
    _add_customer(s)
    b = sales.add_relationship_boost(s, "C1", 100_000.0, 0.0, "big order")
    _assert(abs(b.amount - 1.0) < 1e-12, "100k order at zero prestige boosts by 1.0")
    sales.decay_relationship_boosts(s)
    _assert(abs(s.relationship_boosts[b.boost_id].amount - 0.95) < 1e-12, "boosts decay 5% a week")

    tiny = sales.add_relationship_boost(s, "C1", 10.0, 0.0, "small order")
    sales.decay_relationship_boosts(s)
    _assert(tiny.boost_id not in s.relationship_boosts, "tiny boosts are dropped")


# ---------------------------------------------------------------------------
# Finance, highscores, persistence
# ---------------------------------------------------------------------------

def test_company_value() -> None:
    s = _make_min_state(money=1_000.0)
    _add_vineyard(s)
    _add_wine(s, bottles=10.0)
    _assert(abs(calculate_company_value(s) - (1_000.0 + 400_000.0 + 200.0)) < 1e-6, "money + land + bottled wine")


def test_highscores_keep_best() -> None:
    with tempfile.TemporaryDirectory() as td:
        p = Path(td) / "highscores.json"
        _assert(highscores.submit_highscore(HighscoreEntry("A", "Alpha", "company_value", 100.0), p), "first score is stored")
        _assert(not highscores.submit_highscore(HighscoreEntry("A", "Alpha", "company_value", 50.0), p), "worse score is ignored")
        _assert(highscores.submit_highscore(HighscoreEntry("A", "Alpha", "company_value", 150.0), p), "better score replaces")
        highscores.submit_highscore(HighscoreEntry("B", "Beta", "company_value", 120.0), p)

        top = highscores.get_highscores("company_value", 10, p)
        _assert([e.company_id for e in top] == ["A", "B"], "highest value ranks first")
        _assert(highscores.get_company_ranking("B", "company_value", p) == {"position": 2, "total": 2}, "ranking position")

        highscores.submit_highscore(HighscoreEntry("A", "Alpha", "lowest_wine_price", 10.0), p)
        _assert(not highscores.submit_highscore(HighscoreEntry("A", "Alpha", "lowest_wine_price", 12.0), p), "higher price is worse")
        _assert(highscores.submit_highscore(HighscoreEntry("A", "Alpha", "lowest_wine_price", 8.0), p), "lower price is better")

        try:
            highscores.get_highscores("fastest_tractor", 10, p)
        except ValueError:
            pass
        else:
            raise AssertionError("unknown score type should be rejected")


def test_state_persistence() -> None:
    s = new_game(company_name="Persisted Winery", seed=3)
    with tempfile.TemporaryDirectory() as td:
        p = Path(td) / "state.json"
        save_state(s, p)
        s2 = load_state(p)
    _assert(s2.company_name == "Persisted Winery" and s2.money == s.money, "basic fields survive")
    _assert(set(s2.lenders) == set(s.lenders) and set(s2.customers) == set(s.customers), "lenders and customers survive")
    _assert(len(s2.land_offers) == len(s.land_offers), "land offers survive")
    _assert(rng_from_state(s2).random() == rng_from_state(s).random(), "rng state survives")


def main() -> None:
    tests = [
        test_loan_math,
        test_lender_availability_uses_prestige,
        test_take_and_repay_loan,
        test_missed_payments_escalate_to_default,
        test_third_miss_seizes_vineyards,
        test_staff_wages_and_hiring,
        test_customer_relationship_and_order_chance,
        test_order_fulfillment,
        test_relationship_boost_decay,
        test_company_value,
        test_highscores_keep_best,
        test_state_persistence,
    ]
    for t in tests:
        t()
        print(f"OK  {t.__name__}")
    print(f"ALL OK ({len(tests)} tests)")


if __name__ == "__main__":
    main()
