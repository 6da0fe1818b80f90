from __future__ import annotations

import logging
import math
import random
import uuid
from typing import Dict, List, Optional

from winesim import oxidation
from winesim import prestige as prestige_mod
from winesim.constants import (
    BUSINESS_SUFFIXES,
    CUSTOMER_REGIONAL_DATA,
    CUSTOMER_TYPE_CONFIG,
    CUSTOMERS_PER_COUNTRY,
    ECONOMY_SALES_MULTIPLIERS,
    FIRST_NAMES,
    LAST_NAMES,
    MAX_WINE_PRICE,
    ORDER_CHANCE,
    RELATIONSHIP_BOOST_DECAY,
)
from winesim.curves import clamp, normalize_prestige_1000, order_amount_multiplier, skewed_multiplier
from winesim.finance import CAT_WINE_SALES, add_transaction
from winesim.models import Customer, GameState, RelationshipBoost, WineBatch, WineOrder
from winesim.notifications import add_message

log = logging.getLogger(__name__)

BASE_RELATIONSHIP = 0.1
MIN_BOOST_AMOUNT = 0.001
MULTIPLE_ORDER_FALLOFF = 0.7


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------

def calculate_customer_relationship(market_share: float, company_prestige: float = 1.0) -> float:
    """Big customers (high market share) are harder to impress than small ones."""

    prestige_part = normalize_prestige_1000(company_prestige) * 25.0
    share = max(0.0, float(market_share))
    impact = 1.0 + 0.7 * share ** 0.25 + share ** 0.9
    return max(BASE_RELATIONSHIP, BASE_RELATIONSHIP + prestige_part / impact)


def generate_customer_name(country: str, customer_type: str, rng: random.Random) -> str:
    gender = "female" if rng.random() < 0.5 else "male"
    first = rng.choice(FIRST_NAMES[country][gender])
    last = rng.choice(LAST_NAMES[country])
    suffix = rng.choice(BUSINESS_SUFFIXES[customer_type][country])
    if customer_type == "Private Collector":
        return f"{first} {last} {suffix}"
    if customer_type == "Restaurant" and country == "United States":
        return f"{last}'s {suffix}"
    return f"{last} {suffix}"


def _pick_customer_type(country: str, rng: random.Random) -> str:
    weights = CUSTOMER_REGIONAL_DATA[country]["type_weights"]
    types = list(weights)
    return rng.choices(types, weights=[weights[t] for t in types], k=1)[0]


def create_customer(
    rng: random.Random,
    country: str,
    customer_type: Optional[str] = None,
    company_prestige: float = 1.0,
) -> Customer:
    regional = CUSTOMER_REGIONAL_DATA.get(country)
    if regional is None:
        raise ValueError(f"unknown customer country: {country}")
    ctype = customer_type or _pick_customer_type(country, rng)
    if ctype not in CUSTOMER_TYPE_CONFIG:
        raise ValueError(f"unknown customer type: {ctype}")

    market_share = min(0.95, skewed_multiplier(rng.random()))
    lo, hi = CUSTOMER_TYPE_CONFIG[ctype]["price_range"]
    base = rng.uniform(lo, hi)
    multiplier = base * regional["purchasing_power"] * regional["wine_tradition"] * (1.0 - market_share)
    return Customer(
        customer_id=f"cu_{uuid.uuid4().hex[:10]}",
        name=generate_customer_name(country, ctype, rng),
        country=country,
        customer_type=ctype,
        purchasing_power=float(regional["purchasing_power"]),
        wine_tradition=float(regional["wine_tradition"]),
        market_share=market_share,
        price_multiplier=clamp(multiplier, 0.1, 2.0),
        relationship=calculate_customer_relationship(market_share, company_prestige),
    )


def generate_customers(
    state: GameState,
    rng: random.Random,
    per_country: int = CUSTOMERS_PER_COUNTRY,
    company_prestige: float = 1.0,
) -> List[Customer]:
    customers = [
        create_customer(rng, country, company_prestige=company_prestige)
        for country in CUSTOMER_REGIONAL_DATA
        for _ in range(per_country)
    ]
    state.customers = {c.customer_id: c for c in customers}
    log.info("generated %d customers", len(customers))
    return customers


# ---------------------------------------------------------------------------
# Relationship boosts
# ---------------------------------------------------------------------------

def relationship_boost_amount(order_value: float, company_prestige: float) -> float:
    prestige_factor = 1.0 / (1.0 + float(company_prestige) / 100.0)
    return float(order_value) / 10_000.0 * prestige_factor * 0.1


def add_relationship_boost(
    state: GameState, customer_id: str, order_value: float, company_prestige: float, description: str
) -> RelationshipBoost:
    boost = RelationshipBoost(
        boost_id=f"rb_{uuid.uuid4().hex[:10]}",
        customer_id=customer_id,
        amount=relationship_boost_amount(order_value, company_prestige),
        decay_rate=RELATIONSHIP_BOOST_DECAY,
        created_week=state.absolute_week(),
        description=description,
    )
    state.relationship_boosts[boost.boost_id] = boost
    return boost


def customer_relationship_boosts(state: GameState, customer_id: str) -> float:
    return float(sum(b.amount for b in state.relationship_boosts.values() if b.customer_id == customer_id))


def decay_relationship_boosts(state: GameState) -> int:
    expired = []
    for b in state.relationship_boosts.values():
        b.amount = float(b.amount) * float(b.decay_rate)
        if abs(b.amount) < MIN_BOOST_AMOUNT:
            expired.append(b.boost_id)
    for bid in expired:
        del state.relationship_boosts[bid]
    return len(expired)


def current_relationship(state: GameState, customer: Customer, company_prestige: float) -> float:
    base = calculate_customer_relationship(customer.market_share, company_prestige)
    return base + customer_relationship_boosts(state, customer.customer_id)


def update_customer_relationships(state: GameState, company_prestige: float) -> None:
    for c in state.customers.values():
        c.relationship = current_relationship(state, c, company_prestige)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

def order_chance(company_prestige: float, pending_orders: int, economy_phase: str = "Stable") -> float:
    """Weekly chance that a customer shows up at all."""

    p = max(0.0, float(company_prestige))
    lo, mid, hi = ORDER_CHANCE["min"], ORDER_CHANCE["mid"], ORDER_CHANCE["max"]
    threshold = ORDER_CHANCE["mid_prestige"]
    if p <= threshold:
        base = lo + p / threshold * (mid - lo)
    else:
        base = mid + math.atan((p - threshold) / ORDER_CHANCE["diminishing_factor"]) / math.pi * (hi - mid)
    penalty = ORDER_CHANCE["pending_order_penalty"] ** max(0, int(pending_orders))
    frequency = ECONOMY_SALES_MULTIPLIERS.get(economy_phase, ECONOMY_SALES_MULTIPLIERS["Stable"])["frequency"]
    return clamp(base * penalty * frequency, 0.0, 1.0)


def rejection_probability(bid_price: float, base_price: float) -> float:
    if base_price <= 0 or bid_price <= base_price:
        return 0.0
    premium = float(bid_price) / float(base_price)
    return skewed_multiplier(min(1.0, 1.0 - 1.0 / premium + 0.4))


def pending_orders(state: GameState) -> List[WineOrder]:
    return [o for o in state.orders.values() if o.status == "pending"]


def available_wines(state: GameState) -> List[WineBatch]:
    return sorted(
        (b for b in state.batches.values() if b.state == "bottled" and b.quantity >= 1),
        key=lambda b: b.batch_id,
    )


def generate_order(
    state: GameState,
    rng: random.Random,
    customer: Customer,
    batch: WineBatch,
    company_prestige: float,
    multiple_order_modifier: float = 1.0,
) -> Optional[WineOrder]:
    """One customer looks at one wine; returns the order or None if they walk away."""

    economy = ECONOMY_SALES_MULTIPLIERS.get(state.economy_phase, ECONOMY_SALES_MULTIPLIERS["Stable"])
    asking = float(batch.asking_price if batch.asking_price is not None else batch.estimated_price)
    if asking <= 0:
        return None
    relationship = current_relationship(state, customer, company_prestige)

    multiplier = customer.price_multiplier * (1.0 + relationship * 0.001) * economy["price_tolerance"]
    multiplier *= oxidation.oxidation_price_factor(batch, customer.customer_type)
    bid = round(asking * multiplier, 2)

    reject = rejection_probability(bid, batch.estimated_price)
    reject *= max(0.1, 1.0 - relationship * 0.005)
    if reject == 0:
        reject = 1.0 - multiple_order_modifier
    else:
        reject = reject / max(0.01, multiple_order_modifier)
    reject = clamp(reject, 0.0, 1.0)
    if rng.random() < reject:
        add_message(
            state,
            f"{customer.name} from {customer.country} was interested in {batch.name()}, but rejected our asking price.",
            "sales.generate_order", "sales",
        )
        return None

    lo, hi = CUSTOMER_TYPE_CONFIG[customer.customer_type]["quantity_range"]
    base_qty = rng.randint(int(lo), int(hi))
    share_factor = (1.0 + customer.market_share) * (1.0 + relationship * 0.002)
    qty = int(math.floor(
        base_qty
        * order_amount_multiplier(bid, asking)
        * customer.purchasing_power
        * customer.wine_tradition
        * share_factor
        * economy["quantity"]
    ))
    if qty < lo:
        add_message(
            state,
            f"{customer.name} from {customer.country} wanted {batch.name()}, but could not afford a worthwhile amount.",
            "sales.generate_order", "sales",
        )
        return None

    order = WineOrder(
        order_id=f"wo_{uuid.uuid4().hex[:10]}",
        customer_id=customer.customer_id,
        customer_name=customer.name,
        customer_country=customer.country,
        customer_type=customer.customer_type,
        batch_id=batch.batch_id,
        wine_name=batch.name(),
        requested_quantity=qty,
        offered_price=bid,
        asking_price_at_order=asking,
        total_value=round(min(MAX_WINE_PRICE, qty * bid), 2),
        ordered_week=state.absolute_week(),
        customer_relationship=relationship,
    )
    state.orders[order.order_id] = order
    if not customer.active:
        customer.active = True
        customer.relationship = relationship
    return order


def generate_weekly_orders(state: GameState, rng: random.Random, company_prestige: float) -> List[WineOrder]:
    """Roll for a customer this week; a customer browses every wine in stock."""

    wines = available_wines(state)
    if not wines or not state.customers:
        return []
    chance = order_chance(company_prestige, len(pending_orders(state)), state.economy_phase)
    if rng.random() >= chance:
        return []

    customer = state.customers[rng.choice(sorted(state.customers))]
    economy = ECONOMY_SALES_MULTIPLIERS.get(state.economy_phase, ECONOMY_SALES_MULTIPLIERS["Stable"])
    orders: List[WineOrder] = []
    for batch in wines:
        modifier = min(1.0, economy["multiple_order"] * MULTIPLE_ORDER_FALLOFF ** len(orders))
        order = generate_order(state, rng, customer, batch, company_prestige, modifier)
        if order is not None:
            orders.append(order)
    if orders:
        names = ", ".join(o.wine_name for o in orders)
        add_message(state, f"{customer.name} from {customer.country} placed an order for {names}.", "sales.generate_weekly_orders", "sales")
        log.info("customer %s placed %d order(s)", customer.customer_id, len(orders))
    return orders


def _get_pending_order(state: GameState, order_id: str) -> WineOrder:
    order = state.orders.get(order_id)
    if order is None:
        raise ValueError("order not found")
    if order.status != "pending":
        raise ValueError(f"order is already {order.status}")
    return order


def fulfill_order(state: GameState, order_id: str) -> WineOrder:
    order = _get_pending_order(state, order_id)
    batch = state.batches.get(order.batch_id)
    if batch is None or batch.state != "bottled":
        raise ValueError("wine batch not available")
    qty = int(min(order.requested_quantity, math.floor(batch.quantity)))
    if qty <= 0:
        raise ValueError("no bottles left to fulfill this order")

    value = round(min(MAX_WINE_PRICE, qty * order.offered_price), 2)
    prestige_now = prestige_mod.current_prestige(state)
    batch.quantity = float(batch.quantity) - qty
    add_transaction(state, value, f"Wine sale: {order.wine_name} ({qty} bottles)", CAT_WINE_SALES)

    prestige_mod.add_sale_prestige(state, value, order.wine_name)
    if batch.vineyard_id in state.vineyards:
        prestige_mod.add_vineyard_sale_prestige(state, batch.vineyard_id, value, order.wine_name)
    oxidation.add_oxidized_sale_prestige(state, batch, value, qty)
    add_relationship_boost(state, order.customer_id, value, prestige_now, f"Order: {order.wine_name}")

    order.fulfilled_quantity = qty
    order.fulfilled_value = value
    order.status = "partially_fulfilled" if qty < order.requested_quantity else "fulfilled"
    add_message(state, f"Sold {qty} bottles of {order.wine_name} to {order.customer_name} for {value:,.2f}.", "sales.fulfill_order", "sales")
    return order


def reject_order(state: GameState, order_id: str) -> WineOrder:
    order = _get_pending_order(state, order_id)
    order.status = "rejected"
    log.info("order %s rejected", order.order_id)
    return order


def order_summary(order: WineOrder) -> Dict:
    return {
        "order_id": order.order_id,
        "customer": order.customer_name,
        "country": order.customer_country,
        "customer_type": order.customer_type,
        "wine": order.wine_name,
        "quantity": order.requested_quantity,
        "offered_price": order.offered_price,
        "asking_price": order.asking_price_at_order,
        "total_value": order.total_value,
        "status": order.status,
    }
