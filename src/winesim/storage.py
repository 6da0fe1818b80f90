from __future__ import annotations

import csv
import json
import logging
import os
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List

from winesim.models import (
    Activity,
    CHARACTERISTICS,
    Customer,
    GameState,
    Lender,
    Loan,
    Notification,
    PrestigeEvent,
    RelationshipBoost,
    Staff,
    Transaction,
    Vineyard,
    WeekResult,
    WineBatch,
    WineOrder,
)

log = logging.getLogger(__name__)

STATE_VERSION = "1.0.0"

LEDGER_COLUMNS = [
    "absolute_week",
    "week",
    "season",
    "year",
    "amount",
    "category",
    "description",
]


def project_root() -> Path:
    # .../src/winesim/storage.py -> parents[2] == repo root
    return Path(__file__).resolve().parents[2]


def data_dir() -> Path:
    override = os.environ.get("WINESIM_DATA_DIR")
    p = Path(override) if override else project_root() / "data"
    p.mkdir(parents=True, exist_ok=True)
    return p


def state_path() -> Path:
    return data_dir() / "state.json"


def ledger_path() -> Path:
    return data_dir() / "ledger.csv"


def highscores_path() -> Path:
    return data_dir() / "highscores.json"


def snapshots_dir() -> Path:
    p = data_dir() / "snapshots"
    p.mkdir(parents=True, exist_ok=True)
    return p


def snapshot_path(abs_week: int) -> Path:
    return snapshots_dir() / f"state_week_{int(abs_week):06d}.json"


def save_snapshot(state: GameState) -> None:
    # Snapshot is a full state.json payload so it can be loaded via load_state().
    save_state(state, path=snapshot_path(state.absolute_week()))


def truncate_ledger_before_week(target_week: int) -> None:
    """Keep ledger rows with absolute_week < target_week."""

    p = ledger_path()
    if not p.exists():
        return

    with p.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        fieldnames = list(reader.fieldnames or LEDGER_COLUMNS)
        rows = list(reader)

    kept = []
    for r in rows:
        try:
            w = int(r.get("absolute_week") or 0)
        except ValueError:
            w = 0
        if w < int(target_week):
            kept.append(r)

    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        w.writeheader()
        w.writerows(kept)


def reset_data_files(include_highscores: bool = False) -> None:
    """Delete persisted state/ledger/snapshots. Highscores survive unless asked."""

    files = [state_path(), ledger_path()]
    if include_highscores:
        files.append(highscores_path())
    for fp in files:
        fp.unlink(missing_ok=True)

    for p in snapshots_dir().glob("state_week_*.json"):
        p.unlink(missing_ok=True)
    log.info("reset data files in %s", data_dir())


def save_state(state: GameState, path: Path | None = None) -> None:
    p = path or state_path()
    payload = {
        "version": STATE_VERSION,
        "state": asdict(state),
    }
    p.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def _floats(d: Any) -> Dict[str, float]:
    if not isinstance(d, dict):
        return {}
    return {str(k): float(v) for k, v in d.items()}


def _opt_float(v: Any) -> float | None:
    return None if v is None else float(v)


def _load_vineyard(vd: Dict[str, Any], vid: str) -> Vineyard:
    age = vd.get("vine_age")
    return Vineyard(
        vineyard_id=str(vd.get("vineyard_id", vid)),
        name=str(vd.get("name", vid)),
        country=str(vd.get("country", "")),
        region=str(vd.get("region", "")),
        hectares=float(vd.get("hectares", 0.0)),
        altitude=int(vd.get("altitude", 0)),
        aspect=str(vd.get("aspect", "South")),
        soil=[str(s) for s in (vd.get("soil") or [])],
        land_value=float(vd.get("land_value", 0.0)),
        grape=vd.get("grape"),
        vine_age=None if age is None else int(age),
        density=int(vd.get("density", 0)),
        status=str(vd.get("status", "Barren")),
        ripeness=float(vd.get("ripeness", 0.0)),
        vineyard_health=float(vd.get("vineyard_health", 0.6)),
        vine_yield=float(vd.get("vine_yield", 0.02)),
        vineyard_prestige=float(vd.get("vineyard_prestige", 0.0)),
        purchase_price=float(vd.get("purchase_price", 0.0)),
        acquired_week=int(vd.get("acquired_week", 0)),
    )


def _load_batch(bd: Dict[str, Any], bid: str) -> WineBatch:
    chars = _floats(bd.get("characteristics"))
    for k in CHARACTERISTICS:
        chars.setdefault(k, 0.5)
    return WineBatch(
        batch_id=str(bd.get("batch_id", bid)),
        vineyard_id=str(bd.get("vineyard_id", "")),
        vineyard_name=str(bd.get("vineyard_name", "")),
        grape=str(bd.get("grape", "")),
        grape_color=str(bd.get("grape_color", "red")),
        vintage=int(bd.get("vintage", 0)),
        quantity=float(bd.get("quantity", 0.0)),
        state=str(bd.get("state", "grapes")),
        characteristics=chars,
        quality=float(bd.get("quality", 0.5)),
        balance=float(bd.get("balance", 0.5)),
        value_index=float(bd.get("value_index", 0.0)),
        fermentation_progress=float(bd.get("fermentation_progress", 0.0)),
        fermentation_method=str(bd.get("fermentation_method", "")),
        fermentation_temperature=str(bd.get("fermentation_temperature", "")),
        crushing_method=str(bd.get("crushing_method", "")),
        estimated_price=float(bd.get("estimated_price", 0.0)),
        asking_price=_opt_float(bd.get("asking_price")),
        harvest_week=int(bd.get("harvest_week", 0)),
        prone_to_oxidation=float(bd.get("prone_to_oxidation", 0.5)),
        oxidation=float(bd.get("oxidation", 0.0)),
        is_oxidized=bool(bd.get("is_oxidized", False)),
    )


def _load_staff(sd: Dict[str, Any], sid: str) -> Staff:
    return Staff(
        staff_id=str(sd.get("staff_id", sid)),
        name=str(sd.get("name", sid)),
        nationality=str(sd.get("nationality", "")),
        skill_level=float(sd.get("skill_level", 0.0)),
        skills=_floats(sd.get("skills")),
        specializations=[str(s) for s in (sd.get("specializations") or [])],
        wage=float(sd.get("wage", 0.0)),
        hire_week=int(sd.get("hire_week", 0)),
        workforce=int(sd.get("workforce", 50)),
    )


def _load_lender(ld: Dict[str, Any], lid: str) -> Lender:
    return Lender(
        lender_id=str(ld.get("lender_id", lid)),
        name=str(ld.get("name", lid)),
        lender_type=str(ld.get("lender_type", "Bank")),
        base_interest_rate=float(ld.get("base_interest_rate", 0.0)),
        min_loan_amount=float(ld.get("min_loan_amount", 0.0)),
        max_loan_amount=float(ld.get("max_loan_amount", 0.0)),
        min_duration_seasons=int(ld.get("min_duration_seasons", 1)),
        max_duration_seasons=int(ld.get("max_duration_seasons", 1)),
        risk_tolerance=float(ld.get("risk_tolerance", 0.5)),
        flexibility=float(ld.get("flexibility", 0.5)),
        origination_fee=_floats(ld.get("origination_fee")),
        blacklisted=bool(ld.get("blacklisted", False)),
    )


def _load_loan(ld: Dict[str, Any], lid: str) -> Loan:
    return Loan(
        loan_id=str(ld.get("loan_id", lid)),
        lender_id=str(ld.get("lender_id", "")),
        lender_name=str(ld.get("lender_name", "")),
        lender_type=str(ld.get("lender_type", "")),
        principal_amount=float(ld.get("principal_amount", 0.0)),
        base_interest_rate=float(ld.get("base_interest_rate", 0.0)),
        effective_interest_rate=float(ld.get("effective_interest_rate", 0.0)),
        origination_fee=float(ld.get("origination_fee", 0.0)),
        remaining_balance=float(ld.get("remaining_balance", 0.0)),
        seasonal_payment=float(ld.get("seasonal_payment", 0.0)),
        seasons_remaining=int(ld.get("seasons_remaining", 0)),
        total_seasons=int(ld.get("total_seasons", 0)),
        start_week=int(ld.get("start_week", 0)),
        next_payment_week=int(ld.get("next_payment_week", 0)),
        missed_payments=int(ld.get("missed_payments", 0)),
        status=str(ld.get("status", "active")),
    )


def _load_customer(cd: Dict[str, Any], cid: str) -> Customer:
    return Customer(
        customer_id=str(cd.get("customer_id", cid)),
        name=str(cd.get("name", cid)),
        country=str(cd.get("country", "")),
        customer_type=str(cd.get("customer_type", "Restaurant")),
        purchasing_power=float(cd.get("purchasing_power", 1.0)),
        wine_tradition=float(cd.get("wine_tradition", 1.0)),
        market_share=float(cd.get("market_share", 0.0)),
        price_multiplier=float(cd.get("price_multiplier", 1.0)),
        relationship=float(cd.get("relationship", 0.1)),
        active=bool(cd.get("active", False)),
    )


def _load_order(od: Dict[str, Any], oid: str) -> WineOrder:
    return WineOrder(
        order_id=str(od.get("order_id", oid)),
        customer_id=str(od.get("customer_id", "")),
        customer_name=str(od.get("customer_name", "")),
        customer_country=str(od.get("customer_country", "")),
        customer_type=str(od.get("customer_type", "")),
        batch_id=str(od.get("batch_id", "")),
        wine_name=str(od.get("wine_name", "")),
        requested_quantity=int(od.get("requested_quantity", 0)),
        offered_price=float(od.get("offered_price", 0.0)),
        asking_price_at_order=float(od.get("asking_price_at_order", 0.0)),
        total_value=float(od.get("total_value", 0.0)),
        ordered_week=int(od.get("ordered_week", 0)),
        status=str(od.get("status", "pending")),
        fulfilled_quantity=int(od.get("fulfilled_quantity", 0)),
        fulfilled_value=float(od.get("fulfilled_value", 0.0)),
        customer_relationship=float(od.get("customer_relationship", 0.0)),
    )


def _load_prestige_event(ed: Dict[str, Any], eid: str) -> PrestigeEvent:
    return PrestigeEvent(
        event_id=str(ed.get("event_id", eid)),
        event_type=str(ed.get("event_type", "")),
        amount=float(ed.get("amount", 0.0)),
        decay_rate=float(ed.get("decay_rate", 0.0)),
        created_week=int(ed.get("created_week", 0)),
        description=str(ed.get("description", "")),
        source_id=ed.get("source_id"),
        category=str(ed.get("category", "company")),
    )


def _load_boost(bd: Dict[str, Any], bid: str) -> RelationshipBoost:
    return RelationshipBoost(
        boost_id=str(bd.get("boost_id", bid)),
        customer_id=str(bd.get("customer_id", "")),
        amount=float(bd.get("amount", 0.0)),
        decay_rate=float(bd.get("decay_rate", 0.95)),
        created_week=int(bd.get("created_week", 0)),
        description=str(bd.get("description", "")),
    )


def _load_activity(ad: Dict[str, Any], aid: str) -> Activity:
    params = ad.get("params")
    return Activity(
        activity_id=str(ad.get("activity_id", aid)),
        category=str(ad.get("category", "")),
        title=str(ad.get("title", "")),
        target_id=str(ad.get("target_id", "")),
        total_work=int(ad.get("total_work", 0)),
        completed_work=float(ad.get("completed_work", 0.0)),
        params=dict(params) if isinstance(params, dict) else {},
        assigned_staff_ids=[str(s) for s in (ad.get("assigned_staff_ids") or [])],
        created_week=int(ad.get("created_week", 0)),
    )


def _load_notification(nd: Dict[str, Any]) -> Notification:
    return Notification(
        notification_id=str(nd.get("notification_id", "")),
        week=int(nd.get("week", 1)),
        season=str(nd.get("season", "Spring")),
        year=int(nd.get("year", 2024)),
        text=str(nd.get("text", "")),
        origin=str(nd.get("origin", "")),
        category=str(nd.get("category", "general")),
    )


def _load_transaction(td: Dict[str, Any]) -> Transaction:
    return Transaction(
        week=int(td.get("week", 1)),
        season=str(td.get("season", "Spring")),
        year=int(td.get("year", 2024)),
        amount=float(td.get("amount", 0.0)),
        description=str(td.get("description", "")),
        category=str(td.get("category", "")),
    )


def _object(value: Any, what: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be a JSON object, got {type(value).__name__}")
    return value


def _entities(d: Dict[str, Any], key: str) -> Dict[str, Dict[str, Any]]:
    raw = _object(d.get(key) or {}, key)
    return {str(k): _object(v, f"{key}[{k!r}]") for k, v in raw.items()}


def _entity_list(d: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    raw = d.get(key) or []
    if not isinstance(raw, list):
        raise ValueError(f"{key} must be a JSON array, got {type(raw).__name__}")
    return [_object(v, f"{key}[{i}]") for i, v in enumerate(raw)]


def load_state(path: Path | None = None) -> GameState:
    """Load a state file; a file that is not shaped like a saved game raises ValueError."""

    p = path or state_path()
    payload = _object(json.loads(p.read_text(encoding="utf-8")), "state file")
    d = _object(payload.get("state", {}), "state")

    state = GameState(
        company_id=str(d.get("company_id", "company-1")),
        company_name=str(d.get("company_name", "My Winery")),
        week=int(d.get("week", 1)),
        season=str(d.get("season", "Spring")),
        year=int(d.get("year", 2024)),
        start_year=int(d.get("start_year", 2024)),
        money=float(d.get("money", 0.0)),
        credit_rating=float(d.get("credit_rating", 0.5)),
        economy_phase=str(d.get("economy_phase", "Stable")),
        rng_seed=int(d.get("rng_seed", 20240101)),
        rng_state=d.get("rng_state"),
    )

    state.vineyards = {k: _load_vineyard(v, k) for k, v in _entities(d, "vineyards").items()}
    state.batches = {k: _load_batch(v, k) for k, v in _entities(d, "batches").items()}
    state.staff = {k: _load_staff(v, k) for k, v in _entities(d, "staff").items()}
    state.lenders = {k: _load_lender(v, k) for k, v in _entities(d, "lenders").items()}
    state.loans = {k: _load_loan(v, k) for k, v in _entities(d, "loans").items()}
    state.customers = {k: _load_customer(v, k) for k, v in _entities(d, "customers").items()}
    state.orders = {k: _load_order(v, k) for k, v in _entities(d, "orders").items()}
    state.prestige_events = {k: _load_prestige_event(v, k) for k, v in _entities(d, "prestige_events").items()}
    state.relationship_boosts = {k: _load_boost(v, k) for k, v in _entities(d, "relationship_boosts").items()}
    state.activities = {k: _load_activity(v, k) for k, v in _entities(d, "activities").items()}
    state.notifications = [_load_notification(n) for n in _entity_list(d, "notifications")]
    state.transactions = [_load_transaction(t) for t in _entity_list(d, "transactions")]
    state.land_offers = [_load_vineyard(v, str(v.get("vineyard_id", ""))) for v in _entity_list(d, "land_offers")]
    state.staff_candidates = [_load_staff(s, str(s.get("staff_id", ""))) for s in _entity_list(d, "staff_candidates")]
    return state


def append_ledger_csv(week_result: WeekResult) -> None:
    p = ledger_path()
    write_header = (not p.exists()) or (p.stat().st_size <= 0)
    with p.open("a", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        if write_header:
            w.writerow(LEDGER_COLUMNS)
        for tx in week_result.transactions:
            w.writerow(
                [
                    week_result.closed_week,
                    tx.week,
                    tx.season,
                    tx.year,
                    round(float(tx.amount), 2),
                    tx.category,
                    tx.description,
                ]
            )


def read_ledger_rows() -> List[Dict[str, str]]:
    p = ledger_path()
    if not p.exists():
        return []
    with p.open("r", encoding="utf-8", newline="") as f:
        return list(csv.DictReader(f))
