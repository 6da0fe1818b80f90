from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict, is_dataclass
from typing import Callable, List, Optional

from fastapi import Body, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, RedirectResponse

from winesim import activities, highscores, loans, prestige, sales, staff, vineyard, winery
from winesim.balance import balance_breakdown
from winesim.engine import (
    EngineConfig,
    advance_week,
    bottle,
    refresh_land_offers,
    refresh_staff_candidates,
    take_loan,
)
from winesim.models import GameState
from winesim.notifications import clear_messages, list_messages
from winesim.presets import new_game
from winesim.reporting import company_summary
from winesim.storage import (
    LEDGER_COLUMNS,
    append_ledger_csv,
    data_dir,
    ledger_path,
    load_state,
    reset_data_files,
    save_snapshot,
    save_state,
    snapshot_path,
    state_path,
    truncate_ledger_before_week,
)

log = logging.getLogger(__name__)

_lock = threading.Lock()


def _number(payload: dict, key: str, default=None, kind=float):
    raw = payload.get(key)
    if raw is None or raw == "":
        return default
    try:
        return kind(raw)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be a number") from None


def _staff_ids(payload: dict) -> Optional[List[str]]:
    raw = payload.get("staff_ids")
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise ValueError("staff_ids must be a list")
    return [str(x) for x in raw]


def _ensure_state() -> GameState:
    p = state_path()
    if p.exists():
        try:
            return load_state(p)
        except (ValueError, KeyError, TypeError, AttributeError, json.JSONDecodeError):
            # Corrupted state file fallback: rebuild seed state.
            log.warning("state file %s is unreadable; starting a new game", p)
            p.unlink(missing_ok=True)
    s = new_game()
    save_state(s)
    save_snapshot(s)
    return s


def create_app() -> FastAPI:
    app = FastAPI(title="Winery Simulation API")

    # Allow Vite dev server or other local frontends.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Ensure data dir exists
    data_dir()

    cfg = EngineConfig()

    def _vineyard_to_dto(v) -> dict:
        return asdict(v) | vineyard.vineyard_summary(v)

    def _batch_to_dto(b) -> dict:
        return asdict(b) | winery.batch_summary(b)

    def _state_to_dto(state: GameState) -> dict:
        return {
            "summary": company_summary(state),
            "date": {"week": state.week, "season": state.season, "year": state.year, "absolute_week": state.absolute_week()},
            "vineyards": [_vineyard_to_dto(v) for v in state.vineyards.values()],
            "batches": [_batch_to_dto(b) for b in state.batches.values()],
            "staff": [asdict(s) for s in state.staff.values()],
            "loans": [loans.loan_summary(l) for l in state.loans.values()],
            "orders": [sales.order_summary(o) | {"customer_id": o.customer_id, "batch_id": o.batch_id} for o in state.orders.values()],
            "land_offers": [_vineyard_to_dto(v) for v in state.land_offers],
            "staff_candidates": [asdict(s) for s in state.staff_candidates],
            "transactions": [asdict(t) for t in state.transactions],
            "activities": [activities.activity_summary(state, a) for a in state.activities.values()],
            "notifications": [asdict(m) for m in list_messages(state, limit=20)],
        }

    def _act(fn: Callable[[GameState], object], key: Optional[str] = None) -> dict:
        """Run one player action under the lock; ValueError becomes {"error": ...}."""

        with _lock:
            state = _ensure_state()
            try:
                out = fn(state)
            except ValueError as e:
                return {"error": str(e)}
            save_state(state)
            dto = _state_to_dto(state)
        if key is not None:
            dto[key] = asdict(out) if is_dataclass(out) else out
        return dto

    @app.get("/")
    def root():
        return RedirectResponse(url="/docs")

    @app.get("/api/state")
    def api_state():
        with _lock:
            state = _ensure_state()
            dto = _state_to_dto(state)
        return dto

    @app.post("/api/advance")
    def api_advance(payload: dict = Body(default={})):  # {weeks:int}
        try:
            weeks = _number(payload, "weeks", 1, int) or 1
        except ValueError as e:
            return {"error": str(e)}
        weeks = max(1, min(480, weeks))
        with _lock:
            state = _ensure_state()
            results = []
            for _ in range(weeks):
                result = advance_week(state, cfg)
                append_ledger_csv(result)
                save_snapshot(state)
                results.append(result)
            save_state(state)
            dto = _state_to_dto(state)
        dto["orders_created"] = sum(r.orders_created for r in results)
        dto["activities_completed"] = sum(r.activities_completed for r in results)
        dto["messages"] = [m for r in results for m in r.messages]
        return dto

    @app.post("/api/rollback")
    def api_rollback(payload: dict = Body(default={})):  # {weeks:int}
        try:
            weeks = _number(payload, "weeks", 1, int) or 1
        except ValueError as e:
            return {"error": str(e)}
        weeks = max(1, min(480, weeks))
        with _lock:
            state = _ensure_state()
            target_week = max(1, state.absolute_week() - weeks)
            sp = snapshot_path(target_week)
            if not sp.exists():
                return {"error": f"no snapshot for week {target_week} (try advance first)"}

            try:
                state2 = load_state(sp)
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                log.warning("snapshot %s is unreadable: %s", sp, e)
                return {"error": f"snapshot for week {target_week} is unreadable"}
            save_state(state2)
            # Truncate ledger to match target week (keep week < target_week)
            truncate_ledger_before_week(target_week)
            dto = _state_to_dto(state2)
        return dto

    @app.post("/api/reset")
    def api_reset(payload: dict = Body(default={})):  # {company_name?, seed?}
        try:
            seed = _number(payload, "seed", 20240101, int) or 20240101
        except ValueError as e:
            return {"error": str(e)}
        with _lock:
            reset_data_files()
            s = new_game(
                company_name=str(payload.get("company_name") or "My Winery"),
                seed=seed,
                cfg=cfg,
            )
            save_state(s)
            save_snapshot(s)
            dto = _state_to_dto(s)
        return dto

    # -- vineyards -----------------------------------------------------------

    @app.post("/api/vineyards/offers")
    def api_vineyard_offers(payload: dict = Body(default={})):  # {count?}
        return _act(lambda s: refresh_land_offers(s, cfg, _number(payload, "count", None, int)))

    @app.post("/api/vineyards/buy")
    def api_vineyard_buy(payload: dict = Body(...)):  # {offer_id}
        offer_id = str(payload.get("offer_id") or "")
        return _act(lambda s: vineyard.buy_vineyard(s, offer_id), "vineyard")

    @app.get("/api/vineyards/{vineyard_id}")
    def api_vineyard_detail(vineyard_id: str):
        with _lock:
            state = _ensure_state()
            v = state.vineyards.get(vineyard_id)
            if not v:
                return {"error": "vineyard not found"}
            dto = _vineyard_to_dto(v)
        return dto

    def _start(fn: Callable[[GameState], object]) -> dict:
        return _act(lambda s: activities.activity_summary(s, fn(s)), "activity")

    @app.post("/api/vineyards/{vineyard_id}/plant")
    def api_vineyard_plant(vineyard_id: str, payload: dict = Body(...)):  # {grape, density?, staff_ids?}
        grape = str(payload.get("grape") or "")
        return _start(
            lambda s: activities.start_planting(
                s, vineyard_id, grape, _number(payload, "density", None, int), _staff_ids(payload)
            )
        )

    @app.post("/api/vineyards/{vineyard_id}/clear")
    def api_vineyard_clear(vineyard_id: str, payload: dict = Body(default={})):  # {uproot?, staff_ids?}
        uproot = bool(payload.get("uproot", False))
        return _start(lambda s: activities.start_clearing(s, vineyard_id, uproot, _staff_ids(payload)))

    @app.post("/api/vineyards/{vineyard_id}/harvest")
    def api_vineyard_harvest(vineyard_id: str, payload: dict = Body(default={})):  # {staff_ids?}
        return _start(lambda s: activities.start_harvest(s, vineyard_id, _staff_ids(payload)))

    @app.post("/api/vineyards/{vineyard_id}/sell")
    def api_vineyard_sell(vineyard_id: str):
        return _act(lambda s: vineyard.sell_vineyard(s, vineyard_id), "sale_price")

    # -- winery --------------------------------------------------------------

    @app.post("/api/batches/{batch_id}/crush")
    def api_batch_crush(batch_id: str, payload: dict = Body(default={})):
        method = str(payload.get("method") or "Mechanical Press")
        destem = bool(payload.get("destem", True))
        cold_soak = bool(payload.get("cold_soak", False))
        return _start(
            lambda s: activities.start_crushing(
                s, batch_id, method, destem, cold_soak,
                _number(payload, "pressing_intensity", 0.5), _staff_ids(payload),
            )
        )

    @app.post("/api/batches/{batch_id}/ferment")
    def api_batch_ferment(batch_id: str, payload: dict = Body(default={})):
        method = str(payload.get("method") or "Basic")
        temperature = str(payload.get("temperature") or "Ambient")
        return _act(lambda s: winery.start_fermentation(s, batch_id, method, temperature), "batch")

    @app.post("/api/batches/{batch_id}/bottle")
    def api_batch_bottle(batch_id: str):
        return _act(lambda s: bottle(s, cfg, batch_id), "batch")

    @app.post("/api/batches/{batch_id}/price")
    def api_batch_price(batch_id: str, payload: dict = Body(...)):  # {price}
        try:
            price = float(payload.get("price"))
        except (TypeError, ValueError):
            return {"error": "price must be a number"}
        return _act(lambda s: winery.set_asking_price(s, batch_id, price), "batch")

    @app.get("/api/batches/{batch_id}/balance")
    def api_batch_balance(batch_id: str):
        with _lock:
            state = _ensure_state()
            b = state.batches.get(batch_id)
            if not b:
                return {"error": "batch not found"}
            out = balance_breakdown(b.characteristics)
        return out

    @app.post("/api/balance")
    def api_balance(payload: dict = Body(...)):  # {characteristics:{...}}
        traits = payload.get("characteristics", payload)
        if not isinstance(traits, dict):
            return {"error": "characteristics must be an object"}
        try:
            return balance_breakdown({str(k): float(v) for k, v in traits.items()})
        except (TypeError, ValueError) as e:
            return {"error": str(e)}

    # -- staff ---------------------------------------------------------------

    @app.post("/api/staff/candidates")
    def api_staff_candidates(payload: dict = Body(default={})):  # {count?, skill_level?, specializations?}
        specs = [str(x) for x in (payload.get("specializations") or [])]
        return _act(
            lambda s: refresh_staff_candidates(
                s, cfg, _number(payload, "count", None, int), _number(payload, "skill_level", 0.3), specs
            )
        )

    @app.post("/api/staff/hire")
    def api_staff_hire(payload: dict = Body(...)):  # {candidate_id}
        cid = str(payload.get("candidate_id") or "")
        return _act(lambda s: staff.hire_staff(s, cid), "staff_member")

    @app.post("/api/staff/{staff_id}/fire")
    def api_staff_fire(staff_id: str):
        return _act(lambda s: staff.fire_staff(s, staff_id), "staff_member")

    # -- activities ----------------------------------------------------------

    @app.get("/api/activities")
    def api_activities():
        with _lock:
            state = _ensure_state()
            rows = [activities.activity_summary(state, a) for a in state.activities.values()]
        return {"activities": rows}

    @app.post("/api/activities/{activity_id}/assign")
    def api_activity_assign(activity_id: str, payload: dict = Body(...)):  # {staff_ids}
        def assign(s: GameState):
            ids = _staff_ids(payload)
            if ids is None:
                raise ValueError("staff_ids is required")
            return activities.activity_summary(s, activities.assign_staff(s, activity_id, ids))

        return _act(assign, "activity")

    @app.post("/api/activities/{activity_id}/cancel")
    def api_activity_cancel(activity_id: str):
        return _act(lambda s: activities.cancel_activity(s, activity_id), "activity")

    # -- loans ---------------------------------------------------------------

    @app.get("/api/lenders")
    def api_lenders():
        with _lock:
            state = _ensure_state()
            p = prestige.current_prestige(state)
            rows = []
            for l in state.lenders.values():
                dto = asdict(l)
                dto["availability"] = loans.lender_availability(l, state.credit_rating, p)
                dto["effective_interest_rate"] = loans.calculate_effective_interest_rate(
                    l.base_interest_rate, state.economy_phase, l.lender_type, state.credit_rating
                )
                rows.append(dto)
        return {"lenders": rows, "credit_rating": state.credit_rating, "economy_phase": state.economy_phase}

    @app.post("/api/loans/quote")
    def api_loan_quote(payload: dict = Body(...)):  # {lender_id, amount, duration_seasons}
        with _lock:
            state = _ensure_state()
            lender = state.lenders.get(str(payload.get("lender_id") or ""))
            if not lender:
                return {"error": "lender not found"}
            try:
                terms = loans.calculate_loan_terms(
                    lender,
                    _number(payload, "amount", 0.0),
                    _number(payload, "duration_seasons", 0, int),
                    state.credit_rating,
                    state.economy_phase,
                )
            except ValueError as e:
                return {"error": str(e)}
        return terms

    @app.post("/api/loans/take")
    def api_loan_take(payload: dict = Body(...)):  # {lender_id, amount, duration_seasons}
        lender_id = str(payload.get("lender_id") or "")
        return _act(
            lambda s: take_loan(
                s, lender_id, _number(payload, "amount", 0.0), _number(payload, "duration_seasons", 0, int)
            ),
            "loan",
        )

    @app.post("/api/loans/{loan_id}/repay")
    def api_loan_repay(loan_id: str):
        return _act(lambda s: loans.repay_loan_in_full(s, loan_id), "loan")

    # -- sales ---------------------------------------------------------------

    @app.get("/api/customers")
    def api_customers(active_only: bool = False):
        with _lock:
            state = _ensure_state()
            rows = [asdict(c) for c in state.customers.values() if c.active or not active_only]
        return {"customers": rows}

    @app.post("/api/orders/{order_id}/fulfill")
    def api_order_fulfill(order_id: str):
        return _act(lambda s: sales.fulfill_order(s, order_id), "order")

    @app.post("/api/orders/{order_id}/reject")
    def api_order_reject(order_id: str):
        return _act(lambda s: sales.reject_order(s, order_id), "order")

    # -- prestige, highscores, notifications --------------------------------

    @app.get("/api/prestige")
    def api_prestige():
        with _lock:
            state = _ensure_state()
            totals = prestige.calculate_current_prestige(state)
            events = sorted(
                (asdict(e) for e in state.prestige_events.values()),
                key=lambda e: abs(e["amount"]),
                reverse=True,
            )
        return totals | {"events": events}

    @app.get("/api/highscores")
    def api_highscores(score_type: str = "company_value", limit: int = 20):
        try:
            rows = highscores.get_highscores(score_type, limit)
        except ValueError as e:
            return {"error": str(e)}
        return {"score_type": score_type, "entries": [asdict(e) for e in rows]}

    @app.get("/api/highscores/ranking")
    def api_highscore_ranking():
        with _lock:
            state = _ensure_state()
            company_id = state.company_id
        return {"company_id": company_id, "rankings": highscores.get_company_rankings(company_id)}

    @app.get("/api/notifications")
    def api_notifications(category: Optional[str] = None, limit: int = 50):
        with _lock:
            state = _ensure_state()
            rows = [asdict(m) for m in list_messages(state, category, limit)]
        return {"notifications": rows}

    @app.delete("/api/notifications")
    def api_notifications_clear(category: Optional[str] = None):
        with _lock:
            state = _ensure_state()
            removed = clear_messages(state, category)
            save_state(state)
        return {"removed": removed}

    # -- downloads -----------------------------------------------------------

    @app.get("/download/state")
    def download_state():
        p = state_path()
        if not p.exists():
            _ensure_state()
        return FileResponse(str(p), filename="state.json")

    @app.get("/download/ledger")
    def download_ledger():
        p = ledger_path()
        if not p.exists():
            # empty ledger with header only
            p.write_text(",".join(LEDGER_COLUMNS) + "\n", encoding="utf-8")
        return FileResponse(str(p), filename="ledger.csv")

    return app


app = create_app()
