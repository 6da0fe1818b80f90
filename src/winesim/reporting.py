from __future__ import annotations

from typing import Dict, List

from winesim import prestige
from winesim.finance import calculate_company_value, financial_summary, total_debt
from winesim.models import GameState, Transaction
from winesim.storage import read_ledger_rows


def format_money(x: float) -> str:
    return f"{x:,.2f}"


def ledger_transactions(limit: int | None = None) -> List[Transaction]:
    rows = read_ledger_rows()
    if limit is not None:
        rows = rows[-max(0, int(limit)):]
    out = []
    for r in rows:
        out.append(
            Transaction(
                week=int(r.get("week") or 1),
                season=str(r.get("season") or "Spring"),
                year=int(r.get("year") or 0),
                amount=float(r.get("amount") or 0.0),
                description=str(r.get("description") or ""),
                category=str(r.get("category") or ""),
            )
        )
    return out


def company_summary(state: GameState) -> Dict:
    """Headline numbers for the dashboard.

    Income/expenses cover the whole ledger plus the current (unflushed) week.
    """

    p = prestige.calculate_current_prestige(state)
    history = ledger_transactions() + list(state.transactions)
    return {
        "company": state.company_name,
        "date": f"Week {state.week}, {state.season} {state.year}",
        "money": round(float(state.money), 2),
        "money_text": format_money(state.money),
        "company_value": round(calculate_company_value(state), 2),
        "debt": round(total_debt(state), 2),
        "credit_rating": round(float(state.credit_rating), 4),
        "economy_phase": state.economy_phase,
        "prestige": round(float(p["total"]), 4),
        "company_prestige": round(float(p["company"]), 4),
        "vineyard_prestige": round(float(p["vineyard"]), 4),
        "vineyards": len(state.vineyards),
        "staff": len(state.staff),
        "finance": financial_summary(history),
    }
