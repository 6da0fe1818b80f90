from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, List, Optional

from winesim.finance import calculate_company_value
from winesim.models import GameState, Vineyard, WineBatch
from winesim.storage import highscores_path

log = logging.getLogger(__name__)

SCORE_TYPES = (
    "company_value",
    "company_value_per_week",
    "highest_vintage_quantity",
    "most_productive_vineyard",
    "highest_wine_quality",
    "highest_wine_balance",
    "highest_wine_price",
    "lowest_wine_price",
)

LOWER_IS_BETTER = frozenset({"lowest_wine_price"})


@dataclass
class HighscoreEntry:
    company_id: str
    company_name: str
    score_type: str
    score_value: float
    week: int = 0
    season: str = ""
    year: int = 0
    vineyard_id: Optional[str] = None
    vineyard_name: Optional[str] = None
    wine_vintage: Optional[int] = None
    grape: Optional[str] = None


def _check_type(score_type: str) -> None:
    if score_type not in SCORE_TYPES:
        raise ValueError(f"unknown score type: {score_type}")


def _is_better(score_type: str, new: float, old: float) -> bool:
    return new < old if score_type in LOWER_IS_BETTER else new > old


def _sorted(score_type: str, entries: List[HighscoreEntry]) -> List[HighscoreEntry]:
    return sorted(entries, key=lambda e: e.score_value, reverse=score_type not in LOWER_IS_BETTER)


def load_highscores(path: Path | None = None) -> Dict[str, List[HighscoreEntry]]:
    p = path or highscores_path()
    table: Dict[str, List[HighscoreEntry]] = {t: [] for t in SCORE_TYPES}
    if not p.exists():
        return table
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        log.warning("highscores file %s is corrupt; starting empty", p)
        return table
    for t, rows in (raw.get("scores") or {}).items():
        if t not in table:
            continue
        for r in rows or []:
            table[t].append(
                HighscoreEntry(
                    company_id=str(r.get("company_id", "")),
                    company_name=str(r.get("company_name", "")),
                    score_type=t,
                    score_value=float(r.get("score_value", 0.0)),
                    week=int(r.get("week", 0)),
                    season=str(r.get("season", "")),
                    year=int(r.get("year", 0)),
                    vineyard_id=r.get("vineyard_id"),
                    vineyard_name=r.get("vineyard_name"),
                    wine_vintage=r.get("wine_vintage"),
                    grape=r.get("grape"),
                )
            )
    return table


def save_highscores(table: Dict[str, List[HighscoreEntry]], path: Path | None = None) -> None:
    p = path or highscores_path()
    payload = {"scores": {t: [asdict(e) for e in entries] for t, entries in table.items()}}
    p.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def submit_highscore(entry: HighscoreEntry, path: Path | None = None) -> bool:
    """Store the score if the company has none yet or it beats the existing one."""

    _check_type(entry.score_type)
    table = load_highscores(path)
    rows = table[entry.score_type]
    existing = next((e for e in rows if e.company_id == entry.company_id), None)
    if existing is not None and not _is_better(entry.score_type, entry.score_value, existing.score_value):
        return False
    table[entry.score_type] = [e for e in rows if e.company_id != entry.company_id] + [entry]
    save_highscores(table, path)
    return True


def get_highscores(score_type: str, limit: int = 20, path: Path | None = None) -> List[HighscoreEntry]:
    _check_type(score_type)
    return _sorted(score_type, load_highscores(path)[score_type])[: max(0, int(limit))]


def get_company_ranking(company_id: str, score_type: str, path: Path | None = None) -> Optional[Dict[str, int]]:
    _check_type(score_type)
    rows = load_highscores(path)[score_type]
    own = next((e for e in rows if e.company_id == company_id), None)
    if own is None:
        return None
    better = sum(1 for e in rows if _is_better(score_type, e.score_value, own.score_value))
    return {"position": better + 1, "total": len(rows)}


def get_company_rankings(company_id: str, path: Path | None = None) -> Dict[str, Dict[str, int]]:
    out: Dict[str, Dict[str, int]] = {}
    for t in SCORE_TYPES:
        out[t] = get_company_ranking(company_id, t, path) or {"position": 0, "total": 0}
    return out


def clear_highscores(score_type: Optional[str] = None, path: Path | None = None) -> None:
    table = load_highscores(path)
    if score_type is None:
        table = {t: [] for t in SCORE_TYPES}
    else:
        _check_type(score_type)
        table[score_type] = []
    save_highscores(table, path)


def _entry(state: GameState, score_type: str, value: float, **extra) -> HighscoreEntry:
    return HighscoreEntry(
        company_id=state.company_id,
        company_name=state.company_name,
        score_type=score_type,
        score_value=float(value),
        week=state.week,
        season=state.season,
        year=state.year,
        **extra,
    )


def submit_company_scores(state: GameState, path: Path | None = None) -> List[str]:
    """Company value and value per elapsed week; returns the types that improved."""

    value = calculate_company_value(state)
    weeks = max(1, state.absolute_week())
    improved = []
    for t, v in (("company_value", value), ("company_value_per_week", value / weeks)):
        if submit_highscore(_entry(state, t, v), path):
            improved.append(t)
    return improved


def submit_harvest_scores(
    state: GameState, vineyard: Vineyard, quantity_kg: float, path: Path | None = None
) -> List[str]:
    extra = {
        "vineyard_id": vineyard.vineyard_id,
        "vineyard_name": vineyard.name,
        "wine_vintage": state.year,
        "grape": vineyard.grape,
    }
    per_hectare = float(quantity_kg) / max(0.01, float(vineyard.hectares))
    improved = []
    for t, v in (("highest_vintage_quantity", quantity_kg), ("most_productive_vineyard", per_hectare)):
        if submit_highscore(_entry(state, t, v, **extra), path):
            improved.append(t)
    return improved


def submit_wine_scores(state: GameState, batch: WineBatch, path: Path | None = None) -> List[str]:
    extra = {
        "vineyard_id": batch.vineyard_id,
        "vineyard_name": batch.vineyard_name,
        "wine_vintage": batch.vintage,
        "grape": batch.grape,
    }
    price = float(batch.asking_price if batch.asking_price is not None else batch.estimated_price)
    scores = [
        ("highest_wine_quality", batch.quality),
        ("highest_wine_balance", batch.balance),
    ]
    if price > 0:
        scores += [("highest_wine_price", price), ("lowest_wine_price", price)]
    improved = []
    for t, v in scores:
        if submit_highscore(_entry(state, t, v, **extra), path):
            improved.append(t)
    if improved:
        log.info("new highscores for %s: %s", batch.name(), ", ".join(improved))
    return improved
