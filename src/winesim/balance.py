from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from winesim.curves import clamp01
from winesim.models import CHARACTERISTICS

Range = Tuple[float, float]
Traits = Mapping[str, float]

BASE_BALANCED_RANGES: Dict[str, Range] = {
    "acidity": (0.4, 0.6),
    "aroma": (0.3, 0.7),
    "body": (0.4, 0.8),
    "spice": (0.35, 0.65),
    "sweetness": (0.4, 0.6),
    "tannins": (0.35, 0.65),
}

# source -> [(target, shift per unit of deviation)]; the same shift applies above and below.
RANGE_ADJUSTMENTS: Dict[str, List[Tuple[str, float]]] = {
    "acidity": [("sweetness", -0.15)],
    "body": [("spice", 0.08), ("tannins", 0.08)],
    "sweetness": [("acidity", -0.10)],
    "tannins": [("body", 0.10), ("aroma", 0.08), ("sweetness", -0.05)],
    "aroma": [("body", 0.06)],
    "spice": [],
}

MIN_RANGE_WIDTH = 0.02

PENALTY_DEFAULT_CAP = 2.0
SYNERGY_DEFAULT_CAP = 0.75


@dataclass(frozen=True)
class BalanceRule:
    name: str
    sources: Tuple[str, ...]
    targets: Tuple[str, ...]
    condition: Callable[[Traits], bool]
    k: float = 0.2
    p: float = 1.2
    cap: Optional[float] = None


@dataclass
class BalanceResult:
    score: float
    quality_label: str
    adjusted_ranges: Dict[str, Range] = field(default_factory=dict)


@dataclass
class RuleEffects:
    penalty_scaling: Dict[str, float]
    synergy_reductions: Dict[str, float]
    fired: List[Dict] = field(default_factory=list)


def _between(v: float, lo: float, hi: float) -> bool:
    return lo <= v <= hi


PENALTY_RULES: Tuple[BalanceRule, ...] = (
    BalanceRule("Clashing Sweetness", ("acidity",), ("sweetness",),
                lambda w: w["acidity"] > 0.7 and w["sweetness"] > 0.6, k=0.4, p=1.5, cap=2.0),
    BalanceRule("Low Acidity Overpower", ("acidity",), ("aroma",),
                lambda w: w["acidity"] < 0.5 and w["body"] > 0.7, k=0.3, p=1.3, cap=2.0),
    BalanceRule("Fixed Sweetness Penalty", ("acidity",), ("sweetness",),
                lambda w: w["acidity"] < 0.3, k=0.15, p=1.0, cap=0.15),
    BalanceRule("Heavy Body Overpower", ("body",), ("aroma",),
                lambda w: w["body"] > 0.7 and w["aroma"] < 0.5, k=0.25, p=1.4, cap=0.36),
    BalanceRule("Astringent Tannins", ("body",), ("tannins",),
                lambda w: w["body"] < 0.5 and w["tannins"] > 0.7, k=0.35, p=1.6, cap=0.36),
    BalanceRule("Sweet-Spice Clash", ("sweetness",), ("spice",),
                lambda w: w["sweetness"] > 0.7 and w["spice"] > 0.6, k=0.45, p=1.7, cap=0.2),
    BalanceRule("Acid-Sweet Imbalance", ("sweetness",), ("acidity",),
                lambda w: w["sweetness"] < 0.4 and w["acidity"] > 0.6, k=0.3, p=1.3, cap=0.24),
    BalanceRule("Tannin-Sweet Clash", ("tannins",), ("sweetness",),
                lambda w: w["tannins"] > 0.7 and w["sweetness"] > 0.5, k=0.4, p=1.5, cap=0.5),
    BalanceRule("Tannin-Aroma Overpower", ("tannins",), ("aroma",),
                lambda w: w["tannins"] > 0.7 and w["aroma"] < 0.6, k=0.25, p=1.4, cap=0.3),
    BalanceRule("Weak Tannin Structure", ("tannins",), ("body",),
                lambda w: w["tannins"] < 0.4 and w["body"] > 0.6, k=0.3, p=1.3, cap=2.0),
    BalanceRule("Aroma-Body Mismatch", ("aroma",), ("body",),
                lambda w: w["aroma"] > 0.7 and w["body"] < 0.6, k=0.2, p=1.2, cap=0.3),
    BalanceRule("Aroma-Spice Imbalance", ("aroma",), ("spice",),
                lambda w: w["aroma"] < 0.4 and w["spice"] > 0.6, k=0.25, p=1.4, cap=0.24),
    BalanceRule("Spice-Acid Clash", ("spice",), ("acidity",),
                lambda w: w["spice"] > 0.7 and w["acidity"] > 0.6, k=0.4, p=1.6, cap=0.5),
    BalanceRule("Spice-Body Overwhelm", ("spice",), ("body",),
                lambda w: w["spice"] > 0.8 and w["body"] < 0.4, k=0.5, p=1.8, cap=2.0),
    BalanceRule("Flat Heavy Body", ("spice",), ("body",),
                lambda w: w["spice"] < 0.3 and w["body"] > 0.7, k=0.25, p=1.3, cap=0.3),
)

SYNERGY_RULES: Tuple[BalanceRule, ...] = (
    BalanceRule("Bold Red Structure", ("acidity",), ("tannins",),
                lambda w: w["acidity"] > 0.7 and w["tannins"] > 0.7, k=0.3, p=1.3, cap=0.75),
    BalanceRule("Bright & Aromatic", ("acidity",), ("aroma",),
                lambda w: w["acidity"] > 0.6 and w["aroma"] > 0.7, k=0.25, p=1.2, cap=0.5),
    BalanceRule("Balanced Body & Spice", ("body", "spice"), ("body", "spice"),
                lambda w: _between(w["body"], 0.6, 0.8) and _between(w["spice"], 0.6, 0.8),
                k=0.25, p=1.1, cap=0.75),
    BalanceRule("Powerful Red Blend", ("tannins", "body", "spice"), ("tannins", "body", "spice"),
                lambda w: w["tannins"] > 0.7 and w["body"] > 0.6 and w["spice"] > 0.5,
                k=0.35, p=1.4, cap=0.65),
    BalanceRule("Dessert Wine Body", ("aroma", "sweetness", "body"), ("aroma", "sweetness", "body"),
                lambda w: w["aroma"] > 0.6 and w["sweetness"] > 0.6 and w["body"] > 0.7,
                k=0.3, p=1.3, cap=0.7),
    BalanceRule("Classic Balance", ("acidity", "sweetness"), ("acidity", "sweetness"),
                lambda w: _between(w["acidity"], 0.4, 0.6) and _between(w["sweetness"], 0.4, 0.6),
                k=0.4, p=1.1, cap=0.6),
    BalanceRule("Elegant Complexity", ("aroma", "body"), ("aroma", "body"),
                lambda w: w["aroma"] > w["body"] and _between(w["sweetness"], 0.4, 0.6),
                k=0.25, p=1.2, cap=0.6),
)


def normalize_traits(traits: Mapping[str, float]) -> Dict[str, float]:
    """Return a full trait dict clamped to [0, 1]; raises on unknown or missing keys."""

    unknown = [k for k in traits if k not in CHARACTERISTICS]
    if unknown:
        raise ValueError(f"unknown characteristic: {unknown[0]}")
    missing = [k for k in CHARACTERISTICS if k not in traits]
    if missing:
        raise ValueError(f"missing characteristic: {missing[0]}")
    return {k: clamp01(float(traits[k])) for k in CHARACTERISTICS}


def apply_dynamic_range_adjustments(
    traits: Traits,
    base_ranges: Mapping[str, Range] = BASE_BALANCED_RANGES,
    adjustments: Mapping[str, Sequence[Tuple[str, float]]] = RANGE_ADJUSTMENTS,
) -> Dict[str, Range]:
    adjusted: Dict[str, Range] = {k: (float(base_ranges[k][0]), float(base_ranges[k][1])) for k in CHARACTERISTICS}

    for source in CHARACTERISTICS:
        shifts = adjustments.get(source) or []
        if not shifts:
            continue
        lo, hi = base_ranges[source]
        mid = (lo + hi) / 2.0
        width = max(0.0001, hi - lo)
        deviation = (float(traits[source]) - mid) / width
        if abs(deviation) < 1e-6:
            continue

        for target, shift_per_unit in shifts:
            tmin, tmax = adjusted[target]
            target_width = max(0.0001, tmax - tmin)
            delta = shift_per_unit * deviation * target_width
            new_min = clamp01(tmin + delta)
            new_max = clamp01(tmax + delta)
            if new_max - new_min < MIN_RANGE_WIDTH:
                center = (new_min + new_max) / 2.0
                new_min = clamp01(center - MIN_RANGE_WIDTH / 2.0)
                new_max = clamp01(center + MIN_RANGE_WIDTH / 2.0)
            adjusted[target] = (new_min, new_max)

    return adjusted


def _rule_effect(rule: BalanceRule, traits: Traits, base_ranges: Mapping[str, Range], is_penalty: bool) -> Tuple[float, float]:
    total = 0.0
    for src in rule.sources:
        lo, hi = base_ranges[src]
        mid = (lo + hi) / 2.0
        half_width = max(0.0001, (hi - lo) / 2.0)
        total += abs((float(traits[src]) - mid) / half_width)
    avg_dev = total / len(rule.sources) if rule.sources else 0.0

    cap = rule.cap if rule.cap is not None else (PENALTY_DEFAULT_CAP if is_penalty else SYNERGY_DEFAULT_CAP)
    return avg_dev, min(cap, rule.k * avg_dev ** rule.p)


def calculate_rules(
    traits: Traits,
    base_ranges: Mapping[str, Range] = BASE_BALANCED_RANGES,
    penalties: Sequence[BalanceRule] = PENALTY_RULES,
    synergies: Sequence[BalanceRule] = SYNERGY_RULES,
) -> RuleEffects:
    penalty_scaling = {k: 1.0 for k in CHARACTERISTICS}
    synergy_reductions = {k: 0.0 for k in CHARACTERISTICS}
    fired: List[Dict] = []

    for rule in penalties:
        if not rule.condition(traits):
            continue
        avg_dev, effect = _rule_effect(rule, traits, base_ranges, True)
        for t in rule.targets:
            penalty_scaling[t] = max(penalty_scaling[t], 1.0 + effect)
        fired.append({"name": rule.name, "kind": "penalty", "targets": list(rule.targets), "avg_deviation": avg_dev, "effect": effect})

    for rule in synergies:
        if not rule.condition(traits):
            continue
        avg_dev, effect = _rule_effect(rule, traits, base_ranges, False)
        for t in rule.targets:
            synergy_reductions[t] = max(synergy_reductions[t], effect)
        fired.append({"name": rule.name, "kind": "synergy", "targets": list(rule.targets), "avg_deviation": avg_dev, "effect": effect})

    return RuleEffects(penalty_scaling=penalty_scaling, synergy_reductions=synergy_reductions, fired=fired)


def quality_label(score: float) -> str:
    if score >= 0.9:
        return "Excellent"
    if score >= 0.7:
        return "Good"
    if score >= 0.5:
        return "Fair"
    if score >= 0.3:
        return "Poor"
    return "Bad"


def _distances(value: float, rng: Range) -> Tuple[float, float]:
    lo, hi = rng
    mid = (lo + hi) / 2.0
    inside = abs(value - mid)
    if value < lo:
        outside = lo - value
    elif value > hi:
        outside = value - hi
    else:
        outside = 0.0
    return inside, outside


def balance_breakdown(traits: Traits, base_ranges: Mapping[str, Range] = BASE_BALANCED_RANGES) -> Dict:
    """Per-trait scoring detail plus the final score (used by the balance endpoint)."""

    w = normalize_traits(traits)
    adjusted = apply_dynamic_range_adjustments(w, base_ranges)
    effects = calculate_rules(w, base_ranges)

    rows: Dict[str, Dict] = {}
    total = 0.0
    for k in CHARACTERISTICS:
        inside, outside = _distances(w[k], adjusted[k])
        base_total = inside + 2.0 * outside
        penalty = effects.penalty_scaling[k]
        final = base_total * penalty
        synergy = effects.synergy_reductions[k]
        if synergy > 0:
            final *= 1.0 - synergy
        total += final
        rows[k] = {
            "value": w[k],
            "range": [adjusted[k][0], adjusted[k][1]],
            "distance_inside": inside,
            "distance_outside": outside,
            "penalty": penalty,
            "base_total_distance": base_total,
            "synergy_reduction": synergy,
            "final_total_distance": final,
        }

    score = max(0.0, 1.0 - 2.0 * (total / len(CHARACTERISTICS)))
    return {
        "score": score,
        "quality_label": quality_label(score),
        "characteristics": rows,
        "rules": effects.fired,
    }


def calculate_wine_balance(traits: Traits, base_ranges: Mapping[str, Range] = BASE_BALANCED_RANGES) -> BalanceResult:
    detail = balance_breakdown(traits, base_ranges)
    adjusted = {k: (row["range"][0], row["range"][1]) for k, row in detail["characteristics"].items()}
    return BalanceResult(score=detail["score"], quality_label=detail["quality_label"], adjusted_ranges=adjusted)
