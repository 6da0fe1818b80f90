from __future__ import annotations

import math


def clamp01(x: float) -> float:
    if x <= 0.0:
        return 0.0
    if x >= 1.0:
        return 1.0
    return float(x)


def clamp(x: float, lo: float, hi: float) -> float:
    return max(float(lo), min(float(hi), float(x)))


def stepped_balance(score: float) -> float:
    """Map a raw 0-1 score onto the stepped quality curve.

    Slow start, logarithmic middle, linear upper band and a sigmoid-like tail
    that approaches (but never exceeds) 1.0.
    """

    s = clamp01(score)
    if s < 0.4:
        return s * s * 1.5
    if s < 0.7:
        return 0.24 + math.log(1.0 + (s - 0.4) * 3.33) * 0.3
    if s < 0.9:
        return 0.56 + (s - 0.7) * 1.5
    if s < 0.95:
        return 0.86 + (s - 0.9) * 2.0
    if s < 0.99:
        return 0.96 + (s - 0.95) * 0.8
    return 0.99 + (1.0 - math.exp(-(s - 0.99) * 10.0)) * 0.01


def extreme_quality_multiplier(value: float) -> float:
    v = clamp(value, 0.0, 0.99999)
    if v < 0.5:
        return 1.0 + 0.4 * v
    if v < 0.7:
        return 1.1 + (v - 0.5) * 0.5
    if v < 0.9:
        return 1.25 + (v - 0.7) * 8.75
    if v < 0.95:
        return 3.0 + (v - 0.9) * 140.0
    if v < 0.98:
        return 10.0 + (v - 0.95) * 1333.33
    return 50.0 * math.pow(10000.0, (v - 0.98) * 5.0)


def asymmetrical_multiplier(q: float) -> float:
    """Return a multiplier >= 1 that grows gently then very steeply near 1.0."""

    v = clamp(q, 0.0, 1.0)
    if v < 0.3:
        return 1.0 + 0.5 * v
    if v < 0.6:
        return 1.15 + (v - 0.3) * 1.5
    if v < 0.8:
        return 1.6 + (v - 0.6) * 5.0
    if v < 0.95:
        return 2.6 + (v - 0.8) * 16.0
    return 5.0 * math.pow(10.0, (v - 0.95) * 20.0)


def skewed_multiplier(s: float) -> float:
    """Monotone 0-1 map that stays low for most inputs and rises sharply late."""

    v = clamp01(s)
    if v < 0.4:
        return 0.1 * (v / 0.4) ** 2
    if v < 0.7:
        return 0.1 + (v - 0.4) / 0.3 * 0.3
    if v < 0.9:
        return 0.4 + (v - 0.7) / 0.2 * 0.4
    return 0.8 + 0.2 * (1.0 - math.exp(-(v - 0.9) * 30.0)) / (1.0 - math.exp(-3.0))


def inverted_skewed_multiplier(s: float) -> float:
    return 1.0 - skewed_multiplier(1.0 - clamp01(s))


def normalize_prestige_1000(prestige: float) -> float:
    """Compress prestige (0..inf) into 0..1: 10 -> 0.7, 100 -> 0.9, 1000 -> 0.98."""

    p = float(prestige)
    if p <= 0.0:
        return 0.0
    if p < 10.0:
        return 0.7 * p / 10.0
    if p < 100.0:
        return 0.7 + 0.2 * (p - 10.0) / 90.0
    if p < 1000.0:
        return 0.9 + 0.08 * (p - 100.0) / 900.0
    return 0.98 + 0.019 * (1.0 - math.exp(-(p - 1000.0) / 1000.0))


def vineyard_age_prestige_modifier(age: float) -> float:
    a = max(0.0, float(age or 0))
    return 1.0 - math.exp(-a / 25.0)


def order_amount_multiplier(bid_price: float, asking_price: float) -> float:
    """Bigger orders when the customer gets a discount; capped at 10x."""

    asking = float(asking_price)
    bid = float(bid_price)
    if asking <= 0.0 or bid >= asking:
        return 1.0
    d = 1.0 - bid / asking
    if d <= 0.1:
        return 1.0 + d
    if d <= 0.5:
        return 1.0 + d * (1.0 + d)
    if d <= 0.9:
        return 1.75 + d * (1.0 + (d - 0.5) * 3.0)
    return min(10.0, 1.0 + d / (1.0 - d) * 10.0)


def log_normalize(value: float, lo: float, hi: float) -> float:
    """Normalize value into 0..1 on a log scale between lo and hi."""

    v = max(float(lo), float(value))
    if hi <= lo:
        return 0.0
    return clamp01(math.log(v / lo) / math.log(hi / lo))
