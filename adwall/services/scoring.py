# =========================================================
# FILE: /adwall/services/scoring.py
# =========================================================
"""Bid-rank scoring: score = price + price * clicks * weight."""

from typing import Any, Callable, Iterable, List, Optional

from adwall.core.config import BID_SCORE_WEIGHT


def _as_number(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        n = float(value)
    except (TypeError, ValueError):
        return 0.0
    # NaN never compares, treat it like a missing value
    if n != n:
        return 0.0
    return n


def _field(ad: Any, name: str) -> Any:
    if isinstance(ad, dict):
        return ad.get(name)
    return getattr(ad, name, None)


def bid_score(price: Any, clicks: Any, weight: Optional[float] = None) -> float:
    k = BID_SCORE_WEIGHT if weight is None else weight
    p = max(_as_number(price), 0.0)
    c = max(_as_number(clicks), 0.0)
    return p + p * c * k


def ad_bid_score(ad: Any, weight: Optional[float] = None) -> float:
    """Score an ORM Ad, a response model or a plain dict."""
    return bid_score(_field(ad, "price"), _field(ad, "clicks"), weight)


def sort_by_bid_score(
        items: Iterable[Any],
        weight: Optional[float] = None,
        key: Optional[Callable[[Any], Any]] = None,
) -> List[Any]:
    """Highest score first; `key` picks the ad out of each item (e.g. a row)."""
    pick = key or (lambda item: item)
    # sorted() is stable, equal scores keep their input order
    return sorted(items, key=lambda item: ad_bid_score(pick(item), weight), reverse=True)
