# leaseiq/domain/matching.py
from __future__ import annotations

SIMILARITY_THRESHOLD = 0.90
PRICE_TOLERANCE = 0.05


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    # two-row DP
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        cur = [i] + [0] * len(b)
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            cur[j] = min(prev[j] + 1, cur[j - 1] + 1, prev[j - 1] + cost)
        prev = cur
    return prev[-1]


def similarity(a: str, b: str) -> float:
    """1 - distance / longer length; two empty strings are identical."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein(a, b)) / longest


def prices_close(p1: float | None, p2: float | None, tolerance: float = PRICE_TOLERANCE) -> bool:
    # Unknown (or zero) on either side does not veto a match.
    if not p1 or not p2:
        return True
    return abs(p1 - p2) / max(p1, p2) <= tolerance


def is_fuzzy_match(
    address_a: str,
    price_a: float | None,
    beds_a: float | None,
    baths_a: float | None,
    address_b: str,
    price_b: float | None,
    beds_b: float | None,
    baths_b: float | None,
) -> bool:
    if similarity(address_a, address_b) < SIMILARITY_THRESHOLD:
        return False
    if not prices_close(price_a, price_b):
        return False
    return beds_a == beds_b and baths_a == baths_b
