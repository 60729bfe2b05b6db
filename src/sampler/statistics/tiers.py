"""Loyalty tier thresholds and computation.

These values MUST match the admin dashboard's tier labels.
"""

from __future__ import annotations

from typing import NamedTuple


class Tier(NamedTuple):
    level: int
    name: str
    min_points: int


# Highest first; the first threshold reached wins
TIER_THRESHOLDS: list[Tier] = [
    Tier(level=5, name="SampleMaster", min_points=100_000),
    Tier(level=4, name="VIS", min_points=25_000),
    Tier(level=3, name="SuperSampler", min_points=5_000),
    Tier(level=2, name="SampleFan", min_points=1_000),
    Tier(level=1, name="NewbieSampler", min_points=0),
]


def tier_for_points(points: float) -> Tier:
    """Compute the tier for a points balance. Negative balances get the lowest tier."""
    for tier in TIER_THRESHOLDS:
        if points >= tier.min_points:
            return tier
    return TIER_THRESHOLDS[-1]
