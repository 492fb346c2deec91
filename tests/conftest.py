"""
Pytest configuration for routerank tests.

Shared fixtures: a track builder that lays pings along a geodesic, and a fake
route collaborator that scores a tracklet by its number of segments.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import List, Tuple

import pytest

from routerank.core.rank.coords import GEOD, Ping

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def build_track(
    key: str,
    start: Tuple[float, float],
    azimuth: float,
    step_m: float,
    step_s: float,
    n: int,
    t0: datetime = T0,
) -> List[Ping]:
    """n pings from start (lon, lat), each step_m further along azimuth and step_s later."""
    lon, lat = start
    pings = [Ping(key, lon, lat, t0)]
    for i in range(1, n):
        lon, lat, _ = GEOD.fwd(lon, lat, azimuth, step_m)
        pings.append(Ping(key, lon, lat, t0 + timedelta(seconds=step_s * i)))
    return pings


class SegmentCountRoute:
    """Scores a tracklet by how many segments it has; records every call."""

    def __init__(self):
        self.calls = []

    def motion_scores(self, sequence, divisions):
        self.calls.append((sequence, divisions))
        return SimpleNamespace(combined=float(len(sequence)))


@pytest.fixture
def track():
    return build_track


@pytest.fixture
def route():
    return SegmentCountRoute()
