"""
Pings, Scored Pairs and Coordinate Sequences

A Ping is one observation of an entity. A ScoredPair derives distance, time
delta, speed and heading from two pings; a CoordSequence is the chain of
consecutive pairs for one tracklet.

Distances and headings are geodesic on the WGS84 ellipsoid (pyproj.Geod).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from functools import cached_property
from typing import Iterable, List, Optional, Tuple

import pyproj

from routerank.core.rank.stats import std_dev
from routerank.utils.constants import GEODESIC_ELLIPSOID

GEOD = pyproj.Geod(ellps=GEODESIC_ELLIPSOID)


@dataclass(frozen=True)
class Ping:
    """
    A single observation of an entity.

    Attributes:
        key: Entity identifier
        lon: Longitude in degrees
        lat: Latitude in degrees
        timestamp: Observation time; None when the source had no usable time
    """
    key: str
    lon: float
    lat: float
    timestamp: Optional[datetime] = None

    @property
    def has_timestamp(self) -> bool:
        return self.timestamp is not None


@dataclass(frozen=True)
class ScoredPair:
    """Two pings of one entity, earlier first."""
    earlier: Ping
    later: Ping

    @cached_property
    def _inverse(self) -> Tuple[float, float]:
        azimuth, _, distance = GEOD.inv(self.earlier.lon, self.earlier.lat, self.later.lon, self.later.lat)
        return azimuth, distance

    @property
    def distance(self) -> float:
        """Geodesic distance in metres."""
        return self._inverse[1]

    @property
    def time_delta(self) -> float:
        """Absolute time difference in seconds."""
        return abs((self.later.timestamp - self.earlier.timestamp).total_seconds())

    @property
    def speed(self) -> float:
        """Metres per second; inf when both pings share a timestamp."""
        dt = self.time_delta
        if dt == 0.0:
            return math.inf
        return self.distance / dt

    @property
    def heading(self) -> float:
        """Initial bearing from earlier to later, degrees in (-180, 180]."""
        return self._inverse[0]


@dataclass(frozen=True)
class SpeedStatistics:
    max: float
    min: float
    avg: float
    stddev: float


class CoordSequence:
    """
    Time-ascending chain of ScoredPairs for one candidate tracklet.

    Consecutive pairs share a ping: pairs[i].later is pairs[i + 1].earlier.
    """

    def __init__(self, pairs: Iterable[ScoredPair] = ()):
        self.pairs: Tuple[ScoredPair, ...] = tuple(pairs)
        for a, b in zip(self.pairs, self.pairs[1:]):
            if a.later is not b.earlier:
                raise ValueError("CoordSequence pairs must be chronologically contiguous.")

    @classmethod
    def from_pings(cls, pings: Iterable[Ping]) -> "CoordSequence":
        """Sort pings by time and pair them up; one ping or none gives an empty sequence."""
        ordered = sorted(pings, key=lambda p: p.timestamp)
        if len(ordered) <= 1:
            return cls()
        return cls(ScoredPair(a, b) for a, b in zip(ordered, ordered[1:]))

    def __len__(self) -> int:
        return len(self.pairs)

    def __iter__(self):
        return iter(self.pairs)

    @property
    def pings(self) -> List[Ping]:
        if not self.pairs:
            return []
        return [self.pairs[0].earlier] + [pair.later for pair in self.pairs]

    @property
    def distance(self) -> float:
        return math.fsum(pair.distance for pair in self.pairs)

    @property
    def speeds(self) -> List[float]:
        return [pair.speed for pair in self.pairs]

    def speed_stats(self) -> SpeedStatistics:
        speeds = self.speeds
        if not speeds:
            return SpeedStatistics(0.0, 0.0, 0.0, 0.0)
        avg = math.fsum(speeds) / len(speeds)
        return SpeedStatistics(max(speeds), min(speeds), avg, std_dev(speeds, avg))
