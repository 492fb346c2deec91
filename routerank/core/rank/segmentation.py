"""
Tracklet Segmentation

Greedily partitions one entity's pings into runs consistent with plausible
vehicle or aircraft motion: bounded time gap, bounded speed, bounded turn rate.

Pings are scanned in ascending time order. Each ping is tested against the
most recently appended ping of the current group (and the one appended before
that, for the turn-rate check). A consistent ping extends the group; any other
ping closes it and starts a new group.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from routerank.config.loader import RankingConfig
from routerank.core.rank.coords import Ping, ScoredPair

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MotionLimits:
    """Kinematic bounds for consistency checks."""
    max_time_between_pings: float
    max_speed: float
    max_turn_rate: float

    @classmethod
    def from_config(cls, config: RankingConfig) -> "MotionLimits":
        return cls(
            max_time_between_pings=config.max_time_between_pings,
            max_speed=config.max_speed,
            max_turn_rate=config.max_turn_rate,
        )


def turn_rate(point: Ping, previous: Ping, before_that: Ping) -> float:
    """
    Heading change per second across two consecutive segments.

    The difference is signed; values above 180 degrees are reduced by 180.
    Headings are geodesic forward azimuths on the WGS84 ellipsoid, so rates
    differ from those of a bearing formula that feeds degrees to sin/cos.
    """
    pair1 = ScoredPair(previous, point)
    pair2 = ScoredPair(before_that, previous)
    heading_diff = pair1.heading - pair2.heading
    if heading_diff > 180.0:
        heading_diff -= 180.0
    return heading_diff / (pair1.time_delta + pair2.time_delta)


def consistent_with_motion(point: Ping, previous: Ping, limits: MotionLimits) -> bool:
    """True if moving from previous to point needs a plausible speed within the allowed gap."""
    pair = ScoredPair(previous, point)
    if pair.time_delta >= limits.max_time_between_pings:
        return False
    speed = pair.speed
    return 0.0 < speed < limits.max_speed


def consistent_with_group(point: Ping, group: Sequence[Ping], limits: MotionLimits) -> bool:
    """
    Check a ping against a running group.

    Args:
        point: Candidate ping
        group: Current group in append order (last element is the newest)
        limits: Kinematic bounds

    Returns:
        True if the ping may continue the motion described by the group
    """
    if not group:
        return True
    previous = group[-1]
    if not consistent_with_motion(point, previous, limits):
        return False
    if len(group) == 1:
        return True
    return turn_rate(point, previous, group[-2]) < limits.max_turn_rate


class TrackletSegmenter:
    """Splits one entity's pings into candidate tracklets."""

    def __init__(self, limits: MotionLimits):
        self.limits = limits

    def segment(self, pings: Iterable[Ping]) -> List[List[Ping]]:
        """
        Partition timestamped pings into tracklets.

        Pings without a timestamp are dropped. Groups are returned in the order
        they were started, each in ascending time order.
        """
        ordered = sorted((p for p in pings if p.has_timestamp), key=lambda p: p.timestamp)
        groups: List[List[Ping]] = [[]]
        for point in ordered:
            current = groups[-1]
            if consistent_with_group(point, current, self.limits):
                current.append(point)
            else:
                groups.append([point])
        tracklets = [g for g in groups if g]
        logger.debug(f"Segmented {len(ordered)} pings into {len(tracklets)} tracklets")
        return tracklets
