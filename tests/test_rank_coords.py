"""
Unit tests for pings, scored pairs and coordinate sequences.
"""

import math
from datetime import timedelta

import pytest

from routerank.core.rank.coords import GEOD, CoordSequence, Ping, ScoredPair, SpeedStatistics
from tests.conftest import T0, build_track


def _pair_1km_10min():
    lon, lat, _ = GEOD.fwd(-66.65, 45.96, 90.0, 1000.0)
    earlier = Ping("a", -66.65, 45.96, T0)
    later = Ping("a", lon, lat, T0 + timedelta(minutes=10))
    return ScoredPair(earlier, later)


class TestScoredPair:
    """Distance, time, speed and heading between two pings."""

    def test_distance_is_geodesic_metres(self):
        assert _pair_1km_10min().distance == pytest.approx(1000.0, abs=1e-6)

    def test_time_delta_seconds(self):
        assert _pair_1km_10min().time_delta == 600.0

    def test_speed(self):
        assert _pair_1km_10min().speed == pytest.approx(1000.0 / 600.0)
        assert _pair_1km_10min().speed == pytest.approx(1.667, abs=1e-3)

    def test_heading_is_initial_bearing(self):
        assert _pair_1km_10min().heading == pytest.approx(90.0, abs=1e-6)

    def test_heading_westward_is_negative(self):
        pair = ScoredPair(Ping("a", 0.0, 0.0, T0), Ping("a", -0.01, 0.0, T0 + timedelta(seconds=1)))
        assert pair.heading == pytest.approx(-90.0, abs=1e-6)

    def test_time_delta_is_absolute(self):
        pair = _pair_1km_10min()
        swapped = ScoredPair(pair.later, pair.earlier)
        assert swapped.time_delta == 600.0

    def test_same_timestamp_speed_is_infinite(self):
        pair = ScoredPair(Ping("a", 0.0, 0.0, T0), Ping("a", 0.001, 0.0, T0))
        assert math.isinf(pair.speed)


class TestCoordSequence:
    """Tracklet chains."""

    def test_empty_and_singleton(self):
        assert len(CoordSequence.from_pings([])) == 0
        assert len(CoordSequence.from_pings([Ping("a", 1.0, 2.0, T0)])) == 0

    def test_empty_speed_stats_are_zero(self):
        assert CoordSequence.from_pings([]).speed_stats() == SpeedStatistics(0.0, 0.0, 0.0, 0.0)
        single = CoordSequence.from_pings([Ping("a", 1.0, 2.0, T0)])
        assert single.speed_stats() == SpeedStatistics(0.0, 0.0, 0.0, 0.0)

    def test_pairs_sorted_and_contiguous(self):
        pings = build_track("a", (-66.65, 45.96), 30.0, 250.0, 60.0, 5)
        sequence = CoordSequence.from_pings(reversed(pings))
        assert len(sequence) == 4
        assert sequence.pings == pings
        for a, b in zip(sequence.pairs, sequence.pairs[1:]):
            assert a.later is b.earlier
            assert a.earlier.timestamp < a.later.timestamp

    def test_non_contiguous_pairs_rejected(self):
        p = build_track("a", (0.0, 0.0), 0.0, 100.0, 10.0, 4)
        with pytest.raises(ValueError):
            CoordSequence([ScoredPair(p[0], p[1]), ScoredPair(p[2], p[3])])

    def test_total_distance(self):
        pings = build_track("a", (10.0, 50.0), 120.0, 300.0, 30.0, 4)
        assert CoordSequence.from_pings(pings).distance == pytest.approx(900.0, abs=1e-6)

    def test_speed_stats(self):
        # Legs of 100, 200 and 300 m, each taking 100 s
        p0 = Ping("a", 0.0, 10.0, T0)
        lon1, lat1, _ = GEOD.fwd(p0.lon, p0.lat, 0.0, 100.0)
        p1 = Ping("a", lon1, lat1, T0 + timedelta(seconds=100))
        lon2, lat2, _ = GEOD.fwd(lon1, lat1, 0.0, 200.0)
        p2 = Ping("a", lon2, lat2, T0 + timedelta(seconds=200))
        lon3, lat3, _ = GEOD.fwd(lon2, lat2, 0.0, 300.0)
        p3 = Ping("a", lon3, lat3, T0 + timedelta(seconds=300))

        sequence = CoordSequence.from_pings([p2, p0, p3, p1])
        stats = sequence.speed_stats()
        speeds = sequence.speeds

        assert speeds == pytest.approx([1.0, 2.0, 3.0], abs=1e-6)
        assert stats.max >= stats.avg >= stats.min
        assert stats.avg == pytest.approx(sum(speeds) / len(speeds))
        assert stats.max == pytest.approx(3.0, abs=1e-6)
        assert stats.min == pytest.approx(1.0, abs=1e-6)
        assert stats.stddev == pytest.approx(math.sqrt(2.0 / 3.0), abs=1e-6)
