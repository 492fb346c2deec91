"""
End-to-end tests for RouteAndSurroundingFeatures.

Layout: a 1 x 1 degree box near the equator on a 10 x 10 grid. The buffered
route is the band 0.4 <= lat <= 0.6, so tube cells are rows 4 and 5 (20 cells).

- mover: ten pings along lat 0.52, one per column, a minute apart
- parked: ten pings in a single tube cell
- outsider: five pings at lat 0.15, never in the tube
"""

import math
from datetime import timedelta

import pytest
from shapely.geometry import box

from routerank.config.loader import RankingConfig
from routerank.core.rank.coords import Ping
from routerank.core.rank.features import PingCollection
from routerank.core.rank.models import EvidenceOfMotion, RankingValues, merge_ranking_maps
from routerank.core.rank.route import (
    RouteAndSurroundingFeatures,
    aggregate_cell_counts,
    summarize_motion_scores,
    to_binary_maps,
    tube_cell_stddevs,
)
from routerank.core.rank.results import sort_rankings
from tests.conftest import T0

BOX = (0.0, 0.0, 1.0, 1.0)
ROUTE_BUFFER = box(0.0, 0.4, 1.0, 0.6)


def _pings():
    mover = [Ping("mover", 0.05 + 0.1 * i, 0.52, T0 + timedelta(minutes=i)) for i in range(10)]
    parked = [Ping("parked", 0.55, 0.45, T0 + timedelta(minutes=i)) for i in range(10)]
    outsider = [Ping("outsider", 0.05 + 0.1 * i, 0.15, T0 + timedelta(minutes=i)) for i in range(5)]
    return mover + parked + outsider


def _features(route, **config):
    box_features = PingCollection.from_pings(_pings())
    tube_features = box_features.within([ROUTE_BUFFER])
    return RouteAndSurroundingFeatures(route, box_features, tube_features, RankingConfig(**config))


class TestHelpers:
    """Cell count folding."""

    def test_binary_maps(self):
        assert to_binary_maps([{"a": 3, "b": 1}, {"a": 0}]) == [{"a": 1, "b": 1}, {"a": 0}]

    def test_aggregate_cell_counts(self):
        assert aggregate_cell_counts([{"a": 1, "b": 2}, {"a": 4}]) == {"a": 5, "b": 2}

    def test_tube_cell_stddevs_zero_padded(self):
        stddevs = tube_cell_stddevs({(0, 0): {"a": 2}, (0, 1): {"a": 2}}, n_tube_cells=4)
        # [2, 2, 0, 0] around a mean of 1
        assert stddevs == {"a": pytest.approx(1.0)}

    def test_summarize_motion_scores(self):
        assert summarize_motion_scores([]) is EvidenceOfMotion.NONE
        evidence = summarize_motion_scores([1.0, 3.0])
        assert evidence == EvidenceOfMotion(total=4.0, max=3.0, stddev=1.0)


class TestEvidenceOfMotion:
    """Per-entity motion evidence."""

    def test_single_tracklet(self, route, track):
        features = _features(route)
        pings = track("x", (0.0, 0.0), 90.0, 500.0, 60.0, 4)
        evidence = features.evidence_of_motion_for(pings)
        assert evidence == EvidenceOfMotion(total=3.0, max=3.0, stddev=0.0)
        assert route.calls[-1][1] == 100

    def test_route_divisions_passed_through(self, route, track):
        features = _features(route, route_divisions=25)
        features.evidence_of_motion_for(track("x", (0.0, 0.0), 90.0, 500.0, 60.0, 3))
        assert route.calls[-1][1] == 25
        features.evidence_of_motion_for(track("x", (0.0, 0.0), 90.0, 500.0, 60.0, 3), route_divisions=7)
        assert route.calls[-1][1] == 7

    def test_no_timestamps_is_none(self, route):
        features = _features(route)
        evidence = features.evidence_of_motion_for([Ping("x", 0.1, 0.1, None), Ping("x", 0.2, 0.2, None)])
        assert evidence == EvidenceOfMotion.NONE
        assert route.calls == []

    def test_box_only_entities_get_none(self, route):
        evidence = _features(route).evidence_of_motion()
        assert set(evidence) == {"mover", "parked", "outsider"}
        assert evidence["outsider"] is EvidenceOfMotion.NONE
        assert evidence["mover"] == EvidenceOfMotion(total=9.0, max=9.0, stddev=0.0)
        # Ten stationary singletons each score zero
        assert evidence["parked"] == EvidenceOfMotion.NONE

    def test_scorer_failure_propagates(self, track):
        class BrokenRoute:
            def motion_scores(self, sequence, divisions):
                raise ValueError("route has no geometry")

        features = _features(BrokenRoute())
        with pytest.raises(ValueError):
            features.evidence_of_motion_for(track("x", (0.0, 0.0), 90.0, 500.0, 60.0, 3))


class TestRank:
    """Full ranking run."""

    def test_one_value_per_entity(self, route):
        rankings = _features(route).rank(BOX, [ROUTE_BUFFER], grid_divisions=10)
        assert set(rankings) == {"mover", "parked", "outsider"}
        for values in rankings.values():
            assert values.grid_divisions == 10
            assert values.n_tube_cells == 20
            assert values.tube_cells_covered <= values.box_cells_covered
            assert values.tube_count <= values.box_count
            assert 0 <= values.tube_cells_covered <= values.n_tube_cells

    def test_mover(self, route):
        mover = _features(route).rank(BOX, [ROUTE_BUFFER], grid_divisions=10)["mover"]
        assert mover == RankingValues(
            tube_count=10,
            box_count=10,
            box_cells_covered=10,
            tube_cells_covered=10,
            tube_cells_stddev=pytest.approx(0.5),
            motion_evidence=EvidenceOfMotion(9.0, 9.0, 0.0),
            grid_divisions=10,
            n_tube_cells=20,
        )
        assert mover.combined_score > 0.0

    def test_parked(self, route):
        parked = _features(route).rank(BOX, [ROUTE_BUFFER], grid_divisions=10)["parked"]
        assert (parked.tube_count, parked.box_count) == (10, 10)
        assert (parked.box_cells_covered, parked.tube_cells_covered) == (1, 1)
        # [10] + [0] * 19
        assert parked.tube_cells_stddev == pytest.approx(math.sqrt(4.75))
        assert parked.combined_score == 0.0

    def test_outsider(self, route):
        outsider = _features(route).rank(BOX, [ROUTE_BUFFER], grid_divisions=10)["outsider"]
        assert outsider == RankingValues(0, 5, 5, 0, 0.0, EvidenceOfMotion.NONE, 10, 20)

    def test_mover_ranks_first(self, route):
        rankings = _features(route).rank(BOX, [ROUTE_BUFFER], grid_divisions=10)
        assert [key for key, _ in sort_rankings(rankings)][0] == "mover"
        assert rankings["parked"].tf_idf > rankings["mover"].tf_idf

    def test_grid_divisions_from_config(self, route):
        rankings = _features(route, grid_divisions=10).rank(BOX, [ROUTE_BUFFER])
        assert rankings["mover"].grid_divisions == 10
        assert rankings["mover"].n_tube_cells == 20

    def test_route_outside_box(self, route, caplog):
        with caplog.at_level("WARNING"):
            rankings = _features(route).rank(BOX, [box(5.0, 5.0, 6.0, 6.0)], grid_divisions=10)
        assert "No grid cell centre intersects" in caplog.text
        for values in rankings.values():
            assert values.n_tube_cells == 0
            assert values.tube_cells_covered == 0
            assert values.percentage_of_tube_cells_covered == 0.0

    def test_partitions_merge_to_whole(self, route):
        pings = _pings()
        parts = [
            [p for p in pings if p.key != "parked"],
            [p for p in pings if p.key == "parked"],
        ]
        partials = []
        for part in parts:
            box_features = PingCollection.from_pings(part)
            features = RouteAndSurroundingFeatures(route, box_features, box_features.within([ROUTE_BUFFER]))
            partials.append(features.rank(BOX, [ROUTE_BUFFER], grid_divisions=10))
        whole = _features(route).rank(BOX, [ROUTE_BUFFER], grid_divisions=10)

        assert merge_ranking_maps(*partials) == whole
