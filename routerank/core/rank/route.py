"""
Route Ranking

Pairs a route with the observations along it (the tube) and around it (the
box), and ranks every entity found by coverage, spread and evidence of motion.

The box envelope is gridded; a grid cell is a tube cell when its centre
intersects the buffered route. Per-cell counts come from the box
observations; restricting them to tube cells gives route coverage and spread.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from shapely.geometry.base import BaseGeometry

from routerank.config.loader import RankingConfig
from routerank.core.rank.coords import CoordSequence, Ping
from routerank.core.rank.features import MotionScorer, ObservationSource
from routerank.core.rank.grid import CellId, Envelope, Grid
from routerank.core.rank.models import EvidenceOfMotion, RankingValues
from routerank.core.rank.segmentation import MotionLimits, TrackletSegmenter
from routerank.core.rank.stats import std_dev
from routerank.utils.error_handling import handle_specific_exceptions

logger = logging.getLogger(__name__)

CellCounts = Mapping[CellId, Mapping[str, int]]


def to_binary_maps(maps: Iterable[Mapping[str, int]]) -> List[Dict[str, int]]:
    """Cap each entity count at 1, turning observation volume into cell coverage."""
    return [{key: min(count, 1) for key, count in m.items()} for m in maps]


def aggregate_cell_counts(maps: Iterable[Mapping[str, int]]) -> Dict[str, int]:
    """Total each entity's count across a collection of per-cell maps."""
    totals: Dict[str, int] = {}
    for m in maps:
        for key, count in m.items():
            totals[key] = totals.get(key, 0) + count
    return totals


def tube_cell_stddevs(tube_counts: CellCounts, n_tube_cells: int) -> Dict[str, float]:
    """
    Standard deviation of each entity's per-cell counts over all tube cells.

    Cells where an entity was not observed contribute zeros.
    """
    per_key: Dict[str, List[float]] = {}
    for counts in tube_counts.values():
        for key, count in counts.items():
            per_key.setdefault(key, []).append(float(count))
    return {
        key: std_dev(nonzeros + [0.0] * (n_tube_cells - len(nonzeros)))
        for key, nonzeros in per_key.items()
    }


def summarize_motion_scores(scores: Sequence[float]) -> EvidenceOfMotion:
    if not scores:
        return EvidenceOfMotion.NONE
    total = math.fsum(scores)
    return EvidenceOfMotion(total=total, max=max(scores), stddev=std_dev(scores, total / len(scores)))


class RouteAndSurroundingFeatures:
    """
    One route bound to its box and tube observations for a single ranking run.

    Args:
        route: Scores a tracklet's motion along the route
        box_features: Observations inside the bounding box (context)
        tube_features: Observations inside the buffered route
        config: Tuning for this run
    """

    def __init__(
        self,
        route: MotionScorer,
        box_features: ObservationSource,
        tube_features: ObservationSource,
        config: Optional[RankingConfig] = None,
    ):
        self.route = route
        self.box_features = box_features
        self.tube_features = tube_features
        self.config = config or RankingConfig()
        self.segmenter = TrackletSegmenter(MotionLimits.from_config(self.config))

    @handle_specific_exceptions((ArithmeticError, ValueError, TypeError), "Route motion scoring failed")
    def score_tracklet(self, tracklet: Sequence[Ping], route_divisions: int) -> float:
        sequence = CoordSequence.from_pings(tracklet)
        return float(self.route.motion_scores(sequence, route_divisions).combined)

    def evidence_of_motion_for(
        self,
        pings: Iterable[Ping],
        route_divisions: Optional[int] = None,
    ) -> EvidenceOfMotion:
        """
        Evidence of motion for one entity.

        Groups the pings into candidate tracklets, scores each against the
        route and aggregates the scores.

        Args:
            pings: The entity's box observations
            route_divisions: Segments to divide the route into for scoring

        Returns:
            Total, max and stddev of tracklet scores, or EvidenceOfMotion.NONE
        """
        if route_divisions is None:
            route_divisions = self.config.route_divisions
        tracklets = self.segmenter.segment(pings)
        scores = [self.score_tracklet(t, route_divisions) for t in tracklets]
        return summarize_motion_scores(scores)

    def evidence_of_motion(self) -> Dict[str, EvidenceOfMotion]:
        """Evidence of motion for every box entity; entities never seen in the tube get NONE."""
        tube_keys = set(self.tube_features.count_keys())
        evidence: Dict[str, EvidenceOfMotion] = {}
        for key, pings in self.box_features.group_by_key().items():
            if key in tube_keys:
                evidence[key] = self.evidence_of_motion_for(pings)
            else:
                evidence[key] = EvidenceOfMotion.NONE
        return evidence

    def rank(
        self,
        box_envelope: Envelope,
        route_buffer_shapes: Sequence[BaseGeometry],
        grid_divisions: Optional[int] = None,
    ) -> Dict[str, RankingValues]:
        """
        Rank all entities found in the box and tube observations.

        Args:
            box_envelope: Square box around the route, providing context
            route_buffer_shapes: Shapes of the buffered route
            grid_divisions: Cells along each side of the box grid; defaults
                to the configured value

        Returns:
            Mapping of entity key to RankingValues
        """
        if grid_divisions is None:
            grid_divisions = self.config.grid_divisions

        tube_keys = self.tube_features.count_keys()
        box_keys = self.box_features.count_keys()

        grid = Grid(box_envelope, grid_divisions)
        tube_cells = grid.cells_intersecting(route_buffer_shapes)
        n_tube_cells = len(tube_cells)
        if n_tube_cells == 0:
            logger.warning(f"No grid cell centre intersects the route buffer ({grid})")

        grid_counts = self.box_features.grid_counts(grid)
        tube_counts = {cell: counts for cell, counts in grid_counts.items() if cell in tube_cells}
        logger.debug(f"{len(grid_counts)} occupied box cells, {len(tube_counts)} occupied tube cells")

        cells_covered = aggregate_cell_counts(to_binary_maps(grid_counts.values()))
        tube_cells_covered = aggregate_cell_counts(to_binary_maps(tube_counts.values()))
        stddevs = tube_cell_stddevs(tube_counts, n_tube_cells)
        motion = self.evidence_of_motion()

        rankings = {
            key: RankingValues(
                tube_count=tube_keys.get(key, 0),
                box_count=box_keys.get(key, 0),
                box_cells_covered=cells_covered.get(key, 0),
                tube_cells_covered=tube_cells_covered.get(key, 0),
                tube_cells_stddev=stddevs.get(key, 0.0),
                motion_evidence=motion.get(key, EvidenceOfMotion.NONE),
                grid_divisions=grid_divisions,
                n_tube_cells=n_tube_cells,
            )
            for key in set(tube_keys) | set(box_keys)
        }
        logger.info(
            f"Ranked {len(rankings)} entities on a {grid_divisions}x{grid_divisions} grid "
            f"with {n_tube_cells} tube cells"
        )
        return rankings
