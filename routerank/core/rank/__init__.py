"""
Route Ranking Module

Ranks entities by how strongly their pings support travel along a route.

Modules:
- stats.py - Standard deviation, geometric mean, stddev combination
- grid.py - Lattice over the bounding box
- coords.py - Pings, scored pairs and coordinate sequences
- features.py - Observation source protocol and in-memory collection
- segmentation.py - Tracklet segmentation
- models.py - EvidenceOfMotion and RankingValues
- route.py - RouteAndSurroundingFeatures orchestrator
- results.py - Sorting and paging by named score
"""

from routerank.core.rank.coords import CoordSequence, Ping, ScoredPair, SpeedStatistics
from routerank.core.rank.features import MotionScorer, ObservationSource, PingCollection
from routerank.core.rank.grid import Grid
from routerank.core.rank.models import EvidenceOfMotion, RankingValues, merge_ranking_maps
from routerank.core.rank.results import NamedScore, page_rankings, rankings_to_frame, sort_rankings
from routerank.core.rank.route import RouteAndSurroundingFeatures
from routerank.core.rank.segmentation import MotionLimits, TrackletSegmenter

__all__ = [
    # Geometry & sequences
    "Grid",
    "Ping",
    "ScoredPair",
    "CoordSequence",
    "SpeedStatistics",
    # Sources
    "ObservationSource",
    "MotionScorer",
    "PingCollection",
    # Segmentation
    "MotionLimits",
    "TrackletSegmenter",
    # Models
    "EvidenceOfMotion",
    "RankingValues",
    "merge_ranking_maps",
    # Orchestration
    "RouteAndSurroundingFeatures",
    # Results
    "NamedScore",
    "sort_rankings",
    "page_rankings",
    "rankings_to_frame",
]
