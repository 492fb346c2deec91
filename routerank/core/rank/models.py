"""
Ranking Data Models

EvidenceOfMotion aggregates the motion scores of all tracklets attributed to
one entity. RankingValues is the per-entity snapshot of one ranking run with
the derived tf-idf style scores.

Known limitation: scaled_tf_idf is not bounded to [0, 1], so neither is
combined_score_no_motion, even though its coverage and spread terms are.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import ClassVar, Dict, Mapping

from routerank.core.rank.stats import combine_stddev, geometric_mean
from routerank.utils.error_handling import IncompatibleMergeError

# idf for an entity that covers no box cells: maximally rare, but finite
MAX_IDF = sys.float_info.max


@dataclass(frozen=True)
class EvidenceOfMotion:
    """
    Aggregate of the motion scores from a series of tracklets for one entity.

    Attributes:
        total: Sum of tracklet scores
        max: Largest tracklet score
        stddev: Population standard deviation of tracklet scores
    """
    total: float
    max: float
    stddev: float

    NONE: ClassVar["EvidenceOfMotion"]

    def merge(self, other: "EvidenceOfMotion") -> "EvidenceOfMotion":
        return EvidenceOfMotion(
            total=self.total + other.total,
            max=max(self.max, other.max),
            stddev=combine_stddev(self.stddev, other.stddev),
        )


EvidenceOfMotion.NONE = EvidenceOfMotion(0.0, 0.0, 0.0)


@dataclass(frozen=True)
class RankingValues:
    """
    Values used to rank an entity along a route.

    Attributes:
        tube_count: Observations of the entity inside the route buffer
        box_count: Observations of the entity inside the bounding box
        box_cells_covered: Distinct grid cells the entity touches, box-wide
        tube_cells_covered: Distinct route-intersecting cells the entity touches
        tube_cells_stddev: Spread of per-cell counts over the route cells,
            zero-padded; low means spread along the route, high means
            concentrated in a few places
        motion_evidence: Aggregate tracklet motion scores
        grid_divisions: Cells along one side of the box grid
        n_tube_cells: Grid cells intersecting the route buffer
    """
    tube_count: int
    box_count: int
    box_cells_covered: int
    tube_cells_covered: int
    tube_cells_stddev: float
    motion_evidence: EvidenceOfMotion
    grid_divisions: int
    n_tube_cells: int

    @classmethod
    def empty(cls, grid_divisions: int, n_tube_cells: int) -> "RankingValues":
        return cls(0, 0, 0, 0, 0.0, EvidenceOfMotion.NONE, grid_divisions, n_tube_cells)

    @property
    def idf(self) -> float:
        """
        Inverse document frequency, where documents are grid cells.

        Returns:
            log(total grid cells / cells covered), or MAX_IDF when no cell is covered
        """
        if self.box_cells_covered == 0:
            return MAX_IDF
        return math.log((self.grid_divisions * self.grid_divisions) / self.box_cells_covered)

    @property
    def tf_idf(self) -> float:
        return self.idf * self.tube_count

    @property
    def avg_per_tube_cell(self) -> float:
        """Observations per route cell; 0.0 when no cell intersects the route."""
        if self.n_tube_cells == 0:
            return 0.0
        return self.tube_count / self.n_tube_cells

    @property
    def scaled_tube_cell_stddev(self) -> float:
        avg = self.avg_per_tube_cell
        return self.tube_cells_stddev / avg if avg > 0.0 else 0.0

    @property
    def tube_cell_deviation_score(self) -> float:
        """
        Score in (0, 1] from the spread of the entity along the route.

        1 means evenly spread along the route; towards 0 means concentrated
        in one location.
        """
        return math.exp(-self.scaled_tube_cell_stddev)

    @property
    def scaled_tf_idf(self) -> float:
        return self.idf * self.avg_per_tube_cell

    @property
    def percentage_of_tube_cells_covered(self) -> float:
        if self.n_tube_cells == 0:
            return 0.0
        return self.tube_cells_covered / self.n_tube_cells

    @property
    def combined_score_no_motion(self) -> float:
        return geometric_mean(
            self.scaled_tf_idf,
            self.percentage_of_tube_cells_covered,
            self.tube_cell_deviation_score,
        )

    @property
    def combined_score(self) -> float:
        """Geometric mean of the no-motion score, log(total motion + 1) and max motion."""
        if self.motion_evidence.total > 0.0:
            return geometric_mean(
                self.combined_score_no_motion,
                math.log(self.motion_evidence.total + 1.0),
                self.motion_evidence.max,
            )
        return 0.0

    def merge(self, other: "RankingValues") -> "RankingValues":
        """
        Combine with a result computed over another partition of the same run.

        Counts and coverage add; standard deviations combine assuming
        independence, which is an approximation.

        Raises:
            IncompatibleMergeError: If grid_divisions or n_tube_cells differ
        """
        left = (self.grid_divisions, self.n_tube_cells)
        right = (other.grid_divisions, other.n_tube_cells)
        if left != right:
            raise IncompatibleMergeError(
                f"Cannot merge ranking values from different grids: "
                f"(grid_divisions, n_tube_cells) {left} != {right}",
                left=left,
                right=right,
            )
        return RankingValues(
            tube_count=self.tube_count + other.tube_count,
            box_count=self.box_count + other.box_count,
            box_cells_covered=self.box_cells_covered + other.box_cells_covered,
            tube_cells_covered=self.tube_cells_covered + other.tube_cells_covered,
            tube_cells_stddev=combine_stddev(self.tube_cells_stddev, other.tube_cells_stddev),
            motion_evidence=self.motion_evidence.merge(other.motion_evidence),
            grid_divisions=self.grid_divisions,
            n_tube_cells=self.n_tube_cells,
        )


def merge_ranking_maps(*maps: Mapping[str, RankingValues]) -> Dict[str, RankingValues]:
    """
    Key-wise merge of ranking results computed over disjoint partitions.

    Keys present in only one map are carried unchanged.
    """
    merged: Dict[str, RankingValues] = {}
    for ranking in maps:
        for key, values in ranking.items():
            merged[key] = merged[key].merge(values) if key in merged else values
    return merged
