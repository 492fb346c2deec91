"""
Ranking Results

Orders ranked entities by a named score with skip/max paging, and tabulates
them as a DataFrame for reporting layers.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Union

import pandas as pd

from routerank.config.loader import RankingConfig
from routerank.core.rank.models import RankingValues

RAW_FIELDS = [
    "tube_count",
    "box_count",
    "box_cells_covered",
    "tube_cells_covered",
    "tube_cells_stddev",
    "grid_divisions",
    "n_tube_cells",
]


class NamedScore(str, Enum):
    """Scores a result list can be sorted by."""
    COMBINED_SCORE = "combined_score"
    COMBINED_SCORE_NO_MOTION = "combined_score_no_motion"
    TF_IDF = "tf_idf"
    SCALED_TF_IDF = "scaled_tf_idf"
    IDF = "idf"
    PERCENTAGE_OF_TUBE_CELLS_COVERED = "percentage_of_tube_cells_covered"
    TUBE_CELL_DEVIATION_SCORE = "tube_cell_deviation_score"
    MOTION_EVIDENCE_TOTAL = "motion_evidence_total"
    MOTION_EVIDENCE_MAX = "motion_evidence_max"
    TUBE_COUNT = "tube_count"
    BOX_COUNT = "box_count"

    DEFAULT = COMBINED_SCORE

    def __str__(self) -> str:
        return self.value

    def score_of(self, values: RankingValues) -> float:
        return _SCORE_GETTERS[self](values)


_SCORE_GETTERS: Dict[NamedScore, Callable[[RankingValues], float]] = {
    NamedScore.COMBINED_SCORE: lambda rv: rv.combined_score,
    NamedScore.COMBINED_SCORE_NO_MOTION: lambda rv: rv.combined_score_no_motion,
    NamedScore.TF_IDF: lambda rv: rv.tf_idf,
    NamedScore.SCALED_TF_IDF: lambda rv: rv.scaled_tf_idf,
    NamedScore.IDF: lambda rv: rv.idf,
    NamedScore.PERCENTAGE_OF_TUBE_CELLS_COVERED: lambda rv: rv.percentage_of_tube_cells_covered,
    NamedScore.TUBE_CELL_DEVIATION_SCORE: lambda rv: rv.tube_cell_deviation_score,
    NamedScore.MOTION_EVIDENCE_TOTAL: lambda rv: rv.motion_evidence.total,
    NamedScore.MOTION_EVIDENCE_MAX: lambda rv: rv.motion_evidence.max,
    NamedScore.TUBE_COUNT: lambda rv: float(rv.tube_count),
    NamedScore.BOX_COUNT: lambda rv: float(rv.box_count),
}


def sort_rankings(
    rankings: Mapping[str, RankingValues],
    sort_by: Union[NamedScore, str] = NamedScore.DEFAULT,
    skip: int = 0,
    max_results: Optional[int] = None,
) -> List[Tuple[str, RankingValues]]:
    """
    Order entities by a named score, highest first, and page the result.

    Ties (and NaN scores, which sort last) are broken by key ascending.

    Args:
        rankings: Output of RouteAndSurroundingFeatures.rank
        sort_by: Score to sort by
        skip: Leading results to drop
        max_results: Results to keep after skipping; None keeps all

    Returns:
        List of (key, RankingValues)

    Raises:
        ValueError: If sort_by is unknown or paging values are negative
    """
    score = NamedScore(sort_by)
    if skip < 0:
        raise ValueError(f"skip must not be negative (got {skip})")
    if max_results is not None and max_results < 0:
        raise ValueError(f"max_results must not be negative (got {max_results})")

    def order(item: Tuple[str, RankingValues]):
        value = score.score_of(item[1])
        if math.isnan(value):
            return (1, 0.0, item[0])
        return (0, -value, item[0])

    ordered = sorted(rankings.items(), key=order)
    end = None if max_results is None else skip + max_results
    return ordered[skip:end]


def page_rankings(rankings: Mapping[str, RankingValues], config: RankingConfig) -> List[Tuple[str, RankingValues]]:
    """sort_rankings with the sort field and paging taken from a RankingConfig."""
    return sort_rankings(rankings, config.sort_field, config.skip_results, config.max_results)


def rankings_to_frame(rankings: Mapping[str, RankingValues]) -> pd.DataFrame:
    """One row per entity with raw fields and every named score, indexed by key."""
    rows = []
    for key, rv in rankings.items():
        row = {"key": key}
        row.update({name: getattr(rv, name) for name in RAW_FIELDS})
        row.update({score.value: score.score_of(rv) for score in NamedScore})
        rows.append(row)
    columns = ["key"] + RAW_FIELDS + [score.value for score in NamedScore]
    return pd.DataFrame(rows, columns=columns).set_index("key")
