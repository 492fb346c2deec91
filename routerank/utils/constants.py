"""
Ranking Constants

This module contains the default tuning values for ranking runs to avoid
magic numbers. Runtime values live on RankingConfig; these are only defaults.
"""

# Time conversion constants
SECONDS_PER_HOUR = 3600.0

# Tracklet segmentation limits
MAX_TIME_BETWEEN_PINGS_SECONDS = SECONDS_PER_HOUR  # one hour
DEFAULT_MAX_SPEED_MPS = 1000.0  # about what an airplane might fly
DEFAULT_MAX_TURN_RATE_DEG_PER_S = 10.0

# Grid and route discretization
DEFAULT_GRID_DIVISIONS = 100
DEFAULT_ROUTE_DIVISIONS = 100

# Result paging
DEFAULT_SKIP_RESULTS = 0
DEFAULT_MAX_RESULTS = 1000
DEFAULT_SORT_FIELD = "combined_score"
SORT_FIELDS = frozenset({
    "combined_score",
    "combined_score_no_motion",
    "tf_idf",
    "scaled_tf_idf",
    "idf",
    "percentage_of_tube_cells_covered",
    "tube_cell_deviation_score",
    "motion_evidence_total",
    "motion_evidence_max",
    "tube_count",
    "box_count",
})

# Reference ellipsoid for geodesic distance and heading
GEODESIC_ELLIPSOID = "WGS84"

# Default ranking configuration file
DEFAULT_RANKING_CONFIG = "ranking.yml"
