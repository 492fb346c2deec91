"""
Observation Sources

The ranking core reads observations through the ObservationSource protocol.
PingCollection is an in-memory implementation backed by a pandas DataFrame
with columns: key, lon, lat, timestamp.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Protocol

import numpy as np
import pandas as pd
import shapely
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union

from routerank.core.rank.coords import Ping
from routerank.core.rank.grid import CellId, Grid

logger = logging.getLogger(__name__)

PING_COLUMNS = ["key", "lon", "lat", "timestamp"]


class ObservationSource(Protocol):
    """Collection of entity observations as seen by the ranking core."""

    def count_keys(self) -> Dict[str, int]:
        ...

    def grid_counts(self, grid: Grid) -> Dict[CellId, Dict[str, int]]:
        ...

    def group_by_key(self) -> Dict[str, List[Ping]]:
        ...


class MotionScores(Protocol):
    combined: float


class MotionScorer(Protocol):
    """The route collaborator that scores one tracklet against the route."""

    def motion_scores(self, sequence, divisions: int) -> MotionScores:
        ...


class PingCollection:
    """
    Observations for many entities, held as a DataFrame.

    Timestamps may be missing (NaT); those rows still count towards cell and
    key counts but are skipped by tracklet segmentation. Timezone-aware
    timestamps are held in UTC. Rows with NaN or infinite coordinates are
    dropped.
    """

    def __init__(self, frame: Optional[pd.DataFrame] = None):
        if frame is None:
            frame = pd.DataFrame(columns=PING_COLUMNS)
        missing = [c for c in ("key", "lon", "lat") if c not in frame.columns]
        if missing:
            raise ValueError(f"PingCollection frame missing required columns: {', '.join(missing)}")
        df = frame.copy()
        if "timestamp" not in df.columns:
            df["timestamp"] = pd.NaT
        df["key"] = df["key"].astype(str)
        df["lon"] = df["lon"].astype(np.float64)
        df["lat"] = df["lat"].astype(np.float64)
        # Mixed UTC offsets only convert when normalized to UTC
        aware = any(getattr(ts, "tzinfo", None) is not None for ts in df["timestamp"] if not pd.isna(ts))
        df["timestamp"] = pd.to_datetime(df["timestamp"], utc=aware)

        finite = np.isfinite(df["lon"].to_numpy()) & np.isfinite(df["lat"].to_numpy())
        if not finite.all():
            logger.warning(f"Dropping {int((~finite).sum())} observations with non-finite coordinates")
            df = df[finite]
        self.frame = df[PING_COLUMNS].reset_index(drop=True)

    @classmethod
    def from_pings(cls, pings: Iterable[Ping]) -> "PingCollection":
        rows = [(p.key, p.lon, p.lat, p.timestamp) for p in pings]
        return cls(pd.DataFrame(rows, columns=PING_COLUMNS))

    def __len__(self) -> int:
        return len(self.frame)

    def __repr__(self) -> str:
        return f"PingCollection(n={len(self.frame)}, keys={self.frame['key'].nunique()})"

    def count_keys(self) -> Dict[str, int]:
        """Total observations per entity key."""
        if self.frame.empty:
            return {}
        counts = self.frame.groupby("key").size()
        return {str(k): int(v) for k, v in counts.items()}

    def grid_counts(self, grid: Grid) -> Dict[CellId, Dict[str, int]]:
        """
        Observation counts per grid cell per entity.

        Args:
            grid: Grid over the box envelope

        Returns:
            Mapping of (row, col) -> {entity key: count}; cells without
            observations are absent
        """
        if self.frame.empty:
            return {}
        rows, cols = grid.cell_ids_for(self.frame["lon"].to_numpy(), self.frame["lat"].to_numpy())
        binned = pd.DataFrame({"row": rows, "col": cols, "key": self.frame["key"].to_numpy()})
        counts = binned.groupby(["row", "col", "key"]).size()

        out: Dict[CellId, Dict[str, int]] = {}
        for (row, col, key), n in counts.items():
            out.setdefault((int(row), int(col)), {})[str(key)] = int(n)
        return out

    def group_by_key(self) -> Dict[str, List[Ping]]:
        """All observations of each entity, in collection order."""
        grouped: Dict[str, List[Ping]] = {}
        for key, lon, lat, ts in self.frame.itertuples(index=False, name=None):
            timestamp = None if pd.isna(ts) else ts.to_pydatetime()
            grouped.setdefault(key, []).append(Ping(key, float(lon), float(lat), timestamp))
        return grouped

    def within(self, shapes: Iterable[BaseGeometry]) -> "PingCollection":
        """Observations intersecting any of the given shapes (e.g. the buffered route)."""
        geoms = [s for s in shapes if s is not None and not s.is_empty]
        if not geoms or self.frame.empty:
            return PingCollection(self.frame.iloc[0:0])
        area = unary_union(geoms)
        points = shapely.points(self.frame["lon"].to_numpy(), self.frame["lat"].to_numpy())
        mask = shapely.intersects(area, points)
        logger.debug(f"{int(mask.sum())} of {len(self.frame)} observations fall inside the route buffer")
        return PingCollection(self.frame[mask])
