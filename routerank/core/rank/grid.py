"""
Grid Binning

Discretizes a bounding envelope into an N x N lattice of equal-size cells
(in degrees). Cells are identified by (row, col): row indexes latitude and
col indexes longitude, both starting at the min corner.

The route corridor test is a cell-centre approximation: a cell belongs to the
tube iff its centre point intersects one of the buffered route shapes.
Coverage statistics downstream are calibrated to this approximation.

Dependencies: numpy, shapely
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Set, Tuple, Union

import numpy as np
from shapely.geometry import Point
from shapely.geometry.base import BaseGeometry
from shapely.prepared import prep

logger = logging.getLogger(__name__)

CellId = Tuple[int, int]
Envelope = Tuple[float, float, float, float]  # (min_lon, min_lat, max_lon, max_lat)


def _validate_divisions(divisions: int) -> None:
    if isinstance(divisions, bool) or not isinstance(divisions, (int, np.integer)) or divisions <= 0:
        raise ValueError(f"divisions must be a positive integer (got {divisions!r}).")


def _as_bounds(envelope: Union[Envelope, BaseGeometry]) -> Envelope:
    if isinstance(envelope, BaseGeometry):
        if envelope.is_empty:
            raise ValueError("envelope geometry is empty.")
        return tuple(float(v) for v in envelope.bounds)
    min_lon, min_lat, max_lon, max_lat = (float(v) for v in envelope)
    if min_lon > max_lon or min_lat > max_lat:
        raise ValueError(
            f"envelope min corner ({min_lon}, {min_lat}) exceeds max corner ({max_lon}, {max_lat})."
        )
    return (min_lon, min_lat, max_lon, max_lat)


class Grid:
    """
    An N x N lattice over a bounding envelope.

    Args:
        envelope: (min_lon, min_lat, max_lon, max_lat) or a shapely geometry
            whose bounds are used
        divisions: Number of cells along each axis
    """

    def __init__(self, envelope: Union[Envelope, BaseGeometry], divisions: int):
        _validate_divisions(divisions)
        self.envelope = _as_bounds(envelope)
        self.divisions = int(divisions)
        min_lon, min_lat, max_lon, max_lat = self.envelope
        self.cell_width = (max_lon - min_lon) / self.divisions
        self.cell_height = (max_lat - min_lat) / self.divisions

    def __repr__(self) -> str:
        return f"Grid(envelope={self.envelope}, divisions={self.divisions})"

    @property
    def n_cells(self) -> int:
        return self.divisions * self.divisions

    def _axis_index(self, values: np.ndarray, origin: float, size: float) -> np.ndarray:
        if size <= 0.0:
            # Degenerate axis: everything lands in the first cell
            return np.zeros(values.shape, dtype=np.int64)
        idx = np.floor((values - origin) / size).astype(np.int64)
        # Clamp to edge cells; a point on the max edge belongs to the last cell
        return np.clip(idx, 0, self.divisions - 1)

    def cell_ids_for(self, lons, lats) -> Tuple[np.ndarray, np.ndarray]:
        """
        Vectorized cell lookup.

        Args:
            lons: Array-like of longitudes
            lats: Array-like of latitudes

        Returns:
            (rows, cols) int64 arrays, same length as the inputs

        Raises:
            ValueError: If shapes differ or any coordinate is NaN or infinite
        """
        lons = np.asarray(lons, dtype=np.float64)
        lats = np.asarray(lats, dtype=np.float64)
        if lons.shape != lats.shape:
            raise ValueError(f"lons and lats must have the same shape ({lons.shape} != {lats.shape}).")
        if not (np.isfinite(lons).all() and np.isfinite(lats).all()):
            raise ValueError("lons and lats must be finite (NaN or infinite coordinate given).")
        min_lon, min_lat, _, _ = self.envelope
        rows = self._axis_index(lats, min_lat, self.cell_height)
        cols = self._axis_index(lons, min_lon, self.cell_width)
        return rows, cols

    def cell_id_for(self, lon: float, lat: float) -> CellId:
        """Map a point to its (row, col); points outside are clamped to the nearest edge cell."""
        rows, cols = self.cell_ids_for([lon], [lat])
        return int(rows[0]), int(cols[0])

    def center_of(self, cell: CellId) -> Tuple[float, float]:
        row, col = cell
        min_lon, min_lat, _, _ = self.envelope
        return (
            min_lon + (col + 0.5) * self.cell_width,
            min_lat + (row + 0.5) * self.cell_height,
        )

    def cells_with_centers(self) -> Iterator[Tuple[CellId, Tuple[float, float]]]:
        """Yield ((row, col), (lon, lat)) for every cell; each call starts a fresh pass."""
        for row in range(self.divisions):
            for col in range(self.divisions):
                yield (row, col), self.center_of((row, col))

    def cells_intersecting(self, shapes: Iterable[BaseGeometry]) -> Set[CellId]:
        """
        Cells whose centre intersects any of the given shapes.

        Args:
            shapes: Buffered route polygons (lon/lat coordinates)

        Returns:
            Set of (row, col) cell ids
        """
        prepared = [prep(shape) for shape in shapes if shape is not None and not shape.is_empty]
        if not prepared:
            return set()
        cells = {
            cell
            for cell, (lon, lat) in self.cells_with_centers()
            if any(p.intersects(Point(lon, lat)) for p in prepared)
        }
        logger.debug(f"{len(cells)} of {self.n_cells} grid cells intersect the route buffer")
        return cells
