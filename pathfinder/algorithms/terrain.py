from __future__ import annotations

"""Square terrains for the A* engine.

A terrain answers three questions for the search: how many cells make up one
side of the grid, how much a single step between two adjacent cells costs,
and how far apart two cells are (the geometric basis of the heuristic).

Two implementations are provided:

* ``UniformTerrain`` -- every step costs the same, diagonal or not.
* ``HeightMapTerrain`` -- a numpy height map where climbing or descending
  makes a step more expensive and blocked cells cost ``inf`` to enter or
  leave.  Obstacles can be given as axis-aligned rectangles, which are turned
  into shapely polygons and rasterised on cell centres.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, Sequence

import numpy as np
from shapely.geometry import Point, box

from pathfinder.algorithms.errors import TerrainError

SQRT2 = math.sqrt(2.0)


@dataclass(frozen=True)
class Coord:
    row: int
    col: int

    def as_list(self) -> List[int]:
        return [self.row, self.col]

    @classmethod
    def from_seq(cls, seq: Sequence[int]) -> "Coord":
        row, col = seq
        return cls(int(row), int(col))

    def __str__(self) -> str:
        return f"({self.row}, {self.col})"


class Terrain(Protocol):
    @property
    def grid_side(self) -> int: ...

    def travel_cost(self, a: Coord, b: Coord) -> float: ...

    def heuristic_distance(self, row_a: int, col_a: int, row_b: int, col_b: int) -> float: ...


def euclidean(row_a: int, col_a: int, row_b: int, col_b: int) -> float:
    return math.hypot(row_a - row_b, col_a - col_b)


# ---------------------------------------------------------------------------
class UniformTerrain:
    """Every step between adjacent cells costs ``step_cost``.

    Diagonal steps cost the same as orthogonal ones while the Euclidean
    heuristic charges sqrt(2) for them, so the heuristic can overestimate.
    Only ``heuristic_weight=0`` is guaranteed to return a cheapest path here.
    """

    def __init__(self, n: int, step_cost: float = 1.0):
        if n <= 0:
            raise TerrainError(f"grid side must be positive, got {n}")
        if step_cost < 0:
            raise TerrainError(f"step cost must be non-negative, got {step_cost}")
        self.n = n
        self.step_cost = step_cost

    @property
    def grid_side(self) -> int:
        return self.n

    def travel_cost(self, a: Coord, b: Coord) -> float:
        if a == b:
            return 0.0
        return self.step_cost

    def heuristic_distance(self, row_a: int, col_a: int, row_b: int, col_b: int) -> float:
        return euclidean(row_a, col_a, row_b, col_b)


# ---------------------------------------------------------------------------
class HeightMapTerrain:
    """Terrain backed by an ``n x n`` numpy height map.

    A step costs its planar length (1 or sqrt(2)) scaled by
    ``1 + slope_weight * |dh|``.  Stepping into or out of a blocked cell costs
    ``inf``.  The Euclidean heuristic never overestimates since every step is
    at least as expensive as its planar length.
    """

    def __init__(self, heights, blocked=None, slope_weight: float = 1.0):
        heights = np.asarray(heights, dtype=float)
        if heights.ndim != 2 or heights.size == 0:
            raise TerrainError("height map must be a non-empty 2-D array")
        if heights.shape[0] != heights.shape[1]:
            raise TerrainError(f"height map must be square, got shape {heights.shape}")
        if not np.isfinite(heights).all():
            raise TerrainError("height map values must be finite")
        if slope_weight < 0:
            raise TerrainError(f"slope weight must be non-negative, got {slope_weight}")

        if blocked is None:
            blocked = np.zeros(heights.shape, dtype=bool)
        else:
            blocked = np.asarray(blocked, dtype=bool)
            if blocked.shape != heights.shape:
                raise TerrainError(
                    f"blocked mask shape {blocked.shape} does not match height map {heights.shape}"
                )

        self.heights = heights
        self.blocked = blocked
        self.slope_weight = slope_weight

    # --------------------------------------------------
    @classmethod
    def random(cls, n: int, seed: Optional[int] = None, roughness: float = 4.0,
               smoothing: int = 4, slope_weight: float = 1.0) -> "HeightMapTerrain":
        """Smooth random hills scaled to ``[0, roughness]``."""
        if n <= 0:
            raise TerrainError(f"grid side must be positive, got {n}")
        rng = np.random.default_rng(seed)
        h = rng.random((n, n))
        for _ in range(smoothing):
            h = (h + np.roll(h, 1, 0) + np.roll(h, -1, 0) + np.roll(h, 1, 1) + np.roll(h, -1, 1)) / 5.0
        span = h.max() - h.min()
        if span > 0:
            h = (h - h.min()) / span
        else:
            h = np.zeros_like(h)
        return cls(h * roughness, slope_weight=slope_weight)

    @classmethod
    def with_obstacles(cls, heights, rects: Iterable[dict], cell_size: float = 1.0,
                       slope_weight: float = 1.0) -> "HeightMapTerrain":
        """Block every cell whose centre lies inside one of ``rects``.

        Each rectangle: {"x": , "y": , "w": , "h": } with x along columns and
        y along rows, measured in the same units as ``cell_size``.
        """
        heights = np.asarray(heights, dtype=float)
        polygons = [box(r["x"], r["y"], r["x"] + r["w"], r["y"] + r["h"]) for r in rects]
        blocked = np.zeros(heights.shape, dtype=bool)
        if polygons:
            rows, cols = heights.shape[:2] if heights.ndim == 2 else (0, 0)
            for i in range(rows):
                for j in range(cols):
                    centre = Point(j * cell_size + cell_size / 2, i * cell_size + cell_size / 2)
                    # intersects includes the boundary
                    if any(poly.intersects(centre) for poly in polygons):
                        blocked[i, j] = True
        return cls(heights, blocked=blocked, slope_weight=slope_weight)

    # --------------------------------------------------
    @property
    def grid_side(self) -> int:
        return self.heights.shape[0]

    def is_blocked(self, c: Coord) -> bool:
        return bool(self.blocked[c.row, c.col])

    def travel_cost(self, a: Coord, b: Coord) -> float:
        if a == b:
            return 0.0
        if self.blocked[a.row, a.col] or self.blocked[b.row, b.col]:
            return math.inf
        planar = SQRT2 if (a.row != b.row and a.col != b.col) else 1.0
        dh = abs(float(self.heights[b.row, b.col]) - float(self.heights[a.row, a.col]))
        return planar * (1.0 + self.slope_weight * dh)

    def heuristic_distance(self, row_a: int, col_a: int, row_b: int, col_b: int) -> float:
        return euclidean(row_a, col_a, row_b, col_b)
