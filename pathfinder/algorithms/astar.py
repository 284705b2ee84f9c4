from __future__ import annotations

"""Weighted A* over a square terrain grid (8-neighbour connectivity).

The engine keeps every discovered node in an arena list; a node's predecessor
is an index into that list, so the predecessor links form a tree rooted at the
start node.  The frontier is a binary heap without decrease-key: when a cheaper
route to a frontier cell is found the node is updated in place and pushed
again, and the stale heap entry is dropped when it is popped after the cell
has been settled.

Frontier ordering is (f, h, seq): lowest f = g + weight * h first, then the
lowest raw heuristic distance to the goal, then insertion order.
"""

import heapq
import itertools
import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from pathfinder.algorithms.errors import (
    ConfigurationError,
    InvalidTransitionError,
    OutOfBoundsError,
    ReentrantSearchError,
)
from pathfinder.algorithms.terrain import Coord, Terrain

# 4 orthogonal + 4 diagonal moves, no corner-cutting restriction
DIRECTIONS: Tuple[Tuple[int, int], ...] = (
    (-1, 0), (1, 0), (0, -1), (0, 1),
    (-1, -1), (-1, 1), (1, -1), (1, 1),
)


class CellStatus(IntEnum):
    UNVISITED = 0
    FRONTIER = 1
    SETTLED = 2


@dataclass
class SearchNode:
    location: Coord
    predecessor: Optional[int]  # index in the engine's node arena
    cost_from_start: float = 0.0


# ---------------------------------------------------------------------------
# Frontier / per-cell status
# ---------------------------------------------------------------------------

class Frontier:
    """Min-heap of node indices keyed by (f, h, seq)."""

    def __init__(self):
        self._heap: List[Tuple[float, float, int, int]] = []
        self._seq = itertools.count()

    def push(self, f: float, h: float, node_idx: int) -> None:
        heapq.heappush(self._heap, (f, h, next(self._seq), node_idx))

    def pop(self) -> int:
        return heapq.heappop(self._heap)[3]

    def clear(self) -> None:
        self._heap.clear()
        self._seq = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)


class SearchState:
    """Status of every grid cell plus the frontier that feeds the search."""

    def __init__(self, grid_side: int):
        self.grid_side = grid_side
        self.status = np.zeros((grid_side, grid_side), dtype=np.int8)
        self.frontier = Frontier()

    def _check(self, c: Coord) -> None:
        if not (0 <= c.row < self.grid_side and 0 <= c.col < self.grid_side):
            raise OutOfBoundsError(f"{c} is outside the {self.grid_side}x{self.grid_side} grid")

    def status_of(self, c: Coord) -> CellStatus:
        self._check(c)
        return CellStatus(int(self.status[c.row, c.col]))

    def mark_frontier(self, c: Coord) -> None:
        if self.status_of(c) == CellStatus.SETTLED:
            raise InvalidTransitionError(f"cannot reopen settled cell {c}")
        self.status[c.row, c.col] = CellStatus.FRONTIER

    def mark_settled(self, c: Coord) -> None:
        if self.status_of(c) == CellStatus.UNVISITED:
            raise InvalidTransitionError(f"cannot settle undiscovered cell {c}")
        self.status[c.row, c.col] = CellStatus.SETTLED

    def reset(self) -> None:
        self.status.fill(CellStatus.UNVISITED)
        self.frontier.clear()

    def cells(self, *statuses: CellStatus) -> List[Coord]:
        """Coordinates whose status is one of ``statuses`` in row-major order."""
        mask = np.isin(self.status, [int(s) for s in statuses])
        return [Coord(int(r), int(c)) for r, c in np.argwhere(mask)]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class AStarEngine:
    """One A* search at a time over ``terrain``.

    ``heuristic_weight`` scales the heuristic term: 0 gives uniform-cost
    search, 1 standard A*, anything above trades optimality for speed.
    """

    def __init__(self, terrain: Terrain, heuristic_weight: float = 1.0,
                 start: Optional[Coord] = None, goal: Optional[Coord] = None):
        self.terrain = terrain
        self.state = SearchState(terrain.grid_side)
        self.heuristic_weight = heuristic_weight
        self._start: Optional[Coord] = None
        self._goal: Optional[Coord] = None
        if start is not None:
            self.start = start
        if goal is not None:
            self.goal = goal

        self._nodes: List[SearchNode] = []
        self._best: Dict[Coord, int] = {}
        self._terminal: Optional[int] = None
        self._expansions = 0
        self._order: List[Coord] = []
        self._running = False

    # --------------------------------------------------
    @staticmethod
    def _as_coord(value, name: str) -> Coord:
        if value is None:
            raise ConfigurationError(f"{name} cannot be None")
        if isinstance(value, Coord):
            return value
        return Coord.from_seq(value)

    @property
    def start(self) -> Optional[Coord]:
        return self._start

    @start.setter
    def start(self, value) -> None:
        self._start = self._as_coord(value, "start")

    @property
    def goal(self) -> Optional[Coord]:
        return self._goal

    @goal.setter
    def goal(self, value) -> None:
        self._goal = self._as_coord(value, "goal")

    @property
    def terminal_node(self) -> Optional[SearchNode]:
        return None if self._terminal is None else self._nodes[self._terminal]

    # --------------------------------------------------
    def in_bounds(self, c: Coord) -> bool:
        n = self.state.grid_side
        return 0 <= c.row < n and 0 <= c.col < n

    def neighbours(self, c: Coord) -> Iterator[Coord]:
        for dr, dc in DIRECTIONS:
            nxt = Coord(c.row + dr, c.col + dc)
            if self.in_bounds(nxt):
                yield nxt

    def heuristic(self, c: Coord) -> float:
        return self.terrain.heuristic_distance(c.row, c.col, self._goal.row, self._goal.col)

    def estimated_total_cost(self, node: SearchNode) -> float:
        return node.cost_from_start + self.heuristic_weight * self.heuristic(node.location)

    # --------------------------------------------------
    def reset_path(self) -> None:
        """Forget the previous search: all cells unvisited, empty frontier."""
        self.state.reset()
        self._nodes = []
        self._best = {}
        self._terminal = None
        self._expansions = 0
        self._order = []

    def compute_path(self) -> None:
        if self._start is None or self._goal is None:
            raise ConfigurationError("start and goal must be set before computing a path")
        for name, c in (("start", self._start), ("goal", self._goal)):
            if not self.in_bounds(c):
                n = self.state.grid_side
                raise ConfigurationError(f"{name} {c} lies outside the {n}x{n} grid")
        if self._running:
            raise ReentrantSearchError("a search is already running on this engine")

        self._running = True
        try:
            self.reset_path()
            self._search()
        finally:
            self._running = False

    def _add_node(self, location: Coord, predecessor: Optional[int], cost: float) -> int:
        self._nodes.append(SearchNode(location, predecessor, cost))
        idx = len(self._nodes) - 1
        self._best[location] = idx
        return idx

    def _admit(self, idx: int) -> None:
        node = self._nodes[idx]
        h = self.heuristic(node.location)
        self.state.frontier.push(node.cost_from_start + self.heuristic_weight * h, h, idx)

    def _search(self) -> None:
        state = self.state
        start_idx = self._add_node(self._start, None, 0.0)
        self._admit(start_idx)
        state.mark_frontier(self._start)

        while len(state.frontier):
            idx = state.frontier.pop()
            current = self._nodes[idx]
            loc = current.location
            self._expansions += 1
            if state.status_of(loc) == CellStatus.SETTLED:
                continue  # stale duplicate of an improved node
            state.mark_settled(loc)
            self._order.append(loc)

            if loc == self._goal:
                self._terminal = idx
                return

            for nbr in self.neighbours(loc):
                status = state.status_of(nbr)
                if status == CellStatus.SETTLED:
                    continue
                candidate = current.cost_from_start + self.terrain.travel_cost(loc, nbr)
                if math.isinf(candidate):
                    continue  # impassable step
                if status == CellStatus.UNVISITED:
                    self._admit(self._add_node(nbr, idx, candidate))
                    state.mark_frontier(nbr)
                else:
                    known = self._nodes[self._best[nbr]]
                    if candidate < known.cost_from_start:
                        known.predecessor = idx
                        known.cost_from_start = candidate
                        self._admit(self._best[nbr])

    # --------------------------------------------------
    def _reconstruct(self) -> Tuple[Optional[List[Coord]], float]:
        if not self.path_found():
            return None, math.inf
        path: List[Coord] = []
        cost = 0.0
        idx = self._terminal
        while idx is not None:
            node = self._nodes[idx]
            path.append(node.location)
            if node.predecessor is not None:
                prev = self._nodes[node.predecessor].location
                cost += self.terrain.travel_cost(prev, node.location)
            idx = node.predecessor
        path.reverse()
        return path, cost

    def path_found(self) -> bool:
        if self._goal is None or self._terminal is None:
            return False
        if self._nodes[self._terminal].location != self._goal:
            return False
        return self.state.status_of(self._goal) == CellStatus.SETTLED

    def path_cost(self) -> float:
        return self._reconstruct()[1]

    def solution_path(self) -> Optional[List[Coord]]:
        return self._reconstruct()[0]

    def expansion_count(self) -> int:
        return self._expansions

    def was_visited(self, c: Coord) -> bool:
        return self.state.status_of(c) != CellStatus.UNVISITED

    def expansion_order(self) -> List[Coord]:
        return list(self._order)

    def visited_cells(self) -> List[Coord]:
        return self.state.cells(CellStatus.FRONTIER, CellStatus.SETTLED)

    def snapshot(self) -> dict:
        """JSON-friendly summary of the last search."""
        path, cost = self._reconstruct()
        return {
            "found": path is not None,
            "cost": None if math.isinf(cost) else cost,
            "path": None if path is None else [c.as_list() for c in path],
            "expansions": self._expansions,
            "settled": [c.as_list() for c in self._order],
            "visited": [c.as_list() for c in self.visited_cells()],
            "start": None if self._start is None else self._start.as_list(),
            "goal": None if self._goal is None else self._goal.as_list(),
        }
