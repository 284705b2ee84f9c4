import math

import numpy as np
import pytest

from pathfinder.algorithms.errors import TerrainError
from pathfinder.algorithms.terrain import Coord, HeightMapTerrain, UniformTerrain


def test_coord_value_semantics():
    assert Coord(1, 2) == Coord(1, 2)
    assert Coord(1, 2) != Coord(2, 1)
    assert len({Coord(0, 0), Coord(0, 0), Coord(0, 1)}) == 2
    assert Coord.from_seq([3, 4]) == Coord(3, 4)
    assert Coord(3, 4).as_list() == [3, 4]
    with pytest.raises(AttributeError):
        Coord(0, 0).row = 1


def test_uniform_terrain():
    t = UniformTerrain(5, step_cost=2.0)
    assert t.grid_side == 5
    assert t.travel_cost(Coord(0, 0), Coord(1, 1)) == 2.0
    assert t.travel_cost(Coord(0, 0), Coord(0, 1)) == 2.0
    assert t.travel_cost(Coord(2, 2), Coord(2, 2)) == 0.0
    assert math.isclose(t.heuristic_distance(0, 0, 3, 4), 5.0)
    with pytest.raises(TerrainError):
        UniformTerrain(0)


def test_height_map_costs():
    heights = np.array([[0.0, 1.0], [2.0, 0.0]])
    t = HeightMapTerrain(heights, slope_weight=0.5)
    assert t.grid_side == 2
    assert math.isclose(t.travel_cost(Coord(0, 0), Coord(0, 1)), 1.5)
    assert math.isclose(t.travel_cost(Coord(0, 1), Coord(0, 0)), 1.5)
    assert math.isclose(t.travel_cost(Coord(0, 0), Coord(1, 1)), math.sqrt(2.0))
    assert math.isclose(t.travel_cost(Coord(0, 1), Coord(1, 0)), math.sqrt(2.0) * 1.5)


def test_height_map_step_never_cheaper_than_heuristic():
    t = HeightMapTerrain.random(6, seed=4)
    for r in range(5):
        for c in range(5):
            a = Coord(r, c)
            for b in (Coord(r + 1, c), Coord(r, c + 1), Coord(r + 1, c + 1)):
                assert t.travel_cost(a, b) >= t.heuristic_distance(a.row, a.col, b.row, b.col)


def test_random_terrain_is_seeded():
    a = HeightMapTerrain.random(16, seed=7, roughness=2.0)
    b = HeightMapTerrain.random(16, seed=7, roughness=2.0)
    assert np.array_equal(a.heights, b.heights)
    assert a.heights.min() >= 0.0
    assert a.heights.max() <= 2.0 + 1e-12
    assert not a.blocked.any()


def test_obstacles_block_cell_centres():
    heights = np.zeros((4, 4))
    t = HeightMapTerrain.with_obstacles(heights, [{"x": 1, "y": 0, "w": 1, "h": 2}])
    assert t.is_blocked(Coord(0, 1))
    assert t.is_blocked(Coord(1, 1))
    assert not t.is_blocked(Coord(2, 1))
    assert not t.is_blocked(Coord(0, 0))
    assert t.travel_cost(Coord(0, 0), Coord(0, 1)) == math.inf
    assert t.travel_cost(Coord(0, 1), Coord(0, 0)) == math.inf
    assert t.travel_cost(Coord(2, 0), Coord(3, 0)) == 1.0


def test_obstacles_scale_with_cell_size():
    heights = np.zeros((5, 5))
    t = HeightMapTerrain.with_obstacles(heights, [{"x": 20, "y": 20, "w": 10, "h": 10}], cell_size=10)
    assert t.blocked.sum() == 1
    assert t.is_blocked(Coord(2, 2))


@pytest.mark.parametrize("heights", [
    np.zeros((2, 3)),
    np.zeros((0, 0)),
    np.zeros(4),
    [[0.0, 0.0], [0.0, float("nan")]],
    [[0.0, float("inf")], [0.0, 0.0]],
])
def test_height_map_rejects_bad_input(heights):
    with pytest.raises(TerrainError):
        HeightMapTerrain(heights)


def test_blocked_mask_shape_must_match():
    with pytest.raises(ValueError):
        HeightMapTerrain(np.zeros((3, 3)), blocked=np.zeros((2, 2), dtype=bool))
