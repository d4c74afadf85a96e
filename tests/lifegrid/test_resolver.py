"""Unit tests for NeighborColorResolver — dominant color and tie-break."""

from __future__ import annotations

import numpy as np
import pytest

from lifegrid.board import EMPTY
from lifegrid.colors import format_color
from lifegrid.resolver import NEIGHBOR_OFFSETS, NeighborColorResolver

pytestmark = pytest.mark.unit

RED = 0xFF0000
BLUE = 0x0000FF
BLACK = 0x000000
WHITE = 0xFFFFFF


def _grid(width: int = 5, height: int = 5, cells: dict | None = None) -> np.ndarray:
    grid = np.full((height, width), EMPTY, dtype=np.int32)
    for (x, y), color in (cells or {}).items():
        grid[y, x] = color
    return grid


@pytest.fixture
def resolver():
    return NeighborColorResolver()


class TestNeighborhood:

    def test_eight_offsets_without_center(self):
        assert len(NEIGHBOR_OFFSETS) == 8
        assert (0, 0) not in NEIGHBOR_OFFSETS

    def test_collects_only_live_neighbors(self, resolver):
        grid = _grid(cells={(1, 1): RED, (3, 3): BLUE, (0, 0): WHITE})
        assert sorted(resolver.live_neighbor_colors(2, 2, grid)) == sorted([RED, BLUE])

    def test_ignores_center_cell(self, resolver):
        grid = _grid(cells={(2, 2): RED})
        assert resolver.live_neighbor_colors(2, 2, grid) == []

    def test_corner_skips_out_of_bounds(self, resolver):
        grid = _grid(cells={(1, 0): RED, (0, 1): RED, (1, 1): BLUE, (4, 4): BLUE})
        assert sorted(resolver.live_neighbor_colors(0, 0, grid)) == sorted([RED, RED, BLUE])


class TestDominantColor:

    def test_three_a_one_b_resolves_to_a(self, resolver):
        grid = _grid(cells={(1, 1): RED, (2, 1): RED, (3, 1): RED, (1, 2): BLUE})
        assert resolver.resolve(2, 2, grid) == RED

    def test_two_a_one_b_resolves_to_a(self, resolver):
        grid = _grid(cells={(1, 1): BLUE, (3, 3): BLUE, (1, 3): RED})
        assert resolver.resolve(2, 2, grid) == BLUE

    def test_all_same_color(self, resolver):
        grid = _grid(cells={(1, 1): RED, (2, 1): RED, (3, 1): RED})
        assert resolver.resolve(2, 2, grid) == RED


class TestTieBreak:

    def test_black_white_tie_averages_half_up(self, resolver):
        grid = _grid(cells={(1, 1): BLACK, (3, 1): WHITE})
        assert format_color(resolver.resolve(2, 2, grid)) == "#808080"

    def test_three_way_tie_averages_all(self, resolver):
        grid = _grid(cells={(1, 1): 0xFF0000, (2, 1): 0x00FF00, (3, 1): 0x0000FF})
        assert format_color(resolver.resolve(2, 2, grid)) == "#555555"

    def test_tie_ignores_colors_below_the_top_tally(self, resolver):
        # RED x2, BLUE x2, BLACK x1 -> average of RED and BLUE only
        grid = _grid(cells={
            (1, 1): RED, (2, 1): RED,
            (3, 1): BLUE, (1, 2): BLUE,
            (3, 3): BLACK,
        })
        assert format_color(resolver.resolve(2, 2, grid)) == "#800080"

    def test_tie_result_is_order_independent(self, resolver):
        a = _grid(cells={(1, 1): BLACK, (3, 1): WHITE})
        b = _grid(cells={(1, 1): WHITE, (3, 1): BLACK})
        assert resolver.resolve(2, 2, a) == resolver.resolve(2, 2, b)


class TestNoNeighbors:

    def test_no_live_neighbors_is_white(self, resolver):
        assert resolver.resolve(2, 2, _grid()) == WHITE

    def test_one_by_one_board(self, resolver):
        assert resolver.resolve(0, 0, _grid(1, 1)) == WHITE
