import numpy as np
import pytest

from loaf.topology import moore_offsets, von_neumann_offsets, custom_offsets, neighborhood_offsets, \
    make_boundary, VoidBoundary, WrapBoundary, StaticBoundary, EXCLUDED

@pytest.mark.parametrize("rank, moore, von_neumann", [(1, 2, 2), (2, 8, 4), (3, 26, 6)])
def test_neighborhood_sizes(rank, moore, von_neumann):
    assert len(moore_offsets(rank)) == moore
    assert len(von_neumann_offsets(rank)) == von_neumann
    assert all(any(vec) for vec in moore_offsets(rank))
    assert set(von_neumann_offsets(rank)) <= set(moore_offsets(rank))

def test_offsets_are_sorted():
    assert moore_offsets(1) == ((-1,), (1,))
    assert von_neumann_offsets(2) == ((-1, 0), (0, -1), (0, 1), (1, 0))

def test_custom_offsets():
    assert custom_offsets(2, [("x", "+", 1)]) == ((1, 0),)
    assert custom_offsets(2, [("y", "-", 2)]) == ((0, -2),)
    assert custom_offsets(2, [("x", "+-", 1), ("x", "+", 1)]) == ((-1, 0), (1, 0))
    assert custom_offsets(1, [("x", "within", 2)]) == ((-2,), (-1,), (1,), (2,))
    assert custom_offsets(3, [("*", "+", 1)]) == ((0, 0, 1), (0, 1, 0), (1, 0, 0))
    assert custom_offsets(2, [("*", "within", 1)]) == moore_offsets(2)
    assert len(custom_offsets(2, [("*", "within", 2)])) == 24

def test_neighborhood_offsets_dispatch():
    assert neighborhood_offsets(2, ("MOORE",)) == moore_offsets(2)
    assert neighborhood_offsets(3, ("VON_NEUMANN",)) == von_neumann_offsets(3)
    assert neighborhood_offsets(2, ("CUSTOM", ("*", "+-", 1))) == von_neumann_offsets(2)

def test_make_boundary():
    assert make_boundary(("VOID",)) == VoidBoundary()
    assert make_boundary(("WRAP",)) == WrapBoundary()
    assert make_boundary(("STATIC", 2)) == StaticBoundary(2)
    assert make_boundary(("STATIC", 2)) != StaticBoundary(1)
    assert VoidBoundary() != WrapBoundary()

grid = np.array([[0, 1, 2],
                 [3, 4, 5]])

def test_neighbor_state():
    void, wrap, static = VoidBoundary(), WrapBoundary(), StaticBoundary(7)
    assert void.neighbor_state(grid, (0, 0), (1, 1)) == 4
    assert void.neighbor_state(grid, (0, 0), (-1, 0)) == EXCLUDED
    assert static.neighbor_state(grid, (0, 0), (-1, 0)) == 7
    assert wrap.neighbor_state(grid, (0, 0), (-1, 0)) == 3
    assert wrap.neighbor_state(grid, (1, 2), (0, 1)) == 3
    assert wrap.neighbor_state(grid, (0, 0), (0, -1)) == 2

@pytest.mark.parametrize("boundary", [VoidBoundary(), WrapBoundary(), StaticBoundary(7)])
def test_neighbor_arrays_agree_with_neighbor_state(boundary):
    offsets = moore_offsets(2)
    arrays = list(boundary.neighbor_arrays(grid, offsets))
    assert len(arrays) == len(offsets)
    for (vec, arr) in zip(offsets, arrays):
        assert arr.shape == grid.shape
        for cell in np.ndindex(grid.shape):
            assert arr[cell] == boundary.neighbor_state(grid, cell, vec)

def test_wide_neighborhood_arrays():
    offsets = custom_offsets(2, [("y", "+", 2)])
    arrays = list(VoidBoundary().neighbor_arrays(grid, offsets))
    assert arrays[0].tolist() == [[2, EXCLUDED, EXCLUDED], [5, EXCLUDED, EXCLUDED]]
