import numpy as np

from loaf.general import vadd, vneg, chebyshev, manhattan, unit, hypercube, axis_index

"""
A neighborhood is a sorted tuple of nonzero offset vectors, all of the same rank.
A boundary decides what lies at cell + offset when that falls outside the grid:
 * void: nothing, the neighbour is not counted at all
 * wrap: the grid is a torus and coordinates are taken modulo its size
 * static: a fixed state sits on every off-grid cell
Grids are numpy arrays of state indices. EXCLUDED marks a neighbour that
counts as no state.
"""

EXCLUDED = -1

def moore_offsets(rank):
    return tuple(sorted(vec for vec in hypercube(rank, 1) if chebyshev(vec) == 1))

def von_neumann_offsets(rank):
    return tuple(sorted(vec for vec in hypercube(rank, 1) if manhattan(vec) == 1))

def rule_offsets(rank, rule):
    "Offsets produced by a single custom neighborhood rule (axis, direction, magnitude)."
    axis, direction, mag = rule
    if axis == "*":
        axes = range(rank)
    else:
        axes = [axis_index(axis)]
    if direction == "within" and axis == "*":
        return [vec for vec in hypercube(rank, mag) if chebyshev(vec) > 0]
    offsets = []
    for i in axes:
        if direction == "+":
            offsets.append(unit(rank, i, mag))
        elif direction == "-":
            offsets.append(unit(rank, i, -mag))
        elif direction == "+-":
            offsets.append(unit(rank, i, mag))
            offsets.append(unit(rank, i, -mag))
        elif direction == "within":
            for k in range(1, mag+1):
                offsets.append(unit(rank, i, k))
                offsets.append(unit(rank, i, -k))
        else:
            raise ValueError("Unknown neighborhood direction " + direction)
    return offsets

def custom_offsets(rank, rules):
    offsets = set()
    for rule in rules:
        offsets.update(rule_offsets(rank, rule))
    return tuple(sorted(offsets))

def neighborhood_offsets(rank, nbhd):
    "Offset set of a parsed neighborhood value in the given rank."
    kind = nbhd[0]
    if kind == "MOORE":
        return moore_offsets(rank)
    elif kind == "VON_NEUMANN":
        return von_neumann_offsets(rank)
    elif kind == "CUSTOM":
        return custom_offsets(rank, nbhd[1:])
    raise ValueError("Unknown neighborhood " + kind)

def in_bounds(cell, shape):
    return all(0 <= c < n for (c, n) in zip(cell, shape))

class Boundary:
    """
    Policy for neighbours that fall outside the grid. Subclasses implement
    neighbor_state for single cells and neighbor_arrays for whole grids.
    """
    name = None

    def info_string(self):
        return "{} boundary".format(self.name)

    def __repr__(self):
        return "{}()".format(type(self).__name__)

    def __eq__(self, other):
        return type(self) == type(other)

    def __hash__(self):
        return hash(self.name)

class PaddedBoundary(Boundary):
    "Off-grid neighbours all hold the same fill value."
    fill = EXCLUDED

    def neighbor_state(self, grid, cell, offset):
        pos = vadd(cell, offset)
        if in_bounds(pos, grid.shape):
            return int(grid[pos])
        return self.fill

    def neighbor_arrays(self, grid, offsets):
        "For each offset, the array whose entry at c is the state at c + offset."
        if not offsets:
            return
        rad = max(chebyshev(vec) for vec in offsets)
        padded = np.pad(grid, rad, mode="constant", constant_values=self.fill)
        for vec in offsets:
            window = tuple(slice(rad + o, rad + o + n) for (o, n) in zip(vec, grid.shape))
            yield padded[window]

class VoidBoundary(PaddedBoundary):
    name = "void"

class StaticBoundary(PaddedBoundary):
    name = "static"

    def __init__(self, state):
        self.fill = state

    def info_string(self):
        return "static boundary of state {}".format(self.fill)

    def __repr__(self):
        return "StaticBoundary({})".format(self.fill)

    def __eq__(self, other):
        return isinstance(other, StaticBoundary) and self.fill == other.fill

    def __hash__(self):
        return hash((self.name, self.fill))

class WrapBoundary(Boundary):
    "Toroidal topology: every cell has a full neighborhood."
    name = "wrap"

    def neighbor_state(self, grid, cell, offset):
        pos = tuple((c + o) % n for (c, o, n) in zip(cell, offset, grid.shape))
        return int(grid[pos])

    def neighbor_arrays(self, grid, offsets):
        axes = tuple(range(grid.ndim))
        for vec in offsets:
            # rolling by -offset brings the state at c + offset to c
            yield np.roll(grid, shift=vneg(vec), axis=axes)

def make_boundary(boundary):
    "Turn a validated boundary ('VOID',), ('WRAP',) or ('STATIC', state index) into a policy object."
    kind = boundary[0]
    if kind == "VOID":
        return VoidBoundary()
    elif kind == "WRAP":
        return WrapBoundary()
    elif kind == "STATIC":
        return StaticBoundary(boundary[1])
    raise ValueError("Unknown boundary " + kind)
