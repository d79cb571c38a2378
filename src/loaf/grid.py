import time
from collections import Counter

import numpy as np

from loaf.errors import LoafConfigurationError, LoafStateError
from loaf.topology import EXCLUDED, in_bounds

# State indices are stored in this dtype; it is signed so EXCLUDED fits.
CELL_DTYPE = np.int32

def check_coordinate(coord, shape):
    "The coordinate as a tuple, or LoafConfigurationError if it does not name a cell of a grid of the given shape."
    coord = tuple(coord)
    if len(coord) != len(shape):
        raise LoafConfigurationError("Coordinate {} does not have rank {}".format(coord, len(shape)))
    if not in_bounds(coord, shape):
        raise LoafConfigurationError("Coordinate {} is outside the grid of size {}".format(coord, tuple(shape)))
    return coord

class GridSnapshot:
    """
    Read-only picture of a grid at some generation. Indexing with a coordinate
    tuple gives a state name; as_array() gives the underlying state indices.
    """

    def __init__(self, cells, registry, generation=0):
        self._cells = cells
        self._cells.flags.writeable = False
        self.registry = registry
        self.generation = generation

    @property
    def shape(self):
        return self._cells.shape

    def as_array(self):
        return self._cells

    def __getitem__(self, coord):
        coord = check_coordinate(coord, self._cells.shape)
        return self.registry.name(int(self._cells[coord]))

    def __iter__(self):
        for coord in np.ndindex(*self._cells.shape):
            yield coord, self.registry.name(int(self._cells[coord]))

    def __len__(self):
        return self._cells.size

    def to_dict(self):
        return dict(self)

    def count(self, state):
        return int(np.count_nonzero(self._cells == self.registry.index(state)))

    def cells_in(self, state):
        "Sorted list of the coordinates holding the given state."
        index = self.registry.index(state)
        return sorted(tuple(int(c) for c in coord) for coord in np.argwhere(self._cells == index))

    def __eq__(self, other):
        if not isinstance(other, GridSnapshot):
            return False
        return self.registry.names() == other.registry.names() and \
               np.array_equal(self._cells, other._cells)

    __hash__ = None

    def __repr__(self):
        return "GridSnapshot(shape={}, generation={})".format(self.shape, self.generation)

    def info_string(self, verbose=False):
        s = ["{}-dimensional grid of size {} at generation {}".format(
            self._cells.ndim, " x ".join(map(str, self.shape)), self.generation)]
        s.append(", ".join("{}: {}".format(name, self.count(name)) for name in self.registry.names()))
        if verbose and self._cells.ndim <= 2:
            width = max(len(name) for name in self.registry.names())
            rows = self._cells if self._cells.ndim == 2 else self._cells.reshape(1, -1)
            for row in rows:
                s.append(" ".join(self.registry.name(int(i)).ljust(width) for i in row))
        return "\n".join(s)

class GridEngine:
    """
    Runs a compiled Program on a dense grid.

    The engine is Uninitialized until initialize() is called and Ready after.
    Each step() computes every cell's next state from the grid as it was
    before the step, writes the results into a scratch buffer and then swaps
    the two buffers, so all cells change simultaneously.
    """

    def __init__(self, program, verbose=False):
        self.program = program
        self.verbose = verbose
        self._current = None
        self._scratch = None
        self.generation = 0

    @property
    def is_ready(self):
        return self._current is not None

    def require_ready(self, what):
        if not self.is_ready:
            raise LoafStateError("Cannot {} before the grid is initialized".format(what))

    def resolve_dimensions(self, dimensions):
        rank = self.program.rank
        if dimensions is None:
            if any(n is None for n in self.program.sizes):
                raise LoafConfigurationError(
                    "No grid dimensions given and the environment does not declare a size for every axis")
            dimensions = self.program.sizes
        dimensions = tuple(dimensions)
        if len(dimensions) != rank:
            raise LoafConfigurationError("Grid of rank {} given for a {}D environment".format(
                len(dimensions), rank))
        for n in dimensions:
            if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n < 1:
                raise LoafConfigurationError("Grid dimensions must be positive integers, got {}".format(
                    dimensions))
        return tuple(int(n) for n in dimensions)

    def initialize(self, dimensions=None, initial=None):
        """
        Allocate the grid. Dimensions default to the sizes declared in the
        environment block. initial maps coordinate tuples to state names;
        cells it does not mention get the default state.
        """
        t = time.time()
        dims = self.resolve_dimensions(dimensions)
        registry = self.program.registry
        default = registry.default
        if default is None and initial is None:
            raise LoafConfigurationError("No default state declared and no initial grid given")

        fill = EXCLUDED if default is None else default.index
        grid = np.full(dims, fill, dtype=CELL_DTYPE)
        if initial is not None:
            for (coord, name) in initial.items():
                coord = check_coordinate(coord, dims)
                if name not in registry:
                    raise LoafConfigurationError("Undeclared state {} at {}".format(name, coord))
                grid[coord] = registry.index(name)
        if default is None:
            missing = int(np.count_nonzero(grid == EXCLUDED))
            if missing:
                raise LoafConfigurationError(
                    "No default state declared and {} cells have no initial state".format(missing))

        self._current = grid
        self._scratch = np.empty_like(grid)
        self.generation = 0
        if self.verbose:
            print("Initialized grid of size {} in time {}".format(dims, time.time() - t))

    def count_arrays(self, grid, states):
        "For each given state index, an array with the number of neighbours of each cell in that state."
        counts = {state : np.zeros(grid.shape, dtype=CELL_DTYPE) for state in states}
        if not counts:
            return counts
        for neighbors in self.program.boundary.neighbor_arrays(grid, self.program.offsets):
            for (state, arr) in counts.items():
                arr += (neighbors == state)
        return counts

    def neighbor_counts(self):
        "Neighbour count arrays of the current grid, keyed by state name."
        self.require_ready("count neighbours")
        registry = self.program.registry
        counts = self.count_arrays(self._current, [st.index for st in registry])
        return {registry.name(state) : arr for (state, arr) in counts.items()}

    def cell_counts(self, coord):
        "Neighbour counts of a single cell as a Counter from state index to count."
        self.require_ready("count neighbours")
        coord = check_coordinate(coord, self._current.shape)
        counts = Counter()
        boundary = self.program.boundary
        for vec in self.program.offsets:
            state = boundary.neighbor_state(self._current, coord, vec)
            if state != EXCLUDED:
                counts[state] += 1
        return counts

    def next_state(self, coord):
        "The state name the given cell will have after the next step."
        self.require_ready("evaluate a cell")
        coord = check_coordinate(coord, self._current.shape)
        state = int(self._current[coord])
        target = self.program.transition(state, self.cell_counts(coord))
        return self.program.registry.name(target)

    def step(self):
        "Advance the grid by one generation."
        self.require_ready("step")
        t = time.time()
        current = self._current
        scratch = self._scratch
        counts = self.count_arrays(current, self.program.census)
        np.copyto(scratch, current)
        for (state, pairs) in self.program.rules.items():
            pending = current == state
            for (pred, target) in pairs:
                if not pending.any():
                    break
                fired = np.logical_and(pending, pred.mask(counts, current.shape))
                scratch[fired] = target
                pending &= ~fired
        self._current, self._scratch = scratch, current
        self.generation += 1
        if self.verbose:
            print("Generation {} computed in time {}".format(self.generation, time.time() - t))

    def run(self, generations):
        "Step the given number of times and return the final snapshot."
        for _ in range(generations):
            self.step()
        return self.current_grid()

    def current_grid(self):
        self.require_ready("read the grid")
        return GridSnapshot(self._current.copy(), self.program.registry, self.generation)

    def info_string(self, verbose=False):
        if not self.is_ready:
            return "Uninitialized grid engine"
        return self.current_grid().info_string(verbose=verbose)
