import itertools

AXES = ("x", "y", "z")

def vadd(vec1, vec2):
    return tuple(a+b for (a, b) in zip(vec1, vec2))

def vneg(vec):
    return tuple(-a for a in vec)

def chebyshev(vec):
    return max((abs(a) for a in vec), default=0)

def manhattan(vec):
    return sum(abs(a) for a in vec)

def unit(rank, axis, magnitude=1):
    "The vector of length rank that is magnitude along the given axis index and zero elsewhere."
    return tuple(magnitude if i == axis else 0 for i in range(rank))

def hypercube(rank, rad):
    "All vectors of the given rank with every coordinate in [-rad, rad]."
    return itertools.product(range(-rad, rad+1), repeat=rank)

def axis_index(name):
    return AXES.index(name)
