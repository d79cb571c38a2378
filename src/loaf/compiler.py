import operator
import time

import numpy as np
from frozendict import frozendict

from loaf.topology import make_boundary

"""
Lowering of validated rules into predicates over neighbour counts.

A predicate keeps the condition tree of its rule, with state indices in place
of names, and evaluates it in one of two ways:
 * holds(counts) for a single cell, where counts maps a state index to the
   number of neighbours in that state; | and & short-circuit left to right.
 * mask(counts, shape) for a whole grid, where counts maps a state index
   to an integer array of neighbour counts; the result is a boolean array.

The compiled rule set maps every state index to a tuple of (predicate, target)
pairs in source order. The first pair whose predicate holds gives the next state.
A state without rules gets the single identity pair (TRUE, itself).
"""

COMPARISONS = {
    "==" : operator.eq,
    "!=" : operator.ne,
    "<" : operator.lt,
    "<=" : operator.le,
    ">" : operator.gt,
    ">=" : operator.ge,
}

TRUE = ("TRUE",)

def evaluate(cond, counts):
    op = cond[0]
    if op == "COMPARE":
        _, cmp_op, state, value = cond
        return COMPARISONS[cmp_op](counts[state], value)
    elif op == "OR":
        return any(evaluate(arg, counts) for arg in cond[1:])
    elif op == "AND":
        return all(evaluate(arg, counts) for arg in cond[1:])
    elif op == "NOT":
        return not evaluate(cond[1], counts)
    elif op == "TRUE":
        return True
    raise Exception("Unknown operation: " + op)

def evaluate_mask(cond, counts, shape):
    op = cond[0]
    if op == "COMPARE":
        _, cmp_op, state, value = cond
        return COMPARISONS[cmp_op](counts[state], value)
    elif op == "OR":
        return np.logical_or.reduce([evaluate_mask(arg, counts, shape) for arg in cond[1:]])
    elif op == "AND":
        return np.logical_and.reduce([evaluate_mask(arg, counts, shape) for arg in cond[1:]])
    elif op == "NOT":
        return np.logical_not(evaluate_mask(cond[1], counts, shape))
    elif op == "TRUE":
        return np.ones(shape, dtype=bool)
    raise Exception("Unknown operation: " + op)

def collect_census(cond, found=None):
    "The set of state indices whose neighbour count the condition reads."
    if found is None:
        found = set()
    op = cond[0]
    if op == "COMPARE":
        found.add(cond[2])
    elif op in ["OR", "AND", "NOT"]:
        for arg in cond[1:]:
            collect_census(arg, found)
    return found

def condition_string(cond, registry=None):
    "Human readable form of a resolved condition, for info strings."
    op = cond[0]
    if op == "COMPARE":
        _, cmp_op, state, value = cond
        if registry is not None:
            state = registry.name(state)
        return "neighborhood({}) {} {}".format(state, cmp_op, value)
    elif op == "OR":
        return "(" + " | ".join(condition_string(arg, registry) for arg in cond[1:]) + ")"
    elif op == "AND":
        return "(" + " & ".join(condition_string(arg, registry) for arg in cond[1:]) + ")"
    elif op == "NOT":
        return "!" + condition_string(cond[1], registry)
    elif op == "TRUE":
        return "true"
    raise Exception("Unknown operation: " + op)

class Predicate:
    "A compiled rule condition."

    def __init__(self, cond):
        self.cond = cond
        self.census = frozenset(collect_census(cond))

    @classmethod
    def always(cls):
        return cls(TRUE)

    def holds(self, counts):
        return evaluate(self.cond, counts)

    def mask(self, counts, shape):
        return evaluate_mask(self.cond, counts, shape)

    def __call__(self, counts):
        return self.holds(counts)

    def __eq__(self, other):
        return isinstance(other, Predicate) and self.cond == other.cond

    def __hash__(self):
        return hash(self.cond)

    def __repr__(self):
        return "Predicate({})".format(condition_string(self.cond))

def compile_rules(validated):
    "Build the compiled rule set of a ValidatedProgram."
    by_state = {st.index : [] for st in validated.registry}
    for (_, from_state, to_state, cond) in validated.rules:
        by_state[from_state].append((Predicate(cond), to_state))
    for (state, pairs) in by_state.items():
        if not pairs:
            pairs.append((Predicate.always(), state))
    return frozendict({state : tuple(pairs) for (state, pairs) in by_state.items()})

class Program:
    """
    A compiled Loaf program, ready to be run by a GridEngine.
    * rank and sizes describe the environment; sizes may contain None.
    * offsets is the neighborhood; boundary is a topology.Boundary.
    * registry is the StateRegistry; rules is the compiled rule set.
    * census is the set of state indices any rule counts.
    """

    def __init__(self, rank, sizes, offsets, boundary, registry, rules, warnings=None):
        self.rank = rank
        self.sizes = sizes
        self.offsets = offsets
        self.boundary = boundary
        self.registry = registry
        self.rules = rules
        self.census = frozenset(state for pairs in rules.values()
                                for (pred, _) in pairs for state in pred.census)
        self.warnings = warnings or []

    @property
    def max_neighbors(self):
        return len(self.offsets)

    def transition(self, state, counts):
        "Next state of a cell in the given state whose neighbour counts are counts."
        for (pred, target) in self.rules[state]:
            if pred.holds(counts):
                return target
        return state

    def info_string(self, name=None, verbose=False):
        if name is None:
            s = ["{}-dimensional Loaf program".format(self.rank)]
        else:
            s = ["{}-dimensional Loaf program {}".format(self.rank, name)]
        if all(n is not None for n in self.sizes):
            s.append("Declared size: {}".format(" x ".join(map(str, self.sizes))))
        s.append("Neighborhood of {} cells, {}".format(len(self.offsets), self.boundary.info_string()))
        s.append(self.registry.info_string(verbose=verbose))
        num_rules = sum(1 for (_, pairs) in self.rules.items() for (pred, _) in pairs if pred.cond != TRUE)
        s.append("{} rules".format(num_rules))
        if verbose:
            s.append("Offsets: {}".format(list(self.offsets)))
            for (state, pairs) in self.rules.items():
                for (pred, target) in pairs:
                    if pred.cond == TRUE:
                        continue
                    s.append("from {} to {} := {}".format(self.registry.name(state),
                                                          self.registry.name(target),
                                                          condition_string(pred.cond, self.registry)))
        return "\n".join(s)

    def __repr__(self):
        return "Program(rank={}, states={}, rules={})".format(self.rank, self.registry.names(),
                                                              dict(self.rules))

def compile_program(validated, verbose=False):
    t = time.time()
    rules = compile_rules(validated)
    program = Program(validated.rank, validated.sizes, validated.offsets,
                      make_boundary(validated.boundary), validated.registry, rules,
                      validated.warnings)
    if verbose:
        print("Compiled {} rules in time {}".format(len(validated.rules), time.time() - t))
    return program
