import time

from loaf.errors import LoafSemanticError
from loaf.general import AXES
from loaf.states import State, StateRegistry
from loaf.topology import neighborhood_offsets

"""
Semantic checks on a parsed program. Problems are collected as
(message, line, column) triples and raised together at the end, so a user
sees everything wrong with a program at once.

Validated rules replace state names by registry indices:
    ("RULE", from_index, to_index, condition)
where comparisons become ("COMPARE", op, state_index, value).
"""

REQUIRED_KEYS = ["environment", "neighborhood", "states", "rules"]
OPTIONAL_KEYS = ["boundary"]

# which value tags each top-level key accepts
KEY_VALUES = {
    "environment" : ["ENVIRONMENT"],
    "neighborhood" : ["MOORE", "VON_NEUMANN", "CUSTOM"],
    "boundary" : ["VOID", "WRAP", "STATIC"],
    "states" : ["STATES"],
    "rules" : ["RULES"],
}

# Deepest nesting of & and | a rule condition may have. Chains of ! do not count.
MAX_CONDITION_DEPTH = 64

KEY_DESCRIPTIONS = {
    "environment" : "1D, 2D or 3D",
    "neighborhood" : "MOORE, VON_NEUMANN or a {...} block of offsets",
    "boundary" : "void, wrap or static",
    "states" : "a {...} block of state declarations",
    "rules" : "a {...} block of rules",
}

def condition_depth(cond):
    "Nesting depth of a parsed condition, counting only & and | levels."
    depth = 0
    stack = [(cond, 1)]
    while stack:
        node, d = stack.pop()
        depth = max(depth, d)
        if node[0] in ["AND", "OR"]:
            stack.extend((arg, d+1) for arg in node[1:])
        elif node[0] == "NOT":
            stack.append((node[1], d))
    return depth

def position(token):
    "Line and column of a lark token, or (None, None) for plain values."
    return getattr(token, "line", None), getattr(token, "column", None)

class ValidatedProgram:
    """
    Result of validation.
    * rank is the dimensionality, 1 to 3.
    * sizes is a tuple with an int or None per axis, from the environment block.
    * offsets is the sorted tuple of neighborhood offsets.
    * boundary is ('VOID',), ('WRAP',) or ('STATIC', state index).
    * registry is the StateRegistry.
    * rules is the list of validated rules in source order.
    * warnings is a list of (message, line, column) that did not prevent validation.
    """

    def __init__(self, rank, sizes, offsets, boundary, registry, rules, warnings=None):
        self.rank = rank
        self.sizes = sizes
        self.offsets = offsets
        self.boundary = boundary
        self.registry = registry
        self.rules = rules
        self.warnings = warnings or []

    @property
    def max_neighbors(self):
        return len(self.offsets)

    def __repr__(self):
        return "ValidatedProgram(rank={}, offsets={}, boundary={}, registry={}, rules={})".format(
            self.rank, len(self.offsets), self.boundary, self.registry, len(self.rules))

class Validator:

    def __init__(self, program):
        self.program = program
        self.errors = []
        self.warnings = []

    def error(self, msg, token=None):
        self.errors.append((msg,) + position(token))

    def warn(self, msg, token=None):
        self.warnings.append((msg,) + position(token))

    def collect_assignments(self):
        "Check the top-level keys and return a dict key -> (key token, value)."
        found = dict()
        for (_, key, value) in self.program:
            name = str(key)
            if name not in KEY_VALUES:
                self.error("Unknown declaration {}; expected one of {}".format(
                    name, ", ".join(REQUIRED_KEYS + OPTIONAL_KEYS)), key)
                continue
            if value[0] not in KEY_VALUES[name]:
                self.error("{} must be {}".format(name, KEY_DESCRIPTIONS[name]), key)
                continue
            if name in found:
                first = found[name][0]
                self.error("{} declared more than once (first declaration at line {})".format(
                    name, getattr(first, "line", "?")), key)
                continue
            found[name] = (key, value)
        for name in REQUIRED_KEYS:
            if name not in found and not any(str(k) == name for (_, k, _) in self.program):
                self.error("Missing {} declaration".format(name))
        return found

    def check_environment(self, key, value):
        _, rank, sizes = value
        resolved = [None]*rank
        for (axis, n) in sizes:
            if axis == "*":
                axes = range(rank)
            elif axis in AXES[:rank]:
                axes = [AXES.index(axis)]
            else:
                self.error("Axis {} does not exist in {}D".format(axis, rank), axis)
                continue
            if n < 1:
                self.error("Size of axis {} must be positive, got {}".format(axis, n), axis)
                continue
            for i in axes:
                resolved[i] = n
        return rank, tuple(resolved)

    def check_neighborhood(self, key, value, rank):
        if value[0] == "CUSTOM":
            ok = True
            for (axis, direction, mag) in value[1:]:
                if axis != "*" and axis not in AXES[:rank]:
                    self.error("Axis {} does not exist in {}D".format(axis, rank), axis)
                    ok = False
                if mag < 1:
                    self.error("Neighborhood offset {} {} {} must have magnitude at least 1".format(
                        axis, direction, mag), axis)
                    ok = False
            if not ok:
                return None
        offsets = neighborhood_offsets(rank, value)
        if not offsets:
            self.error("Neighborhood is empty", key)
        return offsets

    def check_states(self, key, value):
        states = []
        seen = dict()
        default = None
        for (name, attrs) in value[1:]:
            if name in seen:
                self.error("State {} declared more than once (first at line {})".format(
                    name, getattr(seen[name], "line", "?")), name)
                continue
            seen[name] = name
            is_default = False
            attributes = dict()
            for attr in attrs:
                if attr == ("default",):
                    if is_default:
                        self.error("State {} is marked default twice".format(name), name)
                    elif default is not None:
                        self.error("States {} and {} are both marked default".format(default, name), name)
                    else:
                        default = name
                    is_default = True
                else:
                    akey, token = attr
                    if akey in attributes:
                        self.error("State {} has attribute {} more than once".format(name, akey), akey)
                        continue
                    attributes[str(akey)] = str(token)
            states.append(State(name, len(states), is_default and default == name, attributes))
        return StateRegistry(states)

    def check_boundary(self, key, value, registry):
        if value[0] != "STATIC":
            return value
        state = value[1]
        if state is None:
            if registry.default is None:
                self.error("static boundary without a state needs a default state", key)
                return None
            return ("STATIC", registry.default.index)
        if state not in registry:
            self.error("Undeclared state {} in boundary".format(state), state)
            return None
        return ("STATIC", registry.index(state))

    def check_condition(self, cond, registry, max_neighbors):
        "Return the condition with state names resolved, or None if something was wrong."
        op = cond[0]
        if op == "COMPARE":
            _, cmp_op, state, value = cond
            ok = True
            if state not in registry:
                self.error("Undeclared state {} in condition".format(state), state)
                ok = False
            if max_neighbors is not None and not 0 <= value <= max_neighbors:
                self.error("Comparison neighborhood({}) {} {} is out of range: counts lie in [0, {}]".format(
                    state, cmp_op, value, max_neighbors), state)
                ok = False
            if not ok:
                return None
            return ("COMPARE", cmp_op, registry.index(state), value)
        elif op == "NOT":
            negated = False
            while cond[0] == "NOT":
                negated = not negated
                cond = cond[1]
            arg = self.check_condition(cond, registry, max_neighbors)
            if arg is None or not negated:
                return arg
            return ("NOT", arg)
        elif op in ["AND", "OR"]:
            args = [self.check_condition(arg, registry, max_neighbors) for arg in cond[1:]]
            if any(arg is None for arg in args):
                return None
            return (op, *args)
        raise ValueError("Unknown condition node " + op)

    def check_rules(self, key, value, registry, max_neighbors):
        rules = []
        for (_, from_state, to_state, cond) in value[1:]:
            ok = True
            for (role, state) in [("from", from_state), ("to", to_state)]:
                if state not in registry:
                    self.error("Undeclared state {} in {} clause".format(state, role), state)
                    ok = False
            if condition_depth(cond) > MAX_CONDITION_DEPTH:
                self.error("Condition of rule from {} to {} is nested more than {} levels deep".format(
                    from_state, to_state, MAX_CONDITION_DEPTH), from_state)
                continue
            checked = self.check_condition(cond, registry, max_neighbors)
            if not ok or checked is None:
                continue
            if from_state == to_state:
                self.warn("Rule from {} to {} never changes the cell".format(from_state, to_state), from_state)
            rules.append(("RULE", registry.index(from_state), registry.index(to_state), checked))
        return rules

    def validate(self):
        found = self.collect_assignments()

        rank, sizes, offsets = None, None, None
        if "environment" in found:
            rank, sizes = self.check_environment(*found["environment"])
            if "neighborhood" in found:
                offsets = self.check_neighborhood(*found["neighborhood"], rank)

        registry = None
        if "states" in found:
            registry = self.check_states(*found["states"])

        boundary = ("VOID",)
        if "boundary" in found and registry is not None:
            boundary = self.check_boundary(*found["boundary"], registry)

        rules = []
        if "rules" in found and registry is not None:
            max_neighbors = len(offsets) if offsets is not None else None
            rules = self.check_rules(*found["rules"], registry, max_neighbors)

        if self.errors:
            raise LoafSemanticError(self.errors)
        return ValidatedProgram(rank, sizes, offsets, boundary, registry, rules, self.warnings)

def validate(program, verbose=False):
    "Check a parsed program and return a ValidatedProgram, or raise LoafSemanticError listing every problem."
    t = time.time()
    validated = Validator(program).validate()
    if verbose:
        for (msg, line, col) in validated.warnings:
            print("Warning (line {} col {}): {}".format(line, col, msg))
        print("Validated in time {}".format(time.time() - t))
    return validated
