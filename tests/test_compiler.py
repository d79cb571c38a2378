from collections import Counter

import numpy as np
import pytest

from loaf import load, parse_loaf, validate, compile_rules, Predicate
from conftest import CONWAY

class Recorder(dict):
    "A count map that remembers which states were looked at."

    def __init__(self, *args):
        super().__init__(*args)
        self.reads = []

    def __getitem__(self, state):
        self.reads.append(state)
        return super().__getitem__(state)

def test_or_short_circuits():
    pred = Predicate(("OR", ("COMPARE", "==", 0, 1), ("COMPARE", "==", 1, 1)))
    counts = Recorder({0 : 1, 1 : 0})
    assert pred.holds(counts)
    assert counts.reads == [0]

def test_and_short_circuits():
    pred = Predicate(("AND", ("COMPARE", ">", 0, 1), ("COMPARE", "==", 1, 1)))
    counts = Recorder({0 : 1, 1 : 1})
    assert not pred(counts)
    assert counts.reads == [0]

def test_not_and_operators():
    counts = {0 : 3}
    for (op, expected) in [("==", True), ("!=", False), ("<", False),
                           ("<=", True), (">", False), (">=", True)]:
        assert Predicate(("COMPARE", op, 0, 3)).holds(counts) == expected
        assert Predicate(("NOT", ("COMPARE", op, 0, 3))).holds(counts) != expected

def test_conway_rule_set():
    rules = load(CONWAY).rules
    assert set(rules) == {0, 1}
    assert rules[0] == ((Predicate(("COMPARE", "==", 1, 3)), 1),)
    assert rules[1] == ((Predicate(("OR", ("COMPARE", "<", 1, 2), ("COMPARE", ">", 1, 3))), 0),)
    with pytest.raises(TypeError):
        rules[0] = ()

branching = """
environment := 2D
neighborhood := MOORE
states := { Seed :: default A B Idle }
rules := {
    from Seed to A := neighborhood(A) >= 0
    from Seed to B := neighborhood(A) >= 0
    from A to B := neighborhood(B) > 2
    from A to Seed := neighborhood(B) > 1
}
"""

def test_first_matching_rule_wins():
    program = load(branching)
    assert program.transition(0, Counter()) == 1
    assert program.transition(1, Counter({2 : 3})) == 2
    assert program.transition(1, Counter({2 : 2})) == 0
    assert program.transition(1, Counter()) == 1

def test_states_without_rules_keep_their_state():
    program = load(branching)
    assert program.rules[2] == ((Predicate.always(), 2),)
    assert program.rules[3] == ((Predicate.always(), 3),)
    assert program.transition(3, Counter({1 : 8})) == 3

def test_compile_rules_keeps_source_order():
    rules = compile_rules(validate(parse_loaf(branching)))
    assert [target for (_, target) in rules[0]] == [1, 2]
    assert [target for (_, target) in rules[1]] == [2, 0]

def test_census():
    assert load(CONWAY).census == {1}
    assert load(branching).census == {1, 2}
    assert Predicate.always().census == frozenset()

def test_mask_agrees_with_holds():
    cond = ("OR",
            ("AND", ("COMPARE", ">=", 0, 2), ("NOT", ("COMPARE", "==", 1, 3))),
            ("COMPARE", "<", 2, 1))
    pred = Predicate(cond)
    rng = np.random.default_rng(1)
    shape = (6, 7)
    counts = {state : rng.integers(0, 5, size=shape) for state in range(3)}
    mask = pred.mask(counts, shape)
    assert mask.shape == shape and mask.dtype == bool
    for cell in np.ndindex(*shape):
        assert mask[cell] == pred.holds({state : int(arr[cell]) for (state, arr) in counts.items()})

def test_always_mask():
    assert Predicate.always().mask({}, (2, 3)).all()
    assert Predicate.always().holds({})

def test_info_string():
    program = load(CONWAY)
    s = program.info_string(name="life")
    assert "2-dimensional Loaf program life" in s
    assert "Neighborhood of 8 cells, void boundary" in s
    assert "2 rules" in s
    assert "from Alive to Dead := (neighborhood(Alive) < 2 | neighborhood(Alive) > 3)" in \
        program.info_string(verbose=True)
