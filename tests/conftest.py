import os.path
import sys
sys.path.append(os.path.abspath(os.path.join(__file__, os.pardir, os.pardir, "src")))

import pytest

import loaf

CONWAY = """
environment := 2D
neighborhood := MOORE
states := {
    Dead :: (default, color(black))
    Alive :: color(white)
}
rules := {
    from Dead to Alive := neighborhood(Alive) == 3
    from Alive to Dead := neighborhood(Alive) < 2 | neighborhood(Alive) > 3
}
"""

def conway(boundary=None, sizes=None):
    "The Game of Life program, optionally with a boundary and declared sizes."
    code = CONWAY
    if sizes is not None:
        code = code.replace("environment := 2D", "environment := 2D::({})".format(sizes))
    if boundary is not None:
        code += "boundary := {}\n".format(boundary)
    return code

@pytest.fixture
def life():
    return loaf.load(conway(boundary="wrap"))

@pytest.fixture
def bounded_life():
    return loaf.load(conway())
