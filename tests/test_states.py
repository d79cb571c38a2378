import pytest

from loaf import State, StateRegistry, load
from conftest import CONWAY

def forest():
    return StateRegistry([
        State("Empty", 0, True, {"color" : "black"}),
        State("Tree", 1, False, {"color" : "green", "flammable" : "yes"}),
        State("Fire", 2),
    ])

def test_lookups():
    reg = forest()
    assert len(reg) == 3
    assert reg.names() == ["Empty", "Tree", "Fire"]
    assert reg.index("Fire") == 2
    assert reg.name(1) == "Tree"
    assert reg[1] is reg["Tree"]
    assert "Tree" in reg and "Ash" not in reg
    assert [st.name for st in reg] == reg.names()
    with pytest.raises(KeyError):
        reg["Ash"]

def test_default_and_attributes():
    reg = forest()
    assert reg.default.name == "Empty"
    assert reg.colors() == {"Empty" : "black", "Tree" : "green"}
    assert reg.attribute("Tree", "flammable") == "yes"
    assert reg.attribute(reg["Fire"], "flammable", "no") == "no"
    assert reg["Fire"].color is None
    assert StateRegistry([State("A", 0)]).default is None

def test_states_are_read_only():
    st = forest()["Tree"]
    with pytest.raises(AttributeError):
        st.name = "Shrub"
    with pytest.raises(TypeError):
        st.attributes["color"] = "red"

def test_registry_from_program():
    reg = load(CONWAY).registry
    assert reg.names() == ["Dead", "Alive"]
    assert reg.default == State("Dead", 0, True, {"color" : "black"})
    assert reg.colors() == {"Dead" : "black", "Alive" : "white"}
    assert reg == load(CONWAY).registry
    assert "2 states" in reg.info_string()
    assert "color(white)" in reg.info_string(verbose=True)
