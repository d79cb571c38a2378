from frozendict import frozendict

class State:
    """
    A declared cell state.
    * name is the identifier from the states block.
    * index is its position in declaration order; grids store these indices.
    * default tells whether it carries the default attribute.
    * attributes maps attribute keys (such as color) to opaque tokens.
    """

    __slots__ = ("_name", "_index", "_default", "_attributes")

    def __init__(self, name, index, default=False, attributes=None):
        self._name = str(name)
        self._index = index
        self._default = default
        self._attributes = frozendict(attributes or {})

    @property
    def name(self):
        return self._name

    @property
    def index(self):
        return self._index

    @property
    def default(self):
        return self._default

    @property
    def attributes(self):
        return self._attributes

    @property
    def color(self):
        return self._attributes.get("color")

    def __repr__(self):
        return "State({}, {}, default={}, attributes={})".format(
            self.name, self.index, self.default, dict(self.attributes))

    def __eq__(self, other):
        if not isinstance(other, State):
            return False
        return (self.name, self.index, self.default, self.attributes) == \
               (other.name, other.index, other.default, other.attributes)

    def __hash__(self):
        return hash((self.name, self.index))

class StateRegistry:
    "The states of a program, looked up by name or index. Read-only once built."

    def __init__(self, states):
        self._states = tuple(states)
        assert all(st.index == i for (i, st) in enumerate(self._states))
        self._by_name = frozendict({st.name : st for st in self._states})
        defaults = [st for st in self._states if st.default]
        assert len(defaults) <= 1
        self._default = defaults[0] if defaults else None

    @property
    def default(self):
        "The default state, or None if no state carries the default attribute."
        return self._default

    def names(self):
        return [st.name for st in self._states]

    def index(self, name):
        return self._by_name[name].index

    def name(self, index):
        return self._states[index].name

    def colors(self):
        "Map from state name to its color token, for states that declare one."
        return frozendict({st.name : st.color for st in self._states if st.color is not None})

    def attribute(self, state, key, fallback=None):
        if not isinstance(state, State):
            state = self[state]
        return state.attributes.get(key, fallback)

    def __getitem__(self, key):
        if type(key) == int:
            return self._states[key]
        return self._by_name[key]

    def __contains__(self, name):
        return name in self._by_name

    def __iter__(self):
        return iter(self._states)

    def __len__(self):
        return len(self._states)

    def __eq__(self, other):
        if not isinstance(other, StateRegistry):
            return False
        return self._states == other._states

    def __hash__(self):
        return hash(self._states)

    def __repr__(self):
        return "StateRegistry({})".format(self.names())

    def info_string(self, verbose=False):
        s = ["{} states: {}".format(len(self), ", ".join(self.names()))]
        if self.default is not None:
            s.append("Default state: {}".format(self.default.name))
        else:
            s.append("No default state")
        if verbose:
            for st in self._states:
                attrs = ", ".join("{}({})".format(k, v) for (k, v) in st.attributes.items())
                s.append("State {} ({}): {}".format(st.index, st.name, attrs or "no attributes"))
        return "\n".join(s)
