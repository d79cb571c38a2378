from lark import Lark, Transformer_NonRecursive
from lark.exceptions import UnexpectedInput, UnexpectedToken, UnexpectedCharacters

from loaf.errors import LoafSyntaxError

loaf_grammar = r"""

start: assignment*

assignment: (NAME | NEIGHBORHOOD) ":=" value

?value: environment_value
      | neighborhood_value
      | boundary_value
      | state_block
      | rule_block

### ENVIRONMENT, NEIGHBORHOOD AND BOUNDARY

environment_value: DIMENSIONALITY ("::" "(" size ("," size)* ")")?
size: axis "=" INT

?axis: NAME | ALL_AXES

neighborhood_value: "MOORE"                              -> moore
                  | "VON_NEUMANN"                        -> von_neumann
                  | "{" nbhd_rule (","? nbhd_rule)* "}"  -> custom_neighborhood

nbhd_rule: axis "+" INT      -> nbhd_plus
         | axis "-" INT      -> nbhd_minus
         | axis "+-" INT     -> nbhd_plus_minus
         | axis "within" INT -> nbhd_within

boundary_value: "void"                         -> void_boundary
              | "wrap"                         -> wrap_boundary
              | "static" ("::" "(" NAME ")")?  -> static_boundary

### STATES

state_block: "{" state_entry+ "}"
state_entry: NAME ("::" attributes)?

attributes: "(" attribute ("," attribute)* ")"
          | attribute

attribute: DEFAULT            -> default_attribute
         | NAME "(" NAME ")"  -> keyed_attribute

### RULES

rule_block: "{" rule_entry* "}"
rule_entry: "from" NAME "to" NAME ":=" condition

# & binds tighter than |, ! tighter than both.

?condition: or_condition
?or_condition: and_condition ("|" and_condition)*
?and_condition: not_condition ("&" not_condition)*
?not_condition: "!" not_condition -> negation
              | atomic_condition
?atomic_condition: "(" condition ")"
                 | comparison

comparison: NEIGHBORHOOD "(" NAME ")" CMP_OP INT

### TOKENS

NEIGHBORHOOD: "neighborhood"
DEFAULT: "default"
DIMENSIONALITY.2: /[123]D/
ALL_AXES: "*"
CMP_OP: "==" | "!=" | "<=" | ">=" | "<" | ">"
NAME: /[a-zA-Z_][a-zA-Z0-9_]*/
INT: /-?[0-9]+/

COMMENT: /(\/\/|#)[^\n]*/
%ignore COMMENT

%import common.WS
%ignore WS
"""

class LoafTransformer(Transformer_NonRecursive):

    INT = int

    def DIMENSIONALITY(self, token):
        return int(token[0])

    def start(self, assignments):
        return list(assignments)

    def assignment(self, items):
        key, value = items
        return ("ASSIGN", key, value)

    def environment_value(self, items):
        rank, *sizes = items
        return ("ENVIRONMENT", rank, tuple(sizes))

    def size(self, items):
        return tuple(items)

    def moore(self, items):
        return ("MOORE",)

    def von_neumann(self, items):
        return ("VON_NEUMANN",)

    def custom_neighborhood(self, rules):
        return ("CUSTOM", *rules)

    def nbhd_plus(self, items):
        return (items[0], "+", items[1])

    def nbhd_minus(self, items):
        return (items[0], "-", items[1])

    def nbhd_plus_minus(self, items):
        return (items[0], "+-", items[1])

    def nbhd_within(self, items):
        return (items[0], "within", items[1])

    def void_boundary(self, items):
        return ("VOID",)

    def wrap_boundary(self, items):
        return ("WRAP",)

    def static_boundary(self, items):
        if items:
            return ("STATIC", items[0])
        return ("STATIC", None)

    def state_block(self, entries):
        return ("STATES", *entries)

    def state_entry(self, items):
        if len(items) == 1:
            return (items[0], ())
        return (items[0], items[1])

    attributes = tuple

    def default_attribute(self, items):
        return ("default",)

    def keyed_attribute(self, items):
        key, token = items
        return (key, token)

    def rule_block(self, rules):
        return ("RULES", *rules)

    def rule_entry(self, items):
        from_state, to_state, condition = items
        return ("RULE", from_state, to_state, condition)

    def or_condition(self, conditions):
        return ("OR", *conditions)

    def and_condition(self, conditions):
        return ("AND", *conditions)

    def negation(self, items):
        return ("NOT", items[0])

    def comparison(self, items):
        _, state, op, value = items
        return ("COMPARE", str(op), state, value)

parser = Lark(loaf_grammar, parser="lalr")

def describe_unexpected(err):
    if isinstance(err, UnexpectedToken):
        if err.token.type == "$END":
            found = "end of input"
        else:
            found = "'{}'".format(err.token)
        expected = sorted(err.expected)
        if expected:
            return "Unexpected {}, expected one of {}".format(found, ", ".join(expected))
        return "Unexpected {}".format(found)
    if isinstance(err, UnexpectedCharacters):
        return "Unexpected character '{}'".format(err.char)
    return "Unexpected end of input"

def end_position(code):
    lines = code.split("\n")
    return len(lines), len(lines[-1]) + 1

def parse_loaf(code):
    "Parse Loaf source text into a list of ('ASSIGN', key, value) triples."
    try:
        tree = parser.parse(code)
    except UnexpectedInput as err:
        line, column = err.line, err.column
        if line is None or line < 0:
            line, column = end_position(code)
        raise LoafSyntaxError(describe_unexpected(err), line, column) from err
    return LoafTransformer().transform(tree)

### PRETTY PRINTING

# Binding strength of condition nodes, used to decide where parentheses are needed
# so that reparsing the output gives back the same tree.
PRECEDENCE = {"OR": 1, "AND": 2, "NOT": 3, "COMPARE": 4}

def render_condition(cond, parent=0):
    # explicit stack: the parser accepts conditions nested deeper than the recursion limit
    rendered = []
    stack = [(cond, parent, False)]
    while stack:
        node, outer, expanded = stack.pop()
        op = node[0]
        if op == "COMPARE":
            _, cmp_op, state, value = node
            rendered.append("neighborhood({}) {} {}".format(state, cmp_op, value))
            continue
        if op not in PRECEDENCE:
            raise ValueError("Unknown condition node " + op)
        if not expanded:
            stack.append((node, outer, True))
            if op == "NOT":
                stack.append((node[1], PRECEDENCE["NOT"] - 1, False))
            else:
                for child in reversed(node[1:]):
                    stack.append((child, PRECEDENCE[op], False))
            continue
        if op == "NOT":
            s = "!" + rendered.pop()
        else:
            n = len(node) - 1
            s = (" & " if op == "AND" else " | ").join(rendered[-n:])
            del rendered[-n:]
        if PRECEDENCE[op] <= outer:
            s = "(" + s + ")"
        rendered.append(s)
    return rendered[0]

def render_attribute(attr):
    if attr == ("default",):
        return "default"
    return "{}({})".format(attr[0], attr[1])

def render_value(value):
    tag = value[0]
    if tag == "ENVIRONMENT":
        _, rank, sizes = value
        s = "{}D".format(rank)
        if sizes:
            s += "::(" + ", ".join("{} = {}".format(axis, n) for (axis, n) in sizes) + ")"
        return s
    if tag in ["MOORE", "VON_NEUMANN"]:
        return tag
    if tag == "CUSTOM":
        return "{ " + ", ".join("{} {} {}".format(*rule) for rule in value[1:]) + " }"
    if tag == "VOID":
        return "void"
    if tag == "WRAP":
        return "wrap"
    if tag == "STATIC":
        if value[1] is None:
            return "static"
        return "static::({})".format(value[1])
    if tag == "STATES":
        lines = ["{"]
        for (name, attrs) in value[1:]:
            if not attrs:
                lines.append("    {}".format(name))
            elif len(attrs) == 1:
                lines.append("    {} :: {}".format(name, render_attribute(attrs[0])))
            else:
                lines.append("    {} :: ({})".format(name, ", ".join(map(render_attribute, attrs))))
        lines.append("}")
        return "\n".join(lines)
    if tag == "RULES":
        if len(value) == 1:
            return "{ }"
        lines = ["{"]
        for (_, from_state, to_state, cond) in value[1:]:
            lines.append("    from {} to {} := {}".format(from_state, to_state, render_condition(cond)))
        lines.append("}")
        return "\n".join(lines)
    raise ValueError("Unknown value " + tag)

def render_program(program):
    "Turn a parsed program back into source text."
    return "\n".join("{} := {}".format(key, render_value(value))
                     for (_, key, value) in program) + "\n"
