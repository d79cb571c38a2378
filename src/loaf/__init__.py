from loaf.errors import (LoafError, LoafSyntaxError, LoafSemanticError,
                         LoafConfigurationError, LoafStateError)
from loaf.lparser import parse_loaf, render_program
from loaf.states import State, StateRegistry
from loaf.validator import validate, ValidatedProgram
from loaf.compiler import Predicate, Program, compile_rules, compile_program
from loaf.grid import GridEngine, GridSnapshot
from loaf.loaf import load, simulate

__version__ = "0.1.0"
