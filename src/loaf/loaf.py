import time

from loaf.lparser import parse_loaf
from loaf.validator import validate
from loaf.compiler import compile_program
from loaf.grid import GridEngine

def load(code, verbose=False):
    "Parse, validate and compile Loaf source text into a Program."
    t = time.time()
    program = parse_loaf(code)
    if verbose:
        print("Parsed {} declarations in time {}".format(len(program), time.time() - t))
    validated = validate(program, verbose=verbose)
    return compile_program(validated, verbose=verbose)

def simulate(code, generations, dimensions=None, initial=None, verbose=False):
    "Load a program, run it on a fresh grid and return the snapshot of every generation, the initial one included."
    engine = GridEngine(load(code, verbose=verbose), verbose=verbose)
    engine.initialize(dimensions, initial)
    history = [engine.current_grid()]
    for _ in range(generations):
        engine.step()
        history.append(engine.current_grid())
    return history
