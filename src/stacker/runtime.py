## stacker — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import Any, Callable
from dataclasses import dataclass, field

from .types import Token, Value, VARIADIC
from .errors import StackerError
from .library import Library, NativeOperator
from .builtins import load_builtins_library
from .interpreter import Interpreter


@dataclass
class RunResult:
    value: Value | None
    stack: list[Token] = field(default_factory=list)
    memory: dict[str, Token] = field(default_factory=dict)

    @property
    def values(self) -> list[Value]:
        return [t.value for t in self.stack]


class Runtime:
    """Minimal runtime facade focused on embedding and extension."""

    def __init__(self, verbosity: int = 0):
        self.verbosity = verbosity
        self.extensions: dict[str, NativeOperator] = {}

    # Assembly ────────────────────────────────────────────────────────────────────────────────
    def library(self) -> Library:
        """Fresh operator table of built-ins and registered extensions, with empty registers."""
        lib = load_builtins_library()
        lib.operators.update(self.extensions)
        return lib

    def session(self) -> Interpreter:
        return Interpreter(self.library(), verbosity=self.verbosity)

    # Execution ───────────────────────────────────────────────────────────────────────────────
    def run(self, program: str, stats: dict | None = None) -> RunResult:
        """Evaluate `program` once on a fresh stack, operator table and memory."""
        interpreter = self.session()
        try:
            top = interpreter.evaluate(program)
        except StackerError as exc:
            exc.stack = list(interpreter.stack)
            raise
        finally:
            if stats is not None:
                stats['steps'] = stats.get('steps', 0) + interpreter.steps
        return self.snapshot(interpreter, top)

    def snapshot(self, interpreter: Interpreter, top: Token | None) -> RunResult:
        return RunResult(value=None if top is None else top.value,
                         stack=list(interpreter.stack),
                         memory=dict(interpreter.library.registers))

    # Registration ────────────────────────────────────────────────────────────────────────────
    def register_operation(self, name: str, func: Callable[..., Any], arity: int | None = VARIADIC) -> None:
        """Install a host operator `func(stack, interpreter, *operands)` into every table built from now on."""
        self.extensions[name] = NativeOperator(func, arity)

    # Introspection ───────────────────────────────────────────────────────────────────────────
    def list_operations(self) -> dict[str, int | None]:
        return {name: op.arity for name, op in self.library().operators.items()}
