## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import Any, Callable, Iterable
from dataclasses import dataclass, field

from .types import Token, VARIADIC
from .errors import StackerNameError, StackerStackError


class StackWrapper:
    """View of the live operand stack given to an operator, reporting underflow against its caller."""

    def __init__(self, stack: list[Token], caller: Token):
        self.stack = stack
        self.caller = caller
        self.last: Token | None = None

    def __len__(self):
        return len(self.stack)

    def _underflow(self, message: str) -> StackerStackError:
        if self.last is not None:
            message += f"\nLast item was: {self.last.serialize()}"
        return StackerStackError(message, token=self.caller)

    def pop(self, *, ignore_empty: bool = False) -> Token | None:
        if not self.stack:
            if ignore_empty: return None
            raise self._underflow(f'"{self.caller.value}" expected another item on the stack, but it was empty.')
        self.last = self.stack.pop()
        return self.last

    def pop_many(self, count: int) -> list[Token]:
        """Pop `count` items, returned bottom-most first.  Nothing is popped when there are too few."""
        if len(self.stack) < count:
            if self.stack: self.last = self.stack[-1]
            raise self._underflow(f'"{self.caller.value}" expected {count} item(s) on the stack, '
                                  f'but only {len(self.stack)} were present.')
        items = [self.pop() for _ in range(count)]
        items.reverse()
        return items

    def pop_args(self, *names: str) -> dict[str, Token]:
        if len(self.stack) < len(names):
            expected = ", ".join(f'"{n}"' for n in names)
            raise self._underflow(f'"{self.caller.value}" expected at least {len(names)} items on the stack, '
                                  f'but only {len(self.stack)} items were present.\nIt expects arguments {expected}.')
        return dict(zip(names, self.pop_many(len(names))))

    def pop_all(self) -> list[Token]:
        items, self.stack[:] = list(self.stack), []
        return items

    def push(self, *tokens: Token) -> None:
        self.stack.extend(tokens)


def push_result(stack: list[Token], result: Token | Iterable[Token] | None) -> None:
    if result is None: return
    if isinstance(result, Token): stack.append(result)
    else: stack.extend(result)


class Operator:
    def __init__(self, arity: int | None = VARIADIC):
        self.arity = arity

    @property
    def is_variadic(self) -> bool:
        return self.arity is VARIADIC

    def invoke(self, interpreter, caller: Token) -> None:
        raise NotImplementedError


class NativeOperator(Operator):
    """Host function `func(stack, interpreter, *operands)`; fixed-arity operands are popped beforehand."""

    def __init__(self, func: Callable[..., Any], arity: int | None = VARIADIC):
        super().__init__(arity)
        self.func = func

    def invoke(self, interpreter, caller: Token) -> None:
        stack = StackWrapper(interpreter.stack, caller)
        args = () if self.is_variadic else stack.pop_many(self.arity)
        push_result(interpreter.stack, self.func(stack, interpreter, *args))

    def __repr__(self):
        return f"NativeOperator({getattr(self.func, '__name__', self.func)!r}, arity={self.arity})"


class CodeOperator(Operator):
    """Operator defined by the program itself; evaluates its quoted code on the shared stack."""

    def __init__(self, code: Token, arity: int | None = VARIADIC):
        super().__init__(arity)
        self.code = code

    def invoke(self, interpreter, caller: Token) -> None:
        if not self.is_variadic:
            # Only checks the operands are present, the code consumes them itself.
            stack = StackWrapper(interpreter.stack, caller)
            stack.push(*stack.pop_many(self.arity))
        interpreter.evaluate_token(self.code)

    def __repr__(self):
        return f"CodeOperator({self.code.serialize()!r}, arity={self.arity})"


@dataclass
class Library:
    operators: dict[str, Operator]
    registers: dict[str, Token] = field(default_factory=dict)

    # Registration helpers
    def add_function(self, name: str, func: Callable[..., Any], arity: int | None = VARIADIC) -> None:
        self.operators[name] = NativeOperator(func, arity)

    def add_code(self, name: str, code: Token, arity: int | None = VARIADIC) -> None:
        self.operators[name] = CodeOperator(code, arity)

    def alias(self, existing: Token, name: str) -> None:
        self.operators[name] = self.get_operator(existing)

    def remove(self, name: str) -> None:
        self.operators.pop(name, None)

    def get_operator(self, token: Token) -> Operator:
        if (op := self.operators.get(token.value)) is not None:
            return op
        raise StackerNameError(f'"{token.value}" is not an operator', token=token)

    def __contains__(self, name: str) -> bool:
        return name in self.operators
