## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import math
from typing import Any

from .types import Token, Value
from .errors import StackerTypeError
from .formatting import format_item


num = int | float

## ARITHMETIC
def op_add(a: Any, b: Any) -> Any: return a + b
def op_sub(a: num, b: num) -> num: return a - b
def op_mul(a: num, b: num) -> num: return a * b
def op_div(a: num, b: num) -> num: return a / b
def op_pow(a: num, b: num) -> num: return a ** b
def op_rem(a: num, b: num) -> num: return a % b
def op_xor(a: Any, b: Any) -> Any: return a ^ b
## COMPARISON & BOOLEAN LOGIC
def op_equal(a: Any, b: Any) -> bool: return a == b
def op_lt(a: Any, b: Any) -> bool: return a < b
def op_gt(a: Any, b: Any) -> bool: return a > b
def op_gte(a: Any, b: Any) -> bool: return a >= b
def op_lte(a: Any, b: Any) -> bool: return a <= b
def op_not(a: Any) -> bool: return not a
def op_and(a: Any, b: Any) -> Any: return a and b
def op_or(a: Any, b: Any) -> Any: return a or b
# STACK OPERATIONS
def op_dup(x: Token) -> tuple[Token, Token]: return (x, x.clone())
def op_swap(a: Token, b: Token) -> tuple[Token, Token]: return (b, a)
def op_over(a: Token, b: Token) -> tuple[Token, ...]: return (a, b, a.clone())
def op_pick(a: Token, b: Token, c: Token) -> tuple[Token, ...]: return (a, b, c, a.clone())
# INPUT/OUTPUT
def op_print(x: Value) -> None:
    print(x if isinstance(x, str) else format_item(x))


def op_range(start: Token, end: Token, step: Token) -> list[Token]:
    """Exclusive-of-end progression from `start` towards `end`, direction given by their order."""
    for label, token in (('start', start), ('end', end), ('step', step)):
        if isinstance(token.value, bool) or not isinstance(token.value, (int, float)):
            raise StackerTypeError(f"range operator expects numerical value for {label}", token=token)
    if step.value == 0:
        raise StackerTypeError("range operator expects a non-zero step", token=step)

    distance, stride = end.value - start.value, abs(step.value)
    direction = (distance > 0) - (distance < 0)
    count = math.ceil(abs(distance) / stride)
    return [Token.of(start.value + i * direction * stride) for i in range(count)]


def op_pack(items: list[Token]) -> Token:
    return Token.of(' '.join(t.serialize() for t in items), code=True)
