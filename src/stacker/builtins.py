## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import Any, Callable

from . import operators as O
from . import combinators as C
from .types import Token, VARIADIC
from .library import Library


def value_function(fn: Callable[..., Any]) -> Callable[..., Token | None]:
    """Adapt a function over plain values into an operator behavior over tokens."""
    def w_v(stack, interpreter, *args: Token):
        result = fn(*(a.value for a in args))
        return None if result is None else Token.of(result)
    w_v.__name__ = fn.__name__
    return w_v

def token_function(fn: Callable[..., Any]) -> Callable[..., Any]:
    def w_t(stack, interpreter, *args: Token):
        return fn(*args)
    w_t.__name__ = fn.__name__
    return w_t


def _noop(stack, interpreter): return None
def _pop(stack, interpreter): stack.pop(ignore_empty=True)
def _clear(stack, interpreter): stack.pop_all()
def _pack(stack, interpreter): return O.op_pack(stack.pop_all())


def load_builtins_library() -> Library:
    values = {
        '+': (2, O.op_add), '-': (2, O.op_sub), '*': (2, O.op_mul), '/': (2, O.op_div),
        '^': (2, O.op_pow), '%': (2, O.op_rem), 'xor': (2, O.op_xor),
        '==': (2, O.op_equal), '<': (2, O.op_lt), '>': (2, O.op_gt), '>=': (2, O.op_gte), '<=': (2, O.op_lte),
        'not': (1, O.op_not), 'and': (2, O.op_and), 'or': (2, O.op_or),
        'print': (1, O.op_print),
    }
    tokens = {
        'dup': (1, O.op_dup), 'swap': (2, O.op_swap), 'over': (2, O.op_over), 'pick': (3, O.op_pick),
        'range': (3, O.op_range),
    }
    combinators = {
        'eval': (1, C.comb_eval), 'if': (3, C.comb_if),
        'map': (VARIADIC, C.comb_map), 'filter': (VARIADIC, C.comb_filter), 'reduce': (VARIADIC, C.comb_reduce),
        'define-op': (3, C.comb_define_op), 'alias-op': (2, C.comb_alias_op), 'del-op': (1, C.comb_del_op),
        'store': (2, C.comb_store), 'load': (1, C.comb_load), 'delete': (1, C.comb_delete),
    }
    stack_level = {'noop': _noop, 'pop': _pop, 'clear': _clear, 'pack': _pack}

    lib = Library(operators={})
    for name, (arity, fn) in values.items():
        lib.add_function(name, value_function(fn), arity)
    for name, (arity, fn) in tokens.items():
        lib.add_function(name, token_function(fn), arity)
    for name, (arity, fn) in combinators.items():
        lib.add_function(name, fn, arity)
    for name, fn in stack_level.items():
        lib.add_function(name, fn, VARIADIC)
    return lib
