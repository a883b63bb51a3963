## stacker — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re

import pytest

from stacker.types import Token, LOCAL
from stacker.builtins import load_builtins_library
from stacker.interpreter import Interpreter
from stacker.tokenizer import Tokenizer, Rule, default_rules
from stacker.errors import (StackerNameError, StackerRuntimeError, StackerInternalError,
                            StackerIncompleteParse, StackerTypeError, StackerStackError)


FACTORIAL = """
'fact 1 "
    @n store
    (@n load 1 <=)
    (1)
    (@n load 1 - fact @n load *)
    if
" define-op
"""


def _interpreter(**kwargs) -> Interpreter:
    return Interpreter(load_builtins_library(), **kwargs)


def test_evaluate_returns_top_of_stack():
    interp = _interpreter()
    assert interp.evaluate("1 2 +").value == 3
    assert interp.evaluate("pop") is None


def test_locals_are_renamed_per_evaluation():
    interp = _interpreter()
    interp.evaluate("5 @x store")
    assert list(interp.library.registers) == ['@x@0']


def test_nested_locals_share_the_outer_name():
    interp = _interpreter()
    assert interp.evaluate("1 @a store (@a load) eval").value == 1


def test_locals_in_quoted_code_take_the_enclosing_uid():
    interp = _interpreter()
    assert interp.evaluate("(@y) eval").value == '@y@0'


def test_locals_in_strings_are_renamed_when_evaluated():
    interp = _interpreter()
    assert interp.evaluate('"@y" eval').value == '@y@1'


def test_sibling_blocks_share_locals():
    interp = _interpreter()
    interp.evaluate("'f 0 ( (7 @n store) eval (@n load) eval ) define-op f")
    assert [t.value for t in interp.stack] == [7]
    assert list(interp.library.registers) == ['@n@0']


def test_recursive_operator_keeps_locals_apart():
    interp = _interpreter()
    assert interp.evaluate(FACTORIAL + "5 fact").value == 120
    assert [t.value for t in interp.stack] == [120]


def test_registers_persist_between_evaluations():
    interp = _interpreter()
    interp.evaluate("42 'answer store")
    interp.stack.clear()
    assert interp.evaluate("'answer load").value == 42


def test_defined_operator_is_used_later_in_same_text():
    interp = _interpreter()
    assert interp.evaluate("'sq 1 (dup *) define-op 7 sq").value == 49


def test_error_inside_quoted_code_points_into_the_block():
    program = "1 2 ( 3 'nope map ) eval"
    with pytest.raises(StackerNameError) as exc:
        _interpreter().evaluate(program)
    start, length = exc.value.span
    assert (start, length) == (program.index("'nope"), 5)
    assert program.index('(') < start < program.index(')')


def test_error_spans_survive_local_renaming():
    program = "@v ( @w 'nope map ) eval"
    with pytest.raises(StackerNameError) as exc:
        _interpreter().evaluate(program)
    assert exc.value.span == (program.index("'nope"), 5)


def test_error_inside_user_operator_points_at_definition():
    program = "'bad 0 (\"a\" 2 -) define-op bad"
    with pytest.raises(StackerRuntimeError) as exc:
        _interpreter().evaluate(program)
    assert exc.value.span == (program.index('-'), 1)
    assert isinstance(exc.value.__cause__, TypeError)


def test_host_exception_is_wrapped_with_span():
    with pytest.raises(StackerRuntimeError) as exc:
        _interpreter().evaluate("1 0 /")
    assert exc.value.span == (4, 1)
    assert isinstance(exc.value.__cause__, ZeroDivisionError)


def test_generated_code_has_no_span():
    with pytest.raises(StackerTypeError) as exc:
        _interpreter().evaluate("'a 1 1 pack eval range")
    assert exc.value.span is None


def test_unmatched_paren_in_nested_code_is_located():
    with pytest.raises(StackerIncompleteParse) as exc:
        _interpreter().evaluate("1 (2")
    assert exc.value.span == (2, 1)


def test_surviving_local_is_an_internal_error():
    library = load_builtins_library()
    rules = [r for r in default_rules(library.operators) if r.name != 'LOCAL']
    greedy = Rule('LOCAL', re.compile(r'@[^\s()]+'), 6, lambda text, loc, n: Token(LOCAL, text, loc, n))
    interp = Interpreter(library, tokenizer=Tokenizer(rules + [greedy]))
    with pytest.raises(StackerInternalError) as exc:
        interp.evaluate("@x")
    assert isinstance(exc.value, AssertionError)


def test_underflow_leaves_the_stack_intact():
    interp = _interpreter()
    interp.evaluate("1 2")
    with pytest.raises(StackerStackError):
        interp.evaluate("pick")
    assert [t.value for t in interp.stack] == [1, 2]
    with pytest.raises(StackerStackError):
        interp.evaluate("'add3 3 (+ +) define-op add3")
    assert [t.value for t in interp.stack] == [1, 2]


def test_verbose_trace_prints_each_token(capsys):
    interp = _interpreter(verbosity=2)
    interp.evaluate("1 2 +")
    assert capsys.readouterr().out.count('<=>') == 3
    assert interp.steps == 3
