## stacker — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import pytest

from stacker.runtime import Runtime
from stacker.errors import StackerStackError, StackerArityError, StackerContractError, StackerTypeError


def run(src: str) -> list:
    return Runtime().run(src).values


@pytest.mark.parametrize("src, expected", [
    ("1 2 +", 3), ("3 2 -", 1), ("4 2 *", 8), ("7 2 /", 3.5), ("2 10 ^", 1024), ("7 2 %", 1),
    ("5 3 xor", 6), ('"a" "b" +', "ab"), ("0.5 0.25 +", 0.75),
])
def test_arithmetic(src, expected):
    assert run(src) == [expected]


@pytest.mark.parametrize("src, expected", [
    ("1 2 <", True), ("1 2 >", False), ("2 2 ==", True), ("2 2 >=", True), ("3 2 <=", False),
    ("true false and", False), ("true false or", True), ("true not", False), ("0 not", True),
])
def test_comparison_and_logic(src, expected):
    assert run(src) == [expected]


def test_stack_shuffling():
    assert run("5 dup") == [5, 5]
    assert run("1 2 swap") == [2, 1]
    assert run("1 2 swap swap") == [1, 2]
    assert run("1 2 over") == [1, 2, 1]
    assert run("1 2 3 pick") == [1, 2, 3, 1]
    assert run("1 2 3 clear") == []
    assert run("1 2 pop") == [1]
    assert run("1 2 dup pop") == [1, 2]
    assert run("pop noop") == []


def test_underflow_reports_caller():
    with pytest.raises(StackerStackError) as exc:
        run("1 +")
    assert exc.value.message.startswith('"+" expected 2 item(s)')
    assert exc.value.span == (2, 1)


def test_quoted_code_is_equivalent_to_inline():
    assert run("(1 2 + 3 *) eval") == run("1 2 + 3 *") == [9]
    assert run("(dup) 4 swap eval") == [4, 4]


def test_eval_requires_code():
    with pytest.raises(StackerTypeError):
        run("1 eval")


def test_if_selects_one_branch():
    assert run("(1 2 <) ('yes) ('no) if") == ['yes']
    assert run("(false) (1) (2) if") == [2]


def test_if_dead_branch_has_no_effect():
    assert run("(false) (9 'x store) (0) if 'x load") == [0]


def test_map_applies_to_every_item():
    assert run("1 2 3 'sq 1 (dup *) define-op 'sq map") == [1, 4, 9]
    assert run("'not map") == []


def test_filter_keeps_truthy_items():
    assert run("1 2 3 4 'even 1 (2 % 0 ==) define-op 'even filter") == [2, 4]
    assert run("'even 1 (2 % 0 ==) define-op 'even filter") == []


def test_reduce_folds_left():
    assert run("1 2 3 4 '+ reduce") == [10]
    assert run("10 1 2 '- reduce") == [7]
    assert run("5 '+ reduce") == [5]
    assert run("'+ reduce") == []


@pytest.mark.parametrize("src", ["1 2 '+ map", "1 2 'not reduce", "1 'pop filter"])
def test_combinators_check_declared_arity(src):
    with pytest.raises(StackerArityError) as exc:
        run(src)
    assert 'requires an operator of arity' in exc.value.message


@pytest.mark.parametrize("src, message", [
    ("1 'drop 1 (pop) define-op 'drop map", "didn't leave a value"),
    ("1 'twice 1 (dup) define-op 'twice map", "left too many values"),
    ("1 'drop 1 (pop) define-op 'drop filter", "didn't leave a value"),
    ("1 'twice 1 (dup) define-op 'twice filter", "left too many values"),
    ("1 2 'drop2 2 (pop pop) define-op 'drop2 reduce", "didn't leave a value"),
    ("1 2 'keep2 2 (noop) define-op 'keep2 reduce", "left too many values"),
])
def test_combinators_enforce_one_result(src, message):
    with pytest.raises(StackerContractError, match=message) as exc:
        run(src)
    combinator = src.split()[-1]
    assert exc.value.message.startswith(f'"{combinator}" operation')


@pytest.mark.parametrize("src, expected", [
    ("0 5 1 range", [0, 1, 2, 3, 4]),
    ("5 0 1 range", [5, 4, 3, 2, 1]),
    ("0 5 2 range", [0, 2, 4]),
    ("0 -3 -1 range", [0, -1, -2]),
    ("3 3 1 range", []),
    ("0 1 0.25 range", [0, 0.25, 0.5, 0.75]),
])
def test_range(src, expected):
    assert run(src) == expected


def test_range_rejects_bad_operands():
    with pytest.raises(StackerTypeError, match="for start"):
        run("'a 5 1 range")
    with pytest.raises(StackerTypeError, match="for step"):
        run("0 5 true range")
    with pytest.raises(StackerTypeError, match="non-zero step"):
        run("0 5 0 range")


def test_define_op_arity_values():
    assert run("'drop-all none (clear) define-op 1 2 drop-all") == []
    assert run("'drop-all 'none (clear) define-op 1 2 drop-all") == []
    for arity in ("-1", "1.5", "true", "'many"):
        with pytest.raises(StackerArityError, match="Invalid arity value"):
            run(f"'x {arity} (1) define-op")


def test_define_op_checks_operands_before_running():
    with pytest.raises(StackerStackError):
        run("'add3 3 (+ +) define-op 1 2 add3")


def test_redefinition_replaces_operator():
    assert run("'f 0 (1) define-op 'f 0 (2) define-op f") == [2]


def test_alias_keeps_definition_at_alias_time():
    program = "'add2 1 (2 +) define-op 'add2 'plus2 alias-op 'add2 1 (3 +) define-op 1 plus2 1 add2"
    assert run(program) == [3, 4]


def test_del_op_turns_name_back_into_symbol():
    assert run("'+ del-op 1 2 +") == [1, 2, '+']
    assert run("'unknown del-op 1") == [1]


def test_named_memory():
    assert run("5 'x store 'x load 'x load") == [5, 5]
    assert run("5 'x store 'x delete 'x load") == []
    assert run("'missing load") == []
    assert run("'missing delete") == []


def test_pack_round_trips_through_eval():
    assert run("1 2.5 true pack eval") == [1, 2.5, True]
    assert run("""'word "two words" (1 +) pack""") == ["""'word "two words" (1 +)"""]
    assert run("pack") == ['']


def test_print_pops_and_writes(capsys):
    assert run('"hi" print 3 print true print 7') == [7]
    assert capsys.readouterr().out == "hi\n3\ntrue\n"
