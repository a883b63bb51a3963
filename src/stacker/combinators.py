## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from .types import Token, OPERATOR, VARIADIC
from .errors import StackerTypeError, StackerArityError, StackerContractError
from .library import StackWrapper, Operator


def _code(token: Token, label: str, caller: Token) -> Token:
    if not isinstance(token.value, str):
        raise StackerTypeError(f'"{caller.value}" expects quoted code for {label}, got {token.serialize()}', token=token)
    return token

def _arity_name(arity: int | None) -> str:
    return 'none' if arity is VARIADIC else str(arity)


def comb_eval(stack: StackWrapper, interpreter, code: Token):
    """Evaluates quoted code on the current stack, as if it was written inline."""
    interpreter.evaluate_token(_code(code, 'code', stack.caller))

def comb_if(stack: StackWrapper, interpreter, condition: Token, then: Token, otherwise: Token):
    """Evaluates the condition, discards the value it left, then evaluates only the selected branch."""
    for token, label in ((condition, 'condition'), (then, 'then'), (otherwise, 'otherwise')):
        _code(token, label, stack.caller)

    interpreter.evaluate_token(condition)
    result = stack.pop()
    interpreter.evaluate_token(then if result.value else otherwise)


def _target(stack: StackWrapper, interpreter, arity: int) -> tuple[Operator, Token]:
    """Pop the operator name a combinator applies, and check it declares the expected arity."""
    name = stack.pop_args('op')['op']
    op = interpreter.library.get_operator(name)
    if op.arity is VARIADIC or op.arity != arity:
        raise StackerArityError(f'"{stack.caller.value}" requires an operator of arity {arity}, but "{name.value}" '
                                f'declares arity {_arity_name(op.arity)}.', token=name)
    return op, name.clone(kind=OPERATOR)

def _apply(stack: StackWrapper, interpreter, op: Operator, name: Token, *operands: Token) -> Token:
    """Invoke `op` on the operands and take back exactly the one value it must leave."""
    depth = len(stack)
    stack.push(*operands)
    op.invoke(interpreter, name)

    added = len(stack) - depth
    if added < 1:
        raise StackerContractError(f'"{stack.caller.value}" operation "{name.value}" didn\'t leave a value on the stack.', token=name)
    if added > 1:
        raise StackerContractError(f'"{stack.caller.value}" operation "{name.value}" left too many values on the stack.', token=name)
    return stack.pop()

def comb_map(stack: StackWrapper, interpreter):
    op, name = _target(stack, interpreter, 1)
    return [_apply(stack, interpreter, op, name, item) for item in stack.pop_all()]

def comb_filter(stack: StackWrapper, interpreter):
    op, name = _target(stack, interpreter, 1)
    return [item for item in stack.pop_all() if _apply(stack, interpreter, op, name, item.clone()).value]

def comb_reduce(stack: StackWrapper, interpreter):
    """Folds the whole stack left-to-right with a binary operator, the first item being the seed."""
    op, name = _target(stack, interpreter, 2)
    items = stack.pop_all()
    if not items: return None

    result = items[0]
    for item in items[1:]:
        result = _apply(stack, interpreter, op, name, result, item)
    return result


def _declared_arity(token: Token) -> int | None:
    match token.value:
        case 'none':
            return VARIADIC
        case bool():
            pass
        case int() | float() if token.value >= 0 and int(token.value) == token.value:
            return int(token.value)
    raise StackerArityError(f'Invalid arity value {token.serialize()}\nMust be numerical or "none".', token=token)

def _name(token: Token, caller: Token) -> str:
    if not isinstance(token.value, str):
        raise StackerTypeError(f'"{caller.value}" expects a name, got {token.serialize()}', token=token)
    return token.value

def comb_define_op(stack: StackWrapper, interpreter, name: Token, arity: Token, code: Token):
    interpreter.library.add_code(_name(name, stack.caller), _code(code, 'code', stack.caller), _declared_arity(arity))

def comb_alias_op(stack: StackWrapper, interpreter, existing: Token, name: Token):
    interpreter.library.alias(existing, _name(name, stack.caller))

def comb_del_op(stack: StackWrapper, interpreter, name: Token):
    interpreter.library.remove(name.value)


# NAMED MEMORY
def comb_store(stack: StackWrapper, interpreter, value: Token, name: Token):
    interpreter.library.registers[_name(name, stack.caller)] = value

def comb_load(stack: StackWrapper, interpreter, name: Token):
    return interpreter.library.registers.get(name.value)

def comb_delete(stack: StackWrapper, interpreter, name: Token):
    interpreter.library.registers.pop(name.value, None)
