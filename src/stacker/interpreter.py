## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import Iterator

from .types import Token, Locator, SYMBOL, OPERATOR, LOCAL
from .errors import StackerError, StackerSyntaxError, StackerRuntimeError, StackerInternalError
from .library import Library
from .tokenizer import Tokenizer
from .formatting import show_step


def _identity(location: int) -> int:
    return location

def _unlocated(location: int) -> None:
    return None


class Interpreter:
    """Evaluates program text against one operand stack and one live operator table.

    Every call to `evaluate` renames the locals (`@name`) found anywhere in its text, nested quoted code
    included, to `@name@<uid>` before anything runs.  Double-quoted strings are opaque to this pass, so
    an operator defined with a string body renames its locals afresh on every invocation.
    """

    def __init__(self, library: Library, tokenizer: Tokenizer | None = None, verbosity: int = 0):
        self.stack: list[Token] = []
        self.library = library
        self.tokenizer = tokenizer or Tokenizer.for_operators(library.operators)
        self.verbosity = verbosity
        self.uid = 0
        self.steps = 0

    def _local_names(self, text: str) -> set[str]:
        names = set()
        for token in self.tokenizer.tokenize(text):
            if token.kind == LOCAL: names.add(token.value)
            elif token.is_code: names |= self._local_names(token.value)
        return names

    def _hygiene(self, text: str, locate: Locator) -> tuple[str, Locator]:
        uid, self.uid = self.uid, self.uid + 1
        try:
            names = self._local_names(text)
        except StackerSyntaxError as exc:
            exc.relocate(locate)
            raise
        if not names: return text, locate

        def replacer(token: Token) -> str | None:
            return f"{token.value}@{uid}" if token.kind == LOCAL and token.value in names else None

        text, shifts = self.tokenizer.rewrite(text, replacer, deep=True)
        def where(location: int) -> int | None:
            return locate(location - sum(delta for end, delta in shifts if end <= location))
        return text, where

    def _relocate(self, token: Token, where: Locator) -> Token:
        """Move a token of the rewritten text back to the coordinates of the program source."""
        start, end = where(token.location), where(token.location + token.length)
        length = None if start is None or end is None else end - start
        locate = None
        if token.is_code:
            base = token.location
            locate = lambda location: where(base + location)
        return token.clone(location=start, length=length, locate=locate)

    def _tokens(self, text: str, where: Locator) -> Iterator[Token]:
        try:
            for token in self.tokenizer.tokenize(text):
                yield self._relocate(token, where)
        except StackerSyntaxError as exc:
            exc.relocate(where)
            raise

    def _trace(self, token: Token) -> None:
        if self.verbosity == 2 or (self.verbosity == 1 and token.kind == OPERATOR):
            show_step(self.steps, self.stack, token)

    def _execute(self, token: Token) -> None:
        self._trace(token)
        self.steps += 1

        if token.kind == SYMBOL:
            self.stack.append(token)
        elif token.kind == OPERATOR:
            op = self.library.get_operator(token)
            try:
                op.invoke(self, token)
            except (StackerError, RecursionError):
                raise
            except Exception as exc:
                raise StackerRuntimeError(f'"{token.value}" failed with {type(exc).__name__}: {exc}', token=token) from exc
        elif token.kind == LOCAL:
            raise StackerInternalError(f"Internal error: unreplaced local {token.value}", token=token)
        else:
            raise StackerInternalError(f"Internal error: unknown token kind {token.kind!r}", token=token)

    def evaluate(self, text: str, *, locate: Locator | None = None) -> Token | None:
        """Run `text` on the current stack and return the top of the stack, if any.

        `locate` maps offsets in `text` to offsets in the program source, for error spans.
        """
        text, where = self._hygiene(text, locate or _identity)
        for token in self._tokens(text, where):
            self._execute(token)
        return self.stack[-1] if self.stack else None

    def evaluate_token(self, token: Token) -> Token | None:
        """Evaluate the text held by a token; quoted code keeps reporting errors at its source position."""
        return self.evaluate(token.value, locate=token.locate or _unlocated)

