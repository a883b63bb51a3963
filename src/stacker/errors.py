## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import lark


class StackerError(Exception):
    def __init__(self, message: str = "", *, token=None, location=None, length=None):
        """Base class for all errors raised while tokenizing or evaluating a program."""
        super().__init__(message)
        self.message: str = message
        self.token: object = token
        self.location: int | None = token.location if token is not None else location
        self.length: int | None = token.length if token is not None else length
        self.stack: list | None = None

    @property
    def span(self) -> tuple[int, int] | None:
        if self.location is None: return None
        return (self.location, self.length or 0)

    def relocate(self, where) -> None:
        """Translate the span from the coordinates of an evaluated text into program coordinates."""
        if self.location is None: return
        start, end = where(self.location), where(self.location + (self.length or 0))
        self.location = start
        self.length = None if start is None or end is None else end - start


class StackerSyntaxError(StackerError):
    pass

class StackerIncompleteParse(StackerSyntaxError, lark.exceptions.ParseError):
    pass

class StackerNameError(StackerError, NameError):
    pass

class StackerStackError(StackerError, IndexError):
    """Too few items on the operand stack for an operator."""
    pass

class StackerArityError(StackerError, ValueError):
    pass

class StackerContractError(StackerError, RuntimeError):
    """An operator invoked by a combinator left the wrong number of values."""
    pass

class StackerTypeError(StackerError, TypeError):
    pass

class StackerRuntimeError(StackerError, RuntimeError):
    """Host-side exception raised from inside a native operator."""
    pass

class StackerInternalError(StackerError, AssertionError):
    pass
