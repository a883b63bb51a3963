## stacker — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re
from typing import Callable
from dataclasses import dataclass, field, replace


SYMBOL = 'symbol'
OPERATOR = 'operator'
LOCAL = 'local'

# Arity of operators that drain the stack themselves.
VARIADIC = None

Value = int | float | bool | str
Locator = Callable[[int], int | None]

_BARE_WORD = re.compile(r"[^\s()'\"\\]+")


def tags_for(value: Value) -> frozenset[str]:
    if isinstance(value, bool): return frozenset({'boolean'})
    if isinstance(value, (int, float)): return frozenset({'number'})
    if isinstance(value, str): return frozenset({'string'})
    return frozenset()


@dataclass(frozen=True)
class Token:
    kind: str
    value: Value
    location: int | None = None
    length: int | None = None
    tags: frozenset[str] = frozenset()
    # Maps an offset inside a code token's text back to the original program source.
    locate: Locator | None = field(default=None, compare=False, repr=False)

    @classmethod
    def of(cls, value: Value, *, code: bool = False) -> "Token":
        """Synthesize a symbol token for a value computed at runtime, which has no source span."""
        tags = frozenset({'string', 'code'}) if code else tags_for(value)
        return cls(SYMBOL, value, tags=tags)

    @property
    def span(self) -> tuple[int, int] | None:
        if self.location is None or self.length is None: return None
        return (self.location, self.length)

    @property
    def is_code(self) -> bool:
        return 'code' in self.tags

    def clone(self, **changes) -> "Token":
        return replace(self, **changes)

    def serialize(self) -> str:
        """Render the token as source text that tokenizes back to an equivalent token."""
        if self.kind == OPERATOR: return str(self.value)
        if isinstance(self.value, bool): return 'true' if self.value else 'false'
        if isinstance(self.value, str):
            if self.is_code: return f'({self.value})'
            if _BARE_WORD.fullmatch(self.value): return f"'{self.value}"
            return '"' + self.value.replace('\\', '\\\\').replace('"', '\\"') + '"'
        return repr(self.value)
