## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re
import functools
from typing import Callable, Iterator, Mapping
from collections import namedtuple

import lark

from .types import Token, SYMBOL, OPERATOR, LOCAL
from .errors import StackerSyntaxError, StackerIncompleteParse


# Terminals only: the tokenizer picks the longest match itself, priorities break ties.
GRAMMAR = r"""start: (WS | LINE_COMMENT | BLOCK_COMMENT | STRING | SYMBOL | LOCAL | BOOLEAN | NUMBER | NAME)*

// SILENT
WS.9: /\s+/
LINE_COMMENT.9: /\/\/[^\n]*/
BLOCK_COMMENT.9: /\/\*+[^*]*\*+(?:[^\/*][^*]*\*+)*\//

// LITERALS
STRING.8: /"(?:[^"\\]|\\.)*"/
SYMBOL.7: /'[^\s')]+/
LOCAL.6: /@[^@\s()]+/
BOOLEAN.5: "true" | "false"
NUMBER.4: /[+-]?\d*\.?\d+(?:[eE][+-]?\d+)?/
NAME.1: /[^\s()]+/
"""

Rule = namedtuple('Rule', ['name', 'pattern', 'priority', 'build'])
TokenBuilder = Callable[[str, int, int], Token | None]
Replacer = Callable[[Token], str | None]

_ESCAPE = re.compile(r'\\(.)', re.S)
_INTEGER = re.compile(r'[+-]?\d+')


@functools.cache
def load_terminals() -> dict[str, lark.lexer.TerminalDef]:
    parser = lark.Lark(GRAMMAR, parser='lalr', lexer='basic')
    return {t.name: t for t in parser.terminals}


def _silent(text: str, location: int, length: int) -> None:
    return None

def _string(text: str, location: int, length: int) -> Token:
    value = _ESCAPE.sub(r'\1', text[1:-1])
    return Token(SYMBOL, value, location, length, frozenset({'string'}))

def _symbol(text: str, location: int, length: int) -> Token:
    return Token(SYMBOL, text[1:], location, length, frozenset({'string'}))

def _local(text: str, location: int, length: int) -> Token:
    return Token(LOCAL, text, location, length, frozenset({'string'}))

def _boolean(text: str, location: int, length: int) -> Token:
    return Token(SYMBOL, text == 'true', location, length, frozenset({'boolean'}))

def _number(text: str, location: int, length: int) -> Token:
    value = int(text) if _INTEGER.fullmatch(text) else float(text)
    return Token(SYMBOL, value, location, length, frozenset({'number'}))


def default_rules(operators: Mapping) -> list[Rule]:
    """Build the rule set; identifiers become operator tokens when `operators` holds them at scan time."""
    def _name(text: str, location: int, length: int) -> Token:
        if text in operators:
            return Token(OPERATOR, text, location, length)
        return Token(SYMBOL, text, location, length, frozenset({'string'}))

    builders: dict[str, TokenBuilder] = {
        'WS': _silent, 'LINE_COMMENT': _silent, 'BLOCK_COMMENT': _silent,
        'STRING': _string, 'SYMBOL': _symbol, 'LOCAL': _local,
        'BOOLEAN': _boolean, 'NUMBER': _number, 'NAME': _name,
    }
    rules = []
    for name, term in load_terminals().items():
        pattern = re.compile(term.pattern.to_regexp())
        rules.append(Rule(name, pattern, term.priority, builders[name]))
    return sorted(rules, key=lambda r: -r.priority)


class Tokenizer:
    """Longest-match scanner; parenthesized text is captured verbatim as one quoted-code token."""

    def __init__(self, rules: list[Rule]):
        self.rules = sorted(rules, key=lambda r: -r.priority)

    @classmethod
    def for_operators(cls, operators: Mapping) -> "Tokenizer":
        return cls(default_rules(operators))

    def _scan_paren(self, text: str, start: int) -> tuple[Token, int]:
        location, depth = start, 0
        while True:
            if location >= len(text):
                raise StackerIncompleteParse("Unmatched parentheses", location=start, length=1)
            if text[location] == '(': depth += 1
            elif text[location] == ')': depth -= 1
            location += 1
            if depth == 0: break

        value = text[start+1:location-1]
        return Token(SYMBOL, value, start + 1, len(value), frozenset({'string', 'code'})), location

    def tokenize(self, text: str) -> Iterator[Token]:
        location = 0
        while location < len(text):
            if text[location] == '(':
                token, location = self._scan_paren(text, location)
                yield token
                continue

            length, best = 0, None
            for rule in self.rules:
                if (match := rule.pattern.match(text, location)) and match.end() - location > length:
                    length, best = match.end() - location, rule
            if best is None:
                raise StackerSyntaxError(f"Unrecognized input starting here: {text[location:location+32]}",
                                         location=location, length=1)

            if (token := best.build(text[location:location+length], location, length)) is not None:
                yield token
            location += length

    def rewrite(self, text: str, replacer: Replacer, deep: bool = False) -> tuple[str, list[tuple[int, int]]]:
        """Replace tokens of `text` left-to-right, returning the new text and `(end, delta)` pairs
        for every length change, in the coordinates of the new text.
        """
        result, offset, shifts = text, 0, []
        for token in self.tokenize(text):
            if token.span is None: continue

            start = offset + token.location
            end = start + token.length
            if deep and token.is_code:
                replacement, inner = self.rewrite(result[start:end], replacer, deep=True)
                shifts.extend((start + at, delta) for at, delta in inner)
            else:
                replacement = replacer(token)
                if replacement is not None and len(replacement) != token.length:
                    shifts.append((start + len(replacement), len(replacement) - token.length))

            if replacement is None: continue
            result = result[:start] + replacement + result[end:]
            offset += len(replacement) - token.length
        return result, shifts

    def edit(self, text: str, replacer: Replacer, deep: bool = False) -> str:
        return self.rewrite(text, replacer, deep=deep)[0]
