## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re

from .types import Token


def write_without_ansi(write_fn):
    """Wrapper function that strips ANSI codes before calling the original writer."""
    ansi_re = re.compile(r'\033\[[0-9;]*m')
    return lambda text: write_fn(ansi_re.sub('', text))


def format_item(it, abbreviate: bool = False) -> str:
    if isinstance(it, Token):
        if it.is_code: return f'≪code:{len(it.value)}≫' if abbreviate else it.serialize()
        it = it.value
    if isinstance(it, str):
        return f'≪string:{len(it)}≫' if abbreviate else '"' + it.replace('"', '\\"') + '"'
    if isinstance(it, bool): return str(it).lower()
    return str(it)

def format_stack(stack: list[Token], abbreviate: bool = False) -> str:
    if not stack: return '∅'
    return ' '.join(format_item(t, abbreviate=abbreviate) for t in stack)

def show_stack(stack: list[Token], width=72, end='\n', file=None, abbreviate: bool = False):
    stack_str = format_stack(stack)
    # If abbreviation requested and the rendered output is long, re-render abbreviated.
    if abbreviate and len(stack_str) > 144:
        stack_str = format_stack(stack, abbreviate=True)

    if width is not None and len(stack_str) > width:
        stack_str = '… ' + stack_str[-width+2:]
    print(f"{stack_str:>{width}}" if width else stack_str, end=end, file=file)

def show_step(step: int, stack: list[Token], token: Token, width=72):
    print(f"\033[90m{step:>3} :\033[0m  ", end='')
    show_stack(stack, width=width, end='')
    print(f" \033[36m <=> \033[0m {format_item(token)}")

def format_registers(registers: dict[str, Token]) -> str:
    if not registers: return '∅'
    return '\n'.join(f"\033[97m{name}\033[0m\t{format_item(token)}" for name, token in registers.items())


def line_and_column(source: str, location: int) -> tuple[int, int]:
    """One-based line and column of an offset into `source`."""
    line = source.count('\n', 0, location) + 1
    column = location - (source.rfind('\n', 0, location) + 1) + 1
    return line, column

def format_error_context(source: str, location: int, length: int | None, filename: str | None = None) -> str:
    line, column = line_and_column(source, location)
    lines = source.splitlines()
    start_line, end_line = max(0, line - 3), min(len(lines), line + 2)
    result = [f"\033[97m  File \"{filename or '<INPUT>'}\", line {line}, column {column}\033[0m"]

    for i in range(start_line, end_line):
        line_content = lines[i]
        line_color = '\033[90m'
        if i+1 == line:
            line_color = '\033[97m'
            width = max(1, min(length or 1, len(line_content) - column + 1))
            line_content = (
                line_content[:column-1] +
                f"\033[48;5;30m\033[1;97m{line_content[column-1:column-1+width]}\033[0m" +
                line_content[column-1+width:]
            )
        result.append(f"{line_color}{i+1:>5} |\033[0m {line_content}")
    return '\n' + '\n'.join(result) + '\n'
