## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘
#
# stacker — A small, extensible stack-based language with quoted code and hygienic locals.
#

import sys
import time
import traceback
from pathlib import Path
from dataclasses import dataclass

import click

from .errors import (StackerError, StackerSyntaxError, StackerIncompleteParse, StackerNameError,
                     StackerInternalError, StackerRuntimeError)
from .formatting import write_without_ansi, format_item, format_registers, format_error_context, show_stack
from .runtime import Runtime, RunResult


@dataclass(frozen=True)
class RuntimeConfig:
    verbose: int
    ignore: bool
    stats: bool
    plain: bool
    dump: bool


@dataclass
class ExecutionItem:
    source: str
    filename: str


class StackerRunner:
    def __init__(self, config: RuntimeConfig):
        self.ignore = config.ignore
        self.stats_enabled = config.stats
        self.plain = config.plain
        self.dump = config.dump

        if self.plain:
            writer = write_without_ansi(sys.stdout.write)
            sys.stdout.write, sys.stderr.write = writer, writer

        self.runtime = Runtime(verbosity=config.verbose)
        self.total_stats = {'steps': 0, 'start': time.time()} if self.stats_enabled else None
        self.failure = False
        self.executed_items = 0

    def _maybe_fatal_error(self, message: str, detail: str, exc_type: str = None, context: str = '', is_repl: bool = False) -> None:
        header = detail if not exc_type else f"{detail} (Exception: \033[33m{exc_type}\033[0m)"
        print(f'\033[30;43m {message} \033[0m {header}\n{context}', file=sys.stderr)
        if is_repl: return
        self.failure = True
        if not self.ignore: sys.exit(1)

    def _handle_exception(self, exc, filename: str, source: str, stack=None, is_repl: bool = False) -> bool:
        if isinstance(exc, StackerIncompleteParse) and is_repl:
            return True

        if isinstance(exc, StackerError):
            context = format_error_context(source, exc.location, exc.length, filename) if exc.span else ''
            context += f"\n\033[90m{exc.message}\033[0m\n"
            if isinstance(exc, StackerSyntaxError):
                title, detail = "SYNTAX ERROR.", f"Tokenizing `\033[97m{filename}\033[0m` caused a problem!"
            elif isinstance(exc, StackerNameError):
                title, detail = "NAME ERROR.", f"Operator `\033[1;97m{exc.token.value}\033[0m` was not found!"
            elif isinstance(exc, StackerInternalError):
                title, detail = "INTERNAL ERROR.", "The interpreter reached an inconsistent state."
            else:
                op = exc.token.value if exc.token is not None else '?'
                title, detail = "RUNTIME ERROR.", f"Evaluating `\033[1;97m{op}\033[0m` caused an error!"
            if isinstance(exc, StackerRuntimeError) and exc.__cause__ is not None:
                context += ''.join(traceback.format_exception(exc.__cause__, limit=-1))
            stack = stack if stack is not None else exc.stack
            if stack:
                print(f'\033[1;33m  Stack content is\033[0;33m\n    ', end='', file=sys.stderr)
                show_stack(stack, width=None, file=sys.stderr, abbreviate=True)
                print('\033[0m', end='', file=sys.stderr)
            self._maybe_fatal_error(title, detail, type(exc).__name__, context, is_repl)
        else:
            print(f'\033[30;43m UNEXPECTED ERROR. \033[0m (Exception: \033[33m{type(exc).__name__}\033[0m)', file=sys.stderr)
            traceback.print_exc()
            if not is_repl:
                self.failure = True
                if not self.ignore: sys.exit(1)
        return False

    def _show_result(self, result: RunResult, print_result: bool) -> None:
        if print_result and result.stack:
            print(format_item(result.stack[-1]))
        if self.dump:
            print('\033[97mstack\033[0m\t', end='')
            show_stack(result.stack, width=None)
            print(format_registers(result.memory))

    def execute_items(self, items: list[ExecutionItem]) -> None:
        for item in items:
            self._execute_script(item.source, item.filename)

    def _execute_script(self, source: str, filename: str, print_result: bool = False) -> None:
        try:
            result = self.runtime.run(source, stats=self.total_stats)
        except (StackerError, Exception) as exc:
            self._handle_exception(exc, filename, source)
        else:
            self._show_result(result, print_result)
            self.executed_items += 1

    def repl(self) -> None:
        if sys.platform != "win32": import readline

        print('stacker - Stack language REPL; type Ctrl+C to exit.')
        session = self.runtime.session()
        source = ""

        while True:
            try:
                prompt = "\033[36m<<< \033[0m" if not source.strip() else "\033[36m... \033[0m"
                line = input(prompt)
                if len(line.strip()) == 0: continue
                if line.strip() in ('quit', 'exit'): break
                source += line + "\n"

                try:
                    top = session.evaluate(source)
                    if top is not None: print("\033[90m>>>\033[0m", format_item(top))
                    source = ""
                except (StackerError, Exception) as exc:
                    if not self._handle_exception(exc, '<REPL>', source, stack=session.stack, is_repl=True):
                        source = ""

            except (KeyboardInterrupt, EOFError):
                print(""); break

    def finalize(self) -> int:
        if self.total_stats and self.executed_items > 0:
            elapsed_time = time.time() - self.total_stats['start']
            print(f"\n\033[97m\033[48;5;30m STATISTICS. \033[0m")
            print(f"step\t\033[97m{self.total_stats['steps']:,}\033[0m")
            print(f"time\t\033[97m{elapsed_time:.3f}s\033[0m")
        return 1 if self.failure else 0


def _dev_actions(tokens: tuple[str, ...]) -> list[tuple[str, str]]:
    """Pair every `-c CODE`, `-r` and `.stk` path of the command line with what to do with it, in order."""
    actions, rest = [], iter(tokens)
    for token in rest:
        if token in ('-c', '--command'):
            if (code := next(rest, None)) is None:
                raise click.BadParameter("Missing code after -c/--command.")
            actions.append(('command', code))
        elif token in ('-r', '--repl'):
            actions.append(('repl', ''))
        elif token.startswith('-'):
            raise click.BadParameter(f"Unknown option `{token}`.")
        elif token.endswith('.stk') and Path(token).is_file():
            actions.append(('file', token))
        else:
            raise click.BadParameter(f"Expected an existing `.stk` source file, got `{token}`.")
    return actions


@click.group(invoke_without_command=True, context_settings={'ignore_unknown_options': True, 'allow_extra_args': True})
@click.option('--verbose', '-v', default=0, count=True, help='Trace operators (-v) or every token (-vv) as they run.')
@click.option('--ignore', '-i', is_flag=True, help='Ignore errors and continue executing.')
@click.option('--stats', is_flag=True, help='Display execution statistics (e.g., number of steps).')
@click.option('--plain', '-p', is_flag=True, help='Strip ANSI color codes and redirect stderr to stdout.')
@click.option('--dump', '-d', is_flag=True, help='Print the final stack and registers after each program.')
@click.pass_context
def cli(ctx: click.Context, verbose: int, ignore: bool, stats: bool, plain: bool, dump: bool) -> None:
    ctx.ensure_object(dict)
    ctx.obj['config'] = RuntimeConfig(verbose=verbose, ignore=ignore, stats=stats, plain=plain, dump=dump)


@cli.command('run-file')
@click.argument('script', type=click.File('r', encoding='utf-8'))
@click.pass_context
def run_file(ctx: click.Context, script) -> None:
    runner = StackerRunner(ctx.obj['config'])
    runner.execute_items((ExecutionItem(script.read(), script.name or '<STDIN>'),))
    ctx.exit(runner.finalize())


@cli.command('run-dev', context_settings={'ignore_unknown_options': True, 'allow_extra_args': True})
@click.argument('tokens', nargs=-1)
@click.pass_context
def run_dev(ctx: click.Context, tokens: tuple[str, ...]) -> None:
    runner = StackerRunner(ctx.obj['config'])
    commands = 0
    for action, payload in _dev_actions(tokens) or [('repl', '')]:
        match action:
            case 'file':
                runner.execute_items((ExecutionItem(Path(payload).read_text(encoding='utf-8'), payload),))
            case 'command':
                commands += 1
                runner._execute_script(payload.rstrip() + '\n', f'<INPUT_{commands}>', print_result=True)
            case 'repl':
                runner.repl()
    ctx.exit(runner.finalize())


@cli.command('run-repl')
@click.pass_context
def run_repl(ctx: click.Context) -> None:
    runner = StackerRunner(ctx.obj['config'])
    runner.repl()
    ctx.exit(runner.finalize())


_GLOBAL_FLAGS = ('--verbose', '--ignore', '--stats', '--plain', '--dump', '-i', '-p', '-d')

def main(argv: list[str] | None = None) -> None:
    """Route a bare command line to `run-file`, `run-dev` or `run-repl`, global flags first."""
    args = list(sys.argv[1:] if argv is None else argv)
    flags = [a for a in args if a in _GLOBAL_FLAGS or a.startswith('-v')]
    rest = [a for a in args if a not in flags]

    if not rest:
        command = ['run-repl'] if sys.stdin.isatty() else ['run-file', '-']
    elif rest == ['-'] or (len(rest) == 1 and rest[0].endswith('.stk') and Path(rest[0]).is_file()):
        command = ['run-file', *rest]
    else:
        command = ['run-dev', *rest]
    cli.main(args=[*flags, *command], prog_name='stacker')


if __name__ == "__main__":
    main()
