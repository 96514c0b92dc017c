"""CLI entry point for the Russembly interpreter.

Usage:
    python -m russembly [-v|-vv|-vvv] <program_file>
    python -m russembly [-v...] --entry NAME --show-state <program_file>
    python -m russembly --dump-state STATE_JSON_FILE <program_file>

Options:
  -v                Increase debug verbosity (can be repeated)
  --entry NAME      Function to start with (default: main)
  --show-state      Print the machine state after the run
  --dump-state      Write the machine state to a JSON file
  --html            Export the console (output and diagnostics) as HTML
  --tilde-newlines  Treat `~` as a line break
  --no-progress     Do not show the tokenizing progress bar
  --no-color        Plain console output

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. Use `-` as program file to read stdin.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TimeElapsedColumn

from .diagnostics import THEME, Diagnostics
from .errors import MachineError
from .interpreter import Interpreter
from .lexer import tokenize
from .machine import format_state
from .state_json import dumps_state


def read_source(name: str) -> Optional[str]:
    if name == '-':
        return sys.stdin.read()
    program_file = Path(name)
    if not program_file.exists():
        return None
    with open(program_file, 'r', encoding='utf-8') as f:
        return f.read()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Russembly interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--entry', default='main', help='function to run (default: main)')
    parser.add_argument('--show-state', action='store_true', help='print the machine state after the run')
    parser.add_argument('--dump-state', metavar='JSON_FILE', help='write the machine state as JSON')
    parser.add_argument('--html', metavar='HTML_FILE', help='export output and diagnostics as HTML')
    parser.add_argument('--tilde-newlines', action='store_true', help='treat `~` as a line break')
    parser.add_argument('--no-progress', action='store_true', help='do not show the progress bar')
    parser.add_argument('--no-color', action='store_true', help='plain console output')
    parser.add_argument('program', help='Russembly program file (.rusm), or - for stdin')
    args = parser.parse_args(argv)

    source = read_source(args.program)
    if source is None:
        print(f"Error: file {args.program} not found", file=sys.stderr)
        sys.exit(1)

    console = Console(theme=THEME, highlight=False, no_color=args.no_color, record=bool(args.html))
    diagnostics = Diagnostics(console)
    diagnostics.lexer("Parsing tokens...")

    if args.no_progress:
        program = tokenize(source, diagnostics, tilde_newlines=args.tilde_newlines)
    else:
        columns = (SpinnerColumn(), TimeElapsedColumn(), BarColumn(), TaskProgressColumn())
        with Progress(*columns, console=console, transient=True) as progress:
            task = progress.add_task('tokenizing', total=None)

            def on_line(current: int, total: int):
                progress.update(task, completed=current, total=total)

            program = tokenize(source, diagnostics, progress=on_line, tilde_newlines=args.tilde_newlines)
    diagnostics.info("Finished parsing tokens")

    interpreter = Interpreter(diagnostics=diagnostics, debug_level=args.v)
    console.print("\nOutput:")
    console.print("-" * 29)
    failed = False
    try:
        interpreter.run(program, args.entry)
    except MachineError as e:
        failed = True
        print(f"Runtime error: {e}", file=sys.stderr)
    console.out(interpreter.output_text())
    console.print("-" * 29)
    state = interpreter.state
    diagnostics.cpu(f"Interpreting the tokens returned {state.error_count} errors")

    if args.show_state:
        console.out(format_state(state), end='')
    if args.dump_state:
        with open(args.dump_state, 'w', encoding='utf-8') as out:
            out.write(dumps_state(state))
    if args.html:
        with open(args.html, 'w', encoding='utf-8') as out:
            out.write(console.export_html())
    if failed:
        sys.exit(1)


if __name__ == '__main__':
    main()
