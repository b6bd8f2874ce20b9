#!/usr/bin/env python3
"""
CLI for the Ember interpreter.

Usage:
    python -m ember run FILE [--json]
    python -m ember tokens FILE
    python -m ember parse FILE [--tree] [--json]
    python -m ember repl

FILE may be '-' to read standard input.

Examples:
    # Evaluate a script and print its final value
    python -m ember run examples/factorial.em

    # Show the token stream
    echo 'let x = 5 <= 10;' | python -m ember tokens -

    # Show how an expression was grouped
    python -m ember parse - <<< '1 + 2 * 3'

    # Machine-readable diagnostics for editors and tooling
    python -m ember run --json broken.em

    # Interactive session; 'exit' or end of input quits
    python -m ember repl
"""

import argparse
import json
import logging
import sys
from typing import List, Optional, TextIO

from . import __version__
from .ast import format_ast
from .config import ConfigError, EmberConfig, load_config, recursion_limit
from .errors import Diagnostic, DiagnosticCollector
from .lexer import Lexer
from .parser import Parser
from .runtime import create_global_environment, evaluate

logger = logging.getLogger("ember.cli")


def read_source(path: str) -> str:
    """Read a source file, or stdin for '-'."""
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as fp:
        return fp.read()


def report_diagnostics(diagnostics: List[Diagnostic], config: EmberConfig,
                       as_json: bool = False) -> None:
    """Print diagnostics: JSON on stdout, or formatted text on stderr."""
    collector = DiagnosticCollector(max_errors=len(diagnostics) + 1)
    for diag in diagnostics:
        collector.add(diag)
    if as_json:
        print(json.dumps(collector.to_json(), indent=2))
    else:
        print(collector.format_all(show_source=config.show_source), file=sys.stderr)


def cmd_run(args, config: EmberConfig) -> int:
    """Evaluate a file and print the resulting value."""
    try:
        source = read_source(args.file)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    filename = None if args.file == "-" else args.file
    result = evaluate(source, create_global_environment(),
                      filename=filename, max_errors=config.max_errors,
                      recursion_limit=config.recursion_limit)

    if not result.success:
        report_diagnostics(result.diagnostics, config, args.json)
        return 1

    if result.has_value:
        print(result.display())
    return 0


def cmd_tokens(args, config: EmberConfig) -> int:
    """Print the token stream of a file."""
    try:
        source = read_source(args.file)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for token in Lexer(source):
        print(token)
    return 0


def cmd_parse(args, config: EmberConfig) -> int:
    """Parse a file and print the program (or its tree)."""
    try:
        source = read_source(args.file)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    filename = None if args.file == "-" else args.file
    parser = Parser(Lexer(source, filename), max_errors=config.max_errors,
                    recursion_limit=config.recursion_limit)
    program = parser.parse_program()

    if parser.errors:
        report_diagnostics(parser.diagnostics.diagnostics, config, args.json)
        return 1

    with recursion_limit(config.recursion_limit):
        text = format_ast(program) if args.tree else str(program)
    print(text)
    return 0


def run_repl(config: EmberConfig, stdin: TextIO, stdout: TextIO) -> int:
    """
    Read-evaluate-print loop.

    Every line is evaluated against the same environment, so bindings made
    on one line are visible on the next. Syntax errors are listed and the
    line is not evaluated.
    """
    env = create_global_environment()
    print(f"Ember {__version__}. Type '{config.exit_keyword}' to quit.", file=stdout)

    while True:
        stdout.write(config.prompt)
        stdout.flush()
        line = stdin.readline()
        if not line:
            print(file=stdout)
            break

        text = line.strip()
        if not text:
            continue
        if text.lower() == config.exit_keyword.lower():
            break

        result = evaluate(text, env, max_errors=config.max_errors,
                          recursion_limit=config.recursion_limit)
        if result.errors:
            print("syntax error(s):", file=stdout)
            for message in result.errors:
                print(f"\t{message}", file=stdout)
        elif result.error is not None:
            print(f"error[{result.error.code}]: {result.error.message}", file=stdout)
        elif result.has_value:
            print(result.display(), file=stdout)

    return 0


def cmd_repl(args, config: EmberConfig) -> int:
    """Start an interactive session."""
    return run_repl(config, sys.stdin, sys.stdout)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='python -m ember',
        description='Ember interpreter',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('-c', '--config', metavar='FILE',
                        help='YAML configuration file (default: $EMBER_CONFIG)')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='action', required=True)

    run_parser = subparsers.add_parser('run', help='Evaluate a source file')
    run_parser.add_argument('file', help="Source file ('-' for stdin)")
    run_parser.add_argument('--json', action='store_true',
                            help='Print diagnostics as JSON on stdout')

    tokens_parser = subparsers.add_parser('tokens', help='Print the token stream')
    tokens_parser.add_argument('file', help="Source file ('-' for stdin)")

    parse_parser = subparsers.add_parser('parse', help='Parse and print the program')
    parse_parser.add_argument('file', help="Source file ('-' for stdin)")
    parse_parser.add_argument('--tree', action='store_true',
                              help='Print the AST structure instead of source form')
    parse_parser.add_argument('--json', action='store_true',
                              help='Print diagnostics as JSON on stdout')

    subparsers.add_parser('repl', help='Start an interactive session')

    return parser


COMMANDS = {
    'run': cmd_run,
    'tokens': cmd_tokens,
    'parse': cmd_parse,
    'repl': cmd_repl,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    logger.debug("configuration: %s", config)
    return COMMANDS[args.action](args, config)


if __name__ == '__main__':
    sys.exit(main())
