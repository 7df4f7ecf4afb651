#!/usr/bin/env python3
"""
CLI for the q9 interpreter.

Usage:
    python -m q9 [--config FILE] [-v] run (FILE | -e SOURCE) [--globals]
    python -m q9 [--config FILE] [-v] parse (FILE | -e SOURCE)
    python -m q9 [--config FILE] [-v] tokens (FILE | -e SOURCE)

Examples:
    # Run a script and print its result
    python -m q9 run examples/add.q9

    # Run inline source and show the global variables afterwards
    python -m q9 run -e 'let x = 2 * 3' --globals

    # Show the AST
    python -m q9 parse -e 'fn add(a, b) { return a + b }'
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from .config import InterpreterConfig, configure_logging, load_config
from .errors import Q9Error

logger = logging.getLogger(__name__)


def read_source(args) -> Tuple[Optional[str], Optional[str]]:
    """Return (source, filename) from -e or a file argument."""
    if args.expr is not None:
        return args.expr, "<expr>"

    source_path = Path(args.file)
    if not source_path.exists():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return None, None
    return source_path.read_text(), str(source_path)


def cmd_run(args, config: InterpreterConfig) -> int:
    """Parse and evaluate a q9 program."""
    from .runtime import run

    source, filename = read_source(args)
    if source is None:
        return 1

    result = run(source, filename, config)
    if not result.success:
        print(result.error, file=sys.stderr)
        return 1

    print(result.value)
    if args.globals:
        for name, value in result.globals.items():
            print(f"{name} = {value}")
    return 0


def cmd_parse(args, config: InterpreterConfig) -> int:
    """Print the AST of a q9 program."""
    from .parser import parse_source
    from .ast import print_ast

    source, filename = read_source(args)
    if source is None:
        return 1

    try:
        program = parse_source(source, filename)
    except Q9Error as e:
        print(e.with_source(source.splitlines()), file=sys.stderr)
        return 1

    print_ast(program)
    return 0


def cmd_tokens(args, config: InterpreterConfig) -> int:
    """Print the token stream of a q9 program."""
    from .lexer import Lexer

    source, filename = read_source(args)
    if source is None:
        return 1

    try:
        for token in Lexer(source, filename):
            print(f"{token.span.start}\t{token}")
    except Q9Error as e:
        print(e, file=sys.stderr)
        return 1
    return 0


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('file', nargs='?', help='q9 source file')
    group.add_argument('-e', '--expr', metavar='SOURCE', help='Source text to use instead of a file')


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog='python -m q9',
        description='q9 parser and tree-walking interpreter',
    )
    parser.add_argument('--config', metavar='FILE', help='YAML configuration file')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='action', required=True)

    run_parser = subparsers.add_parser('run', help='Run a q9 program')
    _add_source_arguments(run_parser)
    run_parser.add_argument('--globals', action='store_true',
                            help='Print global variables after the run')

    parse_parser = subparsers.add_parser('parse', help='Print the AST of a q9 program')
    _add_source_arguments(parse_parser)

    tokens_parser = subparsers.add_parser('tokens', help='Print the token stream')
    _add_source_arguments(tokens_parser)

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except Q9Error as e:
        print(e, file=sys.stderr)
        return 1

    configure_logging("DEBUG" if args.verbose else config.log_level)
    logger.debug("configuration: %s", config.to_dict())

    if args.action == 'run':
        return cmd_run(args, config)
    elif args.action == 'parse':
        return cmd_parse(args, config)
    elif args.action == 'tokens':
        return cmd_tokens(args, config)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
