"""Lox CLI: run a .lox script or start an interactive session."""

from __future__ import annotations

import logging
import sys

from .parse import parse
from .printer import print_program
from .runtime import EX_DATAERR, RunResult, Session, run
from .tokens import tokenize

EX_USAGE = 64
EX_NOINPUT = 66

USAGE: str = """\
lox [OPTIONS] [FILE]

Run a Lox script, or start an interactive session when FILE is omitted.

Options:
  --tokens       Print the token stream instead of running
  --ast          Print the parsed syntax tree instead of running
  --verbose, -v  Log pipeline stages to stderr
  --help, -h     Show this help message
"""

PROMPT = "> "


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    filepath: str = ""
    dump_tokens = False
    dump_ast = False
    verbose = False
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return 0
        elif arg == "--tokens":
            dump_tokens = True
            i += 1
        elif arg == "--ast":
            dump_ast = True
            i += 1
        elif arg == "--verbose" or arg == "-v":
            verbose = True
            i += 1
        elif arg.startswith("-"):
            print("lox: unknown flag '" + arg + "'", file=sys.stderr)
            return EX_USAGE
        elif filepath == "":
            filepath = arg
            i += 1
        else:
            print("lox: unexpected argument '" + arg + "'", file=sys.stderr)
            print(USAGE, end="", file=sys.stderr)
            return EX_USAGE

    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    if filepath == "":
        if dump_tokens or dump_ast:
            print("lox: --tokens and --ast need a FILE", file=sys.stderr)
            return EX_USAGE
        return repl()

    try:
        with open(filepath, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        print("lox: " + filepath + ": No such file or directory", file=sys.stderr)
        return EX_NOINPUT
    except OSError as e:
        print("lox: " + filepath + ": " + str(e), file=sys.stderr)
        return EX_NOINPUT
    try:
        source = raw.decode("utf-8")
    except ValueError:
        print("lox: " + filepath + ": invalid utf-8", file=sys.stderr)
        return EX_DATAERR

    if dump_tokens:
        return print_tokens(source)
    if dump_ast:
        return print_ast(source)

    result = run(source, sys.stdout)
    _emit(result)
    return result.exit_code


def print_tokens(source: str) -> int:
    tokens, errors = tokenize(source)
    for tok in tokens:
        print(tok.describe())
    for err in errors:
        print(str(err), file=sys.stderr)
    return EX_DATAERR if len(errors) > 0 else 0


def print_ast(source: str) -> int:
    tokens, scan_errors = tokenize(source)
    program, parse_errors = parse(tokens)
    for serr in scan_errors:
        print(str(serr), file=sys.stderr)
    for perr in parse_errors:
        print(str(perr), file=sys.stderr)
    if len(scan_errors) > 0 or len(parse_errors) > 0:
        return EX_DATAERR
    print(print_program(program), end="")
    return 0


def repl() -> int:
    """Read-eval-print loop; globals persist and errors do not end the session."""
    session = Session(sys.stdout)
    while True:
        try:
            line = input(PROMPT)
        except EOFError:
            print()
            return 0
        _emit(session.run(line))


def _emit(result: RunResult) -> None:
    # print output has already been streamed; flush it ahead of the errors
    sys.stdout.flush()
    sys.stderr.write(result.stderr)


if __name__ == "__main__":
    sys.exit(main())
