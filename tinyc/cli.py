"""TinyC CLI — parse and run .tc files."""

from __future__ import annotations

import json
import sys

from . import parse
from .ast import to_dict
from .errors import TinyCError, error_label
from .host import Console, OsFileSystem
from .runtime import run
from .tokens import tokenize


USAGE: str = """\
tinyc [OPTIONS] FILE

Run a TinyC (.tc) program.

Options:
  --dump-tokens  Print the token list and exit
  --dump-ast     Print the AST as JSON and exit
  --help         Show this help message
"""


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    filepath: str = ""
    dump_tokens = False
    dump_ast = False
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return 0
        elif arg == "--dump-tokens":
            dump_tokens = True
            i += 1
        elif arg == "--dump-ast":
            dump_ast = True
            i += 1
        elif arg.startswith("-"):
            print("tinyc: unknown flag '" + arg + "'", file=sys.stderr)
            return 2
        elif filepath == "":
            filepath = arg
            i += 1
        else:
            print("tinyc: unexpected argument '" + arg + "'", file=sys.stderr)
            return 2
    if filepath == "":
        print("tinyc: missing file argument", file=sys.stderr)
        return 2

    try:
        with open(filepath, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        print("tinyc: " + filepath + ": No such file or directory", file=sys.stderr)
        return 1
    except OSError as e:
        print("tinyc: " + filepath + ": " + str(e), file=sys.stderr)
        return 1
    try:
        source = raw.decode("utf-8")
    except ValueError:
        print("tinyc: " + filepath + ": invalid utf-8", file=sys.stderr)
        return 1

    try:
        if dump_tokens:
            for tok in tokenize(source):
                print(repr(tok))
            return 0
        program = parse(source)
    except TinyCError as e:
        print("tinyc: " + error_label(e) + ": " + str(e), file=sys.stderr)
        return 1

    if dump_ast:
        print(json.dumps(to_dict(program), indent=2))
        return 0

    sys.stdout.flush()
    console = Console(sys.stdin.buffer, sys.stdout.buffer)
    result = run(program, console=console, fs=OsFileSystem())
    if result.stderr:
        sys.stderr.buffer.write(b"tinyc: " + result.stderr)
        sys.stderr.flush()
    return result.exit_code & 0xFF


if __name__ == "__main__":
    sys.exit(main())
