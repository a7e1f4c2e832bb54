from __future__ import annotations

from random import Random
from time import perf_counter
import argparse
import sys

from src.compiler import compile_document
from src.errors import ScribeError, SourceError
from src.ir import Choice, Lexicon, Part, Ref, Text
from src.parser import parse
from src.resolver import Resolver


# ---------------------------------------------------------------------------------------------------------------------
# CLI Implementation
#

def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate text from a scribe grammar.")

    parser.add_argument("filename", help="The path to the grammar file")
    parser.add_argument(
        "-r", "--rule",
        default="main",
        help="The rule to expand (default: main)")
    parser.add_argument(
        "-n", "--count",
        type=int,
        default=1,
        help="How many times to expand the rule")
    parser.add_argument(
        "-s", "--seed",
        type=int,
        help="Seed the random choices for repeatable output")
    parser.add_argument(
        "--max-steps",
        type=int,
        help="Give up on an expansion after this many steps (unbounded by default)")
    parser.add_argument(
        "--timings",
        action="store_true",
        help="Report how long each stage took")
    parser.add_argument(
        "--dump",
        action="store_true",
        help="Print the compiled rules instead of expanding them")

    args = parser.parse_args(argv)

    try:
        with open(args.filename, "r", encoding="utf-8") as source_file:
            source = source_file.read()
    except OSError as e:
        print(f"Error: Could not read '{args.filename}': {e.strerror}.", file=sys.stderr)
        return 1

    try:
        lexicon = frontend(source, args.filename, args.timings)

        if args.dump:
            dump_lexicon(lexicon)
            return 0

        do_generate(lexicon, args.rule, args.count, Random(args.seed), args.max_steps, args.timings)

    except SourceError as e:
        print(e.describe(color=sys.stderr.isatty()), file=sys.stderr)
        return 1

    except ScribeError as e:
        print(e, file=sys.stderr)
        return 1

    return 0


def frontend(source: str, path: str, timings: bool = False) -> Lexicon:
    start = perf_counter()
    document = parse(source, path)
    parsed = perf_counter()
    lexicon = compile_document(document)
    compiled = perf_counter()

    if timings:
        print(f"parse: {ms(parsed - start)} | compile: {ms(compiled - parsed)}", file=sys.stderr)

    return lexicon


def do_generate(lexicon: Lexicon, rule: str, count: int, rng: Random, max_steps: int | None, timings: bool) -> None:
    resolver = Resolver(lexicon, rng, max_steps)

    for _ in range(count):
        start = perf_counter()
        text = resolver.resolve(rule)
        finished = perf_counter()

        print(text)
        if timings:
            print(f"resolve: {ms(finished - start)}", file=sys.stderr)


def ms(seconds: float) -> str:
    return f"{seconds * 1000:.3f}ms"


# ---------------------------------------------------------------------------------------------------------------------
# Debug Helpers
#

def dump_lexicon(lexicon: Lexicon) -> None:
    for name, rule in lexicon.items():
        print(f"{name}:")
        for part in rule:
            dump_part(part, 1)


def dump_part(part: Part | tuple[Part, ...], depth: int) -> None:
    indent = "  " * depth

    if isinstance(part, Text):
        print(f"{indent}TEXT    {part.value!r}")

    elif isinstance(part, Ref):
        print(f"{indent}REF     {part.name}")

    elif isinstance(part, Choice):
        print(f"{indent}CHOICE  ({len(part.items)})")
        for item in part.items:
            dump_part(item, depth + 1)

    else:
        # An alternative that still needs expanding
        print(f"{indent}SEQ")
        for sub in part:
            dump_part(sub, depth + 1)


# ---------------------------------------------------------------------------------------------------------------------
# Entry Point
#

if __name__ == "__main__":
    sys.exit(main())
