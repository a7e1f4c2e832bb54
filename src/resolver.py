from __future__ import annotations

from random import Random
from typing import Protocol

from src.errors import CompileError, ExpansionLimitExceeded, UnknownRule
from src.ir import Choice, Lexicon, Ref, Rule, Text


class RandomSource(Protocol):
    def randrange(self, stop: int) -> int:
        ...


class Resolver:
    """
    Expands rules of a lexicon into text.

    The walk is depth first and left to right, driven by an explicit stack of
    (index, sequence) frames instead of recursive calls, so deeply nested or
    self-referential grammars are limited by memory rather than by Python's
    recursion limit. Every list visited costs one draw from `rng`.

    With `max_steps` set, a resolution that processes more parts than that raises
    `ExpansionLimitExceeded`; left as `None` there is no limit at all, and a rule
    that refers to itself with no way out never finishes.
    """

    def __init__(self, lexicon: Lexicon, rng: RandomSource | None = None, max_steps: int | None = None) -> None:
        self._lexicon = lexicon
        self._rng = rng if rng is not None else Random()
        self._max_steps = max_steps

    def resolve(self, name: str) -> str:
        output: list[str] = []
        stack: list[tuple[int, Rule]] = [(0, self._lookup(name))]
        steps = 0

        while stack:
            index, sequence = stack.pop()

            while index < len(sequence):
                part = sequence[index]
                index += 1

                steps += 1
                if self._max_steps is not None and steps > self._max_steps:
                    raise ExpansionLimitExceeded(name, self._max_steps)

                if isinstance(part, Text):
                    output.append(part.value)
                    continue

                if isinstance(part, Choice):
                    if not part.items:
                        continue

                    picked = part.items[self._rng.randrange(len(part.items))]
                    if isinstance(picked, Text):
                        output.append(picked.value)
                        continue

                    target = picked

                elif isinstance(part, Ref):
                    target = self._lookup(part.name)

                else:
                    raise CompileError(f"Error: Unhandled compiled part {part!r} in '{name}'.")

                # Come back to the rest of this sequence once the target is done,
                # unless there is nothing left of it
                if index < len(sequence):
                    stack.append((index, sequence))
                index, sequence = 0, target

        return "".join(output)

    def _lookup(self, name: str) -> Rule:
        try:
            return self._lexicon[name]
        except KeyError:
            raise UnknownRule(name) from None


def resolve(lexicon: Lexicon, name: str, rng: RandomSource | None = None, max_steps: int | None = None) -> str:
    return Resolver(lexicon, rng, max_steps).resolve(name)
