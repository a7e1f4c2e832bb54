from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from src.resolver import RandomSource


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Ref:
    name: str


@dataclass(frozen=True)
class Choice:
    # Each item is either plain text or an alternative's own sequence of parts,
    # which is expanded afresh every time it is picked
    items: tuple[Alternative, ...]


Part = Union[Text, Ref, Choice]
Rule = tuple[Part, ...]
Alternative = Union[Text, Rule]


class Lexicon(Mapping[str, Rule]):
    """
    The compiled rules of a document, keyed by name. Read-only once built, so a
    single lexicon can back any number of resolutions.
    """

    def __init__(self, rules: Mapping[str, Rule]) -> None:
        self._rules = dict(rules)

    def __getitem__(self, name: str) -> Rule:
        return self._rules[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"Lexicon({sorted(self._rules)})"

    def resolve(self, name: str, rng: RandomSource | None = None, max_steps: int | None = None) -> str:
        # src.resolver imports this module
        from src.resolver import Resolver
        return Resolver(self, rng, max_steps).resolve(name)
