from __future__ import annotations

from dataclasses import dataclass, field

from src.lexer import Loc


@dataclass
class Node:
    # Positions are only for diagnostics, two trees with the same shape are equal
    location: Loc | None = field(default=None, compare=False, repr=False, kw_only=True)


@dataclass
class Document(Node):
    blocks: list[Block]


@dataclass
class Block(Node):
    name: str
    body: List | Expansion


@dataclass
class Literal(Node):
    value: str


@dataclass
class Reference(Node):
    name: str


@dataclass
class List(Node):
    items: list[Literal | Expansion]


@dataclass
class Expansion(Node):
    parts: list[Literal | Reference | List]
