from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.lexer import Loc, Token, TokenType


class ScribeError(Exception):
    ...


class SourceError(ScribeError):
    """An error that can be pointed at in the source text."""

    kind = "error"

    def __init__(self, message: str, typ: TokenType | None, loc: Loc, line: str) -> None:
        super().__init__(f"{loc} Error: {message}")
        self.message = message
        self.typ = typ
        self.loc = loc
        self.line = line

    @property
    def lineno(self) -> int:
        return self.loc.line

    @property
    def column(self) -> int:
        return self.loc.col

    def describe(self, color: bool = False) -> str:
        # Multi-line tokens only get underlined up to the end of their first line
        end = min(self.loc.end, max(len(self.line), self.loc.col + 1))
        marks = "~" * max(end - self.loc.col, 1)
        if color:
            marks = f"\x1b[31m{marks}\x1b[0m"

        return f"{self}\n{self.line}\n{' ' * self.loc.col}{marks}"


class InvalidIdentifier(SourceError):
    kind = "lexical-error"

    def __init__(self, char: str, typ: TokenType, loc: Loc, line: str) -> None:
        super().__init__(f"Invalid identifier character {char!r}.", typ, loc, line)
        self.char = char


class UnexpectedEOF(SourceError):
    kind = "unexpected-eof"

    def __init__(self, typ: TokenType, loc: Loc, line: str, context: str | None = None) -> None:
        message = "Unexpected end of input" + (f" {context}." if context else ".")
        super().__init__(message, typ, loc, line)
        self.context = context


class UnexpectedToken(SourceError):
    kind = "syntax-error"

    def __init__(self, token: Token, line: str, expected: TokenType | None = None) -> None:
        got = token.for_error()
        if expected is not None:
            message = f"Expected {expected.name} but got {got} instead."
        else:
            message = f"Got unexpected token {got}."

        super().__init__(message, token.typ, token.loc, line)
        self.token = token
        self.expected = expected


class CompileError(ScribeError):
    ...


class UnknownRule(ScribeError, LookupError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Error: The rule '{name}' is never defined.")
        self.name = name


class ExpansionLimitExceeded(ScribeError, RuntimeError):
    def __init__(self, name: str, max_steps: int) -> None:
        super().__init__(f"Error: Resolving '{name}' did not finish within {max_steps} steps.")
        self.name = name
        self.max_steps = max_steps
