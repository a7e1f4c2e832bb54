from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from enum import IntEnum, auto
from string import ascii_letters, digits

from src.errors import InvalidIdentifier, UnexpectedEOF


@dataclass(frozen=True)
class Token:
    typ: TokenType
    lexeme: str
    loc: Loc

    def __repr__(self) -> str:
        lex = "" if not self.lexeme else f" {self.lexeme!r}"
        return f"<{self.loc} {self.typ.name}{lex}>"

    def for_error(self) -> str:
        if self.typ in {TokenType.IDENT, TokenType.STRING}:
            return f"{self.typ.name} {self.lexeme!r}"
        return self.typ.name


class TokenType(IntEnum):
    HEAD = auto()
    IDENT = auto()
    QUOTE_L = auto()
    QUOTE_R = auto()
    BRACKET_L = auto()
    BRACKET_R = auto()
    COMMA = auto()
    HASH = auto()
    STRING = auto()
    NEWLINE = auto()
    EOF = auto()


class Mode(IntEnum):
    ROOT = auto()
    NEWLINE = auto()
    STRING = auto()
    IDENT = auto()
    LIST = auto()
    EOF = auto()


@dataclass(frozen=True)
class Loc:
    file: str
    row: int
    col: int
    end: int

    @property
    def line(self) -> int:
        return self.row + 1

    def __repr__(self) -> str:
        return f"[{self.file} @ {self.line}:{self.col}]"


SPACES = {" ", "\t", "\r"}
IDENT_START = set(ascii_letters)
IDENT_JOINERS = {"_", "-"}
IDENT_CHARS = IDENT_START | set(digits) | IDENT_JOINERS
STRING_DELIMITERS = {"\"", "#", "["}
NAKED_STRING_DELIMITERS = {",", "]", "\"", "["}


class Lexer:
    """
    Turns grammar source into tokens, one per call to `next_token`.

    The meaning of a character depends on where it appears (a `"` opens a string at
    the top level but closes one inside a string, `#` is only a reference inside a
    string), so the lexer keeps a stack of modes rather than a single state.
    """

    def __init__(self, file_name: str, source: str) -> None:
        self._file_name, self._source = file_name, source
        self._pos = 0

        # Offset of the first character of every line seen so far
        self._line_offsets = [0]
        self._modes = [Mode.ROOT]

    def lex(self) -> list[Token]:
        tokens = [self.next_token()]
        while tokens[-1].typ is not TokenType.EOF:
            tokens.append(self.next_token())
        return tokens

    def next_token(self) -> Token:
        mode = self.mode()

        if mode is Mode.ROOT:
            return self._lex_root()

        if mode is Mode.NEWLINE:
            return self._lex_newline()

        if mode is Mode.STRING:
            return self._lex_string()

        if mode is Mode.IDENT:
            return self._lex_ident()

        if mode is Mode.LIST:
            return self._lex_list()

        return self._empty(TokenType.EOF)

    def mode(self) -> Mode:
        return self._modes[-1]

    def get_line(self, row: int) -> str:
        if not 0 <= row < len(self._line_offsets):
            raise IndexError(f"Line {row} is out of range (max: {len(self._line_offsets) - 1})")

        start = self._line_offsets[row]
        end = self._source.find("\n", start)
        return self._source[start:] if end == -1 else self._source[start:end]

    def _lex_root(self) -> Token:
        self._skip(SPACES)

        if not self._has_more():
            self._modes.append(Mode.EOF)
            return self._empty(TokenType.EOF)

        current = self._current()
        if current == "\n":
            token = self._take(TokenType.NEWLINE)
            self._modes.append(Mode.NEWLINE)
            return token

        if current == "\"":
            token = self._take(TokenType.QUOTE_L)
            self._modes.append(Mode.STRING)
            return token

        if current == "[":
            token = self._take(TokenType.BRACKET_L)
            self._modes.append(Mode.LIST)
            return token

        if current == "*" and self._at_line_start():
            return self._take(TokenType.HEAD)

        self._modes.append(Mode.IDENT)
        return self._lex_ident()

    def _lex_newline(self) -> Token:
        self._modes.pop()
        if self._has_more() and self._current() == "*":
            return self._take(TokenType.HEAD)
        return self._lex_root()

    def _lex_string(self) -> Token:
        start = self._pos

        while self._has_more():
            current = self._current()
            if current not in STRING_DELIMITERS:
                self._advance()
                continue

            # Hand back the text collected so far before dealing with the delimiter
            if self._pos > start:
                return self._token(TokenType.STRING, start)

            if current == "\"":
                token = self._take(TokenType.QUOTE_R)
                self._modes.pop()
            elif current == "#":
                token = self._take(TokenType.HASH)
                self._modes.append(Mode.IDENT)
            else:
                token = self._take(TokenType.BRACKET_L)
                self._modes.append(Mode.LIST)
            return token

        raise self._eof(start, "inside a quoted string")

    def _lex_ident(self) -> Token:
        start = self._pos

        if self._has_more() and self._current() not in IDENT_START:
            loc = self._loc(start, start + 1)
            raise InvalidIdentifier(self._current(), TokenType.IDENT, loc, self.get_line(loc.row))

        while self._has_more():
            if self._current() not in IDENT_CHARS:
                self._modes.pop()

                # Inside a template "#a-#a" names `a`, the dash is text
                if self.mode() is Mode.STRING:
                    while self._source[self._pos - 1] in IDENT_JOINERS:
                        self._pos -= 1

                return self._token(TokenType.IDENT, start)
            self._advance()

        raise self._eof(start, "while reading an identifier")

    def _lex_list(self) -> Token:
        # Lists may span lines, so line breaks are just whitespace here
        self._skip(SPACES | {"\n"})

        if not self._has_more():
            raise self._eof(self._pos, "inside a list")

        current = self._current()
        if current == "[":
            token = self._take(TokenType.BRACKET_L)
            self._modes.append(Mode.LIST)
            return token

        if current == "\"":
            token = self._take(TokenType.QUOTE_L)
            self._modes.append(Mode.STRING)
            return token

        if current == ",":
            return self._take(TokenType.COMMA)

        if current == "]":
            token = self._take(TokenType.BRACKET_R)
            self._modes.pop()
            return token

        # A naked string runs up to the next structural character, untrimmed
        start = self._pos
        while self._has_more():
            if self._current() in NAKED_STRING_DELIMITERS:
                return self._token(TokenType.STRING, start)
            self._advance()

        raise self._eof(start, "inside a list")

    def _skip(self, chars: set[str]) -> None:
        while self._has_more() and self._current() in chars:
            self._advance()

    def _advance(self) -> None:
        if self._source[self._pos] == "\n":
            self._line_offsets.append(self._pos + 1)
        self._pos += 1

    def _current(self) -> str:
        return self._source[self._pos]

    def _has_more(self) -> bool:
        return self._pos < len(self._source)

    def _at_line_start(self) -> bool:
        return self._source[self._line_offsets[-1]:self._pos].strip(" \t\r") == ""

    def _take(self, typ: TokenType) -> Token:
        start = self._pos
        self._advance()
        return self._token(typ, start)

    def _token(self, typ: TokenType, start: int) -> Token:
        return Token(typ, self._source[start:self._pos], self._loc(start, self._pos))

    def _empty(self, typ: TokenType) -> Token:
        return Token(typ, "", self._loc(self._pos, self._pos))

    def _loc(self, start: int, end: int) -> Loc:
        row = bisect_right(self._line_offsets, start) - 1
        line_start = self._line_offsets[row]

        # A span that crosses a line break is cut at the end of its first line
        line_end = self._source.find("\n", start, end)
        if line_end == -1:
            line_end = end

        return Loc(self._file_name, row, start - line_start, line_end - line_start)

    def _eof(self, start: int, context: str) -> UnexpectedEOF:
        loc = self._loc(start, self._pos)
        return UnexpectedEOF(TokenType.EOF, loc, self.get_line(loc.row), context)
