from __future__ import annotations

from src.errors import SourceError, UnexpectedEOF, UnexpectedToken
from src.lexer import Lexer, Token, TokenType
import src.st as st


class Parser:
    def __init__(self, lexer: Lexer) -> None:
        self._lexer = lexer
        self._token = lexer.next_token()
        self._lookahead = lexer.next_token()

    def parse(self) -> st.Document:
        # document ::= NEWLINE* (block (NEWLINE+ block)*)? NEWLINE* EOF
        self._skip_newlines()

        blocks = []
        while not self._at(TokenType.EOF):
            blocks.append(self.parse_block())

            # A header can only start a fresh line, so blocks are newline separated
            if not self._at(TokenType.EOF):
                self._expect(TokenType.NEWLINE)
            self._skip_newlines()

        return st.Document(blocks)

    def parse_block(self) -> st.Block:
        # block ::= HEAD IDENT NEWLINE+ body
        head = self._expect(TokenType.HEAD)
        name = self._expect(TokenType.IDENT)
        self._expect(TokenType.NEWLINE, "before the body of a rule")
        self._skip_newlines()
        return st.Block(name.lexeme, self.parse_body(), location=head.loc)

    def parse_body(self) -> st.List | st.Expansion:
        # body ::= expansion | list
        if self._at(TokenType.QUOTE_L):
            return self.parse_expansion()

        if self._at(TokenType.BRACKET_L):
            return self.parse_list()

        raise self._unexpected(context="while looking for the body of a rule")

    def parse_expansion(self) -> st.Expansion:
        # expansion ::= '"' (STRING | HASH IDENT | list)* '"'
        start = self._expect(TokenType.QUOTE_L)

        parts: list[st.Literal | st.Reference | st.List] = []
        while True:
            token = self._token

            if token.typ is TokenType.QUOTE_R:
                self._advance()
                return st.Expansion(parts, location=start.loc)

            if token.typ is TokenType.STRING:
                self._advance()
                parts.append(st.Literal(token.lexeme, location=token.loc))

            elif token.typ is TokenType.HASH:
                self._advance()
                name = self._expect(TokenType.IDENT)
                parts.append(st.Reference(name.lexeme, location=token.loc))

            elif token.typ is TokenType.BRACKET_L:
                parts.append(self.parse_list())

            else:
                raise self._unexpected(context="inside a quoted string")

    def parse_list(self) -> st.List:
        # list ::= '[' (STRING | expansion | ',' | NEWLINE)* ']'
        start = self._expect(TokenType.BRACKET_L)

        items: list[st.Literal | st.Expansion] = []
        while True:
            token = self._token

            if token.typ is TokenType.BRACKET_R:
                self._advance()
                return st.List(items, location=start.loc)

            if token.typ in {TokenType.COMMA, TokenType.NEWLINE}:
                self._advance()

            elif token.typ is TokenType.STRING:
                self._advance()
                items.append(st.Literal(token.lexeme.strip(), location=token.loc))

            elif token.typ is TokenType.QUOTE_L:
                items.append(self.parse_expansion())

            else:
                raise self._unexpected(context="inside a list")

    def _skip_newlines(self) -> None:
        while self._at(TokenType.NEWLINE):
            self._advance()

    def _at(self, typ: TokenType) -> bool:
        return self._token.typ is typ

    def _advance(self) -> Token:
        current = self._token
        self._token = self._lookahead
        self._lookahead = self._lexer.next_token()
        return current

    def _expect(self, typ: TokenType, context: str | None = None) -> Token:
        if not self._at(typ):
            raise self._unexpected(typ, context)
        return self._advance()

    def _unexpected(self, expected: TokenType | None = None, context: str | None = None) -> SourceError:
        token = self._token
        line = self._lexer.get_line(token.loc.row)

        if token.typ is TokenType.EOF:
            return UnexpectedEOF(token.typ, token.loc, line, context)
        return UnexpectedToken(token, line, expected)


def parse(source: str, file_name: str = "<input>") -> st.Document:
    return Parser(Lexer(file_name, source)).parse()
