"""
Query Lexer
===========

Turns raw query text into tokens.

    WHERE year = 2024 AND month = 12   // comment
    SHOW date AS "Date", hours FORMAT PERCENT

Rules:
- Whitespace (newlines included) only separates tokens
- `//` starts a comment running to end of line
- Keywords and identifiers are case-insensitive; the lexer canonicalizes
  them once (keywords upper case, identifiers lower case) so nothing
  downstream lower-cases again
- Strings use matching single or double quotes, no escapes
- Numbers are decimal integers or reals; dates stay strings (the parser
  recognizes YYYY-MM-DD contextually)

tokenize() never raises. An unterminated string or stray character
becomes an INVALID token carrying the error text, and the parser turns
it into a positioned QuerySyntaxError.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class TokenKind(Enum):
    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    NUMBER = "number"
    STRING = "string"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"
    COMMENT = "comment"
    INVALID = "invalid"
    EOF = "eof"


CLAUSE_KEYWORDS = ("WHERE", "SHOW", "VIEW", "CHART", "PERIOD", "SIZE")
KEYWORDS = frozenset(CLAUSE_KEYWORDS + ("AND", "BETWEEN", "FORMAT", "AS"))

# "==" is accepted as a synonym for "="
_OPERATOR_CANONICAL = {"==": "="}


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    lexeme: str       # canonical value: keyword upper, identifier lower, string unquoted
    line: int
    column: int
    text: str = ""    # source text as written
    error: Optional[str] = None

    def is_keyword(self, *names: str) -> bool:
        return self.kind is TokenKind.KEYWORD and (not names or self.lexeme in names)

    def is_clause_keyword(self) -> bool:
        return self.kind is TokenKind.KEYWORD and self.lexeme in CLAUSE_KEYWORDS

    def describe(self) -> str:
        """Human-readable token description for error messages."""
        if self.kind is TokenKind.EOF:
            return "end of input"
        if self.kind is TokenKind.STRING:
            return f"string {self.text}"
        return f"'{self.text or self.lexeme}'"


_TOKEN_RE = re.compile(
    r"(?P<ws>\s+)"
    r"|(?P<comment>//[^\n]*)"
    r"|(?P<string>\"[^\"]*\"|'[^']*')"
    r"|(?P<unterminated>[\"'].*\Z)"
    r"|(?P<number>\d+(?:\.\d+)?)"
    r"|(?P<op><=|>=|!=|==|=|<|>)"
    r"|(?P<punct>,)"
    r"|(?P<word>[A-Za-z_][A-Za-z0-9_\-]*)",
    re.DOTALL,
)


class Lexer:
    """
    Regex-driven scanner with line/column tracking.

    Usage:
        tokens = Lexer(text).tokenize()
    """

    def __init__(self, text: str, keep_comments: bool = False):
        self.text = text
        self.keep_comments = keep_comments
        self._line = 1
        self._line_start = 0

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        pos = 0
        length = len(self.text)

        while pos < length:
            match = _TOKEN_RE.match(self.text, pos)
            if match is None:
                tokens.append(self._make(
                    TokenKind.INVALID, self.text[pos], pos, self.text[pos],
                    error=f"Unexpected character '{self.text[pos]}'",
                ))
                pos += 1
                continue

            kind = match.lastgroup
            raw = match.group()
            token = self._token_for(kind, raw, pos)
            if token is not None:
                tokens.append(token)
            self._advance_lines(raw, pos)
            pos = match.end()

        tokens.append(self._make(TokenKind.EOF, "", length, ""))
        return tokens

    def _token_for(self, kind: str, raw: str, pos: int) -> Optional[Token]:
        if kind == "ws":
            return None
        if kind == "comment":
            if not self.keep_comments:
                return None
            return self._make(TokenKind.COMMENT, raw[2:].strip(), pos, raw)
        if kind == "string":
            return self._make(TokenKind.STRING, raw[1:-1], pos, raw)
        if kind == "unterminated":
            return self._make(
                TokenKind.INVALID, raw, pos, raw,
                error=f"Unterminated string: missing closing {raw[0]}",
            )
        if kind == "number":
            return self._make(TokenKind.NUMBER, raw, pos, raw)
        if kind == "op":
            return self._make(TokenKind.OPERATOR, _OPERATOR_CANONICAL.get(raw, raw), pos, raw)
        if kind == "punct":
            return self._make(TokenKind.PUNCTUATION, raw, pos, raw)

        upper = raw.upper()
        if upper in KEYWORDS:
            return self._make(TokenKind.KEYWORD, upper, pos, raw)
        return self._make(TokenKind.IDENTIFIER, raw.lower(), pos, raw)

    def _make(self, kind: TokenKind, lexeme: str, pos: int, raw: str, error: Optional[str] = None) -> Token:
        return Token(
            kind=kind,
            lexeme=lexeme,
            line=self._line,
            column=pos - self._line_start + 1,
            text=raw,
            error=error,
        )

    def _advance_lines(self, raw: str, pos: int) -> None:
        newlines = raw.count("\n")
        if newlines:
            self._line += newlines
            self._line_start = pos + raw.rindex("\n") + 1


def tokenize(text: str, keep_comments: bool = False) -> List[Token]:
    """Tokenize query text; the list always ends with an EOF token."""
    return Lexer(text, keep_comments=keep_comments).tokenize()
