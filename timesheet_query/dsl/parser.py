"""
Query Parser
============

Hand-rolled recursive descent parser for the timesheet query language:

    query       := clause*
    clause      := where | show | view | chart | period | size
    where       := "WHERE" predicate ("AND" predicate)*
    predicate   := field (op value | "BETWEEN" value "AND" value)
    show        := "SHOW" column ("," column)*
    column      := field ("FORMAT" format)? ("AS" string)?
    view        := "VIEW" ("summary" | "chart" | "table" | "full")
    chart       := "CHART" ("monthly" | "trend" | "budget")
    period      := "PERIOD" ("current-year" | "all-time" | "last-6-months" | "last-12-months")
    size        := "SIZE" ("compact" | "normal" | "detailed")

WHERE fields are resolved against a FieldRegistry rather than a fixed
list, so extensions can add predicates without touching the grammar.
Every failure is a QuerySyntaxError positioned at the offending token;
nothing is silently defaulted here.
"""

from __future__ import annotations

import difflib
from typing import List, Optional, Sequence, Type

from timesheet_query.dsl.ast import (
    ChartClause,
    Clause,
    ColumnNode,
    Literal,
    LiteralKind,
    PeriodClause,
    PredicateNode,
    QueryAST,
    ShowClause,
    SizeClause,
    ViewClause,
    WhereClause,
)
from timesheet_query.dsl.errors import ErrorCode, QuerySyntaxError, UnknownFieldError
from timesheet_query.dsl.lexer import CLAUSE_KEYWORDS, Token, TokenKind, tokenize
from timesheet_query.dsl.registry import FieldRegistry, default_registry
from timesheet_query.dsl.schema import ChartType, FormatKind, PeriodType, SizeType, ViewType
from timesheet_query.utils.dates import looks_like_iso_date


class QueryParser:
    """
    Parser over a token list (as produced by tokenize()).

    Usage:
        ast = QueryParser(tokenize(text), registry).parse()
    """

    def __init__(self, tokens: Sequence[Token], registry: Optional[FieldRegistry] = None):
        tokens = [t for t in tokens if t.kind is not TokenKind.COMMENT]
        if not tokens or tokens[-1].kind is not TokenKind.EOF:
            line, column = (tokens[-1].line, tokens[-1].column) if tokens else (1, 1)
            tokens.append(Token(TokenKind.EOF, "", line, column))
        self.tokens = tokens
        self.pos = 0
        self.registry = registry if registry is not None else default_registry()

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def peek(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind is TokenKind.INVALID:
            code = (
                ErrorCode.UNTERMINATED_STRING
                if token.error and token.error.startswith("Unterminated")
                else ErrorCode.UNEXPECTED_CHARACTER
            )
            raise QuerySyntaxError(token.error or "Invalid token", token.line, token.column, code=code)
        return token

    def advance(self) -> Token:
        token = self.peek()
        if token.kind is not TokenKind.EOF:
            self.pos += 1
        return token

    def at_clause_boundary(self) -> bool:
        token = self.peek()
        return token.kind is TokenKind.EOF or token.is_clause_keyword()

    def error(self, message: str, token: Token, code: ErrorCode, suggestion: Optional[str] = None):
        return QuerySyntaxError(message, token.line, token.column, code=code, suggestion=suggestion)

    # ------------------------------------------------------------------
    # Grammar
    # ------------------------------------------------------------------

    def parse(self) -> QueryAST:
        clauses: List[Clause] = []
        while self.peek().kind is not TokenKind.EOF:
            clauses.append(self._parse_clause())
        return QueryAST(clauses=tuple(clauses))

    def _parse_clause(self) -> Clause:
        token = self.peek()
        if token.is_keyword("WHERE"):
            return self._parse_where()
        if token.is_keyword("SHOW"):
            return self._parse_show()
        if token.is_keyword("VIEW"):
            return self._parse_enum_clause(ViewClause, ViewType, "view type")
        if token.is_keyword("CHART"):
            return self._parse_enum_clause(ChartClause, ChartType, "chart type")
        if token.is_keyword("PERIOD"):
            return self._parse_enum_clause(PeriodClause, PeriodType, "period")
        if token.is_keyword("SIZE"):
            return self._parse_enum_clause(SizeClause, SizeType, "size")

        expected = ", ".join(CLAUSE_KEYWORDS)
        if token.kind is TokenKind.IDENTIFIER:
            raise self.error(
                f"Unknown keyword {token.describe()}: expected one of {expected}",
                token, ErrorCode.UNKNOWN_KEYWORD,
            )
        raise self.error(
            f"Unexpected {token.describe()}: expected one of {expected}",
            token, ErrorCode.UNEXPECTED_TOKEN,
        )

    def _parse_where(self) -> WhereClause:
        keyword = self.advance()
        predicates = [self._parse_predicate("WHERE")]
        while self.peek().is_keyword("AND"):
            self.advance()
            predicates.append(self._parse_predicate("AND"))

        token = self.peek()
        if token.kind is TokenKind.IDENTIFIER and token.lexeme == "or":
            raise self.error(
                "OR is not supported: WHERE predicates can only be combined with AND",
                token, ErrorCode.UNSUPPORTED_OPERATOR,
            )
        if not self.at_clause_boundary():
            raise self.error(
                f"Expected AND or a new clause after predicate, got {token.describe()}",
                token, ErrorCode.UNEXPECTED_TOKEN,
            )
        return WhereClause(predicates=tuple(predicates), line=keyword.line, column=keyword.column)

    def _parse_predicate(self, after: str) -> PredicateNode:
        field_token = self.peek()
        if field_token.kind is not TokenKind.IDENTIFIER:
            raise self.error(
                f"Expected field name after {after}, got {field_token.describe()}",
                field_token, ErrorCode.UNEXPECTED_TOKEN,
            )
        self._resolve_field(field_token)
        self.advance()

        op_token = self.peek()
        if op_token.kind is TokenKind.OPERATOR:
            self.advance()
            value = self._parse_literal(f"after '{op_token.lexeme}'")
            return PredicateNode(
                field=field_token.lexeme, operator=op_token.lexeme, value=value, upper=None,
                line=field_token.line, column=field_token.column,
            )
        if op_token.is_keyword("BETWEEN"):
            self.advance()
            low = self._parse_literal("after BETWEEN")
            and_token = self.peek()
            if not and_token.is_keyword("AND"):
                raise self.error(
                    f"Expected AND in BETWEEN range, got {and_token.describe()}",
                    and_token, ErrorCode.UNEXPECTED_TOKEN,
                )
            self.advance()
            high = self._parse_literal("after AND")
            return PredicateNode(
                field=field_token.lexeme, operator="BETWEEN", value=low, upper=high,
                line=field_token.line, column=field_token.column,
            )

        raise self.error(
            f"Expected operator after '{field_token.text}', got {op_token.describe()}",
            op_token, ErrorCode.EXPECTED_OPERATOR,
            suggestion="Use '=' or BETWEEN ... AND ...",
        )

    def _resolve_field(self, token: Token) -> None:
        if token.lexeme in self.registry:
            return
        names = self.registry.names()
        close = difflib.get_close_matches(token.lexeme, names, n=1)
        raise UnknownFieldError(
            f"Unknown field '{token.text}'. Valid fields: {', '.join(names)}",
            token.line, token.column,
            suggestion=f"Did you mean '{close[0]}'?" if close else None,
        )

    def _parse_literal(self, context: str) -> Literal:
        token = self.peek()
        if token.kind is TokenKind.NUMBER:
            self.advance()
            return Literal(LiteralKind.NUMBER, token.lexeme, token.line, token.column)
        if token.kind is TokenKind.STRING:
            self.advance()
            kind = LiteralKind.DATE if looks_like_iso_date(token.lexeme) else LiteralKind.STRING
            return Literal(kind, token.lexeme, token.line, token.column)
        raise self.error(
            f"Expected value {context}, got {token.describe()}",
            token, ErrorCode.EXPECTED_VALUE,
        )

    def _parse_show(self) -> ShowClause:
        keyword = self.advance()
        columns = [self._parse_column()]
        while self.peek().kind is TokenKind.PUNCTUATION and self.peek().lexeme == ",":
            self.advance()
            columns.append(self._parse_column())

        if not self.at_clause_boundary():
            token = self.peek()
            raise self.error(
                f"Expected ',' or a new clause after column, got {token.describe()}",
                token, ErrorCode.UNEXPECTED_TOKEN,
            )
        return ShowClause(columns=tuple(columns), line=keyword.line, column=keyword.column)

    def _parse_column(self) -> ColumnNode:
        start = self.peek()
        field_name = None
        if start.kind is TokenKind.IDENTIFIER:
            field_name = start.lexeme
            self.advance()
        elif not start.is_keyword("AS"):
            raise self.error(
                f"Expected column name, got {start.describe()}",
                start, ErrorCode.UNEXPECTED_TOKEN,
            )

        format_kind = None
        if self.peek().is_keyword("FORMAT"):
            self.advance()
            token = self.peek()
            valid = [f.value for f in FormatKind]
            if token.kind is not TokenKind.IDENTIFIER or token.lexeme not in valid:
                raise self.error(
                    f"Invalid format: {token.describe()}. Valid formats: {', '.join(valid)}",
                    token, ErrorCode.INVALID_ENUM_VALUE,
                )
            format_kind = token.lexeme
            self.advance()

        alias = None
        if self.peek().is_keyword("AS"):
            self.advance()
            token = self.peek()
            if token.kind is not TokenKind.STRING:
                raise self.error(
                    f"Expected quoted alias after AS, got {token.describe()}",
                    token, ErrorCode.EXPECTED_VALUE,
                )
            alias = token.lexeme
            self.advance()

        return ColumnNode(
            field=field_name, format=format_kind, alias=alias,
            line=start.line, column=start.column,
        )

    def _parse_enum_clause(self, node_cls: Type, enum_cls, label: str):
        keyword = self.advance()
        token = self.peek()
        valid = [member.value for member in enum_cls]
        # "VIEW chart" lexes its value as the CHART keyword
        value = token.lexeme.lower() if token.kind in (TokenKind.IDENTIFIER, TokenKind.KEYWORD) else None

        if value not in valid and (token.kind is TokenKind.EOF or token.is_clause_keyword()):
            raise self.error(
                f"Expected {label} after {keyword.lexeme}. Valid values: {', '.join(valid)}",
                token, ErrorCode.EXPECTED_VALUE,
            )
        if value not in valid:
            raise self.error(
                f"Invalid {label}: {token.describe()}. Valid values: {', '.join(valid)}",
                token, ErrorCode.INVALID_ENUM_VALUE,
            )
        self.advance()
        return node_cls(value=value, line=keyword.line, column=keyword.column)


def parse(tokens: Sequence[Token], registry: Optional[FieldRegistry] = None) -> QueryAST:
    """Parse a token list into a QueryAST."""
    return QueryParser(tokens, registry).parse()


def parse_query(text: str, registry: Optional[FieldRegistry] = None) -> QueryAST:
    """Tokenize and parse query text."""
    return parse(tokenize(text), registry)
