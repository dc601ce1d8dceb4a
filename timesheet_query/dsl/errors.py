"""
Query Errors
============

Exception taxonomy for the timesheet query language.

WHY THIS FILE EXISTS
--------------------
Errors come from three stages of the pipeline and callers treat them
differently:

    1. Syntax errors (lexer/parser)
       - Unknown clause keyword, unterminated string
       - Missing operator or value
       - Invalid VIEW/CHART/PERIOD/SIZE value

    2. Semantic errors (interpreter)
       - Grammar is fine but the meaning is not
       - BETWEEN on a field that has no range form, bad date literal,
         alias without a column

    3. Execution errors (executor)
       - The data source failed; never retried here

Editors show syntax/semantic errors inline (they carry line/column);
execution errors bubble up to whoever owns the data source.

RELATED FILES
-------------
- timesheet_query/dsl/parser.py: raises QuerySyntaxError / UnknownFieldError
- timesheet_query/dsl/interpreter.py: raises SemanticError
- timesheet_query/dsl/executor.py: raises ExecutionError
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Which pipeline stage produced the error."""
    SYNTAX = "syntax"
    SEMANTIC = "semantic"
    EXECUTION = "execution"


class ErrorCode(Enum):
    """
    Machine-readable codes for common failures.

    WHAT: Stable identifiers for tests, logs and editor integrations.
    """
    # Syntax errors
    UNEXPECTED_CHARACTER = "QL_001"
    UNTERMINATED_STRING = "QL_002"
    UNKNOWN_KEYWORD = "QL_003"
    EXPECTED_OPERATOR = "QL_004"
    EXPECTED_VALUE = "QL_005"
    INVALID_ENUM_VALUE = "QL_006"
    UNEXPECTED_TOKEN = "QL_007"
    UNSUPPORTED_OPERATOR = "QL_008"

    # Semantic errors
    UNKNOWN_FIELD = "QL_020"
    INVALID_VALUE = "QL_021"
    INVALID_OPERATOR = "QL_022"
    UNKNOWN_COLUMN = "QL_023"
    INVALID_COMPOSITION = "QL_024"

    # Execution errors
    DATA_SOURCE_ERROR = "QL_040"


class QueryError(Exception):
    """
    Base exception for all query-language errors.

    WHAT:
        Carries a human-readable message, a code/category pair and the
        offending token position when one is known.

    USAGE:
        try:
            query = compile_query(text)
        except QueryError as e:
            logger.error(f"[QUERY_PIPELINE] {e}", extra=e.to_dict())
            return e.user_message()
    """

    category = ErrorCategory.SYNTAX
    default_code = ErrorCode.UNEXPECTED_TOKEN

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        code: Optional[ErrorCode] = None,
        suggestion: Optional[str] = None,
    ):
        self.message = message
        self.line = line
        self.column = column
        self.code = code or self.default_code
        self.suggestion = suggestion
        super().__init__(self._format())

    @property
    def has_position(self) -> bool:
        return self.line is not None and self.column is not None

    def _format(self) -> str:
        if self.has_position:
            return f"{self.message} (line {self.line}, column {self.column})"
        return self.message

    def user_message(self) -> str:
        """Message plus suggestion, suitable for an editor tooltip."""
        if self.suggestion:
            return f"{self._format()}\n{self.suggestion}"
        return self._format()

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation for logs and JSON output."""
        result: Dict[str, Any] = {
            "code": self.code.value,
            "category": self.category.value,
            "message": self.message,
        }
        if self.has_position:
            result["line"] = self.line
            result["column"] = self.column
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result


class QuerySyntaxError(QueryError):
    """Malformed token stream: raised by the lexer/parser stage."""

    category = ErrorCategory.SYNTAX
    default_code = ErrorCode.UNEXPECTED_TOKEN


class SemanticError(QueryError):
    """Well-formed query whose meaning is invalid: raised by the interpreter."""

    category = ErrorCategory.SEMANTIC
    default_code = ErrorCode.INVALID_VALUE


# Older callers know the interpreter failure under this name
InterpreterError = SemanticError


class UnknownFieldError(QuerySyntaxError, SemanticError):
    """
    WHERE field that no registered handler understands.

    The parser detects it while resolving the predicate, so it is a
    QuerySyntaxError; it is classified as semantic so callers catching
    either type see it.
    """

    category = ErrorCategory.SEMANTIC
    default_code = ErrorCode.UNKNOWN_FIELD


class ExecutionError(QueryError):
    """
    Data source failure during execute().

    The original exception is chained as __cause__; nothing is retried.
    """

    category = ErrorCategory.EXECUTION
    default_code = ErrorCode.DATA_SOURCE_ERROR
