"""
Parse-time statement classification.

The executor decides between the query path (materialize rows, no commit) and
the command path (commit, no rows) from the statement text, before anything is
sent to the store. Driver result metadata is only used afterwards as a check.

The scanner understands just enough SQL to do that: quoted literals and
identifiers, dollar-quoted bodies, line and block comments, parentheses.
"""

import re
from collections.abc import Iterator
from enum import Enum
from typing import NamedTuple

from sqlgate.core.errors import QueryError

_WORD = re.compile(r"[A-Za-z_][A-Za-z0-9_$]*")
_NUMBER = re.compile(r"[0-9][A-Za-z0-9_.]*")
_DOLLAR_TAG = re.compile(r"\$(?:[A-Za-z_][A-Za-z0-9_]*)?\$")

_QUERY_VERBS = frozenset({"SELECT", "VALUES", "EXPLAIN", "SHOW", "DESCRIBE", "DESC", "TABLE"})
_CTE_MAIN_VERBS = frozenset(
    {"SELECT", "VALUES", "INSERT", "UPDATE", "DELETE", "REPLACE", "MERGE"}
)
_PUNCTUATION = "=?;"
_STRUCTURAL = frozenset({"(", ")", "=", "?", ";"})


class StatementKind(str, Enum):
    QUERY = "query"
    COMMAND = "command"
    RETURNING_COMMAND = "returning_command"

    @property
    def returns_rows(self) -> bool:
        return self is not StatementKind.COMMAND

    @property
    def commits(self) -> bool:
        return self is not StatementKind.QUERY


class Statement(NamedTuple):
    text: str
    kind: StatementKind


class _Token(NamedTuple):
    text: str  # upper-cased keyword/identifier, or one of "(", ")", "=", "?", ";"
    start: int
    depth: int  # parenthesis depth the token sits at


def _skip_quoted(sql: str, i: int, quote: str) -> int:
    """Index just past the literal opened at *i*. A doubled quote is an escaped quote."""
    length = len(sql)
    i += 1
    while i < length:
        if sql[i] == quote:
            if i + 1 < length and sql[i + 1] == quote:
                i += 2
                continue
            return i + 1
        i += 1
    return length


def _scan(sql: str) -> Iterator[_Token]:
    """Yield keywords and structural punctuation outside literals and comments."""
    depth = 0
    i = 0
    length = len(sql)

    while i < length:
        ch = sql[i]

        if ch in ("'", '"', "`"):
            i = _skip_quoted(sql, i, ch)
            continue

        if ch == "$":
            m = _DOLLAR_TAG.match(sql, i)
            if m:
                end = sql.find(m.group(0), m.end())
                i = length if end == -1 else end + len(m.group(0))
                continue
            i += 1
            continue

        if sql.startswith("--", i):
            end = sql.find("\n", i)
            i = length if end == -1 else end + 1
            continue

        if sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            i = length if end == -1 else end + 2
            continue

        if ch == "(":
            yield _Token("(", i, depth)
            depth += 1
            i += 1
            continue

        if ch == ")":
            depth = max(depth - 1, 0)
            yield _Token(")", i, depth)
            i += 1
            continue

        if ch in _PUNCTUATION:
            yield _Token(ch, i, depth)
            i += 1
            continue

        m = _WORD.match(sql, i) or _NUMBER.match(sql, i)
        if m:
            if not ch.isdigit():
                yield _Token(m.group(0).upper(), i, depth)
            i = m.end()
            continue

        i += 1


def _is_trigger_head(words: list[str]) -> bool:
    # CREATE [TEMP|TEMPORARY] TRIGGER
    return len(words) >= 2 and words[0] == "CREATE" and "TRIGGER" in words[1:3]


def split_statements(sql: str) -> list[str]:
    """
    Split SQL on ``;`` terminators that sit outside literals and comments.

    A trigger body (``CREATE TRIGGER ... BEGIN ...; ...; END``) is one
    statement: its inner terminators do not split. Segments holding nothing
    but whitespace and comments are dropped.
    """
    stmts: list[str] = []
    seg_start = 0
    has_content = False
    head: list[str] = []
    in_body = False
    case_depth = 0

    for tok in _scan(sql):
        if tok.text == ";" and not in_body:
            if has_content:
                stmts.append(sql[seg_start : tok.start].strip())
            seg_start = tok.start + 1
            has_content = False
            head = []
            continue

        has_content = True
        if tok.text in _STRUCTURAL:
            continue
        if len(head) < 3:
            head.append(tok.text)

        if in_body:
            if tok.text == "CASE":
                case_depth += 1
            elif tok.text == "END":
                if case_depth:
                    case_depth -= 1
                else:
                    in_body = False
        elif tok.text == "BEGIN" and _is_trigger_head(head):
            in_body = True
            case_depth = 0

    if has_content:
        stmts.append(sql[seg_start:].strip())
    return stmts


def count_placeholders(sql: str) -> int:
    """Number of ``?`` markers outside literals and comments."""
    return sum(1 for tok in _scan(sql) if tok.text == "?")


def classify(sql: str) -> StatementKind:
    """Classify one statement as QUERY, COMMAND or RETURNING_COMMAND from its text."""
    tokens = list(_scan(sql))
    words = [t for t in tokens if t.text not in _STRUCTURAL]
    if not words:
        return StatementKind.COMMAND
    top_level = [t.text for t in tokens if t.depth == 0]

    first = words[0].text
    if first in _QUERY_VERBS:
        return StatementKind.QUERY
    if first == "PRAGMA":
        return StatementKind.COMMAND if "=" in top_level else StatementKind.QUERY
    if first == "WITH":
        main = next((w for w in top_level[1:] if w in _CTE_MAIN_VERBS), None)
        if main in ("SELECT", "VALUES"):
            return StatementKind.QUERY

    if "RETURNING" in top_level:
        return StatementKind.RETURNING_COMMAND
    return StatementKind.COMMAND


def prepare(sql: str) -> Statement:
    """
    Validate that *sql* is exactly one statement and classify it.

    Raises QueryError for non-string input, empty text, or more than one statement.
    The returned text has its trailing terminator removed.
    """
    if not isinstance(sql, str):
        raise QueryError(f"SQL must be a string, got {type(sql).__name__}")
    stmts = split_statements(sql)
    if not stmts:
        raise QueryError("Empty SQL statement", sql=sql)
    if len(stmts) > 1:
        raise QueryError(f"Expected a single statement, got {len(stmts)}", sql=sql)
    return Statement(text=stmts[0], kind=classify(stmts[0]))
