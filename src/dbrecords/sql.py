"""
SQL text handling for statement preparation.

Queries are written with positional ``?`` placeholders. Before execution the
dialect strategy rewrites them into the driver's paramstyle:

    SQL → Tokenize → Rewrite placeholders / escape percent → Driver SQL
           (once)              (single pass)

Entry points:
- `validate_query()` - Reject absent or empty query text
- `standardize_placeholders()` - Convert ? ↔ %s for dialect
- `has_returning_clause()` - Check for a RETURNING clause outside literals
"""
import re
from enum import Enum, auto
from typing import NamedTuple

from dbrecords.exceptions import ValidationError


class TokenType(Enum):
    """Kinds of SQL fragments the rewriter distinguishes."""
    SQL_TEXT = auto()
    STRING_LITERAL = auto()
    POSITIONAL_PH = auto()
    RETURNING_KEYWORD = auto()


class Token(NamedTuple):
    type: TokenType
    text: str


# Quoted literals are matched before anything else, so a ? or RETURNING
# inside quotes is never taken for a placeholder or keyword
_TOKENIZE = re.compile(r"""
    (?P<literal>'(?:[^']|'')*'|"(?:[^"]|"")*")
    |(?P<placeholder>%s|\?)
    |(?P<returning>\bRETURNING\b)
""", re.IGNORECASE | re.VERBOSE)

_TOKEN_TYPES = {
    'literal': TokenType.STRING_LITERAL,
    'placeholder': TokenType.POSITIONAL_PH,
    'returning': TokenType.RETURNING_KEYWORD,
}

# A % that is not part of an already doubled %%
_LONE_PERCENT = re.compile(r'(?<!%)%(?!%)')


def validate_query(sql: str | None) -> str:
    """Check that the query text is present and non-empty.

    Raises ValidationError before any connection interaction.
    """
    if sql is None or not isinstance(sql, str) or sql == '':
        raise ValidationError('SQL query must not be None or empty.')
    return sql


def tokenize_sql(sql: str) -> list[Token]:
    """Split SQL into tokens whose texts concatenate back to `sql`."""
    tokens = []
    pos = 0
    for match in _TOKENIZE.finditer(sql):
        if match.start() > pos:
            tokens.append(Token(TokenType.SQL_TEXT, sql[pos:match.start()]))
        tokens.append(Token(_TOKEN_TYPES[match.lastgroup], match.group()))
        pos = match.end()
    if pos < len(sql):
        tokens.append(Token(TokenType.SQL_TEXT, sql[pos:]))
    return tokens


def _escape_percent(text: str) -> str:
    """Double the lone percent signs in `text`; %% is left as written."""
    return _LONE_PERCENT.sub('%%', text)


def has_returning_clause(sql: str) -> bool:
    """Check if SQL carries a RETURNING clause outside string literals.
    """
    if 'returning' not in sql.lower():
        return False
    return any(t.type == TokenType.RETURNING_KEYWORD for t in tokenize_sql(sql))


def standardize_placeholders(sql: str, dialect: str = 'postgresql',
                             escape_percent: bool = False) -> str:
    """Convert placeholders between ? and %s based on dialect.

    Parameters
        sql: SQL query string
        dialect: Database dialect
        escape_percent: Double every lone %, in literals and in operators
            such as modulo, as psycopg requires once parameters are bound

    Returns
        SQL with standardized placeholders
    """
    if not sql:
        return sql

    if dialect == 'sqlite':
        if '%s' not in sql:
            return sql
        source, target = '%s', '?'
    elif dialect == 'postgresql':
        if '?' not in sql and not (escape_percent and '%' in sql):
            return sql
        source, target = '?', '%s'
    else:
        return sql

    result = []
    for token in tokenize_sql(sql):
        if token.type == TokenType.POSITIONAL_PH:
            result.append(target if token.text == source else token.text)
        elif escape_percent and token.type != TokenType.RETURNING_KEYWORD:
            result.append(_escape_percent(token.text))
        else:
            result.append(token.text)
    return ''.join(result)
