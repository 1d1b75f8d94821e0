"""
Dialect translators for the needs-metadata filter.

Each translator renders the shared :class:`~lycheemeta.titles.TitleRuleSet`
as a SQL predicate for one database family:

- PostgreSQL: the case-sensitive ``~`` operator
- MySQL: ``REGEXP_LIKE(title, pattern, 'c')``
- MariaDB: ``title REGEXP '(?-i)pattern'``
- SQLite: no native regex, so GLOB prefixes select a superset and the
  caller applies the exact predicate in Python

Usage:
    dialect = title_dialect_for(connection.dialect)
    stmt = select(Photo).where(dialect.needs_metadata_clause(Photo.title, Photo.description))
    if not dialect.exact:
        rows = [row for row in rows if rules.needs_metadata(row.title, row.description)]
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Type
import logging

from sqlalchemy import Boolean, or_, func, literal
from sqlalchemy.engine import Dialect
from sqlalchemy.sql.elements import ColumnElement

from ..titles import TitleRuleSet, DEFAULT_RULE_SET, BLANK_PATTERN, WHITESPACE

logger = logging.getLogger(__name__)


class TitleDialect(ABC):
    """Renders the generic-title rules as SQL for one database family."""

    #: Whether the rendered predicate is exact. When False the predicate
    #: selects a superset and rows must be re-checked in Python.
    exact = True

    def __init__(self, rules: Optional[TitleRuleSet] = None):
        self.rules = rules or DEFAULT_RULE_SET

    @abstractmethod
    def regex_match(self, column: ColumnElement, pattern: str) -> ColumnElement:
        """Case-sensitive regular expression match of column against pattern."""
        pass

    def generic_title_clause(self, column: ColumnElement) -> ColumnElement:
        clauses = [column.is_(None), self.regex_match(column, BLANK_PATTERN)]
        clauses.extend(self.regex_match(column, pattern) for pattern in self.rules.sql_patterns)
        return or_(*clauses)

    def needs_metadata_clause(self, title: ColumnElement, description: ColumnElement) -> ColumnElement:
        return or_(
            self.generic_title_clause(title),
            description.is_(None),
            description == '',
        )


class PostgreSQLTitleDialect(TitleDialect):

    def regex_match(self, column, pattern):
        # Without flags SQLAlchemy renders the case-sensitive ~ operator
        return column.regexp_match(pattern)


class MySQLTitleDialect(TitleDialect):

    def regex_match(self, column, pattern):
        return func.regexp_like(column, pattern, 'c', type_=Boolean)


class MariaDBTitleDialect(TitleDialect):

    def regex_match(self, column, pattern):
        # PCRE inline flag; REGEXP otherwise follows the column collation
        return column.regexp_match('(?-i)' + pattern)


class SQLiteTitleDialect(TitleDialect):
    """
    Superset filter for SQLite.

    A title is selected when it is NULL, blank after trimming the shared
    whitespace set, or when its left-trimmed value matches one of the
    rule GLOBs. GLOB is case-sensitive, like the Python rules.
    """

    exact = False

    def regex_match(self, column, pattern):
        raise NotImplementedError("SQLite has no built-in regular expression operator")

    def generic_title_clause(self, column):
        whitespace = literal(WHITESPACE)
        trimmed_left = func.ltrim(column, whitespace)
        clauses = [column.is_(None), func.trim(column, whitespace) == '']
        clauses.extend(trimmed_left.op('GLOB', is_comparison=True)(glob) for glob in self.rules.globs)
        return or_(*clauses)


_DIALECTS: Dict[str, Type[TitleDialect]] = {
    'postgresql': PostgreSQLTitleDialect,
    'mysql': MySQLTitleDialect,
    'mariadb': MariaDBTitleDialect,
    'sqlite': SQLiteTitleDialect,
}


def title_dialect_for(dialect: Dialect, rules: Optional[TitleRuleSet] = None) -> TitleDialect:
    """
    Pick the translator for a SQLAlchemy dialect.

    MariaDB is reported by SQLAlchemy as ``mysql`` with ``is_mariadb`` set
    once a connection has been made, so call this with the dialect of a
    live connection.

    Raises:
        ValueError: If the database family is not supported
    """
    name = dialect.name
    if name == 'mysql' and getattr(dialect, 'is_mariadb', False):
        name = 'mariadb'

    dialect_class = _DIALECTS.get(name)
    if dialect_class is None:
        raise ValueError(f"Unsupported database dialect: {dialect.name}")

    logger.debug(f"Using {dialect_class.__name__} for title filtering")
    return dialect_class(rules)
