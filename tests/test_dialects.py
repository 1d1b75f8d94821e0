"""
Tests for the per-dialect rendering of the needs-metadata filter.
"""

from types import SimpleNamespace

import pytest
from sqlalchemy.dialects import postgresql, mysql, sqlite

from lycheemeta.db.dialects import (
    PostgreSQLTitleDialect, MySQLTitleDialect, MariaDBTitleDialect,
    SQLiteTitleDialect, title_dialect_for
)
from lycheemeta.db.models import Photo
from lycheemeta.titles import DEFAULT_RULE_SET, BLANK_PATTERN, WHITESPACE


def compile_clause(translator, dialect):
    clause = translator.needs_metadata_clause(Photo.title, Photo.description)
    return clause.compile(dialect=dialect)


class TestPostgreSQL:

    def test_uses_case_sensitive_regex_operator(self):
        compiled = compile_clause(PostgreSQLTitleDialect(), postgresql.dialect())
        sql = str(compiled)
        assert "photos.title ~ " in sql
        assert "~*" not in sql

    def test_binds_every_rule_pattern(self):
        compiled = compile_clause(PostgreSQLTitleDialect(), postgresql.dialect())
        params = set(compiled.params.values())
        assert set(DEFAULT_RULE_SET.sql_patterns) <= params
        assert BLANK_PATTERN in params

    def test_includes_null_and_empty_checks(self):
        sql = str(compile_clause(PostgreSQLTitleDialect(), postgresql.dialect()))
        assert "photos.title IS NULL" in sql
        assert "photos.description IS NULL" in sql


class TestMySQL:

    def test_uses_regexp_like_with_case_flag(self):
        compiled = compile_clause(MySQLTitleDialect(), mysql.dialect())
        assert "regexp_like(photos.title" in str(compiled).lower()
        assert 'c' in compiled.params.values()

    def test_binds_every_rule_pattern(self):
        compiled = compile_clause(MySQLTitleDialect(), mysql.dialect())
        assert set(DEFAULT_RULE_SET.sql_patterns) <= set(compiled.params.values())


class TestMariaDB:

    def test_prefixes_patterns_with_inline_case_flag(self):
        compiled = compile_clause(MariaDBTitleDialect(), mysql.dialect())
        assert "REGEXP" in str(compiled)
        params = set(compiled.params.values())
        for pattern in DEFAULT_RULE_SET.sql_patterns:
            assert "(?-i)" + pattern in params


class TestSQLite:

    def test_superset_filter_uses_glob_and_trim(self):
        compiled = compile_clause(SQLiteTitleDialect(), sqlite.dialect())
        sql = str(compiled)
        assert "GLOB" in sql
        assert "ltrim(photos.title" in sql
        assert "trim(photos.title" in sql
        params = set(compiled.params.values())
        assert set(DEFAULT_RULE_SET.globs) <= params
        assert WHITESPACE in params

    def test_is_not_exact(self):
        assert SQLiteTitleDialect.exact is False
        assert PostgreSQLTitleDialect.exact is True

    def test_has_no_regex(self):
        with pytest.raises(NotImplementedError):
            SQLiteTitleDialect().regex_match(Photo.title, "^x$")


class TestTitleDialectFor:

    @pytest.mark.parametrize("name,is_mariadb,expected", [
        ("postgresql", False, PostgreSQLTitleDialect),
        ("mysql", False, MySQLTitleDialect),
        ("mysql", True, MariaDBTitleDialect),
        ("mariadb", True, MariaDBTitleDialect),
        ("sqlite", False, SQLiteTitleDialect),
    ])
    def test_picks_translator(self, name, is_mariadb, expected):
        dialect = SimpleNamespace(name=name, is_mariadb=is_mariadb)
        assert isinstance(title_dialect_for(dialect), expected)

    def test_passes_rules_through(self):
        rules = DEFAULT_RULE_SET
        translator = title_dialect_for(SimpleNamespace(name="sqlite"), rules)
        assert translator.rules is rules

    def test_unsupported_dialect(self):
        with pytest.raises(ValueError, match="Unsupported database dialect"):
            title_dialect_for(SimpleNamespace(name="oracle"))
