"""
The Python classifier and the SQL renderings of the same rules must agree.

Anchored SQL patterns are checked with Python's ``re`` (the patterns use
only syntax shared by PostgreSQL, MySQL ICU and MariaDB PCRE), and the
SQLite GLOBs are checked to select a superset of every rule's matches.
"""

import re
from fnmatch import fnmatchcase

import pytest

from lycheemeta.titles import DEFAULT_RULE_SET, BLANK_PATTERN, WHITESPACE

from .test_titles import GENERIC_TITLES, HUMAN_TITLES

CORPUS = GENERIC_TITLES + HUMAN_TITLES + [
    "",
    "   ",
    "\t\n",
    "IMG_1234\n",
    "Screenshot\n",
    " IDG_ ",
    "IMG_1234.jpg\r\n",
    "P1234567 ",
    "Holiday IMG_1234",
    "\u00a0IMG_1234.jpg\u00a0",
    "\u2009Screenshot 2024\u202f",
    "\u0085\u1680",
    "\x1cIMG_1234",
]


def sql_says_generic(title):
    if title is None or re.search(BLANK_PATTERN, title):
        return True
    return any(re.search(pattern, title) for pattern in DEFAULT_RULE_SET.sql_patterns)


class TestSqlPatternParity:
    """Anchored SQL patterns vs the Python classifier"""

    @pytest.mark.parametrize("title", CORPUS)
    def test_same_verdict(self, title):
        assert sql_says_generic(title) == DEFAULT_RULE_SET.is_generic(title)

    @pytest.mark.parametrize("title", CORPUS)
    def test_each_rule_agrees(self, title):
        trimmed = title.strip(WHITESPACE)
        for rule in DEFAULT_RULE_SET.rules:
            python_match = bool(
                re.match(rule.pattern, trimmed) if rule.prefix_only
                else re.fullmatch(rule.pattern, trimmed)
            )
            assert bool(re.search(rule.sql_pattern, title)) == python_match, rule.name


class TestGlobSuperset:
    """SQLite GLOB prefilter never drops a generic title"""

    @pytest.mark.parametrize("title", CORPUS)
    def test_glob_selects_every_match(self, title):
        rule_name = DEFAULT_RULE_SET.match(title)
        if rule_name in (None, "blank"):
            return
        rule = next(rule for rule in DEFAULT_RULE_SET.rules if rule.name == rule_name)
        assert fnmatchcase(title.lstrip(WHITESPACE), rule.glob)

    def test_every_glob_is_open_ended(self):
        # Trailing whitespace and extensions are left to the Python check
        for glob in DEFAULT_RULE_SET.globs:
            assert glob.endswith("*")
