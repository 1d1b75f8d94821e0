"""
Generic title classification.

A title is "generic" when it was assigned by a camera, a phone, a
screenshot tool or an upload step (UUID names) rather than typed by a
person. The rules are defined once in a :class:`TitleRuleSet` which
renders them for Python matching and for the database dialects, so the
classifier and the SQL filter can never drift apart.
"""

import re
from dataclasses import dataclass, field
from typing import Optional, Tuple, Pattern


# Characters stripped from both ends of a title before matching: the
# Unicode White_Space set. Spelled out so Python, PostgreSQL, MySQL and
# SQLite all trim the same set; the non-ASCII ones go into the SQL
# character class as literal characters.
_UNICODE_WHITESPACE = (
    "\u0085\u00a0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000"
)
WHITESPACE = " \t\n\r\f\v" + _UNICODE_WHITESPACE
_WS_CLASS = r"[ \t\n\r\f\x0b" + _UNICODE_WHITESPACE + "]"

# File extension suffix: ASCII word characters only
_EXT = r"(\.[A-Za-z0-9_]+)?"
_HEX = "[0-9a-fA-F]"

BLANK_PATTERN = "^" + _WS_CLASS + "*$"


@dataclass(frozen=True)
class TitleRule:
    """
    A single generic-title rule.

    Attributes:
        name: Short identifier used in logs and tests
        pattern: Regular expression without anchors or surrounding whitespace
        prefix_only: Match only the start of the trimmed title
        glob: SQLite GLOB pattern selecting a superset of the matches
    """
    name: str
    pattern: str
    prefix_only: bool = False
    glob: str = "*"

    @property
    def sql_pattern(self) -> str:
        """Anchored pattern that tolerates surrounding whitespace."""
        if self.prefix_only:
            return "^" + _WS_CLASS + "*(" + self.pattern + ")"
        return "^" + _WS_CLASS + "*(" + self.pattern + ")" + _WS_CLASS + "*$"


DEFAULT_RULES: Tuple[TitleRule, ...] = (
    TitleRule(
        name="uuid",
        pattern=(
            "(" + _HEX + "{8}-" + _HEX + "{4}-" + _HEX + "{4}-" + _HEX + "{4}-" + _HEX + "{12}"
            "|" + _HEX + "{32})" + _EXT
        ),
        glob="[0-9a-fA-F]" * 8 + "*",
    ),
    TitleRule(
        name="camera_prefix",  # IMG_1234, DSC_0042, CD5_5678
        pattern="[A-Za-z0-9]{3}_[0-9]+" + _EXT,
        glob="[A-Za-z0-9]" * 3 + "_[0-9]*",
    ),
    TitleRule(
        name="p_series",  # P1234567
        pattern="P[0-9]{7}" + _EXT,
        glob="P" + "[0-9]" * 7 + "*",
    ),
    TitleRule(
        name="timestamp",  # 20230101_123456
        pattern="[0-9]{8}_[0-9]{6}" + _EXT,
        glob="[0-9]" * 8 + "_" + "[0-9]" * 6 + "*",
    ),
    TitleRule(
        name="whatsapp",  # IMG-20230101-WA0001
        pattern="IMG-[0-9]{8}-WA[0-9]{4}" + _EXT,
        glob="IMG-[0-9]*-WA[0-9]*",
    ),
    TitleRule(
        name="screenshot",
        pattern="Screenshot",
        prefix_only=True,
        glob="Screenshot*",
    ),
    TitleRule(
        name="indigo",  # Adobe Indigo camera app
        pattern="IDG_",
        prefix_only=True,
        glob="IDG_*",
    ),
)


@dataclass(frozen=True)
class TitleRuleSet:
    """Immutable, compiled-once collection of generic-title rules."""
    rules: Tuple[TitleRule, ...] = DEFAULT_RULES
    _compiled: Tuple[Tuple[TitleRule, Pattern], ...] = field(
        default=(), init=False, repr=False, compare=False
    )

    def __post_init__(self):
        compiled = tuple((rule, re.compile(rule.pattern)) for rule in self.rules)
        object.__setattr__(self, "_compiled", compiled)

    def match(self, title: Optional[str]) -> Optional[str]:
        """
        Find the rule that makes a title generic.

        Returns:
            The rule name, ``"blank"`` for empty titles, or None when the
            title looks human-written
        """
        if title is None:
            return "blank"
        trimmed = title.strip(WHITESPACE)
        if not trimmed:
            return "blank"
        for rule, regex in self._compiled:
            if rule.prefix_only:
                if regex.match(trimmed):
                    return rule.name
            elif regex.fullmatch(trimmed):
                return rule.name
        return None

    def is_generic(self, title: Optional[str]) -> bool:
        return self.match(title) is not None

    def needs_metadata(self, title: Optional[str], description: Optional[str]) -> bool:
        """A photo needs metadata with a generic title or an empty description."""
        return self.is_generic(title) or description is None or description == ""

    @property
    def sql_patterns(self) -> Tuple[str, ...]:
        return tuple(rule.sql_pattern for rule in self.rules)

    @property
    def globs(self) -> Tuple[str, ...]:
        return tuple(rule.glob for rule in self.rules)


DEFAULT_RULE_SET = TitleRuleSet()


def is_generic_title(title: Optional[str]) -> bool:
    """
    Check whether a title was generated rather than written by a person.

    Examples:
        >>> is_generic_title("IMG_1234.jpg")
        True
        >>> is_generic_title("Sunset over the bay")
        False
        >>> is_generic_title("12345")
        False
    """
    return DEFAULT_RULE_SET.is_generic(title)


def needs_metadata(title: Optional[str], description: Optional[str]) -> bool:
    return DEFAULT_RULE_SET.needs_metadata(title, description)
