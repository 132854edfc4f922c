"""
ReplayGuard Placeholder Rules

A placeholder rule is a (prefix, pattern, suffix) triple: every
``prefix + <text matching pattern> + suffix`` occurrence in an artifact is a
volatile region that a template stores as ``prefix + {{pattern}} + suffix``.

Canonical rule sets are fixed per artifact kind. Their order is part of the
contract: rules run one after the other and a later rule never rewrites a
marker written by an earlier one.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Pattern, Tuple

from .engine import format_placeholder, generate, parse_template
from ..common.errors import TemplateSyntaxError


UUID_PATTERN = r"\w+-\w+-\w+-\w+-\w+"
NUMBER_PATTERN = r"\d+"


@dataclass(frozen=True)
class PlaceholderRule:
    """One substitutable region of an artifact."""

    prefix: str
    pattern: str
    suffix: str
    regex: Pattern = field(init=False, compare=False, repr=False)

    def __post_init__(self):
        try:
            compiled = re.compile(re.escape(self.prefix) + f"(?:{self.pattern})" + re.escape(self.suffix))
        except re.error as e:
            raise ValueError(f"Invalid pattern {self.pattern!r}: {e}") from e

        # The marker must read back as exactly prefix, placeholder, suffix
        try:
            segments = parse_template(self.placeholder)
        except TemplateSyntaxError as e:
            raise ValueError(f"Rule {self!r} cannot be embedded in a template: {e}") from e
        kinds = [(s.is_placeholder, s.text) for s in segments]
        expected = [(True, self.pattern)]
        if self.prefix:
            expected.insert(0, (False, self.prefix))
        if self.suffix:
            expected.append((False, self.suffix))
        if kinds != expected:
            raise ValueError(f"Rule {self!r} does not embed unambiguously in a template")

        object.__setattr__(self, 'regex', compiled)

    @property
    def placeholder(self) -> str:
        """Text that replaces each matched region."""
        return self.prefix + format_placeholder(self.pattern) + self.suffix

    def apply(self, content: str) -> str:
        """Apply this rule alone (see engine.generate for the full pass)."""
        return generate(content, [self])


def replacement(prefix: str, pattern: str, suffix: str) -> PlaceholderRule:
    return PlaceholderRule(prefix, pattern, suffix)


def uuid_replacement(prefix: str, suffix: str) -> PlaceholderRule:
    return replacement(prefix, UUID_PATTERN, suffix)


def numeric_attribute_replacement(attribute_name: str) -> PlaceholderRule:
    """Rule for a numeric XML attribute surrounded by spaces: ` name="123" `."""
    return replacement(f' {attribute_name}="', NUMBER_PATTERN, '" ')


PLAN_RULES: Tuple[PlaceholderRule, ...] = (
    uuid_replacement('cacheKey">', '<'),
    replacement('testname="', NUMBER_PATTERN, ' '),
)

RESULT_LOG_RULES: Tuple[PlaceholderRule, ...] = (
    numeric_attribute_replacement('t'),
    numeric_attribute_replacement('lt'),
    numeric_attribute_replacement('ct'),
    numeric_attribute_replacement('ts'),
    replacement(' lb="', NUMBER_PATTERN, ' '),
    replacement(' hn="', '.*?', '">'),
    uuid_replacement('Matched-Stub-Id: ', ''),
    replacement('SWETS=', NUMBER_PATTERN, ''),
)


class ArtifactKind(Enum):
    """Artifacts a test case produces, with their canonical rule sets."""

    PLAN = 'plan'
    RESULT_LOG = 'result-log'

    @property
    def label(self) -> str:
        return 'Recorded plan' if self is ArtifactKind.PLAN else 'Result log'

    @property
    def rules(self) -> Tuple[PlaceholderRule, ...]:
        return PLAN_RULES if self is ArtifactKind.PLAN else RESULT_LOG_RULES
