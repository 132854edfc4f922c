"""
ReplayGuard Template Module

Template generation and matching for artifacts with volatile values.

This module provides:
- Placeholder rules and the canonical rule sets per artifact kind
- Template generation from literal artifacts
- Single-pass template matching with structured mismatches
"""

from .engine import (
    Template,
    TemplateMatch,
    TemplateMismatch,
    Segment,
    generate,
    match,
    parse_template,
    convert_file_to_template,
    assert_file_matches,
)
from .rules import (
    PlaceholderRule,
    ArtifactKind,
    PLAN_RULES,
    RESULT_LOG_RULES,
    UUID_PATTERN,
    NUMBER_PATTERN,
    replacement,
    uuid_replacement,
    numeric_attribute_replacement,
)

__all__ = [
    # Engine
    'Template',
    'TemplateMatch',
    'TemplateMismatch',
    'Segment',
    'generate',
    'match',
    'parse_template',
    'convert_file_to_template',
    'assert_file_matches',

    # Rules
    'PlaceholderRule',
    'ArtifactKind',
    'PLAN_RULES',
    'RESULT_LOG_RULES',
    'UUID_PATTERN',
    'NUMBER_PATTERN',
    'replacement',
    'uuid_replacement',
    'numeric_attribute_replacement',
]

__version__ = '1.0.0'
