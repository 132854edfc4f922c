"""
ReplayGuard Template Engine

Turns literal artifacts into templates and matches new artifacts against them.

A template is the artifact text with volatile regions replaced by markers of
the form ``{{<regex>}}``. Generation applies placeholder rules in order;
matching walks the template's literal and placeholder segments left to right
in a single pass, without backtracking.

Example:
    template = generate(plan_xml, ArtifactKind.PLAN.rules)
    result = match(new_plan_xml, template)
    if not result:
        print(result.mismatch.describe())
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Pattern, Sequence, Union

from ..common.errors import MissingTemplateError, TemplateMismatchError, TemplateSyntaxError


MARKER_OPEN = "{{"
MARKER_CLOSE = "}}"

# Literal "{{" in artifact content is stored as a placeholder matching exactly "{{"
ESCAPED_OPEN_PATTERN = r"\{\{"
ESCAPED_BRACE_PATTERN = r"\{"

EXCERPT_LENGTH = 40


def format_placeholder(pattern: str) -> str:
    """Build the marker text for a volatility pattern."""
    return f"{MARKER_OPEN}{pattern}{MARKER_CLOSE}"


@dataclass(frozen=True)
class Segment:
    """
    One piece of a parsed template.

    Literal segments hold fixed text, placeholder segments hold the pattern
    the corresponding content region must fully match.
    """

    text: str
    offset: int
    end: int
    is_placeholder: bool = False
    regex: Optional[Pattern] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class TemplateMismatch:
    """First place where content diverges from a template."""

    kind: str  # literal, placeholder
    offset: int
    line: int
    column: int
    segment_index: int
    expected: str
    actual: str

    @property
    def is_placeholder(self) -> bool:
        return self.kind == 'placeholder'

    def describe(self) -> str:
        """Human readable description of the divergence."""
        where = f"line {self.line}, column {self.column}"
        if self.is_placeholder:
            return f"{where}: {self.actual!r} does not match placeholder {format_placeholder(self.expected)}"
        return f"{where}: expected {self.expected!r} but found {self.actual!r}"


@dataclass(frozen=True)
class TemplateMatch:
    """Result of matching content against a template."""

    matched: bool
    mismatch: Optional[TemplateMismatch] = None

    def __bool__(self) -> bool:
        return self.matched


def _find_marker_end(text: str, start: int) -> Optional[int]:
    """Index of the "}}" closing a marker whose pattern starts at ``start``."""
    depth = 0
    i = start
    while i < len(text):
        char = text[i]
        if char == '\\':
            i += 2
            continue
        if char == '{':
            depth += 1
        elif char == '}':
            if depth:
                depth -= 1
            elif text.startswith(MARKER_CLOSE, i):
                return i
        i += 1
    return None


def _line_and_column(text: str, offset: int):
    line = text.count('\n', 0, offset) + 1
    column = offset - (text.rfind('\n', 0, offset) + 1) + 1
    return line, column


def parse_template(text: str) -> List[Segment]:
    """
    Split template text into literal and placeholder segments.

    Raises:
        TemplateSyntaxError: If a marker is unterminated or its pattern
            is not a valid regular expression
    """
    segments = []
    pos = 0

    while True:
        start = text.find(MARKER_OPEN, pos)
        if start < 0:
            break

        close = _find_marker_end(text, start + len(MARKER_OPEN))
        if close is None:
            line, column = _line_and_column(text, start)
            raise TemplateSyntaxError(f"Unterminated placeholder at line {line}, column {column}")

        pattern = text[start + len(MARKER_OPEN):close]
        try:
            regex = re.compile(pattern)
        except re.error as e:
            line, column = _line_and_column(text, start)
            raise TemplateSyntaxError(
                f"Invalid placeholder pattern {pattern!r} at line {line}, column {column}: {e}"
            ) from e

        if start > pos:
            segments.append(Segment(text[pos:start], pos, start))
        end = close + len(MARKER_CLOSE)
        segments.append(Segment(pattern, start, end, is_placeholder=True, regex=regex))
        pos = end

    if pos < len(text):
        segments.append(Segment(text[pos:], pos, len(text)))

    return segments


def _escape_trailing_brace(pieces: List[str]):
    """Replace a trailing lone "{" that would merge with the next marker's opening."""
    for index in range(len(pieces) - 1, -1, -1):
        if pieces[index]:
            if pieces[index].endswith('{'):
                pieces[index] = pieces[index][:-1] + format_placeholder(ESCAPED_BRACE_PATTERN)
            return


def _apply_rule(template: str, rule) -> str:
    spans = [(s.offset, s.end) for s in parse_template(template) if s.is_placeholder]
    pieces = []
    pos = 0

    for m in rule.regex.finditer(template):
        if any(m.start() < end and start < m.end() for start, end in spans):
            continue
        pieces.append(template[pos:m.start()])
        if not rule.prefix:
            _escape_trailing_brace(pieces)
        pieces.append(rule.placeholder)
        pos = m.end()

    pieces.append(template[pos:])
    return ''.join(pieces)


def generate(content: str, rules: Sequence) -> str:
    """
    Convert literal content into a template.

    Rules are applied in the given order. Each one rewrites every
    ``prefix + value + suffix`` occurrence to ``prefix + {{pattern}} + suffix``;
    occurrences overlapping a marker written earlier are left untouched.
    Literal braces that would read as marker syntax are stored as markers
    matching exactly those braces.

    Args:
        content: Literal artifact content
        rules: Ordered PlaceholderRule sequence

    Returns:
        Template text

    Raises:
        TemplateSyntaxError: If the resulting template does not parse
    """
    template = content.replace(MARKER_OPEN, format_placeholder(ESCAPED_OPEN_PATTERN))

    for rule in rules:
        template = _apply_rule(template, rule)

    parse_template(template)
    return template


def _common_prefix_length(content: str, pos: int, literal: str) -> int:
    length = 0
    limit = min(len(literal), len(content) - pos)
    while length < limit and content[pos + length] == literal[length]:
        length += 1
    return length


def _placeholder_end(segment: Segment, following: Optional[Segment], content: str, pos: int) -> Optional[int]:
    """End offset of the content region a placeholder covers, or None."""
    if following is None:
        return len(content) if segment.regex.fullmatch(content, pos) else None

    if following.is_placeholder:
        m = segment.regex.match(content, pos)
        return m.end() if m else None

    search = pos
    while True:
        index = content.find(following.text, search)
        if index < 0:
            return None
        if segment.regex.fullmatch(content, pos, index):
            return index
        search = index + 1


class Template:
    """
    Parsed template.

    Example:
        template = Template.from_file('regression/petstore/test-run.jtl.tpl')
        result = template.match(open('test-run.jtl').read())
    """

    def __init__(self, text: str, source: Optional[Path] = None):
        self.text = text
        self.source = source
        self.segments = parse_template(text)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'Template':
        path = Path(path)
        if not path.exists():
            raise MissingTemplateError(f"Template not found: {path}")
        return cls(_read_text(path), source=path)

    @property
    def placeholders(self) -> List[str]:
        return [s.text for s in self.segments if s.is_placeholder]

    def match(self, content: str) -> TemplateMatch:
        """
        Match content against this template.

        Content matches when it equals the template with every marker
        replaced by a string fully matching the marker's pattern.
        """
        pos = 0
        segments = self.segments

        for index, segment in enumerate(segments):
            if not segment.is_placeholder:
                if content.startswith(segment.text, pos):
                    pos += len(segment.text)
                    continue
                offset = pos + _common_prefix_length(content, pos, segment.text)
                return self._literal_mismatch(content, offset, index, segment.text[offset - pos:])

            following = segments[index + 1] if index + 1 < len(segments) else None
            end = _placeholder_end(segment, following, content, pos)
            if end is not None:
                pos = end
                continue

            actual = content[pos:pos + EXCERPT_LENGTH]
            if following is not None and not following.is_placeholder:
                delimiter = content.find(following.text, pos)
                m = segment.regex.match(content, pos)
                if delimiter >= 0:
                    actual = content[pos:min(delimiter, pos + EXCERPT_LENGTH)]
                elif m:
                    # Value is fine, the literal after it is missing
                    offset = m.end() + _common_prefix_length(content, m.end(), following.text)
                    expected = following.text[offset - m.end():]
                    return self._literal_mismatch(content, offset, index + 1, expected)

            line, column = _line_and_column(content, pos)
            return TemplateMatch(False, TemplateMismatch(
                kind='placeholder',
                offset=pos,
                line=line,
                column=column,
                segment_index=index,
                expected=segment.text,
                actual=actual
            ))

        if pos != len(content):
            return self._literal_mismatch(content, pos, len(segments), "")

        return TemplateMatch(True)

    @staticmethod
    def _literal_mismatch(content: str, offset: int, index: int, expected: str) -> TemplateMatch:
        line, column = _line_and_column(content, offset)
        return TemplateMatch(False, TemplateMismatch(
            kind='literal',
            offset=offset,
            line=line,
            column=column,
            segment_index=index,
            expected=expected[:EXCERPT_LENGTH] if expected else "<end of content>",
            actual=content[offset:offset + EXCERPT_LENGTH] or "<end of content>"
        ))


def match(content: str, template: Union[str, Template]) -> TemplateMatch:
    """Match content against template text or a parsed Template."""
    if not isinstance(template, Template):
        template = Template(template)
    return template.match(content)


def _read_text(path: Path) -> str:
    with open(path, 'r', encoding='utf-8', newline='') as f:
        return f.read()


def convert_file_to_template(artifact_path: Union[str, Path], template_path: Union[str, Path], rules: Sequence) -> Path:
    """
    Write the template of an artifact file.

    Returns:
        Path of the written template
    """
    template = generate(_read_text(Path(artifact_path)), rules)
    template_path = Path(template_path)
    template_path.parent.mkdir(parents=True, exist_ok=True)
    with open(template_path, 'w', encoding='utf-8', newline='') as f:
        f.write(template)
    return template_path


def assert_file_matches(artifact_path: Union[str, Path], template_path: Union[str, Path], artifact) -> None:
    """
    Check that an artifact file matches its template file.

    Args:
        artifact_path: Generated artifact
        template_path: Stored baseline template
        artifact: ArtifactKind, reported in the error

    Raises:
        MissingTemplateError: If the template file does not exist
        TemplateMismatchError: If the artifact diverges from the template
    """
    template = Template.from_file(template_path)
    result = template.match(_read_text(Path(artifact_path)))
    if not result:
        raise TemplateMismatchError(artifact, result.mismatch, path=str(artifact_path))
