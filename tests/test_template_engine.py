"""
Tests for ReplayGuard Template Engine

Tests template generation and matching including:
- Canonical rule sets on plan and result-log content
- Round trip of generated templates
- Placeholder substitution and mismatch locations
- Rule ordering and non-interference
- Template syntax errors
"""

import pytest

from replayguard.common.errors import MissingTemplateError, TemplateMismatchError, TemplateSyntaxError
from replayguard.template import (
    ArtifactKind,
    PLAN_RULES,
    RESULT_LOG_RULES,
    Template,
    assert_file_matches,
    convert_file_to_template,
    generate,
    match,
    parse_template,
    replacement,
)


UUID_MARKER = r"{{\w+-\w+-\w+-\w+-\w+}}"

SAMPLE_PLAN = """<?xml version='1.0' encoding='utf-8'?>
<testPlan testname="Recorded Plan">
  <threadGroup testname="Thread Group" threads="1" loops="1">
    <httpSampler testname="12 /users/123" method="GET" url="http://127.0.0.1:8089/users/123">
      <header name="accept">application/json</header>
      <body />
      <stringProp name="cacheKey">3fa85f64-5717-4562-b3fc-2c963f66afa6</stringProp>
    </httpSampler>
    <httpSampler testname="13 /users" method="POST" url="http://127.0.0.1:8089/users">
      <header name="content-type">application/json</header>
      <body>{"name": "{{user}}"}</body>
      <stringProp name="cacheKey">9b2e1c4d-0a1b-4c2d-8e3f-112233445566</stringProp>
    </httpSampler>
  </threadGroup>
</testPlan>
"""

SAMPLE_SAMPLE_LINE = (
    '<httpSample t="452" it="0" lt="10" ct="5" ts="1620000000000" s="true" lb="1 /users" '
    'rc="200" rm="OK" tn="Thread Group 1-1" dt="text" by="31" sby="0" ng="1" na="1" hn="buildhost">'
)

SAMPLE_RESULT_LOG = f"""<?xml version="1.0" encoding="UTF-8"?>
<testResults version="1.2">
{SAMPLE_SAMPLE_LINE}
  <responseHeader>HTTP/1.1 200 OK
Content-Type: application/json
Matched-Stub-Id: 1d3c5e7f-aaaa-bbbb-cccc-0123456789ab
</responseHeader>
  <requestHeader>Accept: application/json
</requestHeader>
  <responseData>{{"id": 123, "session": "SWETS=1620000000123"}}</responseData>
  <method>GET</method>
  <url>http://127.0.0.1:8089/users</url>
</httpSample>
</testResults>
"""


class TestGenerate:
    """Test template generation."""

    def test_plan_cache_key_becomes_uuid_placeholder(self):
        """Test a UUID after the cacheKey label is replaced by the UUID pattern."""
        content = '<stringProp name="cacheKey">3fa85f64-5717-4562-b3fc-2c963f66afa6</stringProp>'

        template = generate(content, PLAN_RULES)

        assert 'cacheKey">' + UUID_MARKER + '<' in template
        assert template == '<stringProp name="cacheKey">' + UUID_MARKER + '</stringProp>'

    def test_plan_sampler_number_becomes_digit_placeholder(self):
        """Test the numeric prefix of sampler names is replaced."""
        template = generate(SAMPLE_PLAN, PLAN_RULES)

        assert r'testname="{{\d+}} /users/123"' in template
        assert r'testname="{{\d+}} /users"' in template
        # Names without a numeric prefix stay literal
        assert 'testname="Thread Group"' in template
        assert '3fa85f64' not in template

    def test_result_log_numeric_attributes(self):
        """Test each numeric attribute of a sample line becomes a digit placeholder."""
        template = generate(SAMPLE_SAMPLE_LINE, RESULT_LOG_RULES)

        assert template == (
            r'<httpSample t="{{\d+}}" it="0" lt="{{\d+}}" ct="{{\d+}}" ts="{{\d+}}" s="true" lb="{{\d+}} /users" '
            r'rc="200" rm="OK" tn="Thread Group 1-1" dt="text" by="31" sby="0" ng="1" na="1" hn="{{.*?}}">'
        )

    def test_result_log_header_and_swets(self):
        """Test stub id header and SWETS values are replaced."""
        template = generate(SAMPLE_RESULT_LOG, RESULT_LOG_RULES)

        assert 'Matched-Stub-Id: ' + UUID_MARKER + '\n' in template
        assert r'SWETS={{\d+}}"' in template

    def test_literal_braces_are_escaped(self):
        """Test literal '{{' in content does not turn into a placeholder."""
        template = generate('body {{user}} end', [])

        assert template == r'body {{\{\{}}user}} end'
        assert match('body {{user}} end', template)
        assert not match('body XXuser}} end', template)

    def test_brace_before_empty_prefix_marker_is_escaped(self):
        """Test a lone '{' right before a marker does not open it early."""
        rule = replacement('', r'\d+', '')

        template = generate('{12', [rule])

        assert template == r'{{\{}}{{\d+}}'
        assert match('{12', template)
        assert match('{7', template)
        assert not match('12', template)

    def test_empty_prefix_rule_on_json_content(self):
        """Test JSON-like content round trips through an empty-prefix rule."""
        content = '{"a": {12}, "b": [{3}], "c": {{4}}}'

        template = generate(content, [replacement('', r'\d+', '')])

        assert match(content, template)
        assert match('{"a": {99}, "b": [{0}], "c": {{123}}}', template)
        assert not match('{"a": {x}, "b": [{0}], "c": {{1}}}', template)

    def test_rules_apply_in_order_without_rewriting_markers(self):
        """Test a later rule leaves markers written by an earlier rule alone."""
        rules = [
            replacement('v=', r'\d+', ';'),
            replacement('v=', '.*?', ';'),
        ]

        assert generate('v=12;', rules) == r'v={{\d+}};'
        assert generate('v=ab;', rules) == r'v={{.*?}};'

    def test_rule_order_matters_for_overlapping_rules(self):
        """Test overlapping rules give different templates depending on order."""
        content = 'v=12;'
        numeric_first = generate(content, [replacement('v=', r'\d+', ';'), replacement('v=', r'\w+', ';')])
        word_first = generate(content, [replacement('v=', r'\w+', ';'), replacement('v=', r'\d+', ';')])

        assert numeric_first == r'v={{\d+}};'
        assert word_first == r'v={{\w+}};'

    def test_non_interference_of_disjoint_rules(self):
        """Test two rules with disjoint delimiters both apply and keep their surroundings."""
        content = '<a id=abc-1 num=42; tail>'
        rules = [
            replacement('id=', r'\w+-\d', ' '),
            replacement('num=', r'\d+', ';'),
        ]

        template = generate(content, rules)

        assert template == r'<a id={{\w+-\d}} num={{\d+}}; tail>'
        assert match('<a id=xyz-7 num=9; tail>', template)

    def test_no_occurrence_leaves_content_unchanged(self):
        """Test content without volatile regions is its own template."""
        content = '<testResults version="1.2">\n</testResults>\n'

        assert generate(content, RESULT_LOG_RULES) == content


class TestRoundTrip:
    """Test templates always match the content they were generated from."""

    @pytest.mark.parametrize('content, kind', [
        (SAMPLE_PLAN, ArtifactKind.PLAN),
        (SAMPLE_RESULT_LOG, ArtifactKind.RESULT_LOG),
        ('', ArtifactKind.PLAN),
        ('{{{{ }} {{', ArtifactKind.RESULT_LOG),
    ])
    def test_round_trip(self, content, kind):
        """Test match(A, generate(A, R)) holds for canonical rule sets."""
        assert match(content, generate(content, kind.rules))

    def test_later_run_with_new_values_matches(self):
        """Test a later run differing only in volatile values matches."""
        template = generate(SAMPLE_SAMPLE_LINE, RESULT_LOG_RULES)
        later = (
            '<httpSample t="17" it="0" lt="3" ct="0" ts="1700000000001" s="true" lb="7 /users" '
            'rc="200" rm="OK" tn="Thread Group 1-1" dt="text" by="31" sby="0" ng="1" na="1" hn="other-host.local">'
        )

        assert match(later, template)

    def test_later_plan_with_new_values_matches(self):
        """Test a plan with other sampler numbers and cache keys matches."""
        template = generate(SAMPLE_PLAN, PLAN_RULES)
        later = (SAMPLE_PLAN
                 .replace('testname="12 ', 'testname="40 ')
                 .replace('testname="13 ', 'testname="41 ')
                 .replace('3fa85f64-5717-4562-b3fc-2c963f66afa6', '00000000-1111-2222-3333-444444444444'))

        assert match(later, template)


class TestMatch:
    """Test matching and mismatch reporting."""

    def test_placeholder_accepts_any_matching_value(self):
        """Test substituting any string matching the pattern succeeds."""
        template = '<stringProp name="cacheKey">' + UUID_MARKER + '</stringProp>'

        for value in ['ffffffff-0000-1111-2222-333333333333', 'a-b-c-d-e']:
            assert match(f'<stringProp name="cacheKey">{value}</stringProp>', template)

    def test_placeholder_rejects_non_matching_value(self):
        """Test a value not matching the pattern fails at the marker."""
        template = '<stringProp name="cacheKey">' + UUID_MARKER + '</stringProp>'
        content = '<stringProp name="cacheKey">not a uuid</stringProp>'

        result = match(content, template)

        assert not result
        assert result.mismatch.kind == 'placeholder'
        assert result.mismatch.offset == len('<stringProp name="cacheKey">')
        assert result.mismatch.expected == r'\w+-\w+-\w+-\w+-\w+'
        assert result.mismatch.actual == 'not a uuid'

    def test_placeholder_cannot_consume_literal_text(self):
        """Test a pattern never swallows the fixed text around it."""
        template = r'a="{{.*}}" b="x"'

        assert match('a="anything" b="x"', template)
        assert not match('a="anything" b="y"', template)

    def test_literal_mismatch_location(self):
        """Test a literal divergence is reported where it happens."""
        result = match('a="1" b="y"', r'a="{{\d+}}" b="x"')

        assert not result
        assert result.mismatch.kind == 'literal'
        assert result.mismatch.offset == 9
        assert result.mismatch.expected.startswith('x')
        assert result.mismatch.actual.startswith('y')

    def test_mismatch_line_and_column(self):
        """Test mismatch reports line and column of the content."""
        template = 'first line\nsecond {{\\d+}} line\nthird'
        content = 'first line\nsecond 42 line\nTHIRD'

        result = match(content, template)

        assert result.mismatch.line == 3
        assert result.mismatch.column == 1
        assert 'line 3, column 1' in result.mismatch.describe()

    def test_trailing_content_is_a_mismatch(self):
        """Test content longer than the template does not match."""
        result = match('abcX', 'abc')

        assert not result
        assert result.mismatch.offset == 3
        assert result.mismatch.expected == '<end of content>'

    def test_missing_content_is_a_mismatch(self):
        """Test content shorter than the template does not match."""
        result = match('ab', 'abc')

        assert not result
        assert result.mismatch.offset == 2
        assert result.mismatch.actual == '<end of content>'

    def test_trailing_placeholder_must_match_rest(self):
        """Test a placeholder at the end covers the remaining content."""
        assert match('Matched-Stub-Id: a-b-c-d-e', 'Matched-Stub-Id: ' + UUID_MARKER)
        assert not match('Matched-Stub-Id: a-b-c-d-e!', 'Matched-Stub-Id: ' + UUID_MARKER)

    def test_adjacent_placeholders(self):
        """Test two markers without literal text in between."""
        assert match('123abc', r'{{\d+}}{{[a-z]+}}')
        assert not match('123ABC', r'{{\d+}}{{[a-z]+}}')

    def test_repeated_delimiters_use_first_viable_end(self):
        """Test the placeholder ends at the first delimiter its pattern accepts."""
        template = r'<x t="{{\d+}}" t="5">'

        assert match('<x t="12" t="5">', template)
        assert not match('<x t="12" t="6">', template)


class TestTemplateSyntax:
    """Test template parsing."""

    def test_parse_segments(self):
        """Test parsing a template into literal and placeholder segments."""
        segments = parse_template(r'a{{\d+}}b')

        assert [(s.is_placeholder, s.text) for s in segments] == [(False, 'a'), (True, r'\d+'), (False, 'b')]
        assert segments[1].offset == 1
        assert segments[1].end == 8

    def test_quantifier_braces_inside_marker(self):
        """Test regex braces do not close the marker early."""
        segments = parse_template(r'{{\d{3}}}-x')

        assert segments[0].text == r'\d{3}'
        assert match('123-x', r'{{\d{3}}}-x')
        assert not match('12-x', r'{{\d{3}}}-x')

    def test_unterminated_marker(self):
        """Test an unterminated marker raises TemplateSyntaxError."""
        with pytest.raises(TemplateSyntaxError, match='Unterminated'):
            parse_template('abc {{\\d+')

    def test_invalid_marker_pattern(self):
        """Test an invalid regex in a marker raises TemplateSyntaxError."""
        with pytest.raises(TemplateSyntaxError, match='Invalid placeholder pattern'):
            Template('abc {{(}} def')


class TestTemplateFiles:
    """Test file based helpers."""

    def test_convert_and_assert(self, tmp_path):
        """Test converting an artifact file and matching it again."""
        artifact = tmp_path / 'test-run.jtl'
        artifact.write_text(SAMPLE_RESULT_LOG, encoding='utf-8')
        template_path = tmp_path / 'baseline' / 'test-run.jtl.tpl'

        convert_file_to_template(artifact, template_path, RESULT_LOG_RULES)

        assert template_path.exists()
        assert_file_matches(artifact, template_path, ArtifactKind.RESULT_LOG)

    def test_assert_reports_artifact_kind(self, tmp_path):
        """Test a mismatch names the artifact that diverged."""
        artifact = tmp_path / 'recorded.xml'
        artifact.write_text('<testPlan testname="other"/>', encoding='utf-8')
        template_path = tmp_path / 'recorded.xml.tpl'
        template_path.write_text('<testPlan testname="Recorded Plan"/>', encoding='utf-8')

        with pytest.raises(TemplateMismatchError) as exc_info:
            assert_file_matches(artifact, template_path, ArtifactKind.PLAN)

        assert exc_info.value.artifact is ArtifactKind.PLAN
        assert exc_info.value.mismatch.kind == 'literal'
        assert 'Recorded plan' in str(exc_info.value)

    def test_missing_template(self, tmp_path):
        """Test a missing template file raises MissingTemplateError."""
        artifact = tmp_path / 'recorded.xml'
        artifact.write_text('x', encoding='utf-8')

        with pytest.raises(MissingTemplateError):
            assert_file_matches(artifact, tmp_path / 'absent.tpl', ArtifactKind.PLAN)

    def test_line_endings_are_preserved(self, tmp_path):
        """Test CRLF content is compared byte for byte."""
        artifact = tmp_path / 'a.txt'
        artifact.write_bytes(b'line 1\r\nline 2\r\n')
        template_path = tmp_path / 'a.tpl'
        template_path.write_bytes(b'line 1\nline 2\n')

        with pytest.raises(TemplateMismatchError):
            assert_file_matches(artifact, template_path, ArtifactKind.RESULT_LOG)
