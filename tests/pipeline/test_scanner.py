"""
Tests for the scanner: token stream, scalar styles, simple keys and the
nesting limits.

Run with: python3 -m pytest tests/pipeline/test_scanner.py -v
"""

import pytest

import yamlbind
from yamlbind.scanner import MAX_FLOW_LEVEL, MAX_INDENTS, ScannerError
from yamlbind.tokens import (
    AliasToken, AnchorToken, BlockEndToken, BlockEntryToken,
    BlockMappingStartToken, BlockSequenceStartToken, DirectiveToken,
    DocumentStartToken, FlowEntryToken, FlowMappingEndToken,
    FlowMappingStartToken, FlowSequenceEndToken, FlowSequenceStartToken,
    KeyToken, ScalarToken, StreamEndToken, StreamStartToken, TagToken,
    ValueToken,
)


def token_types(data):
    return [type(token) for token in yamlbind.scan(data)]


class TestTokenStream:
    """Token sequences for small documents."""

    def test_block_mapping(self):
        """A block mapping gets KEY and VALUE in front of its scalars."""
        assert token_types('a: 1') == [
            StreamStartToken, BlockMappingStartToken, KeyToken, ScalarToken,
            ValueToken, ScalarToken, BlockEndToken, StreamEndToken,
        ]

    def test_block_sequence(self):
        """Block entries at column 0 open a block sequence."""
        assert token_types('- a\n- b\n') == [
            StreamStartToken, BlockSequenceStartToken, BlockEntryToken,
            ScalarToken, BlockEntryToken, ScalarToken, BlockEndToken,
            StreamEndToken,
        ]

    def test_flow_sequence(self):
        """Flow sequences use FLOW-ENTRY separators."""
        assert token_types('[a, b]') == [
            StreamStartToken, FlowSequenceStartToken, ScalarToken,
            FlowEntryToken, ScalarToken, FlowSequenceEndToken, StreamEndToken,
        ]

    def test_flow_mapping(self):
        """Simple keys work inside flow mappings."""
        assert token_types('{a: 1}') == [
            StreamStartToken, FlowMappingStartToken, KeyToken, ScalarToken,
            ValueToken, ScalarToken, FlowMappingEndToken, StreamEndToken,
        ]

    def test_anchor_alias_tag(self):
        """Anchors, aliases and tags are separate tokens."""
        tokens = list(yamlbind.scan('- &x !!str a\n- *x\n'))
        anchors = [t for t in tokens if isinstance(t, AnchorToken)]
        aliases = [t for t in tokens if isinstance(t, AliasToken)]
        tags = [t for t in tokens if isinstance(t, TagToken)]
        assert [t.value for t in anchors] == ['x']
        assert [t.value for t in aliases] == ['x']
        assert [t.value for t in tags] == [('!!', 'str')]

    def test_directive_and_document_start(self):
        """%YAML directives carry the version as a tuple."""
        tokens = list(yamlbind.scan('%YAML 1.1\n--- a\n'))
        assert isinstance(tokens[1], DirectiveToken)
        assert tokens[1].name == 'YAML'
        assert tokens[1].value == (1, 1)
        assert isinstance(tokens[2], DocumentStartToken)

    def test_comments_skipped(self):
        """Comments never produce tokens."""
        assert token_types('# head\na: 1 # tail\n') == token_types('a: 1')

    def test_token_marks(self):
        """Marks are zero-based line and column."""
        tokens = list(yamlbind.scan('a:\n  b: c\n'))
        scalars = [t for t in tokens if isinstance(t, ScalarToken)]
        assert [(t.start_mark.line, t.start_mark.column) for t in scalars] == [
            (0, 0), (1, 2), (1, 5)]


class TestScalars:
    """Scalar styles and their values."""

    def test_plain_flag(self):
        """Only plain scalars are marked plain."""
        tokens = [t for t in yamlbind.scan('[a, "b", \'c\']') if isinstance(t, ScalarToken)]
        assert [(t.value, t.plain, t.style) for t in tokens] == [
            ('a', True, None), ('b', False, '"'), ('c', False, "'")]

    def test_single_quoted_escape(self):
        """A doubled quote is a literal quote."""
        assert yamlbind.unmarshal("'it''s'") == "it's"

    def test_double_quoted_escapes(self):
        """Backslash escapes in double quotes."""
        assert yamlbind.unmarshal(r'"a\tb\x41\u00e9\U0001F600\n"') == 'a\tbA\u00e9\U0001F600\n'

    def test_named_break_escapes(self):
        """\\N, \\_, \\L and \\P name Unicode breaks and spaces."""
        assert yamlbind.unmarshal(r'"a\Nb\_c\Ld\Pe"') == 'a\x85b\xa0c\u2028d\u2029e'

    def test_escaped_line_break(self):
        """A backslash before a line break joins the lines."""
        assert yamlbind.unmarshal('a: "one\\\n   two"') == {'a': 'onetwo'}

    def test_unknown_escape(self):
        """Unknown escapes are rejected."""
        with pytest.raises(ScannerError) as excinfo:
            yamlbind.unmarshal(r'"\q"')
        assert excinfo.value.problem == 'found unknown escape character'

    def test_quoted_line_folding(self):
        """Line breaks inside quotes fold to spaces."""
        assert yamlbind.unmarshal('"a\n  b\n\n  c"') == 'a b\nc'

    def test_multi_line_plain(self):
        """Plain scalars continue on more indented lines."""
        assert yamlbind.unmarshal('a: one\n  two\n') == {'a': 'one two'}

    def test_literal_clip(self):
        """A literal block keeps one final newline by default."""
        assert yamlbind.unmarshal('a: |\n  x\n  y\n\n') == {'a': 'x\ny\n'}

    def test_literal_strip(self):
        """'-' drops the final newlines."""
        assert yamlbind.unmarshal('a: |-\n  x\n  y\n\n') == {'a': 'x\ny'}

    def test_literal_keep(self):
        """'+' keeps all final newlines."""
        assert yamlbind.unmarshal('a: |+\n  x\n  y\n\n') == {'a': 'x\ny\n\n'}

    def test_folded(self):
        """Folded blocks join lines, empty lines become newlines."""
        assert yamlbind.unmarshal('a: >\n  x\n  y\n\n  z\n') == {'a': 'x y\nz\n'}

    def test_indentation_indicator(self):
        """An explicit indentation keeps extra leading spaces."""
        assert yamlbind.unmarshal('a: |2\n   x\n') == {'a': ' x\n'}

    def test_zero_indentation_indicator(self):
        """An indentation indicator of 0 is an error."""
        with pytest.raises(ScannerError) as excinfo:
            yamlbind.unmarshal('a: |0\n  x\n')
        assert excinfo.value.problem == 'found an indentation indicator equal to 0'


class TestScannerErrors:
    """Malformed input found while scanning."""

    def test_invalid_start_character(self):
        """'@' cannot start a token."""
        with pytest.raises(ScannerError) as excinfo:
            yamlbind.unmarshal('a: @b')
        assert excinfo.value.problem == 'found character that cannot start any token'
        assert excinfo.value.summary() == \
            'yaml: line 1: found character that cannot start any token'

    def test_missing_colon(self):
        """A required simple key without ':' is reported."""
        with pytest.raises(ScannerError) as excinfo:
            yamlbind.unmarshal('a: 1\nb\n')
        assert excinfo.value.problem == "could not find expected ':'"
        assert excinfo.value.context == 'while scanning a simple key'

    def test_simple_key_too_long(self):
        """A key longer than 1024 characters is not a simple key."""
        with pytest.raises(ScannerError) as excinfo:
            yamlbind.unmarshal('a' * 1100 + ': 1')
        assert excinfo.value.problem == 'mapping values are not allowed in this context'

    def test_unterminated_quote(self):
        """End of stream inside quotes."""
        with pytest.raises(ScannerError) as excinfo:
            yamlbind.unmarshal('"abc')
        assert excinfo.value.problem == 'found unexpected end of stream'

    def test_error_message_has_snippet(self):
        """The full message points at the offending column."""
        with pytest.raises(ScannerError) as excinfo:
            yamlbind.unmarshal('key: @oops', name='conf.yaml')
        message = str(excinfo.value)
        assert 'in "conf.yaml", line 1, column 6' in message
        assert 'key: @oops' in message


class TestDepthLimits:
    """Flow and block nesting is bounded."""

    def test_flow_depth_limit(self):
        """More than 10000 open brackets are rejected."""
        assert MAX_FLOW_LEVEL == 10000
        with pytest.raises(ScannerError) as excinfo:
            yamlbind.compose('[' * (MAX_FLOW_LEVEL + 1))
        assert excinfo.value.problem == 'exceeded max depth of 10000'

    def test_block_depth_limit(self):
        """More than 10000 nested block entries are rejected."""
        assert MAX_INDENTS == 10000
        with pytest.raises(ScannerError) as excinfo:
            yamlbind.compose('- ' * (MAX_INDENTS + 1) + 'x')
        assert excinfo.value.problem == 'exceeded max depth of 10000'

    def test_moderate_nesting(self):
        """Reasonable nesting decodes normally."""
        value = yamlbind.unmarshal('[' * 50 + 'x' + ']' * 50)
        for _ in range(50):
            assert isinstance(value, list) and len(value) == 1
            value = value[0]
        assert value == 'x'
