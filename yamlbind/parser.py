"""YAML 1.1 event parser.

The parser is a pull-based state machine: every call to ``get_event`` runs the
handler for the current state, which consumes tokens, emits exactly one event
and picks the next state. Nested collections push their return state on
``self.states`` and their start mark on ``self.marks`` (used for error
context only).

The grammar handled here::

    stream            ::= STREAM-START implicit_document? explicit_document* STREAM-END
    implicit_document ::= block_node DOCUMENT-END*
    explicit_document ::= DIRECTIVE* DOCUMENT-START block_node? DOCUMENT-END*
    block_node_or_indentless_sequence ::=
                          ALIAS
                          | properties (block_content | indentless_block_sequence)?
                          | block_content
                          | indentless_block_sequence
    block_node        ::= ALIAS
                          | properties block_content?
                          | block_content
    flow_node         ::= ALIAS
                          | properties flow_content?
                          | flow_content
    properties        ::= TAG ANCHOR? | ANCHOR TAG?
    block_content     ::= block_collection | flow_collection | SCALAR
    flow_content      ::= flow_collection | SCALAR
    block_collection  ::= block_sequence | block_mapping
    flow_collection   ::= flow_sequence | flow_mapping
    block_sequence    ::= BLOCK-SEQUENCE-START (BLOCK-ENTRY block_node?)* BLOCK-END
    indentless_sequence   ::= (BLOCK-ENTRY block_node?)+
    block_mapping     ::= BLOCK-MAPPING_START
                          ((KEY block_node_or_indentless_sequence?)?
                          (VALUE block_node_or_indentless_sequence?)?)*
                          BLOCK-END
    flow_sequence     ::= FLOW-SEQUENCE-START
                          (flow_sequence_entry FLOW-ENTRY)*
                          flow_sequence_entry?
                          FLOW-SEQUENCE-END
    flow_sequence_entry   ::= flow_node | KEY flow_node? (VALUE flow_node?)?
    flow_mapping      ::= FLOW-MAPPING-START
                          (flow_mapping_entry FLOW-ENTRY)*
                          flow_mapping_entry?
                          FLOW-MAPPING-END
    flow_mapping_entry    ::= flow_node | KEY flow_node? (VALUE flow_node?)?
"""

import enum

from .error import MarkedYAMLError
from .events import (
    AliasEvent, DocumentEndEvent, DocumentStartEvent, MappingEndEvent,
    MappingStartEvent, ScalarEvent, SequenceEndEvent, SequenceStartEvent,
    StreamEndEvent, StreamStartEvent,
)
from .tokens import (
    AliasToken, AnchorToken, BlockEndToken, BlockEntryToken,
    BlockMappingStartToken, BlockSequenceStartToken, DirectiveToken,
    DocumentEndToken, DocumentStartToken, FlowEntryToken,
    FlowMappingEndToken, FlowMappingStartToken, FlowSequenceEndToken,
    FlowSequenceStartToken, KeyToken, ScalarToken, StreamEndToken,
    StreamStartToken, TagToken, ValueToken,
)

__all__ = ['Parser', 'ParserError', 'ParserState', 'DEFAULT_TAGS']

DEFAULT_TAGS = {
    '!': '!',
    '!!': 'tag:yaml.org,2002:',
}


class ParserError(MarkedYAMLError):
    """YAML parser error (grammar phase)."""
    pass


class ParserState(enum.Enum):
    STREAM_START = enum.auto()
    IMPLICIT_DOCUMENT_START = enum.auto()
    DOCUMENT_START = enum.auto()
    DOCUMENT_CONTENT = enum.auto()
    DOCUMENT_END = enum.auto()
    BLOCK_NODE = enum.auto()
    BLOCK_NODE_OR_INDENTLESS_SEQUENCE = enum.auto()
    FLOW_NODE = enum.auto()
    BLOCK_SEQUENCE_FIRST_ENTRY = enum.auto()
    BLOCK_SEQUENCE_ENTRY = enum.auto()
    INDENTLESS_SEQUENCE_ENTRY = enum.auto()
    BLOCK_MAPPING_FIRST_KEY = enum.auto()
    BLOCK_MAPPING_KEY = enum.auto()
    BLOCK_MAPPING_VALUE = enum.auto()
    FLOW_SEQUENCE_FIRST_ENTRY = enum.auto()
    FLOW_SEQUENCE_ENTRY = enum.auto()
    FLOW_SEQUENCE_ENTRY_MAPPING_KEY = enum.auto()
    FLOW_SEQUENCE_ENTRY_MAPPING_VALUE = enum.auto()
    FLOW_SEQUENCE_ENTRY_MAPPING_END = enum.auto()
    FLOW_MAPPING_FIRST_KEY = enum.auto()
    FLOW_MAPPING_KEY = enum.auto()
    FLOW_MAPPING_VALUE = enum.auto()
    FLOW_MAPPING_EMPTY_VALUE = enum.auto()
    END = enum.auto()


class Parser:
    """YAML parser - converts the token stream into events.

    Expects a Scanner mixed into the same object, providing
    check_token/peek_token/get_token.
    """

    def __init__(self):
        self.current_event = None
        self.yaml_version = None
        self.tag_handles = {}
        self.states = []
        self.marks = []
        self.state = ParserState.STREAM_START
        self.handlers = {
            ParserState.STREAM_START: self.parse_stream_start,
            ParserState.IMPLICIT_DOCUMENT_START: self.parse_implicit_document_start,
            ParserState.DOCUMENT_START: self.parse_document_start,
            ParserState.DOCUMENT_CONTENT: self.parse_document_content,
            ParserState.DOCUMENT_END: self.parse_document_end,
            ParserState.BLOCK_NODE: self.parse_block_node,
            ParserState.BLOCK_NODE_OR_INDENTLESS_SEQUENCE:
                self.parse_block_node_or_indentless_sequence,
            ParserState.FLOW_NODE: self.parse_flow_node,
            ParserState.BLOCK_SEQUENCE_FIRST_ENTRY: self.parse_block_sequence_first_entry,
            ParserState.BLOCK_SEQUENCE_ENTRY: self.parse_block_sequence_entry,
            ParserState.INDENTLESS_SEQUENCE_ENTRY: self.parse_indentless_sequence_entry,
            ParserState.BLOCK_MAPPING_FIRST_KEY: self.parse_block_mapping_first_key,
            ParserState.BLOCK_MAPPING_KEY: self.parse_block_mapping_key,
            ParserState.BLOCK_MAPPING_VALUE: self.parse_block_mapping_value,
            ParserState.FLOW_SEQUENCE_FIRST_ENTRY: self.parse_flow_sequence_first_entry,
            ParserState.FLOW_SEQUENCE_ENTRY: self.parse_flow_sequence_entry,
            ParserState.FLOW_SEQUENCE_ENTRY_MAPPING_KEY:
                self.parse_flow_sequence_entry_mapping_key,
            ParserState.FLOW_SEQUENCE_ENTRY_MAPPING_VALUE:
                self.parse_flow_sequence_entry_mapping_value,
            ParserState.FLOW_SEQUENCE_ENTRY_MAPPING_END:
                self.parse_flow_sequence_entry_mapping_end,
            ParserState.FLOW_MAPPING_FIRST_KEY: self.parse_flow_mapping_first_key,
            ParserState.FLOW_MAPPING_KEY: self.parse_flow_mapping_key,
            ParserState.FLOW_MAPPING_VALUE: self.parse_flow_mapping_value,
            ParserState.FLOW_MAPPING_EMPTY_VALUE: self.parse_flow_mapping_empty_value,
        }

    def dispose(self):
        # Reset the state attributes (to clear self-references)
        self.states = []
        self.marks = []
        self.state = ParserState.END

    def check_event(self, *choices):
        # Check the type of the next event.
        if self.current_event is None:
            if self.state is not ParserState.END:
                self.current_event = self.handlers[self.state]()
        if self.current_event is not None:
            if not choices:
                return True
            for choice in choices:
                if isinstance(self.current_event, choice):
                    return True
        return False

    def peek_event(self):
        # Get the next event.
        if self.current_event is None:
            if self.state is not ParserState.END:
                self.current_event = self.handlers[self.state]()
        return self.current_event

    def get_event(self):
        # Get the next event and proceed further.
        if self.current_event is None:
            if self.state is not ParserState.END:
                self.current_event = self.handlers[self.state]()
        value = self.current_event
        self.current_event = None
        return value

    def pop_state(self):
        self.state = self.states.pop()

    # stream    ::= STREAM-START implicit_document? explicit_document* STREAM-END
    # implicit_document ::= block_node DOCUMENT-END*
    # explicit_document ::= DIRECTIVE* DOCUMENT-START block_node? DOCUMENT-END*

    def parse_stream_start(self):
        token = self.peek_token()
        if not isinstance(token, StreamStartToken):
            raise ParserError(None, None,
                              "did not find expected <stream-start>", token.start_mark)
        self.get_token()
        self.state = ParserState.IMPLICIT_DOCUMENT_START
        return StreamStartEvent(token.start_mark, token.end_mark,
                                encoding=token.encoding)

    def parse_implicit_document_start(self):
        # Parse an implicit document.
        if not self.check_token(DirectiveToken, DocumentStartToken, StreamEndToken):
            token = self.peek_token()
            self.process_directives()
            self.states.append(ParserState.DOCUMENT_END)
            self.state = ParserState.BLOCK_NODE
            return DocumentStartEvent(token.start_mark, token.end_mark,
                                      explicit=False)
        return self.parse_document_start()

    def parse_document_start(self):
        # Parse any extra document end indicators.
        while self.check_token(DocumentEndToken):
            self.get_token()

        if self.check_token(StreamEndToken):
            token = self.get_token()
            self.state = ParserState.END
            return StreamEndEvent(token.start_mark, token.end_mark)

        # Parse an explicit document.
        token = self.peek_token()
        start_mark = token.start_mark
        version, tags = self.process_directives()
        if not self.check_token(DocumentStartToken):
            raise ParserError(None, None,
                              "did not find expected <document start>",
                              self.peek_token().start_mark)
        token = self.get_token()
        self.states.append(ParserState.DOCUMENT_END)
        self.state = ParserState.DOCUMENT_CONTENT
        return DocumentStartEvent(start_mark, token.end_mark,
                                  explicit=True, version=version, tags=tags)

    def parse_document_content(self):
        if self.check_token(DirectiveToken, DocumentStartToken,
                            DocumentEndToken, StreamEndToken):
            self.pop_state()
            return self.process_empty_scalar(self.peek_token().start_mark)
        return self.parse_block_node()

    def parse_document_end(self):
        # Parse the document end.
        token = self.peek_token()
        start_mark = end_mark = token.start_mark
        explicit = False
        if self.check_token(DocumentEndToken):
            token = self.get_token()
            end_mark = token.end_mark
            explicit = True
        # Tag directives are scoped to one document.
        self.tag_handles = {}
        self.state = ParserState.DOCUMENT_START
        return DocumentEndEvent(start_mark, end_mark, explicit=explicit)

    def process_directives(self):
        version = None
        tags = {}
        while self.check_token(DirectiveToken):
            token = self.get_token()
            if token.name == 'YAML':
                if version is not None:
                    raise ParserError(None, None,
                                      "found duplicate %YAML directive", token.start_mark)
                if token.value != (1, 1):
                    raise ParserError(None, None,
                                      "found incompatible YAML document", token.start_mark)
                version = token.value
            elif token.name == 'TAG':
                handle, prefix = token.value
                if handle in self.tag_handles:
                    raise ParserError(None, None,
                                      "found duplicate %TAG directive", token.start_mark)
                self.tag_handles[handle] = prefix
                tags[handle] = prefix
        for handle, prefix in DEFAULT_TAGS.items():
            self.tag_handles.setdefault(handle, prefix)
        self.yaml_version = version
        return version, tags

    # block_node_or_indentless_sequence ::= ALIAS
    #               | properties (block_content | indentless_block_sequence)?
    #               | block_content
    #               | indentless_block_sequence
    # block_node    ::= ALIAS
    #                   | properties block_content?
    #                   | block_content
    # flow_node     ::= ALIAS
    #                   | properties flow_content?
    #                   | flow_content
    # properties    ::= TAG ANCHOR? | ANCHOR TAG?
    # block_content     ::= block_collection | flow_collection | SCALAR
    # flow_content      ::= flow_collection | SCALAR
    # block_collection  ::= block_sequence | block_mapping
    # flow_collection   ::= flow_sequence | flow_mapping

    def parse_block_node(self):
        return self.parse_node(block=True)

    def parse_flow_node(self):
        return self.parse_node()

    def parse_block_node_or_indentless_sequence(self):
        return self.parse_node(block=True, indentless_sequence=True)

    def parse_node(self, block=False, indentless_sequence=False):
        if self.check_token(AliasToken):
            token = self.get_token()
            self.pop_state()
            return AliasEvent(token.value, token.start_mark, token.end_mark)

        anchor = None
        tag = None
        start_mark = end_mark = tag_mark = None
        if self.check_token(AnchorToken):
            token = self.get_token()
            start_mark = token.start_mark
            end_mark = token.end_mark
            anchor = token.value
            if self.check_token(TagToken):
                token = self.get_token()
                tag_mark = token.start_mark
                end_mark = token.end_mark
                tag = token.value
        elif self.check_token(TagToken):
            token = self.get_token()
            start_mark = tag_mark = token.start_mark
            end_mark = token.end_mark
            tag = token.value
            if self.check_token(AnchorToken):
                token = self.get_token()
                end_mark = token.end_mark
                anchor = token.value

        if tag is not None:
            handle, suffix = tag
            if handle:
                if handle not in self.tag_handles:
                    raise ParserError("while parsing a node", start_mark,
                                      "found undefined tag handle", tag_mark)
                tag = self.tag_handles[handle] + suffix
            else:
                tag = suffix

        if start_mark is None:
            start_mark = end_mark = self.peek_token().start_mark
        implicit = not tag

        if indentless_sequence and self.check_token(BlockEntryToken):
            end_mark = self.peek_token().end_mark
            self.state = ParserState.INDENTLESS_SEQUENCE_ENTRY
            return SequenceStartEvent(anchor, tag, implicit, start_mark, end_mark,
                                      flow_style=False)

        if self.check_token(ScalarToken):
            token = self.get_token()
            end_mark = token.end_mark
            # A plain untagged scalar, or one tagged with the non-specific
            # '!', gets its tag from the resolver.
            implicit = (not tag and token.plain) or tag == '!'
            self.pop_state()
            return ScalarEvent(anchor, tag, implicit, token.value,
                               start_mark, end_mark, style=token.style)

        if self.check_token(FlowSequenceStartToken):
            end_mark = self.peek_token().end_mark
            self.state = ParserState.FLOW_SEQUENCE_FIRST_ENTRY
            return SequenceStartEvent(anchor, tag, implicit, start_mark, end_mark,
                                      flow_style=True)

        if self.check_token(FlowMappingStartToken):
            end_mark = self.peek_token().end_mark
            self.state = ParserState.FLOW_MAPPING_FIRST_KEY
            return MappingStartEvent(anchor, tag, implicit, start_mark, end_mark,
                                     flow_style=True)

        if block and self.check_token(BlockSequenceStartToken):
            end_mark = self.peek_token().end_mark
            self.state = ParserState.BLOCK_SEQUENCE_FIRST_ENTRY
            return SequenceStartEvent(anchor, tag, implicit, start_mark, end_mark,
                                      flow_style=False)

        if block and self.check_token(BlockMappingStartToken):
            end_mark = self.peek_token().end_mark
            self.state = ParserState.BLOCK_MAPPING_FIRST_KEY
            return MappingStartEvent(anchor, tag, implicit, start_mark, end_mark,
                                     flow_style=False)

        if anchor is not None or tag is not None:
            # Empty scalars are allowed even if a tag or an anchor is
            # specified.
            self.pop_state()
            return ScalarEvent(anchor, tag, implicit, '', start_mark, end_mark)

        if block:
            node = 'block'
        else:
            node = 'flow'
        token = self.peek_token()
        raise ParserError("while parsing a %s node" % node, start_mark,
                          "did not find expected node content", token.start_mark)

    # block_sequence ::= BLOCK-SEQUENCE-START (BLOCK-ENTRY block_node?)* BLOCK-END

    def parse_block_sequence_first_entry(self):
        token = self.get_token()
        self.marks.append(token.start_mark)
        return self.parse_block_sequence_entry()

    def parse_block_sequence_entry(self):
        if self.check_token(BlockEntryToken):
            token = self.get_token()
            if not self.check_token(BlockEntryToken, BlockEndToken):
                self.states.append(ParserState.BLOCK_SEQUENCE_ENTRY)
                return self.parse_block_node()
            self.state = ParserState.BLOCK_SEQUENCE_ENTRY
            return self.process_empty_scalar(token.end_mark)
        if not self.check_token(BlockEndToken):
            token = self.peek_token()
            raise ParserError("while parsing a block collection", self.marks.pop(),
                              "did not find expected '-' indicator", token.start_mark)
        token = self.get_token()
        self.pop_state()
        self.marks.pop()
        return SequenceEndEvent(token.start_mark, token.end_mark)

    # indentless_sequence ::= (BLOCK-ENTRY block_node?)+

    def parse_indentless_sequence_entry(self):
        if self.check_token(BlockEntryToken):
            token = self.get_token()
            if not self.check_token(BlockEntryToken,
                                    KeyToken, ValueToken, BlockEndToken):
                self.states.append(ParserState.INDENTLESS_SEQUENCE_ENTRY)
                return self.parse_block_node()
            self.state = ParserState.INDENTLESS_SEQUENCE_ENTRY
            return self.process_empty_scalar(token.end_mark)
        token = self.peek_token()
        self.pop_state()
        return SequenceEndEvent(token.start_mark, token.start_mark)

    # block_mapping     ::= BLOCK-MAPPING_START
    #                       ((KEY block_node_or_indentless_sequence?)?
    #                       (VALUE block_node_or_indentless_sequence?)?)*
    #                       BLOCK-END

    def parse_block_mapping_first_key(self):
        token = self.get_token()
        self.marks.append(token.start_mark)
        return self.parse_block_mapping_key()

    def parse_block_mapping_key(self):
        if self.check_token(KeyToken):
            token = self.get_token()
            if not self.check_token(KeyToken, ValueToken, BlockEndToken):
                self.states.append(ParserState.BLOCK_MAPPING_VALUE)
                return self.parse_block_node_or_indentless_sequence()
            self.state = ParserState.BLOCK_MAPPING_VALUE
            return self.process_empty_scalar(token.end_mark)
        if not self.check_token(BlockEndToken):
            token = self.peek_token()
            raise ParserError("while parsing a block mapping", self.marks.pop(),
                              "did not find expected key", token.start_mark)
        token = self.get_token()
        self.pop_state()
        self.marks.pop()
        return MappingEndEvent(token.start_mark, token.end_mark)

    def parse_block_mapping_value(self):
        if self.check_token(ValueToken):
            token = self.get_token()
            if not self.check_token(KeyToken, ValueToken, BlockEndToken):
                self.states.append(ParserState.BLOCK_MAPPING_KEY)
                return self.parse_block_node_or_indentless_sequence()
            self.state = ParserState.BLOCK_MAPPING_KEY
            return self.process_empty_scalar(token.end_mark)
        self.state = ParserState.BLOCK_MAPPING_KEY
        token = self.peek_token()
        return self.process_empty_scalar(token.start_mark)

    # flow_sequence     ::= FLOW-SEQUENCE-START
    #                       (flow_sequence_entry FLOW-ENTRY)*
    #                       flow_sequence_entry?
    #                       FLOW-SEQUENCE-END
    # flow_sequence_entry   ::= flow_node | KEY flow_node? (VALUE flow_node?)?
    #
    # Note that while production rules for both flow_sequence_entry and
    # flow_mapping_entry are equal, their interpretations are different.
    # For `flow_sequence_entry`, the part `KEY flow_node? (VALUE flow_node?)?`
    # generate an inline mapping (set syntax).

    def parse_flow_sequence_first_entry(self):
        token = self.get_token()
        self.marks.append(token.start_mark)
        return self.parse_flow_sequence_entry(first=True)

    def parse_flow_sequence_entry(self, first=False):
        if not self.check_token(FlowSequenceEndToken):
            if not first:
                if self.check_token(FlowEntryToken):
                    self.get_token()
                else:
                    token = self.peek_token()
                    raise ParserError("while parsing a flow sequence", self.marks.pop(),
                                      "did not find expected ',' or ']'", token.start_mark)

            if self.check_token(KeyToken):
                token = self.get_token()
                self.state = ParserState.FLOW_SEQUENCE_ENTRY_MAPPING_KEY
                return MappingStartEvent(None, None, True,
                                         token.start_mark, token.end_mark,
                                         flow_style=True)
            elif not self.check_token(FlowSequenceEndToken):
                self.states.append(ParserState.FLOW_SEQUENCE_ENTRY)
                return self.parse_flow_node()
        token = self.get_token()
        self.pop_state()
        self.marks.pop()
        return SequenceEndEvent(token.start_mark, token.end_mark)

    def parse_flow_sequence_entry_mapping_key(self):
        if not self.check_token(ValueToken, FlowEntryToken, FlowSequenceEndToken):
            self.states.append(ParserState.FLOW_SEQUENCE_ENTRY_MAPPING_VALUE)
            return self.parse_flow_node()
        token = self.get_token()
        self.state = ParserState.FLOW_SEQUENCE_ENTRY_MAPPING_VALUE
        return self.process_empty_scalar(token.end_mark)

    def parse_flow_sequence_entry_mapping_value(self):
        if self.check_token(ValueToken):
            self.get_token()
            if not self.check_token(FlowEntryToken, FlowSequenceEndToken):
                self.states.append(ParserState.FLOW_SEQUENCE_ENTRY_MAPPING_END)
                return self.parse_flow_node()
        self.state = ParserState.FLOW_SEQUENCE_ENTRY_MAPPING_END
        token = self.peek_token()
        return self.process_empty_scalar(token.start_mark)

    def parse_flow_sequence_entry_mapping_end(self):
        self.state = ParserState.FLOW_SEQUENCE_ENTRY
        token = self.peek_token()
        return MappingEndEvent(token.start_mark, token.start_mark)

    # flow_mapping  ::= FLOW-MAPPING-START
    #                   (flow_mapping_entry FLOW-ENTRY)*
    #                   flow_mapping_entry?
    #                   FLOW-MAPPING-END
    # flow_mapping_entry    ::= flow_node | KEY flow_node? (VALUE flow_node?)?

    def parse_flow_mapping_first_key(self):
        token = self.get_token()
        self.marks.append(token.start_mark)
        return self.parse_flow_mapping_key(first=True)

    def parse_flow_mapping_key(self, first=False):
        if not self.check_token(FlowMappingEndToken):
            if not first:
                if self.check_token(FlowEntryToken):
                    self.get_token()
                else:
                    token = self.peek_token()
                    raise ParserError("while parsing a flow mapping", self.marks.pop(),
                                      "did not find expected ',' or '}'", token.start_mark)
            if self.check_token(KeyToken):
                self.get_token()
                if not self.check_token(ValueToken,
                                        FlowEntryToken, FlowMappingEndToken):
                    self.states.append(ParserState.FLOW_MAPPING_VALUE)
                    return self.parse_flow_node()
                self.state = ParserState.FLOW_MAPPING_VALUE
                return self.process_empty_scalar(self.peek_token().start_mark)
            elif not self.check_token(FlowMappingEndToken):
                self.states.append(ParserState.FLOW_MAPPING_EMPTY_VALUE)
                return self.parse_flow_node()
        token = self.get_token()
        self.pop_state()
        self.marks.pop()
        return MappingEndEvent(token.start_mark, token.end_mark)

    def parse_flow_mapping_value(self):
        if self.check_token(ValueToken):
            self.get_token()
            if not self.check_token(FlowEntryToken, FlowMappingEndToken):
                self.states.append(ParserState.FLOW_MAPPING_KEY)
                return self.parse_flow_node()
        self.state = ParserState.FLOW_MAPPING_KEY
        token = self.peek_token()
        return self.process_empty_scalar(token.start_mark)

    def parse_flow_mapping_empty_value(self):
        self.state = ParserState.FLOW_MAPPING_KEY
        return self.process_empty_scalar(self.peek_token().start_mark)

    def process_empty_scalar(self, mark):
        return ScalarEvent(None, None, True, '', mark, mark)
