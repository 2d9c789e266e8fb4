"""YAML 1.1 scanner.

Turns the reader's character buffer into a queue of tokens. The scanner keeps
the block indentation stack, the flow nesting level and one simple-key
candidate per flow level; when a ':' shows up after a candidate, KEY (and,
when the indentation grows, BLOCK-MAPPING-START) tokens are inserted back into
the queue at the candidate's position.

Scanner expects a Reader mixed into the same object, providing:
    self.peek(i=0)       # peek the next i-th character
    self.prefix(l=1)     # peek the next l characters
    self.forward(l=1)    # read the next l characters and move the pointer
    self.get_mark()      # the current position
"""

import string
from collections import deque

from .error import MarkedYAMLError
from .tokens import (
    AliasToken, AnchorToken, BlockEndToken, BlockEntryToken,
    BlockMappingStartToken, BlockSequenceStartToken, DirectiveToken,
    DocumentEndToken, DocumentStartToken, FlowEntryToken,
    FlowMappingEndToken, FlowMappingStartToken, FlowSequenceEndToken,
    FlowSequenceStartToken, KeyToken, ScalarToken, StreamEndToken,
    StreamStartToken, TagToken, ValueToken,
)

__all__ = ['Scanner', 'ScannerError', 'MAX_FLOW_LEVEL', 'MAX_INDENTS']

MAX_FLOW_LEVEL = 10000
MAX_INDENTS = 10000
MAX_SIMPLE_KEY_LENGTH = 1024

BREAK = '\r\n\x85\u2028\u2029'
BREAKZ = '\0' + BREAK
BLANK = ' \t'
BLANKZ = BLANK + BREAKZ

ALPHA = frozenset(string.ascii_letters + string.digits + '_-')
HEX = frozenset(string.hexdigits)
URI_CHARS = ALPHA | frozenset(";/?:@&=+$,.!~*'()[]%")

ESCAPE_REPLACEMENTS = {
    '0': '\0',
    'a': '\x07',
    'b': '\x08',
    't': '\x09',
    '\t': '\x09',
    'n': '\x0A',
    'v': '\x0B',
    'f': '\x0C',
    'r': '\x0D',
    'e': '\x1B',
    ' ': '\x20',
    '"': '"',
    "'": "'",
    '\\': '\\',
    'N': '\x85',
    '_': '\xA0',
    'L': '\u2028',
    'P': '\u2029',
}

ESCAPE_CODES = {
    'x': 2,
    'u': 4,
    'U': 8,
}


class ScannerError(MarkedYAMLError):
    """YAML scanner error (tokenization phase)."""
    pass


class SimpleKey:
    # A candidate for an implicit mapping key, see the simple keys
    # treatment below.

    def __init__(self, token_number, required, mark, possible=True):
        self.token_number = token_number
        self.required = required
        self.mark = mark
        self.possible = possible

    def __repr__(self):
        return "SimpleKey(token_number=%d, required=%r, possible=%r)" % (
            self.token_number, self.required, self.possible)


class Scanner:

    def __init__(self):
        """Initialize the scanner."""
        # Had we reached the end of the stream?
        self.done = False

        # The number of unclosed '{' and '['. `flow_level == 0` means block
        # context.
        self.flow_level = 0

        # Processed tokens that are not yet emitted. KEY and
        # BLOCK-MAPPING-START tokens are inserted in the middle of it.
        self.tokens = deque()

        # Number of tokens that were emitted through the `get_token` method.
        self.tokens_taken = 0

        # The current indentation level and the past ones.
        self.indent = -1
        self.indents = []

        # Variables related to simple keys treatment.

        # A simple key is a key that is not denoted by the '?' indicator:
        #   block simple key: value
        #   ? not a simple key:
        #   : { flow simple key: value }
        # Simple keys are limited to a single line and 1024 characters.

        # Can a simple key start at the current position? In the block
        # context this flag also tells whether a block collection may start.
        self.allow_simple_key = True

        # One simple key slot per flow level; slot 0 is the block context.
        self.simple_keys = [SimpleKey(0, False, None, possible=False)]

        # Possible simple keys by the number of the token that starts them,
        # used to tell whether the head of the queue may still become a key.
        self.simple_keys_by_token = {}

        self.fetch_stream_start()

    # Public methods.

    def check_token(self, *choices):
        # Check if the next token is one of the given types.
        while self.need_more_tokens():
            self.fetch_more_tokens()
        if self.tokens:
            if not choices:
                return True
            for choice in choices:
                if isinstance(self.tokens[0], choice):
                    return True
        return False

    def peek_token(self):
        # Return the next token, but do not delete it from the queue.
        while self.need_more_tokens():
            self.fetch_more_tokens()
        if self.tokens:
            return self.tokens[0]
        return None

    def get_token(self):
        # Return the next token.
        while self.need_more_tokens():
            self.fetch_more_tokens()
        if self.tokens:
            self.tokens_taken += 1
            return self.tokens.popleft()
        return None

    # Private methods.

    def need_more_tokens(self):
        if self.done:
            return False
        if not self.tokens:
            return True
        # The head token may still turn out to start a simple key, in which
        # case a KEY token has to go in front of it.
        key = self.simple_keys_by_token.get(self.tokens_taken)
        if key is None:
            return False
        return self.simple_key_is_valid(key)

    def fetch_more_tokens(self):

        # Eat whitespaces and comments until we reach the next token.
        self.scan_to_next_token()

        # Compare the current indentation and column. It may add some tokens
        # and decrease the current indentation level.
        self.unwind_indent(self.column)

        ch = self.peek()

        if ch == '\0':
            return self.fetch_stream_end()

        if ch == '%' and self.column == 0:
            return self.fetch_directive()

        if ch == '-' and self.check_document_start():
            return self.fetch_document_indicator(DocumentStartToken)

        if ch == '.' and self.check_document_end():
            return self.fetch_document_indicator(DocumentEndToken)

        if ch == '[':
            return self.fetch_flow_collection_start(FlowSequenceStartToken)

        if ch == '{':
            return self.fetch_flow_collection_start(FlowMappingStartToken)

        if ch == ']':
            return self.fetch_flow_collection_end(FlowSequenceEndToken)

        if ch == '}':
            return self.fetch_flow_collection_end(FlowMappingEndToken)

        if ch == ',':
            return self.fetch_flow_entry()

        if ch == '-' and self.check_block_entry():
            return self.fetch_block_entry()

        if ch == '?' and self.check_key():
            return self.fetch_key()

        if ch == ':' and self.check_value():
            return self.fetch_value()

        if ch == '*':
            return self.fetch_anchor(AliasToken)

        if ch == '&':
            return self.fetch_anchor(AnchorToken)

        if ch == '!':
            return self.fetch_tag()

        if ch == '|' and not self.flow_level:
            return self.fetch_block_scalar('|')

        if ch == '>' and not self.flow_level:
            return self.fetch_block_scalar('>')

        if ch == '\'':
            return self.fetch_flow_scalar('\'')

        if ch == '"':
            return self.fetch_flow_scalar('"')

        if self.check_plain():
            return self.fetch_plain()

        raise ScannerError("while scanning for the next token", self.get_mark(),
                           "found character that cannot start any token",
                           self.get_mark())

    # Simple keys treatment.

    def simple_key_is_valid(self, key):
        # A candidate expires once the scanner moves to another line or more
        # than 1024 characters past it. An expired required key is an error.
        if not key.possible:
            return False
        if key.mark.line < self.line \
                or key.mark.index + MAX_SIMPLE_KEY_LENGTH < self.index:
            if key.required:
                raise ScannerError("while scanning a simple key", key.mark,
                                   "could not find expected ':'", self.get_mark())
            key.possible = False
            return False
        return True

    def save_possible_simple_key(self):
        # The next token may start a simple key. A key is required at the
        # current indentation of a block collection.
        required = not self.flow_level and self.indent == self.column
        if self.allow_simple_key:
            self.remove_possible_simple_key()
            token_number = self.tokens_taken + len(self.tokens)
            key = SimpleKey(token_number, required, self.get_mark())
            self.simple_keys[-1] = key
            self.simple_keys_by_token[token_number] = key

    def remove_possible_simple_key(self):
        key = self.simple_keys[-1]
        if key.possible:
            if key.required:
                raise ScannerError("while scanning a simple key", key.mark,
                                   "could not find expected ':'", self.get_mark())
            key.possible = False
            self.simple_keys_by_token.pop(key.token_number, None)

    def increase_flow_level(self):
        mark = self.get_mark()
        self.simple_keys.append(SimpleKey(self.tokens_taken + len(self.tokens),
                                          False, mark, possible=False))
        self.flow_level += 1
        if self.flow_level > MAX_FLOW_LEVEL:
            raise ScannerError("while increasing flow level", mark,
                               "exceeded max depth of %d" % MAX_FLOW_LEVEL,
                               self.get_mark())

    def decrease_flow_level(self):
        if self.flow_level:
            self.flow_level -= 1
            key = self.simple_keys.pop()
            if self.simple_keys_by_token.get(key.token_number) is key:
                del self.simple_keys_by_token[key.token_number]

    # Indentation functions.

    def roll_indent(self, column, number, token_class, mark):
        # Push the current indentation and emit a collection start token when
        # the column grows. `number` is the token number to insert at, or
        # None to append.
        if self.flow_level:
            return
        if self.indent < column:
            self.indents.append(self.indent)
            self.indent = column
            if len(self.indents) > MAX_INDENTS:
                raise ScannerError("while increasing indent level", mark,
                                   "exceeded max depth of %d" % MAX_INDENTS,
                                   self.get_mark())
            token = token_class(mark, mark)
            if number is None:
                self.tokens.append(token)
            else:
                self.tokens.insert(number - self.tokens_taken, token)

    def unwind_indent(self, column):
        # In the flow context, indentation is ignored.
        if self.flow_level:
            return
        while self.indent > column:
            mark = self.get_mark()
            self.tokens.append(BlockEndToken(mark, mark))
            self.indent = self.indents.pop()

    # Fetchers.

    def fetch_stream_start(self):
        mark = self.get_mark()
        self.tokens.append(StreamStartToken(mark, mark, encoding=self.encoding))

    def fetch_stream_end(self):
        # Close every open block collection.
        self.unwind_indent(-1)
        self.remove_possible_simple_key()
        self.allow_simple_key = False
        mark = self.get_mark()
        self.tokens.append(StreamEndToken(mark, mark))
        self.done = True

    def fetch_directive(self):
        self.unwind_indent(-1)
        self.remove_possible_simple_key()
        self.allow_simple_key = False
        self.tokens.append(self.scan_directive())

    def fetch_document_indicator(self, token_class):
        self.unwind_indent(-1)
        self.remove_possible_simple_key()
        self.allow_simple_key = False
        start_mark = self.get_mark()
        self.forward(3)
        end_mark = self.get_mark()
        self.tokens.append(token_class(start_mark, end_mark))

    def fetch_flow_collection_start(self, token_class):
        # '[' and '{' may start a simple key.
        self.save_possible_simple_key()
        self.increase_flow_level()
        self.allow_simple_key = True
        start_mark = self.get_mark()
        self.forward()
        end_mark = self.get_mark()
        self.tokens.append(token_class(start_mark, end_mark))

    def fetch_flow_collection_end(self, token_class):
        self.remove_possible_simple_key()
        self.decrease_flow_level()
        # No simple keys after ']' or '}'.
        self.allow_simple_key = False
        start_mark = self.get_mark()
        self.forward()
        end_mark = self.get_mark()
        self.tokens.append(token_class(start_mark, end_mark))

    def fetch_flow_entry(self):
        self.remove_possible_simple_key()
        # Simple keys are allowed after ','.
        self.allow_simple_key = True
        start_mark = self.get_mark()
        self.forward()
        end_mark = self.get_mark()
        self.tokens.append(FlowEntryToken(start_mark, end_mark))

    def fetch_block_entry(self):
        if not self.flow_level:
            if not self.allow_simple_key:
                raise ScannerError(None, None,
                                   "block sequence entries are not allowed in this context",
                                   self.get_mark())
            mark = self.get_mark()
            self.roll_indent(self.column, None, BlockSequenceStartToken, mark)
        self.remove_possible_simple_key()
        # Simple keys are allowed after '-'.
        self.allow_simple_key = True
        start_mark = self.get_mark()
        self.forward()
        end_mark = self.get_mark()
        self.tokens.append(BlockEntryToken(start_mark, end_mark))

    def fetch_key(self):
        if not self.flow_level:
            if not self.allow_simple_key:
                raise ScannerError(None, None,
                                   "mapping keys are not allowed in this context",
                                   self.get_mark())
            mark = self.get_mark()
            self.roll_indent(self.column, None, BlockMappingStartToken, mark)
        self.remove_possible_simple_key()
        # Simple keys are allowed after '?' in the block context.
        self.allow_simple_key = not self.flow_level
        start_mark = self.get_mark()
        self.forward()
        end_mark = self.get_mark()
        self.tokens.append(KeyToken(start_mark, end_mark))

    def fetch_value(self):
        key = self.simple_keys[-1]
        if self.simple_key_is_valid(key):
            # Insert the KEY token in front of the candidate, then the
            # BLOCK-MAPPING-START token in front of that if needed.
            self.tokens.insert(key.token_number - self.tokens_taken,
                               KeyToken(key.mark, key.mark))
            self.roll_indent(key.mark.column, key.token_number,
                             BlockMappingStartToken, key.mark)
            key.possible = False
            self.simple_keys_by_token.pop(key.token_number, None)
            # There cannot be two simple keys one after another.
            self.allow_simple_key = False
        else:
            # It must be a part of a complex key.
            if not self.flow_level:
                if not self.allow_simple_key:
                    raise ScannerError(None, None,
                                       "mapping values are not allowed in this context",
                                       self.get_mark())
                mark = self.get_mark()
                self.roll_indent(self.column, None, BlockMappingStartToken, mark)
            # Simple keys are allowed after ':' in the block context.
            self.allow_simple_key = not self.flow_level
        start_mark = self.get_mark()
        self.forward()
        end_mark = self.get_mark()
        self.tokens.append(ValueToken(start_mark, end_mark))

    def fetch_anchor(self, token_class):
        # ANCHOR and ALIAS could start a simple key.
        self.save_possible_simple_key()
        self.allow_simple_key = False
        self.tokens.append(self.scan_anchor(token_class))

    def fetch_tag(self):
        self.save_possible_simple_key()
        self.allow_simple_key = False
        self.tokens.append(self.scan_tag())

    def fetch_block_scalar(self, style):
        # A simple key may follow a block scalar.
        self.remove_possible_simple_key()
        self.allow_simple_key = True
        self.tokens.append(self.scan_block_scalar(style))

    def fetch_flow_scalar(self, style):
        self.save_possible_simple_key()
        self.allow_simple_key = False
        self.tokens.append(self.scan_flow_scalar(style))

    def fetch_plain(self):
        self.save_possible_simple_key()
        # scan_plain() turns allow_simple_key back on after a line break.
        self.allow_simple_key = False
        self.tokens.append(self.scan_plain())

    # Checkers.

    def check_document_start(self):
        # DOCUMENT-START: ^ '---' (' '|'\n')
        return self.column == 0 and self.prefix(3) == '---' \
            and self.peek(3) in BLANKZ

    def check_document_end(self):
        # DOCUMENT-END: ^ '...' (' '|'\n')
        return self.column == 0 and self.prefix(3) == '...' \
            and self.peek(3) in BLANKZ

    def check_block_entry(self):
        # BLOCK-ENTRY: '-' (' '|'\n')
        return self.peek(1) in BLANKZ

    def check_key(self):
        # KEY(flow context): '?'
        # KEY(block context): '?' (' '|'\n')
        return bool(self.flow_level) or self.peek(1) in BLANKZ

    def check_value(self):
        # VALUE(flow context): ':'
        # VALUE(block context): ':' (' '|'\n')
        return bool(self.flow_level) or self.peek(1) in BLANKZ

    def check_plain(self):
        # A plain scalar may start with any non-space character except
        # indicators; '-', '?' and ':' start one when followed by a non-space
        # (the latter two only in the block context).
        ch = self.peek()
        return ch not in BLANKZ + '-?:,[]{}#&*!|>\'"%@`' \
            or (ch == '-' and self.peek(1) not in BLANK) \
            or (not self.flow_level and ch in '?:' and self.peek(1) not in BLANKZ)

    # Scanners.

    def skip_line(self):
        if self.prefix(2) == '\r\n':
            self.forward(2)
            return True
        if self.peek() in BREAK:
            self.forward()
            return True
        return False

    def scan_line_break(self):
        # Transforms:
        #   '\r\n'      :   '\n'
        #   '\r'        :   '\n'
        #   '\n'        :   '\n'
        #   '\x85'      :   '\n'
        #   '\u2028'    :   '\u2028'
        #   '\u2029'    :   '\u2029'
        #   default     :   ''
        ch = self.peek()
        if ch in '\r\n\x85':
            if self.prefix(2) == '\r\n':
                self.forward(2)
            else:
                self.forward()
            return '\n'
        elif ch in '\u2028\u2029':
            self.forward()
            return ch
        return ''

    def scan_to_next_token(self):
        while True:
            if self.column == 0 and self.peek() == '\uFEFF':
                self.forward()
            # Tabs are allowed as separators only where a simple key cannot
            # start (or in the flow context).
            while self.peek() == ' ' or \
                    ((self.flow_level or not self.allow_simple_key) and self.peek() == '\t'):
                self.forward()
            if self.peek() == '#':
                while self.peek() not in BREAKZ:
                    self.forward()
            if self.skip_line():
                if not self.flow_level:
                    self.allow_simple_key = True
            else:
                break

    def scan_directive(self):
        start_mark = self.get_mark()
        self.forward()
        name = self.scan_directive_name(start_mark)
        if name == 'YAML':
            value = self.scan_yaml_directive_value(start_mark)
        elif name == 'TAG':
            value = self.scan_tag_directive_value(start_mark)
        else:
            raise ScannerError("while scanning a directive", start_mark,
                               "found unknown directive name", self.get_mark())
        end_mark = self.get_mark()
        self.scan_directive_ignored_line(start_mark)
        return DirectiveToken(name, value, start_mark, end_mark)

    def scan_directive_name(self, start_mark):
        length = 0
        while self.peek(length) in ALPHA:
            length += 1
        if not length:
            raise ScannerError("while scanning a directive", start_mark,
                               "could not find expected directive name", self.get_mark())
        value = self.prefix(length)
        self.forward(length)
        if self.peek() not in BLANKZ:
            raise ScannerError("while scanning a directive", start_mark,
                               "found unexpected non-alphabetical character", self.get_mark())
        return value

    def scan_yaml_directive_value(self, start_mark):
        while self.peek() in BLANK:
            self.forward()
        major = self.scan_yaml_directive_number(start_mark)
        if self.peek() != '.':
            raise ScannerError("while scanning a %YAML directive", start_mark,
                               "did not find expected digit or '.' character",
                               self.get_mark())
        self.forward()
        minor = self.scan_yaml_directive_number(start_mark)
        return (major, minor)

    def scan_yaml_directive_number(self, start_mark):
        length = 0
        while self.peek(length) in string.digits:
            length += 1
            if length > 2:
                raise ScannerError("while scanning a %YAML directive", start_mark,
                                   "found extremely long version number", self.get_mark())
        if not length:
            raise ScannerError("while scanning a %YAML directive", start_mark,
                               "did not find expected version number", self.get_mark())
        value = int(self.prefix(length))
        self.forward(length)
        return value

    def scan_tag_directive_value(self, start_mark):
        while self.peek() in BLANK:
            self.forward()
        handle = self.scan_tag_handle(True, start_mark)
        if self.peek() not in BLANK:
            raise ScannerError("while scanning a %TAG directive", start_mark,
                               "did not find expected whitespace", self.get_mark())
        while self.peek() in BLANK:
            self.forward()
        prefix = self.scan_tag_uri(True, None, start_mark)
        if self.peek() not in BLANKZ:
            raise ScannerError("while scanning a %TAG directive", start_mark,
                               "did not find expected whitespace or line break",
                               self.get_mark())
        return (handle, prefix)

    def scan_directive_ignored_line(self, start_mark):
        while self.peek() in BLANK:
            self.forward()
        if self.peek() == '#':
            while self.peek() not in BREAKZ:
                self.forward()
        if self.peek() not in BREAKZ:
            raise ScannerError("while scanning a directive", start_mark,
                               "did not find expected comment or line break",
                               self.get_mark())
        self.skip_line()

    def scan_anchor(self, token_class):
        # YAML 1.1 does not restrict characters for anchors and
        # aliases; like libyaml we only accept [0-9A-Za-z_-].
        start_mark = self.get_mark()
        if self.peek() == '*':
            name = 'alias'
        else:
            name = 'anchor'
        self.forward()
        length = 0
        while self.peek(length) in ALPHA:
            length += 1
        value = self.prefix(length)
        self.forward(length)
        end_mark = self.get_mark()
        if not length or self.peek() not in BLANKZ + '?:,]}%@`':
            raise ScannerError("while scanning an %s" % name, start_mark,
                               "did not find expected alphabetic or numeric character",
                               self.get_mark())
        return token_class(value, start_mark, end_mark)

    def scan_tag(self):
        start_mark = self.get_mark()
        if self.peek(1) == '<':
            # Verbatim tag: !<uri>
            self.forward(2)
            suffix = self.scan_tag_uri(False, None, start_mark)
            if self.peek() != '>':
                raise ScannerError("while scanning a tag", start_mark,
                                   "did not find the expected '>'", self.get_mark())
            self.forward()
            handle = ''
        else:
            handle = self.scan_tag_handle(False, start_mark)
            if len(handle) > 1 and handle.endswith('!'):
                suffix = self.scan_tag_uri(False, None, start_mark)
            else:
                # Local tag (!foo) or the non-specific tag (!).
                suffix = self.scan_tag_uri(False, handle, start_mark)
                handle = '!'
                if not suffix:
                    handle, suffix = '', '!'
        if self.peek() not in BLANKZ:
            raise ScannerError("while scanning a tag", start_mark,
                               "did not find expected whitespace or line break",
                               self.get_mark())
        end_mark = self.get_mark()
        return TagToken((handle, suffix), start_mark, end_mark)

    def tag_error(self, directive, start_mark, problem):
        if directive:
            context = "while parsing a %TAG directive"
        else:
            context = "while parsing a tag"
        return ScannerError(context, start_mark, problem, self.get_mark())

    def scan_tag_handle(self, directive, start_mark):
        if self.peek() != '!':
            raise self.tag_error(directive, start_mark, "did not find expected '!'")
        length = 1
        while self.peek(length) in ALPHA:
            length += 1
        if self.peek(length) == '!':
            length += 1
        elif directive and length != 1:
            # A %TAG handle is either '!', '!!' or '!name!'.
            self.forward(length)
            raise self.tag_error(directive, start_mark, "did not find expected '!'")
        value = self.prefix(length)
        self.forward(length)
        return value

    def scan_tag_uri(self, directive, head, start_mark):
        chunks = []
        has_tag = bool(head)
        if head and len(head) > 1:
            chunks.append(head[1:])
        length = 0
        ch = self.peek(length)
        while ch in URI_CHARS:
            if ch == '%':
                chunks.append(self.prefix(length))
                self.forward(length)
                length = 0
                chunks.append(self.scan_uri_escapes(directive, start_mark))
            else:
                length += 1
            has_tag = True
            ch = self.peek(length)
        if length:
            chunks.append(self.prefix(length))
            self.forward(length)
        if not has_tag:
            raise self.tag_error(directive, start_mark, "did not find expected tag URI")
        return ''.join(chunks)

    def scan_uri_escapes(self, directive, start_mark):
        # Percent-encoded UTF-8 sequence.
        octets = []
        width = None
        while width is None or len(octets) < width:
            if self.peek() != '%' or self.peek(1) not in HEX or self.peek(2) not in HEX:
                raise self.tag_error(directive, start_mark, "did not find URI escaped octet")
            octet = int(self.prefix(3)[1:], 16)
            if width is None:
                width = utf8_width(octet)
                if not width:
                    raise self.tag_error(directive, start_mark,
                                         "found an incorrect leading UTF-8 octet")
            elif octet & 0xC0 != 0x80:
                raise self.tag_error(directive, start_mark,
                                     "found an incorrect trailing UTF-8 octet")
            octets.append(octet)
            self.forward(3)
        try:
            return bytes(octets).decode('utf-8')
        except UnicodeDecodeError as exc:
            raise self.tag_error(directive, start_mark, exc.reason) from exc

    def scan_block_scalar(self, style):
        folded = style == '>'
        chunks = []
        start_mark = self.get_mark()

        # Scan the header.
        self.forward()
        chomping, increment = self.scan_block_scalar_indicators(start_mark)
        self.scan_block_scalar_ignored_line(start_mark)
        end_mark = self.get_mark()

        # Determine the indentation level and go to the first non-empty line.
        indent = 0
        if increment:
            if self.indent >= 0:
                indent = self.indent + increment
            else:
                indent = increment
        breaks, indent, end_mark = self.scan_block_scalar_breaks(indent, start_mark)

        leading_break = ''
        leading_blank = False
        while self.column == indent and self.peek() != '\0':
            trailing_blank = self.peek() in BLANK
            if folded and not leading_blank and not trailing_blank \
                    and leading_break[:1] == '\n':
                if not breaks:
                    chunks.append(' ')
            else:
                chunks.append(leading_break)
            leading_break = ''
            chunks.extend(breaks)
            leading_blank = self.peek() in BLANK
            length = 0
            while self.peek(length) not in BREAKZ:
                length += 1
            chunks.append(self.prefix(length))
            self.forward(length)
            leading_break = self.scan_line_break()
            breaks, indent, end_mark = self.scan_block_scalar_breaks(indent, start_mark)

        # Chomp the tail.
        if chomping is not False:
            chunks.append(leading_break)
        if chomping is True:
            chunks.extend(breaks)

        return ScalarToken(''.join(chunks), False, start_mark, end_mark, style)

    def scan_block_scalar_indicators(self, start_mark):
        # Chomping: None (clip), True (keep) or False (strip).
        chomping = None
        increment = None
        ch = self.peek()
        if ch in '+-':
            chomping = ch == '+'
            self.forward()
            ch = self.peek()
            if ch in string.digits:
                increment = self.scan_block_scalar_increment(start_mark)
        elif ch in string.digits:
            increment = self.scan_block_scalar_increment(start_mark)
            ch = self.peek()
            if ch in '+-':
                chomping = ch == '+'
                self.forward()
        return chomping, increment

    def scan_block_scalar_increment(self, start_mark):
        increment = int(self.peek())
        if increment == 0:
            raise ScannerError("while scanning a block scalar", start_mark,
                               "found an indentation indicator equal to 0",
                               self.get_mark())
        self.forward()
        return increment

    def scan_block_scalar_ignored_line(self, start_mark):
        while self.peek() in BLANK:
            self.forward()
        if self.peek() == '#':
            while self.peek() not in BREAKZ:
                self.forward()
        if self.peek() not in BREAKZ:
            raise ScannerError("while scanning a block scalar", start_mark,
                               "did not find expected comment or line break",
                               self.get_mark())
        self.skip_line()

    def scan_block_scalar_breaks(self, indent, start_mark):
        # Eat empty lines and the indentation in front of the next content
        # line. With no explicit indentation the widest empty line, the
        # parent indentation + 1 and 1 bound it from below.
        breaks = []
        end_mark = self.get_mark()
        max_indent = 0
        while True:
            while (not indent or self.column < indent) and self.peek() == ' ':
                self.forward()
            if self.column > max_indent:
                max_indent = self.column
            if (not indent or self.column < indent) and self.peek() == '\t':
                raise ScannerError("while scanning a block scalar", start_mark,
                                   "found a tab character where an indentation space is expected",
                                   self.get_mark())
            if self.peek() not in BREAK:
                break
            breaks.append(self.scan_line_break())
            end_mark = self.get_mark()
        if not indent:
            indent = max(max_indent, self.indent + 1, 1)
        return breaks, indent, end_mark

    def scan_flow_scalar(self, style):
        double = style == '"'
        chunks = []
        start_mark = self.get_mark()
        quote = self.peek()
        self.forward()
        leading_break = ''
        trailing_breaks = []
        whitespaces = []
        while True:
            if self.column == 0 and self.prefix(3) in ('---', '...') \
                    and self.peek(3) in BLANKZ:
                raise ScannerError("while scanning a quoted scalar", start_mark,
                                   "found unexpected document indicator", self.get_mark())
            if self.peek() == '\0':
                raise ScannerError("while scanning a quoted scalar", start_mark,
                                   "found unexpected end of stream", self.get_mark())

            # Consume non-blank characters.
            leading_blanks = False
            while self.peek() not in BLANKZ:
                ch = self.peek()
                if not double and ch == '\'' and self.peek(1) == '\'':
                    chunks.append('\'')
                    self.forward(2)
                elif ch == quote:
                    break
                elif double and ch == '\\' and self.peek(1) in BREAK:
                    # Escaped line break: the lines join without a space.
                    self.forward()
                    self.skip_line()
                    leading_blanks = True
                    break
                elif double and ch == '\\':
                    code = self.peek(1)
                    if code in ESCAPE_REPLACEMENTS:
                        chunks.append(ESCAPE_REPLACEMENTS[code])
                        self.forward(2)
                    elif code in ESCAPE_CODES:
                        length = ESCAPE_CODES[code]
                        self.forward(2)
                        for k in range(length):
                            if self.peek(k) not in HEX:
                                raise ScannerError("while parsing a quoted scalar", start_mark,
                                                   "did not find expected hexdecimal number",
                                                   self.get_mark())
                        value = int(self.prefix(length), 16)
                        if 0xD800 <= value <= 0xDFFF or value > 0x10FFFF:
                            raise ScannerError("while parsing a quoted scalar", start_mark,
                                               "found invalid Unicode character escape code",
                                               self.get_mark())
                        chunks.append(chr(value))
                        self.forward(length)
                    else:
                        raise ScannerError("while parsing a quoted scalar", start_mark,
                                           "found unknown escape character", self.get_mark())
                else:
                    chunks.append(ch)
                    self.forward()

            if self.peek() == quote:
                break

            # Consume blank characters and fold line breaks.
            while self.peek() in BLANK or self.peek() in BREAK:
                if self.peek() in BLANK:
                    if not leading_blanks:
                        whitespaces.append(self.peek())
                    self.forward()
                elif not leading_blanks:
                    whitespaces = []
                    leading_break = self.scan_line_break()
                    leading_blanks = True
                else:
                    trailing_breaks.append(self.scan_line_break())

            if leading_blanks:
                if leading_break[:1] == '\n':
                    if not trailing_breaks:
                        chunks.append(' ')
                    else:
                        chunks.extend(trailing_breaks)
                else:
                    chunks.append(leading_break)
                    chunks.extend(trailing_breaks)
                trailing_breaks = []
                leading_break = ''
            else:
                chunks.extend(whitespaces)
                whitespaces = []

        self.forward()
        end_mark = self.get_mark()
        return ScalarToken(''.join(chunks), False, start_mark, end_mark, style)

    def scan_plain(self):
        # Plain scalars end at ': ', ' #', a document indicator, a line with
        # less indentation than the enclosing block and, in the flow
        # context, at ',', '?', '[', ']', '{' and '}'.
        chunks = []
        start_mark = self.get_mark()
        end_mark = start_mark
        indent = self.indent + 1
        leading_blanks = False
        leading_break = ''
        trailing_breaks = []
        whitespaces = []
        while True:
            if self.column == 0 and self.prefix(3) in ('---', '...') \
                    and self.peek(3) in BLANKZ:
                break
            if self.peek() == '#':
                break

            length = 0
            while True:
                ch = self.peek(length)
                if ch in BLANKZ:
                    break
                if (ch == ':' and self.peek(length + 1) in BLANKZ) \
                        or (self.flow_level and ch in ',?[]{}'):
                    break
                length += 1
            if length:
                if leading_blanks:
                    if leading_break == '\n':
                        if not trailing_breaks:
                            chunks.append(' ')
                        else:
                            chunks.extend(trailing_breaks)
                    else:
                        chunks.append(leading_break)
                        chunks.extend(trailing_breaks)
                    trailing_breaks = []
                    leading_break = ''
                    leading_blanks = False
                elif whitespaces:
                    chunks.extend(whitespaces)
                    whitespaces = []
                chunks.append(self.prefix(length))
                self.forward(length)
                end_mark = self.get_mark()

            ch = self.peek()
            if ch not in BLANK and ch not in BREAK:
                break

            while self.peek() in BLANK or self.peek() in BREAK:
                if self.peek() in BLANK:
                    if leading_blanks and self.column < indent and self.peek() == '\t':
                        raise ScannerError("while scanning a plain scalar", start_mark,
                                           "found a tab character that violates indentation",
                                           self.get_mark())
                    if not leading_blanks:
                        whitespaces.append(self.peek())
                    self.forward()
                elif not leading_blanks:
                    whitespaces = []
                    leading_break = self.scan_line_break()
                    leading_blanks = True
                else:
                    trailing_breaks.append(self.scan_line_break())

            # Check the indentation level.
            if not self.flow_level and self.column < indent:
                break

        if leading_blanks:
            self.allow_simple_key = True
        return ScalarToken(''.join(chunks), True, start_mark, end_mark)


def utf8_width(octet):
    if octet & 0x80 == 0x00:
        return 1
    if octet & 0xE0 == 0xC0:
        return 2
    if octet & 0xF0 == 0xE0:
        return 3
    if octet & 0xF8 == 0xF0:
        return 4
    return 0
