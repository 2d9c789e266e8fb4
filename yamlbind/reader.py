"""Input reader: encoding detection and the character buffer.

The Reader owns the raw input, sniffs the encoding from a byte-order mark,
decodes on demand into a ``str`` working buffer and appends a ``'\\0'``
sentinel at end of input so that every lookahead in the scanner is a plain
index operation.
"""

import codecs
import logging
import re

from .error import Mark, ReaderError

_LOGGER = logging.getLogger(__name__)

__all__ = ['Reader', 'ReaderError']


class Reader:
    # Reader:
    # - determines the data encoding and converts it to str,
    # - checks if characters are in allowed range,
    # - adds '\0' to the end.

    # Reader accepts
    #  - a `bytes` object (UTF-8, UTF-16-LE or UTF-16-BE, BOM sniffed),
    #  - a `str` object,
    #  - a file-like object with its `read` method returning `bytes`,
    #  - a file-like object with its `read` method returning `str`.

    RAW_CHUNK_SIZE = 1024

    NON_PRINTABLE = re.compile(
        '[^\x09\x0A\x0D\x20-\x7E\x85\xA0-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]')

    def __init__(self, stream, name=None):
        self.name = None
        self.stream = None
        self.stream_pointer = 0
        self.eof = True
        self.buffer = ''
        self.pointer = 0
        self.raw_buffer = None
        self.raw_decoder = None
        self.decoded_bytes = 0
        self.encoding = None
        self.index = 0
        self.line = 0
        self.column = 0
        if isinstance(stream, str):
            self.name = name or "<unicode string>"
            if stream.startswith('\uFEFF'):
                stream = stream[1:]
            self.encoding = 'unicode'
            self.check_printable(stream)
            self.buffer = stream + '\0'
        elif isinstance(stream, (bytes, bytearray, memoryview)):
            self.name = name or "<byte string>"
            self.raw_buffer = bytes(stream)
            self.stream_pointer = len(self.raw_buffer)
            self.determine_encoding()
        else:
            self.stream = stream
            self.name = name or getattr(stream, 'name', "<file>")
            self.eof = False
            self.determine_encoding()

    def peek(self, index=0):
        try:
            return self.buffer[self.pointer + index]
        except IndexError:
            self.update(index + 1)
            return self.buffer[self.pointer + index]

    def prefix(self, length=1):
        if self.pointer + length >= len(self.buffer):
            self.update(length)
        return self.buffer[self.pointer:self.pointer + length]

    def forward(self, length=1):
        if self.pointer + length + 1 >= len(self.buffer):
            self.update(length + 1)
        while length:
            ch = self.buffer[self.pointer]
            self.pointer += 1
            self.index += 1
            if ch in '\n\x85\u2028\u2029' \
                    or (ch == '\r' and self.buffer[self.pointer] != '\n'):
                self.line += 1
                self.column = 0
            elif ch != '\uFEFF':
                self.column += 1
            length -= 1

    def get_mark(self):
        if self.stream is None:
            return Mark(self.name, self.index, self.line, self.column,
                        self.buffer, self.pointer)
        else:
            return Mark(self.name, self.index, self.line, self.column,
                        None, None)

    def determine_encoding(self):
        while not self.eof and (self.raw_buffer is None or len(self.raw_buffer) < 3):
            self.update_raw()
        if isinstance(self.raw_buffer, str):
            # text stream, nothing to decode
            self.encoding = 'unicode'
            if self.raw_buffer.startswith('\uFEFF'):
                self.raw_buffer = self.raw_buffer[1:]
        else:
            raw = self.raw_buffer or b''
            if raw.startswith(codecs.BOM_UTF16_LE):
                self.encoding = 'utf-16-le'
                bom = len(codecs.BOM_UTF16_LE)
            elif raw.startswith(codecs.BOM_UTF16_BE):
                self.encoding = 'utf-16-be'
                bom = len(codecs.BOM_UTF16_BE)
            elif raw.startswith(codecs.BOM_UTF8):
                self.encoding = 'utf-8'
                bom = len(codecs.BOM_UTF8)
            else:
                self.encoding = 'utf-8'
                bom = 0
            self.raw_buffer = raw[bom:]
            self.decoded_bytes = bom
            self.raw_decoder = codecs.getincrementaldecoder(self.encoding)('strict')
        _LOGGER.debug("%s: reading as %s", self.name, self.encoding)
        self.update(1)

    def check_printable(self, data, start=0):
        match = self.NON_PRINTABLE.search(data)
        if match:
            character = match.group()
            if self.raw_decoder is not None:
                position = start + len(data[:match.start()].encode(self.encoding))
            else:
                position = self.index + (len(self.buffer) - self.pointer) + match.start()
            raise ReaderError(self.name, position, ord(character),
                              self.encoding, "control characters are not allowed")

    def update(self, length):
        if self.raw_buffer is None:
            self.pad(length)
            return
        self.buffer = self.buffer[self.pointer:]
        self.pointer = 0
        while len(self.buffer) < length:
            if not self.eof:
                self.update_raw()
            if self.raw_decoder is not None:
                try:
                    data = self.raw_decoder.decode(self.raw_buffer, self.eof)
                except UnicodeDecodeError as exc:
                    position = self.stream_pointer - len(exc.object) + exc.start
                    if self.eof and exc.end >= len(exc.object):
                        value = None
                    else:
                        value = exc.object[exc.start]
                    raise ReaderError(self.name, position, value, exc.encoding,
                                      exc.reason, undecodable=True) from exc
                start = self.decoded_bytes
                self.decoded_bytes += len(data.encode(self.encoding))
            else:
                data = self.raw_buffer
                start = self.decoded_bytes
                self.decoded_bytes += len(data)
            self.check_printable(data, start)
            self.buffer += data
            self.raw_buffer = self.raw_buffer[:0]
            if self.eof:
                self.buffer += '\0'
                self.raw_buffer = None
                break
        self.pad(length)

    def pad(self, length):
        # lookahead past the end of input sees more sentinels
        missing = self.pointer + length - len(self.buffer)
        if missing > 0:
            self.buffer += '\0' * missing

    def update_raw(self, size=RAW_CHUNK_SIZE):
        try:
            data = self.stream.read(size)
        except OSError as exc:
            raise ReaderError(self.name, self.stream_pointer, None,
                              self.encoding or 'input', "input error: %s" % exc) from exc
        if data:
            if self.raw_buffer is None:
                self.raw_buffer = data
            else:
                self.raw_buffer += data
            self.stream_pointer += len(data)
        else:
            if self.raw_buffer is None:
                self.raw_buffer = b''
            self.eof = True
