"""Syntax definition files: the YAML documents a highlighter is configured with.

A definition starts with a header telling which files it applies to::

    filetype: go
    detect:
        filename: '\\.go$'
        signature: '^package '
    rules:
        - statement: '\\b(func|return)\\b'

``parse_header`` only binds ``filetype`` and ``detect``; ``parse_file`` keeps
the whole document as a dynamic tree for the rule compiler.
"""

import dataclasses
import re
from typing import Any, Optional

from . import unmarshal
from .error import YAMLError

__all__ = ['Detect', 'HeaderDocument', 'Header', 'SyntaxFile',
           'SyntaxDefinitionError', 'parse_header', 'parse_file']


class SyntaxDefinitionError(YAMLError):
    """A syntax definition decoded fine but does not make sense."""
    pass


@dataclasses.dataclass
class Detect:
    filename: str = ''
    header: str = ''
    signature: str = ''


@dataclasses.dataclass
class HeaderDocument:
    filetype: str = ''
    detect: Detect = dataclasses.field(default_factory=Detect)


@dataclasses.dataclass
class Header:
    filetype: str
    filename_regex: Optional[re.Pattern] = None
    header_regex: Optional[re.Pattern] = None
    signature_regex: Optional[re.Pattern] = None

    def match(self, filename, first_line=None):
        """Tell whether a file belongs to this filetype.

        Either the file name matches the ``filename`` pattern, or the first
        line (str or bytes) matches the ``signature`` pattern.
        """
        if filename and self.filename_regex is not None \
                and self.filename_regex.search(filename):
            return True
        if first_line is not None and self.signature_regex is not None:
            if isinstance(first_line, bytes):
                first_line = first_line.decode('utf-8', 'replace')
            if self.signature_regex.search(first_line):
                return True
        return False


@dataclasses.dataclass
class SyntaxFile:
    filetype: str
    source: dict[Any, Any]


def _compile(pattern, what):
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise SyntaxDefinitionError("invalid %s pattern %r: %s" % (what, pattern, exc)) from exc


def parse_header(data):
    """Decode the header of a syntax definition into a Header."""
    document = unmarshal(data, HeaderDocument)
    detect = document.detect
    return Header(document.filetype,
                  _compile(detect.filename, 'filename'),
                  _compile(detect.header, 'header'),
                  _compile(detect.signature, 'signature'))


def parse_file(data):
    """Decode a whole syntax definition into a SyntaxFile."""
    source = unmarshal(data, dict[Any, Any])
    filetype = source.get('filetype', '')
    if not isinstance(filetype, str):
        raise SyntaxDefinitionError("filetype must be a string, not %s"
                                    % type(filetype).__name__)
    return SyntaxFile(filetype, source)
