"""Loader: the reader, scanner, parser and composer mixed into one object."""

from .composer import Composer
from .parser import Parser
from .reader import Reader
from .scanner import Scanner

__all__ = ['Loader']


class Loader(Reader, Scanner, Parser, Composer):
    """One pipeline per input; discard it after the first error or the end."""

    def __init__(self, stream, name=None):
        # An empty document reads like a single empty line.
        if isinstance(stream, (str, bytes, bytearray)) and not stream:
            stream = '\n' if isinstance(stream, str) else b'\n'
        Reader.__init__(self, stream, name)
        Scanner.__init__(self)
        Parser.__init__(self)
        Composer.__init__(self)
