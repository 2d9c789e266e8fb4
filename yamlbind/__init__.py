"""Decode YAML 1.1 documents straight into typed Python values.

Usage:
    import dataclasses
    import yamlbind

    @dataclasses.dataclass
    class Server:
        host: str = ''
        port: int = 0

    server = yamlbind.unmarshal(b"host: example.org\\nport: 8080\\n", Server)

    # Without a target the natural Python types come back
    data = yamlbind.unmarshal("a: [1, 2.5, yes]")

The input runs through reader, scanner, parser and composer (``Loader``) into a
node tree; ``Decoder`` then binds the first document onto the destination.
Only the first document of a stream is read.

Supported API:
    - unmarshal(data, target=Any, strict=False, name=None)
    - decode(data, out, strict=False)
    - compose(data, name=None)
    - scan(data) / parse(data)
    - resolve(tag, literal)
"""

import dataclasses
import logging
from typing import Any

from .decoder import Decoder
from .error import (
    DecodeError, Mark, MarkedYAMLError, ReaderError, StructInfoError,
    UnmarshalError, YAMLError,
)
from .loader import Loader
from .resolver import resolve
from .shapes import (
    MapItem, MapSlice, MapShape, SequenceShape, DYNAMIC, shape_of,
    int8, int16, int32, int64, uint, uint8, uint16, uint32, uint64,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = '2.4.0'

__all__ = [
    'unmarshal', 'decode', 'compose', 'scan', 'parse', 'resolve',
    'Loader', 'Decoder', 'MapItem', 'MapSlice',
    'YAMLError', 'MarkedYAMLError', 'ReaderError', 'DecodeError',
    'UnmarshalError', 'StructInfoError', 'Mark',
    'int8', 'int16', 'int32', 'int64', 'uint', 'uint8', 'uint16', 'uint32',
    'uint64',
]


def compose(data, name=None):
    """Compose the first document of ``data``; None for an empty stream."""
    loader = Loader(data, name)
    try:
        return loader.get_single_node()
    finally:
        loader.dispose()


def scan(data):
    """Yield the tokens of ``data``."""
    loader = Loader(data)
    try:
        while loader.check_token():
            yield loader.get_token()
    finally:
        loader.dispose()


def parse(data):
    """Yield the events of ``data``."""
    loader = Loader(data)
    try:
        while loader.check_event():
            yield loader.get_event()
    finally:
        loader.dispose()


def unmarshal(data, target=Any, strict=False, name=None):
    """Decode the first document of ``data`` into a value of type ``target``.

    Args:
        data: bytes, str, or a file-like object with ``read()``
        target: type annotation of the result (dataclass, dict[K, V],
            list[T], tuple, Optional[T], scalar type, MapSlice or Any)
        strict: report duplicate keys and unknown dataclass fields
        name: stream name used in error marks

    Returns:
        The decoded value; the zero value of ``target`` for an empty stream.

    Raises:
        UnmarshalError: some values did not fit; ``.value`` holds the rest
        YAMLError: malformed or unsafe input
    """
    shape = shape_of(target)
    document = compose(data, name)
    if document is None:
        return shape.zero()
    return Decoder(strict).decode(document, shape)


def decode(data, out, strict=False):
    """Decode the first document of ``data`` into ``out`` in place.

    ``out`` is a dataclass instance, a dict or a list. Values that did not
    fit are left out, and the UnmarshalError is raised after ``out`` has
    been filled with everything else.
    """
    if isinstance(out, MapSlice):
        shape = shape_of(MapSlice)
    elif isinstance(out, dict):
        shape = MapShape(DYNAMIC, DYNAMIC)
    elif isinstance(out, list):
        shape = SequenceShape(DYNAMIC)
    elif dataclasses.is_dataclass(out) and not isinstance(out, type):
        shape = shape_of(type(out))
    else:
        raise TypeError("decode needs a dataclass instance, dict or list, not %s"
                        % type(out).__name__)
    document = compose(data)
    if document is None:
        return
    try:
        value = Decoder(strict).decode(document, shape, out)
    except UnmarshalError as exc:
        _assign(out, exc.value)
        raise
    _assign(out, value)


def _assign(out, value):
    if value is out or value is None and not isinstance(out, (dict, list)):
        return
    if isinstance(out, dict):
        out.clear()
        if value:
            out.update(value)
    elif isinstance(out, list):
        out[:] = value or []
    else:
        for field in dataclasses.fields(out):
            setattr(out, field.name, getattr(value, field.name))
