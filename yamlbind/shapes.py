"""Destination shapes.

A shape describes what a decoded value has to look like. ``shape_of`` turns a
type annotation (``int``, ``dict[str, list[float]]``, a dataclass, ...) into
one of a small closed set of shape objects; the decoder dispatches on the
shape class and asks scalar shapes to convert a resolved scalar through
``from_scalar``, which returns ``MISMATCH`` when the value does not fit.
"""

import collections.abc
import dataclasses
import datetime
import functools
import math
import re
import types
import typing
from typing import Any, NamedTuple, NewType, Union

from .resolver import BINARY_TAG, TIMESTAMP_TAG

__all__ = [
    'shape_of', 'MISMATCH', 'MapItem', 'MapSlice', 'parse_duration',
    'Shape', 'DynamicShape', 'ScalarShape', 'StrShape', 'IntShape',
    'FloatShape', 'BoolShape', 'BytesShape', 'TimestampShape',
    'DurationShape', 'TextShape', 'StructShape', 'OptionalShape',
    'MapShape', 'SequenceShape', 'ArrayShape', 'MapSliceShape',
    'int8', 'int16', 'int32', 'int64', 'uint', 'uint8', 'uint16', 'uint32',
    'uint64',
]

# Sized integer markers for dataclass fields and targets.
int8 = NewType('int8', int)
int16 = NewType('int16', int)
int32 = NewType('int32', int)
int64 = NewType('int64', int)
uint = NewType('uint', int)
uint8 = NewType('uint8', int)
uint16 = NewType('uint16', int)
uint32 = NewType('uint32', int)
uint64 = NewType('uint64', int)

MISMATCH = object()


class MapItem(NamedTuple):
    """One key/value pair of a MapSlice."""
    key: Any
    value: Any


class MapSlice(list):
    """A mapping decoded as an ordered list of MapItem.

    Keeps document order and duplicate keys; mappings nested inside it that
    land in dynamic destinations are decoded as MapSlice too.
    """

    def to_dict(self):
        return {item.key: item.value for item in self}


class Shape:
    name = '?'

    def zero(self):
        return None

    def from_scalar(self, tag, resolved, text):
        return MISMATCH

    def __repr__(self):
        return '<%s %s>' % (self.__class__.__name__, self.name)


class DynamicShape(Shape):
    """Any value: the natural Python type of whatever the document holds."""
    name = 'Any'

    def from_scalar(self, tag, resolved, text):
        # Timestamps stay as written.
        if tag == TIMESTAMP_TAG:
            return text
        return resolved


class ScalarShape(Shape):
    python_type = None

    def zero(self):
        return self.python_type()


class StrShape(ScalarShape):
    name = 'str'
    python_type = str

    def from_scalar(self, tag, resolved, text):
        if tag == BINARY_TAG:
            return resolved.decode('utf-8', 'replace')
        return text


class IntShape(ScalarShape):
    python_type = int

    def __init__(self, name, minimum, maximum):
        self.name = name
        self.minimum = minimum
        self.maximum = maximum

    def to_int(self, resolved):
        if isinstance(resolved, bool):
            return MISMATCH
        if isinstance(resolved, int):
            value = resolved
        elif isinstance(resolved, float) and math.isfinite(resolved):
            value = int(resolved)
        else:
            return MISMATCH
        if self.minimum <= value <= self.maximum:
            return value
        return MISMATCH

    def from_scalar(self, tag, resolved, text):
        return self.to_int(resolved)


class FloatShape(ScalarShape):
    name = 'float'
    python_type = float

    def from_scalar(self, tag, resolved, text):
        if isinstance(resolved, (int, float)) and not isinstance(resolved, bool):
            return float(resolved)
        return MISMATCH


class BoolShape(ScalarShape):
    name = 'bool'
    python_type = bool

    def from_scalar(self, tag, resolved, text):
        if isinstance(resolved, bool):
            return resolved
        return MISMATCH


class BytesShape(ScalarShape):
    name = 'bytes'
    python_type = bytes

    def from_scalar(self, tag, resolved, text):
        if tag == BINARY_TAG:
            return resolved
        if isinstance(resolved, str):
            return resolved.encode('utf-8')
        return MISMATCH


class TimestampShape(ScalarShape):
    name = 'datetime'
    python_type = datetime.datetime

    def zero(self):
        return None

    def from_scalar(self, tag, resolved, text):
        if isinstance(resolved, datetime.datetime):
            return resolved
        return MISMATCH


class DurationShape(IntShape):
    """timedelta: a duration string such as ``1h30m`` or integer nanoseconds."""
    python_type = datetime.timedelta

    def __init__(self):
        super().__init__('timedelta', -(1 << 63), (1 << 63) - 1)

    def from_scalar(self, tag, resolved, text):
        if isinstance(resolved, str):
            try:
                return parse_duration(resolved)
            except ValueError:
                return MISMATCH
        nanoseconds = self.to_int(resolved)
        if nanoseconds is MISMATCH:
            return MISMATCH
        return nanoseconds_to_timedelta(nanoseconds)


class TextShape(Shape):
    """A class that builds itself from text through ``unmarshal_text``."""

    def __init__(self, cls):
        self.cls = cls
        self.name = cls.__qualname__

    def from_scalar(self, tag, resolved, text):
        if type(resolved) is self.cls:
            return resolved
        return unmarshal_text(self.cls, tag, resolved, text)


class StructShape(Shape):
    """A dataclass; fields are looked up through ``fields.get_struct_info``."""

    def __init__(self, cls):
        self.cls = cls
        self.name = cls.__qualname__
        self._hints = None

    def zero(self):
        # A fresh instance: declared defaults where present, zero values for
        # every other constructor argument.
        if self._hints is None:
            self._hints = typing.get_type_hints(self.cls)
        arguments = {}
        for field in dataclasses.fields(self.cls):
            if field.init and field.default is dataclasses.MISSING \
                    and field.default_factory is dataclasses.MISSING:
                arguments[field.name] = shape_of(self._hints[field.name]).zero()
        return self.cls(**arguments)

    def from_scalar(self, tag, resolved, text):
        if isinstance(resolved, self.cls):
            return resolved
        if hasattr(self.cls, 'unmarshal_text'):
            return unmarshal_text(self.cls, tag, resolved, text)
        return MISMATCH


class OptionalShape(Shape):

    def __init__(self, inner):
        self.inner = inner
        self.name = 'Optional[%s]' % inner.name

    def from_scalar(self, tag, resolved, text):
        return self.inner.from_scalar(tag, resolved, text)


class MapShape(Shape):

    def __init__(self, key, value):
        self.key = key
        self.value = value
        self.name = 'dict[%s, %s]' % (key.name, value.name)

    def zero(self):
        return {}


class SequenceShape(Shape):

    def __init__(self, item, as_tuple=False):
        self.item = item
        self.as_tuple = as_tuple
        if as_tuple:
            self.name = 'tuple[%s, ...]' % item.name
        else:
            self.name = 'list[%s]' % item.name

    def zero(self):
        return () if self.as_tuple else []


class ArrayShape(Shape):
    """Fixed-length tuple; each position has its own shape."""

    def __init__(self, items):
        self.items = tuple(items)
        self.name = 'tuple[%s]' % ', '.join(item.name for item in self.items)

    def zero(self):
        return tuple(item.zero() for item in self.items)


class MapSliceShape(Shape):
    name = 'MapSlice'

    def zero(self):
        return MapSlice()


DYNAMIC = DynamicShape()

SIZED_INTS = {
    int8: IntShape('int8', -(1 << 7), (1 << 7) - 1),
    int16: IntShape('int16', -(1 << 15), (1 << 15) - 1),
    int32: IntShape('int32', -(1 << 31), (1 << 31) - 1),
    int64: IntShape('int64', -(1 << 63), (1 << 63) - 1),
    uint: IntShape('uint', 0, (1 << 64) - 1),
    uint8: IntShape('uint8', 0, (1 << 8) - 1),
    uint16: IntShape('uint16', 0, (1 << 16) - 1),
    uint32: IntShape('uint32', 0, (1 << 32) - 1),
    uint64: IntShape('uint64', 0, (1 << 64) - 1),
}

SIMPLE_SHAPES = {
    str: StrShape(),
    int: IntShape('int', -(1 << 63), (1 << 63) - 1),
    float: FloatShape(),
    bool: BoolShape(),
    bytes: BytesShape(),
    datetime.datetime: TimestampShape(),
    datetime.timedelta: DurationShape(),
    MapSlice: MapSliceShape(),
}

SEQUENCE_ORIGINS = (list, collections.abc.Sequence, collections.abc.MutableSequence)
MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


@functools.lru_cache(maxsize=None)
def shape_of(annotation):
    """Return the shape for a type annotation.

    Raises TypeError for annotations that have no decoded form.
    """
    if annotation is Any or annotation is object:
        return DYNAMIC
    if annotation in SIZED_INTS:
        return SIZED_INTS[annotation]
    if annotation in SIMPLE_SHAPES:
        return SIMPLE_SHAPES[annotation]
    supertype = getattr(annotation, '__supertype__', None)
    if supertype is not None:
        return shape_of(supertype)

    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in args if arg is not type(None)]
        if len(members) == 1 and len(args) == 2:
            return OptionalShape(shape_of(members[0]))
        raise TypeError("unsupported destination type %r" % (annotation,))
    if origin in SEQUENCE_ORIGINS:
        return SequenceShape(shape_of(args[0]) if args else DYNAMIC)
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return SequenceShape(shape_of(args[0]), as_tuple=True)
        return ArrayShape(shape_of(arg) for arg in args)
    if origin in MAPPING_ORIGINS:
        if args:
            return MapShape(shape_of(args[0]), shape_of(args[1]))
        return MapShape(DYNAMIC, DYNAMIC)

    if annotation is list:
        return SequenceShape(DYNAMIC)
    if annotation is tuple:
        return SequenceShape(DYNAMIC, as_tuple=True)
    if annotation is dict:
        return MapShape(DYNAMIC, DYNAMIC)
    if isinstance(annotation, type):
        if dataclasses.is_dataclass(annotation):
            return StructShape(annotation)
        if hasattr(annotation, 'unmarshal_text'):
            return TextShape(annotation)
    raise TypeError("unsupported destination type %r" % (annotation,))


def unmarshal_text(cls, tag, resolved, text):
    # Exceptions raised by unmarshal_text abort the decode unchanged.
    instance = cls()
    if tag == BINARY_TAG:
        instance.unmarshal_text(resolved)
    else:
        instance.unmarshal_text(text)
    return instance


DURATION_UNITS = {
    'ns': 1,
    'us': 10 ** 3,
    '\u00B5s': 10 ** 3,
    '\u03BCs': 10 ** 3,
    'ms': 10 ** 6,
    's': 10 ** 9,
    'm': 60 * 10 ** 9,
    'h': 3600 * 10 ** 9,
}

DURATION_PART = re.compile(r'([0-9]*)(?:\.([0-9]*))?([^0-9.]+)')


def parse_duration(text):
    """Parse a duration such as ``300ms``, ``-1.5h`` or ``2h45m``.

    Each part is a decimal number with a unit suffix (ns, us, ms, s, m, h).
    Raises ValueError for anything else.
    """
    given = text
    sign = 1
    if text[:1] in ('-', '+') and text:
        if text[0] == '-':
            sign = -1
        text = text[1:]
    if text == '0':
        return datetime.timedelta(0)
    if not text:
        raise ValueError("invalid duration %r" % given)
    total = 0
    position = 0
    while position < len(text):
        match = DURATION_PART.match(text, position)
        if match is None:
            raise ValueError("invalid duration %r" % given)
        whole, fraction, unit = match.groups()
        if not whole and not fraction:
            raise ValueError("invalid duration %r" % given)
        if unit not in DURATION_UNITS:
            raise ValueError("unknown unit %r in duration %r" % (unit, given))
        scale = DURATION_UNITS[unit]
        total += int(whole or '0') * scale
        if fraction:
            total += int(fraction) * scale // 10 ** len(fraction)
        position = match.end()
    if total > 1 << 63:
        raise ValueError("invalid duration %r" % given)
    return nanoseconds_to_timedelta(sign * total)


def nanoseconds_to_timedelta(nanoseconds):
    # truncated towards zero, like the nanosecond count itself
    microseconds = abs(nanoseconds) // 1000
    if nanoseconds < 0:
        microseconds = -microseconds
    return datetime.timedelta(microseconds=microseconds)
