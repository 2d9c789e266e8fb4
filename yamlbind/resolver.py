"""Scalar resolution for YAML 1.1 plain scalars.

``resolve(tag, literal)`` maps a scalar's tag and text to a resolved tag and
a Python value. The first character of the literal picks a hint from a small
table: signs and digits try timestamp, integer and float in that order; the
characters that can start a special word (``yes``, ``Off``, ``~``, ...) and
``.`` go through an exact-match table first.
"""

import datetime
import math
import re

from .error import DecodeError

__all__ = [
    'resolve', 'resolvable_tag', 'short_tag', 'parse_timestamp',
    'LONG_TAG_PREFIX', 'NULL_TAG', 'BOOL_TAG', 'STR_TAG', 'INT_TAG',
    'FLOAT_TAG', 'TIMESTAMP_TAG', 'SEQ_TAG', 'MAP_TAG', 'BINARY_TAG',
    'MERGE_TAG',
]

LONG_TAG_PREFIX = 'tag:yaml.org,2002:'

NULL_TAG = LONG_TAG_PREFIX + 'null'
BOOL_TAG = LONG_TAG_PREFIX + 'bool'
STR_TAG = LONG_TAG_PREFIX + 'str'
INT_TAG = LONG_TAG_PREFIX + 'int'
FLOAT_TAG = LONG_TAG_PREFIX + 'float'
TIMESTAMP_TAG = LONG_TAG_PREFIX + 'timestamp'
SEQ_TAG = LONG_TAG_PREFIX + 'seq'
MAP_TAG = LONG_TAG_PREFIX + 'map'
BINARY_TAG = LONG_TAG_PREFIX + 'binary'
MERGE_TAG = LONG_TAG_PREFIX + 'merge'

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
UINT64_MAX = (1 << 64) - 1

RESOLVABLE_TAGS = frozenset(['', STR_TAG, BOOL_TAG, INT_TAG, FLOAT_TAG,
                             NULL_TAG, TIMESTAMP_TAG])

# First character of a literal -> S(ign), D(igit), M(ap lookup) or '.'.
RESOLVE_HINTS = {}
for _ch in '+-':
    RESOLVE_HINTS[_ch] = 'S'
for _ch in '0123456789':
    RESOLVE_HINTS[_ch] = 'D'
for _ch in 'yYnNtTfFoO~':
    RESOLVE_HINTS[_ch] = 'M'
RESOLVE_HINTS['.'] = '.'

RESOLVE_MAP = {}
for _value, _tag, _words in [
        (True, BOOL_TAG, ['y', 'Y', 'yes', 'Yes', 'YES']),
        (True, BOOL_TAG, ['true', 'True', 'TRUE']),
        (True, BOOL_TAG, ['on', 'On', 'ON']),
        (False, BOOL_TAG, ['n', 'N', 'no', 'No', 'NO']),
        (False, BOOL_TAG, ['false', 'False', 'FALSE']),
        (False, BOOL_TAG, ['off', 'Off', 'OFF']),
        (None, NULL_TAG, ['', '~', 'null', 'Null', 'NULL']),
        (math.nan, FLOAT_TAG, ['.nan', '.NaN', '.NAN']),
        (math.inf, FLOAT_TAG, ['.inf', '.Inf', '.INF']),
        (math.inf, FLOAT_TAG, ['+.inf', '+.Inf', '+.INF']),
        (-math.inf, FLOAT_TAG, ['-.inf', '-.Inf', '-.INF'])]:
    for _word in _words:
        RESOLVE_MAP[_word] = (_tag, _value)
del _ch, _value, _tag, _words, _word

STYLE_FLOAT = re.compile(r'^[-+]?(\.[0-9]+|[0-9]+(\.[0-9]*)?)([eE][-+]?[0-9]+)?$')

INT_DIGITS = {
    2: re.compile(r'[01]+'),
    8: re.compile(r'[0-7]+'),
    10: re.compile(r'[0-9]+'),
    16: re.compile(r'[0-9a-fA-F]+'),
}

TIMESTAMP_LEAD = re.compile(r'[0-9]{4}-')

TIMESTAMP_FORMATS = [
    re.compile(r'([0-9]{4})-([0-9]{1,2})-([0-9]{1,2})[Tt]([0-9]{1,2}):([0-9]{1,2}):([0-9]{1,2})'
               r'(?:\.([0-9]+))?(Z|[-+][0-9]{2}:[0-9]{2})'),
    re.compile(r'([0-9]{4})-([0-9]{1,2})-([0-9]{1,2}) ([0-9]{1,2}):([0-9]{1,2}):([0-9]{1,2})'
               r'(?:\.([0-9]+))?'),
    re.compile(r'([0-9]{4})-([0-9]{1,2})-([0-9]{1,2})'),
]


def short_tag(tag):
    if tag.startswith(LONG_TAG_PREFIX):
        return '!!' + tag[len(LONG_TAG_PREFIX):]
    return tag


def resolvable_tag(tag):
    return tag in RESOLVABLE_TAGS


def resolve(tag, literal):
    """Resolve ``literal`` under ``tag`` to ``(resolved_tag, value)``.

    Tags outside the built-in set pass through with the literal unchanged.
    A ``!!float`` request widens an integer; any other disagreement between
    the requested and the resolved tag raises DecodeError.
    """
    if not resolvable_tag(tag):
        return tag, literal
    rtag, value = _resolve(tag, literal)
    if tag in ('', rtag, STR_TAG, BINARY_TAG):
        return rtag, value
    if tag == FLOAT_TAG and rtag == INT_TAG:
        return FLOAT_TAG, float(value)
    raise DecodeError("cannot decode %s `%s` as a %s"
                      % (short_tag(rtag), literal, short_tag(tag)))


def _resolve(tag, literal):
    if literal:
        hint = RESOLVE_HINTS.get(literal[0])
    else:
        hint = 'N'
    if hint is None or tag in (STR_TAG, BINARY_TAG):
        return STR_TAG, literal

    if literal in RESOLVE_MAP:
        return RESOLVE_MAP[literal]

    if hint == '.':
        if STYLE_FLOAT.match(literal):
            return FLOAT_TAG, float(literal)
    elif hint in 'DS':
        if tag in ('', TIMESTAMP_TAG):
            timestamp = parse_timestamp(literal)
            if timestamp is not None:
                return TIMESTAMP_TAG, timestamp
        plain = literal.replace('_', '')
        number = parse_int(plain)
        if number is not None:
            if INT64_MIN <= number <= INT64_MAX:
                return INT_TAG, number
            if number <= UINT64_MAX and plain[:1] not in '+-':
                return INT_TAG, number
        if STYLE_FLOAT.match(plain):
            return FLOAT_TAG, float(plain)
    return STR_TAG, literal


def parse_int(text):
    """Parse an integer literal with an optional sign and base prefix.

    Accepts ``0x``/``0X`` hex, ``0b``/``0B`` binary, ``0o``/``0O`` and
    leading-zero octal, and decimal. Returns None for anything else.
    """
    sign = 1
    if text[:1] in ('+', '-'):
        if text[0] == '-':
            sign = -1
        text = text[1:]
    base = 10
    if text[:2] in ('0x', '0X'):
        base, text = 16, text[2:]
    elif text[:2] in ('0b', '0B'):
        base, text = 2, text[2:]
    elif text[:2] in ('0o', '0O'):
        base, text = 8, text[2:]
    elif len(text) > 1 and text[0] == '0':
        base, text = 8, text[1:]
    if not INT_DIGITS[base].fullmatch(text):
        return None
    return sign * int(text, base)


def parse_timestamp(literal):
    """Parse the timestamp forms YAML 1.1 allows; None if ``literal`` is not one.

    Only literals with exactly four leading digits followed by '-' are
    considered. Fractions are truncated to microseconds; a timestamp without
    a zone is taken as UTC.
    """
    if not TIMESTAMP_LEAD.match(literal):
        return None
    for pattern in TIMESTAMP_FORMATS:
        match = pattern.fullmatch(literal)
        if match is None:
            continue
        groups = match.groups()
        year, month, day = (int(part) for part in groups[:3])
        hour = minute = second = microsecond = 0
        tzinfo = datetime.timezone.utc
        if len(groups) > 3:
            hour, minute, second = (int(part) for part in groups[3:6])
            if groups[6]:
                microsecond = int(groups[6][:6].ljust(6, '0'))
            if len(groups) > 7 and groups[7] != 'Z':
                offset = datetime.timedelta(hours=int(groups[7][1:3]),
                                            minutes=int(groups[7][4:6]))
                if groups[7][0] == '-':
                    offset = -offset
                tzinfo = datetime.timezone(offset)
        try:
            return datetime.datetime(year, month, day, hour, minute, second,
                                     microsecond, tzinfo=tzinfo)
        except ValueError:
            continue
    return None
