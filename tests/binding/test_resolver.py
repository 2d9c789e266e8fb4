"""
Tests for scalar resolution: YAML 1.1 booleans, nulls, integers in every
base, floats, timestamps and explicit tags.

Run with: python3 -m pytest tests/binding/test_resolver.py -v
"""

import datetime
import math

import pytest

from yamlbind import DecodeError
from yamlbind.resolver import (
    BOOL_TAG, FLOAT_TAG, INT_TAG, MERGE_TAG, NULL_TAG, STR_TAG, TIMESTAMP_TAG,
    parse_timestamp, resolve, short_tag,
)

UTC = datetime.timezone.utc


class TestSpecialWords:
    """Words resolved through the lookup table."""

    @pytest.mark.parametrize('word', ['y', 'Y', 'yes', 'Yes', 'YES', 'true', 'True',
                                      'TRUE', 'on', 'On', 'ON'])
    def test_true(self, word):
        """YAML 1.1 spellings of true."""
        assert resolve('', word) == (BOOL_TAG, True)

    @pytest.mark.parametrize('word', ['n', 'N', 'no', 'No', 'NO', 'false', 'False',
                                      'FALSE', 'off', 'Off', 'OFF'])
    def test_false(self, word):
        """YAML 1.1 spellings of false."""
        assert resolve('', word) == (BOOL_TAG, False)

    @pytest.mark.parametrize('word', ['', '~', 'null', 'Null', 'NULL'])
    def test_null(self, word):
        """Null spellings, the empty scalar included."""
        assert resolve('', word) == (NULL_TAG, None)

    def test_mixed_case_is_string(self):
        """Only the listed spellings count."""
        assert resolve('', 'yEs') == (STR_TAG, 'yEs')
        assert resolve('', 'nULL') == (STR_TAG, 'nULL')

    def test_infinity_and_nan(self):
        """Dotted special floats."""
        assert resolve('', '.inf') == (FLOAT_TAG, math.inf)
        assert resolve('', '-.Inf') == (FLOAT_TAG, -math.inf)
        assert resolve('', '+.INF') == (FLOAT_TAG, math.inf)
        tag, value = resolve('', '.NaN')
        assert tag == FLOAT_TAG and math.isnan(value)

    def test_merge_key_is_plain_text(self):
        """'<<' is only special as a mapping key; on its own it is a string."""
        assert resolve('', '<<') == (STR_TAG, '<<')
        assert resolve(MERGE_TAG, '<<') == (MERGE_TAG, '<<')


class TestNumbers:
    """Integer and float literals."""

    @pytest.mark.parametrize('literal, value', [
        ('0', 0), ('42', 42), ('-17', -17), ('+5', 5),
        ('0x1A', 26), ('0X1a', 26), ('-0x10', -16),
        ('0o17', 15), ('017', 15), ('0b101', 5), ('-0b101', -5),
        ('1_000_000', 1000000),
    ])
    def test_integers(self, literal, value):
        """Decimal, hex, octal and binary integers."""
        assert resolve('', literal) == (INT_TAG, value)

    def test_int64_bounds(self):
        """Anything that fits int64 is an int."""
        assert resolve('', '9223372036854775807') == (INT_TAG, (1 << 63) - 1)
        assert resolve('', '-9223372036854775808') == (INT_TAG, -(1 << 63))

    def test_uint64_range(self):
        """Unsigned 64-bit values are ints as well."""
        assert resolve('', '18446744073709551615') == (INT_TAG, (1 << 64) - 1)

    def test_beyond_64_bits_is_float(self):
        """Wider literals fall through to float."""
        assert resolve('', '18446744073709551616') == (FLOAT_TAG, 18446744073709551616.0)
        assert resolve('', '-9223372036854775809')[0] == FLOAT_TAG

    @pytest.mark.parametrize('literal, value', [
        ('1.5', 1.5), ('-0.25', -0.25), ('.5', 0.5), ('1e3', 1000.0),
        ('6.02E+23', 6.02e23), ('1_0.5', 10.5), ('08', 8.0),
    ])
    def test_floats(self, literal, value):
        """Float literals, including ones that are not valid octal."""
        assert resolve('', literal) == (FLOAT_TAG, value)

    def test_not_numbers(self):
        """Almost-numbers stay strings."""
        for literal in ['1.2.3', '0x', '+', '-', '1e', '12abc', '0b102']:
            assert resolve('', literal) == (STR_TAG, literal), literal


class TestTimestamps:
    """The three accepted timestamp forms."""

    def test_date(self):
        """A plain date is midnight UTC."""
        assert resolve('', '2001-12-14') == (
            TIMESTAMP_TAG, datetime.datetime(2001, 12, 14, tzinfo=UTC))

    def test_single_digit_fields(self):
        """Month and day may have one digit."""
        assert parse_timestamp('2001-1-2') == datetime.datetime(2001, 1, 2, tzinfo=UTC)

    def test_iso_with_zone(self):
        """'T' separated timestamps carry a zone."""
        value = parse_timestamp('2001-12-14t21:59:43.10-05:00')
        zone = datetime.timezone(-datetime.timedelta(hours=5))
        assert value == datetime.datetime(2001, 12, 14, 21, 59, 43, 100000, tzinfo=zone)

    def test_iso_utc(self):
        """'Z' means UTC."""
        assert parse_timestamp('2001-12-14T21:59:43Z') == \
            datetime.datetime(2001, 12, 14, 21, 59, 43, tzinfo=UTC)

    def test_space_separated(self):
        """A single space separates date and time; no zone means UTC."""
        assert parse_timestamp('2001-12-14 21:59:43.123456789') == \
            datetime.datetime(2001, 12, 14, 21, 59, 43, 123456, tzinfo=UTC)

    def test_not_timestamps(self):
        """Near misses are not timestamps."""
        assert parse_timestamp('01-12-14') is None
        assert parse_timestamp('2001-12-14 ') is None
        assert parse_timestamp('2001-12-14\n') is None
        assert parse_timestamp('2001-13-45') is None
        assert resolve('', '2001-13-45') == (STR_TAG, '2001-13-45')

    def test_timestamp_only_when_untagged(self):
        """An explicit !!int tag does not look for timestamps."""
        with pytest.raises(DecodeError):
            resolve(INT_TAG, '2001-12-14')


class TestExplicitTags:
    """Tagged scalars must agree with their literal."""

    def test_str_tag_keeps_literal(self):
        """!!str never resolves."""
        assert resolve(STR_TAG, '123') == (STR_TAG, '123')
        assert resolve(STR_TAG, 'yes') == (STR_TAG, 'yes')

    def test_float_widens_int(self):
        """!!float accepts an integer literal."""
        assert resolve(FLOAT_TAG, '3') == (FLOAT_TAG, 3.0)

    def test_matching_tag(self):
        """A tag equal to the resolved one is fine."""
        assert resolve(BOOL_TAG, 'yes') == (BOOL_TAG, True)
        assert resolve(INT_TAG, '0x10') == (INT_TAG, 16)

    def test_mismatch(self):
        """Other disagreements are fatal."""
        with pytest.raises(DecodeError) as excinfo:
            resolve(BOOL_TAG, '1')
        assert str(excinfo.value) == 'yaml: cannot decode !!int `1` as a !!bool'

    def test_mismatch_str_as_int(self):
        """A word tagged !!int is rejected."""
        with pytest.raises(DecodeError) as excinfo:
            resolve(INT_TAG, 'abc')
        assert excinfo.value.message == 'cannot decode !!str `abc` as a !!int'

    def test_unknown_tag_passes_through(self):
        """Tags without resolution rules keep the literal."""
        assert resolve('!color', 'red') == ('!color', 'red')
        assert resolve('tag:example.com,2000:x', '1') == ('tag:example.com,2000:x', '1')

    def test_short_tag(self):
        """Long yaml.org tags print in '!!' form."""
        assert short_tag(INT_TAG) == '!!int'
        assert short_tag('!local') == '!local'
