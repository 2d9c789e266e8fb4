"""
Tests for dataclass destinations: field keys, flags, inline fields and maps,
strict mode and in-place decoding.

Run with: python3 -m pytest tests/binding/test_struct.py -v
"""

import dataclasses
import datetime
from typing import Any, Optional

import pytest

import yamlbind
from yamlbind import StructInfoError, UnmarshalError
from yamlbind.fields import get_struct_info


@dataclasses.dataclass
class Server:
    host: str = ''
    port: int = 0
    tags: list[str] = dataclasses.field(default_factory=list)
    timeout: Optional[datetime.timedelta] = None


@dataclasses.dataclass
class Named:
    MaxConn: int = 0
    max_idle: int = dataclasses.field(default=0, metadata={'yaml': 'idle'})
    secret: str = dataclasses.field(default='', metadata={'yaml': '-'})
    _private: int = 0


@dataclasses.dataclass
class Required:
    x: int
    y: str


@dataclasses.dataclass
class Limits:
    cpu: int = 1
    mem: int = 2


@dataclasses.dataclass
class Pod:
    name: str = ''
    limits: Limits = dataclasses.field(default_factory=Limits)


@dataclasses.dataclass
class Common:
    name: str = ''
    owner: str = ''


@dataclasses.dataclass
class Job:
    common: Common = dataclasses.field(default_factory=Common, metadata={'yaml': ',inline'})
    retries: int = 0


@dataclasses.dataclass
class WithExtra:
    name: str = ''
    extra: dict[str, Any] = dataclasses.field(default_factory=dict, metadata={'yaml': ',inline'})


@dataclasses.dataclass
class Tree:
    value: int = 0
    children: list['Tree'] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class BadFlag:
    a: int = dataclasses.field(default=0, metadata={'yaml': 'a,bogus'})


@dataclasses.dataclass
class DuplicateKey:
    a: int = 0
    b: int = dataclasses.field(default=0, metadata={'yaml': 'a'})


@dataclasses.dataclass
class InlineScalar:
    a: int = dataclasses.field(default=0, metadata={'yaml': ',inline'})


@dataclasses.dataclass
class TwoInlineMaps:
    a: dict[str, int] = dataclasses.field(default_factory=dict, metadata={'yaml': ',inline'})
    b: dict[str, int] = dataclasses.field(default_factory=dict, metadata={'yaml': ',inline'})


@dataclasses.dataclass
class IntKeyedInline:
    a: dict[int, int] = dataclasses.field(default_factory=dict, metadata={'yaml': ',inline'})


@dataclasses.dataclass
class InlineCollision:
    common: Common = dataclasses.field(default_factory=Common, metadata={'yaml': ',inline'})
    name: str = ''


@dataclasses.dataclass(frozen=True)
class Frozen:
    a: int = 0


class TestFields:
    """Field keys from names and metadata."""

    def test_basic(self):
        """Fields bind by their lower-cased name."""
        server = yamlbind.unmarshal('host: h\nport: 80\ntags: [a, b]\ntimeout: 5s\n', Server)
        assert server == Server('h', 80, ['a', 'b'], datetime.timedelta(seconds=5))

    def test_key_names(self):
        """Names are lower-cased, metadata renames, '-' and '_' skip."""
        named = yamlbind.unmarshal('maxconn: 5\nidle: 2\nsecret: s\n_private: 1\n', Named)
        assert named == Named(MaxConn=5, max_idle=2)

    def test_attribute_name_not_a_key(self):
        """A renamed field is not reachable by its attribute name."""
        assert yamlbind.unmarshal('max_idle: 3', Named).max_idle == 0

    def test_unknown_keys_ignored(self):
        """Keys without a field are ignored outside strict mode."""
        assert yamlbind.unmarshal('host: h\nnope: 1\n', Server) == Server(host='h')

    def test_required_fields_get_zero_values(self):
        """Fields without defaults start from their zero value."""
        assert yamlbind.unmarshal('x: 1', Required) == Required(1, '')

    def test_nested_keeps_defaults(self):
        """Nested dataclasses are filled, not replaced."""
        pod = yamlbind.unmarshal('name: p\nlimits: {cpu: 4}\n', Pod)
        assert pod == Pod('p', Limits(4, 2))

    def test_null_field(self):
        """Null resets a field to its zero value."""
        assert yamlbind.unmarshal('port: ~\ntimeout: ~\n', Server) == Server()

    def test_recursive(self):
        """Dataclasses may refer to themselves."""
        tree = yamlbind.unmarshal('value: 1\nchildren: [{value: 2}, {value: 3, children: [{}]}]\n', Tree)
        assert tree == Tree(1, [Tree(2), Tree(3, [Tree()])])

    def test_soft_error_in_field(self):
        """A bad field value is reported with the dataclass name."""
        with pytest.raises(UnmarshalError) as excinfo:
            yamlbind.unmarshal('host: h\nport: high\n', Server)
        assert excinfo.value.errors == ['line 2: cannot unmarshal !!str `high` into int']
        assert excinfo.value.value == Server(host='h')

    def test_scalar_into_struct(self):
        """A scalar does not fit a dataclass."""
        with pytest.raises(UnmarshalError) as excinfo:
            yamlbind.unmarshal('just text', Server)
        assert excinfo.value.errors == ['line 1: cannot unmarshal !!str `just text` into Server']


class TestInline:
    """The ,inline flag."""

    def test_inline_struct(self):
        """Fields of an inline dataclass are keys of the outer one."""
        job = yamlbind.unmarshal('name: build\nowner: me\nretries: 2\n', Job)
        assert job == Job(Common('build', 'me'), 2)

    def test_inline_map(self):
        """An inline dict collects unknown keys."""
        value = yamlbind.unmarshal('name: n\nx: 1\ny: [2]\n', WithExtra)
        assert value == WithExtra('n', {'x': 1, 'y': [2]})

    def test_inline_map_strict_duplicates(self):
        """Strict mode checks the inline dict for repeated keys."""
        with pytest.raises(UnmarshalError) as excinfo:
            yamlbind.unmarshal('x: 1\nx: 2\n', WithExtra, strict=True)
        assert excinfo.value.errors == ["line 2: key 'x' already set in map"]


class TestStructInfoErrors:
    """Invalid field metadata."""

    def test_unsupported_flag(self):
        """Unknown flags are rejected."""
        with pytest.raises(StructInfoError) as excinfo:
            yamlbind.unmarshal('a: 1', BadFlag)
        assert str(excinfo.value) == "Unsupported flag 'bogus' in tag 'a,bogus' of type BadFlag"

    def test_duplicated_key(self):
        """Two fields may not share a key."""
        with pytest.raises(StructInfoError) as excinfo:
            get_struct_info(DuplicateKey)
        assert str(excinfo.value) == "Duplicated key 'a' in struct DuplicateKey"

    def test_duplicated_key_through_inline(self):
        """Inline fields count as keys of the outer dataclass."""
        with pytest.raises(StructInfoError) as excinfo:
            get_struct_info(InlineCollision)
        assert str(excinfo.value) == "Duplicated key 'name' in struct InlineCollision"

    def test_inline_scalar(self):
        """Only dataclasses and dicts can be inline."""
        with pytest.raises(StructInfoError) as excinfo:
            get_struct_info(InlineScalar)
        assert str(excinfo.value) == 'Option ,inline needs a struct value field'

    def test_two_inline_maps(self):
        """At most one inline dict."""
        with pytest.raises(StructInfoError) as excinfo:
            get_struct_info(TwoInlineMaps)
        assert str(excinfo.value) == 'Multiple ,inline maps in struct TwoInlineMaps'

    def test_inline_map_needs_str_keys(self):
        """Inline dicts are keyed by str."""
        with pytest.raises(StructInfoError) as excinfo:
            get_struct_info(IntKeyedInline)
        assert 'needs a map with string keys' in str(excinfo.value)

    def test_frozen(self):
        """Frozen dataclasses cannot be filled."""
        with pytest.raises(StructInfoError):
            get_struct_info(Frozen)

    def test_struct_info_error_is_type_error(self):
        """StructInfoError is also a TypeError."""
        assert issubclass(StructInfoError, TypeError)
        assert issubclass(StructInfoError, yamlbind.YAMLError)

    def test_info_is_cached(self):
        """The field table is built once per class."""
        assert get_struct_info(Server) is get_struct_info(Server)
        info = get_struct_info(Job)
        assert [field.key for field in info.fields_list] == ['name', 'owner', 'retries']
        assert info.fields_map['owner'].path == ('common', 'owner')


class TestStrictStruct:
    """Strict mode with dataclasses."""

    def test_unknown_field(self):
        """Unknown keys are reported."""
        with pytest.raises(UnmarshalError) as excinfo:
            yamlbind.unmarshal('host: h\nextra: 1\n', Server, strict=True)
        assert excinfo.value.errors == ['line 2: field extra not found in type Server']
        assert excinfo.value.value.host == 'h'

    def test_repeated_field(self):
        """A field set twice keeps the first value."""
        with pytest.raises(UnmarshalError) as excinfo:
            yamlbind.unmarshal('port: 1\nport: 2\n', Server, strict=True)
        assert excinfo.value.errors == ['line 2: field port already set in type Server']
        assert excinfo.value.value.port == 1

    def test_repeated_field_non_strict(self):
        """Outside strict mode the last value wins."""
        assert yamlbind.unmarshal('port: 1\nport: 2\n', Server).port == 2


class TestDecodeInPlace:
    """decode() into an existing dataclass instance."""

    def test_fills_instance(self):
        """Only the keys present are changed."""
        server = Server(host='keep', port=1)
        yamlbind.decode('port: 9', server)
        assert server == Server(host='keep', port=9)

    def test_partial_on_error(self):
        """Good fields are set even when others fail."""
        server = Server()
        with pytest.raises(UnmarshalError):
            yamlbind.decode('port: x\nhost: h\n', server)
        assert server.host == 'h'
        assert server.port == 0

    def test_null_document_resets(self):
        """A null document resets the instance to zero values."""
        server = Server(host='h', port=5)
        yamlbind.decode('~', server)
        assert server == Server()
