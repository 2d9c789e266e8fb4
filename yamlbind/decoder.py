"""Decoder: binds a composed node tree onto a destination shape.

Mismatches between a node and its destination are soft: the value is left
out, a ``line N: ...`` message is collected and decoding goes on, and the
messages are raised together as an UnmarshalError at the end. Problems that
make the document itself unsafe or meaningless (alias cycles, excessive
aliasing, bad merge values, invalid keys) raise DecodeError at once.
"""

import base64
import binascii
import logging

from .error import DecodeError, UnmarshalError
from .fields import get_struct_info
from .nodes import AliasNode, DocumentNode, MappingNode, ScalarNode, SequenceNode
from .resolver import (
    BINARY_TAG, MAP_TAG, MERGE_TAG, NULL_TAG, SEQ_TAG, STR_TAG, resolve, short_tag,
)
from .shapes import (
    DYNAMIC, MISMATCH, ArrayShape, DynamicShape, MapItem, MapShape, MapSlice,
    MapSliceShape, OptionalShape, SequenceShape, StructShape, shape_of,
)

_LOGGER = logging.getLogger(__name__)

__all__ = ['Decoder', 'MapItem', 'MapSlice', 'allowed_alias_ratio', 'is_merge']

# Alias expansion limits; see allowed_alias_ratio.
ALIAS_RATIO_RANGE_LOW = 400000
ALIAS_RATIO_RANGE_HIGH = 4000000
ALIAS_RATIO_RANGE = float(ALIAS_RATIO_RANGE_HIGH - ALIAS_RATIO_RANGE_LOW)

DYNAMIC_MAP = MapShape(DYNAMIC, DYNAMIC)
MAP_SLICE = shape_of(MapSlice)
STR = shape_of(str)


def allowed_alias_ratio(decode_count):
    """Share of decode steps that may come from alias expansion.

    Small documents may be almost all aliases; from 400k decode steps on the
    allowance shrinks linearly to 10% at 4M.
    """
    if decode_count <= ALIAS_RATIO_RANGE_LOW:
        return 0.99
    if decode_count >= ALIAS_RATIO_RANGE_HIGH:
        return 0.10
    return 0.99 - 0.89 * ((decode_count - ALIAS_RATIO_RANGE_LOW) / ALIAS_RATIO_RANGE)


def is_merge(node):
    return (isinstance(node, ScalarNode) and node.value == '<<'
            and (node.implicit or node.tag == MERGE_TAG))


def is_null(node):
    if not isinstance(node, ScalarNode):
        return False
    if node.tag == NULL_TAG:
        return True
    return node.tag == '' and node.implicit and node.value in ('', '~', 'null', 'Null', 'NULL')


def decode_binary(text):
    # line breaks are allowed inside the encoded data
    try:
        return base64.b64decode(text.replace('\n', '').replace('\r', ''), validate=True)
    except binascii.Error:
        raise DecodeError("!!binary value contains invalid base64 data") from None


def _hashable(value):
    try:
        hash(value)
    except TypeError:
        return False
    return True


class Decoder:
    """One decode call. Not reusable: counters and errors accumulate.

    The per-node methods are generators. A method that needs a child value
    yields ``(node, shape, out)`` and is sent back ``(good, value)``; ``run``
    drives them on an explicit stack, so nesting depth is bounded by the
    scanner limits rather than by the interpreter stack.
    """

    def __init__(self, strict=False):
        self.strict = strict
        self.errors = []
        # alias nodes being expanded right now
        self.aliases = set()
        # dynamic mappings nested in a MapSlice become MapSlice too
        self.map_slice = False
        self.decode_count = 0
        self.alias_count = 0
        self.alias_depth = 0

    def decode(self, node, shape, out=None):
        """Bind ``node`` onto ``shape`` and return the value.

        ``out`` is an existing dict, MapSlice or dataclass instance to fill
        in place. Raises UnmarshalError carrying the partial value when any
        soft mismatch was collected.
        """
        good, value = self.run(node, shape, out)
        _LOGGER.debug("decode finished with %d soft error(s) after %d step(s), %d through aliases",
                      len(self.errors), self.decode_count, self.alias_count)
        if self.errors:
            raise UnmarshalError(self.errors, value)
        return value

    def run(self, node, shape, out=None):
        """Return ``(good, value)`` for ``node``, driving child requests."""
        stack = [self.unmarshal(node, shape, out)]
        result = None
        while stack:
            try:
                request = stack[-1].send(result)
            except StopIteration as stop:
                stack.pop()
                result = stop.value
                continue
            stack.append(self.unmarshal(*request))
            result = None
        return result

    def terror(self, node, tag, shape):
        if isinstance(node, ScalarNode) and node.tag:
            tag = node.tag
        value = ''
        if tag not in (SEQ_TAG, MAP_TAG):
            if len(node.value) > 10:
                value = " `%s...`" % node.value[:7]
            else:
                value = " `%s`" % node.value
        self.errors.append("line %d: cannot unmarshal %s%s into %s"
                           % (node.line + 1, short_tag(tag), value, shape.name))

    def unmarshal(self, node, shape, out=None):
        """Generator returning ``(good, value)``; ``value`` is ``out`` when not good."""
        self.decode_count += 1
        if self.alias_depth > 0:
            self.alias_count += 1
        if self.alias_count > 100 and self.decode_count > 1000 \
                and self.alias_count / self.decode_count > allowed_alias_ratio(self.decode_count):
            raise DecodeError("document contains excessive aliasing")
        if isinstance(node, DocumentNode):
            return (yield from self.document(node, shape, out))
        if isinstance(node, AliasNode):
            return (yield from self.alias(node, shape, out))
        if isinstance(shape, OptionalShape) and not is_null(node):
            shape = shape.inner
        if isinstance(node, ScalarNode):
            return self.scalar(node, shape, out)
        if isinstance(node, MappingNode):
            return (yield from self.mapping(node, shape, out))
        if isinstance(node, SequenceNode):
            return (yield from self.sequence(node, shape, out))
        raise DecodeError("cannot decode node %r" % (node,))

    def document(self, node, shape, out):
        if len(node.value) == 1:
            good, out = yield node.value[0], shape, out
        return True, out

    def alias(self, node, shape, out):
        if node in self.aliases:
            raise DecodeError("anchor '%s' value contains itself" % node.value, node.line + 1)
        self.aliases.add(node)
        self.alias_depth += 1
        try:
            return (yield node.target, shape, out)
        finally:
            self.alias_depth -= 1
            self.aliases.discard(node)

    def scalar(self, node, shape, out):
        if node.tag == '' and not node.implicit:
            tag, resolved = STR_TAG, node.value
        else:
            tag, resolved = resolve(node.tag, node.value)
            if tag == BINARY_TAG:
                resolved = decode_binary(resolved)
        if resolved is None:
            return True, shape.zero()
        value = shape.from_scalar(tag, resolved, node.value)
        if value is MISMATCH:
            self.terror(node, tag, shape)
            return False, out
        return True, value

    def sequence(self, node, shape, out):
        children = node.value
        if isinstance(shape, ArrayShape):
            if len(children) != len(shape.items):
                raise DecodeError("invalid array: want %d elements but got %d"
                                  % (len(shape.items), len(children)), node.line + 1)
            values = []
            for child, item in zip(children, shape.items):
                good, value = yield child, item, None
                values.append(value if good else item.zero())
            return True, tuple(values)

        if isinstance(shape, SequenceShape):
            item = shape.item
        elif isinstance(shape, DynamicShape):
            item = shape
        else:
            self.terror(node, SEQ_TAG, shape)
            return False, out
        values = []
        for child in children:
            good, value = yield child, item, None
            if good:
                values.append(value)
        if isinstance(shape, SequenceShape) and shape.as_tuple:
            return True, tuple(values)
        return True, values

    def mapping(self, node, shape, out):
        if isinstance(shape, StructShape):
            return (yield from self.mapping_struct(node, shape, out))
        if isinstance(shape, MapSliceShape):
            return (yield from self.mapping_slice(node, out))
        if isinstance(shape, DynamicShape):
            if self.map_slice:
                return (yield from self.mapping_slice(node, None))
            shape = DYNAMIC_MAP
            out = None
        elif not isinstance(shape, MapShape):
            self.terror(node, MAP_TAG, shape)
            return False, out
        if not isinstance(out, dict):
            out = {}

        map_slice = self.map_slice
        if shape.key is DYNAMIC and shape.value is DYNAMIC:
            self.map_slice = False
        pairs = node.pairs()
        for key_node, value_node in pairs:
            if is_merge(key_node):
                yield from self.merge(value_node, shape, out)
        explicit = set()
        for key_node, value_node in pairs:
            if is_merge(key_node):
                continue
            good, key = yield key_node, shape.key, None
            if not good:
                continue
            if not _hashable(key):
                raise DecodeError("invalid map key: %r" % (key,), key_node.line + 1)
            good, value = yield value_node, shape.value, None
            if good:
                self.set_map_item(value_node, out, key, value, explicit)
        self.map_slice = map_slice
        return True, out

    def set_map_item(self, node, out, key, value, explicit):
        if key in explicit and self.strict:
            self.errors.append("line %d: key %r already set in map" % (node.line + 1, key))
            return
        explicit.add(key)
        out[key] = value

    def mapping_slice(self, node, out):
        if not isinstance(out, MapSlice):
            out = MapSlice()
        map_slice = self.map_slice
        self.map_slice = True
        pairs = node.pairs()
        for key_node, value_node in pairs:
            if is_merge(key_node):
                yield from self.merge(value_node, MAP_SLICE, out)
        # items already present came from merges and give way to explicit keys
        merged = {}
        for index, item in enumerate(out):
            if _hashable(item.key):
                merged[item.key] = index
        for key_node, value_node in pairs:
            if is_merge(key_node):
                continue
            good, key = yield key_node, DYNAMIC, None
            if not good:
                continue
            good, value = yield value_node, DYNAMIC, None
            if not good:
                continue
            if _hashable(key) and key in merged:
                out[merged.pop(key)] = MapItem(key, value)
            else:
                out.append(MapItem(key, value))
        self.map_slice = map_slice
        return True, out

    def mapping_struct(self, node, shape, out):
        info = get_struct_info(shape.cls)
        if not isinstance(out, shape.cls):
            out = shape.zero()
        pairs = node.pairs()
        for key_node, value_node in pairs:
            if is_merge(key_node):
                yield from self.merge(value_node, shape, out)

        done = set()
        explicit = set()
        for key_node, value_node in pairs:
            if is_merge(key_node):
                continue
            good, name = yield key_node, STR, None
            if not good:
                continue
            field = info.fields_map.get(name)
            if field is not None:
                if self.strict:
                    if field.id in done:
                        self.errors.append("line %d: field %s already set in type %s"
                                           % (key_node.line + 1, name, shape.name))
                        continue
                    done.add(field.id)
                target = out
                for attribute in field.path[:-1]:
                    target = getattr(target, attribute)
                good, value = yield value_node, field.shape, getattr(target, field.path[-1])
                if good:
                    setattr(target, field.path[-1], value)
            elif info.inline_map is not None:
                extra = getattr(out, info.inline_map)
                if not isinstance(extra, dict):
                    extra = {}
                    setattr(out, info.inline_map, extra)
                good, value = yield value_node, info.inline_map_shape.value, None
                if good:
                    self.set_map_item(value_node, extra, name, value, explicit)
            elif self.strict:
                self.errors.append("line %d: field %s not found in type %s"
                                   % (key_node.line + 1, name, shape.name))
        return True, out

    def merge(self, node, shape, out):
        if isinstance(node, MappingNode):
            yield node, shape, out
        elif isinstance(node, AliasNode):
            if not isinstance(node.target, MappingNode):
                self.fail_merge(node)
            yield node, shape, out
        elif isinstance(node, SequenceNode):
            # Earlier maps take precedence, so apply them last.
            for child in reversed(node.value):
                if isinstance(child, AliasNode):
                    if not isinstance(child.target, MappingNode):
                        self.fail_merge(child)
                elif not isinstance(child, MappingNode):
                    self.fail_merge(child)
                yield child, shape, out
        else:
            self.fail_merge(node)

    def fail_merge(self, node):
        raise DecodeError("map merge requires map or sequence of maps as the value",
                          node.line + 1)
