"""Dataclass field tables for struct destinations.

A field is named after its ``yaml`` metadata entry::

    @dataclasses.dataclass
    class Service:
        name: str = ''
        ports: list[int] = dataclasses.field(default_factory=list,
                                             metadata={'yaml': 'ports,flow'})
        extra: dict[str, Any] = dataclasses.field(default_factory=dict,
                                                  metadata={'yaml': ',inline'})

The entry is ``key[,flag...]`` where the flags are ``omitempty``, ``flow`` and
``inline``. An empty key means the lower-cased field name, ``-`` leaves the
field out. The table for each class is built once and cached process-wide.
"""

import dataclasses
import logging
import threading
import typing

from .error import StructInfoError
from .shapes import MapShape, StrShape, StructShape, shape_of

_LOGGER = logging.getLogger(__name__)

__all__ = ['FieldInfo', 'StructInfo', 'get_struct_info', 'StructInfoError']


class FieldInfo:
    """One decodable key of a struct.

    ``path`` holds the attribute names leading to the field; it is longer
    than one element for fields flattened in from an inline dataclass.
    """

    def __init__(self, key, path, shape, num, omit_empty=False, flow=False):
        self.key = key
        self.path = path
        self.shape = shape
        self.num = num
        self.omit_empty = omit_empty
        self.flow = flow
        # Distinct for every field of the outermost struct, inline ones included.
        self.id = 0

    def __repr__(self):
        return 'FieldInfo(key=%r, path=%r, shape=%r)' % (self.key, self.path, self.shape)


class StructInfo:

    def __init__(self, fields_map, fields_list, inline_map=None, inline_map_shape=None):
        self.fields_map = fields_map
        self.fields_list = fields_list
        # attribute name of the ",inline" dict catching unknown keys
        self.inline_map = inline_map
        self.inline_map_shape = inline_map_shape


_struct_info_cache = {}
_struct_info_lock = threading.RLock()


def get_struct_info(cls):
    """Return the cached StructInfo for dataclass ``cls``.

    Raises StructInfoError when the field tags of ``cls`` are invalid.
    """
    info = _struct_info_cache.get(cls)
    if info is not None:
        return info
    # Reentrant: inline dataclasses are looked up while the lock is held.
    with _struct_info_lock:
        info = _struct_info_cache.get(cls)
        if info is None:
            info = _build_struct_info(cls)
            _struct_info_cache[cls] = info
            _LOGGER.debug("struct info cached for %s: %d field(s)",
                          cls.__qualname__, len(info.fields_list))
    return info


def _build_struct_info(cls):
    name = cls.__qualname__
    if cls.__dataclass_params__.frozen:
        raise StructInfoError("cannot decode into frozen dataclass %s" % name)
    hints = typing.get_type_hints(cls)
    fields_map = {}
    fields_list = []
    inline_map = None
    inline_map_shape = None

    def add(info):
        if info.key in fields_map:
            raise StructInfoError("Duplicated key '%s' in struct %s" % (info.key, name))
        info.id = len(fields_list)
        fields_map[info.key] = info
        fields_list.append(info)

    for num, field in enumerate(dataclasses.fields(cls)):
        if field.name.startswith('_'):
            continue
        tag = field.metadata.get('yaml', '')
        if tag == '-':
            continue
        key, *flags = tag.split(',')
        omit_empty = flow = inline = False
        for flag in flags:
            if flag == 'omitempty':
                omit_empty = True
            elif flag == 'flow':
                flow = True
            elif flag == 'inline':
                inline = True
            else:
                raise StructInfoError("Unsupported flag %r in tag %r of type %s"
                                      % (flag, tag, name))
        shape = shape_of(hints[field.name])

        if inline:
            if isinstance(shape, MapShape):
                if inline_map is not None:
                    raise StructInfoError("Multiple ,inline maps in struct %s" % name)
                if not isinstance(shape.key, StrShape):
                    raise StructInfoError("Option ,inline needs a map with string keys in struct %s"
                                          % name)
                inline_map = field.name
                inline_map_shape = shape
            elif isinstance(shape, StructShape):
                inner = get_struct_info(shape.cls)
                for inner_field in inner.fields_list:
                    add(FieldInfo(inner_field.key, (field.name,) + inner_field.path,
                                  inner_field.shape, num, inner_field.omit_empty,
                                  inner_field.flow))
            else:
                raise StructInfoError("Option ,inline needs a struct value field")
            continue

        add(FieldInfo(key or field.name.lower(), (field.name,), shape, num,
                      omit_empty, flow))

    return StructInfo(fields_map, fields_list, inline_map, inline_map_shape)
