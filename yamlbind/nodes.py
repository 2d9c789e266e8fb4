"""Node tree produced by the composer.

Mapping nodes keep their children as one flat list alternating key and value
nodes, so duplicate keys survive until the decoder sees them. Alias nodes
point at the anchored node they stand for.
"""


class Node:
    """Base class for YAML nodes."""

    def __init__(self, tag=None, value=None, start_mark=None, end_mark=None,
                 anchor=None):
        self.tag = tag
        self.value = value
        self.start_mark = start_mark
        self.end_mark = end_mark
        self.anchor = anchor

    @property
    def line(self):
        # zero-based, like Mark.line
        return self.start_mark.line if self.start_mark is not None else 0

    @property
    def column(self):
        return self.start_mark.column if self.start_mark is not None else 0

    def __repr__(self):
        value = self.value
        if isinstance(value, list):
            if len(value) == 1:
                value = '<1 item>'
            else:
                value = '<%d items>' % len(value)
        else:
            if len(repr(value)) > 75:
                value = repr(value[:70]) + ' ... '
            else:
                value = repr(value)
        return '%s(tag=%r, value=%s)' % (self.__class__.__name__, self.tag, value)


class DocumentNode(Node):
    """Document root; holds the single top-level node and the anchor table."""
    id = 'document'

    def __init__(self, value=None, start_mark=None, end_mark=None, anchors=None):
        super().__init__(None, value, start_mark, end_mark)
        self.anchors = anchors if anchors is not None else {}

    @property
    def root(self):
        return self.value[0] if self.value else None


class ScalarNode(Node):
    """Scalar node (strings, numbers, etc.)."""
    id = 'scalar'

    def __init__(self, tag, value, start_mark=None, end_mark=None, style=None,
                 implicit=False, anchor=None):
        super().__init__(tag, value, start_mark, end_mark, anchor)
        self.style = style
        self.implicit = implicit


class CollectionNode(Node):
    """Base class for collection nodes."""

    def __init__(self, tag, value, start_mark=None, end_mark=None, flow_style=None,
                 implicit=False, anchor=None):
        super().__init__(tag, value, start_mark, end_mark, anchor)
        self.flow_style = flow_style
        self.implicit = implicit


class SequenceNode(CollectionNode):
    """Sequence node (lists/arrays)."""
    id = 'sequence'


class MappingNode(CollectionNode):
    """Mapping node; value is [key0, value0, key1, value1, ...]."""
    id = 'mapping'

    def pairs(self):
        children = self.value
        return [(children[i], children[i + 1]) for i in range(0, len(children) - 1, 2)]


class AliasNode(Node):
    """Alias node; ``target`` is the anchored node it refers to."""
    id = 'alias'

    def __init__(self, name, target, start_mark=None, end_mark=None):
        super().__init__(None, name, start_mark, end_mark)
        self.target = target
