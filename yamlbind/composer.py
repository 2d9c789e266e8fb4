"""Composer: turns the event stream into a node tree.

Provides a Composer class that converts events into DocumentNode trees.
Expects subclasses to provide check_event/get_event/peek_event methods
(from a Parser).
"""

import logging

from .error import MarkedYAMLError
from .events import (
    AliasEvent, CollectionEndEvent, DocumentStartEvent, MappingStartEvent,
    ScalarEvent, SequenceStartEvent, StreamEndEvent, StreamStartEvent,
)
from .nodes import AliasNode, DocumentNode, MappingNode, ScalarNode, SequenceNode

_LOGGER = logging.getLogger(__name__)

__all__ = ['Composer', 'ComposerError']


class ComposerError(MarkedYAMLError):
    """YAML composer error (e.g., undefined alias)."""
    pass


class Composer:
    """Event stream to node tree.

    Anchors live in the anchor table of the document being composed; an
    anchor defined twice refers to its latest definition from then on.
    """

    def __init__(self):
        self.anchors = {}

    def check_node(self):
        # Drop StreamStartEvent
        if self.check_event(StreamStartEvent):
            self.get_event()
        return not self.check_event(StreamEndEvent)

    def get_single_node(self):
        # Only the first document of a stream is composed; whatever follows
        # it is never parsed.
        if self.check_node():
            return self.compose_document()
        return None

    def compose_document(self):
        start_event = self.get_event()
        if not isinstance(start_event, DocumentStartEvent):
            raise ComposerError(None, None,
                                "expected a document start but found %s"
                                % type(start_event).__name__,
                                start_event.start_mark)
        document = DocumentNode([], start_event.start_mark, start_event.end_mark)
        self.anchors = document.anchors
        document.value.append(self.compose_node())
        # Drop DocumentEndEvent
        end_event = self.get_event()
        document.end_mark = end_event.end_mark
        _LOGGER.debug("composed document at line %d with %d anchor(s)",
                      document.line + 1, len(document.anchors))
        return document

    def compose_node(self):
        # Collections are filled through an explicit stack, so nesting depth
        # is bounded by the scanner limits rather than the interpreter stack.
        stack = []
        while True:
            event = self.get_event()
            if isinstance(event, AliasEvent):
                node = self.compose_alias_node(event)
            elif isinstance(event, ScalarEvent):
                node = self.compose_scalar_node(event)
            elif isinstance(event, SequenceStartEvent):
                stack.append(self.compose_collection_node(SequenceNode, event))
                continue
            elif isinstance(event, MappingStartEvent):
                stack.append(self.compose_collection_node(MappingNode, event))
                continue
            elif isinstance(event, CollectionEndEvent) and stack:
                node = stack.pop()
                node.end_mark = event.end_mark
            else:
                raise ComposerError(None, None,
                                    "expected a node but found %s" % type(event).__name__,
                                    event.start_mark)
            if not stack:
                return node
            stack[-1].value.append(node)

    def compose_alias_node(self, event):
        anchor = event.anchor
        if anchor not in self.anchors:
            raise ComposerError(None, None,
                                "unknown anchor '%s' referenced" % anchor,
                                event.start_mark)
        return AliasNode(anchor, self.anchors[anchor],
                         start_mark=event.start_mark, end_mark=event.end_mark)

    def compose_scalar_node(self, event):
        node = ScalarNode(event.tag or '', event.value,
                          start_mark=event.start_mark,
                          end_mark=event.end_mark,
                          style=event.style,
                          implicit=event.implicit,
                          anchor=event.anchor)
        if event.anchor is not None:
            self.anchors[event.anchor] = node
        return node

    def compose_collection_node(self, node_class, event):
        node = node_class(event.tag or '', [],
                          start_mark=event.start_mark,
                          end_mark=None,
                          flow_style=event.flow_style,
                          implicit=event.implicit,
                          anchor=event.anchor)
        # Registered before the children are composed.
        if event.anchor is not None:
            self.anchors[event.anchor] = node
        return node
