"""Error types shared by every stage of the decoding pipeline.

Scan, parse and compose errors are MarkedYAMLError subclasses pointing into
the source; ReaderError reports undecodable input; DecodeError and
UnmarshalError come from binding nodes onto a destination.
"""

# Characters that end a line in the decoded buffer, the sentinel included.
LINE_ENDS = '\0\r\n\x85\u2028\u2029'


class Mark:
    """A position in the decoded input.

    ``index`` counts characters, ``line`` and ``column`` start at zero.
    ``buffer`` and ``pointer`` are only kept for in-memory input and let the
    error text quote the offending line.
    """

    def __init__(self, name, index, line, column, buffer=None, pointer=None):
        self.name = name
        self.index = index
        self.line = line
        self.column = column
        self.buffer = buffer
        self.pointer = pointer

    def get_snippet(self, indent=4, max_length=75):
        """Return the marked line with a caret under the column, or None."""
        if self.buffer is None:
            return None
        reach = max_length // 2 - 1
        start = end = self.pointer
        while start > 0 and self.buffer[start - 1] not in LINE_ENDS:
            start -= 1
        while end < len(self.buffer) and self.buffer[end] not in LINE_ENDS:
            end += 1
        head = tail = ''
        if self.pointer - start > reach:
            head = ' ... '
            start = self.pointer - reach + len(head)
        if end - self.pointer > reach:
            tail = ' ... '
            end = self.pointer + reach - len(tail)
        margin = ' ' * indent
        caret = ' ' * (self.pointer - start + len(head)) + '^'
        return '%s%s%s%s\n%s%s' % (margin, head, self.buffer[start:end], tail, margin, caret)

    def same_place(self, other):
        return (self.name, self.line, self.column) == (other.name, other.line, other.column)

    def __repr__(self):
        return "Mark(%r, index=%d, line=%d, column=%d)" % (
            self.name, self.index, self.line, self.column)

    def __str__(self):
        where = '  in "%s", line %d, column %d' % (self.name, self.line + 1, self.column + 1)
        snippet = self.get_snippet()
        if snippet is None:
            return where
        return where + ':\n' + snippet


class YAMLError(Exception):
    pass


class MarkedYAMLError(YAMLError):
    """A scan, parse or compose error.

    ``problem`` and ``problem_mark`` say what went wrong and where;
    ``context`` and ``context_mark`` name the enclosing construct, e.g.
    ``while parsing a flow mapping`` and where it started.
    """

    def __init__(self, context=None, context_mark=None,
                 problem=None, problem_mark=None, note=None):
        self.context = context
        self.context_mark = context_mark
        self.problem = problem
        self.problem_mark = problem_mark
        self.note = note

    def summary(self):
        """Return the one-line ``yaml: line N: problem`` form of the error."""
        mark = self.problem_mark or self.context_mark
        where = "line %d: " % (mark.line + 1) if mark is not None else ""
        return "yaml: %s%s" % (where, self.problem or "unknown problem parsing YAML content")

    def __str__(self):
        parts = [self.context]
        # the context mark is dropped when it points where the problem does
        if self.context_mark is not None and not (
                self.problem is not None and self.problem_mark is not None
                and self.context_mark.same_place(self.problem_mark)):
            parts.append(str(self.context_mark))
        parts.append(self.problem)
        if self.problem_mark is not None:
            parts.append(str(self.problem_mark))
        parts.append(self.note)
        return '\n'.join(part for part in parts if part is not None)


class ReaderError(YAMLError):
    """Malformed input encoding or a forbidden character.

    ``position`` is the offset of the offending data in the raw input, counted
    in bytes (in characters when the input was already a ``str``).
    ``value`` is the offending octet or code point, or None when unknown.
    ``undecodable`` is set when the bytes did not decode at all, as opposed
    to decoding into a character that is not allowed.
    """

    def __init__(self, name, position, value, encoding, reason, undecodable=False):
        self.name = name
        self.position = position
        self.value = value
        self.encoding = encoding
        self.reason = reason
        self.undecodable = undecodable

    def __str__(self):
        if self.value is None:
            return "%s: %s\n  in \"%s\", position %d" % (
                self.encoding, self.reason, self.name, self.position)
        if not self.undecodable:
            return "unacceptable character #x%04x: %s\n  in \"%s\", position %d" % (
                self.value, self.reason, self.name, self.position)
        return "'%s' codec can't decode byte #x%02x: %s\n  in \"%s\", position %d" % (
            self.encoding, self.value, self.reason, self.name, self.position)


class DecodeError(YAMLError):
    """Fatal error while binding a node tree onto a destination.

    Raised for structurally unsafe or malformed documents (alias cycles,
    excessive aliasing, bad merge values, array length mismatches); aborts the
    whole decode call.
    """

    def __init__(self, message, line=None):
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self):
        return "yaml: " + self.message


class UnmarshalError(YAMLError):
    """One or more values could not be bound to their destination.

    Every successfully typed value is still populated; ``value`` holds the
    partially bound result and ``errors`` one line per violation.
    """

    def __init__(self, errors, value=None):
        super().__init__(errors)
        self.errors = list(errors)
        self.value = value

    def __str__(self):
        return "yaml: unmarshal errors:\n  " + "\n  ".join(self.errors)


class StructInfoError(YAMLError, TypeError):
    """A dataclass cannot be used as a decode destination (bad field tags)."""
    pass
