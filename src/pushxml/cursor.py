"""Byte-level scanning primitives with no knowledge of XML grammar."""

from .errors import ErrorKind, XmlParseError
from .smallset import WHITESPACE, is_name_char, is_name_start
from .span import Span


class Cursor:
    __slots__ = ("buffer", "end", "pos")

    def __init__(self, buffer, start=0, end=None):
        if isinstance(buffer, str):
            raise TypeError("Cursor needs a bytes-like buffer, not str")
        if isinstance(buffer, memoryview):
            # memoryview has no find(); spans then refer to this copy.
            buffer = buffer.tobytes()
        length = len(buffer)
        if end is None or end > length:
            end = length
        if start < 0 or start > end:
            raise ValueError(f"start {start} outside buffer bounds 0..{end}")
        self.buffer = buffer
        self.pos = start
        self.end = end

    def at_end(self):
        return self.pos >= self.end

    def peek(self):
        if self.pos < self.end:
            return self.buffer[self.pos]
        return None

    def peek_at(self, offset):
        """Peek at position + offset without consuming"""
        if offset < 0:
            return None
        peek_pos = self.pos + offset
        if peek_pos < self.end:
            return self.buffer[peek_pos]
        return None

    def advance(self, count=1):
        self.pos = min(self.pos + count, self.end)

    def skip_whitespace(self):
        buffer = self.buffer
        pos = self.pos
        end = self.end
        while pos < end and buffer[pos] in WHITESPACE:
            pos += 1
        self.pos = pos

    def match_literal(self, literal):
        pos = self.pos
        stop = pos + len(literal)
        if stop > self.end or self.buffer[pos:stop] != literal:
            return False
        self.pos = stop
        return True

    def expect(self, literal):
        if self.match_literal(literal):
            return
        rest = self.buffer[self.pos : self.end]
        if len(rest) < len(literal) and literal.startswith(rest):
            self.fail(ErrorKind.UNTERMINATED_CONSTRUCT)
        self.fail(ErrorKind.MALFORMED_TAG)

    def scan_until(self, predicate):
        buffer = self.buffer
        start = pos = self.pos
        end = self.end
        while pos < end:
            if predicate(buffer[pos]):
                self.pos = pos
                return Span(buffer, start, pos)
            pos += 1
        self.pos = end
        self.fail(ErrorKind.UNTERMINATED_CONSTRUCT)

    def scan_to(self, terminator):
        """Return the span before ``terminator`` and move past it."""
        start = self.pos
        found = self.buffer.find(terminator, start, self.end)
        if found == -1:
            self.pos = self.end
            self.fail(ErrorKind.UNTERMINATED_CONSTRUCT)
        self.pos = found + len(terminator)
        return Span(self.buffer, start, found)

    def scan_name(self):
        buffer = self.buffer
        start = pos = self.pos
        end = self.end
        if pos >= end or not is_name_start(buffer[pos]):
            return None
        pos += 1
        while pos < end and is_name_char(buffer[pos]):
            pos += 1
        self.pos = pos
        return Span(buffer, start, pos)

    def fail(self, kind):
        raise XmlParseError(kind, offset=self.pos)
