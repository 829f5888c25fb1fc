"""Zero-copy views into the input buffer."""


class Span:
    """A ``(start, end)`` range of an immutable input buffer.

    Spans never copy. ``bytes(span)`` is how a consumer copies data out when
    it needs to keep it past the callback that delivered the span.
    """

    __slots__ = ("buffer", "end", "start")

    def __init__(self, buffer, start, end):
        self.buffer = buffer
        self.start = start
        self.end = end

    def __len__(self):
        return self.end - self.start

    def __bytes__(self):
        return bytes(self.buffer[self.start : self.end])

    def view(self):
        return memoryview(self.buffer)[self.start : self.end]

    def decode(self, encoding="utf-8", errors="strict"):
        return bytes(self).decode(encoding, errors)

    def __eq__(self, other):
        if isinstance(other, Span):
            return self.view() == other.view()
        if isinstance(other, (bytes, bytearray, memoryview)):
            return self.view() == other
        return NotImplemented

    __hash__ = None  # Unhashable since we define __eq__

    def __repr__(self):
        return f"Span({bytes(self)!r}, start={self.start}, end={self.end})"
