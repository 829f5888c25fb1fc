"""Event sink interface driven by the parser."""

from .entities import unescape


class Consumer:
    """Base class for parse event sinks.

    Every callback receives ``Span`` arguments that are only valid for the
    duration of the call. Returning ``False`` from any callback stops the
    parse immediately; any other return value (including ``None``) continues.
    Subclassing is optional, the parser only looks the methods up by name.
    """

    def processing_instruction(self, name):
        return True

    def doctype(self, content):
        return True

    def enter_element(self, name):
        return True

    def leave_element(self, name):
        return True

    def element_attribute(self, name, value):
        return True

    def finish_attributes(self):
        return True

    def text(self, text):
        return True

    def cdata(self, content):
        return True

    def finish(self):
        return True


class EventRecorder(Consumer):
    """Record every event as a tuple of the event name and copied arguments.

    With ``decode=True`` text and attribute values are entity-decoded before
    recording. ``limit`` aborts the parse once that many events were seen.
    """

    __slots__ = ("decode", "events", "limit")

    def __init__(self, decode=False, limit=None):
        self.decode = bool(decode)
        self.limit = limit
        self.events = []

    def _record(self, *event):
        self.events.append(event)
        return self.limit is None or len(self.events) < self.limit

    def _value(self, span):
        if self.decode:
            return unescape(span)
        return bytes(span)

    def processing_instruction(self, name):
        return self._record("processing_instruction", bytes(name))

    def doctype(self, content):
        return self._record("doctype", bytes(content))

    def enter_element(self, name):
        return self._record("enter_element", bytes(name))

    def leave_element(self, name):
        return self._record("leave_element", bytes(name))

    def element_attribute(self, name, value):
        return self._record("element_attribute", bytes(name), self._value(value))

    def finish_attributes(self):
        return self._record("finish_attributes")

    def text(self, text):
        return self._record("text", self._value(text))

    def cdata(self, content):
        return self._record("cdata", bytes(content))

    def finish(self):
        return self._record("finish")
