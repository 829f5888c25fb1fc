"""Push parser driving a consumer over a single in-memory XML buffer."""

import logging

from .cursor import Cursor
from .errors import ErrorKind, XmlParseError
from .smallset import WHITESPACE, is_name_start
from .span import Span

logger = logging.getLogger(__name__)

_GT = ord(">")
_SLASH = ord("/")
_QUESTION = ord("?")
_BANG = ord("!")
_LBRACKET = ord("[")
_RBRACKET = ord("]")
_QUOTES = (ord('"'), ord("'"))
_DECLARATIONS = (b"!--", b"![CDATA[", b"!DOCTYPE")


class Parser:
    CONTENT = 0
    MARKUP_OPEN = 1
    START_TAG = 2
    ATTRIBUTES = 3
    END_TAG = 4

    __slots__ = (
        "aborted",
        "consumer",
        "cursor",
        "in_instruction",
        "stack",
        "state",
    )

    def __init__(self, consumer, data, start=0, end=None):
        self.consumer = consumer
        self.cursor = Cursor(data, start, end)
        self.stack = []
        self.state = self.CONTENT
        self.in_instruction = False
        self.aborted = False

    def run(self):
        """Parse to the end of the buffer.

        Returns True on success and False when the consumer aborted.
        Structural failures raise XmlParseError.
        """
        while True:
            state = self.state
            if state == self.CONTENT:
                if self._state_content():
                    break
            elif state == self.MARKUP_OPEN:
                if self._state_markup_open():
                    break
            elif state == self.START_TAG:
                if self._state_start_tag():
                    break
            elif state == self.ATTRIBUTES:
                if self._state_attributes():
                    break
            elif state == self.END_TAG:
                if self._state_end_tag():
                    break
            else:
                raise AssertionError(f"unknown parser state {state}")
        return not self.aborted

    # ---------------------
    # Helper methods
    # ---------------------

    def _stop(self, result, event):
        if result is False:
            self.aborted = True
            logger.debug("consumer aborted in %s at offset %d", event, self.cursor.pos)
            return True
        return False

    def _emit_text(self, start, end):
        buffer = self.cursor.buffer
        while start < end and buffer[start] in WHITESPACE:
            start += 1
        while end > start and buffer[end - 1] in WHITESPACE:
            end -= 1
        if start == end:
            return False
        return self._stop(self.consumer.text(Span(buffer, start, end)), "text")

    def _require_name(self):
        cursor = self.cursor
        name = cursor.scan_name()
        if name is None:
            if cursor.at_end():
                cursor.fail(ErrorKind.UNTERMINATED_CONSTRUCT)
            cursor.fail(ErrorKind.MALFORMED_TAG)
        return name

    def _scan_doctype(self):
        # The declaration ends at the first ">" outside an internal subset.
        cursor = self.cursor
        buffer = cursor.buffer
        pos = cursor.pos
        end = cursor.end
        depth = 0
        while pos < end:
            c = buffer[pos]
            if c == _LBRACKET:
                depth += 1
            elif c == _RBRACKET and depth:
                depth -= 1
            elif c == _GT and not depth:
                start = cursor.pos
                cursor.pos = pos + 1
                while start < pos and buffer[start] in WHITESPACE:
                    start += 1
                while pos > start and buffer[pos - 1] in WHITESPACE:
                    pos -= 1
                return Span(buffer, start, pos)
            pos += 1
        cursor.pos = end
        cursor.fail(ErrorKind.UNTERMINATED_CONSTRUCT)

    # ---------------------
    # State handlers
    # ---------------------

    def _state_content(self):
        cursor = self.cursor
        start = cursor.pos
        lt = cursor.buffer.find(b"<", start, cursor.end)
        stop = cursor.end if lt == -1 else lt
        if stop > start and self._emit_text(start, stop):
            return True
        if lt == -1:
            cursor.pos = cursor.end
            if self.stack:
                cursor.fail(ErrorKind.UNTERMINATED_CONSTRUCT)
            if self._stop(self.consumer.finish(), "finish"):
                return True
            logger.debug("finished parsing at offset %d", cursor.end)
            return True
        cursor.pos = lt + 1
        self.state = self.MARKUP_OPEN
        return False

    def _state_markup_open(self):
        cursor = self.cursor
        c = cursor.peek()
        if c is None:
            cursor.fail(ErrorKind.UNTERMINATED_CONSTRUCT)
        if c == _QUESTION:
            cursor.advance()
            name = self._require_name()
            self.in_instruction = True
            self.state = self.ATTRIBUTES
            return self._stop(self.consumer.processing_instruction(name), "processing_instruction")
        if c == _BANG:
            if cursor.match_literal(b"!--"):
                cursor.scan_to(b"-->")
                self.state = self.CONTENT
                return False
            if cursor.match_literal(b"![CDATA["):
                content = cursor.scan_to(b"]]>")
                self.state = self.CONTENT
                return self._stop(self.consumer.cdata(content), "cdata")
            if cursor.match_literal(b"!DOCTYPE"):
                content = self._scan_doctype()
                self.state = self.CONTENT
                return self._stop(self.consumer.doctype(content), "doctype")
            rest = cursor.buffer[cursor.pos : cursor.end]
            if any(len(rest) < len(decl) and decl.startswith(rest) for decl in _DECLARATIONS):
                cursor.fail(ErrorKind.UNTERMINATED_CONSTRUCT)
            cursor.fail(ErrorKind.MALFORMED_TAG)
        if c == _SLASH:
            cursor.advance()
            self.state = self.END_TAG
            return False
        if is_name_start(c):
            self.state = self.START_TAG
            return False
        cursor.fail(ErrorKind.MALFORMED_TAG)

    def _state_start_tag(self):
        name = self._require_name()
        self.stack.append(name)
        self.in_instruction = False
        self.state = self.ATTRIBUTES
        return self._stop(self.consumer.enter_element(name), "enter_element")

    def _state_attributes(self):
        cursor = self.cursor
        consumer = self.consumer
        while True:
            cursor.skip_whitespace()
            c = cursor.peek()
            if c is None:
                cursor.fail(ErrorKind.UNTERMINATED_CONSTRUCT)

            if self.in_instruction:
                if c == _QUESTION:
                    cursor.expect(b"?>")
                    self.state = self.CONTENT
                    return self._stop(consumer.finish_attributes(), "finish_attributes")
                if c in (_SLASH, _GT):
                    cursor.fail(ErrorKind.MALFORMED_TAG)
            elif c == _SLASH:
                cursor.expect(b"/>")
                self.state = self.CONTENT
                if self._stop(consumer.finish_attributes(), "finish_attributes"):
                    return True
                name = self.stack.pop()
                return self._stop(consumer.leave_element(name), "leave_element")
            elif c == _GT:
                cursor.advance()
                self.state = self.CONTENT
                return self._stop(consumer.finish_attributes(), "finish_attributes")

            name = self._require_name()
            cursor.skip_whitespace()
            cursor.expect(b"=")
            cursor.skip_whitespace()
            quote = cursor.peek()
            if quote is None:
                cursor.fail(ErrorKind.UNTERMINATED_CONSTRUCT)
            if quote not in _QUOTES:
                cursor.fail(ErrorKind.MALFORMED_TAG)
            cursor.advance()
            value = cursor.scan_to(b'"' if quote == _QUOTES[0] else b"'")
            if self._stop(consumer.element_attribute(name, value), "element_attribute"):
                return True

    def _state_end_tag(self):
        cursor = self.cursor
        name = self._require_name()
        cursor.skip_whitespace()
        cursor.expect(b">")
        stack = self.stack
        if not stack or stack[-1] != name:
            cursor.fail(ErrorKind.MISMATCHED_TAG)
        stack.pop()
        self.state = self.CONTENT
        return self._stop(self.consumer.leave_element(name), "leave_element")


def parse(consumer, data, start=0, end=None):
    """Parse ``data[start:end]`` and push events to ``consumer``.

    Returns True when the whole buffer was parsed and ``finish`` was called,
    False when a callback returned False.

    Raises:
        XmlParseError: on any structural violation. Parsing stops at the
            first violation; no further callbacks are made.
        TypeError: if ``data`` is a str rather than a bytes-like buffer.
    """
    parser = Parser(consumer, data, start, end)
    logger.debug("parsing buffer range %d..%d", parser.cursor.pos, parser.cursor.end)
    try:
        return parser.run()
    except XmlParseError as error:
        logger.debug("parse failed: %s", error)
        raise
