"""Tests for the push parser state machine."""

from __future__ import annotations

import unittest

from pushxml import Consumer, ErrorKind, EventRecorder, Parser, XmlParseError, parse


def events_for(data: bytes, **kwargs) -> list[tuple]:
    recorder = EventRecorder(**kwargs)
    assert parse(recorder, data) is True
    return recorder.events


class TestScenarios(unittest.TestCase):
    def test_processing_instruction_element_and_text(self):
        """A PI, an element and its text arrive in document order."""
        events = events_for(b'<?xml version="1.0"?><root a="v">hi</root>')
        assert events == [
            ("processing_instruction", b"xml"),
            ("element_attribute", b"version", b"1.0"),
            ("finish_attributes",),
            ("enter_element", b"root"),
            ("element_attribute", b"a", b"v"),
            ("finish_attributes",),
            ("text", b"hi"),
            ("leave_element", b"root"),
            ("finish",),
        ]

    def test_cdata_passthrough(self):
        """CDATA content is delivered verbatim."""
        events = events_for(b"<a><![CDATA[<raw>&x]]></a>")
        assert ("cdata", b"<raw>&x") in events
        assert events == [
            ("enter_element", b"a"),
            ("finish_attributes",),
            ("cdata", b"<raw>&x"),
            ("leave_element", b"a"),
            ("finish",),
        ]

    def test_mismatched_close_fails_before_leave(self):
        """A wrong closing tag fails before any leave event."""
        recorder = EventRecorder()
        with self.assertRaises(XmlParseError) as ctx:
            parse(recorder, b"<a><b></a>")
        assert ctx.exception.kind is ErrorKind.MISMATCHED_TAG
        assert recorder.events == [
            ("enter_element", b"a"),
            ("finish_attributes",),
            ("enter_element", b"b"),
            ("finish_attributes",),
        ]

    def test_unclosed_element_is_unterminated(self):
        """An element still open at the end is unterminated."""
        with self.assertRaises(XmlParseError) as ctx:
            parse(EventRecorder(), b"<a>")
        assert ctx.exception.kind is ErrorKind.UNTERMINATED_CONSTRUCT


class TestElements(unittest.TestCase):
    def test_self_closing_tag(self):
        """Self-closing tags enter and leave with no content."""
        assert events_for(b'<br clear="all"/>') == [
            ("enter_element", b"br"),
            ("element_attribute", b"clear", b"all"),
            ("finish_attributes",),
            ("leave_element", b"br"),
            ("finish",),
        ]

    def test_self_closing_with_space(self):
        """Whitespace before /> is allowed."""
        assert events_for(b"<a />")[-2] == ("leave_element", b"a")

    def test_nested_elements_are_balanced(self):
        """Enter and leave events nest correctly."""
        events = events_for(b"<a><b><c/></b><d></d></a>")
        names = [(kind, args[0]) for kind, *args in events if kind in ("enter_element", "leave_element")]
        assert names == [
            ("enter_element", b"a"),
            ("enter_element", b"b"),
            ("enter_element", b"c"),
            ("leave_element", b"c"),
            ("leave_element", b"b"),
            ("enter_element", b"d"),
            ("leave_element", b"d"),
            ("leave_element", b"a"),
        ]

    def test_finish_attributes_once_per_element_before_content(self):
        """finish_attributes comes once per element, before its content."""
        events = events_for(b'<a x="1" y=\'2\'><b/>text</a>')
        kinds = [event[0] for event in events]
        assert kinds == [
            "enter_element",
            "element_attribute",
            "element_attribute",
            "finish_attributes",
            "enter_element",
            "finish_attributes",
            "leave_element",
            "text",
            "leave_element",
            "finish",
        ]

    def test_attribute_whitespace_and_quotes(self):
        """Attributes allow whitespace around = and either quote."""
        events = events_for(b"<a  x = 'it\"s'\n\ty=\"b'c\" ></a>")
        assert ("element_attribute", b"x", b'it"s') in events
        assert ("element_attribute", b"y", b"b'c") in events

    def test_attribute_values_are_raw(self):
        """Attribute values are not decoded by the parser."""
        events = events_for(b'<a href="?a=1&amp;b=2"/>')
        assert ("element_attribute", b"href", b"?a=1&amp;b=2") in events

    def test_decoding_consumer_decodes_values(self):
        """A decoding consumer sees decoded values and text."""
        events = events_for(b'<a href="?a=1&amp;b=2">1 &lt; 2</a>', decode=True)
        assert ("element_attribute", b"href", b"?a=1&b=2") in events
        assert ("text", b"1 < 2") in events

    def test_duplicate_attributes_are_both_reported(self):
        """Repeated attribute names are all reported in order."""
        events = events_for(b'<a x="1" x="2"/>')
        assert [e for e in events if e[0] == "element_attribute"] == [
            ("element_attribute", b"x", b"1"),
            ("element_attribute", b"x", b"2"),
        ]

    def test_close_tag_allows_trailing_whitespace(self):
        """Whitespace before > in a closing tag is allowed."""
        assert events_for(b"<a></a \n>")[-2] == ("leave_element", b"a")

    def test_deep_nesting_does_not_recurse(self):
        """Deep nesting does not hit the recursion limit."""
        depth = 20000
        data = b"<d>" * depth + b"</d>" * depth
        recorder = EventRecorder()
        assert parse(recorder, data) is True
        assert len(recorder.events) == depth * 3 + 1

    def test_utf8_names_and_text(self):
        """UTF-8 names and text pass through."""
        data = "<café>naïve</café>".encode("utf-8")
        events = events_for(data)
        assert events[0] == ("enter_element", "café".encode("utf-8"))
        assert ("text", "naïve".encode("utf-8")) in events


class TestText(unittest.TestCase):
    def test_text_is_trimmed(self):
        """Text is trimmed of surrounding whitespace."""
        assert ("text", b"hello  world") in events_for(b"<a>\n\t hello  world \r\n</a>")

    def test_whitespace_only_text_is_dropped(self):
        """Whitespace-only runs produce no text event."""
        events = events_for(b"<a>\n  <b/>\n</a>\n")
        assert not [e for e in events if e[0] == "text"]

    def test_text_split_by_children(self):
        """Child elements split text into separate runs."""
        events = events_for(b"<p>one<b>two</b>three</p>")
        assert [e[1] for e in events if e[0] == "text"] == [b"one", b"two", b"three"]

    def test_text_is_not_decoded(self):
        """Text is delivered raw."""
        assert ("text", b"&lt;tag&gt;") in events_for(b"<a>&lt;tag&gt;</a>")

    def test_top_level_text_is_reported(self):
        """Text outside the root element is reported too."""
        assert events_for(b"stray <a/>")[0] == ("text", b"stray")

    def test_empty_input_finishes(self):
        """Empty or blank input just finishes."""
        assert events_for(b"") == [("finish",)]
        assert events_for(b"  \n") == [("finish",)]


class TestMarkupDeclarations(unittest.TestCase):
    def test_comments_are_skipped(self):
        """Comments produce no events."""
        events = events_for(b"<!-- head --><a><!-- <b> inside --></a>")
        assert events == [
            ("enter_element", b"a"),
            ("finish_attributes",),
            ("leave_element", b"a"),
            ("finish",),
        ]

    def test_comment_splits_text(self):
        """A comment ends the current text run."""
        events = events_for(b"<a>x<!--c-->y</a>")
        assert [e[1] for e in events if e[0] == "text"] == [b"x", b"y"]

    def test_doctype(self):
        """A simple DOCTYPE is reported trimmed."""
        assert events_for(b"<!DOCTYPE html><html/>")[0] == ("doctype", b"html")

    def test_doctype_with_internal_subset(self):
        """A > inside the internal subset does not end the DOCTYPE."""
        data = b'<!DOCTYPE note [\n<!ELEMENT note (#PCDATA)>\n<!ENTITY x "y">\n]><note/>'
        events = events_for(data)
        assert events[0] == ("doctype", b'note [\n<!ELEMENT note (#PCDATA)>\n<!ENTITY x "y">\n]')
        assert events[1] == ("enter_element", b"note")

    def test_empty_cdata(self):
        """An empty CDATA section is still reported."""
        assert ("cdata", b"") in events_for(b"<a><![CDATA[]]></a>")

    def test_processing_instruction_without_attributes(self):
        """A bare PI still gets finish_attributes."""
        assert events_for(b"<?target?><a/>")[:2] == [
            ("processing_instruction", b"target"),
            ("finish_attributes",),
        ]

    def test_processing_instruction_inside_content(self):
        """PIs inside elements report their attributes."""
        events = events_for(b"<a><?pi k='v' ?></a>")
        assert events[2:5] == [
            ("processing_instruction", b"pi"),
            ("element_attribute", b"k", b"v"),
            ("finish_attributes",),
        ]


class TestFailures(unittest.TestCase):
    def assert_fails(self, data, kind):
        with self.assertRaises(XmlParseError) as ctx:
            parse(EventRecorder(), data)
        assert ctx.exception.kind is kind, ctx.exception

    def test_unterminated_constructs(self):
        """Input cut off inside any construct is unterminated."""
        for data in (
            b"<",
            b"<a",
            b"<a x",
            b'<a x="1',
            b"<a x='1'",
            b"<a/",
            b"<a></a",
            b"<a></",
            b"<!-- open",
            b"<!-",
            b"<![CDATA[ open",
            b"<![CDA",
            b"<!DOCTYPE x [ <!ELEMENT a ANY> ",
            b"<?pi",
            b"<?pi ?",
            b"<a><b></b>",
        ):
            with self.subTest(data=data):
                self.assert_fails(data, ErrorKind.UNTERMINATED_CONSTRUCT)

    def test_malformed_tags(self):
        """Syntax errors inside tags are malformed."""
        for data in (
            b"< a/>",
            b"<1a/>",
            b"<a x/>",
            b"<a x=1/>",
            b"<a x='1' 2='3'/>",
            b"<a /x>",
            b"<!ELEMENT a>",
            b"<?pi />",
            b"<?pi >",
            b"<?pi ?x",
            b"<a></1a>",
            b"<a></a x>",
            b"</>",
        ):
            with self.subTest(data=data):
                self.assert_fails(data, ErrorKind.MALFORMED_TAG)

    def test_mismatched_tags(self):
        """Closing tags must match the open element byte for byte."""
        for data in (b"</a>", b"<a></b>", b"<a></A>", b"<ab></a>", b"<a/></a>"):
            with self.subTest(data=data):
                self.assert_fails(data, ErrorKind.MISMATCHED_TAG)

    def test_no_callbacks_after_failure(self):
        """Nothing is reported after a failure."""
        recorder = EventRecorder()
        with self.assertRaises(XmlParseError):
            parse(recorder, b"<a></b><c/>")
        assert all(event[1:] != (b"c",) for event in recorder.events)
        assert ("finish",) not in recorder.events

    def test_error_offset_points_into_buffer(self):
        """Errors carry the offset where scanning stopped."""
        with self.assertRaises(XmlParseError) as ctx:
            parse(EventRecorder(), b"<a></b>")
        assert ctx.exception.offset == 7

    def test_str_input_is_rejected(self):
        """Text strings are rejected."""
        with self.assertRaises(TypeError):
            parse(EventRecorder(), "<a/>")


class AbortAt(Consumer):
    def __init__(self, event):
        self.event = event
        self.seen = []

    def _see(self, name):
        self.seen.append(name)
        return name != self.event

    def processing_instruction(self, name):
        return self._see("processing_instruction")

    def doctype(self, content):
        return self._see("doctype")

    def enter_element(self, name):
        return self._see("enter_element")

    def leave_element(self, name):
        return self._see("leave_element")

    def element_attribute(self, name, value):
        return self._see("element_attribute")

    def finish_attributes(self):
        return self._see("finish_attributes")

    def text(self, text):
        return self._see("text")

    def cdata(self, content):
        return self._see("cdata")

    def finish(self):
        return self._see("finish")


class TestAbort(unittest.TestCase):
    DOCUMENT = b'<!DOCTYPE d><?pi?><a k="v">t<![CDATA[c]]></a>'

    def test_each_callback_can_abort(self):
        """Returning False from any callback stops the parse."""
        for event in (
            "doctype",
            "processing_instruction",
            "finish_attributes",
            "enter_element",
            "element_attribute",
            "text",
            "cdata",
            "leave_element",
            "finish",
        ):
            with self.subTest(event=event):
                consumer = AbortAt(event)
                assert parse(consumer, self.DOCUMENT) is False
                assert consumer.seen[-1] == event
                assert consumer.seen.count(event) == 1

    def test_abort_stops_before_malformed_tail(self):
        """Scanning stops as soon as the consumer aborts."""
        consumer = AbortAt("enter_element")
        # The tail would raise if scanning continued.
        assert parse(consumer, b"<a><<<<") is False

    def test_abort_on_self_closing_finish_attributes_skips_leave(self):
        """Aborting in finish_attributes skips the leave event."""
        consumer = AbortAt("finish_attributes")
        assert parse(consumer, b"<a/>") is False
        assert consumer.seen == ["enter_element", "finish_attributes"]

    def test_limit_aborts_recorder(self):
        """The recorder limit aborts the parse."""
        recorder = EventRecorder(limit=2)
        assert parse(recorder, b"<a><b/></a>") is False
        assert recorder.events == [("enter_element", b"a"), ("finish_attributes",)]

    def test_none_return_continues(self):
        """Callbacks returning None do not abort."""
        class Silent:
            def __getattr__(self, name):
                return lambda *args: None

        assert parse(Silent(), b"<a x='1'>t</a>") is True


class TestParserInstance(unittest.TestCase):
    def test_parse_subrange(self):
        """Only the given range of the buffer is parsed."""
        data = b"garbage<a>x</a>garbage"
        recorder = EventRecorder()
        assert parse(recorder, data, 7, 15) is True
        assert recorder.events[-2:] == [("leave_element", b"a"), ("finish",)]

    def test_bytearray_input(self):
        """bytearray input parses like bytes."""
        recorder = EventRecorder()
        assert parse(recorder, bytearray(b"<a>b</a>")) is True
        assert ("text", b"b") in recorder.events

    def test_memoryview_input(self):
        """memoryview input parses like bytes."""
        recorder = EventRecorder()
        assert parse(recorder, memoryview(b"<a>t</a>")) is True
        assert recorder.events == [
            ("enter_element", b"a"),
            ("finish_attributes",),
            ("text", b"t"),
            ("leave_element", b"a"),
            ("finish",),
        ]

    def test_stack_empty_after_success(self):
        """The element stack is empty after a successful parse."""
        parser = Parser(Consumer(), b"<a><b/></a>")
        assert parser.run() is True
        assert parser.stack == []

    def test_spans_are_views_into_input(self):
        """Spans point into the caller's buffer."""
        data = b"<root>payload</root>"
        spans = []

        class Keep(Consumer):
            def text(self, text):
                spans.append(text)
                return True

        parse(Keep(), data)
        assert spans[0].buffer is data
        assert (spans[0].start, spans[0].end) == (6, 13)
