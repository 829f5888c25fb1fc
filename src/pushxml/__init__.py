from .consumer import Consumer, EventRecorder
from .entities import decode, escape, unescape
from .errors import DecodeError, ErrorKind, XmlError, XmlParseError
from .parser import Parser, parse
from .serialize import to_test_format
from .span import Span

__all__ = [
    "Consumer",
    "DecodeError",
    "ErrorKind",
    "EventRecorder",
    "Parser",
    "Span",
    "XmlError",
    "XmlParseError",
    "decode",
    "escape",
    "parse",
    "to_test_format",
    "unescape",
]
