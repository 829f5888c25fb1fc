"""Error kinds raised by the scanner, the parser and the entity decoder."""

import enum


class ErrorKind(enum.Enum):
    UNTERMINATED_CONSTRUCT = "unterminated-construct"
    MISMATCHED_TAG = "mismatched-tag"
    MALFORMED_TAG = "malformed-tag"
    INVALID_ENTITY = "invalid-entity"
    BUFFER_TOO_SMALL = "buffer-too-small"


class XmlError(ValueError):
    """Base class for every structural or decoding failure.

    Only ``kind`` is part of the contract. ``offset`` is the cursor position
    at the time of failure and is informational.
    """

    def __init__(self, kind, offset=None):
        self.kind = kind
        self.offset = offset
        super().__init__(str(self))

    @property
    def code(self):
        return self.kind.value

    def __str__(self):
        if self.offset is not None:
            return f"{self.kind.value} at offset {self.offset}"
        return self.kind.value

    def __repr__(self):
        if self.offset is not None:
            return f"{type(self).__name__}({self.kind.value!r}, offset={self.offset})"
        return f"{type(self).__name__}({self.kind.value!r})"


class XmlParseError(XmlError):
    pass


class DecodeError(XmlError):
    pass
