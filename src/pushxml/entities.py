"""XML character entity decoding.

Supports the five predefined entities (&amp; &lt; &gt; &quot; &apos;) and
numeric references (&#60; &#x3C;), decoded to UTF-8 bytes.
"""

from .errors import DecodeError, ErrorKind
from .smallset import HEX_DIGITS
from .span import Span

NAMED_ENTITIES = {
    b"amp": b"&",
    b"lt": b"<",
    b"gt": b">",
    b"quot": b'"',
    b"apos": b"'",
}

# Longest valid reference body between "&" and ";": "#x10FFFF" or "#1114111".
MAX_REFERENCE_BODY = 8

_ESCAPES = {
    ord("&"): b"&amp;",
    ord("<"): b"&lt;",
    ord(">"): b"&gt;",
    ord('"'): b"&quot;",
    ord("'"): b"&apos;",
}


def _bounds(data, start, end):
    if isinstance(data, Span):
        return data.buffer, data.start, data.end
    if isinstance(data, memoryview):
        # memoryview has no find(); scan a copy instead.
        data = data.tobytes()
    if end is None:
        end = len(data)
    return data, start, end


def decode_numeric_entity(body, offset=None):
    """Decode the body of a numeric reference like b"#60" or b"#x3C".

    Args:
        body: The reference text between "&" and ";"
        offset: Position reported on failure

    Returns:
        The UTF-8 encoding of the referenced code point
    """
    if body[1:2] == b"x":
        digits = body[2:]
        if not digits or not all(code in HEX_DIGITS for code in digits):
            raise DecodeError(ErrorKind.INVALID_ENTITY, offset)
        codepoint = int(digits, 16)
    else:
        digits = body[1:]
        if not digits or not digits.isdigit():
            raise DecodeError(ErrorKind.INVALID_ENTITY, offset)
        codepoint = int(digits, 10)

    if codepoint == 0 or codepoint > 0x10FFFF:
        raise DecodeError(ErrorKind.INVALID_ENTITY, offset)
    if 0xD800 <= codepoint <= 0xDFFF:  # Surrogate range
        raise DecodeError(ErrorKind.INVALID_ENTITY, offset)
    return chr(codepoint).encode("utf-8")


def _decode_reference(data, amp, end):
    limit = min(end, amp + MAX_REFERENCE_BODY + 2)
    semicolon = data.find(b";", amp + 1, limit)
    if semicolon == -1:
        raise DecodeError(ErrorKind.INVALID_ENTITY, amp)
    body = bytes(data[amp + 1 : semicolon])
    if body[:1] == b"#":
        return decode_numeric_entity(body, amp), semicolon + 1
    replacement = NAMED_ENTITIES.get(body)
    if replacement is None:
        raise DecodeError(ErrorKind.INVALID_ENTITY, amp)
    return replacement, semicolon + 1


def decode(data, start=0, end=None, out=None, out_start=0, out_end=None):
    """Decode entity references in ``data[start:end]``.

    With no ``out`` buffer this only checks: it returns True when the span
    holds at least one reference and False when the span can be used as is.

    With a writable ``out`` buffer the decoded bytes are written from
    ``out_start`` and the number of bytes written is returned. Decoded output
    is never longer than the input span, so an output buffer of the input's
    length always suffices.

    Raises:
        DecodeError: INVALID_ENTITY for an unknown or malformed reference,
            BUFFER_TOO_SMALL when the output does not fit before ``out_end``.
            Output content is undefined after a failure.
    """
    data, start, end = _bounds(data, start, end)
    if out is None:
        return data.find(b"&", start, end) != -1

    # The output region never grows past the caller's buffer.
    if out_end is None or out_end > len(out):
        out_end = len(out)
    written = out_start
    pos = start
    while pos < end:
        amp = data.find(b"&", pos, end)
        run_end = end if amp == -1 else amp
        count = run_end - pos
        if count:
            if written + count > out_end:
                raise DecodeError(ErrorKind.BUFFER_TOO_SMALL, pos)
            out[written : written + count] = data[pos:run_end]
            written += count
        if amp == -1:
            break
        replacement, pos = _decode_reference(data, amp, end)
        count = len(replacement)
        if written + count > out_end:
            raise DecodeError(ErrorKind.BUFFER_TOO_SMALL, amp)
        out[written : written + count] = replacement
        written += count
    return written - out_start


def unescape(data, start=0, end=None):
    """Return ``data[start:end]`` with every entity reference decoded."""
    data, start, end = _bounds(data, start, end)
    if not decode(data, start, end):
        return bytes(data[start:end])
    out = bytearray(end - start)
    written = decode(data, start, end, out)
    del out[written:]
    return bytes(out)


def escape(data, quote=True):
    """Replace markup characters with the predefined entity references.

    ``quote`` also escapes both quote characters, for attribute values.
    """
    if isinstance(data, Span):
        data = bytes(data)
    result = bytearray()
    for code in data:
        replacement = _ESCAPES.get(code)
        if replacement is None or (not quote and code in (0x22, 0x27)):
            result.append(code)
        else:
            result += replacement
    return bytes(result)
