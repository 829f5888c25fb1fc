class SmallByteSet:
    __slots__ = ("_mask",)

    def __init__(self, chars):
        mask = 0
        for code in chars:
            if code >= 128:
                raise ValueError("SmallByteSet only supports ASCII")
            mask |= 1 << code
        self._mask = mask

    def __contains__(self, code):
        if code is None or code >= 128:
            return False
        return (self._mask >> code) & 1 == 1


WHITESPACE = SmallByteSet(b" \t\r\n")
NAME_START = SmallByteSet(b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz_:")
NAME_CHARS = SmallByteSet(b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz_:0123456789-.")
HEX_DIGITS = SmallByteSet(b"0123456789abcdefABCDEF")


def is_name_start(code):
    # Bytes >= 0x80 belong to multi-byte UTF-8 names and pass through opaquely.
    return code is not None and (code >= 0x80 or code in NAME_START)


def is_name_char(code):
    return code is not None and (code >= 0x80 or code in NAME_CHARS)
