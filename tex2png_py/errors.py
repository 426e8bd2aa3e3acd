# tex2png_py/errors.py


class TexError(Exception):
    """Base class for every failure raised while decoding a TEX container."""


class MalformedContainer(TexError, ValueError):
    def __init__(self, magic):
        self.magic = magic
        super().__init__(f"Bad TEX signature: 0x{magic:08X}")


class UnsupportedVersion(TexError, ValueError):
    def __init__(self, version):
        self.version = version
        super().__init__(f"Unsupported TEX version: {version}")


class UnsupportedPixelFormat(TexError, ValueError):
    """
    Raised for a format tag missing from the tag table. When a format
    (rather than a raw tag) has no tag, ``tag`` is None and ``format``
    names it.
    """

    def __init__(self, tag=None, format=None):
        self.tag = tag
        self.format = format
        if tag is not None:
            msg = f"Unsupported pixel format tag: 0x{tag:04X}"
        else:
            msg = f"Pixel format has no on-disk tag: {format!r}"
        super().__init__(msg)


class TruncatedData(TexError, EOFError):
    def __init__(self, what, expected, actual):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Truncated {what}: expected {expected} bytes, got {actual}")


class DecompressionSizeMismatch(TexError, RuntimeError):
    def __init__(self, what, expected, actual):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Decompressor {what} {actual} bytes, expected {expected}")


class InvalidConversion(TexError, ValueError):
    def __init__(self, source, target):
        self.source = source
        self.target = target
        super().__init__(f"Cannot convert {source!r} to {target!r}")
