# tex2png_py/texture.py
import struct
from dataclasses import dataclass, field

import numpy as np

from .constants import (
    HEADER_SIZE,
    HEIGHT_UNIT,
    OFFSET_FORMAT_TAG,
    OFFSET_HEIGHT_UNITS,
    OFFSET_MAGIC,
    OFFSET_VERSION,
    OFFSET_WIDTH,
    TEX_MAGIC,
    TEX_VERSION,
    PixelFormat,
    bits_per_pixel,
    format_from_tag,
    tag_from_format,
)
from .decompressor import get_default_decompressor
from .errors import (
    DecompressionSizeMismatch,
    InvalidConversion,
    MalformedContainer,
    TruncatedData,
    UnsupportedPixelFormat,
    UnsupportedVersion,
)


def image_size_in_bytes(width, height, fmt):
    return width * height * bits_per_pixel(fmt) // 8


def _read_exact(stream, size, what):
    """Read exactly ``size`` bytes or raise TruncatedData. Never pads."""
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)

    data = b"".join(chunks)
    if len(data) != size:
        raise TruncatedData(what, size, len(data))
    return data


# ---------------------------------------------------------------------------
# Header
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Header:
    width: int
    height: int
    format: PixelFormat
    # Raw on-disk tag this header was parsed from, if any.
    tag: int = field(default=None, compare=False)

    @classmethod
    def parse(cls, data: bytes) -> "Header":
        """
        Decode the fixed 16-byte header.

        Layout (little-endian):
            0-3   magic "TEX "
            4-5   version (7)
            7-8   pixel format tag
            12-13 width
            14    height in units of 8 rows
        """
        if len(data) < HEADER_SIZE:
            raise TruncatedData("header", HEADER_SIZE, len(data))

        magic, = struct.unpack_from("<I", data, OFFSET_MAGIC)
        if magic != TEX_MAGIC:
            raise MalformedContainer(magic)

        version, = struct.unpack_from("<H", data, OFFSET_VERSION)
        if version != TEX_VERSION:
            raise UnsupportedVersion(version)

        tag, = struct.unpack_from("<H", data, OFFSET_FORMAT_TAG)
        fmt = format_from_tag(tag)
        if fmt is None:
            raise UnsupportedPixelFormat(tag=tag)

        width, = struct.unpack_from("<H", data, OFFSET_WIDTH)
        height = data[OFFSET_HEIGHT_UNITS] * HEIGHT_UNIT

        return cls(width, height, fmt, tag)

    def pack(self) -> bytes:
        """Serialize back to the 16-byte on-disk layout."""
        tag = self.tag if self.tag is not None else tag_from_format(self.format)
        if tag is None or format_from_tag(tag) != self.format:
            raise UnsupportedPixelFormat(format=self.format)

        if not 0 <= self.width <= 0xFFFF:
            raise ValueError(f"width {self.width} does not fit in 16 bits")
        if self.height % HEIGHT_UNIT or not 0 <= self.height // HEIGHT_UNIT <= 0xFF:
            raise ValueError(
                f"height {self.height} is not a multiple of {HEIGHT_UNIT} up to {0xFF * HEIGHT_UNIT}"
            )

        data = bytearray(HEADER_SIZE)
        struct.pack_into("<I", data, OFFSET_MAGIC, TEX_MAGIC)
        struct.pack_into("<H", data, OFFSET_VERSION, TEX_VERSION)
        struct.pack_into("<H", data, OFFSET_FORMAT_TAG, tag)
        struct.pack_into("<H", data, OFFSET_WIDTH, self.width)
        data[OFFSET_HEIGHT_UNITS] = self.height // HEIGHT_UNIT
        return bytes(data)

    @property
    def bits_per_pixel(self):
        return bits_per_pixel(self.format)

    @property
    def image_size(self):
        return image_size_in_bytes(self.width, self.height, self.format)


def parse_header(stream) -> Header:
    """Consume exactly 16 bytes from ``stream`` and decode them."""
    return Header.parse(_read_exact(stream, HEADER_SIZE, "header"))


# ---------------------------------------------------------------------------
# Texture
# ---------------------------------------------------------------------------
class Texture:
    def __init__(self, width, height, format, pixel_data, header=None):
        format = PixelFormat(format)
        expected = image_size_in_bytes(width, height, format)
        if len(pixel_data) != expected:
            raise ValueError(
                f"{format.name} {width}x{height} needs {expected} bytes of pixel data, got {len(pixel_data)}"
            )

        self._header = header if header is not None else Header(width, height, format)
        # Own a private immutable copy.
        self._pixel_data = bytes(pixel_data)

    @classmethod
    def from_stream(cls, stream) -> "Texture":
        header = parse_header(stream)
        pixel_data = _read_exact(stream, header.image_size, "pixel data")
        return cls(header.width, header.height, header.format, pixel_data, header=header)

    # ---- Basic queries ----
    @property
    def header(self): return self._header

    @property
    def width(self): return self._header.width

    @property
    def height(self): return self._header.height

    @property
    def format(self): return self._header.format

    @property
    def pixel_data(self): return self._pixel_data

    @property
    def stride(self):
        """Bytes per row. Only meaningful for uncompressed formats."""
        return self.width * bits_per_pixel(self.format) // 8

    def __repr__(self):
        return f"Texture({self.width}x{self.height}, {self.format.name}, {len(self._pixel_data)} bytes)"

    def convert(self, format=PixelFormat.ARGB32, decompressor=None):
        """Replace this texture's header and pixels with the converted ones."""
        converted = convert(self, format, decompressor)
        self._header = converted._header
        self._pixel_data = converted._pixel_data
        return self


def parse_texture(stream) -> Texture:
    return Texture.from_stream(stream)


# ---------------------------------------------------------------------------
# Pixel conversion
# ---------------------------------------------------------------------------
def abgr32_to_argb32(src: bytes) -> bytes:
    """Swap red and blue in every little-endian 32-bit word."""
    abgr = np.frombuffer(src, dtype="<u4")
    argb = (
        (abgr & np.uint32(0xFF00FF00))
        | ((abgr & np.uint32(0x00FF0000)) >> np.uint32(16))
        | ((abgr & np.uint32(0x000000FF)) << np.uint32(16))
    )
    return argb.astype("<u4").tobytes()


def rgba16_to_argb32(src: bytes) -> bytes:
    """
    Expand 16-bit RGBA4444 words to 32-bit ARGB words.

    Each nibble is written into both halves of its destination byte so
    0x0 -> 0x00 and 0xF -> 0xFF:
        bits 0-3   -> alpha (bits 24-31)
        bits 4-7   -> blue  (bits 0-7)
        bits 8-11  -> green (bits 8-15)
        bits 12-15 -> red   (bits 16-23)
    """
    rgba = np.frombuffer(src, dtype="<u2").astype(np.uint32)
    a = rgba & np.uint32(0x000F)
    b = (rgba >> np.uint32(4)) & np.uint32(0x000F)
    g = (rgba >> np.uint32(8)) & np.uint32(0x000F)
    r = (rgba >> np.uint32(12)) & np.uint32(0x000F)

    argb = (
        (a << np.uint32(24)) | (a << np.uint32(28))
        | b | (b << np.uint32(4))
        | (g << np.uint32(8)) | (g << np.uint32(12))
        | (r << np.uint32(16)) | (r << np.uint32(20))
    )
    return argb.astype("<u4").tobytes()


def _decompress_block_4bpp(texture, decompressor):
    if decompressor is None:
        decompressor = get_default_decompressor()

    src = texture.pixel_data
    out_size = texture.width * texture.height * 4

    result = decompressor.decompress(src, False, texture.width, texture.height)

    if result.consumed != len(src):
        raise DecompressionSizeMismatch("consumed", len(src), result.consumed)
    if len(result.pixels) != out_size:
        raise DecompressionSizeMismatch("produced", out_size, len(result.pixels))

    return abgr32_to_argb32(result.pixels)


def convert_to_argb32(texture: Texture, decompressor=None) -> Texture:
    """
    Return a new ARGB32 texture with the same dimensions.

    An ARGB32 source is a no-op and yields an identical copy. The
    decompressor is only used for COMPRESSED_BLOCK_4BPP sources; when
    omitted, the shared AUTO backend is used.
    """
    fmt = texture.format
    target = PixelFormat.ARGB32

    if texture.width * texture.height == 0:
        return Texture(texture.width, texture.height, target, b"")

    if fmt == PixelFormat.ARGB32:
        dst = texture.pixel_data
    elif fmt == PixelFormat.COMPRESSED_BLOCK_4BPP:
        dst = _decompress_block_4bpp(texture, decompressor)
    elif fmt == PixelFormat.ABGR32:
        dst = abgr32_to_argb32(texture.pixel_data)
    else:
        # RGBA16, the last remaining member
        dst = rgba16_to_argb32(texture.pixel_data)

    return Texture(texture.width, texture.height, target, dst)


def convert(texture: Texture, format, decompressor=None) -> Texture:
    if format != PixelFormat.ARGB32:
        raise InvalidConversion(texture.format, format)
    return convert_to_argb32(texture, decompressor)
