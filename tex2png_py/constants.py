# tex2png_py/constants.py

from enum import IntEnum

# ============================================================
# Container header layout
# ============================================================
TEX_MAGIC = 0x20584554          # "TEX " read as a little-endian u32
TEX_VERSION = 7
HEADER_SIZE = 16
HEIGHT_UNIT = 8                 # on-disk height is stored in rows of 8

OFFSET_MAGIC = 0
OFFSET_VERSION = 4
OFFSET_FORMAT_TAG = 7           # overlaps the flags region of the header
OFFSET_WIDTH = 12
OFFSET_HEIGHT_UNITS = 14


# ============================================================
# Pixel formats
# ============================================================
class PixelFormat(IntEnum):
    COMPRESSED_BLOCK_4BPP = 1   # PVRTC 4bpp
    RGBA16 = 2                  # 4 bits per channel
    ABGR32 = 3
    ARGB32 = 4                  # canonical in-memory format

    @property
    def bits_per_pixel(self):
        return bits_per_pixel(self)


def bits_per_pixel(fmt: PixelFormat) -> int:
    if fmt == PixelFormat.COMPRESSED_BLOCK_4BPP:
        return 4
    if fmt == PixelFormat.RGBA16:
        return 16
    if fmt in (PixelFormat.ABGR32, PixelFormat.ARGB32):
        return 32
    raise ValueError(f"Unknown pixel format: {fmt!r}")


# ============================================================
# On-disk format tags
# Two tags share the compressed decoder; both are kept as-is.
# ============================================================
FORMAT_TAGS = (
    (0x0120, PixelFormat.ARGB32),
    (0x1104, PixelFormat.COMPRESSED_BLOCK_4BPP),   # "BM"
    (0x7110, PixelFormat.RGBA16),                  # "LP4"
    (0x6204, PixelFormat.COMPRESSED_BLOCK_4BPP),   # "CM"
)


def format_from_tag(tag: int):
    """Return the PixelFormat for an on-disk tag, or None if unknown."""
    for known_tag, fmt in FORMAT_TAGS:
        if known_tag == tag:
            return fmt
    return None


def tag_from_format(fmt: PixelFormat):
    """Return the first on-disk tag for a format, or None if it has none."""
    for tag, known_fmt in FORMAT_TAGS:
        if known_fmt == fmt:
            return tag
    return None


# ============================================================
# File extensions handled by the command-line driver
# ============================================================
TEXTURE_EXTENSION = ".tex"
ARCHIVE_EXTENSION = ".ipa"
OUTPUT_EXTENSION = ".png"
