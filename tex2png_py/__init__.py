"""
tex2png_py
==========
Decoder for the TEX texture container: header parsing, conversion of
every supported pixel format to canonical ARGB32, and PNG output.

Main entry points:
    - parse_texture      : tex2png_py.texture.parse_texture
    - convert_to_argb32  : tex2png_py.texture.convert_to_argb32
    - BlockDecompressor  : tex2png_py.decompressor.BlockDecompressor
    - save_texture_png   : tex2png_py.png_writer.save_texture_png
"""

from .constants import PixelFormat, bits_per_pixel
from .decompressor import (
    BlockDecompressor,
    DecompressorBackend,
    DecompressResult,
)
from .errors import (
    TexError,
    MalformedContainer,
    UnsupportedVersion,
    UnsupportedPixelFormat,
    TruncatedData,
    DecompressionSizeMismatch,
    InvalidConversion,
)
from .png_writer import save_png, save_texture_png
from .texture import (
    Header,
    Texture,
    parse_header,
    parse_texture,
    convert,
    convert_to_argb32,
)

# What the package publicly exposes
__all__ = [
    "PixelFormat",
    "bits_per_pixel",
    "BlockDecompressor",
    "DecompressorBackend",
    "DecompressResult",
    "TexError",
    "MalformedContainer",
    "UnsupportedVersion",
    "UnsupportedPixelFormat",
    "TruncatedData",
    "DecompressionSizeMismatch",
    "InvalidConversion",
    "save_png",
    "save_texture_png",
    "Header",
    "Texture",
    "parse_header",
    "parse_texture",
    "convert",
    "convert_to_argb32",
]
