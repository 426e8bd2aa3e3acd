# png_writer.py
#
# Writes an ARGB32 raster to a PNG file with Pillow.
#
# ARGB32 words are little-endian, so each pixel sits in memory as
# B, G, R, A. Pillow's "BGRA" raw decoder reads that layout directly.

from pathlib import Path

from PIL import Image

from .constants import PixelFormat
from .texture import convert_to_argb32


def argb32_to_image(width: int, height: int, stride: int, argb_pixels: bytes) -> Image.Image:
    """
    Build an RGBA Pillow image from an ARGB32 buffer.

    Parameters:
        width, height : image dimensions in pixels
        stride        : bytes per row (at least width * 4)
        argb_pixels   : ARGB32 pixel buffer, top row first
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Cannot build an image from an empty {width}x{height} raster")
    if stride < width * 4:
        raise ValueError(f"stride {stride} is smaller than one row ({width * 4} bytes)")
    if len(argb_pixels) < stride * (height - 1) + width * 4:
        raise ValueError(
            f"pixel buffer too small: {len(argb_pixels)} bytes for {width}x{height} at stride {stride}"
        )

    # frombuffer may share memory with the source; copy so the image owns its pixels.
    return Image.frombuffer(
        "RGBA", (width, height), bytes(argb_pixels), "raw", "BGRA", stride, 1
    ).copy()


def save_png(path, width: int, height: int, stride: int, argb_pixels: bytes) -> Path:
    """Write an ARGB32 buffer as PNG, creating parent directories as needed."""
    image = argb32_to_image(width, height, stride, argb_pixels)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    image.save(path, format="PNG")

    print(f"[PNG Writer] Wrote: {path} ({width}x{height})")
    return path


def save_texture_png(texture, path, decompressor=None) -> Path:
    if texture.format != PixelFormat.ARGB32:
        texture = convert_to_argb32(texture, decompressor)

    return save_png(path, texture.width, texture.height, texture.stride, texture.pixel_data)
