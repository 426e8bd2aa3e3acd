#!/usr/bin/env python3
"""
tex2png
Convert TEX textures to PNG, either one file or every .tex inside an .ipa.

Usage:
    tex2png texture.tex
    tex2png game.ipa
    tex2png texture.tex --backend=python
"""

import os
import sys
import zipfile
import zlib
from pathlib import Path, PurePosixPath

from .constants import ARCHIVE_EXTENSION, OUTPUT_EXTENSION, TEXTURE_EXTENSION
from .decompressor import BlockDecompressor, DecompressorBackend
from .errors import TexError
from .png_writer import save_texture_png
from .texture import parse_texture

USAGE = "Usage: {0} <filename.tex | filename.ipa> [--backend=auto|native|python]"


def log(msg):
    print(f"[tex2png] {msg}")


def _write_png(texture, out_path, decompressor):
    if texture.width * texture.height == 0:
        log(f"Skipping empty {texture.width}x{texture.height} texture: {out_path}")
        return None
    return save_texture_png(texture, out_path, decompressor)


# ============================================================================
# Single file
# ============================================================================
def convert_file(path, decompressor=None):
    """foo.tex -> foo.png in the same directory."""
    path = Path(path)
    with open(path, "rb") as stream:
        texture = parse_texture(stream)

    return _write_png(texture, path.with_suffix(OUTPUT_EXTENSION), decompressor)


# ============================================================================
# Archive batch
# ============================================================================
def convert_archive(path, decompressor=None):
    """
    Convert every .tex entry of a zip archive. PNGs are written under the
    archive's directory, mirroring the entry paths. A broken entry is
    reported and skipped; the rest of the archive is still converted.

    Returns (converted, failed).
    """
    path = Path(path)
    out_root = path.parent.resolve()
    converted = 0
    failed = 0

    with zipfile.ZipFile(path) as archive:
        for info in archive.infolist():
            if info.is_dir():
                continue

            entry = PurePosixPath(info.filename)
            if entry.suffix.lower() != TEXTURE_EXTENSION:
                continue

            print(info.filename)

            out_path = (out_root / entry.with_suffix(OUTPUT_EXTENSION)).resolve()
            if os.path.commonpath([out_root, out_path]) != str(out_root):
                log(f"FAILED {info.filename}: entry escapes the output directory")
                failed += 1
                continue

            try:
                with archive.open(info) as stream:
                    texture = parse_texture(stream)
                _write_png(texture, out_path, decompressor)
                converted += 1
            except (TexError, zipfile.BadZipFile, zlib.error, OSError) as e:
                log(f"FAILED {info.filename}: {e}")
                failed += 1

    log(f"{converted} converted, {failed} failed")
    return converted, failed


class _LazyDecompressor:
    def __init__(self, backend):
        self.backend = backend
        self._impl = None

    def decompress(self, data, do_2bit_mode, width, height):
        if self._impl is None:
            self._impl = BlockDecompressor(self.backend)
        return self._impl.decompress(data, do_2bit_mode, width, height)


# ============================================================================
# Entry point
# ============================================================================
def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]

    prog = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "tex2png"

    backend = DecompressorBackend.AUTO
    positional = []
    for a in argv:
        if a.startswith("--backend="):
            backend = a.split("=", 1)[1].strip().lower()
        else:
            positional.append(a)

    if len(positional) != 1:
        print(USAGE.format(prog))
        return 0

    if backend not in DecompressorBackend.ALL:
        print(f"Unknown backend: {backend}")
        print(USAGE.format(prog))
        return 0

    path = positional[0]
    extension = os.path.splitext(path)[1].lower()

    # The decompressor is only built once a compressed texture needs it.
    decompressor = _LazyDecompressor(backend)

    try:
        if extension == TEXTURE_EXTENSION:
            convert_file(path, decompressor)
        elif extension == ARCHIVE_EXTENSION:
            convert_archive(path, decompressor)
        else:
            print("Unknown file extension")
    except (TexError, OSError, RuntimeError, zipfile.BadZipFile) as e:
        log(f"ERROR: {path}: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
