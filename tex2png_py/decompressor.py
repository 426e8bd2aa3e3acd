# tex2png_py/decompressor.py
import ctypes
import ctypes.util
import importlib
from dataclasses import dataclass

import numpy as np


# ---------------------------------------------------------------------------
# Enum to select backend
# ---------------------------------------------------------------------------
class DecompressorBackend:
    NATIVE = "native"
    PYTHON = "python"
    AUTO = "auto"

    ALL = (NATIVE, PYTHON, AUTO)


# ---------------------------------------------------------------------------
# Result of one decompress() call
# ---------------------------------------------------------------------------
@dataclass
class DecompressResult:
    consumed: int       # compressed bytes read
    pixels: bytes       # RGBA8 bytes, i.e. little-endian ABGR32 words


def pvrtc_data_size(width, height, do_2bit_mode=False):
    """
    Size in bytes of a PVRTC1 image. Blocks are 4x4 (8x4 in 2bpp mode),
    8 bytes each, and the image is padded to at least 2x2 blocks.
    """
    if do_2bit_mode:
        return max(width, 16) * max(height, 8) * 2 // 8
    return max(width, 8) * max(height, 8) * 4 // 8


# ---------------------------------------------------------------------------
# Native backend: PowerVR SDK PVRTDecompress shared library via ctypes
# ---------------------------------------------------------------------------
class NativePVRTDecompressor:
    LIBRARY_NAME = "PVRTDecompress"

    def __init__(self, library_path=None):
        self.library_path = library_path
        self._lib = None

    def load(self):
        path = self.library_path or ctypes.util.find_library(self.LIBRARY_NAME)
        if path is None:
            raise OSError(f"shared library '{self.LIBRARY_NAME}' not found")

        lib = ctypes.CDLL(path)
        fn = lib.PVRTDecompressPVRTC
        fn.argtypes = [
            ctypes.c_void_p,    # pCompressedData
            ctypes.c_int,       # Do2bitMode
            ctypes.c_int,       # XDim
            ctypes.c_int,       # YDim
            ctypes.c_void_p,    # pResultImage
        ]
        fn.restype = ctypes.c_int

        self._lib = lib
        self.library_path = path
        print("[Native Decompressor] Loaded:", path)

    def decompress(self, data: bytes, do_2bit_mode: bool, width: int, height: int) -> DecompressResult:
        if self._lib is None:
            raise RuntimeError("Native decompressor used before load()")

        src = (ctypes.c_ubyte * len(data)).from_buffer_copy(data)
        dst = (ctypes.c_ubyte * (width * height * 4))()

        consumed = self._lib.PVRTDecompressPVRTC(
            src,
            1 if do_2bit_mode else 0,
            width,
            height,
            dst,
        )
        return DecompressResult(consumed, bytes(dst))


# ---------------------------------------------------------------------------
# Python backend: texture2ddecoder (BGRA output, reordered to RGBA)
# ---------------------------------------------------------------------------
class Texture2DDecoderDecompressor:
    def __init__(self):
        self._module = None

    def load(self):
        self._module = importlib.import_module("texture2ddecoder")
        print("[Python Decompressor] Loaded: texture2ddecoder")

    def decompress(self, data: bytes, do_2bit_mode: bool, width: int, height: int) -> DecompressResult:
        if self._module is None:
            raise RuntimeError("texture2ddecoder backend used before load()")

        required = pvrtc_data_size(width, height, do_2bit_mode)
        if len(data) < required:
            # Nothing decoded; the caller reports the size mismatch.
            return DecompressResult(len(data), b"")

        bgra = self._module.decode_pvrtc(bytes(data[:required]), width, height, do_2bit_mode)

        arr = np.frombuffer(bgra, dtype=np.uint8).reshape(-1, 4)
        rgba = arr[:, [2, 1, 0, 3]]
        return DecompressResult(required, rgba.tobytes())


# ---------------------------------------------------------------------------
# Backend selector
# ---------------------------------------------------------------------------
class BlockDecompressor:
    """
    Block decompressor used for COMPRESSED_BLOCK_4BPP textures.

    AUTO tries the native PVRTDecompress library first and falls back to
    texture2ddecoder. NATIVE or PYTHON fail hard when unavailable.
    """

    def __init__(self, backend=DecompressorBackend.AUTO, library_path=None):
        if backend not in DecompressorBackend.ALL:
            raise ValueError(f"Unknown decompressor backend: {backend!r}")

        self.backend = None
        self.backend_name = None

        # ------------------------------------------------------------------
        # Try native backend first if AUTO or NATIVE
        # ------------------------------------------------------------------
        if backend in (DecompressorBackend.AUTO, DecompressorBackend.NATIVE):
            try:
                native = NativePVRTDecompressor(library_path)
                native.load()
                self.backend = native
                self.backend_name = "NATIVE"
                print("[Decompressor] Using native backend")
                return
            except Exception as e:
                if backend == DecompressorBackend.NATIVE:
                    raise RuntimeError(f"Native decompressor backend failed: {e}")
                print("[Decompressor] Native backend unavailable, reason:", e)

        # ------------------------------------------------------------------
        # Fallback to texture2ddecoder
        # ------------------------------------------------------------------
        try:
            py_backend = Texture2DDecoderDecompressor()
            py_backend.load()
        except Exception as e:
            raise RuntimeError(
                f"Python decompressor backend cannot be imported: {e}\n"
                "Make sure texture2ddecoder is installed."
            )

        self.backend = py_backend
        self.backend_name = "PYTHON"
        print("[Decompressor] Using texture2ddecoder backend")

    def decompress(self, data: bytes, do_2bit_mode: bool, width: int, height: int) -> DecompressResult:
        return self.backend.decompress(data, do_2bit_mode, width, height)


_default_decompressor = None


def get_default_decompressor():
    """Build the AUTO decompressor on first use and reuse it afterwards."""
    global _default_decompressor
    if _default_decompressor is None:
        _default_decompressor = BlockDecompressor(DecompressorBackend.AUTO)
    return _default_decompressor
