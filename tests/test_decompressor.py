import ctypes.util
import sys
import types

import numpy as np
import pytest

from tex2png_py import decompressor as decompressor_mod
from tex2png_py.constants import PixelFormat
from tex2png_py.decompressor import (
    BlockDecompressor,
    DecompressorBackend,
    NativePVRTDecompressor,
    Texture2DDecoderDecompressor,
    pvrtc_data_size,
)
from tex2png_py.errors import DecompressionSizeMismatch
from tex2png_py.texture import Texture, convert_to_argb32


# ----------------------------------------------------------------------------
# Fake texture2ddecoder module: every pixel decodes to BGRA 10 20 30 40
# ----------------------------------------------------------------------------
@pytest.fixture
def fake_texture2ddecoder(monkeypatch):
    calls = []

    def decode_pvrtc(data, width, height, is2bpp=False):
        calls.append((len(data), width, height, is2bpp))
        return bytes([0x10, 0x20, 0x30, 0x40]) * (width * height)

    module = types.SimpleNamespace(decode_pvrtc=decode_pvrtc, calls=calls)
    monkeypatch.setitem(sys.modules, "texture2ddecoder", module)
    return module


@pytest.fixture
def no_native_library(monkeypatch):
    monkeypatch.setattr(ctypes.util, "find_library", lambda name: None)


# ----------------------------------------------------------------------------
# PVRTC sizing
# ----------------------------------------------------------------------------
@pytest.mark.parametrize("width, height, two_bit, size", [
    (8, 8, False, 32),
    (4, 4, False, 32),
    (16, 8, False, 64),
    (256, 256, False, 32768),
    (8, 8, True, 32),
    (32, 32, True, 256),
])
def test_pvrtc_data_size(width, height, two_bit, size):
    assert pvrtc_data_size(width, height, two_bit) == size


def test_compressed_payload_matches_pvrtc_size():
    for w, h in [(8, 8), (64, 32), (512, 512)]:
        assert w * h * PixelFormat.COMPRESSED_BLOCK_4BPP.bits_per_pixel // 8 == pvrtc_data_size(w, h)


# ----------------------------------------------------------------------------
# Backend selection
# ----------------------------------------------------------------------------
def test_unknown_backend_name():
    with pytest.raises(ValueError):
        BlockDecompressor(backend="opengl")


def test_native_backend_requested_but_missing():
    with pytest.raises(RuntimeError):
        BlockDecompressor(DecompressorBackend.NATIVE, library_path="/nonexistent/libPVRTDecompress.so")


def test_auto_falls_back_to_python(no_native_library, fake_texture2ddecoder, capsys):
    d = BlockDecompressor(DecompressorBackend.AUTO)

    assert d.backend_name == "PYTHON"
    assert isinstance(d.backend, Texture2DDecoderDecompressor)
    assert "Native backend unavailable" in capsys.readouterr().out


def test_python_backend_missing_module(monkeypatch):
    monkeypatch.setitem(sys.modules, "texture2ddecoder", None)
    with pytest.raises(RuntimeError):
        BlockDecompressor(DecompressorBackend.PYTHON)


def test_default_decompressor_is_cached(monkeypatch, no_native_library, fake_texture2ddecoder):
    monkeypatch.setattr(decompressor_mod, "_default_decompressor", None)

    first = decompressor_mod.get_default_decompressor()
    assert first is decompressor_mod.get_default_decompressor()
    assert first.backend_name == "PYTHON"


# ----------------------------------------------------------------------------
# texture2ddecoder adapter
# ----------------------------------------------------------------------------
def test_python_backend_reorders_to_rgba(fake_texture2ddecoder):
    d = BlockDecompressor(DecompressorBackend.PYTHON)
    result = d.decompress(bytes(32), False, 8, 8)

    assert result.consumed == 32
    assert result.pixels == bytes([0x30, 0x20, 0x10, 0x40]) * 64
    assert fake_texture2ddecoder.calls == [(32, 8, 8, False)]


def test_python_backend_through_pipeline(fake_texture2ddecoder):
    d = BlockDecompressor(DecompressorBackend.PYTHON)
    texture = Texture(16, 8, PixelFormat.COMPRESSED_BLOCK_4BPP, bytes(64))

    out = convert_to_argb32(texture, d)

    # BGRA from the decoder ends up as BGRA (ARGB32 words) again
    assert out.pixel_data == bytes([0x10, 0x20, 0x30, 0x40]) * 128


def test_python_backend_small_texture_is_a_size_mismatch(fake_texture2ddecoder):
    # 4x8 needs 16 payload bytes, but PVRTC pads to 8x8 (32 bytes)
    d = BlockDecompressor(DecompressorBackend.PYTHON)
    texture = Texture(4, 8, PixelFormat.COMPRESSED_BLOCK_4BPP, bytes(16))

    with pytest.raises(DecompressionSizeMismatch):
        convert_to_argb32(texture, d)
    assert fake_texture2ddecoder.calls == []


def test_real_texture2ddecoder():
    pytest.importorskip("texture2ddecoder")

    d = Texture2DDecoderDecompressor()
    d.load()
    result = d.decompress(bytes(pvrtc_data_size(8, 8)), False, 8, 8)

    assert result.consumed == 32
    assert len(result.pixels) == 8 * 8 * 4
    assert np.frombuffer(result.pixels, dtype=np.uint8).shape == (256,)


# ----------------------------------------------------------------------------
# Native backend through a fake PVRTDecompress library
# ----------------------------------------------------------------------------
class FakePVRTLibrary:
    def __init__(self, path):
        self.path = path
        self.calls = []
        lib = self

        def PVRTDecompressPVRTC(src, do_2bit_mode, width, height, dst):
            lib.calls.append((bytes(src), do_2bit_mode, width, height, len(dst)))
            pattern = bytes([0x0A, 0x0B, 0x0C, 0x0D]) * (len(dst) // 4)
            ctypes.memmove(dst, pattern, len(pattern))
            return pvrtc_data_size(width, height, bool(do_2bit_mode))

        self.PVRTDecompressPVRTC = PVRTDecompressPVRTC


@pytest.fixture
def fake_native_library(monkeypatch):
    loaded = []

    def fake_cdll(path):
        lib = FakePVRTLibrary(path)
        loaded.append(lib)
        return lib

    monkeypatch.setattr(ctypes, "CDLL", fake_cdll)
    return loaded


def test_native_backend_loads_and_decodes(fake_native_library):
    native = NativePVRTDecompressor(library_path="/opt/pvr/libPVRTDecompress.so")
    native.load()

    lib, = fake_native_library
    assert lib.path == "/opt/pvr/libPVRTDecompress.so"

    compressed = bytes(range(64))
    result = native.decompress(compressed, False, 16, 8)

    assert lib.calls == [(compressed, 0, 16, 8, 16 * 8 * 4)]
    assert result.consumed == 64
    assert len(result.pixels) == 16 * 8 * 4
    assert result.pixels[:4] == bytes([0x0A, 0x0B, 0x0C, 0x0D])


def test_native_backend_passes_2bit_mode_as_int(fake_native_library):
    native = NativePVRTDecompressor(library_path="libPVRTDecompress.so")
    native.load()

    native.decompress(bytes(32), True, 16, 8)

    lib, = fake_native_library
    assert lib.calls[0][1] == 1


def test_native_backend_requires_load():
    with pytest.raises(RuntimeError):
        NativePVRTDecompressor("libPVRTDecompress.so").decompress(bytes(32), False, 8, 8)


def test_auto_prefers_native_library(monkeypatch, fake_native_library):
    monkeypatch.setattr(ctypes.util, "find_library", lambda name: "libPVRTDecompress.so")

    d = BlockDecompressor(DecompressorBackend.AUTO)

    assert d.backend_name == "NATIVE"
    assert fake_native_library[0].path == "libPVRTDecompress.so"


def test_native_backend_through_pipeline(fake_native_library):
    d = BlockDecompressor(DecompressorBackend.NATIVE, library_path="libPVRTDecompress.so")
    texture = Texture(8, 8, PixelFormat.COMPRESSED_BLOCK_4BPP, bytes(32))

    out = convert_to_argb32(texture, d)

    assert (out.width, out.height, out.format) == (8, 8, PixelFormat.ARGB32)
    # RGBA 0A 0B 0C 0D -> ARGB32 words, BGRA in memory
    assert out.pixel_data == bytes([0x0C, 0x0B, 0x0A, 0x0D]) * 64


def test_native_backend_consumed_mismatch(fake_native_library):
    # 4x8 payload is 16 bytes, the library reports the padded 8x8 size
    d = BlockDecompressor(DecompressorBackend.NATIVE, library_path="libPVRTDecompress.so")
    texture = Texture(4, 8, PixelFormat.COMPRESSED_BLOCK_4BPP, bytes(16))

    with pytest.raises(DecompressionSizeMismatch) as excinfo:
        convert_to_argb32(texture, d)

    assert excinfo.value.expected == 16
    assert excinfo.value.actual == 32
