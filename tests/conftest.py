import pytest

from tex2png_py.decompressor import DecompressResult
from tex2png_py.texture import Header


# ----------------------------------------------------------------------------
# Build a TEX container in memory: packed header followed by the payload
# ----------------------------------------------------------------------------
@pytest.fixture
def make_container():
    def build(width, height, fmt, pixel_data, tag=None):
        return Header(width, height, fmt, tag).pack() + bytes(pixel_data)

    return build


# ----------------------------------------------------------------------------
# Stand-in for the PVRTC decompressor: records calls, returns a fixed pattern
# ----------------------------------------------------------------------------
class StubDecompressor:
    def __init__(self, pixel=(0x01, 0x02, 0x03, 0x04), consumed_delta=0, produced_delta=0):
        self.pixel = bytes(pixel)
        self.consumed_delta = consumed_delta
        self.produced_delta = produced_delta
        self.calls = []

    def decompress(self, data, do_2bit_mode, width, height):
        self.calls.append((bytes(data), do_2bit_mode, width, height))
        pixels = self.pixel * (width * height)
        if self.produced_delta:
            pixels = pixels[:len(pixels) + self.produced_delta]
        return DecompressResult(len(data) + self.consumed_delta, pixels)


@pytest.fixture
def make_stub_decompressor():
    return StubDecompressor


@pytest.fixture
def stub_decompressor():
    return StubDecompressor()


@pytest.fixture
def argb32_texture_bytes():
    # 1x8 ARGB32 texture: 32 bytes of payload
    return bytes(range(32))
