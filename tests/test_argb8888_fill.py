import pytest

from swblend.argb8888_fill import MixCache, blend_color_to_argb8888
from swblend.color import Color, Color32, color32_from_bytes, color_mix32, opa_mix2
from swblend.descriptors import FillDescriptor

TEST_COLOR = Color(red=0x12, green=0x34, blue=0x56)
CANARY = 4
PX = 4
OPA_MAX = 253


def _make_buffer(active_len, unalign):
    total_len = active_len + CANARY * 2
    buf = bytearray(total_len * PX + unalign)
    for i in range(CANARY, active_len + CANARY):
        buf[unalign + i * PX] = i % 255
    return buf


def _words(buf, unalign):
    data = bytes(buf[unalign:])
    return [int.from_bytes(data[i:i + 4], "little") for i in range(0, len(data), 4)]


def _run_case(dest_w, dest_h, dest_stride, unalign):
    active_len = dest_h * dest_stride
    buf_asm = _make_buffer(active_len, unalign)
    buf_ansi = _make_buffer(active_len, unalign)
    common = dict(
        dest_w=dest_w,
        dest_h=dest_h,
        dest_stride=dest_stride * PX,
        color=TEST_COLOR,
        opa=OPA_MAX,
        dest_offset=unalign + CANARY * PX,
    )
    blend_color_to_argb8888(FillDescriptor(dest_buf=buf_asm, use_asm=True, **common))
    blend_color_to_argb8888(FillDescriptor(dest_buf=buf_ansi, use_asm=False, **common))
    return _words(buf_asm, unalign), _words(buf_ansi, unalign)


@pytest.mark.parametrize("dest_w", range(8, 17))
def test_fill_functionality_matrix(dest_w):
    count = 0
    for dest_h in range(1, 17):
        for dest_stride in range(dest_w, dest_w * 2 + 1):
            for unalign in range(0, 17):
                asm, ansi = _run_case(dest_w, dest_h, dest_stride, unalign)
                msg = f"w={dest_w} h={dest_h} stride={dest_stride} unalign={unalign}"
                assert ansi[:CANARY] == [0] * CANARY, msg
                assert asm[:CANARY] == [0] * CANARY, msg
                assert asm[CANARY:-CANARY] == ansi[CANARY:-CANARY], msg
                assert ansi[-CANARY:] == [0] * CANARY, msg
                assert asm[-CANARY:] == [0] * CANARY, msg
                count += 1
    assert count == 16 * (dest_w + 1) * 17


def test_simple_fill_writes_color_and_keeps_stride_padding():
    buf = bytearray(b"\x07" * (4 * 3 * 2))
    dsc = FillDescriptor(dest_buf=buf, dest_w=2, dest_h=2, dest_stride=12, color=TEST_COLOR)
    blend_color_to_argb8888(dsc)
    pixel = bytes((0x56, 0x34, 0x12, 0xFF))
    assert bytes(buf[0:8]) == pixel * 2
    assert bytes(buf[8:12]) == b"\x07" * 4
    assert bytes(buf[12:20]) == pixel * 2
    assert bytes(buf[20:24]) == b"\x07" * 4


def test_transparent_opacity_leaves_destination_unchanged():
    original = bytes(range(32))
    buf = bytearray(original)
    dsc = FillDescriptor(dest_buf=buf, dest_w=4, dest_h=2, dest_stride=16, color=TEST_COLOR, opa=0)
    blend_color_to_argb8888(dsc)
    assert bytes(buf) == original


def test_opacity_over_transparent_background_takes_foreground():
    buf = bytearray(16)
    dsc = FillDescriptor(dest_buf=buf, dest_w=4, dest_h=1, dest_stride=16, color=TEST_COLOR, opa=100)
    blend_color_to_argb8888(dsc)
    expected = Color32(red=0x12, green=0x34, blue=0x56, alpha=100)
    assert bytes(buf) == expected.to_bytes() * 4


def test_opacity_over_opaque_background_matches_mix32():
    bg = Color32(red=200, green=100, blue=50, alpha=255)
    buf = bytearray(bg.to_bytes() * 3)
    dsc = FillDescriptor(dest_buf=buf, dest_w=3, dest_h=1, dest_stride=12, color=TEST_COLOR, opa=127)
    blend_color_to_argb8888(dsc)
    fg = Color32(red=0x12, green=0x34, blue=0x56, alpha=127)
    assert bytes(buf) == color_mix32(fg, bg).to_bytes() * 3


def test_full_mask_equals_plain_fill():
    plain = bytearray(32)
    masked = bytearray(32)
    blend_color_to_argb8888(
        FillDescriptor(dest_buf=plain, dest_w=4, dest_h=2, dest_stride=16, color=TEST_COLOR)
    )
    blend_color_to_argb8888(
        FillDescriptor(
            dest_buf=masked,
            dest_w=4,
            dest_h=2,
            dest_stride=16,
            color=TEST_COLOR,
            mask_buf=bytes([255] * 8),
            mask_stride=4,
        )
    )
    assert masked == plain


def test_mask_uses_mask_stride_per_row():
    bg = Color32(red=1, green=2, blue=3, alpha=255)
    buf = bytearray(bg.to_bytes() * 4)
    mask = bytes([255, 0, 9, 9, 0, 255, 9, 9])
    dsc = FillDescriptor(
        dest_buf=buf, dest_w=2, dest_h=2, dest_stride=8, color=TEST_COLOR,
        mask_buf=mask, mask_stride=4,
    )
    blend_color_to_argb8888(dsc)
    full = Color32(red=0x12, green=0x34, blue=0x56, alpha=255)
    pixels = [color32_from_bytes(buf[i:i + 4]) for i in range(0, 16, 4)]
    assert pixels == [full, bg, bg, full]


def test_mask_with_opacity_combines_both():
    bg = Color32(red=10, green=20, blue=30, alpha=255)
    buf = bytearray(bg.to_bytes() * 2)
    dsc = FillDescriptor(
        dest_buf=buf, dest_w=2, dest_h=1, dest_stride=8, color=TEST_COLOR,
        opa=128, mask_buf=bytes([200, 0]), mask_stride=2,
    )
    blend_color_to_argb8888(dsc)
    fg = Color32(red=0x12, green=0x34, blue=0x56, alpha=opa_mix2(200, 128))
    assert color32_from_bytes(buf[0:4]) == color_mix32(fg, bg)
    assert color32_from_bytes(buf[4:8]) == bg


def test_short_buffer_raises():
    dsc = FillDescriptor(dest_buf=bytearray(12), dest_w=4, dest_h=1, dest_stride=16, color=TEST_COLOR)
    with pytest.raises(ValueError):
        blend_color_to_argb8888(dsc)


def test_short_buffer_is_not_resized():
    buf = bytearray(20)
    dsc = FillDescriptor(dest_buf=buf, dest_w=2, dest_h=3, dest_stride=8, color=TEST_COLOR)
    with pytest.raises(ValueError):
        blend_color_to_argb8888(dsc)
    assert len(buf) == 20


def test_read_only_buffer_raises():
    dsc = FillDescriptor(dest_buf=memoryview(bytes(16)), dest_w=4, dest_h=1, dest_stride=16, color=TEST_COLOR)
    with pytest.raises(TypeError):
        blend_color_to_argb8888(dsc)


def test_cache_opaque_foreground_wins():
    fg = Color32(red=1, green=2, blue=3, alpha=253)
    bg = Color32(red=9, green=9, blue=9, alpha=100)
    assert MixCache().mix(fg, bg) == fg


def test_cache_transparent_background_gives_foreground():
    fg = Color32(red=1, green=2, blue=3, alpha=50)
    bg = Color32(red=9, green=9, blue=9, alpha=2)
    assert MixCache().mix(fg, bg) == fg


def test_cache_transparent_foreground_gives_background():
    fg = Color32(red=1, green=2, blue=3, alpha=2)
    bg = Color32(red=9, green=9, blue=9, alpha=100)
    assert MixCache().mix(fg, bg) == bg


def test_cache_opaque_background_uses_simple_mix():
    fg = Color32(red=100, green=150, blue=200, alpha=77)
    bg = Color32(red=9, green=8, blue=7, alpha=255)
    assert MixCache().mix(fg, bg) == color_mix32(fg, bg)


def test_cache_both_alpha_result_alpha_and_repeatability():
    fg = Color32(red=100, green=150, blue=200, alpha=128)
    bg = Color32(red=9, green=8, blue=7, alpha=128)
    cache = MixCache()
    first = cache.mix(fg, bg)
    assert first.alpha == 255 - opa_mix2(127, 127)
    assert cache.mix(fg, bg) == first
    other = Color32(red=1, green=1, blue=1, alpha=60)
    cache.mix(other, bg)
    assert cache.mix(fg, bg) == MixCache().mix(fg, bg) == first