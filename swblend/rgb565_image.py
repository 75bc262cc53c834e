"""Image blending onto RGB565 destination buffers."""

from __future__ import annotations

from functools import partial
from typing import Callable, Iterator, Optional

from swblend.color import (
    OPA_MAX,
    BlendMode,
    ColorFormat,
    color_16_16_mix,
    opa_mix2,
    opa_mix3,
)
from swblend.descriptors import ImageDescriptor

PIXEL_SIZE = 2
"""Bytes per RGB565 pixel."""

_Rows = list[tuple[int, int, "memoryview | None"]]
_Pixels = Iterator[tuple[int, memoryview, Optional[int]]]


def l8_to_rgb565(c1: int) -> int:
    """Convert a luminance value to an RGB565 grey."""
    return ((c1 & 0xF8) << 8) + ((c1 & 0xFC) << 3) + ((c1 & 0xF8) >> 3)


def color_8_16_mix(c1: int, c2: int, mix: int) -> int:
    """Mix luminance ``c1`` over the RGB565 value ``c2``."""
    if mix == 0:
        return c2
    if mix == 255:
        return l8_to_rgb565(c1)
    inv = 255 - mix
    return (
        ((((c1 >> 3) * mix + ((c2 >> 11) & 0x1F) * inv) << 3) & 0xF800)
        + ((((c1 >> 2) * mix + ((c2 >> 5) & 0x3F) * inv) >> 3) & 0x07E0)
        + (((c1 >> 3) * mix + (c2 & 0x1F) * inv) >> 8)
    ) & 0xFFFF


def color_24_16_mix(c1: bytes | bytearray | memoryview, c2: int, mix: int) -> int:
    """Mix an RGB888 pixel over the RGB565 value ``c2``.

    ``c1`` holds at least three bytes in memory order: blue, green, red.
    """
    blue, green, red = bytes(c1[:3])
    if mix == 0:
        return c2
    if mix == 255:
        return ((red & 0xF8) << 8) + ((green & 0xFC) << 3) + ((blue & 0xF8) >> 3)
    inv = 255 - mix
    return (
        ((((red >> 3) * mix + ((c2 >> 11) & 0x1F) * inv) << 3) & 0xF800)
        + ((((green >> 2) * mix + ((c2 >> 5) & 0x3F) * inv) >> 3) & 0x07E0)
        + (((blue >> 3) * mix + (c2 & 0x1F) * inv) >> 8)
    ) & 0xFFFF


def _get(view: memoryview, pos: int) -> int:
    return view[pos] | (view[pos + 1] << 8)


def _put(view: memoryview, pos: int, value: int) -> None:
    view[pos:pos + PIXEL_SIZE] = (value & 0xFFFF).to_bytes(PIXEL_SIZE, "little")


def _word(px: memoryview) -> int:
    return px[0] | (px[1] << 8)


def _combine(mode: BlendMode, old: int, red: int, green: int, blue: int) -> int:
    """Combine 5/6/5-bit source channels with an RGB565 destination value."""
    d_red, d_green, d_blue = (old >> 11) & 0x1F, (old >> 5) & 0x3F, old & 0x1F
    if mode == BlendMode.ADDITIVE:
        return (
            (min(d_red + red, 31) << 11)
            + (min(d_green + green, 63) << 5)
            + min(d_blue + blue, 31)
        )
    if mode == BlendMode.SUBTRACTIVE:
        return (
            (max(d_red - red, 0) << 11)
            + (max(d_green - green, 0) << 5)
            + max(d_blue - blue, 0)
        )
    if mode == BlendMode.MULTIPLY:
        return (
            (((d_red * red) >> 5) << 11)
            + (((d_green * green) >> 6) << 5)
            + ((d_blue * blue) >> 5)
        )
    raise ValueError(f"unsupported blend mode: {mode!r}")


def _plain_mix(opa: int, mask: int | None, *, full_cover: bool) -> int:
    """Mix ratio for a source without its own alpha channel."""
    if mask is None:
        return 255 if full_cover and opa >= OPA_MAX else opa
    if opa >= OPA_MAX:
        return mask
    return opa_mix2(mask, opa)


def _own_mix(alpha: int, opa: int, mask: int | None, normal: bool) -> int:
    """Mix ratio for a source carrying its own alpha channel."""
    if mask is None:
        return alpha if opa >= OPA_MAX else opa_mix2(alpha, opa)
    if opa >= OPA_MAX:
        return opa_mix2(alpha, mask) if normal else mask
    return opa_mix3(alpha, mask, opa)


def _rgb565_channels(px: memoryview) -> tuple[int, int, int]:
    value = _word(px)
    return (value >> 11) & 0x1F, (value >> 5) & 0x3F, value & 0x1F


def _rgb888_channels(px: memoryview) -> tuple[int, int, int]:
    return px[2] >> 3, px[1] >> 2, px[0] >> 3


def _lumi_channels(px: memoryview) -> tuple[int, int, int]:
    return px[0] >> 3, px[0] >> 2, px[0] >> 3


def _rows(
    dsc: ImageDescriptor, dest: memoryview, src: memoryview, src_px: int, step: int
) -> _Rows:
    width, height = dsc.dest_w, dsc.dest_h
    if width == 0 or height == 0:
        return []
    src_len = (width - 1) * step + src_px
    rows = []
    for y in range(height):
        d = dsc.dest_offset + y * dsc.dest_stride
        s = dsc.src_offset + y * dsc.src_stride
        if d < 0 or d + width * PIXEL_SIZE > len(dest):
            raise ValueError(f"destination buffer too short for row {y}")
        if s < 0 or s + src_len > len(src):
            raise ValueError(f"source buffer too short for row {y}")
        rows.append((d, s, dsc.mask_row(y)))
    return rows


def _pixels(rows: _Rows, width: int, src: memoryview, src_px: int, step: int) -> _Pixels:
    for d, s, mask in rows:
        masks = [None] * width if mask is None else mask
        sources = (src[p:p + src_px] for p in range(s, s + width * step, step))
        yield from zip(range(d, d + width * PIXEL_SIZE, PIXEL_SIZE), sources, masks)


def _blend_non_normal(
    mode: BlendMode,
    dest: memoryview,
    pixels: _Pixels,
    channels: Callable[[memoryview], tuple[int, int, int]],
    mix_of: Callable[[memoryview, Optional[int]], int],
    skip: Callable[[memoryview], bool] | None = None,
) -> None:
    for pos, px, mask in pixels:
        if skip is not None and skip(px):
            continue
        old = _get(dest, pos)
        res = _combine(mode, old, *channels(px))
        _put(dest, pos, color_16_16_mix(res, old, mix_of(px, mask)))


def _blend_rgb565(dsc, dest, src, rows, step) -> None:
    opa = dsc.opa
    pixels = _pixels(rows, dsc.dest_w, src, 2, step)
    if dsc.blend_mode != BlendMode.NORMAL:
        # Pure black adds or subtracts nothing; pure white multiplies by one.
        neutral = 0xFFFF if dsc.blend_mode == BlendMode.MULTIPLY else 0x0000
        _blend_non_normal(
            dsc.blend_mode,
            dest,
            pixels,
            _rgb565_channels,
            lambda px, mask: _plain_mix(opa, mask, full_cover=False),
            lambda px: _word(px) == neutral,
        )
        return
    if dsc.mask_buf is None and opa >= OPA_MAX:
        length = dsc.dest_w * PIXEL_SIZE
        for d, s, _ in rows:
            dest[d:d + length] = src[s:s + length]
        return
    for pos, px, mask in pixels:
        old = _get(dest, pos)
        _put(dest, pos, color_16_16_mix(_word(px), old, _plain_mix(opa, mask, full_cover=False)))


def _blend_rgb888(dsc, dest, src, rows, step, *, src_px: int) -> None:
    opa = dsc.opa
    pixels = _pixels(rows, dsc.dest_w, src, src_px, step)
    if dsc.blend_mode != BlendMode.NORMAL:
        _blend_non_normal(
            dsc.blend_mode,
            dest,
            pixels,
            _rgb888_channels,
            lambda px, mask: _plain_mix(opa, mask, full_cover=False),
        )
        return
    for pos, px, mask in pixels:
        mix = _plain_mix(opa, mask, full_cover=True)
        _put(dest, pos, color_24_16_mix(px, _get(dest, pos), mix))


def _blend_argb8888(dsc, dest, src, rows, step) -> None:
    opa = dsc.opa
    pixels = _pixels(rows, dsc.dest_w, src, 4, step)
    if dsc.blend_mode != BlendMode.NORMAL:
        _blend_non_normal(
            dsc.blend_mode,
            dest,
            pixels,
            _rgb888_channels,
            lambda px, mask: _own_mix(px[3], opa, mask, False),
        )
        return
    for pos, px, mask in pixels:
        mix = _own_mix(px[3], opa, mask, True)
        _put(dest, pos, color_24_16_mix(px, _get(dest, pos), mix))


def _blend_l8(dsc, dest, src, rows, step) -> None:
    opa = dsc.opa
    pixels = _pixels(rows, dsc.dest_w, src, 1, step)
    if dsc.blend_mode != BlendMode.NORMAL:
        _blend_non_normal(
            dsc.blend_mode,
            dest,
            pixels,
            _lumi_channels,
            lambda px, mask: _plain_mix(opa, mask, full_cover=True),
        )
        return
    for pos, px, mask in pixels:
        mix = _plain_mix(opa, mask, full_cover=True)
        _put(dest, pos, color_8_16_mix(px[0], _get(dest, pos), mix))


def _blend_al88(dsc, dest, src, rows, step) -> None:
    opa = dsc.opa
    pixels = _pixels(rows, dsc.dest_w, src, 2, step)
    if dsc.blend_mode != BlendMode.NORMAL:
        _blend_non_normal(
            dsc.blend_mode,
            dest,
            pixels,
            _lumi_channels,
            lambda px, mask: _own_mix(px[1], opa, mask, False),
        )
        return
    for pos, px, mask in pixels:
        mix = _own_mix(px[1], opa, mask, True)
        _put(dest, pos, color_8_16_mix(px[0], _get(dest, pos), mix))


# format -> (bytes per source pixel, reads every fourth pixel in non-normal modes, handler)
_SOURCE_FORMATS: dict[ColorFormat, tuple[int, bool, Callable[..., None]]] = {
    ColorFormat.RGB565: (2, False, _blend_rgb565),
    ColorFormat.RGB888: (3, False, partial(_blend_rgb888, src_px=3)),
    ColorFormat.XRGB8888: (4, False, partial(_blend_rgb888, src_px=4)),
    ColorFormat.ARGB8888: (4, False, _blend_argb8888),
    ColorFormat.L8: (1, True, _blend_l8),
    ColorFormat.AL88: (2, True, _blend_al88),
}


def blend_image_to_rgb565(dsc: ImageDescriptor) -> None:
    """Blend the source image of ``dsc`` onto its RGB565 destination in place.

    Destination pixels are little-endian RGB565 words. In the additive,
    subtractive and multiply modes, L8 and AL88 sources are read at every
    fourth pixel. Raises ValueError for an unsupported source format or
    blend mode, or for buffers too short for the described area.
    """
    entry = _SOURCE_FORMATS.get(dsc.src_color_format)
    if entry is None:
        raise ValueError(f"unsupported source colour format: {dsc.src_color_format!r}")
    mode = BlendMode(dsc.blend_mode)
    src_px, sparse, handler = entry
    step = src_px * 4 if sparse and mode != BlendMode.NORMAL else src_px

    dest = memoryview(dsc.dest_buf).cast("B")
    if dest.readonly:
        raise TypeError("destination buffer must be writable")
    src = memoryview(dsc.src_buf).cast("B")

    rows = _rows(dsc, dest, src, src_px, step)
    handler(dsc, dest, src, rows, step)