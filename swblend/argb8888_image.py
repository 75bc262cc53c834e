"""Image blending onto ARGB8888 destination buffers."""

from __future__ import annotations

from functools import partial
from itertools import repeat
from typing import Callable, Iterator

from swblend.argb8888_fill import PIXEL_SIZE, MixCache
from swblend.color import (
    OPA_MAX,
    BlendMode,
    Color32,
    ColorFormat,
    color32_from_bytes,
    opa_mix2,
    opa_mix3,
)
from swblend.descriptors import ImageDescriptor

_Rows = list[tuple[int, int, "memoryview | None"]]


def color_8_32_mix(src: int, dest: Color32, mix: int) -> Color32:
    """Mix a luminance value over an ARGB8888 pixel; the result is opaque."""
    if mix == 0:
        return dest
    if mix >= OPA_MAX:
        return Color32(red=src, green=src, blue=src, alpha=255)
    inv = 255 - mix

    def channel(d: int) -> int:
        return ((src * mix + d * inv) >> 8) & 0xFF

    return Color32(
        red=channel(dest.red),
        green=channel(dest.green),
        blue=channel(dest.blue),
        alpha=255,
    )


def blend_non_normal_pixel(
    dest: Color32, src: Color32, mode: BlendMode, cache: MixCache
) -> Color32:
    """Combine ``src`` with ``dest`` by an additive, subtractive or multiply mode."""
    if mode == BlendMode.ADDITIVE:
        red = min(dest.red + src.red, 255)
        green = min(dest.green + src.green, 255)
        blue = min(dest.blue + src.blue, 255)
    elif mode == BlendMode.SUBTRACTIVE:
        red = max(dest.red - src.red, 0)
        green = max(dest.green - src.green, 0)
        blue = max(dest.blue - src.blue, 0)
    elif mode == BlendMode.MULTIPLY:
        red = (dest.red * src.red) >> 8
        green = (dest.green * src.green) >> 8
        blue = (dest.blue * src.blue) >> 8
    else:
        raise ValueError(f"unsupported blend mode: {mode!r}")
    return cache.mix(Color32(red=red, green=green, blue=blue, alpha=src.alpha), dest)


def _read(view: memoryview, pos: int) -> Color32:
    return color32_from_bytes(view[pos:pos + PIXEL_SIZE])


def _write(view: memoryview, pos: int, color: Color32) -> None:
    view[pos:pos + PIXEL_SIZE] = color.to_bytes()


def _rows(dsc: ImageDescriptor, dest: memoryview, src: memoryview, src_px: int) -> _Rows:
    width, height = dsc.dest_w, dsc.dest_h
    if width == 0 or height == 0:
        return []
    rows = []
    for y in range(height):
        d = dsc.dest_offset + y * dsc.dest_stride
        s = dsc.src_offset + y * dsc.src_stride
        if d < 0 or d + width * PIXEL_SIZE > len(dest):
            raise ValueError(f"destination buffer too short for row {y}")
        if s < 0 or s + width * src_px > len(src):
            raise ValueError(f"source buffer too short for row {y}")
        rows.append((d, s, dsc.mask_row(y)))
    return rows


def _pixels(
    rows: _Rows, width: int, src: memoryview, src_px: int
) -> Iterator[tuple[int, memoryview, int | None]]:
    for d, s, mask in rows:
        masks = repeat(None, width) if mask is None else mask
        sources = (src[p:p + src_px] for p in range(s, s + width * src_px, src_px))
        yield from zip(range(d, d + width * PIXEL_SIZE, PIXEL_SIZE), sources, masks)


def _plain_alpha(opa: int, mask: int | None, normal: bool) -> int:
    """Alpha for a source without its own alpha channel."""
    if mask is None:
        return opa
    if normal and opa >= OPA_MAX:
        return mask
    return opa_mix2(mask, opa)


def _own_alpha(alpha: int, opa: int, mask: int | None, normal: bool) -> int:
    """Alpha for a source carrying its own alpha channel."""
    if normal and opa >= OPA_MAX:
        return alpha if mask is None else opa_mix2(alpha, mask)
    if mask is None:
        return opa_mix2(alpha, opa)
    return opa_mix3(alpha, mask, opa)


def _apply(view: memoryview, pos: int, fg: Color32, dsc: ImageDescriptor, cache: MixCache) -> None:
    bg = _read(view, pos)
    if dsc.blend_mode == BlendMode.NORMAL:
        _write(view, pos, cache.mix(fg, bg))
    else:
        _write(view, pos, blend_non_normal_pixel(bg, fg, dsc.blend_mode, cache))


def _blend_rgb565(dsc, dest, src, rows, cache) -> None:
    normal = dsc.blend_mode == BlendMode.NORMAL
    for pos, px, mask in _pixels(rows, dsc.dest_w, src, 2):
        value = px[0] | (px[1] << 8)
        fg = Color32(
            red=(((value >> 11) & 0x1F) * 2106) >> 8,
            green=(((value >> 5) & 0x3F) * 1037) >> 8,
            blue=((value & 0x1F) * 2106) >> 8,
            alpha=_plain_alpha(dsc.opa, mask, normal),
        )
        _apply(dest, pos, fg, dsc, cache)


def _blend_rgb888(dsc, dest, src, rows, cache, *, src_px: int) -> None:
    normal = dsc.blend_mode == BlendMode.NORMAL
    if normal and dsc.mask_buf is None and dsc.opa >= OPA_MAX:
        if src_px == 4:
            length = dsc.dest_w * PIXEL_SIZE
            for d, s, _ in rows:
                dest[d:d + length] = src[s:s + length]
        else:
            for pos, px, _ in _pixels(rows, dsc.dest_w, src, src_px):
                _write(dest, pos, Color32(red=px[2], green=px[1], blue=px[0], alpha=0xFF))
        return
    for pos, px, mask in _pixels(rows, dsc.dest_w, src, src_px):
        fg = Color32(
            red=px[2], green=px[1], blue=px[0], alpha=_plain_alpha(dsc.opa, mask, normal)
        )
        _apply(dest, pos, fg, dsc, cache)


def _blend_argb8888(dsc, dest, src, rows, cache) -> None:
    normal = dsc.blend_mode == BlendMode.NORMAL
    for pos, px, mask in _pixels(rows, dsc.dest_w, src, 4):
        fg = Color32(
            red=px[2],
            green=px[1],
            blue=px[0],
            alpha=_own_alpha(px[3], dsc.opa, mask, normal),
        )
        _apply(dest, pos, fg, dsc, cache)


def _blend_l8(dsc, dest, src, rows, cache) -> None:
    normal = dsc.blend_mode == BlendMode.NORMAL
    opaque = dsc.mask_buf is None and dsc.opa >= OPA_MAX
    for pos, px, mask in _pixels(rows, dsc.dest_w, src, 1):
        lumi = px[0]
        if normal and opaque:
            _write(dest, pos, Color32(red=lumi, green=lumi, blue=lumi, alpha=lumi))
        elif normal:
            mix = _plain_alpha(dsc.opa, mask, normal)
            _write(dest, pos, color_8_32_mix(lumi, _read(dest, pos), mix))
        else:
            fg = Color32(red=lumi, green=lumi, blue=lumi, alpha=_plain_alpha(dsc.opa, mask, normal))
            _apply(dest, pos, fg, dsc, cache)


def _blend_al88(dsc, dest, src, rows, cache) -> None:
    normal = dsc.blend_mode == BlendMode.NORMAL
    for pos, px, mask in _pixels(rows, dsc.dest_w, src, 2):
        lumi, alpha = px[0], px[1]
        mix = _own_alpha(alpha, dsc.opa, mask, normal)
        if normal:
            _write(dest, pos, color_8_32_mix(lumi, _read(dest, pos), mix))
        else:
            _apply(dest, pos, Color32(red=lumi, green=lumi, blue=lumi, alpha=mix), dsc, cache)


_SOURCE_FORMATS: dict[ColorFormat, tuple[int, Callable[..., None]]] = {
    ColorFormat.RGB565: (2, _blend_rgb565),
    ColorFormat.RGB888: (3, partial(_blend_rgb888, src_px=3)),
    ColorFormat.XRGB8888: (4, partial(_blend_rgb888, src_px=4)),
    ColorFormat.ARGB8888: (4, _blend_argb8888),
    ColorFormat.L8: (1, _blend_l8),
    ColorFormat.AL88: (2, _blend_al88),
}


def blend_image_to_argb8888(dsc: ImageDescriptor) -> None:
    """Blend the source image of ``dsc`` onto its ARGB8888 destination in place.

    Raises ValueError for an unsupported source format or blend mode, or for
    buffers too short for the described area.
    """
    entry = _SOURCE_FORMATS.get(dsc.src_color_format)
    if entry is None:
        raise ValueError(f"unsupported source colour format: {dsc.src_color_format!r}")
    BlendMode(dsc.blend_mode)
    src_px, handler = entry

    dest = memoryview(dsc.dest_buf).cast("B")
    if dest.readonly:
        raise TypeError("destination buffer must be writable")
    src = memoryview(dsc.src_buf).cast("B")

    rows = _rows(dsc, dest, src, src_px)
    handler(dsc, dest, src, rows, MixCache())