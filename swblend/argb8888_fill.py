"""Solid-colour fills onto ARGB8888 destination buffers."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from itertools import repeat
from typing import Iterable

from swblend.color import (
    OPA_MAX,
    OPA_MIN,
    Color32,
    color32_from_bytes,
    color_mix32,
    color_to_32,
    color_to_u32,
    opa_mix2,
)
from swblend.descriptors import FillDescriptor

PIXEL_SIZE = 4
"""Bytes per ARGB8888 pixel."""

_ZERO = Color32(red=0, green=0, blue=0, alpha=0)


@dataclass
class MixCache:
    """Remembers the last semi-transparent over semi-transparent mix.

    Mixing two colours that both carry alpha is costly, and runs of equal
    pixels are common, so the inputs and result of the last such mix are kept.
    """

    fg_saved: Color32 = field(default=_ZERO)
    bg_saved: Color32 = field(default=_ZERO)
    res_saved: Color32 = field(default=_ZERO)
    res_alpha_saved: int = 255
    ratio_saved: int = 255

    def mix(self, fg: Color32, bg: Color32) -> Color32:
        """Draw ``fg`` over ``bg`` taking the alpha of both into account."""
        if fg.alpha >= OPA_MAX or bg.alpha <= OPA_MIN:
            return fg
        if fg.alpha <= OPA_MIN:
            return bg
        if bg.alpha == 255:
            return color_mix32(fg, bg)

        if bg.alpha != self.bg_saved.alpha or fg.alpha != self.fg_saved.alpha:
            self.res_alpha_saved = (255 - opa_mix2(255 - fg.alpha, 255 - bg.alpha)) & 0xFF
            if self.res_alpha_saved == 0:
                raise ArithmeticError("resulting alpha of a mix must not be zero")
            self.ratio_saved = ((fg.alpha * 255) // self.res_alpha_saved) & 0xFF

        if bg != self.bg_saved or fg != self.fg_saved:
            self.fg_saved = fg
            self.bg_saved = bg
            mixed = color_mix32(replace(fg, alpha=self.ratio_saved), bg)
            self.res_saved = replace(mixed, alpha=self.res_alpha_saved)

        return self.res_saved


def _dest_view(dsc: FillDescriptor) -> memoryview:
    view = memoryview(dsc.dest_buf).cast("B")
    if view.readonly:
        raise TypeError("destination buffer must be writable")
    return view


def _row_starts(dsc: FillDescriptor, view: memoryview) -> list[int]:
    row_len = dsc.dest_w * PIXEL_SIZE
    if row_len == 0:
        return []
    starts = [dsc.dest_offset + y * dsc.dest_stride for y in range(dsc.dest_h)]
    for y, start in enumerate(starts):
        if start < 0 or start + row_len > len(view):
            raise ValueError(f"destination buffer too short for row {y}")
    return starts


def _pixel_offsets(start: int, width: int) -> range:
    return range(start, start + width * PIXEL_SIZE, PIXEL_SIZE)


def _fill_solid(view: memoryview, starts: list[int], width: int, pixel: bytes, bulk: bool) -> None:
    if bulk:
        row = pixel * width
        for start in starts:
            view[start:start + len(row)] = row
        return
    for start in starts:
        for pos in _pixel_offsets(start, width):
            view[pos:pos + PIXEL_SIZE] = pixel


def blend_color_to_argb8888(dsc: FillDescriptor) -> None:
    """Fill the area of ``dsc`` with its colour, honouring opacity and mask.

    The destination buffer is modified in place. ``use_asm`` selects the
    bulk row writer for the plain opaque fill; both writers give the same
    result.
    """
    view = _dest_view(dsc)
    starts = _row_starts(dsc, view)
    width = dsc.dest_w
    opa = dsc.opa
    has_mask = dsc.mask_buf is not None

    if not has_mask and opa >= OPA_MAX:
        pixel = color_to_u32(dsc.color).to_bytes(4, "little")
        _fill_solid(view, starts, width, pixel, dsc.use_asm)
        return

    cache = MixCache()
    base = color_to_32(dsc.color, opa if not has_mask or opa < OPA_MAX else 0xFF)

    def alphas(y: int) -> Iterable[int]:
        if not has_mask:
            return repeat(opa, width)
        mask = dsc.mask_row(y)
        if opa >= OPA_MAX:
            return mask
        return (opa_mix2(m, opa) for m in mask)

    for y, start in enumerate(starts):
        for pos, alpha in zip(_pixel_offsets(start, width), alphas(y)):
            fg = base if alpha == base.alpha else replace(base, alpha=alpha)
            bg = color32_from_bytes(view[pos:pos + PIXEL_SIZE])
            view[pos:pos + PIXEL_SIZE] = cache.mix(fg, bg).to_bytes()