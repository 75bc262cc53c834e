"""Solid-colour fills onto RGB565 destination buffers."""

from __future__ import annotations

from itertools import repeat
from typing import Iterable

from swblend.color import OPA_MAX, color_16_16_mix, color_to_u16, opa_mix2
from swblend.descriptors import FillDescriptor

PIXEL_SIZE = 2
"""Bytes per RGB565 pixel."""


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


def _mix_values(dsc: FillDescriptor, y: int) -> Iterable[int]:
    mask = dsc.mask_row(y)
    if mask is None:
        return repeat(dsc.opa, dsc.dest_w)
    if dsc.opa >= OPA_MAX:
        return mask
    return (opa_mix2(m, dsc.opa) for m in mask)


def blend_color_to_rgb565(dsc: FillDescriptor) -> None:
    """Fill the area of ``dsc`` with its colour, honouring opacity and mask.

    Pixels are little-endian RGB565 words and the destination buffer is
    modified in place. ``use_asm`` selects the bulk row writer for the plain
    opaque fill; both writers give the same result.
    """
    view = _dest_view(dsc)
    starts = _row_starts(dsc, view)
    width = dsc.dest_w
    color16 = color_to_u16(dsc.color)

    if dsc.mask_buf is None and dsc.opa >= OPA_MAX:
        _fill_solid(view, starts, width, color16.to_bytes(PIXEL_SIZE, "little"), dsc.use_asm)
        return

    for y, start in enumerate(starts):
        for pos, mix in zip(_pixel_offsets(start, width), _mix_values(dsc, y)):
            if mix == 0:
                continue
            old = int.from_bytes(view[pos:pos + PIXEL_SIZE], "little")
            new = color_16_16_mix(color16, old, mix)
            view[pos:pos + PIXEL_SIZE] = new.to_bytes(PIXEL_SIZE, "little")