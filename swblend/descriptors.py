"""Descriptors that tell a blender what to draw and where."""

from __future__ import annotations

from dataclasses import dataclass

from swblend.color import BlendMode, Color, ColorFormat, Opa

Buffer = bytearray | memoryview


def _check_geometry(dest_w: int, dest_h: int, opa: int) -> None:
    if dest_w < 0 or dest_h < 0:
        raise ValueError(f"area size must not be negative, got {dest_w}x{dest_h}")
    if not 0 <= opa <= 0xFF:
        raise ValueError(f"opacity must be in 0..255, got {opa}")


def _mask_row(
    mask_buf: bytes | bytearray | memoryview | None,
    mask_offset: int,
    mask_stride: int,
    dest_w: int,
    dest_h: int,
    y: int,
) -> memoryview | None:
    if mask_buf is None:
        return None
    if not 0 <= y < dest_h:
        raise IndexError(f"row {y} outside 0..{dest_h - 1}")
    start = mask_offset + y * mask_stride
    row = memoryview(mask_buf)[start:start + dest_w]
    if start < 0 or len(row) != dest_w:
        raise ValueError(f"mask buffer too short for row {y}")
    return row


@dataclass
class FillDescriptor:
    """A solid-colour fill of a ``dest_w`` x ``dest_h`` area.

    Offsets and strides are in bytes; ``dest_offset`` is where the first
    pixel lives inside ``dest_buf``.
    """

    dest_buf: Buffer
    dest_w: int
    dest_h: int
    dest_stride: int
    color: Color
    opa: int = Opa.COVER
    mask_buf: bytes | bytearray | memoryview | None = None
    mask_stride: int = 0
    use_asm: bool = False
    dest_offset: int = 0
    mask_offset: int = 0

    def __post_init__(self) -> None:
        _check_geometry(self.dest_w, self.dest_h, self.opa)

    def mask_row(self, y: int) -> memoryview | None:
        """The ``dest_w`` mask values of row ``y``, or None without a mask."""
        return _mask_row(
            self.mask_buf, self.mask_offset, self.mask_stride, self.dest_w, self.dest_h, y
        )


@dataclass
class ImageDescriptor:
    """An image blended onto a ``dest_w`` x ``dest_h`` area.

    Offsets and strides are in bytes.
    """

    dest_buf: Buffer
    dest_w: int
    dest_h: int
    dest_stride: int
    src_buf: bytes | bytearray | memoryview
    src_stride: int
    src_color_format: ColorFormat
    opa: int = Opa.COVER
    blend_mode: BlendMode = BlendMode.NORMAL
    mask_buf: bytes | bytearray | memoryview | None = None
    mask_stride: int = 0
    dest_offset: int = 0
    src_offset: int = 0
    mask_offset: int = 0

    def __post_init__(self) -> None:
        _check_geometry(self.dest_w, self.dest_h, self.opa)

    def mask_row(self, y: int) -> memoryview | None:
        """The ``dest_w`` mask values of row ``y``, or None without a mask."""
        return _mask_row(
            self.mask_buf, self.mask_offset, self.mask_stride, self.dest_w, self.dest_h, y
        )