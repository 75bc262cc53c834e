"""Colour types, colour formats and the basic colour arithmetic used by the blenders."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

OPA_MIN = 2
"""Opacities at or below this value are treated as fully transparent."""

OPA_MAX = 253
"""Opacities at or above this value are treated as fully covering."""

COLOR_MIX_ROUND_OFS = 0
"""Rounding offset added before the divide-by-255 in :func:`color_mix`."""

_U32 = 0xFFFFFFFF
_RGB565_SPREAD_MASK = 0x7E0F81F


class Opa(IntEnum):
    """Named opacity levels."""

    TRANSP = 0
    P0 = 0
    P10 = 25
    P20 = 51
    P30 = 76
    P40 = 102
    P50 = 127
    P60 = 153
    P70 = 178
    P80 = 204
    P90 = 229
    P100 = 255
    COVER = 255


class BlendMode(IntEnum):
    """How an opaque drawing is combined with the background."""

    NORMAL = 0
    ADDITIVE = 1
    SUBTRACTIVE = 2
    MULTIPLY = 3


class ColorFormat(IntEnum):
    """Pixel formats known to the renderer."""

    UNKNOWN = 0x00
    RAW = 0x01
    RAW_ALPHA = 0x02
    L8 = 0x06
    I1 = 0x07
    I2 = 0x08
    I4 = 0x09
    I8 = 0x0A
    A8 = 0x0E
    RGB565 = 0x12
    ARGB8565 = 0x13
    RGB565A8 = 0x14
    AL88 = 0x15
    RGB888 = 0x0F
    ARGB8888 = 0x10
    XRGB8888 = 0x11
    A1 = 0x0B
    A2 = 0x0C
    A4 = 0x0D
    YUV_START = 0x20
    I420 = 0x20
    I422 = 0x21
    I444 = 0x22
    I400 = 0x23
    NV21 = 0x24
    NV12 = 0x25
    YUY2 = 0x26
    UYVY = 0x27
    YUV_END = 0x27


_BPP = {
    ColorFormat.I1: 1,
    ColorFormat.A1: 1,
    ColorFormat.I2: 2,
    ColorFormat.A2: 2,
    ColorFormat.I4: 4,
    ColorFormat.A4: 4,
    ColorFormat.L8: 8,
    ColorFormat.A8: 8,
    ColorFormat.I8: 8,
    ColorFormat.AL88: 16,
    ColorFormat.RGB565: 16,
    ColorFormat.RGB565A8: 16,
    ColorFormat.ARGB8565: 24,
    ColorFormat.RGB888: 24,
    ColorFormat.ARGB8888: 32,
    ColorFormat.XRGB8888: 32,
}


def _check_u8(name: str, value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must be in 0..255, got {value}")


@dataclass(frozen=True)
class Color:
    """An RGB888 colour."""

    red: int
    green: int
    blue: int

    def __post_init__(self) -> None:
        _check_u8("red", self.red)
        _check_u8("green", self.green)
        _check_u8("blue", self.blue)


@dataclass(frozen=True)
class Color32:
    """An ARGB8888 colour; stored in memory as blue, green, red, alpha."""

    red: int
    green: int
    blue: int
    alpha: int

    def __post_init__(self) -> None:
        _check_u8("red", self.red)
        _check_u8("green", self.green)
        _check_u8("blue", self.blue)
        _check_u8("alpha", self.alpha)

    def to_bytes(self) -> bytes:
        """Return the four bytes of this colour in memory order."""
        return bytes((self.blue, self.green, self.red, self.alpha))


def color32_from_bytes(data: bytes | bytearray | memoryview) -> Color32:
    """Build a :class:`Color32` from four bytes in memory order."""
    raw = bytes(data)
    if len(raw) != 4:
        raise ValueError(f"an ARGB8888 pixel is 4 bytes, got {len(raw)}")
    blue, green, red, alpha = raw
    return Color32(red=red, green=green, blue=blue, alpha=alpha)


def color_format_bpp(fmt: ColorFormat | int) -> int:
    """Bits per pixel of a colour format, or 0 for formats without a fixed size."""
    try:
        return _BPP.get(ColorFormat(fmt), 0)
    except ValueError:
        return 0


def color_to_32(color: Color, opa: int) -> Color32:
    """Combine an RGB888 colour with an alpha value."""
    return Color32(red=color.red, green=color.green, blue=color.blue, alpha=opa)


def color_to_u16(color: Color) -> int:
    """Pack a colour as RGB565."""
    return (
        ((color.red & 0xF8) << 8)
        + ((color.green & 0xFC) << 3)
        + ((color.blue & 0xF8) >> 3)
    )


def color_to_u32(color: Color) -> int:
    """Pack a colour as XRGB8888 with the alpha byte set to 0xFF."""
    return ((0xFF << 24) + (color.red << 16) + (color.green << 8) + color.blue) & _U32


def color_16_16_mix(c1: int, c2: int, mix: int) -> int:
    """Mix two RGB565 values: ``mix`` 255 gives ``c1``, 0 gives ``c2``."""
    if mix == 255:
        return c1
    if mix == 0:
        return c2
    if c1 == c2:
        return c1

    mix = ((mix + 4) >> 3) & 0xFF
    bg = (c2 | (c2 << 16)) & _RGB565_SPREAD_MASK
    fg = (c1 | (c1 << 16)) & _RGB565_SPREAD_MASK
    scaled = ((((fg - bg) & _U32) * mix) & _U32) >> 5
    result = ((scaled + bg) & _U32) & _RGB565_SPREAD_MASK
    return ((result >> 16) | result) & 0xFFFF


def udiv255(x: int) -> int:
    """Fast unsigned division by 255, exact for 16-bit inputs."""
    return ((x * 0x8081) & _U32) >> 0x17


def color_mix(c1: Color, c2: Color, mix: int) -> Color:
    """Mix two colours: ``mix`` 255 gives ``c1``, 0 gives ``c2``."""
    inv = 255 - mix

    def channel(a: int, b: int) -> int:
        return udiv255(a * mix + b * inv + COLOR_MIX_ROUND_OFS) & 0xFF

    return Color(
        red=channel(c1.red, c2.red),
        green=channel(c1.green, c2.green),
        blue=channel(c1.blue, c2.blue),
    )


def color_mix32(fg: Color32, bg: Color32) -> Color32:
    """Mix ``fg`` over ``bg`` using ``fg.alpha``; the result keeps ``bg.alpha``."""
    if fg.alpha >= OPA_MAX:
        return Color32(red=fg.red, green=fg.green, blue=fg.blue, alpha=bg.alpha)
    if fg.alpha <= OPA_MIN:
        return bg
    inv = 255 - fg.alpha

    def channel(a: int, b: int) -> int:
        return ((a * fg.alpha + b * inv) >> 8) & 0xFF

    return Color32(
        red=channel(fg.red, bg.red),
        green=channel(fg.green, bg.green),
        blue=channel(fg.blue, bg.blue),
        alpha=bg.alpha,
    )


def opa_mix2(a1: int, a2: int) -> int:
    """Combine two opacities."""
    return (a1 * a2) >> 8


def opa_mix3(a1: int, a2: int, a3: int) -> int:
    """Combine three opacities."""
    return (a1 * a2 * a3) >> 16