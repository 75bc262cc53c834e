# swblend

Pure-Python software blending of pixels into framebuffers. It uses fixed
integer arithmetic, so every result is exact and repeatable. You can use it
as a reference model to check accelerated blitters, or as a small renderer
for tests and offline tooling.

## Modules

- `swblend.color` holds the colour types and the arithmetic.
  - `Color` (RGB888) and `Color32` (ARGB8888) are frozen dataclasses that
    check each channel is in 0..255.
  - `Color32.to_bytes()` and `color32_from_bytes()` convert to and from the
    in-memory byte order: blue, green, red, alpha.
  - `ColorFormat`, `BlendMode` and `Opa` are integer enums.
  - `color_format_bpp()` gives a format's bits per pixel, or 0.
  - The conversions are `color_to_u16()` (RGB565), `color_to_u32()` (XRGB8888
    with alpha 0xFF) and `color_to_32()`.
  - The mixes are `color_mix()`, `color_mix32()` and `color_16_16_mix()`.
  - The opacity helpers are `opa_mix2()`, `opa_mix3()` and `udiv255()`.
  - The constants are `OPA_MIN` (2) and `OPA_MAX` (253).
- `swblend.descriptors` holds `FillDescriptor` and `ImageDescriptor`, which
  describe the operation.
  - The destination is a writable buffer such as a `bytearray`, with its
    width, height, stride in bytes and a byte offset.
  - Each descriptor also carries an opacity and an optional mask with its own
    stride and offset.
  - An image descriptor also holds the source buffer, its stride, offset and
    `ColorFormat`, and a `BlendMode`.
  - `mask_row(y)` returns one row of the mask.
- `swblend.argb8888_fill` provides `blend_color_to_argb8888()` and `MixCache`.
  `MixCache` is the alpha-over-alpha mix, which remembers its last result.
- `swblend.argb8888_image` provides `blend_image_to_argb8888()`,
  `color_8_32_mix()` and `blend_non_normal_pixel()`.
- `swblend.rgb565_fill` provides `blend_color_to_rgb565()`.
- `swblend.rgb565_image` provides `blend_image_to_rgb565()`, `l8_to_rgb565()`,
  `color_8_16_mix()` and `color_24_16_mix()`.

## Behaviour

**Fills**

- Fills write a solid colour. They can apply an opacity, a mask, or both.
- `use_asm` on a `FillDescriptor` only chooses between a bulk row writer and a
  per-pixel writer for the plain opaque fill. Both give the same bytes.

**Image blits**

- Image blits accept RGB565, RGB888, XRGB8888, ARGB8888, L8 and AL88 sources.
- The blend modes are normal, additive, subtractive and multiply.
- On an RGB565 destination, in the additive, subtractive and multiply modes,
  L8 and AL88 sources are read at every fourth pixel.

**Pixel layout and thresholds**

- RGB565 pixels are little-endian 16-bit words.
- ARGB8888 pixels are stored as blue, green, red, alpha.
- An opacity at or below `OPA_MIN` counts as transparent. An opacity at or
  above `OPA_MAX` counts as fully covering.

**Errors**

- All blend functions change the destination buffer in place.
- They raise `ValueError` for an unsupported source format or blend mode, or
  for buffers too short for the described area.
- They raise `TypeError` for a read-only destination.

## Installation

```
pip install swblend
```

Python 3.10 or newer is needed. The package has no runtime dependencies.

## Example

```python
from swblend.color import Color, Opa
from swblend.descriptors import FillDescriptor
from swblend.rgb565_fill import blend_color_to_rgb565

width, height = 4, 2
buf = bytearray(width * height * 2)
dsc = FillDescriptor(
    dest_buf=buf,
    dest_w=width,
    dest_h=height,
    dest_stride=width * 2,
    color=Color(red=0x12, green=0x34, blue=0x56),
    opa=Opa.COVER,
)
blend_color_to_rgb565(dsc)
# buf now holds eight little-endian RGB565 pixels of the colour
```

## What it does not do

swblend only blends fills and images into buffers you supply. It has no
display or device output, no drawing of shapes or text, no image file
loading, and no command-line tool.

## Running the tests

```
pip install -e ".[test]"
pytest
```