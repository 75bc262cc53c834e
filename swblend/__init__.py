"""Software pixel blending: colour fills and image blits into RGB565 and ARGB8888 buffers."""

__version__ = "0.1.0"

__all__ = [
    "color",
    "descriptors",
    "argb8888_fill",
    "argb8888_image",
    "rgb565_fill",
    "rgb565_image",
]