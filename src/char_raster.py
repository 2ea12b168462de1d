#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Render a single character into a square 1-bit bitmap.

The glyph is drawn in white on a black canvas and centred with its text
bounding box; lit pixels count as ink.
"""
import sys
from functools import lru_cache

import numpy as np
from PIL import Image, ImageDraw, ImageFont

GLYPH_SIZE = 16
DEFAULT_FONT = "DejaVuSansMono.ttf"
INK_THRESHOLD = 127


@lru_cache(maxsize=None)
def load_font(font=DEFAULT_FONT, size=GLYPH_SIZE):
    """TrueType font by path or name, Pillow's built-in font if it can't be opened."""
    if font:
        try:
            return ImageFont.truetype(font, size)
        except OSError as e:
            print(f"[char_raster] cannot load font {font!r} ({e}), using default",
                  file=sys.stderr)
    return ImageFont.load_default()


def render_char(ch, size=GLYPH_SIZE, font=DEFAULT_FONT):
    """Return a (size, size) bool array, True where the glyph has ink."""
    fnt = load_font(font, size)
    img = Image.new("L", (size, size), 0)
    draw = ImageDraw.Draw(img)
    left, top, right, bottom = draw.textbbox((0, 0), ch, font=fnt)
    x = (size - (right - left)) // 2 - left
    y = (size - (bottom - top)) // 2 - top
    draw.text((x, y), ch, fill=255, font=fnt)
    return np.asarray(img, dtype=np.uint8) > INK_THRESHOLD


def make_renderer(size=GLYPH_SIZE, font=DEFAULT_FONT):
    """Bind size and font so the result can be handed to a BrightnessCache."""
    def render(ch):
        return render_char(ch, size=size, font=font)
    return render
