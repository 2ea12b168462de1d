#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Image -> ASCII by tile brightness.

The image is padded with white to power-of-two dimensions (centred), cut into
`res` square tiles per row, and each tile's average luma is looked up in a
CharMatcher.

Usage:
  python ascii_image.py input.jpg output.txt --res 128 --charset 0123456789
"""
import argparse
import sys

import numpy as np
from PIL import Image

from char_matcher import BrightnessCache, CharMatcher
import char_raster

# Rec. 709 luma
LUMA = np.array([0.2126, 0.7152, 0.0722], dtype=np.float64)
WHITE = (255, 255, 255)


def load_image(path):
    """Open an image as RGB. Raises OSError if it can't be read."""
    with Image.open(path) as img:
        return img.convert("RGB")


def next_pow2(n):
    p = 1
    while p < n:
        p *= 2
    return p


def pad_to_pow2(image):
    """Centre the image on a white canvas whose sides are powers of two."""
    img = image.convert("RGB")
    w, h = img.size
    pw, ph = next_pow2(w), next_pow2(h)
    if (pw, ph) == (w, h):
        return img
    canvas = Image.new("RGB", (pw, ph), WHITE)
    canvas.paste(img, ((pw - w) // 2, (ph - h) // 2))
    return canvas


def resolution_bounds(image):
    """(lowest, highest) tiles per row allowed for this image once padded."""
    pw, ph = next_pow2(image.width), next_pow2(image.height)
    return max(1, pw // ph), pw


def tile_brightness(image, res):
    """
    Average brightness of each tile, shape (rows, res), values in [0, 1].
    `res` is the number of tiles per row and must divide the padded width.
    """
    img = pad_to_pow2(image)
    w, h = img.size
    if res < 1 or res > w or w % res:
        raise ValueError(f"resolution {res} does not fit image width {w}")
    tile = w // res
    rows = h // tile
    if rows == 0:
        raise ValueError(f"resolution {res} leaves no rows for image height {h}")

    arr = np.asarray(img, dtype=np.float64)
    luma = arr @ LUMA  # (h, w)
    luma = luma[:rows * tile, :res * tile].reshape(rows, tile, res, tile)
    totals = luma.sum(axis=(1, 3))
    return np.clip(totals / (255.0 * tile * tile), 0.0, 1.0)


def to_ascii_grid(image, res, matcher):
    """Row-major list of rows, one character per tile."""
    bright = tile_brightness(image, res)
    return [[matcher.get_char(float(b)) for b in row] for row in bright]


def grid_to_text(grid):
    return "\n".join("".join(row) for row in grid)


def write_text(path, text):
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        f.write(text)


def main():
    p = argparse.ArgumentParser(description="Image -> ASCII by glyph ink density")
    p.add_argument("input", help="input image")
    p.add_argument("output", help="output text file")
    p.add_argument("--res", type=int, default=128, help="tiles (characters) per row, power of two")
    p.add_argument("--charset", type=str, default="0123456789", help="characters to draw with")
    p.add_argument("--font", type=str, default=char_raster.DEFAULT_FONT,
                   help="TrueType font used to measure glyph ink (default: %(default)s)")
    p.add_argument("--glyph-size", type=int, default=char_raster.GLYPH_SIZE,
                   help="glyph bitmap side in pixels (default: %(default)s)")
    args = p.parse_args()

    if not args.charset:
        print("Error: charset is empty", file=sys.stderr)
        sys.exit(1)

    try:
        img = load_image(args.input)
    except OSError as e:
        print("Error: cannot open input:", e, file=sys.stderr)
        sys.exit(1)

    lo, hi = resolution_bounds(img)
    res = max(lo, min(args.res, hi))
    if res != args.res:
        print(f"[ascii_image] resolution {args.res} out of [{lo}, {hi}], using {res}")

    cache = BrightnessCache(char_raster.make_renderer(args.glyph_size, args.font))
    matcher = CharMatcher(args.charset, brightness_cache=cache)
    try:
        art = grid_to_text(to_ascii_grid(img, res, matcher))
    except ValueError as e:
        print("Error:", e, file=sys.stderr)
        sys.exit(1)

    try:
        write_text(args.output, art)
    except OSError as e:
        print("Error: cannot write output:", e, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
