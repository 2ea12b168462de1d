#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Interactive shell around ascii_image / char_matcher.

Commands:
  chars                          show the current charset
  add <c> | space | <a>-<b> | all
  remove <c> | space | <a>-<b> | all
  res up | res down              double / halve characters per row
  image <path>                   switch the source image
  output console | output file [<path>]
  asciiArt                       convert and write to the current output
  exit
"""
import argparse
import sys

from ascii_image import grid_to_text, load_image, resolution_bounds, to_ascii_grid, write_text
from char_matcher import BrightnessCache, CharMatcher, MatcherCache
import char_raster

PROMPT = ">>> "
DEFAULT_IMAGE = "cat.jpeg"
DEFAULT_RES = 128
DEFAULT_CHARSET = "0123456789"
DEFAULT_OUTPUT = "out.txt"
PRINTABLE = range(32, 127)

NO_CHARS = "Did not execute. Charset is empty."
EXCEEDING_BOUNDARIES = "Did not change resolution due to exceeding boundaries."
IMAGE_FAILED = "Did not execute due to problem with image file."
BAD_ADD = "Did not add due to incorrect format."
BAD_REMOVE = "Did not remove due to incorrect format."
BAD_OUTPUT = "Did not change output method due to incorrect format."
BAD_COMMAND = "Did not execute due to incorrect command."


def parse_char_spec(spec):
    """
    Characters named by an add/remove argument, or None if malformed.
    Returns "all" for the printable ASCII range so remove can treat it specially.
    """
    if len(spec) == 1:
        return [spec]
    if spec == "space":
        return [" "]
    if spec == "all":
        return "all"
    if len(spec) == 3 and spec[1] == "-":
        lo, hi = sorted((ord(spec[0]), ord(spec[2])))
        return [chr(i) for i in range(lo, hi + 1)]
    return None


class Shell:
    def __init__(self, image, res=DEFAULT_RES, charset=DEFAULT_CHARSET,
                 brightness_cache=None, output_path=DEFAULT_OUTPUT):
        self.image = image
        lo, hi = resolution_bounds(image)
        self.res = max(lo, min(res, hi))
        # shared by every matcher this shell creates
        self.brightness_cache = brightness_cache if brightness_cache is not None else BrightnessCache()
        self.matcher_cache = MatcherCache()
        self.matcher = self._new_matcher(charset)
        self.output_path = output_path
        self.to_file = False

    def _new_matcher(self, chars):
        return CharMatcher(chars, brightness_cache=self.brightness_cache,
                           matcher_cache=self.matcher_cache)

    def execute(self, line):
        """Run one command. Returns False when the shell should stop."""
        cmd = line.strip("\r\n")
        if cmd.strip() == "exit":
            return False
        if cmd == "chars":
            print(self.matcher.show_chars())
        elif cmd == "res up":
            self.res_up()
        elif cmd == "res down":
            self.res_down()
        elif cmd == "asciiArt":
            self.ascii_art()
        elif cmd.startswith("add "):
            self.edit_chars(cmd[len("add "):], add=True)
        elif cmd.startswith("remove "):
            self.edit_chars(cmd[len("remove "):], add=False)
        elif cmd.startswith("image "):
            self.change_image(cmd[len("image "):].strip())
        elif cmd.startswith("output"):
            self.change_output(cmd[len("output"):].split())
        else:
            print(BAD_COMMAND)
        return True

    def edit_chars(self, spec, add):
        chars = parse_char_spec(spec)
        if chars is None:
            print(BAD_ADD if add else BAD_REMOVE)
            return
        if chars == "all":
            if not add:
                self.matcher = self._new_matcher(())
                return
            chars = [chr(i) for i in PRINTABLE]
        for ch in chars:
            if add:
                self.matcher.add_char(ch)
            else:
                self.matcher.remove_char(ch)

    def res_up(self):
        _, hi = resolution_bounds(self.image)
        if self.res < hi:
            self.res *= 2
            print(f"Resolution set to {self.res}.")
            return
        print(EXCEEDING_BOUNDARIES)

    def res_down(self):
        lo, _ = resolution_bounds(self.image)
        if self.res > lo:
            self.res //= 2
            print(f"Resolution set to {self.res}.")
            return
        print(EXCEEDING_BOUNDARIES)

    def change_image(self, path):
        try:
            img = load_image(path)
        except OSError as e:
            print(IMAGE_FAILED)
            print("Error: cannot open input:", e, file=sys.stderr)
            return
        self.image = img
        lo, hi = resolution_bounds(img)
        res = max(lo, min(self.res, hi))
        if res != self.res:
            print(f"[shell] resolution {self.res} out of [{lo}, {hi}] for new image, set to {res}")
            self.res = res

    def change_output(self, args):
        if args == ["console"]:
            self.to_file = False
        elif args and args[0] == "file" and len(args) <= 2:
            self.to_file = True
            if len(args) == 2:
                self.output_path = args[1]
        else:
            print(BAD_OUTPUT)

    def ascii_art(self):
        if self.matcher.is_empty():
            print(NO_CHARS)
            return
        art = grid_to_text(to_ascii_grid(self.image, self.res, self.matcher))
        if not self.to_file:
            print(art)
            return
        try:
            write_text(self.output_path, art)
        except OSError as e:
            print("Error: cannot write output:", e, file=sys.stderr)
            return
        print(f"[asciiArt] wrote {self.output_path} (res={self.res})")

    def run(self, stream=None):
        """Read commands until `exit` or end of input."""
        while True:
            try:
                if stream is None:
                    line = input(PROMPT)
                else:
                    line = stream.readline()
                    if not line:
                        break
            except EOFError:
                break
            if not self.execute(line):
                break


def main():
    p = argparse.ArgumentParser(description="Interactive image -> ASCII shell")
    p.add_argument("--image", default=DEFAULT_IMAGE, help="initial image (default: %(default)s)")
    p.add_argument("--res", type=int, default=DEFAULT_RES, help="characters per row, power of two (default: %(default)s)")
    p.add_argument("--charset", default=DEFAULT_CHARSET, help="initial characters (default: %(default)s)")
    p.add_argument("--font", default=char_raster.DEFAULT_FONT,
                   help="TrueType font used to measure glyph ink (default: %(default)s)")
    p.add_argument("--glyph-size", type=int, default=char_raster.GLYPH_SIZE,
                   help="glyph bitmap side in pixels (default: %(default)s)")
    p.add_argument("--output", default=DEFAULT_OUTPUT, help="file used by 'output file' (default: %(default)s)")
    args = p.parse_args()

    if args.res < 1 or args.res & (args.res - 1):
        p.error("--res must be a power of two")

    try:
        img = load_image(args.image)
    except OSError as e:
        print(IMAGE_FAILED)
        print("Error: cannot open input:", e, file=sys.stderr)
        sys.exit(1)

    cache = BrightnessCache(char_raster.make_renderer(args.glyph_size, args.font))
    shell = Shell(img, res=args.res, charset=args.charset,
                  brightness_cache=cache, output_path=args.output)
    print(f"[shell] image={args.image} res={shell.res} chars={shell.matcher.show_chars()}")
    try:
        shell.run()
    except KeyboardInterrupt:
        print()


if __name__ == "__main__":
    main()
