#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Brightness matching between image tiles and characters.

Each character has an intrinsic brightness: the share of its rendered bitmap
covered by ink. A CharMatcher rescales the intrinsic values of its character
set to [0, 1] (darkest -> 0, brightest -> 1) and answers "which character is
closest to this brightness" lookups.

Two caches sit behind the matchers:
  - BrightnessCache: char -> intrinsic brightness, each char rasterized once.
  - MatcherCache: sorted char tuple -> matcher state, so a set that shows up
    again (e.g. after add + remove) reuses the index built for it earlier.

Matchers sharing a MatcherCache must also share the BrightnessCache, otherwise
a reused index could come from different intrinsic values.
"""
from bisect import bisect_left, bisect_right, insort
from collections import namedtuple

import numpy as np

import char_raster


class EmptyCharsetError(ValueError):
    """Lookup on a matcher without characters."""


class BrightnessCache:
    """Append-only char -> intrinsic brightness (ink cells / bitmap area)."""

    def __init__(self, render=None):
        self._render = render if render is not None else char_raster.render_char
        self._values = {}

    def get(self, ch):
        value = self._values.get(ch)
        if value is None:
            bitmap = np.asarray(self._render(ch), dtype=bool)
            value = np.count_nonzero(bitmap) / bitmap.size
            self._values[ch] = value
        return value

    def __contains__(self, ch):
        return ch in self._values

    def __len__(self):
        return len(self._values)


class BrightnessIndex:
    """
    Sorted, immutable mapping normalized brightness -> character.

    Edits return a new index, so one instance can be shared by any number of
    matchers.
    """
    __slots__ = ("keys", "chars")

    def __init__(self, keys=(), chars=()):
        self.keys = tuple(keys)
        self.chars = tuple(chars)

    @classmethod
    def build(cls, entries):
        # characters with equal keys: lowest code point wins
        by_key = {}
        for key, ch in entries:
            held = by_key.get(key)
            if held is None or ch < held:
                by_key[key] = ch
        keys = sorted(by_key)
        return cls(keys, [by_key[k] for k in keys])

    def get(self, key):
        i = bisect_left(self.keys, key)
        if i < len(self.keys) and self.keys[i] == key:
            return self.chars[i]
        return None

    def floor(self, value):
        """(key, char) with the greatest key <= value, or None."""
        i = bisect_right(self.keys, value)
        if i == 0:
            return None
        return self.keys[i - 1], self.chars[i - 1]

    def ceiling(self, value):
        """(key, char) with the least key >= value, or None."""
        i = bisect_left(self.keys, value)
        if i == len(self.keys):
            return None
        return self.keys[i], self.chars[i]

    def inserted(self, key, ch):
        i = bisect_left(self.keys, key)
        if i < len(self.keys) and self.keys[i] == key:
            if self.chars[i] <= ch:
                return self
            return self.replaced(key, ch)
        return BrightnessIndex(self.keys[:i] + (key,) + self.keys[i:],
                               self.chars[:i] + (ch,) + self.chars[i:])

    def replaced(self, key, ch):
        i = bisect_left(self.keys, key)
        return BrightnessIndex(self.keys, self.chars[:i] + (ch,) + self.chars[i + 1:])

    def without(self, key):
        i = bisect_left(self.keys, key)
        if i == len(self.keys) or self.keys[i] != key:
            return self
        return BrightnessIndex(self.keys[:i] + self.keys[i + 1:],
                               self.chars[:i] + self.chars[i + 1:])

    def items(self):
        return zip(self.keys, self.chars)

    def __len__(self):
        return len(self.keys)

    def __repr__(self):
        return f"BrightnessIndex({dict(self.items())!r})"


EMPTY_INDEX = BrightnessIndex()

# Everything a matcher knows, swapped in one assignment.
MatcherState = namedtuple("MatcherState", "chars index lo hi darkest brightest")
EMPTY_STATE = MatcherState((), EMPTY_INDEX, None, None, None, None)


class MatcherCache:
    """Sorted char tuple -> MatcherState, keyed by value."""

    def __init__(self):
        self._states = {}

    def get(self, chars):
        return self._states.get(tuple(chars))

    def put(self, chars, state):
        # first registration wins; later states for the same set are equivalent
        return self._states.setdefault(tuple(chars), state)

    def __contains__(self, chars):
        return tuple(chars) in self._states

    def __len__(self):
        return len(self._states)


def _normalize(value, lo, hi):
    if hi == lo:
        # one character, or all of them equally bright: nothing to stretch
        return value
    return (value - lo) / (hi - lo)


class CharMatcher:
    """Map tile brightness in [0, 1] to the closest character of a set."""

    def __init__(self, chars=(), brightness_cache=None, matcher_cache=None):
        self._brightness = brightness_cache if brightness_cache is not None else BrightnessCache()
        self._cache = matcher_cache if matcher_cache is not None else MatcherCache()
        key = tuple(sorted(set(chars)))
        cached = self._cache.get(key)
        if cached is not None:
            self._state = cached
            return
        self._state = self._build(key)
        self._cache.put(key, self._state)

    # ---- read side ----
    @property
    def chars(self):
        return self._state.chars

    @property
    def index(self):
        return self._state.index

    @property
    def min_brightness(self):
        return self._state.lo

    @property
    def max_brightness(self):
        return self._state.hi

    @property
    def darkest(self):
        return self._state.darkest

    @property
    def brightest(self):
        return self._state.brightest

    def is_empty(self):
        return not self._state.chars

    def show_chars(self):
        return " ".join(self._state.chars)

    def normalized(self, ch):
        """Normalized brightness of a member character."""
        state = self._state
        if ch not in self:
            raise KeyError(ch)
        return _normalize(self._brightness.get(ch), state.lo, state.hi)

    def __contains__(self, ch):
        chars = self._state.chars
        i = bisect_left(chars, ch)
        return i < len(chars) and chars[i] == ch

    def __len__(self):
        return len(self._state.chars)

    def __repr__(self):
        return f"CharMatcher({''.join(self._state.chars)!r})"

    def get_char(self, brightness):
        """
        Character whose normalized brightness is closest to `brightness`.
        On an exact tie between the two neighbours the brighter one wins.
        """
        index = self._state.index
        if not index:
            raise EmptyCharsetError("charset is empty")
        floor = index.floor(brightness)
        ceil = index.ceiling(brightness)
        if ceil is None:
            return floor[1]
        if floor is None:
            return ceil[1]
        if ceil[0] - brightness > brightness - floor[0]:
            return floor[1]
        return ceil[1]

    # ---- edits ----
    def add_char(self, ch):
        if ch in self:
            return
        state = self._state
        chars = list(state.chars)
        insort(chars, ch)
        chars = tuple(chars)
        value = self._brightness.get(ch)

        cached = self._cache.get(chars)
        if cached is not None:
            self._state = cached
            return

        if not state.chars:
            new_state = MatcherState(chars, BrightnessIndex((value,), (ch,)), value, value, ch, ch)
        else:
            lo, hi = min(state.lo, value), max(state.hi, value)
            if (lo, hi) == (state.lo, state.hi) and lo != hi:
                index = state.index.inserted(_normalize(value, lo, hi), ch)
            else:
                index = self._renormalize(chars, lo, hi)
            darkest = ch if value == lo and (value < state.lo or ch < state.darkest) else state.darkest
            brightest = ch if value == hi and (value > state.hi or ch < state.brightest) else state.brightest
            new_state = MatcherState(chars, index, lo, hi, darkest, brightest)
        self._state = self._cache.put(chars, new_state)

    def remove_char(self, ch):
        if ch not in self:
            return
        state = self._state
        chars = tuple(c for c in state.chars if c != ch)

        cached = self._cache.get(chars)
        if cached is not None:
            self._state = cached
            return

        if not chars:
            self._state = self._cache.put(chars, EMPTY_STATE)
            return

        value = self._brightness.get(ch)
        lo, hi = state.lo, state.hi
        if value == lo or value == hi:
            values = [self._brightness.get(c) for c in chars]
            lo, hi = min(values), max(values)

        if (lo, hi) == (state.lo, state.hi) and lo != hi:
            key = _normalize(value, lo, hi)
            index = state.index
            if index.get(key) == ch:
                tied = self._first_at(chars, value)
                index = index.replaced(key, tied) if tied is not None else index.without(key)
        else:
            index = self._renormalize(chars, lo, hi)

        darkest = self._first_at(chars, lo) if ch == state.darkest else state.darkest
        brightest = self._first_at(chars, hi) if ch == state.brightest else state.brightest
        self._state = self._cache.put(chars, MatcherState(chars, index, lo, hi, darkest, brightest))

    # ---- internals ----
    def _first_at(self, chars, value):
        """Lowest char in `chars` with exactly this intrinsic brightness."""
        for c in chars:
            if self._brightness.get(c) == value:
                return c
        return None

    def _renormalize(self, chars, lo, hi):
        return BrightnessIndex.build(
            (_normalize(self._brightness.get(c), lo, hi), c) for c in chars)

    def _build(self, chars):
        if not chars:
            return EMPTY_STATE
        values = [self._brightness.get(c) for c in chars]
        lo, hi = min(values), max(values)
        # chars are sorted, so index() gives the lowest code point on ties
        darkest = chars[values.index(lo)]
        brightest = chars[values.index(hi)]
        return MatcherState(chars, self._renormalize(chars, lo, hi), lo, hi, darkest, brightest)
