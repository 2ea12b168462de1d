from collections import Counter

import numpy as np
import pytest


class FakeRender:
    """Rasterizer stand-in: each char lights a known number of cells."""

    def __init__(self, counts, side=16, default=None):
        self.counts = dict(counts)
        self.side = side
        self.default = default
        self.calls = Counter()

    def __call__(self, ch):
        self.calls[ch] += 1
        if ch in self.counts:
            n = self.counts[ch]
        else:
            n = self.default(ch)
        cells = np.zeros(self.side * self.side, dtype=bool)
        cells[:n] = True
        return cells.reshape(self.side, self.side)


@pytest.fixture
def fake_render():
    return FakeRender
