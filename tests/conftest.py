import numpy as np
import pytest

from config import AppConfig
from pipeline.ctc_decoder import Alphabet


class FakeDetector:
    """Returns fixed regions; records the thresholds it was called with."""

    def __init__(self, regions):
        self.regions = list(regions)
        self.calls = []

    def infer(self, image_bgr, thresholds):
        self.calls.append(thresholds)
        return self.regions

    def postprocess(self, raw, image_size, thresholds):
        return list(raw)


class FakeRecognizer:
    """Returns the same score matrix for every crop; keeps the crops."""

    def __init__(self, matrix, input_size=(16, 8)):
        self.matrix = np.asarray(matrix, dtype=np.float32)
        self.input_size = input_size
        self.crops = []

    def recognize(self, crop_bgr):
        self.crops.append(crop_bgr)
        return self.matrix


def one_hot(text, alphabet, score=1.0):
    """[T, A] matrix with `score` on each listed symbol ('#' is pad)."""
    m = np.zeros((len(text), len(alphabet)), dtype=np.float32)
    for t, ch in enumerate(text):
        m[t, alphabet.chars.index(ch)] = score
    return m


@pytest.fixture
def alphabet():
    return Alphabet("abc")


@pytest.fixture
def frame_image():
    rng = np.random.default_rng(0)
    return rng.integers(0, 255, size=(60, 80, 3), dtype=np.uint8)


@pytest.fixture
def make_cfg():
    def _make(**kw):
        kw.setdefault("input", "unused")
        kw.setdefault("no_show", True)
        kw.setdefault("symbols", "abc")
        return AppConfig(**kw)

    return _make
