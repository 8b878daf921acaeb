# pipeline/ctc_decoder.py
from __future__ import annotations
from dataclasses import dataclass

import numpy as np

from .errors import AlphabetMismatchError, ConfigurationError
from .models import RecognitionResult

DEFAULT_SYMBOLS = "0123456789abcdefghijklmnopqrstuvwxyz"
PAD_SYMBOL = "#"
CONFIDENCE_MODES = ("mean", "product")


@dataclass(frozen=True)
class Alphabet:
    """Recognizable symbols with the reserved pad symbol appended last."""
    symbols: str = DEFAULT_SYMBOLS
    pad: str = PAD_SYMBOL

    def __post_init__(self) -> None:
        if len(self.pad) != 1:
            raise ConfigurationError(f"Pad symbol must be a single character, got {self.pad!r}")
        if self.pad in self.symbols:
            raise ConfigurationError(
                f"Symbols set for text recognition must not contain reserved symbol {self.pad!r}"
            )

    @property
    def chars(self) -> str:
        return self.symbols + self.pad

    @property
    def pad_index(self) -> int:
        return len(self.symbols)

    def __len__(self) -> int:
        return len(self.symbols) + 1


def check_matrix(matrix: np.ndarray, alphabet: Alphabet) -> np.ndarray:
    m = np.asarray(matrix, dtype=np.float32)
    if m.ndim != 2 or m.shape[1] != len(alphabet):
        raise AlphabetMismatchError(
            f"The text recognition model does not correspond to alphabet: "
            f"output shape {tuple(m.shape)}, alphabet size {len(alphabet)}"
        )
    return m


def ctc_greedy_decode(
    matrix: np.ndarray, alphabet: Alphabet, confidence_mode: str = "mean"
) -> RecognitionResult:
    """
    Greedy CTC decode of a [T, A] score matrix.

    Per-timestep argmax, consecutive repeats merged, pad dropped.
    "mean" confidence averages the best score of each kept symbol run (1.0 for
    empty output); "product" multiplies the top score of every timestep.
    """
    if confidence_mode not in CONFIDENCE_MODES:
        raise ConfigurationError(f"Unknown confidence mode: {confidence_mode}")
    m = check_matrix(matrix, alphabet)

    best = m.argmax(axis=1)
    scores = m[np.arange(len(best)), best]

    chars: list[str] = []
    kept: list[float] = []
    prev = -1
    for idx, score in zip(best.tolist(), scores.tolist()):
        if idx == prev:
            if idx != alphabet.pad_index:
                kept[-1] = max(kept[-1], score)
            continue
        prev = idx
        if idx == alphabet.pad_index:
            continue
        chars.append(alphabet.chars[idx])
        kept.append(score)

    if confidence_mode == "product":
        conf = float(np.prod(scores, dtype=np.float64)) if len(scores) else 1.0
    else:
        conf = float(np.mean(kept)) if kept else 1.0
    return RecognitionResult(text="".join(chars), confidence=conf)
