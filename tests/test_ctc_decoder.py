import numpy as np
import pytest

from conftest import one_hot
from pipeline.ctc_decoder import Alphabet, ctc_greedy_decode
from pipeline.errors import AlphabetMismatchError, ConfigurationError


def test_alphabet_appends_pad(alphabet):
    assert alphabet.chars == "abc#"
    assert len(alphabet) == 4
    assert alphabet.pad_index == 3


@pytest.mark.parametrize("symbols, pad", [("ab#c", "#"), ("abc", "ab"), ("abc", "")])
def test_alphabet_rejects_bad_pad(symbols, pad):
    with pytest.raises(ConfigurationError):
        Alphabet(symbols, pad)


@pytest.mark.parametrize(
    "sequence, expected",
    [
        ("aa#bbb", "ab"),
        ("a#a", "aa"),
        ("abc", "abc"),
        ("#a##b#", "ab"),
        ("ccc", "c"),
        ("####", ""),
    ],
)
def test_collapse_then_drop_pad(alphabet, sequence, expected):
    res = ctc_greedy_decode(one_hot(sequence, alphabet), alphabet)
    assert res.text == expected
    assert "#" not in res.text


def test_decode_is_idempotent_on_reencoding(alphabet):
    rng = np.random.default_rng(7)
    matrix = rng.random((25, len(alphabet))).astype(np.float32)
    text = ctc_greedy_decode(matrix, alphabet).text

    # one symbol per timestep, pad between letters so repeats survive
    reencoded = one_hot("#".join(text) or "#", alphabet)
    assert ctc_greedy_decode(reencoded, alphabet).text == text


def test_mean_confidence_over_kept_runs(alphabet):
    m = np.array(
        [
            [0.9, 0.05, 0.03, 0.02],
            [0.6, 0.2, 0.1, 0.1],
            [0.1, 0.05, 0.05, 0.8],
            [0.2, 0.5, 0.2, 0.1],
        ],
        dtype=np.float32,
    )
    res = ctc_greedy_decode(m, alphabet)
    assert res.text == "ab"
    assert res.confidence == pytest.approx((0.9 + 0.5) / 2, rel=1e-6)

    prod = ctc_greedy_decode(m, alphabet, confidence_mode="product")
    assert prod.text == "ab"
    assert prod.confidence == pytest.approx(0.9 * 0.6 * 0.8 * 0.5, rel=1e-5)


def test_empty_output_is_fully_confident(alphabet):
    m = one_hot("###", alphabet, score=0.3)
    assert ctc_greedy_decode(m, alphabet).confidence == 1.0
    empty = np.zeros((0, len(alphabet)), dtype=np.float32)
    res = ctc_greedy_decode(empty, alphabet)
    assert (res.text, res.confidence) == ("", 1.0)


@pytest.mark.parametrize("shape", [(5, 3), (5, 5), (5, 1, 4), (4,)])
def test_shape_mismatch_is_fatal(alphabet, shape):
    with pytest.raises(AlphabetMismatchError):
        ctc_greedy_decode(np.ones(shape, dtype=np.float32), alphabet)


def test_unknown_confidence_mode(alphabet):
    with pytest.raises(ConfigurationError):
        ctc_greedy_decode(one_hot("a", alphabet), alphabet, confidence_mode="max")
