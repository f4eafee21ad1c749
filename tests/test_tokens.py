import threading

import pytest

from toolkit import RandomSource, Tools
from toolkit.domain.tokens import ALPHABET


class _FixedWords:
    """Stands in for random.Random and hands out preset 64-bit words."""

    def __init__(self, *words: int) -> None:
        self._words = iter(words)

    def getrandbits(self, k: int) -> int:
        assert k == 64
        return next(self._words)


@pytest.mark.parametrize("n", [1, 10, 25, 200])
def test_random_string_length_and_alphabet(n):
    s = RandomSource().random_string(n)
    assert len(s) == n
    assert set(s) <= set(ALPHABET)


@pytest.mark.parametrize("n", [0, -1, -25])
def test_random_string_non_positive_is_empty(n):
    assert RandomSource().random_string(n) == ""


def test_alphabet_has_no_duplicates():
    assert len(set(ALPHABET)) == len(ALPHABET) == 63


def test_same_seed_same_tokens():
    assert RandomSource(seed=42).random_string(30) == RandomSource(seed=42).random_string(30)


def test_index_63_is_redrawn(monkeypatch):
    source = RandomSource(seed=1)
    # low 6 bits are all ones (rejected), the next groups are zero -> "a"
    monkeypatch.setattr(source, "_rng", _FixedWords(0b111111))
    assert source.random_string(3) == "aaa"


def test_refills_when_bits_run_out(monkeypatch):
    source = RandomSource(seed=1)
    # one word yields 10 symbols (60 bits); the 11th comes from the next word
    first = sum(1 << (6 * i) for i in range(10))  # ten "b"s
    monkeypatch.setattr(source, "_rng", _FixedWords(first, 2))
    assert source.random_string(11) == "b" * 10 + "c"


def test_concurrent_callers_get_distinct_tokens():
    tools = Tools()
    results: list[str] = []
    lock = threading.Lock()

    def worker():
        for _ in range(50):
            token = tools.random_string(25)
            with lock:
                results.append(token)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 400
    assert len(set(results)) == 400
    assert all(len(r) == 25 for r in results)
