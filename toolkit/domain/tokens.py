from __future__ import annotations

import random
import threading
import time

__all__ = [
    "ALPHABET",
    "RandomSource",
]

ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_"

_BITS_PER_SYMBOL = 6
_SYMBOL_MASK = (1 << _BITS_PER_SYMBOL) - 1
_WORD_BITS = 64
# 6 bits address 64 slots but the alphabet fills 63; the spare index is redrawn.
_REJECTED_INDEX = 63


class RandomSource:
    """Thread-safe generator of short random tokens.

    Wraps a `random.Random` seeded once from the clock (or an explicit seed)
    behind a lock. Tokens are fine for unique file names; they are NOT
    suitable as secrets.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(time.time_ns() if seed is None else seed)
        self._lock = threading.Lock()

    def random_string(self, n: int) -> str:
        """Return `n` characters drawn uniformly from ALPHABET ("" if n <= 0)."""
        if n <= 0:
            return ""

        out: list[str] = []
        word = 0
        bits = 0
        with self._lock:
            while len(out) < n:
                if bits < _BITS_PER_SYMBOL:
                    word = self._rng.getrandbits(_WORD_BITS)
                    bits = _WORD_BITS

                idx = word & _SYMBOL_MASK
                word >>= _BITS_PER_SYMBOL
                bits -= _BITS_PER_SYMBOL

                if idx == _REJECTED_INDEX:
                    continue
                out.append(ALPHABET[idx])

        return "".join(out)
