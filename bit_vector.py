"""Битовый вектор фиксированной длины поверх массива 64-битных слов."""

from typing import Iterable
import numpy as np

WORD_BITS = 64


class BitVector:
    """Bit set: индекс -> (слово, маска). Биты только устанавливаются."""

    def __init__(self, length: int):
        if length <= 0:
            raise ValueError(f"length must be positive, got {length}")
        self.length = length
        self.words = np.zeros((length + WORD_BITS - 1) // WORD_BITS, dtype=np.uint64)

    def _locate(self, index: int):
        if not 0 <= index < self.length:
            raise IndexError(f"bit index {index} out of range [0, {self.length})")
        return index // WORD_BITS, np.uint64(1 << (index % WORD_BITS))

    def set(self, index: int) -> None:
        word, mask = self._locate(index)
        self.words[word] |= mask

    def __getitem__(self, index: int) -> bool:
        word, mask = self._locate(index)
        return bool(self.words[word] & mask)

    def all_set(self, indices: Iterable[int]) -> bool:
        """True, если все биты установлены (короткое замыкание на первом нуле)."""
        return all(self[i] for i in indices)

    def count(self) -> int:
        """Количество единичных битов (хвост последнего слова всегда нулевой)."""
        return int(np.unpackbits(self.words.view(np.uint8)).sum())

    def __len__(self) -> int:
        return self.length

    def __repr__(self) -> str:
        return f"BitVector(length={self.length}, on={self.count()})"
