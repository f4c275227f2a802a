"""Bloom Filter - вероятностная структура для проверки принадлежности.

Фильтр создается под заданные capacity (n) и error_rate (p): длина битового
вектора m и число хеш-функций k подбираются так, чтобы при n ключах
вероятность ложного срабатывания не превышала p. Ложных отрицаний нет.
"""

import hashlib
import logging
import numbers
import warnings
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import numpy as np

from bit_vector import BitVector
from errors import CapacityExceededWarning, ConfigurationError

logger = logging.getLogger(__name__)

MAX_HASH_FUNCS = 100

Key = Union[bytes, bytearray, memoryview, str]


def shortest_filter_length(capacity: int, error_rate: float) -> Tuple[int, int]:
    """Минимальная длина вектора и соответствующее k.

    Для k = 1..100: m_k = -(k * n) / ln(1 - p^(1/k)); берется наименьшее m_k
    (при равенстве - первое). Возвращает (floor(m) + 1, k).
    """
    if isinstance(capacity, bool) or not isinstance(capacity, numbers.Integral) or capacity <= 0:
        raise ConfigurationError(f"Capacity must be a positive integer, got {capacity!r}")
    if isinstance(error_rate, bool) or not isinstance(error_rate, numbers.Real):
        raise ConfigurationError(f"Error rate must be a real number, got {error_rate!r}")
    if not 0 < error_rate < 1:
        raise ConfigurationError(f"Error rate must be in (0, 1), got {error_rate!r}")

    k = np.arange(1, MAX_HASH_FUNCS + 1, dtype=np.float64)
    with np.errstate(divide="ignore"):
        denom = np.log(1.0 - float(error_rate) ** (1.0 / k))
    # p^(1/k) может округлиться до 1.0 при p близком к 1
    valid = np.isfinite(denom) & (denom < 0)
    m = np.full_like(k, np.inf)
    m[valid] = -(k[valid] * int(capacity)) / denom[valid]

    best = int(np.argmin(m))
    return int(np.floor(m[best])) + 1, best + 1


def _as_bytes(key: Key) -> bytes:
    if isinstance(key, str):
        return key.encode("utf-8")
    if isinstance(key, (bytes, bytearray, memoryview)):
        return bytes(key)
    raise TypeError(f"key must be bytes or str, got {type(key).__name__}")


def cell_indices(key: Key, hash_count: int, length: int) -> List[int]:
    """Индексы битов для ключа.

    MD5(key + "0"), MD5(key + "1"), ... режутся на big-endian 32-битные слова,
    пока их не наберется hash_count; каждое слово берется по модулю length.
    """
    if hash_count < 1 or length < 1:
        raise RuntimeError(f"filter is not initialised (k={hash_count}, m={length})")
    data = _as_bytes(key)
    words: List[int] = []
    counter = 0
    while len(words) < hash_count:
        digest = hashlib.md5(data + str(counter).encode("ascii")).digest()
        words.extend(np.frombuffer(digest, dtype=">u4").tolist())
        counter += 1
    return [w % length for w in words[:hash_count]]


@dataclass(frozen=True)
class BloomConfig:
    capacity: int = 100        # максимальное число ключей
    error_rate: float = 0.001  # допустимая доля ложных срабатываний при n = capacity

    def __post_init__(self):
        shortest_filter_length(self.capacity, self.error_rate)

    @property
    def length(self) -> int:
        """Длина битового вектора m."""
        return shortest_filter_length(self.capacity, self.error_rate)[0]

    @property
    def hash_count(self) -> int:
        """Количество хеш-функций k."""
        return shortest_filter_length(self.capacity, self.error_rate)[1]


class BloomFilter:
    """Bloom Filter фиксированного размера с O(k) add/check.

    rng - numpy Generator, seed или None; из него берутся соли экземпляра.
    Один экземпляр не потокобезопасен: конкурентные add сериализует вызывающий.
    """

    def __init__(self, config: Optional[BloomConfig] = None,
                 rng: Union[np.random.Generator, int, None] = None):
        self.config = config or BloomConfig()
        self._length, self._hash_count = shortest_filter_length(
            self.config.capacity, self.config.error_rate)
        self._salts = self._make_salts(np.random.default_rng(rng), self._hash_count)
        self._bits = BitVector(self._length)
        self._key_count = 0
        logger.debug("bloom filter: n=%d p=%g -> m=%d k=%d",
                     self.capacity, self.error_rate, self._length, self._hash_count)

    @staticmethod
    def _make_salts(rng: np.random.Generator, count: int) -> Tuple[float, ...]:
        salts = {}
        while len(salts) < count:
            salts[float(rng.random())] = None
        return tuple(salts)

    # ── accessors ─────────────────────────────────────────────────────────
    @property
    def capacity(self) -> int:
        return self.config.capacity

    @property
    def error_rate(self) -> float:
        return self.config.error_rate

    @property
    def length(self) -> int:
        """Длина фильтра в битах."""
        return self._length

    @property
    def hash_count(self) -> int:
        return self._hash_count

    @property
    def key_count(self) -> int:
        """Количество успешно добавленных ключей."""
        return self._key_count

    @property
    def on_bits(self) -> int:
        """Количество установленных битов."""
        return self._bits.count()

    @property
    def salts(self) -> Tuple[float, ...]:
        return self._salts

    @property
    def bits(self) -> BitVector:
        return self._bits

    @property
    def fpr(self) -> float:
        """Теоретический FPR при текущем заполнении: (1 - e^(-kn/m))^k."""
        if self._key_count == 0:
            return 0.0
        k = self._hash_count
        return float((1 - np.exp(-k * self._key_count / self._length)) ** k)

    # ── operations ────────────────────────────────────────────────────────
    def cells(self, key: Key) -> List[int]:
        """Индексы битов ключа; одни и те же для add и check."""
        if len(self._salts) != self._hash_count:
            raise RuntimeError("No salts found, cannot make bitmask")
        return cell_indices(key, self._hash_count, self._length)

    def add(self, *keys: Key) -> bool:
        """Добавить ключи по порядку.

        При заполнении фильтра выдает CapacityExceededWarning, прекращает
        обработку оставшихся ключей и возвращает False.
        """
        for pos, key in enumerate(keys):
            if self._key_count >= self.capacity:
                logger.warning("capacity %d exceeded, %d key(s) rejected",
                               self.capacity, len(keys) - pos)
                warnings.warn(f"Exceeded filter capacity ({self.capacity})",
                              CapacityExceededWarning, stacklevel=2)
                return False
            for cell in self.cells(key):
                self._bits.set(cell)
            self._key_count += 1
        return True

    def check(self, *keys: Key) -> List[bool]:
        """Для каждого ключа: True, если все его биты установлены (возможен FP)."""
        return [self._bits.all_set(self.cells(key)) for key in keys]

    def __contains__(self, key: Key) -> bool:
        return self._bits.all_set(self.cells(key))

    def __repr__(self) -> str:
        return (f"BloomFilter(capacity={self.capacity}, error_rate={self.error_rate}, "
                f"length={self._length}, hash_count={self._hash_count}, "
                f"key_count={self._key_count})")
