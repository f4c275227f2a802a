"""Эксперименты: наблюдаемый FPR против заданного error_rate."""

import logging
from typing import List, Optional, Tuple

import numpy as np
import matplotlib.pyplot as plt
from scipy import stats
from bloom_filter import BloomFilter, BloomConfig

logger = logging.getLogger(__name__)


def generate_dataset(size: int, seed: Optional[int] = None) -> Tuple[List[str], List[str]]:
    # train и test с разными префиксами - гарантированно не пересекаются
    salt = np.random.default_rng(seed).integers(0, 10**6)
    train = [f"train_{salt}_{i}" for i in range(size)]
    test  = [f"test_{salt}_{i}"  for i in range(size)]
    return train, test


def measure_fpr(capacity: int, error_rate: float, checks: int = 5000,
                seed: Optional[int] = None) -> Tuple[int, float]:
    """Заполнить фильтр до capacity и посчитать FP на checks чужих ключах.

    Возвращает (число FP, доля FP).
    """
    train, _ = generate_dataset(capacity, seed)
    _, test = generate_dataset(checks, seed)
    bf = BloomFilter(BloomConfig(capacity=capacity, error_rate=error_rate), rng=seed)
    bf.add(*train)
    fp = sum(bf.check(*test))
    return fp, fp / checks


def within_band(observed: float, error_rate: float, low: float = 0.5, high: float = 2.0) -> bool:
    """Статистическая граница: observed в [low * p, high * p]."""
    return low * error_rate <= observed <= high * error_rate


def binomial_pvalue(false_positives: int, checks: int, error_rate: float) -> float:
    """Двусторонний биномиальный тест H0: FPR == error_rate."""
    return float(stats.binomtest(false_positives, checks, error_rate).pvalue)


def sweep(capacities: List[int], error_rates: List[float], checks: int = 5000,
          trials: int = 3, seed: Optional[int] = None) -> np.ndarray:
    """Средний наблюдаемый FPR / error_rate для сетки (capacity, error_rate)."""
    rng = np.random.default_rng(seed)
    results = np.zeros((len(capacities), len(error_rates)))

    for i, n in enumerate(capacities):
        for j, p in enumerate(error_rates):
            ratios = []
            for _ in range(trials):
                fp, observed = measure_fpr(n, p, checks, seed=int(rng.integers(0, 2**31)))
                if not within_band(observed, p):
                    logger.warning("n=%d p=%g: observed FPR %.4f outside band (p-value %.3g)",
                                   n, p, observed, binomial_pvalue(fp, checks, p))
                ratios.append(observed / p)
            results[i, j] = np.mean(ratios)

    return results


def plot_sweep(results: np.ndarray, capacities: List[int], error_rates: List[float],
               path: str = "bloom_fpr_ratio.png"):
    """Heatmap отношения наблюдаемого FPR к целевому."""
    plt.figure(figsize=(10, 8))
    plt.imshow(results, cmap='viridis', aspect='auto')
    plt.colorbar(label='observed FPR / error_rate')
    plt.xlabel('error_rate')
    plt.ylabel('capacity')
    plt.xticks(range(len(error_rates)), error_rates)
    plt.yticks(range(len(capacities)), capacities)
    plt.title('Bloom Filter FPR Analysis')
    plt.tight_layout()
    plt.savefig(path, dpi=300)
    plt.close()
    return path


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    n_vals = [100, 1000, 10000]
    p_vals = [0.1, 0.05, 0.01, 0.001]

    print("Running FPR sweep...")
    ratio = sweep(n_vals, p_vals)
    print(ratio)
    print(f"Сохранено: {plot_sweep(ratio, n_vals, p_vals)}")
