"""
Нагрузочный прогон Bloom Filter.
    python lots.py                                   # 10000 ключей, 5000 проверок, p=0.01
    python lots.py --capacity 100000 --checks 50000 --error-rate 0.001
    python lots.py --seed 42 --quiet
"""

import argparse
import logging
import sys
import time
from typing import Optional

from tqdm import tqdm
from bloom_filter import BloomFilter, BloomConfig
from errors import ConfigurationError

logger = logging.getLogger(__name__)


def run(capacity=10000, checks=5000, error_rate=0.01, seed=None, quiet=False) -> dict:
    """Заполнить фильтр capacity ключами и проверить checks отсутствующих."""
    bf = BloomFilter(BloomConfig(capacity=capacity, error_rate=error_rate), rng=seed)

    start = time.perf_counter()
    for i in tqdm(range(capacity), desc="add", disable=quiet):
        bf.add(f"key_{i}")
    add_time = time.perf_counter() - start

    start = time.perf_counter()
    missing = sum(1 for i in tqdm(range(capacity), desc="check", disable=quiet)
                  if f"key_{i}" not in bf)
    check_time = time.perf_counter() - start

    start = time.perf_counter()
    false_positives = sum(1 for i in tqdm(range(checks), desc="absent", disable=quiet)
                          if f"absent_{i}" in bf)
    absent_time = time.perf_counter() - start

    return {
        "capacity": bf.capacity,
        "error_rate": bf.error_rate,
        "length": bf.length,
        "hash_count": bf.hash_count,
        "key_count": bf.key_count,
        "on_bits": bf.on_bits,
        "false_negatives": missing,
        "false_positives": false_positives,
        "observed_fpr": false_positives / checks if checks else 0.0,
        "add_time": add_time,
        "check_time": check_time,
        "absent_time": absent_time,
    }


def main(argv: Optional[list] = None) -> int:
    p = argparse.ArgumentParser(description="Bloom filter load test")
    p.add_argument("--capacity",   type=int,   default=10000, help="Количество добавляемых ключей")
    p.add_argument("--checks",     type=int,   default=5000,  help="Количество проверок отсутствующих ключей")
    p.add_argument("--error-rate", type=float, default=0.01,  help="Целевой FPR 0-1")
    p.add_argument("--seed",       type=int,   default=None,  help="Seed для солей")
    p.add_argument("--quiet",      action="store_true",       help="Без прогресс-баров")
    p.add_argument("--verbose",    action="store_true",       help="DEBUG логирование")
    args = p.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")
    if args.checks < 0:
        p.error("--checks must be non-negative")

    try:
        stats = run(args.capacity, args.checks, args.error_rate, args.seed, args.quiet)
    except ConfigurationError as e:
        p.error(str(e))

    print(f"m={stats['length']} k={stats['hash_count']} "
          f"keys={stats['key_count']} on_bits={stats['on_bits']}")
    print(f"add:    {stats['add_time']:.3f}s")
    print(f"check:  {stats['check_time']:.3f}s")
    print(f"absent: {stats['absent_time']:.3f}s")
    print(f"FPR: {stats['observed_fpr']:.4%} (target {stats['error_rate']:.4%})")

    if stats["false_negatives"]:
        logger.error("%d inserted keys not found", stats["false_negatives"])
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
