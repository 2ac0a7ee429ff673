"""Primality helpers used to size hash moduli."""
from __future__ import annotations

from functools import lru_cache


@lru_cache(maxsize=1024)
def is_prime(n: int) -> bool:
    """Return *True* if *n* is prime (trial division over 6k ± 1)."""
    if n < 2:
        return False
    if n in (2, 3):
        return True
    if n % 2 == 0 or n % 3 == 0:
        return False
    i = 5
    while i * i <= n:
        if n % i == 0 or n % (i + 2) == 0:
            return False
        i += 6
    return True


def next_prime(n: int) -> int:
    """Return the smallest prime strictly greater than *n*."""
    m = max(n, 1) + 1
    while not is_prime(m):
        m += 1
    return m
