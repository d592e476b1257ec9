"""
Seeded coastline noise.

A string seed is hashed once into an integer and used to build a single
OpenSimplex generator; the generator is never reseeded, so the same seed
always yields the same field.
"""

import hashlib
from typing import Union

from opensimplex import OpenSimplex

Seed = Union[str, int]

# OpenSimplex seeds are signed 64-bit; stay well inside that range
_SEED_BYTES = 7


def seed_to_int(seed: Seed) -> int:
    """Stable integer seed for a string or integer seed."""
    if isinstance(seed, int):
        return seed
    digest = hashlib.sha1(str(seed).encode("utf-8")).digest()
    return int.from_bytes(digest[:_SEED_BYTES], "big")


def create_noise(seed: Seed = "atlas") -> OpenSimplex:
    """2-D noise generator for a seed; sample it with ``noise2(x, y)``."""
    return OpenSimplex(seed=seed_to_int(seed))
