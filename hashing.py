import numpy as np

from errors import ConfigurationError

MASK32 = 0xFFFFFFFF


def murmur3_32(words, seed=0):
    """MurmurHash3 (x86, 32-bit) of a sequence of 32-bit integers.

    Each integer is treated as one little-endian 4-byte block, so the result
    matches the reference implementation run over the packed bytes. Negative
    integers are taken modulo 2**32.
    """
    c1, c2 = 0xCC9E2D51, 0x1B873593
    h = seed & MASK32
    n = 0
    for k in words:
        k = (int(k) & MASK32) * c1 & MASK32
        k = ((k << 15) | (k >> 17)) & MASK32
        k = k * c2 & MASK32
        h ^= k
        h = ((h << 13) | (h >> 19)) & MASK32
        h = (h * 5 + 0xE6546B64) & MASK32
        n += 1
    h ^= 4 * n
    # final avalanche
    h ^= h >> 16
    h = h * 0x85EBCA6B & MASK32
    h ^= h >> 13
    h = h * 0xC2B2AE35 & MASK32
    h ^= h >> 16
    return h


class Hashing:
    """
    Maps an integer coordinate tuple into [0, memory_size).
    Collisions are accepted: two tuples may share an index.
    """
    def __init__(self, memory_size):
        memory_size = int(memory_size)
        if memory_size <= 0:
            raise ConfigurationError(f"memory_size must be positive, got {memory_size}")
        self.memory_size = memory_size

    def hash(self, coordinates, seed=0):
        raise NotImplementedError

    def __call__(self, coordinates, seed=0):
        return self.hash(coordinates, seed)


class MurmurHashing(Hashing):
    def hash(self, coordinates, seed=0):
        return murmur3_32(coordinates, seed) % self.memory_size


class UNHHashing(Hashing):
    """
    Universal hashing over a fixed random table (Sutton's tile coder scheme).
    The table is drawn once from `seed`, so two instances built with the same
    seed hash identically.
    """
    TABLE_SIZE = 2048
    INCREMENT = 449

    def __init__(self, memory_size, seed=0):
        super().__init__(memory_size)
        rng = np.random.default_rng(seed)
        self.table = rng.integers(0, 2**31 - 1, size=self.TABLE_SIZE, dtype=np.int64)

    def hash(self, coordinates, seed=0):
        total = 0
        # the seed takes the first slot so it perturbs every tuple
        for i, c in enumerate((seed, *coordinates)):
            total += int(self.table[(int(c) + self.INCREMENT * i) % self.TABLE_SIZE])
        return total % self.memory_size
