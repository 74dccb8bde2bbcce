import logging
import math
from dataclasses import dataclass

import numpy as np

from errors import ConfigurationError
from hashing import MurmurHashing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tiling:
    """
    One group of staggered tilings applied to every input dimension.
    - arity: 1 for a single input, 2 for the pair (i, (i + offset) % n)
    - num_tilings: number of offset tilings in the group
    - resolution: scale applied to the input before quantisation
    """
    arity: int
    num_tilings: int
    resolution: float
    offset: int = 1


DEFAULT_TILINGS = (
    Tiling(1, 8, 8.0),
    Tiling(1, 4, 2.0),
    Tiling(2, 4, 4.0, offset=1),
    Tiling(2, 4, 4.0, offset=2),
)


def default_memory_size(n_inputs, tilings=DEFAULT_TILINGS, n_actions=1, hash_factor=8):
    per_input = sum(int(math.ceil(t.resolution)) ** t.arity * t.num_tilings for t in tilings)
    return int(n_inputs * per_input * n_actions * hash_factor)


class SparseFeatures:
    """
    Active feature indices of a binary vector of size `dimension`.
    Indices may repeat after a hash collision; a repeated index counts once
    per occurrence, so len(features) is fixed by the tiling configuration.
    """
    __slots__ = ("indices", "dimension")

    def __init__(self, indices, dimension):
        self.indices = np.asarray(indices, dtype=np.int64)
        self.dimension = int(dimension)

    def __len__(self):
        return len(self.indices)

    def dot(self, v):
        return float(v[self.indices].sum())

    def add_to(self, v, scale=1.0):
        np.add.at(v, self.indices, scale)

    def to_dense(self):
        return np.bincount(self.indices, minlength=self.dimension).astype(np.float64)


class Tiles:
    """Staggered-grid tile coder; every tile coordinate goes through `hashing`."""
    def __init__(self, hashing):
        self.hashing = hashing

    def tiles(self, floats, num_tilings, ints=(), seed=0):
        """Return `num_tilings` hashed indices for the point `floats`."""
        n = len(floats)
        q = [math.floor(f * num_tilings) for f in floats]
        base = [0] * n
        coordinates = [0] * (n + 1) + [int(v) for v in ints]
        out = []
        for j in range(num_tilings):
            for i in range(n):
                coordinates[i] = q[i] - ((q[i] - base[i]) % num_tilings)
                base[i] += 1 + 2 * i
            coordinates[n] = j
            out.append(self.hashing.hash(coordinates, seed))
        return out

    def tiles1(self, num_tilings, x, ints=(), seed=0):
        return self.tiles((x,), num_tilings, ints, seed)

    def tiles2(self, num_tilings, x1, x2, ints=(), seed=0):
        return self.tiles((x1, x2), num_tilings, ints, seed)


class TileCoder:
    """
    Hashed multi-tiling projector for continuous observations.
    - n_inputs: observation size; inputs are expected pre-scaled by the
      environment (roughly [0, resolution] per dimension)
    - tilings: sequence of Tiling groups applied to every input
    - memory_size: hash table size; the bias feature sits at index memory_size
    Every projection activates exactly vector_norm() entries.
    """
    def __init__(self, n_inputs, tilings=DEFAULT_TILINGS, memory_size=None, hashing=None, n_actions=1):
        self.n_inputs = int(n_inputs)
        if self.n_inputs <= 0:
            raise ConfigurationError(f"n_inputs must be positive, got {n_inputs}")
        self.tilings = tuple(tilings)
        if not self.tilings:
            raise ConfigurationError("at least one tiling is required")
        for t in self.tilings:
            if t.arity not in (1, 2):
                raise ConfigurationError(f"tiling arity must be 1 or 2, got {t.arity}")
            if t.num_tilings <= 0:
                raise ConfigurationError(f"num_tilings must be positive, got {t.num_tilings}")
            if not t.resolution > 0:
                raise ConfigurationError(f"resolution must be positive, got {t.resolution}")

        if memory_size is None:
            memory_size = hashing.memory_size if hashing is not None else default_memory_size(
                self.n_inputs, self.tilings, n_actions)
        if hashing is None:
            hashing = MurmurHashing(memory_size)
        if hashing.memory_size != int(memory_size):
            raise ConfigurationError(
                f"hashing covers {hashing.memory_size} entries but memory_size is {memory_size}")

        self.memory_size = hashing.memory_size
        self.hashing = hashing
        self.tiles = Tiles(hashing)
        self.nb_tiles = self.n_inputs * sum(t.num_tilings for t in self.tilings)
        self.dimension = self.memory_size + 1
        logger.debug("tile coder: %d inputs, %d tiles, memory %d",
                     self.n_inputs, self.nb_tiles, self.memory_size)

    def vector_norm(self):
        return self.nb_tiles + 1

    def project(self, x, discriminator=None):
        """Return the SparseFeatures of `x`; `discriminator` selects a separate hash block."""
        x = np.asarray(x, dtype=np.float64).ravel()
        if x.size == 0:
            return SparseFeatures(np.empty(0, dtype=np.int64), self.dimension)
        if x.size != self.n_inputs:
            raise ValueError(f"expected {self.n_inputs} inputs, got {x.size}")

        ints = () if discriminator is None else (int(discriminator),)
        idxs = np.empty(self.nb_tiles + 1, dtype=np.int64)
        k = 0
        seed = 0
        for i in range(self.n_inputs):
            for t in self.tilings:
                if t.arity == 1:
                    found = self.tiles.tiles1(t.num_tilings, x[i] * t.resolution, ints, seed)
                else:
                    j = (i + t.offset) % self.n_inputs
                    found = self.tiles.tiles2(t.num_tilings, x[i] * t.resolution,
                                              x[j] * t.resolution, ints, seed)
                idxs[k:k + t.num_tilings] = found
                k += t.num_tilings
                seed += 1
        idxs[-1] = self.memory_size
        return SparseFeatures(idxs, self.dimension)


class StateActionTilings:
    """
    Per-action features sharing one memory: the action id is folded into the
    hash discriminator. The bias index is common to all actions.
    """
    def __init__(self, projector, actions):
        self.projector = projector
        self.actions = list(actions)
        if not self.actions:
            raise ConfigurationError("at least one discrete action is required")
        self.dimension = projector.dimension

    def vector_norm(self):
        return self.projector.vector_norm()

    def state_action(self, x, action):
        return self.projector.project(x, action.id)

    def state_actions(self, x):
        return [self.projector.project(x, a.id) for a in self.actions]
