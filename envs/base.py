from typing import NamedTuple

import numpy as np

from errors import ConfigurationError


class Action(NamedTuple):
    id: int
    value: float


class Range:
    """Closed interval; values outside it are clamped, never rejected."""
    def __init__(self, lo, hi):
        if not hi > lo:
            raise ConfigurationError(f"empty range [{lo}, {hi}]")
        self.min = float(lo)
        self.max = float(hi)

    @property
    def length(self):
        return self.max - self.min

    def bound(self, x):
        return min(max(x, self.min), self.max)

    def normalize(self, x, resolution=1.0):
        """Map x into [0, resolution]."""
        return (self.bound(x) - self.min) / self.length * resolution


class RLProblem:
    """
    Environment contract used by the simulator.
    Subclasses fill the action lists, implement initialize/step/reward/
    is_terminal and publish observations through _observe().
    - resolution: scale of the normalised observation handed to the projector,
      one value for every dimension or a sequence of n_dims values
    """
    def __init__(self, n_dims, resolution=6.0, seed=None):
        if n_dims <= 0:
            raise ConfigurationError(f"state dimension must be positive, got {n_dims}")
        self.resolutions = np.zeros(n_dims)
        self.set_resolutions(resolution)
        self.rng = np.random.default_rng(seed)
        self._discrete_actions = []
        self._continuous_actions = []
        self.observation = np.zeros(n_dims)
        self.raw_observation = np.zeros(n_dims)

    def dimension(self):
        return self.resolutions.size

    def set_resolutions(self, resolution):
        values = np.asarray(resolution, dtype=np.float64)
        if values.ndim == 0:
            values = np.full(self.resolutions.size, float(values))
        if values.shape != self.resolutions.shape:
            raise ConfigurationError(
                f"expected {self.resolutions.size} resolutions, got {values.size}")
        if not np.all(values > 0):
            raise ConfigurationError(f"resolutions must be positive, got {values.tolist()}")
        self.resolutions = values

    def discrete_actions(self):
        return list(self._discrete_actions)

    def continuous_actions(self):
        return list(self._continuous_actions)

    def initialize(self):
        raise NotImplementedError

    def step(self, action):
        raise NotImplementedError

    def reward(self):
        raise NotImplementedError

    def is_terminal(self):
        raise NotImplementedError

    def _observe(self, values, ranges):
        self.raw_observation = np.array(values, dtype=np.float64)
        self.observation = np.array(
            [r.normalize(v, res) for v, r, res in zip(values, ranges, self.resolutions)])
        return self.observation.copy()

    def _transition(self):
        return self.observation.copy(), self.reward(), self.is_terminal()
