import json
import logging
from dataclasses import asdict, dataclass, fields
from typing import Optional

import numpy as np

from errors import ConfigurationError
from hashing import MurmurHashing, UNHHashing
from policy import EpsilonGreedy
from sarsa_agent import Sarsa, SarsaControl, SarsaTrue
from simulator import Simulator
from tilecoding import DEFAULT_TILINGS, StateActionTilings, TileCoder, Tiling, default_memory_size
from traces import TRACES

logger = logging.getLogger(__name__)

HASHINGS = {
    "murmur": MurmurHashing,
    "unh": UNHHashing,
}


@dataclass
class ExperimentConfig:
    """
    Every tunable of a training run.
    - memory_size: hash table size; None sizes it from tilings and action count
    - tilings: Tiling groups applied to every input dimension
    - resolutions: observation scale per dimension (one value or a sequence);
      None keeps the environment's own
    - alpha: base step size, the learner receives alpha / vector_norm()
    - gamma, lambda_: discount and trace decay in [0, 1]
    - epsilon: exploration rate of the epsilon-greedy policy
    - trace: "accumulating", "replacing" or "amax"
    - true_online: true online Sarsa(lambda) instead of the classic update
    - hashing: "murmur" or "unh"
    - max_episode_steps, nb_episodes, nb_runs, max_total_steps: training budgets,
      max_total_steps None means unbounded
    - evaluation_episodes: greedy episodes for Simulator.run_evaluate()
    - seed: seed of the policy's random generator
    """
    memory_size: Optional[int] = None
    tilings: tuple = DEFAULT_TILINGS
    resolutions: Optional[tuple] = None
    alpha: float = 0.1
    gamma: float = 0.99
    lambda_: float = 0.95
    epsilon: float = 0.01
    trace: str = "accumulating"
    true_online: bool = True
    hashing: str = "murmur"
    max_episode_steps: int = 1000
    nb_episodes: int = 100
    nb_runs: int = 1
    max_total_steps: Optional[int] = None
    evaluation_episodes: int = 10
    seed: int = 0

    def __post_init__(self):
        self.tilings = tuple(t if isinstance(t, Tiling) else _tiling(t) for t in self.tilings)
        if self.resolutions is not None:
            if isinstance(self.resolutions, (list, tuple)):
                self.resolutions = tuple(float(r) for r in self.resolutions)
            if not np.all(np.asarray(self.resolutions, dtype=np.float64) > 0):
                raise ConfigurationError(f"resolutions must be positive, got {self.resolutions}")
        if self.memory_size is not None and self.memory_size <= 0:
            raise ConfigurationError(f"memory_size must be positive, got {self.memory_size}")
        if not self.alpha > 0:
            raise ConfigurationError(f"alpha must be positive, got {self.alpha}")
        for name in ("gamma", "lambda_", "epsilon"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must lie in [0, 1], got {value}")
        if self.trace not in TRACES:
            raise ConfigurationError(f"unknown trace {self.trace!r}, expected one of {sorted(TRACES)}")
        if self.hashing not in HASHINGS:
            raise ConfigurationError(f"unknown hashing {self.hashing!r}, expected one of {sorted(HASHINGS)}")
        for name in ("max_episode_steps", "nb_episodes", "nb_runs", "evaluation_episodes"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}")
        if self.max_total_steps is not None and self.max_total_steps <= 0:
            raise ConfigurationError(f"max_total_steps must be positive, got {self.max_total_steps}")

    @classmethod
    def from_dict(cls, d):
        known = {f.name for f in fields(cls)}
        unknown = set(d) - known
        if unknown:
            raise ConfigurationError(f"unknown configuration keys: {sorted(unknown)}")
        return cls(**d)

    @classmethod
    def from_json(cls, path):
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def to_dict(self):
        d = asdict(self)
        d["tilings"] = [asdict(t) for t in self.tilings]
        return d


def _tiling(entry):
    try:
        if isinstance(entry, dict):
            return Tiling(**entry)
        return Tiling(*entry)
    except TypeError as exc:
        raise ConfigurationError(f"bad tiling {entry!r}") from exc


def build_control(config, problem):
    if config.resolutions is not None:
        problem.set_resolutions(config.resolutions)
    actions = problem.discrete_actions()
    memory_size = config.memory_size
    if memory_size is None:
        memory_size = default_memory_size(problem.dimension(), config.tilings, len(actions))
    hashing = HASHINGS[config.hashing](memory_size)
    projector = TileCoder(problem.dimension(), config.tilings, memory_size, hashing)
    to_state_action = StateActionTilings(projector, actions)

    trace = TRACES[config.trace](projector.dimension)
    alpha = config.alpha / projector.vector_norm()
    learner_cls = SarsaTrue if config.true_online else Sarsa
    learner = learner_cls(alpha, config.gamma, config.lambda_, trace)
    policy = EpsilonGreedy(learner, actions, config.epsilon, np.random.default_rng(config.seed))
    logger.info("%s with %s trace, memory %d, %d tiles, alpha %.5f",
                learner_cls.__name__, config.trace, memory_size, projector.nb_tiles, alpha)
    return SarsaControl(policy, to_state_action, learner)


def build_simulator(config, problem, control=None):
    if control is None:
        control = build_control(config, problem)
    return Simulator(control, problem, config.max_episode_steps, config.nb_episodes,
                     config.nb_runs, config.max_total_steps)
