import numpy as np

from errors import ConfigurationError


def greedy_index(values):
    """Index of the largest value; ties go to the first one."""
    return int(np.argmax(values))


class EpsilonGreedy:
    def __init__(self, learner, actions, epsilon, rng=None):
        if not 0.0 <= epsilon <= 1.0:
            raise ConfigurationError(f"epsilon must lie in [0, 1], got {epsilon}")
        self.learner = learner
        self.actions = list(actions)
        self.epsilon = float(epsilon)
        self.rng = rng if rng is not None else np.random.default_rng(0)

    def values(self, phis):
        return np.array([self.learner.predict(phi) for phi in phis])

    def sample_index(self, phis):
        if len(phis) != len(self.actions):
            raise ValueError(f"got {len(phis)} feature vectors for {len(self.actions)} actions")
        if self.epsilon > 0 and self.rng.random() < self.epsilon:
            return int(self.rng.integers(len(self.actions)))
        return greedy_index(self.values(phis))

    def sample_action(self, phis):
        return self.actions[self.sample_index(phis)]


class Greedy(EpsilonGreedy):
    def __init__(self, learner, actions):
        super().__init__(learner, actions, 0.0)
