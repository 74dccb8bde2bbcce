import logging
from pathlib import Path

import numpy as np

from errors import ConfigurationError, DimensionMismatchError, PersistenceError
from policy import greedy_index

logger = logging.getLogger(__name__)

_HEADER = np.dtype("<i8")
_VALUES = np.dtype("<f8")


class Sarsa:
    """
    Linear Sarsa(lambda) over sparse binary features.
    - alpha: step size, already divided by the feature vector norm
    - trace: eligibility Trace sized to the feature dimension; it also fixes
      the weight dimension
    """
    def __init__(self, alpha, gamma, lambda_, trace):
        if not alpha > 0:
            raise ConfigurationError(f"alpha must be positive, got {alpha}")
        if not 0.0 <= gamma <= 1.0:
            raise ConfigurationError(f"gamma must lie in [0, 1], got {gamma}")
        if not 0.0 <= lambda_ <= 1.0:
            raise ConfigurationError(f"lambda must lie in [0, 1], got {lambda_}")
        self.alpha = float(alpha)
        self.gamma = float(gamma)
        self.lambda_ = float(lambda_)
        self.e = trace
        self.w = np.zeros(trace.dimension, dtype=np.float64)

    @property
    def dimension(self):
        return self.w.size

    def initialize(self):
        """Start of an episode."""
        self.e.clear()

    def predict(self, phi):
        return phi.dot(self.w)

    def _td_error(self, phi_t, phi_tp1, r_tp1, terminal):
        q_t = phi_t.dot(self.w)
        q_tp1 = 0.0 if terminal or phi_tp1 is None else phi_tp1.dot(self.w)
        return q_t, q_tp1, r_tp1 + self.gamma * q_tp1 - q_t

    def update(self, phi_t, phi_tp1, r_tp1, terminal=False):
        """One on-policy step; returns the TD error."""
        _, _, delta = self._td_error(phi_t, phi_tp1, r_tp1, terminal)
        self.e.update(self.gamma * self.lambda_, phi_t)
        self.w += self.alpha * delta * self.e.vect
        return delta

    def reset(self):
        self.w[:] = 0.0
        self.e.clear()

    def persist(self, path):
        path = Path(path)
        try:
            with open(path, "wb") as f:
                np.array([self.w.size], dtype=_HEADER).tofile(f)
                self.w.astype(_VALUES).tofile(f)
        except OSError as exc:
            raise PersistenceError(f"cannot write weights to {path}: {exc}") from exc
        logger.info("persisted %d weights to %s", self.w.size, path)

    def resurrect(self, path):
        """Load weights written by persist(); the trace restarts from zero."""
        path = Path(path)
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise PersistenceError(f"cannot read weights from {path}: {exc}") from exc

        if len(raw) < _HEADER.itemsize or (len(raw) - _HEADER.itemsize) % _VALUES.itemsize:
            raise PersistenceError(f"{path} is not a weight file ({len(raw)} bytes)")
        dim = int(np.frombuffer(raw, dtype=_HEADER, count=1)[0])
        values = np.frombuffer(raw, dtype=_VALUES, offset=_HEADER.itemsize)
        if dim != values.size:
            raise PersistenceError(f"{path} declares {dim} weights but holds {values.size}")
        if dim != self.w.size:
            raise DimensionMismatchError(
                f"{path} holds {dim} weights, learner expects {self.w.size}")

        self.w[:] = values
        self.e.clear()
        logger.info("resurrected %d weights from %s", dim, path)


class SarsaTrue(Sarsa):
    """
    True online Sarsa(lambda) (van Seijen & Sutton) with a dutch trace.
    q_old is the previous step's estimate of the current state-action.
    """
    def __init__(self, alpha, gamma, lambda_, trace):
        super().__init__(alpha, gamma, lambda_, trace)
        self.q_old = 0.0

    def initialize(self):
        super().initialize()
        self.q_old = 0.0

    def update(self, phi_t, phi_tp1, r_tp1, terminal=False):
        q_t, q_tp1, delta = self._td_error(phi_t, phi_tp1, r_tp1, terminal)
        gl = self.gamma * self.lambda_
        e_phi = self.e.dot(phi_t)
        self.e.update(gl, phi_t)
        self.e.add(-self.alpha * gl * e_phi, phi_t)

        correction = q_t - self.q_old
        self.w += self.alpha * (delta + correction) * self.e.vect
        phi_t.add_to(self.w, -self.alpha * correction)
        self.q_old = q_tp1
        return delta

    def reset(self):
        super().reset()
        self.q_old = 0.0


class SarsaControl:
    """
    On-policy control: the policy picks actions from the learner's values
    over state-action features, the learner follows the chosen actions.
    """
    def __init__(self, policy, to_state_action, learner):
        if to_state_action.dimension != learner.dimension:
            raise ConfigurationError(
                f"features have dimension {to_state_action.dimension}, "
                f"learner has {learner.dimension}")
        self.policy = policy
        self.to_state_action = to_state_action
        self.learner = learner
        self.phi_t = None
        self.a_t = None

    @property
    def actions(self):
        return self.to_state_action.actions

    def initialize(self, x):
        """Start an episode at observation `x`; returns the first action."""
        self.learner.initialize()
        phis = self.to_state_action.state_actions(x)
        i = self.policy.sample_index(phis)
        self.phi_t = phis[i]
        self.a_t = self.actions[i]
        return self.a_t

    def step(self, x_t, a_t, x_tp1, r_tp1, terminal):
        """Learn from (x_t, a_t, r_tp1, x_tp1); returns the next action, None once terminal."""
        # the cached features only hold for the action handed out last
        phi_t = self.phi_t
        if phi_t is None or a_t != self.a_t:
            phi_t = self.to_state_action.state_action(x_t, a_t)

        if terminal:
            self.learner.update(phi_t, None, r_tp1, terminal=True)
            self.phi_t = None
            self.a_t = None
            return None

        phis = self.to_state_action.state_actions(x_tp1)
        i = self.policy.sample_index(phis)
        self.learner.update(phi_t, phis[i], r_tp1)
        self.phi_t = phis[i]
        self.a_t = self.actions[i]
        return self.a_t

    def action_values(self, x):
        return np.array([self.learner.predict(phi) for phi in self.to_state_action.state_actions(x)])

    def propose_action(self, x):
        """Greedy action, no exploration and no learning."""
        return self.actions[greedy_index(self.action_values(x))]

    def compute_value_function(self, x):
        return float(np.max(self.action_values(x)))

    def persist(self, path):
        self.learner.persist(path)

    def resurrect(self, path):
        self.learner.resurrect(path)
        self.phi_t = None
        self.a_t = None

    def reset(self):
        self.learner.reset()
        self.phi_t = None
        self.a_t = None
