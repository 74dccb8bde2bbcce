import logging
from dataclasses import dataclass, field

import numpy as np

from errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class EpisodeStats:
    run: int
    episode: int
    steps: int
    reward: float
    terminal: bool


@dataclass
class EvaluationResult:
    episodes: list = field(default_factory=list)

    @property
    def steps(self):
        return np.array([e.steps for e in self.episodes], dtype=np.float64)

    @property
    def mean_steps(self):
        return float(self.steps.mean())

    @property
    def std_steps(self):
        return float(self.steps.std())

    @property
    def min_steps(self):
        return int(self.steps.min())

    @property
    def max_steps(self):
        return int(self.steps.max())

    @property
    def mean_reward(self):
        return float(np.mean([e.reward for e in self.episodes]))

    @property
    def success_rate(self):
        return float(np.mean([e.terminal for e in self.episodes]))


class Simulator:
    """
    Step-synchronous loop binding a control learner to an RLProblem.
    run() trains for nb_runs x nb_episodes episodes of at most
    max_episode_steps decisions, stopping early once max_total_steps is used
    up. run_evaluate() plays greedy episodes without learning.
    """
    def __init__(self, control, problem, max_episode_steps, nb_episodes, nb_runs=1, max_total_steps=None):
        if max_episode_steps <= 0:
            raise ConfigurationError(f"max_episode_steps must be positive, got {max_episode_steps}")
        if nb_episodes <= 0 or nb_runs <= 0:
            raise ConfigurationError("nb_episodes and nb_runs must be positive")
        if max_total_steps is not None and max_total_steps <= 0:
            raise ConfigurationError(f"max_total_steps must be positive, got {max_total_steps}")
        self.control = control
        self.problem = problem
        self.max_episode_steps = int(max_episode_steps)
        self.nb_episodes = int(nb_episodes)
        self.nb_runs = int(nb_runs)
        self.max_total_steps = max_total_steps
        self.total_steps = 0

    def run_episode(self, learn=True, max_steps=None, run=0, episode=0):
        max_steps = self.max_episode_steps if max_steps is None else max_steps
        x_t = self.problem.initialize()
        a_t = self.control.initialize(x_t) if learn else self.control.propose_action(x_t)
        terminal = self.problem.is_terminal()
        steps = 0
        total = 0.0

        while not terminal and steps < max_steps:
            x_tp1, r_tp1, terminal = self.problem.step(a_t)
            steps += 1
            total += r_tp1
            if learn:
                a_tp1 = self.control.step(x_t, a_t, x_tp1, r_tp1, terminal)
            else:
                a_tp1 = None if terminal else self.control.propose_action(x_tp1)
            x_t, a_t = x_tp1, a_tp1

        stats = EpisodeStats(run, episode, steps, total, bool(terminal))
        logger.debug("run %d episode %d: %d steps, reward %.3f, terminal=%s",
                     run, episode, steps, total, terminal)
        return stats

    def run(self):
        """Train; returns one EpisodeStats per episode played."""
        history = []
        self.total_steps = 0
        for run in range(self.nb_runs):
            if run > 0:
                self.control.reset()
            for episode in range(self.nb_episodes):
                max_steps = self.max_episode_steps
                if self.max_total_steps is not None:
                    remaining = self.max_total_steps - self.total_steps
                    if remaining <= 0:
                        logger.warning("step budget of %d exhausted at run %d episode %d",
                                       self.max_total_steps, run, episode)
                        return history
                    max_steps = min(max_steps, remaining)
                stats = self.run_episode(learn=True, max_steps=max_steps, run=run, episode=episode)
                self.total_steps += stats.steps
                history.append(stats)
            run_stats = history[-self.nb_episodes:]
            logger.info("run %d: %d episodes, mean steps %.1f, last steps %d",
                        run, len(run_stats), np.mean([s.steps for s in run_stats]), run_stats[-1].steps)
        return history

    def run_evaluate(self, nb_episodes, max_episode_steps=None):
        """Greedy episodes; weights and trace are left untouched."""
        if nb_episodes <= 0:
            raise ConfigurationError(f"nb_episodes must be positive, got {nb_episodes}")
        if max_episode_steps is not None and max_episode_steps <= 0:
            raise ConfigurationError(f"max_episode_steps must be positive, got {max_episode_steps}")
        result = EvaluationResult([
            self.run_episode(learn=False, max_steps=max_episode_steps, episode=episode)
            for episode in range(nb_episodes)
        ])
        logger.info("evaluation over %d episodes: mean steps %.1f (std %.1f), success rate %.2f",
                    nb_episodes, result.mean_steps, result.std_steps, result.success_rate)
        return result
