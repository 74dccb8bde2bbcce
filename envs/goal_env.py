from envs.base import Action, Range, RLProblem


class GoalWalk(RLProblem):
    """
    One-dimensional walk to a goal.
    Actions move left or right by `step_size`; reward is -1 per step and the
    episode ends once position >= threshold.
    """
    def __init__(self, step_size=0.05, threshold=0.9, start=0.0, noise=0.0, resolution=6.0, seed=None):
        super().__init__(1, resolution, seed)
        self.position_range = Range(0.0, 1.0)
        self.step_size = float(step_size)
        self.threshold = float(threshold)
        self.start = self.position_range.bound(start)
        self.noise = float(noise)
        self.position = self.start
        self._discrete_actions = [Action(0, -1.0), Action(1, 1.0)]
        self._continuous_actions = [Action(0, 0.0)]

    def initialize(self):
        self.position = self.start
        return self._observe([self.position], [self.position_range])

    def step(self, action):
        move = action.value * self.step_size
        if self.noise > 0:
            move += self.noise * self.rng.uniform(-1.0, 1.0)
        self.position = self.position_range.bound(self.position + move)
        self._observe([self.position], [self.position_range])
        return self._transition()

    def reward(self):
        return -1.0

    def is_terminal(self):
        return self.position >= self.threshold
