import math

from envs.base import Action, Range, RLProblem

COAST, LEFT, RIGHT, DOWN, UP = range(5)


class MountainCar3D(RLProblem):
    """
    Mountain car on a two-dimensional hill (Taylor's 3D variant).
    State: x, y, x_dot, y_dot. Actions: coast, left, right, down, up.
    Reward -1 per step until both x and y reach `target_position`.
    """
    def __init__(self, target_position=0.5, random_start=True, resolution=6.0, seed=None):
        super().__init__(4, resolution, seed)
        self.position_range = Range(-1.2, 0.5)
        self.velocity_range = Range(-0.07, 0.07)
        self.target_position = float(target_position)
        self.random_start = random_start
        self.x = self.y = self.x_dot = self.y_dot = 0.0
        self._discrete_actions = [Action(a, float(a)) for a in (COAST, LEFT, RIGHT, DOWN, UP)]
        self._continuous_actions = [Action(0, 0.0)]

    def _update(self):
        p, v = self.position_range, self.velocity_range
        return self._observe([self.x, self.y, self.x_dot, self.y_dot], [p, p, v, v])

    def initialize(self):
        if self.random_start:
            span = (self.position_range.max - 0.2) - self.position_range.min
            self.x = self.position_range.min + self.rng.random() * span
            self.y = self.position_range.min + self.rng.random() * span
        else:
            self.x = self.y = 0.0
        self.x_dot = self.y_dot = 0.0
        return self._update()

    def step(self, action):
        push_x = {LEFT: -0.001, RIGHT: 0.001}.get(action.id, 0.0)
        push_y = {DOWN: -0.001, UP: 0.001}.get(action.id, 0.0)
        self.x_dot = self.velocity_range.bound(self.x_dot + push_x - 0.0025 * math.cos(3 * self.x))
        self.y_dot = self.velocity_range.bound(self.y_dot + push_y - 0.0025 * math.cos(3 * self.y))
        self.x = self.position_range.bound(self.x + self.x_dot)
        self.y = self.position_range.bound(self.y + self.y_dot)
        self._update()
        return self._transition()

    def is_terminal(self):
        return self.x >= self.target_position and self.y >= self.target_position

    def reward(self):
        return -1.0
