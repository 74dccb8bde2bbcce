import math

from envs.base import Action, Range, RLProblem


class Acrobot(RLProblem):
    """
    Two-link underactuated pendulum (Sutton & Barto swing-up task).
    State: theta1, theta2, theta1_dot, theta2_dot. Torque on the second joint
    is one of {-1, 0, 1}. The episode ends when the tip rises `target_height`
    above the pivot.
    - substeps: Euler integration steps per decision (dt each)
    - transition_noise: uniform torque noise amplitude
    """
    m1 = m2 = 1.0
    l1 = l2 = 1.0
    lc1 = lc2 = 0.5
    I1 = I2 = 1.0
    g = 9.8

    def __init__(self, dt=0.05, substeps=4, target_height=1.0, transition_noise=0.0,
                 random_start=False, resolution=6.0, seed=None):
        super().__init__(4, resolution, seed)
        self.theta_range = Range(-math.pi, math.pi)
        self.theta1_dot_range = Range(-4.0 * math.pi, 4.0 * math.pi)
        self.theta2_dot_range = Range(-9.0 * math.pi, 9.0 * math.pi)
        self.action_range = Range(-1.0, 1.0)
        self.dt = float(dt)
        self.substeps = int(substeps)
        self.target_height = float(target_height)
        self.transition_noise = float(transition_noise)
        self.random_start = random_start
        self.theta1 = self.theta2 = self.theta1_dot = self.theta2_dot = 0.0

        self._discrete_actions = [
            Action(0, self.action_range.min),
            Action(1, 0.0),
            Action(2, self.action_range.max),
        ]
        self._continuous_actions = [Action(0, 0.0)]

    def _update(self):
        return self._observe(
            [self.theta1, self.theta2, self.theta1_dot, self.theta2_dot],
            [self.theta_range, self.theta_range, self.theta1_dot_range, self.theta2_dot_range])

    def initialize(self):
        if self.random_start:
            self.theta1, self.theta2, self.theta1_dot, self.theta2_dot = self.rng.random(4) - 0.5
        else:
            self.theta1 = self.theta2 = self.theta1_dot = self.theta2_dot = 0.0
        return self._update()

    def step(self, action):
        torque = self.action_range.bound(action.value)
        torque += self.transition_noise * 2.0 * (self.rng.random() - 0.5)
        m1, m2, l1, lc1, lc2, I1, I2, g = self.m1, self.m2, self.l1, self.lc1, self.lc2, self.I1, self.I2, self.g

        count = 0
        while not self.is_terminal() and count < self.substeps:
            count += 1
            d1 = m1 * lc1 ** 2 + m2 * (l1 ** 2 + lc2 ** 2 + 2 * l1 * lc2 * math.cos(self.theta2)) + I1 + I2
            d2 = m2 * (lc2 ** 2 + l1 * lc2 * math.cos(self.theta2)) + I2
            phi2 = m2 * lc2 * g * math.cos(self.theta1 + self.theta2 - math.pi / 2.0)
            phi1 = (-(m2 * l1 * lc2 * self.theta2_dot ** 2 * math.sin(self.theta2)
                      - 2 * m2 * l1 * lc2 * self.theta1_dot * self.theta2_dot * math.sin(self.theta2))
                    + (m1 * lc1 + m2 * l1) * g * math.cos(self.theta1 - math.pi / 2.0) + phi2)
            theta2_ddot = ((torque + (d2 / d1) * phi1
                            - m2 * l1 * lc2 * self.theta1_dot ** 2 * math.sin(self.theta2) - phi2)
                           / (m2 * lc2 ** 2 + I2 - d2 ** 2 / d1))
            theta1_ddot = -(d2 * theta2_ddot + phi1) / d1

            self.theta1_dot += theta1_ddot * self.dt
            self.theta2_dot += theta2_ddot * self.dt
            self.theta1 += self.theta1_dot * self.dt
            self.theta2 += self.theta2_dot * self.dt

        self.theta1_dot = self.theta1_dot_range.bound(self.theta1_dot)
        self.theta2_dot = self.theta2_dot_range.bound(self.theta2_dot)
        # joints stop dead at +-pi
        if abs(self.theta2) > math.pi:
            self.theta2 = self.theta_range.bound(self.theta2)
            self.theta2_dot = 0.0
        if abs(self.theta1) > math.pi:
            self.theta1 = self.theta_range.bound(self.theta1)
            self.theta1_dot = 0.0

        self._update()
        return self._transition()

    def tip_height(self):
        first = self.l1 * math.cos(self.theta1)
        second = self.l2 * math.sin(math.pi / 2.0 - self.theta1 - self.theta2)
        return -(first + second)

    def is_terminal(self):
        return self.tip_height() > self.target_height

    def reward(self):
        return 0.0 if self.is_terminal() else -1.0
