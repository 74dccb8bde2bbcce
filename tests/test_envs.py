import math

import numpy as np
import pytest

from envs import Acrobot, Action, GoalWalk, MountainCar3D, Range
from errors import ConfigurationError


def test_range_clamps():
    r = Range(-1.0, 3.0)
    assert r.length == 4.0
    assert r.bound(5.0) == 3.0
    assert r.bound(-2.0) == -1.0
    assert r.normalize(1.0, 6.0) == pytest.approx(3.0)
    assert r.normalize(100.0, 6.0) == 6.0


def test_empty_range_rejected():
    with pytest.raises(ConfigurationError):
        Range(1.0, 1.0)


def test_goal_walk_reaches_goal():
    env = GoalWalk()
    assert env.dimension() == 1
    assert np.array_equal(env.initialize(), [0.0])
    right = env.discrete_actions()[1]
    steps = 0
    terminal = False
    while not terminal and steps < 50:
        obs, reward, terminal = env.step(right)
        assert reward == -1.0
        steps += 1
    assert terminal
    assert 17 <= steps <= 19
    assert 0.0 <= obs[0] <= 6.0


def test_goal_walk_clamps_at_wall():
    env = GoalWalk()
    env.initialize()
    obs, _, terminal = env.step(env.discrete_actions()[0])
    assert obs[0] == 0.0
    assert not terminal
    assert env.raw_observation[0] == 0.0


def test_acrobot_contract():
    env = Acrobot()
    assert env.dimension() == 4
    assert [a.value for a in env.discrete_actions()] == [-1.0, 0.0, 1.0]
    assert np.allclose(env.initialize(), 3.0)
    assert not env.is_terminal()
    assert env.reward() == -1.0


def test_acrobot_observations_stay_in_range():
    env = Acrobot(transition_noise=0.5, random_start=True, seed=2)
    env.initialize()
    rng = np.random.default_rng(0)
    actions = env.discrete_actions()
    for _ in range(300):
        obs, reward, terminal = env.step(actions[rng.integers(3)])
        assert np.all((obs >= 0.0) & (obs <= 6.0))
        assert abs(env.theta1) <= math.pi and abs(env.theta2) <= math.pi
        assert reward == (0.0 if terminal else -1.0)
        if terminal:
            env.initialize()


def test_acrobot_substep_cap():
    env = Acrobot(substeps=0)
    env.initialize()
    env.step(Action(2, 1.0))
    assert env.theta1 == env.theta2 == env.theta1_dot == env.theta2_dot == 0.0

    one, four = Acrobot(substeps=1), Acrobot(substeps=4)
    for env in (one, four):
        env.initialize()
        env.step(Action(2, 1.0))
    assert abs(four.theta2_dot) > abs(one.theta2_dot) > 0.0


def test_acrobot_torque_is_clamped():
    big, unit = Acrobot(), Acrobot()
    big.initialize()
    unit.initialize()
    big.step(Action(2, 50.0))
    unit.step(Action(2, 1.0))
    assert np.array_equal(big.raw_observation, unit.raw_observation)


def test_mountain_car_fixed_start():
    env = MountainCar3D(random_start=False)
    assert len(env.discrete_actions()) == 5
    env.initialize()
    obs, reward, terminal = env.step(env.discrete_actions()[0])
    assert env.raw_observation[0] == pytest.approx(-0.0025)
    assert env.raw_observation[2] == pytest.approx(-0.0025)
    assert reward == -1.0
    assert not terminal


def test_mountain_car_random_start_in_range():
    env = MountainCar3D(seed=4)
    for _ in range(20):
        obs = env.initialize()
        assert -1.2 <= env.x <= 0.3 and -1.2 <= env.y <= 0.3
        assert np.all((obs >= 0.0) & (obs <= 6.0))


def test_mountain_car_push_right_and_up():
    env = MountainCar3D(random_start=False)
    env.initialize()
    env.step(Action(2, 2.0))
    assert env.x_dot == pytest.approx(0.001 - 0.0025)
    env.initialize()
    env.step(Action(4, 4.0))
    assert env.y_dot == pytest.approx(0.001 - 0.0025)
    assert env.x_dot == pytest.approx(-0.0025)


def test_resolution_per_dimension():
    env = Acrobot(resolution=[6, 6, 3, 3])
    assert np.array_equal(env.resolutions, [6.0, 6.0, 3.0, 3.0])
    assert np.allclose(env.initialize(), [3.0, 3.0, 1.5, 1.5])

    env.set_resolutions(2.0)
    assert np.array_equal(env.resolutions, [2.0] * 4)
    assert np.allclose(env.initialize(), 1.0)


def test_scalar_resolution_fills_every_dimension():
    env = MountainCar3D(resolution=6)
    assert np.array_equal(env.resolutions, [6.0] * env.dimension())


@pytest.mark.parametrize("resolution", [[6, 6], [6, 0, 3, 3], -1.0])
def test_bad_resolution_rejected(resolution):
    with pytest.raises(ConfigurationError):
        Acrobot(resolution=resolution)
