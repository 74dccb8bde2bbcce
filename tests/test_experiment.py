import json

import numpy as np
import pytest

from envs import Acrobot, GoalWalk
from errors import ConfigurationError
from experiment import ExperimentConfig, build_control, build_simulator
from hashing import UNHHashing
from sarsa_agent import Sarsa, SarsaTrue
from tilecoding import DEFAULT_TILINGS, Tiling
from traces import ATrace, RTrace


def test_defaults_are_valid():
    config = ExperimentConfig()
    assert config.tilings == DEFAULT_TILINGS
    assert config.true_online


@pytest.mark.parametrize("kwargs", [
    dict(memory_size=0),
    dict(alpha=0.0),
    dict(gamma=1.5),
    dict(lambda_=-0.2),
    dict(epsilon=2.0),
    dict(trace="dutch"),
    dict(hashing="md5"),
    dict(nb_episodes=0),
    dict(max_episode_steps=-1),
    dict(evaluation_episodes=0),
    dict(max_total_steps=0),
    dict(tilings=[(1, 2, 3.0, 1, 9)]),
    dict(resolutions=[6.0, 0.0]),
    dict(resolutions=-2.0),
])
def test_invalid_config(kwargs):
    with pytest.raises(ConfigurationError):
        ExperimentConfig(**kwargs)


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ConfigurationError):
        ExperimentConfig.from_dict({"alpha": 0.2, "learning_rate": 0.1})


def test_json_round_trip(tmp_path):
    config = ExperimentConfig(memory_size=2048, tilings=[Tiling(1, 4, 2.0), (2, 2, 4.0, 1)], trace="replacing")
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config.to_dict()), encoding="utf-8")
    loaded = ExperimentConfig.from_json(path)
    assert loaded == config
    assert loaded.tilings[1] == Tiling(2, 2, 4.0, 1)


def test_build_control_wiring():
    env = GoalWalk()
    control = build_control(ExperimentConfig(memory_size=1000), env)
    learner = control.learner
    assert isinstance(learner, SarsaTrue)
    assert isinstance(learner.e, ATrace)
    assert learner.dimension == 1001
    assert learner.alpha == pytest.approx(0.1 / 21)
    assert control.actions == env.discrete_actions()


def test_build_control_variants():
    config = ExperimentConfig(true_online=False, trace="replacing", hashing="unh", memory_size=3000)
    control = build_control(config, Acrobot())
    assert type(control.learner) is Sarsa
    assert isinstance(control.learner.e, RTrace)
    assert isinstance(control.to_state_action.projector.hashing, UNHHashing)
    assert len(control.actions) == 3


def test_default_memory_follows_actions():
    control = build_control(ExperimentConfig(), Acrobot())
    assert control.to_state_action.projector.memory_size == 4 * 200 * 3 * 8


def test_resurrected_control_matches_probes(tmp_path):
    config = ExperimentConfig(memory_size=1000, nb_episodes=15, max_episode_steps=300)
    env = GoalWalk()
    sim = build_simulator(config, env)
    sim.run()
    path = tmp_path / "goal_walk.dat"
    sim.control.persist(path)

    fresh = build_control(config, env)
    fresh.resurrect(path)
    for p in np.linspace(0.0, 6.0, 13):
        assert np.array_equal(fresh.action_values([p]), sim.control.action_values([p]))
    assert fresh.propose_action([0.0]) == sim.control.propose_action([0.0])

    # reset then resurrect, the pattern used between training and evaluation
    sim.control.reset()
    assert not sim.control.learner.w.any()
    sim.control.resurrect(path)
    assert np.array_equal(sim.control.learner.w, fresh.learner.w)


@pytest.mark.slow
def test_goal_walk_learning_progress():
    config = ExperimentConfig(memory_size=1000, gamma=0.99, lambda_=0.95, epsilon=0.01,
                              nb_episodes=1000, max_episode_steps=1000, seed=0)
    env = GoalWalk()
    untrained = build_simulator(config, env).run_evaluate(3)

    sim = build_simulator(config, env)
    history = sim.run()
    assert len(history) == 1000
    first = np.mean([s.steps for s in history[:50]])
    last = np.mean([s.steps for s in history[-50:]])
    assert last < first

    trained = sim.run_evaluate(3)
    assert trained.success_rate == 1.0
    assert trained.mean_steps < untrained.mean_steps


def test_build_control_applies_resolutions():
    config = ExperimentConfig(resolutions=[6, 6, 3, 3])
    assert config.resolutions == (6.0, 6.0, 3.0, 3.0)
    problem = Acrobot()
    build_control(config, problem)
    assert np.array_equal(problem.resolutions, [6.0, 6.0, 3.0, 3.0])


def test_resolutions_must_match_the_problem():
    with pytest.raises(ConfigurationError):
        build_control(ExperimentConfig(resolutions=[6.0, 3.0]), Acrobot())
