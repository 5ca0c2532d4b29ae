import numpy as np
import pytest

from corridor_gym import CorridorEnv, LEFT, RIGHT
from tabq.errors import ConfigurationError
from tabq.exploration_schedules import (
    EZGreedy,
    EpsilonGreedy,
    annealed_linear,
    eps_for_ez,
    fixed_eps_schedule,
)
from tabq.qtable import QTable


@pytest.fixture
def env():
    return CorridorEnv()


def _q_prefers_right(env):
    q = QTable(len(env.states()), len(env.actions()))
    q.values[:, 1] = 1.0
    return q


def test_eps_zero_always_greedy(env):
    q = _q_prefers_right(env)
    policy = EpsilonGreedy(env)
    rng = np.random.default_rng(0)
    for s in range(2, 10):
        for _ in range(20):
            assert policy.select_action(s, q, 0.0, rng) == RIGHT
            assert not policy.last_explored


def test_eps_zero_breaks_ties_on_first_action(env):
    q = QTable(len(env.states()), len(env.actions()))
    policy = EpsilonGreedy(env)
    rng = np.random.default_rng(1)
    assert all(policy.select_action(5, q, 0.0, rng) == LEFT for _ in range(50))


def test_eps_one_is_roughly_uniform(env):
    q = _q_prefers_right(env)
    policy = EpsilonGreedy(env)
    rng = np.random.default_rng(42)
    draws = [policy.select_action(5, q, 1.0, rng) for _ in range(4000)]
    frac_left = draws.count(LEFT) / len(draws)
    assert 0.45 < frac_left < 0.55


def test_same_seed_same_actions(env):
    q = _q_prefers_right(env)
    a = [EpsilonGreedy(env).select_action(3, q, 0.5, np.random.default_rng(7)) for _ in range(5)]
    b = [EpsilonGreedy(env).select_action(3, q, 0.5, np.random.default_rng(7)) for _ in range(5)]
    assert a == b


@pytest.mark.parametrize("eps", [-0.1, 1.5])
def test_epsilon_out_of_range(env, eps):
    q = _q_prefers_right(env)
    with pytest.raises(ConfigurationError):
        EpsilonGreedy(env).select_action(3, q, eps, np.random.default_rng(0))
    with pytest.raises(ConfigurationError):
        fixed_eps_schedule(eps)
    with pytest.raises(ConfigurationError):
        annealed_linear(eps, 0.1, horizon=10, n_episodes=10)


def test_configuration_error_is_a_value_error():
    with pytest.raises(ValueError):
        fixed_eps_schedule(2.0)


def test_annealed_linear_endpoints():
    fn = annealed_linear(1.0, 0.0, horizon=10, n_episodes=10)
    assert fn(0, 0) == 1.0
    assert fn(5, 0) == pytest.approx(0.5)
    assert fn(10, 0) == 0.0
    assert fn(50, 3) == 0.0 # clipped past the end


def test_fixed_schedule_is_constant():
    fn = fixed_eps_schedule(0.25)
    assert fn(0, 0) == fn(99, 99) == 0.25


def test_eps_for_ez():
    assert eps_for_ez(0.1, 1) == pytest.approx(0.1)
    assert eps_for_ez(0.1, 4) == pytest.approx(0.1 / (4 - 0.3))
    with pytest.raises(ConfigurationError):
        eps_for_ez(0.1, 0)


def test_ez_greedy_repeats_exploratory_action(env):
    q = _q_prefers_right(env)
    policy = EZGreedy(env, k=4)
    rng = np.random.default_rng(3)
    first = policy.select_action(5, q, 1.0, rng)
    # the next k-1 calls repeat the action without looking at epsilon or Q
    repeats = [policy.select_action(5, q, 0.0, rng) for _ in range(3)]
    assert repeats == [first] * 3
    assert policy.last_explored
    assert policy.select_action(5, q, 0.0, rng) == RIGHT


def test_ez_greedy_reset_clears_repetition(env):
    q = _q_prefers_right(env)
    policy = EZGreedy(env, k=10)
    rng = np.random.default_rng(3)
    policy.select_action(5, q, 1.0, rng)
    policy.reset()
    assert policy.select_action(5, q, 0.0, rng) == RIGHT


def test_ez_greedy_rejects_bad_k(env):
    with pytest.raises(ConfigurationError):
        EZGreedy(env, k=0)
