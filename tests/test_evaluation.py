import numpy as np
import pytest

from corridor_gym import CorridorEnv, LEFT, RIGHT
from tabq.errors import ConfigurationError, EvaluationError
from tabq.evaluation import evaluate, rollout, rollout_returns
from tabq.policies import GreedyPolicy, RandomPolicy
from tabq.qtable import QTable


class Always:
    def __init__(self, action):
        self._action = action

    def action(self, state):
        return self._action


def test_discounting_starts_at_step_zero():
    env = CorridorEnv(start=4)
    # 4 -> 10 takes six steps, the reward arrives on the sixth (t=5)
    total = rollout(Always(RIGHT), env, max_steps=10, discount=0.9, rng=np.random.default_rng(0))
    assert total == pytest.approx(10.0 * 0.9 ** 5)
    total = rollout(Always(LEFT), env, max_steps=10, discount=0.9, rng=np.random.default_rng(0))
    assert total == pytest.approx(1.0 * 0.9 ** 2)


def test_step_cap_truncates_rollout():
    env = CorridorEnv(start=4)
    assert rollout(Always(RIGHT), env, max_steps=5, discount=0.9, rng=np.random.default_rng(0)) == 0.0


def test_deterministic_policy_has_zero_spread():
    env = CorridorEnv(start=4)
    mean, std = evaluate(Always(RIGHT), env, 25, 10, 0.9, np.random.default_rng(0))
    assert mean == pytest.approx(10.0 * 0.9 ** 5)
    assert std == 0.0


def test_population_standard_deviation():
    env = CorridorEnv(start=None)
    rng_a, rng_b = np.random.default_rng(3), np.random.default_rng(3)
    totals = rollout_returns(Always(RIGHT), env, 40, 20, 0.9, rng_a)
    mean, std = evaluate(Always(RIGHT), env, 40, 20, 0.9, rng_b)
    assert mean == pytest.approx(totals.mean())
    assert std == pytest.approx(np.std(totals, ddof=0))


def test_same_seed_same_result():
    env = CorridorEnv(start=None)
    q = QTable(10, 2)
    q.values[:5, 0] = 1.0 # left half goes left, right half goes right
    policy = GreedyPolicy.from_environment(q, env)
    first = evaluate(policy, env, 100, 10, 0.9, np.random.default_rng(11))
    second = evaluate(policy, env, 100, 10, 0.9, np.random.default_rng(11))
    assert first == second


def test_random_policy_same_seed_same_result():
    env = CorridorEnv(start=4)
    results = [
        evaluate(RandomPolicy(env.actions(), np.random.default_rng(1)), env, 100, 10, 0.9,
                 np.random.default_rng(2))
        for _ in range(2)
    ]
    assert results[0] == results[1]


def test_unknown_state_abandons_evaluation():
    # policy trained on a 10-state corridor, evaluated on a longer one
    narrow = GreedyPolicy(QTable(10, 2), states=list(range(1, 11)), actions=(LEFT, RIGHT))
    with pytest.raises(EvaluationError):
        evaluate(narrow, CorridorEnv(n_states=12, start=11), 5, 10, 0.9, np.random.default_rng(0))


@pytest.mark.parametrize("n_episodes, max_steps", [(0, 10), (5, 0)])
def test_bad_counts(n_episodes, max_steps):
    with pytest.raises(ConfigurationError):
        evaluate(Always(RIGHT), CorridorEnv(), n_episodes, max_steps, 0.9, np.random.default_rng(0))
