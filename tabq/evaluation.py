from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

from tabq.environment import Environment
from tabq.errors import ConfigurationError

log = logging.getLogger(__name__)


def rollout(policy, env: Environment, max_steps: int, discount: float, rng: np.random.Generator) -> float:
    """
    Run one episode under policy and return its total discounted reward.
    """
    state = env.initial_state(rng)
    total = 0.0
    for t in range(max_steps):
        if env.is_terminal(state):
            break
        action = policy.action(state)
        state, reward = env.sample_transition(state, action, rng)
        total += discount ** t * reward # first reward is undiscounted
    return total


def rollout_returns(policy,
                    env: Environment,
                    n_episodes: int, # number of episodes to evaluate
                    max_steps: int, # maximum number of steps per episode
                    discount: float,
                    rng: np.random.Generator) -> np.ndarray:
    """
    Discounted return of each of n_episodes independent rollouts, in order.

    The policy is never asked to learn; any error it or the environment raises
    abandons the remaining rollouts.
    """
    if n_episodes < 1:
        raise ConfigurationError(f"n_episodes must be >= 1, got {n_episodes}")
    if max_steps < 1:
        raise ConfigurationError(f"max_steps must be >= 1, got {max_steps}")
    totals = np.empty(n_episodes, dtype=float)
    for i in range(n_episodes):
        totals[i] = rollout(policy, env, max_steps, discount, rng)
    return totals


def evaluate(policy,
             env: Environment,
             n_episodes: int,
             max_steps: int,
             discount: float,
             rng: np.random.Generator) -> Tuple[float, float]:
    """
    Evaluate a fixed policy over n_episodes rollouts.

    Returns the mean and the population standard deviation (ddof=0) of the
    discounted returns.
    """
    totals = rollout_returns(policy, env, n_episodes, max_steps, discount, rng)
    mean, std = float(np.mean(totals)), float(np.std(totals))
    log.debug("evaluated %d rollouts: mean=%.4f std=%.4f", n_episodes, mean, std)
    return mean, std
