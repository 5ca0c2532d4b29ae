from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

from tabq.environment import Environment, n_actions, n_states
from tabq.errors import ConfigurationError, EnvironmentStepError
from tabq.evaluation import evaluate
from tabq.exploration_schedules import EpsilonGreedy, check_epsilon, fixed_eps_schedule
from tabq.policies import GreedyPolicy
from tabq.qtable import QTable

log = logging.getLogger(__name__)


def check_discount(gamma: float) -> float:
    if not 0.0 <= gamma < 1.0:
        raise ConfigurationError(f"discount must lie in [0, 1), got {gamma}")
    return float(gamma)


@dataclass
class TrainerConfig:
    n_episodes: int = 100 # number of training episodes
    max_steps: int = 100 # step cap per training episode
    alpha: float = 0.1 # learning rate
    eval_every: int = 10 # run an evaluation checkpoint every N training episodes
    n_eval_traj: int = 100 # number of rollouts per checkpoint (0 disables checkpoints)
    eval_max_steps: Optional[int] = None # step cap per evaluation rollout, defaults to max_steps

    def __post_init__(self):
        if self.n_episodes < 1:
            raise ConfigurationError(f"n_episodes must be >= 1, got {self.n_episodes}")
        if self.max_steps < 1:
            raise ConfigurationError(f"max_steps must be >= 1, got {self.max_steps}")
        if not 0.0 < self.alpha <= 1.0:
            raise ConfigurationError(f"alpha must lie in (0, 1], got {self.alpha}")
        if self.eval_every < 1:
            raise ConfigurationError(f"eval_every must be >= 1, got {self.eval_every}")
        if self.n_eval_traj < 0:
            raise ConfigurationError(f"n_eval_traj must be >= 0, got {self.n_eval_traj}")
        if self.eval_max_steps is None:
            self.eval_max_steps = self.max_steps
        elif self.eval_max_steps < 1:
            raise ConfigurationError(f"eval_max_steps must be >= 1, got {self.eval_max_steps}")


@dataclass(frozen=True)
class TrainingStats:
    episode: int # completed training episodes at this checkpoint
    mean_return: float
    std_return: float


@dataclass(frozen=True)
class EpisodeRecord:
    episode: int
    ret: float # undiscounted sum of rewards
    discounted_return: float
    steps: int
    exploration_steps: int
    epsilon: float # epsilon at the first step of the episode
    terminated: bool # False when the step cap truncated the episode


class QLearner:
    """
    Tabular Q-learning trainer.

    Runs n_episodes episodes against env, selecting actions with an exploration
    policy (epsilon-greedy by default) and updating a QTable after every step.
    Every eval_every episodes the current greedy policy is evaluated on a random
    stream of its own, so checkpoints never change what training does.
    """

    def __init__(
        self,
        env: Environment,
        config: TrainerConfig | None = None,
        exploration: EpsilonGreedy | None = None, # action selector, defaults to EpsilonGreedy(env)
        eps_fn: Callable[[int, int], float] | None = None, # epsilon schedule fn(episode, t_step)
        seed: int | None = None # random seed for reproducibility
    ):
        self.env = env
        self.config = config or TrainerConfig()
        self.exploration = exploration or EpsilonGreedy(env)
        self.eps_fn = eps_fn or fixed_eps_schedule(0.1)

        self.gamma = check_discount(float(env.discount()))
        # schedules are checked at both ends so a bad one fails here, not mid-run
        check_epsilon(self.eps_fn(0, 0), "initial epsilon")
        check_epsilon(self.eps_fn(self.config.n_episodes - 1, self.config.max_steps - 1), "final epsilon")

        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self.q_table = QTable(n_states(env), n_actions(env))
        self.stats: List[TrainingStats] = [] # one row per evaluation checkpoint
        self.episodes: List[EpisodeRecord] = [] # one row per training episode
        self.status = "idle"

    def _eval_rng(self, episode: int) -> np.random.Generator:
        # unique seed for each eval block, independent of the training stream
        if self.seed is None:
            return np.random.default_rng()
        return np.random.default_rng(self.seed * 10_000 + episode * 100)

    def run_episode(self, episode: int) -> EpisodeRecord:
        """
        Run one training episode (0-based index) and update the Q-table in place.
        """
        env, q, alpha = self.env, self.q_table, self.config.alpha
        self.exploration.reset()
        state = env.initial_state(self.rng)
        ep_return = 0.0
        disc_return = 0.0
        exploration_steps = 0
        first_eps = float(self.eps_fn(episode, 0))
        terminated = env.is_terminal(state)
        step_idx = 0
        while not terminated and step_idx < self.config.max_steps:
            epsilon = self.eps_fn(episode, step_idx)
            action = self.exploration.select_action(state, q, epsilon, self.rng)
            if self.exploration.last_explored:
                exploration_steps += 1

            next_state, reward = env.sample_transition(state, action, self.rng)
            reward = float(reward)
            if not np.isfinite(reward):
                raise EnvironmentStepError(
                    f"non-finite reward {reward} for state {state!r}, action {action!r}"
                )
            terminated = env.is_terminal(next_state)
            q.update(
                env.state_index(state),
                env.action_index(action),
                reward,
                env.state_index(next_state),
                terminated,
                alpha,
                self.gamma,
            )
            ep_return += reward
            disc_return += self.gamma ** step_idx * reward
            state = next_state
            step_idx += 1

        return EpisodeRecord(
            episode=episode + 1,
            ret=ep_return,
            discounted_return=disc_return,
            steps=step_idx,
            exploration_steps=exploration_steps,
            epsilon=first_eps,
            terminated=bool(terminated),
        )

    def greedy_policy(self) -> GreedyPolicy:
        """Snapshot of the current Q-table as a greedy policy."""
        return GreedyPolicy.from_environment(self.q_table, self.env)

    def checkpoint(self, episode: int) -> TrainingStats:
        cfg = self.config
        mean, std = evaluate(
            self.greedy_policy(),
            self.env,
            n_episodes=cfg.n_eval_traj,
            max_steps=cfg.eval_max_steps,
            discount=self.gamma,
            rng=self._eval_rng(episode),
        )
        row = TrainingStats(episode=episode, mean_return=mean, std_return=std)
        self.stats.append(row)
        log.info("episode %d/%d: greedy return %.4f +/- %.4f", episode, cfg.n_episodes, mean, std)
        return row

    def train(
        self,
        progress: Callable[[int, int], None] | None = None, # called as progress(done, total) after every episode
        should_stop: Callable[[], bool] | None = None # cooperative cancellation, checked between episodes
    ) -> GreedyPolicy:
        """
        Run the whole training loop and return the final greedy policy.

        Environment errors abort the run and propagate to the caller; the Q-table
        is left as it was when the error happened and should be discarded.
        """
        cfg = self.config
        self.status = "running"
        for ep in range(cfg.n_episodes):
            if should_stop is not None and should_stop():
                log.info("training stopped after %d episodes", ep)
                break
            try:
                record = self.run_episode(ep)
            except Exception:
                # not retried; the partly updated table is discarded by the caller
                self.status = "failed"
                log.error("environment failed during episode %d, aborting training", ep + 1)
                raise
            self.episodes.append(record)
            log.debug("episode %d: return=%.4f steps=%d", record.episode, record.ret, record.steps)

            if (ep + 1) % cfg.eval_every == 0 and cfg.n_eval_traj > 0:
                self.checkpoint(ep + 1)
            if progress is not None:
                progress(ep + 1, cfg.n_episodes)

        self.status = "done"
        return self.greedy_policy()
