from __future__ import annotations

from typing import Tuple

import gymnasium as gym
import numpy as np

from tabq.errors import EnvironmentStepError

# Exposes gymnasium toy-text environments (FrozenLake, CliffWalking, Taxi) through
# the solver contract, using their explicit transition table
#   P[s][a] = [(prob, next_state, reward, done), ...]


class ToyTextEnvironment:

    def __init__(self, env: gym.Env, gamma: float = 0.99):
        base = env.unwrapped
        if not hasattr(base, "P"):
            raise TypeError(f"{type(base).__name__} has no transition table P")
        self.env = env
        self.P = base.P
        self.n_states = int(base.observation_space.n)
        self.n_actions = int(base.action_space.n)
        self.gamma = float(gamma)

        isd = getattr(base, "initial_state_distrib", None)
        if isd is None:
            isd = np.full(self.n_states, 1.0 / self.n_states)
        self.initial_state_distrib = np.asarray(isd, dtype=float)

        # any state some transition ends an episode in
        self.terminal_states = frozenset(
            int(ns)
            for transitions in self.P.values()
            for outcomes in transitions.values()
            for _, ns, _, done in outcomes
            if done
        )
        self._states = tuple(range(self.n_states))
        self._actions = tuple(range(self.n_actions))

    @classmethod
    def from_id(cls, env_id: str, gamma: float = 0.99, **kwargs) -> "ToyTextEnvironment":
        """
        e.g. ToyTextEnvironment.from_id("FrozenLake-v1", is_slippery=False)
        """
        return cls(gym.make(env_id, **kwargs), gamma=gamma)

    def states(self) -> Tuple[int, ...]:
        return self._states

    def actions(self) -> Tuple[int, ...]:
        return self._actions

    def state_index(self, s) -> int:
        if not 0 <= int(s) < self.n_states:
            raise EnvironmentStepError(f"unknown state {s!r}")
        return int(s)

    def action_index(self, a) -> int:
        if not 0 <= int(a) < self.n_actions:
            raise EnvironmentStepError(f"unknown action {a!r}")
        return int(a)

    def initial_state(self, rng: np.random.Generator) -> int:
        return int(rng.choice(self.n_states, p=self.initial_state_distrib))

    def sample_transition(self, s, a, rng: np.random.Generator) -> Tuple[int, float]:
        try:
            outcomes = self.P[self.state_index(s)][self.action_index(a)]
        except KeyError:
            raise EnvironmentStepError(f"no transition for state {s!r}, action {a!r}") from None
        if len(outcomes) == 1:
            _, ns, reward, _ = outcomes[0]
        else:
            probs = np.array([o[0] for o in outcomes], dtype=float)
            _, ns, reward, _ = outcomes[int(rng.choice(len(outcomes), p=probs / probs.sum()))]
        return int(ns), float(reward)

    def is_terminal(self, s) -> bool:
        return int(s) in self.terminal_states

    def discount(self) -> float:
        return self.gamma

    def close(self) -> None:
        self.env.close()
