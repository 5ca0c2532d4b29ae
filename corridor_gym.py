import numpy as np
import gymnasium as gym
from gymnasium import spaces
from typing import Optional, Tuple

from tabq.errors import EnvironmentStepError

__all__ = ["CorridorEnv", "LEFT", "RIGHT"]

LEFT, RIGHT = -1, 1


class CorridorEnv(gym.Env):
    """
    One-dimensional corridor of states 1..n_states.

    Actions: left (-1) or right (+1), clamped at both ends.
    States 1 and n_states are terminal.
    Reward: r_left on arriving at state 1, r_right on arriving at state n_states, 0 otherwise.

    Works both as a gymnasium env (observations and actions are indices) and
    through the solver-facing contract in tabq.environment (states are 1..n).
    """
    metadata = {"render_modes": []}

    def __init__(
        self,
        *,
        n_states: int = 10, # corridor length, including both terminal ends
        start: Optional[int] = 4, # fixed start state, None for uniform over non-terminal states
        r_left: float = 1.0, # reward for reaching state 1
        r_right: float = 10.0, # reward for reaching state n_states
        gamma: float = 0.9, # discount factor
        horizon: int = 100, # step cap for the gymnasium step() API
        seed: Optional[int] = None,
    ) -> None:
        super().__init__()
        if n_states < 3:
            raise ValueError(f"corridor needs at least 3 states, got {n_states}")
        if start is not None and not 1 < start < n_states:
            raise ValueError(f"start must be a non-terminal state in 2..{n_states - 1}, got {start}")

        self.n_states = n_states
        self.start = start
        self.r_left = float(r_left)
        self.r_right = float(r_right)
        self.gamma = float(gamma)
        self.horizon = horizon
        self._states = tuple(range(1, n_states + 1))
        self._actions = (LEFT, RIGHT)

        # Define action and observation spaces
        self.action_space = spaces.Discrete(len(self._actions))  # 0: left, 1: right
        self.observation_space = spaces.Discrete(n_states)

        self.rng = np.random.default_rng(seed)
        self.current_state = start if start is not None else 2
        self.t = 0

    # ---------- solver contract ----------

    def states(self) -> Tuple[int, ...]:
        return self._states

    def actions(self) -> Tuple[int, ...]:
        return self._actions

    def state_index(self, s) -> int:
        if s not in self._states:
            raise EnvironmentStepError(f"unknown state {s!r}")
        return int(s) - 1

    def action_index(self, a) -> int:
        if a == LEFT:
            return 0
        if a == RIGHT:
            return 1
        raise EnvironmentStepError(f"unknown action {a!r}")

    def initial_state(self, rng: np.random.Generator) -> int:
        if self.start is not None:
            return self.start
        return int(rng.integers(2, self.n_states))

    def sample_transition(self, s, a, rng: np.random.Generator) -> Tuple[int, float]:
        self.state_index(s)
        self.action_index(a)
        if self.is_terminal(s):
            # absorbing
            return s, 0.0
        next_state = min(max(s + a, 1), self.n_states)
        return next_state, self._reward(next_state)

    def is_terminal(self, s) -> bool:
        return s == 1 or s == self.n_states

    def discount(self) -> float:
        return self.gamma

    def _reward(self, next_state: int) -> float:
        if next_state == 1:
            return self.r_left
        if next_state == self.n_states:
            return self.r_right
        return 0.0

    # ---------- gymnasium API ----------

    def reset(self, *, seed: Optional[int] = None, options=None):
        if seed is not None:
            self.rng = np.random.default_rng(seed)
        self.t = 0
        self.current_state = self.initial_state(self.rng)
        return np.int64(self.state_index(self.current_state)), {"state": self.current_state}

    def step(self, action: int):
        assert self.action_space.contains(action)

        next_state, reward = self.sample_transition(self.current_state, self._actions[int(action)], self.rng)
        self.current_state = next_state

        # Advance time step
        self.t += 1
        terminated = self.is_terminal(next_state)
        truncated = not terminated and self.t >= self.horizon

        return np.int64(self.state_index(next_state)), reward, terminated, truncated, {"state": next_state}
