from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from tabq.environment import Environment
from tabq.errors import EvaluationError
from tabq.qtable import QTable


class GreedyPolicy:
    """
    Frozen Q-table answering "best action for s" and "value of s".

    Holds its own copy of the state and action orderings, so it can be saved and
    reloaded without the environment that produced it.
    """

    def __init__(self, q_table: QTable, states: Sequence[Any], actions: Sequence[Any]):
        if q_table.shape != (len(states), len(actions)):
            raise ValueError(
                f"Q-table shape {q_table.shape} does not match "
                f"{len(states)} states x {len(actions)} actions"
            )
        self.q_table = q_table.frozen()
        self.states = tuple(states)
        self.actions = tuple(actions)
        self._index = {s: i for i, s in enumerate(self.states)}

    @classmethod
    def from_environment(cls, q_table: QTable, env: Environment) -> "GreedyPolicy":
        return cls(q_table, env.states(), env.actions())

    def _state_idx(self, state) -> int:
        try:
            return self._index[state]
        except (KeyError, TypeError):
            raise EvaluationError(f"unknown state {state!r}") from None

    def action(self, state):
        return self.actions[self.q_table.best_action_index(self._state_idx(state))]

    def value(self, state) -> float:
        return self.q_table.best_value(self._state_idx(state))

    def to_dict(self) -> dict:
        """
        Plain-python form of the policy (JSON friendly for int/str states and actions).
        """
        return {
            "states": list(self.states),
            "actions": list(self.actions),
            "q": self.q_table.values.tolist(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GreedyPolicy":
        return cls(QTable.from_array(data["q"]), data["states"], data["actions"])


class RandomPolicy:
    """
    Uniformly random baseline; ignores the state.
    """

    def __init__(self, actions: Sequence[Any], rng: np.random.Generator):
        self.actions = tuple(actions)
        self.rng = rng

    def action(self, state):
        return self.actions[int(self.rng.integers(0, len(self.actions)))]
