from __future__ import annotations

from typing import Any, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np

# Capability set the trainer and the evaluator need from an MDP.
# Implementations: corridor_gym.CorridorEnv, tabq.gym_adapter.ToyTextEnvironment


@runtime_checkable
class Environment(Protocol):

    def states(self) -> Sequence[Any]:
        """Finite, ordered sequence of every state."""
        ...

    def actions(self) -> Sequence[Any]:
        """Finite, ordered sequence of every action."""
        ...

    def state_index(self, s) -> int:
        """Dense index of s in [0, n_states)."""
        ...

    def action_index(self, a) -> int:
        """Dense index of a in [0, n_actions)."""
        ...

    def initial_state(self, rng: np.random.Generator):
        ...

    def sample_transition(self, s, a, rng: np.random.Generator) -> Tuple[Any, float]:
        """Return (next_state, reward) for taking a in s."""
        ...

    def is_terminal(self, s) -> bool:
        ...

    def discount(self) -> float:
        ...


def n_states(env: Environment) -> int:
    return len(env.states())


def n_actions(env: Environment) -> int:
    return len(env.actions())
