import numpy as np


class QTable:
    # Dense [state-index, action-index] table of action-value estimates

    def __init__(
        self,
        n_states: int, # number of discrete states in the environment
        n_actions: int, # number of possible actions
    ):
        # every entry starts at 0.0; unvisited pairs are never touched
        self.values = np.zeros((n_states, n_actions), dtype=float)

    @property
    def shape(self) -> tuple[int, int]:
        return self.values.shape

    @property
    def n_states(self) -> int:
        return self.values.shape[0]

    @property
    def n_actions(self) -> int:
        return self.values.shape[1]

    def update(
        self,
        state_idx: int,
        action_idx: int,
        reward: float,
        next_state_idx: int,
        is_terminal: bool,
        learning_rate: float,
        discount: float
    ) -> float:
        """
        Update the Q-value for the (state, action) pair and return the new value.

        Uses the standard Q-learning rule:
          Q(s,a) <- Q(s,a) + alpha * (reward + gamma * max_a' Q(s',a') - Q(s,a))
        A transition into a terminal state does not bootstrap: target = reward.
        """
        if is_terminal:
            target = reward
        else:
            # estimate of the best future value
            target = reward + discount * np.max(self.values[next_state_idx])
        # temporal-difference error
        td_error = target - self.values[state_idx, action_idx]
        # apply the learning rate
        self.values[state_idx, action_idx] += learning_rate * td_error
        return float(self.values[state_idx, action_idx])

    def best_action_index(self, state_idx: int) -> int:
        # np.argmax returns the first maximal index, so ties go to the lowest action index
        return int(np.argmax(self.values[state_idx]))

    def best_value(self, state_idx: int) -> float:
        return float(np.max(self.values[state_idx]))

    def frozen(self) -> "QTable":
        """
        Return a read-only copy, safe to hand to a policy while training continues.
        """
        snapshot = QTable.__new__(QTable)
        snapshot.values = self.values.copy()
        snapshot.values.setflags(write=False)
        return snapshot

    @classmethod
    def from_array(cls, values) -> "QTable":
        arr = np.array(values, dtype=float)
        if arr.ndim != 2:
            raise ValueError(f"Q-table must be 2D, got shape {arr.shape}")
        table = cls(arr.shape[0], arr.shape[1])
        table.values[:] = arr
        return table
