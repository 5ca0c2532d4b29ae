import numpy as np

from tabq.environment import Environment
from tabq.errors import ConfigurationError
from tabq.qtable import QTable

# Provides annealed and constant epsilon schedules, plus epsilon-greedy and EZ-greedy action selection


def check_epsilon(eps: float, name: str = "epsilon") -> float:
    if not 0.0 <= eps <= 1.0:
        raise ConfigurationError(f"{name} must lie in [0, 1], got {eps}")
    return float(eps)


def annealed_linear(eps_start: float, eps_end: float, horizon: int, n_episodes: int):
    """
    Linear annealing from eps_start -> eps_end over total training steps.
    Usage: eps_fn = annealed_linear(1.0, 0.05, horizon=100, n_episodes=500)
           eps = eps_fn(ep, t_step)
    """
    check_epsilon(eps_start, "eps_start")
    check_epsilon(eps_end, "eps_end")
    total_steps = max(1, horizon * n_episodes)
    def fn(episode: int, t_step: int) -> float:
        # Calculate the current step in the total training process
        g = episode * horizon + t_step
        frac = min(max(g / total_steps, 0.0), 1.0)
        return eps_start + (eps_end - eps_start) * frac
    return fn


def fixed_eps_schedule(eps: float):
    """
    Create a function returning a fixed exploration rate.
    """
    check_epsilon(eps, "eps")
    return lambda episode, t_step: eps


def eps_for_ez(eps: float, k: int) -> float:
    """
    Scale eps so EZ-greedy spends the same fraction of steps exploring as plain
    epsilon-greedy does with eps.
    """
    check_epsilon(eps, "eps")
    if k < 1:
        raise ConfigurationError(f"k must be >= 1, got {k}")
    return eps / (k - eps * (k - 1))


class EpsilonGreedy:
    """
    With probability epsilon pick a uniformly random action, otherwise the greedy one.
    """
    def __init__(self, env: Environment):
        self.env = env
        self.actions = list(env.actions())
        self.last_explored = False # whether the last call picked a random action

    def reset(self) -> None:
        # stateless between episodes
        self.last_explored = False

    def select_action(self, state, q_table: QTable, epsilon: float, rng: np.random.Generator):
        check_epsilon(epsilon)
        s = self.env.state_index(state)
        # one draw per call, whatever epsilon is
        if rng.random() < epsilon:
            self.last_explored = True
            return self.actions[int(rng.integers(0, len(self.actions)))] # random action
        self.last_explored = False
        # choose action with highest Q-value
        return self.actions[q_table.best_action_index(s)]


class EZGreedy(EpsilonGreedy):
    """
    Keeps an exploratory action active for a fixed number of steps.
    """
    def __init__(self, env: Environment, k: int):
        super().__init__(env)
        if k < 1:
            raise ConfigurationError(f"k must be >= 1, got {k}")
        # number of steps to repeat a chosen action
        self.k = k # repetition phase length
        self.steps_left = 0
        self.last_action = None

    def reset(self) -> None:
        # repetition never carries over into the next episode
        super().reset()
        self.steps_left = 0
        self.last_action = None

    def select_action(self, state, q_table: QTable, epsilon: float, rng: np.random.Generator):
        check_epsilon(epsilon)
        # if in repetition phase, use previous action
        if self.steps_left > 0:
            self.steps_left -= 1
            self.last_explored = True
            return self.last_action

        # decide whether to explore new action
        if rng.random() < epsilon:
            action = self.actions[int(rng.integers(0, len(self.actions)))] # random action
            self.last_action = action
            self.steps_left = self.k - 1
            self.last_explored = True
            return action

        self.last_explored = False
        return self.actions[q_table.best_action_index(self.env.state_index(state))]
