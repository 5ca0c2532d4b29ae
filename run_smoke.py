import numpy as np

from corridor_gym import CorridorEnv
from tabq.exploration_schedules import EpsilonGreedy
from tabq.environment import n_actions, n_states
from tabq.qtable import QTable

env = CorridorEnv(start=4)
q = QTable(n_states(env), n_actions(env))
explore = EpsilonGreedy(env)
rng = np.random.default_rng(0)

state = env.initial_state(rng)
eps = 0.3
for t in range(20):
    action = explore.select_action(state, q, eps, rng)
    next_state, reward = env.sample_transition(state, action, rng)
    done = env.is_terminal(next_state)
    q.update(env.state_index(state), env.action_index(action), reward,
             env.state_index(next_state), done, 0.1, env.discount())
    print(f"t={t:2d} | s={state} | a={action:+d} | r={reward:+.2f}")
    state = env.initial_state(rng) if done else next_state
