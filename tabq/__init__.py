"""Tabular Q-learning: Q-table, exploration, trainer, greedy policy and rollout evaluation."""
