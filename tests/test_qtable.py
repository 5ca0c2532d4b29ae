import numpy as np
import pytest

from tabq.qtable import QTable


def test_starts_at_zero_with_env_shape():
    q = QTable(10, 2)
    assert q.shape == (10, 2)
    assert np.all(q.values == 0.0)


def test_unvisited_pairs_stay_zero():
    q = QTable(5, 3)
    q.update(1, 2, 1.0, 2, False, 0.5, 0.9)
    q.update(2, 0, -3.0, 3, False, 0.5, 0.9)
    q.update(1, 2, 4.0, 4, True, 0.5, 0.9)
    visited = {(1, 2), (2, 0)}
    for s in range(5):
        for a in range(3):
            if (s, a) not in visited:
                assert q.values[s, a] == 0.0


def test_terminal_transition_does_not_bootstrap():
    q = QTable(3, 2)
    q.values[2] = [100.0, 50.0] # large continuation that must be ignored
    q.values[1, 1] = 2.0
    alpha, reward = 0.1, 10.0
    new = q.update(1, 1, reward, 2, True, alpha, 0.9)
    assert new == 2.0 + alpha * (reward - 2.0)
    assert q.values[1, 1] == new


def test_non_terminal_transition_bootstraps_on_best_next_value():
    q = QTable(3, 2)
    q.values[2] = [4.0, 6.0]
    new = q.update(0, 0, 1.0, 2, False, 0.5, 0.9)
    assert new == pytest.approx(0.5 * (1.0 + 0.9 * 6.0))


def test_full_learning_rate_replaces_estimate():
    q = QTable(2, 2)
    q.values[0, 1] = 7.0
    assert q.update(0, 1, 3.0, 1, True, 1.0, 0.9) == 3.0


def test_best_action_ties_go_to_first_index():
    q = QTable(2, 3)
    assert q.best_action_index(0) == 0
    q.values[1] = [1.0, 5.0, 5.0]
    assert q.best_action_index(1) == 1
    assert q.best_value(1) == 5.0


def test_frozen_copy_is_read_only_and_detached():
    q = QTable(2, 2)
    q.values[0, 0] = 1.0
    snap = q.frozen()
    with pytest.raises(ValueError):
        snap.values[0, 0] = 2.0
    q.update(0, 0, 5.0, 1, True, 1.0, 0.9)
    assert snap.values[0, 0] == 1.0


def test_from_array_rejects_non_matrix():
    with pytest.raises(ValueError):
        QTable.from_array([1.0, 2.0])
    assert QTable.from_array([[1.0, 2.0]]).shape == (1, 2)
