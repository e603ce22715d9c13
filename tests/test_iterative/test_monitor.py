import numpy as np
import pytest

from coneopt.iterative import IterationCounter, IterationHistory, IterationMonitor


def test_counter_counts_and_resets():
    counter = IterationCounter()
    for value in range(3):
        counter.record(value)
    assert counter.count == 3
    counter.reset()
    assert counter.count == 0


def test_history_keeps_independent_copies():
    history = IterationHistory()
    state = np.array([1.0, 2.0])
    history.record(state)
    state[0] = 99.0
    history.record(state)
    assert len(history) == 2
    assert history[0][0] == 1.0
    assert history[1][0] == 99.0
    history.reset()
    assert history.count == 0


def test_monitor_base_requires_record_and_reset():
    class RecordOnly(IterationMonitor):
        def record(self, state):
            pass

    with pytest.raises(TypeError):
        IterationMonitor()
    with pytest.raises(TypeError):
        RecordOnly()
