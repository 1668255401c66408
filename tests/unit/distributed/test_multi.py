import threading
import time

import pytest

from bcbio_recall.distributed import multi


def _slow_square(x, delay):
    time.sleep(delay)
    return x * x


def test_runner_preserves_input_order():
    run_parallel = multi.runner(4)
    items = [(1, 0.05), (2, 0.0), (3, 0.03), (4, 0.01)]
    assert run_parallel(_slow_square, items) == [1, 4, 9, 16]


def test_runner_serial_with_single_core():
    thread_ids = []

    def record(x):
        thread_ids.append(threading.current_thread().ident)
        return x
    run_parallel = multi.runner(1)
    assert run_parallel(record, [(1,), (2,)]) == [1, 2]
    assert set(thread_ids) == set([threading.current_thread().ident])


def test_runner_empty_items():
    assert multi.runner(2)(_slow_square, []) == []


def test_runner_minimum_one_core():
    assert multi.runner(0).cores == 1


def test_runner_propagates_failures():
    def fail(x):
        if x == 2:
            raise ValueError('failed on %s' % x)
        return x
    with pytest.raises(ValueError):
        multi.runner(2)(fail, [(1,), (2,), (3,)])
