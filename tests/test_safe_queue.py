import threading
from dataclasses import dataclass

import pytest

from sensorhub.safe_queue import SafeQueue


@dataclass
class _Msg:
    sensor_id: str
    value: float
    timestamp: int
    sequence_num: int


def test_producer_consumer_preserves_order():
    queue = SafeQueue()
    received = []

    def produce():
        for i in range(10):
            queue.push(_Msg("TestSensor", i * 1.1, 1000 + i, i))

    def consume():
        while len(received) < 10:
            item = queue.pop()
            if item is not None:
                received.append(item)

    producer = threading.Thread(target=produce)
    consumer = threading.Thread(target=consume)
    producer.start()
    consumer.start()
    producer.join(timeout=5)
    consumer.join(timeout=5)

    assert [m.sensor_id for m in received] == ["TestSensor"] * 10
    assert [m.sequence_num for m in received] == list(range(10))
    assert [m.timestamp for m in received] == [1000 + i for i in range(10)]
    assert len(queue) == 0
    assert queue.pop() is None


def test_pop_on_empty_returns_none():
    queue = SafeQueue()
    assert queue.pop() is None


def test_len_and_bool_follow_contents():
    queue = SafeQueue()
    assert len(queue) == 0
    assert not queue
    queue.push(1)
    queue.push(2)
    assert len(queue) == 2
    assert queue
    assert queue.pop() == 1
    assert queue.pop() == 2
    assert not queue


def test_describe_empty():
    assert SafeQueue().describe() == "Queue is empty"


def test_describe_lists_values_without_consuming():
    queue = SafeQueue()
    queue.push(_Msg("a", 1.5, 0, 0))
    queue.push(_Msg("b", 2.5, 0, 1))
    assert queue.describe() == "Queue elements: 1.5 2.5"
    assert len(queue) == 2


@pytest.mark.parametrize("workers", [2, 4])
def test_concurrent_pushes_are_all_kept(workers):
    queue = SafeQueue()

    def produce():
        for i in range(250):
            queue.push(i)

    threads = [threading.Thread(target=produce) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(queue) == 250 * workers