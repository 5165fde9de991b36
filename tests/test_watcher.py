import queue
import threading

import pytest

from mediacat.watcher import (
    CREATED,
    MOVED,
    DirectoryEvent,
    DirectoryEvents,
    _QueueingHandler,
    wait_until_stable,
)


class Event:
    def __init__(self, src, dest=None, is_directory=False):
        self.src_path = str(src)
        self.dest_path = str(dest) if dest else ""
        self.is_directory = is_directory


def test_handler_queues_created_and_moved(tmp_path):
    events = queue.Queue()
    handler = _QueueingHandler(events)
    handler.on_created(Event(tmp_path / "new"))
    handler.on_moved(Event(tmp_path / "a.part", tmp_path / "a"))
    assert events.get_nowait() == DirectoryEvent(CREATED, tmp_path / "new")
    assert events.get_nowait() == DirectoryEvent(MOVED, tmp_path / "a")


def test_iteration_ends_on_stop(tmp_path):
    stream = DirectoryEvents(tmp_path, poll_interval=0.01)
    stream._events.put(DirectoryEvent(CREATED, tmp_path / "x"))
    seen = []
    for event in stream:
        seen.append(event)
        stream.stop()
    assert seen == [DirectoryEvent(CREATED, tmp_path / "x")]


def test_start_requires_existing_folder(tmp_path):
    with pytest.raises(FileNotFoundError):
        DirectoryEvents(tmp_path / "missing").start()


def test_live_events_are_delivered(tmp_path):
    received = []
    with DirectoryEvents(tmp_path, poll_interval=0.05) as stream:
        def consume():
            for event in stream:
                received.append(event)
                stream.stop()

        consumer = threading.Thread(target=consume)
        consumer.start()
        (tmp_path / "Film").mkdir()
        consumer.join(timeout=10)
    assert received
    assert received[0].path == tmp_path / "Film"


def test_wait_until_stable_without_delay(tmp_path):
    assert wait_until_stable(tmp_path, 0)
    assert not wait_until_stable(tmp_path / "gone", 0)


def test_wait_until_stable_with_delay(tmp_path):
    (tmp_path / "a.mkv").write_text("x")
    assert wait_until_stable(tmp_path, 1, interval=0.05)


def test_wait_until_stable_honours_stop(tmp_path):
    stop = threading.Event()
    stop.set()
    assert not wait_until_stable(tmp_path, 60, stop=stop)
