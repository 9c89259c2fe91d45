import threading
from unittest.mock import Mock

from taskpanel.core.compositor.event_reader import EventReader


def make_reader(scheduler, ipc):
    on_event = Mock()
    reader = EventReader(on_event, scheduler, ipc_factory=lambda: ipc, retry_interval=0)
    return reader, on_event


def test_connect_starts_watching():
    ipc = Mock()
    ipc.is_connected.return_value = True
    reader, _ = make_reader(None, ipc)

    assert reader.connect()
    ipc.watch.assert_called_once_with()


def test_connect_without_compositor():
    ipc = Mock()
    ipc.is_connected.return_value = False
    reader, _ = make_reader(None, ipc)

    assert not reader.connect()
    ipc.watch.assert_not_called()


def test_events_are_delivered_on_the_main_loop(scheduler):
    ipc = Mock()
    ipc.is_connected.return_value = True
    ipc.read_next_event.return_value = {"event": "view-mapped"}
    reader, on_event = make_reader(scheduler, ipc)
    reader.connect()

    assert reader.read_once()
    on_event.assert_not_called()

    scheduler.run_idle()
    on_event.assert_called_once_with({"event": "view-mapped"})


def test_read_once_reports_lost_connection(scheduler):
    ipc = Mock()
    ipc.is_connected.return_value = True
    ipc.read_next_event.return_value = None
    reader, _ = make_reader(scheduler, ipc)

    assert not reader.read_once()

    reader.connect()
    assert not reader.read_once()

    ipc.is_connected.return_value = False
    assert not reader.read_once()
    assert scheduler.idle == []


def test_stop_closes_the_connection():
    ipc = Mock()
    ipc.is_connected.return_value = True
    reader, _ = make_reader(None, ipc)
    reader.connect()

    reader.stop()

    ipc.close.assert_called_once_with()


def test_connection_opened_after_stop_is_closed(scheduler):
    ipc = Mock()
    ipc.is_connected.return_value = True
    on_event = Mock()

    def open_while_stopping():
        reader.stop()
        return ipc

    reader = EventReader(
        on_event, scheduler, ipc_factory=open_while_stopping, retry_interval=0
    )
    reader._running.set()

    reader.read_events()

    ipc.close.assert_called_once_with()
    ipc.read_next_event.assert_not_called()


def test_stop_waits_for_the_reader_thread(scheduler):
    released = threading.Event()
    ipc = Mock()
    ipc.is_connected.return_value = True
    ipc.read_next_event.side_effect = lambda: released.wait(5) and None
    ipc.close.side_effect = released.set
    reader, _ = make_reader(scheduler, ipc)

    reader.start()
    thread = reader._thread
    reader.stop()

    assert not thread.is_alive()
