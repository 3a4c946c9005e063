"""Tests for discovery/alerts.py"""
import threading

import pytest

from discovery.alerts import AlertChannel


class TestAlertChannel:
    """Tests for the bounded drop-new alert queue."""

    def test_publish_and_get(self):
        alerts = AlertChannel()
        assert alerts.publish("NEW DEVICE: 192.168.1.42") is True
        assert alerts.get(timeout=0) == "NEW DEVICE: 192.168.1.42"

    def test_get_empty_returns_none(self):
        assert AlertChannel().get(timeout=0) is None
        assert AlertChannel().get(timeout=0.01) is None

    def test_full_queue_drops_newest(self):
        alerts = AlertChannel(maxsize=10)
        for i in range(15):
            alerts.publish(f"NEW DEVICE: 10.0.0.{i}")

        assert len(alerts) == 10
        assert alerts.dropped == 5
        drained = alerts.drain()
        assert drained[0] == "NEW DEVICE: 10.0.0.0"
        assert drained[-1] == "NEW DEVICE: 10.0.0.9"

    def test_publish_never_blocks(self):
        alerts = AlertChannel(maxsize=1)
        alerts.publish("first")
        done = threading.Event()

        def producer():
            alerts.publish("second")
            done.set()

        threading.Thread(target=producer).start()
        assert done.wait(1.0)

    def test_drain_empties_queue(self):
        alerts = AlertChannel()
        alerts.publish("a")
        alerts.publish("b")
        assert alerts.drain() == ["a", "b"]
        assert alerts.drain() == []

    def test_iteration_blocks_until_alert(self):
        alerts = AlertChannel()
        received = []

        def consumer():
            for message in alerts:
                received.append(message)
                break

        t = threading.Thread(target=consumer, daemon=True)
        t.start()
        t.join(0.05)
        assert received == []

        alerts.publish("NEW DEVICE: 10.0.0.3")
        t.join(1.0)
        assert received == ["NEW DEVICE: 10.0.0.3"]

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            AlertChannel(maxsize=0)
