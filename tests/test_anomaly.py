import logging
from types import SimpleNamespace

import pytest

from services.anomaly import AnomalyTracker


@pytest.fixture
def record():
    return SimpleNamespace(user_id="user-1", device="Firefox", ip="10.0.0.1")


@pytest.fixture
def tracker():
    return AnomalyTracker()


def test_same_device_and_address(tracker, record, caplog):
    with caplog.at_level(logging.WARNING, logger="services.anomaly"):
        assert tracker.observe(record, "Firefox", "10.0.0.1") is False
    assert not caplog.records


def test_address_change_is_logged(tracker, record, caplog):
    with caplog.at_level(logging.WARNING, logger="services.anomaly"):
        assert tracker.observe(record, "Firefox", "192.168.1.9") is True

    entry = caplog.records[-1]
    assert entry.levelno == logging.WARNING
    assert entry.user_id == "user-1"
    assert entry.old_ip == "10.0.0.1"
    assert entry.new_ip == "192.168.1.9"
    assert entry.ip_changed is True
    assert entry.device_changed is False


def test_device_change(tracker, record):
    assert tracker.observe(record, "curl/8.0", "10.0.0.1") is True


def test_unknown_issue_address_cannot_mismatch(tracker):
    record = SimpleNamespace(user_id="user-1", device="unknown", ip=None)
    assert tracker.observe(record, None, "10.0.0.1") is False


def test_broken_record_never_raises(tracker, caplog):
    class Exploding:
        user_id = "user-1"

        @property
        def device(self):
            raise RuntimeError("lazy load failed")

    with caplog.at_level(logging.ERROR, logger="services.anomaly"):
        assert tracker.observe(Exploding(), "Firefox", "10.0.0.1") is False
    assert "anomaly check failed" in caplog.records[-1].getMessage()
