# tests/conftest.py
import pytest


class FakeTimer:
    """Stands in for threading.Timer; fired by hand."""

    def __init__(self, delay, fn):
        self.delay = delay
        self.fn = fn
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.fn()


class FakeTimers:
    def __init__(self):
        self.created = []

    def __call__(self, delay, fn):
        t = FakeTimer(delay, fn)
        self.created.append(t)
        return t

    @property
    def last(self):
        return self.created[-1]


@pytest.fixture
def timers():
    return FakeTimers()
