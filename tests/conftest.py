import os
import tempfile

import pytest

# Must be set before backend.db / backend.auth are imported
os.environ.setdefault("DATABASE_URL", "sqlite:///" + os.path.join(tempfile.mkdtemp(), "test_sheet.db"))
os.environ.setdefault("SECRET_KEY", "test-secret-key")


class RecordingBroadcaster:
    """Broadcaster stub; `log` is shared so tests can check ordering against other calls."""

    def __init__(self, log=None):
        self.log = log if log is not None else []

    @property
    def calls(self):
        return [entry[1:] for entry in self.log if entry[0] == "emit"]

    async def emit(self, room, event, *args):
        self.log.append(("emit", room, event, args))

    async def emit_all(self, event, *args):
        self.log.append(("emit", None, event, args))


class RecordingDelay:
    """Zero-time roll delay that remembers the requested durations."""

    def __init__(self, log=None):
        self.log = log if log is not None else []

    @property
    def calls(self):
        return [entry[1] for entry in self.log if entry[0] == "delay"]

    async def __call__(self, milliseconds):
        self.log.append(("delay", milliseconds))


@pytest.fixture
def event_log():
    return []


@pytest.fixture
def broadcaster(event_log):
    return RecordingBroadcaster(event_log)


@pytest.fixture
def delay(event_log):
    return RecordingDelay(event_log)


@pytest.fixture(autouse=True)
def reset_config():
    """Every test starts from the default configuration."""
    from backend.db import SessionLocal, init_db
    from backend.models import Config

    init_db()
    yield
    session = SessionLocal()
    try:
        session.query(Config).delete()
        session.commit()
    finally:
        session.close()
