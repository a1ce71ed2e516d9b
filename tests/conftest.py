import pytest

from station_archive.errors import StorageWriteFailure
from station_archive.storage import ObjectStore

FEED_URL = "https://gbfs.example.com/gbfs/en/station_status.json"


class RecordingStore(ObjectStore):
    """Keeps every put in memory."""

    def __init__(self):
        self.calls = []

    def put(self, key, data):
        self.calls.append((key, data))


class FailingStore(ObjectStore):
    """Rejects every write."""

    def __init__(self):
        self.attempts = 0

    def put(self, key, data):
        self.attempts += 1
        raise StorageWriteFailure(key, "bucket unavailable")


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def aws_credentials(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
