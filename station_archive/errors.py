"""Failures of a single archive invocation.

Every error aborts the invocation and propagates to whatever scheduled it.
Nothing here is retried locally.
"""


class ArchiveError(Exception):
    """Base class for archiver failures."""


class UpstreamUnavailable(ArchiveError):
    """The feed endpoint answered with a non-2xx status."""

    def __init__(self, status_code):
        self.status_code = status_code
        super().__init__(f"Endpoint down, status: {status_code}")


class NetworkFailure(ArchiveError):
    """The fetch itself could not complete (DNS, connection, timeout, broken stream)."""


class StorageWriteFailure(ArchiveError):
    """The object store rejected or failed the write."""

    def __init__(self, key, message):
        self.key = key
        super().__init__(f"Failed to write {key}: {message}")
