"""
One fetch-compress-store cycle of the station_status feed.

Each invocation gets a ScrapeContext carrying the scheduler's nominal fire
time and the I/O handles it needs. Nothing is kept between invocations.
"""
import io
import gzip
import logging
from dataclasses import dataclass
from typing import Optional
from datetime import datetime, timedelta, timezone

import requests

from station_archive import config
from station_archive.errors import NetworkFailure, UpstreamUnavailable
from station_archive.storage import ObjectStore

logger = logging.getLogger(__name__)

KEY_PREFIX = "station_status"
CHUNK_SIZE = 8192

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class ScrapeContext:
    scheduled_time: datetime
    store: ObjectStore
    session: requests.Session
    url: str = config.STATION_STATUS_URL
    timeout: Optional[float] = config.REQUEST_TIMEOUT


def to_utc(scheduled_time):
    """
    Normalize a nominal fire time to an aware UTC datetime.
    Accepts a datetime (naive values are taken as UTC) or epoch milliseconds.
    """
    if isinstance(scheduled_time, datetime):
        if scheduled_time.tzinfo is None:
            return scheduled_time.replace(tzinfo=timezone.utc)
        return scheduled_time.astimezone(timezone.utc)
    return EPOCH + timedelta(milliseconds=int(scheduled_time))


def format_timestamp(scheduled_time) -> str:
    """ISO-8601 in UTC with millisecond precision and a trailing Z."""
    t = to_utc(scheduled_time)
    return f"{t.strftime('%Y-%m-%dT%H:%M:%S')}.{t.microsecond // 1000:03d}Z"


def storage_key(scheduled_time) -> str:
    return f"{KEY_PREFIX}/{format_timestamp(scheduled_time)}.json.gz"


def gzip_stream(chunks) -> bytes:
    """
    Compress an iterable of byte chunks as they arrive.
    The header mtime is pinned to 0 so the output depends only on the input.
    """
    buffer = io.BytesIO()
    with gzip.GzipFile(fileobj=buffer, mode="wb", mtime=0) as gz:
        for chunk in chunks:
            if chunk:  # Filter out keep-alive chunks
                gz.write(chunk)
    return buffer.getvalue()


def fetch_compressed(session, url, timeout=None) -> bytes:
    """
    GET the feed and return its body gzip-compressed.
    Raises UpstreamUnavailable on a non-2xx status and NetworkFailure when
    the transfer cannot complete.
    """
    try:
        response = session.get(url, stream=True, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise NetworkFailure(f"Error fetching {url}: {e}") from e

    with response:
        if not 200 <= response.status_code < 300:
            raise UpstreamUnavailable(response.status_code)
        try:
            return gzip_stream(response.iter_content(chunk_size=CHUNK_SIZE))
        except requests.exceptions.RequestException as e:
            raise NetworkFailure(f"Error reading {url}: {e}") from e


def archive_station_status(context: ScrapeContext) -> str:
    """
    Fetch the feed, compress it and write it under the key derived from the
    nominal fire time. Returns the key written. Errors propagate unchanged.
    """
    compressed = fetch_compressed(context.session, context.url, context.timeout)
    key = storage_key(context.scheduled_time)
    context.store.put(key, compressed)
    logger.info("OK: Scrape done")
    return key
