import sys
import time
import logging
from datetime import datetime, timedelta, timezone

import requests

from station_archive import config
from station_archive.archiver import EPOCH, ScrapeContext, archive_station_status, format_timestamp
from station_archive.errors import ArchiveError
from station_archive.storage import create_store

logger = logging.getLogger(__name__)


def next_fire_time(now, interval_seconds):
    """
    Next epoch-aligned interval boundary strictly after `now`, in UTC.
    """
    if interval_seconds <= 0:
        raise ValueError("interval_seconds must be positive")
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    elapsed = (now - EPOCH) // timedelta(seconds=interval_seconds)
    return EPOCH + timedelta(seconds=interval_seconds * (elapsed + 1))


def run_once(session, store, scheduled_time):
    """
    Run a single invocation. Archive failures are reported here, as the
    hosting scheduler would, and turned into a False result.
    """
    context = ScrapeContext(scheduled_time=scheduled_time, store=store, session=session)
    try:
        archive_station_status(context)
        return True
    except ArchiveError as e:
        logger.error(f"Scrape scheduled for {format_timestamp(scheduled_time)} failed: {e}")
        return False


def utc_now():
    return datetime.now(timezone.utc)


def run_forever(session, store, interval_seconds=config.SCRAPE_INTERVAL_SECONDS,
                sleep=time.sleep, clock=utc_now):
    """
    Fire one invocation per interval boundary, sequentially.
    A boundary is never fired twice, even if the wall clock steps backwards.
    """
    logger.info(f"Scraping {config.STATION_STATUS_URL} every {interval_seconds} seconds.")
    last_fire_at = None
    while True:
        now = clock()
        if last_fire_at is not None:
            now = max(now, last_fire_at)
        fire_at = next_fire_time(now, interval_seconds)
        delay = (fire_at - clock()).total_seconds()
        if delay > 0:
            sleep(delay)
        run_once(session, store, fire_at)
        last_fire_at = fire_at


def main():
    config.configure_logging()
    store = create_store()
    with requests.Session() as session:
        if config.SCRAPE_ONCE:
            ok = run_once(session, store, utc_now())
            sys.exit(0 if ok else 1)
        try:
            run_forever(session, store)
        except KeyboardInterrupt:
            logger.info("Scheduler stopped.")


if __name__ == "__main__":
    main()
