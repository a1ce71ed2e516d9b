import os
import sys
import logging

# Environment Variables for Configuration
STATION_STATUS_URL = os.getenv("STATION_STATUS_URL", "https://gbfs.citibikenyc.com/gbfs/en/station_status.json")

ARCHIVE_BACKEND = os.getenv("ARCHIVE_BACKEND", "local")
ARCHIVE_DIR = os.path.expanduser(os.getenv("ARCHIVE_DIR", "./data"))

S3_BUCKET = os.getenv("S3_BUCKET", "citibike-archive")
S3_REGION = os.getenv("S3_REGION", "us-east-1")
S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL")
AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID")
AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY")

# No timeout unless one is configured; the hosting runtime bounds the invocation
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT")) if os.getenv("REQUEST_TIMEOUT") else None

SCRAPE_INTERVAL_SECONDS = int(os.getenv("SCRAPE_INTERVAL_SECONDS", 60))
SCRAPE_ONCE = os.getenv("SCRAPE_ONCE", "").lower() in ("1", "true", "yes")

COLLECT_OUTPUT_DIR = os.path.expanduser(os.getenv("COLLECT_OUTPUT_DIR", "."))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("ARCHIVE_LOG_FILE")


def configure_logging(level=LOG_LEVEL, log_file=LOG_FILE):
    """
    Configure logging to stdout, and to a log file when one is set,
    with timestamp and log level.
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s:%(message)s',
        handlers=handlers
    )
