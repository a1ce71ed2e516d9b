import os
import logging
import tempfile

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from station_archive import config
from station_archive.errors import StorageWriteFailure

logger = logging.getLogger(__name__)


class ObjectStore:
    """
    Write-only key/blob store used as the archive target.
    Implementations overwrite an existing key.
    """

    def put(self, key, data):
        raise NotImplementedError


class S3ObjectStore(ObjectStore):
    """
    Stores archives in an S3 bucket. An endpoint URL makes it usable
    against any S3-compatible service (R2, MinIO).
    """

    def __init__(self, bucket, client=None, region=None, endpoint_url=None,
                 access_key_id=None, secret_access_key=None):
        self.bucket = bucket
        if client is None:
            client_kwargs = {"region_name": region}
            if endpoint_url:
                client_kwargs["endpoint_url"] = endpoint_url
            if access_key_id:
                client_kwargs["aws_access_key_id"] = access_key_id
                client_kwargs["aws_secret_access_key"] = secret_access_key
            client = boto3.client("s3", **client_kwargs)
        self.client = client

    def put(self, key, data):
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType="application/json",
                ContentEncoding="gzip"
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageWriteFailure(key, str(e)) from e
        logger.debug(f"Wrote {len(data)} bytes to s3://{self.bucket}/{key}")


class LocalObjectStore(ObjectStore):
    """
    Stores archives as files under a root directory, keys map to relative paths.
    """

    def __init__(self, root):
        self.root = os.path.abspath(os.path.expanduser(root))

    def path_for(self, key):
        parts = key.split("/")
        if key.startswith("/") or ".." in parts or "" in parts:
            raise StorageWriteFailure(key, "invalid object key")
        return os.path.join(self.root, *parts)

    def put(self, key, data):
        path = self.path_for(key)
        directory = os.path.dirname(path)
        try:
            os.makedirs(directory, exist_ok=True)
            # Readers never see a partially written object
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_path, path)
            except OSError:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise StorageWriteFailure(key, str(e)) from e
        logger.debug(f"Wrote {len(data)} bytes to {path}")


def create_store(backend=None):
    """
    Build the object store selected by ARCHIVE_BACKEND.
    """
    backend = (backend or config.ARCHIVE_BACKEND).lower()
    if backend == "s3":
        return S3ObjectStore(
            config.S3_BUCKET,
            region=config.S3_REGION,
            endpoint_url=config.S3_ENDPOINT_URL,
            access_key_id=config.AWS_ACCESS_KEY_ID,
            secret_access_key=config.AWS_SECRET_ACCESS_KEY
        )
    if backend == "local":
        return LocalObjectStore(config.ARCHIVE_DIR)
    raise ValueError(f"Unknown archive backend: {backend}")
