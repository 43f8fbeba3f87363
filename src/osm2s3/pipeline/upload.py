"""
S3Uploader - Archive publishing to object storage

Streams a local archive to the configured bucket with a single put. Credentials
come from the runtime Config; when none are set explicitly, boto3 resolves them
through its default chain (environment, shared credentials file, instance role).
"""

import logging
from pathlib import Path
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config.settings import DEFAULT_BUCKET, DEFAULT_REGION, Config, StorageCredentials
from ..types import UploadError

logger = logging.getLogger(__name__)


def create_s3_client(region: str,
                     credentials: Optional[StorageCredentials] = None,
                     endpoint_url: Optional[str] = None):
    """Build a boto3 S3 client for ``region``."""
    kwargs: dict[str, Any] = dict(region_name=region)
    if credentials and credentials.explicit:
        kwargs["aws_access_key_id"] = credentials.access_key_id
        kwargs["aws_secret_access_key"] = credentials.secret_access_key
        if credentials.session_token:
            kwargs["aws_session_token"] = credentials.session_token
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    return boto3.client("s3", **kwargs)


class S3Uploader:
    """Uploads archives to a single bucket."""

    def __init__(self,
                 bucket: str = DEFAULT_BUCKET,
                 region: str = DEFAULT_REGION,
                 credentials: Optional[StorageCredentials] = None,
                 endpoint_url: Optional[str] = None,
                 client=None):
        self.bucket = bucket
        self.region = region
        self._credentials = credentials
        self._endpoint_url = endpoint_url
        self._client = client

    @classmethod
    def from_config(cls, config: Config) -> "S3Uploader":
        return cls(
            bucket=config.storage.bucket,
            region=config.storage.region,
            credentials=config.credentials,
            endpoint_url=config.storage.endpoint_url,
        )

    @property
    def client(self):
        # Created lazily so dry runs never touch credentials
        if self._client is None:
            try:
                self._client = create_s3_client(self.region, self._credentials, self._endpoint_url)
            except (BotoCoreError, ValueError) as e:
                raise UploadError(self.bucket, "", f"could not create S3 client: {e}") from e
        return self._client

    def upload(self, archive_path: Path, key: str) -> dict[str, Any]:
        """
        Stream ``archive_path`` to ``s3://<bucket>/<key>``.

        Args:
            archive_path: Local zip file
            key: Object key (the job's layer name)

        Returns:
            The put_object response

        Raises:
            UploadError: On local read failure or any storage client error
        """
        logger.info(f"Uploading {archive_path} to bucket {self.bucket} ({self.region}) as {key}")
        try:
            with open(archive_path, "rb") as body:
                response = self.client.put_object(Bucket=self.bucket, Key=key, Body=body)
        except (ClientError, BotoCoreError) as e:
            raise UploadError(self.bucket, key, str(e)) from e
        except OSError as e:
            raise UploadError(self.bucket, key, f"cannot read {archive_path}: {e}") from e

        metadata = response.get("ResponseMetadata", {})
        logger.info(
            f"Uploaded s3://{self.bucket}/{key} "
            f"etag={response.get('ETag')} status={metadata.get('HTTPStatusCode')} "
            f"request_id={metadata.get('RequestId')}"
        )
        return response
