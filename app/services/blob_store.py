"""Object storage for recorded audio (S3 presigned download links)."""

import logging
import re
from abc import ABC, abstractmethod

import boto3

from app.exceptions import StorageFailure

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r'["\\\x00-\x1f\x7f]')


def attachment_disposition(filename: str) -> str:
    """Content-Disposition value that makes browsers save the file as `filename`."""
    safe = _UNSAFE_FILENAME_CHARS.sub("_", filename).encode("ascii", "replace").decode("ascii")
    return f'attachment; filename="{safe}"'


class BlobStore(ABC):
    """Durable storage with time-limited, forced-download URLs."""

    @abstractmethod
    def put(self, data: bytes, key: str, content_type: str, download_filename: str) -> None:
        """
        Stores an object.

        Args:
            data: Object bytes.
            key: Destination key.
            content_type: MIME type stored with the object.
            download_filename: Filename offered by the browser's "Save As".

        Raises:
            StorageFailure: If the upload fails.
        """

    @abstractmethod
    def presign(self, key: str, download_filename: str, expiry_seconds: int) -> str:
        """
        Returns a presigned GET URL that forces attachment download.

        Raises:
            StorageFailure: If the URL cannot be generated.
        """


class S3BlobStore(BlobStore):
    """Stores audio in an S3 bucket."""

    def __init__(
        self,
        *,
        bucket: str,
        region: str,
        access_key_id: str = "",
        secret_access_key: str = "",
        endpoint_url: str = "",
        client=None,
    ) -> None:
        self._bucket = bucket
        if client is None:
            # Empty credentials fall through to the default boto3 credential chain.
            client = boto3.client(
                "s3",
                region_name=region,
                aws_access_key_id=access_key_id or None,
                aws_secret_access_key=secret_access_key or None,
                endpoint_url=endpoint_url or None,
            )
        self._s3 = client

    def put(self, data: bytes, key: str, content_type: str, download_filename: str) -> None:
        try:
            self._s3.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ContentDisposition=attachment_disposition(download_filename),
            )
        except Exception as e:
            logger.exception("S3 upload failed (bucket=%s key=%s)", self._bucket, key)
            raise StorageFailure(key, e) from e

        logger.info("Stored object (bucket=%s key=%s size=%d)", self._bucket, key, len(data))

    def presign(self, key: str, download_filename: str, expiry_seconds: int) -> str:
        if expiry_seconds <= 0:
            expiry_seconds = 60

        try:
            url = self._s3.generate_presigned_url(
                ClientMethod="get_object",
                Params={
                    "Bucket": self._bucket,
                    "Key": key,
                    "ResponseContentDisposition": attachment_disposition(download_filename),
                },
                ExpiresIn=expiry_seconds,
            )
        except Exception as e:
            logger.exception("Presigning failed (bucket=%s key=%s)", self._bucket, key)
            raise StorageFailure(key, e) from e

        logger.info("Generated presigned URL (bucket=%s key=%s ttl=%s)", self._bucket, key, expiry_seconds)
        return url
