"""S3-compatible object storage (boto3).

Objects live at ``s3://{bucket}/{key}``. Uploads go through a multipart
upload that is completed on commit and aborted on failure, so an object
never appears at its key half-written. Public URLs are pre-signed GET
URLs.

Uses ``anyio.to_thread.run_sync`` (via BaseStorage) to keep boto3 calls
off the event loop.
"""

from __future__ import annotations

import io
import logging
from typing import Any, BinaryIO, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .base import BaseStorage, normalize_key

logger = logging.getLogger(__name__)

# S3 rejects non-final parts smaller than 5 MiB.
PART_SIZE = 8 * 1024 * 1024

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


def _create_s3_client(
    endpoint_url: str,
    access_key: str,
    secret_key: str,
    region: Optional[str] = None,
    use_ssl: bool = True,
    path_style: bool = False,
) -> Any:
    """Create a boto3 S3 client.

    Args:
        endpoint_url: S3 endpoint; a bare host gets http/https from ``use_ssl``.
        path_style: Use path-style addressing instead of virtual-hosted.
            Required by MinIO and some S3-compatible services.
    """
    if "://" not in endpoint_url:
        endpoint_url = f"{'https' if use_ssl else 'http'}://{endpoint_url}"

    config = Config(
        request_checksum_calculation="when_required",
        response_checksum_validation="when_required",
        s3={"addressing_style": "path" if path_style else "auto"},
    )

    return boto3.client(
        "s3",
        endpoint_url=endpoint_url,
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        region_name=region,
        use_ssl=use_ssl,
        config=config,
    )


def _is_missing(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in _MISSING_CODES


class _S3UploadTarget:
    def __init__(self, client: Any, bucket: str, key: str) -> None:
        self._client = client
        self._bucket = bucket
        self._key = key
        self._buffer = io.BytesIO()
        self._parts: List[dict] = []
        resp = client.create_multipart_upload(Bucket=bucket, Key=key)
        self._upload_id = resp["UploadId"]

    def write(self, chunk: bytes) -> None:
        self._buffer.write(chunk)
        if self._buffer.tell() >= PART_SIZE:
            self._flush_part()

    def _flush_part(self) -> None:
        number = len(self._parts) + 1
        resp = self._client.upload_part(
            Bucket=self._bucket,
            Key=self._key,
            UploadId=self._upload_id,
            PartNumber=number,
            Body=self._buffer.getvalue(),
        )
        self._parts.append({"PartNumber": number, "ETag": resp["ETag"]})
        self._buffer = io.BytesIO()

    def commit(self) -> None:
        if not self._parts and self._buffer.tell() == 0:
            # Multipart uploads need at least one part; store empty objects directly.
            self.abort()
            self._client.put_object(Bucket=self._bucket, Key=self._key, Body=b"")
            return
        if self._buffer.tell() > 0:
            self._flush_part()
        self._client.complete_multipart_upload(
            Bucket=self._bucket,
            Key=self._key,
            UploadId=self._upload_id,
            MultipartUpload={"Parts": self._parts},
        )

    def abort(self) -> None:
        self._client.abort_multipart_upload(
            Bucket=self._bucket, Key=self._key, UploadId=self._upload_id
        )


class S3Storage(BaseStorage):
    driver = "s3"
    transport_errors = (OSError, BotoCoreError, ClientError)

    def __init__(
        self,
        bucket: str,
        endpoint_url: str = "",
        access_key: str = "",
        secret_key: str = "",
        region: Optional[str] = None,
        use_ssl: bool = True,
        path_style: bool = False,
        url_expires_seconds: int = 3600,
        client: Any = None,
    ) -> None:
        self._bucket = bucket
        self._url_expires = url_expires_seconds
        self._client = client or _create_s3_client(
            endpoint_url, access_key, secret_key, region=region, use_ssl=use_ssl, path_style=path_style
        )

    def get_url(self, key: str) -> str:
        return self._client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self._bucket, "Key": normalize_key(key)},
            ExpiresIn=self._url_expires,
        )

    # -- Blocking helpers ----------------------------------------------------

    def _open_target(self, key: str) -> _S3UploadTarget:
        return _S3UploadTarget(self._client, self._bucket, key)

    def _head(self, key: str) -> dict:
        try:
            return self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            if _is_missing(e):
                raise FileNotFoundError(f"Object not found: {key}") from None
            raise

    def _delete(self, key: str) -> None:
        # delete_object succeeds for absent keys; check first so a miss is reported.
        self._head(key)
        self._client.delete_object(Bucket=self._bucket, Key=key)

    def _open(self, key: str) -> BinaryIO:
        try:
            resp = self._client.get_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            if _is_missing(e):
                raise FileNotFoundError(f"Object not found: {key}") from None
            raise
        return resp["Body"]

    def _stat(self, key: str) -> int:
        return int(self._head(key)["ContentLength"])
