"""S3 persistence backend: stores each record as a JSON object in a bucket."""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.exceptions import ClientError

from constellation.exceptions import PersistenceError

log = logging.getLogger(__name__)

_MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


class S3PersistenceBackend:
    """Stores data as objects under ``s3://<bucket>/<prefix><key>.json``."""

    def __init__(
        self,
        bucket: str,
        prefix: str = "constellation/",
        region: str = "ap-southeast-2",
        kms_key_id: str = "",
        client: Any = None,
    ) -> None:
        self._bucket = bucket
        self._prefix = prefix
        self._kms_key_id = kms_key_id
        self._s3 = client or boto3.client("s3", region_name=region)

    def _full_key(self, key: str) -> str:
        return f"{self._prefix}{key}.json"

    def save(self, key: str, data: str) -> None:
        put_kwargs: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": self._full_key(key),
            "Body": data.encode("utf-8"),
            "ContentType": "application/json",
        }
        if self._kms_key_id:
            put_kwargs["ServerSideEncryption"] = "aws:kms"
            put_kwargs["SSEKMSKeyId"] = self._kms_key_id
        try:
            self._s3.put_object(**put_kwargs)
        except ClientError as e:
            raise PersistenceError(f"S3 save failed for {key}: {e}") from e
        log.debug("Saved %s to s3://%s/%s", key, self._bucket, self._full_key(key))

    def load(self, key: str) -> str:
        try:
            response = self._s3.get_object(Bucket=self._bucket, Key=self._full_key(key))
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                raise KeyError(f"Not found in S3: {key}") from e
            raise PersistenceError(f"S3 load failed for {key}: {e}") from e
        return response["Body"].read().decode("utf-8")

    def exists(self, key: str) -> bool:
        try:
            self._s3.head_object(Bucket=self._bucket, Key=self._full_key(key))
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return False
            raise PersistenceError(f"S3 head failed for {key}: {e}") from e
        return True

    def delete(self, key: str) -> None:
        try:
            self._s3.delete_object(Bucket=self._bucket, Key=self._full_key(key))
        except ClientError as e:
            raise PersistenceError(f"S3 delete failed for {key}: {e}") from e

    def list_keys(self, prefix: str = "") -> list[str]:
        paginator = self._s3.get_paginator("list_objects_v2")
        keys = []
        try:
            for page in paginator.paginate(Bucket=self._bucket, Prefix=f"{self._prefix}{prefix}"):
                for obj in page.get("Contents", []):
                    key = obj["Key"][len(self._prefix):]
                    if key.endswith(".json"):
                        keys.append(key[: -len(".json")])
        except ClientError as e:
            raise PersistenceError(f"S3 list failed for prefix {prefix!r}: {e}") from e
        return sorted(keys)

    def ping(self) -> None:
        try:
            self._s3.head_bucket(Bucket=self._bucket)
        except ClientError as e:
            raise PersistenceError(f"S3 bucket {self._bucket} unavailable: {e}") from e
