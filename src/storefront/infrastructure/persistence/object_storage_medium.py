"""S3-compatible object storage medium.

Each collection is one object at ``<prefix><name>.json`` (``db/products.json``
by default), overwritten in place on every write. The object's ETag is the
version token; writes are made conditional on it so a peer process that
wrote in between is detected instead of silently overwritten.

boto3 is blocking, so the awaitable methods run it in a worker thread and
bound each call with ``asyncio.wait_for``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from storefront.infrastructure.persistence.errors import (
    BackingMediumError,
    WriteConflictError,
)
from storefront.infrastructure.persistence.medium import (
    ABSENT_VERSION,
    BackingMedium,
    CollectionSnapshot,
    decode_records,
    encode_records,
)

logger = structlog.get_logger(__name__)

CONTENT_TYPE = "application/json"

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}
_CONFLICT_CODES = {"PreconditionFailed", "412", "ConditionalRequestConflict", "409"}


def make_s3_client(
    *,
    region: str | None = None,
    endpoint_url: str | None = None,
    access_key_id: str | None = None,
    secret_access_key: str | None = None,
    timeout: float = 10.0,
    max_attempts: int = 3,
) -> Any:
    """Build a boto3 S3 client with explicit timeouts and bounded retries."""
    config = Config(
        connect_timeout=timeout,
        read_timeout=timeout,
        retries={"max_attempts": max_attempts, "mode": "standard"},
    )
    return boto3.client(
        "s3",
        region_name=region,
        endpoint_url=endpoint_url,
        aws_access_key_id=access_key_id,
        aws_secret_access_key=secret_access_key,
        config=config,
    )


class ObjectStorageMedium(BackingMedium):

    is_remote = True

    def __init__(
        self,
        client: Any,
        bucket: str,
        *,
        prefix: str = "db/",
        timeout: float = 10.0,
        conditional_writes: bool = True,
    ) -> None:
        self._client = client
        self._bucket = bucket
        self._prefix = prefix
        self._timeout = timeout
        self._conditional_writes = conditional_writes

    @property
    def bucket(self) -> str:
        return self._bucket

    def key_for(self, name: str) -> str:
        return f"{self._prefix}{name}.json"

    # --- BackingMedium interface ----------------------------------------------

    def read(self, name: str) -> CollectionSnapshot:
        key = self.key_for(name)
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
            text = response["Body"].read().decode("utf-8")
        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                logger.info("collection_object_missing", collection=name, key=key)
                return CollectionSnapshot.missing(name)
            raise BackingMediumError(f"Cannot fetch collection '{name}': {exc}") from exc
        except BotoCoreError as exc:
            raise BackingMediumError(f"Cannot fetch collection '{name}': {exc}") from exc

        records = decode_records(name, text)
        logger.debug("collection_fetched", collection=name, records=len(records))
        return CollectionSnapshot(
            name=name,
            records=records,
            version=response.get("ETag"),
            exists=True,
        )

    def write(
        self, name: str, records: list[dict], expected_version: str | None = None
    ) -> str | None:
        params: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": self.key_for(name),
            "Body": encode_records(records).encode("utf-8"),
            "ContentType": CONTENT_TYPE,
        }
        if self._conditional_writes and expected_version is not None:
            if expected_version == ABSENT_VERSION:
                params["IfNoneMatch"] = "*"
            else:
                params["IfMatch"] = expected_version

        try:
            response = self._client.put_object(**params)
        except ClientError as exc:
            if _error_code(exc) in _CONFLICT_CODES:
                raise WriteConflictError(name, expected_version) from exc
            raise BackingMediumError(f"Cannot store collection '{name}': {exc}") from exc
        except BotoCoreError as exc:
            raise BackingMediumError(f"Cannot store collection '{name}': {exc}") from exc

        logger.debug("collection_stored", collection=name, records=len(records))
        return response.get("ETag")

    def list_collections(self) -> list[str]:
        names: list[str] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self._bucket, Prefix=self._prefix):
                for obj in page.get("Contents", []):
                    rest = obj["Key"][len(self._prefix):]
                    if rest.endswith(".json") and "/" not in rest:
                        names.append(rest[: -len(".json")])
        except (ClientError, BotoCoreError) as exc:
            raise BackingMediumError(f"Cannot list collections: {exc}") from exc
        return sorted(names)

    async def read_async(self, name: str) -> CollectionSnapshot:
        return await self._run(self.read, name)

    async def write_async(
        self, name: str, records: list[dict], expected_version: str | None = None
    ) -> str | None:
        return await self._run(self.write, name, records, expected_version)

    async def list_collections_async(self) -> list[str]:
        return await self._run(self.list_collections)

    # --- Internal helpers -----------------------------------------------------

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return await asyncio.wait_for(asyncio.to_thread(fn, *args), self._timeout)
        except asyncio.TimeoutError as exc:
            raise BackingMediumError(
                f"Object storage call {fn.__name__}{args[:1]} timed out "
                f"after {self._timeout}s"
            ) from exc


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))
