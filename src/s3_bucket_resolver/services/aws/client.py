"""AWS S3 client implementation."""

from __future__ import annotations

import json
import logging
import time
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from ... import metrics
from ...constants import REASON_APPLIED, REASON_DESTROYED
from ...logging import log_resolution_event
from ...models import ResolvedBucket
from ...tracing import trace_span
from ..plan import PlannedCall, build_plan, generate_bucket_name

logger = logging.getLogger(__name__)


class AWSProvider:
    """Applies resolved bucket descriptors to AWS S3."""

    def __init__(
        self,
        region: str | None = None,
        endpoint: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        session_token: str | None = None,
        path_style: bool = False,
    ) -> None:
        """Initialize AWS S3 provider.

        Credentials left unset are taken from the environment by boto3.

        Args:
            region: AWS region
            endpoint: Optional S3 endpoint URL
            access_key: Access key ID
            secret_key: Secret access key
            session_token: Optional session token for temporary credentials
            path_style: Use path-style addressing
        """
        self.region = region
        self.endpoint = endpoint

        config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path" if path_style else "auto"},
        )

        self.client = boto3.client(
            "s3",
            endpoint_url=endpoint,
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            aws_session_token=session_token,
            config=config,
        )

    def execute(self, call: PlannedCall) -> dict[str, Any]:
        """Execute a single planned call."""
        start_time = time.time()
        with trace_span(call.operation, operation=call.operation, attributes={"bucket.name": call.params.get("Bucket", "")}):
            try:
                response = getattr(self.client, call.operation)(**call.params)
                metrics.api_call_total.labels(operation=call.operation, result="success").inc()
                return response
            except ClientError as e:
                metrics.api_call_total.labels(operation=call.operation, result="failed").inc()
                logger.error(f"Failed to {call.operation} for bucket {call.params.get('Bucket')}: {e}")
                raise
            finally:
                duration = time.time() - start_time
                metrics.api_call_duration_seconds.labels(operation=call.operation).observe(duration)

    def apply(self, resolved: ResolvedBucket) -> str | None:
        """Create and configure the bucket described by a resolution pass.

        Args:
            resolved: Output of a resolution pass

        Returns:
            Name of the bucket, or None when creation was not requested
        """
        descriptor = resolved.bucket
        if descriptor is None:
            logger.info("Bucket creation disabled; nothing to apply")
            return None

        name = descriptor.bucket or generate_bucket_name(descriptor.bucket_prefix)
        for call in build_plan(resolved, bucket_name=name):
            self.execute(call)

        log_resolution_event(
            logger,
            operation="apply",
            bucket=name,
            event="applied",
            reason=REASON_APPLIED,
            message="Bucket created and configured",
        )
        return name

    def destroy(self, resolved: ResolvedBucket, name: str | None = None) -> None:
        """Delete the bucket, emptying it first when ``force_destroy`` is set.

        Args:
            resolved: Output of a resolution pass
            name: Bucket name, required when the name was provider-generated
        """
        descriptor = resolved.bucket
        if descriptor is None:
            logger.info("Bucket creation disabled; nothing to destroy")
            return

        name = name or descriptor.bucket
        if not name:
            raise ValueError("A bucket name is required to destroy a bucket created from a prefix")

        self.delete_bucket(name, force=descriptor.force_destroy)
        log_resolution_event(
            logger,
            operation="destroy",
            bucket=name,
            event="destroyed",
            reason=REASON_DESTROYED,
            message="Bucket deleted",
            force_destroy=descriptor.force_destroy,
        )

    def bucket_exists(self, name: str) -> bool:
        """Check if bucket exists."""
        try:
            self.client.head_bucket(Bucket=name)
            return True
        except ClientError:
            return False

    def get_bucket_policy(self, name: str) -> dict[str, Any] | None:
        """Get bucket policy.

        Returns:
            Policy document dict if policy exists, None if no policy is set
        """
        try:
            response = self.client.get_bucket_policy(Bucket=name)
            return json.loads(response["Policy"])
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "NoSuchBucketPolicy":
                return None
            logger.error(f"Failed to get policy for bucket {name}: {e}")
            raise

    def is_bucket_empty(self, name: str) -> bool:
        """Check if a bucket is empty."""
        try:
            response = self.client.list_objects_v2(Bucket=name, MaxKeys=1)
            return not response.get("Contents", [])
        except ClientError as e:
            logger.error(f"Failed to check if bucket {name} is empty: {e}")
            raise

    def empty_bucket(self, name: str) -> None:
        """Empty a bucket by deleting all objects, versions and delete markers."""
        try:
            logger.info(f"Emptying bucket {name}")
            paginator = self.client.get_paginator("list_object_versions")
            for page in paginator.paginate(Bucket=name):
                objects = [
                    {"Key": entry["Key"], "VersionId": entry["VersionId"]}
                    for entry in page.get("Versions", []) + page.get("DeleteMarkers", [])
                ]
                if objects:
                    self.client.delete_objects(Bucket=name, Delete={"Objects": objects, "Quiet": True})
                    logger.debug(f"Deleted {len(objects)} object versions from {name}")
            logger.info(f"Successfully emptied bucket {name}")
        except ClientError as e:
            logger.error(f"Failed to empty bucket {name}: {e}")
            raise

    def delete_bucket(self, name: str, force: bool = False) -> None:
        """Delete a bucket.

        Args:
            name: Bucket name
            force: If True, empty the bucket before deletion if it's not empty
        """
        try:
            if not self.is_bucket_empty(name):
                if force:
                    logger.info(f"Bucket {name} is not empty, emptying it before deletion")
                    self.empty_bucket(name)
                else:
                    raise ValueError(f"Bucket {name} is not empty. Set force_destroy to empty it before deletion.")

            self.client.delete_bucket(Bucket=name)
            logger.info(f"Successfully deleted bucket {name}")
        except ClientError as e:
            logger.error(f"Failed to delete bucket {name}: {e}")
            raise
