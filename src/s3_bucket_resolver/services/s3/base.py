"""Base bucket provider interface."""

from __future__ import annotations

from typing import Any, Protocol

from ...models import ResolvedBucket
from ..plan import PlannedCall


class BucketProvider(Protocol):
    """Protocol defining the provisioning backend for resolved buckets."""

    def execute(self, call: PlannedCall) -> dict[str, Any]:
        """Execute a single planned API call."""
        ...

    def apply(self, resolved: ResolvedBucket) -> str | None:
        """Create and configure a bucket; return its name."""
        ...

    def destroy(self, resolved: ResolvedBucket, name: str | None = None) -> None:
        """Delete a bucket, honouring its force_destroy flag."""
        ...

    def bucket_exists(self, name: str) -> bool:
        """Check if a bucket exists."""
        ...
