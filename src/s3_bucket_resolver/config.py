"""Configuration loading for the S3 bucket resolver."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError

DEFAULT_BUILD_VERSION = "latest"
DEFAULT_REPOSITORY_NAME = "s3-bucket-resolver"
DEFAULT_PLAN_FILENAME = "plan.json"

# Credentials forwarded into harness containers
CREDENTIAL_ENV_VARS = ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY")


def load_bucket_document(path: str | Path) -> dict[str, Any]:
    """Load a bucket configuration document from a YAML or JSON file.

    An empty file yields an empty document.

    Raises:
        ConfigurationError: If the file cannot be parsed or is not a mapping
    """
    try:
        with open(path, encoding="utf-8") as handle:
            document = yaml.safe_load(handle)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"could not parse {path}: {e}") from e

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigurationError(f"{path} must contain a mapping at the top level")
    return document


@dataclass(frozen=True)
class HarnessSettings:
    """Settings of the container build and test harness."""

    build_version: str = DEFAULT_BUILD_VERSION
    repository_name: str = DEFAULT_REPOSITORY_NAME
    cache_image: str | None = None
    plan_filename: str = DEFAULT_PLAN_FILENAME

    @property
    def image(self) -> str:
        return f"{self.repository_name}:{self.build_version}"

    @property
    def cache_image_path(self) -> str:
        return self.cache_image or f"{self.repository_name}-{self.build_version}.tar"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> HarnessSettings:
        """Read settings from environment variables, applying defaults when unset.

        Environment Variables:
            BUILD_VERSION: Image version tag (default: latest)
            REPOSITORY_NAME: Image repository name (default: s3-bucket-resolver)
            DOCKER_CACHE_IMAGE: Cache archive (default: <repository>-<version>.tar)
            PLAN_FILENAME: Plan output file (default: plan.json)
        """
        env = os.environ if environ is None else environ
        return cls(
            build_version=env.get("BUILD_VERSION") or DEFAULT_BUILD_VERSION,
            repository_name=env.get("REPOSITORY_NAME") or DEFAULT_REPOSITORY_NAME,
            cache_image=env.get("DOCKER_CACHE_IMAGE") or None,
            plan_filename=env.get("PLAN_FILENAME") or DEFAULT_PLAN_FILENAME,
        )
