"""Container build and test harness.

Each target composes docker invocations; a target that runs inside the image
is preceded by a build, or by a load of the cached image archive.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Callable, Sequence

from .config import CREDENTIAL_ENV_VARS, HarnessSettings

logger = logging.getLogger(__name__)

TARGETS = ("build", "save", "load", "pre-commit", "test", "plan")


def build_command(settings: HarnessSettings) -> list[str]:
    return [
        "docker", "build",
        "-t", f"{settings.repository_name}:latest",
        "-t", settings.image,
        ".",
    ]


def save_command(settings: HarnessSettings) -> list[str]:
    return ["docker", "save", "-o", settings.cache_image_path, settings.image]


def load_command(settings: HarnessSettings) -> list[str]:
    return ["docker", "load", "-i", settings.cache_image_path]


def run_command(settings: HarnessSettings, args: Sequence[str], credentials: bool = False) -> list[str]:
    command = ["docker", "run", "--rm"]
    if credentials:
        for name in CREDENTIAL_ENV_VARS:
            command.extend(["-e", name])
    command.append(settings.image)
    command.extend(args)
    return command


def harness_commands(
    target: str,
    settings: HarnessSettings,
    from_cache: bool = False,
    config_path: str = "bucket.yaml",
) -> list[list[str]]:
    """Compose the commands for a harness target.

    Args:
        target: One of TARGETS
        settings: Harness settings
        from_cache: Load the cached image instead of building it
        config_path: Bucket document planned by the ``plan`` target

    Raises:
        ValueError: If the target is unknown
    """
    if target not in TARGETS:
        raise ValueError(f"Unknown harness target: {target}")
    if target == "build":
        return [build_command(settings)]
    if target == "save":
        return [save_command(settings)]
    if target == "load":
        return [load_command(settings)]

    prepare = load_command(settings) if from_cache else build_command(settings)
    if target == "pre-commit":
        inner = run_command(settings, ["pre-commit", "run", "--all-files"])
    elif target == "test":
        inner = run_command(settings, ["pytest", "-v", "tests"], credentials=True)
    else:
        inner = run_command(
            settings,
            ["s3-bucket-resolver", "plan", config_path, "--out", settings.plan_filename],
            credentials=True,
        )
    return [prepare, inner]


def run_harness(
    commands: Sequence[Sequence[str]],
    runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
) -> int:
    """Run commands in order, stopping at the first failure.

    Returns:
        Exit status of the last command run
    """
    for command in commands:
        logger.info(f"Running: {' '.join(command)}")
        result = runner(list(command), check=False)
        if result.returncode != 0:
            logger.error(f"Command exited with status {result.returncode}: {' '.join(command)}")
            return result.returncode
    return 0
