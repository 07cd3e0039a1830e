"""
s3-bucket-resolver CLI - resolve, plan and apply S3 bucket configuration.
"""

import logging
import sys

import click
from botocore.exceptions import BotoCoreError, ClientError
from prometheus_client import REGISTRY, write_to_textfile

from .. import __version__
from ..config import HarnessSettings, load_bucket_document
from ..exceptions import ConfigurationError
from ..harness import TARGETS, harness_commands, run_harness
from ..logging import setup_structured_logging
from ..models import ResolvedBucket
from ..resolver import ConfigResolver
from ..services.aws.client import AWSProvider
from ..services.plan import build_plan, render_plan
from ..services.s3.base import BucketProvider
from ..tracing import initialize_tracing
from ..utils.errors import sanitize_exception

EXIT_PROVIDER_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    envvar="LOG_LEVEL",
    show_default=True,
)
@click.option(
    "--metrics-textfile",
    type=click.Path(dir_okay=False),
    envvar="METRICS_TEXTFILE",
    help="Write Prometheus metrics to this file on exit",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str, metrics_textfile: str | None):
    """
    Resolve declarative S3 bucket configuration into provider descriptors.

    Bucket documents are YAML or JSON files using the option names of the
    bucket module (bucket, versioning, lifecycle_rule, policy, ...).
    """
    setup_structured_logging(getattr(logging, log_level.upper()))
    initialize_tracing()
    if metrics_textfile:
        ctx.call_on_close(lambda: write_to_textfile(metrics_textfile, REGISTRY))


def _resolve_file(config_file: str, strict_versioning: bool = False) -> ResolvedBucket:
    """Load and resolve a bucket document, exiting on configuration errors."""
    try:
        document = load_bucket_document(config_file)
        return ConfigResolver(strict_versioning=strict_versioning).resolve(document)
    except ConfigurationError as e:
        click.echo(f"Error: {sanitize_exception(e)}", err=True)
        sys.exit(EXIT_CONFIGURATION_ERROR)


def _write_output(text: str, output: str | None) -> None:
    if output and output != "-":
        with open(output, "w", encoding="utf-8") as handle:
            handle.write(text + "\n")
        click.echo(f"Wrote {output}", err=True)
    else:
        click.echo(text)


def _get_provider(region: str | None, endpoint: str | None) -> BucketProvider:
    return AWSProvider(region=region, endpoint=endpoint)


strict_versioning_option = click.option(
    "--strict-versioning",
    is_flag=True,
    envvar="STRICT_VERSIONING",
    help="Reject versioning given both as a boolean and as a mapping",
)


@cli.command()
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@strict_versioning_option
@click.option("--output", "-o", help="Write the descriptors to this file instead of stdout")
def resolve(config_file: str, strict_versioning: bool, output: str | None):
    """
    Resolve a bucket document and print the descriptors.

    Example:
        s3-bucket-resolver resolve bucket.yaml
        s3-bucket-resolver resolve bucket.yaml --output resolved.json
    """
    resolved = _resolve_file(config_file, strict_versioning)
    _write_output(resolved.to_json(), output)


@cli.command()
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@strict_versioning_option
@click.option("--out", help="Plan output file ('-' for stdout) [default: $PLAN_FILENAME or plan.json]")
def plan(config_file: str, strict_versioning: bool, out: str | None):
    """
    Print the S3 API calls that would create the bucket, without calling them.

    Example:
        s3-bucket-resolver plan bucket.yaml --out -
    """
    resolved = _resolve_file(config_file, strict_versioning)
    calls = build_plan(resolved)
    _write_output(render_plan(calls), out or HarnessSettings.from_env().plan_filename)
    click.echo(f"Plan: {len(calls)} call(s)", err=True)


@cli.command()
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@strict_versioning_option
@click.option("--region", envvar="AWS_REGION", help="AWS region of the S3 client")
@click.option("--endpoint", envvar="S3_ENDPOINT_URL", help="Custom S3 endpoint URL")
def apply(config_file: str, strict_versioning: bool, region: str | None, endpoint: str | None):
    """
    Create and configure the bucket described by a document.

    Credentials are read from the standard AWS environment variables.
    """
    resolved = _resolve_file(config_file, strict_versioning)
    if not resolved.created:
        click.echo("Bucket creation disabled; nothing to apply")
        return

    provider = _get_provider(region or resolved.bucket.region, endpoint)
    try:
        name = provider.apply(resolved)
    except (ClientError, BotoCoreError) as e:
        click.echo(f"✗ Apply failed: {sanitize_exception(e)}", err=True)
        sys.exit(EXIT_PROVIDER_ERROR)
    click.echo(f"✓ Bucket '{name}' applied")


@cli.command()
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--bucket", "bucket_name", help="Bucket name, required for prefix-named buckets")
@click.option("--region", envvar="AWS_REGION", help="AWS region of the S3 client")
@click.option("--endpoint", envvar="S3_ENDPOINT_URL", help="Custom S3 endpoint URL")
def destroy(config_file: str, bucket_name: str | None, region: str | None, endpoint: str | None):
    """
    Delete the bucket described by a document, honouring force_destroy.
    """
    resolved = _resolve_file(config_file)
    if not resolved.created:
        click.echo("Bucket creation disabled; nothing to destroy")
        return

    provider = _get_provider(region or resolved.bucket.region, endpoint)
    try:
        provider.destroy(resolved, bucket_name)
    except (ClientError, BotoCoreError, ValueError) as e:
        click.echo(f"✗ Destroy failed: {sanitize_exception(e)}", err=True)
        sys.exit(EXIT_PROVIDER_ERROR)
    click.echo(f"✓ Bucket '{bucket_name or resolved.bucket.bucket}' destroyed")


@cli.command()
@click.argument("target", type=click.Choice(TARGETS))
@click.option("--from-cache", is_flag=True, help="Load the cached image instead of building it")
@click.option("--config", "config_path", default="bucket.yaml", show_default=True, help="Document for the plan target")
def harness(target: str, from_cache: bool, config_path: str):
    """
    Run a container build or test target.

    Settings come from BUILD_VERSION, REPOSITORY_NAME, DOCKER_CACHE_IMAGE and
    PLAN_FILENAME; AWS credentials are forwarded to test and plan runs.

    Example:
        s3-bucket-resolver harness test --from-cache
    """
    settings = HarnessSettings.from_env()
    commands = harness_commands(target, settings, from_cache=from_cache, config_path=config_path)
    sys.exit(run_harness(commands))


if __name__ == "__main__":
    cli()
