"""
site_deploy.cli — Command-line entry point.

Usage:
    site-deploy --domain www.example.com --dir dist/
    site-deploy --domain a.example.com --domain b.example.com --dir dist/ --yes
    site-deploy --domain www.example.com --dir dist/ --dry-run

Exit codes:
    0    deployed (failed invalidations or notification still count as success)
    1    fatal deployment error (resolution, cleanup, upload, aborted)
    2    invalid configuration or request
    130  interrupted (Ctrl+C during the multi-bucket warning window)
"""

from __future__ import annotations

import argparse
import sys

from aws_lambda_powertools import Logger

from site_deploy.bucket_sync import BucketSync
from site_deploy.config import AwsClients, DeployConfig, build_clients, load_config
from site_deploy.confirmation import (
    ConfirmationPolicy,
    DelayConfirmation,
    PromptConfirmation,
    auto_confirm,
)
from site_deploy.edge_cache import CloudFrontEdgeCache
from site_deploy.exceptions import ConfigError, DeployError, InvalidRequestError
from site_deploy.models import DeploymentRequest
from site_deploy.notifier import SlackWebhookNotifier
from site_deploy.object_store import S3ObjectStore
from site_deploy.orchestrator import DeployOrchestrator
from site_deploy.resolver import DistributionResolver

logger = Logger(service="site-deploy")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="site-deploy",
        description="Deploy a static site build to the S3 buckets behind CloudFront domains.",
    )
    parser.add_argument(
        "--domain",
        dest="domains",
        action="append",
        required=True,
        help="Domain alias of a CloudFront distribution (repeatable)",
    )
    parser.add_argument("--dir", dest="directory", required=True, help="Local build directory")
    parser.add_argument("--profile", default=None, help="AWS profile (default AWS_PROFILE)")
    parser.add_argument("--region", default=None, help="AWS region (default AWS_REGION/us-east-1)")
    parser.add_argument(
        "--slack-url",
        default=None,
        help="Slack incoming webhook URL (default DEPLOY_SLACK_WEBHOOK_URL)",
    )

    confirm = parser.add_mutually_exclusive_group()
    confirm.add_argument(
        "--confirm-delay",
        type=int,
        default=None,
        help="Seconds to wait before deploying to several buckets (default 5)",
    )
    confirm.add_argument(
        "--yes",
        action="store_true",
        help="Deploy to several buckets without warning",
    )
    confirm.add_argument(
        "--interactive",
        action="store_true",
        help="Ask before deploying to several buckets",
    )

    parser.add_argument(
        "--upload-workers",
        type=int,
        default=None,
        help="Concurrent uploads per bucket (default DEPLOY_UPLOAD_WORKERS or 1)",
    )
    parser.add_argument(
        "--timeout-seconds",
        type=int,
        default=None,
        help="Connect and read timeout per AWS call (default DEPLOY_TIMEOUT_SECONDS or 30)",
    )
    parser.add_argument(
        "--max-attempts",
        type=int,
        default=None,
        help="Attempts per AWS call including retries (default DEPLOY_MAX_ATTEMPTS or 3)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve distributions and buckets only; change nothing",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> DeployConfig:
    return load_config(
        aws_region=args.region,
        aws_profile=args.profile,
        slack_webhook_url=args.slack_url,
        confirm_delay_seconds=args.confirm_delay,
        upload_workers=args.upload_workers,
        timeout_seconds=args.timeout_seconds,
        max_attempts=args.max_attempts,
    )


def confirmation_policy(args: argparse.Namespace, config: DeployConfig) -> ConfirmationPolicy:
    if args.yes:
        return auto_confirm
    if args.interactive:
        return PromptConfirmation()
    return DelayConfirmation(config.confirm_delay_seconds)


def build_orchestrator(
    config: DeployConfig,
    *,
    confirm: ConfirmationPolicy,
    clients: AwsClients | None = None,
) -> DeployOrchestrator:
    aws = clients or build_clients(config)
    edge_cache = CloudFrontEdgeCache(aws.cloudfront)
    object_store = S3ObjectStore(aws.s3)
    notifier = (
        SlackWebhookNotifier(config.slack_webhook_url, timeout_seconds=config.timeout_seconds)
        if config.slack_webhook_url
        else None
    )
    return DeployOrchestrator(
        resolver=DistributionResolver(edge_cache),
        bucket_sync=BucketSync(object_store, max_workers=config.upload_workers),
        edge_cache=edge_cache,
        notifier=notifier,
        confirm=confirm,
    )


def run_dry_run(config: DeployConfig, request: DeploymentRequest) -> int:
    clients = build_clients(config)
    resolver = DistributionResolver(CloudFrontEdgeCache(clients.cloudfront))
    distribution_ids, bucket_names = resolver.resolve(request.domains)
    print(f"CF IDs: {', '.join(distribution_ids)}")
    print(f"Buckets: {', '.join(bucket_names)}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if args.log_level:
        logger.setLevel(args.log_level)

    try:
        config = config_from_args(args)
        request = DeploymentRequest.create(args.domains, args.directory)
    except (ConfigError, InvalidRequestError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    logger.info(
        "Using AWS profile and region",
        aws_profile=config.aws_profile or "default",
        aws_region=config.aws_region,
    )
    try:
        if args.dry_run:
            return run_dry_run(config, request)
        orchestrator = build_orchestrator(config, confirm=confirmation_policy(args, config))
        result = orchestrator.deploy(request)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2
    except DeployError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Deployment interrupted", file=sys.stderr)
        return 130

    for invalidation in result.failed_invalidations:
        print(
            f"WARNING: invalidation failed for {invalidation.distribution_id}: "
            f"{invalidation.error}",
            file=sys.stderr,
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
