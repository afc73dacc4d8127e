"""
site_deploy.config — Deployment settings and AWS client construction.

CLI flags win over environment variables, which win over defaults:

    AWS_PROFILE                   boto3 profile (default: credential chain)
    AWS_REGION                    client region (default us-east-1)
    DEPLOY_SLACK_WEBHOOK_URL      Slack incoming webhook; unset = no message
    DEPLOY_CONFIRM_DELAY_SECONDS  multi-bucket warning window (default 5)
    DEPLOY_UPLOAD_WORKERS         concurrent uploads per bucket (default 1)
    DEPLOY_TIMEOUT_SECONDS        connect/read timeout per call (default 30)
    DEPLOY_MAX_ATTEMPTS           botocore attempts per call (default 3)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError

from site_deploy.exceptions import ConfigError

DEFAULT_REGION = "us-east-1"
DEFAULT_CONFIRM_DELAY_SECONDS = 5
DEFAULT_UPLOAD_WORKERS = 1
DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class DeployConfig:
    aws_region: str = DEFAULT_REGION
    aws_profile: str | None = None
    slack_webhook_url: str | None = None
    confirm_delay_seconds: int = DEFAULT_CONFIRM_DELAY_SECONDS
    upload_workers: int = DEFAULT_UPLOAD_WORKERS
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS


@dataclass(frozen=True)
class AwsClients:
    s3: Any
    cloudfront: Any


def _env_str(name: str) -> str | None:
    value = os.environ.get(name, "").strip()
    return value or None


def _env_int(name: str, default: int, *, minimum: int) -> int:
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc
    return _check_minimum(name, value, minimum)


def _check_minimum(name: str, value: int, minimum: int) -> int:
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def load_config(
    *,
    aws_region: str | None = None,
    aws_profile: str | None = None,
    slack_webhook_url: str | None = None,
    confirm_delay_seconds: int | None = None,
    upload_workers: int | None = None,
    timeout_seconds: int | None = None,
    max_attempts: int | None = None,
) -> DeployConfig:
    """Build a DeployConfig from explicit overrides, then environment, then defaults."""
    return DeployConfig(
        aws_region=aws_region or _env_str("AWS_REGION") or DEFAULT_REGION,
        aws_profile=aws_profile or _env_str("AWS_PROFILE"),
        slack_webhook_url=slack_webhook_url or _env_str("DEPLOY_SLACK_WEBHOOK_URL"),
        confirm_delay_seconds=(
            _check_minimum("confirm_delay_seconds", confirm_delay_seconds, 0)
            if confirm_delay_seconds is not None
            else _env_int("DEPLOY_CONFIRM_DELAY_SECONDS", DEFAULT_CONFIRM_DELAY_SECONDS, minimum=0)
        ),
        upload_workers=(
            _check_minimum("upload_workers", upload_workers, 1)
            if upload_workers is not None
            else _env_int("DEPLOY_UPLOAD_WORKERS", DEFAULT_UPLOAD_WORKERS, minimum=1)
        ),
        timeout_seconds=(
            _check_minimum("timeout_seconds", timeout_seconds, 1)
            if timeout_seconds is not None
            else _env_int("DEPLOY_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS, minimum=1)
        ),
        max_attempts=(
            _check_minimum("max_attempts", max_attempts, 1)
            if max_attempts is not None
            else _env_int("DEPLOY_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS, minimum=1)
        ),
    )


def botocore_config(config: DeployConfig) -> Config:
    """Timeouts and bounded retries applied to every AWS call."""
    return Config(
        connect_timeout=config.timeout_seconds,
        read_timeout=config.timeout_seconds,
        retries={"max_attempts": config.max_attempts, "mode": "standard"},
    )


def build_clients(config: DeployConfig) -> AwsClients:
    """Create the S3 and CloudFront clients once per process."""
    try:
        session = boto3.Session(profile_name=config.aws_profile, region_name=config.aws_region)
    except BotoCoreError as exc:
        raise ConfigError(f"Cannot create AWS session: {exc}") from exc
    client_config = botocore_config(config)
    return AwsClients(
        s3=session.client("s3", config=client_config),
        cloudfront=session.client("cloudfront", config=client_config),
    )
