"""
site_deploy.exceptions — Deployment error taxonomy.

Fatal errors (anything not listed as non-fatal below) abort the deployment
before the next stage starts and surface as a non-zero exit code.

Non-fatal:
    InvalidationError: logged per distribution, other distributions continue.
    NotificationError: logged, never changes the deployment outcome.
"""

from __future__ import annotations

from collections.abc import Sequence


class DeployError(RuntimeError):
    """Base class for deployment errors."""


class ConfigError(DeployError):
    """Raised when a configuration value is missing or malformed."""


class InvalidRequestError(DeployError):
    """Raised when a deployment request cannot be constructed."""


class ResolutionError(DeployError):
    """Raised when none of the requested domains maps to a distribution."""

    def __init__(self, *, domains: Sequence[str]) -> None:
        self.domains = tuple(domains)
        super().__init__(
            f"Found no CloudFront distribution for any of the given domains: "
            f"{', '.join(self.domains)}"
        )


class NoDistributionFound(ResolutionError):
    """Zero distributions matched; the deployment has no target."""


class DistributionListError(DeployError):
    """Raised when the distribution listing itself cannot be read."""

    def __init__(self, *, reason: str) -> None:
        super().__init__(f"Listing CloudFront distributions failed: {reason}")


class DistributionNotFound(DeployError):
    """Raised when a distribution id cannot be fetched."""

    def __init__(self, *, distribution_id: str, reason: str = "") -> None:
        self.distribution_id = distribution_id
        message = f"CloudFront distribution {distribution_id!r} could not be read"
        super().__init__(f"{message}: {reason}" if reason else message)


class DeploymentAborted(DeployError):
    """Raised when the multi-bucket confirmation is declined."""

    def __init__(self, *, bucket_names: Sequence[str]) -> None:
        self.bucket_names = tuple(bucket_names)
        super().__init__(f"Deployment to buckets {', '.join(self.bucket_names)} was not confirmed")


class ListError(DeployError):
    """Raised when a bucket listing fails during cleanup."""

    def __init__(self, *, bucket: str, reason: str) -> None:
        self.bucket = bucket
        super().__init__(f"Listing bucket {bucket!r} failed: {reason}")


class DeleteError(DeployError):
    """Raised when a batch delete fails or reports per-key errors."""

    def __init__(self, *, bucket: str, keys: Sequence[str], reason: str) -> None:
        self.bucket = bucket
        self.keys = tuple(keys)
        super().__init__(
            f"Deleting {len(self.keys)} object(s) from bucket {bucket!r} failed: {reason}"
        )


class UploadError(DeployError):
    """Raised when a single file upload fails. Aborts the whole deployment."""

    def __init__(self, *, bucket: str, key: str, reason: str) -> None:
        self.bucket = bucket
        self.key = key
        super().__init__(f"Failed to upload s3://{bucket}/{key}: {reason}")


class InvalidationError(DeployError):
    """Raised when a CloudFront invalidation cannot be created. Non-fatal."""

    def __init__(self, *, distribution_id: str, reason: str) -> None:
        self.distribution_id = distribution_id
        super().__init__(f"Invalidation of distribution {distribution_id!r} failed: {reason}")


class NotificationError(DeployError):
    """Raised when the status message cannot be delivered. Non-fatal."""
