"""
site_deploy — Deploy a static site build to S3 and invalidate CloudFront.

Resolves domains to CloudFront distributions, replaces the contents of each
origin bucket with a local directory, invalidates every distribution and
reports the outcome to an optional Slack webhook.
"""

from site_deploy.bucket_sync import BucketSync
from site_deploy.edge_cache import CloudFrontEdgeCache
from site_deploy.exceptions import (
    DeployError,
    InvalidationError,
    NoDistributionFound,
    ResolutionError,
    UploadError,
)
from site_deploy.models import DeploymentRequest, DeploymentResult, DeployState
from site_deploy.object_store import S3ObjectStore
from site_deploy.orchestrator import DeployOrchestrator
from site_deploy.resolver import DistributionResolver

__all__ = [
    "BucketSync",
    "CloudFrontEdgeCache",
    "DeployError",
    "DeployOrchestrator",
    "DeployState",
    "DeploymentRequest",
    "DeploymentResult",
    "DistributionResolver",
    "InvalidationError",
    "NoDistributionFound",
    "ResolutionError",
    "S3ObjectStore",
    "UploadError",
]
