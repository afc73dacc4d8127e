"""
site_deploy.models — Value types shared by the deployment pipeline.

Everything here is immutable. Ordered sets (distribution ids, bucket names,
domains) are tuples de-duplicated with dict.fromkeys so iteration order is
the first-seen order and logs are deterministic across runs.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from site_deploy.exceptions import InvalidRequestError

DEFAULT_CONTENT_TYPE = "application/octet-stream"
INVALIDATE_ALL_PATHS: tuple[str, ...] = ("/*",)


def ordered_unique(values: Iterable[str]) -> tuple[str, ...]:
    """Return values without duplicates, keeping first-seen order."""
    return tuple(dict.fromkeys(values))


def bucket_name_from_origin(origin_domain: str) -> str:
    """Bucket name is the origin domain up to its first dot.

    bucket123.s3.amazonaws.com -> bucket123
    """
    return origin_domain.split(".", 1)[0]


class DeployState(StrEnum):
    RESOLVING = "resolving"
    CONFIRMING = "confirming"
    SYNCING = "syncing"
    INVALIDATING = "invalidating"
    NOTIFYING = "notifying"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class DeploymentRequest:
    """One deployment: unique domains plus the local build directory."""

    domains: tuple[str, ...]
    local_directory: Path

    @classmethod
    def create(cls, domains: Iterable[str], local_directory: str | Path) -> DeploymentRequest:
        cleaned = ordered_unique(d.strip() for d in domains if d and d.strip())
        if not cleaned:
            raise InvalidRequestError("At least one domain is required")
        directory = Path(local_directory)
        if not directory.is_dir():
            raise InvalidRequestError(f"Local directory does not exist: {directory}")
        return cls(domains=cleaned, local_directory=directory)


# ---------------------------------------------------------------------------
# CloudFront
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DistributionSummary:
    distribution_id: str
    aliases: tuple[str, ...] = ()

    def serves(self, domain: str) -> bool:
        return domain in self.aliases


@dataclass(frozen=True)
class DistributionPage:
    items: tuple[DistributionSummary, ...]
    next_marker: str | None = None


@dataclass(frozen=True)
class Distribution:
    """Distribution details. The first origin entry is authoritative."""

    distribution_id: str
    origin_domain: str
    aliases: tuple[str, ...] = ()

    @property
    def bucket_name(self) -> str:
        return bucket_name_from_origin(self.origin_domain)


@dataclass(frozen=True)
class InvalidationResult:
    distribution_id: str
    invalidation_id: str | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# S3 / local files
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ObjectPage:
    keys: tuple[str, ...]
    next_token: str | None = None


@dataclass(frozen=True)
class LocalFile:
    path: Path
    key: str  # POSIX, relative to the walk root, no leading slash
    size: int
    content_type: str = DEFAULT_CONTENT_TYPE


@dataclass(frozen=True)
class SyncResult:
    bucket: str
    deleted_count: int
    uploaded_keys: tuple[str, ...]


@dataclass(frozen=True)
class DeploymentResult:
    domains: tuple[str, ...]
    distribution_ids: tuple[str, ...]
    bucket_names: tuple[str, ...]
    syncs: tuple[SyncResult, ...] = ()
    invalidations: tuple[InvalidationResult, ...] = ()
    notified: bool = False
    state: DeployState = DeployState.DONE
    history: tuple[DeployState, ...] = ()

    @property
    def failed_invalidations(self) -> tuple[InvalidationResult, ...]:
        return tuple(inv for inv in self.invalidations if not inv.succeeded)
