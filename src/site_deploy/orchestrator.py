"""
site_deploy.orchestrator — Deployment state machine.

    resolving → confirming (only if >1 bucket) → syncing (bucket by bucket)
              → invalidating (per distribution) → notifying → done

Any exception raised while resolving, confirming or syncing (a DeployError,
or an interrupt during the confirmation window) moves the run to failed and
is re-raised: no further bucket is touched and no
invalidation or notification is sent. Invalidations start only after every
bucket has been synced. A failed invalidation is recorded and the next
distribution is still invalidated. The notification is attempted once and
its failure never changes the outcome.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from typing import Any

from aws_lambda_powertools import Logger

from site_deploy.bucket_sync import BucketSync
from site_deploy.config import DEFAULT_CONFIRM_DELAY_SECONDS
from site_deploy.confirmation import ConfirmationPolicy, DelayConfirmation
from site_deploy.exceptions import (
    DeploymentAborted,
    InvalidationError,
    NotificationError,
)
from site_deploy.models import (
    INVALIDATE_ALL_PATHS,
    DeploymentRequest,
    DeploymentResult,
    DeployState,
    InvalidationResult,
    SyncResult,
)
from site_deploy.resolver import DistributionResolver

logger = Logger(service="site-deploy")


def caller_reference(distribution_id: str, now: float) -> str:
    """Unique CallerReference: millisecond timestamp plus distribution id."""
    return f"{int(now * 1000)}-{distribution_id}"


def success_message(
    domains: Sequence[str], failed_invalidations: Sequence[InvalidationResult] = ()
) -> str:
    message = f"successfully deployed UI for domains: {', '.join(domains)}"
    if failed_invalidations:
        failed = ", ".join(inv.distribution_id for inv in failed_invalidations)
        message += f" (cache invalidation failed for: {failed})"
    return message


class DeployOrchestrator:
    def __init__(
        self,
        *,
        resolver: DistributionResolver,
        bucket_sync: BucketSync,
        edge_cache: Any,
        notifier: Any = None,
        confirm: ConfirmationPolicy | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._resolver = resolver
        self._bucket_sync = bucket_sync
        self._edge_cache = edge_cache
        self._notifier = notifier
        self._confirm = confirm or DelayConfirmation(DEFAULT_CONFIRM_DELAY_SECONDS)
        self._clock = clock
        self.state = DeployState.RESOLVING
        self.history: list[DeployState] = []

    def _enter(self, state: DeployState) -> None:
        self.state = state
        self.history.append(state)
        logger.info("Deployment stage", state=str(state))

    def deploy(self, request: DeploymentRequest) -> DeploymentResult:
        """Run the full pipeline for one request. Raises DeployError on fatal failure."""
        self.history = []
        logger.info(
            "Starting deploy",
            domains=list(request.domains),
            local_directory=str(request.local_directory),
        )
        try:
            self._enter(DeployState.RESOLVING)
            distribution_ids, bucket_names = self._resolver.resolve(request.domains)
            logger.info("Found CloudFront attached buckets", buckets=list(bucket_names))

            if len(bucket_names) > 1:
                self._enter(DeployState.CONFIRMING)
                if not self._confirm(bucket_names):
                    raise DeploymentAborted(bucket_names=bucket_names)

            self._enter(DeployState.SYNCING)
            syncs = self.sync_buckets(bucket_names, request)
        except BaseException as exc:
            failed_in = self.state
            self._enter(DeployState.FAILED)
            logger.error(
                "Deployment failed",
                state=str(failed_in),
                error=str(exc) or type(exc).__name__,
            )
            raise

        self._enter(DeployState.INVALIDATING)
        invalidations = self.invalidate_all(distribution_ids)
        failed = tuple(inv for inv in invalidations if not inv.succeeded)

        self._enter(DeployState.NOTIFYING)
        notified = self.notify(success_message(request.domains, failed))

        self._enter(DeployState.DONE)
        logger.info("All done", domains=list(request.domains))
        return DeploymentResult(
            domains=request.domains,
            distribution_ids=distribution_ids,
            bucket_names=bucket_names,
            syncs=syncs,
            invalidations=invalidations,
            notified=notified,
            state=self.state,
            history=tuple(self.history),
        )

    def sync_buckets(
        self, bucket_names: Sequence[str], request: DeploymentRequest
    ) -> tuple[SyncResult, ...]:
        logger.info(
            "Will upload to buckets from local dir",
            buckets=list(bucket_names),
            local_directory=str(request.local_directory),
        )
        return tuple(
            self._bucket_sync.sync(bucket, request.local_directory) for bucket in bucket_names
        )

    def invalidate_all(self, distribution_ids: Sequence[str]) -> tuple[InvalidationResult, ...]:
        results: list[InvalidationResult] = []
        for distribution_id in distribution_ids:
            try:
                invalidation_id = self._edge_cache.create_invalidation(
                    distribution_id,
                    INVALIDATE_ALL_PATHS,
                    caller_reference(distribution_id, self._clock()),
                )
            except InvalidationError as exc:
                logger.exception("Error creating invalidation", distribution_id=distribution_id)
                results.append(InvalidationResult(distribution_id=distribution_id, error=str(exc)))
                continue
            logger.info(
                "CloudFront invalidation created",
                distribution_id=distribution_id,
                invalidation_id=invalidation_id,
            )
            results.append(
                InvalidationResult(distribution_id=distribution_id, invalidation_id=invalidation_id)
            )
        return tuple(results)

    def notify(self, text: str) -> bool:
        """Send the status message once; returns whether it was delivered."""
        if self._notifier is None:
            logger.debug("No notifier configured, skipping status message")
            return False
        try:
            self._notifier.send_message(text)
        except NotificationError:
            logger.exception("Failed to send status message")
            return False
        return True
