"""
site_deploy.edge_cache — CloudFront access used by the deployment pipeline.

Wraps list_distributions / get_distribution / create_invalidation and
translates botocore failures (timeouts included) into site_deploy errors.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError

from site_deploy.exceptions import (
    DistributionListError,
    DistributionNotFound,
    InvalidationError,
)
from site_deploy.models import Distribution, DistributionPage, DistributionSummary

logger = Logger(service="site-deploy")


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def _aliases(raw: dict[str, Any]) -> tuple[str, ...]:
    return tuple(str(alias) for alias in (raw.get("Aliases") or {}).get("Items") or [])


class CloudFrontEdgeCache:
    """EdgeCache backed by a boto3 CloudFront client."""

    def __init__(self, cloudfront_client: Any) -> None:
        self._cloudfront = cloudfront_client

    def list_distributions(self, marker: str | None = None) -> DistributionPage:
        """Return one page of distributions; next_marker is None on the last page."""
        kwargs: dict[str, Any] = {}
        if marker:
            kwargs["Marker"] = marker
        try:
            response = self._cloudfront.list_distributions(**kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise DistributionListError(reason=str(exc)) from exc
        listing = response.get("DistributionList", {})
        items = tuple(
            DistributionSummary(distribution_id=str(item["Id"]), aliases=_aliases(item))
            for item in listing.get("Items") or []
        )
        next_marker = listing.get("NextMarker") if listing.get("IsTruncated", True) else None
        return DistributionPage(items=items, next_marker=next_marker or None)

    def get_distribution(self, distribution_id: str) -> Distribution:
        try:
            response = self._cloudfront.get_distribution(Id=distribution_id)
        except ClientError as exc:
            raise DistributionNotFound(
                distribution_id=distribution_id, reason=_error_code(exc) or str(exc)
            ) from exc
        except BotoCoreError as exc:
            raise DistributionNotFound(distribution_id=distribution_id, reason=str(exc)) from exc

        config = response["Distribution"]["DistributionConfig"]
        origins = (config.get("Origins") or {}).get("Items") or []
        if not origins:
            raise DistributionNotFound(
                distribution_id=distribution_id, reason="distribution has no origins"
            )
        return Distribution(
            distribution_id=distribution_id,
            origin_domain=str(origins[0]["DomainName"]),
            aliases=_aliases(config),
        )

    def create_invalidation(
        self,
        distribution_id: str,
        paths: Sequence[str],
        caller_reference: str,
    ) -> str:
        """Create an invalidation and return its id."""
        try:
            response = self._cloudfront.create_invalidation(
                DistributionId=distribution_id,
                InvalidationBatch={
                    "CallerReference": caller_reference,
                    "Paths": {"Quantity": len(paths), "Items": list(paths)},
                },
            )
        except (ClientError, BotoCoreError) as exc:
            raise InvalidationError(distribution_id=distribution_id, reason=str(exc)) from exc
        invalidation_id = str(response["Invalidation"]["Id"])
        logger.debug(
            "CloudFront invalidation requested",
            distribution_id=distribution_id,
            invalidation_id=invalidation_id,
        )
        return invalidation_id
