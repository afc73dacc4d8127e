"""
site_deploy.resolver — Domain → CloudFront distribution → S3 bucket.

Distributions are listed fresh on every run. For each domain the listing is
paged until a distribution whose aliases contain the domain turns up or the
pages run out. A domain with no match is logged and skipped; if no domain
matches at all the deployment has no target and NoDistributionFound is
raised before anything destructive happens.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from aws_lambda_powertools import Logger

from site_deploy.exceptions import NoDistributionFound
from site_deploy.models import DistributionSummary, ordered_unique

logger = Logger(service="site-deploy")


class DistributionResolver:
    def __init__(self, edge_cache: Any) -> None:
        self._edge_cache = edge_cache

    def find_distribution(self, domain: str) -> DistributionSummary | None:
        """Page through distributions until one serves domain; stop on first match."""
        marker: str | None = None
        while True:
            page = self._edge_cache.list_distributions(marker)
            for summary in page.items:
                if summary.serves(domain):
                    return summary
            marker = page.next_marker
            if not marker:
                return None

    def resolve_distribution_ids(self, domains: Iterable[str]) -> tuple[str, ...]:
        requested = ordered_unique(domains)
        found: list[str] = []
        for domain in requested:
            logger.info("Looking up CloudFront distribution", domain=domain)
            summary = self.find_distribution(domain)
            if summary is None:
                logger.warning("No CloudFront distribution found for domain", domain=domain)
                continue
            logger.info(
                "Found CloudFront distribution",
                domain=domain,
                distribution_id=summary.distribution_id,
            )
            found.append(summary.distribution_id)

        distribution_ids = ordered_unique(found)
        if not distribution_ids:
            raise NoDistributionFound(domains=requested)
        return distribution_ids

    def resolve_bucket_names(self, distribution_ids: Iterable[str]) -> tuple[str, ...]:
        """Origin bucket per distribution; distributions may share a bucket."""
        buckets: list[str] = []
        for distribution_id in distribution_ids:
            distribution = self._edge_cache.get_distribution(distribution_id)
            logger.info(
                "Resolved origin bucket",
                distribution_id=distribution_id,
                origin_domain=distribution.origin_domain,
                bucket=distribution.bucket_name,
            )
            buckets.append(distribution.bucket_name)
        return ordered_unique(buckets)

    def resolve(self, domains: Iterable[str]) -> tuple[tuple[str, ...], tuple[str, ...]]:
        """Return (distribution_ids, bucket_names) for the given domains."""
        distribution_ids = self.resolve_distribution_ids(domains)
        return distribution_ids, self.resolve_bucket_names(distribution_ids)
