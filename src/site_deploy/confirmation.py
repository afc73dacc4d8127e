"""
site_deploy.confirmation — Safety check before deploying to several buckets.

A policy is any callable taking the target bucket names and returning True
to proceed. The orchestrator only consults it when more than one bucket
would be overwritten.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence

from aws_lambda_powertools import Logger

logger = Logger(service="site-deploy")

ConfirmationPolicy = Callable[[Sequence[str]], bool]


def auto_confirm(bucket_names: Sequence[str]) -> bool:
    return True


class DelayConfirmation:
    """Warn and wait; the operator aborts with Ctrl+C during the window."""

    def __init__(
        self, delay_seconds: float, *, sleep: Callable[[float], None] = time.sleep
    ) -> None:
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def __call__(self, bucket_names: Sequence[str]) -> bool:
        logger.warning(
            "Artefacts will be pushed to more than one bucket. Hit Ctrl+C to abort now!",
            buckets=list(bucket_names),
            delay_seconds=self.delay_seconds,
        )
        if self.delay_seconds > 0:
            self._sleep(self.delay_seconds)
        return True


class PromptConfirmation:
    """Ask on the terminal; anything but y/yes declines."""

    def __init__(self, input_func: Callable[[str], str] = input) -> None:
        self._input = input_func

    def __call__(self, bucket_names: Sequence[str]) -> bool:
        prompt = f"Deploy to {len(bucket_names)} buckets ({', '.join(bucket_names)})? [y/N] "
        answer = self._input(prompt)
        return answer.strip().lower() in {"y", "yes"}
