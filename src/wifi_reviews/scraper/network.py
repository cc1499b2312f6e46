"""Latency probe and timeouts scaled to the measured network class."""

import time
from dataclasses import dataclass, replace
from typing import Dict

from playwright.async_api import Page

from wifi_reviews.utils.logging import logger

PROBE_URL = "data:text/html,<html><body>Network Test</body></html>"
PROBE_TIMEOUT_MS = 5000

FAST_THRESHOLD_MS = 500
MEDIUM_THRESHOLD_MS = 1500
STABLE_THRESHOLD_MS = 2000
MAX_RETRIES_CAP = 6


@dataclass(frozen=True)
class NetworkConditions:
    connection_speed: str = "medium"  # fast | medium | slow
    latency_ms: float = 1000.0
    is_stable: bool = False


@dataclass(frozen=True)
class AdaptiveTimeouts:
    """Per-operation timeouts in milliseconds plus the step retry budget."""

    navigation: float
    selector: float
    results: float
    interaction: float
    max_retries: int

    @classmethod
    def for_conditions(cls, conditions: NetworkConditions) -> "AdaptiveTimeouts":
        timeouts = BASE_TIMEOUTS.get(conditions.connection_speed, BASE_TIMEOUTS["medium"])

        if not conditions.is_stable:
            timeouts = replace(
                timeouts,
                navigation=timeouts.navigation * 1.5,
                selector=timeouts.selector * 1.3,
                results=timeouts.results * 1.4,
                interaction=timeouts.interaction * 1.2,
                max_retries=min(timeouts.max_retries + 1, MAX_RETRIES_CAP),
            )

        return timeouts


BASE_TIMEOUTS: Dict[str, AdaptiveTimeouts] = {
    "fast": AdaptiveTimeouts(navigation=45000, selector=20000, results=10000, interaction=5000, max_retries=3),
    "medium": AdaptiveTimeouts(navigation=60000, selector=30000, results=15000, interaction=8000, max_retries=4),
    "slow": AdaptiveTimeouts(navigation=90000, selector=45000, results=25000, interaction=12000, max_retries=5),
}


def classify_latency(latency_ms: float) -> NetworkConditions:
    """Map a probe round-trip time onto a network class."""
    if latency_ms < FAST_THRESHOLD_MS:
        speed = "fast"
    elif latency_ms < MEDIUM_THRESHOLD_MS:
        speed = "medium"
    else:
        speed = "slow"
    return NetworkConditions(
        connection_speed=speed,
        latency_ms=latency_ms,
        is_stable=latency_ms < STABLE_THRESHOLD_MS,
    )


async def detect_network_conditions(page: Page) -> NetworkConditions:
    """Time a trivial navigation to estimate how slow the browser is.

    Args:
        page: Playwright page (navigated away from as a side effect)

    Returns:
        Network conditions; medium and unstable when the probe fails
    """
    start = time.monotonic()
    try:
        await page.goto(PROBE_URL, timeout=PROBE_TIMEOUT_MS)
    except Exception as e:
        logger.warning(f"Could not detect network conditions, using defaults: {e}")
        return NetworkConditions()

    conditions = classify_latency((time.monotonic() - start) * 1000)
    logger.info(
        f"Network conditions: {conditions.connection_speed} "
        f"({conditions.latency_ms:.0f}ms latency, stable={conditions.is_stable})"
    )
    return conditions
