"""Human-like interaction and consent-screen handling."""

import asyncio
import random
from typing import Optional, Tuple

from playwright.async_api import Locator, Page

from wifi_reviews.utils.logging import logger

CONSENT_SELECTORS = [
    'button[aria-label*="Accept all"]',
    'button:has-text("Accept all")',
    'button:has-text("Reject all")',
    'form[action*="consent"] button',
    'button[id*="accept"]',
    'button:has-text("I agree")',
]


async def human_delay(min_ms: float = 500, max_ms: float = 2000) -> None:
    """Sleep for a random duration between min_ms and max_ms."""
    await asyncio.sleep(random.uniform(min_ms, max_ms) / 1000)


def _ease_in_out(progress: float) -> float:
    """Smoothstep easing: slow start, fast middle, slow finish."""
    return progress * progress * (3 - 2 * progress)


async def human_move(
    page: Page,
    target_x: float,
    target_y: float,
    start: Optional[Tuple[float, float]] = None,
    steps: Optional[int] = None,
) -> Tuple[float, float]:
    """Move the pointer to a point along an eased, slightly curved path.

    Returns the final pointer position so the next move can start there.
    """
    start_x, start_y = start or (random.uniform(50, 200), random.uniform(50, 200))
    steps = steps or random.randint(5, 15)

    for i in range(1, steps + 1):
        eased = _ease_in_out(i / steps)
        wobble = (1 - eased) * random.uniform(-15, 15)
        x = start_x + (target_x - start_x) * eased + wobble
        y = start_y + (target_y - start_y) * eased + wobble
        await page.mouse.move(x, y)
        await asyncio.sleep(random.uniform(0.01, 0.04))

    return target_x, target_y


async def human_click(
    page: Page,
    locator: Locator,
    start: Optional[Tuple[float, float]] = None,
) -> Optional[Tuple[float, float]]:
    """Click a random point inside the element after an eased pointer move.

    Falls back to a plain click when the element has no bounding box.

    Returns:
        Pointer position after the click, or None for a plain click
    """
    element = locator.first
    box = await element.bounding_box()

    if not box:
        await element.click()
        return None

    x = box["x"] + random.uniform(0.2, 0.8) * box["width"]
    y = box["y"] + random.uniform(0.2, 0.8) * box["height"]

    position = await human_move(page, x, y, start=start)
    await human_delay(100, 300)
    await page.mouse.click(x, y)
    await human_delay(150, 400)
    return position


async def dismiss_consent_screen(page: Page) -> bool:
    """Dismiss a cookie/consent interstitial if one is shown.

    Args:
        page: Playwright page

    Returns:
        True if a consent button was found and clicked, False otherwise
    """
    for selector in CONSENT_SELECTORS:
        try:
            button = page.locator(selector).first
            if await button.count() > 0:
                logger.debug(f"[CONSENT] Found consent button with selector: {selector}")
                await button.click()
                await asyncio.sleep(1)
                return True
        except Exception as e:
            logger.debug(f"[CONSENT] Could not click selector {selector}: {e}")

    logger.debug("[CONSENT] No consent screen found")
    return False
