"""Selector-fallback chains.

The map site's markup is unversioned and drifts, so every lookup is an
ordered list of alternative strategies. The first strategy that matches at
least one element wins. Chains are plain data so they can be inspected,
reordered and tested without a browser.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple

from playwright.async_api import Locator

from wifi_reviews.errors import SelectorNotFoundError
from wifi_reviews.utils.logging import logger

# Anything with a .locator() method: a Page, a Frame or a Locator
Scope = Any


@dataclass(frozen=True)
class Strategy:
    """One way of finding an element inside a scope."""

    description: str
    locate: Callable[[Scope], Locator]


def css(selector: str) -> Strategy:
    """Strategy backed by a single Playwright selector."""
    return Strategy(selector, lambda scope: scope.locator(selector))


class SelectorChain:
    """Ordered list of strategies tried until one yields a match."""

    def __init__(self, name: str, strategies: Sequence[Strategy]):
        if not strategies:
            raise ValueError(f"Selector chain '{name}' needs at least one strategy")
        self.name = name
        self.strategies: Tuple[Strategy, ...] = tuple(strategies)

    def __len__(self) -> int:
        return len(self.strategies)

    def __repr__(self) -> str:
        return f"SelectorChain({self.name!r}, {len(self.strategies)} strategies)"

    async def resolve(self, scope: Scope) -> Optional[Tuple[Strategy, Locator]]:
        """Return the first strategy with at least one match, and its locator."""
        for strategy in self.strategies:
            try:
                locator = strategy.locate(scope)
                if await locator.count() > 0:
                    logger.debug(f"[{self.name}] matched with: {strategy.description}")
                    return strategy, locator
            except Exception as e:
                # Invalid selector for this page state, try the next one
                logger.debug(f"[{self.name}] strategy {strategy.description} failed: {e}")
        return None

    async def locate(self, scope: Scope) -> Optional[Locator]:
        """Like resolve() but only returns the locator."""
        resolved = await self.resolve(scope)
        return resolved[1] if resolved else None

    async def wait_for(self, scope: Scope, timeout_ms: float, poll_ms: float = 250) -> Locator:
        """Poll the whole chain until a strategy matches.

        Args:
            scope: Page or locator to search in
            timeout_ms: Give up after this many milliseconds
            poll_ms: Delay between passes over the chain

        Returns:
            Locator of the winning strategy

        Raises:
            SelectorNotFoundError: When nothing matched before the timeout
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_ms / 1000

        while True:
            locator = await self.locate(scope)
            if locator is not None:
                return locator
            if loop.time() >= deadline:
                raise SelectorNotFoundError(self.name, len(self.strategies))
            await asyncio.sleep(poll_ms / 1000)

    async def first_text(self, scope: Scope) -> str:
        """Text of the first element matched by the first productive strategy.

        Strategies that match only empty text are skipped.
        """
        for strategy in self.strategies:
            try:
                element = strategy.locate(scope).first
                if await element.count() == 0:
                    continue
                text = await element.text_content()
                if text and text.strip():
                    return text.strip()
            except Exception as e:
                logger.debug(f"[{self.name}] text via {strategy.description} failed: {e}")
        return ""

    async def first_attribute(self, scope: Scope, attribute: str) -> str:
        """Attribute value of the first element that carries it."""
        for strategy in self.strategies:
            try:
                element = strategy.locate(scope).first
                if await element.count() == 0:
                    continue
                value = await element.get_attribute(attribute)
                if value and value.strip():
                    return value.strip()
            except Exception as e:
                logger.debug(f"[{self.name}] {attribute} via {strategy.description} failed: {e}")
        return ""


def _quoted(text: str) -> str:
    """Quote text for use inside a Playwright selector."""
    return json.dumps(text)


# Main search box on the map surface
SEARCH_BOX = SelectorChain(
    "search box",
    [
        css('input[data-value="Search"]'),
        css("input#searchboxinput"),
        css('input[aria-label*="Search"]'),
        css('input[placeholder*="Search"]'),
        css('input[placeholder*="search"]'),
        css('form input[type="text"]'),
    ],
)

# Place title once a detail view is open
PLACE_HEADER = SelectorChain(
    "place header",
    [
        css("h1.DUwDvf"),
        css('div[role="main"] h1'),
        css("h1"),
    ],
)

REVIEWS_TAB = SelectorChain(
    "reviews tab",
    [
        css('button[role="tab"]:has-text("Reviews")'),
        css('button:has-text("Reviews")'),
        css('button[data-value="Reviews"]'),
        css('[role="tab"]:has-text("Reviews")'),
        css('a:has-text("Reviews")'),
        css('[aria-label*="Reviews"]'),
    ],
)

# Confirms the review list rendered after opening the tab
REVIEWS_LOADED = SelectorChain(
    "review list",
    [
        css("[data-review-id]"),
        css(".jftiEf"),
        css('[jsaction*="review"]'),
    ],
)

# In-page search that narrows the review list
REVIEW_SEARCH_BOX = SelectorChain(
    "review search box",
    [
        css('input[aria-label*="Search reviews"]'),
        css('input[placeholder*="Search reviews"]'),
        css('div[role="main"] input[placeholder*="Search"]'),
    ],
)

REVIEW_CONTAINER = SelectorChain(
    "review container",
    [
        css("div.jftiEf[data-review-id]"),
        css("[data-review-id]"),
        css('[jsaction*="review"]'),
        css(".ODSEW-ShBeI"),
        Strategy(
            "div containing a star label",
            lambda scope: scope.locator("div").filter(has=scope.locator("text=/stars?/i")),
        ),
    ],
)

REVIEW_TEXT = SelectorChain(
    "review text",
    [
        css(".wiI7pd"),
        css(".MyEned"),
        css("[data-expandable-section]"),
        css(".ODSEW-ShBeI-text"),
    ],
)

REVIEW_DATE = SelectorChain(
    "review date",
    [
        css(".rsqaWe"),
        css(".DU9Pgb"),
        css(".xRkPPb"),
        css('span:has-text(" ago")'),
    ],
)

REVIEWER_NAME = SelectorChain(
    "reviewer name",
    [
        css(".d4r55"),
        css(".TSUbDb a"),
        css("button[data-review-id] div.d4r55"),
        css('[class*="reviewer"]'),
    ],
)

REVIEW_RATING = SelectorChain(
    "review rating",
    [
        css('[role="img"][aria-label*="star"]'),
        css('[aria-label*="star"]'),
        css(".kvMYJc"),
    ],
)

# Buttons that expand truncated review text
REVIEW_EXPAND = SelectorChain(
    "review expand button",
    [
        css('button.w8nwRe'),
        css('button[aria-label="See more"]'),
        css('button:has-text("More")'),
    ],
)


def target_result_chain(name: str) -> SelectorChain:
    """Chain matching a search result link for the named target."""
    quoted = _quoted(name)
    return SelectorChain(
        "result link",
        [
            css(f"a.hfpxzc[aria-label={quoted}]"),
            css(f"a[aria-label*={quoted}]"),
            css(f"a:has-text({quoted})"),
            css(f"[aria-label*={quoted}]"),
            css(f"*:has-text({quoted}):visible"),
        ],
    )


def scroll_container_script() -> str:
    """JavaScript that scrolls the review list (or the page) to its end."""
    return """
        () => {
            const review = document.querySelector('[data-review-id]');
            const candidates = [
                document.querySelector('div.m6QErb.DxyBCb'),
                review && review.parentElement && review.parentElement.parentElement,
                document.querySelector('.m6QErb'),
                document.scrollingElement,
                document.documentElement,
            ];
            const el = candidates.find(Boolean);
            if (el) {
                el.scrollTo(0, el.scrollHeight);
            }
        }
    """


ALL_CHAINS: List[SelectorChain] = [
    SEARCH_BOX,
    PLACE_HEADER,
    REVIEWS_TAB,
    REVIEWS_LOADED,
    REVIEW_SEARCH_BOX,
    REVIEW_CONTAINER,
    REVIEW_TEXT,
    REVIEW_DATE,
    REVIEWER_NAME,
    REVIEW_RATING,
    REVIEW_EXPAND,
]
