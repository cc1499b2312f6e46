"""Crawl a single hotel's Wi-Fi reviews from the map surface."""

import logging
import time
from typing import Awaitable, Callable, List, Optional, Set, Tuple

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from wifi_reviews.config import settings
from wifi_reviews.errors import NavigationError, SelectorNotFoundError
from wifi_reviews.models.result import Err, Ok, Result
from wifi_reviews.models.review import ANONYMOUS_REVIEWER, ReviewRecord, Target
from wifi_reviews.models.stats import CrawlStats
from wifi_reviews.parsers.date_parser import DateNormalizer
from wifi_reviews.parsers.parse_utils import mentions_wifi, parse_rating, sanitize_string
from wifi_reviews.parsers.speed_parser import extract_speed
from wifi_reviews.scraper import selectors
from wifi_reviews.scraper.browser import BrowserManager
from wifi_reviews.scraper.network import AdaptiveTimeouts, detect_network_conditions
from wifi_reviews.scraper.stealth import dismiss_consent_screen, human_click, human_delay
from wifi_reviews.utils.cancellation import CancellationToken
from wifi_reviews.utils.logging import logger
from wifi_reviews.utils.rate_limiter import RateLimiter

RETRYABLE_ERRORS = (PlaywrightError, NavigationError)


def _pick(value, fallback):
    return fallback if value is None else value


class CrawlSession:
    """Drives one browser context per target through search, detail and reviews."""

    def __init__(
        self,
        browser: BrowserManager,
        rate_limiter: RateLimiter,
        date_normalizer: Optional[DateNormalizer] = None,
        review_window_years: Optional[int] = None,
        target_reviews: Optional[int] = None,
        min_reviews_for_success: Optional[int] = None,
        min_review_length: Optional[int] = None,
        max_stall_attempts: Optional[int] = None,
        max_review_elements: Optional[int] = None,
        scroll_wait_ms: Optional[int] = None,
        humanize: Optional[bool] = None,
        search_reviews_for_wifi: Optional[bool] = None,
        backoff_base: Optional[float] = None,
        backoff_max: Optional[float] = None,
        backoff_jitter: Optional[float] = None,
        fixed_timeouts: Optional[AdaptiveTimeouts] = None,
        cancel_token: Optional[CancellationToken] = None,
    ):
        """Initialize crawl session.

        Args:
            browser: Browser manager that hands out fresh contexts
            rate_limiter: Adaptive limiter shared across targets
            date_normalizer: Resolves review dates for the retention window
            review_window_years: Reviews older than this are skipped
            target_reviews: Stop once this many Wi-Fi reviews are collected
            min_reviews_for_success: Fewer reviews count as a failure for
                rate limiting purposes
            min_review_length: Shorter review texts are skipped
            max_stall_attempts: Stop after this many scrolls without growth
            max_review_elements: Hard cap on review elements inspected
            scroll_wait_ms: Wait after each scroll for new reviews to render
            humanize: Eased pointer movement and random pauses
            search_reviews_for_wifi: Narrow the list with the in-page search
            backoff_base: Exponential backoff multiplier for step retries
            backoff_max: Ceiling for a single backoff wait
            backoff_jitter: Upper bound of random seconds added to backoff
            fixed_timeouts: Skip the latency probe and use these timeouts
            cancel_token: Checked between pagination iterations
        """
        self.browser = browser
        self.rate_limiter = rate_limiter
        self.date_normalizer = date_normalizer or DateNormalizer(strict=settings.strict_dates)
        self.review_window_years = _pick(review_window_years, settings.review_window_years)
        self.target_reviews = _pick(target_reviews, settings.target_reviews_per_hotel)
        self.min_reviews_for_success = _pick(min_reviews_for_success, settings.min_reviews_for_success)
        self.min_review_length = _pick(min_review_length, settings.min_review_length)
        self.max_stall_attempts = _pick(max_stall_attempts, settings.max_stall_attempts)
        self.max_review_elements = _pick(max_review_elements, settings.max_review_elements)
        self.scroll_wait_ms = _pick(scroll_wait_ms, settings.scroll_wait_ms)
        self.humanize = _pick(humanize, settings.humanize)
        self.search_reviews_for_wifi = _pick(search_reviews_for_wifi, settings.search_reviews_for_wifi)
        self.backoff_base = _pick(backoff_base, settings.retry_backoff_base)
        self.backoff_max = _pick(backoff_max, settings.retry_backoff_max)
        self.backoff_jitter = _pick(backoff_jitter, settings.retry_jitter)
        self.fixed_timeouts = fixed_timeouts
        self.cancel_token = cancel_token

        self.last_stats = CrawlStats()
        self._pointer: Optional[Tuple[float, float]] = None

    async def collect(self, target: Target) -> List[ReviewRecord]:
        """Collect Wi-Fi reviews for a target; an empty list on any failure."""
        result = await self.run(target)
        if isinstance(result, Err):
            return []
        return result.value

    async def run(self, target: Target) -> Result[List[ReviewRecord]]:
        """Crawl one target end to end.

        Never raises past this boundary: navigation failures come back as
        Err and are recorded on the rate limiter.

        Args:
            target: Hotel to crawl

        Returns:
            Ok(records) or Err(reason)
        """
        self.last_stats = CrawlStats()
        self._pointer = None

        await self.rate_limiter.wait()
        logger.info(f"Crawling reviews for: {target.name} ({target.id})")

        try:
            async with self.browser.new_page() as page:
                timeouts = await self._timeouts(page)

                await self._retry_step("search", lambda: self._open_search(page, target, timeouts), timeouts)
                await self._retry_step("open target", lambda: self._open_target(page, target, timeouts), timeouts)
                await self._retry_step("reviews tab", lambda: self._open_reviews(page, timeouts), timeouts)

                if self.search_reviews_for_wifi:
                    await self._search_reviews(page, timeouts)

                reviews = await self.collect_reviews(page, target, self.last_stats)

        except Exception as e:
            logger.error(f"Error crawling {target.name}: {e}")
            self.rate_limiter.record_failure()
            return Err(f"{type(e).__name__}: {e}")

        if len(reviews) >= self.min_reviews_for_success:
            self.rate_limiter.record_success()
            logger.info(f"Good collection: {len(reviews)} Wi-Fi reviews for {target.name}")
        else:
            self.rate_limiter.record_failure()
            logger.warning(f"Limited collection: {len(reviews)} Wi-Fi reviews for {target.name}")

        return Ok(reviews)

    async def _timeouts(self, page: Page) -> AdaptiveTimeouts:
        if self.fixed_timeouts is not None:
            return self.fixed_timeouts
        conditions = await detect_network_conditions(page)
        return AdaptiveTimeouts.for_conditions(conditions)

    async def _retry_step(
        self,
        name: str,
        step: Callable[[], Awaitable[None]],
        timeouts: AdaptiveTimeouts,
    ) -> None:
        """Run one navigation step with exponential backoff plus jitter."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(timeouts.max_retries),
            wait=wait_exponential(multiplier=self.backoff_base, max=self.backoff_max)
            + wait_random(0, self.backoff_jitter),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                logger.debug(f"[{name}] attempt {attempt.retry_state.attempt_number}/{timeouts.max_retries}")
                await step()

    async def _pause(self, min_ms: float, max_ms: float) -> None:
        if self.humanize:
            await human_delay(min_ms, max_ms)

    async def _click(self, page: Page, locator: Locator, timeouts: AdaptiveTimeouts) -> None:
        if self.humanize:
            try:
                position = await human_click(page, locator, start=self._pointer)
                if position:
                    self._pointer = position
                return
            except PlaywrightError as e:
                logger.debug(f"Human-like click failed, falling back to plain click: {e}")
        await locator.first.click(timeout=timeouts.interaction)

    async def _open_search(self, page: Page, target: Target, timeouts: AdaptiveTimeouts) -> None:
        """Load the map surface and submit the target's search query."""
        url = f"{settings.maps_url}?hl={settings.maps_language}"
        await page.goto(url, wait_until="domcontentloaded", timeout=timeouts.navigation)
        await dismiss_consent_screen(page)
        await self._pause(1000, 3000)

        search_box = await selectors.SEARCH_BOX.wait_for(page, timeouts.selector)
        await search_box.first.fill(target.search_query, timeout=timeouts.interaction)
        await page.keyboard.press("Enter")
        logger.info(f"Searching for: {target.search_query}")

    async def _on_target_page(self, page: Page, target: Target) -> bool:
        header = await selectors.PLACE_HEADER.first_text(page)
        return bool(header) and target.name.lower() in header.lower()

    async def _open_target(self, page: Page, target: Target, timeouts: AdaptiveTimeouts) -> None:
        """Open the target's detail view from the search results."""
        # A unique query lands directly on the place page
        if await self._on_target_page(page, target):
            logger.debug(f"Search opened the place page for {target.name} directly")
            return

        chain = selectors.target_result_chain(target.name)
        try:
            link = await chain.wait_for(page, timeouts.results)
        except SelectorNotFoundError:
            if await self._on_target_page(page, target):
                return
            raise

        await self._pause(500, 1500)
        await self._click(page, link, timeouts)
        await self._pause(2000, 4000)
        await selectors.PLACE_HEADER.wait_for(page, timeouts.selector)
        logger.info(f"Opened place page for: {target.name}")

    async def _open_reviews(self, page: Page, timeouts: AdaptiveTimeouts) -> None:
        """Switch the detail view to its review list."""
        tab = await selectors.REVIEWS_TAB.wait_for(page, timeouts.selector)
        await self._pause(500, 1000)
        await self._click(page, tab, timeouts)
        await self._pause(3000, 6000)

        try:
            await selectors.REVIEWS_LOADED.wait_for(page, timeouts.results)
        except SelectorNotFoundError as e:
            raise NavigationError("Reviews section not loaded after clicking tab") from e
        logger.info("Navigated to reviews section")

    async def _search_reviews(self, page: Page, timeouts: AdaptiveTimeouts) -> None:
        """Narrow the review list with the in-page search, if offered."""
        search_box = await selectors.REVIEW_SEARCH_BOX.locate(page)
        if search_box is None:
            logger.debug("No review search box found, scanning the full list")
            return

        try:
            await search_box.first.fill("wifi", timeout=timeouts.interaction)
            await page.keyboard.press("Enter")
            await page.wait_for_timeout(min(3000, timeouts.interaction))
            logger.debug("Filtered reviews by 'wifi'")
        except PlaywrightError as e:
            logger.debug(f"Review search failed, scanning the full list: {e}")

    async def collect_reviews(
        self,
        page: Page,
        target: Target,
        stats: Optional[CrawlStats] = None,
    ) -> List[ReviewRecord]:
        """Scroll the review list and collect Wi-Fi reviews until done.

        Stops when the target count is reached, when the list has not grown
        for max_stall_attempts scrolls, when max_review_elements have been
        inspected, or on cancellation. Returns whatever was collected.

        Args:
            page: Page showing the review list
            target: Target the reviews belong to
            stats: Counters to update

        Returns:
            Collected review records in page order
        """
        stats = stats if stats is not None else CrawlStats()
        started = time.monotonic()
        reviews: List[ReviewRecord] = []
        seen: Set[Tuple[str, str]] = set()
        processed = 0
        stalls = 0
        container_strategy: Optional[selectors.Strategy] = None

        logger.info(f"Collecting Wi-Fi reviews (target: {self.target_reviews})")

        while len(reviews) < self.target_reviews and stalls < self.max_stall_attempts:
            if self.cancel_token is not None and self.cancel_token.cancelled:
                logger.info("Cancellation requested, stopping review collection")
                break

            try:
                # Indexes into the element list only stay valid while one strategy is used
                if container_strategy is None:
                    resolved = await selectors.REVIEW_CONTAINER.resolve(page)
                    container_strategy, container = resolved if resolved else (None, None)
                else:
                    container = container_strategy.locate(page)
                count = min(await container.count(), self.max_review_elements) if container is not None else 0

                if count > processed:
                    for index in range(processed, count):
                        record = await self._process_element(container.nth(index), target, stats, seen)
                        if record is None:
                            continue
                        reviews.append(record)
                        logger.debug(f"Found Wi-Fi review {len(reviews)}/{self.target_reviews}: {record.body_text[:80]}")
                        if len(reviews) >= self.target_reviews:
                            break
                    processed = count
                    stalls = 0
                else:
                    stalls += 1
                    stats.stall_count += 1

                if len(reviews) >= self.target_reviews or processed >= self.max_review_elements:
                    break

                await page.evaluate(selectors.scroll_container_script())
                await page.wait_for_timeout(self.scroll_wait_ms)

            except PlaywrightError as e:
                logger.warning(f"Error in review collection loop: {e}")
                stalls += 1
                stats.stall_count += 1

        stats.elements_processed += processed
        stats.wifi_reviews_found += len(reviews)
        stats.processing_time_ms += (time.monotonic() - started) * 1000

        speed_mentions = sum(1 for r in reviews if r.extracted_speed_mbps is not None)
        logger.info(
            f"Collected {len(reviews)} Wi-Fi reviews from {processed} elements "
            f"({stats.efficiency_ratio:.1f}% efficiency, {speed_mentions} speed mentions, "
            f"{stats.old_reviews_skipped} old, {stats.low_quality_skipped} too short)"
        )
        return reviews

    async def _process_element(
        self,
        element: Locator,
        target: Target,
        stats: CrawlStats,
        seen: Set[Tuple[str, str]],
    ) -> Optional[ReviewRecord]:
        try:
            return await self._extract_review(element, target, stats, seen)
        except PlaywrightError as e:
            # Element detached or re-rendered mid-read
            logger.debug(f"Could not extract review element: {e}")
            stats.extraction_errors += 1
            return None

    async def _extract_review(
        self,
        element: Locator,
        target: Target,
        stats: CrawlStats,
        seen: Set[Tuple[str, str]],
    ) -> Optional[ReviewRecord]:
        """Extract one review, reading the cheap text before anything else.

        Only text that mentions Wi-Fi and is long enough goes on to date,
        reviewer and rating extraction.
        """
        text = await selectors.REVIEW_TEXT.first_text(element)

        if not mentions_wifi(text):
            stats.non_wifi_skipped += 1
            return None

        if len(text) < self.min_review_length:
            stats.low_quality_skipped += 1
            return None

        text = await self._expanded_text(element, text)

        date_text = await selectors.REVIEW_DATE.first_text(element)
        if not self.date_normalizer.is_within_window(date_text, self.review_window_years):
            stats.old_reviews_skipped += 1
            return None

        reviewer = await selectors.REVIEWER_NAME.first_text(element)
        rating_label = await selectors.REVIEW_RATING.first_attribute(element, "aria-label")

        record = ReviewRecord(
            target_id=target.id,
            reviewer_name=sanitize_string(reviewer) or ANONYMOUS_REVIEWER,
            rating=parse_rating(rating_label),
            body_text=sanitize_string(text),
            date_text=sanitize_string(date_text),
            wifi_mentioned=True,
            # Extract before sanitizing, which strips the "/" from "mb/s"
            extracted_speed_mbps=extract_speed(text),
        )

        if record.dedup_key in seen:
            stats.duplicates_skipped += 1
            return None
        seen.add(record.dedup_key)
        return record

    async def _expanded_text(self, element: Locator, text: str) -> str:
        """Click "More" on a truncated review and re-read its text."""
        button = await selectors.REVIEW_EXPAND.locate(element)
        if button is None:
            return text

        try:
            await button.first.click(timeout=2000)
            expanded = await selectors.REVIEW_TEXT.first_text(element)
        except PlaywrightError as e:
            logger.debug(f"Could not expand review text: {e}")
            return text

        return expanded if len(expanded) > len(text) else text
