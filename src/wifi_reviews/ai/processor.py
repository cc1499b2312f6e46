"""Summarize a hotel's Wi-Fi reviews with a language model."""

import asyncio
import logging
from typing import Any, List, Optional, Sequence, Tuple

import openai
from openai import AsyncOpenAI
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from wifi_reviews.ai.prompts import SYSTEM_PROMPT, build_user_prompt
from wifi_reviews.ai.validation import build_summary, parse_json_object
from wifi_reviews.config import settings
from wifi_reviews.errors import ConfigurationError, EmptyModelResponseError
from wifi_reviews.models.review import ReviewRecord
from wifi_reviews.models.stats import CostTracker
from wifi_reviews.models.summary import SummaryRecord
from wifi_reviews.utils.logging import logger

# Network and service-side failures; bad requests and auth errors are not retried
RETRYABLE_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
    EmptyModelResponseError,
)


class SummaryProcessor:
    """Turns review sets into validated summaries and tracks token cost."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[Any] = None,
        cost_tracker: Optional[CostTracker] = None,
        max_completion_tokens: Optional[int] = None,
        retry_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        batch_delay: Optional[float] = None,
    ):
        """Initialize summary processor.

        Args:
            api_key: OpenAI API key (falls back to settings)
            model: Chat model name
            client: Pre-built async client, mainly for tests
            cost_tracker: Accumulator shared with the caller
            max_completion_tokens: Output token budget per call
            retry_attempts: Attempts per model call
            retry_delay: First backoff wait in seconds; doubles per attempt
            batch_delay: Flat cooldown between calls in batch mode

        Raises:
            ConfigurationError: If no API key is available
        """
        self.api_key = api_key or settings.openai_api_key
        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY environment variable is required")

        self.model = model or settings.openai_model
        self.client = client or AsyncOpenAI(api_key=self.api_key)
        self.cost_tracker = cost_tracker or CostTracker(
            input_cost_per_million=settings.input_cost_per_million,
            output_cost_per_million=settings.output_cost_per_million,
        )
        self.max_completion_tokens = max_completion_tokens or settings.max_completion_tokens
        self.retry_attempts = retry_attempts or settings.ai_retry_attempts
        self.retry_delay = settings.ai_retry_delay if retry_delay is None else retry_delay
        self.batch_delay = settings.ai_batch_delay if batch_delay is None else batch_delay

    async def _complete(self, prompt: str) -> Tuple[str, int, int]:
        """Call the model once; raises EmptyModelResponseError on no content."""
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_completion_tokens=self.max_completion_tokens,
            response_format={"type": "json_object"},
        )

        content = None
        if response.choices:
            content = response.choices[0].message.content
        if not content or not content.strip():
            raise EmptyModelResponseError("No response content from model")

        usage = getattr(response, "usage", None)
        input_tokens = getattr(usage, "prompt_tokens", 0) or 0
        output_tokens = getattr(usage, "completion_tokens", 0) or 0
        return content, input_tokens, output_tokens

    async def _complete_with_retry(self, prompt: str) -> Tuple[str, int, int]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=self.retry_delay, min=self.retry_delay, max=self.retry_delay * 8),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                result = await self._complete(prompt)
        return result

    async def summarize(self, target_name: str, reviews: Sequence[ReviewRecord]) -> Optional[SummaryRecord]:
        """Generate a validated summary for one target.

        Args:
            target_name: Hotel name used in the prompt
            reviews: The target's collected reviews

        Returns:
            SummaryRecord, or None if there were no reviews or the model call
            failed after all retries
        """
        reviews = list(reviews)
        if not reviews:
            logger.warning(f"No reviews to process for {target_name}")
            return None

        logger.info(f"Processing {len(reviews)} Wi-Fi reviews for {target_name}")
        prompt = build_user_prompt(target_name, reviews)

        try:
            content, input_tokens, output_tokens = await self._complete_with_retry(prompt)
        except Exception as e:
            logger.error(f"Failed to process reviews for {target_name}: {e}")
            return None

        cost = self.cost_tracker.record(input_tokens, output_tokens)
        logger.info(f"Request cost: ${cost:.4f} ({input_tokens} in, {output_tokens} out)")

        summary = build_summary(
            parse_json_object(content),
            target_id=reviews[0].target_id,
            reviews=reviews,
            model=self.model,
        )

        scores = summary.use_case_scores
        logger.info(
            f"Summary for {target_name}: overall {summary.overall_score}/5, "
            f"calls {scores.video_calls}, streaming {scores.streaming}, uploads {scores.uploads}"
        )
        return summary

    async def summarize_batch(
        self,
        items: Sequence[Tuple[str, Sequence[ReviewRecord]]],
    ) -> List[SummaryRecord]:
        """Summarize several targets in order, skipping failures.

        Args:
            items: (target name, reviews) pairs

        Returns:
            The summaries that succeeded
        """
        summaries: List[SummaryRecord] = []
        logger.info(f"Processing {len(items)} hotels with AI analysis")

        for index, (target_name, reviews) in enumerate(items):
            try:
                summary = await self.summarize(target_name, reviews)
                if summary:
                    summaries.append(summary)
            except Exception as e:
                logger.error(f"Failed to process {target_name}: {e}")

            if index < len(items) - 1 and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

        logger.info(
            f"Batch complete: {len(summaries)}/{len(items)} summaries, "
            f"total cost ${self.cost_tracker.total_cost:.4f} "
            f"({self.cost_tracker.input_tokens} in, {self.cost_tracker.output_tokens} out)"
        )
        return summaries

    def get_cost_summary(self) -> dict:
        return self.cost_tracker.summary()
