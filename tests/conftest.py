"""Shared test fixtures.

The fakes below stand in for Playwright's Page/Locator and the OpenAI
client. They implement only the calls the pipeline makes.
"""

import json
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Dict, List, Optional

import pytest

from wifi_reviews.models.review import ReviewRecord, Target
from wifi_reviews.parsers.date_parser import DateNormalizer
from wifi_reviews.scraper.network import AdaptiveTimeouts

FIXED_NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)

REVIEW_SELECTOR = "[data-review-id]"


class FakeNode:
    """A DOM element with text, attributes and child elements by selector."""

    def __init__(
        self,
        text: str = "",
        attrs: Optional[Dict[str, str]] = None,
        children: Optional[Dict[str, List["FakeNode"]]] = None,
    ):
        self.text = text
        self.attrs = attrs or {}
        self.children = children or {}
        self.queried: List[str] = []
        self.clicks = 0
        self.filled: Optional[str] = None


class FakeLocator:
    """Resolves to a fixed list of FakeNodes."""

    def __init__(self, nodes: List[FakeNode]):
        self.nodes = nodes

    async def count(self) -> int:
        return len(self.nodes)

    @property
    def first(self) -> "FakeLocator":
        return FakeLocator(self.nodes[:1])

    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(self.nodes[index : index + 1])

    def locator(self, selector: str) -> "FakeLocator":
        found = []
        for node in self.nodes:
            node.queried.append(selector)
            found.extend(node.children.get(selector, []))
        return FakeLocator(found)

    def filter(self, has=None) -> "FakeLocator":
        return FakeLocator([])

    async def text_content(self) -> Optional[str]:
        return self.nodes[0].text if self.nodes else None

    async def get_attribute(self, name: str) -> Optional[str]:
        return self.nodes[0].attrs.get(name) if self.nodes else None

    async def fill(self, value: str, timeout: Optional[float] = None) -> None:
        self.nodes[0].filled = value

    async def click(self, timeout: Optional[float] = None) -> None:
        self.nodes[0].clicks += 1

    async def bounding_box(self):
        return None


class FakeKeyboard:
    def __init__(self):
        self.pressed: List[str] = []

    async def press(self, key: str) -> None:
        self.pressed.append(key)


class FakeMouse:
    def __init__(self):
        self.moves: List[tuple] = []
        self.clicks: List[tuple] = []

    async def move(self, x: float, y: float) -> None:
        self.moves.append((x, y))

    async def click(self, x: float, y: float) -> None:
        self.clicks.append((x, y))


class FakePage:
    """A map page whose review list grows by `page_size` on every scroll."""

    def __init__(
        self,
        reviews: Optional[List[FakeNode]] = None,
        nodes: Optional[Dict[str, List[FakeNode]]] = None,
        page_size: int = 10,
    ):
        self.reviews = reviews or []
        self.nodes = nodes or {}
        self.page_size = page_size
        self.visible = min(page_size, len(self.reviews))
        self.keyboard = FakeKeyboard()
        self.mouse = FakeMouse()
        self.visited: List[str] = []
        self.scrolls = 0
        self.closed = False

    def locator(self, selector: str) -> FakeLocator:
        if selector == REVIEW_SELECTOR:
            return FakeLocator(self.reviews[: self.visible])
        return FakeLocator(self.nodes.get(selector, []))

    async def goto(self, url: str, **kwargs) -> None:
        self.visited.append(url)

    async def evaluate(self, script: str):
        self.scrolls += 1
        self.visible = min(len(self.reviews), self.visible + self.page_size)

    async def wait_for_timeout(self, timeout: float) -> None:
        return None

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    """Hands out the same FakePage and records that it was closed."""

    def __init__(self, page: FakePage):
        self.page = page
        self.pages_opened = 0

    @asynccontextmanager
    async def new_page(self):
        self.pages_opened += 1
        try:
            yield self.page
        finally:
            await self.page.close()


def make_review(
    text: str,
    date: str = "2 months ago",
    reviewer: str = "Alex",
    stars: Optional[str] = "5 stars",
) -> FakeNode:
    """Build a review element the way the map site nests it."""
    children = {
        ".wiI7pd": [FakeNode(text=text)],
        ".rsqaWe": [FakeNode(text=date)],
        ".d4r55": [FakeNode(text=reviewer)],
    }
    if stars:
        children['[role="img"][aria-label*="star"]'] = [FakeNode(attrs={"aria-label": stars})]
    return FakeNode(children=children)


def make_place_page(reviews: List[FakeNode], name: str = "Grand Hotel", page_size: int = 10) -> FakePage:
    """A page where the search lands on the place with a reviews tab."""
    return FakePage(
        reviews=reviews,
        nodes={
            "input#searchboxinput": [FakeNode()],
            "h1.DUwDvf": [FakeNode(text=name)],
            'button[role="tab"]:has-text("Reviews")': [FakeNode(text="Reviews")],
        },
        page_size=page_size,
    )


class FakeCompletions:
    """Returns queued contents in order; the last one repeats."""

    def __init__(self, contents: List[Optional[str]], prompt_tokens: int = 1000, completion_tokens: int = 500):
        self.contents = list(contents)
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.calls: List[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        content = self.contents.pop(0) if len(self.contents) > 1 else self.contents[0]
        if isinstance(content, Exception):
            raise content
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
            usage=SimpleNamespace(
                prompt_tokens=self.prompt_tokens,
                completion_tokens=self.completion_tokens,
            ),
        )


class FakeOpenAI:
    def __init__(self, contents: List[Optional[str]], **kwargs):
        self.chat = SimpleNamespace(completions=FakeCompletions(contents, **kwargs))

    @property
    def calls(self) -> List[dict]:
        return self.chat.completions.calls


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def normalizer():
    """Date normalizer pinned to FIXED_NOW."""
    return DateNormalizer(now=lambda: FIXED_NOW)


@pytest.fixture
def target():
    return Target(id="grand-hotel-lisbon", name="Grand Hotel", city="Lisbon")


@pytest.fixture
def fast_timeouts():
    """Short timeouts so failing selector waits return quickly."""
    return AdaptiveTimeouts(navigation=100, selector=50, results=50, interaction=50, max_retries=2)


@pytest.fixture
def wifi_reviews(target):
    """Five Wi-Fi reviews, three of which quote a speed."""
    texts = [
        ("Got around 150 Mbps download speed in the lobby, great for work.", 150.0),
        ("WiFi was solid at 90 mbps in my room on the 4th floor.", 90.0),
        ("Internet slowed to 30 Mbps in the evening, video calls dropped.", 30.0),
        ("The wifi was fine for email but the connection needed a new login daily.", None),
        ("Free wifi, nothing special, streaming worked most of the time.", None),
    ]
    return [
        ReviewRecord(
            target_id=target.id,
            reviewer_name=f"Guest {i}",
            rating=4,
            body_text=text,
            date_text="3 months ago",
            extracted_speed_mbps=speed,
        )
        for i, (text, speed) in enumerate(texts)
    ]


@pytest.fixture
def summary_payload():
    """A well-formed model response."""
    return json.dumps(
        {
            "summary": "Fast and reliable Wi-Fi with slower evenings.",
            "overall_score": 4,
            "positive_highlights": ["Fast lobby Wi-Fi"],
            "warnings": ["Evening slowdowns"],
            "use_case_scores": {"video_calls": 4, "streaming": 4, "uploads": 3, "general_browsing": 5},
            "speed_analysis": {"mentioned_speeds": [150, 90, 30], "average_speed": 90, "speed_consistency": "variable"},
            "location_quirks": ["Lobby faster than rooms"],
            "time_patterns": ["Slower after 7pm"],
            "connection_quirks": ["Daily re-login"],
            "business_traveler_notes": ["Fine for calls before evening"],
            "unique_features": [],
        }
    )


@pytest.fixture
def review_node():
    """Factory for review elements: review_node(text, date=..., reviewer=..., stars=...)."""
    return make_review


@pytest.fixture
def place_page():
    """Factory for a place page with a review list."""
    return make_place_page


@pytest.fixture
def fake_page():
    """The FakePage class, for pages missing parts of the place view."""
    return FakePage


@pytest.fixture
def fake_browser():
    return FakeBrowser


@pytest.fixture
def fake_openai():
    """Factory for a fake OpenAI client returning queued contents."""
    return FakeOpenAI


@pytest.fixture
def fake_node():
    """The FakeNode class."""
    return FakeNode
