"""
Shared fixtures: deterministic clocks, recorded sleeps, mocked HTTP and
mocked provider SDK clients.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest

from augmentation import (
    Allowlist,
    ContentExtractor,
    DomainRateLimiter,
    ResponseCache,
    WebScraper,
)
from chat import ConversationStore, MemoryStorage
from providers import AnthropicProvider, OpenAIProvider

AMAZON_ASIN = "B0BXYCS74H"

AMAZON_PRODUCT_PAGE = f"""
<html>
<head>
  <title>Amazon.com: Sony WH-1000XM5 Wireless Headphones</title>
  <meta name="description" content="Sony noise cancelling headphones">
  <link rel="canonical" href="https://www.amazon.com/dp/{AMAZON_ASIN}">
</head>
<body>
  <span id="productTitle"> Sony WH-1000XM5 Wireless Noise Canceling Headphones </span>
  <div id="acrPopover" title="4.6 out of 5 stars"><span>4.6</span></div>
  <span id="acrCustomerReviewText">12,345 ratings</span>
  <div class="a-price"><span class="a-offscreen">$348.00</span></div>
  <img id="landingImage" src="https://m.media-amazon.com/images/I/sony.jpg">
  <div id="feature-bullets">
    <ul>
      <li>Industry-leading noise cancellation</li>
      <li>30-hour battery life</li>
    </ul>
  </div>
  <div id="productDescription"><p>Premium wireless headphones.</p></div>
  <script>window.tracking = {{ "id": 1 }};</script>
</body>
</html>
"""

AMAZON_SEARCH_PAGE = f"""
<html>
<head><title>Amazon.com : sony headphones</title></head>
<body>
  <div class="s-result-item" data-asin="{AMAZON_ASIN}">
    <h2>Sony WH-1000XM5 Wireless Noise Canceling Headphones</h2>
  </div>
  <div class="s-result-item" data-asin="">Sponsored</div>
</body>
</html>
"""

AMAZON_EMPTY_SEARCH_PAGE = """
<html>
<head><title>Amazon.com : nothing</title></head>
<body><p>No results for your search query.</p></body>
</html>
"""


class FakeClock:
    """Monotonic clock in seconds that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeWallClock:
    """Timezone-aware wall clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingHandler:
    """httpx.MockTransport handler that records requests and replays a script."""

    def __init__(self, responder):
        self.responder = responder
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def urls(self) -> list[str]:
        return [str(r.url) for r in self.requests]


def amazon_responder(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/s":
        return httpx.Response(200, text=AMAZON_SEARCH_PAGE)
    if request.url.path == f"/dp/{AMAZON_ASIN}":
        return httpx.Response(200, text=AMAZON_PRODUCT_PAGE)
    return httpx.Response(404, text="not found")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def wall_clock():
    return FakeWallClock()


@pytest.fixture
def sleeps():
    """List that collects every backoff delay; append is the sleep function."""
    return []


@pytest.fixture
def store(wall_clock):
    return ConversationStore(storage=MemoryStorage(), clock=wall_clock)


@pytest.fixture
def make_scraper(clock, sleeps):
    """Build a WebScraper over a MockTransport; returns (scraper, handler)."""
    scrapers = []

    def _make(responder=amazon_responder, allowlist=None):
        handler = RecordingHandler(responder)
        client = httpx.Client(transport=httpx.MockTransport(handler))
        scraper = WebScraper(
            allowlist=allowlist if allowlist is not None else Allowlist(),
            rate_limiter=DomainRateLimiter(clock=clock),
            cache=ResponseCache(clock=clock),
            extractor=ContentExtractor(),
            client=client,
            sleep=sleeps.append,
        )
        scrapers.append(client)
        return scraper, handler

    yield _make

    for client in scrapers:
        client.close()


def anthropic_reply(text: str):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


def openai_reply(text: str):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))]
    )


@pytest.fixture
def anthropic_client():
    client = MagicMock()
    client.messages.create.return_value = anthropic_reply("Happy to help!")
    return client


@pytest.fixture
def openai_client():
    client = MagicMock()
    client.chat.completions.create.return_value = openai_reply("Happy to help!")
    return client


@pytest.fixture
def provider_factory(anthropic_client, openai_client, sleeps):
    """Orchestrator provider factory wired to the mocked SDK clients."""
    classes = {"claude": AnthropicProvider, "openai": OpenAIProvider}
    clients = {"claude": anthropic_client, "openai": openai_client}

    def _factory(name, settings, store):
        return classes[name](
            api_key=settings.api_key_for(name),
            store=store,
            client=clients[name],
            sleep=sleeps.append,
            is_online=lambda: True,
        )

    return _factory


def api_request(url: str = "https://api.example.com/v1/messages") -> httpx.Request:
    return httpx.Request("POST", url)


def api_response(status: int) -> httpx.Response:
    return httpx.Response(status, request=api_request())
