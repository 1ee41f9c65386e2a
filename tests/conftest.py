"""
Test infrastructure for servicekit and the Challenge API.

Strategy
--------
- Framework tests build services with a ``ServiceBuilder`` whose tracer
  comes from a private ``TracerProvider`` feeding an
  ``InMemorySpanExporter``, so every test sees only its own spans.
- The Challenge API obtains its tracer from the global OpenTelemetry
  provider.  A provider with its own in-memory exporter is installed once
  at import time, before the app is imported; the ``app_spans`` fixture
  clears it before each test.
- The upstream challenge API is replaced with ``httpx.MockTransport``
  driven by ``FakeUpstream``, which records the requests it receives and
  answers with a configurable status and payload.
- The app's lifespan is not run by ``ASGITransport``; the upstream client
  is created lazily on first use, so no startup hook is required.
"""
import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from servicekit import ServiceBuilder, Settings

# ---------------------------------------------------------------------------
# Global provider for the Challenge API; installed before the app is imported
# ---------------------------------------------------------------------------

app_span_exporter = InMemorySpanExporter()
_app_provider = TracerProvider()
_app_provider.add_span_processor(SimpleSpanProcessor(app_span_exporter))
trace.set_tracer_provider(_app_provider)

from challenge_api.config import settings as app_settings  # noqa: E402
from challenge_api.main import app  # noqa: E402
from challenge_api.upstream import upstream  # noqa: E402


# ---------------------------------------------------------------------------
# Framework fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def tracer(span_exporter):
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider.get_tracer("tests")


@pytest.fixture
def builder(tracer) -> ServiceBuilder:
    """Builder with logging disabled (info level)."""
    return ServiceBuilder(Settings(LOG_LEVEL="info"), tracer=tracer)


@pytest.fixture
def debug_builder(tracer) -> ServiceBuilder:
    """Builder with the logging decorator switched on."""
    return ServiceBuilder(Settings(LOG_LEVEL="debug"), tracer=tracer)


# ---------------------------------------------------------------------------
# Challenge API fixtures
# ---------------------------------------------------------------------------

class FakeUpstream:
    """Stand-in for the upstream challenge API."""

    def __init__(self) -> None:
        self.status_code = 200
        self.payload = [
            {"id": "c-1", "name": "First challenge"},
            {"id": "c-2", "name": "Second challenge"},
        ]
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def app_spans() -> InMemorySpanExporter:
    app_span_exporter.clear()
    return app_span_exporter


@pytest_asyncio.fixture
async def async_client(fake_upstream, app_spans, monkeypatch) -> AsyncClient:
    """
    Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport,
    with the upstream API served by ``fake_upstream``.
    """
    monkeypatch.setattr(app_settings, "M2M_DELAY_MS", 0)
    await upstream.disconnect()
    upstream.transport = httpx.MockTransport(fake_upstream)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    await upstream.disconnect()
    upstream.transport = None
