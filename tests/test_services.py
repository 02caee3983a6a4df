"""
Tests for the supporting services.

Tests cover:
- Response cache (in-memory)
- Connection monitor status transitions
- Website context fetching
- YouTube metadata lookup
- Cost calculation and usage aggregation
- Enhancement message helpers
- LLM client timeouts, retries and usage parsing
"""

import asyncio
import time
from types import SimpleNamespace

import httpx
import openai
import pytest
from langchain_core.messages import AIMessage

from promptpilot.database import Prompt, PromptDraft
from promptpilot.config import settings
from promptpilot.exceptions import (
    LLMNotConfiguredError,
    LLMResponseError,
    LLMTimeoutError,
    NotFoundError,
    PromptPilotError,
)
from promptpilot.services.connection_monitor import ConnectionMonitor, ConnectionStatus
from promptpilot.services.enhancement_service import (
    DEFAULT_TEMPLATE_PREFIX,
    build_template_system_message,
    loading_message,
)
from promptpilot.services.llm_client import LLMClient, usage_from_metadata
from promptpilot.services.response_cache import ResponseCache
from promptpilot.services.usage_service import UsageService, calculate_cost
from promptpilot.services.website_context import WebsiteContextFetcher
from promptpilot.services.youtube_service import YouTubeService

from tests.mocks import DEFAULT_USAGE, USER_ID, page_transport


# ============================================================================
# Response cache
# ============================================================================

class TestResponseCache:
    """Tests for the in-memory response cache."""

    async def test_set_and_get(self):
        cache = ResponseCache(ttl_seconds=60, use_redis=False)
        await cache.set("k", {"a": 1})
        assert await cache.get("k") == {"a": 1}
        assert await cache.get("missing") is None

    async def test_expired_entries_are_swept(self):
        cache = ResponseCache(ttl_seconds=60, use_redis=False)
        await cache.set("k", {"a": 1})
        cache._memory["k"] = ({"a": 1}, time.time() - 120)

        assert cache.sweep() == 1
        assert await cache.get("k") is None

    async def test_clear(self):
        cache = ResponseCache(use_redis=False)
        await cache.set("k", [1, 2])
        await cache.clear()
        assert await cache.get("k") is None

    def test_make_key_is_order_independent(self):
        first = ResponseCache.make_key("analyze", {"a": 1, "b": 2})
        second = ResponseCache.make_key("analyze", {"b": 2, "a": 1})
        assert first == second
        assert first.startswith("promptpilot:analyze:")
        assert first != ResponseCache.make_key("analyze", {"a": 2, "b": 2})


# ============================================================================
# Connection monitor
# ============================================================================

class TestConnectionMonitor:
    """Tests for connection status polling."""

    def _monitor(self, handler) -> ConnectionMonitor:
        return ConnectionMonitor(
            url="http://platform.test/rest/v1/",
            interval=30,
            timeout=5,
            transport=httpx.MockTransport(handler),
        )

    async def test_initial_state(self):
        monitor = self._monitor(lambda request: httpx.Response(200))
        snapshot = monitor.snapshot()
        assert snapshot["status"] == "checking"
        assert snapshot["lastCheckedAt"] is None

    async def test_online(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200)

        monitor = self._monitor(handler)
        assert await monitor.check() == ConnectionStatus.ONLINE
        assert requests[0].method == "HEAD"

        snapshot = monitor.snapshot()
        assert snapshot["status"] == "online"
        assert snapshot["detail"] == "Connected"
        assert snapshot["lastSuccessfulCheck"] is not None

    async def test_degraded_on_error_status(self):
        monitor = self._monitor(lambda request: httpx.Response(503))
        assert await monitor.check() == ConnectionStatus.DEGRADED
        assert monitor.detail == "Server responded with status 503"
        assert monitor.last_successful_check is None

    async def test_degraded_on_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        monitor = self._monitor(handler)
        assert await monitor.check() == ConnectionStatus.DEGRADED
        assert monitor.detail == "Connection timed out after 5s"

    async def test_offline_on_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        monitor = self._monitor(handler)
        assert await monitor.check() == ConnectionStatus.OFFLINE
        assert monitor.detail.startswith("Unable to reach server")

    async def test_keeps_last_success_after_failure(self):
        responses = [httpx.Response(200), httpx.Response(500)]
        monitor = self._monitor(lambda request: responses.pop(0))

        await monitor.check()
        last_success = monitor.last_successful_check
        await monitor.check()

        assert monitor.status == ConnectionStatus.DEGRADED
        assert monitor.last_successful_check == last_success

    async def test_start_and_stop(self):
        monitor = self._monitor(lambda request: httpx.Response(200))
        monitor.start()
        assert monitor._task is not None
        await monitor.stop()
        assert monitor._task is None


# ============================================================================
# Website context
# ============================================================================

class TestWebsiteContextFetcher:
    """Tests for website text extraction."""

    async def test_html_is_converted_to_text(self):
        html = (
            "<html><body><h1>Acme Shoes</h1><p>Light <a href='/x'>running</a> shoes.</p>"
            "<img src='a.png'></body></html>"
        )
        pages = {
            "https://acme.test/": httpx.Response(
                200, text=html, headers={"content-type": "text/html; charset=utf-8"}
            )
        }
        fetcher = WebsiteContextFetcher(transport=page_transport(pages))

        text = await fetcher.fetch_text("https://acme.test/")
        assert "Acme Shoes" in text
        assert "running shoes" in text
        assert "a.png" not in text
        assert "/x" not in text

    async def test_text_is_truncated(self):
        pages = {"https://acme.test/long": httpx.Response(200, text="word " * 100)}
        fetcher = WebsiteContextFetcher(max_chars=20, transport=page_transport(pages))
        assert len(await fetcher.fetch_text("https://acme.test/long")) == 20

    async def test_failures_return_none(self):
        fetcher = WebsiteContextFetcher(transport=page_transport({}))
        assert await fetcher.fetch_text("https://acme.test/missing") is None
        assert await fetcher.fetch_text("ftp://acme.test/file") is None
        assert await fetcher.fetch_text("not a url") is None


# ============================================================================
# YouTube
# ============================================================================

YOUTUBE_API = "https://www.googleapis.com/youtube/v3"


class TestYouTubeService:
    """Tests for video metadata lookup."""

    async def test_video_context(self):
        pages = {
            f"{YOUTUBE_API}/captions": httpx.Response(200, json={"items": [{"id": "c1"}]}),
            f"{YOUTUBE_API}/videos": httpx.Response(
                200,
                json={
                    "items": [
                        {
                            "snippet": {
                                "title": "Baking bread",
                                "description": "Sourdough basics",
                                "channelTitle": "Kitchen",
                                "publishedAt": "2024-01-01T00:00:00Z",
                                "tags": ["bread"],
                            }
                        }
                    ]
                },
            ),
        }
        service = YouTubeService(api_key="key", transport=page_transport(pages))

        context = await service.get_video_context("abc123")
        assert context["title"] == "Baking bread"
        assert context["channelTitle"] == "Kitchen"
        assert context["tags"] == ["bread"]
        assert context["hasCaptions"] is True

    async def test_unknown_video(self):
        pages = {
            f"{YOUTUBE_API}/captions": httpx.Response(200, json={"items": []}),
            f"{YOUTUBE_API}/videos": httpx.Response(200, json={"items": []}),
        }
        service = YouTubeService(api_key="key", transport=page_transport(pages))
        with pytest.raises(NotFoundError):
            await service.get_video_context("nope")

    async def test_missing_key(self):
        service = YouTubeService(api_key="", transport=page_transport({}))
        with pytest.raises(PromptPilotError, match="not configured"):
            await service.get_video_context("abc123")

    async def test_upstream_error(self):
        pages = {f"{YOUTUBE_API}/captions": httpx.Response(403, text="quota")}
        service = YouTubeService(api_key="key", transport=page_transport(pages))
        with pytest.raises(PromptPilotError, match="403"):
            await service.get_video_context("abc123")


# ============================================================================
# Billing
# ============================================================================

class TestCalculateCost:
    """Tests for per-1000-token pricing."""

    def test_known_model(self):
        costs = calculate_cost("gpt-4o", 1000, 500)
        assert costs["prompt_cost"] == pytest.approx(2.5)
        assert costs["completion_cost"] == pytest.approx(5.0)
        assert costs["total_cost"] == pytest.approx(7.5)

    def test_unknown_model_uses_default(self):
        assert calculate_cost("mystery", 1000, 1000) == calculate_cost("default", 1000, 1000)

    def test_cheaper_model(self):
        assert calculate_cost("gpt-3.5-turbo", 2000, 0)["total_cost"] == pytest.approx(3.0)


class TestUsageService:
    """Tests for usage recording and aggregation."""

    async def test_anonymous_usage_is_not_recorded(self, db_session):
        service = UsageService(db_session)
        assert await service.record_usage(None, None, "gpt-4o", 1, DEFAULT_USAGE) is None
        assert await service.user_summary(USER_ID) == {
            "user_id": USER_ID,
            "total_cost": 0.0,
            "model_usage": {},
            "total_prompt_tokens": 0,
            "total_completion_tokens": 0,
            "total_tokens": 0,
        }

    async def test_user_summary(self, db_session):
        service = UsageService(db_session)
        await service.record_usage(USER_ID, "p-1", "gpt-4o", 1, DEFAULT_USAGE)
        await service.record_usage(USER_ID, "p-1", "gpt-4o", 2, DEFAULT_USAGE)
        await service.record_usage(USER_ID, None, "o3-mini", 2, DEFAULT_USAGE)

        summary = await service.user_summary(USER_ID)
        assert summary["total_prompt_tokens"] == 360
        assert summary["total_completion_tokens"] == 240
        assert summary["total_tokens"] == 600
        assert summary["model_usage"]["gpt-4o"]["usage_count"] == 2
        assert summary["model_usage"]["o3-mini"]["total_tokens"] == 200

        expected = 2 * calculate_cost("gpt-4o", 120, 80)["total_cost"] + calculate_cost(
            "o3-mini", 120, 80
        )["total_cost"]
        assert summary["total_cost"] == pytest.approx(round(expected, 6))

    async def test_prompt_counts(self, db_session):
        db_session.add_all(
            [
                Prompt(user_id=USER_ID, title="A"),
                Prompt(user_id=USER_ID, title="B", is_draft=True),
                PromptDraft(user_id=USER_ID, title="C"),
                PromptDraft(user_id="user-3", title="D", is_deleted=True),
            ]
        )
        await db_session.commit()

        service = UsageService(db_session)
        await service.record_usage(USER_ID, None, "gpt-4o", 1, DEFAULT_USAGE)

        stats = {row["user_id"]: row for row in await service.prompt_counts()}
        assert stats[USER_ID]["prompts_count"] == 1
        assert stats[USER_ID]["drafts_count"] == 2
        assert stats[USER_ID]["total_count"] == 3
        assert stats[USER_ID]["total_tokens"] == 200
        assert stats["user-3"]["drafts_count"] == 1


# ============================================================================
# Enhancement helpers
# ============================================================================

class TestEnhancementHelpers:
    """Tests for enhancement message builders."""

    def test_loading_message(self):
        assert loading_message(None, None) == "Enhancing your prompt..."
        assert loading_message("coding", None) == "Enhancing your prompt for Coding..."
        assert loading_message(None, "strict") == "Enhancing your prompt to be Strict Response..."
        assert (
            loading_message("coding", "strict")
            == "Enhancing your prompt for Coding and to be Strict Response..."
        )
        assert loading_message("unknown", None) == "Enhancing your prompt..."

    def test_template_system_message_orders_pillars(self):
        template = SimpleNamespace(
            system_prefix=None,
            pillars=[
                {"title": "Second", "description": "b", "order": 1},
                {"name": "First", "description": "a", "order": 0},
            ],
        )
        message = build_template_system_message(template)
        assert message.startswith(DEFAULT_TEMPLATE_PREFIX)
        assert "FRAMEWORK STRUCTURE:\nFirst: a\nSecond: b" in message


# ============================================================================
# LLM client
# ============================================================================

class StubChatModel:
    """Stands in for ChatOpenAI; replays a reply, an exception or a delay."""

    def __init__(self, reply=None, error=None, delay: float = 0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls = 0

    async def ainvoke(self, messages):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.reply


def rate_limit_error() -> openai.RateLimitError:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    return openai.RateLimitError(
        "slow down", response=httpx.Response(429, request=request), body=None
    )


class TestLLMClient:
    """Tests for timeouts, retries and usage parsing in the chat client."""

    @pytest.fixture
    def no_backoff(self, monkeypatch):
        monkeypatch.setattr(settings, "openai_retry_backoff_seconds", 0)

    def make_client(self, monkeypatch, stub: StubChatModel) -> LLMClient:
        client = LLMClient(api_key="sk-test")
        monkeypatch.setattr(client, "_chat_model", lambda *args, **kwargs: stub)
        return client

    async def test_success(self, monkeypatch):
        reply = AIMessage(
            content="hi",
            response_metadata={
                "model_name": "gpt-4o-2024-08-06",
                "token_usage": {"prompt_tokens": 7, "completion_tokens": 3, "total_tokens": 10},
            },
        )
        client = self.make_client(monkeypatch, StubChatModel(reply=reply))

        result = await client.complete("system", "user", model="gpt-4o")
        assert result.content == "hi"
        assert result.model == "gpt-4o-2024-08-06"
        assert result.usage == {"prompt_tokens": 7, "completion_tokens": 3, "total_tokens": 10}

    async def test_missing_key(self, monkeypatch):
        stub = StubChatModel(reply=AIMessage(content="hi"))
        client = self.make_client(monkeypatch, stub)
        client.api_key = ""

        with pytest.raises(LLMNotConfiguredError):
            await client.complete("system", "user", model="gpt-4o")
        assert stub.calls == 0

    async def test_slow_call_times_out(self, monkeypatch):
        stub = StubChatModel(reply=AIMessage(content="late"), delay=1)
        client = self.make_client(monkeypatch, stub)

        with pytest.raises(LLMTimeoutError):
            await client.complete("system", "user", model="gpt-4o", timeout=0.05)

    async def test_rate_limit_retries_then_fails(self, monkeypatch, no_backoff):
        stub = StubChatModel(error=rate_limit_error())
        client = self.make_client(monkeypatch, stub)

        with pytest.raises(LLMResponseError, match="Rate limited"):
            await client.complete("system", "user", model="gpt-4o")
        assert stub.calls == settings.openai_max_retries + 1

    async def test_rate_limit_recovers(self, monkeypatch, no_backoff):
        stub = StubChatModel(error=rate_limit_error())
        client = self.make_client(monkeypatch, stub)
        original = stub.ainvoke

        async def flaky(messages):
            if stub.calls >= 1:
                stub.error = None
                stub.reply = AIMessage(content="ok")
            return await original(messages)

        stub.ainvoke = flaky
        result = await client.complete("system", "user", model="gpt-4o")
        assert result.content == "ok"
        assert stub.calls == 2

    async def test_empty_content(self, monkeypatch):
        client = self.make_client(monkeypatch, StubChatModel(reply=AIMessage(content="")))

        with pytest.raises(LLMResponseError, match="Empty response"):
            await client.complete("system", "user", model="gpt-4o")

    def test_usage_from_token_usage(self):
        message = AIMessage(
            content="x",
            response_metadata={"token_usage": {"prompt_tokens": 12, "completion_tokens": 8}},
        )
        assert usage_from_metadata(message) == {
            "prompt_tokens": 12,
            "completion_tokens": 8,
            "total_tokens": 20,
        }

    def test_usage_from_usage_metadata(self):
        message = AIMessage(
            content="x",
            usage_metadata={"input_tokens": 5, "output_tokens": 4, "total_tokens": 9},
        )
        assert usage_from_metadata(message) == {
            "prompt_tokens": 5,
            "completion_tokens": 4,
            "total_tokens": 9,
        }

    def test_usage_without_metadata(self):
        assert usage_from_metadata(AIMessage(content="x")) == {
            "prompt_tokens": 0,
            "completion_tokens": 0,
            "total_tokens": 0,
        }
