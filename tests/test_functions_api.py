"""
Tests for the prompt function endpoints.

Tests cover:
- analyze-prompt: model path, heuristic fallback, caching, context
- enhance-prompt (plain and SSE)
- use-prompt-template, prompt-to-json, generate-prompt-tags
- youtube-transcript, replace-variable, pillar-suggestions
"""

import json
from typing import Dict, List

import httpx
import pytest
from httpx import AsyncClient

from promptpilot.exceptions import LLMError, LLMTimeoutError
from promptpilot.services.enhancement_service import ENHANCE_ERROR_TEXT

from tests.mocks import USER_ID

PNG_DATA_URL = "data:image/png;base64,iVBORw0KGgo="

MODEL_ANALYSIS = {
    "questions": [
        {"text": "Who will read the finished article?", "category": "Audience", "examples": ["kids", "adults"]},
        {"text": "What tone should it use?", "category": "Style"},
        {"text": "Where will it be published?", "category": "Audience"},
    ],
    "variables": [
        {"name": "Tone", "value": "friendly", "category": "Style"},
        {"name": "Length", "value": "500 words"},
    ],
    "masterCommand": "Keep it short",
    "enhancedPrompt": "Write a friendly 500 word article",
}


def parse_sse(body: str) -> List[Dict]:
    """Split an SSE body into ``{"event": ..., "data": ...}`` dicts."""
    events = []
    for block in body.strip().split("\n\n"):
        event = {}
        for line in block.splitlines():
            field, _, value = line.partition(": ")
            event[field] = json.loads(value) if field == "data" else value
        events.append(event)
    return events


async def usage_total(client: AsyncClient) -> int:
    return (await client.get(f"/api/usage/{USER_ID}/summary")).json()["total_tokens"]


# ============================================================================
# Analyze
# ============================================================================

class TestAnalyzePrompt:
    """Tests for /functions/analyze-prompt."""

    @pytest.mark.asyncio
    async def test_model_analysis(self, client: AsyncClient, llm, auth_headers):
        llm.queue(json.dumps(MODEL_ANALYSIS))

        response = await client.post(
            "/api/functions/analyze-prompt",
            json={"promptText": "Write an article about gardening"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        body = response.json()

        assert body["source"] == "ai"
        assert body["masterCommand"] == "Keep it short"
        assert body["enhancedPrompt"] == "Write a friendly 500 word article"
        assert body["ambiguity"] == 1.0
        assert body["usage"]["total_tokens"] == 200

        # "What tone" asks for the Tone variable directly and is dropped
        texts = [q["text"] for q in body["questions"]]
        assert texts == [
            "Who will read the finished article? (e.g., kids, adults)",
            "Where will it be published?",
        ]
        assert [q["id"] for q in body["questions"]] == ["q-1", "q-3"]

        assert [(v["name"], v["code"]) for v in body["variables"]] == [
            ("Tone", "VAR_1"),
            ("Length", "VAR_2"),
        ]
        assert body["variables"][1]["category"] == "Other"

        assert llm.calls[0]["temperature"] == 0.0
        assert llm.calls[0]["user"] == 'Analyze this prompt: "Write an article about gardening"'

    @pytest.mark.asyncio
    async def test_usage_is_recorded(self, client: AsyncClient, llm, auth_headers):
        llm.queue(json.dumps(MODEL_ANALYSIS))
        await client.post(
            "/api/functions/analyze-prompt",
            json={"promptText": "Write an article about gardening"},
            headers=auth_headers,
        )
        assert await usage_total(client) == 200

    @pytest.mark.asyncio
    async def test_template_pillars_reach_the_model(self, client: AsyncClient, llm):
        llm.queue(json.dumps(MODEL_ANALYSIS))
        await client.post(
            "/api/functions/analyze-prompt",
            json={
                "promptText": "Write an article",
                "template": {"pillars": [{"title": "Task"}, {"name": "Persona", "order": 1}]},
            },
        )
        assert "Use these template pillars as question categories: Task, Persona." in llm.calls[0]["system"]

    @pytest.mark.asyncio
    async def test_invalid_json_falls_back_to_heuristics(self, client: AsyncClient, llm, auth_headers):
        llm.queue("Sorry, I cannot help with that")

        response = await client.post(
            "/api/functions/analyze-prompt",
            json={
                "promptText": "Create a red car",
                "template": {"pillars": [{"title": "Content"}, {"title": "Style", "order": 1}]},
            },
            headers=auth_headers,
        )
        body = response.json()

        assert response.status_code == 200
        assert body["source"] == "heuristic"
        assert body["error"] == "Invalid response from model"
        assert {q["category"] for q in body["questions"]} == {"Content", "Style"}
        assert [v["name"] for v in body["variables"]] == [
            "Subject",
            "Primary Color",
            "Art Style",
            "Reference Artist",
        ]
        # The failed call still consumed tokens
        assert await usage_total(client) == 200

    @pytest.mark.asyncio
    async def test_model_error_falls_back_to_heuristics(self, client: AsyncClient, llm, auth_headers):
        llm.queue(LLMTimeoutError("Request timed out after 25s"))

        response = await client.post(
            "/api/functions/analyze-prompt",
            json={"promptText": "Create a red car", "secondaryToggle": "token"},
            headers=auth_headers,
        )
        body = response.json()

        assert body["source"] == "heuristic"
        assert body["error"] == "Request timed out after 25s"
        assert [v["name"] for v in body["variables"]] == ["Subject", "Style"]
        assert body["usage"]["total_tokens"] == 0
        assert await usage_total(client) == 0

    @pytest.mark.asyncio
    async def test_reply_without_questions_uses_heuristics(self, client: AsyncClient, llm):
        llm.queue(json.dumps({"questions": [], "masterCommand": "Be brief"}))

        body = (
            await client.post("/api/functions/analyze-prompt", json={"promptText": "Create a red car"})
        ).json()
        assert body["source"] == "heuristic"
        assert body["masterCommand"] == "Be brief"
        assert body["questions"]

    @pytest.mark.asyncio
    async def test_model_results_are_cached(self, client: AsyncClient, llm):
        llm.queue(json.dumps(MODEL_ANALYSIS))
        payload = {"promptText": "Write an article about gardening"}

        first = (await client.post("/api/functions/analyze-prompt", json=payload)).json()
        second = (await client.post("/api/functions/analyze-prompt", json=payload)).json()

        assert len(llm.calls) == 1
        assert second == first

    @pytest.mark.asyncio
    async def test_heuristic_results_are_not_cached(self, client: AsyncClient, llm):
        payload = {"promptText": "Create a red car"}
        llm.queue("not json", json.dumps(MODEL_ANALYSIS))

        first = (await client.post("/api/functions/analyze-prompt", json=payload)).json()
        second = (await client.post("/api/functions/analyze-prompt", json=payload)).json()

        assert first["source"] == "heuristic"
        assert second["source"] == "ai"
        assert len(llm.calls) == 2

    @pytest.mark.asyncio
    async def test_context_is_sent_to_the_model(self, client: AsyncClient, llm, website_pages):
        website_pages["https://acme.test/"] = httpx.Response(
            200,
            text="<html><body><h1>Acme Shoes</h1><p>Trail runners.</p></body></html>",
            headers={"content-type": "text/html"},
        )
        llm.queue(json.dumps(MODEL_ANALYSIS))

        await client.post(
            "/api/functions/analyze-prompt",
            json={
                "promptText": "Write a product description",
                "websiteData": {"url": "https://acme.test/", "instructions": "Match the brand voice"},
                "smartContext": {"context": "Launch is in May", "usageInstructions": "Mention the date"},
            },
        )

        user_message = llm.calls[0]["user"]
        assert "WEBSITE CONTENT (https://acme.test/):" in user_message
        assert "Acme Shoes" in user_message
        assert "USAGE INSTRUCTIONS: Match the brand voice" in user_message
        assert "SMART CONTEXT:\nLaunch is in May\nUSAGE INSTRUCTIONS: Mention the date" in user_message

    @pytest.mark.asyncio
    async def test_unreachable_website_is_skipped(self, client: AsyncClient, llm):
        llm.queue(json.dumps(MODEL_ANALYSIS))

        response = await client.post(
            "/api/functions/analyze-prompt",
            json={"promptText": "Write a product description", "websiteData": {"url": "https://gone.test/"}},
        )
        assert response.status_code == 200
        assert llm.calls[0]["user"] == 'Analyze this prompt: "Write a product description"'

    @pytest.mark.asyncio
    async def test_image_analysis_prefills_answers(self, client: AsyncClient, llm):
        reply = {
            "questions": [
                {"text": "Which art movement inspires it?", "category": "Style"},
                {"text": "Who is the poster for?", "category": "Audience"},
            ],
            "variables": [{"name": "Subject", "value": "lighthouse"}],
            "imageAnalysis": {"Style": "Bold woodcut print with heavy lines."},
        }
        llm.queue(json.dumps(reply))

        body = (
            await client.post(
                "/api/functions/analyze-prompt",
                json={"promptText": "Make a poster", "imageData": {"base64": PNG_DATA_URL}},
            )
        ).json()

        by_category = {q["category"]: q for q in body["questions"]}
        assert by_category["Style"]["answer"] == "Based on image analysis: Bold woodcut print with heavy lines."
        assert by_category["Style"]["prefillSource"] == "image"
        assert by_category["Audience"]["answer"] == ""

        user_message = llm.calls[0]["user"]
        assert user_message[1] == {"type": "image_url", "image_url": {"url": PNG_DATA_URL}}

    @pytest.mark.asyncio
    async def test_empty_prompt_is_rejected(self, client: AsyncClient):
        response = await client.post("/api/functions/analyze-prompt", json={"promptText": ""})
        assert response.status_code == 422


# ============================================================================
# Enhance
# ============================================================================

ENHANCE_REQUEST = {
    "originalPrompt": "Write a poem",
    "answeredQuestions": [
        {"id": "q-1", "text": "Who reads it?", "answer": "Kids", "category": "Audience", "isRelevant": True},
        {"id": "q-2", "text": "Any rhyme?", "answer": "", "category": "Style", "isRelevant": False},
    ],
    "relevantVariables": [{"id": "v-1", "name": "Tone", "value": "playful", "category": "Style"}],
    "primaryToggle": "coding",
    "secondaryToggle": "strict",
}


class TestEnhancePrompt:
    """Tests for /functions/enhance-prompt."""

    @pytest.mark.asyncio
    async def test_enhance(self, client: AsyncClient, llm, auth_headers):
        llm.queue("Task: write a playful poem for kids")

        response = await client.post(
            "/api/functions/enhance-prompt", json=ENHANCE_REQUEST, headers=auth_headers
        )
        assert response.status_code == 200
        body = response.json()
        assert body["enhancedPrompt"] == "Task: write a playful poem for kids"
        assert body["loadingMessage"] == "Enhancing your prompt for Coding and to be Strict Response..."
        assert body["usage"]["total_tokens"] == 200

        user_message = llm.calls[0]["user"]
        assert "ORIGINAL PROMPT:\nWrite a poem" in user_message
        assert "Answer: Kids" in user_message
        assert "Relevant: Yes" in user_message
        assert "Relevant: No" in user_message
        assert "- Variable Name: Tone\n  Value: playful" in user_message
        assert "PRIMARY TOGGLE: coding" in user_message

        assert await usage_total(client) == 200

    @pytest.mark.asyncio
    async def test_model_error(self, client: AsyncClient, llm, auth_headers):
        llm.queue(LLMError("upstream unavailable"))

        response = await client.post(
            "/api/functions/enhance-prompt", json=ENHANCE_REQUEST, headers=auth_headers
        )
        assert response.status_code == 200
        body = response.json()
        assert body["enhancedPrompt"] == ENHANCE_ERROR_TEXT
        assert body["error"] == "upstream unavailable"
        assert await usage_total(client) == 0

    @pytest.mark.asyncio
    async def test_stream(self, client: AsyncClient, llm):
        llm.queue("Task: write a poem")

        response = await client.post("/api/functions/enhance-prompt/stream", json=ENHANCE_REQUEST)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")

        events = parse_sse(response.text)
        chunks = [e["data"]["content"] for e in events if e["event"] == "chunk"]
        assert "".join(chunks) == "Task: write a poem"
        assert len(chunks) == 4

        final = events[-1]
        assert final["event"] == "final_response"
        assert final["data"]["enhancedPrompt"] == "Task: write a poem"
        assert final["data"]["usage"]["total_tokens"] == 200

    @pytest.mark.asyncio
    async def test_stream_error(self, client: AsyncClient, llm):
        llm.queue(LLMError("stream broke"))

        response = await client.post("/api/functions/enhance-prompt/stream", json=ENHANCE_REQUEST)
        events = parse_sse(response.text)

        assert [e["event"] for e in events] == ["error"]
        assert events[0]["data"]["error"] == "stream broke"
        assert events[0]["data"]["enhancedPrompt"] == ENHANCE_ERROR_TEXT


# ============================================================================
# Templates
# ============================================================================

class TestUsePromptTemplate:
    """Tests for /functions/use-prompt-template."""

    async def _template_id(self, client, headers, data) -> str:
        response = await client.post("/api/templates", json=data, headers=headers)
        return response.json()["id"]

    @pytest.mark.asyncio
    async def test_use_template(self, client: AsyncClient, llm, auth_headers, sample_template_data):
        template_id = await self._template_id(client, auth_headers, sample_template_data)
        llm.queue("An outlined story")

        response = await client.post(
            "/api/functions/use-prompt-template",
            json={
                "originalPrompt": "A story about a lost dog",
                "templateId": template_id,
                "answeredQuestions": [
                    {"id": "q-1", "text": "Who is the hero?", "answer": "A beagle"},
                    {"id": "q-2", "text": "Where?", "answer": "  "},
                ],
            },
            headers=auth_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["enhancedPrompt"] == "An outlined story"
        assert body["loadingMessage"] == "Enhancing prompt with Story Outline..."

        call = llm.calls[0]
        assert call["temperature"] == 0.5
        assert call["max_tokens"] == 500
        assert call["system"].startswith("You are a story editor.")
        assert "FRAMEWORK STRUCTURE:\nCharacters: Who is involved\nPlot: Main events" in call["system"]
        assert "Who is the hero?\nAnswer: A beagle" in call["user"]
        assert "Where?" not in call["user"]

        assert await usage_total(client) == 200

    @pytest.mark.asyncio
    async def test_template_defaults(self, client: AsyncClient, llm, auth_headers):
        template_id = await self._template_id(client, auth_headers, {"title": "Bare"})

        await client.post(
            "/api/functions/use-prompt-template",
            json={"originalPrompt": "Anything", "templateId": template_id},
            headers=auth_headers,
        )
        assert llm.calls[0]["temperature"] == 0.7
        assert llm.calls[0]["max_tokens"] == 1000

    @pytest.mark.asyncio
    async def test_max_tokens_rounds_half_up(self, client: AsyncClient, llm, auth_headers):
        for max_chars, expected in ((10, 3), (2, 1), (1, 1), (2000, 500)):
            template_id = await self._template_id(
                client, auth_headers, {"title": f"Short {max_chars}", "maxChars": max_chars}
            )
            await client.post(
                "/api/functions/use-prompt-template",
                json={"originalPrompt": "Anything", "templateId": template_id},
                headers=auth_headers,
            )
            assert llm.calls[-1]["max_tokens"] == expected

    @pytest.mark.asyncio
    async def test_missing_template(self, client: AsyncClient, llm):
        response = await client.post(
            "/api/functions/use-prompt-template",
            json={"originalPrompt": "Anything", "templateId": "missing"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["enhancedPrompt"] == "Error: Could not process the prompt enhancement request."
        assert body["loadingMessage"] == "Error processing request..."
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_someone_elses_template(
        self, client: AsyncClient, llm, auth_headers, other_headers, sample_template_data
    ):
        template_id = await self._template_id(client, auth_headers, sample_template_data)

        body = (
            await client.post(
                "/api/functions/use-prompt-template",
                json={"originalPrompt": "Anything", "templateId": template_id},
                headers=other_headers,
            )
        ).json()
        assert body["error"] == "You can only use your own templates"
        assert llm.calls == []


# ============================================================================
# JSON and tags
# ============================================================================

class TestPromptToJson:
    """Tests for /functions/prompt-to-json."""

    @pytest.mark.asyncio
    async def test_fenced_reply(self, client: AsyncClient, llm, auth_headers):
        llm.queue('```json\n{"title": "Poem", "sections": [{"type": "task", "content": "Write"}]}\n```')

        response = await client.post(
            "/api/functions/prompt-to-json", json={"promptText": "**Poem** Write"}, headers=auth_headers
        )
        body = response.json()
        assert body["jsonStructure"]["title"] == "Poem"
        assert body["error"] is None
        assert llm.calls[0]["model"] == "gpt-4o-mini"
        assert await usage_total(client) == 200

    @pytest.mark.asyncio
    async def test_unparseable_reply(self, client: AsyncClient, llm):
        llm.queue("This is not JSON")

        body = (await client.post("/api/functions/prompt-to-json", json={"promptText": "Hi"})).json()
        assert body["jsonStructure"] is None
        assert body["error"] == "Failed to parse response as JSON structure"

    @pytest.mark.asyncio
    async def test_empty_text(self, client: AsyncClient, llm):
        body = (await client.post("/api/functions/prompt-to-json", json={})).json()
        assert body["error"] == "Empty prompt text provided"
        assert llm.calls == []


class TestGeneratePromptTags:
    """Tests for /functions/generate-prompt-tags."""

    @pytest.mark.asyncio
    async def test_missing_text(self, client: AsyncClient):
        response = await client.post("/api/functions/generate-prompt-tags", json={})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid or missing prompt text"

        response = await client.post("/api/functions/generate-prompt-tags", json={"promptText": 42})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_json_reply_is_capped_at_three(self, client: AsyncClient, llm):
        tags = [{"category": f"c{i}", "subcategory": f"s{i}"} for i in range(4)]
        llm.queue(json.dumps(tags))

        response = await client.post("/api/functions/generate-prompt-tags", json={"promptText": "Hi"})
        assert response.status_code == 200
        assert response.json()["tags"] == tags[:3]
        assert llm.calls[0]["max_tokens"] == 150

    @pytest.mark.asyncio
    async def test_text_reply(self, client: AsyncClient, llm):
        llm.queue("Category: Art, Subcategory: Painting")

        body = (await client.post("/api/functions/generate-prompt-tags", json={"promptText": "Hi"})).json()
        assert body["tags"] == [{"category": "art", "subcategory": "painting"}]

    @pytest.mark.asyncio
    async def test_model_error(self, client: AsyncClient, llm):
        llm.queue(LLMError("rate limited"))

        response = await client.post("/api/functions/generate-prompt-tags", json={"promptText": "Hi"})
        assert response.status_code == 500
        assert response.json()["detail"] == "rate limited"


# ============================================================================
# YouTube
# ============================================================================

YOUTUBE_API = "https://www.googleapis.com/youtube/v3"


class TestYouTubeTranscript:
    """Tests for /functions/youtube-transcript."""

    @pytest.mark.asyncio
    async def test_missing_video_id(self, client: AsyncClient):
        response = await client.get("/api/functions/youtube-transcript")
        assert response.status_code == 400
        assert response.json()["detail"] == "No video ID provided"

    @pytest.mark.asyncio
    async def test_video_context(self, client: AsyncClient, youtube_pages):
        youtube_pages[f"{YOUTUBE_API}/captions"] = httpx.Response(200, json={"items": []})
        youtube_pages[f"{YOUTUBE_API}/videos"] = httpx.Response(
            200, json={"items": [{"snippet": {"title": "Knife skills", "channelTitle": "Chef"}}]}
        )

        response = await client.get("/api/functions/youtube-transcript", params={"videoId": "abc"})
        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Knife skills"
        assert body["hasCaptions"] is False

    @pytest.mark.asyncio
    async def test_unknown_video(self, client: AsyncClient, youtube_pages):
        youtube_pages[f"{YOUTUBE_API}/captions"] = httpx.Response(200, json={"items": []})
        youtube_pages[f"{YOUTUBE_API}/videos"] = httpx.Response(200, json={"items": []})

        response = await client.get("/api/functions/youtube-transcript", params={"videoId": "nope"})
        assert response.status_code == 404


# ============================================================================
# Variables and suggestions
# ============================================================================

class TestVariableHelpers:
    """Tests for variable replacement and pillar suggestions."""

    @pytest.mark.asyncio
    async def test_replace_variable(self, client: AsyncClient):
        response = await client.post(
            "/api/functions/replace-variable",
            json={
                "promptText": "Paint a red car near {{Place}}",
                "variableName": "Color",
                "oldValue": "red",
                "newValue": "blue",
            },
        )
        assert response.status_code == 200
        assert response.json() == {
            "promptText": "Paint a blue car near {{Place}}",
            "placeholders": ["Place"],
        }

    @pytest.mark.asyncio
    async def test_clearing_restores_placeholder(self, client: AsyncClient):
        body = (
            await client.post(
                "/api/functions/replace-variable",
                json={"promptText": "Paint a red car", "variableName": "Color", "oldValue": "red"},
            )
        ).json()
        assert body == {"promptText": "Paint a {{Color}} car", "placeholders": ["Color"]}

    @pytest.mark.asyncio
    async def test_pillar_suggestions(self, client: AsyncClient):
        response = await client.get("/api/functions/pillar-suggestions", params={"pillar": "Mood & Feeling"})
        assert response.status_code == 200
        assert len(response.json()) == 3

        response = await client.get(
            "/api/functions/pillar-suggestions",
            params={"pillar": "Audience", "prompt": "create a poster of a cat"},
        )
        assert response.json() == [
            {"text": "For **a cat**, what audience details are still missing?", "examples": []}
        ]

        response = await client.get("/api/functions/pillar-suggestions")
        assert response.status_code == 422


# ============================================================================
# Service endpoints
# ============================================================================

class TestServiceEndpoints:
    @pytest.mark.asyncio
    async def test_root(self, client: AsyncClient):
        body = (await client.get("/")).json()
        assert body["name"] == "PromptPilot"
        assert body["status"] == "running"

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        assert (await client.get("/health")).json() == {"status": "healthy"}
