"""Tests for insight prompt building, reply splitting and the Gemini client."""

import json

import httpx
import pytest

from tradelog.core.errors import InsightError
from tradelog.journal.insight import (
    FALLBACK_INSIGHT,
    SUMMARY_MARKER,
    GeminiInsightGenerator,
    IInsightGenerator,
    build_prompt,
    split_reply,
)

from factories import make_trade


class TestPrompt:
    def test_gain_prompt(self):
        prompt = build_prompt(make_trade(asset="WINJ24", exit_price=110))
        assert "WINJ24" in prompt
        assert "Gain of R$ 200.00" in prompt
        assert "Região Barata" in prompt
        assert SUMMARY_MARKER in prompt

    def test_loss_uses_absolute_value(self):
        prompt = build_prompt(make_trade(exit_price=95))
        assert "Loss of R$ 100.00" in prompt


class TestSplitReply:
    def test_with_summary(self):
        result = split_reply(f"Bom trade!\n{SUMMARY_MARKER}\n- ponto 1\n- ponto 2\n")
        assert result.insight == "Bom trade!"
        assert result.summary == "- ponto 1\n- ponto 2"

    def test_without_summary(self):
        result = split_reply("Só o insight")
        assert result.insight == "Só o insight"
        assert result.summary == ""

    def test_empty_insight_falls_back(self):
        assert split_reply(f"{SUMMARY_MARKER} resumo").insight == FALLBACK_INSIGHT


def _reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class TestGeminiInsightGenerator:
    def test_requires_api_key(self):
        with pytest.raises(InsightError):
            GeminiInsightGenerator("")

    def test_satisfies_protocol(self):
        assert isinstance(GeminiInsightGenerator("key"), IInsightGenerator)

    @pytest.mark.asyncio
    async def test_generate(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_reply("ok"))

        gen = GeminiInsightGenerator(
            "secret", model="gemini-test", transport=httpx.MockTransport(handler),
        )
        assert await gen.generate(make_trade()) == "ok"

        request = seen[0]
        assert request.method == "POST"
        assert request.url.path.endswith("/models/gemini-test:generateContent")
        assert request.url.params["key"] == "secret"
        body = json.loads(request.content)
        assert "WIN" in body["contents"][0]["parts"][0]["text"]

    @pytest.mark.asyncio
    async def test_http_error(self):
        gen = GeminiInsightGenerator(
            "key", transport=httpx.MockTransport(lambda r: httpx.Response(500)),
        )
        with pytest.raises(InsightError, match="request failed"):
            await gen.generate(make_trade())

    @pytest.mark.asyncio
    async def test_malformed_reply(self):
        gen = GeminiInsightGenerator(
            "key", transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})),
        )
        with pytest.raises(InsightError, match="no text candidate"):
            await gen.generate(make_trade())
