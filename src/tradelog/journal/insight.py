"""Trade insight generation.

An insight generator receives a trade and returns free text.  The text
is split on :data:`SUMMARY_MARKER`: the first part is a friendly
reflection for the trader, the second a short bullet summary that is
stored in the trade's notes.

``IInsightGenerator`` is the protocol.  ``GeminiInsightGenerator`` calls
the Generative Language REST API over httpx.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

from tradelog.core.errors import InsightError

from .record import Trade

logger = logging.getLogger(__name__)

SUMMARY_MARKER = "---RESUMO---"
FALLBACK_INSIGHT = "Could not generate a detailed insight."

_GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class IInsightGenerator(Protocol):
    """Turns a trade into insight text.  Side-effect free."""

    async def generate(self, trade: Trade) -> str:
        ...


# ---------------------------------------------------------------------------
# Prompt and reply handling
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InsightResult:
    insight: str
    summary: str  # empty when the reply had no summary section


def build_prompt(trade: Trade) -> str:
    outcome = "Gain" if trade.result > 0 else "Loss"
    return (
        "Quick trade review:\n"
        f"- Asset: {trade.asset}\n"
        f"- Side: {trade.side}\n"
        f"- Result: {outcome} of R$ {abs(trade.result):.2f} ({trade.points} points)\n"
        f"- Setup: region ({trade.region}), structure ({trade.structure}), "
        f"trigger ({trade.trigger})\n\n"
        f"Produce two outputs separated by '{SUMMARY_MARKER}':\n"
        "1. A friendly, direct insight that helps the trader reflect. Highlight "
        "one positive point for a gain or one point of attention for a loss. "
        "Use markdown.\n"
        "2. A concise summary in 2 or 3 short bullet points, suitable for notes.\n"
    )


def split_reply(text: str) -> InsightResult:
    insight, _, summary = text.partition(SUMMARY_MARKER)
    return InsightResult(
        insight=insight.strip() or FALLBACK_INSIGHT,
        summary=summary.strip(),
    )


# ---------------------------------------------------------------------------
# Gemini over REST
# ---------------------------------------------------------------------------


class GeminiInsightGenerator:
    """Insight generator backed by a Gemini ``generateContent`` call.

    Parameters
    ----------
    api_key:
        Generative Language API key.
    model:
        Model name, e.g. ``"gemini-2.5-flash"``.
    timeout:
        Request timeout in seconds.
    transport:
        Optional httpx transport (tests inject ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gemini-2.5-flash",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise InsightError("No API key configured for insight generation")
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._transport = transport

    async def generate(self, trade: Trade) -> str:
        payload = {"contents": [{"parts": [{"text": build_prompt(trade)}]}]}
        url = _GEMINI_URL.format(model=self._model)

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as http:
                resp = await http.post(
                    url,
                    params={"key": self._api_key},
                    json=payload,
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            raise InsightError(f"Insight request failed: {exc}") from exc

        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise InsightError("Insight response had no text candidate") from exc
