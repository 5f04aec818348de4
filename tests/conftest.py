"""Pytest configuration and fixtures."""

import json
from datetime import date

import pytest
from fastapi.testclient import TestClient

from call_signals.analysis.schemas import TechnicalData
from call_signals.llm.gateway import get_gateway
from call_signals.main import app


def signal_reply(ticker: str, signal: str = "BUY", score: int = 7, **extra) -> str:
    """A well-formed single-ticker reply as the model would send it."""
    payload = {
        "ticker": ticker,
        "signal": signal,
        "score": score,
        "recommendation": f"{ticker} setup looks constructive.",
        "risks": ["Earnings volatility", "Market pullback"],
        **extra,
    }
    return json.dumps(payload)


class FakeGateway:
    """Stands in for LLMGateway; replies are str, Exception or callable(prompt)."""

    def __init__(self, replies: list | None = None, model: str = "test-model") -> None:
        self.replies = list(replies or [])
        self.prompts: list[str] = []
        self.model = model

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if self.replies else signal_reply("UNKNOWN")
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(prompt)
        return reply


@pytest.fixture
def today() -> date:
    return date(2026, 10, 19)


@pytest.fixture
def sample_record() -> dict:
    return {
        "ticker": "AAPL",
        "company": "Apple Inc.",
        "current_price": 200,
        "technical_score": 80,
        "rsi": 55.234,
        "macd": 0.5,
        "macd_signal": 0.41234,
        "macd_histogram": 0.08766,
        "sma_20": 195.5,
        "sma_50": 188.25,
        "bb_upper": 210.1,
        "bb_lower": 185.9,
        "volume_ratio": 1.456,
        "score_reasons": ["Price above 20 SMA", "MACD bullish crossover"],
        "days_until_earnings": 34,
    }


@pytest.fixture
def sample_technical_data(sample_record: dict) -> TechnicalData:
    return TechnicalData.model_validate(sample_record)


@pytest.fixture
def sample_options() -> dict:
    return {
        "strike": 220,
        "expiration": "2027-01-15",
        "implied_volatility": 32.4,
        "iv_rank": 41,
        "bid_ask_spread": 0.15,
        "spread_pct": 2.2,
        "volume": 850,
        "open_interest": 12500,
        "delta": 0.3512,
    }


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def client(fake_gateway: FakeGateway):
    app.dependency_overrides[get_gateway] = lambda: fake_gateway
    yield TestClient(app)
    app.dependency_overrides.clear()
