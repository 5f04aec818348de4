"""Request and response models for the signal analysis endpoint.

Inbound technical data is loosely typed: every numeric field is an explicit
optional that turns missing, null, NaN or non-numeric input into ``None``, so
the prompt renderer only ever has to handle a float or ``None``.
"""

from __future__ import annotations

import math
from enum import StrEnum
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _loose_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def _loose_int(value: Any) -> int | None:
    number = _loose_float(value)
    return None if number is None else int(number)


OptionalFloat = Annotated[float | None, BeforeValidator(_loose_float)]
OptionalInt = Annotated[int | None, BeforeValidator(_loose_int)]


class AnalysisMode(StrEnum):
    per_ticker = "per_ticker"
    batch = "batch"


class SignalLabel(StrEnum):
    strong_buy = "STRONG BUY"
    buy = "BUY"
    hold = "HOLD"
    avoid = "AVOID"
    error = "ERROR"


TRADE_LABELS = (SignalLabel.strong_buy, SignalLabel.buy, SignalLabel.hold, SignalLabel.avoid)


def label_for_score(score: int) -> SignalLabel:
    """Map a 0-10 score onto its signal bucket."""
    if score >= 9:
        return SignalLabel.strong_buy
    if score >= 7:
        return SignalLabel.buy
    if score >= 5:
        return SignalLabel.hold
    return SignalLabel.avoid


# ---------------------------------------------------------------------------
# Inbound
# ---------------------------------------------------------------------------


class OptionsData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    strike: OptionalFloat = None
    expiration: str | None = None
    implied_volatility: OptionalFloat = None  # percent, e.g. 35.0
    iv_rank: OptionalFloat = None
    bid_ask_spread: OptionalFloat = None
    spread_pct: OptionalFloat = None
    volume: OptionalInt = None
    open_interest: OptionalInt = None
    delta: OptionalFloat = None
    theta: OptionalFloat = None


class TechnicalData(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    ticker: str | None = None
    company: str | None = None
    current_price: OptionalFloat = None
    technical_score: OptionalFloat = None
    rsi: OptionalFloat = None
    macd: OptionalFloat = None
    macd_signal: OptionalFloat = None
    macd_histogram: OptionalFloat = None
    sma_20: OptionalFloat = None
    sma_50: OptionalFloat = None
    bb_upper: OptionalFloat = None
    bb_lower: OptionalFloat = None
    volume_ratio: OptionalFloat = None
    score_reasons: list[str] = Field(default_factory=list)
    options_data: OptionsData | None = Field(
        default=None, validation_alias=AliasChoices("options_data", "options")
    )
    days_until_earnings: OptionalInt = None

    @field_validator("current_price")
    @classmethod
    def _non_negative_price(cls, value: float | None) -> float | None:
        if value is not None and value < 0:
            raise ValueError("current_price must be >= 0")
        return value

    @field_validator("score_reasons", mode="before")
    @classmethod
    def _reasons_list(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if isinstance(value, list):
            return [str(reason) for reason in value if reason is not None]
        return []


class AnalysisRequest(BaseModel):
    tickers: list[str]
    technical_data: list[TechnicalData]


# ---------------------------------------------------------------------------
# Outbound
# ---------------------------------------------------------------------------


class CallOption(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    strike_price: str | None = None
    expiration: str | None = None
    reasoning: str | None = None

    @field_validator("strike_price", mode="before")
    @classmethod
    def _strike_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return f"{value:.2f}"
        return value


class Signal(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    ticker: str
    signal: str = ""
    score: int = 0
    call_option: CallOption | None = None
    recommendation: str | None = None
    risks: list[str] | None = None
    technical_score: float | None = None
    company: str | None = None
    error: str | None = None

    @field_validator("score", mode="before")
    @classmethod
    def _score_int(cls, value: Any) -> int:
        number = _loose_float(value)
        return 0 if number is None else int(round(number))

    @field_validator("risks", mode="before")
    @classmethod
    def _risks_list(cls, value: Any) -> list[str] | None:
        if value is None:
            return None
        if isinstance(value, str):
            return [value]
        if isinstance(value, list):
            return [str(risk) for risk in value]
        return None

    @classmethod
    def failed(cls, ticker: str, error: str) -> Signal:
        return cls(ticker=ticker, signal=SignalLabel.error.value, score=0, error=error)


class SignalSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int
    strong_buy: int
    buy: int
    hold: int
    avoid: int
    errors: int


class AnalysisResponse(BaseModel):
    success: bool = True
    timestamp: str
    model: str
    signals: list[Signal]
    summary: SignalSummary
    cost_estimate: str


class BatchAnalysisResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    signals: list[Signal]
    analysis_timestamp: str
    model_used: str
