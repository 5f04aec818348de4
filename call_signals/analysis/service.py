"""Signal analysis orchestration: prompt, call, parse and aggregate."""

import asyncio
from collections import Counter
from datetime import UTC, date, datetime

import structlog

from call_signals.analysis.parsing import build_signal, parse_batch_signals, parse_signal
from call_signals.analysis.prompts import (
    build_batch_prompt,
    build_ticker_prompt,
    otm_strike,
    target_expiration,
)
from call_signals.analysis.schemas import (
    AnalysisMode,
    AnalysisRequest,
    AnalysisResponse,
    BatchAnalysisResponse,
    CallOption,
    Signal,
    SignalLabel,
    SignalSummary,
    TechnicalData,
)
from call_signals.config import settings
from call_signals.exceptions import AnalysisError, AppError, GatewayError, ParseError
from call_signals.llm.gateway import LLMGateway

logger = structlog.get_logger()


def summarize(signals: list[Signal]) -> SignalSummary:
    counts = Counter(signal.signal for signal in signals)
    return SignalSummary(
        total=len(signals),
        strong_buy=counts[SignalLabel.strong_buy.value],
        buy=counts[SignalLabel.buy.value],
        hold=counts[SignalLabel.hold.value],
        avoid=counts[SignalLabel.avoid.value],
        errors=counts[SignalLabel.error.value],
    )


def rank_by_score(signals: list[Signal]) -> list[Signal]:
    """Highest score first; equal scores keep their input order."""
    return sorted(signals, key=lambda signal: signal.score, reverse=True)


def _now() -> str:
    return datetime.now(UTC).isoformat()


class AnalysisService:
    def __init__(
        self,
        gateway: LLMGateway,
        cost_per_ticker: float | None = None,
        max_concurrency: int | None = None,
        today: date | None = None,
    ) -> None:
        self._gateway = gateway
        self._cost_per_ticker = (
            settings.cost_per_ticker if cost_per_ticker is None else cost_per_ticker
        )
        self._max_concurrency = max_concurrency or settings.max_concurrency
        self._today = today

    async def analyze(
        self, request: AnalysisRequest, mode: AnalysisMode = AnalysisMode.per_ticker
    ) -> AnalysisResponse | BatchAnalysisResponse:
        logger.info(
            "analysis_start",
            mode=mode.value,
            tickers=len(request.tickers),
            cost_estimate=self._cost_estimate(request),
        )
        try:
            if mode == AnalysisMode.batch:
                return await self._analyze_batch(request)
            return await self._analyze_per_ticker(request)
        except AppError:
            raise
        except Exception as exc:
            logger.error("analysis_failed", error=str(exc))
            raise AnalysisError(str(exc)) from exc

    def _cost_estimate(self, request: AnalysisRequest) -> str:
        return f"${len(request.tickers) * self._cost_per_ticker:.2f}"

    def _default_call(self, data: TechnicalData) -> CallOption:
        return CallOption(
            strike_price=otm_strike(data.current_price),
            expiration=target_expiration(self._today),
        )

    # -- per-ticker -------------------------------------------------------

    async def _analyze_per_ticker(self, request: AnalysisRequest) -> AnalysisResponse:
        pairs = list(zip(request.tickers, request.technical_data, strict=True))

        if self._max_concurrency <= 1:
            signals = [await self._analyze_ticker(ticker, data) for ticker, data in pairs]
        else:
            semaphore = asyncio.Semaphore(self._max_concurrency)

            async def bounded(ticker: str, data: TechnicalData) -> Signal:
                async with semaphore:
                    return await self._analyze_ticker(ticker, data)

            # gather returns results in submission order, not completion order
            signals = list(await asyncio.gather(*(bounded(t, d) for t, d in pairs)))

        signals = rank_by_score(signals)
        response = AnalysisResponse(
            timestamp=_now(),
            model=self._gateway.model,
            signals=signals,
            summary=summarize(signals),
            cost_estimate=self._cost_estimate(request),
        )
        logger.info(
            "analysis_complete",
            strong_buy=response.summary.strong_buy,
            buy=response.summary.buy,
            errors=response.summary.errors,
        )
        return response

    async def _analyze_ticker(self, ticker: str, data: TechnicalData) -> Signal:
        """One gateway call; gateway and parse failures become an ERROR signal."""
        prompt = build_ticker_prompt(ticker, data, self._today)
        logger.info("ticker_analyze", ticker=ticker)

        try:
            reply = await self._gateway.complete(prompt)
            signal = parse_signal(
                reply,
                ticker,
                technical_score=data.technical_score,
                company=data.company,
                default_call=self._default_call(data),
            )
        except (GatewayError, ParseError) as exc:
            logger.warning("ticker_analysis_failed", ticker=ticker, error=exc.message)
            return Signal.failed(ticker, exc.message)

        logger.info("ticker_analyzed", ticker=ticker, signal=signal.signal, score=signal.score)
        return signal

    # -- batch ------------------------------------------------------------

    async def _analyze_batch(self, request: AnalysisRequest) -> BatchAnalysisResponse:
        prompt = build_batch_prompt(request.tickers, request.technical_data, self._today)
        reply = await self._gateway.complete(prompt)
        entries = parse_batch_signals(reply)

        by_ticker: dict[str, dict] = {}
        for entry in entries:
            key = str(entry.get("ticker", "")).upper().strip()
            by_ticker.setdefault(key, entry)

        signals = []
        for ticker, data in zip(request.tickers, request.technical_data, strict=True):
            entry = by_ticker.get(ticker)
            if entry is None:
                logger.warning("batch_ticker_missing", ticker=ticker)
                signals.append(Signal.failed(ticker, "No analysis returned for ticker"))
                continue
            signals.append(
                build_signal(
                    entry,
                    ticker,
                    technical_score=data.technical_score,
                    company=data.company,
                    default_call=self._default_call(data),
                )
            )

        logger.info("batch_analysis_complete", signals=len(signals))
        return BatchAnalysisResponse(
            signals=signals,
            analysis_timestamp=_now(),
            model_used=self._gateway.model,
        )
