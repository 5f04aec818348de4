"""Prompt templates and value formatting for call-option signal analysis."""

import calendar
import math
from datetime import date

from call_signals.analysis.schemas import OptionsData, TechnicalData

NOT_AVAILABLE = "N/A"
OTM_MULTIPLIER = 1.10
EXPIRATION_MONTHS = 3

# Decimal places per value kind.
PRICE_DECIMALS = 2
RSI_DECIMALS = 1
MACD_DECIMALS = 4
RATIO_DECIMALS = 2
PERCENT_DECIMALS = 0


def _missing(value: float | None) -> bool:
    return value is None or not math.isfinite(value)


def fmt_number(value: float | None, decimals: int, suffix: str = "") -> str:
    if _missing(value):
        return NOT_AVAILABLE
    return f"{value:.{decimals}f}{suffix}"


def fmt_money(value: float | None) -> str:
    if _missing(value):
        return NOT_AVAILABLE
    return f"${value:.{PRICE_DECIMALS}f}"


def fmt_count(value: int | None) -> str:
    if value is None:
        return NOT_AVAILABLE
    return f"{value:,}"


def otm_strike(current_price: float | None) -> str:
    """Suggested out-of-the-money strike, 10% above the current price."""
    if _missing(current_price):
        return NOT_AVAILABLE
    return f"{current_price * OTM_MULTIPLIER:.2f}"


def add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def target_expiration(today: date | None = None) -> str:
    """Target expiration three months out, rendered like ``Jan 19, 2027``."""
    expiry = add_months(today or date.today(), EXPIRATION_MONTHS)
    return f"{expiry:%b} {expiry.day}, {expiry.year}"


_SCORING_RULES = """Rules:
- STRONG BUY: 9-10 (excellent setup, all indicators aligned)
- BUY: 7-8 (good setup, most indicators positive)
- HOLD: 5-6 (mixed signals, wait for confirmation)
- AVOID: 0-4 (poor setup or elevated risk)
- Keep recommendation under 150 characters
- List 2-3 specific risks
- Be conservative - favor HOLD over BUY if uncertain
- Respond with the JSON object only, do NOT wrap it in markdown code fences"""

_ASSESSMENT_CRITERIA = """ASSESSMENT CRITERIA:
- Score on a 0-10 scale
- Conservative scoring (7/10 minimum for BUY)
- 10+ days until earnings required
- Focus on momentum + trend alignment
- Risk-adjusted recommendations"""

_OPTIONS_CRITERIA = """OPTIONS CRITERIA:
- Prefer implied volatility below 40%
- Prefer IV rank below 50
- Prefer bid-ask spread below 3%
- Prefer open interest above 1,000 contracts
- Penalize the score when the contract is illiquid or volatility is expensive"""

_TICKER_PROMPT = """You are an expert options trading analyst. Based on the technical data below, \
provide a final assessment for naked call buying.

STOCK: {ticker}
COMPANY: {company}
CURRENT PRICE: {price}

TECHNICAL INDICATORS:
{indicators}
{options_block}
PYTHON TECHNICAL SCORE: {technical_score}/100
SCORING REASONS: {reasons}

{criteria}

Provide your assessment in EXACTLY this JSON format (no markdown, no extra text):
{{
  "ticker": "{ticker}",
  "signal": "STRONG BUY | BUY | HOLD | AVOID",
  "score": 0-10,
  "callOption": {{
    "strikePrice": "{strike}",
    "expiration": "{expiration}",
    "reasoning": "One sentence on why this strike and expiration fit the setup"
  }},
  "recommendation": "Brief 1-2 sentence recommendation focusing on entry timing and setup quality",
  "risks": ["risk 1", "risk 2", "risk 3"]
}}

{rules}"""

_BATCH_PROMPT = """You are an expert options trading analyst. Based on the technical data below, \
provide a final assessment for naked call buying on each of these {count} stocks: {tickers}.

{stocks}

{criteria}

Suggest a call roughly 10% out of the money expiring around {expiration} for each stock.

Provide your assessment in EXACTLY this JSON format (no markdown, no extra text), \
with one entry per stock in the order given:
{{
  "signals": [
    {{
      "ticker": "SYMBOL",
      "signal": "STRONG BUY | BUY | HOLD | AVOID",
      "score": 0-10,
      "callOption": {{
        "strikePrice": "strike price as a string",
        "expiration": "expiration date as a string",
        "reasoning": "One sentence on why this strike and expiration fit the setup"
      }},
      "recommendation": "Brief 1-2 sentence recommendation focusing on entry timing and setup quality"
    }}
  ]
}}

{rules}"""


def _indicator_lines(data: TechnicalData) -> list[str]:
    return [
        f"- RSI (14-day): {fmt_number(data.rsi, RSI_DECIMALS)}",
        f"- MACD: {fmt_number(data.macd, MACD_DECIMALS)}",
        f"- MACD Signal: {fmt_number(data.macd_signal, MACD_DECIMALS)}",
        f"- MACD Histogram: {fmt_number(data.macd_histogram, MACD_DECIMALS)}",
        f"- 20-day SMA: {fmt_money(data.sma_20)}",
        f"- 50-day SMA: {fmt_money(data.sma_50)}",
        f"- Bollinger Upper: {fmt_money(data.bb_upper)}",
        f"- Bollinger Lower: {fmt_money(data.bb_lower)}",
        f"- Volume vs Average: {fmt_number(data.volume_ratio, RATIO_DECIMALS, 'x')}",
        f"- Days Until Earnings: {fmt_count(data.days_until_earnings)}",
    ]


def _options_lines(options: OptionsData) -> list[str]:
    """Only the fields that were supplied are rendered."""
    candidates = [
        ("Strike", options.strike, fmt_money),
        ("Expiration", options.expiration, str),
        (
            "Implied Volatility",
            options.implied_volatility,
            lambda v: fmt_number(v, PERCENT_DECIMALS, "%"),
        ),
        ("IV Rank", options.iv_rank, lambda v: fmt_number(v, PERCENT_DECIMALS)),
        ("Bid-Ask Spread", options.bid_ask_spread, fmt_money),
        ("Spread %", options.spread_pct, lambda v: fmt_number(v, PERCENT_DECIMALS, "%")),
        ("Volume", options.volume, fmt_count),
        ("Open Interest", options.open_interest, fmt_count),
        ("Delta", options.delta, lambda v: fmt_number(v, RATIO_DECIMALS)),
        ("Theta", options.theta, lambda v: fmt_number(v, RATIO_DECIMALS)),
    ]
    return [
        f"- {label}: {render(value)}" for label, value, render in candidates if value is not None
    ]


def _options_block(data: TechnicalData) -> str:
    if data.options_data is None:
        return ""
    lines = _options_lines(data.options_data)
    if not lines:
        return ""
    return "\nOPTIONS CONTRACT:\n" + "\n".join(lines) + "\n"


def _criteria(has_options: bool) -> str:
    if has_options:
        return f"{_ASSESSMENT_CRITERIA}\n\n{_OPTIONS_CRITERIA}"
    return _ASSESSMENT_CRITERIA


def _reasons(data: TechnicalData) -> str:
    return "; ".join(data.score_reasons) if data.score_reasons else NOT_AVAILABLE


def build_ticker_prompt(ticker: str, data: TechnicalData, today: date | None = None) -> str:
    """Render the single-stock prompt with a precomputed strike and expiration."""
    return _TICKER_PROMPT.format(
        ticker=ticker,
        company=data.company or ticker,
        price=fmt_money(data.current_price),
        indicators="\n".join(_indicator_lines(data)),
        options_block=_options_block(data),
        technical_score=fmt_number(data.technical_score, PERCENT_DECIMALS),
        reasons=_reasons(data),
        criteria=_criteria(bool(_options_block(data))),
        strike=otm_strike(data.current_price),
        expiration=target_expiration(today),
        rules=_SCORING_RULES,
    )


def _batch_stock_section(ticker: str, data: TechnicalData) -> str:
    lines = [
        f"STOCK: {ticker} ({data.company or ticker})",
        f"CURRENT PRICE: {fmt_money(data.current_price)}",
        *_indicator_lines(data),
        f"PYTHON TECHNICAL SCORE: {fmt_number(data.technical_score, PERCENT_DECIMALS)}/100",
        f"SCORING REASONS: {_reasons(data)}",
    ]
    options = _options_block(data)
    if options:
        lines.append(options.strip("\n"))
    return "\n".join(lines)


def build_batch_prompt(
    tickers: list[str], records: list[TechnicalData], today: date | None = None
) -> str:
    """Render one combined prompt covering every ticker in the request."""
    sections = [
        _batch_stock_section(ticker, data)
        for ticker, data in zip(tickers, records, strict=True)
    ]
    has_options = any(_options_block(data) for data in records)
    return _BATCH_PROMPT.format(
        count=len(tickers),
        tickers=", ".join(tickers),
        stocks="\n\n".join(sections),
        criteria=_criteria(has_options),
        expiration=target_expiration(today),
        rules=_SCORING_RULES,
    )
