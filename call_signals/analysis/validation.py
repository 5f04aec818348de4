from typing import Any

import structlog
from pydantic import ValidationError

from call_signals.analysis.schemas import AnalysisRequest, TechnicalData
from call_signals.exceptions import InvalidRequestError

logger = structlog.get_logger()


def _describe(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "record"
    return f"{location}: {first['msg']}"


def validate_request(payload: Any, max_tickers: int | None = None) -> AnalysisRequest:
    """Check the request shape before any LLM call is made."""
    if not isinstance(payload, dict):
        raise InvalidRequestError("Request body must be a JSON object.")

    tickers = payload.get("tickers")
    if not tickers or not isinstance(tickers, list):
        raise InvalidRequestError("Please provide tickers array.")

    technical_data = payload.get("technical_data")
    if technical_data is None or not isinstance(technical_data, list):
        raise InvalidRequestError("Please provide technical_data array.")

    if len(tickers) != len(technical_data):
        raise InvalidRequestError(
            f"tickers ({len(tickers)}) and technical_data ({len(technical_data)}) "
            "must have the same length."
        )

    if max_tickers is not None and len(tickers) > max_tickers:
        raise InvalidRequestError(f"Maximum {max_tickers} tickers allowed per request.")

    normalized = []
    for index, ticker in enumerate(tickers):
        if not isinstance(ticker, str) or not ticker.strip():
            raise InvalidRequestError(f"tickers[{index}] must be a non-empty string.")
        normalized.append(ticker.upper().strip())

    records = []
    for index, record in enumerate(technical_data):
        if not isinstance(record, dict):
            raise InvalidRequestError(f"technical_data[{index}] must be an object.")
        try:
            records.append(TechnicalData.model_validate(record))
        except ValidationError as exc:
            raise InvalidRequestError(f"technical_data[{index}] {_describe(exc)}") from exc

    logger.debug("analysis_request_valid", tickers=normalized)
    return AnalysisRequest(tickers=normalized, technical_data=records)
