"""Turn free-text LLM replies into Signal models."""

import json
import re
from typing import Any

from pydantic import ValidationError

from call_signals.analysis.schemas import TRADE_LABELS, CallOption, Signal, label_for_score
from call_signals.exceptions import ParseError

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def _loads(text: str) -> Any:
    # strict=False tolerates raw newlines inside string values.
    return json.loads(text, strict=False)


def _first_object(text: str) -> dict | None:
    """Decode the first brace-delimited JSON object embedded in ``text``."""
    decoder = json.JSONDecoder(strict=False)
    start = text.find("{")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    return None


def parse_json_reply(text: str) -> Any:
    """Parse raw JSON, a fenced ```json block, or the first object in prose."""
    cleaned = text.strip()
    try:
        return _loads(cleaned)
    except json.JSONDecodeError:
        pass

    match = _FENCE_RE.search(cleaned)
    if match:
        try:
            return _loads(match.group(1).strip())
        except json.JSONDecodeError:
            pass

    found = _first_object(cleaned)
    if found is not None:
        return found

    raise ParseError("Could not parse AI response")


def _normalize_label(raw: Any, score: int) -> str:
    label = " ".join(str(raw).upper().replace("_", " ").split()) if raw is not None else ""
    if label in TRADE_LABELS:
        return label
    return label_for_score(score).value


def build_signal(
    data: Any,
    ticker: str,
    technical_score: float | None = None,
    company: str | None = None,
    default_call: CallOption | None = None,
) -> Signal:
    """Build a Signal from a decoded reply; the requested ticker always wins."""
    if not isinstance(data, dict):
        raise ParseError(f"Expected a JSON object for {ticker}, got {type(data).__name__}")

    fields = {**data, "ticker": ticker}
    fields.pop("technicalScore", None)
    fields.pop("technical_score", None)
    # The label is derived after validation so null or non-string labels fall back to the score.
    fields.pop("signal", None)
    try:
        signal = Signal.model_validate(fields)
    except ValidationError as exc:
        raise ParseError(
            f"Malformed analysis for {ticker}: {exc.error_count()} invalid field(s)"
        ) from exc

    signal.signal = _normalize_label(data.get("signal"), signal.score)
    if signal.call_option is None:
        signal.call_option = default_call
    signal.technical_score = technical_score
    signal.company = company or ticker
    signal.error = None
    return signal


def parse_signal(
    text: str,
    ticker: str,
    technical_score: float | None = None,
    company: str | None = None,
    default_call: CallOption | None = None,
) -> Signal:
    return build_signal(parse_json_reply(text), ticker, technical_score, company, default_call)


def parse_batch_signals(text: str) -> list[dict]:
    """Extract the per-stock entries from a batch reply."""
    data = parse_json_reply(text)
    if isinstance(data, dict):
        data = data.get("signals")
    if not isinstance(data, list):
        raise ParseError("Batch reply did not contain a signals list")
    return [entry for entry in data if isinstance(entry, dict)]

