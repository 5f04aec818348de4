"""Signal analysis endpoint."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Response
from fastapi.responses import JSONResponse

from call_signals.analysis.schemas import AnalysisMode
from call_signals.analysis.validation import validate_request
from call_signals.config import settings
from call_signals.dependencies import AnalysisServiceDep

router = APIRouter()


@router.options("/analyze")
async def analyze_preflight() -> Response:
    """Bare OPTIONS (no preflight headers); browser preflights are answered by the middleware."""
    return Response(
        status_code=200,
        headers={
            "Access-Control-Allow-Origin": settings.cors_origins.split(",")[0].strip(),
            "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type",
        },
    )


@router.post("/analyze")
async def analyze(
    service: AnalysisServiceDep,
    payload: Annotated[Any, Body()] = None,
    mode: AnalysisMode | None = None,
) -> JSONResponse:
    """Score every ticker with the LLM and return the signals.

    ``mode`` selects one prompt per ticker (default) or one prompt for the
    whole batch; it falls back to the configured analysis mode.
    """
    request = validate_request(payload, max_tickers=settings.max_tickers)
    result = await service.analyze(request, mode or AnalysisMode(settings.analysis_mode))
    return JSONResponse(content=result.model_dump(mode="json", by_alias=True, exclude_none=True))
