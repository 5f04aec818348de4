from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import Headers

from call_signals.analysis.router import router as analysis_router
from call_signals.config import settings
from call_signals.exception_handlers import register_exception_handlers
from call_signals.llm.gateway import close_gateway
from call_signals.logging_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    yield
    close_gateway()


class EmptyPreflightCORSMiddleware(CORSMiddleware):
    """Answers accepted preflights with an empty 200 instead of a plain-text ``OK``."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            key: value
            for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=200, headers=headers)


app = FastAPI(
    title="Call Signals",
    description="LLM-scored call option signals from precomputed technical data",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    EmptyPreflightCORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.cors_origins.split(",")],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

register_exception_handlers(app)

app.include_router(analysis_router, prefix="/api", tags=["analysis"])


@app.get("/api/health")
async def health():
    return {"status": "healthy"}
