"""Single-prompt chat completion over the configured LangChain chat model."""

import anthropic
import openai
import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from call_signals.config import settings
from call_signals.exceptions import GatewayError
from call_signals.llm.factory import LLMFactory

logger = structlog.get_logger()

# Order matters: APITimeoutError subclasses APIConnectionError.
_ERROR_KINDS: list[tuple[tuple[type[Exception], ...], str]] = [
    ((anthropic.APITimeoutError, openai.APITimeoutError, TimeoutError), "timeout"),
    (
        (
            anthropic.AuthenticationError,
            anthropic.PermissionDeniedError,
            openai.AuthenticationError,
            openai.PermissionDeniedError,
        ),
        "auth",
    ),
    ((anthropic.RateLimitError, openai.RateLimitError), "rate_limit"),
    (
        (
            anthropic.BadRequestError,
            anthropic.UnprocessableEntityError,
            anthropic.NotFoundError,
            openai.BadRequestError,
            openai.UnprocessableEntityError,
            openai.NotFoundError,
        ),
        "bad_request",
    ),
]


def classify_error(exc: Exception) -> str:
    for error_types, kind in _ERROR_KINDS:
        if isinstance(exc, error_types):
            return kind
    return "unavailable"


def _message_text(content: str | list) -> str:
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class LLMGateway:
    """Sends one user prompt per call; the chat model is built on first use."""

    def __init__(self, llm: BaseChatModel | None = None, model: str | None = None) -> None:
        self._llm = llm
        self.model = model or settings.llm_model

    def _client(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = LLMFactory.create(model=self.model)
            logger.info("llm_client_created", provider=settings.llm_provider, model=self.model)
        return self._llm

    async def complete(self, prompt: str) -> str:
        try:
            response = await self._client().ainvoke([HumanMessage(content=prompt)])
        except GatewayError:
            raise
        except Exception as exc:
            kind = classify_error(exc)
            logger.warning("llm_call_failed", kind=kind, error=str(exc))
            raise GatewayError(f"LLM request failed ({kind}): {exc}", kind=kind) from exc
        return _message_text(response.content)


_gateway: LLMGateway | None = None


def get_gateway() -> LLMGateway:
    global _gateway
    if _gateway is None:
        _gateway = LLMGateway()
    return _gateway


def close_gateway() -> None:
    global _gateway
    _gateway = None
