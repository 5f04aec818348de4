from enum import StrEnum

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from call_signals.config import settings
from call_signals.exceptions import GatewayError


class LLMProvider(StrEnum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class LLMFactory:
    @staticmethod
    def create(
        provider: str | None = None,
        model: str | None = None,
        **kwargs: object,
    ) -> BaseChatModel:
        provider = provider or settings.llm_provider
        model = model or settings.llm_model
        kwargs.setdefault("max_tokens", settings.llm_max_tokens)
        kwargs.setdefault("temperature", settings.llm_temperature)
        kwargs.setdefault("timeout", settings.llm_timeout)
        # One attempt per unit of work; the SDK clients retry by default.
        kwargs.setdefault("max_retries", 0)

        match provider:
            case LLMProvider.OPENAI:
                api_key = settings.openai_api_key
                if not api_key:
                    raise GatewayError("OpenAI API key is not configured", kind="auth")
                return ChatOpenAI(model=model, api_key=api_key, **kwargs)  # type: ignore[arg-type]

            case LLMProvider.ANTHROPIC:
                api_key = settings.anthropic_api_key
                if not api_key:
                    raise GatewayError("Anthropic API key is not configured", kind="auth")
                return ChatAnthropic(model=model, api_key=api_key, **kwargs)  # type: ignore[arg-type]

            case _:
                raise GatewayError(f"Unknown LLM provider: '{provider}'", kind="bad_request")
