from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "CS_", "env_file": ".env", "env_file_encoding": "utf-8"}

    llm_provider: str = Field(default="anthropic", pattern=r"^(openai|anthropic)$")
    llm_model: str = Field(default="claude-haiku-4-5-20251001")
    llm_max_tokens: int = Field(default=1024, gt=0)
    llm_temperature: float = Field(default=0.3, ge=0.0, le=1.0)
    llm_timeout: float = Field(default=60.0, gt=0)
    openai_api_key: str = Field(default="")
    anthropic_api_key: str = Field(default="")

    analysis_mode: str = Field(default="per_ticker", pattern=r"^(per_ticker|batch)$")
    cost_per_ticker: float = Field(default=0.02, ge=0.0)
    max_tickers: int = Field(default=25, gt=0)
    max_concurrency: int = Field(default=1, ge=1)

    cors_origins: str = Field(default="*")
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)


settings = Settings()
