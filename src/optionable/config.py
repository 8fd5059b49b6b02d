from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"

    # Public Deribit REST root; no key required for book summaries / index prices.
    DERIBIT_BASE_URL: str = "https://www.deribit.com/api/v2"
    OPTIONABLE_TICKER: str = "BTC"
    OPTIONABLE_HTTP_TIMEOUT: float = 15.0

    @property
    def openai_api_key(self) -> str | None:
        return self.OPENAI_API_KEY

    @property
    def openai_model(self) -> str:
        return self.OPENAI_MODEL

    @property
    def deribit_base_url(self) -> str:
        return (self.DERIBIT_BASE_URL or "https://www.deribit.com/api/v2").rstrip("/")

    @property
    def default_ticker(self) -> str:
        return (self.OPTIONABLE_TICKER or "BTC").strip().upper()

    @property
    def http_timeout(self) -> float:
        return float(self.OPTIONABLE_HTTP_TIMEOUT)


def load_settings() -> Settings:
    return Settings()
