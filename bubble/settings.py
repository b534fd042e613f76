# bubble/settings.py
import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # core
    APP_NAME: str = Field(default="Bubble Orchestrator")
    ENV: str = Field(default=os.getenv("APP_ENV", "dev"))
    DEBUG: bool = Field(default=True)
    LOG_LEVEL: str = Field(default="INFO")
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # providers
    GEMINI_API_KEY: str | None = None
    OPENROUTER_API_KEY: str | None = None
    OPENROUTER_URL: str = Field(default="https://openrouter.ai/api/v1/chat/completions")
    FREE_LLM_URL: str = Field(default="https://apifreellm.com/api/chat")
    DEFAULT_MODEL: str = Field(default="gemini-2.5-flash")
    DEEP_MODEL: str = Field(default="gemini-3-pro-preview")

    # collaborators
    SEARCH_API_URL: str | None = None
    SEARCH_API_KEY: str | None = None
    MEMORY_PATH: str = Field(default="memory.yaml")

    # read root-level .env.dev
    model_config = SettingsConfigDict(
        env_file=".env.dev",
        extra="ignore",
    )

    @property
    def app_name(self) -> str:
        return self.APP_NAME


settings = Settings()
