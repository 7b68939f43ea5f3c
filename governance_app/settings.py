"""Application settings.

Values come from environment variables (or a local ``.env`` file) through
``pydantic-settings``. The model credential has no usable default: the app
factory refuses to start the workbench without it.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class MissingCredentialError(RuntimeError):
    """Raised when the model service credential is not configured."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

# Model service (OpenAI-compatible endpoint)
    llm_api_key: str = ""
    llm_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    llm_model: str = "gemini-2.5-pro"
    llm_timeout: Optional[float] = None   # None = no client-side timeout

# Classifier sample extraction
    sample_preview_rows: int = 5

# Server
    host: str = "127.0.0.1"
    port: int = 8000

# Logging
    log_level: str = "INFO"
    log_json: bool = False


def require_api_key(cfg: "Settings") -> str:
    key = (cfg.llm_api_key or "").strip()
    if not key:
        raise MissingCredentialError("Missing API Key")
    return key


settings = Settings()
