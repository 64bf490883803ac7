"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Inference service (OpenAI-compatible endpoint, Gemini by default)
    ai_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    ai_model: str = "gemini-2.5-flash"
    ai_timeout_seconds: float = 120.0
    ai_max_tokens: int = 8000
    ai_temperature: float = 0.1
    # Comma-separated seed keys, used only when the credential store is empty
    ai_api_keys: str = ""

    # Batch pipeline
    batch_size: int = 15
    # False: every analyze run starts at the first credential
    resume_cursor: bool = False

    # Credential storage
    credentials_file: str = ".placement_credentials.json"
    credentials_key: str = "gemini-api-keys"

    # Uploads
    max_upload_mb: int = 5

    # Candidate search (third-party recruiting SaaS)
    candidate_api_base_url: str = ""
    candidate_api_key: str = ""
    candidate_api_timeout_seconds: float = 30.0

    # App
    debug: bool = True
    log_level: str = "INFO"

    @property
    def seed_api_keys(self) -> List[str]:
        """Split the comma-separated seed keys"""
        return [key.strip() for key in self.ai_api_keys.split(",") if key.strip()]

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
