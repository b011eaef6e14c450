"""
Configuration for the rental property bot.

Settings come from environment variables (and a local ``.env`` file).
"""

import logging
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # LLM
    gemini_api_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY")
    )
    gemini_model: str = "gemini-2.5-flash"
    temperature: float = 0.7
    max_output_tokens: int = 1024

    # Conversation transcript
    redis_url: Optional[str] = None
    transcript_max_messages: int = 50
    history_limit: int = 20

    # Chat commands
    list_page_size: int = 10

    # WhatsApp Cloud API
    whatsapp_api_url: Optional[str] = None
    whatsapp_api_token: Optional[str] = None
    whatsapp_verify_token: Optional[str] = None

    # Server
    host: str = "127.0.0.1"
    port: int = 8002
    port_tries: int = 20
    reload: bool = True

    # Logging
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format=LOG_FORMAT,
    )
