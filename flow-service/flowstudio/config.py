"""
Application configuration management using Pydantic Settings.
"""
import logging
from typing import Literal, Optional, Dict, Any
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from dotenv import load_dotenv

# Load .env first
load_dotenv()

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings for the flow studio service"""

    # -------------------------
    # APPLICATION METADATA & RUNTIME
    # -------------------------
    app_name: str = "Flow Studio Service"
    app_version: str = "0.1.0"
    api_title: str = "Flow Studio API"
    api_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_directory: str = "logs"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    # -------------------------
    # TEXT GENERATION (OpenAI-compatible endpoint)
    # -------------------------
    generation_enabled: bool = True
    llm_provider: Literal["openai"] = "openai"
    llm_base_url: Optional[str] = None
    llm_model: str = "gpt-4o-mini"
    llm_api_key: Optional[str] = None
    llm_timeout: float = 60.0
    llm_temperature: float = 0.7
    llm_max_tokens: int = 2000

    # Per-pipeline sampling; unset values fall back to llm_temperature / llm_max_tokens
    architecture_temperature: float = 0.3
    architecture_max_tokens: int = 4000
    wireframe_temperature: float = 0.4
    wireframe_max_tokens: int = 3000
    thinking_temperature: float = 0.7
    thinking_max_tokens: int = 1000
    questions_temperature: float = 0.5
    questions_max_tokens: int = 1500

    # -------------------------
    # GRAPH / EDITOR
    # -------------------------
    max_screens: int = 30
    editor_duplicate_offset: float = 50.0
    editor_default_edge_label: str = "Action"

    # -------------------------
    # VALIDATORS
    # -------------------------
    @field_validator('log_level', mode='before')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return str(v).upper()

    @field_validator('environment', mode='before')
    @classmethod
    def validate_environment(cls, v: str) -> str:
        valid_envs = ["development", "staging", "production"]
        if v not in valid_envs:
            logger.warning(f"Invalid environment '{v}', defaulting to 'development'")
            return "development"
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def llm_configured(self) -> bool:
        """True when the text-generation collaborator can be built"""
        return self.generation_enabled and bool(self.llm_api_key)

    @property
    def llm_config(self) -> Dict[str, Any]:
        return {
            "provider": self.llm_provider,
            "base_url": self.llm_base_url,
            "model": self.llm_model,
            "api_key": self.llm_api_key,
            "request_timeout": self.llm_timeout,
            "temperature": self.llm_temperature,
            "max_tokens": self.llm_max_tokens,
        }

    def generation_options(self, pipeline: str) -> Dict[str, Any]:
        """Sampling options sent with each request of the named pipeline"""
        return {
            "temperature": getattr(self, f"{pipeline}_temperature", self.llm_temperature),
            "max_tokens": getattr(self, f"{pipeline}_max_tokens", self.llm_max_tokens),
        }

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="FLOWSTUDIO_",
        validate_default=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    logger.info("Initializing settings...")
    return Settings()


settings = get_settings()
