"""Configuration management - loads environment variables into typed settings."""

from functools import lru_cache
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from narration_gateway.core.config import (
    DEFAULT_FALLBACK_AUDIO_URL,
    DEFAULT_STORY_SYSTEM_PROMPT,
    NarrationConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server Configuration
    host: str = Field(default="127.0.0.1", description="Host for the proxy to listen on")
    port: int = Field(default=3001, description="Port for the proxy to listen on")
    environment: str = Field(default="local", description="Deployment label reported by /api/health")

    # Upstream Credentials (missing keys surface per request as configuration errors)
    openai_api_key: str | None = Field(default=None, description="API key for the text service")
    elevenlabs_api_key: str | None = Field(default=None, description="API key for the speech service")

    # Upstream Backend URLs
    text_base_url: str = Field(
        default="https://api.openai.com",
        description="Base URL of the OpenAI-compatible text service",
    )
    speech_base_url: str = Field(
        default="https://api.elevenlabs.io",
        description="Base URL of the ElevenLabs-compatible speech service",
    )

    # Story Generation
    story_model: str = Field(default="gpt-3.5-turbo", description="Chat model used to write stories")
    story_max_tokens: int = Field(default=500, ge=1, description="Completion token limit")
    story_temperature: float = Field(default=0.8, ge=0.0, le=2.0, description="Sampling temperature")
    story_system_prompt: str = Field(default=DEFAULT_STORY_SYSTEM_PROMPT)

    # Speech Generation
    voice_id: str = Field(default="EXAVITQu4vr4xnSDxMaL", description="Speech service voice (Sarah)")
    tts_model_id: str = Field(default="eleven_monolingual_v1")
    voice_stability: float = Field(default=0.5, ge=0.0, le=1.0)
    voice_similarity_boost: float = Field(default=0.75, ge=0.0, le=1.0)
    fallback_audio_url: str = Field(
        default=DEFAULT_FALLBACK_AUDIO_URL,
        description="Default clip clients play before narration exists",
    )

    # Timeout Configuration
    upstream_timeout_s: float = Field(default=120.0, description="Total timeout for upstream requests (seconds)")
    upstream_connect_timeout_s: float = Field(
        default=10.0,
        description="Connection timeout for upstream requests (seconds)",
    )

    # CORS
    allow_origins: str = Field(
        default="*",
        description="CORS allowed origins (comma-separated list, empty = no CORS)",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL")

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not (1 <= v <= 65535):
            raise ValueError(f"port must be between 1 and 65535, got {v}")
        return v

    @field_validator("upstream_timeout_s", "upstream_connect_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v

    @field_validator("text_base_url", "speech_base_url", "fallback_audio_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format."""
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https"):
            raise ValueError(f"URL must use http or https scheme, got {v}")
        if not parsed.netloc:
            raise ValueError(f"URL must have a valid host, got {v}")
        return v

    @field_validator("openai_api_key", "elevenlabs_api_key")
    @classmethod
    def blank_key_is_missing(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}, got {v}")
        return v.upper()

    @property
    def allow_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if not self.allow_origins:
            return []
        return [origin.strip() for origin in self.allow_origins.split(",") if origin.strip()]

    def to_config(self) -> NarrationConfig:
        """Build the core library configuration from these settings."""
        return NarrationConfig(
            openai_api_key=self.openai_api_key,
            elevenlabs_api_key=self.elevenlabs_api_key,
            text_base_url=self.text_base_url,
            speech_base_url=self.speech_base_url,
            story_model=self.story_model,
            story_max_tokens=self.story_max_tokens,
            story_temperature=self.story_temperature,
            story_system_prompt=self.story_system_prompt,
            voice_id=self.voice_id,
            tts_model_id=self.tts_model_id,
            voice_stability=self.voice_stability,
            voice_similarity_boost=self.voice_similarity_boost,
            timeout_s=self.upstream_timeout_s,
            connect_timeout_s=self.upstream_connect_timeout_s,
            fallback_audio_url=self.fallback_audio_url,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Settings are loaded from environment variables and .env file on first call.
    Subsequent calls return the cached instance.

    Raises:
        ValueError: If settings are invalid.

    Returns:
        Settings: The validated settings instance.
    """
    try:
        return Settings()
    except Exception as e:
        raise ValueError(
            f"Failed to load configuration: {e}\n"
            "Please check your .env file and ensure all settings are valid."
        ) from e
