"""
Configuration management for the SentiLight server.
Supports environment variables and a .env file.
"""
import os
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = True

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = "sentilight.log"

    # Gemini (mood interpretation)
    gemini_api_key: str = os.getenv("GEMINI_API_KEY", "")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash-lite")
    gemini_base_url: str = os.getenv(
        "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com"
    )
    gemini_api_version: str = os.getenv("GEMINI_API_VERSION", "v1")
    mood_prompt_path: str = os.getenv("MOOD_PROMPT_PATH", "sentilight/interpreter/prompts/mood.txt")

    # Tasmota bulb
    tasmota_host: str = os.getenv("TASMOTA_HOST", "192.168.0.9")
    simulate: bool = os.getenv("SIMULATE", "true").lower() in ("true", "1", "yes")
    status_probe_enabled: bool = os.getenv("STATUS_PROBE_ENABLED", "true").lower() in ("true", "1", "yes")

    # Shared HTTP client; the per-call budget is twice this bound
    http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", 20))

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
