"""OriginPoint configuration — loaded from environment variables."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "ORIGINPOINT_", "env_file": ".env"}

    # Gemini API
    google_api_key: str = ""
    api_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    request_timeout: float = 120.0

    # Which revision of prompts and display metadata to use
    profile: Literal["archival", "strict"] = "archival"

    # Model per operation
    search_model: str = "gemini-3-flash-preview"
    map_model: str = "gemini-2.5-flash"
    audit_model: str = "gemini-3-flash-preview"
    conflicts_model: str = "gemini-3-pro-preview"
    visualize_model: str = "gemini-3-flash-preview"
    challenge_model: str = "gemini-3-pro-preview"
    summarize_model: str = "gemini-2.5-flash-lite"
    scan_model: str = "gemini-3-pro-preview"

    challenge_thinking_budget: int = Field(default=15000, ge=0, le=32768)

    # Server
    allowed_origins: list[str] = ["http://localhost:5173"]
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000


settings = Settings()
