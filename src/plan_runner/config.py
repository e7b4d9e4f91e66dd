# config.py
# Runtime settings. Values come from the environment; a .env file in the
# working directory is loaded first and never overrides real variables.

import os

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

DEFAULT_MODEL = "anthropic/claude-3.5-haiku"


class Settings(BaseModel):
    # Completion service (OpenRouter, OpenAI-compatible)
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_site_url: str = ""
    openrouter_site_name: str = ""
    planner_model: str = DEFAULT_MODEL
    synthesis_model: str = DEFAULT_MODEL
    max_tokens: int = 2000

    # State store
    annual_leave_days: int = 12

    # HTTP
    host: str = "0.0.0.0"
    port: int = 3001

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY", "").strip(),
            openrouter_base_url=os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"),
            openrouter_site_url=os.getenv("OPENROUTER_SITE_URL", ""),
            openrouter_site_name=os.getenv("OPENROUTER_SITE_NAME", ""),
            planner_model=os.getenv("PLANNER_MODEL", DEFAULT_MODEL),
            synthesis_model=os.getenv("SYNTHESIS_MODEL", DEFAULT_MODEL),
            max_tokens=int(os.getenv("MAX_TOKENS", "2000")),
            annual_leave_days=int(os.getenv("ANNUAL_LEAVE_DAYS", "12")),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3001")),
        )

    @property
    def completion_configured(self) -> bool:
        return bool(self.openrouter_api_key)

    def attribution_headers(self) -> dict[str, str]:
        """Optional OpenRouter ranking headers."""
        headers: dict[str, str] = {}
        if self.openrouter_site_url:
            headers["HTTP-Referer"] = self.openrouter_site_url
        if self.openrouter_site_name:
            headers["X-Title"] = self.openrouter_site_name
        return headers
