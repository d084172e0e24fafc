"""Configuration management for the literature review agent."""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Central configuration for the literature review agent."""

    # Project paths
    PROJECT_ROOT = Path(__file__).parent.parent.parent
    LOG_DIR = Path(os.getenv("LITREVIEW_LOG_DIR", PROJECT_ROOT / "logs"))
    LOG_LEVEL = os.getenv("LITREVIEW_LOG_LEVEL", "INFO")

    # API Keys
    ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
    SEMANTIC_SCHOLAR_API_KEY = os.getenv("SEMANTIC_SCHOLAR_API_KEY", "")

    # LLM configuration (any litellm model string)
    LITELLM_MODEL = os.getenv("LITELLM_MODEL", "anthropic/claude-sonnet-4-5")
    SEARCH_MAX_TOKENS = int(os.getenv("SEARCH_MAX_TOKENS", "4096"))
    REVIEW_MAX_TOKENS = int(os.getenv("REVIEW_MAX_TOKENS", "8192"))
    CITATION_MAX_TOKENS = int(os.getenv("CITATION_MAX_TOKENS", "15000"))

    # Agent loop
    AGENT_MAX_ITERATIONS = int(os.getenv("AGENT_MAX_ITERATIONS", "8"))
    SEARCH_PACING_SECONDS = float(os.getenv("SEARCH_PACING_SECONDS", "0.8"))
    DETAIL_PACING_SECONDS = float(os.getenv("DETAIL_PACING_SECONDS", "0.5"))

    # Search providers
    HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))
    ARXIV_COOLDOWN_SECONDS = float(os.getenv("ARXIV_COOLDOWN_SECONDS", "3.0"))

    # HTTP server
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "8000"))

    # Development settings
    DEBUG = os.getenv("DEBUG", "false").lower() == "true"

    @classmethod
    def ensure_directories(cls) -> None:
        """Ensure all required directories exist."""
        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)

    @classmethod
    def validate_api_keys(cls) -> dict[str, bool]:
        """Report which API keys are present."""
        return {
            "anthropic": bool(cls.ANTHROPIC_API_KEY),
            "semantic_scholar": bool(cls.SEMANTIC_SCHOLAR_API_KEY),
        }

    @classmethod
    def get_summary(cls) -> dict[str, Any]:
        """Get configuration summary for debugging (no secrets)."""
        return {
            "project_root": str(cls.PROJECT_ROOT),
            "log_dir": str(cls.LOG_DIR),
            "log_level": cls.LOG_LEVEL,
            "api_keys_configured": cls.validate_api_keys(),
            "llm": {
                "model": cls.LITELLM_MODEL,
                "search_max_tokens": cls.SEARCH_MAX_TOKENS,
                "review_max_tokens": cls.REVIEW_MAX_TOKENS,
            },
            "agent": {
                "max_iterations": cls.AGENT_MAX_ITERATIONS,
                "search_pacing_seconds": cls.SEARCH_PACING_SECONDS,
                "detail_pacing_seconds": cls.DETAIL_PACING_SECONDS,
            },
            "server": {"host": cls.HOST, "port": cls.PORT},
            "debug": cls.DEBUG,
        }
