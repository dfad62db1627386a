"""
Config: centralized configuration with env overrides.

All studio parameters are configurable via VERKOVE_* environment
variables with sensible defaults. Provider credentials are optional;
without them the engines serve deterministic fallback results.
"""
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class StudioConfig:
    """Immutable studio configuration. Env vars override defaults."""

    # Models
    image_model: str = os.getenv("VERKOVE_IMAGE_MODEL", "gemini-2.5-flash-image")
    gemini_text_model: str = os.getenv("VERKOVE_GEMINI_TEXT_MODEL", "gemini-2.5-flash")
    chat_model: str = os.getenv("VERKOVE_CHAT_MODEL", "claude-opus-4-6")
    max_tokens_chat: int = int(os.getenv("VERKOVE_TOKENS_CHAT", "1024"))

    # Provider calls
    provider_timeout_s: float = float(os.getenv("VERKOVE_PROVIDER_TIMEOUT", "60"))
    max_retries: int = int(os.getenv("VERKOVE_MAX_RETRIES", "1"))
    retry_base_ms: int = int(os.getenv("VERKOVE_RETRY_BASE_MS", "500"))
    max_concurrent_generations: int = int(os.getenv("VERKOVE_MAX_CONCURRENT", "4"))

    # Media
    upload_dir: str = os.getenv("VERKOVE_UPLOAD_DIR", "uploads")
    upload_url_prefix: str = os.getenv("VERKOVE_UPLOAD_URL_PREFIX", "/uploads")
    max_upload_bytes: int = int(os.getenv("VERKOVE_MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
    fetch_timeout_s: float = float(os.getenv("VERKOVE_FETCH_TIMEOUT", "15"))

    # Server
    host: str = os.getenv("VERKOVE_HOST", "0.0.0.0")
    port: int = int(os.getenv("VERKOVE_PORT", "5000"))
    cors_origins: str = os.getenv("VERKOVE_CORS_ORIGINS", "*")

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# Singleton
CONFIG = StudioConfig()


def load_gemini_key() -> str | None:
    """Gemini API key from env, or None when generation should fall back."""
    return os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY") or None


def load_anthropic_key() -> str | None:
    """Anthropic API key from env, or None when chat should use another provider."""
    return os.environ.get("ANTHROPIC_API_KEY") or None
