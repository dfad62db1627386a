"""
Provider clients: the narrow seam between the studio and external AI.

Two capabilities: generate_image (text directive plus an optional
reference image, returning commentary and/or image bytes) and complete
(text in, text out). Gemini serves both; Claude serves text only. SDK
errors are mapped to ProviderFailureError so the engines can fall back
without knowing which SDK raised.
"""
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, TypeVar

import anthropic
import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from verkove.config import StudioConfig, load_anthropic_key, load_gemini_key
from verkove.errors import ProviderFailureError, ProviderUnavailableError, StudioError
from verkove.logger import StudioLogger
from verkove.media import InlineImage
from verkove.metrics import StudioMetrics

T = TypeVar("T")

CHAT_SYSTEM = "You are an expert jewelry design consultant. Answer concisely and practically."


@dataclass
class GenerationResult:
    text: Optional[str] = None
    image_bytes: Optional[bytes] = None
    mime_type: str = "image/png"


class ProviderClient(Protocol):
    name: str

    def generate_image(self, directive: str, image: Optional[InlineImage] = None) -> GenerationResult:
        ...

    def complete(self, directive: str) -> str:
        ...


@dataclass
class Providers:
    """Configured clients. None means the capability falls back."""
    image: Optional[ProviderClient] = None
    text: Optional[ProviderClient] = None


# ── Gemini ────────────────────────────────────────────────────

class GeminiProvider:
    name = "gemini"

    def __init__(self, api_key: str, image_model: str, text_model: str, timeout_s: float = 60.0):
        self.image_model = image_model
        self.text_model = text_model
        self.client = genai.Client(
            api_key=api_key,
            http_options=genai_types.HttpOptions(timeout=int(timeout_s * 1000)),
        )

    def _call(self, **kwargs):
        try:
            return self.client.models.generate_content(**kwargs)
        except genai_errors.APIError as e:
            transient = e.code == 429 or (e.code or 0) >= 500
            raise ProviderFailureError(f"Gemini error {e.code}: {e.message}", self.name, transient) from e
        except httpx.HTTPError as e:
            raise ProviderFailureError(f"Gemini transport error: {e}", self.name, transient=True) from e
        except ValueError as e:
            # UnknownApiResponseError and malformed payloads
            raise ProviderFailureError(f"Gemini response error: {e}", self.name) from e

    def generate_image(self, directive: str, image: Optional[InlineImage] = None) -> GenerationResult:
        contents: list = [directive]
        if image is not None:
            contents.append(genai_types.Part.from_bytes(data=image.data, mime_type=image.mime_type))
        resp = self._call(
            model=self.image_model,
            contents=contents,
            config=genai_types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
        )
        try:
            return self._parse_parts(resp)
        except (AttributeError, TypeError, ValueError) as e:
            raise ProviderFailureError(f"Unreadable Gemini response: {e}", self.name) from e

    @staticmethod
    def _parse_parts(resp) -> GenerationResult:
        result = GenerationResult()
        texts = []
        for candidate in resp.candidates or []:
            for part in (candidate.content.parts if candidate.content else None) or []:
                if part.text:
                    texts.append(part.text)
                elif part.inline_data and part.inline_data.data and result.image_bytes is None:
                    result.image_bytes = part.inline_data.data
                    result.mime_type = part.inline_data.mime_type or "image/png"
        result.text = "\n".join(texts).strip() or None
        return result

    def complete(self, directive: str) -> str:
        resp = self._call(model=self.text_model, contents=directive)
        try:
            return (resp.text or "").strip()
        except (AttributeError, ValueError) as e:
            raise ProviderFailureError(f"Unreadable Gemini response: {e}", self.name) from e


# ── Claude ────────────────────────────────────────────────────

class ClaudeProvider:
    name = "anthropic"

    def __init__(self, api_key: str, model: str, max_tokens: int = 1024, timeout_s: float = 60.0):
        self.model = model
        self.max_tokens = max_tokens
        # Retries are ours (call_with_retry), not the SDK's.
        self.client = anthropic.Anthropic(api_key=api_key, timeout=timeout_s, max_retries=0)

    def generate_image(self, directive: str, image: Optional[InlineImage] = None) -> GenerationResult:
        raise ProviderUnavailableError("Claude does not generate images", self.name)

    def complete(self, directive: str) -> str:
        try:
            resp = self.client.messages.create(
                model=self.model, max_tokens=self.max_tokens,
                system=CHAT_SYSTEM, messages=[{"role": "user", "content": directive}],
            )
        except (anthropic.RateLimitError, anthropic.InternalServerError, anthropic.APIConnectionError) as e:
            raise ProviderFailureError(f"Claude transient error: {e}", self.name, transient=True) from e
        except anthropic.APIStatusError as e:
            raise ProviderFailureError(f"Claude error {e.status_code}: {e.message}", self.name) from e
        except anthropic.APIError as e:
            raise ProviderFailureError(f"Claude error: {e}", self.name) from e
        return "".join(block.text for block in resp.content if block.type == "text").strip()


# ── Retry ─────────────────────────────────────────────────────

def call_with_retry(fn: Callable[[], T], *, provider: str, operation: str,
                    max_retries: int = 1, retry_base_ms: int = 500,
                    logger: StudioLogger | None = None,
                    metrics: StudioMetrics | None = None,
                    sleep: Callable[[float], None] = time.sleep) -> T:
    """Call `fn`, retrying transient ProviderFailureErrors with exponential backoff.

    Anything else `fn` raises, other than a StudioError, becomes a
    non-transient ProviderFailureError. Non-transient failures and
    exhaustion re-raise the last error.
    """
    attempt = 0
    while True:
        t0 = time.monotonic()
        try:
            result = fn()
        except ProviderFailureError as e:
            error = e
        except StudioError:
            raise
        except Exception as e:
            error = ProviderFailureError(f"{type(e).__name__}: {e}", provider, transient=False)
            error.__cause__ = e
        else:
            duration_ms = int((time.monotonic() - t0) * 1000)
            if metrics:
                metrics.record_provider(operation, duration_ms)
            if logger:
                logger.provider_call(provider, operation, duration_ms, attempt=attempt)
            return result

        duration_ms = int((time.monotonic() - t0) * 1000)
        if metrics:
            metrics.record_provider(operation, duration_ms, error=True)
        if logger:
            logger.provider_error(provider, operation, str(error), duration_ms)
        if not error.transient or attempt >= max_retries:
            raise error
        delay_ms = retry_base_ms * (2 ** attempt)
        attempt += 1
        if logger:
            logger.retry(provider, attempt, delay_ms, str(error))
        sleep(delay_ms / 1000)


def build_providers(config: StudioConfig, logger: StudioLogger | None = None) -> Providers:
    """Build provider clients from the credentials present in the environment."""
    gemini_key = load_gemini_key()
    anthropic_key = load_anthropic_key()
    gemini = (
        GeminiProvider(gemini_key, config.image_model, config.gemini_text_model, config.provider_timeout_s)
        if gemini_key else None
    )
    claude = (
        ClaudeProvider(anthropic_key, config.chat_model, config.max_tokens_chat, config.provider_timeout_s)
        if anthropic_key else None
    )
    providers = Providers(image=gemini, text=claude or gemini)
    if logger:
        logger.info(
            "providers.configured",
            image=providers.image.name if providers.image else None,
            text=providers.text.name if providers.text else None,
        )
    return providers
