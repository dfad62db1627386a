"""
Design Iteration Engine: prompt (+ base design, + previous image) to DesignIteration.

Builds an enriched directive, hands it to the image provider as either a
text-only or an "edit this image" request, and persists any returned
bytes. When no provider is configured, or it fails, a placeholder is
picked from the fallback catalog by a stable hash of the prompt, so the
same prompt always maps to the same image. Never raises past input
validation. Stateless with respect to projects: the caller records the
iteration.
"""
import asyncio
from dataclasses import dataclass
from typing import Iterable, Optional

from verkove.config import StudioConfig
from verkove.db.catalog import FALLBACK_IMAGES
from verkove.db.store import EntityStore
from verkove.errors import ImageFetchError, InvalidInputError, StudioError
from verkove.logger import StudioLogger
from verkove.media import ImageStore, InlineImage
from verkove.metrics import StudioMetrics
from verkove.providers.client import ProviderClient, call_with_retry
from verkove.types import BaseDesign, DesignIteration, utcnow

STYLE_DIRECTIVES = (
    "Professional jewelry product photography: studio lighting, clean white background, "
    "photorealistic, high detail, sharp focus, no text or watermarks."
)

SUCCESS_MESSAGE = "Design generated successfully"
FALLBACK_MESSAGE = "Preview image selected from our catalog while AI generation is unavailable"


def prompt_hash(text: str) -> int:
    """Java-style string hash: h = h*31 + code, wrapped to signed 32 bits."""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def select_fallback_image(prompt: str) -> str:
    return FALLBACK_IMAGES[abs(prompt_hash(prompt)) % len(FALLBACK_IMAGES)]


def build_directive(prompt: str, base_design: Optional[BaseDesign] = None,
                    enhancements: Iterable[str] = (), refine: bool = False) -> str:
    lines = []
    if refine:
        lines.append("Edit the provided jewelry image according to this request, "
                     "keeping everything not mentioned unchanged.")
    else:
        lines.append("Create a jewelry design image.")
    lines.append(f"Request: {prompt}")
    if base_design is not None:
        lines.append(f"Base design: {base_design.name} ({base_design.category}).")
        if base_design.specifications and base_design.specifications.materials:
            lines.append(f"Materials: {', '.join(base_design.specifications.materials)}.")
    else:
        lines.append("Piece: a fine jewelry design.")
    enhancements = list(enhancements)
    if enhancements:
        lines.append(f"Requested enhancements: {', '.join(enhancements)}.")
    lines.append(STYLE_DIRECTIVES)
    return "\n".join(lines)


@dataclass
class GenerationOutcome:
    iteration: DesignIteration
    generated: bool  # False when the fallback catalog was used
    message: str


class DesignIterationEngine:
    def __init__(self, store: EntityStore, images: ImageStore,
                 provider: Optional[ProviderClient], config: StudioConfig,
                 logger: StudioLogger | None = None, metrics: StudioMetrics | None = None):
        self.store = store
        self.images = images
        self.provider = provider
        self.config = config
        self.logger = logger or StudioLogger("iteration")
        self.metrics = metrics or StudioMetrics()

    async def generate(self, prompt: str, base_design_id: Optional[int] = None,
                       previous_image: Optional[str] = None,
                       sub_design_ids: Iterable[int] = ()) -> GenerationOutcome:
        if not prompt or not prompt.strip():
            raise InvalidInputError("Prompt is required", field="prompt")

        base_design = None
        if base_design_id is not None:
            base_design = self.store.get_base_design(base_design_id)
            if base_design is None:
                self.logger.warn("base_design.unresolved", base_design_id=base_design_id)
        enhancements = [
            s.name for s in (self.store.get_sub_design(i) for i in sub_design_ids) if s is not None
        ]

        if self.provider is None:
            return self._fallback(prompt, base_design, reason="no provider configured")

        reference = await self._load_reference(previous_image) if previous_image else None
        directive = build_directive(prompt, base_design, enhancements, refine=reference is not None)
        try:
            result = await asyncio.to_thread(
                call_with_retry,
                lambda: self.provider.generate_image(directive, reference),
                provider=self.provider.name, operation="generate_image",
                max_retries=self.config.max_retries, retry_base_ms=self.config.retry_base_ms,
                logger=self.logger, metrics=self.metrics,
            )
        except StudioError as e:
            return self._fallback(prompt, base_design, reason=str(e))

        if not result.image_bytes:
            return self._fallback(prompt, base_design, reason="provider returned no image",
                                  commentary=result.text)
        try:
            image_url = await asyncio.to_thread(self.images.save, result.image_bytes, result.mime_type)
        except OSError as e:
            return self._fallback(prompt, base_design, reason=f"could not store image: {e}",
                                  commentary=result.text)

        iteration = DesignIteration(
            id=str(self.store.next_id("iteration")),
            image_url=image_url,
            prompt=prompt,
            timestamp=utcnow(),
            ai_response=result.text or f'Here is your design for "{prompt}".',
        )
        self.metrics.incr("iterations")
        return GenerationOutcome(iteration, generated=True, message=SUCCESS_MESSAGE)

    async def _load_reference(self, ref: str) -> Optional[InlineImage]:
        try:
            return await asyncio.to_thread(self.images.load, ref)
        except ImageFetchError as e:
            self.logger.warn("reference.unavailable", ref=e.ref, error=str(e))
            return None

    def _fallback(self, prompt: str, base_design: Optional[BaseDesign], reason: str,
                  commentary: Optional[str] = None) -> GenerationOutcome:
        self.logger.fallback("generate_image", reason)
        self.metrics.record_fallback("generate_image")
        subject = f" based on {base_design.name}" if base_design else ""
        ai_response = commentary or (
            f'Preview for "{prompt}"{subject}. AI image generation is not available right now, '
            "so this is a reference image from our catalog. Describe further changes and "
            "they will be applied once generation is back."
        )
        iteration = DesignIteration(
            id=str(self.store.next_id("iteration")),
            image_url=select_fallback_image(prompt),
            prompt=prompt,
            timestamp=utcnow(),
            ai_response=ai_response,
        )
        self.metrics.incr("iterations")
        return GenerationOutcome(iteration, generated=False, message=FALLBACK_MESSAGE)
