"""
Chat Context Engine: one user message to one assistant turn.

Folds a persona preamble, the structured client context and the literal
message into a single directive. Messages that ask for something visual
go to the image provider and any returned image is stored and linked in
the reply; everything else goes to the text provider. Provider trouble
yields a fixed apology instead of an error. When the project resolves,
both turns are appended to its chat history, user first.
"""
import asyncio
import json
from typing import Optional

from verkove.config import StudioConfig
from verkove.db.store import EntityStore
from verkove.errors import ImageFetchError, InvalidInputError, StudioError
from verkove.logger import StudioLogger
from verkove.media import ImageStore
from verkove.metrics import StudioMetrics
from verkove.providers.client import ProviderClient, call_with_retry
from verkove.types import ChatContext, ChatMessage, to_json, utcnow

GENERATION_TRIGGERS = ("generate", "create", "make", "show me", "design")

PERSONA = (
    "You are an expert jewelry design consultant for a custom jewelry studio. "
    "Help the client refine their piece: suggest materials, stones, settings and "
    "proportions, and keep designs practical to manufacture."
)

FALLBACK_REPLY = (
    "I'm sorry, I'm having trouble reaching the design assistant right now. "
    "Please try again in a moment."
)


def wants_image(message: str) -> bool:
    text = message.lower()
    return any(word in text for word in GENERATION_TRIGGERS)


def build_chat_directive(message: str, context: Optional[ChatContext] = None) -> str:
    parts = [PERSONA]
    if context is not None:
        parts.append(f"Design context: {json.dumps(to_json(context))}")
    parts.append(f"Client message: {message}")
    return "\n\n".join(parts)


class ChatEngine:
    def __init__(self, store: EntityStore, images: ImageStore,
                 image_provider: Optional[ProviderClient], text_provider: Optional[ProviderClient],
                 config: StudioConfig, logger: StudioLogger | None = None,
                 metrics: StudioMetrics | None = None):
        self.store = store
        self.images = images
        self.image_provider = image_provider
        self.text_provider = text_provider
        self.config = config
        self.logger = logger or StudioLogger("chat")
        self.metrics = metrics or StudioMetrics()

    async def converse(self, message: str, project_id: Optional[int] = None,
                       context: Optional[ChatContext] = None,
                       image_url: Optional[str] = None) -> ChatMessage:
        if not message or not message.strip():
            raise InvalidInputError("Message is required", field="message")

        project = self.store.get_project(project_id) if project_id is not None else None
        if project_id is not None and project is None:
            self.logger.warn("project.unresolved", project_id=project_id)

        user_turn = ChatMessage(
            id=str(self.store.next_id("message")), content=message, is_user=True,
            timestamp=utcnow(), image_url=image_url,
        )
        directive = build_chat_directive(message, context)
        if wants_image(message) and self.image_provider is not None:
            content, reply_image = await self._image_reply(directive, image_url)
        else:
            content, reply_image = await self._text_reply(directive), None

        assistant_turn = ChatMessage(
            id=str(self.store.next_id("message")), content=content, is_user=False,
            timestamp=utcnow(), image_url=reply_image,
        )
        if project is not None:
            self.store.append_chat(project.id, user_turn, assistant_turn)
        self.metrics.incr("chat_turns")
        self.logger.info("chat.turn", project_id=project.id if project else None,
                         image=reply_image is not None)
        return assistant_turn

    async def _text_reply(self, directive: str) -> str:
        if self.text_provider is None:
            self._fallback("complete", "no provider configured")
            return FALLBACK_REPLY
        provider = self.text_provider
        try:
            text = await asyncio.to_thread(
                call_with_retry, lambda: provider.complete(directive),
                provider=provider.name, operation="complete",
                max_retries=self.config.max_retries, retry_base_ms=self.config.retry_base_ms,
                logger=self.logger, metrics=self.metrics,
            )
        except StudioError as e:
            self._fallback("complete", str(e))
            return FALLBACK_REPLY
        return text or FALLBACK_REPLY

    async def _image_reply(self, directive: str, attached: Optional[str]) -> tuple[str, Optional[str]]:
        provider = self.image_provider
        reference = None
        if attached:
            try:
                reference = await asyncio.to_thread(self.images.load, attached)
            except ImageFetchError as e:
                self.logger.warn("reference.unavailable", ref=e.ref, error=str(e))
        try:
            result = await asyncio.to_thread(
                call_with_retry, lambda: provider.generate_image(directive, reference),
                provider=provider.name, operation="chat_image",
                max_retries=self.config.max_retries, retry_base_ms=self.config.retry_base_ms,
                logger=self.logger, metrics=self.metrics,
            )
        except StudioError as e:
            self._fallback("chat_image", str(e))
            return FALLBACK_REPLY, None

        content = result.text or "Here is a design based on your request."
        if not result.image_bytes:
            return content, None
        try:
            url = await asyncio.to_thread(self.images.save, result.image_bytes, result.mime_type, "chat")
        except OSError as e:
            self.logger.error("image.store_failed", error=str(e))
            return content, None
        return f"{content}\n\nGenerated image: {url}", url

    def _fallback(self, operation: str, reason: str):
        self.logger.fallback(operation, reason)
        self.metrics.record_fallback(operation)
