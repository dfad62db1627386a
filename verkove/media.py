"""
Image storage for uploaded references and generated designs.

Generated bytes are never kept on entities: they are written under the
upload directory and referenced by a stable `/uploads/<file>` URL that
the API serves statically. `load()` turns any such reference (or an
inline data URL, or a remote URL) back into bytes for the provider.
"""
import base64
import binascii
import mimetypes
import re
import uuid
from dataclasses import dataclass
from pathlib import Path

import httpx

from verkove.errors import ImageFetchError, UploadRejectedError
from verkove.validators import validate_upload

_DATA_URL = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(?:;[\w=-]+)*;base64,(?P<data>.*)$", re.DOTALL)


@dataclass(frozen=True)
class InlineImage:
    data: bytes
    mime_type: str = "image/png"


def is_inline(ref: str) -> bool:
    return ref.startswith("data:")


def _extension(mime_type: str) -> str:
    if mime_type == "image/jpeg":
        return ".jpg"
    return mimetypes.guess_extension(mime_type) or ".png"


class ImageStore:
    def __init__(self, root: str | Path, url_prefix: str = "/uploads",
                 max_bytes: int = 10 * 1024 * 1024, fetch_timeout_s: float = 15.0):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes
        self.fetch_timeout_s = fetch_timeout_s
        self.root.mkdir(parents=True, exist_ok=True)

    def save(self, data: bytes, mime_type: str = "image/png", prefix: str = "design") -> str:
        """Write image bytes and return their served URL."""
        name = f"{prefix}-{uuid.uuid4().hex}{_extension(mime_type)}"
        (self.root / name).write_bytes(data)
        return f"{self.url_prefix}/{name}"

    def save_upload(self, data: bytes, content_type: str | None, filename: str = "") -> str:
        ok, errors = validate_upload(content_type, len(data), self.max_bytes)
        if not ok:
            raise UploadRejectedError("; ".join(errors), content_type=content_type or "", size=len(data))
        return self.save(data, content_type, prefix="upload")

    def path_for(self, ref: str) -> Path | None:
        """Local file behind a served reference, or None if it isn't one of ours."""
        if not ref.startswith(self.url_prefix + "/"):
            return None
        name = ref[len(self.url_prefix) + 1:].split("?", 1)[0]
        # File names only: the upload directory is flat.
        if not name or "/" in name or "\\" in name or name.startswith("."):
            return None
        return self.root / name

    def load(self, ref: str) -> InlineImage:
        """Dereference an image reference to bytes + mimetype."""
        if is_inline(ref):
            m = _DATA_URL.match(ref)
            if not m:
                raise ImageFetchError("Malformed data URL", ref)
            try:
                data = base64.b64decode(m.group("data"), validate=False)
            except (binascii.Error, ValueError) as e:
                raise ImageFetchError(f"Undecodable data URL: {e}", ref) from e
            return InlineImage(data, m.group("mime") or "image/png")

        local = self.path_for(ref)
        if local is not None:
            if not local.is_file():
                raise ImageFetchError(f"Image not found: {local.name}", ref)
            mime = mimetypes.guess_type(local.name)[0] or "image/png"
            return InlineImage(local.read_bytes(), mime)

        if ref.startswith(("http://", "https://")):
            try:
                resp = httpx.get(ref, timeout=self.fetch_timeout_s, follow_redirects=True)
                resp.raise_for_status()
            except httpx.HTTPError as e:
                raise ImageFetchError(f"Fetch failed: {e}", ref) from e
            if len(resp.content) > self.max_bytes:
                raise ImageFetchError("Referenced image is too large", ref)
            mime = resp.headers.get("content-type", "image/png").split(";")[0].strip()
            return InlineImage(resp.content, mime)

        raise ImageFetchError("Unsupported image reference", ref)
