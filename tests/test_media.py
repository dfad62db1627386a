"""Image storage tests: saving, dereferencing, upload validation."""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx
import pytest

from verkove import media
from verkove.errors import ImageFetchError, UploadRejectedError
from verkove.media import ImageStore, is_inline


@pytest.fixture
def images(tmp_path):
    return ImageStore(tmp_path, max_bytes=64)


class TestSave:
    def test_save_returns_served_url(self, images, tmp_path):
        url = images.save(b"bytes", "image/jpeg")
        assert url.startswith("/uploads/design-") and url.endswith(".jpg")
        assert (tmp_path / url.split("/")[-1]).read_bytes() == b"bytes"

    def test_upload_rejects_non_images(self, images):
        with pytest.raises(UploadRejectedError):
            images.save_upload(b"%PDF", "application/pdf", "quote.pdf")

    def test_upload_rejects_large(self, images):
        with pytest.raises(UploadRejectedError):
            images.save_upload(b"x" * 65, "image/png", "big.png")

    def test_upload_ok(self, images):
        assert images.save_upload(b"x" * 10, "image/png", "ok.png").startswith("/uploads/upload-")


class TestLoad:
    def test_round_trip_local(self, images):
        url = images.save(b"ring", "image/png")
        loaded = images.load(url)
        assert loaded.data == b"ring"
        assert loaded.mime_type == "image/png"

    def test_data_url(self, images):
        assert is_inline("data:image/jpeg;base64,aGk=")
        loaded = images.load("data:image/jpeg;base64,aGk=")
        assert (loaded.data, loaded.mime_type) == (b"hi", "image/jpeg")

    def test_malformed_data_url(self, images):
        with pytest.raises(ImageFetchError):
            images.load("data:nonsense")

    def test_no_traversal(self, images):
        assert images.path_for("/uploads/../secret.png") is None
        with pytest.raises(ImageFetchError):
            images.load("/uploads/../secret.png")

    def test_missing_file(self, images):
        with pytest.raises(ImageFetchError):
            images.load("/uploads/nope.png")

    def test_remote(self, images, monkeypatch):
        def fake_get(url, **kwargs):
            return httpx.Response(200, content=b"remote", headers={"content-type": "image/webp"},
                                  request=httpx.Request("GET", url))
        monkeypatch.setattr(media.httpx, "get", fake_get)
        loaded = images.load("https://cdn.example.com/ring.webp")
        assert (loaded.data, loaded.mime_type) == (b"remote", "image/webp")

    def test_remote_error(self, images, monkeypatch):
        def fake_get(url, **kwargs):
            return httpx.Response(404, request=httpx.Request("GET", url))
        monkeypatch.setattr(media.httpx, "get", fake_get)
        with pytest.raises(ImageFetchError):
            images.load("https://cdn.example.com/gone.png")

    def test_unsupported(self, images):
        with pytest.raises(ImageFetchError):
            images.load("ftp://example.com/ring.png")
