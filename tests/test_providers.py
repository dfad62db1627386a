"""Provider seam tests: retry policy and client wiring. No network."""
import sys
from pathlib import Path
from types import SimpleNamespace

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from verkove.config import StudioConfig
from verkove.errors import ProviderFailureError, ProviderUnavailableError
from verkove.providers.client import ClaudeProvider, GeminiProvider, build_providers, call_with_retry


class Flaky:
    def __init__(self, failures: int, transient: bool = True):
        self.failures = failures
        self.transient = transient
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise ProviderFailureError("rate limited", "fake", transient=self.transient)
        return "ok"


class TestRetry:
    def test_success_first_try(self):
        fn = Flaky(0)
        assert call_with_retry(fn, provider="fake", operation="op", sleep=lambda s: None) == "ok"
        assert fn.calls == 1

    def test_retries_transient_with_backoff(self):
        delays = []
        fn = Flaky(2)
        result = call_with_retry(fn, provider="fake", operation="op", max_retries=2,
                                 retry_base_ms=100, sleep=delays.append)
        assert result == "ok"
        assert fn.calls == 3
        assert delays == [0.1, 0.2]

    def test_exhaustion_reraises(self):
        fn = Flaky(5)
        with pytest.raises(ProviderFailureError):
            call_with_retry(fn, provider="fake", operation="op", max_retries=1, sleep=lambda s: None)
        assert fn.calls == 2

    def test_non_transient_not_retried(self):
        fn = Flaky(1, transient=False)
        with pytest.raises(ProviderFailureError):
            call_with_retry(fn, provider="fake", operation="op", max_retries=3, sleep=lambda s: None)
        assert fn.calls == 1

    def test_zero_retries(self):
        fn = Flaky(1)
        with pytest.raises(ProviderFailureError):
            call_with_retry(fn, provider="fake", operation="op", max_retries=0, sleep=lambda s: None)
        assert fn.calls == 1

    def test_unexpected_error_becomes_failure(self):
        calls = []

        def fn():
            calls.append(1)
            raise ValueError("unparseable response")

        with pytest.raises(ProviderFailureError) as exc:
            call_with_retry(fn, provider="fake", operation="op", max_retries=3, sleep=lambda s: None)
        assert not exc.value.transient
        assert isinstance(exc.value.__cause__, ValueError)
        assert len(calls) == 1

    def test_studio_errors_pass_through(self):
        def fn():
            raise ProviderUnavailableError("no images here", "fake")

        with pytest.raises(ProviderUnavailableError):
            call_with_retry(fn, provider="fake", operation="op", sleep=lambda s: None)


class TestBuildProviders:
    def test_no_credentials(self, monkeypatch):
        for key in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "ANTHROPIC_API_KEY"):
            monkeypatch.delenv(key, raising=False)
        providers = build_providers(StudioConfig())
        assert providers.image is None
        assert providers.text is None

    def test_anthropic_only(self, monkeypatch):
        for key in ("GEMINI_API_KEY", "GOOGLE_API_KEY"):
            monkeypatch.delenv(key, raising=False)
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        providers = build_providers(StudioConfig())
        assert providers.image is None
        assert providers.text.name == "anthropic"


class TestClaudeProvider:
    def test_cannot_generate_images(self):
        provider = ClaudeProvider("sk-test", "claude-opus-4-6")
        with pytest.raises(ProviderUnavailableError):
            provider.generate_image("a ring")


class TestGeminiProvider:
    def _provider(self, response):
        provider = GeminiProvider("test-key", "image-model", "text-model")
        provider.client = SimpleNamespace(
            models=SimpleNamespace(generate_content=lambda **kw: response),
        )
        return provider

    def test_reads_text_and_image(self):
        part_text = SimpleNamespace(text="A slimmer band.", inline_data=None)
        part_image = SimpleNamespace(text=None, inline_data=SimpleNamespace(data=b"\x89PNG", mime_type="image/png"))
        response = SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part_text, part_image]))])
        result = self._provider(response).generate_image("a ring")
        assert result.text == "A slimmer band."
        assert result.image_bytes == b"\x89PNG"

    def test_malformed_response_is_provider_failure(self):
        with pytest.raises(ProviderFailureError) as exc:
            self._provider(object()).generate_image("a ring")
        assert not exc.value.transient
