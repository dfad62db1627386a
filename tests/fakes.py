"""In-process provider stand-ins. No network."""
import time

from verkove.providers.client import GenerationResult

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class FakeProvider:
    name = "fake"

    def __init__(self, image_bytes=PNG_BYTES, text="Here is your refined ring.",
                 reply="Consider a thinner band.", fail=None, delay_s=0.0):
        self.image_bytes = image_bytes
        self.text = text
        self.reply = reply
        self.fail = fail
        self.delay_s = delay_s
        self.calls = []

    def generate_image(self, directive, image=None):
        self.calls.append(("generate_image", directive, image))
        if self.delay_s:
            time.sleep(self.delay_s)
        if self.fail:
            raise self.fail
        return GenerationResult(text=self.text, image_bytes=self.image_bytes)

    def complete(self, directive):
        self.calls.append(("complete", directive, None))
        if self.fail:
            raise self.fail
        return self.reply
