"""
Typed exception hierarchy for studio error handling.

Every failure the API can report inherits from StudioError and carries
the HTTP status it maps to. Provider errors are recoverable: the
generation and chat engines fold them into fallback results.
"""


class StudioError(Exception):
    """Base exception for all studio errors."""
    status_code = 500

    def __init__(self, message: str, kind: str = "", recoverable: bool = False):
        self.message = message
        self.kind = kind
        self.recoverable = recoverable
        super().__init__(message)


class InvalidInputError(StudioError):
    """A required field is missing or a request body has the wrong shape."""
    status_code = 400

    def __init__(self, message: str, field: str = ""):
        self.field = field
        super().__init__(message, kind="invalid_input")


class UploadRejectedError(InvalidInputError):
    """Uploaded file is not an image or is over the size limit."""
    def __init__(self, message: str, content_type: str = "", size: int = 0):
        self.content_type = content_type
        self.size = size
        super().__init__(message, field="image")


class NotFoundError(StudioError):
    """Unknown id for a project, base design, sub design or order."""
    status_code = 404

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        label = entity.replace("_", " ")
        super().__init__(f"{label.capitalize()} with id {entity_id} not found", kind="not_found")


class ProviderUnavailableError(StudioError):
    """No credential configured, or the provider lacks the capability."""
    status_code = 503

    def __init__(self, message: str, provider: str = ""):
        self.provider = provider
        super().__init__(message, kind="provider_unavailable", recoverable=True)


class ProviderFailureError(StudioError):
    """Provider call raised or timed out."""
    def __init__(self, message: str, provider: str = "", transient: bool = False):
        self.provider = provider
        self.transient = transient  # rate limit | timeout | 5xx
        super().__init__(message, kind="provider_failure", recoverable=True)


class ImageFetchError(StudioError):
    """A referenced image could not be dereferenced to bytes."""
    def __init__(self, message: str, ref: str = ""):
        self.ref = ref[:120]
        super().__init__(message, kind="image_fetch", recoverable=True)
