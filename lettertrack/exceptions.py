"""Exception taxonomy for recognition and dispatch errors.

Distinguishes between permanent errors (don't retry) and transient errors (retry with backoff).
"""


class LetterTrackError(Exception):
    """Base class for service errors."""

    pass


class RecognitionError(LetterTrackError):
    """Text recognition failed or is not configured."""

    pass


class UnsupportedDocumentError(RecognitionError):
    """The uploaded file type cannot be scanned."""

    def __init__(self, mime_type: str):
        super().__init__(f"Unsupported document type: {mime_type}")
        self.mime_type = mime_type


class DocumentTooLargeError(RecognitionError):
    """The uploaded file exceeds the configured upload size."""

    def __init__(self, size: int, max_size: int):
        super().__init__(f"Document exceeds size limit: {size} bytes > {max_size} bytes")
        self.size = size
        self.max_size = max_size


class DispatchError(LetterTrackError):
    """Base class for letter dispatch errors."""

    pass


class MailNotConfiguredError(DispatchError):
    """No outbound mail relay is configured."""

    pass


class InvalidRecipientsError(DispatchError):
    """The recipient selection is empty or contains invalid addresses."""

    pass


class PermanentDispatchError(DispatchError):
    """Errors that should NOT be retried.

    Examples: relay rejected the message, bad credentials.
    """

    pass


class TransientDispatchError(DispatchError):
    """Errors that SHOULD be retried with backoff.

    Examples: network timeout, relay unavailable.
    """

    pass


# Map external exceptions to our taxonomy
TRANSIENT_ERRORS = (
    ConnectionError,
    TimeoutError,
    OSError,  # Network-related OS errors
)
