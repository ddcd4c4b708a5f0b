"""Conversion errors with HTTP semantics.

Routes let these propagate; the handler registered in ``main.py`` turns them
into ``{"error": ..., "code": ...}`` JSON responses.
"""


class ConversionError(Exception):
    status_code: int = 500
    code: str = "CONVERSION_FAILED"

    def __init__(self, message: str = "Failed to convert PDF to PowerPoint"):
        self.message = message
        super().__init__(message)


class InvalidUpload(ConversionError):
    """Missing or malformed form fields, or a non-PDF filename."""

    status_code = 400
    code = "INVALID_UPLOAD"


class InvalidFormat(ConversionError):
    """Bytes do not start with the ``%PDF`` header."""

    status_code = 400
    code = "INVALID_FORMAT"


class OversizedUpload(ConversionError):
    status_code = 413
    code = "OVERSIZED_UPLOAD"


class PasswordProtected(ConversionError):
    status_code = 422
    code = "PASSWORD_PROTECTED"


class EmptyDocument(ConversionError):
    """No text could be recovered by any extraction method, OCR included."""

    status_code = 422
    code = "EMPTY_DOCUMENT"


class ParserUnavailable(ConversionError):
    """The PDF parser failed to initialise even after a retry."""

    status_code = 500
    code = "PARSER_UNAVAILABLE"


class ProviderUnavailable(ConversionError):
    """No LLM provider key is configured."""

    status_code = 503
    code = "PROVIDER_UNAVAILABLE"


class ProviderResponseMalformed(ConversionError):
    """The model returned non-JSON or JSON without a ``slides`` list."""

    status_code = 502
    code = "PROVIDER_RESPONSE_MALFORMED"


class ChunkSessionMismatch(ConversionError):
    status_code = 400
    code = "CHUNK_SESSION_MISMATCH"
