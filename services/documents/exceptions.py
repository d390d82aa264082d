"""
Document System Exceptions

Custom exceptions for field-map configuration, rendering and delivery errors.
"""


class DocumentError(Exception):
    """Base exception for all document system errors."""
    pass


class ConfigurationError(DocumentError):
    """
    Raised when the field map configuration is invalid.

    This includes YAML syntax errors, schema validation failures,
    and referential integrity issues (e.g., a field that reads an
    unknown canonical name).
    """
    pass


class ValidationError(DocumentError):
    """
    Raised when a single field map definition fails validation.

    Contains details about what specifically failed.
    """
    def __init__(self, message: str, slug: str = None, field: str = None):
        self.slug = slug
        self.field = field
        super().__init__(message)


class TemplateUnavailable(DocumentError):
    """
    Raised when the PDF template cannot be fetched from any source.

    There is no valid document without a template, so this aborts
    the whole submission.
    """
    def __init__(self, message: str, attempts: list = None):
        self.attempts = attempts or []
        super().__init__(message)


class TextEncodingError(DocumentError):
    """
    Raised when text cannot be drawn with the single-byte PDF fonts.

    Fatal for the render; retrying with the same input fails the same way.
    """
    def __init__(self, message: str, field_key: str = None, text: str = None):
        self.field_key = field_key
        self.text = text
        super().__init__(message)


class DeliveryError(DocumentError):
    """Base for failures of a single delivery destination."""
    pass


class StorageAPIError(DeliveryError):
    """
    Raised when the upload or record-update endpoint fails.

    Wraps the underlying HTTP error with context.
    """
    def __init__(self, message: str, status_code: int = None, response_body: str = None):
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)


class RecordStoreError(DeliveryError):
    """Raised when an Airtable read or write fails."""
    def __init__(self, message: str, record_id: str = None):
        self.record_id = record_id
        super().__init__(message)
