"""
Exception types shared across the Clipboard services.

Route handlers translate these into the JSON envelope
``{"success": False, "error": ...}`` with the matching HTTP status.
"""


class ClipboardError(Exception):
    """Base class for application errors"""

    status_code = 500


class ConfigurationError(ClipboardError):
    """A required API key or service client is missing"""

    status_code = 500


class SportsApiError(ClipboardError):
    """The sports data API could not be reached or returned garbage"""

    status_code = 502


class MovieApiError(ClipboardError):
    """The movie database API failed"""

    status_code = 502


class EmailDeliveryError(ClipboardError):
    """The transactional email provider rejected or failed a request"""

    status_code = 502

    def __init__(self, message, status=None):
        super().__init__(message)
        self.status = status


class DocumentNotFound(ClipboardError):
    """An update targeted a document that does not exist"""

    status_code = 404


class DocumentStoreUnavailable(ClipboardError):
    """The document database is offline; callers keep last-known-good state"""

    status_code = 503
