"""Custom exceptions for contacts2sheet."""


class ContactsSheetError(Exception):
    """Base exception for all contacts2sheet errors."""


class ConfigurationError(ContactsSheetError):
    """Configuration or environment variable error."""


class CaptureError(ContactsSheetError):
    """Media could not be read or encoded."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"Could not capture '{source}': {message}")


class ExtractionError(ContactsSheetError):
    """Error from the Gemini extraction call."""


class PersistenceError(ContactsSheetError):
    """Error sending a contact to the sheet webhook."""

    def __init__(self, url: str, original_error: Exception):
        self.url = url
        self.original_error = original_error
        super().__init__(f"Failed to send contact to {url}: {original_error}")
