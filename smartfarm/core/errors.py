"""
Error types raised by the irrigation engine and the assistant pipeline.

Everything except AssistantNotConfigured is handled inside the service layer
and turned into a normal response value before it reaches a router.
"""


class SmartFarmError(Exception):
    """Base class for application errors."""


class ValidationError(SmartFarmError, ValueError):
    """Malformed input to the irrigation engine (bad frequency or date)."""


class UnsafeQueryError(SmartFarmError):
    """Generated SQL failed the read-only safety filter."""

    def __init__(self, keyword: str, message: str = None):
        self.keyword = keyword
        super().__init__(message or f"{keyword} operations are not allowed")


class QueryExecutionError(SmartFarmError):
    """The database rejected or failed a read-only statement."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ClassificationParseError(SmartFarmError):
    """The classifier's output was not the expected JSON shape."""


class AssistantNotConfigured(SmartFarmError):
    """No language-model credential is configured."""
