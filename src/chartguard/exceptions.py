"""Exception hierarchy for chartguard.

Engine operations report documentation gaps as data, never as exceptions.
These are raised only while loading reference data or caller payloads.
"""


class ChartGuardError(Exception):
    """Base exception for all chartguard errors."""


class RequirementTableError(ChartGuardError):
    """Raised when a code-family requirement table cannot be parsed."""


class TemplateLibraryError(ChartGuardError):
    """Raised when the note template library cannot be parsed."""


class PayloadError(ChartGuardError):
    """Raised when a visit payload is missing fields or has the wrong shape."""

    def __init__(self, message: str, field_path: str = "") -> None:
        super().__init__(message)
        self.field_path = field_path
