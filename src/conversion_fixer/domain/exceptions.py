"""Exception taxonomy for conversion fixes."""


class ConversionFixerError(Exception):
    """Base class for errors raised by the conversion fixer."""


class SemanticLookupError(ConversionFixerError):
    """Type or symbol information could not be resolved for an expression."""

    def __init__(self, expression_code: str, reason: str) -> None:
        super().__init__(f"Cannot resolve '{expression_code}': {reason}")
        self.expression_code = expression_code
        self.reason = reason


class OperationCancelledError(ConversionFixerError):
    """The caller cancelled the fix while it was in progress."""


class ConfigurationError(ConversionFixerError):
    """Invalid value in the [tool.conversion-fixer] section."""


class DiagnosticSourceError(ConversionFixerError):
    """The diagnostic producer (mypy) could not be run or understood."""
